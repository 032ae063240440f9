"""Client-side validation of addresses before they are submitted."""

from __future__ import annotations

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from dashboard.errors import ValidationFailure

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)


def validate_address(address: str) -> str:
    """Return *address* stripped of surrounding whitespace.

    Raises:
        ValidationFailure: If *address* is not an absolute http(s) URL with a
            host.  No network call is ever made for a rejected address.
    """
    candidate = address.strip()
    if not candidate:
        raise ValidationFailure("Please enter a URL.")
    try:
        _URL_ADAPTER.validate_python(candidate)
    except ValidationError as exc:
        raise ValidationFailure(f"Invalid URL: {candidate!r}") from exc
    return candidate
