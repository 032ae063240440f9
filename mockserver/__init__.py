"""Contract server package.

Run it with::

    uvicorn mockserver.app:create_app --factory --port 8080
"""

from mockserver.app import create_app
from mockserver.store import RecordStore

__all__ = ["create_app", "RecordStore"]
