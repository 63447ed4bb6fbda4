"""
Base class for services that talk to Supabase.
"""

import asyncio
from abc import ABC
from typing import Any, Callable, Optional, TypeVar
from supabase import Client
from core.database import db_manager
from core.logging import LoggerMixin

T = TypeVar("T")


class BaseService(LoggerMixin, ABC):
    """Supabase-backed service with a lazily resolved client."""

    def __init__(self, client: Optional[Client] = None):
        self._db_client: Optional[Client] = client

    @property
    def db(self) -> Client:
        """Get the database client."""
        if self._db_client is None:
            self._db_client = db_manager.client
        return self._db_client

    async def run_sync(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking SDK call off the event loop."""
        return await asyncio.to_thread(func, *args)
