"""
Open draft sessions, keyed by draft id.
"""

from typing import Callable, Dict, Optional

from core.exceptions import ResourceNotFoundException
from core.logging import LoggerMixin
from services.catalog_service import CatalogService
from services.object_store_gateway import create_object_store_gateway
from services.product_draft_session import ProductDraftSession
from services.product_service import ProductService

SessionFactory = Callable[[], ProductDraftSession]


def default_session_factory() -> ProductDraftSession:
    """Session wired to the configured object store and Supabase tables."""
    return ProductDraftSession(
        gateway=create_object_store_gateway(),
        catalog_service=CatalogService(),
        product_service=ProductService(),
    )


class DraftSessionRegistry(LoggerMixin):
    """Keeps each form's session alive between requests and tears it down on close."""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._factory = session_factory or default_session_factory
        self._sessions: Dict[str, ProductDraftSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def create(self, product_id: Optional[str] = None) -> ProductDraftSession:
        session = self._factory()
        try:
            await session.open(product_id)
        except Exception:
            await session.close()
            raise
        self._sessions[session.session_id] = session
        self.logger.info(f"Opened draft {session.session_id}" + (f" for product {product_id}" if product_id else ""))
        return session

    def get(self, draft_id: str) -> ProductDraftSession:
        session = self._sessions.get(draft_id)
        if session is None:
            raise ResourceNotFoundException("Draft", draft_id)
        return session

    async def close(self, draft_id: str) -> None:
        session = self._sessions.pop(draft_id, None)
        if session is None:
            raise ResourceNotFoundException("Draft", draft_id)
        await session.close()

    async def close_all(self) -> None:
        sessions, self._sessions = list(self._sessions.values()), {}
        for session in sessions:
            await session.close()
        if sessions:
            self.logger.info(f"Closed {len(sessions)} open draft(s)")
