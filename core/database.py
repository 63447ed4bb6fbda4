"""
Supabase client manager for the SkyCart Supplier Backend.
The same client serves the product/category tables and the image bucket.
"""

from typing import Optional
from supabase import create_client, Client
from core.config import get_database_config, get_settings
from core.logging import LoggerMixin
from core.exceptions import DatabaseException


class DatabaseManager(LoggerMixin):
    """Lazily creates and hands out the shared Supabase client."""

    _instance: Optional['DatabaseManager'] = None

    def __new__(cls) -> 'DatabaseManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_initialized'):
            self._initialized = True
            self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        """Get the Supabase client instance."""
        if self._client is None:
            self._initialize_client()
        return self._client

    def _initialize_client(self) -> None:
        config = get_database_config()

        if not config.get("url") or not config.get("service_role_key"):
            raise DatabaseException(
                "Missing required database configuration",
                operation="client_initialization"
            )

        try:
            self._client = create_client(config["url"], config["service_role_key"])
        except Exception as e:
            self.logger.error(f"Failed to initialize database client: {e}")
            raise DatabaseException("Failed to initialize database client", operation="client_initialization") from e

        self.logger.info("Database client initialized successfully")

    def test_connection(self) -> bool:
        """
        Run a one-row query against the categories table.

        Returns:
            True if the query succeeds, False otherwise
        """
        try:
            table = get_settings().categories_table
            self.client.table(table).select("id").limit(1).execute()
            self.logger.info("Database connection test successful")
            return True
        except Exception as e:
            self.logger.error(f"Database connection test failed: {e}")
            return False

    def health_check(self) -> dict:
        """Report connectivity for the /health endpoint."""
        is_connected = self.test_connection()
        return {
            "status": "healthy" if is_connected else "unhealthy",
            "connected": is_connected,
            "client_initialized": self._client is not None
        }

    def close(self) -> None:
        """Drop the cached client."""
        if self._client:
            # Supabase client doesn't need explicit closing
            self._client = None
            self.logger.info("Database connection closed")


# Global database manager instance
db_manager = DatabaseManager()
