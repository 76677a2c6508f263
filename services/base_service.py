"""
Base service class for the Cube League Draft Bot

Provides common table operations and error handling for all data services.
"""
import logging
from typing import Optional, Type, TypeVar, Generic, Dict, Any, List

from api.client import get_global_client, APIClient
from models.base import DraftBaseModel
from models.results import ActionResult, ErrorKind
from exceptions import APIException, ConflictException

logger = logging.getLogger(f'{__name__}.BaseService')

T = TypeVar('T', bound=DraftBaseModel)


class BaseService(Generic[T]):
    """
    Base service class providing common table operations for league models.

    Features:
    - Generic type support for any DraftBaseModel subclass
    - Automatic model validation and conversion
    - Standardized error handling
    - Connection management via global client
    """

    def __init__(self,
                 model_class: Type[T],
                 table: str,
                 client: Optional[APIClient] = None):
        """
        Initialize base service.

        Args:
            model_class: Pydantic model class for this service
            table: Store table name (e.g., 'draft_sessions', 'teams')
            client: Optional API client override (uses global client by default)
        """
        self.model_class = model_class
        self.table = table
        self._client = client
        self._cached_client: Optional[APIClient] = None

        logger.debug(f"Initialized {self.__class__.__name__} for {model_class.__name__} at table '{table}'")

    async def get_client(self) -> APIClient:
        """
        Get API client instance with caching to reduce async overhead.

        Returns:
            APIClient instance (cached after first access)
        """
        if self._client:
            return self._client

        if self._cached_client is None:
            self._cached_client = await get_global_client()

        return self._cached_client

    async def get_by_id(self, object_id: str) -> Optional[T]:
        """
        Get single object by ID.

        Returns:
            Model instance or None if not found

        Raises:
            APIException: For store errors
        """
        try:
            client = await self.get_client()
            data = await client.select_one(self.table, [('id', f'eq.{object_id}')])

            if not data:
                logger.debug(f"{self.model_class.__name__} {object_id} not found")
                return None

            return self.model_class.from_api_data(data)

        except APIException:
            logger.error(f"API error retrieving {self.model_class.__name__} {object_id}")
            raise
        except Exception as e:
            logger.error(f"Error retrieving {self.model_class.__name__} {object_id}: {e}")
            raise APIException(f"Failed to retrieve {self.model_class.__name__}: {e}")

    async def get_all_items(self, params: Optional[List[tuple]] = None, columns: str = "*") -> List[T]:
        """
        Get all objects matching PostgREST filters.

        Raises:
            APIException: For store errors
        """
        try:
            client = await self.get_client()
            rows = await client.select(self.table, params, columns=columns)
            models = [self.model_class.from_api_data(row) for row in rows]
            logger.debug(f"Retrieved {len(models)} {self.model_class.__name__} objects")
            return models

        except APIException:
            logger.error(f"API error retrieving {self.model_class.__name__} list")
            raise
        except Exception as e:
            logger.error(f"Error retrieving {self.model_class.__name__} list: {e}")
            raise APIException(f"Failed to retrieve {self.model_class.__name__} list: {e}")

    async def get_first(self, params: Optional[List[tuple]] = None, columns: str = "*") -> Optional[T]:
        """Get the first object matching the filters, or None."""
        query = list(params or []) + [('limit', 1)]
        items = await self.get_all_items(query, columns=columns)
        return items[0] if items else None

    async def create(self, model_data: Dict[str, Any]) -> Optional[T]:
        """
        Create new object from data dictionary.

        Raises:
            ConflictException: When a unique constraint rejects the row
            APIException: For other store errors
        """
        try:
            client = await self.get_client()
            rows = await client.insert(self.table, model_data)

            if not rows:
                logger.warning(f"No response from {self.model_class.__name__} creation")
                return None

            model = self.model_class.from_api_data(rows[0])
            logger.debug(f"Created {self.model_class.__name__}: {model}")
            return model

        except APIException:
            logger.error(f"API error creating {self.model_class.__name__}")
            raise
        except Exception as e:
            logger.error(f"Error creating {self.model_class.__name__}: {e}")
            raise APIException(f"Failed to create {self.model_class.__name__}: {e}")

    async def create_many(self, rows: List[Dict[str, Any]]) -> List[T]:
        """Insert a batch of rows in a single request."""
        if not rows:
            return []
        try:
            client = await self.get_client()
            created = await client.insert(self.table, rows)
            return [self.model_class.from_api_data(row) for row in created]
        except APIException:
            logger.error(f"API error batch-creating {self.model_class.__name__}")
            raise

    async def patch(self, object_id: str, model_data: Dict[str, Any],
                    extra_filters: Optional[List[tuple]] = None) -> Optional[T]:
        """
        Update an object by ID with optional additional filters.

        Returns:
            Updated model instance, or None when no row matched the filters
        """
        params = [('id', f'eq.{object_id}')] + list(extra_filters or [])
        try:
            client = await self.get_client()
            rows = await client.update(self.table, model_data, params)

            if not rows:
                logger.debug(f"{self.model_class.__name__} {object_id} not updated (no matching row)")
                return None

            model = self.model_class.from_api_data(rows[0])
            logger.debug(f"Updated {self.model_class.__name__} {object_id}: {model}")
            return model

        except APIException:
            logger.error(f"API error updating {self.model_class.__name__} {object_id}")
            raise

    async def delete(self, object_id: str) -> bool:
        """
        Delete object by ID.

        Returns:
            True if deleted, False if not found
        """
        deleted = await self.delete_where([('id', f'eq.{object_id}')])
        return deleted > 0

    async def delete_where(self, params: List[tuple]) -> int:
        """Delete rows matching the filters and return how many were removed."""
        try:
            client = await self.get_client()
            rows = await client.delete(self.table, params)
            logger.debug(f"Deleted {len(rows)} {self.model_class.__name__} rows matching {params}")
            return len(rows)
        except APIException:
            logger.error(f"API error deleting {self.model_class.__name__} rows")
            raise

    def store_failure(self, action: str, error: Exception) -> ActionResult:
        """Convert a store exception into a failed result."""
        if isinstance(error, ConflictException):
            return ActionResult.fail(ErrorKind.CONFLICT, str(error))
        if isinstance(error, APIException):
            logger.error(f"Store error while trying to {action}: {error}")
            return ActionResult.fail(ErrorKind.STORE_ERROR, str(error))
        logger.error(f"Unexpected error while trying to {action}: {error}", exc_info=True)
        return ActionResult.fail(ErrorKind.UNEXPECTED, str(error))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_class.__name__}, table='{self.table}')"
