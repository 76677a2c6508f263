"""
API client for the Cube League Draft Bot

aiohttp-based HTTP client for the hosted relational store (Supabase PostgREST).
Provides connection pooling, error mapping, and session management.

PostgREST conventions:
    filters    ('season_id', 'eq.<uuid>'), ('status', 'in.(scheduled,active)')
    ordering   ('order', 'pick_position.asc')
    limits     ('limit', '1')
    RPC        POST /rest/v1/rpc/<function> with named arguments as JSON
"""
import json
import aiohttp
import logging
from typing import Optional, List, Dict, Any, Union
from urllib.parse import quote
from contextlib import asynccontextmanager

from config import get_config
from exceptions import APIException, ConflictException

logger = logging.getLogger(f'{__name__}.APIClient')

Params = Optional[List[tuple]]
Payload = Union[Dict[str, Any], List[Dict[str, Any]]]

# Characters PostgREST operators rely on; everything else is percent-encoded
_SAFE_PARAM_CHARS = ".,()*:-_"


def _truncate(data: Any, limit: int = 1200) -> str:
    data_str = str(data)
    if len(data_str) > limit:
        return data_str[:limit] + "..."
    return data_str


class APIClient:
    """
    Async HTTP client for the PostgREST store.

    Features:
    - Connection pooling with proper session management
    - apikey + Bearer authentication
    - Unique constraint violations surfaced as ConflictException
    - Debug logging with response truncation
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        """
        Initialize API client with configuration.

        Args:
            base_url: Override the Supabase project URL from config
            api_key: Override the service key from config

        Raises:
            ValueError: If required configuration is missing
        """
        config = get_config()
        self.base_url = (base_url or config.supabase_url or "").rstrip('/')
        self.api_key = api_key or config.supabase_key
        self.timeout = config.default_timeout
        self._session: Optional[aiohttp.ClientSession] = None

        if not self.base_url:
            raise ValueError("SUPABASE_URL must be configured")
        if not self.api_key:
            raise ValueError("SUPABASE_KEY must be configured")

        logger.debug(f"APIClient initialized with base_url: {self.base_url}")

    @property
    def headers(self) -> Dict[str, str]:
        """Get headers with authentication and content type."""
        return {
            'apikey': self.api_key,
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'User-Agent': 'Cube-League-Draft-Bot/1.0'
        }

    def _build_url(self, table: str, rpc: bool = False) -> str:
        """Build the REST URL for a table or RPC function."""
        if table.startswith(('http://', 'https://')):
            return table
        if rpc:
            return f"{self.base_url}/rest/v1/rpc/{table}"
        return f"{self.base_url}/rest/v1/{table}"

    def _add_params(self, url: str, params: Params = None) -> str:
        """
        Add query parameters to URL.

        Args:
            url: Base URL
            params: List of (key, value) tuples

        Returns:
            URL with query parameters appended
        """
        if not params:
            return url

        param_str = "&".join(
            f"{key}={quote(str(value), safe=_SAFE_PARAM_CHARS)}" for key, value in params
        )
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{param_str}"

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists and is not closed."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=100,  # Total connection pool size
                limit_per_host=30,  # Connections per host
                ttl_dns_cache=300,  # DNS cache TTL
                use_dns_cache=True
            )

            timeout = aiohttp.ClientTimeout(total=30, connect=10)

            self._session = aiohttp.ClientSession(
                headers=self.headers,
                connector=connector,
                timeout=timeout
            )

            logger.debug("Created new aiohttp session with connection pooling")

    @staticmethod
    def _parse_error(error_text: str) -> tuple:
        """Extract (message, code) from a PostgREST error body."""
        try:
            body = json.loads(error_text)
        except (TypeError, ValueError):
            return error_text, None
        if isinstance(body, dict):
            return body.get('message') or error_text, body.get('code')
        return error_text, None

    async def _request(
        self,
        method: str,
        url: str,
        data: Optional[Payload] = None,
        prefer: Optional[str] = None,
        timeout: Optional[int] = None
    ) -> Any:
        """
        Perform a request and map HTTP failures onto the exception hierarchy.

        Returns:
            Decoded JSON body, or None for 404 and empty bodies

        Raises:
            ConflictException: For 409 unique/foreign key violations
            APIException: For other HTTP errors or network issues
        """
        await self._ensure_session()

        headers = {'Prefer': prefer} if prefer else None
        request_timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None

        try:
            logger.debug(f"{method}: {url} data: {_truncate(data, 400) if data is not None else None}")

            async with self._session.request(
                method, url, json=data, headers=headers, timeout=request_timeout
            ) as response:
                if response.status == 404:
                    logger.warning(f"Resource not found: {url}")
                    return None
                elif response.status == 401:
                    logger.error(f"Authentication failed for {method}: {url}")
                    raise APIException("Authentication failed - check SUPABASE_KEY", status=401)
                elif response.status == 403:
                    logger.error(f"Access forbidden for {method}: {url}")
                    raise APIException("Access forbidden - insufficient permissions", status=403)
                elif response.status == 409:
                    error_text = await response.text()
                    message, code = self._parse_error(error_text)
                    logger.warning(f"{method} conflict: {url} - {error_text}")
                    raise ConflictException(f"Conflict: {message}", status=409, code=code)
                elif response.status >= 400:
                    error_text = await response.text()
                    message, code = self._parse_error(error_text)
                    logger.error(f"{method} error {response.status}: {url} - {error_text}")
                    raise APIException(
                        f"{method} request failed with status {response.status}: {message}",
                        status=response.status,
                        code=code
                    )

                result = await response.json(content_type=None)
                logger.debug(f"{method} Response: {_truncate(result)}")
                return result

        except APIException:
            raise
        except aiohttp.ClientError as e:
            logger.error(f"HTTP client error for {method} {url}: {e}")
            raise APIException(f"Network error: {e}")
        except Exception as e:
            logger.error(f"Unexpected error in {method} {url}: {e}")
            raise APIException(f"{method} failed: {e}")

    async def select(
        self,
        table: str,
        params: Params = None,
        columns: str = "*",
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Select rows from a table.

        Args:
            table: Table name
            params: PostgREST filter/order/limit tuples
            columns: Select expression, may embed related tables
            timeout: Request timeout override

        Returns:
            List of rows (empty when nothing matches)
        """
        query = [('select', columns)] + list(params or [])
        url = self._add_params(self._build_url(table), query)
        result = await self._request('GET', url, timeout=timeout)
        return result or []

    async def select_one(
        self,
        table: str,
        params: Params = None,
        columns: str = "*",
        timeout: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Select the first matching row or None."""
        query = list(params or [])
        if not any(key == 'limit' for key, _ in query):
            query.append(('limit', 1))
        rows = await self.select(table, query, columns=columns, timeout=timeout)
        return rows[0] if rows else None

    async def insert(
        self,
        table: str,
        data: Payload,
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Insert one row or a batch of rows in a single request.

        Returns:
            Inserted rows as stored
        """
        url = self._build_url(table)
        result = await self._request('POST', url, data=data, prefer='return=representation', timeout=timeout)
        return result or []

    async def upsert(
        self,
        table: str,
        data: Payload,
        on_conflict: Optional[str] = None,
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Insert or merge rows keyed by the given unique column(s)."""
        url = self._build_url(table)
        if on_conflict:
            url = self._add_params(url, [('on_conflict', on_conflict)])
        result = await self._request(
            'POST', url, data=data,
            prefer='resolution=merge-duplicates,return=representation',
            timeout=timeout
        )
        return result or []

    async def update(
        self,
        table: str,
        data: Dict[str, Any],
        params: Params,
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Update rows matching the filters.

        Returns:
            Updated rows (empty when no row matched the filters)
        """
        if not params:
            raise APIException("Refusing to update without filters")
        url = self._add_params(self._build_url(table), params)
        result = await self._request('PATCH', url, data=data, prefer='return=representation', timeout=timeout)
        return result or []

    async def delete(
        self,
        table: str,
        params: Params,
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Delete rows matching the filters.

        Returns:
            Deleted rows
        """
        if not params:
            raise APIException("Refusing to delete without filters")
        url = self._add_params(self._build_url(table), params)
        result = await self._request('DELETE', url, prefer='return=representation', timeout=timeout)
        return result or []

    async def rpc(
        self,
        function: str,
        args: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None
    ) -> Any:
        """
        Call a store-side function.

        Returns:
            Whatever the function returns (None for void functions)
        """
        url = self._build_url(function, rpc=True)
        return await self._request('POST', url, data=args or {}, timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP session and clean up resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.close()


def in_list(values) -> str:
    """Format an `in.(...)` PostgREST filter value."""
    return f"in.({','.join(str(v) for v in values)})"


@asynccontextmanager
async def get_api_client() -> APIClient:
    """
    Get API client as async context manager.

    Usage:
        async with get_api_client() as client:
            rows = await client.select('teams', [('order', 'name.asc')])
    """
    client = APIClient()
    try:
        yield client
    finally:
        await client.close()


# Global API client instance for reuse
_global_client: Optional[APIClient] = None


async def get_global_client() -> APIClient:
    """
    Get global API client instance with automatic session management.

    Returns:
        Shared APIClient instance
    """
    global _global_client
    if _global_client is None:
        _global_client = APIClient()

    await _global_client._ensure_session()
    return _global_client


async def cleanup_global_client() -> None:
    """Clean up global API client. Call during bot shutdown."""
    global _global_client
    if _global_client:
        await _global_client.close()
        _global_client = None
