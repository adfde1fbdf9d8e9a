"""
Beacon Node API Client

Single responsibility: fetch validator balances from a beacon node REST API.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Any
import aiohttp

from ..config import MAX_IDS_PER_REQUEST
from ..exceptions import FetchError

logger = logging.getLogger(__name__)

BALANCES_PATH = "/eth/v1/beacon/states/head/validator_balances"


def chunk_indices(indices: Iterable[int], size: int = MAX_IDS_PER_REQUEST) -> List[List[int]]:
    """
    Split validator indices into ordered chunks of at most ``size``.

    Duplicates are dropped, keeping the first occurrence, so no index is
    requested twice across chunk boundaries.
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    unique = list(dict.fromkeys(indices))
    return [unique[i:i + size] for i in range(0, len(unique), size)]


class BeaconClient:
    """
    Async client for the beacon node validator balances endpoint.

    Handles:
    - Batching ids to respect the server limit per request
    - Merging batch responses into one mapping
    - Turning any transport or protocol failure into FetchError

    No retries: one failed batch fails the whole call.
    """

    def __init__(
        self,
        api_url: str,
        batch_size: int = MAX_IDS_PER_REQUEST,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.url = api_url.rstrip("/") + BALANCES_PATH
        self.batch_size = batch_size
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Create session if needed."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def close(self):
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def _request(self, ids: List[int], timeout: Optional[float] = None) -> Any:
        """
        GET one batch of balances.

        Args:
            ids: Validator indices for this batch (at most batch_size)
            timeout: Optional total timeout in seconds

        Returns:
            Decoded JSON body

        Raises:
            FetchError: On network error, non-200 status or undecodable body
        """
        await self._ensure_session()

        url = f"{self.url}?id={','.join(str(i) for i in ids)}"
        logger.debug(f"batch url: {url}")

        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with self._session.get(url, **kwargs) as response:
                if response.status != 200:
                    body = await response.text()
                    raise FetchError(f"beacon node returned HTTP {response.status}: {body[:200]}")
                return await response.json(content_type=None)
        except FetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise FetchError(f"balance request failed: {e!r}", cause=e) from e

    # -------------------------------------------------------------------------
    # Public Methods
    # -------------------------------------------------------------------------

    async def get_balances(
        self,
        indices: Iterable[int],
        timeout: Optional[float] = None,
    ) -> Dict[str, str]:
        """
        Get current balances for a set of validators.

        Args:
            indices: Validator indices
            timeout: Optional per-request timeout in seconds

        Returns:
            Dict mapping decimal-string index to decimal-string balance.
            Indices the node did not report are absent.

        Raises:
            FetchError: If any batch fails; no partial mapping is returned
        """
        balances: Dict[str, str] = {}

        for batch in chunk_indices(indices, self.batch_size):
            response = await self._request(batch, timeout=timeout)
            balances.update(self._parse_balances(response))

        return balances

    # -------------------------------------------------------------------------
    # Private Helpers
    # -------------------------------------------------------------------------

    def _parse_balances(self, response: Any) -> Dict[str, str]:
        """Parse a validator_balances response envelope."""
        if not isinstance(response, dict) or not isinstance(response.get("data"), list):
            raise FetchError(f"unexpected balances response: {str(response)[:200]}")

        balances = {}
        for item in response["data"]:
            if not isinstance(item, dict) or "index" not in item or "balance" not in item:
                raise FetchError(f"malformed balance entry: {str(item)[:200]}")
            balances[str(item["index"])] = str(item["balance"])

        return balances
