"""Ocean REST API client (upstream statistics source)."""

import logging
from typing import Any

import requests

from state_relayer.constants import DEFAULT_OCEAN_NETWORK, DEFAULT_OCEAN_URL, DEFAULT_TIMEOUT, OCEAN_API_VERSION
from state_relayer.errors import MalformedPayloadError, UpstreamFetchError
from state_relayer.models import DexPrices, PoolPairInfo, StatsData
from state_relayer.parsing import parse_dex_prices, parse_pool_pairs, parse_stats

logger = logging.getLogger(__name__)


def build_api_url(base_url: str, network: str, path: str) -> str:
    """Build an Ocean endpoint URL from base URL, network and resource path."""
    base = base_url.rstrip("/")
    # Accept:
    # - https://ocean.defichain.com
    # - https://ocean.defichain.com/v0
    # - https://ocean.defichain.com/v0/mainnet
    if base.endswith(f"/{OCEAN_API_VERSION}/{network}"):
        return f"{base}/{path.lstrip('/')}"
    if base.endswith(f"/{OCEAN_API_VERSION}"):
        return f"{base}/{network}/{path.lstrip('/')}"
    return f"{base}/{OCEAN_API_VERSION}/{network}/{path.lstrip('/')}"


class OceanClient:
    """Fetches stats, pool pairs and denomination prices from an Ocean endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OCEAN_URL,
        network: str = DEFAULT_OCEAN_NETWORK,
        *,
        timeout_s: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.network = network
        self.timeout_s = timeout_s
        # None: each request goes through requests.get, so no Session is shared between fetch threads.
        self.session = session

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = build_api_url(self.base_url, self.network, path)
        logger.debug("GET %s params=%s", url, params)
        try:
            http = self.session or requests
            resp = http.get(url, params=params, timeout=self.timeout_s)
            resp.raise_for_status()
        except requests.HTTPError as ex:
            status = ex.response.status_code if ex.response is not None else None
            raise UpstreamFetchError(f"HTTP {status} from {url}", url=url, status_code=status) from ex
        except requests.RequestException as ex:
            raise UpstreamFetchError(f"Request to {url} failed: {ex}", url=url) from ex
        try:
            return resp.json()
        except ValueError as ex:
            raise MalformedPayloadError(f"Response from {url} is not JSON", url=url) from ex

    def get_stats(self) -> StatsData:
        return parse_stats(self._get_json("stats"))

    def list_pool_pairs(self, limit: int) -> list[PoolPairInfo]:
        """List pool pairs; only the first page of `limit` entries is returned."""
        return parse_pool_pairs(self._get_json("poolpairs", {"size": limit}))

    def list_dex_prices(self, denomination: str) -> DexPrices:
        payload = self._get_json("poolpairs/dexprices", {"denomination": denomination})
        return parse_dex_prices(payload, denomination=denomination)
