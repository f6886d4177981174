"""Jupiter DEX aggregator integration for Solana.

Uses the Jupiter quote and swap endpoints. The swap endpoint returns a
ready-to-sign serialized transaction which is passed on untouched.
API docs: https://station.jup.ag/docs/apis/swap-api
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
from solders.pubkey import Pubkey

from passkeyflow.errors import AggregatorError, RateLimitedError
from passkeyflow.routing.base import AggregatorProvider, SwapQuote

logger = logging.getLogger(__name__)

JUPITER_API_V6 = "https://quote-api.jup.ag/v6"

# Error codes Jupiter uses when a pair simply has no route
NO_ROUTE_ERROR_CODES = (
    "COULD_NOT_FIND_ANY_ROUTE",
    "NO_ROUTES_FOUND",
    "TOKEN_NOT_TRADABLE",
    "ROUTE_PLAN_DOES_NOT_CONSUME_ALL_THE_AMOUNT",
)


class JupiterAggregator(AggregatorProvider):
    """Jupiter aggregator client."""

    def __init__(
        self,
        base_url: str = JUPITER_API_V6,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Jupiter client.

        Args:
            base_url: Aggregator base URL
            api_key: Optional API key for higher rate limits
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def name(self) -> str:
        return "Jupiter"

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(
                method, f"{self.base_url}{path}", headers=self._get_headers(), **kwargs
            )
        except httpx.HTTPError as e:
            raise AggregatorError(f"Jupiter {path} failed: {type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(f"429 Too Many Requests from Jupiter ({path})")
        return response

    @staticmethod
    def _first_route(data: dict) -> Optional[dict]:
        """Pick the route out of either response shape.

        v6 returns the route itself (with a routePlan); older shapes wrap a
        list under "routes" or "data".
        """
        for key in ("routes", "data"):
            routes = data.get(key)
            if isinstance(routes, list):
                return routes[0] if routes else None
        if data.get("routePlan"):
            return data
        return None

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        direct_only: bool = True,
    ) -> Optional[SwapQuote]:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
            "onlyDirectRoutes": "true" if direct_only else "false",
        }
        logger.debug(f"Requesting Jupiter quote: {params}")
        response = await self._request("GET", "/quote", params=params)

        if response.status_code != 200:
            body = _safe_json(response)
            error_code = str(body.get("errorCode", "")) if isinstance(body, dict) else ""
            if error_code in NO_ROUTE_ERROR_CODES:
                logger.info(f"Jupiter has no route for {input_mint} -> {output_mint}: {error_code}")
                return None
            raise AggregatorError(
                f"Jupiter quote error: {response.status_code} - {response.text[:200]}"
            )

        data = _safe_json(response)
        if not isinstance(data, dict):
            logger.warning(f"Jupiter quote body is not a JSON object: {response.text[:200]}")
            raise AggregatorError("Jupiter quote returned a malformed body")

        route = self._first_route(data)
        if route is not None and not isinstance(route, dict):
            raise AggregatorError("Jupiter quote returned a malformed route")
        if route is None:
            logger.info(f"Jupiter returned no route for {input_mint} -> {output_mint}")
            return None

        try:
            price_impact = Decimal(str(route.get("priceImpactPct", "0")))
        except InvalidOperation:
            price_impact = Decimal("0")

        try:
            labels = [
                (step.get("swapInfo") or {}).get("label", "Unknown")
                for step in route.get("routePlan", [])
            ]
            return SwapQuote(
                provider=self.name,
                input_mint=route.get("inputMint", input_mint),
                output_mint=route.get("outputMint", output_mint),
                in_amount=int(route.get("inAmount", amount)),
                out_amount=int(route.get("outAmount", 0)),
                slippage_bps=int(route.get("slippageBps", slippage_bps)),
                route=route,
                price_impact_pct=price_impact,
                route_labels=labels,
            )
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Jupiter quote could not be parsed: {e}")
            raise AggregatorError(f"Jupiter quote could not be parsed ({type(e).__name__})") from e

    async def build_swap_transaction(self, quote: SwapQuote, account: Pubkey) -> Optional[str]:
        response = await self._request(
            "POST",
            "/swap",
            json={
                "quoteResponse": quote.route,
                "userPublicKey": str(account),
                "wrapAndUnwrapSol": True,
                "dynamicComputeUnitLimit": True,
            },
        )

        if response.status_code != 200:
            logger.warning(f"Jupiter swap error: {response.status_code} - {response.text[:200]}")
            return None

        data = _safe_json(response)
        if not isinstance(data, dict):
            return None
        return data.get("swapTransaction") or data.get("transactionPayloadBase64")

    async def close(self) -> None:
        await self._client.aclose()


def _safe_json(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None
