"""
Swap API client.
Requests unsigned buy transactions from the pump-fun swap endpoint or the
Jupiter quote/swap API.
"""

import base64
from typing import Any, Dict, Optional

import httpx
from solders.transaction import VersionedTransaction

from services.trade_policy import TradePolicy
from utils.logger import get_logger

logger = get_logger(__name__)


class SwapError(Exception):
    """Raised when a swap API cannot produce a usable transaction."""


class SwapClient:
    """
    Builds buy transactions for a wallet.

    Routes:
    - pump: pump-fun bonding curve swap, paid in SOL
    - jupiter: Jupiter aggregator swap, paid in USDC
    - auto: pump for mints containing "pump", Jupiter for the rest
    """

    # Jupiter's pump-fun endpoint has no "veryHigh" level
    PUMP_PRIORITY_LEVELS = {"veryHigh": "extreme"}

    def __init__(
        self,
        client: httpx.AsyncClient,
        wallet: str,
        route: str = "auto",
        pump_swap_url: str = "https://public.jupiterapi.com/pump-fun/swap",
        jupiter_quote_url: str = "https://quote-api.jup.ag/v6/quote",
        jupiter_swap_url: str = "https://quote-api.jup.ag/v6/swap",
        usdc_mint: str = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        slippage_bps: int = 5000,
    ):
        self._client = client
        self.wallet = wallet
        self.route = route
        self.pump_swap_url = pump_swap_url
        self.jupiter_quote_url = jupiter_quote_url
        self.jupiter_swap_url = jupiter_swap_url
        self.usdc_mint = usdc_mint
        self.slippage_bps = slippage_bps

    def route_for(self, address: str) -> str:
        """Pick the swap route for a mint."""
        if self.route != "auto":
            return self.route
        return "pump" if "pump" in address else "jupiter"

    async def build_buy_transaction(self, address: str, policy: TradePolicy) -> VersionedTransaction:
        """
        Request an unsigned buy transaction for the mint.

        Args:
            address: Token mint to buy
            policy: Trade size and fee settings

        Returns:
            Unsigned VersionedTransaction
        """
        amount = policy.amount_for(address)
        route = self.route_for(address)
        logger.info(f"Building {route} buy for {address}: amount={amount} priority={policy.priority_level}")

        if route == "pump":
            return await self.get_pump_tx(address, amount, policy.priority_level)
        return await self.get_jupiter_tx(address, amount, policy.max_lamports, policy.priority_level)

    async def get_pump_tx(self, address: str, amount: int, priority_level: str) -> VersionedTransaction:
        """Request a pump-fun buy transaction."""
        if not address:
            raise SwapError("Address is required")

        body = {
            "wallet": self.wallet,
            "type": "BUY",
            "mint": address,
            "inAmount": str(amount),
            "priorityFeeLevel": self.PUMP_PRIORITY_LEVELS.get(priority_level, priority_level),
            "slippageBps": str(self.slippage_bps),
        }
        data = await self._post_json(self.pump_swap_url, body)
        return self._deserialize(data, "tx")

    async def get_quote(self, input_mint: str, output_mint: str, amount: int) -> Dict[str, Any]:
        """Fetch a Jupiter quote."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": self.slippage_bps,
        }
        try:
            response = await self._client.get(self.jupiter_quote_url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SwapError(f"Jupiter quote failed: {e}") from e

        quote = response.json()
        if not quote or quote.get("error"):
            raise SwapError(f"Jupiter returned no quote: {quote.get('error') if quote else 'empty'}")
        return quote

    async def get_jupiter_tx(
        self,
        address: str,
        amount: int,
        max_lamports: int,
        priority_level: str,
    ) -> VersionedTransaction:
        """Quote USDC -> mint on Jupiter and request the swap transaction."""
        if not address:
            raise SwapError("Address is required")

        quote = await self.get_quote(self.usdc_mint, address, amount)
        body = {
            "quoteResponse": quote,
            "userPublicKey": self.wallet,
            "prioritizationFeeLamports": {
                "priorityLevelWithMaxLamports": {
                    "maxLamports": max_lamports,
                    "priorityLevel": priority_level,
                },
            },
        }
        logger.debug(f"Jupiter swap request: {body}")
        data = await self._post_json(self.jupiter_swap_url, body)
        return self._deserialize(data, "swapTransaction")

    async def _post_json(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SwapError(f"Swap API HTTP error: {e.response.status_code} {e.response.text}") from e
        except httpx.RequestError as e:
            raise SwapError(f"Swap API request error: {e}") from e
        return response.json()

    @staticmethod
    def _deserialize(data: Optional[Dict[str, Any]], field: str) -> VersionedTransaction:
        encoded = data.get(field) if data else None
        if not encoded:
            raise SwapError(f"Swap API response has no '{field}' field")
        try:
            return VersionedTransaction.from_bytes(base64.b64decode(encoded))
        except Exception as e:
            raise SwapError(f"Could not deserialize swap transaction: {e}") from e
