"""
Buys a resolved token: builds the swap, signs it with the wallet keypair and
broadcasts it.
"""

from typing import Mapping, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.models import TxOpts
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from services.swap_client import SwapClient
from services.token_resolver import TokenInfo
from services.trade_policy import TradePolicy, policy_for
from utils.logger import get_logger

logger = get_logger(__name__)


class TradeDispatchError(Exception):
    """Raised when a buy cannot be attempted or fails on chain."""


def load_keypair(private_key: str) -> Optional[Keypair]:
    """
    Load the wallet keypair from a base58 secret key.

    Returns:
        Keypair, or None if no key is configured
    """
    if not private_key:
        return None
    return Keypair.from_base58_string(private_key)


class TradeDispatcher:
    """Sends one buy transaction per resolved token."""

    def __init__(
        self,
        rpc: AsyncClient,
        swap_client: SwapClient,
        keypair: Optional[Keypair],
        default_policy: TradePolicy,
        policies: Optional[Mapping[str, TradePolicy]] = None,
    ):
        self.rpc = rpc
        self.swap_client = swap_client
        self.keypair = keypair
        self.default_policy = default_policy
        self.policies = policies or {}

    async def buy(self, token: TokenInfo, user: Optional[str]) -> str:
        """
        Buy the token with the user's trade policy.

        Args:
            token: Resolved token
            user: Tweet-catcher task user, selects the trade policy

        Returns:
            Transaction signature

        Raises:
            TradeDispatchError: No wallet is configured, or the transaction
                landed with an error
        """
        if self.keypair is None:
            raise TradeDispatchError("PRIVATE_KEY is not configured, cannot sign transactions")

        policy = policy_for(user, self.policies, self.default_policy)
        logger.info(f"Buying {token.address} for user={user or 'default'}")

        unsigned = await self.swap_client.build_buy_transaction(token.address, policy)
        transaction = VersionedTransaction(unsigned.message, [self.keypair])

        latest_blockhash = (await self.rpc.get_latest_blockhash(Confirmed)).value
        logger.debug(f"Latest blockhash: {latest_blockhash.blockhash}")

        signature = (await self.rpc.send_raw_transaction(
            bytes(transaction),
            TxOpts(skip_preflight=True, max_retries=10),
        )).value
        logger.info(f"Transaction sent: {signature}")

        confirmation = await self.rpc.confirm_transaction(
            signature,
            Confirmed,
            last_valid_block_height=latest_blockhash.last_valid_block_height,
        )
        status = confirmation.value[0]
        if status is not None and status.err is not None:
            raise TradeDispatchError(f"Transaction {signature} failed: {status.err}")

        logger.info(f"Transaction confirmed: https://solscan.io/tx/{signature}")
        return str(signature)
