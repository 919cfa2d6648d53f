"""
Token metadata resolver.

Looks up mint accounts for validated addresses and races the lookups so the
first address that turns out to be a real token wins.
"""

import asyncio
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel
from solana.rpc.async_api import AsyncClient
from solders.pubkey import Pubkey

from utils.logger import get_logger

logger = get_logger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class NoResolvableTokenError(Exception):
    """None of the candidate addresses resolved to a token mint."""


class TokenInfo(BaseModel):
    """Mint account attributes of a resolved token."""
    address: str
    decimals: int
    supply: str
    is_initialized: bool


class TokenResolver:
    """
    Resolves validated addresses to token mints.

    Lookups that lose a race keep running in the background; their results
    are dropped and their errors are swallowed when they finish.
    """

    def __init__(self, rpc: AsyncClient):
        self.rpc = rpc
        self._detached: Set[asyncio.Task] = set()

    async def fetch_token_info(self, address: str) -> Optional[TokenInfo]:
        """
        Fetch mint info for a single address.

        Args:
            address: Validated Solana address

        Returns:
            TokenInfo, or None if the address is not an initialized mint
            with non-zero decimals
        """
        try:
            response = await self.rpc.get_account_info_json_parsed(Pubkey.from_string(address))
        except Exception as e:
            logger.warning(f"Error getting token info for {address[:8]}...: {e}")
            return None

        account = response.value
        if account is None:
            logger.debug(f"No account found for {address[:8]}...")
            return None

        if str(account.owner) != TOKEN_PROGRAM_ID:
            logger.debug(f"{address[:8]}... is not owned by the token program")
            return None

        # Raw bytes come back when the node cannot parse the account
        parsed = getattr(account.data, "parsed", None)
        if not isinstance(parsed, dict) or parsed.get("type") != "mint":
            logger.debug(f"{address[:8]}... is not a mint account")
            return None

        info = parsed.get("info", {})
        if not info.get("isInitialized"):
            logger.debug(f"{address[:8]}... is an uninitialized mint")
            return None

        decimals = info.get("decimals") or 0
        if not decimals:
            # Zero decimals: not a tradeable token
            return None

        token = TokenInfo(
            address=address,
            decimals=decimals,
            supply=str(info.get("supply", "0")),
            is_initialized=True,
        )
        logger.info(f"Token info: {address} decimals={token.decimals} supply={token.supply}")
        return token

    async def resolve_first(self, addresses: Iterable[str]) -> TokenInfo:
        """
        Look up every unique address concurrently and return the first
        token to resolve.

        Args:
            addresses: Validated addresses in scan order

        Returns:
            The winning TokenInfo

        Raises:
            NoResolvableTokenError: If every lookup fails or returns nothing
        """
        unique = list(dict.fromkeys(addresses))
        if not unique:
            raise NoResolvableTokenError("No addresses to resolve")

        tasks: List[asyncio.Task] = []
        for address in unique:
            task = asyncio.create_task(self.fetch_token_info(address), name=f"token-info-{address[:8]}")
            self._detached.add(task)
            task.add_done_callback(self._reap)
            tasks.append(task)

        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)

            # Ties go to the address seen first in the text
            for task in tasks:
                if task not in done or task.cancelled() or task.exception() is not None:
                    continue
                token = task.result()
                if token:
                    if pending:
                        logger.debug(f"Abandoning {len(pending)} slower lookup(s)")
                    return token

        raise NoResolvableTokenError(f"None of {len(unique)} address(es) resolved to a token")

    def _reap(self, task: asyncio.Task) -> None:
        """Drop a finished lookup and mark its exception as retrieved."""
        self._detached.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Lookup {task.get_name()} failed: {task.exception()}")
