"""Shared fixtures and fakes for the test suite."""

from __future__ import annotations

import base64
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from services.token_resolver import TOKEN_PROGRAM_ID, TokenInfo


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------


def new_address() -> str:
    """A fresh, canonically encoded Solana address."""
    return str(Keypair().pubkey())


def mint_account(
    decimals: int = 6,
    owner: str = TOKEN_PROGRAM_ID,
    supply: str = "1000000000",
    initialized: bool = True,
) -> Dict[str, Any]:
    """``getAccountInfo`` value for a parsed SPL mint."""
    return {
        "owner": owner,
        "lamports": 1461600,
        "executable": False,
        "rentEpoch": 0,
        "space": 82,
        "data": {
            "program": "spl-token",
            "space": 82,
            "parsed": {
                "type": "mint",
                "info": {
                    "decimals": decimals,
                    "supply": supply,
                    "isInitialized": initialized,
                    "mintAuthority": None,
                    "freezeAuthority": None,
                },
            },
        },
    }


def unsigned_transaction(payer: Pubkey) -> VersionedTransaction:
    """A v0 transfer with a placeholder signature, like a swap API returns."""
    ix = transfer(TransferParams(from_pubkey=payer, to_pubkey=Keypair().pubkey(), lamports=1))
    message = MessageV0.try_compile(payer, [ix], [], Hash.default())
    return VersionedTransaction.populate(message, [Signature.default()])


def encode_transaction(tx: VersionedTransaction) -> str:
    return base64.b64encode(bytes(tx)).decode()


def rpc_result(request: httpx.Request, result: Any) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


class FakeRPCNode:
    """
    In-memory Solana RPC node behind an httpx.MockTransport.

    ``accounts`` maps address -> account value (missing = null account).
    ``tx_error`` is reported as the on-chain error of every sent transaction.
    """

    def __init__(self, accounts: Optional[Dict[str, Any]] = None, tx_error: Optional[Any] = None):
        self.accounts = accounts or {}
        self.tx_error = tx_error
        self.calls: List[Dict[str, Any]] = []
        self.sent: List[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        method, params = body["method"], body["params"]

        if method == "getAccountInfo":
            return rpc_result(request, {"context": {"slot": 1}, "value": self.accounts.get(params[0])})
        if method == "getLatestBlockhash":
            return rpc_result(request, {
                "context": {"slot": 1},
                "value": {"blockhash": str(Hash.default()), "lastValidBlockHeight": 150},
            })
        if method == "sendTransaction":
            raw = base64.b64decode(params[0])
            self.sent.append(raw)
            return rpc_result(request, str(VersionedTransaction.from_bytes(raw).signatures[0]))
        if method == "getSignatureStatuses":
            status = {"Err": self.tx_error} if self.tx_error else {"Ok": None}
            return rpc_result(request, {
                "context": {"slot": 2},
                "value": [{
                    "slot": 2,
                    "confirmations": 1,
                    "status": status,
                    "err": self.tx_error,
                    "confirmationStatus": "confirmed",
                }],
            })
        if method == "getBlockHeight":
            return rpc_result(request, 100)

        return httpx.Response(200, json={
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": -32601, "message": "Method not found"},
        })

    def methods(self) -> List[str]:
        return [call["method"] for call in self.calls]


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def rpc_client(handler: Callable[[httpx.Request], httpx.Response]) -> AsyncClient:
    """A solana-py client whose HTTP session is served by ``handler``."""
    client = AsyncClient("http://rpc.test", commitment=Confirmed)
    client._provider.session = mock_client(handler)
    return client


# ---------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------


@pytest.fixture
def keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def token_info() -> TokenInfo:
    return TokenInfo(address=new_address(), decimals=6, supply="1000", is_initialized=True)
