"""API-level tests for the webhook endpoint."""

from __future__ import annotations

import json
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_webhook_handler
from api.security import compute_signature, is_valid_signature
from config import Settings
from conftest import FakeRPCNode, mint_account, new_address, rpc_client
from handlers.webhook_handler import Notification, WebhookHandler
from services.token_resolver import TokenInfo, TokenResolver

BLOCKED = "4Cnk9EPnW5ixfLZatCPJjDB1PUtcRpVVgTQukm9epump"
SECRET = "whsec_test"


class FakeDispatcher:
    def __init__(self, error: Optional[Exception] = None):
        self.bought: List[Tuple[TokenInfo, Optional[str]]] = []
        self.error = error

    async def buy(self, token: TokenInfo, user: Optional[str]) -> str:
        if self.error:
            raise self.error
        self.bought.append((token, user))
        return "5sig"


class FakeImageExtractor:
    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.urls: List[str] = []

    async def extract_from_url(self, url: str) -> str:
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.text


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _client(handler: WebhookHandler, settings: Optional[Settings] = None) -> TestClient:
    app = create_app(settings or _settings())
    app.dependency_overrides[get_webhook_handler] = lambda: handler
    return TestClient(app)


def _handler(
    accounts: Optional[Dict[str, dict]] = None,
    dispatcher: Optional[FakeDispatcher] = None,
    extractor: Optional[FakeImageExtractor] = None,
) -> WebhookHandler:
    return WebhookHandler(
        resolver=TokenResolver(rpc_client(FakeRPCNode(accounts))),
        dispatcher=dispatcher or FakeDispatcher(),
        block_list=_settings().block_list,
        image_extractor=extractor,
    )


# ---------------------------------------------------------------
# Pipeline through the API
# ---------------------------------------------------------------


def test_health():
    response = _client(_handler()).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_text_only_token_is_bought():
    mint = new_address()
    dispatcher = FakeDispatcher()
    client = _client(_handler({mint: mint_account()}, dispatcher))

    response = client.post("/webhooks", json={
        "task": {"user": "alice"},
        "data": {"full_text": f"check out THIS token {mint}"},
    })

    assert response.status_code == 200
    assert response.json() == {
        "status": "success",
        "message": "Successfully processed webhook for Solana addresses",
        "source": "text only",
        "token_address": mint,
        "signature": "5sig",
    }
    token, user = dispatcher.bought[0]
    assert token.address == mint
    assert user == "alice"


def test_blocked_address_in_image_is_not_bought():
    dispatcher = FakeDispatcher()
    extractor = FakeImageExtractor(text=f"CA:\n{BLOCKED}\n")
    client = _client(_handler({BLOCKED: mint_account()}, dispatcher, extractor))

    response = client.post("/webhooks", json={
        "data": {"full_text": "new meme just dropped", "image": "https://img.test/a.png"},
    })

    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "No valid token addresses found"}
    assert extractor.urls == ["https://img.test/a.png"]
    assert dispatcher.bought == []


def test_no_base58_text_is_benign():
    response = _client(_handler()).post("/webhooks", json={"data": {"full_text": "gm, nothing here"}})

    assert response.status_code == 200
    assert response.json() == {
        "status": "success",
        "message": "Successfully processed webhook for Solana addresses",
        "source": "text only",
    }


def test_empty_payload_is_benign():
    response = _client(_handler()).post("/webhooks", json={})

    assert response.status_code == 200
    assert response.json()["source"] == "text only"


def test_unresolvable_addresses_are_benign():
    dispatcher = FakeDispatcher()
    client = _client(_handler({}, dispatcher))

    response = client.post("/webhooks", json={"data": {"full_text": new_address()}})

    assert response.json() == {"status": "success", "message": "No valid token addresses found"}
    assert dispatcher.bought == []


def test_image_failure_falls_back_to_text():
    mint = new_address()
    extractor = FakeImageExtractor(error=OSError("cannot identify image file"))
    client = _client(_handler({mint: mint_account()}, extractor=extractor))

    response = client.post("/webhooks", json={"data": {"text": mint, "image": "https://img.test/broken.png"}})

    body = response.json()
    assert body["token_address"] == mint
    assert body["source"] == "text and image"


def test_address_only_in_image_is_found():
    mint = new_address()
    extractor = FakeImageExtractor(text=f"contract address:\n{mint}\n")
    client = _client(_handler({mint: mint_account()}, extractor=extractor))

    response = client.post("/webhooks", json={"data": {"image": "https://img.test/ca.png"}})

    assert response.json()["token_address"] == mint


def test_downstream_error_is_reported():
    mint = new_address()
    dispatcher = FakeDispatcher(error=RuntimeError("swap API unavailable"))
    client = _client(_handler({mint: mint_account()}, dispatcher))

    response = client.post("/webhooks", json={"data": {"full_text": mint}})

    assert response.status_code == 500
    assert response.json() == {
        "status": "error",
        "message": "Error processing webhook",
        "error": "swap API unavailable",
    }


# ---------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------


def test_invalid_signature_is_rejected():
    dispatcher = FakeDispatcher()
    mint = new_address()
    client = _client(_handler({mint: mint_account()}, dispatcher), _settings(hookdeck_signing_secret=SECRET))

    response = client.post(
        "/webhooks",
        content=json.dumps({"data": {"full_text": mint}}),
        headers={"content-type": "application/json", "x-hookdeck-signature": "bm9wZQ=="},
    )

    assert response.status_code == 401
    assert dispatcher.bought == []


def test_missing_signature_is_rejected():
    client = _client(_handler(), _settings(hookdeck_signing_secret=SECRET))

    response = client.post("/webhooks", json={"data": {}})

    assert response.status_code == 401


def test_valid_signature_is_accepted():
    mint = new_address()
    client = _client(_handler({mint: mint_account()}), _settings(hookdeck_signing_secret=SECRET))
    raw = json.dumps({"data": {"full_text": mint}}).encode()

    response = client.post(
        "/webhooks",
        content=raw,
        headers={"content-type": "application/json", "x-hookdeck-signature": compute_signature(SECRET, raw)},
    )

    assert response.status_code == 200
    assert response.json()["token_address"] == mint


@pytest.mark.parametrize("header", ["x-hookdeck-signature", "x-hookdeck-signature-2"])
def test_either_signature_header_is_accepted(header):
    raw = b'{"data": {}}'
    assert is_valid_signature(SECRET, raw, {header: compute_signature(SECRET, raw)})


def test_signature_over_different_body_fails():
    signature = compute_signature(SECRET, b'{"a": 1}')
    assert not is_valid_signature(SECRET, b'{"a": 2}', {"x-hookdeck-signature": signature})


# ---------------------------------------------------------------
# Handler without HTTP
# ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_handler_skips_image_when_ocr_disabled():
    mint = new_address()
    handler = _handler({mint: mint_account()}, extractor=None)

    result = await handler.process(Notification(full_text=mint, image="https://img.test/a.png"))

    assert result.token_address == mint
    assert result.source == "text and image"


@pytest.mark.asyncio
async def test_handler_picks_resolvable_address_among_noise():
    noise, mint = new_address(), new_address()
    handler = _handler({mint: mint_account(), noise: mint_account(decimals=0)})

    result = await handler.process(Notification(full_text=f"{noise} vs {mint}"))

    assert result.token_address == mint


@pytest.mark.asyncio
async def test_handler_homoglyph_address():
    mint = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
    disguised = mint.replace("A", "А").replace("e", "е")
    handler = _handler({mint: mint_account()})

    result = await handler.process(Notification(full_text=f"ape {disguised}"))

    assert result.token_address == mint
