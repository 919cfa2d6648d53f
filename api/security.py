"""
Hookdeck webhook signature verification.

Hookdeck signs the raw request body with HMAC-SHA256 and sends the base64
digest in ``x-hookdeck-signature``. While a secret is being rotated the
digest made with the new secret arrives in ``x-hookdeck-signature-2``.
"""

import base64
import hashlib
import hmac
from typing import Mapping

from fastapi import Depends, HTTPException, Request, status

from config import Settings
from utils.logger import get_logger
from .dependencies import get_settings

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("x-hookdeck-signature", "x-hookdeck-signature-2")


def compute_signature(secret: str, raw_body: bytes) -> str:
    digest = hmac.new(secret.encode(), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def is_valid_signature(secret: str, raw_body: bytes, headers: Mapping[str, str]) -> bool:
    """
    Check the body against every Hookdeck signature header present.

    Args:
        secret: Hookdeck signing secret
        raw_body: Request body exactly as received
        headers: Request headers (case-insensitive mapping)

    Returns:
        True if any header carries the expected signature
    """
    expected = compute_signature(secret, raw_body)
    return any(
        hmac.compare_digest(expected, headers[name])
        for name in SIGNATURE_HEADERS
        if headers.get(name)
    )


async def verify_hookdeck_signature(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """FastAPI dependency that rejects requests with a bad signature."""
    if not settings.signing_configured:
        logger.warning(
            "No Hookdeck Signing Secret: Skipping webhook verification. Do not do this in production!"
        )
        return

    raw_body = await request.body()
    if not is_valid_signature(settings.hookdeck_signing_secret, raw_body, request.headers):
        logger.info("Signature is invalid, rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    logger.info("Signature is valid, accepted")
