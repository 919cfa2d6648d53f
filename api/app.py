"""
FastAPI application factory.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed

from config import Settings, settings as default_settings
from handlers.webhook_handler import WebhookHandler
from services.image_ocr import ImageTextExtractor
from services.swap_client import SwapClient
from services.token_resolver import TokenResolver
from services.trade_dispatcher import TradeDispatcher, load_keypair
from utils.logger import get_logger
from .routes import router, SERVICE_VERSION

logger = get_logger(__name__)


def build_webhook_handler(settings: Settings, client: httpx.AsyncClient, rpc: AsyncClient) -> WebhookHandler:
    """
    Wire the pipeline collaborators around the shared HTTP and RPC clients.

    Args:
        settings: Application settings
        client: Shared HTTP client for the swap APIs and image downloads
        rpc: Solana RPC client

    Returns:
        Ready-to-use WebhookHandler
    """
    keypair = load_keypair(settings.private_key)
    if keypair is None:
        logger.warning("No PRIVATE_KEY set! Buys will fail until a wallet is configured.")

    wallet = settings.user_public_key or (str(keypair.pubkey()) if keypair else "")

    swap_client = SwapClient(
        client,
        wallet=wallet,
        route=settings.swap_route,
        pump_swap_url=settings.pump_swap_url,
        jupiter_quote_url=settings.jupiter_quote_url,
        jupiter_swap_url=settings.jupiter_swap_url,
        usdc_mint=settings.usdc_mint,
        slippage_bps=settings.slippage_bps,
    )
    dispatcher = TradeDispatcher(
        rpc,
        swap_client,
        keypair,
        default_policy=settings.default_trade_policy,
        policies=settings.trade_policies,
    )
    image_extractor = ImageTextExtractor(client, lang=settings.ocr_language) if settings.ocr_enabled else None

    return WebhookHandler(
        resolver=TokenResolver(rpc),
        dispatcher=dispatcher,
        block_list=settings.block_list,
        image_extractor=image_extractor,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Owns the HTTP and RPC clients used by every collaborator.
    """
    # Startup
    logger.info("Starting API server...")
    settings: Settings = app.state.settings

    if not settings.signing_configured:
        logger.warning("No Hookdeck Signing Secret set!")

    client = httpx.AsyncClient(timeout=settings.http_timeout)
    rpc = AsyncClient(settings.rpc_url, commitment=Confirmed, timeout=settings.http_timeout)
    app.state.http_client = client
    app.state.rpc_client = rpc
    app.state.webhook_handler = build_webhook_handler(settings, client, rpc)

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await rpc.close()
    await client.aclose()


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for errors raised outside the webhook pipeline."""
    logger.error(f"Router Error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal server error", "error": str(exc)},
    )


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use instead of the environment-loaded ones

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Tweet Sniper",
        description="Buys Solana tokens mentioned in tweet-catcher notifications",
        version=SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings or default_settings

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routes
    app.include_router(router)

    logger.info("FastAPI application created")

    return app


# Application instance for direct uvicorn usage
app = create_app()
