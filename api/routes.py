"""
REST API route definitions.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from handlers.webhook_handler import Notification, WebhookHandler, WebhookResult
from utils.logger import get_logger
from .dependencies import get_webhook_handler
from .security import verify_hookdeck_signature

logger = get_logger(__name__)

SERVICE_NAME = "tweet-sniper"
SERVICE_VERSION = "1.0.0"

# Create router
router = APIRouter()


# Request models for the tweet-catcher payload
class WebhookTask(BaseModel):
    """Tweet-catcher task that fired."""
    user: Optional[str] = None


class WebhookData(BaseModel):
    """Tweet content. ``text`` is tweet-catcher's OCR of the tweet image."""
    text: Optional[str] = None
    full_text: Optional[str] = None
    image: Optional[str] = None


class WebhookPayload(BaseModel):
    """Request model for the webhook endpoint."""
    task: Optional[WebhookTask] = None
    data: Optional[WebhookData] = None

    def to_notification(self) -> Notification:
        data = self.data or WebhookData()
        return Notification(
            text=data.text,
            full_text=data.full_text,
            image=data.image,
            user=self.task.user if self.task else None,
        )


class ErrorResponse(BaseModel):
    """Response model for failed webhook processing."""
    status: str = "error"
    message: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = "ok"
    service: str = SERVICE_NAME
    version: str = SERVICE_VERSION


# Routes
@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns service status and version.
    """
    return HealthResponse()


@router.post(
    "/webhooks",
    response_model=WebhookResult,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
    dependencies=[Depends(verify_hookdeck_signature)],
    tags=["Webhooks"],
)
async def receive_webhook(
    payload: WebhookPayload,
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    """
    Receive a tweet-catcher notification relayed by Hookdeck.

    Finds a token address in the tweet text or image and buys it.
    """
    notification = payload.to_notification()
    logger.info(
        f"Webhook received: user={notification.user} "
        f"image={'yes' if notification.image else 'no'}"
    )

    try:
        return await handler.process(notification)
    except Exception as e:
        logger.error(f"Error processing webhook: {e}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message="Error processing webhook", error=str(e)).model_dump(),
        )
