"""
Webhook processing pipeline.
Orchestrates normalization, CA detection, validation, token resolution and
the buy.
"""

from typing import AbstractSet, List, Optional

from pydantic import BaseModel

from processors.ca_detector import CADetector
from processors.text_normalizer import TextNormalizer
from services.image_ocr import ImageTextExtractor
from services.token_resolver import NoResolvableTokenError, TokenResolver
from services.trade_dispatcher import TradeDispatcher
from utils.logger import get_logger

logger = get_logger(__name__)

PROCESSED_MESSAGE = "Successfully processed webhook for Solana addresses"
NO_VALID_TOKEN_MESSAGE = "No valid token addresses found"


class Notification(BaseModel):
    """Fields of a tweet-catcher notification the pipeline reads."""
    text: Optional[str] = None
    full_text: Optional[str] = None
    image: Optional[str] = None
    user: Optional[str] = None

    @property
    def source(self) -> str:
        return "text and image" if self.image else "text only"


class WebhookResult(BaseModel):
    """Outcome reported back to the webhook caller."""
    status: str = "success"
    message: str
    source: Optional[str] = None
    token_address: Optional[str] = None
    signature: Optional[str] = None


class WebhookHandler:
    """
    Handles the complete notification pipeline.

    Flow:
    1. Normalize text fields (and OCR text of the image, if any)
    2. Scan for base58 candidates
    3. Keep valid, non-blocked addresses
    4. Race mint lookups, first token wins
    5. Buy it
    """

    def __init__(
        self,
        resolver: TokenResolver,
        dispatcher: TradeDispatcher,
        block_list: AbstractSet[str],
        image_extractor: Optional[ImageTextExtractor] = None,
    ):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.block_list = block_list
        self.image_extractor = image_extractor

    async def collect_text(self, notification: Notification) -> str:
        """Build the normalized scan text. Image failures are logged and skipped."""
        combined = TextNormalizer.combine(notification.full_text, notification.text)

        if notification.image and self.image_extractor:
            try:
                image_text = await self.image_extractor.extract_from_url(notification.image)
                combined = TextNormalizer.append(combined, image_text)
                logger.info(f"Normalized text from image: {TextNormalizer.normalize(image_text)!r}")
            except Exception as e:
                logger.error(f"Error processing image: {e}")

        logger.info(f"Normalized combined text: {combined!r}")
        return combined

    async def process(self, notification: Notification) -> WebhookResult:
        """
        Process one notification.

        Args:
            notification: Parsed webhook payload

        Returns:
            WebhookResult describing what happened
        """
        combined = await self.collect_text(notification)

        candidates: List[str] = CADetector.scan(combined)
        logger.info(f"Reg exp matches: {candidates}")

        if not candidates:
            logger.info("No potential Solana addresses found in text or image")
            return WebhookResult(message=PROCESSED_MESSAGE, source=notification.source)

        valid_addresses = CADetector.filter_valid(candidates, self.block_list)
        logger.info(f"Valid addresses: {valid_addresses}")

        if not valid_addresses:
            return WebhookResult(message=NO_VALID_TOKEN_MESSAGE)

        try:
            token = await self.resolver.resolve_first(valid_addresses)
        except NoResolvableTokenError as e:
            logger.info(f"No token resolved: {e}")
            return WebhookResult(message=NO_VALID_TOKEN_MESSAGE)

        logger.info(f"Resolved token: {token.address} (decimals={token.decimals})")

        signature = await self.dispatcher.buy(token, notification.user)

        return WebhookResult(
            message=PROCESSED_MESSAGE,
            source=notification.source,
            token_address=token.address,
            signature=signature,
        )
