"""
OCR for images attached to notifications, using Tesseract.
"""

import asyncio
import io

import httpx
import pytesseract
from PIL import Image, ImageOps

from utils.logger import get_logger

logger = get_logger(__name__)


def extract_text(image_bytes: bytes, lang: str = "eng") -> str:
    """
    Perform OCR on raw image bytes.

    Args:
        image_bytes: Encoded image (PNG, JPEG, ...)
        lang: Tesseract language code

    Returns:
        Extracted text
    """
    with Image.open(io.BytesIO(image_bytes)) as img:
        img = ImageOps.exif_transpose(img)  # auto-rotate if needed
        img = img.convert("L")              # grayscale
        return pytesseract.image_to_string(img, lang=lang)


class ImageTextExtractor:
    """Downloads an image and runs OCR on it."""

    def __init__(self, client: httpx.AsyncClient, lang: str = "eng"):
        self._client = client
        self.lang = lang

    async def download(self, url: str) -> bytes:
        response = await self._client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content

    async def extract_from_url(self, url: str) -> str:
        """
        Download the image at ``url`` and return its text.

        Tesseract runs in a worker thread so the event loop is not blocked.
        """
        logger.info(f"Processing image: {url}")
        image_bytes = await self.download(url)
        return await asyncio.to_thread(extract_text, image_bytes, self.lang)
