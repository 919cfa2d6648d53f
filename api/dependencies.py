"""
FastAPI dependencies backed by objects built in the app lifespan.
"""

from fastapi import Request

from config import Settings
from handlers.webhook_handler import WebhookHandler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_webhook_handler(request: Request) -> WebhookHandler:
    return request.app.state.webhook_handler
