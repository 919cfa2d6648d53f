"""Webhook handler module."""

from .webhook_handler import Notification, WebhookHandler, WebhookResult

__all__ = ["Notification", "WebhookHandler", "WebhookResult"]
