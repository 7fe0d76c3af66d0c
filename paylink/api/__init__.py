"""
HTTP API module.

aiohttp application exposing the payment notification endpoint.
"""

from .app import create_app, header_session_resolver
from .health import HealthAPI
from .notifications import PaymentNotificationAPI


__all__ = [
    "HealthAPI",
    "PaymentNotificationAPI",
    "create_app",
    "header_session_resolver",
]
