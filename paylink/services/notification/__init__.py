"""
Notification module.

Reconciliation of submitted payments and delivery of payment notifications.
"""

from .client import PaymentNotificationClient, PaymentNotifier
from .dispatcher import NotificationDispatcher
from .reconciler import PaymentReconciler


__all__ = [
    "NotificationDispatcher",
    "PaymentNotificationClient",
    "PaymentNotifier",
    "PaymentReconciler",
]
