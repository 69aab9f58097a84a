"""
Payment confirmation hook.

Delivery (SMS, WhatsApp, email) lives outside this project. The callable
named by ``SHOP_PAYMENT_NOTIFIER`` receives a ``PaymentConfirmation`` and is
fire-and-forget: whatever it raises is logged, the payment stands.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentConfirmation:
    mobile: str
    shop_name: str
    amount: int
    receipt_no: str
    payment_date: datetime
    payment_mode: str
    owner_name: str = ''
    plan_type: str = ''
    expiry_date: Optional[datetime] = None
    category: str = ''
    address: str = ''
    agent_name: str = ''
    agent_code: str = ''
    renewal: bool = False


def log_payment_confirmation(confirmation: PaymentConfirmation) -> None:
    """Default notifier: writes the confirmation to the log."""
    logger.info(f"Payment confirmation for {confirmation.shop_name} ({confirmation.mobile}): {asdict(confirmation)}")


def get_notifier():
    return import_string(settings.SHOP_PAYMENT_NOTIFIER)


def send_payment_confirmation(confirmation: PaymentConfirmation) -> bool:
    """
    Hand the confirmation to the configured notifier.

    Returns:
        True if the notifier accepted it, False if it was skipped or failed
    """
    if not confirmation.mobile:
        logger.info(f"No mobile for {confirmation.shop_name}, skipping payment confirmation")
        return False
    try:
        get_notifier()(confirmation)
    except Exception:
        # Notification delivery must never undo a recorded payment
        logger.error(f"Payment confirmation for {confirmation.shop_name} failed", exc_info=True)
        return False
    return True
