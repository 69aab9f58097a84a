"""
District revenue ledger.

One ``RevenueEntry`` per (district, day), created by the first payment of
the day. Every later mutation is a single UPDATE that also rewrites
``net_revenue`` from the pre-update column values, so
``net_revenue == total_revenue - total_agent_commission`` holds after each
statement.
"""

import logging
from datetime import date
from typing import Dict

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.db.models.functions import Greatest
from django.utils import timezone

from apps.ledger.models import RevenueEntry
from apps.shops.plans import get_plan

logger = logging.getLogger(__name__)


def normalize_district(district) -> str:
    district = (district or '').strip().upper()
    return district or settings.SHOP_UNKNOWN_DISTRICT


def revenue_day(moment) -> date:
    """Calendar day (in the project time zone) a payment counts towards."""
    if moment is None:
        return timezone.localdate()
    if isinstance(moment, date) and not hasattr(moment, 'hour'):
        return moment
    return timezone.localdate(moment)


def plan_columns(plan_code):
    """Revenue and count column names for a plan."""
    prefix = get_plan(plan_code).code.lower()
    return f'{prefix}_plan_revenue', f'{prefix}_plan_count'


@transaction.atomic
def credit_revenue(*, district, day, plan: str, amount: int, commission: int) -> None:
    """
    Add one payment to its district-day entry.

    The UPDATE runs first so an existing entry is never read before it is
    written. The entry is created only when no row matched; a concurrent
    creator wins the unique constraint and the UPDATE is re-run.
    """
    district = normalize_district(district)
    day = revenue_day(day)
    amount, commission = int(amount), int(commission)
    revenue_col, count_col = plan_columns(plan)

    updates = {
        revenue_col: F(revenue_col) + amount,
        count_col: F(count_col) + 1,
        'total_revenue': F('total_revenue') + amount,
        'total_agent_commission': F('total_agent_commission') + commission,
        'net_revenue': (F('total_revenue') + amount) - (F('total_agent_commission') + commission),
        'updated_at': timezone.now(),
    }
    entries = RevenueEntry.objects.filter(district=district, date=day)
    if not entries.update(**updates):
        try:
            with transaction.atomic():
                RevenueEntry.objects.create(**{
                    'district': district,
                    'date': day,
                    revenue_col: amount,
                    count_col: 1,
                    'total_revenue': amount,
                    'total_agent_commission': commission,
                    'net_revenue': amount - commission,
                })
        except IntegrityError:
            logger.debug(f"Revenue entry {district} {day} created concurrently; updating")
            entries.update(**updates)
    logger.info(f"Revenue {district} {day}: +{amount} ({plan}), commission +{commission}")


@transaction.atomic
def debit_revenue(
    *,
    district,
    day,
    amount: int,
    commission: int,
    plan_amounts: Dict[str, int] = None,
    plan_counts: Dict[str, int] = None
) -> bool:
    """
    Subtract deleted payments from a district-day entry, flooring every column at 0.

    Returns:
        False when no entry exists for that district and day
    """
    district = normalize_district(district)
    day = revenue_day(day)
    amount, commission = int(amount), int(commission)

    updates = {
        'total_revenue': Greatest(F('total_revenue') - amount, 0),
        'total_agent_commission': Greatest(F('total_agent_commission') - commission, 0),
        'net_revenue': (
            Greatest(F('total_revenue') - amount, 0)
            - Greatest(F('total_agent_commission') - commission, 0)
        ),
        'updated_at': timezone.now(),
    }
    for plan, value in (plan_amounts or {}).items():
        revenue_col, _ = plan_columns(plan)
        updates[revenue_col] = Greatest(F(revenue_col) - int(value), 0)
    for plan, value in (plan_counts or {}).items():
        _, count_col = plan_columns(plan)
        updates[count_col] = Greatest(F(count_col) - int(value), 0)

    updated = RevenueEntry.objects.filter(district=district, date=day).update(**updates)
    if not updated:
        logger.warning(f"No revenue entry for {district} {day}; nothing to deduct")
        return False
    logger.info(f"Revenue {district} {day}: -{amount}, commission -{commission}")
    return True
