"""
Ledger deductions for deleted shops.

Deleting shop rows without running this first leaves agent earnings and
district revenue counting money for shops that no longer exist.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from django.db import transaction

from apps.shops.models import StoreTag
from apps.shops.plans import commission as plan_commission, get_plan

from .commission import debit_agent
from .revenue import debit_revenue, normalize_district, revenue_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeductionResult:
    total_commission_deducted: int
    total_revenue_deducted: int
    agents_affected: int = 0
    entries_affected: int = 0


def _term_commission(record) -> int:
    if record.agent_commission:
        return record.agent_commission
    return plan_commission(record.plan_type, record.amount)


@transaction.atomic
def deduct_for_records(records: Iterable) -> DeductionResult:
    """
    Reverse the ledger effect of shops that are about to be deleted.

    For every PAID shop, the owning agent loses the commission it was
    credited and the (district, payment day) revenue entry loses the
    amount and commission. Agent-store shops also drop out of the agent's
    shop count. Every column is floored at 0.

    A back-office shop and its agent-store sibling share one payment, so
    revenue is deducted once per (name, payment instant) pair.

    Args:
        records: ShopRecord instances, read before deletion

    Returns:
        DeductionResult with the requested deduction totals
    """
    records = sorted(records, key=lambda r: 0 if r.ref.store == StoreTag.AGENT else 1)

    agent_commission = defaultdict(int)
    agent_shops = defaultdict(int)
    revenue = defaultdict(lambda: {'amount': 0, 'commission': 0, 'plans': defaultdict(int), 'counts': defaultdict(int)})
    seen_payments = set()

    for record in records:
        owned = record.ref.store == StoreTag.AGENT and record.agent_id
        if owned:
            agent_shops[record.agent_id] += 1

        if not record.is_paid:
            continue

        term_commission = _term_commission(record) if owned else 0
        if owned:
            agent_commission[record.agent_id] += term_commission

        payment_key = ((record.name or '').strip().lower(), record.last_payment_date)
        if payment_key in seen_payments:
            continue
        seen_payments.add(payment_key)

        plan = get_plan(record.plan_type).code
        bucket = revenue[(normalize_district(record.district), revenue_day(record.last_payment_date))]
        bucket['amount'] += record.amount
        bucket['commission'] += term_commission
        bucket['plans'][plan] += record.amount
        bucket['counts'][plan] += 1

    for agent_id in set(agent_shops) | set(agent_commission):
        debit_agent(
            agent_id=agent_id,
            commission=agent_commission.get(agent_id, 0),
            shops=agent_shops.get(agent_id, 0),
        )

    entries = 0
    for (district, day), bucket in revenue.items():
        if debit_revenue(
            district=district,
            day=day,
            amount=bucket['amount'],
            commission=bucket['commission'],
            plan_amounts=bucket['plans'],
            plan_counts=bucket['counts'],
        ):
            entries += 1

    result = DeductionResult(
        total_commission_deducted=sum(agent_commission.values()),
        total_revenue_deducted=sum(b['amount'] for b in revenue.values()),
        agents_affected=len(set(agent_shops) | set(agent_commission)),
        entries_affected=entries,
    )
    logger.info(
        f"Deducted {result.total_commission_deducted} commission and "
        f"{result.total_revenue_deducted} revenue for {len(records)} deleted shops"
    )
    return result
