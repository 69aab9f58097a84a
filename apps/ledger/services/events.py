"""
Payment ledger side effects.

Applied after the shop's status change has committed. Each component
(agent credit, revenue credit) runs on its own; a failure is logged and
queued for reconciliation and never undoes the payment.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from django.db import DatabaseError

from .commission import credit_agent
from .exceptions import LedgerServiceError
from .reconciliation import enqueue_agent_recompute, enqueue_revenue_credit
from .revenue import credit_revenue, normalize_district, revenue_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommissionEvent:
    """A shop entering PAID: what was paid, for which plan, credited to whom."""

    shop: str
    plan: str
    amount: int
    commission: int
    district: str
    paid_at: datetime
    agent_id: Optional[int] = None
    # Live agent-store shops added by this event (renewal recreates one)
    shops_added: int = 0


@dataclass
class LedgerOutcome:
    agent_credited: bool = False
    revenue_credited: bool = False
    queued_tasks: List[int] = field(default_factory=list)

    @property
    def complete(self):
        return not self.queued_tasks


def _queue(outcome: LedgerOutcome, enqueue, **kwargs):
    try:
        outcome.queued_tasks.append(enqueue(**kwargs).pk)
    except DatabaseError:
        logger.critical(
            f"Could not queue reconciliation ({kwargs.get('reason')}); "
            f"run recompute_agent_totals to repair",
            exc_info=True,
        )


def apply_payment_event(event: CommissionEvent) -> LedgerOutcome:
    """
    Credit the owning agent and the district revenue for one payment.

    Returns:
        LedgerOutcome; ``queued_tasks`` lists reconciliation tasks created
        for components that failed
    """
    outcome = LedgerOutcome()

    if event.agent_id is not None and (event.commission or event.shops_added):
        try:
            credit_agent(
                agent_id=event.agent_id,
                commission=event.commission,
                shops=event.shops_added,
            )
            outcome.agent_credited = True
        except (DatabaseError, LedgerServiceError) as e:
            logger.error(f"Agent credit failed for {event.shop}", exc_info=True)
            _queue(
                outcome, enqueue_agent_recompute,
                agent_id=event.agent_id,
                reason=f"credit for {event.shop} failed: {e}",
            )

    district = normalize_district(event.district)
    day = revenue_day(event.paid_at)
    try:
        credit_revenue(
            district=district,
            day=day,
            plan=event.plan,
            amount=event.amount,
            commission=event.commission,
        )
        outcome.revenue_credited = True
    except (DatabaseError, LedgerServiceError) as e:
        logger.error(f"Revenue credit failed for {event.shop}", exc_info=True)
        _queue(
            outcome, enqueue_revenue_credit,
            district=district,
            day=day,
            plan=event.plan,
            amount=event.amount,
            commission=event.commission,
            reason=f"revenue for {event.shop} failed: {e}",
        )

    return outcome
