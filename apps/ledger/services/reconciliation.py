"""
Reconciliation queue.

A ledger write that fails after its shop transition committed leaves a
``ReconciliationTask`` behind instead of being forgotten. Draining the
queue either recomputes the agent (convergent) or re-applies the revenue
credit exactly once.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.ledger.models import ReconciliationTask, TaskKind, TaskStatus

from .agent_totals import recompute_agent
from .exceptions import LedgerServiceError
from .revenue import credit_revenue

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5


@dataclass
class ReconciliationSummary:
    resolved: int = 0
    failed: int = 0
    retried: int = 0
    errors: List[str] = field(default_factory=list)


def enqueue_agent_recompute(*, agent_id: int, reason: str = '') -> ReconciliationTask:
    """Queue a recompute for an agent unless one is already pending."""
    existing = (
        ReconciliationTask.objects.pending()
        .filter(kind=TaskKind.AGENT_TOTALS, agent_id=agent_id)
        .first()
    )
    if existing is not None:
        return existing
    task = ReconciliationTask.objects.create(
        kind=TaskKind.AGENT_TOTALS,
        agent_id=agent_id,
        reason=reason,
    )
    logger.warning(f"Queued agent totals recompute for agent {agent_id}: {reason}")
    return task


def enqueue_revenue_credit(
    *,
    district: str,
    day,
    plan: str,
    amount: int,
    commission: int,
    reason: str = ''
) -> ReconciliationTask:
    task = ReconciliationTask.objects.create(
        kind=TaskKind.REVENUE_CREDIT,
        district=district or '',
        date=day,
        plan=plan,
        amount=amount,
        commission=commission,
        reason=reason,
    )
    logger.warning(f"Queued revenue credit {district} {day} {plan} {amount}: {reason}")
    return task


def _mark_resolved(task_id):
    ReconciliationTask.objects.filter(pk=task_id).update(
        status=TaskStatus.RESOLVED,
        resolved_at=timezone.now(),
    )


@transaction.atomic
def _process_revenue_credit(task_id) -> bool:
    task = (
        ReconciliationTask.objects
        .select_for_update()
        .filter(pk=task_id, status=TaskStatus.PENDING)
        .first()
    )
    if task is None:
        # Already handled by a concurrent drain
        return False
    credit_revenue(
        district=task.district,
        day=task.date,
        plan=task.plan,
        amount=task.amount,
        commission=task.commission,
    )
    _mark_resolved(task.pk)
    return True


def _process_agent_totals(task) -> bool:
    recompute_agent(agent_id=task.agent_id)
    _mark_resolved(task.pk)
    return True


def process_reconciliation_tasks(*, limit: Optional[int] = None) -> ReconciliationSummary:
    """
    Drain pending reconciliation tasks, oldest first.

    A task that fails is retried on the next drain until it has failed
    ``MAX_ATTEMPTS`` times, after which it is marked FAILED and left for
    an operator.

    Args:
        limit: Process at most this many tasks

    Returns:
        ReconciliationSummary with per-outcome counts
    """
    summary = ReconciliationSummary()
    tasks = ReconciliationTask.objects.pending().order_by('created_at', 'pk')
    if limit:
        tasks = tasks[:limit]

    for task in list(tasks):
        try:
            if task.kind == TaskKind.AGENT_TOTALS:
                done = _process_agent_totals(task)
            else:
                done = _process_revenue_credit(task.pk)
            if done:
                summary.resolved += 1
        except (DatabaseError, LedgerServiceError) as e:
            logger.error(f"Reconciliation task {task.pk} failed", exc_info=True)
            task.record_failure(e)
            summary.errors.append(f"task {task.pk}: {e}")
            if task.attempts + 1 >= MAX_ATTEMPTS:
                ReconciliationTask.objects.filter(pk=task.pk).update(status=TaskStatus.FAILED)
                summary.failed += 1
            else:
                summary.retried += 1

    logger.info(
        f"Reconciliation: {summary.resolved} resolved, "
        f"{summary.retried} to retry, {summary.failed} failed"
    )
    return summary
