"""
Agent totals recomputation.

The cached ``Agent.total_shops`` and ``Agent.total_earnings`` are rebuilt
from the agent's live shops: every owned shop counts towards the total,
and every PAID one adds ``commission(plan, amount)``. This is the
convergent repair path for every incremental update that may have been
lost; running it twice, or concurrently with live traffic, is safe.

Terms that expired into the holding area, or were superseded by a
renewal, are no longer owned PAID shops and drop out of the total.
"""

import logging
from dataclasses import dataclass
from typing import List

from django.db import transaction

from apps.ledger.models import Agent
from apps.shops.models import AgentShop, PaymentStatus
from apps.shops.plans import commission

from .exceptions import AgentNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentTotals:
    total_shops: int
    total_earnings: int


@dataclass(frozen=True)
class AgentRecompute:
    agent_id: int
    old_totals: AgentTotals
    new_totals: AgentTotals

    @property
    def changed(self):
        return self.old_totals != self.new_totals


def compute_agent_totals(agent_id: int) -> AgentTotals:
    """Totals as implied by the agent's live shops, without touching the agent row."""
    owned = AgentShop.objects.filter(agent_id=agent_id)
    earnings = sum(
        commission(plan_type, amount)
        for plan_type, amount in owned.filter(payment_status=PaymentStatus.PAID)
        .values_list('plan_type', 'amount')
    )
    return AgentTotals(total_shops=owned.count(), total_earnings=earnings)


@transaction.atomic
def recompute_agent(*, agent_id: int) -> AgentRecompute:
    """
    Overwrite an agent's cached totals with the recomputed ones.

    The agent row is locked while the shop stores are summed, so an
    incremental credit landing at the same time is serialized behind it.

    Args:
        agent_id: Agent primary key

    Returns:
        AgentRecompute with old and new totals

    Raises:
        AgentNotFoundError: If agent doesn't exist
    """
    try:
        agent = Agent.objects.select_for_update().get(pk=agent_id)
    except Agent.DoesNotExist:
        raise AgentNotFoundError(f"Agent with ID {agent_id} not found")

    old = AgentTotals(total_shops=agent.total_shops, total_earnings=agent.total_earnings)
    new = compute_agent_totals(agent_id)

    if new != old:
        Agent.objects.filter(pk=agent_id).update(
            total_shops=new.total_shops,
            total_earnings=new.total_earnings,
        )
        logger.info(
            f"Agent {agent.agent_code} totals corrected: "
            f"shops {old.total_shops} -> {new.total_shops}, "
            f"earnings {old.total_earnings} -> {new.total_earnings}"
        )

    return AgentRecompute(agent_id=agent_id, old_totals=old, new_totals=new)


def recompute_all_agents() -> List[AgentRecompute]:
    """Recompute every agent, one transaction per agent."""
    results = []
    for agent_id in Agent.objects.order_by('pk').values_list('pk', flat=True):
        try:
            results.append(recompute_agent(agent_id=agent_id))
        except AgentNotFoundError:
            # Deleted since the id list was read
            logger.warning(f"Agent {agent_id} disappeared during recompute, skipping")
    return results
