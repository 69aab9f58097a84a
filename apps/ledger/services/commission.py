"""
Agent commission totals.

Agent totals are only ever changed with single UPDATE statements built
from F() expressions, so two commission events for the same agent cannot
overwrite each other.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.db.models.functions import Greatest

from apps.ledger.models import Agent

from .exceptions import AgentNotFoundError

logger = logging.getLogger(__name__)


@transaction.atomic
def credit_agent(*, agent_id: int, commission: int = 0, shops: int = 0) -> None:
    """
    Add commission and/or shop count to an agent.

    Raises:
        AgentNotFoundError: If agent doesn't exist
    """
    updated = Agent.objects.filter(pk=agent_id).update(
        total_earnings=F('total_earnings') + int(commission),
        total_shops=F('total_shops') + int(shops),
    )
    if not updated:
        raise AgentNotFoundError(f"Agent with ID {agent_id} not found")
    logger.info(f"Credited agent {agent_id}: commission +{commission}, shops +{shops}")


@transaction.atomic
def debit_agent(*, agent_id: int, commission: int = 0, shops: int = 0) -> None:
    """
    Subtract commission and/or shop count, never going below zero.

    Raises:
        AgentNotFoundError: If agent doesn't exist
    """
    updated = Agent.objects.filter(pk=agent_id).update(
        total_earnings=Greatest(F('total_earnings') - int(commission), 0),
        total_shops=Greatest(F('total_shops') - int(shops), 0),
    )
    if not updated:
        raise AgentNotFoundError(f"Agent with ID {agent_id} not found")
    logger.info(f"Debited agent {agent_id}: commission -{commission}, shops -{shops}")
