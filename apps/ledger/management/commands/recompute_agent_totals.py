"""
Rebuild cached agent totals from the shop stores.

Usage:
    python manage.py recompute_agent_totals
    python manage.py recompute_agent_totals --agent 12
    python manage.py recompute_agent_totals --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from apps.ledger.models import Agent
from apps.ledger.services import (
    AgentNotFoundError,
    compute_agent_totals,
    recompute_agent,
    recompute_all_agents,
)


class Command(BaseCommand):
    help = "Recompute agents' total shops and earnings from their shops"

    def add_arguments(self, parser):
        parser.add_argument('--agent', type=int, help='Only this agent id')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show drift without correcting it',
        )

    def handle(self, *args, **options):
        agent_id = options.get('agent')

        if options['dry_run']:
            agents = Agent.objects.order_by('pk')
            if agent_id:
                agents = agents.filter(pk=agent_id)
            drifted = 0
            for agent in agents:
                totals = compute_agent_totals(agent.pk)
                if (totals.total_shops, totals.total_earnings) != (agent.total_shops, agent.total_earnings):
                    drifted += 1
                    self.stdout.write(
                        f'  - {agent.agent_code}: shops {agent.total_shops} -> {totals.total_shops}, '
                        f'earnings {agent.total_earnings} -> {totals.total_earnings}'
                    )
            self.stdout.write(f'{drifted} agent(s) drifted')
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
            return

        if agent_id:
            try:
                results = [recompute_agent(agent_id=agent_id)]
            except AgentNotFoundError as e:
                raise CommandError(str(e))
        else:
            results = recompute_all_agents()

        changed = [r for r in results if r.changed]
        for r in changed:
            self.stdout.write(
                f'  - agent {r.agent_id}: earnings {r.old_totals.total_earnings} -> {r.new_totals.total_earnings}, '
                f'shops {r.old_totals.total_shops} -> {r.new_totals.total_shops}'
            )
        self.stdout.write(self.style.SUCCESS(
            f'Recomputed {len(results)} agent(s), corrected {len(changed)}'
        ))
