"""
Ledger app services layer.

Agent commission totals, district revenue, deductions for deleted shops
and the reconciliation queue that repairs failed ledger writes.
"""

from .exceptions import (
    LedgerServiceError,
    AgentNotFoundError,
)

from .commission import (
    credit_agent,
    debit_agent,
)

from .revenue import (
    credit_revenue,
    debit_revenue,
    normalize_district,
    revenue_day,
)

from .agent_totals import (
    AgentTotals,
    AgentRecompute,
    compute_agent_totals,
    recompute_agent,
    recompute_all_agents,
)

from .deductions import (
    DeductionResult,
    deduct_for_records,
)

from .reconciliation import (
    ReconciliationSummary,
    enqueue_agent_recompute,
    enqueue_revenue_credit,
    process_reconciliation_tasks,
)

from .events import (
    CommissionEvent,
    LedgerOutcome,
    apply_payment_event,
)


__all__ = [
    # Exceptions
    'LedgerServiceError',
    'AgentNotFoundError',

    # Agent commission
    'credit_agent',
    'debit_agent',

    # District revenue
    'credit_revenue',
    'debit_revenue',
    'normalize_district',
    'revenue_day',

    # Recompute
    'AgentTotals',
    'AgentRecompute',
    'compute_agent_totals',
    'recompute_agent',
    'recompute_all_agents',

    # Deductions
    'DeductionResult',
    'deduct_for_records',

    # Reconciliation
    'ReconciliationSummary',
    'enqueue_agent_recompute',
    'enqueue_revenue_credit',
    'process_reconciliation_tasks',

    # Payment events
    'CommissionEvent',
    'LedgerOutcome',
    'apply_payment_event',
]
