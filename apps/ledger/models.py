from django.db import models
from django.db.models import F


class Agent(models.Model):
    """
    Field agent who registers shops and earns commission on their payments.

    ``total_shops`` and ``total_earnings`` are a read cache. They are only
    ever changed through atomic UPDATEs (see services.commission) or the
    convergent recomputation in services.agent_totals.
    """

    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(unique=True)
    agent_code = models.CharField(max_length=50, unique=True)

    # Cached totals
    total_shops = models.PositiveIntegerField(default=0)
    total_earnings = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'agents'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.agent_code})"

    def save(self, *args, **kwargs):
        self.agent_code = self.agent_code.strip().upper()
        super().save(*args, **kwargs)


class RevenueEntry(models.Model):
    """
    Revenue accumulated for one district on one calendar day.

    Per-plan amounts and counts are kept side by side; ``net_revenue`` is
    always written in the same UPDATE as ``total_revenue`` and
    ``total_agent_commission`` so it cannot drift.
    """

    district = models.CharField(max_length=100)
    date = models.DateField()

    # Plan-wise revenue
    basic_plan_revenue = models.PositiveIntegerField(default=0)
    premium_plan_revenue = models.PositiveIntegerField(default=0)
    featured_plan_revenue = models.PositiveIntegerField(default=0)
    left_bar_plan_revenue = models.PositiveIntegerField(default=0)
    right_bar_plan_revenue = models.PositiveIntegerField(default=0)
    banner_plan_revenue = models.PositiveIntegerField(default=0)
    hero_plan_revenue = models.PositiveIntegerField(default=0)

    # Plan-wise counts
    basic_plan_count = models.PositiveIntegerField(default=0)
    premium_plan_count = models.PositiveIntegerField(default=0)
    featured_plan_count = models.PositiveIntegerField(default=0)
    left_bar_plan_count = models.PositiveIntegerField(default=0)
    right_bar_plan_count = models.PositiveIntegerField(default=0)
    banner_plan_count = models.PositiveIntegerField(default=0)
    hero_plan_count = models.PositiveIntegerField(default=0)

    total_agent_commission = models.PositiveIntegerField(default=0)
    total_revenue = models.PositiveIntegerField(default=0)
    net_revenue = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'revenue_entries'
        constraints = [
            models.UniqueConstraint(fields=['district', 'date'], name='unique_revenue_district_date'),
        ]
        indexes = [
            models.Index(fields=['district', '-date'], name='revenue_district_date_idx'),
            models.Index(fields=['-date'], name='revenue_date_idx'),
        ]
        ordering = ['-date', 'district']

    def __str__(self):
        return f"{self.district} {self.date}: {self.total_revenue} (net {self.net_revenue})"


class TaskKind(models.TextChoices):
    AGENT_TOTALS = 'AGENT_TOTALS', 'Recompute agent totals'
    REVENUE_CREDIT = 'REVENUE_CREDIT', 'Re-apply revenue credit'


class TaskStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    RESOLVED = 'RESOLVED', 'Resolved'
    FAILED = 'FAILED', 'Failed'


class ReconciliationTaskQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status=TaskStatus.PENDING)


class ReconciliationTask(models.Model):
    """A ledger write that failed and still has to be applied or recomputed."""

    kind = models.CharField(max_length=20, choices=TaskKind.choices)
    status = models.CharField(
        max_length=20,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING
    )

    agent = models.ForeignKey(
        Agent,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='reconciliation_tasks'
    )

    # Revenue credit payload
    district = models.CharField(max_length=100, blank=True)
    date = models.DateField(null=True, blank=True)
    plan = models.CharField(max_length=20, blank=True)
    amount = models.PositiveIntegerField(default=0)
    commission = models.PositiveIntegerField(default=0)

    reason = models.TextField(blank=True)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    objects = ReconciliationTaskQuerySet.as_manager()

    class Meta:
        db_table = 'reconciliation_tasks'
        indexes = [
            models.Index(fields=['status', 'created_at'], name='recon_status_created_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        target = self.agent_id if self.kind == TaskKind.AGENT_TOTALS else f"{self.district}/{self.date}"
        return f"{self.get_kind_display()} [{target}] ({self.status})"

    def record_failure(self, error):
        ReconciliationTask.objects.filter(pk=self.pk).update(
            attempts=F('attempts') + 1,
            last_error=str(error)[:2000],
        )
