from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Agent, RevenueEntry, ReconciliationTask, TaskStatus
from .services import process_reconciliation_tasks, recompute_agent


@admin.register(Agent)
class AgentAdmin(admin.ModelAdmin):
    """
    Admin interface for field agents.

    Totals are a cache; edit shops, then use the recompute action.
    """

    list_display = ['name', 'agent_code', 'phone', 'total_shops', 'total_earnings', 'created_at']
    search_fields = ['name', 'agent_code', 'phone', 'email']
    readonly_fields = ['total_shops', 'total_earnings', 'created_at', 'updated_at']
    ordering = ['name']
    actions = ['recompute_totals']

    @admin.action(description='Recompute totals from shops')
    def recompute_totals(self, request, queryset):
        corrected = 0
        for agent in queryset:
            if recompute_agent(agent_id=agent.pk).changed:
                corrected += 1
        self.message_user(
            request,
            f'Recomputed {queryset.count()} agent(s), corrected {corrected}.',
            messages.SUCCESS
        )


@admin.register(RevenueEntry)
class RevenueEntryAdmin(admin.ModelAdmin):
    list_display = ['district', 'date', 'total_revenue', 'total_agent_commission', 'net_revenue']
    list_filter = ['district', 'date']
    date_hierarchy = 'date'
    ordering = ['-date', 'district']

    def get_readonly_fields(self, request, obj=None):
        # Totals only move through the ledger services
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


@admin.register(ReconciliationTask)
class ReconciliationTaskAdmin(admin.ModelAdmin):
    list_display = ['id', 'kind', 'status_badge', 'agent', 'district', 'date', 'attempts', 'created_at']
    list_filter = ['kind', 'status']
    readonly_fields = [
        'kind', 'agent', 'district', 'date', 'plan', 'amount', 'commission',
        'reason', 'attempts', 'last_error', 'created_at', 'resolved_at',
    ]
    actions = ['process_pending']

    def status_badge(self, obj):
        colors = {
            TaskStatus.PENDING: ('#E5C49A', '#2C1810'),
            TaskStatus.RESOLVED: ('#6B8E5E', 'white'),
            TaskStatus.FAILED: ('#B85C5C', 'white'),
        }
        bg, fg = colors.get(obj.status, ('#ccc', '#666'))
        return format_html(
            '<span style="background: {}; color: {}; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            bg, fg, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    @admin.action(description='Process all pending tasks')
    def process_pending(self, request, queryset):
        summary = process_reconciliation_tasks()
        self.message_user(
            request,
            f'Resolved {summary.resolved}, retrying {summary.retried}, failed {summary.failed}.',
            messages.SUCCESS if not summary.errors else messages.WARNING
        )

    def has_add_permission(self, request):
        return False
