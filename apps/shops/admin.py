from django.contrib import admin
from django.utils.html import format_html

from .models import (
    AdminShop,
    AgentShop,
    Category,
    LegacyShop,
    PaymentStatus,
    RenewalPayment,
    RenewShop,
)


def payment_badge(status):
    colors = {
        PaymentStatus.PAID: ('#6B8E5E', 'white'),
        PaymentStatus.PENDING: ('#E5C49A', '#2C1810'),
    }
    bg, fg = colors.get(status, ('#ccc', '#666'))
    return format_html(
        '<span style="background: {}; color: {}; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        bg, fg, status or 'LEGACY'
    )


class PaymentReadOnlyMixin:
    """
    Payment columns are only written by the lifecycle services, which also
    keep the ledgers in step.
    """

    payment_fields = [
        'payment_status',
        'last_payment_date',
        'payment_expiry_date',
    ]

    def get_readonly_fields(self, request, obj=None):
        return list(super().get_readonly_fields(request, obj)) + self.payment_fields

    def status_badge(self, obj):
        return payment_badge(obj.payment_status)
    status_badge.short_description = 'Payment'


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(LegacyShop)
class LegacyShopAdmin(PaymentReadOnlyMixin, admin.ModelAdmin):
    list_display = ['name', 'category', 'district', 'status_badge', 'visitor_count', 'created_at']
    list_filter = ['category', 'payment_status']
    search_fields = ['name', 'address']


@admin.register(AdminShop)
class AdminShopAdmin(PaymentReadOnlyMixin, admin.ModelAdmin):
    list_display = [
        'shop_name', 'owner_name', 'category', 'district',
        'plan_type', 'status_badge', 'payment_expiry_date',
    ]
    list_filter = ['payment_status', 'plan_type', 'category', 'district']
    search_fields = ['shop_name', 'owner_name', 'mobile', 'full_address']
    raw_id_fields = ['category_ref', 'created_by_admin']
    payment_fields = PaymentReadOnlyMixin.payment_fields + ['plan_amount', 'receipt_no', 'payment_mode']


@admin.register(AgentShop)
class AgentShopAdmin(PaymentReadOnlyMixin, admin.ModelAdmin):
    list_display = [
        'shop_name', 'owner_name', 'agent', 'category',
        'plan_type', 'amount', 'agent_commission', 'status_badge',
    ]
    list_filter = ['payment_status', 'plan_type', 'category', 'district']
    search_fields = ['shop_name', 'owner_name', 'mobile', 'agent__agent_code']
    raw_id_fields = ['agent']
    payment_fields = PaymentReadOnlyMixin.payment_fields + [
        'amount', 'agent_commission', 'receipt_no', 'payment_mode',
    ]


@admin.register(RenewShop)
class RenewShopAdmin(admin.ModelAdmin):
    list_display = ['shop_name', 'original_store', 'original_id', 'agent', 'plan_type', 'amount', 'expired_date']
    list_filter = ['original_store', 'plan_type', 'category']
    search_fields = ['shop_name', 'owner_name', 'mobile']
    ordering = ['expired_date']

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False


@admin.register(RenewalPayment)
class RenewalPaymentAdmin(admin.ModelAdmin):
    list_display = ['shop_name', 'agent', 'plan_type', 'renewal_amount', 'renewal_commission', 'renewal_date']
    list_filter = ['plan_type', 'payment_mode']
    search_fields = ['shop_name', 'receipt_no']
    date_hierarchy = 'renewal_date'

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False
