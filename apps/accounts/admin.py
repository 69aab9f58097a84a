from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, UserRole


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for back-office logins.

    Lists role and linked agent so admins can see which login
    acts on behalf of which field agent.
    """

    list_display = [
        'email',
        'display_name',
        'role_badge',
        'agent',
        'is_active',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
        'agent__agent_code',
    ]

    ordering = ['-created_at']
    raw_id_fields = ['agent']

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'password')
        }),
        ('Role', {
            'fields': ('role', 'agent'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'agent', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']

    def role_badge(self, obj):
        """Display role as colored badge."""
        colors = {
            UserRole.ADMIN: '#B85C5C',
            UserRole.AGENT: '#6B8E5E',
            UserRole.OPERATOR: '#A47449',
        }
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            colors.get(obj.role, '#999'), obj.get_role_display()
        )
    role_badge.short_description = 'Role'
    role_badge.admin_order_field = 'role'
