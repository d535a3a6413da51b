"""
Admin configuration for accounts app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _

from apps.notifications.models import Notification
from apps.tasks.models import Task
from .models import User


class RecentNotificationInline(admin.TabularInline):
    """Read-only view of what the scan has generated for the user."""

    model = Notification
    fields = ('type', 'title', 'related_id', 'is_read', 'created_at')
    readonly_fields = fields
    ordering = ('-created_at',)
    extra = 0
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """User admin keyed on email, with task and inbox counts."""

    list_display = ('email', 'get_full_name', 'is_active', 'open_tasks', 'unread_notifications', 'created_at')
    list_filter = ('is_active', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)
    inlines = [RecentNotificationInline]

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Profile'), {'fields': ('first_name', 'last_name', 'avatar_url')}),
        (_('Access'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups'),
            'classes': ('collapse',),
        }),
        (_('History'), {'fields': ('last_login', 'created_at', 'updated_at')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'first_name', 'last_name', 'password1', 'password2'),
        }),
    )
    readonly_fields = ('created_at', 'updated_at', 'last_login')

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            open_task_count=Count(
                'tasks', filter=~Q(tasks__status=Task.Status.COMPLETED), distinct=True,
            ),
            unread_count=Count(
                'notifications', filter=Q(notifications__is_read=False), distinct=True,
            ),
        )

    def open_tasks(self, obj):
        return obj.open_task_count
    open_tasks.short_description = 'Open tasks'
    open_tasks.admin_order_field = 'open_task_count'

    def unread_notifications(self, obj):
        return obj.unread_count
    unread_notifications.short_description = 'Unread'
    unread_notifications.admin_order_field = 'unread_count'
