"""
Admin configuration for tasks app.
"""

from datetime import timedelta

from django.conf import settings
from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import Task


class DueWindowFilter(admin.SimpleListFilter):
    """Filter by the same windows the notification scan uses."""

    title = 'due window'
    parameter_name = 'due_window'

    def lookups(self, request, model_admin):
        return (
            ('due_soon', 'Due soon'),
            ('overdue', 'Overdue'),
        )

    def queryset(self, request, queryset):
        now = timezone.now()
        if self.value() == 'due_soon':
            lookahead = timedelta(hours=settings.NOTIFICATION_LOOKAHEAD_HOURS)
            return queryset.due_soon(now, lookahead)
        if self.value() == 'overdue':
            return queryset.overdue(now)
        return queryset


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = ('title', 'user', 'status', 'priority', 'due_date', 'alert_state', 'created_at')
    list_filter = (DueWindowFilter, 'status', 'priority')
    search_fields = ('title', 'description', 'user__email')
    ordering = ('due_date',)
    date_hierarchy = 'due_date'
    raw_id_fields = ('user',)

    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('user', 'title', 'description')
        }),
        ('Scheduling', {
            'fields': ('status', 'priority', 'due_date')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['mark_completed']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user')

    def alert_state(self, obj):
        """Which notification, if any, the next scan would consider."""
        now = timezone.now()
        if obj.is_overdue_at(now):
            return format_html('<span style="color: {};">{}</span>', '#DC2626', 'Overdue')
        lookahead = timedelta(hours=settings.NOTIFICATION_LOOKAHEAD_HOURS)
        if obj.is_due_soon(now, lookahead):
            return format_html('<span style="color: {};">{}</span>', '#D97706', 'Due soon')
        return '-'
    alert_state.short_description = 'Alert'

    def mark_completed(self, request, queryset):
        """Complete selected tasks; completed tasks drop out of notification scans."""
        count = queryset.open().update(status=Task.Status.COMPLETED)
        self.message_user(request, f'{count} task(s) marked as completed.')
    mark_completed.short_description = 'Mark selected tasks as completed'
