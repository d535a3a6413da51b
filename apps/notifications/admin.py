"""
Admin configuration for notifications app.
"""

from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin for Notification model. Content is read-only once created."""

    list_display = ('title', 'user', 'type', 'related_id', 'is_read', 'created_at')
    list_filter = ('type', 'is_read', 'created_at')
    search_fields = ('title', 'message', 'user__email')
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = ('user', 'type', 'title', 'message', 'related_id', 'created_at')

    actions = ['mark_read']

    def get_queryset(self, request):
        """Optimize with select_related."""
        return super().get_queryset(request).select_related('user')

    def has_add_permission(self, request):
        """Notifications are generated by the scan job, not by hand."""
        return False

    def mark_read(self, request, queryset):
        count = queryset.mark_all_read()
        self.message_user(request, f'{count} notification(s) marked as read.')
    mark_read.short_description = 'Mark selected notifications as read'
