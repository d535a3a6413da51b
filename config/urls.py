"""
URL configuration for the productivity planner project.
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings

urlpatterns = [
    path('admin/', admin.site.urls),

    # App URLs
    path('api/notifications/', include('apps.notifications.urls', namespace='notifications')),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns

# Admin site customization
admin.site.site_header = 'Task Manager Administration'
admin.site.site_title = 'Task Manager Admin'
admin.site.index_title = 'Welcome to Task Manager Admin'
