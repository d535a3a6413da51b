"""
URL configuration for notifications app.
"""

from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.notification_list, name='list'),
    path('unread/count/', views.unread_count, name='unread_count'),
    path('read-all/', views.mark_all_as_read, name='mark_all_read'),
    path('<int:pk>/read/', views.mark_as_read, name='mark_read'),
    path('<int:pk>/', views.delete_notification, name='delete'),
]
