"""
Views for notifications app.

JSON inbox API for the signed-in user:
- List notifications (read filter, paging)
- Unread count
- Mark one / all as read
- Delete
"""

from functools import wraps

from django.core.paginator import Paginator
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from .models import Notification

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def _positive_int(value, default, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number


def _not_found():
    return JsonResponse({'success': False, 'error': 'Notification not found'}, status=404)


def api_login_required(view_func):
    """Decorator to require a signed-in user; answers 401 JSON instead of redirecting."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'success': False, 'error': 'Authentication required'}, status=401)
        return view_func(request, *args, **kwargs)
    return wrapper


@api_login_required
@require_http_methods(["GET"])
def notification_list(request):
    """
    List the user's notifications, newest first.

    Query params:
        is_read: 'true' or 'false' to filter on read state
        page: 1-based page number (default 1)
        limit: page size (default 50, max 100)
    """
    queryset = Notification.objects.for_user(request.user)

    is_read = request.GET.get('is_read')
    if is_read in ('true', 'false'):
        queryset = queryset.filter(is_read=(is_read == 'true'))

    limit = _positive_int(request.GET.get('limit'), DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    page_number = _positive_int(request.GET.get('page'), 1)

    paginator = Paginator(queryset.order_by('-created_at', '-pk'), limit)
    # Past the last page returns an empty list rather than an error
    if page_number <= paginator.num_pages:
        notifications = list(paginator.page(page_number).object_list)
    else:
        notifications = []

    return JsonResponse({
        'success': True,
        'data': [notification.to_dict() for notification in notifications],
        'pagination': {
            'page': page_number,
            'limit': limit,
            'total': paginator.count,
            'totalPages': paginator.num_pages if paginator.count else 0,
        },
    })


@api_login_required
@require_http_methods(["GET"])
def unread_count(request):
    count = Notification.objects.for_user(request.user).unread().count()
    return JsonResponse({'success': True, 'data': {'count': count}})


@api_login_required
@require_http_methods(["PUT"])
def mark_as_read(request, pk):
    notification = Notification.objects.for_user(request.user).filter(pk=pk).first()
    if notification is None:
        return _not_found()

    notification.mark_read()
    return JsonResponse({
        'success': True,
        'data': notification.to_dict(),
        'message': 'Notification marked as read',
    })


@api_login_required
@require_http_methods(["PUT"])
def mark_all_as_read(request):
    updated = Notification.objects.for_user(request.user).mark_all_read()
    return JsonResponse({
        'success': True,
        'data': {'updated': updated},
        'message': 'All notifications marked as read',
    })


@api_login_required
@require_http_methods(["DELETE"])
def delete_notification(request, pk):
    deleted, _ = Notification.objects.for_user(request.user).filter(pk=pk).delete()
    if not deleted:
        return _not_found()

    return JsonResponse({
        'success': True,
        'message': 'Notification deleted successfully',
    })
