from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import Notification
from .serializers import NotificationSerializer

PAGE_SIZE = 50


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Latest notifications for the caller, ?unread=true for unread only"""
    notifications = Notification.objects.filter(user=request.user)
    if request.query_params.get('unread') == 'true':
        notifications = notifications.filter(read=False)

    return Response({
        'notifications': NotificationSerializer(notifications[:PAGE_SIZE], many=True).data,
        'unread_count': Notification.objects.filter(user=request.user, read=False).count(),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, notification_id):
    updated = Notification.objects.filter(pk=notification_id, user=request.user).update(read=True)
    if not updated:
        return Response({'error': 'Notification not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'message': 'Notification marked as read'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
    return Response({'message': 'All notifications marked as read', 'updated': updated})
