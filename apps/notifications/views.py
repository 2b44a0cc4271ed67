from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from config.exceptions import parse_uuid
from config.permissions import HasCronSecret
from .serializers import (
    NotificationSerializer,
    NotificationCreateSerializer,
    NotificationListResponseSerializer,
    NotificationPreferencesSerializer,
    GenerationReportSerializer,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class UpdatedCountSerializer(drf_serializers.Serializer):
    updated = drf_serializers.IntegerField()


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('unread', OpenApiTypes.BOOL, description='Only unread notifications'),
        OpenApiParameter('limit', OpenApiTypes.INT, description='Maximum number returned (default 50)'),
    ],
    responses={200: NotificationListResponseSerializer},
    description="Live notifications, newest first, with the unread count.",
    tags=['notifications'],
)
@extend_schema(
    methods=['POST'],
    request=NotificationCreateSerializer,
    responses={201: NotificationSerializer, 200: OpenApiTypes.OBJECT},
    description="Create a notification for the current user. Returns {\"created\": false} if deduplicated.",
    tags=['notifications'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def notifications(request):
    """List or create notifications using service layer."""
    from apps.notifications.services import (
        create_notification,
        get_user_notifications,
        get_unread_count,
    )

    if request.method == 'POST':
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        notification = create_notification(user=request.user, **serializer.validated_data)
        if notification is None:
            return Response({'created': False})

        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)

    unread_only = request.query_params.get('unread', '').lower() in ('1', 'true')
    try:
        limit = int(request.query_params.get('limit', 0)) or None
    except ValueError:
        return Response({'error': 'Invalid limit'}, status=status.HTTP_400_BAD_REQUEST)

    items = get_user_notifications(user=request.user, limit=limit, unread_only=unread_only)
    return Response({
        'notifications': NotificationSerializer(items, many=True).data,
        'unread_count': get_unread_count(user=request.user),
    })


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def mark_read(request, notification_id):
    from apps.notifications.services import mark_notification_read
    from apps.notifications.services.exceptions import NotificationNotFoundError

    try:
        notification = mark_notification_read(
            notification_id=parse_uuid(notification_id, 'notification'),
            user=request.user,
        )
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(NotificationSerializer(notification).data)


@extend_schema(request=None, responses={200: UpdatedCountSerializer}, tags=['notifications'])
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    from apps.notifications.services import mark_all_read as mark_all_read_service

    updated = mark_all_read_service(user=request.user)
    return Response({'updated': updated})


@extend_schema(
    responses={204: None, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Delete a notification. Only the owner can delete it.",
    tags=['notifications'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_notification(request, notification_id):
    from apps.notifications.services import delete_notification as delete_notification_service
    from apps.notifications.services.exceptions import NotificationNotFoundError

    try:
        delete_notification_service(
            notification_id=parse_uuid(notification_id, 'notification'),
            user=request.user,
        )
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    methods=['GET'],
    responses={200: NotificationPreferencesSerializer},
    tags=['notifications'],
)
@extend_schema(
    methods=['PUT'],
    request=NotificationPreferencesSerializer,
    responses={200: NotificationPreferencesSerializer, 400: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def preferences(request):
    """Notification preferences using service layer."""
    from apps.notifications.services import get_preferences, update_preferences
    from apps.notifications.services.exceptions import InvalidPreferenceError

    if request.method == 'PUT':
        serializer = NotificationPreferencesSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            prefs = update_preferences(user=request.user, **serializer.validated_data)
        except InvalidPreferenceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(NotificationPreferencesSerializer(prefs).data)

    prefs = get_preferences(user=request.user)
    return Response(NotificationPreferencesSerializer(prefs).data)


@extend_schema(
    request=None,
    responses={200: GenerationReportSerializer},
    description="Run every notification rule for every active user. Requires the cron secret.",
    tags=['cron'],
)
@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([HasCronSecret])
def cron_notifications(request):
    """Scheduled notification generation."""
    from apps.notifications.services import generate_all

    report = generate_all()
    return Response(report.as_dict())
