import logging

from rest_framework import status, viewsets
from rest_framework.decorators import api_view, action, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from config.exceptions import parse_uuid
from config.permissions import HasCronSecret
from .serializers import (
    PourSerializer,
    PourCreateSerializer,
    PourUpdateSerializer,
    PourSessionSerializer,
    PourSessionUpdateSerializer,
    PourSessionListResponseSerializer,
    SessionMaintenanceReportSerializer,
)

logger = logging.getLogger(__name__)


class PourPagination(PageNumberPagination):
    """Pagination for pour history."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class PourViewSet(viewsets.ViewSet):
    """
    ViewSet for the current user's pours.

    list: Pour history (?bottle=, ?session=)
    create: Log a pour (session resolved automatically)
    retrieve: Get a pour
    partial_update: Edit rating, notes, location, tags or companions
    destroy: Delete a pour and restore the bottle fill level
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter('bottle', OpenApiTypes.UUID, description='Only pours from this bottle'),
            OpenApiParameter('session', OpenApiTypes.UUID, description='Only pours in this session'),
        ],
        responses={200: PourSerializer(many=True)},
    )
    def list(self, request):
        from apps.pours.services import get_user_pours

        bottle_id = request.query_params.get('bottle')
        session_id = request.query_params.get('session')

        pours = get_user_pours(
            user=request.user,
            user_bottle_id=parse_uuid(bottle_id, 'bottle') if bottle_id else None,
            session_id=parse_uuid(session_id, 'session') if session_id else None,
        )

        paginator = PourPagination()
        page = paginator.paginate_queryset(pours, request, view=self)
        return paginator.get_paginated_response(PourSerializer(page, many=True).data)

    @extend_schema(request=PourCreateSerializer, responses={201: PourSerializer})
    def create(self, request):
        """Log a pour using service layer."""
        from apps.pours.services import log_pour
        from apps.pours.services.exceptions import (
            BottleNotOpenedError,
            InvalidPourError,
            PourSessionNotFoundError,
        )
        from apps.bottles.services.exceptions import UserBottleNotFoundError

        serializer = PourCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            pour = log_pour(
                user=request.user,
                user_bottle_id=data['user_bottle'],
                amount=data['amount'],
                poured_at=data.get('poured_at'),
                rating=data.get('rating'),
                notes=data['notes'],
                location=data['location'],
                tags=data['tags'],
                companions=data['companions'],
                session_id=data.get('session'),
            )
        except (UserBottleNotFoundError, PourSessionNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (BottleNotOpenedError, InvalidPourError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PourSerializer(pour).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: PourSerializer})
    def retrieve(self, request, pk=None):
        from apps.pours.services import get_pour
        from apps.pours.services.exceptions import PourNotFoundError

        try:
            pour = get_pour(pour_id=parse_uuid(pk, 'pour'), user=request.user)
        except PourNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(PourSerializer(pour).data)

    @extend_schema(request=PourUpdateSerializer, responses={200: PourSerializer})
    def partial_update(self, request, pk=None):
        from apps.pours.services import update_pour
        from apps.pours.services.exceptions import PourNotFoundError, InvalidPourError

        pour_id = parse_uuid(pk, 'pour')
        serializer = PourUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            pour = update_pour(pour_id=pour_id, user=request.user, **serializer.validated_data)
        except PourNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidPourError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PourSerializer(pour).data)

    def destroy(self, request, pk=None):
        from apps.pours.services import delete_pour
        from apps.pours.services.exceptions import PourNotFoundError

        try:
            delete_pour(pour_id=parse_uuid(pk, 'pour'), user=request.user)
        except PourNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)


class PourSessionViewSet(viewsets.ViewSet):
    """
    ViewSet for the current user's pour sessions.

    list: Sessions plus a summary of recent pours not in any session
    current: The open session, if still active
    retrieve: A session with its pours
    partial_update: Rename or annotate a session
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: PourSessionListResponseSerializer})
    def list(self, request):
        from apps.pours.services import get_user_sessions, get_orphaned_pour_summary

        sessions = get_user_sessions(user=request.user)
        return Response({
            'sessions': PourSessionSerializer(sessions, many=True).data,
            'orphaned_pours': get_orphaned_pour_summary(user=request.user),
        })

    @extend_schema(responses={200: PourSessionSerializer})
    def retrieve(self, request, pk=None):
        from apps.pours.services import get_session
        from apps.pours.services.exceptions import PourSessionNotFoundError

        try:
            session = get_session(session_id=parse_uuid(pk, 'session'), user=request.user)
        except PourSessionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(PourSessionSerializer(session).data)

    @extend_schema(request=PourSessionUpdateSerializer, responses={200: PourSessionSerializer})
    def partial_update(self, request, pk=None):
        from apps.pours.services import update_session
        from apps.pours.services.exceptions import PourSessionNotFoundError

        session_id = parse_uuid(pk, 'session')
        serializer = PourSessionUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            session = update_session(session_id=session_id, user=request.user, **serializer.validated_data)
        except PourSessionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(PourSessionSerializer(session).data)

    @extend_schema(
        responses={200: OpenApiTypes.OBJECT},
        description='{"session": <session or null>}',
    )
    @action(detail=False, methods=['get'])
    def current(self, request):
        """Open session, or {"session": null} when there is none."""
        from apps.pours.services import get_current_session, get_session

        session = get_current_session(user=request.user)
        if session is None:
            return Response({'session': None})

        session = get_session(session_id=session.id, user=request.user)
        return Response({'session': PourSessionSerializer(session).data})


@extend_schema(
    request=None,
    responses={200: SessionMaintenanceReportSerializer},
    description="Close stale sessions and assign orphaned pours. Requires the cron secret.",
    tags=['cron'],
)
@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([HasCronSecret])
def cron_pour_sessions(request):
    """Scheduled session maintenance."""
    from apps.pours.services import close_stale_sessions, assign_orphaned_pours

    closed = close_stale_sessions()
    assigned = assign_orphaned_pours()

    logger.info("Pour session maintenance: closed=%d assigned=%d", closed, assigned)
    return Response({'closed_sessions': closed, 'assigned_pours': assigned})
