from django.http import HttpResponse
from rest_framework import status, viewsets, serializers as drf_serializers
from rest_framework.decorators import api_view, action, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from config.exceptions import parse_uuid
from .models import MasterBottle
from .permissions import IsBottleOwner
from .serializers import (
    MasterBottleSerializer,
    UserBottleSerializer,
    UserBottleCreateSerializer,
    UserBottleUpdateSerializer,
    FillLevelSerializer,
    OpenBottleSerializer,
    LabelQuerySerializer,
    PrintSessionSerializer,
    LabelQueueSerializer,
    LabelCountSerializer,
    DashboardStatsSerializer,
    LocationAreasSerializer,
    LocationBinsSerializer,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class ClearCollectionResponseSerializer(drf_serializers.Serializer):
    message = drf_serializers.CharField()
    deleted_count = drf_serializers.IntegerField()


class BottlePagination(PageNumberPagination):
    """Pagination for catalogue and collection lists."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class MasterBottleViewSet(viewsets.ModelViewSet):
    """
    ViewSet for the shared bottle catalogue.

    list: Search the catalogue (?search=, ?category=, ?distillery=)
    create: Add a bottling to the catalogue
    retrieve: Get a catalogue entry
    """

    queryset = MasterBottle.objects.filter(is_active=True)
    serializer_class = MasterBottleSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = BottlePagination
    http_method_names = ['get', 'post', 'head', 'options']

    def get_queryset(self):
        from apps.bottles.services import search_master_bottles

        return search_master_bottles(
            query=self.request.query_params.get('search'),
            category=self.request.query_params.get('category'),
            distillery=self.request.query_params.get('distillery'),
        )

    def get_object(self):
        from apps.bottles.services import get_master_bottle
        from apps.bottles.services.exceptions import MasterBottleNotFoundError

        master_bottle_id = parse_uuid(self.kwargs['pk'], 'bottle')
        try:
            return get_master_bottle(master_bottle_id=master_bottle_id)
        except MasterBottleNotFoundError as e:
            raise NotFound(str(e))

    def create(self, request, *args, **kwargs):
        """Create catalogue entry using service layer."""
        from apps.bottles.services import create_master_bottle
        from apps.bottles.services.exceptions import DuplicateMasterBottleError

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bottle = create_master_bottle(created_by=request.user, **serializer.validated_data)
        except DuplicateMasterBottleError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(MasterBottleSerializer(bottle).data, status=status.HTTP_201_CREATED)


class UserBottleViewSet(viewsets.ModelViewSet):
    """
    ViewSet for the current user's collection.

    list: Collection (?status=, ?search=, ?location_area=)
    create: Add a catalogue bottle to the collection
    retrieve / partial_update / destroy: One owned bottle
    open, fill_level, print_label, label_qr: Bottle actions
    clear: Delete the entire collection
    """

    serializer_class = UserBottleSerializer
    permission_classes = [IsAuthenticated, IsBottleOwner]
    pagination_class = BottlePagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        from apps.bottles.services import get_user_collection

        return get_user_collection(
            user=self.request.user,
            status=self.request.query_params.get('status'),
            search=self.request.query_params.get('search'),
            location_area=self.request.query_params.get('location_area'),
        )

    def get_object(self):
        from apps.bottles.services import get_user_bottle
        from apps.bottles.services.exceptions import UserBottleNotFoundError

        bottle_id = parse_uuid(self.kwargs['pk'], 'bottle')
        try:
            bottle = get_user_bottle(bottle_id=bottle_id, user=self.request.user)
        except UserBottleNotFoundError as e:
            raise NotFound(str(e))
        self.check_object_permissions(self.request, bottle)
        return bottle

    def get_serializer_class(self):
        if self.action == 'create':
            return UserBottleCreateSerializer
        if self.action == 'partial_update':
            return UserBottleUpdateSerializer
        return UserBottleSerializer

    @extend_schema(
        request=UserBottleCreateSerializer,
        responses={201: UserBottleSerializer, 404: ErrorResponseSerializer},
    )
    def create(self, request, *args, **kwargs):
        """Add bottle to collection using service layer."""
        from apps.bottles.services import add_to_collection
        from apps.bottles.services.exceptions import MasterBottleNotFoundError

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        master_bottle_id = fields.pop('master_bottle')

        try:
            bottle = add_to_collection(
                user=request.user,
                master_bottle_id=master_bottle_id,
                **fields,
            )
        except MasterBottleNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(UserBottleSerializer(bottle).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=UserBottleUpdateSerializer,
        responses={200: UserBottleSerializer, 404: ErrorResponseSerializer},
    )
    def partial_update(self, request, *args, **kwargs):
        """Update bottle details using service layer."""
        from apps.bottles.services import update_user_bottle

        bottle = self.get_object()
        serializer = self.get_serializer(bottle, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        bottle = update_user_bottle(bottle_id=bottle.id, user=request.user, **serializer.validated_data)
        return Response(UserBottleSerializer(bottle).data)

    def destroy(self, request, *args, **kwargs):
        """Remove bottle from collection using service layer."""
        from apps.bottles.services import remove_from_collection

        bottle = self.get_object()
        remove_from_collection(bottle_id=bottle.id, user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=OpenBottleSerializer,
        responses={200: UserBottleSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Open an unopened bottle.",
    )
    @action(detail=True, methods=['post'])
    def open(self, request, pk=None):
        from apps.bottles.services import open_bottle
        from apps.bottles.services.exceptions import InvalidBottleStateError

        bottle = self.get_object()
        serializer = OpenBottleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bottle = open_bottle(
                bottle_id=bottle.id,
                user=request.user,
                open_date=serializer.validated_data.get('open_date'),
            )
        except InvalidBottleStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(UserBottleSerializer(bottle).data)

    @extend_schema(
        request=FillLevelSerializer,
        responses={200: UserBottleSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Manually adjust the fill level of an opened bottle.",
    )
    @action(detail=True, methods=['patch'], url_path='fill-level')
    def fill_level(self, request, pk=None):
        from apps.bottles.services import set_fill_level
        from apps.bottles.services.exceptions import InvalidBottleStateError, InvalidFillLevelError

        bottle = self.get_object()
        serializer = FillLevelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bottle = set_fill_level(bottle_id=bottle.id, user=request.user, **serializer.validated_data)
        except (InvalidBottleStateError, InvalidFillLevelError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(UserBottleSerializer(bottle).data)

    @extend_schema(
        request=None,
        responses={200: UserBottleSerializer, 404: ErrorResponseSerializer},
        description="Record that a label was printed for this bottle.",
    )
    @action(detail=True, methods=['post'], url_path='print-label')
    def print_label(self, request, pk=None):
        from apps.bottles.services import mark_label_printed

        bottle = self.get_object()
        bottle = mark_label_printed(bottle_id=bottle.id, user=request.user)
        return Response(UserBottleSerializer(bottle).data)

    @extend_schema(
        responses={(200, 'image/png'): OpenApiTypes.BINARY, 404: ErrorResponseSerializer},
        description="QR code for the bottle's label (vault barcode, or WV + bottle id).",
    )
    @action(detail=True, methods=['get'], url_path='label-qr')
    def label_qr(self, request, pk=None):
        from apps.bottles.services import generate_label_qr

        bottle = self.get_object()
        png = generate_label_qr(bottle_id=bottle.id, user=request.user)
        return HttpResponse(png, content_type='image/png')

    @extend_schema(
        request=None,
        responses={200: ClearCollectionResponseSerializer},
        description="Delete every bottle in the collection. Catalogue entries are kept.",
    )
    @action(detail=False, methods=['delete'])
    def clear(self, request):
        from apps.bottles.services import clear_collection

        deleted = clear_collection(user=request.user)
        return Response({
            'message': f'Successfully deleted {deleted} bottles from your collection',
            'deleted_count': deleted,
        })


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('filter', OpenApiTypes.STR, description='new, never, missing, date_range or all', default='new'),
        OpenApiParameter('start_date', OpenApiTypes.DATETIME, description='Start of date_range'),
        OpenApiParameter('end_date', OpenApiTypes.DATETIME, description='End of date_range'),
    ],
    responses={200: LabelQueueSerializer, 400: ErrorResponseSerializer},
    description="Bottles waiting for a label.",
    tags=['labels'],
)
@extend_schema(
    methods=['POST'],
    request=PrintSessionSerializer,
    responses={200: LabelCountSerializer, 400: ErrorResponseSerializer},
    description="Record a print session for the given bottles.",
    tags=['labels'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def label_bottles(request):
    """Label queue and print sessions using service layer."""
    from apps.bottles.services import get_bottles_needing_labels, record_print_session

    if request.method == 'POST':
        serializer = PrintSessionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Invalid bottle IDs'}, status=status.HTTP_400_BAD_REQUEST)

        updated = record_print_session(user=request.user, bottle_ids=serializer.validated_data['bottle_ids'])
        return Response({'count': updated})

    query = LabelQuerySerializer(data=request.query_params)
    if not query.is_valid():
        return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

    bottles = get_bottles_needing_labels(
        user=request.user,
        label_filter=query.validated_data['filter'],
        start=query.validated_data.get('start_date'),
        end=query.validated_data.get('end_date'),
    )

    return Response({
        'bottles': UserBottleSerializer(bottles, many=True).data,
        'last_print_session_date': request.user.last_print_session_date,
        'count': len(bottles),
    })


@extend_schema(
    responses={200: LabelCountSerializer},
    description="Number of bottles added since the last print session that still need a label.",
    tags=['labels'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def label_count(request):
    from apps.bottles.services import count_labels_needed

    return Response({'count': count_labels_needed(user=request.user)})


@extend_schema(
    responses={200: DashboardStatsSerializer},
    description="Collection summary: counts, value, recent additions and low stock.",
    tags=['dashboard'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    from apps.bottles.services import get_dashboard_stats

    return Response(DashboardStatsSerializer(get_dashboard_stats(user=request.user)).data)


@extend_schema(
    parameters=[OpenApiParameter('q', OpenApiTypes.STR, description='Filter areas containing this text')],
    responses={200: LocationAreasSerializer},
    description="Storage areas used in the collection.",
    tags=['locations'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_areas(request):
    from apps.bottles.services import get_location_areas

    areas = get_location_areas(user=request.user, query=request.query_params.get('q', ''))
    return Response({'areas': areas})


@extend_schema(
    parameters=[
        OpenApiParameter('area', OpenApiTypes.STR, description='Storage area'),
        OpenApiParameter('q', OpenApiTypes.STR, description='Filter bins containing this text'),
    ],
    responses={200: LocationBinsSerializer},
    description="Bins used within one storage area.",
    tags=['locations'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_bins(request):
    from apps.bottles.services import get_location_bins

    bins = get_location_bins(
        user=request.user,
        area=request.query_params.get('area', ''),
        query=request.query_params.get('q', ''),
    )
    return Response({'bins': bins})
