from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from config.exceptions import parse_uuid
from .serializers import (
    FriendshipSerializer,
    FriendRequestSerializer,
    PendingRequestsSerializer,
    PublicProfileSerializer,
    PublicBottleSerializer,
    CheersResponseSerializer,
    FriendSearchSerializer,
    FriendStatsSerializer,
    TopCompanionsSerializer,
    BottleFriendsSerializer,
    ActivityFeedSerializer,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


def _viewer(request):
    return request.user if request.user.is_authenticated else None


@extend_schema(responses={200: FriendshipSerializer(many=True)}, tags=['friends'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def friends(request):
    """Accepted friends of the current user."""
    from apps.social.services import get_friends

    friendships = get_friends(user=request.user)
    return Response(FriendshipSerializer(friendships, many=True, context={'user': request.user}).data)


@extend_schema(responses={200: PendingRequestsSerializer}, tags=['friends'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_requests(request):
    from apps.social.services import get_pending_requests

    pending = get_pending_requests(user=request.user)
    context = {'user': request.user}
    return Response({
        'incoming': FriendshipSerializer(pending['incoming'], many=True, context=context).data,
        'outgoing': FriendshipSerializer(pending['outgoing'], many=True, context=context).data,
    })


@extend_schema(
    request=FriendRequestSerializer,
    responses={201: FriendshipSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Send a friend request by recipient id, email or username.",
    tags=['friends'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_request(request):
    """Send friend request using service layer."""
    from apps.social.services import send_friend_request
    from apps.social.services.exceptions import (
        RecipientNotFoundError,
        RecipientProfileIncompleteError,
        SelfFriendRequestError,
        FriendshipExistsError,
    )

    serializer = FriendRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        friendship = send_friend_request(
            requester=request.user,
            recipient_id=data.get('recipient_id'),
            email=data.get('recipient_email'),
            username=data.get('recipient_username'),
        )
    except RecipientNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except (RecipientProfileIncompleteError, SelfFriendRequestError, FriendshipExistsError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        FriendshipSerializer(friendship, context={'user': request.user}).data,
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    request=None,
    responses={200: FriendshipSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    tags=['friends'],
)
@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def accept_request(request, friendship_id):
    from apps.social.services import accept_friend_request
    from apps.social.services.exceptions import FriendRequestNotFoundError

    try:
        friendship = accept_friend_request(
            friendship_id=parse_uuid(friendship_id, 'friendship'),
            user=request.user,
        )
    except FriendRequestNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(FriendshipSerializer(friendship, context={'user': request.user}).data)


@extend_schema(
    responses={204: None, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Remove a friend, or withdraw / decline a pending request.",
    tags=['friends'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def remove_friend(request, friendship_id):
    from apps.social.services import remove_friendship
    from apps.social.services.exceptions import FriendshipNotFoundError

    try:
        remove_friendship(friendship_id=parse_uuid(friendship_id, 'friendship'), user=request.user)
    except FriendshipNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    responses={200: PublicProfileSerializer, 404: ErrorResponseSerializer},
    description="Public profile. Stats follow the owner's privacy settings.",
    tags=['profiles'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def public_profile(request, username):
    from apps.social.services import get_public_profile
    from apps.social.services.exceptions import ProfileNotFoundError

    try:
        profile = get_public_profile(username=username, viewer=_viewer(request))
    except ProfileNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(profile)


@extend_schema(
    responses={200: PublicBottleSerializer(many=True), 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    tags=['profiles'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def public_collection(request, username):
    from apps.social.services import get_public_collection
    from apps.social.services.exceptions import ProfileNotFoundError, ProfilePrivateError

    try:
        collection = get_public_collection(username=username, viewer=_viewer(request))
    except ProfileNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ProfilePrivateError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    context = {'show_ratings': collection['show_ratings']}
    return Response(PublicBottleSerializer(collection['bottles'], many=True, context=context).data)


@extend_schema(
    request=None,
    responses={201: CheersResponseSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Raise a glass to a friend's pour.",
    tags=['friends'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cheer(request, pour_id):
    from apps.social.services import cheer_pour
    from apps.social.services.exceptions import (
        PourNotVisibleError,
        CannotCheerOwnPourError,
        AlreadyCheeredError,
    )

    try:
        count = cheer_pour(pour_id=parse_uuid(pour_id, 'pour'), user=request.user)
    except PourNotVisibleError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except (CannotCheerOwnPourError, AlreadyCheeredError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        {'message': 'Cheers added to pour', 'cheers_count': count},
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    parameters=[
        OpenApiParameter('q', OpenApiTypes.STR, description='Text to match against display name or username'),
        OpenApiParameter('limit', OpenApiTypes.INT, description='Maximum friends returned (default 10)'),
    ],
    responses={200: FriendSearchSerializer, 400: ErrorResponseSerializer},
    description="Search friends and suggest recent drinking companions.",
    tags=['friends'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def search(request):
    from apps.social.services import search_friends

    try:
        limit = int(request.query_params.get('limit', 10))
    except ValueError:
        return Response({'error': 'Invalid limit'}, status=status.HTTP_400_BAD_REQUEST)

    results = search_friends(user=request.user, query=request.query_params.get('q', ''), limit=max(limit, 1))
    return Response(FriendSearchSerializer(results).data)


@extend_schema(
    parameters=[OpenApiParameter('friend_id', OpenApiTypes.UUID, description='Stats for one friend')],
    responses={200: TopCompanionsSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Sessions shared with one friend, or the most frequent companions.",
    tags=['friends'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def companion_stats(request):
    from apps.social.services import get_companion_stats
    from apps.social.services.exceptions import FriendshipNotFoundError

    friend_id = request.query_params.get('friend_id')
    if not friend_id:
        return Response(TopCompanionsSerializer(get_companion_stats(user=request.user)).data)

    try:
        stats = get_companion_stats(user=request.user, friend_id=parse_uuid(friend_id, 'friend'))
    except FriendshipNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    return Response(FriendStatsSerializer(stats).data)


@extend_schema(
    responses={200: BottleFriendsSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Friends who own this catalogue bottle, most recently poured first.",
    tags=['friends'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bottle_friends(request, master_bottle_id):
    from apps.social.services import get_friends_with_bottle
    from apps.bottles.services.exceptions import MasterBottleNotFoundError

    try:
        result = get_friends_with_bottle(
            user=request.user,
            master_bottle_id=parse_uuid(master_bottle_id, 'bottle'),
        )
    except MasterBottleNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    result['total_friends_with_bottle'] = len(result['friends_with_bottle'])
    return Response(BottleFriendsSerializer(result).data)


@extend_schema(
    parameters=[
        OpenApiParameter('filter', OpenApiTypes.STR, description='all, pours, ratings or new_bottles', default='all'),
        OpenApiParameter('limit', OpenApiTypes.INT, description='Page size (default 50, at most 100)'),
        OpenApiParameter('offset', OpenApiTypes.INT, description='Items to skip'),
    ],
    responses={200: ActivityFeedSerializer, 400: ErrorResponseSerializer},
    description="Activity of the current user and their friends, newest first.",
    tags=['feed'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def feed(request):
    from apps.social.services import get_activity_feed
    from apps.social.services.exceptions import InvalidFeedFilterError

    try:
        limit = int(request.query_params.get('limit', 50))
        offset = int(request.query_params.get('offset', 0))
    except ValueError:
        return Response({'error': 'Invalid limit or offset'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        page = get_activity_feed(
            user=request.user,
            activity_filter=request.query_params.get('filter', 'all'),
            limit=limit,
            offset=offset,
        )
    except InvalidFeedFilterError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(ActivityFeedSerializer(page).data)
