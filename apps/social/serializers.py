from rest_framework import serializers
from apps.accounts.serializers import UserPublicSerializer
from apps.bottles.serializers import MasterBottleMinimalSerializer
from apps.bottles.models import UserBottle
from .models import Friendship


class FriendshipSerializer(serializers.ModelSerializer):
    """
    Friendship as seen by one of its users.

    ``friend`` is the other party; pass the viewing user as ``context['user']``.
    """

    friend = serializers.SerializerMethodField()

    class Meta:
        model = Friendship
        fields = ['id', 'friend', 'status', 'accepted_at', 'created_at']
        read_only_fields = fields

    def get_friend(self, obj):
        return UserPublicSerializer(obj.other_user(self.context['user'])).data


class FriendRequestSerializer(serializers.Serializer):
    """Exactly one way of identifying the recipient."""

    recipient_id = serializers.UUIDField(required=False)
    recipient_email = serializers.EmailField(required=False)
    recipient_username = serializers.CharField(required=False, max_length=20)

    def validate(self, attrs):
        if not any(attrs.get(key) for key in ('recipient_id', 'recipient_email', 'recipient_username')):
            raise serializers.ValidationError("Provide recipient_id, recipient_email or recipient_username")
        return attrs


class PendingRequestsSerializer(serializers.Serializer):
    incoming = FriendshipSerializer(many=True)
    outgoing = FriendshipSerializer(many=True)


class PublicProfileSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    username = serializers.CharField()
    display_name = serializers.CharField()
    bio = serializers.CharField()
    created_at = serializers.DateTimeField()
    is_own_profile = serializers.BooleanField()
    is_friend = serializers.BooleanField()
    friendship_status = serializers.CharField(allow_null=True)
    stats = serializers.DictField(required=False)
    privacy = serializers.DictField(required=False)


class PublicBottleSerializer(serializers.ModelSerializer):
    """Collection entry as shown to other users."""

    master_bottle = MasterBottleMinimalSerializer(read_only=True)

    class Meta:
        model = UserBottle
        fields = ['id', 'master_bottle', 'status', 'fill_level', 'quantity', 'average_rating']
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self.context.get('show_ratings', False):
            data.pop('average_rating')
        return data


class CheersResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    cheers_count = serializers.IntegerField()


class FriendSearchResultSerializer(serializers.Serializer):
    friend = UserPublicSerializer()
    session_count = serializers.IntegerField()


class FriendSearchSerializer(serializers.Serializer):
    friends = FriendSearchResultSerializer(many=True)
    recent_companions = serializers.ListField(child=serializers.CharField())


class FriendStatsSerializer(serializers.Serializer):
    friend = UserPublicSerializer()
    session_count = serializers.IntegerField()
    first_session = serializers.DateTimeField(allow_null=True)
    last_session = serializers.DateTimeField(allow_null=True)
    total_pours = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class CompanionStatsSerializer(serializers.Serializer):
    name = serializers.CharField()
    session_count = serializers.IntegerField()
    last_session = serializers.DateTimeField()
    total_pours = serializers.IntegerField()


class TopCompanionsSerializer(serializers.Serializer):
    top_companions = CompanionStatsSerializer(many=True)


class FriendBottleSerializer(serializers.ModelSerializer):
    """A friend's copy of a bottle; the rating follows their show_ratings setting."""

    class Meta:
        model = UserBottle
        fields = ['id', 'status', 'fill_level', 'total_pours', 'average_rating', 'last_pour_date']
        read_only_fields = fields


class FriendWithBottleSerializer(serializers.Serializer):
    friend = UserPublicSerializer()
    bottle = serializers.SerializerMethodField()

    def get_bottle(self, obj):
        data = FriendBottleSerializer(obj['bottle']).data
        if not obj['show_ratings']:
            data.pop('average_rating')
        return data


class BottleFriendsSerializer(serializers.Serializer):
    master_bottle = MasterBottleMinimalSerializer()
    friends_with_bottle = FriendWithBottleSerializer(many=True)
    total_friends_with_bottle = serializers.IntegerField()


class ActivitySerializer(serializers.Serializer):
    type = serializers.CharField()
    id = serializers.UUIDField()
    user = UserPublicSerializer()
    occurred_at = serializers.DateTimeField()
    bottle_name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=4, decimal_places=2, allow_null=True)
    rating = serializers.DecimalField(max_digits=3, decimal_places=1, allow_null=True)
    cheers_count = serializers.IntegerField()
    has_cheered = serializers.BooleanField()
    is_own = serializers.BooleanField()


class ActivityFeedSerializer(serializers.Serializer):
    activities = ActivitySerializer(many=True)
    total = serializers.IntegerField()
    offset = serializers.IntegerField()
    limit = serializers.IntegerField()
    has_more = serializers.BooleanField()
