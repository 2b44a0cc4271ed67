from rest_framework import serializers
from decimal import Decimal
from .models import Pour, PourSession, PourLocation


class PourSerializer(serializers.ModelSerializer):
    """Pour with the bottle it came from."""

    bottle_name = serializers.CharField(source='user_bottle.master_bottle.name', read_only=True)
    session_name = serializers.CharField(source='session.name', read_only=True, default=None)

    class Meta:
        model = Pour
        fields = [
            'id',
            'user_bottle',
            'bottle_name',
            'session',
            'session_name',
            'poured_at',
            'amount',
            'rating',
            'notes',
            'location',
            'tags',
            'companions',
            'cost_per_pour',
            'created_at',
        ]
        read_only_fields = fields


class PourCreateSerializer(serializers.Serializer):
    user_bottle = serializers.UUIDField()
    amount = serializers.DecimalField(
        max_digits=4, decimal_places=2, min_value=Decimal('0.1'), max_value=Decimal('10')
    )
    poured_at = serializers.DateTimeField(required=False)
    rating = serializers.DecimalField(
        max_digits=3, decimal_places=1, min_value=Decimal('0'), max_value=Decimal('10'),
        required=False, allow_null=True,
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000, default='')
    location = serializers.ChoiceField(choices=PourLocation.choices, required=False, allow_blank=True, default='')
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, default=list)
    companions = serializers.ListField(child=serializers.CharField(max_length=100), required=False, default=list)
    session = serializers.UUIDField(required=False, allow_null=True)


class PourUpdateSerializer(serializers.Serializer):
    rating = serializers.DecimalField(
        max_digits=3, decimal_places=1, min_value=Decimal('0'), max_value=Decimal('10'),
        required=False, allow_null=True,
    )
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    location = serializers.ChoiceField(choices=PourLocation.choices, required=False, allow_blank=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    companions = serializers.ListField(child=serializers.CharField(max_length=100), required=False)


class PourSessionSerializer(serializers.ModelSerializer):
    """Session with its pours in time order."""

    is_open = serializers.BooleanField(read_only=True)
    pours = PourSerializer(many=True, read_only=True)

    class Meta:
        model = PourSession
        fields = [
            'id',
            'name',
            'started_at',
            'last_pour_at',
            'ended_at',
            'is_open',
            'location',
            'tags',
            'companions',
            'notes',
            'total_pours',
            'total_amount',
            'total_cost',
            'average_rating',
            'pours',
        ]
        read_only_fields = fields


class PourSessionUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    location = serializers.ChoiceField(choices=PourLocation.choices, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    companions = serializers.ListField(child=serializers.CharField(max_length=100), required=False)


class OrphanedPourSummarySerializer(serializers.Serializer):
    count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=8, decimal_places=2)
    first_pour_at = serializers.DateTimeField(allow_null=True)
    last_pour_at = serializers.DateTimeField(allow_null=True)


class PourSessionListResponseSerializer(serializers.Serializer):
    sessions = PourSessionSerializer(many=True)
    orphaned_pours = OrphanedPourSummarySerializer()


class SessionMaintenanceReportSerializer(serializers.Serializer):
    closed_sessions = serializers.IntegerField()
    assigned_pours = serializers.IntegerField()
