from rest_framework import serializers
from decimal import Decimal
from .models import MasterBottle, UserBottle, FillLevelReason
from .services import LABEL_FILTERS


class MasterBottleSerializer(serializers.ModelSerializer):
    """Catalogue entry."""

    class Meta:
        model = MasterBottle
        fields = [
            'id',
            'name',
            'brand',
            'distillery',
            'region',
            'category',
            'age',
            'proof',
            'msrp',
            'description',
            'created_at',
        ]
        read_only_fields = ['id', 'created_at']
        # Duplicates are detected by the service on normalized values
        validators = []

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Bottle name is required')
        return value


class MasterBottleMinimalSerializer(serializers.ModelSerializer):
    """Minimal catalogue info for nested serialization."""

    class Meta:
        model = MasterBottle
        fields = ['id', 'name', 'brand', 'distillery', 'category', 'age', 'proof']
        read_only_fields = fields


class UserBottleSerializer(serializers.ModelSerializer):
    """A bottle in the user's collection."""

    master_bottle_detail = MasterBottleMinimalSerializer(source='master_bottle', read_only=True)

    class Meta:
        model = UserBottle
        fields = [
            'id',
            'master_bottle',
            'master_bottle_detail',
            'purchase_date',
            'purchase_price',
            'quantity',
            'location_area',
            'location_bin',
            'barcode',
            'vault_barcode',
            'status',
            'open_date',
            'fill_level',
            'total_pours',
            'average_rating',
            'last_pour_date',
            'last_label_printed_at',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'master_bottle_detail',
            'status',
            'fill_level',
            'total_pours',
            'average_rating',
            'last_pour_date',
            'last_label_printed_at',
            'created_at',
            'updated_at',
        ]


class UserBottleCreateSerializer(serializers.ModelSerializer):
    """Add a catalogue bottle to the collection."""

    master_bottle = serializers.UUIDField()

    class Meta:
        model = UserBottle
        fields = [
            'master_bottle',
            'purchase_date',
            'purchase_price',
            'quantity',
            'location_area',
            'location_bin',
            'barcode',
            'vault_barcode',
            'open_date',
            'notes',
        ]


class UserBottleUpdateSerializer(serializers.ModelSerializer):
    """Editable bottle details; the catalogue reference cannot change."""

    class Meta:
        model = UserBottle
        fields = [
            'purchase_date',
            'purchase_price',
            'quantity',
            'location_area',
            'location_bin',
            'barcode',
            'vault_barcode',
            'open_date',
            'notes',
        ]


class FillLevelSerializer(serializers.Serializer):
    fill_level = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0'), max_value=Decimal('100')
    )
    reason = serializers.ChoiceField(choices=FillLevelReason.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OpenBottleSerializer(serializers.Serializer):
    open_date = serializers.DateTimeField(required=False)


class LabelQuerySerializer(serializers.Serializer):
    """Query parameters of the label queue."""

    filter = serializers.CharField(required=False, default='new')
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)

    def validate_filter(self, value):
        # Accept the camelCase spelling used by older clients
        value = 'date_range' if value == 'dateRange' else value
        if value not in LABEL_FILTERS:
            raise serializers.ValidationError(f"Must be one of: {', '.join(LABEL_FILTERS)}")
        return value

    def validate(self, attrs):
        if attrs['filter'] == 'date_range' and not (attrs.get('start_date') and attrs.get('end_date')):
            raise serializers.ValidationError({'start_date': 'start_date and end_date are required for date_range'})
        return attrs


class PrintSessionSerializer(serializers.Serializer):
    bottle_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class LabelQueueSerializer(serializers.Serializer):
    bottles = UserBottleSerializer(many=True)
    last_print_session_date = serializers.DateTimeField(allow_null=True)
    count = serializers.IntegerField()


class LabelCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()


class DashboardBottleSerializer(serializers.ModelSerializer):
    """Compact collection entry for dashboard lists."""

    name = serializers.CharField(source='master_bottle.name', read_only=True)
    distillery = serializers.CharField(source='master_bottle.distillery', read_only=True)

    class Meta:
        model = UserBottle
        fields = [
            'id',
            'name',
            'distillery',
            'quantity',
            'status',
            'fill_level',
            'location_area',
            'location_bin',
            'open_date',
            'created_at',
        ]
        read_only_fields = fields


class ValuedBottleSerializer(serializers.Serializer):
    bottle = DashboardBottleSerializer()
    total_value = serializers.DecimalField(max_digits=12, decimal_places=2)


class CollectionCountsSerializer(serializers.Serializer):
    total_bottles = serializers.IntegerField()
    total_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    open_bottles = serializers.IntegerField()
    unique_bottles = serializers.IntegerField()
    locations = serializers.IntegerField()
    low_stock_bottles = serializers.IntegerField()


class DashboardStatsSerializer(serializers.Serializer):
    stats = CollectionCountsSerializer()
    recent_bottles = DashboardBottleSerializer(many=True)
    top_valued_bottles = ValuedBottleSerializer(many=True)
    low_stock_bottles = DashboardBottleSerializer(many=True)


class LocationAreasSerializer(serializers.Serializer):
    areas = serializers.ListField(child=serializers.CharField())


class LocationBinsSerializer(serializers.Serializer):
    bins = serializers.ListField(child=serializers.CharField())
