from rest_framework import serializers
from .models import User, USERNAME_PATTERN


class UserSerializer(serializers.ModelSerializer):
    """Current user's own profile, including privacy settings."""

    username = serializers.RegexField(
        USERNAME_PATTERN,
        max_length=20,
        required=False,
        allow_blank=True,
        allow_null=True,
        error_messages={'invalid': 'Username must be 3-20 lowercase letters, digits or underscores'},
    )

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'username',
            'display_name',
            'bio',
            'show_collection',
            'show_pours',
            'show_ratings',
            'last_print_session_date',
            'created_at',
            'last_login',
        ]
        read_only_fields = ['id', 'email', 'last_print_session_date', 'created_at', 'last_login']

    def to_internal_value(self, data):
        if isinstance(data.get('username'), str):
            data = data.copy()
            data['username'] = data['username'].strip().lower()
        return super().to_internal_value(data)


class UserPublicSerializer(serializers.ModelSerializer):
    """Public user info (for friends lists, cheers, profiles)."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'display_name', 'created_at']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()
