from rest_framework import serializers

from apps.accounts.serializers import UserMinimalSerializer
from .models import DocumentFile, GpsImage
from .services.storage import signed_url


class CategoryStateSerializer(serializers.Serializer):
    """Checklist entry of one document category."""

    category = serializers.CharField()
    label = serializers.CharField()
    required = serializers.BooleanField()
    max_files = serializers.IntegerField()
    file_count = serializers.IntegerField()
    remaining_slots = serializers.IntegerField()
    state = serializers.CharField()


class CategoryChecklistSerializer(serializers.Serializer):
    step_number = serializers.IntegerField()
    completion_percentage = serializers.IntegerField()
    categories = CategoryStateSerializer(many=True)


class DocumentFileSerializer(serializers.ModelSerializer):
    """Stored document with a fresh signed URL."""

    uploaded_by = UserMinimalSerializer(read_only=True)
    url = serializers.SerializerMethodField()

    class Meta:
        model = DocumentFile
        fields = [
            'id',
            'client',
            'step_number',
            'category',
            'original_name',
            'size',
            'mime_type',
            'url',
            'uploaded_by',
            'uploaded_at',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return signed_url(obj.storage_key)


class GpsImageSerializer(serializers.ModelSerializer):
    """GPS image with coordinates and a fresh signed URL."""

    uploaded_by = UserMinimalSerializer(read_only=True)
    url = serializers.SerializerMethodField()

    class Meta:
        model = GpsImage
        fields = [
            'id',
            'client',
            'category',
            'original_name',
            'size',
            'mime_type',
            'url',
            'latitude',
            'longitude',
            'accuracy',
            'address',
            'captured_at',
            'has_valid_gps',
            'uploaded_by',
            'uploaded_at',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return signed_url(obj.storage_key)


class DocumentUploadSerializer(serializers.Serializer):
    """Multipart upload keyed ``files``."""

    files = serializers.ListField(child=serializers.FileField(), allow_empty=False)


class GpsImageUploadSerializer(serializers.Serializer):
    """Multipart upload keyed ``file`` with optional device coordinates."""

    file = serializers.FileField()
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)
    accuracy = serializers.FloatField(min_value=0, required=False)
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    timestamp = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if ('latitude' in attrs) != ('longitude' in attrs):
            raise serializers.ValidationError('Latitude and longitude must be given together')
        return attrs


class DownloadUrlSerializer(serializers.Serializer):
    url = serializers.CharField()
    expires_in = serializers.IntegerField()
