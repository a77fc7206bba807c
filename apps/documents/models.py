# ==========================================
# apps/documents/models.py
# ==========================================

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
import uuid

from apps.clients.step_templates import FIRST_STEP, LAST_STEP


class StoredFile(models.Model):
    """
    Metadata of a file kept in the ``documents`` object storage.

    ``storage_key`` is the object name inside the storage; URLs are never
    persisted and are resolved (signed) on access.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    original_name = models.CharField(max_length=255)
    storage_key = models.CharField(max_length=500, unique=True)
    size = models.PositiveIntegerField(help_text='Bytes')
    mime_type = models.CharField(max_length=100)
    uploaded_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='+'
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def __str__(self):
        return self.original_name


class DocumentFile(StoredFile):
    """A file uploaded into one category of a client's step."""

    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.CASCADE,
        related_name='documents'
    )
    step_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(FIRST_STEP), MaxValueValidator(LAST_STEP)]
    )
    category = models.CharField(max_length=100)

    class Meta:
        db_table = 'document_files'
        indexes = [
            models.Index(fields=['client', 'step_number', 'category'], name='document_fi_client_2f6c1a_idx'),
        ]
        ordering = ['uploaded_at']


class GpsImage(StoredFile):
    """
    Installation progress photo with optional geocoordinates.

    ``has_valid_gps`` is true only when both coordinates are present and
    within range.
    """

    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.CASCADE,
        related_name='gps_images'
    )
    category = models.CharField(max_length=100)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    accuracy = models.FloatField(null=True, blank=True, help_text='Meters')
    address = models.CharField(max_length=500, blank=True)
    captured_at = models.DateTimeField(null=True, blank=True)
    has_valid_gps = models.BooleanField(default=False)

    class Meta:
        db_table = 'gps_images'
        indexes = [
            models.Index(fields=['client', 'category'], name='gps_images_client_8e3d47_idx'),
        ]
        ordering = ['uploaded_at']
