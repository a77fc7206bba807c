"""
GPS-tagged installation photos.

Coordinates come from the request when given, otherwise from the image's
EXIF GPS block.
"""

import logging
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from PIL import Image, UnidentifiedImageError

from apps.accounts.models import User
from apps.clients.permissions import get_accessible_client, user_can_access_client
from apps.clients.exceptions import ClientAccessDeniedError
from apps.documents.categories import GPS_CATEGORIES, GPS_STEP_NUMBER
from apps.documents.models import GpsImage

from .document_management import discard_stored_files
from .exceptions import (
    CategoryCapacityExceededError,
    DocumentNotFoundError,
    DocumentValidationError,
)
from .storage import delete_stored_file, signed_url, store_file, validate_uploads

logger = logging.getLogger(__name__)

GPS_IFD = 0x8825

# EXIF GPS tags
GPS_LATITUDE_REF = 1
GPS_LATITUDE = 2
GPS_LONGITUDE_REF = 3
GPS_LONGITUDE = 4
GPS_TIME_STAMP = 7
GPS_DATE_STAMP = 29
GPS_H_POSITIONING_ERROR = 31


def _image_types() -> list:
    return [t for t in settings.SOLARTRACK_ALLOWED_UPLOAD_TYPES if t.startswith('image/')]


def _to_degrees(value) -> float:
    degrees, minutes, seconds = (float(part) for part in value)
    return degrees + minutes / 60 + seconds / 3600


def _ref(value) -> str:
    if isinstance(value, bytes):
        value = value.decode('ascii', errors='ignore')
    return (value or '').strip().upper()


def _exif_timestamp(gps: dict) -> Optional[datetime]:
    date_stamp = gps.get(GPS_DATE_STAMP)
    if not date_stamp:
        return None
    try:
        day = datetime.strptime(date_stamp, '%Y:%m:%d')
        hours, minutes, seconds = (int(float(part)) for part in gps.get(GPS_TIME_STAMP, (0, 0, 0)))
        return day.replace(hour=hours, minute=minutes, second=seconds, tzinfo=dt_timezone.utc)
    except (TypeError, ValueError, ZeroDivisionError):
        logger.warning("Ignoring malformed GPS timestamp %r %r", date_stamp, gps.get(GPS_TIME_STAMP))
        return None


def extract_exif_gps(file) -> dict:
    """
    Read coordinates from an image's EXIF GPS block.

    Returns:
        Dictionary with latitude, longitude and, when present, accuracy and
        timestamp. Empty when the image carries no usable GPS data.

    Raises:
        DocumentValidationError: If the file is not a readable image
    """
    try:
        file.seek(0)
        with Image.open(file) as image:
            gps = dict(image.getexif().get_ifd(GPS_IFD))
    except (UnidentifiedImageError, OSError) as e:
        raise DocumentValidationError(f"{file.name} is not a readable image") from e
    finally:
        file.seek(0)

    if GPS_LATITUDE not in gps or GPS_LONGITUDE not in gps:
        return {}

    try:
        latitude = _to_degrees(gps[GPS_LATITUDE])
        longitude = _to_degrees(gps[GPS_LONGITUDE])
    except (TypeError, ValueError, ZeroDivisionError):
        logger.warning("Ignoring malformed GPS coordinates in %s", file.name)
        return {}

    if _ref(gps.get(GPS_LATITUDE_REF)) == 'S':
        latitude = -latitude
    if _ref(gps.get(GPS_LONGITUDE_REF)) == 'W':
        longitude = -longitude

    result = {'latitude': latitude, 'longitude': longitude}
    if GPS_H_POSITIONING_ERROR in gps:
        result['accuracy'] = float(gps[GPS_H_POSITIONING_ERROR])
    timestamp = _exif_timestamp(gps)
    if timestamp:
        result['timestamp'] = timestamp
    return result


def is_valid_gps(latitude, longitude) -> bool:
    """Coordinates are valid when both exist, are in range and are not (0, 0)."""
    if latitude is None or longitude is None:
        return False
    latitude, longitude = float(latitude), float(longitude)
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return False
    return not (latitude == 0 and longitude == 0)


def _coordinate(value) -> Decimal:
    return Decimal(str(round(float(value), 6)))


def upload_gps_image(
    *,
    client_id: UUID,
    category: str,
    file,
    user: User,
    latitude=None,
    longitude=None,
    accuracy: Optional[float] = None,
    address: str = '',
    timestamp: Optional[datetime] = None
) -> GpsImage:
    """
    Upload an installation photo to a GPS category.

    Args:
        client_id: Owning client
        category: GPS category key
        file: Uploaded image
        user: Acting user
        latitude, longitude: Coordinates from the device, if known
        accuracy: Device accuracy in meters
        address: Reverse-geocoded address
        timestamp: Capture time

    Returns:
        Created GpsImage instance

    Raises:
        DocumentValidationError: If category is unknown or file is not an allowed image
        CategoryCapacityExceededError: If the category already holds the maximum
        ClientNotFoundError: If client doesn't exist
        ClientAccessDeniedError: If user has no access
        ExternalStorageError: If the object storage fails
    """
    if category not in GPS_CATEGORIES:
        raise DocumentValidationError(f"Unknown GPS image category '{category}'")
    validate_uploads([file], allowed_types=_image_types())
    if (latitude is None) != (longitude is None):
        raise DocumentValidationError('Latitude and longitude must be given together')

    if latitude is None or longitude is None:
        exif = extract_exif_gps(file)
        latitude = exif.get('latitude')
        longitude = exif.get('longitude')
        accuracy = accuracy if accuracy is not None else exif.get('accuracy')
        timestamp = timestamp or exif.get('timestamp')

    has_valid_gps = is_valid_gps(latitude, longitude)
    max_images = settings.SOLARTRACK_GPS_MAX_IMAGES_PER_CATEGORY

    with transaction.atomic():
        client = get_accessible_client(client_id=client_id, user=user, for_update=True)

        existing = GpsImage.objects.filter(client=client, category=category).count()
        if existing >= max_images:
            raise CategoryCapacityExceededError(
                f"{GPS_CATEGORIES[category]} accepts at most {max_images} images"
            )

        key = store_file(file, prefix=f"clients/{client.id}/step{GPS_STEP_NUMBER}/gps/{category}")
        try:
            image = GpsImage.objects.create(
                client=client,
                category=category,
                original_name=file.name,
                storage_key=key,
                size=file.size,
                mime_type=file.content_type,
                uploaded_by=user,
                latitude=_coordinate(latitude) if has_valid_gps else None,
                longitude=_coordinate(longitude) if has_valid_gps else None,
                accuracy=accuracy,
                address=address or '',
                captured_at=timestamp,
                has_valid_gps=has_valid_gps,
            )
        except Exception:
            discard_stored_files([key])
            raise

    logger.info(
        "Uploaded GPS image %s for client %s/%s (valid GPS: %s)",
        image.id, client.id, category, has_valid_gps
    )
    return image


def list_gps_images(*, client_id: UUID, user: User, category: Optional[str] = None) -> QuerySet:
    """List a client's GPS images, optionally of one category."""
    client = get_accessible_client(client_id=client_id, user=user)
    queryset = GpsImage.objects.filter(client=client)
    if category:
        if category not in GPS_CATEGORIES:
            raise DocumentValidationError(f"Unknown GPS image category '{category}'")
        queryset = queryset.filter(category=category)
    return queryset.select_related('uploaded_by').order_by('category', 'uploaded_at')


def get_gps_image(*, image_id: UUID, user: User) -> GpsImage:
    """
    Raises:
        DocumentNotFoundError: If image doesn't exist
        ClientAccessDeniedError: If user has no access to its client
    """
    try:
        image = GpsImage.objects.select_related('client').get(id=image_id)
    except GpsImage.DoesNotExist:
        raise DocumentNotFoundError(f"GPS image {image_id} not found")

    if not user_can_access_client(user, image.client):
        raise ClientAccessDeniedError("Access denied")
    return image


def get_gps_image_url(*, image_id: UUID, user: User) -> str:
    """Return a fresh signed URL for a GPS image."""
    return signed_url(get_gps_image(image_id=image_id, user=user).storage_key)


def delete_gps_image(*, image_id: UUID, user: User) -> None:
    """Delete a GPS image: the stored object first, then the record."""
    image = get_gps_image(image_id=image_id, user=user)
    delete_stored_file(image.storage_key)
    image.delete()
    logger.info("Deleted GPS image %s of client %s", image_id, image.client_id)
