from django.conf import settings
from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.clients.exceptions import ClientNotFoundError, ClientAccessDeniedError
from .serializers import (
    CategoryChecklistSerializer,
    DocumentFileSerializer,
    DocumentUploadSerializer,
    DownloadUrlSerializer,
    GpsImageSerializer,
    GpsImageUploadSerializer,
)
from .services import (
    list_category_state,
    completion_from_states,
    upload_to_category,
    list_documents,
    list_client_documents,
    delete_document,
    get_download_url,
    upload_gps_image,
    list_gps_images,
    delete_gps_image,
    get_gps_image_url,
    # Exceptions
    DocumentValidationError,
    DocumentNotFoundError,
    CategoryCapacityExceededError,
    ExternalStorageError,
)

ERROR_STATUS = {
    DocumentValidationError: status.HTTP_400_BAD_REQUEST,
    CategoryCapacityExceededError: status.HTTP_400_BAD_REQUEST,
    DocumentNotFoundError: status.HTTP_404_NOT_FOUND,
    ClientNotFoundError: status.HTTP_404_NOT_FOUND,
    ClientAccessDeniedError: status.HTTP_403_FORBIDDEN,
    ExternalStorageError: status.HTTP_502_BAD_GATEWAY,
}
HANDLED_ERRORS = tuple(ERROR_STATUS)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


def _error_response(exc):
    return Response({'error': str(exc)}, status=ERROR_STATUS[type(exc)])


ERROR_RESPONSES = {
    400: ErrorResponseSerializer,
    403: ErrorResponseSerializer,
    404: ErrorResponseSerializer,
    502: ErrorResponseSerializer,
}


@extend_schema(
    responses={200: CategoryChecklistSerializer, **ERROR_RESPONSES},
    description="Document checklist of a client's step with completion percentage.",
    tags=['documents'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_checklist(request, client_id, step_number):
    """Get the category state of a step."""
    try:
        states = list_category_state(client_id=client_id, step_number=step_number, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(CategoryChecklistSerializer({
        'step_number': step_number,
        'completion_percentage': completion_from_states(states),
        'categories': states,
    }).data)


@extend_schema(
    methods=['GET'],
    responses={200: DocumentFileSerializer(many=True), **ERROR_RESPONSES},
    description="List the documents of one category.",
    tags=['documents'],
)
@extend_schema(
    methods=['POST'],
    request={'multipart/form-data': DocumentUploadSerializer},
    responses={201: DocumentFileSerializer(many=True), **ERROR_RESPONSES},
    description="Upload files (multipart key `files`) into a category.",
    tags=['documents'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def category_documents(request, client_id, step_number, category):
    """List or upload the documents of a category."""
    try:
        if request.method == 'GET':
            documents = list_documents(
                client_id=client_id,
                step_number=step_number,
                category=category,
                user=request.user
            )
            return Response(DocumentFileSerializer(documents, many=True).data)

        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        documents = upload_to_category(
            client_id=client_id,
            step_number=step_number,
            category=category,
            files=serializer.validated_data['files'],
            user=request.user
        )
        return Response(
            DocumentFileSerializer(documents, many=True).data,
            status=status.HTTP_201_CREATED
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)


@extend_schema(
    responses={200: DocumentFileSerializer(many=True), **ERROR_RESPONSES},
    description="All documents of a client grouped by step and category.",
    tags=['documents'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_documents(request, client_id):
    """Get every document of a client."""
    try:
        grouped = list_client_documents(client_id=client_id, user=request.user)
        data = {
            str(step): {
                category: DocumentFileSerializer(documents, many=True).data
                for category, documents in categories.items()
            }
            for step, categories in grouped.items()
        }
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data)


@extend_schema(
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a document and its stored file.",
    tags=['documents'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, document_id):
    """Delete a document."""
    try:
        delete_document(document_id=document_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    responses={200: DownloadUrlSerializer, **ERROR_RESPONSES},
    description="Get a signed, time-limited download URL for a document.",
    tags=['documents'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def document_download(request, document_id):
    """Get a signed download URL."""
    try:
        url = get_download_url(document_id=document_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response({'url': url, 'expires_in': settings.SOLARTRACK_SIGNED_URL_EXPIRY})


@extend_schema(
    parameters=[
        OpenApiParameter('category', str, description='Only images of this GPS category'),
    ],
    responses={200: GpsImageSerializer(many=True), **ERROR_RESPONSES},
    description="List GPS images of a client.",
    tags=['gps-images'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gps_image_list(request, client_id):
    """List GPS images."""
    try:
        images = list_gps_images(
            client_id=client_id,
            user=request.user,
            category=request.query_params.get('category')
        )
        data = GpsImageSerializer(images, many=True).data
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data)


@extend_schema(
    request={'multipart/form-data': GpsImageUploadSerializer},
    responses={201: GpsImageSerializer, **ERROR_RESPONSES},
    description="Upload a GPS image (multipart key `file`). Coordinates fall back to EXIF.",
    tags=['gps-images'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def gps_image_upload(request, client_id, category):
    """Upload a GPS image into a category."""
    serializer = GpsImageUploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        image = upload_gps_image(
            client_id=client_id,
            category=category,
            user=request.user,
            **serializer.validated_data
        )
        data = GpsImageSerializer(image).data
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a GPS image and its stored file.",
    tags=['gps-images'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def gps_image_detail(request, image_id):
    """Delete a GPS image."""
    try:
        delete_gps_image(image_id=image_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    responses={200: DownloadUrlSerializer, **ERROR_RESPONSES},
    description="Get a signed, time-limited URL for a GPS image.",
    tags=['gps-images'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gps_image_url(request, image_id):
    """Get a signed URL for a GPS image."""
    try:
        url = get_gps_image_url(image_id=image_id, user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response({'url': url, 'expires_in': settings.SOLARTRACK_SIGNED_URL_EXPIRY})
