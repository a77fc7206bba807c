from rest_framework import status, serializers as drf_serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsAdminRole
from .serializers import (
    AreaCodeCountSerializer,
    AreaCodeDeletionSerializer,
    AssignmentSerializer,
    AssignRequestSerializer,
    BulkImportResultSerializer,
    BulkImportSerializer,
    CallCreateSerializer,
    CallFilterSerializer,
    CallSerializer,
    CallStatsSerializer,
    CallUpdateSerializer,
    FollowUpCreateSerializer,
    FollowUpFilterSerializer,
    FollowUpSerializer,
    FollowUpUpdateSerializer,
    PhoneNumberCreateSerializer,
    PhoneNumberFilterSerializer,
    PhoneNumberSerializer,
    PhoneNumberStatsSerializer,
    PhoneNumberUpdateSerializer,
    QuickCallSerializer,
)
from . import services
from .services import (
    AlreadyCalledError,
    AssigneeNotFoundError,
    CallNotFoundError,
    CallsAccessDeniedError,
    DuplicatePhoneNumberError,
    FollowUpNotFoundError,
    InvalidAssigneeError,
    NoAvailableNumbersError,
    PhoneNumberInUseError,
    PhoneNumberNotFoundError,
    PhoneNumberValidationError,
)

ERROR_STATUS = {
    PhoneNumberValidationError: status.HTTP_400_BAD_REQUEST,
    PhoneNumberInUseError: status.HTTP_400_BAD_REQUEST,
    NoAvailableNumbersError: status.HTTP_400_BAD_REQUEST,
    InvalidAssigneeError: status.HTTP_400_BAD_REQUEST,
    AlreadyCalledError: status.HTTP_400_BAD_REQUEST,
    CallsAccessDeniedError: status.HTTP_403_FORBIDDEN,
    PhoneNumberNotFoundError: status.HTTP_404_NOT_FOUND,
    AssigneeNotFoundError: status.HTTP_404_NOT_FOUND,
    CallNotFoundError: status.HTTP_404_NOT_FOUND,
    FollowUpNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicatePhoneNumberError: status.HTTP_409_CONFLICT,
}
HANDLED_ERRORS = tuple(ERROR_STATUS)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


ERROR_RESPONSES = {
    400: ErrorResponseSerializer,
    403: ErrorResponseSerializer,
    404: ErrorResponseSerializer,
}


def _error_response(exc):
    return Response({'error': str(exc)}, status=ERROR_STATUS[type(exc)])


class PhoneNumberPagination(PageNumberPagination):
    """Custom pagination for phone numbers."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 500


# ==========================================
# PHONE NUMBERS
# ==========================================

@extend_schema(
    methods=['GET'],
    parameters=[PhoneNumberFilterSerializer],
    responses={200: PhoneNumberSerializer(many=True)},
    description="Paginated phone numbers. Callers only see numbers assigned to them.",
    tags=['phone-numbers'],
)
@extend_schema(
    methods=['POST'],
    request=PhoneNumberCreateSerializer,
    responses={201: PhoneNumberSerializer, 409: ErrorResponseSerializer, **ERROR_RESPONSES},
    description="Add a phone number to the available pool. Admin only.",
    tags=['phone-numbers'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def phone_number_list(request):
    """List or add phone numbers."""
    if request.method == 'GET':
        filters = PhoneNumberFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        queryset = services.list_phone_numbers(user=request.user, **filters.validated_data)

        paginator = PhoneNumberPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(PhoneNumberSerializer(page, many=True).data)

    serializer = PhoneNumberCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        number = services.create_phone_number(user=request.user, **serializer.validated_data)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(PhoneNumberSerializer(number).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=BulkImportSerializer,
    responses={201: BulkImportResultSerializer, **ERROR_RESPONSES},
    description=(
        "Import up to 10000 phone numbers in batches. Invalid entries and duplicates "
        "are reported without aborting the import. Admin only."
    ),
    tags=['phone-numbers'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def phone_number_bulk(request):
    """Bulk import phone numbers."""
    serializer = BulkImportSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = services.bulk_import_phone_numbers(
            user=request.user,
            entries=serializer.validated_data['phone_numbers']
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(BulkImportResultSerializer(result).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=AssignRequestSerializer,
    responses={200: AssignmentSerializer, **ERROR_RESPONSES},
    description="Assign available numbers to a caller, optionally from one area code. Admin only.",
    tags=['phone-numbers'],
)
@api_view(['POST'])
@permission_classes([IsAdminRole])
def phone_number_assign(request):
    """Assign phone numbers to a caller."""
    serializer = AssignRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        assignment = services.assign_phone_numbers(
            user=request.user,
            assignee_id=data['user_id'],
            count=data['count'],
            area_code=data.get('area_code') or None
        )
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(AssignmentSerializer(assignment).data)


@extend_schema(
    responses={200: AreaCodeCountSerializer(many=True), **ERROR_RESPONSES},
    description="Available, unassigned numbers per area code. Admin only.",
    tags=['phone-numbers'],
)
@api_view(['GET'])
@permission_classes([IsAdminRole])
def area_code_list(request):
    """Get available counts per area code."""
    try:
        area_codes = services.list_area_codes(user=request.user)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(AreaCodeCountSerializer(area_codes, many=True).data)


@extend_schema(
    parameters=[
        OpenApiParameter('force', bool, description='Also delete numbers in use or recently called'),
    ],
    responses={
        200: AreaCodeDeletionSerializer,
        207: AreaCodeDeletionSerializer,
        **ERROR_RESPONSES,
    },
    description=(
        "Delete every number of an area code. Responds 207 when some deletions "
        "failed and 400 when nothing was deleted. Admin only."
    ),
    tags=['phone-numbers'],
)
@api_view(['DELETE'])
@permission_classes([IsAdminRole])
def area_code_delete(request, area_code):
    """Delete phone numbers by area code."""
    force = request.query_params.get('force') == 'true'
    try:
        result = services.delete_by_area_code(user=request.user, area_code=area_code, force=force)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    if result.error_count:
        response_status = status.HTTP_207_MULTI_STATUS
    elif not result.deleted_count:
        response_status = status.HTTP_400_BAD_REQUEST
    else:
        response_status = status.HTTP_200_OK
    return Response(AreaCodeDeletionSerializer(result).data, status=response_status)


@extend_schema(
    responses={200: PhoneNumberStatsSerializer},
    description="Phone number counts per status. Callers get counts over their own numbers.",
    tags=['phone-numbers'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def phone_number_stats(request):
    """Get phone number statistics."""
    return Response(PhoneNumberStatsSerializer(services.phone_number_stats(user=request.user)).data)


@extend_schema(
    methods=['GET'],
    responses={200: PhoneNumberSerializer, **ERROR_RESPONSES},
    tags=['phone-numbers'],
)
@extend_schema(
    methods=['PATCH'],
    request=PhoneNumberUpdateSerializer,
    responses={200: PhoneNumberSerializer, **ERROR_RESPONSES},
    description="Update name and address. Admin only.",
    tags=['phone-numbers'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a number unless it is in use or was called in the last 24 hours. Admin only.",
    tags=['phone-numbers'],
)
@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def phone_number_detail(request, phone_number):
    """Get, update or delete a phone number."""
    try:
        if request.method == 'GET':
            number = services.get_phone_number(phone_number=phone_number, user=request.user)
        elif request.method == 'PATCH':
            serializer = PhoneNumberUpdateSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            number = services.update_phone_number(
                phone_number=phone_number,
                user=request.user,
                **serializer.validated_data
            )
        else:
            services.delete_phone_number(phone_number=phone_number, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(PhoneNumberSerializer(number).data)


# ==========================================
# CALLS
# ==========================================

@extend_schema(
    methods=['GET'],
    parameters=[CallFilterSerializer],
    responses={200: CallSerializer(many=True)},
    description="List calls, newest first. Callers only see their own calls.",
    tags=['calls'],
)
@extend_schema(
    methods=['POST'],
    request=CallCreateSerializer,
    responses={201: CallSerializer, **ERROR_RESPONSES},
    description="Start a call to a number assigned to you. Each number is called once per caller.",
    tags=['calls'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def call_list(request):
    """List or start calls."""
    if request.method == 'GET':
        filters = CallFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        calls = services.list_calls(user=request.user, **filters.validated_data)
        return Response(CallSerializer(calls, many=True).data)

    serializer = CallCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        call = services.create_call(user=request.user, **serializer.validated_data)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(CallSerializer(call).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=QuickCallSerializer,
    responses={201: CallSerializer, **ERROR_RESPONSES},
    description="Start a call to the next uncalled number, assigned numbers first.",
    tags=['calls'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def call_quick_create(request):
    """Start a call with an auto-selected number."""
    serializer = QuickCallSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        call = services.quick_create_call(user=request.user, **serializer.validated_data)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(CallSerializer(call).data, status=status.HTTP_201_CREATED)


@extend_schema(
    parameters=[
        OpenApiParameter('user_id', str, description='Admins: stats of one caller'),
    ],
    responses={200: CallStatsSerializer},
    description="Call statistics. Callers get their own; admins get everyone's or one caller's.",
    tags=['calls'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def call_stats(request):
    """Get call statistics."""
    filters = CallFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    stats = services.call_stats(user=request.user, user_id=filters.validated_data.get('user_id'))
    return Response(CallStatsSerializer(stats).data)


@extend_schema(
    methods=['GET'],
    responses={200: CallSerializer, **ERROR_RESPONSES},
    tags=['calls'],
)
@extend_schema(
    methods=['PATCH'],
    request=CallUpdateSerializer,
    responses={200: CallSerializer, **ERROR_RESPONSES},
    description="Update a call. Completing it releases its number.",
    tags=['calls'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a call. Admin only.",
    tags=['calls'],
)
@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def call_detail(request, call_id):
    """Get, update or delete a call."""
    try:
        if request.method == 'GET':
            call = services.get_call(call_id=call_id, user=request.user)
        elif request.method == 'PATCH':
            serializer = CallUpdateSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            call = services.update_call(
                call_id=call_id,
                user=request.user,
                **serializer.validated_data
            )
        else:
            services.delete_call(call_id=call_id, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(CallSerializer(call).data)


# ==========================================
# FOLLOW-UPS
# ==========================================

@extend_schema(
    methods=['GET'],
    parameters=[FollowUpFilterSerializer],
    responses={200: FollowUpSerializer(many=True)},
    description="List follow-ups by scheduled date. Callers only see their own.",
    tags=['follow-ups'],
)
@extend_schema(
    methods=['POST'],
    request=FollowUpCreateSerializer,
    responses={201: FollowUpSerializer, **ERROR_RESPONSES},
    description="Schedule a follow-up for one of your calls.",
    tags=['follow-ups'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def follow_up_list(request):
    """List or schedule follow-ups."""
    if request.method == 'GET':
        filters = FollowUpFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        follow_ups = services.list_follow_ups(user=request.user, **filters.validated_data)
        return Response(FollowUpSerializer(follow_ups, many=True).data)

    serializer = FollowUpCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        follow_up = services.create_follow_up(user=request.user, **serializer.validated_data)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(FollowUpSerializer(follow_up).data, status=status.HTTP_201_CREATED)


@extend_schema(
    methods=['GET'],
    responses={200: FollowUpSerializer, **ERROR_RESPONSES},
    tags=['follow-ups'],
)
@extend_schema(
    methods=['PATCH'],
    request=FollowUpUpdateSerializer,
    responses={200: FollowUpSerializer, **ERROR_RESPONSES},
    tags=['follow-ups'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, **ERROR_RESPONSES},
    description="Delete a follow-up. Admin only.",
    tags=['follow-ups'],
)
@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def follow_up_detail(request, follow_up_id):
    """Get, update or delete a follow-up."""
    try:
        if request.method == 'GET':
            follow_up = services.get_follow_up(follow_up_id=follow_up_id, user=request.user)
        elif request.method == 'PATCH':
            serializer = FollowUpUpdateSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            follow_up = services.update_follow_up(
                follow_up_id=follow_up_id,
                user=request.user,
                **serializer.validated_data
            )
        else:
            services.delete_follow_up(follow_up_id=follow_up_id, user=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except HANDLED_ERRORS as e:
        return _error_response(e)

    return Response(FollowUpSerializer(follow_up).data)
