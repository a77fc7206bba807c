from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsAdminRole
from apps.documents.services import ExternalStorageError
from .serializers import (
    ClientSerializer,
    ClientCreateSerializer,
    ClientUpdateSerializer,
    ClientFilterSerializer,
    StepFilterSerializer,
    ClientStepSerializer,
    ClientSubStepSerializer,
    StepUpdateSerializer,
    SubStepUpdateSerializer,
    StepTemplateSerializer,
    ClientStatsSerializer,
    StepDataResponseSerializer,
    STEP_DATA_SERIALIZERS,
)
from .step_templates import STEP_TEMPLATES
from .services import (
    create_client,
    get_client,
    update_client,
    delete_client,
    list_clients,
    get_client_stats,
    list_steps,
    get_step,
    update_step,
    list_sub_steps,
    get_sub_step,
    update_sub_step,
    get_step_data,
    update_step_data,
    # Exceptions
    ClientNotFoundError,
    StepNotFoundError,
    SubStepNotFoundError,
    ClientAccessDeniedError,
    InvalidStepError,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class ClientPagination(PageNumberPagination):
    """Custom pagination for clients."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ClientViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Client operations.

    All business logic is handled by services.

    list: Clients visible to the user (with filters)
    create: Create a client with its five workflow steps
    retrieve: Get a specific client
    partial_update: Update client details
    destroy: Delete a client and everything attached to it (admin only)
    """

    serializer_class = ClientSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = ClientPagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        """
        Filter clients based on query parameters.

        Filters:
        - status: active/completed/on-hold/cancelled
        - assigned_to: UUID of assignee
        - current_step: 1-5
        - name: Substring of the name
        - mobile: Substring of the mobile number
        - created_at_start / created_at_end: Inclusive creation dates
        """
        filters = ClientFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return list_clients(user=self.request.user, **filters.validated_data)

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return ClientCreateSerializer
        elif self.action == 'partial_update':
            return ClientUpdateSerializer
        return ClientSerializer

    def get_permissions(self):
        """Set permissions based on action."""
        if self.action == 'destroy':
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    def create(self, request, *args, **kwargs):
        """Create a new client."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data.copy()
        assigned_to = data.pop('assigned_to', request.user)

        try:
            client = create_client(assigned_to=assigned_to, created_by=request.user, **data)
        except ClientAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        """Get a single client."""
        try:
            client = get_client(client_id=kwargs['pk'], user=request.user)
        except ClientNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ClientAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(ClientSerializer(client).data)

    def partial_update(self, request, *args, **kwargs):
        """Update client details."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            client = update_client(
                client_id=kwargs['pk'],
                user=request.user,
                **serializer.validated_data
            )
        except ClientNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ClientAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(ClientSerializer(client).data)

    def destroy(self, request, *args, **kwargs):
        """Delete a client."""
        try:
            delete_client(client_id=kwargs['pk'], user=request.user)
        except ClientNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ClientAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except ExternalStorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(parameters=[StepFilterSerializer], responses={200: ClientStepSerializer(many=True)})
    @action(detail=True, methods=['get'])
    def steps(self, request, pk=None):
        """Get the workflow steps of a client (?status=, including overdue)."""
        filters = StepFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        try:
            steps = list_steps(client_id=pk, user=request.user, **filters.validated_data)
        except ClientNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ClientAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(ClientStepSerializer(steps, many=True).data)

    @extend_schema(responses={200: ClientStatsSerializer})
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Get dashboard statistics."""
        return Response(get_client_stats(user=request.user))

    @extend_schema(responses={200: StepTemplateSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='step-templates')
    def step_templates(self, request):
        """Get the fixed workflow step templates."""
        return Response(StepTemplateSerializer(STEP_TEMPLATES, many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: ClientStepSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Get a client step with its sub-steps.",
    tags=['client-steps'],
)
@extend_schema(
    methods=['PATCH'],
    request=StepUpdateSerializer,
    responses={
        200: ClientStepSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Update a step. Completing a step advances the client's current step.",
    tags=['client-steps'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def step_detail(request, step_id):
    """Get or update a single step."""
    try:
        if request.method == 'GET':
            step = get_step(step_id=step_id, user=request.user)
        else:
            serializer = StepUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            step = update_step(step_id=step_id, user=request.user, **serializer.validated_data)
    except StepNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ClientAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(ClientStepSerializer(step).data)


@extend_schema(
    parameters=[StepFilterSerializer],
    responses={200: ClientSubStepSerializer(many=True), 404: ErrorResponseSerializer},
    description="List the sub-steps of a step.",
    tags=['client-steps'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sub_step_list(request, step_id):
    """List sub-steps of a step."""
    filters = StepFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    try:
        sub_steps = list_sub_steps(step_id=step_id, user=request.user, **filters.validated_data)
    except StepNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ClientAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(ClientSubStepSerializer(sub_steps, many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: ClientSubStepSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    tags=['client-steps'],
)
@extend_schema(
    methods=['PATCH'],
    request=SubStepUpdateSerializer,
    responses={
        200: ClientSubStepSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Update a sub-step. Never moves the client's current step.",
    tags=['client-steps'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def sub_step_detail(request, sub_step_id):
    """Get or update a single sub-step."""
    try:
        if request.method == 'GET':
            sub_step = get_sub_step(sub_step_id=sub_step_id, user=request.user)
        else:
            serializer = SubStepUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            sub_step = update_sub_step(
                sub_step_id=sub_step_id,
                user=request.user,
                **serializer.validated_data
            )
    except SubStepNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ClientAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(ClientSubStepSerializer(sub_step).data)


@extend_schema(
    methods=['GET'],
    responses={200: StepDataResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Get step form data with the step's document checklist.",
    tags=['step-data'],
)
@extend_schema(
    methods=['PATCH'],
    parameters=[
        OpenApiParameter('step_number', int, OpenApiParameter.PATH, description='Workflow step 1-5'),
    ],
    request=None,
    responses={
        200: StepDataResponseSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Save step form sections. Sent sections are merged into stored data.",
    tags=['step-data'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def step_data_detail(request, client_id, step_number):
    """Get or save the form data of one workflow step."""
    try:
        if request.method == 'PATCH':
            serializer_class = STEP_DATA_SERIALIZERS.get(step_number)
            if serializer_class is None:
                raise InvalidStepError(f"Step {step_number} does not exist")
            serializer = serializer_class(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            update_step_data(
                client_id=client_id,
                step_number=step_number,
                user=request.user,
                sections=serializer.validated_data
            )
        result = get_step_data(client_id=client_id, step_number=step_number, user=request.user)
    except InvalidStepError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except ClientNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ClientAccessDeniedError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(StepDataResponseSerializer(result).data)
