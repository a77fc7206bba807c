from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema, OpenApiParameter

from .permissions import IsAdminRole
from .serializers import (
    UserRegistrationSerializer,
    UserLoginSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from .services import (
    register_user,
    authenticate_user,
    list_users,
    get_user_by_id,
    update_user,
    UserRegistrationError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
    InsufficientPermissionsError,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@extend_schema(
    request=UserRegistrationSerializer,
    responses={
        201: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Register a new user account and receive JWT tokens. Only admins can create admins.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new user account."""
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data.copy()
    data.pop('password_confirm', None)
    registered_by = request.user if request.user.is_authenticated else None

    try:
        user = register_user(registered_by=registered_by, **data)
    except EmailAlreadyInUseError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except UserRegistrationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Registration successful',
        'user': UserSerializer(user).data,
        'tokens': _tokens_for(user),
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': _tokens_for(user),
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Get current authenticated user profile."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    parameters=[
        OpenApiParameter('active', bool, description='Only return active users'),
    ],
    responses={200: UserSerializer(many=True)},
    description="List all users (admin only).",
    tags=['users'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list(request):
    """List users, optionally only active ones."""
    active_only = request.query_params.get('active', '').lower() == 'true'
    users = list_users(active_only=active_only)
    return Response(UserSerializer(users, many=True).data)


@extend_schema(
    responses={200: UserSerializer(many=True)},
    description="List active users for assignment pickers (admin only).",
    tags=['users'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def active_user_list(request):
    """List active users."""
    users = list_users(active_only=True)
    return Response(UserSerializer(users, many=True).data)


@extend_schema(
    methods=['GET'],
    responses={200: UserSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
    description="Get a user. Admins can read anyone, others only themselves.",
    tags=['users'],
)
@extend_schema(
    methods=['PATCH'],
    request=UserUpdateSerializer,
    responses={
        200: UserSerializer,
        400: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description="Update a user. Role and activation changes are admin only.",
    tags=['users'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Get or update a single user."""
    if not request.user.is_admin and request.user.id != pk:
        return Response(
            {'error': 'You can only access your own profile'},
            status=status.HTTP_403_FORBIDDEN
        )

    if request.method == 'GET':
        try:
            user = get_user_by_id(user_id=pk)
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(UserSerializer(user).data)

    serializer = UserUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = update_user(user_id=pk, updated_by=request.user, **serializer.validated_data)
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except EmailAlreadyInUseError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    return Response(UserSerializer(user).data)
