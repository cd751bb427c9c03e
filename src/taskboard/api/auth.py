"""Auth API — registration, login, current user.

Learn: Routes for the bearer-token lifecycle:
- POST /auth/register → create a USER account, returns user + token
- POST /auth/login → email/password → user + token
- GET /auth/me → the user behind the presented token

Registration never grants ADMIN; roles are changed through PUT /users/{id}
by an existing administrator (or seeded via the CLI).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import Identity, get_current_identity, get_token_codec
from taskboard.auth.jwt import TokenCodec
from taskboard.db.engine import get_db
from taskboard.db.models import User
from taskboard.errors import NotFound
from taskboard.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserRead
from taskboard.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _auth_response(user: User, codec: TokenCodec) -> AuthResponse:
    token = codec.issue(user.id, user.email, user.role)
    return AuthResponse(user=UserRead.model_validate(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
):
    """Create a new user account."""
    user = await UserService(db).register(body.name, body.email, body.password)
    return _auth_response(user, codec)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
):
    """Login with email and password → token."""
    user = await UserService(db).authenticate(body.email, body.password)
    return _auth_response(user, codec)


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    user = await db.get(User, identity.subject_id)
    if not user:
        raise NotFound("user", identity.subject_id)
    return user
