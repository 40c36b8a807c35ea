"""
api/routes/v1/auth.py -- Authentication and account REST endpoints.

Routes:
  POST /api/v1/auth/register          -- create a USER account; returns tokens
  POST /api/v1/auth/login             -- password login; returns tokens
  POST /api/v1/auth/refresh           -- exchange a refresh token for a new pair
  GET  /api/v1/auth/profile           -- current user (requires auth)
  PUT  /api/v1/auth/profile           -- partial profile update (requires auth)
  PUT  /api/v1/auth/password          -- change password (requires auth)
  POST /api/v1/auth/profile/avatar    -- upload avatar image (requires auth)
  POST /api/v1/auth/profile/resume    -- upload résumé PDF (requires auth)
  GET  /api/v1/auth/users             -- paginated user list (admin only)

Security:
  register/login/refresh share the AUTH_RATE_LIMIT quota per client IP.
  Login failure messages are identical for unknown email and wrong password,
  and AuthService.login() equalizes timing -- never inline the lookup here.
  Token responses carry Cache-Control: no-store.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from api.limiter import auth_limit, limiter
from api.models import (
    AuthResponse,
    Envelope,
    LoginRequest,
    PageResponse,
    PasswordUpdate,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from api.uploads import to_upload
from auth.dependencies import get_current_user, require_admin
from auth.models import Identity
from auth.service import AuthResult, AuthService
from core.pagination import PageRequest

router = APIRouter()


def _auth(request: Request) -> AuthService:
    return request.app.state.auth


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=Envelope[AuthResponse], status_code=201)
@limiter.limit(auth_limit)
def register(request: Request, response: Response, body: RegisterRequest) -> Envelope[AuthResponse]:
    result = _auth(request).register(body.name, body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return Envelope[AuthResponse](data=_auth_response(result), message="User registered successfully.")


@router.post("/auth/login", response_model=Envelope[AuthResponse])
@limiter.limit(auth_limit)
def login(request: Request, response: Response, body: LoginRequest) -> Envelope[AuthResponse]:
    """Authenticate with email and password.

    Unknown email and wrong password both produce the same 401 body.
    """
    result = _auth(request).login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return Envelope[AuthResponse](data=_auth_response(result), message="Login successful.")


@router.post("/auth/refresh", response_model=Envelope[TokenResponse])
@limiter.limit(auth_limit)
def refresh(request: Request, response: Response, body: Optional[RefreshRequest] = None) -> Envelope[TokenResponse]:
    """Issue a new token pair. The presented refresh token is not revoked."""
    tokens = _auth(request).refresh(body.refresh_token if body else None)
    response.headers["Cache-Control"] = "no-store"
    return Envelope[TokenResponse](
        data=TokenResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token),
        message="Token refreshed.",
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/profile", response_model=Envelope[UserResponse])
def get_profile(request: Request, identity: Identity = Depends(get_current_user)) -> Envelope[UserResponse]:
    user = _auth(request).get_profile(identity)
    return Envelope[UserResponse](data=UserResponse.model_validate(user))


@router.put("/auth/profile", response_model=Envelope[UserResponse])
def update_profile(
    request: Request,
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[UserResponse]:
    """Update only the fields present in the body; an explicit null clears a field."""
    user = _auth(request).update_profile(identity, body.model_dump(exclude_unset=True))
    return Envelope[UserResponse](data=UserResponse.model_validate(user), message="Profile updated.")


@router.put("/auth/password", response_model=Envelope[UserResponse])
def update_password(
    request: Request,
    body: PasswordUpdate,
    identity: Identity = Depends(get_current_user),
) -> Envelope[UserResponse]:
    user = _auth(request).update_password(identity, body.current_password, body.new_password)
    return Envelope[UserResponse](data=UserResponse.model_validate(user), message="Password updated.")


@router.post("/auth/profile/avatar", response_model=Envelope[UserResponse])
async def upload_avatar(
    request: Request,
    file: UploadFile,
    identity: Identity = Depends(get_current_user),
) -> Envelope[UserResponse]:
    upload = await to_upload(file)
    user = await run_in_threadpool(_auth(request).attach_profile_file, identity, "avatar", upload)
    return Envelope[UserResponse](data=UserResponse.model_validate(user), message="Avatar updated.")


@router.post("/auth/profile/resume", response_model=Envelope[UserResponse])
async def upload_resume(
    request: Request,
    file: UploadFile,
    identity: Identity = Depends(get_current_user),
) -> Envelope[UserResponse]:
    upload = await to_upload(file)
    user = await run_in_threadpool(_auth(request).attach_profile_file, identity, "resume", upload)
    return Envelope[UserResponse](data=UserResponse.model_validate(user), message="Résumé updated.")


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/users", response_model=Envelope[PageResponse[UserResponse]])
def list_users(
    request: Request,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    _: Identity = Depends(require_admin),
) -> Envelope[PageResponse[UserResponse]]:
    users = _auth(request).list_users(PageRequest.parse(page, limit))
    return Envelope[PageResponse[UserResponse]](data=PageResponse[UserResponse].from_page(users, UserResponse))
