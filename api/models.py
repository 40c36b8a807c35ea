"""
API request and response models for the portfolio REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
content/models.py, which own the internal domain representation. Response
models read domain objects directly (from_attributes=True) and list only the
fields that may leave the server -- there is no field for a password hash, so
one can never be serialized.

Partial updates: every *Update model declares all fields Optional with a None
default. Route handlers call model_dump(exclude_unset=True), which yields
three states per field: absent (not in the dict), a value, or an explicit
null (None in the dict). The services decide what explicit null means.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from datetime import date
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field

from content.models import ContactStatus, EmploymentType, PublicationStatus, SkillLevel
from core.pagination import Page

T = TypeVar("T")


def _upper(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


# Enum inputs are matched case-insensitively ("published" == "PUBLISHED").
StatusField = Annotated[PublicationStatus, BeforeValidator(_upper)]
LevelField = Annotated[SkillLevel, BeforeValidator(_upper)]
EmploymentField = Annotated[EmploymentType, BeforeValidator(_upper)]

_Url = Annotated[str, Field(max_length=500)]
_Tags = Annotated[list[Annotated[str, Field(min_length=1, max_length=50)]], Field(max_length=30)]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload. stack is only populated in DEBUG mode."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    stack: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: ErrorDetail


class Envelope(BaseModel, Generic[T]):
    """Top-level success envelope: {success, data, message}."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PaginationMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int
    pages: int


class PageResponse(BaseModel, Generic[T]):
    items: list[T]
    pagination: PaginationMeta

    @classmethod
    def from_page(cls, page: Page, item_model: type[BaseModel]) -> "PageResponse":
        """Build a PageResponse from a core Page, validating each item with item_model."""
        return cls(
            items=[item_model.model_validate(item) for item in page.items],
            pagination=PaginationMeta(page=page.page, limit=page.limit, total=page.total, pages=page.pages),
        )


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    environment: str
    timestamp: str
    uptime: float
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    # Optional so a missing token reaches AuthService.refresh() and is reported
    # as "Refresh token is required." rather than a generic schema error.
    refresh_token: Optional[str] = None


class PasswordUpdate(BaseModel):
    current_password: Optional[str] = Field(default=None, max_length=128)
    new_password: Optional[str] = Field(default=None, min_length=6, max_length=128)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar: Optional[_Url] = None
    location: Optional[str] = Field(default=None, max_length=255)
    website: Optional[_Url] = None
    linkedin: Optional[_Url] = None
    github: Optional[_Url] = None
    twitter: Optional[_Url] = None
    resume_url: Optional[_Url] = None


class UserResponse(BaseModel):
    """Safe user projection. Deliberately has no hashed_password field."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: str
    bio: Optional[str] = None
    avatar: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    resume_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    user: UserResponse


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, max_length=20)


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, max_length=20)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=220)
    description: Optional[str] = Field(default=None, max_length=2000)
    content: Optional[str] = None
    demo_url: Optional[_Url] = None
    github_url: Optional[_Url] = None
    technologies: _Tags = Field(default_factory=list)
    status: StatusField = PublicationStatus.DRAFT
    featured: bool = False
    priority: int = Field(default=0, ge=0, le=1000)
    category_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=220)
    description: Optional[str] = Field(default=None, max_length=2000)
    content: Optional[str] = None
    demo_url: Optional[_Url] = None
    github_url: Optional[_Url] = None
    technologies: Optional[_Tags] = None
    status: Optional[StatusField] = None
    featured: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=0, le=1000)
    category_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    slug: str
    description: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    status: str
    featured: bool
    priority: int
    category_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Blog posts
# ---------------------------------------------------------------------------


class PostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    slug: Optional[str] = Field(default=None, max_length=220)
    excerpt: Optional[str] = Field(default=None, max_length=1000)
    status: StatusField = PublicationStatus.DRAFT
    featured: bool = False
    tags: _Tags = Field(default_factory=list)
    meta_title: Optional[str] = Field(default=None, max_length=200)
    meta_desc: Optional[str] = Field(default=None, max_length=500)
    category_id: Optional[int] = None


class PostUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, max_length=220)
    excerpt: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[StatusField] = None
    featured: Optional[bool] = None
    tags: Optional[_Tags] = None
    meta_title: Optional[str] = Field(default=None, max_length=200)
    meta_desc: Optional[str] = Field(default=None, max_length=500)
    category_id: Optional[int] = None


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    image: Optional[str] = None
    status: str
    featured: bool
    tags: list[str] = Field(default_factory=list)
    meta_title: Optional[str] = None
    meta_desc: Optional[str] = None
    reading_time: int
    published_at: Optional[str] = None
    category_id: Optional[int] = None
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------


class SkillCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    level: LevelField = SkillLevel.INTERMEDIATE
    years_exp: float = Field(default=0, ge=0, le=100)
    icon: Optional[_Url] = None
    category_id: Optional[int] = None


class SkillUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    level: Optional[LevelField] = None
    years_exp: Optional[float] = Field(default=None, ge=0, le=100)
    icon: Optional[_Url] = None
    category_id: Optional[int] = None


class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    level: str
    years_exp: float
    icon: Optional[str] = None
    category_id: Optional[int] = None
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Experience and education
# ---------------------------------------------------------------------------


class ExperienceCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    company: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: Optional[date] = None
    current: bool = False
    type: EmploymentField = EmploymentType.FULL_TIME
    location: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    technologies: _Tags = Field(default_factory=list)


class ExperienceUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    company: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current: Optional[bool] = None
    type: Optional[EmploymentField] = None
    location: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    technologies: Optional[_Tags] = None


class ExperienceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    company: str
    type: str
    location: Optional[str] = None
    description: Optional[str] = None
    technologies: list[str] = Field(default_factory=list)
    start_date: str
    end_date: Optional[str] = None
    current: bool
    created_at: str
    updated_at: str


class EducationCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    degree: str = Field(min_length=1, max_length=200)
    school: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: Optional[date] = None
    current: bool = False
    field: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    grade: Optional[str] = Field(default=None, max_length=50)


class EducationUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    degree: Optional[str] = Field(default=None, min_length=1, max_length=200)
    school: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current: Optional[bool] = None
    field: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    grade: Optional[str] = Field(default=None, max_length=50)


class EducationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    degree: str
    school: str
    field: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    grade: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None
    current: bool
    created_at: str
    updated_at: str


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


class ContactCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    message: str = Field(min_length=1, max_length=5000)
    subject: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    company: Optional[str] = Field(default=None, max_length=200)
    website: Optional[_Url] = None


class ContactReply(BaseModel):
    reply: Optional[str] = Field(default=None, max_length=10000)


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    message: str
    subject: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    status: ContactStatus
    read: bool
    reply: Optional[str] = None
    replied_at: Optional[str] = None
    user_id: Optional[int] = None
    created_at: str
    updated_at: str
