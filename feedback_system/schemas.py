import re
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

from feedback_system.models import ADMIN_ROLES

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")

Category = Literal["General", "Technical", "Sales", "Support", "Billing", "Other"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Auth Schemas
class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str
    password: str
    role: Optional[str] = None

    @field_validator("role")
    @classmethod
    def role_allowed(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ADMIN_ROLES:
            raise ValueError("Role must be either admin, moderator, or super_admin")
        return value


class AdminRead(CamelModel):
    id: int
    username: str
    role: str
    created_at: datetime


class AdminIdentity(CamelModel):
    """Verified administrator attached to a request."""
    id: int
    username: str
    role: str


# Feedback Schemas
class FeedbackCreate(BaseModel):
    name: str
    email: EmailStr
    category: Category
    rating: int = Field(..., ge=1, le=5)
    message: str

    @field_validator("name")
    @classmethod
    def name_format(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2 or len(value) > 50:
            raise ValueError("Name must be between 2 and 50 characters")
        if not NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
        return value

    @field_validator("email")
    @classmethod
    def email_normalized(cls, value: str) -> str:
        value = value.strip().lower()
        if len(value) > 100:
            raise ValueError("Email cannot exceed 100 characters")
        return value

    @field_validator("message")
    @classmethod
    def message_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 10 or len(value) > 1000:
            raise ValueError("Message must be between 10 and 1000 characters")
        return value


class FeedbackRead(CamelModel):
    id: int
    name: str
    email: str
    category: Optional[str] = None
    rating: int
    message: str
    status: str
    created_at: datetime
    updated_at: datetime


class StatusUpdate(BaseModel):
    # Checked by the moderation engine so bad values never reach the store
    status: Optional[str] = None


# Audit Schemas
class AuditLogRead(CamelModel):
    id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    admin_id: int
    admin_username: str
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total: int


# Dashboard Schemas
class CategoryCount(CamelModel):
    category: str
    count: int


class StatusCount(CamelModel):
    status: str
    count: int


class StatusCounts(CamelModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class DashboardStats(CamelModel):
    total_feedback: int
    average_rating: float
    pending_count: int
    approved_count: int
    rejected_count: int
    counts_by_status: StatusCounts
    category_distribution: List[CategoryCount] = Field(default_factory=list)


class CategorySummary(CamelModel):
    category: str
    count: int
    average_rating: float
