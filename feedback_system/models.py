from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import String, DateTime, Text, JSON, Integer, Index, CheckConstraint
from sqlalchemy.orm import declarative_base, Mapped, mapped_column

from feedback_system.utils import hash_password, verify_password, utcnow

Base = declarative_base()

ADMIN_ROLES = ("admin", "moderator", "super_admin")
FEEDBACK_CATEGORIES = ("General", "Technical", "Sales", "Support", "Billing", "Other")
FEEDBACK_STATUSES = ("pending", "approved", "rejected")
AUDIT_ACTIONS = ("approve", "reject", "delete", "create", "update", "login", "logout", "export")
AUDIT_ENTITY_TYPES = ("feedback", "admin", "system")


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="admin")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @classmethod
    def create(cls, username: str, password: str, role: str = "admin") -> "Admin":
        """Build an admin whose secret is hashed before the object exists.

        Callers validate username/password/role first (see auth.validate_admin_input).
        """
        return cls(
            username=username,
            password_hash=hash_password(password),
            role=role,
            created_at=utcnow(),
            updated_at=utcnow(),
        )

    def set_password(self, password: str) -> None:
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="feedback_rating_range"),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # Weak references: no foreign keys so records outlive their subjects
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    admin_id: Mapped[int] = mapped_column(Integer, nullable=False)
    admin_username: Mapped[str] = mapped_column(String(30), nullable=False)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(String(512))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_audit_logs_admin_timestamp", "admin_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
