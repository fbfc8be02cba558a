"""
SQLAlchemy models for the tutoring platform accounts.

Teachers and parents live in separate tables; the service layer treats them
as one Account type and picks the table from the login role.
"""
import uuid
from typing import Dict, Type, Union

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from constants import Role
from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Teacher(Base):
    """
    Teacher accounts.
    Created by an admin; always have a password.
    """
    __tablename__ = "teachers"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50))
    bio = Column(Text)
    specializations = Column(Text, comment='JSON array of programming languages/topics')
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Parent(Base):
    """
    Parent accounts.
    Self-registered with a password, or provisioned through Google sign-in
    (password_hash is NULL for those).
    """
    __tablename__ = "parents"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)
    phone = Column(String(50))
    email_verified = Column(Boolean, nullable=False, default=False)
    google_id = Column(String(255), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    email_verifications = relationship(
        "EmailVerification",
        back_populates="parent",
        cascade="all, delete-orphan",
    )


class EmailVerification(Base):
    """
    One-time email verification links sent after parent registration.
    Deleted when used; expired rows are removed by the cleanup script.
    """
    __tablename__ = "email_verifications"

    id = Column(String(36), primary_key=True, default=_new_id)
    parent_id = Column(String(36), ForeignKey("parents.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    parent = relationship("Parent", back_populates="email_verifications")


Account = Union[Teacher, Parent]

ACCOUNT_MODELS: Dict[Role, Type[Base]] = {
    Role.TEACHER: Teacher,
    Role.PARENT: Parent,
}


def account_email_verified(account: Account) -> bool:
    """Teachers are provisioned by an admin and count as verified."""
    if isinstance(account, Parent):
        return bool(account.email_verified)
    return True


def account_role(account: Account) -> Role:
    return Role.PARENT if isinstance(account, Parent) else Role.TEACHER
