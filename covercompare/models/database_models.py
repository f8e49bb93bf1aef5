"""
SQLAlchemy ORM models for the Cover Compare database.
Comparison documents are stored with their providers and categories as JSON.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from covercompare.database import Base


# Enums
class AdminRole(str, enum.Enum):
    """Roles an admin account can hold."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


# Models
class Admin(Base):
    """Broker admin allowed to use the console."""

    __tablename__ = "admins"

    id = Column(String(255), primary_key=True)  # auth provider user id
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(50), nullable=False, default=AdminRole.ADMIN.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Client(Base):
    """Insured party whose profile seeds new comparisons."""

    __tablename__ = "clients"

    id = Column(String(64), primary_key=True)
    created_by = Column(String(255), nullable=True, index=True)
    member_name = Column(String(255), nullable=False, default="")
    surname = Column(String(255), nullable=False, default="")
    id_number = Column(String(64), nullable=False, default="", index=True)
    age = Column(String(32), nullable=False, default="")
    occupation = Column(String(255), nullable=False, default="")
    family_composition = Column(String(255), nullable=False, default="")
    income_bracket = Column(String(255), nullable=False, default="")
    region = Column(String(255), nullable=False, default="")
    primary_priority = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    sessions = relationship("ComparisonSessionRecord", back_populates="client", passive_deletes=True)


class ComparisonSessionRecord(Base):
    """Persisted comparison document."""

    __tablename__ = "comparison_sessions"

    id = Column(String(64), primary_key=True)
    created_by = Column(String(255), nullable=True, index=True)
    client_id = Column(String(64), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    date = Column(String(32), nullable=False)  # ISO date as entered by the broker
    type = Column(String(50), nullable=False)  # PlanType value
    client_profile = Column(JSON, nullable=False, default=dict)
    providers = Column(JSON, nullable=False, default=list)
    categories = Column(JSON, nullable=False, default=list)
    report_title_override = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    client = relationship("Client", back_populates="sessions")


class AuditLog(Base):
    """One recorded admin action."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(String(255), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(255), nullable=True, index=True)
    meta = Column(JSON, nullable=True)  # old/new snapshots, counts, etc.
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
