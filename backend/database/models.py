"""
PostgreSQL Database Models - SQLAlchemy ORM
Users and material delivery requests
"""
from datetime import date, datetime, timezone
from typing import Optional
from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .connection import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== USER MODEL ====================

class User(Base):
    """User table - foremen, suppliers and drivers"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    telegram_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


# ==================== REQUEST MODEL ====================

class DeliveryRequest(Base):
    """Material delivery request"""
    __tablename__ = "requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    material: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)  # m3, tons, pcs
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new", index=True)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    driver_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_requests_quantity_positive"),
        Index('idx_requests_created_at', 'created_at'),
        Index('idx_requests_driver_delivery_date', 'driver_id', 'delivery_date'),
        Index('idx_requests_creator_created_at', 'created_by_id', 'created_at'),
    )
