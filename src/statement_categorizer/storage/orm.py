"""Persisted entities."""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statement_categorizer.storage.database import Base


def utcnow() -> datetime:
    # SQLite stores naive datetimes; keep everything naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))

    categories = relationship("Category", back_populates="user", cascade="all, delete", passive_deletes=True)
    transactions = relationship(
        "Transaction", back_populates="user", cascade="all, delete", passive_deletes=True
    )
    patterns = relationship(
        "CategoryPattern", back_populates="user", cascade="all, delete", passive_deletes=True
    )
    assets = relationship("Asset", back_populates="user", cascade="all, delete", passive_deletes=True)


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Null for global default categories.
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7))
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    parent_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), index=True
    )

    user = relationship("User", back_populates="categories")
    parent = relationship("Category", remote_side="Category.id")


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    merchant: Mapped[Optional[str]] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(255))
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), index=True)
    llm_categorized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    llm_confidence: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    user = relationship("User", back_populates="transactions")
    category = relationship("Category")

    def mark_llm_categorized(self, category_id: str, confidence: float) -> None:
        self.category_id = category_id
        self.llm_categorized = True
        self.llm_confidence = confidence

    def mark_manually_categorized(self, category_id: str) -> None:
        self.category_id = category_id
        self.llm_categorized = False
        self.llm_confidence = None


class CategoryPattern(Base, TimestampMixin):
    __tablename__ = "category_patterns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    # description.lower() computed in Python; SQLite lower() only folds ASCII.
    description_key: Mapped[str] = mapped_column(Text, index=True, nullable=False)
    merchant: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    is_user_correction: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="patterns")
    category = relationship("Category")


class Asset(Base, TimestampMixin):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    sub_category: Mapped[Optional[str]] = mapped_column(String(100))
    current_value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    purchase_value: Mapped[Optional[float]] = mapped_column(Float)
    purchase_date: Mapped[Optional[date]] = mapped_column(Date)
    quantity: Mapped[Optional[float]] = mapped_column(Float)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="assets")
