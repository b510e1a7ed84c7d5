"""SQLAlchemy models for the bookkeeping backend."""
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from .database import Base


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how SQLite stores ``DateTime`` columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class Client(Base):
    __tablename__ = "clients"

    id: str = Column(String(32), primary_key=True, default=new_id)
    name: str = Column(String(200), nullable=False, index=True)
    phone: Optional[str] = Column(String(50), nullable=True)
    email: Optional[str] = Column(String(200), nullable=True)
    address: Optional[str] = Column(String(300), nullable=True)
    company_id: Optional[str] = Column(String(50), nullable=True)
    type: Optional[str] = Column(String(20), nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class Supplier(Base):
    __tablename__ = "suppliers"

    id: str = Column(String(32), primary_key=True, default=new_id)
    name: str = Column(String(200), nullable=False, index=True)
    phone: Optional[str] = Column(String(50), nullable=True)
    email: Optional[str] = Column(String(200), nullable=True)
    address: Optional[str] = Column(String(300), nullable=True)
    company_id: Optional[str] = Column(String(50), nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class Category(Base):
    __tablename__ = "categories"

    id: str = Column(String(32), primary_key=True, default=new_id)
    name: str = Column(String(100), unique=True, nullable=False, index=True)
    description: Optional[str] = Column(Text, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class Income(Base):
    __tablename__ = "incomes"

    id: str = Column(String(32), primary_key=True, default=new_id)
    receipt_number: int = Column(Integer, unique=True, nullable=False, index=True)
    date: datetime = Column(DateTime, nullable=False, index=True)
    # Raw client identifier; resolved at read time, never enforced as a foreign key.
    client: str = Column(String(64), nullable=False, index=True)
    amount: float = Column(Float, nullable=False)
    vat: float = Column(Float, nullable=False)
    payment_method: str = Column(String(20), nullable=False)
    details: Optional[str] = Column(Text, nullable=True)
    print_date: Optional[datetime] = Column(DateTime, nullable=True)
    payment_details: Optional[dict] = Column(JSON, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class Expense(Base):
    __tablename__ = "expenses"

    id: str = Column(String(32), primary_key=True, default=new_id)
    reference_number: int = Column(Integer, unique=True, nullable=False, index=True)
    date: datetime = Column(DateTime, nullable=False, index=True)
    supplier: str = Column(String(64), nullable=False, index=True)
    category: str = Column(String(64), nullable=False, index=True)
    amount: float = Column(Float, nullable=False)
    vat: float = Column(Float, nullable=False)
    payment_method: str = Column(String(20), nullable=False)
    reference_doc: Optional[str] = Column(String(200), nullable=True)
    details: Optional[str] = Column(Text, nullable=True)
    file_url: Optional[str] = Column(String(500), nullable=True)
    payment_details: Optional[dict] = Column(JSON, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class Receipt(Base):
    __tablename__ = "receipts"

    id: str = Column(String(32), primary_key=True, default=new_id)
    date: datetime = Column(DateTime, nullable=False)
    amount: float = Column(Float, nullable=False)
    client_name: str = Column(String(200), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(32), primary_key=True, default=new_id)
    username: str = Column(String(100), unique=True, nullable=False, index=True)
    # Stored as submitted.
    password: str = Column(String(200), nullable=False)
    business_type: str = Column(String(20), nullable=False)
    email: Optional[str] = Column(String(200), nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
