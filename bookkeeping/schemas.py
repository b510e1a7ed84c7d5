"""Pydantic schemas for serialising bookkeeping data."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PaymentMethod = Literal["cash", "credit", "check", "bank_transfer"]
ClientType = Literal["business", "private"]
BusinessType = Literal["זעיר", "פטור", "מורשה"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PaymentDetails(CamelModel):
    last4_digits: Optional[str] = Field(None, alias="last4Digits", max_length=4)
    payments_count: Optional[int] = Field(None, ge=1)
    check_number: Optional[str] = None
    account_number: Optional[str] = None
    bank_number: Optional[str] = None
    due_date: Optional[datetime] = None


# Clients


class ClientBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    company_id: Optional[str] = Field(None, max_length=50)
    type: Optional[ClientType] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    company_id: Optional[str] = Field(None, max_length=50)
    type: Optional[ClientType] = None


class ClientRead(ClientBase, ORMModel):
    id: str
    created_at: datetime


# Suppliers


class SupplierBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    company_id: Optional[str] = Field(None, max_length=50)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=300)
    company_id: Optional[str] = Field(None, max_length=50)


class SupplierRead(SupplierBase, ORMModel):
    id: str
    created_at: datetime


# Categories


class CategoryBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryRead(CategoryBase, ORMModel):
    id: str
    created_at: datetime


# Incomes


class IncomeBase(CamelModel):
    receipt_number: int
    date: datetime
    client: str = Field(..., min_length=1, max_length=64)
    amount: float
    vat: float
    payment_method: PaymentMethod
    details: Optional[str] = None
    print_date: Optional[datetime] = None
    payment_details: Optional[PaymentDetails] = None


class IncomeCreate(IncomeBase):
    pass


class IncomeUpdate(CamelModel):
    receipt_number: Optional[int] = None
    date: Optional[datetime] = None
    client: Optional[str] = Field(None, min_length=1, max_length=64)
    amount: Optional[float] = None
    vat: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    details: Optional[str] = None
    print_date: Optional[datetime] = None
    payment_details: Optional[PaymentDetails] = None


class IncomeRead(IncomeBase, ORMModel):
    id: str
    # Either the resolved client or the raw identifier when it does not resolve.
    client: Union[ClientRead, str]
    created_at: datetime


# Expenses


class ExpenseBase(CamelModel):
    reference_number: int
    date: datetime
    supplier: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=64)
    amount: float
    vat: float
    payment_method: PaymentMethod
    reference_doc: Optional[str] = Field(None, max_length=200)
    details: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=500)
    payment_details: Optional[PaymentDetails] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(CamelModel):
    reference_number: Optional[int] = None
    date: Optional[datetime] = None
    supplier: Optional[str] = Field(None, min_length=1, max_length=64)
    category: Optional[str] = Field(None, min_length=1, max_length=64)
    amount: Optional[float] = None
    vat: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    reference_doc: Optional[str] = Field(None, max_length=200)
    details: Optional[str] = None
    file_url: Optional[str] = Field(None, max_length=500)
    payment_details: Optional[PaymentDetails] = None


class ExpenseRead(ExpenseBase, ORMModel):
    id: str
    supplier: Union[SupplierRead, str]
    category: Union[CategoryRead, str]
    created_at: datetime


# Receipts


class ReceiptBase(CamelModel):
    date: datetime
    amount: float
    client_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class ReceiptCreate(ReceiptBase):
    pass


class ReceiptUpdate(CamelModel):
    date: Optional[datetime] = None
    amount: Optional[float] = None
    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class ReceiptRead(ReceiptBase, ORMModel):
    id: str
    created_at: datetime


# Users


class UserBase(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)
    business_type: BusinessType
    email: Optional[str] = Field(None, max_length=200)


class UserCreate(UserBase):
    pass


class UserUpdate(CamelModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=1, max_length=200)
    business_type: Optional[BusinessType] = None
    email: Optional[str] = Field(None, max_length=200)


class UserRead(UserBase, ORMModel):
    id: str
    created_at: datetime


# Responses


class MessageRead(BaseModel):
    message: str


class IncomeVsExpenseRead(CamelModel):
    total_income: float
    total_expense: float


class IncomeAnalysisKey(CamelModel):
    client: Optional[str]
    payment_type: Optional[str]


class ExpenseAnalysisKey(CamelModel):
    category: Optional[str]
    payment_type: Optional[str]


class IncomeAnalysisRow(CamelModel):
    """One ``(client, paymentType)`` group, serialised as ``{"_id": {...}, "total", "count"}``."""

    key: IncomeAnalysisKey = Field(alias="_id")
    total: float
    count: int


class ExpenseAnalysisRow(CamelModel):
    key: ExpenseAnalysisKey = Field(alias="_id")
    total: float
    count: int


class UploadRead(CamelModel):
    message: str
    totals: List[str]
    all_text: str
    income: IncomeRead
