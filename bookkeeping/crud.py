"""Generic record repository used by every bookkeeping entity."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type

from pydantic import BaseModel
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .logging import setup_logger

logger = setup_logger(__name__)


class EntityNotFoundError(RuntimeError):
    """Raised when an entity cannot be located in the database."""


class EntityConflictError(RuntimeError):
    """Raised when a unique constraint is violated."""


class EntityValidationError(ValueError):
    """Raised when an update would clear a required field."""


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_document(record: Any) -> Dict[str, Any]:
    """Column values of ``record`` keyed by attribute name."""
    return {attr.key: getattr(record, attr.key) for attr in inspect(record).mapper.column_attrs}


@dataclass
class Repository:
    """CRUD operations for one model, configured rather than re-implemented per entity.

    ``unique_fields`` are checked before every write so that conflicts carry a
    readable message; the database constraint stays authoritative.
    ``references`` maps a column holding another record's identifier to the
    model it points at and drives :meth:`populate`.
    """

    model: Type[Any]
    label: str
    unique_fields: Sequence[str] = ()
    references: Mapping[str, Type[Any]] = field(default_factory=dict)
    conflict_messages: Mapping[str, str] = field(default_factory=dict)

    def list(self, session: Session) -> List[Any]:
        stmt = select(self.model).order_by(self.model.created_at)
        return list(session.scalars(stmt))

    def get(self, session: Session, record_id: str) -> Any:
        record = session.get(self.model, record_id)
        if record is None:
            raise EntityNotFoundError(f"{self.label} not found")
        return record

    def find_one(self, session: Session, **filters: Any) -> Optional[Any]:
        stmt = select(self.model).filter_by(**filters).limit(1)
        return session.scalars(stmt).first()

    def create(self, session: Session, data_in: BaseModel) -> Any:
        data = _dump(data_in, exclude_unset=False)
        self._check_unique(session, data)
        record = self.model(**data)
        session.add(record)
        self._flush(session)
        session.refresh(record)
        logger.info("Created %s %s", self.label.lower(), record.id)
        return record

    def update(self, session: Session, record_id: str, update_in: BaseModel) -> Any:
        record = self.get(session, record_id)
        data = _dump(update_in, exclude_unset=True)
        self._check_required(data)
        self._check_unique(session, data, exclude_id=record.id)
        for name, value in data.items():
            setattr(record, name, value)
        self._flush(session)
        session.refresh(record)
        return record

    def delete(self, session: Session, record_id: str) -> None:
        record = self.get(session, record_id)
        session.delete(record)
        session.flush()
        logger.info("Deleted %s %s", self.label.lower(), record_id)

    def populate(self, session: Session, records: Sequence[Any]) -> List[Dict[str, Any]]:
        """Replace reference identifiers with the referenced records where they resolve."""
        documents = [to_document(record) for record in records]
        for column, target in self.references.items():
            ids = {doc[column] for doc in documents if doc.get(column)}
            if not ids:
                continue
            found = {item.id: item for item in session.scalars(select(target).where(target.id.in_(ids)))}
            for doc in documents:
                resolved = found.get(doc.get(column))
                if resolved is not None:
                    doc[column] = to_document(resolved)
        return documents

    def _check_required(self, data: Mapping[str, Any]) -> None:
        columns = self.model.__table__.columns
        for name, value in data.items():
            if value is None and not columns[name].nullable:
                raise EntityValidationError(f"{self.label} {_camel(name)} is required")

    def _check_unique(
        self,
        session: Session,
        data: Mapping[str, Any],
        exclude_id: Optional[str] = None,
    ) -> None:
        for name in self.unique_fields:
            if data.get(name) is None:
                continue
            stmt = select(self.model.id).where(getattr(self.model, name) == data[name])
            if exclude_id is not None:
                stmt = stmt.where(self.model.id != exclude_id)
            if session.scalars(stmt.limit(1)).first() is not None:
                raise EntityConflictError(self._conflict_message(name))

    def _conflict_message(self, name: str) -> str:
        return self.conflict_messages.get(name, f"{self.label} {_camel(name)} must be unique")

    def _flush(self, session: Session) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            raise EntityConflictError(f"{self.label} violates a uniqueness constraint: {exc.orig}") from exc


def _dump(data_in: BaseModel, *, exclude_unset: bool) -> Dict[str, Any]:
    data = data_in.model_dump(exclude_unset=exclude_unset)
    for name, value in data.items():
        if isinstance(value, datetime):
            data[name] = models.as_naive_utc(value)
    # Nested payment details are stored as JSON.
    if data.get("payment_details") is not None:
        details = getattr(data_in, "payment_details")
        data["payment_details"] = details.model_dump(mode="json", exclude_none=True)
    return data


clients = Repository(models.Client, "Client")
suppliers = Repository(models.Supplier, "Supplier")
categories = Repository(
    models.Category,
    "Category",
    unique_fields=("name",),
    conflict_messages={"name": "Category already exists"},
)
incomes = Repository(
    models.Income,
    "Income",
    unique_fields=("receipt_number",),
    references={"client": models.Client},
)
expenses = Repository(
    models.Expense,
    "Expense",
    unique_fields=("reference_number",),
    references={"supplier": models.Supplier, "category": models.Category},
)
receipts = Repository(models.Receipt, "Receipt")
users = Repository(models.User, "User", unique_fields=("username",))


def get_income(session: Session, income_id: str) -> Dict[str, Any]:
    return incomes.populate(session, [incomes.get(session, income_id)])[0]


def list_incomes(session: Session) -> List[Dict[str, Any]]:
    return incomes.populate(session, incomes.list(session))


def get_expense(session: Session, expense_id: str) -> Dict[str, Any]:
    return expenses.populate(session, [expenses.get(session, expense_id)])[0]


def list_expenses(session: Session) -> List[Dict[str, Any]]:
    return expenses.populate(session, expenses.list(session))
