"""FastAPI application exposing bookkeeping endpoints."""
import io
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable, List, Optional, Type

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__, crud, ingest, receipts, reports, schemas
from .config import Settings, load_settings
from .database import Database, get_session
from .logging import configure_logging, setup_logger

logger = setup_logger(__name__)


def _not_found(exc: crud.EntityNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _conflict(exc: crud.EntityConflictError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def crud_router(
    repository: crud.Repository,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    read_schema: Type[BaseModel],
    *,
    list_records: Optional[Callable[[Session], Any]] = None,
    get_record: Optional[Callable[[Session, str], Any]] = None,
) -> APIRouter:
    """List/create/read/update/delete endpoints for one repository."""

    router = APIRouter()
    list_records = list_records or repository.list
    get_record = get_record or repository.get

    @router.get("", response_model=List[read_schema])
    def list_endpoint(db: Session = Depends(get_session)) -> Any:
        return list_records(db)

    @router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
    def create_endpoint(data_in: create_schema, db: Session = Depends(get_session)) -> Any:
        try:
            return repository.create(db, data_in)
        except crud.EntityConflictError as exc:
            raise _conflict(exc) from exc

    @router.get("/{record_id}", response_model=read_schema)
    def get_endpoint(record_id: str, db: Session = Depends(get_session)) -> Any:
        try:
            return get_record(db, record_id)
        except crud.EntityNotFoundError as exc:
            raise _not_found(exc) from exc

    @router.put("/{record_id}", response_model=read_schema)
    def update_endpoint(record_id: str, update_in: update_schema, db: Session = Depends(get_session)) -> Any:
        try:
            return repository.update(db, record_id, update_in)
        except crud.EntityNotFoundError as exc:
            raise _not_found(exc) from exc
        except crud.EntityConflictError as exc:
            raise _conflict(exc) from exc
        except crud.EntityValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @router.delete("/{record_id}", response_model=schemas.MessageRead)
    def delete_endpoint(record_id: str, db: Session = Depends(get_session)) -> Any:
        try:
            repository.delete(db, record_id)
        except crud.EntityNotFoundError as exc:
            raise _not_found(exc) from exc
        return {"message": f"{repository.label} deleted"}

    return router


receipt_router = APIRouter()


@receipt_router.get("/{receipt_id}/pdf", response_class=StreamingResponse)
def download_receipt_pdf(receipt_id: str, db: Session = Depends(get_session)) -> StreamingResponse:
    try:
        receipt = crud.receipts.get(db, receipt_id)
    except crud.EntityNotFoundError as exc:
        raise _not_found(exc) from exc
    content = receipts.render_receipt_pdf(receipt)
    headers = {"Content-Disposition": f"attachment; filename={receipts.receipt_filename(receipt.id)}"}
    return StreamingResponse(io.BytesIO(content), media_type="application/pdf", headers=headers)


report_router = APIRouter()


@report_router.get("/income-vs-expense", response_model=schemas.IncomeVsExpenseRead)
def income_vs_expense(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_session),
) -> schemas.IncomeVsExpenseRead:
    return reports.income_vs_expense(db, date_from, date_to)


@report_router.get("/income-analysis", response_model=List[schemas.IncomeAnalysisRow])
def income_analysis(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    client: Optional[str] = None,
    payment_type: Optional[str] = Query(None, alias="paymentType"),
    db: Session = Depends(get_session),
) -> List[schemas.IncomeAnalysisRow]:
    return reports.income_analysis(db, date_from, date_to, client=client, payment_type=payment_type)


@report_router.get("/expense-analysis", response_model=List[schemas.ExpenseAnalysisRow])
def expense_analysis(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    category: Optional[str] = None,
    payment_type: Optional[str] = Query(None, alias="paymentType"),
    db: Session = Depends(get_session),
) -> List[schemas.ExpenseAnalysisRow]:
    return reports.expense_analysis(db, date_from, date_to, category=category, payment_type=payment_type)


upload_router = APIRouter()


@upload_router.post("/upload", response_model=schemas.UploadRead)
def upload_document(
    file: Optional[UploadFile] = File(None),
    vat: Optional[str] = Form(None),
    payment_method: Optional[str] = Form(None, alias="paymentMethod"),
    receipt_number: Optional[str] = Form(None, alias="receiptNumber"),
    db: Session = Depends(get_session),
) -> schemas.UploadRead:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    try:
        payload = file.file.read()
        return ingest.ingest_income(
            db,
            payload,
            vat=vat,
            payment_method=payment_method,
            receipt_number=receipt_number,
        )
    except ingest.ClientLookupError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
    except crud.EntityConflictError as exc:
        raise _conflict(exc) from exc
    except Exception as exc:
        logger.exception("Upload of %s failed", file.filename)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


async def _persistence_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def create_app(database: Optional[Database] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around ``database`` (opened from ``settings`` when omitted).

    A database created here is disposed on shutdown; a caller-supplied one is
    left open for its owner.
    """

    settings = settings or load_settings()
    configure_logging(settings.json_logs, settings.log_level)
    owns_database = database is None
    db_handle = database if database is not None else Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        db_handle.create_all()
        logger.info("Database ready at %s", db_handle.engine.url.render_as_string(hide_password=True))
        yield
        if owns_database:
            db_handle.dispose()

    app = FastAPI(title="Bookkeeping Backend", version=__version__, lifespan=lifespan)
    app.state.database = db_handle
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SQLAlchemyError, _persistence_error)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": elapsed_ms,
            },
        )
        return response

    app.include_router(
        crud_router(crud.clients, schemas.ClientCreate, schemas.ClientUpdate, schemas.ClientRead),
        prefix="/api/clients",
        tags=["clients"],
    )
    app.include_router(
        crud_router(crud.suppliers, schemas.SupplierCreate, schemas.SupplierUpdate, schemas.SupplierRead),
        prefix="/api/suppliers",
        tags=["suppliers"],
    )
    app.include_router(
        crud_router(crud.categories, schemas.CategoryCreate, schemas.CategoryUpdate, schemas.CategoryRead),
        prefix="/api/categories",
        tags=["categories"],
    )
    app.include_router(
        crud_router(
            crud.incomes,
            schemas.IncomeCreate,
            schemas.IncomeUpdate,
            schemas.IncomeRead,
            list_records=crud.list_incomes,
            get_record=crud.get_income,
        ),
        prefix="/api/incomes",
        tags=["incomes"],
    )
    app.include_router(
        crud_router(
            crud.expenses,
            schemas.ExpenseCreate,
            schemas.ExpenseUpdate,
            schemas.ExpenseRead,
            list_records=crud.list_expenses,
            get_record=crud.get_expense,
        ),
        prefix="/api/expenses",
        tags=["expenses"],
    )
    app.include_router(receipt_router, prefix="/api/receipts", tags=["receipts"])
    app.include_router(
        crud_router(crud.receipts, schemas.ReceiptCreate, schemas.ReceiptUpdate, schemas.ReceiptRead),
        prefix="/api/receipts",
        tags=["receipts"],
    )
    app.include_router(
        crud_router(crud.users, schemas.UserCreate, schemas.UserUpdate, schemas.UserRead),
        prefix="/api/users",
        tags=["users"],
    )
    app.include_router(upload_router, prefix="/api", tags=["upload"])
    app.include_router(report_router, prefix="/api/reports", tags=["reports"])

    @app.get("/health", tags=["system"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app
