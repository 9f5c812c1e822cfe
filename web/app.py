"""
FastAPI 애플리케이션

라우터 등록, 원장 예외 → HTTP 상태 코드 매핑 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.constants import APP_VERSION
from core.ledger.errors import (
    ConcurrencyConflict,
    DuplicateVoucherNumber,
    InvalidMerge,
    LedgerError,
    NotFound,
    OperationCancelled,
    TransactionFailed,
    ValidationError,
)
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web", console_level=get_settings().log_level)

from web.routes import companies, health, reports, vehicles, vouchers

logger = logging.getLogger(__name__)

# 원장 예외 → HTTP 상태 코드 (하위 클래스를 먼저 검사)
ERROR_STATUS_CODES: list[tuple[type[LedgerError], int]] = [
    (NotFound, 404),
    (ValidationError, 400),
    (InvalidMerge, 400),
    (DuplicateVoucherNumber, 409),
    (ConcurrencyConflict, 409),
    (OperationCancelled, 409),
    (TransactionFailed, 503),  # MergeFailed 포함
]


def status_code_for(exc: LedgerError) -> int:
    """원장 예외의 HTTP 상태 코드 (매핑 없으면 500)"""
    for exc_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)

    logger.info(f"Web 시작: db={settings.db_path}")
    yield


app = FastAPI(
    title="Voucherbook API",
    description="전표 원장 (잔액, 원장, 시산표, 계정 병합, 대사, 회수 목록) API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """원장 예외를 JSON 오류 응답으로 변환"""
    status_code = status_code_for(exc)

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} 거부: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc),
            "error": type(exc).__name__,
            "field": getattr(exc, "field", None),
        },
    )


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(companies.router)
app.include_router(vouchers.router)
app.include_router(vehicles.router)
app.include_router(reports.router)
