"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.ledger.service import LedgerService
from core.storage.ledger_store import SQLiteLedgerStore


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    보고서 조회는 읽기 전용 연결 사용.
    전표/계정 변경은 get_db_write로 별도 처리.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    전표 생성/수정/삭제, 회사/계정 생성, 계정 병합 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


def _build_service(db: SQLiteAdapter, settings: Settings) -> LedgerService:
    return LedgerService(
        SQLiteLedgerStore(db),
        recovery_min_group_size=settings.recovery.min_group_size,
    )


async def get_ledger_service(
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> LedgerService:
    """조회용 LedgerService"""
    return _build_service(db, settings)


async def get_ledger_service_write(
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
) -> LedgerService:
    """변경용 LedgerService"""
    return _build_service(db, settings)
