"""
pytest 공통 fixture 정의

원장 테스트용 인메모리 DB, 저장소, 서비스, 샘플 회사/계정 fixture
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.ledger.models import Company, Vehicle, Voucher
from core.ledger.service import LedgerService
from core.ledger.types import VoucherSide
from core.storage.ledger_store import SQLiteLedgerStore

AddVoucher = Callable[..., Awaitable[Voucher]]


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 생성된 인메모리 DB"""
    adapter = SQLiteAdapter(":memory:")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def store(db: SQLiteAdapter) -> SQLiteLedgerStore:
    """원장 저장소"""
    return SQLiteLedgerStore(db)


@pytest.fixture
def service(store: SQLiteLedgerStore) -> LedgerService:
    """원장 서비스"""
    return LedgerService(store)


@pytest_asyncio.fixture
async def company(store: SQLiteLedgerStore) -> Company:
    """샘플 회사 (회계연도 2024-04-01 ~ 2025-03-31)"""
    return await store.create_company("Focus Transport", date(2024, 4, 1), date(2025, 3, 31))


@pytest_asyncio.fixture
async def vehicle_a(store: SQLiteLedgerStore, company: Company) -> Vehicle:
    """샘플 계정 A"""
    return await store.create_vehicle(company.company_id, "UP-25C-1234", "Truck A")


@pytest_asyncio.fixture
async def vehicle_b(store: SQLiteLedgerStore, company: Company) -> Vehicle:
    """샘플 계정 B"""
    return await store.create_vehicle(company.company_id, "UP-25C-5678", "Truck B")


@pytest.fixture
def add_voucher(store: SQLiteLedgerStore) -> AddVoucher:
    """전표 직접 저장 헬퍼 (번호 미지정 시 회사의 다음 번호 사용)

    사용 예시:
        await add_voucher(vehicle, date(2024, 1, 1), "100", VoucherSide.DEBIT)
    """

    async def _add(
        vehicle: Vehicle,
        day: date,
        amount: str,
        side: VoucherSide,
        number: int | None = None,
        narration: str | None = None,
    ) -> Voucher:
        if number is None:
            company = await store.get_company(vehicle.company_id)
            assert company is not None
            number = company.last_voucher_number + 1

        saved = await store.insert_voucher(
            Voucher(
                company_id=vehicle.company_id,
                voucher_number=number,
                date=day,
                vehicle_id=vehicle.vehicle_id,
                amount=Decimal(amount),
                side=side,
                narration=narration,
            )
        )
        await store.update_company_last_voucher_number(vehicle.company_id, number)
        return saved

    return _add
