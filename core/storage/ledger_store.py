"""
LedgerStore - 원장 저장소

companies / vehicles / vouchers 테이블을 통해 원장 데이터 관리.
원장 엔진이 의존하는 ILedgerStore Protocol의 SQLite 구현체.

규칙:
- 필터(회사, 계정, 기간)는 SQL WHERE로 처리 (전체 테이블을 메모리로 읽지 않음)
- 금액은 TEXT(Decimal 문자열)로 저장, Decimal로 읽음
- 쓰기 메서드는 transaction() 블록 안에서 실행 (run_atomic 내부에서는 바깥 블록이 커밋)
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.errors import (
    ConcurrencyConflict,
    LedgerError,
    NotFound,
    TransactionFailed,
)
from core.ledger.models import Company, Vehicle, Voucher
from core.ledger.types import ZERO, VoucherSide, signed_amount
from core.utils.timezone import (
    now_utc,
    parse_iso_date,
    parse_iso_datetime,
    to_iso_date,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COMPANY_COLUMNS = """
    company_id, name, financial_year_start, financial_year_end,
    last_voucher_number, is_active, created_at, modified_at
"""

_VEHICLE_COLUMNS = """
    vehicle_id, company_id, number, description, is_active, created_at, modified_at
"""

_VOUCHER_COLUMNS = """
    voucher_id, company_id, voucher_number, date, vehicle_id,
    amount, side, narration, version, created_at, modified_at
"""


def _row_to_company(row: tuple[Any, ...]) -> Company:
    return Company(
        company_id=row[0],
        name=row[1],
        financial_year_start=parse_iso_date(row[2]),
        financial_year_end=parse_iso_date(row[3]),
        last_voucher_number=row[4],
        is_active=bool(row[5]),
        created_at=parse_iso_datetime(row[6]),
        modified_at=parse_iso_datetime(row[7]),
    )


def _row_to_vehicle(row: tuple[Any, ...]) -> Vehicle:
    return Vehicle(
        vehicle_id=row[0],
        company_id=row[1],
        number=row[2],
        description=row[3],
        is_active=bool(row[4]),
        created_at=parse_iso_datetime(row[5]),
        modified_at=parse_iso_datetime(row[6]),
    )


def _row_to_voucher(row: tuple[Any, ...]) -> Voucher:
    return Voucher(
        voucher_id=row[0],
        company_id=row[1],
        voucher_number=row[2],
        date=parse_iso_date(row[3]),
        vehicle_id=row[4],
        amount=Decimal(row[5]),
        side=VoucherSide(row[6]),
        narration=row[7],
        version=row[8],
        created_at=parse_iso_datetime(row[9]),
        modified_at=parse_iso_datetime(row[10]),
    )


class SQLiteLedgerStore:
    """원장 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        store = SQLiteLedgerStore(db)

        company = await store.get_company(1)
        vouchers = await store.vouchers_by_vehicle(3, start=date(2024, 4, 1))

        async def work() -> None:
            await store.bulk_reassign_voucher_vehicle(3, 4)
            await store.delete_vehicle(3)

        await store.run_atomic(work)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 트랜잭션
    # -------------------------------------------------------------------------

    async def run_atomic(self, fn: Callable[[], Awaitable[T]]) -> T:
        """fn을 하나의 트랜잭션으로 실행

        원장 예외는 롤백 후 그대로 전파.
        DB 드라이버 오류는 롤백 후 TransactionFailed로 변환.

        Raises:
            TransactionFailed: DB 오류로 롤백된 경우
        """
        try:
            async with self.db.transaction():
                return await fn()
        except LedgerError:
            raise
        except aiosqlite.Error as e:
            logger.error(f"원자 단위 실행 실패, 롤백됨: {e}")
            raise TransactionFailed(str(e)) from e

    # -------------------------------------------------------------------------
    # Company
    # -------------------------------------------------------------------------

    async def create_company(
        self,
        name: str,
        financial_year_start: date,
        financial_year_end: date,
    ) -> Company:
        """회사 생성"""
        now = now_utc().isoformat()
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                INSERT INTO companies (
                    name, financial_year_start, financial_year_end,
                    last_voucher_number, is_active, created_at, modified_at
                ) VALUES (?, ?, ?, 0, 1, ?, ?)
                """,
                (
                    name,
                    to_iso_date(financial_year_start),
                    to_iso_date(financial_year_end),
                    now,
                    now,
                ),
            )
            company_id = cursor.lastrowid

        logger.info(f"회사 생성: {name}", extra={"company_id": company_id})
        company = await self.get_company(company_id)
        assert company is not None
        return company

    async def get_company(self, company_id: int) -> Company | None:
        """회사 조회"""
        row = await self.db.fetchone(
            f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE company_id = ?",
            (company_id,),
        )
        return _row_to_company(row) if row else None

    async def get_company_by_name(self, name: str) -> Company | None:
        """이름으로 회사 조회"""
        row = await self.db.fetchone(
            f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE name = ?",
            (name,),
        )
        return _row_to_company(row) if row else None

    async def list_active_companies(self) -> list[Company]:
        """활성 회사 목록 (이름 순)"""
        rows = await self.db.fetchall(
            f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE is_active = 1 ORDER BY name"
        )
        return [_row_to_company(row) for row in rows]

    async def update_company_last_voucher_number(
        self,
        company_id: int,
        voucher_number: int,
    ) -> int:
        """high-water mark 갱신

        max(last_voucher_number, voucher_number)로 갱신하므로
        수동으로 낮은 번호를 입력해도 감소하지 않음 (멱등).

        Raises:
            NotFound: 회사 없음
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                UPDATE companies
                SET last_voucher_number = MAX(last_voucher_number, ?),
                    modified_at = ?
                WHERE company_id = ?
                """,
                (voucher_number, now_utc().isoformat(), company_id),
            )
            if cursor.rowcount == 0:
                raise NotFound("company", company_id)

            row = await self.db.fetchone(
                "SELECT last_voucher_number FROM companies WHERE company_id = ?",
                (company_id,),
            )

        assert row is not None
        return row[0]

    # -------------------------------------------------------------------------
    # Vehicle
    # -------------------------------------------------------------------------

    async def create_vehicle(
        self,
        company_id: int,
        number: str,
        description: str | None = None,
    ) -> Vehicle:
        """계정 생성"""
        now = now_utc().isoformat()
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                INSERT INTO vehicles (
                    company_id, number, description, is_active, created_at, modified_at
                ) VALUES (?, ?, ?, 1, ?, ?)
                """,
                (company_id, number, description, now, now),
            )
            vehicle_id = cursor.lastrowid

        logger.info(
            f"계정 생성: {number}",
            extra={"company_id": company_id, "vehicle_id": vehicle_id},
        )
        vehicle = await self.get_vehicle(vehicle_id)
        assert vehicle is not None
        return vehicle

    async def get_vehicle(self, vehicle_id: int) -> Vehicle | None:
        """계정 조회"""
        row = await self.db.fetchone(
            f"SELECT {_VEHICLE_COLUMNS} FROM vehicles WHERE vehicle_id = ?",
            (vehicle_id,),
        )
        return _row_to_vehicle(row) if row else None

    async def get_vehicle_by_number(
        self,
        company_id: int,
        number: str,
        active_only: bool = True,
    ) -> Vehicle | None:
        """번호(라벨)로 계정 조회 (대소문자 무시)"""
        sql = f"""
            SELECT {_VEHICLE_COLUMNS} FROM vehicles
            WHERE company_id = ? AND number = ? COLLATE NOCASE
        """
        if active_only:
            sql += " AND is_active = 1"
        row = await self.db.fetchone(sql, (company_id, number))
        return _row_to_vehicle(row) if row else None

    async def list_active_vehicles_by_company(self, company_id: int) -> list[Vehicle]:
        """회사의 활성 계정 목록 (번호 순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_VEHICLE_COLUMNS} FROM vehicles
            WHERE company_id = ? AND is_active = 1
            ORDER BY number
            """,
            (company_id,),
        )
        return [_row_to_vehicle(row) for row in rows]

    async def set_vehicle_active(self, vehicle_id: int, is_active: bool) -> bool:
        """계정 활성 상태 변경"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                "UPDATE vehicles SET is_active = ?, modified_at = ? WHERE vehicle_id = ?",
                (1 if is_active else 0, now_utc().isoformat(), vehicle_id),
            )
        return cursor.rowcount > 0

    async def delete_vehicle(self, vehicle_id: int) -> bool:
        """계정 삭제

        전표가 남아 있으면 FK(ON DELETE RESTRICT)로 실패.
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM vehicles WHERE vehicle_id = ?",
                (vehicle_id,),
            )
        return cursor.rowcount > 0

    async def count_vouchers_by_vehicle(self, vehicle_id: int) -> int:
        """계정의 전표 수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM vouchers WHERE vehicle_id = ?",
            (vehicle_id,),
        )
        return row[0] if row else 0

    # -------------------------------------------------------------------------
    # Voucher 쓰기
    # -------------------------------------------------------------------------

    async def insert_voucher(self, voucher: Voucher) -> Voucher:
        """전표 저장

        Returns:
            voucher_id / created_at / modified_at이 채워진 사본
        """
        now = now_utc()
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                INSERT INTO vouchers (
                    company_id, voucher_number, date, vehicle_id,
                    amount, side, narration, version, created_at, modified_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    voucher.company_id,
                    voucher.voucher_number,
                    to_iso_date(voucher.date),
                    voucher.vehicle_id,
                    str(voucher.amount),
                    voucher.side.value,
                    voucher.narration,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )

        logger.debug(
            f"전표 저장: #{voucher.voucher_number}",
            extra={"company_id": voucher.company_id, "voucher_id": cursor.lastrowid},
        )
        return voucher.with_changes(
            voucher_id=cursor.lastrowid,
            version=1,
            created_at=now,
            modified_at=now,
        )

    async def update_voucher(self, voucher: Voucher) -> Voucher:
        """전표 수정 (낙관적 버전 검사)

        Raises:
            NotFound: 전표 없음
            ConcurrencyConflict: 버전 불일치
        """
        if voucher.voucher_id is None:
            raise NotFound("voucher", "<unsaved>")

        now = now_utc()
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                UPDATE vouchers
                SET company_id = ?, voucher_number = ?, date = ?, vehicle_id = ?,
                    amount = ?, side = ?, narration = ?,
                    version = version + 1, modified_at = ?
                WHERE voucher_id = ? AND version = ?
                """,
                (
                    voucher.company_id,
                    voucher.voucher_number,
                    to_iso_date(voucher.date),
                    voucher.vehicle_id,
                    str(voucher.amount),
                    voucher.side.value,
                    voucher.narration,
                    now.isoformat(),
                    voucher.voucher_id,
                    voucher.version,
                ),
            )

            if cursor.rowcount == 0:
                if await self.get_voucher(voucher.voucher_id) is None:
                    raise NotFound("voucher", voucher.voucher_id)
                raise ConcurrencyConflict(voucher.voucher_id, voucher.version)

        return voucher.with_changes(version=voucher.version + 1, modified_at=now)

    async def delete_voucher(self, voucher_id: int) -> bool:
        """전표 삭제"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM vouchers WHERE voucher_id = ?",
                (voucher_id,),
            )
        return cursor.rowcount > 0

    async def bulk_reassign_voucher_vehicle(
        self,
        from_vehicle_id: int,
        to_vehicle_id: int,
    ) -> int:
        """전표의 계정 FK 일괄 변경

        vehicle_id 외 다른 필드는 변경하지 않음.
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "UPDATE vouchers SET vehicle_id = ? WHERE vehicle_id = ?",
                (to_vehicle_id, from_vehicle_id),
            )
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # Voucher 조회
    # -------------------------------------------------------------------------

    async def get_voucher(self, voucher_id: int) -> Voucher | None:
        """전표 조회"""
        row = await self.db.fetchone(
            f"SELECT {_VOUCHER_COLUMNS} FROM vouchers WHERE voucher_id = ?",
            (voucher_id,),
        )
        return _row_to_voucher(row) if row else None

    async def get_voucher_by_number(
        self,
        company_id: int,
        voucher_number: int,
    ) -> Voucher | None:
        """전표 번호로 조회"""
        row = await self.db.fetchone(
            f"""
            SELECT {_VOUCHER_COLUMNS} FROM vouchers
            WHERE company_id = ? AND voucher_number = ?
            """,
            (company_id, voucher_number),
        )
        return _row_to_voucher(row) if row else None

    async def vouchers_by_vehicle(
        self,
        vehicle_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Voucher]:
        """계정별 전표 (날짜, 번호 오름차순)"""
        sql = f"SELECT {_VOUCHER_COLUMNS} FROM vouchers WHERE vehicle_id = ?"
        params: list[Any] = [vehicle_id]

        if start is not None:
            sql += " AND date >= ?"
            params.append(to_iso_date(start))
        if end is not None:
            sql += " AND date <= ?"
            params.append(to_iso_date(end))

        sql += " ORDER BY date, voucher_number"

        rows = await self.db.fetchall(sql, tuple(params))
        return [_row_to_voucher(row) for row in rows]

    async def vouchers_by_company_date_range(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> list[Voucher]:
        """회사의 기간 전표 (날짜, 번호 오름차순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_VOUCHER_COLUMNS} FROM vouchers
            WHERE company_id = ? AND date >= ? AND date <= ?
            ORDER BY date, voucher_number
            """,
            (company_id, to_iso_date(start), to_iso_date(end)),
        )
        return [_row_to_voucher(row) for row in rows]

    async def voucher_exists_with_number(
        self,
        company_id: int,
        voucher_number: int,
        excluding_id: int | None = None,
    ) -> bool:
        """전표 번호 존재 여부"""
        sql = "SELECT 1 FROM vouchers WHERE company_id = ? AND voucher_number = ?"
        params: list[Any] = [company_id, voucher_number]

        if excluding_id is not None:
            sql += " AND voucher_id != ?"
            params.append(excluding_id)

        row = await self.db.fetchone(sql + " LIMIT 1", tuple(params))
        return row is not None

    async def sum_signed_amount(
        self,
        vehicle_id: int,
        as_of: date | None = None,
    ) -> Decimal:
        """Σ amount·sign(side)

        SQLite SUM은 TEXT를 REAL로 변환하므로 합산은 Decimal로 수행.
        """
        sql = "SELECT amount, side FROM vouchers WHERE vehicle_id = ?"
        params: list[Any] = [vehicle_id]

        if as_of is not None:
            sql += " AND date <= ?"
            params.append(to_iso_date(as_of))

        rows = await self.db.fetchall(sql, tuple(params))

        total = ZERO
        for amount, side in rows:
            total += signed_amount(Decimal(amount), VoucherSide(side))
        return total
