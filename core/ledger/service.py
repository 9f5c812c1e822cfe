"""
LedgerService - 원장 코어 파사드

보고서/화면/Web 계층이 사용하는 원장 API.
엔진(시퀀서, 잔액, 병합, 대사, 회수)을 하나의 저장소 위에 조립하고
전표/회사/계정 입력 워크플로우(검증 → 쓰기 → 번호 커밋)를 원자 단위로 실행.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.ledger.balance import BalanceEngine, DayBookSummary, TrialBalanceLine, VehicleLedger
from core.ledger.errors import NotFound, ValidationError
from core.ledger.merge import MergeEngine, MergeResult
from core.ledger.models import Company, Vehicle, Voucher
from core.ledger.reconciliation import ComparisonResult, ReconciliationMatcher
from core.ledger.recovery import (
    RecoveryAnalyzer,
    RecoveryGroup,
    RecoveryItem,
    group_recovery_items,
)
from core.ledger.sequencer import VoucherSequencer
from core.ledger.types import VoucherSide, to_amount
from core.utils.timezone import day_before

if TYPE_CHECKING:
    from core.storage.ledger_store import SQLiteLedgerStore

logger = logging.getLogger(__name__)

# update_voucher에서 변경 가능한 필드
EDITABLE_VOUCHER_FIELDS = frozenset(
    {"voucher_number", "date", "vehicle_id", "amount", "side", "narration"}
)


def _validate_amount(value: Any) -> Decimal:
    try:
        amount = to_amount(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("amount", str(e)) from e
    if amount <= 0:
        raise ValidationError("amount", "금액은 0보다 커야 합니다")
    return amount


def _validate_side(value: Any) -> VoucherSide:
    try:
        return VoucherSide.parse(value)
    except ValueError as e:
        raise ValidationError("side", str(e)) from e


def default_financial_year(on: date) -> tuple[date, date]:
    """on이 속한 회계연도 (4월 1일 ~ 다음 해 3월 31일)"""
    start_month = Defaults.FINANCIAL_YEAR_START_MONTH
    start_year = on.year if on.month >= start_month else on.year - 1
    start = date(start_year, start_month, 1)
    return start, day_before(date(start_year + 1, start_month, 1))


class LedgerService:
    """원장 서비스

    Args:
        store: 원장 저장소 (SQLiteLedgerStore)
        recovery_min_group_size: 회수 목록 그룹 헤더 최소 계정 수

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        service = LedgerService(SQLiteLedgerStore(db))

        voucher = await service.create_voucher(
            company_id=1,
            vehicle_id=3,
            date=date(2024, 1, 1),
            amount=Decimal("100"),
            side=VoucherSide.DEBIT,
        )
        balance = await service.get_balance(3, date(2024, 1, 31))
    ```
    """

    def __init__(
        self,
        store: SQLiteLedgerStore,
        recovery_min_group_size: int = Defaults.RECOVERY_MIN_GROUP_SIZE,
    ):
        self.store = store
        self.recovery_min_group_size = recovery_min_group_size

        self.sequencer = VoucherSequencer(store)
        self.balance = BalanceEngine(store)
        self.merger = MergeEngine(store)
        self.matcher = ReconciliationMatcher(store)
        self.recovery = RecoveryAnalyzer(store, self.balance)

    # -------------------------------------------------------------------------
    # 전표 번호
    # -------------------------------------------------------------------------

    async def allocate_voucher_number(self, company_id: int) -> int:
        """다음 전표 번호 (조회만, 상태 변경 없음)"""
        return await self.sequencer.next_number(company_id)

    async def commit_voucher_number(self, company_id: int, assigned_number: int) -> int:
        """저장된 전표 번호를 high-water mark에 반영"""
        return await self.sequencer.commit(company_id, assigned_number)

    # -------------------------------------------------------------------------
    # 조회 / 보고서
    # -------------------------------------------------------------------------

    async def get_balance(self, vehicle_id: int, as_of: date) -> Decimal:
        return await self.balance.balance_as_of(vehicle_id, as_of)

    async def get_ledger(
        self,
        vehicle_id: int,
        start: date,
        end: date,
        cancel_event: asyncio.Event | None = None,
    ) -> VehicleLedger:
        return await self.balance.ledger(vehicle_id, start, end, cancel_event)

    async def get_trial_balance(
        self,
        company_id: int,
        as_of: date,
        cancel_event: asyncio.Event | None = None,
    ) -> list[TrialBalanceLine]:
        return await self.balance.trial_balance(company_id, as_of, cancel_event)

    async def get_day_book(self, company_id: int, start: date, end: date) -> list[Voucher]:
        return await self.balance.day_book(company_id, start, end)

    async def get_consolidated_day_book(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> list[DayBookSummary]:
        return await self.balance.consolidated_day_book(company_id, start, end)

    async def compare_transactions(self, vehicle_id: int) -> ComparisonResult:
        return await self.matcher.compare(vehicle_id)

    async def get_recovery_list(
        self,
        company_id: int,
        min_days: int = Defaults.RECOVERY_MIN_DAYS,
        min_amount: Decimal | None = None,
        today: date | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[RecoveryItem]:
        return await self.recovery.recovery_list(
            company_id,
            min_days,
            min_last_credit_amount=min_amount,
            today=today,
            cancel_event=cancel_event,
        )

    async def get_grouped_recovery_list(
        self,
        company_id: int,
        min_days: int = Defaults.RECOVERY_MIN_DAYS,
        min_amount: Decimal | None = None,
        today: date | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[RecoveryGroup]:
        """라벨 접두어별로 묶은 회수 목록"""
        items = await self.get_recovery_list(
            company_id, min_days, min_amount, today, cancel_event
        )
        return group_recovery_items(items, self.recovery_min_group_size)

    # -------------------------------------------------------------------------
    # 병합
    # -------------------------------------------------------------------------

    async def merge_vehicles(self, source_id: int, target_id: int) -> MergeResult:
        """계정 병합 (되돌릴 수 없음, 호출자가 사용자 확인 후 호출)"""
        return await self.merger.merge(source_id, target_id)

    # -------------------------------------------------------------------------
    # 전표 워크플로우
    # -------------------------------------------------------------------------

    async def _validate_voucher_refs(self, company_id: int, vehicle_id: int) -> None:
        """회사/계정 참조 검증 (계정은 활성 상태이며 같은 회사 소속이어야 함)"""
        if await self.store.get_company(company_id) is None:
            raise ValidationError("company_id", f"회사가 존재하지 않습니다: {company_id}")

        vehicle = await self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise ValidationError("vehicle_id", f"계정이 존재하지 않습니다: {vehicle_id}")
        if not vehicle.is_active:
            raise ValidationError("vehicle_id", f"비활성 계정입니다: {vehicle.number}")
        if vehicle.company_id != company_id:
            raise ValidationError("vehicle_id", "다른 회사의 계정입니다")

    async def create_voucher(
        self,
        company_id: int,
        vehicle_id: int,
        date: date,
        amount: Decimal | int | str,
        side: VoucherSide | str,
        narration: str | None = None,
        voucher_number: int | None = None,
    ) -> Voucher:
        """전표 생성

        검증 → 번호 할당(미지정 시) → 유일성 검사 → 저장 → 번호 커밋을
        하나의 원자 단위로 실행.

        Raises:
            ValidationError: 금액/방향/참조 검증 실패
            DuplicateVoucherNumber: 번호 중복
            TransactionFailed: 저장 실패 (롤백됨)
        """
        checked_amount = _validate_amount(amount)
        checked_side = _validate_side(side)
        if date is None:
            raise ValidationError("date", "날짜가 필요합니다")

        async def _create() -> Voucher:
            await self._validate_voucher_refs(company_id, vehicle_id)

            number = voucher_number
            if number is None:
                number = await self.sequencer.next_number(company_id)
            await self.sequencer.validate_unique(company_id, number)

            saved = await self.store.insert_voucher(
                Voucher(
                    company_id=company_id,
                    voucher_number=number,
                    date=date,
                    vehicle_id=vehicle_id,
                    amount=checked_amount,
                    side=checked_side,
                    narration=narration,
                )
            )
            await self.sequencer.commit(company_id, number)
            return saved

        voucher = await self.store.run_atomic(_create)

        logger.info(
            f"전표 생성: #{voucher.voucher_number} {voucher.side.value} {voucher.amount}",
            extra={"company_id": company_id, "voucher_id": voucher.voucher_id},
        )
        return voucher

    async def update_voucher(
        self,
        voucher_id: int,
        expected_version: int | None = None,
        **changes: Any,
    ) -> Voucher:
        """전표 수정

        모든 불변식을 다시 검증 (번호 유일성은 자기 자신 제외).
        expected_version을 주면 그 버전을 기준으로 충돌 검사.

        Raises:
            NotFound: 전표 없음
            ValidationError: 알 수 없는 필드 또는 검증 실패
            DuplicateVoucherNumber: 번호 중복
            ConcurrencyConflict: 다른 작성자가 먼저 수정함
        """
        unknown = set(changes) - EDITABLE_VOUCHER_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "수정할 수 없는 필드입니다")

        if "amount" in changes:
            changes["amount"] = _validate_amount(changes["amount"])
        if "side" in changes:
            changes["side"] = _validate_side(changes["side"])
        if "date" in changes and changes["date"] is None:
            raise ValidationError("date", "날짜가 필요합니다")

        async def _update() -> Voucher:
            current = await self.store.get_voucher(voucher_id)
            if current is None:
                raise NotFound("voucher", voucher_id)

            updated = current.with_changes(**changes)
            if expected_version is not None:
                updated = updated.with_changes(version=expected_version)

            await self._validate_voucher_refs(updated.company_id, updated.vehicle_id)
            await self.sequencer.validate_unique(
                updated.company_id, updated.voucher_number, excluding_voucher_id=voucher_id
            )

            saved = await self.store.update_voucher(updated)
            await self.sequencer.commit(saved.company_id, saved.voucher_number)
            return saved

        voucher = await self.store.run_atomic(_update)

        logger.info(
            f"전표 수정: #{voucher.voucher_number} (v{voucher.version})",
            extra={"company_id": voucher.company_id, "voucher_id": voucher_id},
        )
        return voucher

    async def delete_voucher(self, voucher_id: int) -> None:
        """전표 삭제 (last_voucher_number는 그대로, 빈 번호 허용)

        Raises:
            NotFound: 전표 없음
        """
        if not await self.store.delete_voucher(voucher_id):
            raise NotFound("voucher", voucher_id)

        logger.info("전표 삭제", extra={"voucher_id": voucher_id})

    async def get_voucher(self, voucher_id: int) -> Voucher:
        voucher = await self.store.get_voucher(voucher_id)
        if voucher is None:
            raise NotFound("voucher", voucher_id)
        return voucher

    async def find_voucher_by_number(self, company_id: int, voucher_number: int) -> Voucher:
        """전표 번호로 조회

        Raises:
            NotFound: 해당 번호 전표 없음
        """
        voucher = await self.store.get_voucher_by_number(company_id, voucher_number)
        if voucher is None:
            raise NotFound("voucher", f"{company_id}/#{voucher_number}")
        return voucher

    # -------------------------------------------------------------------------
    # 회사 / 계정
    # -------------------------------------------------------------------------

    async def list_companies(self) -> list[Company]:
        return await self.store.list_active_companies()

    async def get_company(self, company_id: int) -> Company:
        company = await self.store.get_company(company_id)
        if company is None:
            raise NotFound("company", company_id)
        return company

    async def list_vehicles(self, company_id: int) -> list[Vehicle]:
        """회사의 활성 계정 목록 (번호 순)"""
        await self.get_company(company_id)
        return await self.store.list_active_vehicles_by_company(company_id)

    async def create_company(
        self,
        name: str,
        financial_year_start: date | None = None,
        financial_year_end: date | None = None,
    ) -> Company:
        """회사 생성

        회계연도를 지정하지 않으면 오늘이 속한 4월~3월 회계연도 사용.

        Raises:
            ValidationError: 빈 이름, 중복 이름, 잘못된 회계연도
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "회사 이름이 필요합니다")
        if await self.store.get_company_by_name(name) is not None:
            raise ValidationError("name", f"이미 존재하는 회사입니다: {name}")

        if financial_year_start is None or financial_year_end is None:
            default_start, default_end = default_financial_year(date.today())
            financial_year_start = financial_year_start or default_start
            financial_year_end = financial_year_end or default_end
        if financial_year_start > financial_year_end:
            raise ValidationError("financial_year_end", "회계연도 종료일이 시작일보다 빠릅니다")

        return await self.store.create_company(name, financial_year_start, financial_year_end)

    async def create_vehicle(
        self,
        company_id: int,
        number: str,
        description: str | None = None,
    ) -> Vehicle:
        """계정 생성

        Raises:
            NotFound: 회사 없음
            ValidationError: 빈 라벨 또는 활성 계정 라벨 중복
        """
        if await self.store.get_company(company_id) is None:
            raise NotFound("company", company_id)

        number = (number or "").strip()
        if not number:
            raise ValidationError("number", "계정 번호가 필요합니다")
        if await self.store.get_vehicle_by_number(company_id, number) is not None:
            raise ValidationError("number", f"이미 존재하는 계정입니다: {number}")

        return await self.store.create_vehicle(company_id, number, description)

    async def deactivate_vehicle(self, vehicle_id: int) -> None:
        """계정 비활성화 (전표가 없는 계정만, 전표가 있으면 병합으로만 정리)

        Raises:
            NotFound: 계정 없음
            ValidationError: 전표가 남아 있음
        """
        vehicle = await self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFound("vehicle", vehicle_id)

        count = await self.store.count_vouchers_by_vehicle(vehicle_id)
        if count > 0:
            raise ValidationError(
                "vehicle_id",
                f"전표 {count}건이 있는 계정은 비활성화할 수 없습니다 (병합 사용)",
            )

        await self.store.set_vehicle_active(vehicle_id, False)
        logger.info(f"계정 비활성화: {vehicle.number}", extra={"vehicle_id": vehicle_id})
