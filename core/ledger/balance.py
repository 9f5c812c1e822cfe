"""
잔액 엔진

계정 잔액, 누적 잔액 원장, 시산표, 일계표 계산.
저장된 데이터를 변경하지 않으며 잔액을 캐시하지 않음
(매 조회마다 전표를 다시 읽어 잔액이 원본과 어긋나지 않도록 함).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.errors import NotFound, ValidationError, raise_if_cancelled
from core.ledger.models import Vehicle, Voucher
from core.ledger.types import ZERO, VoucherSide
from core.utils.timezone import day_before

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


@dataclass
class LedgerRow:
    """원장 행 (전표 + 누적 잔액)"""

    voucher: Voucher
    running_balance: Decimal

    @property
    def debit(self) -> Decimal:
        return self.voucher.amount if self.voucher.side == VoucherSide.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.voucher.amount if self.voucher.side == VoucherSide.CREDIT else ZERO


@dataclass
class VehicleLedger:
    """계정 원장

    opening_balance = start 전일까지의 잔액.
    rows는 (날짜, 전표 번호) 오름차순.
    """

    vehicle: Vehicle
    start: date
    end: date
    opening_balance: Decimal
    rows: list[LedgerRow] = field(default_factory=list)

    @property
    def closing_balance(self) -> Decimal:
        """마지막 누적 잔액 (행이 없으면 기초 잔액)"""
        return self.rows[-1].running_balance if self.rows else self.opening_balance

    @property
    def total_debit(self) -> Decimal:
        return sum((row.debit for row in self.rows), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((row.credit for row in self.rows), ZERO)


@dataclass
class TrialBalanceLine:
    """시산표 행

    잔액 0은 관례상 Debit으로 표시.
    """

    vehicle: Vehicle
    amount: Decimal  # |balance|
    side: VoucherSide


@dataclass
class DayBookSummary:
    """일자별 합계"""

    date: date
    total_debit: Decimal
    total_credit: Decimal

    @property
    def net(self) -> Decimal:
        """차변 - 대변"""
        return self.total_debit - self.total_credit


def build_ledger_rows(
    opening_balance: Decimal,
    vouchers: list[Voucher],
    cancel_event: asyncio.Event | None = None,
) -> list[LedgerRow]:
    """누적 잔액 행 생성

    저장소 반환 순서와 무관하게 (날짜, 전표 번호)로 다시 정렬하여
    같은 날짜의 전표도 결정적인 누적 잔액을 갖도록 함.
    """
    rows: list[LedgerRow] = []
    running = opening_balance

    for voucher in sorted(vouchers, key=lambda v: v.sort_key):
        raise_if_cancelled(cancel_event, "원장")
        running += voucher.signed_amount
        rows.append(LedgerRow(voucher=voucher, running_balance=running))

    return rows


class BalanceEngine:
    """잔액 엔진

    Args:
        store: 원장 저장소
    """

    def __init__(self, store: ILedgerStore):
        self.store = store

    async def _require_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = await self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFound("vehicle", vehicle_id)
        return vehicle

    async def balance_as_of(self, vehicle_id: int, as_of: date) -> Decimal:
        """as_of 당일까지(포함)의 부호 있는 잔액

        전표가 없으면 0.

        Raises:
            NotFound: 계정 없음
        """
        await self._require_vehicle(vehicle_id)
        balance = await self.store.sum_signed_amount(vehicle_id, as_of)

        logger.debug(
            f"잔액 조회: vehicle={vehicle_id} as_of={as_of} balance={balance}"
        )
        return balance

    async def ledger(
        self,
        vehicle_id: int,
        start: date,
        end: date,
        cancel_event: asyncio.Event | None = None,
    ) -> VehicleLedger:
        """계정 원장 (기초 잔액 + 기간 내 전표별 누적 잔액)

        Raises:
            NotFound: 계정 없음
            ValidationError: start > end
            OperationCancelled: cancel_event가 설정됨
        """
        if start > end:
            raise ValidationError("start", "시작일이 종료일보다 늦습니다")

        vehicle = await self._require_vehicle(vehicle_id)
        if start == date.min:
            opening = ZERO
        else:
            opening = await self.store.sum_signed_amount(vehicle_id, day_before(start))
        vouchers = await self.store.vouchers_by_vehicle(vehicle_id, start, end)

        return VehicleLedger(
            vehicle=vehicle,
            start=start,
            end=end,
            opening_balance=opening,
            rows=build_ledger_rows(opening, vouchers, cancel_event),
        )

    async def trial_balance(
        self,
        company_id: int,
        as_of: date,
        cancel_event: asyncio.Event | None = None,
    ) -> list[TrialBalanceLine]:
        """시산표 (활성 계정별 |잔액|과 방향, 계정 번호 순)

        Raises:
            NotFound: 회사 없음
            OperationCancelled: cancel_event가 설정됨
        """
        if await self.store.get_company(company_id) is None:
            raise NotFound("company", company_id)

        vehicles = await self.store.list_active_vehicles_by_company(company_id)

        lines: list[TrialBalanceLine] = []
        for vehicle in sorted(vehicles, key=lambda v: v.number):
            raise_if_cancelled(cancel_event, "시산표")

            balance = await self.store.sum_signed_amount(vehicle.vehicle_id, as_of)
            lines.append(
                TrialBalanceLine(
                    vehicle=vehicle,
                    amount=abs(balance),
                    side=VoucherSide.DEBIT if balance >= 0 else VoucherSide.CREDIT,
                )
            )

        return lines

    async def day_book(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> list[Voucher]:
        """일계표 (회사의 기간 전표, 날짜/번호 순)"""
        if start > end:
            raise ValidationError("start", "시작일이 종료일보다 늦습니다")
        if await self.store.get_company(company_id) is None:
            raise NotFound("company", company_id)

        vouchers = await self.store.vouchers_by_company_date_range(company_id, start, end)
        return sorted(vouchers, key=lambda v: v.sort_key)

    async def consolidated_day_book(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> list[DayBookSummary]:
        """일자별 차변/대변 합계 (날짜 오름차순)"""
        summaries: dict[date, DayBookSummary] = {}

        for voucher in await self.day_book(company_id, start, end):
            summary = summaries.get(voucher.date)
            if summary is None:
                summary = DayBookSummary(voucher.date, ZERO, ZERO)
                summaries[voucher.date] = summary

            if voucher.side == VoucherSide.DEBIT:
                summary.total_debit += voucher.amount
            else:
                summary.total_credit += voucher.amount

        return [summaries[d] for d in sorted(summaries)]
