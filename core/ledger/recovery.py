"""
회수(Recovery) 분석기

잔액이 남아 있는데 마지막 입금(Credit)이 오래된 계정을 찾아
수금 후속 조치 대상 목록을 생성.

포함 조건 (활성 계정, 오늘 기준 잔액 > 0):
- 입금 이력 없음 → 일수 기준과 무관하게 포함
- 마지막 입금 후 경과 일수 ≥ min_days_since_last_credit
- 금액 필터가 있으면 마지막 입금 금액 ≥ min_last_credit_amount

표시용 그룹핑(라벨 접두어)은 포함/제외 판단에 영향을 주지 않음.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from itertools import groupby
from typing import TYPE_CHECKING

from core.constants import Defaults
from core.ledger.errors import NotFound, ValidationError, raise_if_cancelled
from core.ledger.models import Vehicle, Voucher
from core.ledger.types import ZERO, VoucherSide
from core.utils.timezone import days_between
from core.utils.timezone import today as local_today

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore
    from core.ledger.balance import BalanceEngine

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_STATUS = "No transactions ever"
OTHER_GROUP = "OTHER"


@dataclass
class RecoveryItem:
    """회수 목록 항목"""

    vehicle: Vehicle
    balance: Decimal
    status: str
    group_prefix: str
    last_transaction_date: date | None = None
    last_transaction_amount: Decimal | None = None
    last_credit_date: date | None = None
    last_credit_amount: Decimal | None = None
    days_since_last_credit: int | None = None  # 입금 이력 없으면 None

    @property
    def has_credits(self) -> bool:
        return self.last_credit_date is not None


@dataclass
class RecoveryGroup:
    """표시용 그룹 (라벨 접두어별)

    show_header는 그룹 크기가 min_group_size 이상일 때만 True.
    """

    prefix: str
    items: list[RecoveryItem] = field(default_factory=list)
    show_header: bool = False

    @property
    def header(self) -> str:
        return f"═══ {self.prefix} VEHICLES ═══"

    @property
    def total_balance(self) -> Decimal:
        return sum((item.balance for item in self.items), ZERO)


def extract_group_prefix(label: str) -> str:
    """계정 라벨에서 그룹 접두어 추출

    Example:
        >>> extract_group_prefix("UP-25C-1234")
        'UP-25-C'
        >>> extract_group_prefix("WB-23-9876")
        'WB-23'
        >>> extract_group_prefix("MISCELLANEOUS")
        'MISCEL'
    """
    if not label:
        return OTHER_GROUP

    parts = label.split("-")
    if len(parts) >= 2:
        state, series = parts[0], parts[1]
        digits = "".join(ch for ch in series if ch.isdigit())
        letters = "".join(ch for ch in series if ch.isalpha())
        if digits:
            if letters:
                return f"{state}-{digits}-{letters}"
            return f"{state}-{digits}"

    return label[:6]


def group_recovery_items(
    items: list[RecoveryItem],
    min_group_size: int = Defaults.RECOVERY_MIN_GROUP_SIZE,
) -> list[RecoveryGroup]:
    """접두어별 그룹핑 (접두어 순, 그룹 내 라벨 순)"""
    ordered = sorted(items, key=lambda item: (item.group_prefix, item.vehicle.number))

    groups: list[RecoveryGroup] = []
    for prefix, members in groupby(ordered, key=lambda item: item.group_prefix):
        group_items = list(members)
        groups.append(
            RecoveryGroup(
                prefix=prefix,
                items=group_items,
                show_header=len(group_items) >= min_group_size,
            )
        )
    return groups


def _latest(vouchers: list[Voucher], side: VoucherSide | None = None) -> Voucher | None:
    candidates = [v for v in vouchers if side is None or v.side == side]
    if not candidates:
        return None
    return max(candidates, key=lambda v: v.sort_key)


def describe_status(
    last_credit: Voucher | None,
    last_debit: Voucher | None,
    as_of: date,
) -> str:
    """상태 문구

    - 전표 없음: "No transactions ever"
    - 입금 있음: "<n> days since last credit"
    - 입금 없고 출금만 있음: "<n> days since last debit"
    """
    if last_credit is not None:
        return f"{days_between(last_credit.date, as_of)} days since last credit"
    if last_debit is not None:
        return f"{days_between(last_debit.date, as_of)} days since last debit"
    return NO_TRANSACTIONS_STATUS


class RecoveryAnalyzer:
    """회수 분석기

    Args:
        store: 원장 저장소
        balance_engine: 잔액 엔진
    """

    def __init__(self, store: ILedgerStore, balance_engine: BalanceEngine):
        self.store = store
        self.balance_engine = balance_engine

    async def recovery_list(
        self,
        company_id: int,
        min_days_since_last_credit: int,
        min_last_credit_amount: Decimal | None = None,
        today: date | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[RecoveryItem]:
        """회수 대상 목록 (계정 라벨 순)

        Args:
            company_id: 회사 ID
            min_days_since_last_credit: 마지막 입금 후 최소 경과 일수
            min_last_credit_amount: 마지막 입금 최소 금액 (None이면 필터 없음)
            today: 기준일 (None이면 오늘)
            cancel_event: 설정되면 계정 사이에서 중단

        Raises:
            NotFound: 회사 없음
            ValidationError: 음수 일수/금액
            OperationCancelled: cancel_event가 설정됨
        """
        if min_days_since_last_credit < 0:
            raise ValidationError("min_days", "경과 일수는 0 이상이어야 합니다")
        if min_last_credit_amount is not None and min_last_credit_amount < 0:
            raise ValidationError("min_amount", "최소 금액은 0 이상이어야 합니다")

        if await self.store.get_company(company_id) is None:
            raise NotFound("company", company_id)

        as_of = today or local_today()
        vehicles = await self.store.list_active_vehicles_by_company(company_id)

        items: list[RecoveryItem] = []
        for vehicle in vehicles:
            raise_if_cancelled(cancel_event, "회수 목록")

            item = await self._evaluate(
                vehicle, as_of, min_days_since_last_credit, min_last_credit_amount
            )
            if item is not None:
                items.append(item)

        items.sort(key=lambda item: item.vehicle.number)

        logger.info(
            f"회수 목록: {len(items)}/{len(vehicles)}개 계정 "
            f"(min_days={min_days_since_last_credit}, min_amount={min_last_credit_amount})",
            extra={"company_id": company_id},
        )
        return items

    async def _evaluate(
        self,
        vehicle: Vehicle,
        as_of: date,
        min_days: int,
        min_amount: Decimal | None,
    ) -> RecoveryItem | None:
        """계정 하나의 포함 여부 판단 (제외면 None)"""
        balance = await self.balance_engine.balance_as_of(vehicle.vehicle_id, as_of)
        if balance <= 0:
            return None

        vouchers = await self.store.vouchers_by_vehicle(vehicle.vehicle_id, end=as_of)
        last_credit = _latest(vouchers, VoucherSide.CREDIT)

        days_since_credit: int | None = None
        if last_credit is not None:
            days_since_credit = days_between(last_credit.date, as_of)
            if days_since_credit < min_days:
                return None

        if min_amount is not None:
            if last_credit is None or last_credit.amount < min_amount:
                return None

        last_voucher = _latest(vouchers)
        return RecoveryItem(
            vehicle=vehicle,
            balance=balance,
            status=describe_status(
                last_credit, _latest(vouchers, VoucherSide.DEBIT), as_of
            ),
            group_prefix=extract_group_prefix(vehicle.number),
            last_transaction_date=last_voucher.date if last_voucher else None,
            last_transaction_amount=last_voucher.amount if last_voucher else None,
            last_credit_date=last_credit.date if last_credit else None,
            last_credit_amount=last_credit.amount if last_credit else None,
            days_since_last_credit=days_since_credit,
        )
