"""
대사(Reconciliation) 매처

한 계정 안에서 같은 금액의 차변/대변 전표를 1:1로 짝지어
짝이 없는 전표(이중 입력, 누락된 입금 추정)를 표시.

금액만 보는 휴리스틱이며 실제 거래 대응을 보장하지 않음 (진단 도구).

짝짓기 규칙 (금액별 FIFO):
- 차변/대변을 각각 (날짜, 전표 번호) 오름차순 정렬
- 같은 금액 버킷 안에서 n번째 차변 ↔ n번째 대변
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.errors import NotFound
from core.ledger.models import Vehicle, Voucher
from core.ledger.types import VoucherSide

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


@dataclass
class MatchEntry:
    """전표별 대사 결과"""

    voucher: Voucher
    matched: bool
    counterpart_voucher_id: int | None = None

    @property
    def marker(self) -> str:
        """표시용 마커 (짝 있음: "", 미대사 차변: "UD", 미대사 대변: "UC")"""
        if self.matched:
            return ""
        return "UD" if self.voucher.side == VoucherSide.DEBIT else "UC"


@dataclass
class ComparisonResult:
    """계정 대사 결과

    entries는 (날짜, 전표 번호) 오름차순이며 모든 전표가 정확히 한 번 포함됨.
    """

    vehicle: Vehicle
    entries: list[MatchEntry] = field(default_factory=list)

    @property
    def unmatched_debits(self) -> list[MatchEntry]:
        return [
            e for e in self.entries
            if not e.matched and e.voucher.side == VoucherSide.DEBIT
        ]

    @property
    def unmatched_credits(self) -> list[MatchEntry]:
        return [
            e for e in self.entries
            if not e.matched and e.voucher.side == VoucherSide.CREDIT
        ]

    @property
    def all_matched(self) -> bool:
        return all(e.matched for e in self.entries)

    @property
    def summary(self) -> str:
        """요약 문구"""
        if self.all_matched:
            return f"All transactions matched for {self.vehicle.number}"
        return (
            f"{len(self.unmatched_debits)} unmatched debits, "
            f"{len(self.unmatched_credits)} unmatched credits"
        )


def pair_vouchers(vouchers: list[Voucher]) -> list[MatchEntry]:
    """금액별 FIFO 1:1 짝짓기

    Args:
        vouchers: 한 계정의 전표 (순서 무관)

    Returns:
        (날짜, 전표 번호) 순 MatchEntry 목록
    """
    ordered = sorted(vouchers, key=lambda v: v.sort_key)

    open_credits: dict[Decimal, deque[Voucher]] = defaultdict(deque)
    for voucher in ordered:
        if voucher.side == VoucherSide.CREDIT:
            open_credits[voucher.amount].append(voucher)

    counterpart: dict[int, int] = {}
    for voucher in ordered:
        if voucher.side != VoucherSide.DEBIT:
            continue
        bucket = open_credits.get(voucher.amount)
        if not bucket:
            continue
        credit = bucket.popleft()
        counterpart[id(voucher)] = credit.voucher_id
        counterpart[id(credit)] = voucher.voucher_id

    return [
        MatchEntry(
            voucher=voucher,
            matched=id(voucher) in counterpart,
            counterpart_voucher_id=counterpart.get(id(voucher)),
        )
        for voucher in ordered
    ]


class ReconciliationMatcher:
    """대사 매처

    Args:
        store: 원장 저장소
    """

    def __init__(self, store: ILedgerStore):
        self.store = store

    async def compare(self, vehicle_id: int) -> ComparisonResult:
        """계정의 차변/대변 대사

        Raises:
            NotFound: 계정 없음
        """
        vehicle = await self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise NotFound("vehicle", vehicle_id)

        vouchers = await self.store.vouchers_by_vehicle(vehicle_id)
        result = ComparisonResult(vehicle=vehicle, entries=pair_vouchers(vouchers))

        logger.info(
            f"대사 완료: {vehicle.number} - {result.summary}",
            extra={"vehicle_id": vehicle_id},
        )
        return result
