"""
원장 도메인 모델

Company / Vehicle / Voucher 데이터 구조.
Vehicle은 Voucher 컬렉션을 보유하지 않음 (잔액은 항상 저장소 질의로 계산).
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal

from core.ledger.types import VoucherSide, signed_amount


@dataclass
class Company:
    """회사 (전표 번호 시퀀스 소유)

    last_voucher_number는 단조 비감소 high-water mark.
    """

    company_id: int
    name: str
    financial_year_start: date
    financial_year_end: date
    last_voucher_number: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    modified_at: datetime | None = None


@dataclass
class Vehicle:
    """계정 (원래는 차량, 임의의 계정으로 일반화)

    number는 회사 내 활성 계정 사이에서 유일한 사용자 입력 라벨.
    """

    vehicle_id: int
    company_id: int
    number: str
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    modified_at: datetime | None = None


@dataclass
class Voucher:
    """전표

    voucher_id가 None이면 아직 저장되지 않은 전표.
    version은 낙관적 동시성 제어용 (저장 시마다 1 증가).
    """

    company_id: int
    voucher_number: int
    date: date
    vehicle_id: int
    amount: Decimal
    side: VoucherSide
    narration: str | None = None
    voucher_id: int | None = None
    version: int = 1
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @property
    def signed_amount(self) -> Decimal:
        """방향을 반영한 금액 (Debit +, Credit -)"""
        return signed_amount(self.amount, self.side)

    @property
    def sort_key(self) -> tuple[date, int]:
        """원장 정렬 키 (날짜, 전표 번호)"""
        return (self.date, self.voucher_number)

    def with_changes(self, **changes) -> "Voucher":
        """필드를 변경한 사본 반환"""
        return replace(self, **changes)

