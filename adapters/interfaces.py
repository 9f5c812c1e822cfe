"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
원장 엔진은 구체 저장소가 아닌 이 Protocol에만 의존.
"""

from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

from core.ledger.models import Company, Vehicle, Voucher

T = TypeVar("T")


@runtime_checkable
class ILedgerStore(Protocol):
    """원장 저장소 인터페이스

    Company / Vehicle / Voucher의 영속 저장소.
    필터(회사, 계정, 기간)는 저장소 질의 계층에서 처리해야 함.
    금액은 반드시 Decimal 타입 사용.
    """

    # -------------------------------------------------------------------------
    # Company
    # -------------------------------------------------------------------------

    async def get_company(self, company_id: int) -> Company | None:
        """회사 조회 (없으면 None)"""
        ...

    async def update_company_last_voucher_number(
        self,
        company_id: int,
        voucher_number: int,
    ) -> int:
        """high-water mark 갱신 (max 의미, 절대 감소하지 않음)

        Returns:
            갱신 후 last_voucher_number
        """
        ...

    # -------------------------------------------------------------------------
    # Vehicle
    # -------------------------------------------------------------------------

    async def get_vehicle(self, vehicle_id: int) -> Vehicle | None:
        """계정 조회 (없으면 None)"""
        ...

    async def list_active_vehicles_by_company(self, company_id: int) -> list[Vehicle]:
        """회사의 활성 계정 목록 (번호 순)"""
        ...

    async def delete_vehicle(self, vehicle_id: int) -> bool:
        """계정 삭제

        Returns:
            삭제 여부 (없으면 False)
        """
        ...

    # -------------------------------------------------------------------------
    # Voucher 쓰기
    # -------------------------------------------------------------------------

    async def insert_voucher(self, voucher: Voucher) -> Voucher:
        """전표 저장 (voucher_id가 채워진 사본 반환)"""
        ...

    async def update_voucher(self, voucher: Voucher) -> Voucher:
        """전표 수정 (버전 검사 후 version + 1 사본 반환)

        Raises:
            ConcurrencyConflict: 버전 불일치
            NotFound: 전표 없음
        """
        ...

    async def delete_voucher(self, voucher_id: int) -> bool:
        """전표 삭제"""
        ...

    async def bulk_reassign_voucher_vehicle(
        self,
        from_vehicle_id: int,
        to_vehicle_id: int,
    ) -> int:
        """전표의 계정 FK 일괄 변경

        Returns:
            변경된 전표 수
        """
        ...

    # -------------------------------------------------------------------------
    # Voucher 조회
    # -------------------------------------------------------------------------

    async def get_voucher(self, voucher_id: int) -> Voucher | None:
        """전표 조회"""
        ...

    async def vouchers_by_vehicle(
        self,
        vehicle_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Voucher]:
        """계정별 전표 (날짜, 번호 오름차순). 기간은 양 끝 포함."""
        ...

    async def vouchers_by_company_date_range(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> list[Voucher]:
        """회사의 기간 전표 (날짜, 번호 오름차순)"""
        ...

    async def voucher_exists_with_number(
        self,
        company_id: int,
        voucher_number: int,
        excluding_id: int | None = None,
    ) -> bool:
        """전표 번호 존재 여부 (excluding_id 전표 제외)"""
        ...

    async def sum_signed_amount(
        self,
        vehicle_id: int,
        as_of: date | None = None,
    ) -> Decimal:
        """Σ amount·sign(side) (date <= as_of)"""
        ...

    # -------------------------------------------------------------------------
    # 트랜잭션
    # -------------------------------------------------------------------------

    async def run_atomic(self, fn: Callable[[], Awaitable[T]]) -> T:
        """fn 내부의 모든 저장소 호출을 all-or-nothing으로 실행

        Raises:
            TransactionFailed: 저장소 오류로 롤백된 경우
        """
        ...
