"""
전표 번호 시퀀서

회사별 전표 번호 할당 및 검증.
번호는 연속적으로 보이지만 gap-free를 보장하지 않음
(전표 수정/삭제로 생긴 빈 번호는 정상 동작).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.ledger.errors import DuplicateVoucherNumber, NotFound, ValidationError

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


class VoucherSequencer:
    """전표 번호 시퀀서

    Args:
        store: 원장 저장소
    """

    def __init__(self, store: ILedgerStore):
        self.store = store

    async def next_number(self, company_id: int) -> int:
        """다음 전표 번호 (last_voucher_number + 1)

        순수 조회. 전표를 저장하지 않고 두 번 호출하면 같은 값을 반환하므로
        전표가 저장된 뒤에만 이 값을 신뢰해야 함.

        Raises:
            NotFound: 회사 없음
        """
        company = await self.store.get_company(company_id)
        if company is None:
            raise NotFound("company", company_id)
        return company.last_voucher_number + 1

    async def commit(self, company_id: int, assigned_number: int) -> int:
        """전표 저장 후 high-water mark 갱신

        last_voucher_number = max(last_voucher_number, assigned_number).
        멱등이며 수동 입력한 낮은 번호로 호출해도 감소하지 않음.

        Returns:
            갱신 후 last_voucher_number
        """
        new_mark = await self.store.update_company_last_voucher_number(
            company_id, assigned_number
        )
        logger.info(
            f"전표 번호 커밋: #{assigned_number} (last={new_mark})",
            extra={"company_id": company_id},
        )
        return new_mark

    async def validate_unique(
        self,
        company_id: int,
        number: int,
        excluding_voucher_id: int | None = None,
    ) -> None:
        """전표 번호 유일성 검증 (insert/update 커밋 전 호출)

        Raises:
            ValidationError: 번호가 양의 정수가 아님
            DuplicateVoucherNumber: 같은 회사의 다른 전표가 이미 사용 중
        """
        if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
            raise ValidationError("voucher_number", "전표 번호는 양의 정수여야 합니다")

        if await self.store.voucher_exists_with_number(
            company_id, number, excluding_voucher_id
        ):
            raise DuplicateVoucherNumber(company_id, number)
