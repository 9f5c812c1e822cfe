"""전표 타입 / 금액 헬퍼 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.models import Voucher
from core.ledger.types import (
    ZERO,
    VoucherSide,
    sign,
    signed_amount,
    to_amount,
)


class TestVoucherSide:
    """VoucherSide Enum 테스트"""

    def test_stored_values(self) -> None:
        """DB 저장 값은 D / C"""
        assert VoucherSide.DEBIT.value == "D"
        assert VoucherSide.CREDIT.value == "C"
        assert VoucherSide.DEBIT == "D"

    @pytest.mark.parametrize("raw", ["D", "d", "DR", "debit", " Debit "])
    def test_parse_debit(self, raw: str) -> None:
        """차변 표기 파싱"""
        assert VoucherSide.parse(raw) == VoucherSide.DEBIT

    @pytest.mark.parametrize("raw", ["C", "cr", "CREDIT"])
    def test_parse_credit(self, raw: str) -> None:
        """대변 표기 파싱"""
        assert VoucherSide.parse(raw) == VoucherSide.CREDIT

    def test_parse_passthrough(self) -> None:
        """Enum 값은 그대로 반환"""
        assert VoucherSide.parse(VoucherSide.CREDIT) is VoucherSide.CREDIT

    def test_parse_invalid(self) -> None:
        """알 수 없는 값은 ValueError"""
        with pytest.raises(ValueError):
            VoucherSide.parse("X")


class TestSign:
    """부호 테스트"""

    def test_sign(self) -> None:
        """Debit=+1, Credit=-1"""
        assert sign(VoucherSide.DEBIT) == 1
        assert sign(VoucherSide.CREDIT) == -1

    def test_signed_amount(self) -> None:
        """방향 반영 금액"""
        assert signed_amount(Decimal("40"), VoucherSide.DEBIT) == Decimal("40")
        assert signed_amount(Decimal("40"), VoucherSide.CREDIT) == Decimal("-40")


class TestToAmount:
    """to_amount 테스트"""

    def test_quantize_two_places(self) -> None:
        """소수점 2자리 반올림 (ROUND_HALF_UP)"""
        assert to_amount("10.005") == Decimal("10.01")
        assert to_amount("10.004") == Decimal("10.00")
        assert str(to_amount(7)) == "7.00"

    def test_decimal_arithmetic_has_no_drift(self) -> None:
        """0.1 + 0.2 == 0.3"""
        assert to_amount("0.1") + to_amount("0.2") == to_amount("0.3")

    def test_reject_float(self) -> None:
        """float는 TypeError"""
        with pytest.raises(TypeError):
            to_amount(0.1)  # type: ignore[arg-type]

    @pytest.mark.parametrize("raw", ["abc", "", "NaN", "Infinity"])
    def test_reject_invalid(self, raw: str) -> None:
        """숫자가 아니거나 유한하지 않으면 ValueError"""
        with pytest.raises(ValueError):
            to_amount(raw)

    def test_reject_out_of_precision(self) -> None:
        """정밀도를 넘는 큰 금액은 ValueError"""
        with pytest.raises(ValueError):
            to_amount("1e30")

    def test_zero_constant(self) -> None:
        """ZERO는 0.00"""
        assert ZERO == Decimal("0")
        assert str(ZERO) == "0.00"


class TestVoucherModel:
    """Voucher 데이터클래스 테스트"""

    def _voucher(self, **overrides) -> Voucher:
        values = dict(
            company_id=1,
            voucher_number=7,
            date=date(2024, 1, 3),
            vehicle_id=2,
            amount=Decimal("40.00"),
            side=VoucherSide.CREDIT,
        )
        values.update(overrides)
        return Voucher(**values)

    def test_signed_amount(self) -> None:
        """Credit은 음수"""
        assert self._voucher().signed_amount == Decimal("-40.00")

    def test_sort_key(self) -> None:
        """정렬 키는 (날짜, 전표 번호)"""
        assert self._voucher().sort_key == (date(2024, 1, 3), 7)

    def test_with_changes_returns_copy(self) -> None:
        """with_changes는 원본을 변경하지 않음"""
        original = self._voucher()
        changed = original.with_changes(amount=Decimal("50.00"))

        assert changed.amount == Decimal("50.00")
        assert original.amount == Decimal("40.00")
