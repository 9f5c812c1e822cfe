"""
전표 원장 타입 정의

VoucherSide 등 Ledger 시스템에서 사용하는 Enum 및 금액 헬퍼
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

# 금액 정밀도 (소수점 2자리)
AMOUNT_QUANT = Decimal("0.01")

ZERO = Decimal("0.00")


class VoucherSide(str, Enum):
    """전표 방향 (차변/대변)

    str을 상속하여 DB/JSON 직렬화 가능.
    DB에는 원본 시스템과 동일하게 'D' / 'C'로 저장.
    """

    DEBIT = "D"  # 차변 (잔액 증가)
    CREDIT = "C"  # 대변 (잔액 감소)

    @classmethod
    def parse(cls, value: "str | VoucherSide") -> "VoucherSide":
        """'D', 'C', 'DEBIT', 'CREDIT' (대소문자 무관) 파싱

        Raises:
            ValueError: 알 수 없는 값
        """
        if isinstance(value, VoucherSide):
            return value

        normalized = str(value).strip().upper()
        if normalized in ("D", "DR", "DEBIT"):
            return cls.DEBIT
        if normalized in ("C", "CR", "CREDIT"):
            return cls.CREDIT
        raise ValueError(f"유효하지 않은 전표 방향입니다: '{value}'")


def sign(side: VoucherSide) -> int:
    """방향 부호 (Debit=+1, Credit=-1)"""
    return 1 if side == VoucherSide.DEBIT else -1


def to_amount(value: Decimal | int | str) -> Decimal:
    """금액을 소수점 2자리 Decimal로 변환

    float는 이진 부동소수점 오차 때문에 거부.

    Raises:
        TypeError: float가 전달된 경우
        ValueError: 숫자로 해석할 수 없는 경우
    """
    if isinstance(value, float):
        raise TypeError("금액에 float는 사용할 수 없습니다 (Decimal 또는 문자열 사용)")

    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError(f"유효하지 않은 금액입니다: '{value}'")
        # 정밀도(28자리)를 넘는 금액은 quantize에서 InvalidOperation
        return amount.quantize(AMOUNT_QUANT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"유효하지 않은 금액입니다: '{value}'") from e


def signed_amount(amount: Decimal, side: VoucherSide) -> Decimal:
    """방향을 반영한 금액"""
    return amount if side == VoucherSide.DEBIT else -amount
