"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액은 float 오차를 피하기 위해 문자열("1250.50")로 받는 것을 권장.
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CompanyCreateRequest(BaseModel):
    """회사 생성 요청

    회계연도를 생략하면 오늘이 속한 4월~3월 회계연도 사용.
    """

    name: str = Field(..., min_length=1, description="회사 이름")
    financial_year_start: datetime.date | None = Field(default=None, description="회계연도 시작일")
    financial_year_end: datetime.date | None = Field(default=None, description="회계연도 종료일")


class VehicleCreateRequest(BaseModel):
    """계정 생성 요청"""

    number: str = Field(..., min_length=1, description="계정 번호 (라벨)")
    description: str | None = Field(default=None, description="설명")


class VoucherCreateRequest(BaseModel):
    """전표 생성 요청

    voucher_number를 생략하면 다음 번호를 자동 할당.
    """

    vehicle_id: int = Field(..., description="계정 ID")
    date: datetime.date = Field(..., description="전표 일자")
    amount: Decimal = Field(..., description="금액 (양수)")
    side: str = Field(..., description="방향 (D/C 또는 DEBIT/CREDIT)")
    narration: str | None = Field(default=None, description="적요")
    voucher_number: int | None = Field(default=None, description="전표 번호 (수동 입력)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "vehicle_id": 3,
                    "date": "2024-01-01",
                    "amount": "100.00",
                    "side": "D",
                    "narration": "Diesel",
                },
            ]
        }
    }


class VoucherUpdateRequest(BaseModel):
    """전표 수정 요청

    전달된 필드만 변경. version을 주면 해당 버전 기준으로 충돌 검사.
    """

    vehicle_id: int | None = Field(default=None, description="계정 ID")
    date: datetime.date | None = Field(default=None, description="전표 일자")
    amount: Decimal | None = Field(default=None, description="금액 (양수)")
    side: str | None = Field(default=None, description="방향 (D/C)")
    narration: str | None = Field(default=None, description="적요")
    voucher_number: int | None = Field(default=None, description="전표 번호")
    version: int | None = Field(default=None, description="수정 기준 버전 (낙관적 잠금)")


class MergeRequest(BaseModel):
    """계정 병합 요청

    병합은 되돌릴 수 없으므로 confirm=true가 필요.
    """

    source_vehicle_id: int = Field(..., description="삭제될 계정 ID")
    target_vehicle_id: int = Field(..., description="전표를 받을 계정 ID")
    confirm: bool = Field(default=False, description="병합 확인 (true 필수)")
