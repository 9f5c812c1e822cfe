"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    CompanyCreateRequest,
    MergeRequest,
    VehicleCreateRequest,
    VoucherCreateRequest,
    VoucherUpdateRequest,
)
from web.models.responses import (
    BalanceResponse,
    CompanyResponse,
    ComparisonResponse,
    DayBookResponse,
    ErrorResponse,
    HealthResponse,
    LedgerResponse,
    MergeResponse,
    NextVoucherNumberResponse,
    RecoveryResponse,
    TrialBalanceResponse,
    VehicleResponse,
    VoucherResponse,
)

__all__ = [
    # Requests
    "CompanyCreateRequest",
    "VehicleCreateRequest",
    "VoucherCreateRequest",
    "VoucherUpdateRequest",
    "MergeRequest",
    # Responses
    "HealthResponse",
    "ErrorResponse",
    "CompanyResponse",
    "VehicleResponse",
    "VoucherResponse",
    "NextVoucherNumberResponse",
    "BalanceResponse",
    "LedgerResponse",
    "TrialBalanceResponse",
    "DayBookResponse",
    "MergeResponse",
    "ComparisonResponse",
    "RecoveryResponse",
]
