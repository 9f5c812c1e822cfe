"""
보고서 라우트

시산표 / 일계표 / 회수 목록 API
"""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query

from core.config.loader import Settings
from core.ledger.service import LedgerService
from core.ledger.types import ZERO, VoucherSide
from core.utils.timezone import today
from web.dependencies import get_app_settings, get_ledger_service
from web.models.responses import (
    DayBookResponse,
    DayBookSummaryResponse,
    RecoveryGroupResponse,
    RecoveryItemResponse,
    RecoveryResponse,
    TrialBalanceLineResponse,
    TrialBalanceResponse,
    VoucherResponse,
)

router = APIRouter(prefix="/api/companies", tags=["Reports"])


@router.get("/{company_id}/trial-balance", response_model=TrialBalanceResponse)
async def get_trial_balance(
    company_id: int = Path(..., description="회사 ID"),
    as_of: date | None = Query(default=None, description="기준일 (기본: 오늘)"),
    service: LedgerService = Depends(get_ledger_service),
) -> TrialBalanceResponse:
    """시산표 (활성 계정별 |잔액|과 방향, 계정 번호 순)"""
    as_of = as_of or today()
    lines = await service.get_trial_balance(company_id, as_of)

    total_debit = sum((l.amount for l in lines if l.side == VoucherSide.DEBIT), ZERO)
    total_credit = sum((l.amount for l in lines if l.side == VoucherSide.CREDIT), ZERO)

    return TrialBalanceResponse(
        company_id=company_id,
        as_of=as_of,
        lines=[TrialBalanceLineResponse.from_line(line) for line in lines],
        total_debit=str(total_debit),
        total_credit=str(total_credit),
    )


@router.get("/{company_id}/day-book", response_model=DayBookResponse)
async def get_day_book(
    company_id: int = Path(..., description="회사 ID"),
    start: date = Query(..., description="시작일"),
    end: date = Query(..., description="종료일"),
    consolidated: bool = Query(default=False, description="일자별 합계로 반환"),
    service: LedgerService = Depends(get_ledger_service),
) -> DayBookResponse:
    """일계표 (기간 전표 또는 일자별 차변/대변 합계)"""
    if consolidated:
        summaries = await service.get_consolidated_day_book(company_id, start, end)
        return DayBookResponse(
            company_id=company_id,
            start=start,
            end=end,
            consolidated=True,
            summaries=[DayBookSummaryResponse.from_summary(s) for s in summaries],
        )

    vouchers = await service.get_day_book(company_id, start, end)
    return DayBookResponse(
        company_id=company_id,
        start=start,
        end=end,
        consolidated=False,
        vouchers=[VoucherResponse.from_voucher(v) for v in vouchers],
    )


@router.get("/{company_id}/recovery", response_model=RecoveryResponse)
async def get_recovery_list(
    company_id: int = Path(..., description="회사 ID"),
    min_days: int | None = Query(default=None, ge=0, description="마지막 입금 후 최소 경과 일수"),
    min_amount: Decimal | None = Query(default=None, ge=0, description="마지막 입금 최소 금액"),
    grouped: bool = Query(default=False, description="라벨 접두어별 그룹핑"),
    as_of: date | None = Query(default=None, description="기준일 (기본: 오늘)"),
    service: LedgerService = Depends(get_ledger_service),
    settings: Settings = Depends(get_app_settings),
) -> RecoveryResponse:
    """회수 목록

    잔액이 남아 있고 마지막 입금이 min_days 이상 지난 계정
    (입금 이력이 없으면 항상 포함).
    """
    if min_days is None:
        min_days = settings.recovery.min_days

    response = RecoveryResponse(
        company_id=company_id,
        min_days=min_days,
        min_amount=str(min_amount) if min_amount is not None else None,
        total_vehicles=0,
    )

    if grouped:
        groups = await service.get_grouped_recovery_list(
            company_id, min_days, min_amount, today=as_of
        )
        response.groups = [RecoveryGroupResponse.from_group(g) for g in groups]
        response.total_vehicles = sum(len(g.items) for g in groups)
    else:
        items = await service.get_recovery_list(company_id, min_days, min_amount, today=as_of)
        response.items = [RecoveryItemResponse.from_item(item) for item in items]
        response.total_vehicles = len(items)

    return response
