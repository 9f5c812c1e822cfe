"""
계정 라우트

잔액 / 원장 / 대사 조회, 계정 병합 및 비활성화 API
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from core.ledger.service import LedgerService
from core.utils.timezone import today
from web.dependencies import get_ledger_service, get_ledger_service_write
from web.models.requests import MergeRequest
from web.models.responses import (
    BalanceResponse,
    ComparisonResponse,
    LedgerResponse,
    MergeResponse,
)

router = APIRouter(prefix="/api/vehicles", tags=["Vehicles"])


@router.post("/merge", response_model=MergeResponse)
async def merge_vehicles(
    request: MergeRequest,
    service: LedgerService = Depends(get_ledger_service_write),
) -> MergeResponse:
    """계정 병합

    source의 모든 전표를 target으로 옮기고 source를 삭제.
    되돌릴 수 없으므로 confirm=true가 필요.

    **오류**:
    - 400: 확인 누락, 동일 계정, 비활성/없는 계정
    - 503: 병합 트랜잭션 실패 (전체 롤백됨, 재시도 가능)
    """
    if not request.confirm:
        raise HTTPException(
            status_code=400,
            detail="Merge is irreversible; set confirm=true to proceed",
        )

    result = await service.merge_vehicles(
        request.source_vehicle_id, request.target_vehicle_id
    )
    return MergeResponse.from_result(result)


@router.get("/{vehicle_id}/balance", response_model=BalanceResponse)
async def get_balance(
    vehicle_id: int = Path(..., description="계정 ID"),
    as_of: date | None = Query(default=None, description="기준일 (기본: 오늘)"),
    service: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    """계정 잔액 (기준일 포함)"""
    as_of = as_of or today()
    balance = await service.get_balance(vehicle_id, as_of)
    return BalanceResponse(vehicle_id=vehicle_id, as_of=as_of, balance=str(balance))


@router.get("/{vehicle_id}/ledger", response_model=LedgerResponse)
async def get_ledger(
    vehicle_id: int = Path(..., description="계정 ID"),
    start: date = Query(..., description="시작일"),
    end: date = Query(..., description="종료일"),
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    """계정 원장 (기초 잔액 + 전표별 누적 잔액)"""
    ledger = await service.get_ledger(vehicle_id, start, end)
    return LedgerResponse.from_ledger(ledger)


@router.get("/{vehicle_id}/compare", response_model=ComparisonResponse)
async def compare_transactions(
    vehicle_id: int = Path(..., description="계정 ID"),
    unmatched_only: bool = Query(default=False, description="미대사 전표만 반환"),
    service: LedgerService = Depends(get_ledger_service),
) -> ComparisonResponse:
    """차변/대변 대사 (같은 금액끼리 FIFO 1:1 짝짓기)"""
    result = await service.compare_transactions(vehicle_id)
    response = ComparisonResponse.from_result(result)
    if unmatched_only:
        response.entries = [e for e in response.entries if not e.matched]
    return response


@router.delete("/{vehicle_id}", status_code=204)
async def deactivate_vehicle(
    vehicle_id: int = Path(..., description="계정 ID"),
    service: LedgerService = Depends(get_ledger_service_write),
) -> Response:
    """계정 비활성화 (전표가 있으면 400, 병합으로만 정리 가능)"""
    await service.deactivate_vehicle(vehicle_id)
    return Response(status_code=204)
