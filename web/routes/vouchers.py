"""
전표 라우트

전표 생성 / 조회 / 수정 / 삭제 API
"""

from fastapi import APIRouter, Depends, Path, Response

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service, get_ledger_service_write
from web.models.requests import VoucherCreateRequest, VoucherUpdateRequest
from web.models.responses import VoucherResponse

router = APIRouter(prefix="/api", tags=["Vouchers"])


@router.post(
    "/companies/{company_id}/vouchers",
    response_model=VoucherResponse,
    status_code=201,
)
async def create_voucher(
    request: VoucherCreateRequest,
    company_id: int = Path(..., description="회사 ID"),
    service: LedgerService = Depends(get_ledger_service_write),
) -> VoucherResponse:
    """전표 생성

    voucher_number를 생략하면 다음 번호를 할당.
    검증/저장/번호 커밋은 하나의 트랜잭션으로 처리.

    **오류**:
    - 400: 금액/방향/계정 검증 실패
    - 409: 전표 번호 중복
    """
    voucher = await service.create_voucher(
        company_id=company_id,
        vehicle_id=request.vehicle_id,
        date=request.date,
        amount=request.amount,
        side=request.side,
        narration=request.narration,
        voucher_number=request.voucher_number,
    )
    return VoucherResponse.from_voucher(voucher)


@router.get(
    "/companies/{company_id}/vouchers/by-number/{voucher_number}",
    response_model=VoucherResponse,
)
async def find_voucher_by_number(
    company_id: int = Path(..., description="회사 ID"),
    voucher_number: int = Path(..., description="전표 번호"),
    service: LedgerService = Depends(get_ledger_service),
) -> VoucherResponse:
    """전표 번호로 조회"""
    voucher = await service.find_voucher_by_number(company_id, voucher_number)
    return VoucherResponse.from_voucher(voucher)


@router.get("/vouchers/{voucher_id}", response_model=VoucherResponse)
async def get_voucher(
    voucher_id: int = Path(..., description="전표 ID"),
    service: LedgerService = Depends(get_ledger_service),
) -> VoucherResponse:
    """전표 조회"""
    return VoucherResponse.from_voucher(await service.get_voucher(voucher_id))


@router.put("/vouchers/{voucher_id}", response_model=VoucherResponse)
async def update_voucher(
    request: VoucherUpdateRequest,
    voucher_id: int = Path(..., description="전표 ID"),
    service: LedgerService = Depends(get_ledger_service_write),
) -> VoucherResponse:
    """전표 수정

    전달된 필드만 변경하며 모든 불변식을 다시 검증.
    version을 전달하면 그 사이 다른 수정이 있었을 때 409 반환.
    """
    changes = request.model_dump(exclude_unset=True)
    expected_version = changes.pop("version", None)

    voucher = await service.update_voucher(
        voucher_id, expected_version=expected_version, **changes
    )
    return VoucherResponse.from_voucher(voucher)


@router.delete("/vouchers/{voucher_id}", status_code=204)
async def delete_voucher(
    voucher_id: int = Path(..., description="전표 ID"),
    service: LedgerService = Depends(get_ledger_service_write),
) -> Response:
    """전표 삭제 (빈 번호는 재사용되지 않음)"""
    await service.delete_voucher(voucher_id)
    return Response(status_code=204)
