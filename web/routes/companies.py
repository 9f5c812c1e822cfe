"""
회사 / 계정 라우트

회사 및 계정 등록, 다음 전표 번호 조회
"""

from fastapi import APIRouter, Depends, Path

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service, get_ledger_service_write
from web.models.requests import CompanyCreateRequest, VehicleCreateRequest
from web.models.responses import (
    CompanyResponse,
    NextVoucherNumberResponse,
    VehicleResponse,
)

router = APIRouter(prefix="/api/companies", tags=["Companies"])


@router.get("", response_model=list[CompanyResponse])
async def list_companies(
    service: LedgerService = Depends(get_ledger_service),
) -> list[CompanyResponse]:
    """활성 회사 목록"""
    companies = await service.list_companies()
    return [CompanyResponse.from_company(c) for c in companies]


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    request: CompanyCreateRequest,
    service: LedgerService = Depends(get_ledger_service_write),
) -> CompanyResponse:
    """회사 생성"""
    company = await service.create_company(
        request.name,
        financial_year_start=request.financial_year_start,
        financial_year_end=request.financial_year_end,
    )
    return CompanyResponse.from_company(company)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int = Path(..., description="회사 ID"),
    service: LedgerService = Depends(get_ledger_service),
) -> CompanyResponse:
    """회사 조회"""
    return CompanyResponse.from_company(await service.get_company(company_id))


@router.get("/{company_id}/vehicles", response_model=list[VehicleResponse])
async def list_vehicles(
    company_id: int = Path(..., description="회사 ID"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[VehicleResponse]:
    """회사의 활성 계정 목록 (번호 순)"""
    vehicles = await service.list_vehicles(company_id)
    return [VehicleResponse.from_vehicle(v) for v in vehicles]


@router.post("/{company_id}/vehicles", response_model=VehicleResponse, status_code=201)
async def create_vehicle(
    request: VehicleCreateRequest,
    company_id: int = Path(..., description="회사 ID"),
    service: LedgerService = Depends(get_ledger_service_write),
) -> VehicleResponse:
    """계정 생성 (활성 계정 사이에서 번호 중복 불가)"""
    vehicle = await service.create_vehicle(company_id, request.number, request.description)
    return VehicleResponse.from_vehicle(vehicle)


@router.get("/{company_id}/next-voucher-number", response_model=NextVoucherNumberResponse)
async def get_next_voucher_number(
    company_id: int = Path(..., description="회사 ID"),
    service: LedgerService = Depends(get_ledger_service),
) -> NextVoucherNumberResponse:
    """다음 전표 번호

    조회만 하며 번호를 예약하지 않음.
    전표가 저장되기 전까지 같은 값이 반복 반환될 수 있음.
    """
    number = await service.allocate_voucher_number(company_id)
    return NextVoucherNumberResponse(company_id=company_id, next_voucher_number=number)
