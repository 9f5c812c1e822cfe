"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액(Decimal)은 정밀도 손실을 막기 위해 문자열로 직렬화.
"""

import datetime

from pydantic import BaseModel, Field

from core.ledger.balance import DayBookSummary, LedgerRow, TrialBalanceLine, VehicleLedger
from core.ledger.merge import MergeResult
from core.ledger.models import Company, Vehicle, Voucher
from core.ledger.reconciliation import ComparisonResult, MatchEntry
from core.ledger.recovery import RecoveryGroup, RecoveryItem


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="애플리케이션 버전")
    timestamp: datetime.datetime = Field(..., description="응답 시간 (UTC)")


class ErrorResponse(BaseModel):
    """원장 오류 응답"""

    detail: str = Field(..., description="오류 메시지")
    error: str = Field(..., description="오류 유형 (예외 클래스 이름)")
    field: str | None = Field(default=None, description="검증 실패 필드")


# =========================================================================
# 회사 / 계정 / 전표
# =========================================================================


class CompanyResponse(BaseModel):
    """회사 응답"""

    company_id: int = Field(..., description="회사 ID")
    name: str = Field(..., description="회사 이름")
    financial_year_start: datetime.date = Field(..., description="회계연도 시작일")
    financial_year_end: datetime.date = Field(..., description="회계연도 종료일")
    last_voucher_number: int = Field(..., description="마지막 전표 번호 (high-water mark)")
    is_active: bool = Field(..., description="활성 여부")

    @classmethod
    def from_company(cls, company: Company) -> "CompanyResponse":
        return cls(
            company_id=company.company_id,
            name=company.name,
            financial_year_start=company.financial_year_start,
            financial_year_end=company.financial_year_end,
            last_voucher_number=company.last_voucher_number,
            is_active=company.is_active,
        )


class VehicleResponse(BaseModel):
    """계정 응답"""

    vehicle_id: int = Field(..., description="계정 ID")
    company_id: int = Field(..., description="회사 ID")
    number: str = Field(..., description="계정 번호 (라벨)")
    description: str | None = Field(default=None, description="설명")
    is_active: bool = Field(..., description="활성 여부")

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle) -> "VehicleResponse":
        return cls(
            vehicle_id=vehicle.vehicle_id,
            company_id=vehicle.company_id,
            number=vehicle.number,
            description=vehicle.description,
            is_active=vehicle.is_active,
        )


class VoucherResponse(BaseModel):
    """전표 응답"""

    voucher_id: int = Field(..., description="전표 ID")
    company_id: int = Field(..., description="회사 ID")
    voucher_number: int = Field(..., description="전표 번호")
    date: datetime.date = Field(..., description="전표 일자")
    vehicle_id: int = Field(..., description="계정 ID")
    amount: str = Field(..., description="금액")
    side: str = Field(..., description="방향 (D/C)")
    narration: str | None = Field(default=None, description="적요")
    version: int = Field(..., description="버전 (수정 시 전달)")
    modified_at: datetime.datetime | None = Field(default=None, description="마지막 수정 시간 (UTC)")

    @classmethod
    def from_voucher(cls, voucher: Voucher) -> "VoucherResponse":
        assert voucher.voucher_id is not None
        return cls(
            voucher_id=voucher.voucher_id,
            company_id=voucher.company_id,
            voucher_number=voucher.voucher_number,
            date=voucher.date,
            vehicle_id=voucher.vehicle_id,
            amount=str(voucher.amount),
            side=voucher.side.value,
            narration=voucher.narration,
            version=voucher.version,
            modified_at=voucher.modified_at,
        )


class NextVoucherNumberResponse(BaseModel):
    """다음 전표 번호 응답"""

    company_id: int = Field(..., description="회사 ID")
    next_voucher_number: int = Field(..., description="다음 전표 번호 (저장 전까지 예약되지 않음)")


# =========================================================================
# 잔액 / 원장 / 시산표 / 일계표
# =========================================================================


class BalanceResponse(BaseModel):
    """계정 잔액 응답"""

    vehicle_id: int = Field(..., description="계정 ID")
    as_of: datetime.date = Field(..., description="기준일 (포함)")
    balance: str = Field(..., description="부호 있는 잔액 (Debit +, Credit -)")


class LedgerRowResponse(BaseModel):
    """원장 행"""

    voucher_id: int = Field(..., description="전표 ID")
    voucher_number: int = Field(..., description="전표 번호")
    date: datetime.date = Field(..., description="전표 일자")
    narration: str | None = Field(default=None, description="적요")
    debit: str = Field(..., description="차변 금액")
    credit: str = Field(..., description="대변 금액")
    running_balance: str = Field(..., description="누적 잔액")

    @classmethod
    def from_row(cls, row: LedgerRow) -> "LedgerRowResponse":
        assert row.voucher.voucher_id is not None
        return cls(
            voucher_id=row.voucher.voucher_id,
            voucher_number=row.voucher.voucher_number,
            date=row.voucher.date,
            narration=row.voucher.narration,
            debit=str(row.debit),
            credit=str(row.credit),
            running_balance=str(row.running_balance),
        )


class LedgerResponse(BaseModel):
    """계정 원장 응답"""

    vehicle_id: int = Field(..., description="계정 ID")
    vehicle_number: str = Field(..., description="계정 번호")
    start: datetime.date = Field(..., description="시작일")
    end: datetime.date = Field(..., description="종료일")
    opening_balance: str = Field(..., description="기초 잔액 (시작 전일까지)")
    closing_balance: str = Field(..., description="기말 잔액")
    total_debit: str = Field(..., description="기간 차변 합계")
    total_credit: str = Field(..., description="기간 대변 합계")
    rows: list[LedgerRowResponse] = Field(default_factory=list, description="원장 행")

    @classmethod
    def from_ledger(cls, ledger: VehicleLedger) -> "LedgerResponse":
        return cls(
            vehicle_id=ledger.vehicle.vehicle_id,
            vehicle_number=ledger.vehicle.number,
            start=ledger.start,
            end=ledger.end,
            opening_balance=str(ledger.opening_balance),
            closing_balance=str(ledger.closing_balance),
            total_debit=str(ledger.total_debit),
            total_credit=str(ledger.total_credit),
            rows=[LedgerRowResponse.from_row(row) for row in ledger.rows],
        )


class TrialBalanceLineResponse(BaseModel):
    """시산표 행"""

    vehicle_id: int = Field(..., description="계정 ID")
    vehicle_number: str = Field(..., description="계정 번호")
    amount: str = Field(..., description="|잔액|")
    side: str = Field(..., description="방향 (잔액 0은 D)")

    @classmethod
    def from_line(cls, line: TrialBalanceLine) -> "TrialBalanceLineResponse":
        return cls(
            vehicle_id=line.vehicle.vehicle_id,
            vehicle_number=line.vehicle.number,
            amount=str(line.amount),
            side=line.side.value,
        )


class TrialBalanceResponse(BaseModel):
    """시산표 응답"""

    company_id: int = Field(..., description="회사 ID")
    as_of: datetime.date = Field(..., description="기준일")
    lines: list[TrialBalanceLineResponse] = Field(default_factory=list, description="계정별 행")
    total_debit: str = Field(..., description="차변 합계")
    total_credit: str = Field(..., description="대변 합계")


class DayBookSummaryResponse(BaseModel):
    """일자별 합계"""

    date: datetime.date = Field(..., description="일자")
    total_debit: str = Field(..., description="차변 합계")
    total_credit: str = Field(..., description="대변 합계")
    net: str = Field(..., description="차변 - 대변")

    @classmethod
    def from_summary(cls, summary: DayBookSummary) -> "DayBookSummaryResponse":
        return cls(
            date=summary.date,
            total_debit=str(summary.total_debit),
            total_credit=str(summary.total_credit),
            net=str(summary.net),
        )


class DayBookResponse(BaseModel):
    """일계표 응답

    consolidated=false면 vouchers, true면 summaries만 채워짐.
    """

    company_id: int = Field(..., description="회사 ID")
    start: datetime.date = Field(..., description="시작일")
    end: datetime.date = Field(..., description="종료일")
    consolidated: bool = Field(..., description="일자별 합계 여부")
    vouchers: list[VoucherResponse] = Field(default_factory=list, description="전표 목록")
    summaries: list[DayBookSummaryResponse] = Field(default_factory=list, description="일자별 합계")


# =========================================================================
# 병합 / 대사 / 회수
# =========================================================================


class MergeResponse(BaseModel):
    """계정 병합 응답"""

    source_vehicle_id: int = Field(..., description="삭제된 계정 ID")
    target_vehicle_id: int = Field(..., description="전표를 받은 계정 ID")
    moved_vouchers: int = Field(..., description="이동한 전표 수")
    already_merged: bool = Field(..., description="이전 병합이 이미 완료되어 있었는지 여부")

    @classmethod
    def from_result(cls, result: MergeResult) -> "MergeResponse":
        return cls(
            source_vehicle_id=result.source_vehicle_id,
            target_vehicle_id=result.target_vehicle_id,
            moved_vouchers=result.moved_vouchers,
            already_merged=result.already_merged,
        )


class MatchEntryResponse(BaseModel):
    """전표별 대사 결과"""

    voucher_id: int = Field(..., description="전표 ID")
    voucher_number: int = Field(..., description="전표 번호")
    date: datetime.date = Field(..., description="전표 일자")
    amount: str = Field(..., description="금액")
    side: str = Field(..., description="방향 (D/C)")
    matched: bool = Field(..., description="짝 여부")
    marker: str = Field(..., description="미대사 마커 (UD/UC, 짝이 있으면 빈 문자열)")
    counterpart_voucher_id: int | None = Field(default=None, description="짝 전표 ID")

    @classmethod
    def from_entry(cls, entry: MatchEntry) -> "MatchEntryResponse":
        assert entry.voucher.voucher_id is not None
        return cls(
            voucher_id=entry.voucher.voucher_id,
            voucher_number=entry.voucher.voucher_number,
            date=entry.voucher.date,
            amount=str(entry.voucher.amount),
            side=entry.voucher.side.value,
            matched=entry.matched,
            marker=entry.marker,
            counterpart_voucher_id=entry.counterpart_voucher_id,
        )


class ComparisonResponse(BaseModel):
    """계정 대사 응답"""

    vehicle_id: int = Field(..., description="계정 ID")
    vehicle_number: str = Field(..., description="계정 번호")
    all_matched: bool = Field(..., description="모든 전표가 짝을 이루었는지 여부")
    unmatched_debits: int = Field(..., description="미대사 차변 수")
    unmatched_credits: int = Field(..., description="미대사 대변 수")
    summary: str = Field(..., description="요약 문구")
    entries: list[MatchEntryResponse] = Field(default_factory=list, description="전표별 결과")

    @classmethod
    def from_result(cls, result: ComparisonResult) -> "ComparisonResponse":
        return cls(
            vehicle_id=result.vehicle.vehicle_id,
            vehicle_number=result.vehicle.number,
            all_matched=result.all_matched,
            unmatched_debits=len(result.unmatched_debits),
            unmatched_credits=len(result.unmatched_credits),
            summary=result.summary,
            entries=[MatchEntryResponse.from_entry(e) for e in result.entries],
        )


class RecoveryItemResponse(BaseModel):
    """회수 목록 항목"""

    vehicle_id: int = Field(..., description="계정 ID")
    vehicle_number: str = Field(..., description="계정 번호")
    description: str | None = Field(default=None, description="계정 설명")
    balance: str = Field(..., description="현재 잔액")
    status: str = Field(..., description="상태 문구")
    group_prefix: str = Field(..., description="그룹 접두어")
    last_transaction_date: datetime.date | None = Field(default=None, description="마지막 거래일")
    last_transaction_amount: str | None = Field(default=None, description="마지막 거래 금액")
    last_credit_date: datetime.date | None = Field(default=None, description="마지막 입금일")
    last_credit_amount: str | None = Field(default=None, description="마지막 입금 금액")
    days_since_last_credit: int | None = Field(default=None, description="마지막 입금 후 경과 일수")

    @classmethod
    def from_item(cls, item: RecoveryItem) -> "RecoveryItemResponse":
        return cls(
            vehicle_id=item.vehicle.vehicle_id,
            vehicle_number=item.vehicle.number,
            description=item.vehicle.description,
            balance=str(item.balance),
            status=item.status,
            group_prefix=item.group_prefix,
            last_transaction_date=item.last_transaction_date,
            last_transaction_amount=(
                str(item.last_transaction_amount)
                if item.last_transaction_amount is not None else None
            ),
            last_credit_date=item.last_credit_date,
            last_credit_amount=(
                str(item.last_credit_amount) if item.last_credit_amount is not None else None
            ),
            days_since_last_credit=item.days_since_last_credit,
        )


class RecoveryGroupResponse(BaseModel):
    """회수 목록 그룹"""

    prefix: str = Field(..., description="그룹 접두어")
    header: str | None = Field(default=None, description="그룹 헤더 (소규모 그룹은 없음)")
    total_balance: str = Field(..., description="그룹 잔액 합계")
    items: list[RecoveryItemResponse] = Field(default_factory=list, description="항목")

    @classmethod
    def from_group(cls, group: RecoveryGroup) -> "RecoveryGroupResponse":
        return cls(
            prefix=group.prefix,
            header=group.header if group.show_header else None,
            total_balance=str(group.total_balance),
            items=[RecoveryItemResponse.from_item(item) for item in group.items],
        )


class RecoveryResponse(BaseModel):
    """회수 목록 응답

    grouped=false면 items, true면 groups만 채워짐.
    """

    company_id: int = Field(..., description="회사 ID")
    min_days: int = Field(..., description="최소 경과 일수")
    min_amount: str | None = Field(default=None, description="마지막 입금 최소 금액")
    total_vehicles: int = Field(..., description="대상 계정 수")
    items: list[RecoveryItemResponse] = Field(default_factory=list, description="항목 (라벨 순)")
    groups: list[RecoveryGroupResponse] = Field(default_factory=list, description="접두어별 그룹")
