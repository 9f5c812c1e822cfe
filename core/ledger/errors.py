"""
원장 예외 정의

호출자가 재시도(저장소 장애)와 입력 수정(검증 실패)을 구분할 수 있도록
실패 유형별로 예외를 분리.
"""

import asyncio


class LedgerError(Exception):
    """원장 예외 기본 클래스"""

    pass


class ValidationError(LedgerError):
    """입력 검증 실패 (쓰기 전에 거부)

    Args:
        field: 위반된 필드 이름
        message: 상세 메시지
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFound(LedgerError):
    """참조한 회사/계정/전표가 존재하지 않음"""

    def __init__(self, kind: str, entity_id: int | str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class DuplicateVoucherNumber(LedgerError):
    """같은 회사에 동일한 전표 번호가 이미 존재"""

    def __init__(self, company_id: int, voucher_number: int):
        self.company_id = company_id
        self.voucher_number = voucher_number
        super().__init__(
            f"Voucher number {voucher_number} already exists in company {company_id}"
        )


class InvalidMerge(LedgerError):
    """병합 불가 (동일 계정, 존재하지 않거나 비활성 계정)"""

    pass


class TransactionFailed(LedgerError):
    """원자 단위 실행 실패 (전체 롤백됨, 재시도 가능)"""

    pass


class MergeFailed(TransactionFailed):
    """계정 병합 실패 (전표 재지정/원본 삭제 모두 롤백됨)"""

    pass


class ConcurrencyConflict(TransactionFailed):
    """낙관적 버전 불일치 (다른 작성자가 먼저 수정함)"""

    def __init__(self, voucher_id: int, expected_version: int):
        self.voucher_id = voucher_id
        self.expected_version = expected_version
        super().__init__(
            f"Voucher {voucher_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class OperationCancelled(LedgerError):
    """호출자가 보고서 조회를 중단함"""

    pass


def raise_if_cancelled(cancel_event: asyncio.Event | None, where: str) -> None:
    """취소 요청이 있으면 OperationCancelled 발생

    보고서 루프에서 계정/행 사이마다 호출.
    """
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled(f"{where} 조회가 취소되었습니다")
