"""
전표 원장 코어

회사별 전표 번호, 계정 잔액/원장, 계정 병합, 차변/대변 대사, 회수 목록.
잔액은 저장하지 않고 매번 전표에서 다시 계산.

사용 예시:
```python
from adapters.db import SQLiteAdapter, init_schema
from core.ledger import LedgerService, VoucherSide
from core.storage import SQLiteLedgerStore

async with SQLiteAdapter(db_path) as db:
    await init_schema(db)
    service = LedgerService(SQLiteLedgerStore(db))

    number = await service.allocate_voucher_number(company_id)
    await service.create_voucher(company_id, vehicle_id, day, "100", VoucherSide.DEBIT)

    trial_balance = await service.get_trial_balance(company_id, day)
```
"""

from core.ledger.balance import (
    BalanceEngine,
    DayBookSummary,
    LedgerRow,
    TrialBalanceLine,
    VehicleLedger,
)
from core.ledger.errors import (
    ConcurrencyConflict,
    DuplicateVoucherNumber,
    InvalidMerge,
    LedgerError,
    MergeFailed,
    NotFound,
    OperationCancelled,
    TransactionFailed,
    ValidationError,
)
from core.ledger.merge import MergeEngine, MergeResult
from core.ledger.models import Company, Vehicle, Voucher
from core.ledger.reconciliation import ComparisonResult, MatchEntry, ReconciliationMatcher
from core.ledger.recovery import (
    RecoveryAnalyzer,
    RecoveryGroup,
    RecoveryItem,
    extract_group_prefix,
    group_recovery_items,
)
from core.ledger.sequencer import VoucherSequencer
from core.ledger.service import LedgerService
from core.ledger.types import VoucherSide, to_amount

__all__ = [
    # 파사드
    "LedgerService",
    # 엔진
    "VoucherSequencer",
    "BalanceEngine",
    "MergeEngine",
    "ReconciliationMatcher",
    "RecoveryAnalyzer",
    # 모델
    "Company",
    "Vehicle",
    "Voucher",
    "VoucherSide",
    "LedgerRow",
    "VehicleLedger",
    "TrialBalanceLine",
    "DayBookSummary",
    "MergeResult",
    "MatchEntry",
    "ComparisonResult",
    "RecoveryItem",
    "RecoveryGroup",
    # 함수
    "to_amount",
    "extract_group_prefix",
    "group_recovery_items",
    # 예외
    "LedgerError",
    "ValidationError",
    "NotFound",
    "DuplicateVoucherNumber",
    "InvalidMerge",
    "TransactionFailed",
    "MergeFailed",
    "ConcurrencyConflict",
    "OperationCancelled",
]
