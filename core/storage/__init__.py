"""
스토리지 모듈

원장(Company / Vehicle / Voucher) 저장소 구현 제공
"""

from core.storage.ledger_store import SQLiteLedgerStore

__all__ = [
    "SQLiteLedgerStore",
]
