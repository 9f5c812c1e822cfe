"""
DB 초기화 스크립트

스키마를 생성하고 필요하면 회사를 하나 등록.

사용법:
    python -m scripts.init_db
    python -m scripts.init_db --company "Focus Transport" --fy-start 2024-04-01 --fy-end 2025-03-31
    python -m scripts.init_db --db data/other.db
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.ledger.errors import LedgerError
from core.ledger.service import LedgerService
from core.logging import setup_logging
from core.storage.ledger_store import SQLiteLedgerStore

logger = logging.getLogger(__name__)


async def main(
    db_path: Path,
    company: str | None = None,
    fy_start: date | None = None,
    fy_end: date | None = None,
) -> int:
    """스키마 생성 + (선택) 회사 등록

    Returns:
        종료 코드 (0: 성공, 1: 회사 등록 실패)
    """
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        logger.info(f"스키마 준비 완료: {db_path}")

        if company is None:
            return 0

        service = LedgerService(SQLiteLedgerStore(db))
        try:
            created = await service.create_company(company, fy_start, fy_end)
        except LedgerError as e:
            logger.error(f"회사 등록 실패: {e}")
            return 1

        logger.info(
            f"회사 등록: {created.name} (id={created.company_id}, "
            f"{created.financial_year_start} ~ {created.financial_year_end})"
        )
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="voucherbook DB 초기화")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DB 파일 경로 (기본: settings.yaml의 db_path)",
    )
    parser.add_argument("--company", default=None, help="등록할 회사 이름")
    parser.add_argument(
        "--fy-start",
        type=date.fromisoformat,
        default=None,
        help="회계연도 시작일 (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--fy-end",
        type=date.fromisoformat,
        default=None,
        help="회계연도 종료일 (YYYY-MM-DD)",
    )
    args = parser.parse_args()

    settings = get_settings()
    setup_logging("cli", console_level=settings.log_level)

    sys.exit(asyncio.run(main(args.db or settings.db_path, args.company, args.fy_start, args.fy_end)))
