"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 조회와 쓰기 작업이 동시에 접근 가능하도록 설정.

주의: 금액 컬럼은 REAL이 아닌 TEXT (Decimal 문자열)로 저장
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if db_path_str != ":memory:":
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    중첩 가능한 트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (Web 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")
        async with adapter.transaction():  # 내부 블록은 커밋하지 않음
            await adapter.execute("UPDATE ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """transaction() 블록 내부 여부"""
        return self._tx_depth > 0

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            self._tx_depth = 0
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋 (트랜잭션 블록 내부에서는 무시)"""
        if self._conn is not None and self._tx_depth == 0:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.
        중첩 호출 시 가장 바깥 블록만 커밋/롤백하므로
        여러 저장소 호출을 하나의 원자 단위로 묶을 수 있음.
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        self._tx_depth += 1
        outermost = self._tx_depth == 1
        try:
            yield self._conn
        except BaseException:
            self._tx_depth -= 1
            if outermost:
                await self._conn.rollback()
            raise
        else:
            self._tx_depth -= 1
            if outermost:
                await self._conn.commit()

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # companies (전표 번호 high-water mark 보관)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS companies (
            company_id            INTEGER PRIMARY KEY AUTOINCREMENT,
            name                  TEXT NOT NULL UNIQUE,
            financial_year_start  TEXT NOT NULL,
            financial_year_end    TEXT NOT NULL,
            last_voucher_number   INTEGER NOT NULL DEFAULT 0,
            is_active             INTEGER NOT NULL DEFAULT 1,

            created_at            TEXT NOT NULL,
            modified_at           TEXT NOT NULL
        )
    """)

    # vehicles (계정)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS vehicles (
            vehicle_id      INTEGER PRIMARY KEY AUTOINCREMENT,
            company_id      INTEGER NOT NULL,
            number          TEXT NOT NULL,
            description     TEXT,
            is_active       INTEGER NOT NULL DEFAULT 1,

            created_at      TEXT NOT NULL,
            modified_at     TEXT NOT NULL,

            FOREIGN KEY (company_id) REFERENCES companies(company_id) ON DELETE CASCADE
        )
    """)

    # vouchers (차변/대변 전표)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS vouchers (
            voucher_id      INTEGER PRIMARY KEY AUTOINCREMENT,
            company_id      INTEGER NOT NULL,
            voucher_number  INTEGER NOT NULL,
            date            TEXT NOT NULL,
            vehicle_id      INTEGER NOT NULL,
            amount          TEXT NOT NULL,
            side            TEXT NOT NULL CHECK(side IN ('D', 'C')),
            narration       TEXT,
            version         INTEGER NOT NULL DEFAULT 1,

            created_at      TEXT NOT NULL,
            modified_at     TEXT NOT NULL,

            FOREIGN KEY (company_id) REFERENCES companies(company_id) ON DELETE CASCADE,
            FOREIGN KEY (vehicle_id) REFERENCES vehicles(vehicle_id) ON DELETE RESTRICT
        )
    """)

    # settings (애플리케이션 설정)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key          TEXT PRIMARY KEY,
            value        TEXT NOT NULL,
            description  TEXT,
            modified_at  TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_vouchers_company_date
        ON vouchers(company_id, date, voucher_number)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_vouchers_vehicle_date
        ON vouchers(vehicle_id, date, voucher_number)
    """)

    await adapter.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS ux_vouchers_company_number
        ON vouchers(company_id, voucher_number)
    """)

    # 활성 계정 번호는 회사 내 유일
    await adapter.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS ux_vehicles_company_number
        ON vehicles(company_id, number) WHERE is_active = 1
    """)

    await adapter.execute("""
        INSERT OR IGNORE INTO settings (key, value, description)
        VALUES ('schema_version', '1', 'DB schema version')
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
