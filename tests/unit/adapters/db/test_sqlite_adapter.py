"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection, init_schema


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성 (WAL, FK 활성화)"""
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        cursor = await conn.execute("PRAGMA foreign_keys")
        row = await cursor.fetchone()
        assert row[0] == 1

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()
        await conn.close()

    @pytest.mark.asyncio
    async def test_readonly_rejects_writes(self, tmp_path: Path) -> None:
        """읽기 전용 연결은 쓰기 불가"""
        db_path = tmp_path / "ro.db"
        async with SQLiteAdapter(db_path) as writer:
            await init_schema(writer)

        conn = await create_connection(db_path, readonly=True)
        with pytest.raises(aiosqlite.OperationalError):
            await conn.execute("DELETE FROM companies")
        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()
        yield adapter
        await adapter.close()

    async def _count(self, adapter: SQLiteAdapter) -> int:
        row = await adapter.fetchone("SELECT COUNT(*) FROM tx_test")
        return row[0]

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        assert adapter.is_connected is False
        await adapter.connect()
        assert adapter.is_connected is True
        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_execute_without_connection(self, tmp_path: Path) -> None:
        """연결 전 실행은 RuntimeError"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_fetchall(self, adapter: SQLiteAdapter) -> None:
        """전체 조회"""
        for value in (3, 1, 2):
            await adapter.execute("INSERT INTO tx_test (id) VALUES (?)", (value,))
        await adapter.commit()

        rows = await adapter.fetchall("SELECT id FROM tx_test ORDER BY id")

        assert [row[0] for row in rows] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        async with adapter.transaction():
            await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
            await adapter.execute("INSERT INTO tx_test (id) VALUES (2)")

        assert await self._count(adapter) == 2
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백"""
        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
                raise ValueError("의도적 에러")

        assert await self._count(adapter) == 0
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_nested_inner_does_not_commit(self, adapter: SQLiteAdapter) -> None:
        """중첩 블록은 바깥 블록이 롤백하면 함께 롤백"""
        with pytest.raises(ValueError):
            async with adapter.transaction():
                async with adapter.transaction():
                    await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
                assert adapter.in_transaction is True
                raise ValueError("바깥 블록 실패")

        assert await self._count(adapter) == 0

    @pytest.mark.asyncio
    async def test_commit_ignored_inside_transaction(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 블록 안의 commit()은 무시"""
        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO tx_test (id) VALUES (1)")
                await adapter.commit()
                raise ValueError("의도적 에러")

        assert await self._count(adapter) == 0

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False
        assert await adapter.table_exists("tx_test") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True

        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    @pytest.mark.asyncio
    async def test_init_schema_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            for table in ("companies", "vehicles", "vouchers", "settings"):
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """스키마 초기화 멱등성 (여러 번 실행 가능)"""
        async with SQLiteAdapter(tmp_path / "idempotent_test.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            row = await adapter.fetchone(
                "SELECT value FROM settings WHERE key = 'schema_version'"
            )
            assert row[0] == "1"

    @pytest.mark.asyncio
    async def test_voucher_number_unique_per_company(self, tmp_path: Path) -> None:
        """(company_id, voucher_number) UNIQUE 제약조건"""
        async with SQLiteAdapter(tmp_path / "unique_test.db") as adapter:
            await init_schema(adapter)
            await adapter.execute("""
                INSERT INTO companies (
                    name, financial_year_start, financial_year_end, created_at, modified_at
                ) VALUES ('C', '2024-04-01', '2025-03-31', 'now', 'now')
            """)
            await adapter.execute("""
                INSERT INTO vehicles (company_id, number, created_at, modified_at)
                VALUES (1, 'V1', 'now', 'now')
            """)
            insert_voucher = """
                INSERT INTO vouchers (
                    company_id, voucher_number, date, vehicle_id, amount, side,
                    created_at, modified_at
                ) VALUES (1, 1, '2024-04-02', 1, '10.00', 'D', 'now', 'now')
            """
            await adapter.execute(insert_voucher)
            await adapter.commit()

            with pytest.raises(aiosqlite.IntegrityError):
                await adapter.execute(insert_voucher)

    @pytest.mark.asyncio
    async def test_side_check_constraint(self, tmp_path: Path) -> None:
        """side는 'D' / 'C'만 허용"""
        async with SQLiteAdapter(tmp_path / "check_test.db") as adapter:
            await init_schema(adapter)
            await adapter.execute("""
                INSERT INTO companies (
                    name, financial_year_start, financial_year_end, created_at, modified_at
                ) VALUES ('C', '2024-04-01', '2025-03-31', 'now', 'now')
            """)
            await adapter.execute("""
                INSERT INTO vehicles (company_id, number, created_at, modified_at)
                VALUES (1, 'V1', 'now', 'now')
            """)

            with pytest.raises(aiosqlite.IntegrityError):
                await adapter.execute("""
                    INSERT INTO vouchers (
                        company_id, voucher_number, date, vehicle_id, amount, side,
                        created_at, modified_at
                    ) VALUES (1, 1, '2024-04-02', 1, '10.00', 'X', 'now', 'now')
                """)
