import pytest
from sqlalchemy import create_engine, inspect
import main
from src.core.config import Settings
from src.core.database import engine_options


class TestStoreTimeouts:
    """Timeouts reach the driver, not just the connection pool"""

    settings = Settings(store_timeout_seconds=5, store_write_timeout_seconds=40)

    def test_sqlite_waits_on_locks(self):
        options = engine_options("sqlite:///./cafeteria.db", self.settings)

        assert options["connect_args"]["timeout"] == 40
        assert options["connect_args"]["check_same_thread"] is False

    def test_postgresql_statement_and_connect_timeout(self):
        options = engine_options("postgresql+psycopg2://app@db/cafeteria", self.settings)

        assert options["pool_timeout"] == 5
        assert options["connect_args"] == {
            "connect_timeout": 5,
            "options": "-c statement_timeout=40000",
        }

    def test_mysql_read_and_write_timeout(self):
        options = engine_options("mysql+pymysql://app@db/cafeteria", self.settings)

        assert options["connect_args"]["connect_timeout"] == 5
        assert options["connect_args"]["read_timeout"] == 40
        assert options["connect_args"]["write_timeout"] == 40


class TestStartup:

    @pytest.mark.asyncio
    async def test_unreachable_store_stops_the_process(self, monkeypatch, tmp_path):
        # sqlite cannot open a file inside a directory that does not exist
        unreachable = create_engine(f"sqlite:///{tmp_path}/missing/cafeteria.db")
        monkeypatch.setattr(main, "engine", unreachable)

        with pytest.raises(SystemExit) as exc_info:
            async with main.lifespan(main.app):
                pass

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_reachable_store_creates_tables(self, monkeypatch, tmp_path):
        store = create_engine(f"sqlite:///{tmp_path}/fresh.db")
        monkeypatch.setattr(main, "engine", store)

        async with main.lifespan(main.app):
            tables = set(inspect(store).get_table_names())

        assert {"products_by_branch", "orders_by_branch", "users", "sessions"} <= tables
