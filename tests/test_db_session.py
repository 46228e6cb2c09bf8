import pytest

from locallens.core.settings import Settings
from locallens.db.session import DatabaseManager, async_database_url


class TestDatabaseUrl:

    @pytest.mark.parametrize("url,expected", [
        ("sqlite:///./locallens.db", "sqlite+aiosqlite:///./locallens.db"),
        ("postgresql://u:p@db:5432/locallens", "postgresql+asyncpg://u:p@db:5432/locallens"),
        ("postgresql+asyncpg://u:p@db/locallens", "postgresql+asyncpg://u:p@db/locallens"),
    ])
    def test_async_driver_is_selected(self, url, expected):
        assert async_database_url(url) == expected

    @pytest.mark.parametrize("url", ["", "locallens.db"])
    def test_unusable_url_rejected(self, url):
        with pytest.raises(ValueError):
            async_database_url(url)


class TestDatabaseManager:

    @pytest.mark.asyncio
    async def test_session_requires_initialize(self):
        manager = DatabaseManager(Settings(DB_URL="sqlite:///:memory:"))
        with pytest.raises(RuntimeError):
            async with manager.get_session():
                pass

    @pytest.mark.asyncio
    async def test_init_db_requires_initialize(self):
        with pytest.raises(RuntimeError):
            await DatabaseManager(Settings(DB_URL="sqlite:///:memory:")).init_db()

    @pytest.mark.asyncio
    async def test_health_check_on_sqlite(self, tmp_path):
        manager = DatabaseManager(Settings(DB_URL=f"sqlite:///{tmp_path / 'h.db'}"))
        await manager.initialize()
        try:
            await manager.init_db()
            health = await manager.health_check()
        finally:
            await manager.close()

        assert health["status"] == "healthy"
        assert health["dialect"] == "sqlite"
        assert health["latency_ms"] >= 0

    @pytest.mark.asyncio
    async def test_health_check_before_initialize(self):
        health = await DatabaseManager(Settings(DB_URL="sqlite:///:memory:")).health_check()

        assert health["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_close_forgets_engine(self, tmp_path):
        manager = DatabaseManager(Settings(DB_URL=f"sqlite:///{tmp_path / 'c.db'}"))
        await manager.initialize()
        await manager.close()

        assert manager.engine is None
        with pytest.raises(RuntimeError):
            async with manager.get_session():
                pass
