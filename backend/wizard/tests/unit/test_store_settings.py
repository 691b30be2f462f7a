import pytest
from pydantic import ValidationError

from wizard.store.factory import create_game_repository
from wizard.store.hosted import HostedGameRepository
from wizard.store.settings import StoreSettings
from wizard.store.sqlite import SqliteGameRepository


class TestStoreSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STORE_DATABASE_PATH", raising=False)
        settings = StoreSettings()

        assert settings.table == "games"
        assert settings.database_path == "backend/storage.db"
        assert settings.poll_interval_seconds == 2.0
        assert not settings.cloud_configured

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("STORE_CLOUD_URL", "https://project.example.co")
        monkeypatch.setenv("STORE_CLOUD_KEY", "anon-key")
        monkeypatch.setenv("STORE_POLL_INTERVAL_SECONDS", "0.5")

        settings = StoreSettings()

        assert settings.cloud_configured
        assert settings.poll_interval_seconds == 0.5

    def test_url_without_key_is_not_configured(self):
        assert not StoreSettings(cloud_url="https://project.example.co", cloud_key="  ").cloud_configured

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            StoreSettings(poll_interval_seconds=0)


class TestCreateGameRepository:
    async def test_local_store_without_cloud_credentials(self, tmp_path):
        repo = create_game_repository(StoreSettings(database_path=str(tmp_path / "games.db")))
        try:
            assert isinstance(repo, SqliteGameRepository)
            assert repo.storage_mode == "local"
            assert (tmp_path / "games.db").exists()
        finally:
            await repo.close()

    async def test_hosted_store_with_cloud_credentials(self, tmp_path):
        settings = StoreSettings(
            cloud_url="https://project.example.co",
            cloud_key="anon-key",
            database_path=str(tmp_path / "unused.db"),
        )
        repo = create_game_repository(settings)
        try:
            assert isinstance(repo, HostedGameRepository)
            assert repo.supports_live_updates
            assert not (tmp_path / "unused.db").exists()
        finally:
            await repo.close()
