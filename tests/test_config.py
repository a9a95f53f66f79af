"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from ccafk.libraries.di_container import DiContainer
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.libraries.save_exporter import FileSaveExporter
from ccafk.schemas.config import ConfigSchema
from ccafk.setup_di import setup_di


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CCAFK_CAPTURE_INTERVAL",
        "CCAFK_RETENTION_COUNT",
        "CCAFK_CAPTURE_ON_START",
        "CCAFK_EXPORTER_TYPE",
        "CCAFK_EXPORTER_PATH",
        "CCAFK_EXPORTER_COMMAND",
        "CCAFK_WEB_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestConfigSchema:
    def test_defaults(self):
        config = ConfigSchema.from_dict({})

        assert config.scheduler.capture_interval == 60
        assert config.scheduler.retention_count == 100
        assert config.scheduler.capture_on_start is False
        assert config.exporter.type is None
        assert config.web_server.port == 8080

    def test_file_values(self):
        config = ConfigSchema.from_dict(
            {
                "scheduler": {"capture_interval": 5, "retention_count": 10},
                "exporter": {"type": "command", "command": "export-save"},
            }
        )

        assert config.scheduler.capture_interval == 5
        assert config.scheduler.retention_count == 10
        assert config.exporter.command == "export-save"

    def test_env_fills_missing_values(self, monkeypatch):
        monkeypatch.setenv("CCAFK_RETENTION_COUNT", "7")
        monkeypatch.setenv("CCAFK_EXPORTER_TYPE", "file")
        monkeypatch.setenv("CCAFK_EXPORTER_PATH", "/tmp/save.txt")

        config = ConfigSchema.from_dict({"scheduler": {"capture_interval": 5}})

        assert config.scheduler.capture_interval == 5
        assert config.scheduler.retention_count == 7
        assert config.exporter.path == "/tmp/save.txt"

    def test_file_values_win_over_env(self, monkeypatch):
        monkeypatch.setenv("CCAFK_RETENTION_COUNT", "7")

        config = ConfigSchema.from_dict({"scheduler": {"retention_count": 3}})

        assert config.scheduler.retention_count == 3

    @pytest.mark.parametrize(
        "section",
        [
            {"scheduler": {"capture_interval": 0}},
            {"scheduler": {"retention_count": 0}},
            {"exporter": {"type": "file"}},
            {"exporter": {"type": "command", "command": "  "}},
            {"exporter": {"type": "browser"}},
            {"web_server": {"port": 70000}},
        ],
    )
    def test_invalid_values(self, section):
        with pytest.raises(ValidationError):
            ConfigSchema.from_dict(section)


class TestSetupDi:
    def test_without_exporter(self, tmp_path):
        di = DiContainer()

        setup_di(di, config={}, data_directory=str(tmp_path))

        assert di.save_exporter is None
        assert di.backup_scheduler is None
        assert di.db_path == str(tmp_path / "app.db")

    def test_with_exporter(self, tmp_path):
        di = DiContainer()
        config = {
            "scheduler": {"capture_interval": 5, "retention_count": 2},
            "exporter": {"type": "file", "path": str(tmp_path / "save.txt")},
            "web_server": {"ip": "0.0.0.0"},
        }

        setup_di(di, config=config, data_directory=str(tmp_path), app_version="1.0.0")

        assert isinstance(di.save_exporter, FileSaveExporter)
        assert isinstance(di.backup_scheduler, BackupScheduler)
        assert di.backup_scheduler.get_stats()["retention_count"] == 2
        assert di.web_server_config["ip"] == "0.0.0.0"
        assert di.app_version == "1.0.0"

    def test_dependencies_are_write_once(self, tmp_path):
        di = DiContainer()
        setup_di(di, config={}, data_directory=str(tmp_path))

        with pytest.raises(AttributeError):
            di.backups_service = None
