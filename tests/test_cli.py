"""
Tests for the backups cli commands.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from ccafk.cli import CcAfkCli
from ccafk.exceptions import CcAfkRuntimeError, ExporterError
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.libraries.di_container import DiContainer
from ccafk.libraries.save_exporter import SaveExporter


T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class StaticExporter(SaveExporter):
    async def export_save(self) -> str:
        return "CLI-SAVE"


class ClosedSessionExporter(SaveExporter):
    async def export_save(self) -> str:
        raise ExporterError("game session closed")


@pytest.fixture
def di(backups_service):
    di = DiContainer()
    di.backups_service = backups_service
    di.backup_scheduler = BackupScheduler(StaticExporter(), backups_service, capture_interval=60, retention_count=5)
    return di


@pytest.fixture(autouse=True)
def info_logs(caplog):
    caplog.set_level(logging.INFO)


class TestBackupsCli:
    @pytest.mark.asyncio
    async def test_list(self, di, backups_service, caplog):
        await backups_service.insert("CODE1", T0)

        await CcAfkCli("backups", di=di).run("list", limit=10)

        assert "Backup: 1, Created at: 2024-01-01T00:00:00.000000+00:00" in caplog.text

    @pytest.mark.asyncio
    async def test_list_empty(self, di, caplog):
        await CcAfkCli("backups", di=di).run("list", limit=10)

        assert "No backups found" in caplog.text

    @pytest.mark.asyncio
    async def test_latest_code_only(self, di, backups_service, capsys):
        await backups_service.insert("OLD", T0)
        await backups_service.insert("NEW", T0 + timedelta(minutes=1))

        await CcAfkCli("backups", di=di).run("latest", code_only=True)

        assert capsys.readouterr().out == "NEW\n"

    @pytest.mark.asyncio
    async def test_create(self, di, backups_service):
        await CcAfkCli("backups", di=di).run("create")

        assert (await backups_service.latest()).save_code == "CLI-SAVE"

    @pytest.mark.asyncio
    async def test_prune(self, di, backups_service):
        for i in range(4):
            await backups_service.insert(f"CODE{i}", T0 + timedelta(minutes=i))

        await CcAfkCli("backups", di=di).run("prune", keep=1)

        assert [b.save_code for b in await backups_service.list_recent(10)] == ["CODE3"]

    @pytest.mark.asyncio
    async def test_prune_negative_keep_fails(self, di, backups_service):
        await backups_service.insert("CODE1", T0)

        with pytest.raises(CcAfkRuntimeError, match="Failed to prune backups"):
            await CcAfkCli("backups", di=di).run("prune", keep=-1)

        assert await backups_service.count() == 1

    @pytest.mark.asyncio
    async def test_clear(self, di, backups_service):
        await backups_service.insert("CODE1", T0)

        await CcAfkCli("backups", di=di).run("clear")

        assert await backups_service.count() == 0

    @pytest.mark.asyncio
    async def test_unknown_command(self, di):
        with pytest.raises(ValueError):
            await CcAfkCli("backups", di=di).run("restore")

    def test_unknown_category(self, di):
        with pytest.raises(ValueError):
            CcAfkCli("users", di=di)

    @pytest.mark.asyncio
    async def test_latest_on_empty_store_fails(self, di):
        with pytest.raises(CcAfkRuntimeError, match="No backups found"):
            await CcAfkCli("backups", di=di).run("latest")

    @pytest.mark.asyncio
    async def test_create_fails_when_export_fails(self, backups_service):
        di = DiContainer()
        di.backups_service = backups_service
        di.backup_scheduler = BackupScheduler(ClosedSessionExporter(), backups_service, capture_interval=60, retention_count=5)

        with pytest.raises(CcAfkRuntimeError, match="game session closed"):
            await CcAfkCli("backups", di=di).run("create")

        assert await backups_service.count() == 0

    @pytest.mark.asyncio
    async def test_create_without_exporter_fails(self, backups_service):
        di = DiContainer()
        di.backups_service = backups_service
        di.backup_scheduler = None

        with pytest.raises(CcAfkRuntimeError, match="No save exporter configured"):
            await CcAfkCli("backups", di=di).run("create")
