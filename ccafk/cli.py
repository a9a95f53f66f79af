import logging
from ccafk.libraries.di_container import DiContainer
from ccafk.libraries.backup_scheduler import BackupScheduler
from ccafk.services.backups import BackupsService
from ccafk.exceptions import CcAfkRuntimeError, StorageError, ValidationError

__all__ = ["CcAfkCli"]
logger = logging.getLogger(__name__)


class CcAfkCli:
    def __init__(self, category: str, *, di: DiContainer) -> None:
        self._handlers = {
            "backups": CcAfkBackupsCli,
        }

        handler = self._handlers.get(category)

        if not handler:
            raise ValueError(f"Unknown command: {category}")

        self._handler = handler(di=di)

    async def run(self, command: str, **kwargs) -> None:
        await self._handler.run(command, **kwargs)


class CcAfkBackupsCli:
    def __init__(self, *, di: DiContainer) -> None:
        self._di = di
        self._handlers = {
            "list": self.list_backups,
            "latest": self.latest_backup,
            "create": self.create_backup,
            "prune": self.prune_backups,
            "clear": self.clear_backups,
        }

    async def run(self, command: str, **kwargs) -> None:
        handler = self._handlers.get(command)

        if not handler:
            raise ValueError(f"Unknown command: {command}")

        await handler(**kwargs)

    async def list_backups(self, *, limit: int = 20) -> None:
        backups_service: BackupsService = self._di.backups_service

        try:
            backups = await backups_service.list_recent(limit)
        except (StorageError, ValidationError) as e:
            raise CcAfkRuntimeError(f"Failed to list backups: {e}") from e

        if not backups:
            logger.info("No backups found")
            return

        backups_str = ""

        for backup in backups:
            backups_str += f"Backup: {backup.id}, Created at: {backup.created_at}, Size: {len(backup.save_code)}\n"

        logger.info(f"Backups:\n\n{backups_str}")

    async def latest_backup(self, *, code_only: bool = False) -> None:
        backups_service: BackupsService = self._di.backups_service

        try:
            backup = await backups_service.latest()
        except StorageError as e:
            raise CcAfkRuntimeError(f"Failed to fetch latest backup: {e}") from e

        if not backup:
            raise CcAfkRuntimeError("No backups found")

        if code_only:
            # plain stdout so the code can be piped into the game
            print(backup.save_code)
            return

        logger.info(f"Latest backup {backup.id} taken at {backup.created_at}:\n\n{backup.save_code}\n")

    async def create_backup(self) -> None:
        backup_scheduler: BackupScheduler | None = self._di.backup_scheduler

        if not backup_scheduler:
            raise CcAfkRuntimeError("No save exporter configured")

        logger.info("Starting backup...")

        backup_id = await backup_scheduler.tick()

        if backup_id is None:
            raise CcAfkRuntimeError(f"Backup failed: {backup_scheduler.get_stats()['last_error']}")

        logger.info(f"Backup complete: {backup_id}")

    async def prune_backups(self, *, keep: int) -> None:
        backups_service: BackupsService = self._di.backups_service

        try:
            deleted = await backups_service.prune(keep)
        except (StorageError, ValidationError) as e:
            raise CcAfkRuntimeError(f"Failed to prune backups: {e}") from e

        logger.info(f"Pruned {deleted} backup(s)")

    async def clear_backups(self) -> None:
        backups_service: BackupsService = self._di.backups_service

        try:
            await backups_service.clear()
        except StorageError as e:
            raise CcAfkRuntimeError(f"Failed to clear backups: {e}") from e
