import logging
from datetime import datetime
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction
from ccafk.models.backups import Backups
from ccafk.schemas.backups import CreateBackupSchema, ListBackupsSchema, PruneBackupsSchema
from ccafk.utils.convert import to_timestamp
from ccafk.utils.validate import validate_data
from ccafk.exceptions import StorageError

__all__ = ["BackupsService"]

logger = logging.getLogger(__name__)

_ORDERING = ("-created_at", "-id")


class BackupsService:
    """Append-only store of save code snapshots, newest first"""

    async def insert(self, save_code: str, created_at: datetime) -> int:
        data = validate_data(CreateBackupSchema, {"save_code": save_code, "created_at": created_at})

        try:
            backup = await Backups.create(save_code=data.save_code, created_at=to_timestamp(data.created_at))
        except (BaseORMException, OSError) as e:
            raise StorageError(f"Failed to insert backup: {e}") from e

        return backup.id

    async def list_recent(self, limit: int) -> list[Backups]:
        data = validate_data(ListBackupsSchema, {"limit": limit})

        # a zero limit is ignored by the query builder, which would return everything
        if data.limit == 0:
            return []

        try:
            return await Backups.all().order_by(*_ORDERING).limit(data.limit)
        except (BaseORMException, OSError) as e:
            raise StorageError(f"Failed to list backups: {e}") from e

    async def latest(self) -> Backups | None:
        backups = await self.list_recent(1)

        return backups[0] if backups else None

    async def get(self, backup_id: int) -> Backups | None:
        try:
            return await Backups.get_or_none(id=backup_id)
        except (BaseORMException, OSError) as e:
            raise StorageError(f"Failed to get backup {backup_id}: {e}") from e

    async def count(self) -> int:
        try:
            return await Backups.all().count()
        except (BaseORMException, OSError) as e:
            raise StorageError(f"Failed to count backups: {e}") from e

    async def prune(self, keep: int) -> int:
        """Delete all but the `keep` most recent backups. Returns the number of deleted backups"""
        data = validate_data(PruneBackupsSchema, {"keep": keep})

        try:
            async with in_transaction() as conn:
                if data.keep == 0:
                    deleted = await Backups.all().using_db(conn).delete()
                else:
                    keep_ids = await Backups.all().using_db(conn).order_by(*_ORDERING).limit(data.keep).values_list("id", flat=True)
                    deleted = await Backups.exclude(id__in=list(keep_ids)).using_db(conn).delete()
        except (BaseORMException, OSError) as e:
            raise StorageError(f"Failed to prune backups: {e}") from e

        if deleted:
            logger.info(f"Pruned {deleted} backup(s), keeping the {data.keep} most recent")

        return deleted

    async def clear(self) -> int:
        """Delete every backup"""
        deleted = await self.prune(0)

        logger.info(f"Cleared {deleted} backup(s)")

        return deleted
