import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable
from ccafk.exceptions import ExporterError, StorageError, ValidationError
from ccafk.libraries.save_exporter import SaveExporter
from ccafk.services.backups import BackupsService

__all__ = [
    "BackupScheduler",
]

logger = logging.getLogger(__name__)

SYSTEMIC_FAILURE_THRESHOLD = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupScheduler:
    """
    Periodically captures the game save code and stores it as a backup.

    Each tick goes through the states capturing -> persisting -> pruning and
    returns to idle. Failures inside a tick are logged and the tick is
    abandoned; the next tick acts as the retry.
    """

    def __init__(
        self,
        exporter: SaveExporter,
        backups_service: BackupsService,
        *,
        capture_interval: float,
        retention_count: int,
        capture_on_start: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if capture_interval <= 0:
            raise ValueError("Capture interval must be greater than 0")

        if retention_count < 1:
            raise ValueError("Retention count must be at least 1")

        self._exporter: SaveExporter = exporter
        self._backups_service: BackupsService = backups_service
        self._capture_interval: float = capture_interval
        self._retention_count: int = retention_count
        self._capture_on_start: bool = capture_on_start
        self._clock: Callable[[], datetime] = clock

        self._state: str = "idle"
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()
        self._tick_lock: asyncio.Lock = asyncio.Lock()
        self._stats: dict = {
            "ticks": 0,
            "successes": 0,
            "failures": 0,
            "consecutive_failures": 0,
            "last_backup_id": None,
            "last_backup_at": None,
            "last_error": None,
        }

    @property
    def state(self) -> str:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Main scheduler loop. This should be run in a dedicated task."""
        logger.info(f"Starting backup scheduler (interval: {self._capture_interval}s, retention: {self._retention_count})")

        self._running = True

        try:
            if self._capture_on_start and not self._stop_requested():
                await self.tick()

            while not self._stop_requested():
                if await self._wait_interval():
                    break

                await self.tick()
        finally:
            self._running = False
            self._state = "idle"

        logger.info("Backup scheduler stopped")

    def stop(self) -> None:
        """Request the loop to exit at the next state boundary"""
        self._stop_event.set()

    async def tick(self) -> int | None:
        """Run a single capture/persist/prune cycle. Returns the new backup id or None"""
        async with self._tick_lock:
            self._stats["ticks"] += 1

            try:
                return await self._tick()
            finally:
                self._state = "idle"

    def get_stats(self) -> dict:
        stats = dict(self._stats)

        stats["state"] = self._state
        stats["running"] = self._running
        stats["capture_interval"] = self._capture_interval
        stats["retention_count"] = self._retention_count

        return stats

    async def _tick(self) -> int | None:
        self._state = "capturing"

        try:
            save_code = await self._exporter.export_save()
        except ExporterError as e:
            self._record_failure(f"Export failed: {e}")
            logger.warning(f"Could not export save code, skipping backup: {e}")
            return None
        except Exception as e:
            self._record_failure(f"Export failed: {e}")
            logger.exception(f"Unexpected exporter failure, skipping backup: {e}")
            return None

        if self._stop_requested():
            logger.info("Stop requested, discarding captured save code")
            return None

        self._state = "persisting"
        created_at = self._clock()

        try:
            backup_id = await self._backups_service.insert(save_code, created_at)
        except ValidationError as e:
            self._record_failure(f"Invalid save code: {e}")
            logger.error(f"Exporter returned an invalid save code, skipping backup: {e}")
            return None
        except StorageError as e:
            self._record_failure(f"Storage failure: {e}")
            logger.error(f"Failed to store backup: {e}")

            if self._stats["consecutive_failures"] >= SYSTEMIC_FAILURE_THRESHOLD:
                logger.warning(f"Backup storage failed {self._stats['consecutive_failures']} times in a row, check the data directory")

            return None

        self._record_success(backup_id, created_at)
        logger.info(f"Backup {backup_id} stored ({len(save_code)} bytes)")

        if self._stop_requested():
            return backup_id

        self._state = "pruning"

        try:
            await self._backups_service.prune(self._retention_count)
        except StorageError as e:
            self._stats["last_error"] = f"Prune failed: {e}"
            logger.error(f"Failed to prune backups: {e}")

        return backup_id

    async def _wait_interval(self) -> bool:
        """Sleep for one interval. Returns True if a stop was requested meanwhile"""
        self._state = "idle"

        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._capture_interval)
        except asyncio.TimeoutError:
            return False

        return True

    def _stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def _record_success(self, backup_id: int, created_at: datetime) -> None:
        self._stats["successes"] += 1
        self._stats["consecutive_failures"] = 0
        self._stats["last_backup_id"] = backup_id
        self._stats["last_backup_at"] = created_at.isoformat()
        self._stats["last_error"] = None

    def _record_failure(self, error: str) -> None:
        self._stats["failures"] += 1
        self._stats["consecutive_failures"] += 1
        self._stats["last_error"] = error
