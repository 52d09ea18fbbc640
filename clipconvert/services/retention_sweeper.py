# Retention sweeper - periodically deletes files older than a retention window

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Deletes every regular file in `directory` whose mtime is more than
    `max_age` seconds in the past.

    Knows nothing about jobs; every tick is a fresh directory scan. An
    optional `skip` predicate can veto deletion of a path that is still in use.
    """

    def __init__(
        self,
        directory: Path,
        max_age: float,
        interval: float,
        name: str = "sweeper",
        skip: Optional[Callable[[Path], bool]] = None,
    ):
        self.directory = Path(directory)
        self.max_age = max_age
        self.interval = interval
        self.name = name
        self.skip = skip

    def sweep_once(self, now: Optional[float] = None) -> List[Path]:
        """
        Run a single sweep.

        Per-file errors are logged and skipped so one bad entry never stops
        the rest of the directory from being cleaned.

        Returns:
            Paths that were deleted
        """
        now = time.time() if now is None else now
        deleted: List[Path] = []

        try:
            entries = list(self.directory.iterdir())
        except FileNotFoundError:
            return deleted
        except OSError as e:
            logger.warning(f"[{self.name}] Cannot list {self.directory}: {e}")
            return deleted

        for path in entries:
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue  # Deleted between listing and stat
            except OSError as e:
                logger.warning(f"[{self.name}] Failed to stat {path}: {e}")
                continue

            if not path.is_file():
                continue

            age = now - stat.st_mtime
            if age <= self.max_age:
                continue
            if self.skip is not None and self.skip(path):
                logger.info(f"[{self.name}] Keeping {path}, still in use")
                continue

            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"[{self.name}] Failed to delete {path}: {e}")
                continue

            logger.info(f"[{self.name}] Removed {path} (age {age:.0f}s)")
            deleted.append(path)

        return deleted

    async def run_forever(self) -> None:
        """Sweep every `interval` seconds until cancelled"""
        logger.info(
            f"[{self.name}] Watching {self.directory} "
            f"(max age {self.max_age}s, every {self.interval}s)"
        )
        while True:
            try:
                await asyncio.to_thread(self.sweep_once)
            except Exception as e:
                logger.error(f"[{self.name}] Sweep tick failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval)
