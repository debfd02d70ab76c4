"""
Seen Store
==========

Durable record of processed item URLs, mapping each URL to the epoch
millisecond timestamp at which it was first marked as seen.

- Records older than the retention window are pruned lazily on every load
- A missing, unreadable or malformed file reads as "nothing seen"
- Writes replace the file atomically; a failed write raises SeenStoreError
"""

import json
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..models import RawItem
from ..utils.exceptions import SeenStoreError
from ..utils.logging import get_logger_for_component
from ..utils.process_lock import ProcessLock

SeenMap = Dict[str, int]

DEFAULT_TTL_DAYS = 30


def to_epoch_ms(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


@dataclass
class SeenStats:
    """Summary of the pruned store contents."""

    entry_count: int
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None


class SeenStore:
    """URL-keyed seen-set persisted as a pretty-printed JSON object."""

    def __init__(
        self,
        path: Path,
        ttl_days: int = DEFAULT_TTL_DAYS,
        legacy_dir: Optional[Path] = None,
    ):
        """Initialize the store.

        Args:
            path: Location of the seen file
            ttl_days: Retention window for seen records
            legacy_dir: Old data directory renamed to path's directory on
                first use, when only the old one exists
        """
        self.path = Path(path)
        self.ttl = timedelta(days=ttl_days)
        self.legacy_dir = Path(legacy_dir) if legacy_dir else None
        self.logger = get_logger_for_component("seen_store")
        self._migrated = False

    @classmethod
    def from_settings(cls, store_settings) -> "SeenStore":
        return cls(
            path=store_settings.seen_path,
            ttl_days=store_settings.ttl_days,
            legacy_dir=store_settings.legacy_path,
        )

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def _migrate_legacy_dir(self) -> None:
        if self._migrated:
            return
        self._migrated = True

        data_dir = self.path.parent
        if not self.legacy_dir or data_dir.exists() or not self.legacy_dir.is_dir():
            return

        try:
            self.legacy_dir.rename(data_dir)
            self.logger.info(f"Migrated data directory {self.legacy_dir} -> {data_dir}")
        except OSError as e:
            self.logger.warning(f"Could not migrate legacy data directory: {e}")

    def _cutoff_ms(self, now: Optional[datetime]) -> int:
        now = now or datetime.now(timezone.utc)
        return to_epoch_ms(now - self.ttl)

    def _read_raw(self) -> SeenMap:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError, RecursionError) as e:
            self.logger.warning(f"Unreadable seen store {self.path}, starting empty: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"Seen store {self.path} is not a JSON object, starting empty")
            return {}

        # bool is an int subclass but never a valid timestamp
        return {
            url: ts
            for url, ts in data.items()
            if isinstance(url, str) and isinstance(ts, int) and not isinstance(ts, bool)
        }

    def load(self, now: Optional[datetime] = None) -> SeenMap:
        """Load the store, dropping records older than the retention window.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Pruned mapping of URL to first-seen epoch milliseconds
        """
        self._migrate_legacy_dir()

        cutoff = self._cutoff_ms(now)
        data = self._read_raw()
        pruned = {url: ts for url, ts in data.items() if ts > cutoff}

        if len(pruned) != len(data):
            self.logger.debug(f"Pruned {len(data) - len(pruned)} expired records")

        return pruned

    def dedup(self, items: List[RawItem], now: Optional[datetime] = None) -> List[RawItem]:
        """Return the items whose URL has not been seen within the window.

        Order is preserved. Empty input returns immediately without reading
        the store.
        """
        if not items:
            return []

        seen = self.load(now)
        new_items = [item for item in items if item.url not in seen]

        self.logger.info(
            f"Dedup: {len(new_items)} new of {len(items)} items "
            f"({len(seen)} URLs in store)"
        )
        return new_items

    def mark_seen(self, items: List[RawItem], now: Optional[datetime] = None) -> None:
        """Record each item's URL with the current time and persist the store.

        Raises:
            SeenStoreError: If the store cannot be written
        """
        seen = self.load(now)
        now_ms = to_epoch_ms(now or datetime.now(timezone.utc))

        for item in items:
            seen[item.url] = now_ms

        self._save(seen)
        self.logger.info(f"Marked {len(items)} items as seen ({len(seen)} URLs in store)")

    def _save(self, seen: SeenMap) -> None:
        directory = self.path.parent
        tmp_path = None

        try:
            directory.mkdir(parents=True, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(seen, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            os.replace(tmp_path, self.path)
            tmp_path = None

        except OSError as e:
            raise SeenStoreError(
                f"Failed to write seen store {self.path}: {e}", path=str(self.path)
            ) from e

        finally:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)

    def stats(self, now: Optional[datetime] = None) -> SeenStats:
        """Count and time range of the records currently in the window."""
        seen = self.load(now)
        if not seen:
            return SeenStats(entry_count=0)

        timestamps = seen.values()
        return SeenStats(
            entry_count=len(seen),
            oldest=datetime.fromtimestamp(min(timestamps) / 1000, tz=timezone.utc),
            newest=datetime.fromtimestamp(max(timestamps) / 1000, tz=timezone.utc),
        )

    def clear(self) -> None:
        """Forget every record."""
        self._save({})
        self.logger.info(f"Cleared seen store {self.path}")

    @contextmanager
    def locked(self) -> Iterator["SeenStore"]:
        """Hold an exclusive process lock around a load-then-write cycle.

        Raises:
            SeenStoreError: If another process holds the lock
        """
        # The lock file lives in the data directory; migrate before creating it
        self._migrate_legacy_dir()
        with ProcessLock(self.lock_path):
            yield self
