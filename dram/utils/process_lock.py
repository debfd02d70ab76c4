"""
Process Lock Utilities
======================

File-based lock that keeps two Dram runs from interleaving their
load-then-write cycles on the seen store.
"""

import os
import fcntl
import logging
from pathlib import Path
from typing import Optional

from .exceptions import SeenStoreError, ErrorCode

logger = logging.getLogger(__name__)


class ProcessLock:
    """Non-blocking exclusive lock held on a file next to the guarded resource."""

    def __init__(self, lock_file: Path):
        """
        Initialize process lock.

        Args:
            lock_file: Path of the lock file (created on first acquire and
                left in place afterwards so every run locks the same inode)
        """
        self.lock_file = Path(lock_file)
        self.lock_fd: Optional[int] = None
        self.acquired = False

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True if the lock was acquired, False if another process holds it
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            self.lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_RDWR)

            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)

            os.ftruncate(self.lock_fd, 0)
            os.write(self.lock_fd, f"{os.getpid()}\n".encode())
            os.fsync(self.lock_fd)

            self.acquired = True
            logger.debug(f"Process lock acquired: {self.lock_file}")
            return True

        except OSError:
            if self.lock_fd is not None:
                os.close(self.lock_fd)
                self.lock_fd = None

            existing_pid = self._get_lock_holder_pid()
            if existing_pid:
                logger.warning(
                    f"Process lock already held by PID {existing_pid}: {self.lock_file}"
                )
            else:
                logger.warning(f"Process lock unavailable: {self.lock_file}")

            return False

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is not None and self.acquired:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
                logger.debug(f"Process lock released: {self.lock_file}")
            except OSError as e:
                logger.warning(f"Error releasing lock: {e}")
            finally:
                self.lock_fd = None
                self.acquired = False

    def _get_lock_holder_pid(self) -> Optional[int]:
        """Get PID of the process holding the lock."""
        try:
            if self.lock_file.exists():
                return int(self.lock_file.read_text().strip())
        except (ValueError, OSError):
            pass
        return None

    def __enter__(self) -> "ProcessLock":
        if not self.acquire():
            raise SeenStoreError(
                f"Another run holds the lock {self.lock_file}",
                path=str(self.lock_file),
                error_code=ErrorCode.STORE_LOCKED,
                user_message="Another Dram run is already in progress",
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
