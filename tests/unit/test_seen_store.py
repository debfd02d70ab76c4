"""
Unit tests for the seen store.

Covers TTL pruning, dedup idempotence, degradation on corrupt files,
atomic writes, legacy directory migration and locking.
"""

import json
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from conftest import make_item
from dram.storage.seen_store import SeenStore, to_epoch_ms
from dram.utils.exceptions import ErrorCode, SeenStoreError

NOW = datetime(2026, 2, 21, 12, 0, tzinfo=timezone.utc)


def write_store(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)


class TestLoad:
    """Reading and pruning."""

    def test_missing_file_is_empty(self, seen_store):
        assert seen_store.load(NOW) == {}

    @pytest.mark.parametrize(
        "content",
        ["{not json", "[1, 2]", '"text"', "", "[" * 200000],
        ids=["truncated", "array", "string", "empty", "deeply-nested"],
    )
    def test_corrupt_file_is_empty(self, seen_store, seen_path, content):
        write_store(seen_path, content)
        assert seen_store.load(NOW) == {}

    def test_non_integer_timestamps_are_dropped(self, seen_store, seen_path):
        now_ms = to_epoch_ms(NOW)
        write_store(seen_path, {"https://a": now_ms, "https://b": "yesterday", "https://c": True, "https://d": 1.5})
        assert seen_store.load(NOW) == {"https://a": now_ms}

    def test_prunes_expired_entries(self, seen_store, seen_path):
        ttl_ms = 30 * 24 * 60 * 60 * 1000
        now_ms = to_epoch_ms(NOW)
        write_store(seen_path, {
            "https://fresh": now_ms - ttl_ms + 1,
            "https://boundary": now_ms - ttl_ms,
            "https://old": now_ms - ttl_ms - 1,
        })

        assert seen_store.load(NOW) == {"https://fresh": now_ms - ttl_ms + 1}

    def test_naive_datetime_is_utc(self):
        assert to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000


class TestDedup:
    """Dedup and mark_seen."""

    def test_empty_input_does_not_touch_storage(self, seen_store):
        with patch.object(seen_store, "load") as load:
            assert seen_store.dedup([], NOW) == []
        load.assert_not_called()

    def test_dedup_is_idempotent(self, seen_store, sample_items):
        first = seen_store.dedup(sample_items, NOW)
        second = seen_store.dedup(sample_items, NOW)
        assert first == second == sample_items

    def test_mark_then_dedup(self, seen_store, sample_items):
        seen_store.mark_seen(sample_items[:2], NOW)

        remaining = seen_store.dedup(sample_items, NOW)

        assert [i.url for i in remaining] == [sample_items[2].url]

    def test_preserves_order(self, seen_store):
        items = [make_item(url=f"https://example.com/{c}") for c in "dcba"]
        seen_store.mark_seen([items[1]], NOW)
        assert [i.url for i in seen_store.dedup(items, NOW)] == [
            "https://example.com/d", "https://example.com/b", "https://example.com/a",
        ]

    def test_ttl_expiry_makes_items_new_again(self, seen_store, sample_items):
        seen_store.mark_seen(sample_items, NOW)

        assert seen_store.dedup(sample_items, NOW + timedelta(days=29)) == []
        assert seen_store.dedup(sample_items, NOW + timedelta(days=31)) == sample_items

    def test_file_format(self, seen_store, seen_path, sample_items):
        seen_store.mark_seen(sample_items[:1], NOW)

        text = seen_path.read_text()
        assert json.loads(text) == {sample_items[0].url: to_epoch_ms(NOW)}
        assert text.startswith("{\n  ")

    def test_mark_seen_prunes_on_write(self, seen_store, seen_path, sample_items):
        old_ms = to_epoch_ms(NOW - timedelta(days=40))
        write_store(seen_path, {"https://old": old_ms})

        seen_store.mark_seen(sample_items[:1], NOW)

        assert "https://old" not in json.loads(seen_path.read_text())


class TestWriteFailures:
    """Atomic write behaviour."""

    def test_write_failure_raises(self, seen_store, seen_path, sample_items):
        with patch("dram.storage.seen_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SeenStoreError) as exc_info:
                seen_store.mark_seen(sample_items, NOW)

        assert exc_info.value.error_code == ErrorCode.STORE_WRITE_FAILED
        assert exc_info.value.recoverable is False
        # No partial file and no stray temp file
        assert not seen_path.exists()
        assert list(seen_path.parent.iterdir()) == []

    def test_failed_write_keeps_previous_contents(self, seen_store, seen_path, sample_items):
        seen_store.mark_seen(sample_items[:1], NOW)
        before = seen_path.read_text()

        with patch("dram.storage.seen_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SeenStoreError):
                seen_store.mark_seen(sample_items, NOW)

        assert seen_path.read_text() == before

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
    def test_unwritable_directory(self, tmp_path, sample_items):
        locked_dir = tmp_path / "ro"
        locked_dir.mkdir()
        locked_dir.chmod(0o500)
        try:
            store = SeenStore(locked_dir / "seen.json")
            with pytest.raises(SeenStoreError):
                store.mark_seen(sample_items, NOW)
        finally:
            locked_dir.chmod(0o700)


class TestMaintenance:
    """stats, clear, migration and locking."""

    def test_stats(self, seen_store, sample_items):
        seen_store.mark_seen(sample_items[:1], NOW - timedelta(days=2))
        seen_store.mark_seen(sample_items[1:], NOW)

        stats = seen_store.stats(NOW)

        assert stats.entry_count == 3
        assert stats.oldest == NOW - timedelta(days=2)
        assert stats.newest == NOW

    def test_stats_empty(self, seen_store):
        stats = seen_store.stats(NOW)
        assert stats.entry_count == 0
        assert stats.oldest is None

    def test_clear(self, seen_store, sample_items):
        seen_store.mark_seen(sample_items, NOW)
        seen_store.clear()
        assert seen_store.load(NOW) == {}

    def test_legacy_directory_is_migrated(self, tmp_path, sample_items):
        legacy = tmp_path / ".signal-monitor"
        legacy.mkdir()
        (legacy / "seen.json").write_text(json.dumps({sample_items[0].url: to_epoch_ms(NOW)}))

        store = SeenStore(tmp_path / ".dram" / "seen.json", legacy_dir=legacy)

        assert store.dedup(sample_items, NOW) == sample_items[1:]
        assert not legacy.exists()
        assert (tmp_path / ".dram" / "seen.json").exists()

    def test_legacy_directory_ignored_when_new_one_exists(self, tmp_path):
        legacy = tmp_path / ".signal-monitor"
        legacy.mkdir()
        (tmp_path / ".dram").mkdir()

        SeenStore(tmp_path / ".dram" / "seen.json", legacy_dir=legacy).load(NOW)

        assert legacy.exists()

    def test_lock_is_exclusive(self, seen_path):
        first = SeenStore(seen_path)
        second = SeenStore(seen_path)

        with first.locked():
            with pytest.raises(SeenStoreError) as exc_info:
                with second.locked():
                    pass
            assert exc_info.value.error_code == ErrorCode.STORE_LOCKED

        with second.locked():
            pass
