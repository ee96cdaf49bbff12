"""Adversarial tests — concurrent and interrupted cache writes.

These tests verify that:
1. Racing writers for one key leave exactly one complete entry
2. Staging files never show up as cache entries
3. A stale partial file from a crashed run is ignored
4. A failed copy leaves no partial file behind
"""

from __future__ import annotations

import threading

import pytest

from forgecache.core.local_store import CacheWriteFailed, LocalCacheStore


class TestConcurrentPut:
    def test_racing_puts_for_one_key(self, local_store, artifact_key, make_archive):
        sources = [make_archive() for _ in range(8)]
        barrier = threading.Barrier(len(sources))
        errors: list[BaseException] = []

        def writer(source):
            barrier.wait()
            try:
                local_store.put(artifact_key, source)
            except BaseException as exc:  # pragma: no cover - reported below
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(s,)) for s in sources]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        entry_dir = local_store.path_for(artifact_key).parent
        assert [p.name for p in entry_dir.iterdir()] == ["170.187.204.221.tar.gz"]
        assert local_store.get(artifact_key).read_bytes() in {s.read_bytes() for s in sources}

    def test_racing_staged_moves(self, local_store, artifact_key, archive_bytes):
        barrier = threading.Barrier(4)

        def writer():
            with local_store.staging_path(artifact_key) as staging:
                staging.write_bytes(archive_bytes)
                barrier.wait()
                local_store.put(artifact_key, staging, move=True)

        threads = [threading.Thread(target=writer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        entry_dir = local_store.path_for(artifact_key).parent
        assert len(list(entry_dir.iterdir())) == 1
        assert local_store.get(artifact_key).read_bytes() == archive_bytes


class TestPartialFiles:
    def test_stale_partial_is_not_an_entry(self, local_store, artifact_key):
        entry_dir = local_store.path_for(artifact_key).parent
        entry_dir.mkdir(parents=True)
        (entry_dir / ".partial-170.187.204.221.tar.gz.abc123").write_bytes(b"half")

        assert not local_store.has(artifact_key)
        assert local_store.list_entries() == []

    def test_staging_visible_only_while_open(self, local_store, artifact_key):
        with local_store.staging_path(artifact_key) as staging:
            staging.write_bytes(b"in flight")
            assert local_store.list_entries() == []
            assert not local_store.has(artifact_key)
        assert not staging.exists()

    def test_failed_copy_leaves_nothing(self, monkeypatch, local_store, artifact_key, make_archive):
        from forgecache.core import local_store as local_store_module

        def broken_copy(src, dst):
            with open(dst, "wb") as fh:
                fh.write(b"half")
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(local_store_module.shutil, "copyfile", broken_copy)

        with pytest.raises(CacheWriteFailed, match="No space left"):
            local_store.put(artifact_key, make_archive())
        assert list(local_store.path_for(artifact_key).parent.iterdir()) == []

    def test_unwritable_root(self, tmp_dir, artifact_key, make_archive):
        blocker = tmp_dir / "not-a-dir"
        blocker.write_text("file in the way")
        store = LocalCacheStore(blocker / "cache")

        with pytest.raises(CacheWriteFailed):
            store.put(artifact_key, make_archive())
