"""End-to-end integration tests — find_package requests through the whole stack.

These tests exercise the InterceptionHook, ArtifactResolver, VersionDeriver
(against a real git work tree), LocalCacheStore, a directory-backed remote
store and archive extraction working together.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from forgecache.core.hook import InterceptionHook
from forgecache.core.local_store import LocalCacheStore
from forgecache.core.policy import PolicyViolation
from forgecache.core.remote_client import DirectoryRemoteClient
from forgecache.core.resolver import ArtifactResolver
from forgecache.core.version_deriver import VersionDeriver, descriptor_from_revision
from forgecache.models.artifacts import ArtifactKey
from forgecache.models.outcomes import ArtifactSource, FallbackReason, NotSatisfied, Satisfied
from forgecache.models.policy import PolicyFlags

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "forgecache",
    "GIT_AUTHOR_EMAIL": "forgecache@example.invalid",
    "GIT_COMMITTER_NAME": "forgecache",
    "GIT_COMMITTER_EMAIL": "forgecache@example.invalid",
}


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
        env={**os.environ, **_GIT_ENV},
    )
    return result.stdout.strip()


def _commit(repo: Path, name: str, content: str) -> str:
    (repo / name).write_text(content)
    _git(repo, "add", name)
    _git(repo, "commit", "--quiet", "--no-gpg-sign", "-m", f"update {name}")
    return _git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    path = tmp_path / "src" / "core"
    path.mkdir(parents=True)
    _git(path, "init", "--quiet")
    _commit(path, "core.c", "int core(void) { return 1; }\n")
    return path


@pytest.fixture
def remote_root(tmp_path: Path) -> Path:
    root = tmp_path / "remote"
    root.mkdir()
    return root


def _publish(remote_root: Path, key: ArtifactKey, data: bytes) -> None:
    target = remote_root / key.relative_path("tar.gz")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def _build(make_config, remote_root, repo, **overrides):
    config = make_config(**overrides)
    resolver = ArtifactResolver(
        config,
        deriver=VersionDeriver(),
        remote=DirectoryRemoteClient(remote_root),
    )
    return config, resolver, InterceptionHook(config, resolver, {"Core": repo})


@requires_git
class TestFullResolution:
    def test_remote_then_local(self, make_config, remote_root, repo, archive_bytes):
        version = descriptor_from_revision(_git(repo, "rev-parse", "HEAD"))
        key = ArtifactKey(name="core", version=version)
        _publish(remote_root, key, archive_bytes)
        config, _, hook = _build(make_config, remote_root, repo)

        first = hook.provide_args("FIND_PACKAGE", ["Core", "REQUIRED"])
        assert isinstance(first, Satisfied)
        assert first.source == ArtifactSource.REMOTE
        assert first.version == version
        assert (config.install_prefix / "lib" / "libcore.a").exists()
        assert LocalCacheStore(config.cache_dir).has(key)

        # The remote copy disappearing must not matter any more.
        shutil.rmtree(remote_root)
        second = hook.provide_args("FIND_PACKAGE", ["Core", "REQUIRED"])
        assert second.source == ArtifactSource.LOCAL_CACHE

    def test_exact_version_request(self, make_config, remote_root, repo, archive_bytes):
        version = descriptor_from_revision(_git(repo, "rev-parse", "HEAD"))
        _publish(remote_root, ArtifactKey(name="core", version=version), archive_bytes)
        _, _, hook = _build(make_config, remote_root, repo)

        outcome = hook.provide_args("FIND_PACKAGE", ["Core", version.dotted, "EXACT"])

        assert outcome.satisfied

    def test_new_commit_misses(self, make_config, remote_root, repo, archive_bytes):
        old = descriptor_from_revision(_git(repo, "rev-parse", "HEAD"))
        _publish(remote_root, ArtifactKey(name="core", version=old), archive_bytes)
        _commit(repo, "core.h", "int core(void);\n")
        _, _, hook = _build(make_config, remote_root, repo)

        outcome = hook.provide_args("FIND_PACKAGE", ["Core"])

        assert isinstance(outcome, NotSatisfied)
        assert outcome.reason == FallbackReason.NOT_FOUND
        assert outcome.version != old

    def test_unmounted_remote_with_required_component(self, make_config, tmp_path, repo):
        _, _, hook = _build(
            make_config,
            tmp_path / "not-mounted",
            repo,
            policies={"core": PolicyFlags(require_prebuilt=True)},
        )
        with pytest.raises(PolicyViolation, match="not mounted"):
            hook.provide_args("FIND_PACKAGE", ["Core", "REQUIRED"])

    def test_unrelated_package_untouched(self, make_config, remote_root, repo):
        config, _, hook = _build(make_config, remote_root, repo)

        outcome = hook.provide_args("FIND_PACKAGE", ["ZLIB", "1.2.13", "REQUIRED"])

        assert outcome.reason == FallbackReason.NOT_ELIGIBLE
        assert not config.cache_dir.exists()


class TestWithoutVersionControl:
    def test_plain_directory_falls_back(self, make_config, remote_root, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        _, _, hook = _build(make_config, remote_root, plain)

        outcome = hook.provide_args("FIND_PACKAGE", ["Core"])

        assert outcome.reason == FallbackReason.VERSION_UNAVAILABLE
