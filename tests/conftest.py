"""Shared test fixtures for forgecache."""

from __future__ import annotations

import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest

from forgecache.core.local_store import LocalCacheStore
from forgecache.core.resolver import ArtifactResolver
from forgecache.core.vcs import StaticRevisionSource
from forgecache.core.version_deriver import VersionDeriver
from forgecache.models.artifacts import ArtifactKey
from forgecache.models.component import Component
from forgecache.models.config import ResolverConfig
from forgecache.models.policy import PolicyFlags
from forgecache.models.remote import FetchResult, RemoteCheck
from forgecache.models.versioning import VersionDescriptor

# Revision aabbccdd -> 170.187.204.221
TEST_REVISION = "aabbccdd"
TEST_VERSION = VersionDescriptor(170, 187, 204, 221)

DEFAULT_FILES: dict[str, bytes] = {
    "lib/libcore.a": b"\x7fELF fake static library",
    "include/core/core.h": b"#pragma once\nint core(void);\n",
    "share/cmake/core/coreConfig.cmake": b"set(core_FOUND TRUE)\n",
}


def build_tar_gz(files: dict[str, bytes]) -> bytes:
    """Return the bytes of a tar.gz holding *files* (path -> content)."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class FakeRemoteClient:
    """In-memory remote store that counts calls.

    Parameters
    ----------
    archives:
        Archive bytes keyed by ArtifactKey.
    unreachable:
        Every ``exists`` call reports an error, as if the network were down.
    fetch_fails:
        ``exists`` succeeds but every ``fetch`` fails.
    """

    def __init__(
        self,
        archives: dict[ArtifactKey, bytes] | None = None,
        *,
        unreachable: bool = False,
        fetch_fails: bool = False,
    ) -> None:
        self.archives = dict(archives or {})
        self.unreachable = unreachable
        self.fetch_fails = fetch_fails
        self.exists_calls: list[ArtifactKey] = []
        self.fetch_calls: list[ArtifactKey] = []

    @property
    def call_count(self) -> int:
        return len(self.exists_calls) + len(self.fetch_calls)

    def exists(self, key: ArtifactKey) -> RemoteCheck:
        self.exists_calls.append(key)
        if self.unreachable:
            return RemoteCheck.error("network unreachable")
        if key in self.archives:
            return RemoteCheck.present()
        return RemoteCheck.absent(f"{key} not found on server")

    def fetch(self, key: ArtifactKey, destination: Path) -> FetchResult:
        self.fetch_calls.append(key)
        if self.fetch_fails or key not in self.archives:
            return FetchResult.failure("connection reset")
        Path(destination).write_bytes(self.archives[key])
        return FetchResult.success()


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def source_dir(tmp_dir: Path) -> Path:
    """A component source tree (contents are irrelevant; revisions are faked)."""
    path = tmp_dir / "src" / "core"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def component(source_dir: Path) -> Component:
    return Component(name="Core", source_path=source_dir)


@pytest.fixture
def artifact_key() -> ArtifactKey:
    return ArtifactKey(name="core", version=TEST_VERSION)


@pytest.fixture
def deriver(source_dir: Path) -> VersionDeriver:
    """A deriver that reports TEST_REVISION for the component source tree."""
    return VersionDeriver(StaticRevisionSource({source_dir: TEST_REVISION}))


@pytest.fixture
def archive_bytes() -> bytes:
    return build_tar_gz(DEFAULT_FILES)


@pytest.fixture
def make_archive(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write a tar.gz with the given files and return its path."""
    counter = iter(range(10_000))

    def _factory(files: dict[str, bytes] | None = None, name: str | None = None) -> Path:
        path = tmp_dir / "archives" / (name or f"archive-{next(counter)}.tar.gz")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_tar_gz(files if files is not None else DEFAULT_FILES))
        return path

    return _factory


@pytest.fixture
def make_config(tmp_dir: Path) -> Callable[..., ResolverConfig]:
    """Factory fixture: a ResolverConfig rooted in the temp directory."""

    def _factory(**overrides: object) -> ResolverConfig:
        defaults: dict[str, object] = {
            "bucket": "minio/prebuilt",
            "package_regex": r"^(core|net)",
            "cache_dir": tmp_dir / "cache",
            "install_prefix": tmp_dir / "install",
        }
        defaults.update(overrides)
        return ResolverConfig(**defaults)

    return _factory


@pytest.fixture
def resolver_config(make_config: Callable[..., ResolverConfig]) -> ResolverConfig:
    return make_config()


@pytest.fixture
def local_store(resolver_config: ResolverConfig) -> LocalCacheStore:
    return LocalCacheStore(resolver_config.cache_dir)


@pytest.fixture
def make_resolver(
    make_config: Callable[..., ResolverConfig],
    deriver: VersionDeriver,
) -> Callable[..., tuple[ArtifactResolver, FakeRemoteClient]]:
    """Factory fixture: a resolver wired to a FakeRemoteClient.

    Keyword arguments ``remote`` and ``policies`` are handled here; anything
    else is forwarded to the config.
    """

    def _factory(
        *,
        remote: FakeRemoteClient | None = None,
        policies: dict[str, PolicyFlags] | None = None,
        **config_overrides: object,
    ) -> tuple[ArtifactResolver, FakeRemoteClient]:
        config = make_config(policies=policies or {}, **config_overrides)
        remote = remote if remote is not None else FakeRemoteClient()
        return ArtifactResolver(config, deriver=deriver, remote=remote), remote

    return _factory


@pytest.fixture
def make_remote() -> type[FakeRemoteClient]:
    """The FakeRemoteClient class, for tests that build their own."""
    return FakeRemoteClient


@pytest.fixture
def expected_version() -> VersionDescriptor:
    return TEST_VERSION


@pytest.fixture
def tar_gz_bytes() -> Callable[[dict[str, bytes]], bytes]:
    """Factory fixture: tar.gz bytes for a path -> content mapping."""
    return build_tar_gz
