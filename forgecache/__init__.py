"""forgecache: reuse pre-built components when their source revision is unchanged.

Derives a four-part version from each component's revision, looks for a
matching archive in a local cache and then in a remote object store, and
extracts it into the install prefix. Any miss or failure falls back to a
normal from-source build.
"""

__version__ = "0.1.0"
__description__ = "Artifact cache resolver for multi-component source builds"

from forgecache.core.hook import InterceptionHook
from forgecache.core.resolver import ArtifactResolver
from forgecache.core.version_deriver import VersionDeriver, descriptor_from_revision

__all__ = [
    "ArtifactResolver",
    "InterceptionHook",
    "VersionDeriver",
    "descriptor_from_revision",
    "__version__",
]
