"""Dependency-satisfaction requests as issued by the host build tool."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from forgecache.models.versioning import VersionDescriptor

FIND_PACKAGE = "FIND_PACKAGE"

# find_package keywords that never carry a value.
_FLAG_KEYWORDS = frozenset(
    {"QUIET", "EXACT", "MODULE", "CONFIG", "NO_MODULE", "REQUIRED", "GLOBAL",
     "NO_POLICY_SCOPE", "BYPASS_PROVIDER"}
)
_SINGLE_VALUE_KEYWORDS = frozenset({"REGISTRY_VIEW"})
_MULTI_VALUE_KEYWORDS = frozenset({"COMPONENTS", "OPTIONAL_COMPONENTS"})


class DependencyRequest(BaseModel):
    """A single "is dependency X with constraint V satisfied?" query."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    method: str = FIND_PACKAGE
    required: bool = False
    quiet: bool = False
    exact: bool = False
    components: tuple[str, ...] = ()
    args: tuple[str, ...] = ()

    @classmethod
    def from_find_package_args(
        cls, args: list[str] | tuple[str, ...], *, method: str = FIND_PACKAGE
    ) -> DependencyRequest:
        """Build a request from a raw ``find_package(...)`` argument list.

        The first positional argument is the package name and the second,
        if any, is the requested version. Option keywords may appear
        anywhere and are skipped.
        """
        if not args:
            raise ValueError("find_package arguments must include a package name")

        positional: list[str] = []
        flags: set[str] = set()
        components: list[str] = []
        collecting: str | None = None
        skip_next = False
        for arg in args:
            if skip_next:
                skip_next = False
                continue
            if arg in _FLAG_KEYWORDS:
                flags.add(arg)
                collecting = None
            elif arg in _SINGLE_VALUE_KEYWORDS:
                skip_next = True
                collecting = None
            elif arg in _MULTI_VALUE_KEYWORDS:
                collecting = arg
            elif collecting is not None:
                components.append(arg)
            else:
                positional.append(arg)

        return cls(
            name=positional[0],
            version=positional[1] if len(positional) > 1 else None,
            method=method,
            required="REQUIRED" in flags,
            quiet="QUIET" in flags,
            exact="EXACT" in flags,
            components=tuple(components),
            args=tuple(args),
        )

    @property
    def lower_name(self) -> str:
        return self.name.lower()

    def constraint(self) -> VersionDescriptor | None:
        """The requested version as a descriptor, or None if unconstrained.

        Raises ValueError if a version was given but is not four-part decimal.
        """
        if self.version is None:
            return None
        return VersionDescriptor.parse(self.version)
