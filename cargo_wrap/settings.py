"""Project settings describing what cargo should build and how."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ManifestError


@dataclass(frozen=True, slots=True)
class Unrestricted:
    """Build every target of the package (cargo's default)."""

    def args(self) -> list[str]:
        return []


@dataclass(frozen=True, slots=True)
class Bin:
    """Build only the named binary."""

    name: str

    def args(self) -> list[str]:
        return ["--bin", self.name]


@dataclass(frozen=True, slots=True)
class Lib:
    """Build only the package's library.

    A package has at most one library and `cargo build --lib` takes no
    name, so `name` is informational and never reaches the command line.
    """

    name: str | None = None

    def args(self) -> list[str]:
        return ["--lib"]


BuildTarget = Unrestricted | Bin | Lib


@dataclass
class ProjectSettings:
    """Configuration for a single cargo project build.

    Only `project_path` is required. Everything else starts at cargo's
    defaults and is adjusted through the setters, which return the
    settings object so calls can be chained.

    An empty or blank string `project_path` is rejected. A `Path` cannot be
    empty: `Path("")` is the same path as `Path(".")`, so it is accepted and
    names the current directory.
    """

    project_path: Path
    target_dir: Path | None = None
    target_triple: str | None = None
    release: bool = False
    verbose: bool = False
    features: list[str] = field(default_factory=list)
    no_default_features: bool = False
    build_target: BuildTarget = field(default_factory=Unrestricted)
    rustflags: str | None = None

    def __post_init__(self) -> None:
        if not str(self.project_path).strip():
            raise ValueError("project_path must not be empty")
        self.project_path = Path(self.project_path)
        if self.target_dir is not None:
            self.target_dir = Path(self.target_dir)
        # Route through add_feature so duplicates passed in are collapsed
        initial = list(self.features)
        self.features = []
        for name in initial:
            self.add_feature(name)

    @property
    def cargo_toml_path(self) -> Path:
        return self.project_path / "Cargo.toml"

    def set_release(self) -> ProjectSettings:
        self.release = True
        return self

    def set_debug(self) -> ProjectSettings:
        self.release = False
        return self

    def set_verbose(self, enabled: bool = True) -> ProjectSettings:
        self.verbose = enabled
        return self

    def add_feature(self, name: str) -> ProjectSettings:
        """Enable a feature; adding one that is already enabled does nothing."""
        if not name:
            raise ValueError("feature name must not be empty")
        if name not in self.features:
            self.features.append(name)
        return self

    def set_no_default_features(self, enabled: bool = True) -> ProjectSettings:
        self.no_default_features = enabled
        return self

    def set_build_target_bin(self, name: str) -> ProjectSettings:
        if not name:
            raise ValueError("binary name must not be empty")
        self.build_target = Bin(name)
        return self

    def set_build_target_lib(self, name: str | None = None) -> ProjectSettings:
        self.build_target = Lib(name)
        return self

    def clear_build_target(self) -> ProjectSettings:
        self.build_target = Unrestricted()
        return self

    def set_target_dir(self, path: Path | str | None) -> ProjectSettings:
        self.target_dir = Path(path) if path is not None else None
        return self

    def set_target_triple(self, triple: str | None) -> ProjectSettings:
        self.target_triple = triple or None
        return self

    def set_rustflags(self, flags: str | None) -> ProjectSettings:
        self.rustflags = flags or None
        return self

    def add_rustc_flag(self, flag: str) -> ProjectSettings:
        """Append one flag to the RUSTFLAGS passed to rustc."""
        self.rustflags = f"{self.rustflags} {flag}" if self.rustflags else flag
        return self

    def get_features(self) -> list[str]:
        """List the features declared in the project's Cargo.toml.

        Returns:
            Feature names in manifest order, or an empty list when the
            manifest has no [features] table.

        Raises:
            ManifestError: If Cargo.toml is missing, unreadable or invalid.
        """
        manifest = self.cargo_toml_path
        try:
            content = manifest.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Failed to read manifest: {e}", manifest) from e

        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"Invalid TOML: {e}", manifest) from e

        features = data.get("features")
        if not isinstance(features, dict):
            return []
        return list(features)
