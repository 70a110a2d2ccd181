"""Build profile loading from YAML files.

A profile captures everything needed to run a build without code::

    project_path: ../my-crate
    release: true
    features: [serde, tracing]
    bin: server
    jobs: 4
    log_file: build.log
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml

from .errors import ProfileError
from .settings import ProjectSettings

KNOWN_KEYS: Final[frozenset[str]] = frozenset(
    {
        "project_path",
        "target_dir",
        "target",
        "release",
        "verbose",
        "features",
        "no_default_features",
        "bin",
        "lib",
        "rustflags",
        "jobs",
        "log_file",
    }
)


@dataclass
class BuildProfile:
    """Settings plus the run-level parameters a Builder takes."""

    settings: ProjectSettings
    jobs: int = 0
    log_file: Path | None = None


def load_profile(profile_path: Path) -> BuildProfile:
    """Load a build profile from a YAML file.

    Relative paths inside the profile are resolved against the directory
    containing it.

    Args:
        profile_path: Path to the profile file.

    Returns:
        The parsed profile.

    Raises:
        ProfileError: If the file cannot be read, parsed or validated.
    """
    profile_path = Path(profile_path)
    try:
        content = profile_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileError(f"Failed to read profile: {e}", str(profile_path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML: {e}", str(profile_path)) from e

    if not isinstance(data, dict):
        raise ProfileError("Profile root must be a mapping", str(profile_path))

    return parse_profile(data, base_dir=profile_path.parent, source=str(profile_path))


def parse_profile(
    data: dict[str, Any],
    *,
    base_dir: Path | None = None,
    source: str | None = None,
) -> BuildProfile:
    """Validate a profile mapping and turn it into a BuildProfile."""

    def fail(message: str, key: str | None = None) -> ProfileError:
        return ProfileError(message, source, key)

    def resolve(raw: Any, key: str) -> Path:
        if not isinstance(raw, str) or not raw:
            raise fail("expected a non-empty path string", key)
        path = Path(raw).expanduser()
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        return path

    def flag(key: str) -> bool:
        value = data.get(key, False)
        if not isinstance(value, bool):
            raise fail("expected true or false", key)
        return value

    def optional_str(key: str) -> str | None:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise fail("expected a string", key)
        return value

    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        raise fail(f"Unknown key(s): {', '.join(unknown)}")

    if "project_path" not in data:
        raise fail("is required", "project_path")

    settings = ProjectSettings(
        resolve(data["project_path"], "project_path"),
        target_dir=resolve(data["target_dir"], "target_dir")
        if data.get("target_dir") is not None
        else None,
        target_triple=optional_str("target"),
        release=flag("release"),
    )
    settings.set_verbose(flag("verbose"))
    settings.set_no_default_features(flag("no_default_features"))

    features = data.get("features") or []
    if not isinstance(features, list) or not all(
        isinstance(f, str) and f for f in features
    ):
        raise fail("expected a list of feature names", "features")
    for name in features:
        settings.add_feature(name)

    if data.get("bin") is not None and data.get("lib") not in (None, False):
        raise fail("'bin' and 'lib' are mutually exclusive")
    bin_name = optional_str("bin")
    if bin_name == "":
        raise fail("expected a non-empty binary name", "bin")
    if bin_name is not None:
        settings.set_build_target_bin(bin_name)
    lib = data.get("lib")
    if lib is True or isinstance(lib, str):
        settings.set_build_target_lib(lib if isinstance(lib, str) else None)
    elif lib not in (None, False):
        raise fail("expected true or a library name", "lib")

    rustflags = data.get("rustflags")
    if isinstance(rustflags, list) and all(isinstance(f, str) for f in rustflags):
        for rustc_flag in rustflags:
            settings.add_rustc_flag(rustc_flag)
    elif isinstance(rustflags, str):
        settings.set_rustflags(rustflags)
    elif rustflags is not None:
        raise fail("expected a string or a list of strings", "rustflags")

    jobs = data.get("jobs", 0)
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 0:
        raise fail("expected a non-negative integer", "jobs")

    log_file = data.get("log_file")
    return BuildProfile(
        settings=settings,
        jobs=jobs,
        log_file=resolve(log_file, "log_file") if log_file is not None else None,
    )
