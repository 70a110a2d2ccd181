"""Thin settings-and-invocation layer over `cargo build`."""

from .builder import Builder, default_cargo_path
from .errors import (
    BuildFailure,
    CargoWrapError,
    LogFileError,
    ManifestError,
    ProfileError,
    SpawnError,
    StreamError,
)
from .profile import BuildProfile, load_profile
from .settings import Bin, BuildTarget, Lib, ProjectSettings, Unrestricted

__version__ = "0.1.0"

__all__ = [
    # Settings
    "ProjectSettings",
    "BuildTarget",
    "Unrestricted",
    "Bin",
    "Lib",
    # Building
    "Builder",
    "default_cargo_path",
    # Profiles
    "BuildProfile",
    "load_profile",
    # Errors
    "CargoWrapError",
    "LogFileError",
    "SpawnError",
    "BuildFailure",
    "StreamError",
    "ManifestError",
    "ProfileError",
]
