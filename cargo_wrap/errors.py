"""Custom exceptions for cargo-wrap."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class CargoWrapError(Exception):
    """Base exception for everything raised by cargo-wrap."""


class LogFileError(CargoWrapError):
    """Raised when the build log file cannot be opened."""

    def __init__(self, path: Path | str, reason: str | None = None) -> None:
        self.path = Path(path)
        message = f"Cannot open log file '{self.path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SpawnError(CargoWrapError):
    """Raised when the build tool could not be launched at all."""

    def __init__(self, command: Sequence[str], reason: str | None = None) -> None:
        self.command = list(command)
        program = self.command[0] if self.command else "<empty command>"
        message = f"Failed to launch '{program}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BuildFailure(CargoWrapError):
    """Raised when the build tool ran but exited with a non-zero status."""

    def __init__(self, exit_code: int, output_tail: Sequence[str] = ()) -> None:
        self.exit_code = exit_code
        self.output_tail = list(output_tail)
        super().__init__(f"Failed to compile project: exit code {exit_code}")


class StreamError(CargoWrapError):
    """Raised when relaying the child's output fails mid-build."""


class ManifestError(CargoWrapError):
    """Raised when Cargo.toml cannot be read or parsed."""

    def __init__(self, message: str, manifest_path: Path | str | None = None) -> None:
        self.manifest_path = manifest_path
        full_message = message if not manifest_path else f"[{manifest_path}] {message}"
        super().__init__(full_message)


class ProfileError(CargoWrapError):
    """Raised when a build profile fails to load or validate."""

    def __init__(
        self,
        message: str,
        profile_path: Path | str | None = None,
        field: str | None = None,
    ) -> None:
        self.profile_path = profile_path
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        full_message = message if not profile_path else f"[{profile_path}] {message}"
        super().__init__(full_message)
