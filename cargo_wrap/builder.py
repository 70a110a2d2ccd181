"""Run `cargo build` for a configured project and relay its output."""

from __future__ import annotations

import copy
import os
import shutil
import subprocess
import sys
from collections import deque
from pathlib import Path
from typing import IO, Callable, Final

from .errors import BuildFailure, LogFileError, SpawnError, StreamError
from .settings import ProjectSettings

# Lines of output kept for BuildFailure diagnostics
OUTPUT_TAIL_LINES: Final[int] = 20


def default_cargo_path() -> str:
    """Locate cargo: $CARGO when running under cargo, else `cargo` on PATH."""
    return os.environ.get("CARGO") or "cargo"


class Builder:
    """Performs one cargo build for a snapshot of project settings.

    The settings are deep-copied on construction, so changes made to the
    caller's object afterwards do not affect this builder. When `log_file`
    is given it is opened (and truncated) immediately and cargo's combined
    stdout/stderr is copied into it byte for byte; otherwise the output is
    forwarded to `sys.stdout.buffer`. Once `close()` has been called a
    builder with a log file can no longer build.
    """

    def __init__(
        self,
        settings: ProjectSettings,
        jobs: int = 0,
        log_file: Path | str | None = None,
        *,
        cargo: Path | str | None = None,
    ) -> None:
        if jobs < 0:
            raise ValueError(f"jobs must be >= 0, got {jobs}")
        self.settings = copy.deepcopy(settings)
        self.jobs = jobs
        self.cargo_path = str(cargo) if cargo is not None else default_cargo_path()
        self.log_path = Path(log_file) if log_file is not None else None
        self._log: IO[bytes] | None = None
        if self.log_path is not None:
            try:
                self._log = open(self.log_path, "wb")
            except OSError as e:
                raise LogFileError(self.log_path, e.strerror or str(e)) from e

    def __enter__(self) -> Builder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the log file, if one is open."""
        if self._log is not None:
            self._log.close()
            self._log = None

    def command_args(self) -> list[str]:
        """Build cargo's argument vector (without the executable).

        The order is fixed: subcommand, verbosity, mode, jobs, target
        triple, features, default-features switch, target selection.
        """
        settings = self.settings
        args = ["build"]
        if settings.verbose:
            args.append("--verbose")
        if settings.release:
            args.append("--release")
        if self.jobs > 0:
            args.extend(["--jobs", str(self.jobs)])
        if settings.target_triple:
            args.extend(["--target", settings.target_triple])
        if settings.features:
            args.extend(["--features", ",".join(settings.features)])
        if settings.no_default_features:
            args.append("--no-default-features")
        args.extend(settings.build_target.args())
        return args

    def command_env(self) -> dict[str, str]:
        """Environment variables set on top of the inherited environment."""
        env: dict[str, str] = {}
        if self.settings.target_dir is not None:
            env["CARGO_TARGET_DIR"] = str(self.settings.target_dir)
        if self.settings.rustflags:
            env["RUSTFLAGS"] = self.settings.rustflags
        return env

    def command_line(self) -> list[str]:
        return [self.cargo_path, *self.command_args()]

    def _resolved_command(self) -> list[str]:
        command = self.command_line()
        # On Windows, resolve the executable path to handle .cmd/.bat shims
        if sys.platform == "win32":
            resolved = shutil.which(command[0])
            if resolved:
                command[0] = resolved
        return command

    def build(self) -> None:
        """Run cargo and wait for it to finish.

        Raises:
            SpawnError: If cargo could not be started.
            StreamError: If reading cargo's output or writing the log fails.
            BuildFailure: If cargo exits with a non-zero status.
        """
        if self.log_path is not None and self._log is None:
            raise StreamError(f"Log file '{self.log_path}' is already closed")

        command = self._resolved_command()
        env = {**os.environ, **self.command_env()}
        try:
            process = subprocess.Popen(
                command,
                cwd=self.settings.project_path,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise SpawnError(command, e.strerror or str(e)) from e

        # Output is relayed as raw bytes; only the diagnostic tail is decoded
        tail: deque[bytes] = deque(maxlen=OUTPUT_TAIL_LINES)
        try:
            write = self._output_writer()
            with process.stdout:
                for line in process.stdout:
                    write(line)
                    tail.append(line)
        except (OSError, ValueError) as e:
            process.kill()
            process.wait()
            raise StreamError(f"Failed to relay cargo output: {e}") from e

        exit_code = process.wait()
        if exit_code != 0:
            raise BuildFailure(
                exit_code,
                [line.decode("utf-8", errors="replace").rstrip("\r\n") for line in tail],
            )

    def _output_writer(self) -> Callable[[bytes], None]:
        """Return a callable writing one chunk of cargo output to its sink."""
        if self._log is not None:
            log = self._log

            def write_log(chunk: bytes) -> None:
                log.write(chunk)
                log.flush()

            return write_log

        stdout = sys.stdout
        # Anything already printed through the text layer goes out first
        stdout.flush()
        buffer = getattr(stdout, "buffer", None)
        if buffer is not None:

            def write_buffer(chunk: bytes) -> None:
                buffer.write(chunk)
                buffer.flush()

            return write_buffer

        def write_text(chunk: bytes) -> None:
            stdout.write(chunk.decode("utf-8", errors="replace"))
            stdout.flush()

        return write_text
