#!/usr/bin/env python3
"""
Build a Rust project with cargo.

Settings come from the command line, from a YAML build profile, or both
(command-line flags override the profile).

Usage:
    python -m cargo_wrap [project_path] [options]

Examples:
    python -m cargo_wrap path/to/crate --release -F serde,tracing
    python -m cargo_wrap --profile release.yaml --jobs 8
    python -m cargo_wrap path/to/crate --bin server --log-file build.log
    python -m cargo_wrap path/to/crate --list-features
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from .builder import Builder
from .errors import (
    BuildFailure,
    LogFileError,
    ManifestError,
    ProfileError,
    SpawnError,
    StreamError,
)
from .profile import BuildProfile, load_profile
from .settings import ProjectSettings

# Exit status when cargo itself could not be launched (shell convention)
EXIT_SPAWN_FAILED = 127
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo_wrap",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "project_path",
        nargs="?",
        type=Path,
        help="Root of the cargo project (default: current directory)",
    )
    parser.add_argument(
        "--profile",
        type=Path,
        help="YAML build profile to start from",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--release",
        action="store_true",
        help="Build in release mode with optimizations",
    )
    mode.add_argument(
        "--debug",
        action="store_true",
        help="Build in debug mode (overrides a release profile)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Pass --verbose to cargo",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        help="Number of parallel jobs (0 = cargo default)",
    )
    parser.add_argument(
        "--target",
        help="Target triple to cross-compile for",
    )
    parser.add_argument(
        "--target-dir",
        type=Path,
        help="Directory for build artifacts (sets CARGO_TARGET_DIR)",
    )
    parser.add_argument(
        "-F",
        "--features",
        action="append",
        default=[],
        help="Features to activate (repeatable, comma-separated)",
    )
    parser.add_argument(
        "--no-default-features",
        action="store_true",
        help="Do not activate the default feature",
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--bin",
        metavar="NAME",
        help="Build only the named binary",
    )
    selection.add_argument(
        "--lib",
        action="store_true",
        help="Build only the library",
    )
    parser.add_argument(
        "--rustflags",
        help="Extra flags for rustc (sets RUSTFLAGS)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write cargo's output to this file instead of stdout",
    )
    parser.add_argument(
        "--list-features",
        action="store_true",
        help="List the features declared in Cargo.toml and exit",
    )
    return parser


def resolve_profile(args: argparse.Namespace) -> BuildProfile:
    """Merge an optional profile file with command-line overrides."""
    if args.profile is not None:
        profile = load_profile(args.profile)
        if args.project_path is not None:
            profile.settings.project_path = args.project_path
    else:
        profile = BuildProfile(ProjectSettings(args.project_path or Path(".")))

    settings = profile.settings
    if args.release:
        settings.set_release()
    elif args.debug:
        settings.set_debug()
    if args.verbose:
        settings.set_verbose()
    if args.target:
        settings.set_target_triple(args.target)
    if args.target_dir is not None:
        settings.set_target_dir(args.target_dir)
    for group in args.features:
        for name in group.split(","):
            if name.strip():
                settings.add_feature(name.strip())
    if args.no_default_features:
        settings.set_no_default_features()
    if args.bin:
        settings.set_build_target_bin(args.bin)
    elif args.lib:
        settings.set_build_target_lib()
    if args.rustflags:
        settings.set_rustflags(args.rustflags)
    if args.jobs is not None:
        if args.jobs < 0:
            raise ValueError(f"--jobs must be >= 0, got {args.jobs}")
        profile.jobs = args.jobs
    if args.log_file is not None:
        profile.log_file = args.log_file
    return profile


def run_build(profile: BuildProfile) -> int:
    """Run one build and report the outcome, returning an exit status."""
    try:
        builder = Builder(profile.settings, profile.jobs, profile.log_file)
    except LogFileError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    with builder:
        print(f"\n$ {' '.join(builder.command_line())}")
        print(f"  in {builder.settings.project_path}")
        start = time.perf_counter()
        try:
            builder.build()
        except SpawnError as e:
            print(f"\n[FAIL] {e}", file=sys.stderr)
            print("Make sure cargo is installed and on PATH.", file=sys.stderr)
            return EXIT_SPAWN_FAILED
        except StreamError as e:
            print(f"\n[FAIL] {e}", file=sys.stderr)
            return 1
        except BuildFailure as e:
            elapsed = time.perf_counter() - start
            print(f"\n[FAIL] Build failed after {elapsed:.2f}s", file=sys.stderr)
            print(f"Error: {e}", file=sys.stderr)
            if profile.log_file is not None and e.output_tail:
                print(f"Last lines of {profile.log_file}:", file=sys.stderr)
                for line in e.output_tail:
                    print(f"  {line}", file=sys.stderr)
            return e.exit_code if e.exit_code > 0 else 1

        elapsed = time.perf_counter() - start
        print(f"\n[OK] Build completed in {elapsed:.2f}s")
        return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        profile = resolve_profile(args)
    except (ProfileError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.list_features:
        try:
            features = profile.settings.get_features()
        except ManifestError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        if not features:
            print("No features declared.")
        for name in features:
            print(name)
        return 0

    try:
        return run_build(profile)
    except KeyboardInterrupt:
        print("\n\nBuild interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
