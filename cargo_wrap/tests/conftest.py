import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest

FAKE_CARGO = textwrap.dedent(
    """\
    #!{python}
    import json, os, sys
    with open({record!r}, "w") as f:
        json.dump(
            {{
                "argv": sys.argv[1:],
                "cwd": os.getcwd(),
                "CARGO_TARGET_DIR": os.environ.get("CARGO_TARGET_DIR"),
                "RUSTFLAGS": os.environ.get("RUSTFLAGS"),
                "PATH": os.environ.get("PATH"),
            }},
            f,
        )
    raw = os.environ.get("FAKE_CARGO_RAW")
    if raw:
        sys.stdout.buffer.write(bytes.fromhex(raw))
        sys.stdout.buffer.flush()
        sys.exit(int(os.environ.get("FAKE_CARGO_EXIT", "0")))
    print("   Compiling demo v0.1.0")
    sys.stdout.flush()
    print("warning: unused variable", file=sys.stderr)
    sys.stderr.flush()
    print("    Finished dev [unoptimized] target(s)")
    sys.exit(int(os.environ.get("FAKE_CARGO_EXIT", "0")))
    """
)


class FakeCargo:
    """A stand-in cargo executable that records how it was invoked."""

    def __init__(self, path: Path, record: Path) -> None:
        self.path = path
        self.record = record

    def invocation(self) -> dict:
        return json.loads(self.record.read_text())


@pytest.fixture
def fake_cargo(tmp_path):
    if sys.platform == "win32":
        pytest.skip("fake cargo script relies on a shebang line")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    record = tmp_path / "invocation.json"
    script = bin_dir / "cargo"
    script.write_text(FAKE_CARGO.format(python=sys.executable, record=str(record)))
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return FakeCargo(script, record)


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "demo"
    project.mkdir()
    return project
