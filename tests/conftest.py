"""Shared test fixtures and helpers.

The external encoder, decoder, comparison and conversion tools are
replaced by tiny shell scripts that copy their input to their output and
append their arguments to a call log, so a whole run can be exercised
without any real codec installed.
"""

import json
import stat
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest
from PIL import Image

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

requires_posix_shell = pytest.mark.skipif(
    sys.platform == "win32", reason="fake tools are POSIX shell scripts"
)


def create_test_image(
    path: Path,
    size: tuple[int, int] = (64, 64),
    mode: str = "RGB",
    color: tuple[int, ...] = (128, 128, 128),
) -> Path:
    """Create a small test image and return its path."""
    img = Image.new(mode, size, color=color)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path


def write_config(path: Path, codecs: dict) -> Path:
    """Write a codec config JSON file and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(codecs, indent=2))
    return path


def codec_record(
    encoder: str,
    input_type: str = "ppm",
    suffix: str = "j2k",
    parameters: str = "",
    version_switch: str | None = None,
) -> dict:
    """Build one codec record for a config file."""
    record = {
        "encoder_command": encoder,
        "required_input_type": input_type,
        "output_suffix": suffix,
        "parameters": parameters,
    }
    if version_switch is not None:
        record["version_switch"] = version_switch
    return record


def _write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_calls(log: Path) -> list[str]:
    """Return the logged tool invocations, one per line."""
    if not log.exists():
        return []
    return log.read_text().splitlines()


# ---------------------------------------------------------------------------
# Fake tool fixtures
# ---------------------------------------------------------------------------


@dataclass
class FakeTools:
    """Paths of the fake external tools and their shared call log."""

    log: Path
    encoder: Path
    failing_encoder: Path
    flag_decoder: Path
    positional_decoder: Path
    compare: Path
    convert: Path


@pytest.fixture
def fake_tools(tmp_path: Path) -> FakeTools:
    """Create fake tools under ``tmp_path/bin``."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    log = tmp_path / "calls.log"

    # -i <in> [params] -o <out>; -V prints a version
    flag_copy = f"""\
echo "$(basename "$0") $*" >> "{log}"
in=""
out=""
while [ $# -gt 0 ]; do
  case "$1" in
    -i) in="$2"; shift 2 ;;
    -o) out="$2"; shift 2 ;;
    -V) echo "$(basename "$0") version 1.0"; exit 0 ;;
    *) shift ;;
  esac
done
cp "$in" "$out"
echo "wrote $out"
"""
    encoder = _write_script(bin_dir / "fake_enc", flag_copy)
    flag_decoder = _write_script(bin_dir / "fake_dec", flag_copy)

    failing_encoder = _write_script(
        bin_dir / "broken_enc",
        f"""\
echo "$(basename "$0") $*" >> "{log}"
echo "broken_enc: cannot encode" >&2
exit 3
""",
    )

    positional_decoder = _write_script(
        bin_dir / "pos_dec",
        f"""\
echo "$(basename "$0") $*" >> "{log}"
cp "$1" "$2"
""",
    )

    # compare -metric <M> <a> <b> <diff>; exits 1 because the images "differ"
    compare = _write_script(
        bin_dir / "fake_compare",
        f"""\
echo "$(basename "$0") $*" >> "{log}"
cp "$4" "$5"
echo "34.5678" >&2
exit 1
""",
    )

    # convert <src> -depth 12 <dst>
    convert = _write_script(
        bin_dir / "fake_convert",
        f"""\
echo "$(basename "$0") $*" >> "{log}"
cp "$1" "$4"
""",
    )

    return FakeTools(
        log=log,
        encoder=encoder,
        failing_encoder=failing_encoder,
        flag_decoder=flag_decoder,
        positional_decoder=positional_decoder,
        compare=compare,
        convert=convert,
    )


@pytest.fixture
def source_image(tmp_path: Path) -> Path:
    """A small reference image outside the working directory."""
    return create_test_image(tmp_path / "input" / "reference.png")


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Empty working directory for produced files."""
    path = tmp_path / "work"
    path.mkdir()
    return path
