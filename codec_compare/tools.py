"""External tool invocation.

Encoders, the decoder, the comparison tool and the conversion tool are
arbitrary external programs. They are run one at a time with
``subprocess``, blocking until they exit, with no timeout and no shell.
Their stdout and stderr are captured and their exit status is inspected;
callers decide which exit codes count as success.
"""

import os
import re
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from codec_compare.errors import ExternalToolFailure

DecoderConvention = Literal["flags", "positional"]

# Decoders known to take "-i <input> -o <output>"
_FLAG_STYLE_DECODERS = frozenset({"j2k_to_image", "opj_decompress", "kdu_expand"})

COMPARE_ENV_VAR = "CODEC_COMPARE_COMPARE"
CONVERT_ENV_VAR = "CODEC_COMPARE_CONVERT"


@dataclass
class ToolResult:
    """Result of a single external tool invocation."""

    command: list[str]
    returncode: int
    output: str
    elapsed: float
    ok_codes: tuple[int, ...] = (0,)

    @property
    def success(self) -> bool:
        return self.returncode in self.ok_codes

    def check(self, what: str) -> "ToolResult":
        """Return self, or raise if the invocation failed.

        Args:
            what: Short description of the step for the error message

        Raises:
            ExternalToolFailure: If the exit status is not an accepted one
        """
        if not self.success:
            msg = f"{what} failed with exit status {self.returncode}: {_last_line(self.output)}"
            raise ExternalToolFailure(msg, self.command, self.returncode, self.output)
        return self


def _last_line(output: str) -> str:
    lines = [line for line in output.strip().splitlines() if line.strip()]
    return lines[-1] if lines else "(no output)"


def run_tool(command: list[str], ok_codes: tuple[int, ...] = (0,)) -> ToolResult:
    """Run an external tool and capture its combined output.

    A command that cannot be started at all (not found, not executable)
    yields a failed result with return code 127 rather than an exception,
    so every invocation point sees the same typed result.

    Args:
        command: Program and arguments
        ok_codes: Exit statuses that count as success

    Returns:
        ToolResult with stdout followed by stderr as ``output``
    """
    t0 = time.monotonic()
    try:
        result = subprocess.run(command, capture_output=True, text=True, errors="replace")
    except OSError as e:
        return ToolResult(
            command=command,
            returncode=127,
            output=f"{command[0]}: {e}",
            elapsed=time.monotonic() - t0,
            ok_codes=ok_codes,
        )
    output = (result.stdout or "") + (result.stderr or "")
    return ToolResult(
        command=command,
        returncode=result.returncode,
        output=output,
        elapsed=time.monotonic() - t0,
        ok_codes=ok_codes,
    )


def resolve_tool(env_var: str, default: str) -> str:
    """Resolve a tool command from the environment.

    Args:
        env_var: Environment variable that may name the tool
        default: Command used when the variable is unset or empty

    Returns:
        Command name or path
    """
    return os.environ.get(env_var) or default


def split_parameters(parameters: str) -> list[str]:
    """Split an opaque encoder parameter string into arguments.

    Quoting follows shell rules but the arguments are never handed to a
    shell.
    """
    return shlex.split(parameters)


def encode_command(
    encoder: str, source: Path, parameters: str, output: Path
) -> list[str]:
    """Build the encoder command line.

    Args:
        encoder: Encoder program
        source: Source variant to encode
        parameters: Codec parameters, passed through verbatim
        output: Path of the encoded bitstream

    Returns:
        Command list ``[encoder, -i, source, *parameters, -o, output]``
    """
    return [encoder, "-i", str(source), *split_parameters(parameters), "-o", str(output)]


def convert_command(convert: str, source: Path, output: Path, depth: int) -> list[str]:
    """Build the conversion command line (ImageMagick ``convert`` syntax)."""
    return [convert, str(source), "-depth", str(depth), str(output)]


def compare_command(
    compare: str, metric: str, reference: Path, candidate: Path, diff: Path
) -> list[str]:
    """Build the comparison command line (ImageMagick ``compare`` syntax)."""
    return [compare, "-metric", metric.upper(), str(reference), str(candidate), str(diff)]


@dataclass(frozen=True)
class DecoderSpec:
    """The decoder shared by every codec in a run."""

    command: str
    convention: DecoderConvention

    @classmethod
    def from_cli(cls, command: str, convention: str | None = None) -> "DecoderSpec":
        """Select the invocation convention for a decoder.

        Known OpenJPEG and Kakadu decoders take ``-i``/``-o`` flags;
        anything else is assumed to take ``input output`` positionally.
        An explicit ``convention`` overrides the guess.

        Args:
            command: Decoder program name or path
            convention: ``"flags"``, ``"positional"`` or None to guess

        Returns:
            DecoderSpec instance
        """
        if convention is None:
            convention = "flags" if Path(command).name in _FLAG_STYLE_DECODERS else "positional"
        if convention not in ("flags", "positional"):
            msg = f"Unknown decoder convention: {convention}"
            raise ValueError(msg)
        return cls(command=command, convention=convention)  # type: ignore[arg-type]

    def command_line(self, bitstream: Path, output: Path) -> list[str]:
        """Build the decoder command line for one bitstream."""
        if self.convention == "flags":
            return [self.command, "-i", str(bitstream), "-o", str(output)]
        return [self.command, str(bitstream), str(output)]


_METRIC_LINE = re.compile(
    r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?|[-+]?inf|nan)(?:\s*\(.*\))?\s*$",
    re.I,
)


def parse_metric_value(output: str) -> float | None:
    """Extract the scalar metric from comparison tool output.

    ``compare -metric`` prints the value on a line of its own, sometimes
    followed by a normalized value in parentheses (``"1234.5 (0.0188)"``).
    Warnings (e.g. unknown TIFF tags) may precede it on stderr, so only
    lines holding nothing but the value are considered, the last one
    winning. PSNR of identical images is printed as ``inf``.

    Args:
        output: Captured comparison tool output

    Returns:
        The metric value, or None if no line holds one
    """
    for line in reversed(output.splitlines()):
        match = _METRIC_LINE.match(line)
        if match is not None:
            return float(match.group(1))
    return None
