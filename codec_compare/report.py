"""Console report.

Results are written line by line as each step finishes, flushed
immediately, so a long run can be followed live. The report is meant for
people; nothing here is a machine-readable results format.
"""

import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from PIL import Image, UnidentifiedImageError

from codec_compare.config import CodecDefinition
from codec_compare.errors import ExternalToolFailure
from codec_compare.tools import DecoderSpec, ToolResult


def _format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like ``"0.42s"``, ``"5m 12s"`` or ``"1h 02m 03s"``
    """
    if seconds < 0:
        return "—"
    if seconds < 60:
        return f"{seconds:.2f}s"
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    if h > 0:
        return f"{h}h {m:02d}m {s:02d}s"
    return f"{m}m {s:02d}s"


def format_metric_value(value: float | None) -> str:
    """Render a metric value for the report."""
    if value is None:
        return "n/a"
    if math.isinf(value) or math.isnan(value):
        return str(value)
    return f"{value:.4f}"


def describe_image(image_path: Path) -> str:
    """Describe an image's dimensions and mode for the run banner.

    Args:
        image_path: Path to the image

    Returns:
        String like ``"1920x1080 RGB, 6220817 bytes"``, or a note that
        the format could not be read
    """
    size = image_path.stat().st_size
    try:
        with Image.open(image_path) as img:
            return f"{img.width}x{img.height} {img.mode}, {size} bytes"
    except (UnidentifiedImageError, OSError):
        return f"format not readable for inspection, {size} bytes"


@dataclass
class CodecOutcome:
    """What happened to one codec during the run."""

    ordinal: str
    name: str
    encoded_path: Path | None = None
    decoded_path: Path | None = None
    diff_path: Path | None = None
    metric_value: float | None = None
    encode_time: float | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class RunSummary:
    """Outcome of a complete run."""

    outcomes: list[CodecOutcome] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def failed(self) -> list[CodecOutcome]:
        return [o for o in self.outcomes if not o.success]


class MetricsReporter:
    """Streams per-codec results to a text sink."""

    def __init__(self, sink: TextIO | None = None) -> None:
        """Initialize the reporter.

        Args:
            sink: Text stream to write to; defaults to ``sys.stdout``
        """
        self.sink = sink if sink is not None else sys.stdout

    def _line(self, text: str = "") -> None:
        print(text, file=self.sink, flush=True)

    def banner(self, decoder: DecoderSpec, source_image: Path, codec_count: int) -> None:
        """Print the run header naming the decoder used for every codec."""
        self._line("=" * 70)
        self._line(f"Decoder: {decoder.command} ({decoder.convention} arguments)")
        self._line(f"Source: {source_image} ({describe_image(source_image)})")
        self._line(f"Codecs: {codec_count}")
        self._line("=" * 70)

    def codec_header(self, ordinal: str, codec: CodecDefinition) -> None:
        self._line()
        self._line(f"[{ordinal}] {codec.name} ({codec.encoder_command})")

    def version(self, codec: CodecDefinition, result: ToolResult) -> None:
        """Print the output of a version probe, warning if it failed."""
        text = result.output.strip() or "(no output)"
        self._line(f"  version ({codec.encoder_command} {codec.version_switch}):")
        for line in text.splitlines():
            self._line(f"    {line}")
        if not result.success:
            self._line(f"  Warning: version probe exited with status {result.returncode}")

    def tool_output(self, step: str, result: ToolResult) -> None:
        """Echo whatever an encoder or decoder printed."""
        for line in result.output.strip().splitlines():
            self._line(f"    {step}> {line}")

    def encoded(self, path: Path, result: ToolResult) -> None:
        size = path.stat().st_size if path.is_file() else 0
        self._line(f"  encode: {path.name} ({size} bytes, {_format_duration(result.elapsed)})")

    def decoded(self, path: Path, result: ToolResult) -> None:
        self._line(f"  decode: {path.name} ({_format_duration(result.elapsed)})")

    def metric(self, metric: str, value: float | None, reference: Path, candidate: Path) -> None:
        """Print one comparison result line."""
        self._line(
            f"  {metric.upper()}: {format_metric_value(value)} {reference} {candidate}"
        )

    def failure(self, codec: CodecDefinition, error: ExternalToolFailure) -> None:
        """Report a failed step; the codec's remaining steps are skipped."""
        self._line(f"  FAILED: {codec.name}: {error}")
        self._line(f"    command: {' '.join(error.command)}")

    def summary(self, summary: RunSummary) -> None:
        self._line()
        completed = len(summary.outcomes) - len(summary.failed)
        self._line(
            f"Completed {completed}/{len(summary.outcomes)} codecs "
            f"in {_format_duration(summary.elapsed)}"
        )
        for outcome in summary.outcomes:
            if outcome.encode_time is not None:
                self._line(
                    f"  [{outcome.ordinal}] {outcome.name}: "
                    f"encode {_format_duration(outcome.encode_time)}"
                )
        for outcome in summary.failed:
            self._line(f"  Failed: [{outcome.ordinal}] {outcome.name}: {outcome.error}")
