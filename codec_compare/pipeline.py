"""Codec comparison pipeline.

Runs every codec in declaration order, one codec fully finished before
the next begins:

1. version probe (only when the codec sets ``version_switch``)
2. encode the codec's source variant, timed
3. decode the bitstream with the decoder shared by the whole run
4. compare source variant and decoded image (only when enabled)
5. advance the ordinal

Every external invocation is checked. A failing encode, decode or compare
aborts the remaining steps of that codec only; the failure is reported
and the next codec starts with the next ordinal.
"""

import time
from dataclasses import dataclass
from pathlib import Path

from codec_compare.config import CodecConfig, CodecDefinition
from codec_compare.errors import ExternalToolFailure
from codec_compare.naming import diff_filename, format_ordinal, ordinal_width, output_filename
from codec_compare.report import CodecOutcome, MetricsReporter, RunSummary
from codec_compare.tools import (
    DecoderSpec,
    ToolResult,
    compare_command,
    encode_command,
    parse_metric_value,
    run_tool,
)

# compare exits 1 when the images differ, 2 on error
COMPARE_OK_CODES = (0, 1)


@dataclass(frozen=True)
class RunSettings:
    """Run-level settings shared by every codec."""

    decoder: DecoderSpec
    compare: str = "compare"
    metric: str = "psnr"
    quality_comparison: bool = True
    decode_suffix: str = "tif"
    diff_suffix: str = "tif"
    work_dir: Path = Path(".")


@dataclass
class TestRunState:
    """Mutable state of one run."""

    __test__ = False

    source_variants: dict[str, Path]
    ordinal_width: int
    ordinal_counter: int = 1

    @property
    def ordinal(self) -> str:
        """Current ordinal, zero-padded to the run's width."""
        return format_ordinal(self.ordinal_counter, self.ordinal_width)

    def advance(self) -> None:
        self.ordinal_counter += 1


def _require_output(path: Path, result: ToolResult, what: str) -> None:
    """Raise if a tool exited cleanly but left no output file."""
    if not path.is_file():
        msg = f"{what} produced no output file {path.name}"
        raise ExternalToolFailure(msg, result.command, result.returncode, result.output)


class PipelineRunner:
    """Drives encode, decode and compare for every codec in a config."""

    def __init__(
        self,
        config: CodecConfig,
        settings: RunSettings,
        reporter: MetricsReporter | None = None,
    ) -> None:
        """Initialize the pipeline runner.

        Args:
            config: Codec configuration, in execution order
            settings: Run-level settings
            reporter: Report sink; defaults to a stdout reporter
        """
        self.config = config
        self.settings = settings
        self.reporter = reporter if reporter is not None else MetricsReporter()

    def new_state(self, source_variants: dict[str, Path]) -> TestRunState:
        """Create the run state for a set of prepared source variants."""
        missing = sorted(
            {c.required_input_type for c in self.config} - set(source_variants)
        )
        if missing:
            msg = f"No source variant prepared for: {', '.join(missing)}"
            raise ValueError(msg)
        return TestRunState(
            source_variants=dict(source_variants),
            ordinal_width=ordinal_width(len(self.config)),
        )

    def run(self, source_image: Path, source_variants: dict[str, Path]) -> RunSummary:
        """Run every codec in declaration order.

        Args:
            source_image: The caller-supplied reference image (for the banner)
            source_variants: Mapping from input type to converted source file

        Returns:
            RunSummary with one outcome per codec
        """
        state = self.new_state(source_variants)
        summary = RunSummary()
        t0 = time.monotonic()

        self.reporter.banner(self.settings.decoder, source_image, len(self.config))

        for codec in self.config:
            outcome = CodecOutcome(ordinal=state.ordinal, name=codec.name)
            self.reporter.codec_header(state.ordinal, codec)
            try:
                self._run_codec(codec, state, outcome)
            except ExternalToolFailure as e:
                outcome.error = str(e)
                self.reporter.failure(codec, e)
            summary.outcomes.append(outcome)
            state.advance()

        summary.elapsed = time.monotonic() - t0
        self.reporter.summary(summary)
        return summary

    def _run_codec(
        self, codec: CodecDefinition, state: TestRunState, outcome: CodecOutcome
    ) -> None:
        settings = self.settings
        work_dir = settings.work_dir

        if codec.version_switch:
            probe = run_tool([codec.encoder_command, codec.version_switch])
            self.reporter.version(codec, probe)

        source = state.source_variants[codec.required_input_type]
        encoded = work_dir / output_filename(
            state.ordinal_counter, state.ordinal_width, codec.name, codec.output_suffix
        )
        result = run_tool(
            encode_command(codec.encoder_command, source, codec.parameters, encoded)
        )
        self.reporter.tool_output("encode", result)
        result.check(f"Encoding with {codec.encoder_command}")
        _require_output(encoded, result, "Encoding")
        outcome.encoded_path = encoded
        outcome.encode_time = result.elapsed
        self.reporter.encoded(encoded, result)

        decoded = work_dir / output_filename(
            state.ordinal_counter, state.ordinal_width, codec.name, settings.decode_suffix
        )
        result = run_tool(settings.decoder.command_line(encoded, decoded))
        self.reporter.tool_output("decode", result)
        result.check(f"Decoding with {settings.decoder.command}")
        _require_output(decoded, result, "Decoding")
        outcome.decoded_path = decoded
        self.reporter.decoded(decoded, result)

        if not settings.quality_comparison:
            return

        diff = work_dir / diff_filename(
            state.ordinal_counter,
            state.ordinal_width,
            codec.name,
            source.name,
            decoded.name,
            settings.diff_suffix,
        )
        result = run_tool(
            compare_command(settings.compare, settings.metric, source, decoded, diff),
            ok_codes=COMPARE_OK_CODES,
        )
        result.check(f"Comparison with {settings.compare}")
        outcome.diff_path = diff
        outcome.metric_value = parse_metric_value(result.output)
        self.reporter.metric(settings.metric, outcome.metric_value, source, decoded)
