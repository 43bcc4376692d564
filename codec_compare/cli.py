"""Command-line entry point.

Usage:
    # Compare every codec in a config against one reference image
    codec-compare -s reference.ppm -c config/codecs/jpeg2000.json

    # Use OpenJPEG's decoder and report SSIM instead of PSNR
    codec-compare -s reference.ppm -c codecs.json -d opj_decompress -m ssim

    # Encode and decode only
    codec-compare -s reference.ppm -c codecs.json --no-quality-comparison

    # Preview the files a run would produce
    codec-compare -s reference.ppm -c codecs.json --dry-run
"""

import argparse
import sys
from pathlib import Path

from codec_compare.config import CodecConfig
from codec_compare.errors import ConfigurationError, SourcePreparationError
from codec_compare.naming import diff_filename, ordinal_width, output_filename, source_filename
from codec_compare.pipeline import PipelineRunner, RunSettings
from codec_compare.preparation import SourcePreparer
from codec_compare.tools import COMPARE_ENV_VAR, CONVERT_ENV_VAR, DecoderSpec, resolve_tool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="codec-compare",
        description="Encode, decode and compare one reference image with several codecs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s -s reference.ppm -c config/codecs/jpeg2000.json
  %(prog)s -s reference.ppm -c codecs.json -d opj_decompress -m ssim
  %(prog)s -s reference.ppm -c codecs.json --no-quality-comparison
  %(prog)s -s reference.ppm -c codecs.json --dry-run
""",
    )
    parser.add_argument("-s", "--source-image", type=Path, help="Reference image (required)")
    parser.add_argument("-c", "--config", type=Path, help="Codec config JSON (required)")
    parser.add_argument(
        "-m",
        "--metric",
        default="psnr",
        help="Comparison metric passed to the compare tool (default: psnr)",
    )
    parser.add_argument(
        "--no-quality-comparison",
        dest="quality_comparison",
        action="store_false",
        help="Skip the comparison step for every codec",
    )
    parser.add_argument(
        "-d",
        "--jpeg2000-decoder",
        dest="decoder",
        default="j2k_to_image",
        help="Decoder shared by every codec (default: j2k_to_image)",
    )
    parser.add_argument(
        "--decoder-convention",
        choices=["flags", "positional"],
        help="Decoder arguments: '-i in -o out' (flags) or 'in out' (positional). "
        "Guessed from the decoder name when omitted.",
    )
    parser.add_argument(
        "--compare",
        help=f"Comparison tool (default: ${COMPARE_ENV_VAR} or 'compare')",
    )
    parser.add_argument(
        "--convert",
        help=f"Conversion tool for source variants (default: ${CONVERT_ENV_VAR} or 'convert')",
    )
    parser.add_argument(
        "--decode-suffix", default="tif", help="Extension of decoded images (default: tif)"
    )
    parser.add_argument(
        "--diff-suffix", default="tif", help="Extension of diff images (default: tif)"
    )
    parser.add_argument(
        "--work-dir",
        type=Path,
        default=Path("."),
        help="Directory for all produced files (default: current directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned files without running any tool",
    )
    return parser


def dry_run(config: CodecConfig, settings: RunSettings) -> None:
    """Preview the files a run would produce."""
    print("=" * 70)
    print(f"DRY RUN: {len(config)} codecs, decoder {settings.decoder.command}")
    print("=" * 70)
    print()
    for input_type in config.input_types():
        print(f"  {source_filename(input_type)}")

    width = ordinal_width(len(config))
    for ordinal, codec in enumerate(config, start=1):
        source = source_filename(codec.required_input_type)
        decoded = output_filename(ordinal, width, codec.name, settings.decode_suffix)
        print()
        print(f"  {codec.name}: {codec.encoder_command} {codec.parameters}".rstrip())
        print(f"    {output_filename(ordinal, width, codec.name, codec.output_suffix)}")
        print(f"    {decoded}")
        if settings.quality_comparison:
            print(
                f"    {diff_filename(ordinal, width, codec.name, source, decoded, settings.diff_suffix)}"
            )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.source_image is None or args.config is None:
        parser.print_usage()
        print("\nError: both --source-image and --config are required")
        return 1

    try:
        config = CodecConfig.from_file(args.config)
        if not args.source_image.is_file():
            msg = f"Source image not found: {args.source_image}"
            raise ConfigurationError(msg)
        if not args.work_dir.is_dir():
            msg = f"Working directory not found: {args.work_dir}"
            raise ConfigurationError(msg)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    settings = RunSettings(
        decoder=DecoderSpec.from_cli(args.decoder, args.decoder_convention),
        compare=args.compare or resolve_tool(COMPARE_ENV_VAR, "compare"),
        metric=args.metric,
        quality_comparison=args.quality_comparison,
        decode_suffix=args.decode_suffix.lstrip("."),
        diff_suffix=args.diff_suffix.lstrip("."),
        work_dir=args.work_dir,
    )

    if args.dry_run:
        dry_run(config, settings)
        return 0

    preparer = SourcePreparer(
        args.work_dir, convert=args.convert or resolve_tool(CONVERT_ENV_VAR, "convert")
    )
    try:
        variants = preparer.prepare(args.source_image, config)
    except SourcePreparationError as e:
        print(f"Error: {e}")
        return 1

    runner = PipelineRunner(config, settings)
    summary = runner.run(args.source_image, variants)

    return 2 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
