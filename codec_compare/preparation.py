"""Source variant preparation.

Each codec declares the raster format its encoder reads. The reference
image is converted once per distinct format, so codecs sharing a format
also share the converted file.
"""

from pathlib import Path

from codec_compare.config import CodecConfig
from codec_compare.errors import SourcePreparationError
from codec_compare.naming import source_filename
from codec_compare.tools import convert_command, run_tool

SOURCE_BIT_DEPTH = 12


class SourcePreparer:
    """Converts the reference image into every format the codecs need."""

    def __init__(self, work_dir: Path, convert: str = "convert") -> None:
        """Initialize the source preparer.

        Args:
            work_dir: Directory where ``source.<type>`` files are written
            convert: Conversion tool (ImageMagick ``convert`` compatible)
        """
        self.work_dir = work_dir
        self.convert = convert

    def prepare(self, source_image: Path, config: CodecConfig) -> dict[str, Path]:
        """Materialize one source variant per distinct required input type.

        Every variant is written at 12 bits per channel and never resized.

        Args:
            source_image: Caller-supplied reference image
            config: Codec configuration

        Returns:
            Mapping from input type to the converted file

        Raises:
            SourcePreparationError: If a conversion fails or leaves no file
        """
        variants: dict[str, Path] = {}
        for input_type in config.input_types():
            output_path = self.work_dir / source_filename(input_type)
            cmd = convert_command(self.convert, source_image, output_path, SOURCE_BIT_DEPTH)
            result = run_tool(cmd)
            if not result.success:
                msg = (
                    f"Converting {source_image} to {input_type} failed "
                    f"(exit status {result.returncode}): {result.output.strip()}"
                )
                raise SourcePreparationError(msg)
            if not output_path.is_file():
                msg = f"Conversion to {input_type} did not produce {output_path}"
                raise SourcePreparationError(msg)
            print(f"Prepared {output_path.name} ({SOURCE_BIT_DEPTH} bits per channel)")
            variants[input_type] = output_path
        return variants
