"""Output file naming.

Every file produced for a codec carries its zero-padded ordinal and its
name, so files sort in execution order and never collide within a run.
All functions here are pure.
"""


def ordinal_width(count: int) -> int:
    """Return the number of decimal digits in ``count``.

    Args:
        count: Total number of codec definitions in the run

    Returns:
        Width used to zero-pad ordinals (e.g. 12 codecs -> 2)
    """
    if count < 1:
        msg = f"Codec count must be positive, got {count}"
        raise ValueError(msg)
    return len(str(count))


def format_ordinal(ordinal: int, width: int) -> str:
    """Render an ordinal zero-padded to ``width`` digits."""
    return f"{ordinal:0{width}d}"


def source_filename(input_type: str) -> str:
    """Filename of the converted source variant for an input type."""
    return f"source.{input_type}"


def output_filename(ordinal: int, width: int, name: str, suffix: str) -> str:
    """Build the filename of a codec's encoded or decoded output.

    Args:
        ordinal: 1-based position of the codec in execution order
        width: Ordinal width for the run
        name: Codec name
        suffix: File extension without the dot

    Returns:
        Filename like ``"01-ref.j2k"``
    """
    return f"{format_ordinal(ordinal, width)}-{name}.{suffix}"


def diff_filename(
    ordinal: int,
    width: int,
    name: str,
    type_a: str,
    type_b: str,
    suffix: str,
) -> str:
    """Build the filename of a codec's diff image.

    ``type_a`` and ``type_b`` identify the two compared operands, usually
    their file names, so the diff describes what it contrasts.

    Returns:
        Filename like ``"01-diff--ref--source.ppm__01-ref.tif--.tif"``
    """
    return f"{format_ordinal(ordinal, width)}-diff--{name}--{type_a}__{type_b}--.{suffix}"
