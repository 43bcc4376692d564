"""Tests for output file naming."""

import pytest

from codec_compare.naming import (
    diff_filename,
    format_ordinal,
    ordinal_width,
    output_filename,
    source_filename,
)


class TestOrdinalWidth:
    """Tests for ordinal width calculation."""

    @pytest.mark.parametrize(
        ("count", "width"),
        [(1, 1), (2, 1), (9, 1), (10, 2), (12, 2), (99, 2), (100, 3)],
    )
    def test_digits_of_count(self, count: int, width: int) -> None:
        assert ordinal_width(count) == width

    def test_zero_raises(self) -> None:
        with pytest.raises(ValueError, match="must be positive"):
            ordinal_width(0)


class TestFormatOrdinal:
    """Tests for zero-padded ordinals."""

    def test_padded(self) -> None:
        assert format_ordinal(1, 2) == "01"

    def test_unpadded_width_one(self) -> None:
        assert format_ordinal(7, 1) == "7"

    def test_full_width(self) -> None:
        assert format_ordinal(12, 2) == "12"

    def test_lexicographic_order_matches_execution_order(self) -> None:
        """Padded ordinals sort the same as the integers they encode."""
        names = [format_ordinal(i, ordinal_width(12)) for i in range(1, 13)]
        assert sorted(names) == names


class TestFilenames:
    """Tests for encoded, decoded, diff and source filenames."""

    def test_output_filename(self) -> None:
        assert output_filename(1, 2, "ref", "j2k") == "01-ref.j2k"

    def test_decoded_filename(self) -> None:
        assert output_filename(1, 2, "ref", "tif") == "01-ref.tif"

    def test_diff_filename(self) -> None:
        name = diff_filename(1, 2, "ref", "source.ppm", "01-ref.tif", "tif")
        assert name == "01-diff--ref--source.ppm__01-ref.tif--.tif"

    def test_source_filename(self) -> None:
        assert source_filename("ppm") == "source.ppm"

    def test_deterministic(self) -> None:
        """Same inputs always produce the same name."""
        first = output_filename(3, 1, "kakadu", "j2c")
        second = output_filename(3, 1, "kakadu", "j2c")
        assert first == second == "3-kakadu.j2c"

    def test_distinct_names_distinct_files(self) -> None:
        """Different codec names never collide at the same ordinal."""
        assert output_filename(1, 1, "a", "j2k") != output_filename(1, 1, "b", "j2k")

    def test_distinct_ordinals_distinct_files(self) -> None:
        files = {output_filename(i, 2, "ref", "j2k") for i in range(1, 13)}
        assert len(files) == 12
