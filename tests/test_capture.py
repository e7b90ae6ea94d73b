"""Tests for capture module — hex line cleaning, timestamps, frame reading."""

import io

import pytest

from adsb_store.capture import FrameReader, RawFrame, _clean_hex_line, _split_timestamp

IDENT = "8D4840D6202CC371C32CE0576098"
IDENT2 = "8D406B902015A678D4D220AA4BDA"


@pytest.fixture
def fixed_clock(monkeypatch):
    """Freeze capture's clock; returns a dict whose "now" can be advanced."""
    clock = {"now": 1_000_000}
    monkeypatch.setattr("adsb_store.capture.now_ms", lambda: clock["now"])
    return clock


class TestCleanHexLine:
    """Hex line cleaning and validation."""

    def test_plain_hex_28_chars(self):
        assert _clean_hex_line(IDENT) == IDENT

    def test_plain_hex_14_chars(self):
        assert _clean_hex_line("02E197CE851A31") == "02E197CE851A31"

    def test_dump1090_format(self):
        assert _clean_hex_line(f"*{IDENT};") == IDENT

    def test_lowercase_hex(self):
        assert _clean_hex_line(IDENT.lower()) == IDENT

    def test_whitespace_stripped(self):
        assert _clean_hex_line(f"  {IDENT}  \n") == IDENT

    def test_comment_lines_skipped(self):
        assert _clean_hex_line("# This is a comment") is None

    def test_empty_lines_skipped(self):
        assert _clean_hex_line("") is None
        assert _clean_hex_line("   ") is None

    def test_invalid_hex_rejected(self):
        assert _clean_hex_line("not_hex_at_all") is None

    def test_wrong_length_rejected(self):
        assert _clean_hex_line("8D4840D6202C") is None  # Too short
        assert _clean_hex_line("8D4840D6202CC371C32CE057609800") is None  # Too long


class TestSplitTimestamp:
    def test_prefixed(self):
        assert _split_timestamp(f"@1700000000123 {IDENT}\n") == (1700000000123, IDENT)

    def test_prefixed_dump1090(self):
        assert _split_timestamp(f"@42 *{IDENT};") == (42, f"*{IDENT};")

    def test_no_prefix(self):
        assert _split_timestamp(IDENT) == (None, IDENT)

    def test_malformed_prefix_left_alone(self):
        ts, rest = _split_timestamp(f"@abc {IDENT}")
        assert ts is None
        assert _clean_hex_line(rest) is None


class TestFrameReader:
    """Read frames from files, streams and iterables."""

    def test_read_from_iterable(self):
        frames = FrameReader([IDENT, IDENT2]).read_all()
        assert [f.hex_str for f in frames] == [IDENT, IDENT2]

    def test_read_from_file(self, tmp_path):
        frame_file = tmp_path / "frames.txt"
        frame_file.write_text(f"{IDENT}\n{IDENT2}\n")
        frames = FrameReader(frame_file).read_all()
        assert len(frames) == 2
        assert frames[0].source == str(frame_file)

    def test_read_from_stream(self):
        frames = FrameReader(io.StringIO(f"{IDENT}\n{IDENT2}\n")).read_all()
        assert len(frames) == 2

    def test_read_from_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(f"*{IDENT};\n"))
        frames = FrameReader("-").read_all()
        assert [f.hex_str for f in frames] == [IDENT]
        assert frames[0].source == "stdin"

    def test_skips_comments_and_blanks(self):
        lines = ["# Header comment", "", IDENT, "   ", "# Another comment", IDENT2]
        assert len(FrameReader(lines).read_all()) == 2

    def test_mixed_valid_and_invalid(self):
        lines = [
            IDENT,             # Valid 112-bit
            "garbage_data",    # Invalid
            "02E197CE851A31",  # Valid 56-bit
            "short",           # Invalid
        ]
        assert len(FrameReader(lines).read_all()) == 2

    def test_frames_have_source_label(self):
        frames = FrameReader([IDENT], label="test-input").read_all()
        assert frames[0].source == "test-input"

    def test_file_not_found(self, tmp_path):
        reader = FrameReader(tmp_path / "nonexistent.txt")
        with pytest.raises(FileNotFoundError):
            reader.read_all()

    def test_unknown_timestamp_mode(self):
        with pytest.raises(ValueError):
            FrameReader([IDENT], timestamps="gps")

    def test_iterator_protocol(self):
        count = 0
        for frame in FrameReader([IDENT, IDENT2]):
            assert isinstance(frame, RawFrame)
            count += 1
        assert count == 2


class TestTimestamps:
    """Reception times in milliseconds."""

    def test_explicit_prefix_wins(self, fixed_clock):
        frames = FrameReader([f"@5000 {IDENT}", f"@5250 {IDENT2}"]).read_all()
        assert [f.timestamp for f in frames] == [5000, 5250]

    def test_synthetic_spacing(self, fixed_clock):
        """One millisecond per input line, counting skipped lines."""
        frames = FrameReader([IDENT, "# comment", IDENT2]).read_all()
        assert [f.timestamp for f in frames] == [1_000_000, 1_000_002]

    def test_live_reads_clock_per_line(self, fixed_clock):
        def lines():
            yield IDENT
            fixed_clock["now"] += 750
            yield IDENT2

        frames = FrameReader(lines(), timestamps="live").read_all()
        assert [f.timestamp for f in frames] == [1_000_000, 1_000_750]

    def test_mixed_explicit_and_synthetic(self, fixed_clock):
        frames = FrameReader([f"@42 {IDENT}", IDENT2]).read_all()
        assert [f.timestamp for f in frames] == [42, 1_000_001]
