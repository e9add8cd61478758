"""Tests for the result model and report helpers."""

import pytest

from chunkparse.core.input import Input
from chunkparse.core.model import (
    UNKNOWN,
    BufferLimitError,
    Done,
    Error,
    ErrorKind,
    Failed,
    Incomplete,
    Needed,
    ParseError,
    Report,
    fail,
)
from chunkparse.core.util import report_asdict


class TestNeeded:
    """Test the size hint carried by Incomplete."""

    def test_unknown_and_size(self):
        assert Needed().is_unknown
        assert Needed() == UNKNOWN
        assert Needed(3).size == 3
        assert not Needed(3).is_unknown

    def test_size_must_be_positive(self):
        with pytest.raises(ValueError):
            Needed(0)
        with pytest.raises(ValueError):
            Needed(-2)

    def test_of(self):
        assert Needed.of(None) is UNKNOWN
        assert Needed.of(4) == Needed(4)

    def test_sizes_add_unknown_wins(self):
        assert Needed(2) + Needed(3) == Needed(5)
        assert Needed(2) + UNKNOWN == UNKNOWN
        assert UNKNOWN + Needed(2) == UNKNOWN

    def test_repr(self):
        assert repr(Needed(1)) == "Needed(Size(1))"
        assert repr(UNKNOWN) == "Needed(Unknown)"


class TestError:
    """Test error values and their rendering."""

    def test_fail_uses_input_position(self):
        inp = Input.of(b"abcdef", base=100).advance(2)
        res = fail(ErrorKind.TAG_MISMATCH, inp, message="expected 'x'")
        assert isinstance(res, Failed)
        assert res.error.kind is ErrorKind.TAG_MISMATCH
        assert res.error.position == 102

    def test_chain_follows_first_cause(self):
        inner = Error(ErrorKind.TAG_MISMATCH, 5)
        other = Error(ErrorKind.PREDICATE_FAILED, 5)
        alt_err = Error(ErrorKind.ALT, 5, cause=(inner, other))
        outer = Error(ErrorKind.REPETITION_EXHAUSTED, 0, cause=alt_err)
        assert outer.chain() == [
            (ErrorKind.REPETITION_EXHAUSTED, 0),
            (ErrorKind.ALT, 5),
            (ErrorKind.TAG_MISMATCH, 5),
        ]

    def test_describe(self):
        err = Error(ErrorKind.MAP_CONVERSION_FAILED, 3, cause=ValueError("bad digit"), message="int")
        text = err.describe()
        assert text.startswith("MapConversionFailed at offset 3: int")
        assert "ValueError: bad digit" in text

    def test_describe_alternatives(self):
        err = Error(ErrorKind.ALT, 0, cause=(Error(ErrorKind.TAG_MISMATCH, 0), Error(ErrorKind.TAG_MISMATCH, 0)))
        assert "(2 alternatives failed)" in err.describe()

    def test_kinds_are_strings(self):
        assert ErrorKind.TAG_MISMATCH == "TagMismatch"
        assert ErrorKind("Custom") is ErrorKind.CUSTOM


class TestResults:
    """Test Done / Failed / Incomplete helpers."""

    def test_done_rest_and_consumed(self):
        inp = Input.of(b"abcdef")
        done = Done(inp.advance(3), b"abc")
        assert done.rest == b"def"
        assert done.consumed(inp) == 3

    def test_failed_unwrap_raises(self):
        res = Failed(Error(ErrorKind.CUSTOM, 7, message="nope"))
        with pytest.raises(ParseError) as exc_info:
            res.unwrap()
        assert exc_info.value.error is res.error
        assert "offset 7" in str(exc_info.value)

    def test_results_are_values(self):
        assert Incomplete(Needed(1)) == Incomplete(Needed(1))
        assert Incomplete(Needed(1)) != Incomplete(UNKNOWN)

    def test_buffer_limit_is_parse_error(self):
        assert issubclass(BufferLimitError, ParseError)


class TestReportAsdict:
    """Test the JSON shape of reports."""

    def test_success_filters_fields(self):
        res = Report(success=True, data={"frames": 3, "peek": None, "source": "x"}, error=None,
                     bytes_fetched=10, requests_made=2)
        payload = report_asdict(res, fields=["frames"])
        assert payload == {"frames": 3, "success": True, "bytes_fetched": 10, "requests_made": 2}

    def test_success_skips_none(self):
        res = Report(success=True, data={"frames": 1, "peek": None}, error=None, bytes_fetched=1)
        assert "peek" not in report_asdict(res)

    def test_failure(self):
        res = Report(success=False, data=None, error="boom", bytes_fetched=0)
        assert report_asdict(res) == {"success": False, "error": "boom", "bytes_fetched": 0, "requests_made": 0}

    def test_failure_keeps_partial_counts(self):
        res = Report(success=False, data={"frames": 2}, error="boom", bytes_fetched=5)
        payload = report_asdict(res)
        assert payload["frames"] == 2
        assert payload["success"] is False
