import pytest

from datalens.core.exceptions import DetectionError, ParseErrorKind
from datalens.core.types import Delimiter, DelimitedFormat, Failure, JsonFormat, Success
from datalens.pipeline.detector import (
    UNRECOGNIZED_MESSAGE,
    DelimitedStrategy,
    JsonStrategy,
    detect,
    sniff_delimiter,
)
from datalens.pipeline.parser import parse_text

pytestmark = pytest.mark.unit


def _kind(text):
    result = detect(text)
    assert isinstance(result, Success), result
    return result.value


def test_simple_csv_is_comma_delimited():
    assert _kind("name,age\nJohn,30\nJane,25") == DelimitedFormat(Delimiter.COMMA)


@pytest.mark.parametrize(
    ("text", "delimiter"),
    [
        ("a\tb\n1\t2", Delimiter.TAB),
        ("a|b|c\n1|2|3", Delimiter.PIPE),
        ("a;b\n1;2", Delimiter.SEMICOLON),
    ],
)
def test_each_candidate_delimiter_is_recognized(text, delimiter):
    assert _kind(text) == DelimitedFormat(delimiter)


def test_json_wins_over_delimited():
    assert _kind('[{"a": 1, "b": 2}]') == JsonFormat()


def test_json_scalar_is_still_json():
    # Detection accepts any JSON value; rejecting scalars is the normalizer's job
    assert _kind("42") == JsonFormat()
    assert _kind('"hello, world"') == JsonFormat()


def test_surrounding_whitespace_is_ignored():
    assert _kind('\n\n  {"a": 1}  \n') == JsonFormat()
    assert _kind("\n  x,y\n1,2\n\n") == DelimitedFormat(Delimiter.COMMA)


def test_unrecognized_text_fails_with_user_message():
    result = detect("not valid anything")
    assert isinstance(result, Failure)
    assert isinstance(result.error, DetectionError)
    assert result.error.kind is ParseErrorKind.UNRECOGNIZED
    assert result.error.message == UNRECOGNIZED_MESSAGE


@pytest.mark.parametrize("text", ["", "   \n\t ", "a,b", "a,b\n\n   \n"])
def test_blank_or_single_line_input_is_unrecognized(text):
    assert isinstance(detect(text), Failure)


def test_header_with_one_named_column_is_rejected():
    # ",a" has a comma but only one non-empty name
    assert isinstance(detect(",a\n1,2"), Failure)


def test_malformed_json_falls_through_to_unrecognized():
    assert isinstance(detect('{"a": 1,'), Failure)


def test_nan_literal_is_not_json():
    assert JsonStrategy().detect("NaN") is None


def test_crlf_line_endings_are_tolerated():
    assert _kind("a,b\r\n1,2\r\n") == DelimitedFormat(Delimiter.COMMA)


class TestSniffDelimiter:
    def test_highest_count_wins(self):
        assert sniff_delimiter("a;b;c,d") is Delimiter.SEMICOLON

    def test_tie_goes_to_earlier_candidate(self):
        assert sniff_delimiter("a,b\tc") is Delimiter.COMMA
        assert sniff_delimiter("a|b;c") is Delimiter.PIPE

    def test_no_candidate_returns_none(self):
        assert sniff_delimiter("just words") is None

    def test_only_header_line_is_counted(self):
        # Body is full of semicolons but the header decides
        assert _kind("a,b\n1;2;3;4,5") == DelimitedFormat(Delimiter.COMMA)


def test_custom_strategy_order_is_respected():
    result = detect('{"a": 1}', strategies=(DelimitedStrategy(),))
    assert isinstance(result, Failure)


def test_detection_is_deterministic():
    text = "x|y\n1|2"
    assert detect(text) == detect(text)


def test_huge_integer_literal_is_still_json():
    # Well past CPython's default int/str conversion limit
    digits = "9" * 5000
    assert _kind(f'{{"id": {digits}}}') == JsonFormat()

    outcome = parse_text(f'[{{"id": {digits}, "name": "big"}}]')
    assert isinstance(outcome, Success)
    assert outcome.value.records[0]["id"] == digits
