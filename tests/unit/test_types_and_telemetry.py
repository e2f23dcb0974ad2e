from types import MappingProxyType

import pytest

from datalens.core.types import (
    SUPPORTED_FORMATS,
    Delimiter,
    DelimitedFormat,
    JsonFormat,
    ParseResult,
    make_record,
)
from datalens.pipeline.parser import parse_text
from datalens.telemetry import InMemoryReporter, TelemetryContext

pytestmark = pytest.mark.unit


class TestParseResult:
    def test_source_row_count_defaults_to_record_count(self):
        result = ParseResult(
            records=(make_record(("a",), {"a": "1"}),), columns=("a",), kind=JsonFormat()
        )
        assert result.source_row_count == 1
        assert not result.truncated

    def test_records_must_match_columns(self):
        with pytest.raises(ValueError, match="keys must equal columns"):
            ParseResult(
                records=(MappingProxyType({"a": "1"}),),
                columns=("a", "b"),
                kind=JsonFormat(),
            )

    def test_duplicate_columns_are_rejected(self):
        with pytest.raises(ValueError, match="duplicates"):
            ParseResult(records=(), columns=("a", "a"), kind=JsonFormat())

    def test_source_count_cannot_undercount(self):
        record = make_record(("a",), {})
        with pytest.raises(ValueError, match="source_row_count"):
            ParseResult(
                records=(record, record), columns=("a",), kind=JsonFormat(), source_row_count=1
            )

    def test_make_record_fills_missing_cells(self):
        assert dict(make_record(("a", "b"), {"b": "2", "zzz": "ignored"})) == {
            "a": "",
            "b": "2",
        }


def test_format_labels():
    assert SUPPORTED_FORMATS == (
        "JSON",
        "CSV",
        "TSV",
        "Pipe-separated",
        "Semicolon-separated",
    )
    assert DelimitedFormat(Delimiter.TAB).label == "TSV"


def test_delimited_format_requires_delimiter_member():
    with pytest.raises(TypeError, match="delimiter"):
        DelimitedFormat(",")  # type: ignore[arg-type]


class TestTelemetry:
    def test_disabled_by_default(self):
        reporter = InMemoryReporter()
        tele = TelemetryContext(reporter)
        with tele("scope"):
            tele.metric("value", 1)
        assert reporter.timings == {}
        assert reporter.metrics == {}

    def test_parse_scopes_and_row_metric(self, monkeypatch):
        monkeypatch.setenv("DATALENS_TELEMETRY", "1")
        reporter = InMemoryReporter()

        parse_text("a,b\n1,2\n3,4", telemetry=TelemetryContext(reporter))

        assert {"parse.detect", "parse.normalize"} <= set(reporter.timings)
        [(rows, metadata)] = reporter.metrics["parse.rows"]
        assert rows == 2
        assert metadata["kind"] == "CSV"
        assert "parse.rows" in reporter.get_report()

    def test_nested_scopes_build_dotted_paths(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "1")
        reporter = InMemoryReporter()
        tele = TelemetryContext(reporter)

        with tele("outer"), tele("inner"):
            tele.count("hits")

        assert "outer.inner" in reporter.timings
        assert reporter.metrics["outer.inner.hits"][0][0] == 1

    def test_broken_reporter_is_skipped(self, monkeypatch, caplog):
        monkeypatch.setenv("DATALENS_TELEMETRY", "1")

        class Broken:
            def record_timing(self, scope, duration, **metadata):
                raise RuntimeError("sink down")

            def record_metric(self, scope, value, **metadata):
                raise RuntimeError("sink down")

        reporter = InMemoryReporter(max_entries_per_scope=2)
        tele = TelemetryContext(Broken(), reporter)

        for _ in range(3):
            with tele("stage"):
                tele.metric("size", 5)

        assert len(reporter.timings["stage"]) == 2
        assert [v for v, _ in reporter.metrics["stage.size"]] == [5, 5]
        assert "Telemetry reporter Broken failed" in caplog.text
        report = reporter.get_report().splitlines()
        assert report[0] == "datalens telemetry"
        assert "  stage.size: 2 samples, total 10" in report

    def test_blank_scope_name_is_rejected(self, monkeypatch):
        monkeypatch.setenv("DATALENS_TELEMETRY", "1")
        tele = TelemetryContext(InMemoryReporter())
        with pytest.raises(ValueError, match="non-empty"):
            tele("")
