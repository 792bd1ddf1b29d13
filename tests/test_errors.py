"""
Tests for diagnostics and error formatting.
"""

from shaderxform import (
    Diagnostic, DiagnosticCollector, ErrorSeverity, SourceLocation, SourceSpan,
    InvalidBoundsError, TransformDivergenceError, TransformError, unroll_loops,
)
from shaderxform.errors import error_divergence, warning_loop_skipped


def span(line, start_col, end_col):
    return SourceSpan(SourceLocation(line, start_col, 0), SourceLocation(line, end_col, 0))


class TestDiagnostic:
    """Test Diagnostic formatting."""

    def test_format_with_caret(self):
        diag = Diagnostic(
            code="E101",
            message="invalid loop bound",
            severity=ErrorSeverity.ERROR,
            span=span(3, 5, 8),
            source_line="for (var i: u32 = 0; ...",
            hints=["use a decimal literal"],
        )
        lines = diag.format().splitlines()
        assert lines[0] == "3:5: error[E101]: invalid loop bound"
        assert lines[2] == "  3 | for (var i: u32 = 0; ..."
        assert lines[3] == "    |     ^^^"
        assert lines[4] == "    = hint: use a decimal literal"

    def test_format_without_span(self):
        diag = error_divergence("unroll", 4).diagnostic
        assert diag.format().startswith("error[E201]: unroll did not converge after 4")

    def test_to_json(self):
        diag = warning_loop_skipped("i", 0, 100, 32, span(1, 1, 10))
        data = diag.to_json()
        assert data["code"] == "W001"
        assert data["severity"] == "warning"
        assert data["range"]["start"]["line"] == 1
        assert data["data"]["decision"] == "skipped"


class TestErrors:
    """Test the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidBoundsError, TransformError)
        assert issubclass(TransformDivergenceError, TransformError)

    def test_error_str_is_formatted_diagnostic(self):
        try:
            unroll_loops("for (var i: u32 = ²; i < 2; i++) { a; }")
        except InvalidBoundsError as e:
            text = str(e)
            assert text.startswith("1:19: error[E101]: invalid loop bound '²'")
            assert "^" in text
        else:
            raise AssertionError("expected InvalidBoundsError")

    def test_source_line_of_later_line(self):
        """Diagnostics quote the line the offending token sits on."""
        code = "fn f() {\n  for (var i: u32 = 0; i < ³; i++) { a; }\n}"
        try:
            unroll_loops(code)
        except InvalidBoundsError as e:
            assert e.diagnostic.span.start.line == 2
            assert e.diagnostic.source_line == "  for (var i: u32 = 0; i < ³; i++) { a; }"
        else:
            raise AssertionError("expected InvalidBoundsError")

    def test_report_source_line(self):
        diagnostics = DiagnosticCollector()
        unroll_loops("x;\nfor (var i: u32 = 0; i < 9; i++) { a(i); }", threshold=2,
                     diagnostics=diagnostics)
        (report,) = diagnostics.diagnostics
        assert report.source_line == "for (var i: u32 = 0; i < 9; i++) { a(i); }"


class TestDiagnosticCollector:
    """Test DiagnosticCollector."""

    def test_counts(self):
        collector = DiagnosticCollector()
        collector.add(warning_loop_skipped("i", 0, 100, 32, span(1, 1, 2)))
        collector.add_error(error_divergence("unroll", 1))
        assert len(collector) == 2
        assert collector.warning_count == 1
        assert collector.error_count == 1
        assert collector.has_errors and collector.has_warnings
        assert [d.code for d in collector.by_code("W001")] == ["W001"]
        assert collector.format_all().endswith("1 error(s), 1 warning(s)")
        assert collector.to_json()["warning_count"] == 1
