"""
Tests for the loop unrolling pass.
"""

import textwrap

import pytest
from shaderxform import (
    unroll_loops, LoopUnroller, DiagnosticCollector, ErrorSeverity,
    InvalidBoundsError, TransformDivergenceError,
)


def loop(start, end, body="x[i] = i; ", var="i"):
    return f"for (var {var}: u32 = {start}; {var} < {end}; {var}++) {{ {body}}}"


class TestUnrolling:
    """Test loops within the threshold."""

    def test_basic_unroll(self):
        """The canonical three-iteration example."""
        code = "for (var i: u32 = 0; i < 3; i++) { x[i] = i; }"
        assert unroll_loops(code, 32) == "x[0] = 0; x[1] = 1; x[2] = 2; "

    @pytest.mark.parametrize("start,end", [(0, 1), (0, 5), (3, 7), (10, 42), (5, 37)])
    def test_copies_match_range(self, start, end):
        """Unrolling yields one substituted body per value in [start, end)."""
        expected = "".join(f"y[{v}] += {v}; " for v in range(start, end))
        assert unroll_loops(loop(start, end, "y[i] += i; "), 32) == expected

    def test_empty_range(self):
        """start == end contributes nothing."""
        assert unroll_loops("a; " + loop(4, 4) + " b;") == "a;  b;"

    def test_reversed_range(self):
        """start > end also contributes nothing."""
        assert unroll_loops(loop(9, 2)) == ""

    def test_empty_body(self):
        assert unroll_loops("for (var i: u32 = 0; i < 3; i++) { }") == ""

    def test_threshold_is_inclusive(self):
        """A loop with exactly threshold iterations is unrolled."""
        assert unroll_loops(loop(0, 4), threshold=4) == "x[0] = 0; x[1] = 1; x[2] = 2; x[3] = 3; "

    def test_surrounding_text_preserved(self):
        source = textwrap.dedent("""\
            fn main() {
              var acc = 0.0;
              for (var k: u32 = 0; k < 2; k++) {
                acc += w[k];
              }
              return acc;
            }
            """)
        # The indentation before '}' follows the last copy.
        expected = ("fn main() {\n"
                    "  var acc = 0.0;\n"
                    "  acc += w[0];\n"
                    "  acc += w[1];\n"
                    "  \n"
                    "  return acc;\n"
                    "}\n")
        assert unroll_loops(source) == expected

    def test_multiple_loops(self):
        source = loop(0, 2, "a(i); ") + "\n" + loop(0, 2, "b(j); ", var="j")
        assert unroll_loops(source) == "a(0); a(1); \nb(0); b(1); "

    def test_loops_inside_function_bodies(self):
        """Loops nested in non-loop blocks are found."""
        source = "fn f() { if (c) { " + loop(0, 2, "a(i); ") + " } }"
        assert unroll_loops(source) == "fn f() { if (c) { a(0); a(1);  } }"


class TestIdentifierBoundaries:
    """Substitution replaces whole identifiers only."""

    def test_longer_identifier_untouched(self):
        code = "for (var i: u32 = 0; i < 2; i++) { idx[i] = i + pi; }"
        assert unroll_loops(code) == "idx[0] = 0 + pi; idx[1] = 1 + pi; "

    def test_member_name_untouched(self):
        code = "for (var x: u32 = 0; x < 2; x++) { out[x] = v.x; }"
        assert unroll_loops(code) == "out[0] = v.x; out[1] = v.x; "

    def test_comment_untouched(self):
        code = "for (var i: u32 = 0; i < 2; i++) { a[i] = 1; /* i */ }"
        assert unroll_loops(code) == "a[0] = 1; /* i */ a[1] = 1; /* i */ "

    def test_multi_character_variable(self):
        code = "for (var row: u32 = 1; row < 3; row++) { m[row] = rows[row]; }"
        assert unroll_loops(code) == "m[1] = rows[1]; m[2] = rows[2]; "


class TestSkippedLoops:
    """Test loops over the threshold."""

    def test_marked_and_preserved(self):
        code = "for (var i: u32 = 0; i < 100; i++) { x[i] = i; }"
        assert unroll_loops(code, 32) == \
            "for (var i: u32 = 0; i < 100; i++) /* Skipped */ { x[i] = i; }"

    def test_threshold_zero(self):
        """With threshold 0 only empty ranges are removed."""
        assert unroll_loops(loop(0, 1), threshold=0).endswith("/* Skipped */ { x[i] = i; }")
        assert unroll_loops(loop(1, 1), threshold=0) == ""

    def test_idempotent(self):
        """A second pass over a skipped loop is a no-op."""
        code = loop(0, 40) + "\n" + loop(0, 2)
        once = unroll_loops(code, 32)
        assert unroll_loops(once, 32) == once

    def test_skip_report(self):
        """Skipped loops report variable, bounds and decision."""
        diagnostics = DiagnosticCollector()
        unroll_loops(loop(5, 100, var="n"), 8, diagnostics=diagnostics)
        assert len(diagnostics) == 1
        diag = diagnostics.diagnostics[0]
        assert diag.code == "W001"
        assert diag.severity == ErrorSeverity.WARNING
        assert diag.data == {"variable": "n", "start": 5, "end": 100,
                             "threshold": 8, "decision": "skipped"}

    def test_unroll_report(self):
        diagnostics = DiagnosticCollector()
        unroll_loops(loop(0, 2), diagnostics=diagnostics)
        assert [d.code for d in diagnostics.diagnostics] == ["I001"]
        assert diagnostics.diagnostics[0].data["decision"] == "unrolled"

    def test_custom_marker(self):
        unroller = LoopUnroller(threshold=1, skip_marker="/* rolled */")
        assert "/* rolled */" in unroller.transform(loop(0, 3))

    def test_marker_must_be_block_comment(self):
        with pytest.raises(ValueError):
            LoopUnroller(skip_marker="// skipped")


class TestNestedLoops:
    """Loops whose body holds braces are left alone."""

    def test_inner_block_unmodified(self):
        code = "for (var i: u32 = 0; i < 2; i++) { if (c) { a(i); } }"
        assert unroll_loops(code) == code

    def test_inner_loop_unmodified(self):
        code = ("for (var i: u32 = 0; i < 2; i++) { "
                "for (var j: u32 = 0; j < 2; j++) { a[i][j] = 0; } }")
        assert unroll_loops(code) == code

    def test_non_matching_outer_loop_is_searched(self):
        code = "for (var i = 0; i < n; i++) { " + loop(0, 2, "a(j); ", var="j") + " }"
        assert unroll_loops(code) == "for (var i = 0; i < n; i++) { a(0); a(1);  }"


class TestIdempotence:
    """A second pass finds nothing to do."""

    @pytest.mark.parametrize("code", [
        "for (var i: u32 = 0; i < 3; i++) { x[i] = i; }",
        "fn f() { for (var i: u32 = 0; i < 64; i++) { x[i] = i; } }",
        "for (var i: u32 = 0; i < 2; i++) { { a; } }",
        "no loops here",
    ])
    def test_twice_equals_once(self, code):
        once = unroll_loops(code)
        assert unroll_loops(once) == once


class TestErrors:
    """Test failure modes."""

    def test_non_loops_untouched(self):
        code = "for (var i: u32 = 0; i < n; i++) { x[i] = i; }"
        assert unroll_loops(code) == code

    def test_invalid_bounds(self):
        with pytest.raises(InvalidBoundsError) as exc_info:
            unroll_loops("a;\nfor (var i: u32 = ³; i < 2; i++) { b; }")
        err = exc_info.value
        assert err.diagnostic.code == "E101"
        assert "for (var i: u32 = ³; i < 2; i++) { b; }" in err.match_text
        assert err.diagnostic.span.start.line == 2

    def test_rebuilt_loop_needs_second_pass(self):
        """An unrolled body that rebuilds a loop header is unrolled again."""
        code = ("for (var i: u32 = 0; i < 1; i++) { for (var j: u32 = 0; j < 2; j++) } "
                "{ a(j); }")
        assert unroll_loops(code) == "a(0); a(1); "

    def test_divergence(self):
        """Exceeding the pass cap raises instead of looping."""
        code = ("for (var i: u32 = 0; i < 1; i++) { for (var j: u32 = 0; j < 2; j++) } "
                "{ a(j); }")
        with pytest.raises(TransformDivergenceError) as exc_info:
            unroll_loops(code, max_passes=1)
        assert exc_info.value.passes == 1
        assert "E201" in str(exc_info.value)

    @pytest.mark.parametrize("threshold", [-1, 1.5, "32", True])
    def test_bad_threshold(self, threshold):
        with pytest.raises(ValueError):
            unroll_loops("", threshold)

    def test_bad_max_passes(self):
        with pytest.raises(ValueError):
            LoopUnroller(max_passes=0)
