"""Tests for diagnostic rendering."""

from typesh.diagnostics import Diagnostic, DiagnosticKind, render, render_all
from typesh.errors import RedirectPositionError, ShellSyntaxError, TypeMismatchError
from typesh.syntax.spans import Span


def test_render_points_at_span():
    """The pointer block underlines exactly the span."""
    source = "echo test >file | cat"
    span = Span.from_offsets(source, 10, 15)
    message = "cannot redirect output unless it's from the last command in a pipeline"

    assert render(source, message, span) == "\n".join(
        [
            f"typesh: {message}",
            " --> 1:11",
            "  |",
            "1 | echo test >file | cat",
            "  |           ^^^^^",
        ]
    )


def test_render_without_span_is_summary_only():
    assert render("", "nope: command not found") == "typesh: nope: command not found"


def test_render_empty_span_gets_one_caret():
    source = "echo hi |"
    span = Span.from_offsets(source, len(source), len(source))
    lines = render(source, "expected a term", span).splitlines()
    assert lines[1] == " --> 1:10"
    assert lines[-1] == "  | " + " " * 9 + "^"


def test_render_uses_the_span_line():
    """Only the line holding the span is shown, with a wide gutter when needed."""
    source = "\n".join(["echo"] * 9 + ["ps | get"])
    start = source.index("ps")
    span = Span.from_offsets(source, start, start + len("ps | get"))
    lines = render(source, "type mismatch", span).splitlines()
    assert lines[1] == "  --> 10:1"
    assert lines[3] == "10 | ps | get"
    assert lines[4] == "   | ^^^^^^^^"


def test_render_multiline_span_stops_at_line_end():
    source = "echo 'a\nb'"
    span = Span.from_offsets(source, 5, len(source))
    assert render(source, "m", span).splitlines()[-1] == "  | " + " " * 5 + "^^"


def test_render_all_orders_by_position():
    source = "a >x | b <y | c"
    late = Diagnostic(DiagnosticKind.REDIRECT_POSITION, "second", Span.from_offsets(source, 9, 11))
    early = Diagnostic(DiagnosticKind.REDIRECT_POSITION, "first", Span.from_offsets(source, 2, 4))
    text = render_all(source, [late, early])
    assert text.index("typesh: first") < text.index("typesh: second")
    assert "\n\n" in text


class TestDiagnosticToError:
    """Each diagnostic kind maps onto an exception type."""

    span = Span.from_offsets("ps | get", 0, 8)

    def test_type_mismatch(self):
        diagnostic = Diagnostic(
            DiagnosticKind.TYPE_MISMATCH,
            "type mismatch",
            self.span,
            stage_index=1,
            details={"producer": "ps", "consumer": "get", "produced": "[opaque]", "expected": "objects"},
        )
        error = diagnostic.to_error()
        assert isinstance(error, TypeMismatchError)
        assert (error.producer, error.consumer) == ("ps", "get")
        assert error.expected == "objects"
        assert error.exit_code == 2

    def test_redirect_position(self):
        diagnostic = Diagnostic(DiagnosticKind.REDIRECT_POSITION, "m", self.span, stage_index=0)
        error = diagnostic.to_error()
        assert isinstance(error, RedirectPositionError)
        assert error.stage_index == 0

    def test_syntax_round_trip(self):
        diagnostic = Diagnostic.from_syntax_error(ShellSyntaxError("bad", self.span))
        assert diagnostic.kind is DiagnosticKind.SYNTAX
        assert isinstance(diagnostic.to_error(), ShellSyntaxError)
        assert str(diagnostic) == "1:1: bad"
