"""Parse pipeline source text into the typed AST.

The grammar lives in ``grammar.lark`` and is compiled once into an LALR
parser with position tracking. ``parse_command`` handles a single pipeline
(interactive input); ``parse_script`` handles newline-separated pipelines
where blank lines and ``#`` comments are ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from ..errors import ShellSyntaxError
from .ast import (
    Command,
    Invocation,
    Quoting,
    ReadRedirect,
    Script,
    Term,
    WriteMode,
    WriteRedirect,
)
from .spans import Span

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

_PARSER = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="lalr",
    lexer="basic",
    start=["command", "script"],
    propagate_positions=True,
    maybe_placeholders=False,
)

# Terminal names grouped into the phrases shown in "expected ..." messages.
_EXPECTATIONS = (
    ("a term", frozenset({"BARE", "SQ", "DQ"})),
    ("a redirect", frozenset({"READ", "TRUNCATE", "APPEND"})),
    ("a pipe", frozenset({"_PIPE"})),
    ("a newline", frozenset({"_NL"})),
    ("end of input", frozenset({"$END"})),
)

_NOTHING_EXPECTED = "unexpected input"

# What may follow a complete invocation in a single command.
_AFTER_INVOCATION = frozenset({"BARE", "READ", "_PIPE", "$END"})

_QUOTING = {
    "bare": Quoting.BARE,
    "single_quoted": Quoting.SINGLE,
    "double_quoted": Quoting.DOUBLE,
}


def parse_command(source: str) -> Command:
    """Parse exactly one pipeline.

    Raises:
        ShellSyntaxError: If the source does not match the grammar.
    """
    tree = _parse(source, "command")
    return _build_command(tree)


def parse_script(source: str) -> Script:
    """Parse newline-separated pipelines; a trailing newline is optional.

    Raises:
        ShellSyntaxError: If any line does not match the grammar.
    """
    tree = _parse(source, "script")
    return Script(commands=tuple(_build_command(child) for child in _subtrees(tree)))


def describe_expected(terminals: Iterable[str]) -> str:
    """Turn a set of terminal names into 'expected a term, a pipe, or ...'."""
    names = set(terminals)
    phrases = [phrase for phrase, group in _EXPECTATIONS if names & group]
    if not phrases:
        return _NOTHING_EXPECTED
    if len(phrases) == 1:
        joined = phrases[0]
    elif len(phrases) == 2:
        joined = f"{phrases[0]} or {phrases[1]}"
    else:
        joined = ", ".join(phrases[:-1]) + f", or {phrases[-1]}"
    return f"expected {joined}"


def preview(source: str, pos: int, max_len: int = 30) -> str:
    """Source text from ``pos`` to the end of its line, clipped for messages."""
    text = source[pos:]
    newline = text.find("\n")
    if newline != -1:
        text = text[:newline]
    if len(text) > max_len:
        return text[:max_len] + "[..snip..]"
    return text


def _parse(source: str, start: str) -> Tree:
    try:
        return _PARSER.parse(source, start=start)
    except UnexpectedInput as e:
        raise _syntax_error(source, e) from None


def _syntax_error(source: str, error: UnexpectedInput) -> ShellSyntaxError:
    if isinstance(error, UnexpectedCharacters):
        pos = error.pos_in_stream
        span = Span.from_offsets(source, pos, min(pos + 1, len(source)))
        char = source[pos]
        if char == "'":
            return ShellSyntaxError(
                f"missing single-quote to close: {preview(source, pos)}", span
            )
        if char == '"':
            return ShellSyntaxError(
                f"missing double-quote to close: {preview(source, pos)}", span
            )
        if char == "\t":
            return ShellSyntaxError("tabs are not allowed; separate terms with spaces", span)
        return ShellSyntaxError(f"unrecognized character {char!r}", span)

    if isinstance(error, UnexpectedToken):
        token = error.token
        if token.type == "$END" or token.start_pos is None:
            span = Span.from_offsets(source, len(source), len(source))
        else:
            span = Span.from_token(token)
        expected = describe_expected(error.expected)
        if token.type == "_NL":
            # Lark reports no expectations for a newline after a complete command.
            if expected == _NOTHING_EXPECTED:
                expected = describe_expected(_AFTER_INVOCATION)
            return ShellSyntaxError(f"unexpected newline; {expected}", span)
        return ShellSyntaxError(expected, span)

    if isinstance(error, UnexpectedEOF):
        span = Span.from_offsets(source, len(source), len(source))
        return ShellSyntaxError(describe_expected(error.expected), span)

    span = Span.from_offsets(source, len(source), len(source))
    return ShellSyntaxError(str(error), span)


def _subtrees(tree: Tree) -> List[Tree]:
    return [child for child in tree.children if isinstance(child, Tree)]


def _build_command(tree: Tree) -> Command:
    assert tree.data == "command", tree.data
    stages = tuple(_build_invocation(child) for child in _subtrees(tree))
    span = stages[0].span.merge(stages[-1].span)
    return Command(stages=stages, span=span)


def _build_invocation(tree: Tree) -> Invocation:
    assert tree.data == "invocation", tree.data
    first, *rest = _subtrees(tree)
    program = _build_term(first)

    args: List[Term] = []
    read_redirect: Optional[ReadRedirect] = None
    write_redirect: Optional[WriteRedirect] = None
    span = program.span

    # Redirects may sit anywhere among the trailing terms.
    for child in rest:
        if child.data == "read_redirect":
            node = _build_read_redirect(child)
            if read_redirect is not None:
                raise ShellSyntaxError("found conflicting input redirection", node.span)
            read_redirect = node
        elif child.data == "write_redirect":
            node = _build_write_redirect(child)
            if write_redirect is not None:
                raise ShellSyntaxError("found conflicting output redirection", node.span)
            write_redirect = node
        else:
            node = _build_term(child)
            args.append(node)
        span = span.merge(node.span)

    return Invocation(
        program=program,
        args=tuple(args),
        span=span,
        read_redirect=read_redirect,
        write_redirect=write_redirect,
    )


def _build_read_redirect(tree: Tree) -> ReadRedirect:
    operator, term_tree = tree.children
    path = _build_term(term_tree)
    return ReadRedirect(path=path, span=Span.from_token(operator).merge(path.span))


def _build_write_redirect(tree: Tree) -> WriteRedirect:
    operator, term_tree = tree.children
    mode = WriteMode.APPEND if operator.type == "APPEND" else WriteMode.TRUNCATE
    path = _build_term(term_tree)
    return WriteRedirect(
        path=path, mode=mode, span=Span.from_token(operator).merge(path.span)
    )


def _build_term(tree: Tree) -> Term:
    quoting = _QUOTING[tree.data]
    token: Token = tree.children[0]
    raw = str(token)
    value = raw if quoting is Quoting.BARE else raw[1:-1]
    return Term(value=value, quoting=quoting, span=Span.from_token(token))


__all__ = ["describe_expected", "parse_command", "parse_script", "preview"]
