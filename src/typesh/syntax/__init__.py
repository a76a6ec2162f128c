"""Pipeline syntax: grammar, spans and AST.

Examples:
    echo one two three
    cat <in.txt | sort >>out.txt
    ps | get 'name'
"""

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
from .parser import parse_command, parse_script
from .spans import Span

__all__ = [
    "Command",
    "Invocation",
    "Quoting",
    "ReadRedirect",
    "Script",
    "Span",
    "Term",
    "WriteMode",
    "WriteRedirect",
    "parse_command",
    "parse_script",
]
