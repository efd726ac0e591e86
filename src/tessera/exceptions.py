"""Exceptions for the Tessera compiler.

Exception Hierarchy:
TemplateError (base)
└── TemplateSyntaxError       # Any compile-time violation, with location

Every failure is fatal for the compilation unit: the compiler raises and
emits nothing. Messages carry the template location and, when the host
passes the original markup source, a snippet of the offending line:

    ```
    Syntax Error: Disallowed expression in attribute value: node type Call is not allowed
      --> card.html:4:3
       |
       3 | <template>
    >  4 | <p title={format()}>
         |    ^
       5 | </template>
       |
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tessera.utils import terminal

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------


class ErrorCode(Enum):
    """Searchable error codes for compile-time failures.

    Format: T-{CATEGORY}-{NUMBER}
    Categories: TPL (root format), EXP (expressions), DIR (directives),
    TAG (tag names)
    """

    # Root format (T-TPL-xxx)
    MISSING_ROOT = "T-TPL-001"
    UNEXPECTED_TOKEN = "T-TPL-002"
    ROOT_NOT_TEMPLATE = "T-TPL-003"

    # Expressions (T-EXP-xxx)
    DISALLOWED_EXPRESSION = "T-EXP-001"
    EXPRESSION_EVALUATION = "T-EXP-002"
    SELF_REFERENCE = "T-EXP-003"
    INVALID_ATTRIBUTE_VALUE = "T-EXP-004"
    INVALID_BINDING = "T-EXP-005"

    # Directives (T-DIR-xxx)
    INVALID_FOR_SYNTAX = "T-DIR-001"
    ELSE_BEFORE_IF = "T-DIR-002"
    DIRECTIVE_ON_SLOT = "T-DIR-003"
    DUPLICATE_DIRECTIVE = "T-DIR-004"
    UNKNOWN_NAMESPACE = "T-DIR-005"

    # Tags (T-TAG-xxx)
    MEMBER_TAG = "T-TAG-001"
    INVALID_COMPONENT_NAME = "T-TAG-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'template', 'expression', 'directive')."""
        prefix = self.value.split("-")[1]
        return {
            "TPL": "template",
            "EXP": "expression",
            "DIR": "directive",
            "TAG": "tag",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Markup source around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional column offset for the caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        """Format snippet in Rust-inspired diagnostic style."""
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            is_error = lineno == self.error_line
            parts.append(terminal.format_source_line(lineno, content, is_error=is_error))
            if is_error and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('     |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 1,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet from markup source.

    Args:
        source: Full markup source text.
        error_line: 1-based line number of the error.
        context_lines: Number of lines to show before/after the error line.
        column: Optional column offset for the caret pointer.
    """
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all Tessera compile errors.

        >>> try:
        ...     compile_template(tree)
        ... except TemplateError as e:
        ...     print(e.format_compact())

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-line-per-fact summary without colours."""
        header = terminal.strip_colors(str(self))
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateSyntaxError(TemplateError):
    """Compile-time violation in a markup tree.

    Raised for grammar violations (root format, disallowed expressions,
    malformed for-statements, member tags, ``self`` references), directive
    ordering violations and unsupported constructs.

    When ``source`` and ``lineno`` are provided, the message includes a
    source snippet; ``col_offset`` adds a caret at the exact column.
    """

    code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        code: ErrorCode | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    @property
    def location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _format_message(self) -> str:
        header = f"Syntax Error: {self.message}\n  --> {terminal.location(self.location)}"
        if self.source and self.lineno:
            snippet = build_source_snippet(self.source, self.lineno, column=self.col_offset)
            if snippet.lines:
                return f"{header}\n{snippet.format()}"
        return header

    def format_compact(self) -> str:
        """Format syntax error as a structured terminal diagnostic."""
        code_prefix = f"{self.code.value}: " if self.code else ""
        parts = [f"{code_prefix}{self.message}", f"  --> {self.location}"]
        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                parts.append("   |")
                parts.append(f"{self.lineno:>3} | {lines[self.lineno - 1]}")
                if self.col_offset is not None:
                    parts.append(f"   | {' ' * self.col_offset}^")
                parts.append("   |")
        return "\n".join(parts)
