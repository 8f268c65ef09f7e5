"""
Error handling for the Yex language
Error taxonomy plus pure helpers that turn an error into a readable report
"""

from dataclasses import dataclass
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class SourcePosition:
    """Location of a token, node or error in the source text"""
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


# ============================================================================
# ERROR TAXONOMY
# ============================================================================

class YexError(Exception):
    """Base class for every error a Yex program can raise"""
    kind = "Error"

    def __init__(self, message: str, position: Optional[SourcePosition] = None):
        self.message = message
        self.position = position
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.position:
            return f"{self.kind} at {self.position}: {self.message}"
        return f"{self.kind}: {self.message}"


class YexLexError(YexError):
    """Unrecognized character or unterminated string literal"""
    kind = "Lex error"


class YexSyntaxError(YexError):
    """Token sequence does not match the grammar"""
    kind = "Syntax error"

    def __init__(self, message: str, position: Optional[SourcePosition] = None,
                 expected: Optional[List[str]] = None, found: Optional[str] = None):
        self.expected = expected or []
        self.found = found
        super().__init__(message, position)


class YexRuntimeError(YexError):
    """Error raised while evaluating an expression"""
    kind = "Runtime error"


class UndefinedNameError(YexRuntimeError):
    def __init__(self, name: str, position: Optional[SourcePosition] = None):
        self.name = name
        super().__init__(f"undefined name '{name}'", position)


class NotCallableError(YexRuntimeError):
    def __init__(self, value_kind: str, position: Optional[SourcePosition] = None):
        self.value_kind = value_kind
        super().__init__(f"{value_kind} is not callable", position)


class ArityMismatchError(YexRuntimeError):
    def __init__(self, name: str, expected: int, got: int,
                 position: Optional[SourcePosition] = None):
        self.name = name
        self.expected = expected
        self.got = got
        plural = "" if expected == 1 else "s"
        super().__init__(f"{name} expects {expected} argument{plural}, got {got}", position)


class TypeMismatchError(YexRuntimeError):
    def __init__(self, operator: str, left: str, right: str,
                 position: Optional[SourcePosition] = None):
        self.operator = operator
        self.left = left
        self.right = right
        super().__init__(f"cannot apply '{operator}' to {left} and {right}", position)


class OperandKindError(YexRuntimeError):
    """A construct that needs one kind of value received another"""

    def __init__(self, construct: str, expected: str, got: str,
                 position: Optional[SourcePosition] = None):
        self.construct = construct
        self.expected = expected
        self.got = got
        super().__init__(f"{construct} expects {expected}, got {got}", position)


class DivisionByZeroError(YexRuntimeError):
    def __init__(self, position: Optional[SourcePosition] = None):
        super().__init__("division by zero", position)


class NumberOverflowError(YexRuntimeError):
    def __init__(self, operator: str, position: Optional[SourcePosition] = None):
        self.operator = operator
        super().__init__(f"result of '{operator}' is too large for a number", position)


class StackOverflowError(YexRuntimeError):
    def __init__(self, message: str = "maximum recursion depth exceeded",
                 position: Optional[SourcePosition] = None):
        super().__init__(message, position)


# ============================================================================
# ERROR REPORTS (Pure Functions)
# ============================================================================

def make_error_report(error: YexError, source_text: str, filename: str = "<input>") -> Dict[str, Any]:
    """Create an error report structure from a Yex error"""
    position = error.position
    report = {
        'kind': error.kind,
        'message': error.message,
        'filename': filename,
        'line': position.line if position else None,
        'column': position.column if position else None,
        'expected': [],
        'got': None,
        'context': None,
        'suggestions': generate_suggestions(error),
    }

    if isinstance(error, YexSyntaxError):
        report['expected'] = list(error.expected)
        report['got'] = error.found

    if position:
        report['context'] = get_context_lines(source_text, position.line, position.column)

    return report


def format_error_report(report: Dict[str, Any]) -> str:
    """Format an error report as a multi-line string"""
    if report['line'] is not None:
        location = f"{report['filename']}:{report['line']}:{report['column']}"
    else:
        location = report['filename']

    error_msg = f"{location}: {report['kind']}: {report['message']}\n"

    if report['expected']:
        error_msg += f"  Expected: {', '.join(report['expected'])}\n"

    if report['got']:
        error_msg += f"  Got: {report['got']}\n"

    if report['context']:
        error_msg += f"{report['context']}\n"

    if report['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in report['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 1) -> str:
    """Get the source lines around an error with a caret under the column"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i + 1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def generate_suggestions(error: YexError) -> List[str]:
    """Generate hints for the most common mistakes"""
    suggestions = []

    if isinstance(error, YexSyntaxError):
        if "'in'" in error.expected:
            suggestions.append("Every let needs a body: let x = 1 in x")

        if error.found == "'('" and "identifier" in error.expected:
            suggestions.append("Parameters are separated by spaces, without parentheses: fn x y = x + y")

        # Any word rejected where a name was expected is a keyword
        if error.found and error.found[1:-1].isalpha() and "identifier" in error.expected:
            suggestions.append(f"{error.found} is a reserved word and cannot be used as a name")

        if "'else'" in error.expected:
            suggestions.append("Every if needs both branches: if c then a else b")

        if error.found == "'='" and "'then'" in error.expected:
            suggestions.append("Use '==' to compare values")

        if error.found == "end of input":
            suggestions.append("The program ended early; check for a missing expression or ')'")

        if "nested too deeply" in error.message:
            suggestions.append("Split the expression with let bindings")

    elif isinstance(error, YexLexError):
        if "unterminated" in error.message:
            suggestions.append("Close the string with a matching '\"'")

    elif isinstance(error, OperandKindError):
        if error.expected == "Boolean":
            suggestions.append("There is no truthiness; compare explicitly, e.g. n != 0")

    elif isinstance(error, TypeMismatchError):
        if error.operator == '+' and {error.left, error.right} == {"Number", "String"}:
            suggestions.append("Numbers and strings are never converted implicitly")

    elif isinstance(error, StackOverflowError):
        suggestions.append("Calls are not tail-call optimized, so every nested call uses stack space")

    return suggestions


def render_error(error: YexError, source_text: str, filename: str = "<input>") -> str:
    """Render any Yex error as the text shown to the user"""
    return format_error_report(make_error_report(error, source_text, filename))
