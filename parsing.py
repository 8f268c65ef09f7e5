"""
Yex Programming Language Parser
Recursive descent with one token of lookahead, producing an immutable expression AST
"""

from typing import Callable, Dict, List, Optional, Tuple, Union, Iterator
from dataclasses import dataclass, field
import logging

from error_handling import SourcePosition, YexSyntaxError
from lexing import (
    Token, YexTokenizer, IDENTIFIER, NUMBER, STRING, KEYWORD, OPERATOR, PUNCTUATION, EOF
)

logger = logging.getLogger(__name__)


# ============================================================================
# AST NODES
# ============================================================================

@dataclass(frozen=True)
class Literal:
    """Number, string, boolean or nil constant (nil is None)"""
    value: Union[int, float, str, bool, None]
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Identifier:
    """Name resolved at evaluation time"""
    name: str
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class AnonymousFunction:
    """fn x y = body"""
    params: Tuple[str, ...]
    body: 'Expression'
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class LetBinding:
    """let name params* = value in body

    With parameters this is a named function binding; desugar() rewrites it
    into a recursive value binding of an AnonymousFunction, which is the only
    form the evaluator sees.
    """
    name: str
    value: 'Expression'
    body: 'Expression'
    params: Tuple[str, ...] = ()
    recursive: bool = False
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)

    def desugar(self) -> 'LetBinding':
        if not self.params:
            return self
        function = AnonymousFunction(self.params, self.value, self.position)
        return LetBinding(self.name, function, self.body, recursive=True, position=self.position)


@dataclass(frozen=True)
class Conditional:
    """if condition then then_branch else else_branch"""
    condition: 'Expression'
    then_branch: 'Expression'
    else_branch: 'Expression'
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Application:
    """callee(arg, ...)"""
    callee: 'Expression'
    args: Tuple['Expression', ...]
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
    """left <operator> right"""
    operator: str
    left: 'Expression'
    right: 'Expression'
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class LogicalOp:
    """left and right, left or right; the right side may be skipped"""
    operator: str
    left: 'Expression'
    right: 'Expression'
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class UnaryOp:
    """-operand, not operand"""
    operator: str
    operand: 'Expression'
    position: Optional[SourcePosition] = field(default=None, compare=False, repr=False)


Expression = Union[
    Literal, Identifier, AnonymousFunction, LetBinding, Conditional,
    Application, BinaryOp, LogicalOp, UnaryOp
]

# Operator symbol -> node tag, one table per precedence tier
ARITHMETIC_OPERATORS = {
    '+': 'Add',
    '-': 'Subtract',
    '*': 'Multiply',
    '/': 'Divide',
}

COMPARISON_OPERATORS = {
    '<': 'Less',
    '<=': 'LessEqual',
    '>': 'Greater',
    '>=': 'GreaterEqual',
}

EQUALITY_OPERATORS = {
    '==': 'Equal',
    '!=': 'NotEqual',
}

BINARY_OPERATORS = {**ARITHMETIC_OPERATORS, **COMPARISON_OPERATORS, **EQUALITY_OPERATORS}

LOGICAL_OPERATORS = {'and': 'And', 'or': 'Or'}

UNARY_OPERATORS = {'-': 'Negate', 'not': 'Not'}

OPERATOR_SYMBOLS = {
    tag: symbol
    for table in (BINARY_OPERATORS, LOGICAL_OPERATORS, UNARY_OPERATORS)
    for symbol, tag in table.items()
}

LITERAL_KEYWORDS = {'true': True, 'false': False, 'nil': None}

PRIMARY_START = [
    "number", "string", "identifier", "'('", "'let'", "'fn'", "'if'",
    "'true'", "'false'", "'nil'", "'-'", "'not'",
]


# ============================================================================
# PARSER
# ============================================================================

class YexParser:
    """Yex recursive descent parser over a lazy token stream"""

    def __init__(self, tokens: Iterator[Token]):
        self.tokens = tokens
        self.current: Token = next(self.tokens)

    def parse(self) -> 'Expression':
        """Parse a whole program: exactly one expression, then end of input"""
        try:
            expr = self.expression()
        except RecursionError:
            raise YexSyntaxError(
                "expression is nested too deeply",
                self.current.position,
                found=self.current.describe()
            ) from None

        if not self.current.is_(EOF):
            self._throw("expected end of input", ["end of input", "operator", "'('"])
        return expr

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _advance(self) -> Token:
        token = self.current
        if not token.is_(EOF):
            self.current = next(self.tokens)
        return token

    def _check(self, token_type: str, lexeme: Optional[str] = None) -> bool:
        return self.current.is_(token_type, lexeme)

    def _throw(self, message: str, expected: List[str]):
        raise YexSyntaxError(
            f"{message}, found {self.current.describe()}",
            self.current.position,
            expected=expected,
            found=self.current.describe()
        )

    def _expect(self, token_type: str, lexeme: str) -> Token:
        if not self._check(token_type, lexeme):
            self._throw(f"expected '{lexeme}'", [f"'{lexeme}'"])
        return self._advance()

    def _expect_identifier(self) -> Token:
        if not self._check(IDENTIFIER):
            self._throw("expected identifier", ["identifier"])
        return self._advance()

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def expression(self) -> 'Expression':
        if self._check(KEYWORD, "let"):
            return self.let_expression()
        if self._check(KEYWORD, "fn"):
            return self.fn_expression()
        if self._check(KEYWORD, "if"):
            return self.if_expression()
        return self.or_expression()

    def let_expression(self) -> LetBinding:
        """One or more let headers, then the body of the innermost one

        A let whose body is another let is read in the same loop, so long
        sequences of bindings do not deepen the Python stack.
        """
        headers = []
        while self._check(KEYWORD, "let"):
            start = self._advance()
            name = self._expect_identifier().lexeme
            params = self.param_list(required=False)

            self._expect(OPERATOR, "=")
            value = self.expression()
            self._expect(KEYWORD, "in")
            headers.append((start, name, params, value))

        body = self.expression()
        for start, name, params, value in reversed(headers):
            if params:
                logger.debug("desugared named function '%s' with params %s", name, params)
            body = LetBinding(name, value, body, params=params, position=start.position).desugar()
        return body

    def fn_expression(self) -> AnonymousFunction:
        start = self._expect(KEYWORD, "fn")
        params = self.param_list(required=True)
        self._expect(OPERATOR, "=")
        body = self.expression()
        return AnonymousFunction(params, body, start.position)

    def if_expression(self) -> Conditional:
        start = self._expect(KEYWORD, "if")
        condition = self.expression()
        self._expect(KEYWORD, "then")
        then_branch = self.expression()
        self._expect(KEYWORD, "else")
        else_branch = self.expression()
        return Conditional(condition, then_branch, else_branch, start.position)

    def param_list(self, required: bool) -> Tuple[str, ...]:
        """IDENT+ (or IDENT* when not required), space separated, up to '='"""
        params: List[str] = []
        if required:
            params.append(self._expect_identifier().lexeme)

        while self._check(IDENTIFIER):
            token = self._advance()
            if token.lexeme in params:
                raise YexSyntaxError(
                    f"duplicate parameter '{token.lexeme}'",
                    token.position,
                    expected=["distinct parameter name"],
                    found=token.describe()
                )
            params.append(token.lexeme)

        if not self._check(OPERATOR, "="):
            expected = ["identifier", "'='"]
            self._throw("expected parameter name or '='", expected)

        return tuple(params)

    def _logical_tier(self, keyword: str, operand: Callable[[], 'Expression']) -> 'Expression':
        left = operand()
        while self._check(KEYWORD, keyword):
            op = self._advance()
            right = operand()
            left = LogicalOp(LOGICAL_OPERATORS[keyword], left, right, op.position)
        return left

    def _binary_tier(self, operators: Dict[str, str], operand: Callable[[], 'Expression']) -> 'Expression':
        left = operand()
        while self._check(OPERATOR) and self.current.lexeme in operators:
            op = self._advance()
            right = operand()
            left = BinaryOp(operators[op.lexeme], left, right, op.position)
        return left

    def or_expression(self) -> 'Expression':
        return self._logical_tier("or", self.and_expression)

    def and_expression(self) -> 'Expression':
        return self._logical_tier("and", self.equality_expression)

    def equality_expression(self) -> 'Expression':
        return self._binary_tier(EQUALITY_OPERATORS, self.comparison_expression)

    def comparison_expression(self) -> 'Expression':
        return self._binary_tier(COMPARISON_OPERATORS, self.binary_expression)

    def binary_expression(self) -> 'Expression':
        """+ - * / share one tier and associate left"""
        return self._binary_tier(ARITHMETIC_OPERATORS, self.unary_expression)

    def unary_expression(self) -> 'Expression':
        if self._check(OPERATOR, "-") or self._check(KEYWORD, "not"):
            op = self._advance()
            operand = self.unary_expression()
            return UnaryOp(UNARY_OPERATORS[op.lexeme], operand, op.position)
        return self.apply_expression()

    def apply_expression(self) -> 'Expression':
        expr = self.primary()

        while self._check(PUNCTUATION, "("):
            paren = self._advance()
            args = self.arg_list()
            self._expect(PUNCTUATION, ")")
            expr = Application(expr, args, paren.position)

        return expr

    def arg_list(self) -> Tuple['Expression', ...]:
        if self._check(PUNCTUATION, ")"):
            return ()

        args = [self.expression()]
        while self._check(PUNCTUATION, ","):
            self._advance()
            args.append(self.expression())

        if not self._check(PUNCTUATION, ")"):
            self._throw("expected ',' or ')'", ["','", "')'"])
        return tuple(args)

    def primary(self) -> 'Expression':
        token = self.current

        if token.is_(NUMBER) or token.is_(STRING):
            self._advance()
            return Literal(token.value, token.position)

        if token.is_(KEYWORD) and token.lexeme in LITERAL_KEYWORDS:
            self._advance()
            return Literal(LITERAL_KEYWORDS[token.lexeme], token.position)

        if token.is_(IDENTIFIER):
            self._advance()
            return Identifier(token.lexeme, token.position)

        if token.is_(PUNCTUATION, "("):
            self._advance()
            expr = self.expression()
            self._expect(PUNCTUATION, ")")
            return expr

        if token.is_(KEYWORD, "let"):
            return self.let_expression()

        if token.is_(KEYWORD, "fn"):
            return self.fn_expression()

        if token.is_(KEYWORD, "if"):
            return self.if_expression()

        self._throw("expected an expression", PRIMARY_START)


# ============================================================================
# ENTRY POINTS
# ============================================================================

def parse_program(text: str, filename: str = "<input>") -> 'Expression':
    """Parse Yex source text into its root expression"""
    return YexParser(YexTokenizer(filename).tokenize(text)).parse()


def _literal_text(value: Union[int, float, str, bool, None]) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    return repr(value)


def pretty_print_ast(node: 'Expression', indent: int = 0) -> str:
    """Pretty print an expression tree, one node per line"""
    prefix = "  " * indent

    if isinstance(node, Literal):
        return f"{prefix}Literal({_literal_text(node.value)})"

    if isinstance(node, Identifier):
        return f"{prefix}Identifier({node.name})"

    if isinstance(node, AnonymousFunction):
        lines = [f"{prefix}Function({', '.join(node.params)})"]
        lines.append(pretty_print_ast(node.body, indent + 1))
        return '\n'.join(lines)

    if isinstance(node, LetBinding):
        header = f"{prefix}Let {node.name}"
        if node.recursive:
            header += " (recursive)"
        lines = [header]
        lines.append(f"{prefix}  =")
        lines.append(pretty_print_ast(node.value, indent + 2))
        lines.append(f"{prefix}  in")
        lines.append(pretty_print_ast(node.body, indent + 2))
        return '\n'.join(lines)

    if isinstance(node, Conditional):
        lines = [f"{prefix}If"]
        lines.append(pretty_print_ast(node.condition, indent + 1))
        lines.append(f"{prefix}Then")
        lines.append(pretty_print_ast(node.then_branch, indent + 1))
        lines.append(f"{prefix}Else")
        lines.append(pretty_print_ast(node.else_branch, indent + 1))
        return '\n'.join(lines)

    if isinstance(node, Application):
        lines = [f"{prefix}Apply"]
        lines.append(pretty_print_ast(node.callee, indent + 1))
        for arg in node.args:
            lines.append(pretty_print_ast(arg, indent + 1))
        return '\n'.join(lines)

    if isinstance(node, (BinaryOp, LogicalOp)):
        lines = [f"{prefix}{node.operator} '{OPERATOR_SYMBOLS[node.operator]}'"]
        lines.append(pretty_print_ast(node.left, indent + 1))
        lines.append(pretty_print_ast(node.right, indent + 1))
        return '\n'.join(lines)

    if isinstance(node, UnaryOp):
        lines = [f"{prefix}{node.operator} '{OPERATOR_SYMBOLS[node.operator]}'"]
        lines.append(pretty_print_ast(node.operand, indent + 1))
        return '\n'.join(lines)

    return f"{prefix}{node!r}"
