"""
Yex Tokenizer
Token patterns are pyparsing elements; scan_string drives them lazily over the source
"""

from typing import Any, Iterator, Optional, Tuple, Union
from dataclasses import dataclass
import logging
import math

from pyparsing import (
    MatchFirst, QuotedString, Regex, Word, Keyword, ParserElement,
    alphas, alphanums, one_of, dbl_slash_comment, python_style_comment,
    lineno, col
)

from error_handling import SourcePosition, YexLexError

logger = logging.getLogger(__name__)


# Token types
IDENTIFIER = "IDENTIFIER"
NUMBER = "NUMBER"
STRING = "STRING"
KEYWORD = "KEYWORD"
OPERATOR = "OPERATOR"
PUNCTUATION = "PUNCTUATION"
EOF = "EOF"

# Pseudo-types that only exist inside the tokenizer; both end in a YexLexError
_UNTERMINATED = "UNTERMINATED"
_UNEXPECTED = "UNEXPECTED"

KEYWORDS = (
    "let", "in", "fn", "if", "then", "else",
    "and", "or", "not", "true", "false", "nil",
)
# one_of tries longer operators first, so "==" never lexes as two "="
OPERATORS = ("+", "-", "*", "/", "==", "!=", "<=", ">=", "<", ">", "=")
PUNCTUATION_MARKS = ("(", ")", ",")


@dataclass(frozen=True)
class Token:
    """Yex token with source information"""
    type: str
    value: Any
    lexeme: str
    position: SourcePosition

    def is_(self, token_type: str, lexeme: Optional[str] = None) -> bool:
        return self.type == token_type and (lexeme is None or self.lexeme == lexeme)

    def describe(self) -> str:
        """Short description used in syntax error messages"""
        if self.type == EOF:
            return "end of input"
        return f"'{self.lexeme}'"

    def __str__(self) -> str:
        return f"{self.type}({self.lexeme})"


class YexTokenizer:
    """Yex tokenizer built from pyparsing token patterns"""

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns; order matters, the first match wins"""

        # Strings may span lines, there are no escape sequences
        string_literal = QuotedString('"', multiline=True, convert_whitespace_escapes=False)
        string_literal.set_parse_action(lambda t: (STRING, t[0]))

        # An opening quote that QuotedString could not close runs to end of input
        unterminated_string = Regex(r'"[^"]*')
        unterminated_string.set_parse_action(lambda t: (_UNTERMINATED, t[0]))

        # Converted in tokenize, where a failure can be reported with a position
        number = Regex(r'\d+\.\d+|\d+')
        number.set_parse_action(lambda t: (NUMBER, t[0]))

        keyword = MatchFirst([Keyword(kw) for kw in KEYWORDS])
        keyword.set_parse_action(lambda t: (KEYWORD, t[0]))

        identifier = Word(alphas, alphanums + "_")
        identifier.set_parse_action(lambda t: (IDENTIFIER, t[0]))

        operator = one_of(OPERATORS)
        operator.set_parse_action(lambda t: (OPERATOR, t[0]))

        punctuation = one_of(PUNCTUATION_MARKS)
        punctuation.set_parse_action(lambda t: (PUNCTUATION, t[0]))

        # Anything else that is not whitespace is reported, never skipped
        unexpected = Regex(r'\S')
        unexpected.set_parse_action(lambda t: (_UNEXPECTED, t[0]))

        self.token_stream: ParserElement = MatchFirst([
            string_literal,
            unterminated_string,
            number,
            keyword,
            identifier,
            operator,
            punctuation,
            unexpected,
        ])
        self.token_stream.ignore(dbl_slash_comment)
        self.token_stream.ignore(python_style_comment)
        # Keep tabs so columns match the raw source
        self.token_stream.parse_with_tabs()

    def tokenize(self, text: str) -> Iterator[Token]:
        """Lazily yield the tokens of text, ending with an EOF token"""
        count = 0
        for tokens, start, end in self.token_stream.scan_string(text):
            token_type, value = tokens[0]
            position = self.position_at(text, start)

            if token_type == _UNTERMINATED:
                raise YexLexError("unterminated string literal", position)
            if token_type == _UNEXPECTED:
                raise YexLexError(f"unexpected character '{value}'", position)
            if token_type == NUMBER:
                value = self.number_value(value, position)

            count += 1
            yield Token(token_type, value, text[start:end], position)

        logger.debug("%s: %d tokens", self.filename, count)
        yield Token(EOF, None, "", self.position_at(text, len(text)))

    @staticmethod
    def number_value(text: str, position: SourcePosition) -> Union[int, float]:
        try:
            value = float(text) if '.' in text else int(text)
        except ValueError:
            # Longer than the interpreter's integer conversion limit
            value = math.inf
        if value == math.inf:
            raise YexLexError("number literal too large", position)
        return value

    @staticmethod
    def position_at(text: str, offset: int) -> SourcePosition:
        return SourcePosition(offset, lineno(offset, text), col(offset, text))


def tokenize(text: str, filename: str = "<input>") -> Iterator[Token]:
    """Tokenize Yex source text"""
    return YexTokenizer(filename).tokenize(text)


def token_summary(token: Token) -> Tuple[str, str, str]:
    """(position, type, lexeme) row for the --tokens view"""
    return (str(token.position), token.type, token.lexeme)
