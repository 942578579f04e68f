"""Lexical analysis for the madx language: turns a character stream into tokens.

The lexer keeps two single-slot buffers, which is all the lookahead the grammar needs:
    - a pending character, filled by putback and drained by read before the stream is touched again
    - a pending token, filled by peek and drained by take/consume

Tokens can be loosely defined as follows:

```
<number>  ::= "0x" <hex-digit>*                     ; hexadecimal integer
            | "0" <oct-digit>+                      ; octal integer (leading 0 followed by a digit)
            | <digit>+ <exponent>?                  ; decimal integer, truncated if an exponent is given
<float>   ::= <digit>* "." <digit>* <exponent>?     ; at least one digit on either side of the "."
<exponent>::= ("e" | "E") ("+" | "-")? <digit>*
<char>    ::= "'" <any> "'"
<string>  ::= '"' (<any> | "\\" ("n" | "r" | "t" | '"'))* '"'
<ident>   ::= (<alpha> | "_") (<alnum> | "_")*     ; unless it is one of KEYWORDS

<comment> ::= "//" <any>* <newline> | "/*" <any>* "*/"
```

Negative numbers are not tokens: "-" is always an operator and negation is left to the parser.
"""

import io
from dataclasses import dataclass, field
from enum import Enum, auto

from madx.lang.error import (CharacterConstantTooLong, IntegerOverflow, InvalidCharacter, LexerIoError, MalformedFloat,
                             UnterminatedCharacterConstant, UnterminatedComment, UnterminatedString)


INT_MAX = 2 ** 31 - 1  # integers are 32-bit signed
DIGITS = "0123456789abcdef"


class TokenKind(Enum):
    """All token kinds produced by the lexer."""
    ASSIGN = auto()

    LOGAND = auto()
    LOGOR = auto()

    BITOR = auto()
    BITXOR = auto()
    AMPER = auto()  # bitwise and, also address-of

    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    LSHIFT = auto()
    RSHIFT = auto()

    MINUS = auto()  # also unary
    PLUS = auto()
    ASTERISK = auto()  # multiplication, also dereference
    DIVIDE = auto()
    MODULO = auto()

    NOT = auto()
    BITNOT = auto()

    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()

    DOT = auto()
    ARROW = auto()
    COLON = auto()  # labels
    SEMICOLON = auto()

    CHAR = auto()
    STRING = auto()
    NUMBER = auto()
    FLOAT = auto()
    IDENT = auto()

    FN = auto()
    LET = auto()
    IF = auto()
    ELSE = auto()
    FOR = auto()  # no while: for covers it
    GOTO = auto()
    STRUCT = auto()
    UNION = auto()
    U0 = auto()  # void
    I8 = auto()
    I16 = auto()
    I32 = auto()

    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token. value is only set for literal and identifier tokens; text is the literal as the lexer captured
    it, kept so the parser can re-validate number literals. text does not take part in equality.
    """
    kind: TokenKind
    value: object = None
    text: str = field(default=None, compare=False)

    def __str__(self):
        if self.kind in SYMBOLS:
            return f"'{SYMBOLS[self.kind]}'"
        if self.value is not None:
            return f"{self.kind.name}({self.value!r})"
        return self.kind.name


class Lexer:
    """madx lexer. Tokens are pulled one at a time through peek, consume and take."""

    KEYWORDS = {
        "fn": TokenKind.FN,
        "let": TokenKind.LET,
        "if": TokenKind.IF,
        "else": TokenKind.ELSE,
        "for": TokenKind.FOR,
        "goto": TokenKind.GOTO,
        "struct": TokenKind.STRUCT,
        "union": TokenKind.UNION,
        "u0": TokenKind.U0,
        "i8": TokenKind.I8,
        "i16": TokenKind.I16,
        "i32": TokenKind.I32,
    }

    SINGLES = {
        "^": TokenKind.BITXOR,
        "+": TokenKind.PLUS,
        "*": TokenKind.ASTERISK,
        "/": TokenKind.DIVIDE,
        "%": TokenKind.MODULO,
        "~": TokenKind.BITNOT,
        "(": TokenKind.LPAREN,
        ")": TokenKind.RPAREN,
        "[": TokenKind.LBRACKET,
        "]": TokenKind.RBRACKET,
        "{": TokenKind.LBRACE,
        "}": TokenKind.RBRACE,
        ":": TokenKind.COLON,
        ";": TokenKind.SEMICOLON,
    }

    # first char: (token if alone, {second char: two-char token})
    DOUBLES = {
        "&": (TokenKind.AMPER, {"&": TokenKind.LOGAND}),
        "|": (TokenKind.BITOR, {"|": TokenKind.LOGOR}),
        "=": (TokenKind.ASSIGN, {"=": TokenKind.EQ}),
        "!": (TokenKind.NOT, {"=": TokenKind.NEQ}),
        "<": (TokenKind.LT, {"=": TokenKind.LTE, "<": TokenKind.LSHIFT}),
        ">": (TokenKind.GT, {"=": TokenKind.GTE, ">": TokenKind.RSHIFT}),
        "-": (TokenKind.MINUS, {">": TokenKind.ARROW}),
    }

    ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\"": "\""}

    def __init__(self, source):
        """source can be a str/bytes value or a text/binary file object. Binary input is decoded as UTF-8."""
        if isinstance(source, str):
            source = io.StringIO(source)
        elif isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)

        if not isinstance(source, io.TextIOBase):
            source = io.TextIOWrapper(source, encoding="utf-8")

        self.stream = source
        self.char_putback = None  # at most one pending character
        self.token_putback = None  # at most one pending token

    def read(self):
        """Returns the next character, or None at end of stream."""
        if self.char_putback is not None:
            c, self.char_putback = self.char_putback, None
            return c

        try:
            c = self.stream.read(1)
        except (OSError, UnicodeDecodeError) as error:
            raise LexerIoError(error) from error
        return c if c else None

    def putback(self, c):
        """Queues c to be returned by the next read."""
        assert self.char_putback is None, "only one character can be put back"
        self.char_putback = c

    def peek(self):
        """Returns the next token without consuming it."""
        if self.token_putback is None:
            self.token_putback = self.scan_token()
        return self.token_putback

    def consume(self):
        """Discards the peeked token."""
        self.token_putback = None

    def take(self):
        """Returns and consumes the next token."""
        if self.token_putback is not None:
            token, self.token_putback = self.token_putback, None
            return token
        return self.scan_token()

    def scan_token(self):
        """Scans a fresh token from the stream, ignoring the token buffer."""
        while True:
            c = self.read()
            if c is None:
                return Token(TokenKind.EOF)

            if c.isspace() or (c == "/" and self._skip_comment()):
                continue

            if c in Lexer.DOUBLES:
                single, doubles = Lexer.DOUBLES[c]
                second = self.read()
                if second in doubles:
                    return Token(doubles[second])
                if second is not None:
                    self.putback(second)
                return Token(single)

            if c in Lexer.SINGLES:
                return Token(Lexer.SINGLES[c])

            if c == ".":
                second = self.read()
                if second is not None:
                    self.putback(second)
                    if Lexer.is_digit(second):
                        return self.scan_fraction(0, "")
                return Token(TokenKind.DOT)

            if c == "'":
                return Token(TokenKind.CHAR, self.scan_char())

            if c == "\"":
                return Token(TokenKind.STRING, self.scan_string())

            if Lexer.is_digit(c):
                self.putback(c)
                return self.scan_number()
            if c.isalpha() or c == "_":
                self.putback(c)
                return self.match_keyword()

            raise InvalidCharacter(c)

    @staticmethod
    def is_digit(c, base=10):
        """Whether or not c is an ASCII digit in base."""
        return c is not None and c.lower() in DIGITS[:base]

    def _skip_comment(self):
        """Called after reading "/". Skips a comment and returns True, or returns False if "/" is a divide."""
        c = self.read()
        if c == "/":
            while c is not None and c != "\n":
                c = self.read()
            return True

        if c == "*":
            prev = None
            while True:
                c = self.read()
                if c is None:
                    raise UnterminatedComment()
                if prev == "*" and c == "/":
                    return True
                prev = c

        if c is not None:
            self.putback(c)
        return False

    def scan_number(self):
        """Scans an integer or float literal. The first digit has been put back."""
        c = self.read()
        if c != "0":
            self.putback(c)
            return self.scan_float("")

        c = self.read()
        if c == "x":
            value, digits = self.scan_base(16)
            return Token(TokenKind.NUMBER, value, "0x" + digits)

        if c is not None:
            self.putback(c)
            if Lexer.is_digit(c):
                value, digits = self.scan_base(8)
                return Token(TokenKind.NUMBER, value, "0" + digits)
        return self.scan_float("0")  # the leading zero adds nothing to the value

    def scan_base(self, base):
        """Accumulates digits of base into an integer. Returns (value, digits)."""
        num = 0
        digits = ""

        c = self.read()
        while Lexer.is_digit(c, base):
            num = num * base + DIGITS.index(c.lower())
            if num > INT_MAX:
                raise IntegerOverflow()
            digits += c
            c = self.read()

        if c is not None:
            self.putback(c)
        return num, digits

    def scan_float(self, leading):
        """Scans a decimal literal: integer part, then an optional fraction and exponent."""
        front, digits = self.scan_base(10)
        text = leading + digits

        c = self.read()
        if c == ".":
            return self.scan_fraction(front, text)
        if c is not None:
            self.putback(c)

        exponent = self.scan_exponent()
        if exponent is None:
            return Token(TokenKind.NUMBER, front, text)

        value = Lexer.scale(float(front), exponent)
        if value > INT_MAX:
            raise IntegerOverflow()
        return Token(TokenKind.NUMBER, int(value), str(int(value)))

    def scan_fraction(self, front, text):
        """Scans the digits after "." and an optional exponent into a float. The "." has been read."""
        mantissa = 0.0
        position = 1.0

        c = self.read()
        while Lexer.is_digit(c):
            position /= 10
            mantissa += int(c) * position
            c = self.read()

        if c is not None:
            self.putback(c)

        value = front + mantissa
        exponent = self.scan_exponent()
        if exponent is not None:
            value = Lexer.scale(value, exponent)

        return Token(TokenKind.FLOAT, value, repr(value))

    def scan_exponent(self):
        """Scans "e"/"E" followed by an optional sign and digits. Returns None if there is no exponent."""
        c = self.read()
        if c not in ("e", "E"):
            if c is not None:
                self.putback(c)
            return None

        sign = self.read()
        if sign is None:
            raise MalformedFloat()
        if sign not in ("+", "-"):
            self.putback(sign)

        exponent, __ = self.scan_base(10)
        return -exponent if sign == "-" else exponent

    @staticmethod
    def scale(num, exponent):
        """num * 10**exponent. Overflows to infinity."""
        try:
            return num * 10.0 ** exponent
        except OverflowError:
            return float("inf") if num else 0.0

    def match_keyword(self):
        ident = self.scan_ident()
        if ident in Lexer.KEYWORDS:
            return Token(Lexer.KEYWORDS[ident])
        return Token(TokenKind.IDENT, ident)

    def scan_ident(self):
        ident = ""
        c = self.read()
        while c is not None and (c.isalnum() or c == "_"):
            ident += c
            c = self.read()

        if c is not None:
            self.putback(c)
        return ident

    def scan_string(self):
        """Scans string contents up to the closing quote. The opening quote has been read."""
        string = ""
        c = self.read()
        while c is not None:
            if c == "\"":
                return string

            if c == "\\":
                escape = self.read()
                if escape is not None:
                    if escape in Lexer.ESCAPES:
                        string += Lexer.ESCAPES[escape]
                    else:
                        self.putback(escape)
                        string += "\\"
                    c = self.read()
                    continue

            string += c
            c = self.read()

        raise UnterminatedString()

    def scan_char(self):
        """Scans a single character and its closing quote. The opening quote has been read."""
        c = self.read()
        if c is None:
            raise UnterminatedCharacterConstant()

        closing = self.read()
        if closing is None:
            raise UnterminatedCharacterConstant()
        if closing != "'":
            raise CharacterConstantTooLong()
        return c


def _symbols():
    """Source text of every token kind that has a fixed spelling. Used to display tokens in error messages."""
    symbols = {kind: symbol for symbol, kind in Lexer.SINGLES.items()}
    for first, (single, doubles) in Lexer.DOUBLES.items():
        symbols[single] = first
        for second, kind in doubles.items():
            symbols[kind] = first + second

    symbols[TokenKind.DOT] = "."
    symbols.update({kind: keyword for keyword, kind in Lexer.KEYWORDS.items()})
    return symbols


SYMBOLS = _symbols()
