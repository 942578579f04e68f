"""Syntax tree and recursive-descent parser for the madx language.

The grammar, from loosest to tightest binding:

```
<statement> ::= ";"                                         ; empty statement, produces no tree
              | "{" <statement>* "}"                        ; compound statement, glued left to right
              | <assign> ";"
<assign>    ::= <bitor> ("=" <assign>)?                     ; right-associative
<bitor>     ::= <bitxor> ("|" <bitxor>)*
<bitxor>    ::= <bitand> ("^" <bitand>)*
<bitand>    ::= <shift> ("&" <shift>)*
<shift>     ::= <add> (("<<" | ">>") <add>)*
<add>       ::= <mult> (("+" | "-") <mult>)*
<mult>      ::= <unary> (("*" | "/" | "%") <unary>)*
<unary>     ::= ("+" | "-" | "~") <unary> | <primary>
<primary>   ::= "(" <assign> ")" | <number> | <float> | <ident>
```

Every binary level is the same left-associative loop (see Parser.binary_op), so a level is fully described by its
table of token kind: Operation.
"""

from enum import Enum, auto

from madx.lang.error import (ExpectError, FloatLiteralError, IntLiteralError, InvalidSyntax, LexerError,
                             LexerFailure)
from madx.lang.lexical import INT_MAX, Token, TokenKind


class Operation(Enum):
    """Tag of a syntax tree node."""
    NUMBER = auto()
    FLOAT = auto()
    IDENT = auto()

    BITNOT = auto()
    NEGATE = auto()

    MULTIPLY = auto()
    DIVIDE = auto()
    MODULO = auto()
    ADD = auto()
    SUBTRACT = auto()

    LSHIFT = auto()
    RSHIFT = auto()

    BITOR = auto()
    BITXOR = auto()
    BITAND = auto()

    ASSIGN = auto()
    GLUE = auto()  # joins statements together


LEAVES = (Operation.NUMBER, Operation.FLOAT, Operation.IDENT)
UNARIES = (Operation.BITNOT, Operation.NEGATE)


class Node:
    """Binary syntax tree node. Leaves carry a value, unary nodes only a left child, every other node both children.
    Use the leaf/unary/binary constructors, which enforce that shape.
    """

    __slots__ = ("op", "value", "left", "right")

    def __init__(self, op, value=None, left=None, right=None):
        self.op = op
        self.value = value
        self.left = left
        self.right = right

    @classmethod
    def leaf(cls, op, value):
        assert op in LEAVES, f"{op} is not a leaf"
        return cls(op, value)

    @classmethod
    def unary(cls, op, operand):
        assert op in UNARIES, f"{op} is not unary"
        return cls(op, left=operand)

    @classmethod
    def binary(cls, op, left, right):
        assert op not in LEAVES + UNARIES, f"{op} is not binary"
        return cls(op, left=left, right=right)

    @property
    def nodes(self):
        """Children that are present, left first."""
        return [node for node in (self.left, self.right) if node is not None]

    def glued(self):
        """Statements joined by the chain of GLUE nodes starting here, first to last. A compound statement glues to
        the left, so the chain is as long as the block and is walked with a loop rather than recursion.
        """
        rights = []
        node = self
        while node.op is Operation.GLUE:
            rights.append(node.right)
            node = node.left
        return [node] + rights[::-1]

    def display(self, indents=0):
        """Recursively displays the tree with readable format. A chain of GLUE nodes displays as one GLUE listing
        every statement it joins.

        Format:
        <Operation>(nodes=[
            <Operation>(<value>),  # <-- leaf
            <Operation>(nodes=[
                ...
            ])
        ])
        """
        result = f"{'    ' * indents}{self.op.name}("
        if self.op in LEAVES:
            return result + f"{self.value!r})"

        result += "nodes=["
        for node in (self.glued() if self.op is Operation.GLUE else self.nodes):
            result += "\n" + node.display(indents + 1) + ","
        return result[:-1] + f"\n{'    ' * indents}])"

    def __repr__(self):
        if self.op in LEAVES:
            return f"Node({self.op.name}, {self.value!r})"
        return f"Node({self.op.name}, {', '.join(repr(node) for node in self.nodes)})"

    def __eq__(self, other):
        if not isinstance(other, Node) or self.op is not other.op or self.value != other.value:
            return False
        if self.op is Operation.GLUE:
            return self.glued() == other.glued()
        return self.left == other.left and self.right == other.right


class Parser:
    """Builds one syntax tree per statement from the tokens of a Lexer."""

    MULTIPLICATIVE = {
        TokenKind.ASTERISK: Operation.MULTIPLY,
        TokenKind.DIVIDE: Operation.DIVIDE,
        TokenKind.MODULO: Operation.MODULO,
    }
    ADDITIVE = {TokenKind.PLUS: Operation.ADD, TokenKind.MINUS: Operation.SUBTRACT}
    SHIFT = {TokenKind.LSHIFT: Operation.LSHIFT, TokenKind.RSHIFT: Operation.RSHIFT}
    BITAND = {TokenKind.AMPER: Operation.BITAND}
    BITXOR = {TokenKind.BITXOR: Operation.BITXOR}
    BITOR = {TokenKind.BITOR: Operation.BITOR}

    UNARY = {TokenKind.MINUS: Operation.NEGATE, TokenKind.BITNOT: Operation.BITNOT}

    def __init__(self, lexer):
        self.lexer = lexer

    def peek(self):
        """Lexer.peek, with LexerErrors wrapped in LexerFailure."""
        try:
            return self.lexer.peek()
        except LexerError as error:
            raise LexerFailure(error) from error

    def take(self):
        """Lexer.take, with LexerErrors wrapped in LexerFailure."""
        try:
            return self.lexer.take()
        except LexerError as error:
            raise LexerFailure(error) from error

    def consume(self):
        self.lexer.consume()

    def expect(self, kind):
        """Takes the next token, raising ExpectError if it is not of kind."""
        token = self.take()
        if token.kind is not kind:
            raise ExpectError(Token(kind), token)

    @staticmethod
    def int_literal(text):
        """Converts the text of an integer token, honouring the "0x" and "0" prefixes."""
        if text.startswith("0x"):
            digits, base = text[2:], 16
        elif text.startswith("0") and len(text) > 1:
            digits, base = text[1:], 8
        else:
            digits, base = text, 10

        try:
            value = int(digits, base)
        except ValueError:
            raise IntLiteralError(text) from None

        if value > INT_MAX:
            raise IntLiteralError(text)
        return value

    @staticmethod
    def float_literal(text):
        """Converts the text of a float token."""
        try:
            return float(text)
        except ValueError:
            raise FloatLiteralError(text) from None

    def primary(self):
        token = self.peek()

        if token.kind is TokenKind.LPAREN:
            self.consume()
            tree = self.assign()
            self.expect(TokenKind.RPAREN)
            return tree

        if token.kind is TokenKind.NUMBER:
            tree = Node.leaf(Operation.NUMBER, Parser.int_literal(token.text or str(token.value)))
        elif token.kind is TokenKind.FLOAT:
            tree = Node.leaf(Operation.FLOAT, Parser.float_literal(token.text or repr(token.value)))
        elif token.kind is TokenKind.IDENT:
            tree = Node.leaf(Operation.IDENT, token.value)
        else:
            raise InvalidSyntax(token)

        self.consume()
        return tree

    def unary(self):
        token = self.peek()

        if token.kind is TokenKind.PLUS:
            self.consume()
            return self.unary()

        if token.kind in Parser.UNARY:
            self.consume()
            return Node.unary(Parser.UNARY[token.kind], self.unary())

        return self.primary()

    def binary_op(self, next_level, operators):
        """Parses a left-associative chain of operators (token kind: Operation) whose operands are parsed by
        next_level, a method parsing the next tighter binding level.
        """
        left = next_level()

        while True:
            op = operators.get(self.peek().kind)
            if op is None:
                return left

            self.consume()
            left = Node.binary(op, left, next_level())

    def mult(self):
        return self.binary_op(self.unary, Parser.MULTIPLICATIVE)

    def add(self):
        return self.binary_op(self.mult, Parser.ADDITIVE)

    def bitwise_shift(self):
        return self.binary_op(self.add, Parser.SHIFT)

    def bitwise_and(self):
        return self.binary_op(self.bitwise_shift, Parser.BITAND)

    def bitwise_xor(self):
        return self.binary_op(self.bitwise_and, Parser.BITXOR)

    def bitwise_or(self):
        return self.binary_op(self.bitwise_xor, Parser.BITOR)

    def assign(self):
        """The left side is kept as parsed: only evaluation checks that it is an identifier."""
        left = self.bitwise_or()

        if self.peek().kind is TokenKind.ASSIGN:
            self.consume()
            return Node.binary(Operation.ASSIGN, left, self.assign())
        return left

    def statement(self):
        """Returns the tree of one statement, or None for an empty statement."""
        token = self.peek()

        if token.kind is TokenKind.LBRACE:
            return self.compound_statement()

        if token.kind is TokenKind.SEMICOLON:
            self.consume()
            return None

        tree = self.assign()
        self.expect(TokenKind.SEMICOLON)
        return tree

    def compound_statement(self):
        """Glues the statements inside braces into a left-leaning tree, so they evaluate in order."""
        self.expect(TokenKind.LBRACE)

        parent = None
        while self.peek().kind is not TokenKind.RBRACE:
            right = self.statement()
            if right is None:
                continue
            parent = right if parent is None else Node.binary(Operation.GLUE, parent, right)

        self.expect(TokenKind.RBRACE)
        return parent

    def at_end(self):
        """Whether or not every statement has been parsed."""
        return self.peek().kind is TokenKind.EOF

    def parse(self):
        """Parses a single statement. Call repeatedly until at_end to parse a whole program."""
        return self.statement()
