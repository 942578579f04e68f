import unittest

from madx.lang.error import (ExpectError, FloatLiteralError, IntLiteralError, InvalidSyntax, LexerFailure,
                             UnterminatedString)
from madx.lang.grammar import Node, Operation, Parser
from madx.lang.lexical import Lexer, Token, TokenKind


def num(value):
    return Node.leaf(Operation.NUMBER, value)


def ident(name):
    return Node.leaf(Operation.IDENT, name)


def parse(source):
    """Parses the first statement of source."""
    return Parser(Lexer(source)).parse()


class ParserTestCase(unittest.TestCase):

    def test_precedence(self):
        should_pass = {
            "1 + 1 * 2 / 4 - 9 % 5;": Node.binary(
                Operation.SUBTRACT,
                Node.binary(Operation.ADD, num(1),
                            Node.binary(Operation.DIVIDE, Node.binary(Operation.MULTIPLY, num(1), num(2)), num(4))),
                Node.binary(Operation.MODULO, num(9), num(5))
            ),
            "1 | 2 ^ 3 & 4 << 5;": Node.binary(
                Operation.BITOR, num(1),
                Node.binary(Operation.BITXOR, num(2),
                            Node.binary(Operation.BITAND, num(3), Node.binary(Operation.LSHIFT, num(4), num(5))))
            ),
            "1 << 2 + 3;": Node.binary(Operation.LSHIFT, num(1), Node.binary(Operation.ADD, num(2), num(3))),
            "(1 + 2) * 3;": Node.binary(Operation.MULTIPLY, Node.binary(Operation.ADD, num(1), num(2)), num(3)),
            "a = 1 | 2;": Node.binary(Operation.ASSIGN, ident("a"), Node.binary(Operation.BITOR, num(1), num(2))),
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, parse(case), case)

    def test_left_associative(self):
        should_pass = {
            "1 - 2 - 3;": Node.binary(Operation.SUBTRACT, Node.binary(Operation.SUBTRACT, num(1), num(2)), num(3)),
            "8 / 4 / 2;": Node.binary(Operation.DIVIDE, Node.binary(Operation.DIVIDE, num(8), num(4)), num(2)),
            "1 >> 2 << 3;": Node.binary(Operation.LSHIFT, Node.binary(Operation.RSHIFT, num(1), num(2)), num(3)),
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, parse(case), case)

    def test_assignment_is_right_associative(self):
        expected = Node.binary(Operation.ASSIGN, ident("a"), Node.binary(Operation.ASSIGN, ident("b"), num(1)))
        self.assertEqual(expected, parse("a = b = 1;"))

    def test_assignment_target_is_not_checked(self):
        self.assertEqual(Node.binary(Operation.ASSIGN, num(1), num(2)), parse("1 = 2;"))

    def test_unary(self):
        should_pass = {
            "-a;": Node.unary(Operation.NEGATE, ident("a")),
            "-~+a;": Node.unary(Operation.NEGATE, Node.unary(Operation.BITNOT, ident("a"))),
            "+1;": num(1),
            "- -1;": Node.unary(Operation.NEGATE, Node.unary(Operation.NEGATE, num(1))),
            "-1 * 2;": Node.binary(Operation.MULTIPLY, Node.unary(Operation.NEGATE, num(1)), num(2)),
            "2 - -1;": Node.binary(Operation.SUBTRACT, num(2), Node.unary(Operation.NEGATE, num(1))),
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, parse(case), case)

    def test_literals(self):
        should_pass = {
            "0x10;": num(16),
            "010;": num(8),
            "1e3;": num(1000),
            "2.5;": Node.leaf(Operation.FLOAT, 2.5),
            ".5;": Node.leaf(Operation.FLOAT, 0.5),
            "a1_b;": ident("a1_b"),
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, parse(case), case)

    def test_empty_statement(self):
        self.assertIsNone(parse(";"))
        self.assertIsNone(parse("{}"))
        self.assertIsNone(parse("{ ; ; }"))

    def test_compound_statement(self):
        should_pass = {
            "{ 1; }": num(1),
            "{ a = 1; ; b = 2; c; }": Node.binary(
                Operation.GLUE,
                Node.binary(Operation.GLUE, Node.binary(Operation.ASSIGN, ident("a"), num(1)),
                            Node.binary(Operation.ASSIGN, ident("b"), num(2))),
                ident("c")
            ),
            "{ { 1; 2; } 3; }": Node.binary(Operation.GLUE, Node.binary(Operation.GLUE, num(1), num(2)), num(3)),
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, parse(case), case)

    def test_statement_by_statement(self):
        parser = Parser(Lexer("a = 1; ; 2;"))
        self.assertEqual(Node.binary(Operation.ASSIGN, ident("a"), num(1)), parser.parse())
        self.assertFalse(parser.at_end())
        self.assertIsNone(parser.parse())
        self.assertEqual(num(2), parser.parse())
        self.assertTrue(parser.at_end())

    def test_expect_error(self):
        should_fail = {
            "1": ExpectError(Token(TokenKind.SEMICOLON), Token(TokenKind.EOF)),
            "1 2;": ExpectError(Token(TokenKind.SEMICOLON), Token(TokenKind.NUMBER, 2)),
            "(1;": ExpectError(Token(TokenKind.RPAREN), Token(TokenKind.SEMICOLON)),
            "a = (b = 2;": ExpectError(Token(TokenKind.RPAREN), Token(TokenKind.SEMICOLON)),
        }
        for case, expected in should_fail.items():
            with self.assertRaises(ExpectError, msg=case) as cm:
                parse(case)
            self.assertEqual(expected, cm.exception, case)

    def test_invalid_syntax(self):
        should_fail = {
            "fn;": Token(TokenKind.FN),
            "1 +;": Token(TokenKind.SEMICOLON),
            "{ 1;": Token(TokenKind.EOF),
            "* 2;": Token(TokenKind.ASTERISK),
            "'c';": Token(TokenKind.CHAR, "c"),
            "a = ;": Token(TokenKind.SEMICOLON),
        }
        for case, token in should_fail.items():
            with self.assertRaises(InvalidSyntax, msg=case) as cm:
                parse(case)
            self.assertEqual(InvalidSyntax(token), cm.exception, case)

    def test_lexer_failure(self):
        with self.assertRaises(LexerFailure) as cm:
            parse("a = \"abc")
        self.assertEqual(UnterminatedString(), cm.exception.error)

    def test_bad_int_literal(self):
        with self.assertRaises(IntLiteralError) as cm:
            parse("0x;")
        self.assertEqual(IntLiteralError("0x"), cm.exception)


class LiteralTestCase(unittest.TestCase):

    def test_int_literal(self):
        should_pass = {
            "0": 0,
            "42": 42,
            "0x1f": 31,
            "0xFF": 255,
            "017": 15,
            "00": 0,
            "2147483647": 2147483647,
        }
        for case, expected in should_pass.items():
            self.assertEqual(expected, Parser.int_literal(case), case)

        should_fail = ["0x", "09", "2147483648", "0x80000000", "abc", ""]
        for case in should_fail:
            self.assertRaises(IntLiteralError, Parser.int_literal, case)

    def test_float_literal(self):
        self.assertEqual(0.5, Parser.float_literal("0.5"))
        self.assertEqual(150.0, Parser.float_literal("150.0"))
        self.assertRaises(FloatLiteralError, Parser.float_literal, "1.5e")


class NodeTestCase(unittest.TestCase):

    def test_display(self):
        expected = ("ADD(nodes=[\n"
                    "    NUMBER(1),\n"
                    "    NEGATE(nodes=[\n"
                    "        IDENT('a')\n"
                    "    ])\n"
                    "])")
        self.assertEqual(expected, parse("1 + -a;").display())

    def test_repr(self):
        self.assertEqual("Node(ASSIGN, Node(IDENT, 'a'), Node(FLOAT, 1.5))", repr(parse("a = 1.5;")))

    def test_shape_is_enforced(self):
        self.assertRaises(AssertionError, Node.leaf, Operation.ADD, 1)
        self.assertRaises(AssertionError, Node.unary, Operation.NUMBER, num(1))
        self.assertRaises(AssertionError, Node.binary, Operation.NEGATE, num(1), num(2))

    def test_glued(self):
        self.assertEqual([num(1), num(2), ident("c")], parse("{ 1; 2; c; }").glued())
        self.assertEqual([num(1), Node.binary(Operation.GLUE, num(2), num(3))], parse("{ 1; { 2; 3; } }").glued())
        self.assertEqual([num(1)], num(1).glued())

    def test_display_glue_chain(self):
        expected = ("GLUE(nodes=[\n"
                    "    NUMBER(1),\n"
                    "    NUMBER(2),\n"
                    "    IDENT('c')\n"
                    "])")
        self.assertEqual(expected, parse("{ 1; 2; c; }").display())

    def test_long_compound_statement(self):
        source = "{" + " a = 1;" * 5000 + " }"
        tree = parse(source)
        self.assertEqual(5000, len(tree.glued()))
        self.assertEqual(tree, parse(source))
        self.assertNotEqual(tree, parse("{" + " a = 1;" * 4999 + " }"))
        self.assertEqual(5000 * 4 + 2, len(tree.display().splitlines()))

    def test_equality(self):
        self.assertEqual(num(1), num(1))
        self.assertNotEqual(num(1), Node.leaf(Operation.FLOAT, 1))
        self.assertNotEqual(num(1), num(2))
        self.assertNotEqual(Node.unary(Operation.NEGATE, num(1)), Node.unary(Operation.BITNOT, num(1)))


if __name__ == '__main__':
    unittest.main()
