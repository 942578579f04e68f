import errno
import unittest

from madx.lang.error import (CharacterConstantTooLong, DivisionByZero, ErrorHandler, ExpectError, GenericException,
                             IntegerOverflow, IntLiteralError, InvalidAssignment, InvalidCharacter, InvalidSyntax,
                             LexerFailure, LexerIoError, ShiftOverflow, UndefinedVariable, UnterminatedString)
from madx.lang.lexical import Token, TokenKind


class MessageTestCase(unittest.TestCase):

    def test_str(self):
        should_pass = {
            UnterminatedString(): "Lexer Error: Unterminated String",
            CharacterConstantTooLong(): "Lexer Error: > 1 Character in Character Constant",
            InvalidCharacter("$"): "Lexer Error: Invalid Character '$'",
            ExpectError(Token(TokenKind.SEMICOLON), Token(TokenKind.EOF)): "Parser Error: expected ';', got EOF",
            ExpectError(Token(TokenKind.RPAREN), Token(TokenKind.NUMBER, 3)): "Parser Error: expected ')', got NUMBER(3)",
            InvalidSyntax(Token(TokenKind.IDENT, "a")): "Parser Error: syntax error near IDENT('a')",
            InvalidSyntax(Token(TokenKind.LSHIFT)): "Parser Error: syntax error near '<<'",
            InvalidSyntax(Token(TokenKind.FN)): "Parser Error: syntax error near 'fn'",
            IntLiteralError("0x"): "Parser Error: Could not convert to int: '0x'",
            LexerFailure(IntegerOverflow()): "Lexer Error: Integer Overflow",
            UndefinedVariable("x"): "Runtime Error: x is not defined",
            InvalidAssignment(): "Runtime Error: left is not an identifier",
            DivisionByZero(): "Runtime Error: division by zero",
            ShiftOverflow(32): "Runtime Error: shift amount 32 is out of range",
            GenericException("'{}' could not be opened", "a.mx"): "'a.mx' could not be opened",
            GenericException("keyboard interrupt"): "keyboard interrupt",
        }
        for error, expected in should_pass.items():
            self.assertEqual(expected, str(error))

    def test_highlight_keeps_text(self):
        highlighted = ErrorHandler.highlight(UndefinedVariable("x"))
        self.assertTrue(highlighted.startswith("Runtime Error: "))
        self.assertTrue(highlighted.endswith(" is not defined"))
        self.assertIn("x", highlighted)

    def test_highlight_unwraps_lexer_failure(self):
        self.assertEqual("Lexer Error: Unterminated String", ErrorHandler.highlight(LexerFailure(UnterminatedString())))


class EqualityTestCase(unittest.TestCase):

    def test_same_class_and_args(self):
        self.assertEqual(UndefinedVariable("a"), UndefinedVariable("a"))
        self.assertNotEqual(UndefinedVariable("a"), UndefinedVariable("b"))
        self.assertNotEqual(DivisionByZero(), InvalidAssignment())
        self.assertEqual(LexerFailure(UnterminatedString()), LexerFailure(UnterminatedString()))

    def test_io_error_compares_kind(self):
        self.assertEqual(LexerIoError(OSError(errno.EIO, "one")), LexerIoError(OSError(errno.EIO, "two")))
        self.assertNotEqual(LexerIoError(OSError(errno.EIO, "one")), LexerIoError(OSError(errno.EPIPE, "one")))
        self.assertNotEqual(LexerIoError(OSError(errno.EIO, "one")), LexerIoError(ValueError("one")))
        self.assertEqual(1, len({LexerIoError(OSError(errno.EIO, "one")), LexerIoError(OSError(errno.EIO, "two"))}))

    def test_hashable(self):
        errors = {DivisionByZero(), DivisionByZero(), ShiftOverflow(32)}
        self.assertEqual(2, len(errors))


if __name__ == '__main__':
    unittest.main()
