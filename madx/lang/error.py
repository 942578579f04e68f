"""Error handling for the madx language. Every error the lexer, parser or evaluator can raise is a GenericException,
grouped into three families by the stage that raised it:

```
GenericException
 |-- LexerError        ; "Lexer Error: ..."    raised while scanning characters into tokens
 |-- ParserError       ; "Parser Error: ..."   raised while building the syntax tree (wraps LexerErrors)
 `-- EvaluationError   ; "Runtime Error: ..."  raised while walking the syntax tree
```

If another type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be used to throw a madx error. Subclasses format their args into
    their template; GenericException itself takes the template as its first arg, e.g.
    GenericException("'{}' could not be opened", path). Two errors are equal if they are of the same class and were
    raised with the same args, which lets tests compare them directly.
    """
    prefix = ""
    template = None

    def format(self, exprs):
        """Formats exprs, the values the error was raised with, into the message."""
        if self.template is None:
            msg, *exprs = exprs
            return msg.format(*exprs)
        return self.template.format(*exprs)

    @property
    def msg(self):
        """Message without the stage prefix."""
        return self.format(self.args)

    def __str__(self):
        return self.prefix + self.msg

    def __eq__(self, other):
        return type(self) is type(other) and self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))


class LexerError(GenericException):
    """Raised when the character stream cannot be turned into a token."""
    prefix = "Lexer Error: "


class UnterminatedString(LexerError):
    template = "Unterminated String"


class UnterminatedCharacterConstant(LexerError):
    template = "Unterminated Character Constant"


class CharacterConstantTooLong(LexerError):
    template = "> 1 Character in Character Constant"


class IntegerOverflow(LexerError):
    template = "Integer Overflow"


class MalformedFloat(LexerError):
    template = "Malformed Float"


class InvalidCharacter(LexerError):
    template = "Invalid Character '{}'"


class UnterminatedComment(LexerError):
    template = "Unterminated Comment"


class LexerIoError(LexerError):
    """Wraps an error raised by the underlying stream. Only the kind of the wrapped error (its class and errno) is
    compared, since messages differ between platforms.
    """
    template = "IO Error: {}"

    @property
    def error(self):
        return self.args[0]

    @property
    def kind(self):
        return type(self.error), getattr(self.error, "errno", None)

    def __eq__(self, other):
        return type(self) is type(other) and self.kind == other.kind

    def __hash__(self):
        return hash((type(self), self.kind))


class ParserError(GenericException):
    """Raised when the token stream does not follow the madx grammar."""
    prefix = "Parser Error: "


class ExpectError(ParserError):
    template = "expected {}, got {}"

    @property
    def expected(self):
        return self.args[0]

    @property
    def got(self):
        return self.args[1]


class InvalidSyntax(ParserError):
    template = "syntax error near {}"


class IntLiteralError(ParserError):
    template = "Could not convert to int: '{}'"


class FloatLiteralError(ParserError):
    template = "Could not convert to float: '{}'"


class LexerFailure(ParserError):
    """A LexerError raised while the parser was reading tokens. Displays as the wrapped error."""

    @property
    def error(self):
        return self.args[0]

    def __str__(self):
        return str(self.error)


class EvaluationError(GenericException):
    """Raised while evaluating a syntax tree. The statement being evaluated is abandoned."""
    prefix = "Runtime Error: "


class UndefinedVariable(EvaluationError):
    template = "{} is not defined"


class InvalidAssignment(EvaluationError):
    template = "left is not an identifier"


class DivisionByZero(EvaluationError):
    template = "division by zero"


class ShiftOverflow(EvaluationError):
    template = "shift amount {} is out of range"


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report madx errors instead."""
    ERROR = "red"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.path = None

    def register_file(self, path):
        """Registers path so that errors raised while running it name the file."""
        self.path = path

    @staticmethod
    def highlight(error):
        """Returns str(error) with the values it was raised with in bold."""
        if isinstance(error, LexerFailure):
            error = error.error
        args = error.args
        if error.template is None:
            msg, *args = args
            args = [msg] + [colored(str(arg), attrs=["bold"]) for arg in args]
        else:
            args = [colored(str(arg), attrs=["bold"]) for arg in args]
        return error.prefix + error.format(args)

    def throw(self, error, internal=False):
        """Prints error, a GenericException. Exits the process if this handler is fatal."""
        error_msg = ""
        if self.path is not None:
            error_msg += f"  File '{self.path}':\n"

        if internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + ErrorHandler.highlight(error)
        print(error_msg)

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("expression is nested too deeply"))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}: {}'", exc_type.__name__, exc_val), internal=True)
            do_exit = True

        return not do_exit
