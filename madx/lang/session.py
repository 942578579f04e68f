"""Session control for the madx language. Runs source through the lexer, parser and evaluator, either line by line in
command-line mode or all at once in file interpretation mode.
"""

import re

from madx.lang.error import GenericException
from madx.lang.evaluator import evaluate
from madx.lang.grammar import Parser
from madx.lang.lexical import Lexer


def format_value(value):
    """Integers print as decimal, floats with repr so that 2.0 is distinguishable from 2."""
    return repr(value) if isinstance(value, float) else str(value)


class Session:
    """Governs a madx session: owns the variables shared by every statement run in it."""
    SH_FILE = "<in>"  # command-line interpreter filename

    # strings, character constants, line comments and block comments (an open block comment runs to the end)
    NOT_CODE = re.compile(r"\"(?:\\.|[^\"\\])*\"|'[^']*'|//[^\n]*|/\*.*?(?:\*/|\Z)", re.DOTALL)

    def __init__(self, error_handler, path=SH_FILE, cmd_line=True):
        self.error_handler = error_handler
        if path != Session.SH_FILE:
            self.error_handler.register_file(path)

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.variables = {}  # dict of name: value, lives as long as the session
        self.results = []    # values of evaluated statements not yet popped, oldest first
        self.source = ""     # contents of path in file mode

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    self.source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path) from None

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line, add_to_prev=""):
        """Prepends add_to_prev, the unfinished previous lines, to line. Returns updated value of line and whether a
        compound statement is still open, in which case the next line should be added to it. Braces inside comments,
        strings and character constants are not counted.
        """
        if add_to_prev:
            line = add_to_prev + "\n" + line
        code = Session.NOT_CODE.sub("", line)
        return line, code.count("{") > code.count("}")

    def parse(self, source):
        """Yields the tree of every non-empty statement in source without evaluating it."""
        parser = Parser(Lexer(source))
        while not parser.at_end():
            tree = parser.parse()
            if tree is not None:
                yield tree

    def execute(self, source):
        """Evaluates the statements in source one at a time, yielding each value as soon as it is computed. A statement
        is only parsed once the previous one has been evaluated, so an error leaves earlier assignments in place. Each
        value is also queued in self.results until it is popped.
        """
        for tree in self.parse(source):
            value = evaluate(tree, self.variables)
            self.results.append(value)
            yield value

    def run(self, source=None):
        """Runs source (by default, the file this session was opened with). Returns the values it produced, which are
        popped from self.results. Will raise any errors that are encountered.
        """
        return [self.pop() for __ in self.execute(self.source if source is None else source)]

    def pop(self):
        """Removes and returns the oldest result."""
        return self.results.pop(0)
