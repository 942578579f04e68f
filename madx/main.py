"""Uses the madx lexer, parser and evaluator to interpret .mx files, run source given on the command line, or run in
command-line mode. Also uses error handling context manager. Called from the madx console script.
"""

import argparse

from madx.lang.error import ErrorHandler
from madx.lang.session import Session, format_value
from madx.lang.shell import Shell


def main():
    """Runs madx interpreter. Called from madx console script."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="madx", description="madx expression language interpreter")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("-c", dest="source", help="run SOURCE instead of a file")
        parser.add_argument("--tree", action="store_true", help="print the syntax tree of every statement instead of "
                                                                "evaluating it")
        args = parser.parse_args()

        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False)
            source = sess.source

        elif args.source is not None:
            sess = Session(error_handler)
            error_handler.fatal = True  # not interactive, so stop at the first error
            source = args.source

        else:
            Shell(Session(error_handler)).cmdloop()
            return

        if args.tree:
            for tree in sess.parse(source):
                print(tree.display())
        else:
            for __ in sess.execute(source):
                print(format_value(sess.pop()))
