"""Handles interactive/command-line mode for the madx interpreter. Uses cmd as backend."""

import cmd

from madx.lang.session import Session, format_value


class Shell(cmd.Cmd):
    """madx interpreter shell."""
    intro = "madx interpreter :: Python backend\nType 'help' for more information, 'exit' to leave."
    prompt = ">>> "
    secondary_prompt = "... "  # used for line continuations
    _tmp_prompt = ">>> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    def default(self, line):
        """Executes arbitrary madx statements."""
        line, add_to_prev = Session.preprocess_line(line, self._tmp_line)

        if add_to_prev:
            self._tmp_line = line
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            for __ in self.sess.execute(line):
                print(format_value(self.sess.pop()))

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        if arg:
            return self.default(f"help {arg}")  # a statement that starts with a variable named help

        print("Welcome to the madx interpreter!\n\n"
              "Statements end with ';' and are evaluated as soon as they are entered. Variables are \n"
              "created by assigning to them and live until you leave the interpreter. Braces group \n"
              "statements into one whose value is the value of the last statement inside them.\n\n"
              "Try it out by typing 'a = 0x10;'. This will bind 16 to 'a'. Next, try typing \n"
              "'{ b = a << 2; b % 5; }', which evaluates to 4.")

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit("")

    def do_exit(self, arg):
        """Exits interpreter."""
        if arg:
            return self.default(f"exit {arg}")  # a statement that starts with a variable named exit
        return True
