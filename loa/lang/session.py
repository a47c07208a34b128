"""Session control for the Loa language. Runs Loa source, either from a file or typed into the interactive shell,
against a global scope that lives as long as the session does.
"""

from loa.core.environment import Environment
from loa.core.evaluation import Interpreter
from loa.core.lexical import tokenize
from loa.core.parser import parse
from loa.lang.error import LoaError


def run(source, output=None, environment=None):
    """Lexes, parses and executes source. Returns the global Environment the program ran in. Raises LoaError."""
    program = parse(tokenize(source))
    return Interpreter(output).execute(program, environment)


class Session:
    """Governs a Loa session, with control over the global scope. Errors are raised, not reported: wrap calls in the
    session's error_handler to report them.
    """
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path=SH_FILE, output=None, cmd_line=False):
        self.error_handler = error_handler

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode

        self.source = ""
        self.environment = Environment()
        self.interpreter = Interpreter(output)

        if self.cmd_line:
            self.error_handler.fatal = False

        self.error_handler.register_file(self.path, self.source)
        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    self.source = file.read()
            except OSError:
                raise LoaError(f"'{path}' could not be opened")

        elif not cmd_line:
            raise LoaError("'<in>' is a reserved filename")

        self.error_handler.register_file(self.path, self.source)  # now with the file's contents

    def add(self, source):
        """Replaces the pending source with source. Used by the shell, one complete statement at a time."""
        self.source = source
        self.error_handler.register_file(self.path, source)

    def parse(self):
        """Returns Program parsed from the pending source."""
        return parse(tokenize(self.source))

    def run(self, source=None):
        """Runs source (or the pending source if None) in this session's global scope."""
        if source is not None:
            self.add(source)
        self.interpreter.execute(self.parse(), self.environment)

    def format(self):
        """Returns the canonical rendering of the pending source."""
        return self.parse().render()
