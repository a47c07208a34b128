"""Handles interactive/command-line mode for the Loa interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """Loa interpreter shell. A line ending in ':' opens a block, which is run once an empty line closes it."""
    intro = "Loa interpreter :: Python backend\nType 'help' for more information."
    prompt = "loa> "
    secondary_prompt = "...  "  # used while a block is open
    _tmp_prompt = "loa> "       # also used for prompt swapping after a block

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_lines = []

    def onecmd(self, line):
        """Lines of an open block are collected verbatim: cmd.Cmd would otherwise strip their indentation."""
        if not self._tmp_lines:
            return super().onecmd(line)

        if line == "EOF":
            self.emptyline()
            return self.do_EOF("")
        if line.strip():
            self._tmp_lines.append(line)
            return False
        return self.emptyline()

    def default(self, line):
        """Executes arbitrary Loa statement, or opens a block."""
        if line.rstrip().endswith(":"):
            self._tmp_lines = [line]
            self.prompt = self.secondary_prompt
            return

        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            self.sess.run(line + "\n")

    def emptyline(self):
        """Closes and runs the open block, if any. Does not repeat previous command."""
        if self._tmp_lines:
            source = "\n".join(self._tmp_lines) + "\n"
            self._tmp_lines = []
            self.prompt = self._tmp_prompt

            with self.sess.error_handler:
                self.sess.run(source)
        return False

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro. 'help' followed by anything else is a Loa statement."""
        if arg:
            self.default(self.lastcmd)
            return False
        print("Welcome to the Loa interpreter!\n\n"
              "Loa is a small scripting language with variables, arithmetic, strings, if/else if/else, \n"
              "while loops and functions. Blocks are opened with ':' and indented.\n\n"
              "Try it out by typing 'x = 10', then 'print(x * 2)'. Functions look like this:\n\n"
              "    fun double(n):\n"
              "        return n * 2\n\n"
              "End a block with an empty line. Type 'exit' to quit.")

    def do_EOF(self, arg):
        """Exits interpreter."""
        print()
        return self.do_exit("")

    def do_exit(self, arg):
        """Exits interpreter. 'exit' followed by anything else is a Loa statement about a variable named exit."""
        if arg:
            self.default(self.lastcmd)
            return False
        return True
