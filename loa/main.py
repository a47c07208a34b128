"""Runs .loa files or starts command-line mode. Also uses the error handling context manager. Called from the loa
console script.
"""

import argparse

from loa.lang.error import ErrorHandler
from loa.lang.session import Session
from loa.lang.shell import Shell


VERSION = "0.1.0"


def main(argv=None):
    """Runs Loa interpreter. Called from loa console script."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="loa", description="Loa interpreter")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--format", action="store_true", help="print canonical rendering of file instead of running")
        parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
        args = parser.parse_args(argv)

        if args.file is not None:
            sess = Session(error_handler, args.file)
            if args.format:
                print(sess.format(), end="")
            else:
                sess.run()

        elif args.format:
            parser.error("--format requires a file")

        else:
            Shell(Session(error_handler, Session.SH_FILE, cmd_line=True)).cmdloop()


if __name__ == "__main__":
    main()
