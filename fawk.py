"""
fastawk command line launcher

Runs the ``fawk`` command from a source checkout without installing it.

Workflow:
1. The program text is taken from the command line or from -f files.
2. The Lexer tokenizes the program into tokens.
3. The Parser builds rules and functions from the tokens.
4. The Interpreter runs BEGIN rules, then the main rules once per input
   record, then END rules.
"""
import sys

from fastawk.cli import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
