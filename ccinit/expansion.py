"""
Expansion of ${VAR} and $(command) tokens in step commands and arguments.
"""
import logging
import os
import re
import subprocess
from typing import List

# Shortest match up to the first closing delimiter; an unterminated token
# does not match, so its '$' is copied through as a literal.
_TOKEN = re.compile(r'\$\{([^}]*)\}|\$\(([^)]*)\)')

_TRAILING_WHITESPACE = " \t\n\r\x0b\x0c"


def expand(text: str) -> str:
    """Replace ${VAR} with the environment value and $(cmd) with its output."""
    def replacer(match):
        var_name, command_line = match.group(1), match.group(2)
        if var_name is not None:
            return os.environ.get(var_name, "")
        return capture_output(command_line)

    return _TOKEN.sub(replacer, text)


def split_command_line(command_line: str) -> List[str]:
    """Split on spaces only; there is no quoting."""
    return [token for token in command_line.split(" ") if token]


def capture_output(command_line: str) -> str:
    """
    Run a command line and return its stdout with trailing whitespace removed.

    The child gets no stdin and its stderr is discarded. OSError from a
    program that cannot be started is left to the caller.
    """
    argv = split_command_line(command_line)
    if not argv:
        return ""

    logging.debug(f"  Substituting output of: {' '.join(argv)}")
    result = subprocess.run(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    return os.fsdecode(result.stdout).rstrip(_TRAILING_WHITESPACE)
