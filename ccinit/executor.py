"""
Running step commands with the terminal handed over to the child.
"""
import logging
import shlex
import subprocess
from typing import Callable, List, Sequence

from .expansion import expand


def build_argv(command: str, args: Sequence[str],
               expander: Callable[[str], str] = expand) -> List[str]:
    """Expand the command and each argument independently."""
    return [expander(command)] + [expander(arg) for arg in args]


def execute(command: str, args: Sequence[str] = ()) -> int:
    """
    Expand and run a command, inheriting stdin, stdout and stderr.

    Returns the child's return code, negative when it was killed by a
    signal. A non-zero status is reported but not raised. OSError is raised
    when the program cannot be started, ValueError when an argument holds a
    NUL byte.
    """
    argv = build_argv(command, args)

    logging.info(f"Executing: {shlex.join(argv)}")
    process = subprocess.run(argv, check=False)
    returncode = process.returncode

    if returncode > 0:
        logging.warning(f"Command exited with code: {returncode}")
    elif returncode < 0:
        logging.warning(f"Command terminated by signal: {-returncode}")

    return returncode
