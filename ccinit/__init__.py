"""
ccinit - An interactive init runner that asks before running setup commands.

This package reads a list of confirmation and checkbox steps from
~/.ccinit.json and runs the commands the user chooses, with ${VAR} and
$(command) expansion in every command and argument.
"""

from .config import (
    Config,
    ConfirmStep,
    Option,
    SelectionStep,
    load_config,
)
from .expansion import expand
from .runner import (
    CcinitRunner,
    main,
)

__version__ = "0.1.0"
__all__ = [
    "CcinitRunner",
    "Config",
    "ConfirmStep",
    "Option",
    "SelectionStep",
    "expand",
    "load_config",
    "main",
]
