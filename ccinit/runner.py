"""
Interactive init runner: asks the questions from ~/.ccinit.json and runs the
commands the user agrees to.
"""
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from .config import (
    Config,
    ConfirmStep,
    SelectionStep,
    Step,
    default_config_path,
    load_config,
)
from .executor import execute
from .prompts import SelectionMenu, answer_hint, confirm

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)

EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_INVALID = 2
EXIT_INTERRUPTED = 130
EXIT_CONFIG_MISSING = 100


@dataclass
class Invocation:
    """One command started (or attempted) on behalf of a step."""
    step: Step
    args: List[str] = field(default_factory=list)
    exit_code: Optional[int] = None
    error: Optional[str] = None  # set when the command could not be started

    @property
    def label(self) -> str:
        return shlex.join([self.step.command, *self.args])


class CcinitRunner:
    """Walks the configured steps in order and dispatches each one."""

    def __init__(self, config_path: Optional[str] = None, *,
                 stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None,
                 executor: Callable[[str, Sequence[str]], int] = execute,
                 read_key: Optional[Callable[[], bytes]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config: Optional[Config] = None
        self.stdin = stdin
        self.stdout = stdout
        self.executor = executor
        self.read_key = read_key

    def load(self) -> Config:
        """Resolve the config path and load the steps."""
        if self.config_path is None:
            self.config_path = default_config_path()

        logging.debug(f"Loading config from {self.config_path}")
        self.config = load_config(self.config_path)
        return self.config

    def run(self) -> List[Invocation]:
        """
        Run every step in declared order.

        A command that cannot be started is logged and recorded, and the run
        moves on. Closed input and other I/O errors propagate.

        Returns:
            Every command invocation, in the order they happened
        """
        if self.config is None:
            self.load()

        invocations: List[Invocation] = []
        logging.debug(f"Running {len(self.config.steps)} steps...")

        for step in self.config.steps:
            if isinstance(step, ConfirmStep):
                invocations.extend(self.run_confirm_step(step))
            else:
                invocations.extend(self.run_selection_step(step))

        started = [inv for inv in invocations if inv.error is None]
        logging.debug(f"Run complete: {len(started)} of {len(invocations)} commands started")
        return invocations

    def run_confirm_step(self, step: ConfirmStep) -> List[Invocation]:
        if not confirm(step.name, step.default, stdin=self.stdin, stdout=self.stdout):
            logging.debug(f"Skipped: {step.name}")
            return []
        return [self._invoke(step, step.args)]

    def run_selection_step(self, step: SelectionStep) -> List[Invocation]:
        if not step.options:
            logging.debug(f"Skipping '{step.selection}': no options")
            return []

        menu = SelectionMenu(
            step.selection,
            step.options,
            stdout=self.stdout,
            read_key=self.read_key,
        )
        chosen = menu.run()

        return [
            self._invoke(step, step.arguments_for(option))
            for option, selected in zip(step.options, chosen)
            if selected
        ]

    def _invoke(self, step: Step, args: Sequence[str]) -> Invocation:
        invocation = Invocation(step=step, args=list(args))
        try:
            invocation.exit_code = self.executor(step.command, invocation.args)
        except (OSError, ValueError) as e:
            invocation.error = str(e)
            logging.error(f"Could not start '{invocation.label}': {e}")
        return invocation

    def describe(self) -> str:
        """Generate a text overview of the configured steps."""
        if self.config is None:
            self.load()

        lines = ["Steps:", "=" * 50]

        for number, step in enumerate(self.config.steps, start=1):
            if isinstance(step, ConfirmStep):
                command = shlex.join([step.command, *step.args])
                lines.append(f"{number}. {step.name}? {answer_hint(step.default)} -> {command}")
            else:
                lines.append(f"{number}. {step.selection}")
                for option in step.options:
                    checkbox = "[x]" if option.default else "[ ]"
                    command = shlex.join([step.command, *step.arguments_for(option)])
                    lines.append(f"     {checkbox} {option.name} -> {command}")

        if not self.config.steps:
            lines.append("(no steps)")

        return "\n".join(lines)


def main():
    """Main entry point."""
    import sys

    list_only = '--list' in sys.argv or '-l' in sys.argv
    debug = '--debug' in sys.argv or '-d' in sys.argv

    if debug:
        logging.getLogger().setLevel(logging.DEBUG)

    runner = CcinitRunner()

    try:
        runner.load()
    except ValueError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(EXIT_CONFIG_INVALID)
    except OSError as e:
        logging.error(f"{e}")
        print("No steps available")
        sys.exit(EXIT_CONFIG_MISSING)

    if list_only:
        print(runner.describe())
        return

    try:
        invocations = runner.run()
    except KeyboardInterrupt:
        print()
        sys.exit(EXIT_INTERRUPTED)
    except EOFError as e:
        logging.error(f"{e}")
        sys.exit(EXIT_RUNTIME_ERROR)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=debug)
        sys.exit(EXIT_RUNTIME_ERROR)

    # Exit with error if any command could not be started
    failed = [inv.label for inv in invocations if inv.error is not None]
    if failed:
        logging.error(f"Commands that failed to start: {', '.join(failed)}")
        sys.exit(EXIT_RUNTIME_ERROR)


if __name__ == "__main__":
    main()
