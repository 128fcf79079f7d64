"""
Configuration model and loader for ~/.ccinit.json.
"""
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

CONFIG_FILENAME = ".ccinit.json"
MAX_CONFIG_BYTES = 1024 * 1024

_DEFAULT_ANSWERS = {"y": True, "Y": True, "n": False, "N": False}


@dataclass(frozen=True)
class Option:
    """One checkbox entry of a selection step."""
    name: str
    args: Tuple[str, ...] = ()
    default: bool = False


@dataclass(frozen=True)
class ConfirmStep:
    """A yes/no question gating a single command."""
    name: str
    command: str
    args: Tuple[str, ...] = ()
    default: Optional[bool] = None  # None means the user must answer


@dataclass(frozen=True)
class SelectionStep:
    """A checkbox menu; every checked option runs the command once."""
    selection: str
    command: str
    args: Tuple[str, ...] = ()
    options: Tuple[Option, ...] = field(default_factory=tuple)

    def arguments_for(self, option: Option) -> Tuple[str, ...]:
        """Step arguments followed by the option's own arguments."""
        return self.args + option.args


Step = Union[ConfirmStep, SelectionStep]


@dataclass(frozen=True)
class Config:
    """Ordered, read-only list of steps."""
    steps: Tuple[Step, ...] = ()


def default_config_path() -> Path:
    """Return $HOME/.ccinit.json."""
    home = os.environ.get("HOME")
    if not home:
        raise FileNotFoundError("HOME environment variable not set")
    return Path(home) / CONFIG_FILENAME


def load_config(path: Path) -> Config:
    """
    Read and validate a config file.

    Raises:
        FileNotFoundError: the file does not exist
        OSError: the file cannot be read
        ValueError: the file is too large, is not valid JSON or does not
            match the step schema
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open('rb') as f:
        raw = f.read(MAX_CONFIG_BYTES + 1)

    if len(raw) > MAX_CONFIG_BYTES:
        raise ValueError(f"Config file exceeds {MAX_CONFIG_BYTES} bytes: {path}")

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    return parse_config(document)


def parse_config(document: Any) -> Config:
    """Build a Config from an already decoded JSON document."""
    if not isinstance(document, dict):
        raise ValueError("Config must be a JSON object")

    steps = document.get("steps")
    if not isinstance(steps, list):
        raise ValueError("Config must contain a 'steps' list")

    return Config(steps=tuple(
        _parse_step(entry, index) for index, entry in enumerate(steps, start=1)
    ))


def _parse_step(entry: Any, index: int) -> Step:
    if not isinstance(entry, dict):
        raise ValueError(f"Step {index} must be an object")

    has_name = "name" in entry
    has_selection = "selection" in entry
    if has_name and has_selection:
        raise ValueError(f"Step {index} has both 'name' and 'selection'")
    if not has_name and not has_selection:
        raise ValueError(f"Step {index} needs either 'name' or 'selection'")

    where = f"step {index}"
    command = _require_str(entry, "command", where)
    args = _string_list(entry, "args", where)

    if has_name:
        return ConfirmStep(
            name=_require_str(entry, "name", where),
            command=command,
            args=args,
            default=_parse_default_answer(entry.get("default"), where),
        )

    options = entry.get("options", [])
    if not isinstance(options, list):
        raise ValueError(f"'options' in {where} must be a list")

    return SelectionStep(
        selection=_require_str(entry, "selection", where),
        command=command,
        args=args,
        options=tuple(
            _parse_option(option, f"{where}, option {number}")
            for number, option in enumerate(options, start=1)
        ),
    )


def _parse_option(entry: Any, where: str) -> Option:
    if not isinstance(entry, dict):
        raise ValueError(f"{where} must be an object")

    default = entry.get("default", False)
    if default is None:
        default = False
    if not isinstance(default, bool):
        raise ValueError(f"'default' in {where} must be true or false")

    return Option(
        name=_require_str(entry, "name", where),
        args=_string_list(entry, "args", where),
        default=default,
    )


def _parse_default_answer(value: Any, where: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, str) or value not in _DEFAULT_ANSWERS:
        raise ValueError(f"'default' in {where} must be one of y, Y, n, N (got {value!r})")
    return _DEFAULT_ANSWERS[value]


def _require_str(entry: Dict[str, Any], key: str, where: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str):
        raise ValueError(f"'{key}' in {where} must be a string")
    return value


def _string_list(entry: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    value = entry.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' in {where} must be a list of strings")
    return tuple(value)
