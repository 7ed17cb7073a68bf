"""
State machine configuration model and YAML loader.
"""

import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Callable, Optional, Union

from .exceptions import ConfigError


logger = logging.getLogger(__name__)


@dataclass
class FSMConfiguration:
    """Options recognised by ``StateMachine``"""
    name: str = "fsm"
    initial: str = ""
    states: Dict[str, List[str]] = field(default_factory=dict)  # state -> reachable states
    error: Optional[Callable[..., Any]] = None  # Error sink
    methods: Dict[str, Callable[..., Any]] = field(default_factory=dict)  # event -> handler
    history_size: int = 20


class ConfigParser:
    """Parser for state machine definitions"""

    @staticmethod
    def from_file(filepath: Union[str, Path]) -> FSMConfiguration:
        """Load a state machine definition from a YAML file"""
        filepath = Path(filepath)

        try:
            with open(filepath, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}") from e

        logger.debug(f"Loaded state machine definition from {filepath}")
        return ConfigParser.from_dict(data or {})

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> FSMConfiguration:
        """Parse a state machine definition from a dictionary"""
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        states = ConfigParser._parse_states(data.get('states') or {})

        for entry in data.get('transitions') or []:
            from_state, to_state = ConfigParser._parse_transition(entry)
            targets = states.setdefault(from_state, [])
            if to_state not in targets:
                targets.append(to_state)

        history_size = data.get('history_size', 20)
        if not isinstance(history_size, int) or isinstance(history_size, bool) or history_size < 0:
            raise ConfigError(f"history_size must be a non-negative integer, got {history_size!r}")

        initial = data.get('initial')
        name = data.get('name')
        return FSMConfiguration(
            name='fsm' if name is None else str(name),
            initial='' if initial is None else str(initial),
            states=states,
            history_size=history_size,
        )

    @staticmethod
    def _parse_states(data: Any) -> Dict[str, List[str]]:
        """Normalise the transition table"""
        if not isinstance(data, dict):
            raise ConfigError(f"'states' must be a mapping, got {type(data).__name__}")

        states = {}
        for state, targets in data.items():
            if targets is None:
                targets = []
            elif isinstance(targets, (str, int, float)):
                targets = [targets]
            elif not isinstance(targets, list):
                raise ConfigError(
                    f"Targets of state '{state}' must be a list, got {type(targets).__name__}"
                )
            states[str(state)] = [str(t) for t in targets]

        return states

    @staticmethod
    def _parse_transition(data: Any):
        """Parse a ``{from: ..., to: ...}`` transition entry"""
        if not isinstance(data, dict) or 'from' not in data or 'to' not in data:
            raise ConfigError(f"Transition entries need 'from' and 'to' keys, got {data!r}")
        return str(data['from']), str(data['to'])
