"""
Simple FSM

A minimal finite state machine with lifecycle events and optional Prometheus metrics.
"""

__version__ = "0.1.0"

from .core import (
    StateMachine,
    TransitionRecord,
)

from .config import ConfigParser, FSMConfiguration
from .events import LifecycleEvent, LifecycleKind, capitalize
from .exceptions import ConfigError, FSMError, IllegalTransitionError, UnknownStateError
from .metrics import TransitionMetrics

__all__ = [
    "StateMachine",
    "TransitionRecord",
    "FSMConfiguration",
    "ConfigParser",
    "LifecycleEvent",
    "LifecycleKind",
    "TransitionMetrics",
    "FSMError",
    "IllegalTransitionError",
    "UnknownStateError",
    "ConfigError",
    "capitalize",
]
