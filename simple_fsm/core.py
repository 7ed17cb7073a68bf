"""
Core state machine implementation with lifecycle events and optional Prometheus metrics.
"""

import logging
import time
from types import MethodType
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from typing_extensions import Self

from .config import FSMConfiguration
from .events import LifecycleEvent
from .exceptions import ConfigError, IllegalTransitionError, UnknownStateError
from .metrics import TransitionMetrics

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


@dataclass
class TransitionRecord:
    """A completed transition"""
    from_state: str
    to_state: str
    params: Tuple[Any, ...] = ()
    latency_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class StateMachine:
    """
    A finite state machine driven by a static transition table.

    Every successful ``to()`` fires, in order, ``onAfter<Prev>``,
    ``onBefore<Next>``, ``on<Next>`` and ``onChange``. The current state
    moves between the second and third event. Failures (illegal
    transitions and exceptions raised by handlers) are passed to the
    ``error`` sink when one is configured, otherwise they are raised to
    the caller of ``to()``.

    All work happens synchronously on the calling thread; callers sharing
    a machine between threads must serialise ``to()`` themselves.
    """

    def __init__(self,
                 initial: str = '',
                 states: Optional[Dict[str, Sequence[str]]] = None,
                 error: Optional[Handler] = None,
                 methods: Optional[Mapping[str, Handler]] = None,
                 name: str = 'fsm',
                 history_size: int = 20,
                 metrics: Optional[TransitionMetrics] = None):
        """
        Initialize state machine.

        Args:
            initial: Initial state
            states: Transition table, state -> states reachable from it
            error: Optional error sink, called with the error and its context
            methods: Handlers registered with ``on`` at construction
            name: Name used in logs and diagrams
            history_size: Number of completed transitions kept
            metrics: Optional Prometheus collectors
        """
        self.name = name
        self.transitions = states if states is not None else {}
        self.current = initial
        self.error = error
        self.events: Dict[str, List[Handler]] = {}
        self.metrics = metrics

        if not isinstance(history_size, int) or isinstance(history_size, bool) or history_size < 0:
            raise ValueError(f"history_size must be a non-negative integer, got {history_size!r}")

        self._history: List[TransitionRecord] = []
        self._history_size = history_size

        for event, handler in (methods or {}).items():
            self.on(event, handler)

        if self.metrics:
            self.metrics.set_state(self.current)

    @classmethod
    def from_config(cls,
                    config: Union[FSMConfiguration, Mapping[str, Any]],
                    metrics: Optional[TransitionMetrics] = None) -> "StateMachine":
        """Create a state machine from a configuration object or mapping"""
        if not isinstance(config, FSMConfiguration):
            try:
                config = FSMConfiguration(**config)
            except TypeError as e:
                raise ConfigError(f"Invalid state machine configuration: {e}") from e
        return cls(
            initial=config.initial,
            states=config.states,
            error=config.error,
            methods=config.methods,
            name=config.name,
            history_size=config.history_size,
            metrics=metrics,
        )

    def on(self, event: str, handler: Handler) -> Self:
        """Attach a handler to an event; the same handler may be attached repeatedly"""
        self.events.setdefault(str(event), []).append(handler)
        logger.debug(f"{self.name}: registered handler for {event}")
        return self

    def off(self, event: str, handler: Handler) -> Self:
        """
        Remove the first registration of a handler, if any.

        Handlers match by identity. Bound methods also match by equality,
        since each attribute access creates a new method object.
        """
        handlers = self.events.get(str(event)) or []
        index = next((i for i, h in enumerate(handlers)
                      if h is handler or (isinstance(handler, MethodType) and h == handler)), None)
        if index is not None:
            del handlers[index]
            logger.debug(f"{self.name}: removed handler for {event}")
        return self

    def to(self, next_state: str, *params: Any) -> Self:
        """
        Transition to ``next_state``.

        Extra ``params`` are appended to the arguments of every lifecycle
        event fired for this transition.
        """
        prev = self.current
        logger.debug(f"{self.name}: attempting transition {prev} -> {next_state}")

        if prev not in self.transitions:
            self._reject(UnknownStateError(prev, next_state), params)
            return self

        if next_state not in self.transitions[prev]:
            self._reject(IllegalTransitionError(prev, next_state), params)
            return self

        start = time.perf_counter()

        self._emit(LifecycleEvent.after(prev), (next_state,) + params)
        self._emit(LifecycleEvent.before(next_state), (prev,) + params)

        self.current = next_state
        if self.metrics:
            self.metrics.set_state(next_state)

        try:
            self._emit(LifecycleEvent.enter(next_state), (prev,) + params)
            self._emit(LifecycleEvent.change(), (prev, next_state) + params)
        finally:
            self._record_transition(prev, next_state, params, start)

        logger.info(f"{self.name}: transitioned {prev} -> {next_state}")
        return self

    def can(self, next_state: str) -> bool:
        """Whether ``to(next_state)`` would be accepted from the current state"""
        return next_state in self.transitions.get(self.current, ())

    def available(self) -> List[str]:
        """States reachable from the current state"""
        return list(self.transitions.get(self.current, ()))

    def _reject(self, error: IllegalTransitionError, params: Tuple[Any, ...]):
        logger.warning(f"{self.name}: {error}")
        if self.metrics:
            self.metrics.record_rejected(error.from_state, error.to_state)
        self._on_error(error, error.from_state, error.to_state, *params)

    def _on_error(self, *args: Any):
        """Hand an error to the sink, or raise the primary error without one"""
        if callable(self.error):
            self.error(*args)
        else:
            raise args[0]

    def _emit(self, event: Union[LifecycleEvent, str], args: Tuple[Any, ...]):
        """
        Call every handler of ``event`` in registration order.

        A failing handler does not stop the remaining ones. With a sink
        each failure is handed over as it happens; without one the first
        failure is raised once all handlers have run.
        """
        event_name = str(event)
        handlers = self.events.get(event_name)
        if not handlers:
            return

        failures = []
        for handler in list(handlers):
            try:
                handler(*args)
            except Exception as e:
                logger.debug(f"{self.name}: handler for {event_name} failed: {e!r}")
                if self.metrics:
                    self.metrics.record_handler_error(event_name)
                if callable(self.error):
                    self._on_error(e)
                else:
                    failures.append(e)

        if failures:
            for extra in failures[1:]:
                logger.error(f"{self.name}: additional handler failure on {event_name}: {extra!r}")
            self._on_error(failures[0])

    def _record_transition(self,
                           from_state: str,
                           to_state: str,
                           params: Tuple[Any, ...],
                           start: float):
        """Record transition in metrics and history"""
        latency = time.perf_counter() - start

        if self.metrics:
            self.metrics.record_transition(from_state, to_state, latency)

        self._history.append(TransitionRecord(
            from_state=from_state,
            to_state=to_state,
            params=params,
            latency_ms=latency * 1000,
        ))
        while len(self._history) > self._history_size:
            self._history.pop(0)

    # Public API for introspection
    def get_history(self, limit: int = 10) -> List[TransitionRecord]:
        """Get the most recent transitions, oldest first"""
        if limit <= 0:
            return []
        return self._history[-limit:]

    def visualize(self) -> str:
        """Generate state diagram in PlantUML format"""
        lines = ["@startuml", f"title {self.name} State Machine", ""]

        states = list(self.transitions)
        for targets in self.transitions.values():
            for target in targets:
                if target not in states:
                    states.append(target)
        if self.current and self.current not in states:
            states.append(self.current)

        for state in states:
            if state == self.current:
                lines.append(f"state {state} #yellow : Current State")
            else:
                lines.append(f"state {state}")

        lines.append("")

        for from_state, targets in self.transitions.items():
            for to_state in dict.fromkeys(targets):
                lines.append(f"{from_state} --> {to_state}")

        lines.append("@enduml")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<StateMachine {self.name!r} current={self.current!r}>"
