"""
Lifecycle event naming.

The engine dispatches on typed events and only turns them into the
string keys used by ``on``/``off`` at the registry boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


def capitalize(text: str) -> str:
    """Upper-case the first character, keep the rest verbatim"""
    return text[:1].upper() + text[1:]


class LifecycleKind(Enum):
    """Lifecycle event kinds fired during a transition"""
    AFTER = "onAfter"    # Leaving a state
    BEFORE = "onBefore"  # About to enter a state
    ENTER = "on"         # Entered a state
    CHANGE = "onChange"  # Any completed transition


@dataclass(frozen=True)
class LifecycleEvent:
    """A lifecycle event bound to the state it concerns"""
    kind: LifecycleKind
    state: Optional[str] = None

    @property
    def key(self) -> str:
        """Event name as registered with ``StateMachine.on``"""
        if self.kind is LifecycleKind.CHANGE:
            return self.kind.value
        return self.kind.value + capitalize(self.state)

    @classmethod
    def after(cls, state: str) -> "LifecycleEvent":
        return cls(LifecycleKind.AFTER, state)

    @classmethod
    def before(cls, state: str) -> "LifecycleEvent":
        return cls(LifecycleKind.BEFORE, state)

    @classmethod
    def enter(cls, state: str) -> "LifecycleEvent":
        return cls(LifecycleKind.ENTER, state)

    @classmethod
    def change(cls) -> "LifecycleEvent":
        return cls(LifecycleKind.CHANGE)

    def __str__(self) -> str:
        return self.key
