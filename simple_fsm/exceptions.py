"""
Error types raised or routed by the state machine.
"""


class FSMError(Exception):
    """Base class for state machine errors"""
    pass


class IllegalTransitionError(FSMError):
    """Raised when the target state is not reachable from the current one"""

    def __init__(self, from_state: str, to_state: str, message: str = None):
        self.from_state = from_state
        self.to_state = to_state
        if message is None:
            message = f'Transition from "{from_state}" to "{to_state}" is not allowed'
        super().__init__(message)


class UnknownStateError(IllegalTransitionError):
    """Raised when the current state has no entry in the transition table"""

    def __init__(self, from_state: str, to_state: str, message: str = None):
        if message is None:
            message = f'State "{from_state}" is not declared in the transition table'
        super().__init__(from_state, to_state, message)


class ConfigError(FSMError):
    """Malformed state machine configuration"""
    pass
