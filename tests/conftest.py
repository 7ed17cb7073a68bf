import pytest

from simple_fsm import StateMachine


@pytest.fixture
def table():
    return {
        "idle": ["running"],
        "running": ["idle", "done"],
        "done": [],
    }


@pytest.fixture
def machine(table):
    return StateMachine(initial="idle", states=table, name="worker")


@pytest.fixture
def recorder():
    """Handler factory that appends (name, args) to a shared log"""
    log = []

    def make(name):
        def handler(*args):
            log.append((name, args))
        return handler

    make.log = log
    return make
