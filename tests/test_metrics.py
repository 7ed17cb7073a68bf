import pytest
from prometheus_client import CollectorRegistry

from simple_fsm import IllegalTransitionError, StateMachine, TransitionMetrics


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def door(registry):
    states = {"closed": ["open"], "open": ["closed"]}
    metrics = TransitionMetrics.for_table("door", states, "closed", registry=registry)
    return StateMachine(initial="closed", states=states, name="door", metrics=metrics)


def test_initial_state_exported(door, registry):
    assert registry.get_sample_value("door_state", {"door_state": "closed"}) == 1.0
    assert registry.get_sample_value("door_state", {"door_state": "open"}) == 0.0


def test_transition_counted(door, registry):
    door.to("open").to("closed").to("open")

    labels = {"from_state": "closed", "to_state": "open"}
    assert registry.get_sample_value("door_transitions_total", labels) == 2.0
    assert registry.get_sample_value("door_transition_latency_seconds_count", labels) == 2.0
    assert registry.get_sample_value("door_state", {"door_state": "open"}) == 1.0


def test_rejected_transition_counted(door, registry):
    with pytest.raises(IllegalTransitionError):
        door.to("locked")

    labels = {"from_state": "closed", "to_state": "locked"}
    assert registry.get_sample_value("door_rejected_transitions_total", labels) == 1.0
    assert registry.get_sample_value("door_state", {"door_state": "closed"}) == 1.0


def test_handler_errors_counted(door, registry):
    def broken(*args):
        raise RuntimeError("boom")

    door.on("onOpen", broken)
    with pytest.raises(RuntimeError):
        door.to("open")

    assert registry.get_sample_value("door_handler_errors_total", {"event": "onOpen"}) == 1.0


def test_for_table_collects_all_states(registry):
    metrics = TransitionMetrics.for_table(
        "fan-speed", {"off": ["low"], "low": ["high"]}, "off", registry=registry
    )
    assert metrics.state_names == ["high", "low", "off"]
    for state in ("off", "low", "high"):
        assert registry.get_sample_value("fan_speed_state", {"fan_speed_state": state}) is not None


def test_untracked_state_is_ignored(registry):
    metrics = TransitionMetrics("pump", ["on"], registry=registry)
    metrics.set_state("off")
    assert registry.get_sample_value("pump_state", {"pump_state": "on"}) == 1.0
