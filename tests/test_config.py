import pytest

from simple_fsm import ConfigError, ConfigParser, FSMConfiguration, StateMachine


DOOR_YAML = """
name: door
initial: closed
history_size: 5
states:
  closed: [open, locked]
  open: closed
  locked: ~
transitions:
  - {from: locked, to: closed}
  - {from: closed, to: open}
"""


def test_from_file(tmp_path):
    path = tmp_path / "door.yaml"
    path.write_text(DOOR_YAML)

    config = ConfigParser.from_file(path)

    assert config == FSMConfiguration(
        name="door",
        initial="closed",
        states={"closed": ["open", "locked"], "open": ["closed"], "locked": ["closed"]},
        history_size=5,
    )


def test_machine_from_file(tmp_path):
    path = tmp_path / "door.yaml"
    path.write_text(DOOR_YAML)

    fsm = StateMachine.from_config(ConfigParser.from_file(str(path)))
    fsm.to("locked").to("closed").to("open")

    assert fsm.current == "open"
    assert fsm.name == "door"


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert ConfigParser.from_file(path) == FSMConfiguration()


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("states: [unclosed")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        ConfigParser.from_file(path)


def test_null_name_and_initial_use_defaults():
    config = ConfigParser.from_dict({"name": None, "initial": None})
    assert config.name == "fsm"
    assert config.initial == ""


def test_names_are_strings():
    config = ConfigParser.from_dict({"initial": 1, "states": {1: [2], 2: 1}})
    assert config.initial == "1"
    assert config.states == {"1": ["2"], "2": ["1"]}


@pytest.mark.parametrize("data, message", [
    (["not", "a", "mapping"], "must be a mapping"),
    ({"states": ["a", "b"]}, "'states' must be a mapping"),
    ({"states": {"a": {"b": 1}}}, "Targets of state 'a'"),
    ({"transitions": [{"from": "a"}]}, "'from' and 'to'"),
    ({"history_size": -1}, "history_size"),
    ({"history_size": "many"}, "history_size"),
])
def test_invalid_config(data, message):
    with pytest.raises(ConfigError, match=message):
        ConfigParser.from_dict(data)
