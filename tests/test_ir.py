"""Tests for the serialized program format."""
import json

import pytest

from tick_sml import compile, parse_program
from tick_sml.errors import IRFormatError, UnknownStateError, ValidationError
from tick_sml.ir import program_from_dict, program_to_dict
from tick_sml.machine import Machine
from tick_sml.validate import MAX_EXPRESSION_DEPTH

SOURCE = """
    globals:
        globals.low = 18
        globals.high = globals.low + 3
    default head:
        outputs.mode = "auto"
    state idle:
        head:
            outputs.heater = false
        when inputs.temperature < globals.low && !inputs.paused:
            outputs.heater = true
            changeto heating
        when inputs.temperature ~= -273.15:
            end
    state heating:
        when inputs.temperature >= globals.high || inputs.paused:
            outputs.heater = false
            changeto idle
        otherwise:
            outputs.heater = true
            outputs.power = (globals.high - inputs.temperature) ^ 2 / 2
"""


def minimal(**overrides):
    data = {
        "version": 1,
        "states": [{
            "name": "A",
            "head": [],
            "body": [{
                "condition": {"type": "literal", "value": True},
                "expressions": [],
                "state_op": "stay",
            }],
        }],
    }
    data.update(overrides)
    return data


class TestRoundTrip:
    def test_program_equality(self):
        """Decoding an encoded program gives an equal tree."""
        program = parse_program(SOURCE)
        assert program_from_dict(program_to_dict(program)) == program

    def test_survives_json(self):
        program = parse_program(SOURCE)
        text = json.dumps(program_to_dict(program))
        assert program_from_dict(json.loads(text)) == program

    def test_same_behavior(self):
        """A machine built from the decoded program ticks identically."""
        # Arrange
        original = compile(SOURCE)
        restored = Machine(program_from_dict(program_to_dict(original.program)))
        readings = [
            {"temperature": 17.0, "paused": False},
            {"temperature": 19.0, "paused": False},
            {"temperature": 21.5, "paused": False},
            {"temperature": 15.0, "paused": True},
            {"temperature": -273.15, "paused": True},
        ]

        # Act / Assert
        for reading in readings:
            assert original.run(reading) == restored.run(reading)
            assert original.current_state == restored.current_state
        assert original.finished and restored.finished

    def test_longest_expression(self):
        """The deepest expression the compiler accepts survives a round trip."""
        terms = " - ".join(["inputs.x"] * MAX_EXPRESSION_DEPTH)
        program = parse_program(f"state A:\n    always:\n        outputs.y = {terms}\n")
        assert program_from_dict(program_to_dict(program)) == program

    def test_layout(self):
        data = program_to_dict(parse_program(SOURCE))
        assert data["version"] == 1
        assert list(data["globals"]) == ["low", "high"]
        idle = data["states"][0]
        assert idle["name"] == "idle"
        assert idle["body"][0]["state_op"] == "changeto heating"
        assert idle["body"][1]["state_op"] == "end"
        assert idle["body"][0]["expressions"] == [{
            "target": {"store": "outputs", "name": "heater"},
            "value": {"type": "literal", "value": True},
        }]


class TestDecodeErrors:
    def test_minimal_program(self):
        program = program_from_dict(minimal())
        assert program.state_names() == ["A"]
        assert program.globals == ()

    def test_integer_literal_becomes_float(self):
        data = minimal(globals={"n": {"type": "literal", "value": 3}})
        value = program_from_dict(data).initializers["n"].value
        assert value == 3.0
        assert isinstance(value, float)

    def test_wrong_version(self):
        with pytest.raises(IRFormatError, match="Unsupported IR version 2"):
            program_from_dict(minimal(version=2))

    def test_missing_version(self):
        data = minimal()
        del data["version"]
        with pytest.raises(IRFormatError, match="None"):
            program_from_dict(data)

    def test_not_a_dict(self):
        with pytest.raises(IRFormatError):
            program_from_dict([])

    def test_missing_states(self):
        with pytest.raises(IRFormatError, match="malformed"):
            program_from_dict({"version": 1})

    def test_unknown_expression_type(self):
        data = minimal()
        data["states"][0]["body"][0]["condition"] = {"type": "call"}
        with pytest.raises(IRFormatError, match="call"):
            program_from_dict(data)

    def test_unknown_operator(self):
        data = minimal()
        data["states"][0]["body"][0]["condition"] = {
            "type": "binary",
            "op": "%",
            "left": {"type": "literal", "value": 1},
            "right": {"type": "literal", "value": 2},
        }
        with pytest.raises(IRFormatError, match="'%'"):
            program_from_dict(data)

    def test_unknown_store(self):
        data = minimal()
        data["states"][0]["head"] = [{
            "target": {"store": "locals", "name": "x"},
            "value": {"type": "literal", "value": 1},
        }]
        with pytest.raises(IRFormatError):
            program_from_dict(data)

    def test_bad_state_op(self):
        data = minimal()
        data["states"][0]["body"][0]["state_op"] = "jump A"
        with pytest.raises(IRFormatError, match="jump A"):
            program_from_dict(data)

    def test_unsupported_literal(self):
        data = minimal(globals={"n": {"type": "literal", "value": None}})
        with pytest.raises(IRFormatError, match="unsupported literal"):
            program_from_dict(data)

    def test_decoded_program_is_validated(self):
        data = minimal()
        data["states"][0]["body"][0]["state_op"] = "changeto missing"
        with pytest.raises(UnknownStateError):
            program_from_dict(data)

    def test_runaway_nesting(self):
        """Nesting too deep to rebuild is reported as a format error."""
        expr = {"type": "literal", "value": 1}
        for _ in range(5000):
            expr = {"type": "unary", "op": "-", "operand": expr}
        data = minimal()
        data["states"][0]["head"] = [{
            "target": {"store": "outputs", "name": "x"},
            "value": expr,
        }]
        with pytest.raises(IRFormatError, match="too deeply"):
            program_from_dict(data)

    def test_deep_but_buildable_program_fails_validation(self):
        expr = {"type": "literal", "value": 1}
        for _ in range(MAX_EXPRESSION_DEPTH):
            expr = {"type": "unary", "op": "!", "operand": expr}
        data = minimal()
        data["states"][0]["body"][0]["condition"] = expr
        with pytest.raises(ValidationError, match="levels deep"):
            program_from_dict(data)
