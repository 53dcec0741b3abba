"""Tests for loading Smithy JSON AST models."""

from __future__ import annotations

import json

import pytest

from shape_codegen.errors import CodegenError
from shape_codegen.loaders.graph import load_graph
from shape_codegen.loaders.smithy_json import load_model, parse_model
from shape_codegen.model import ShapeID
from shape_codegen.run import generate
from shape_codegen.shape_types import ShapeType, Trait


def shapes_by_id(document):
    return {shape.id: shape for shape in parse_model(document)}


class TestParseModel:
    def test_structure(self):
        """Test that members keep their order and traits."""
        shapes = shapes_by_id(
            {
                "smithy": "2.0",
                "shapes": {
                    "a#City": {
                        "type": "structure",
                        "members": {
                            "name": {"target": "smithy.api#String", "traits": {"smithy.api#required": {}}},
                            "area": {"target": "smithy.api#Float"},
                        },
                        "traits": {"smithy.api#documentation": "A city."},
                    },
                },
            }
        )

        city = shapes[ShapeID("a", "City")]
        assert city.type == ShapeType.STRUCTURE
        assert [member.name for member in city.members] == ["name", "area"]
        assert city.members[0].id == ShapeID("a", "City", "name")
        assert city.members[0].has_trait(Trait.REQUIRED)
        assert city.traits[Trait.DOCUMENTATION] == "A city."

    def test_aggregates(self):
        shapes = shapes_by_id(
            {
                "smithy": "2.0",
                "shapes": {
                    "a#Names": {"type": "list", "member": {"target": "smithy.api#String"}},
                    "a#Areas": {
                        "type": "map",
                        "key": {"target": "smithy.api#String"},
                        "value": {"target": "smithy.api#Float"},
                    },
                },
            }
        )

        assert [member.name for member in shapes[ShapeID("a", "Names")].members] == ["member"]
        areas = shapes[ShapeID("a", "Areas")]
        targets = [(member.name, member.target.name) for member in areas.members]
        assert targets == [("key", "String"), ("value", "Float")]

    def test_operation_and_service(self):
        shapes = shapes_by_id(
            {
                "smithy": "2.0",
                "shapes": {
                    "a#Weather": {
                        "type": "service",
                        "operations": [{"target": "a#Ping"}],
                        "resources": [{"target": "a#City"}],
                        "rename": {"b#City": "OtherCity"},
                    },
                    "a#City": {
                        "type": "resource",
                        "read": {"target": "a#GetCity"},
                        "list": {"target": "a#ListCities"},
                        "operations": [{"target": "a#Rate"}],
                    },
                    "a#Ping": {
                        "type": "operation",
                        "input": {"target": "a#PingInput"},
                        "errors": [{"target": "a#Z"}, {"target": "a#A"}],
                    },
                },
            }
        )

        ping = shapes[ShapeID("a", "Ping")]
        assert ping.input == ShapeID("a", "PingInput")
        assert ping.output is None
        assert ping.errors == (ShapeID("a", "A"), ShapeID("a", "Z"))

        weather = shapes[ShapeID("a", "Weather")]
        assert weather.operations == (ShapeID("a", "Ping"),)
        assert weather.resources == (ShapeID("a", "City"),)
        assert weather.rename == {ShapeID("b", "City"): "OtherCity"}

        city = shapes[ShapeID("a", "City")]
        assert city.operations == (ShapeID("a", "GetCity"), ShapeID("a", "ListCities"), ShapeID("a", "Rate"))

    def test_apply_and_mixins_are_skipped(self):
        shapes = shapes_by_id(
            {
                "smithy": "2.0",
                "shapes": {
                    "a#City": {"type": "apply", "traits": {"smithy.api#documentation": "A city."}},
                    "a#Named": {
                        "type": "structure",
                        "members": {"name": {"target": "smithy.api#String"}},
                        "traits": {"smithy.api#mixin": {}},
                    },
                },
            }
        )

        assert shapes == {}

    def test_unsupported_version(self):
        with pytest.raises(CodegenError, match="version"):
            parse_model({"smithy": "3.0", "shapes": {}})

    def test_unknown_type(self):
        with pytest.raises(CodegenError, match="unknown type"):
            parse_model({"smithy": "2.0", "shapes": {"a#City": {"type": "table"}}})

    def test_invalid_shape_id(self):
        with pytest.raises(CodegenError):
            parse_model({"smithy": "2.0", "shapes": {"City": {"type": "structure"}}})

    def test_member_without_target(self):
        with pytest.raises(CodegenError, match="no target"):
            parse_model({"smithy": "2.0", "shapes": {"a#City": {"type": "structure", "members": {"name": {}}}}})


class TestLoad:
    def test_load_model(self, weather_model_file):
        shapes = load_model(weather_model_file)
        assert [str(shape.id) for shape in shapes] == [
            "example.weather#GetCity",
            "example.weather#GetCityInput",
            "example.weather#GetCityOutput",
            "example.weather#Weather",
        ]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(CodegenError, match="not valid JSON"):
            load_model(path)

    def test_load_graph(self, weather_model_file):
        """Test that the loaded graph is closed over the prelude and generates code."""
        graph = load_graph([weather_model_file])

        assert ShapeID("smithy.api", "String") in graph
        assert "src/example/weather/commands/GetCityCommand.ts" in generate(graph)

    def test_duplicate_shapes(self, weather_model_file, tmp_path):
        copy = tmp_path / "copy.json"
        copy.write_text(weather_model_file.read_text(encoding="utf-8"), encoding="utf-8")

        with pytest.raises(CodegenError, match="Duplicate"):
            load_graph([weather_model_file, copy])

    def test_unknown_suffix(self, tmp_path):
        path = tmp_path / "model.yaml"
        path.write_text(json.dumps({}), encoding="utf-8")

        with pytest.raises(CodegenError, match="unknown schema suffix"):
            load_graph([path])
