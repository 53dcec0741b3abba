"""Pytest configuration and fixtures for shape-codegen tests."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pytest

from shape_codegen.model import Shape, ShapeGraph, ShapeID, new_member
from shape_codegen.shape_types import PRELUDE_NAMESPACE, ShapeType, Trait

# Test directory structure
TESTS_DIR = Path(__file__).parent

STRING = ShapeID(PRELUDE_NAMESPACE, "String")
FLOAT = ShapeID(PRELUDE_NAMESPACE, "Float")
INTEGER = ShapeID(PRELUDE_NAMESPACE, "Integer")
UNIT = ShapeID(PRELUDE_NAMESPACE, "Unit")

MemberDefinition = tuple[str, str | ShapeID] | tuple[str, str | ShapeID, Mapping[str, Any]]


def _id(value: str | ShapeID) -> ShapeID:
    return value if isinstance(value, ShapeID) else ShapeID.parse(value)


class ShapeFactory:
    """Builds shapes for tests from absolute shape ID strings."""

    @staticmethod
    def shape(
        shape_id: str,
        shape_type: ShapeType,
        members: Iterable[MemberDefinition] = (),
        traits: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> Shape:
        container = _id(shape_id)
        member_shapes = tuple(
            new_member(container, member[0], _id(member[1]), member[2] if len(member) > 2 else None)
            for member in members
        )
        return Shape(id=container, type=shape_type, members=member_shapes, traits=dict(traits or {}), **fields)

    @classmethod
    def structure(cls, shape_id: str, members: Iterable[MemberDefinition] = (), traits=None) -> Shape:
        return cls.shape(shape_id, ShapeType.STRUCTURE, members, traits)

    @classmethod
    def union(cls, shape_id: str, members: Iterable[MemberDefinition] = (), traits=None) -> Shape:
        return cls.shape(shape_id, ShapeType.UNION, members, traits)

    @classmethod
    def list_of(cls, shape_id: str, element: str | ShapeID) -> Shape:
        return cls.shape(shape_id, ShapeType.LIST, [("member", element)])

    @classmethod
    def map_of(cls, shape_id: str, value: str | ShapeID) -> Shape:
        return cls.shape(shape_id, ShapeType.MAP, [("key", STRING), ("value", value)])

    @classmethod
    def enum(cls, shape_id: str, values: Mapping[str, str]) -> Shape:
        members = [(name, UNIT, {Trait.ENUM_VALUE: v}) for name, v in values.items()]
        return cls.shape(shape_id, ShapeType.ENUM, members)

    @classmethod
    def int_enum(cls, shape_id: str, values: Mapping[str, int]) -> Shape:
        members = [(name, UNIT, {Trait.ENUM_VALUE: v}) for name, v in values.items()]
        return cls.shape(shape_id, ShapeType.INT_ENUM, members)

    @classmethod
    def operation(cls, shape_id: str, input=None, output=None, errors=(), traits=None) -> Shape:
        return cls.shape(
            shape_id,
            ShapeType.OPERATION,
            traits=traits,
            input=_id(input) if input else None,
            output=_id(output) if output else None,
            errors=tuple(_id(error) for error in errors),
        )

    @classmethod
    def service(cls, shape_id: str, operations=(), resources=(), rename=None) -> Shape:
        return cls.shape(
            shape_id,
            ShapeType.SERVICE,
            operations=tuple(_id(operation) for operation in operations),
            resources=tuple(_id(resource) for resource in resources),
            rename={_id(key): value for key, value in (rename or {}).items()},
        )


@pytest.fixture
def factory() -> type[ShapeFactory]:
    """Provide the shape factory."""
    return ShapeFactory


def weather_shapes() -> list[Shape]:
    """The shapes of a small weather service."""
    f = ShapeFactory
    return [
        f.structure(
            "example.weather#CityCoordinates",
            [("latitude", FLOAT, {Trait.REQUIRED: {}}), ("longitude", FLOAT, {Trait.REQUIRED: {}})],
        ),
        f.enum("example.weather#CityKind", {"CAPITAL": "capital", "TOWN": "town"}),
        f.operation(
            "example.weather#GetCity",
            input="example.weather#GetCityInput",
            output="example.weather#GetCityOutput",
            errors=["example.weather#NoSuchResource"],
            traits={Trait.DOCUMENTATION: "Gets a city."},
        ),
        f.structure("example.weather#GetCityInput", [("cityId", STRING, {Trait.REQUIRED: {}})]),
        f.structure(
            "example.weather#GetCityOutput",
            [
                ("name", STRING, {Trait.REQUIRED: {}}),
                ("coordinates", "example.weather#CityCoordinates"),
                ("kind", "example.weather#CityKind"),
                ("tags", "example.weather#Tags"),
            ],
        ),
        f.structure(
            "example.weather#NoSuchResource",
            [("resourceType", STRING, {Trait.REQUIRED: {}})],
            traits={Trait.ERROR: "client"},
        ),
        f.list_of("example.weather#Tags", STRING),
        f.service("example.weather#Weather", operations=["example.weather#GetCity"]),
    ]


@pytest.fixture
def weather_graph() -> ShapeGraph:
    """Provide the graph of a small weather service."""
    return ShapeGraph(weather_shapes())


@pytest.fixture
def item_graph() -> ShapeGraph:
    """Provide a graph where a structure refers to two equally named structures of different namespaces."""
    f = ShapeFactory
    return ShapeGraph(
        [
            f.structure("a#Item", [("id", STRING)]),
            f.structure("b#Item", [("id", STRING)]),
            f.structure("c#Holder", [("first", "a#Item"), ("second", "b#Item")]),
        ]
    )


@pytest.fixture
def weather_model_file(tmp_path) -> Path:
    """Write a Smithy JSON AST model of a small weather service."""
    document = {
        "smithy": "2.0",
        "shapes": {
            "example.weather#Weather": {
                "type": "service",
                "version": "2006-03-01",
                "operations": [{"target": "example.weather#GetCity"}],
            },
            "example.weather#GetCity": {
                "type": "operation",
                "input": {"target": "example.weather#GetCityInput"},
                "output": {"target": "example.weather#GetCityOutput"},
            },
            "example.weather#GetCityInput": {
                "type": "structure",
                "members": {
                    "cityId": {"target": "smithy.api#String", "traits": {"smithy.api#required": {}}},
                },
            },
            "example.weather#GetCityOutput": {
                "type": "structure",
                "members": {"name": {"target": "smithy.api#String"}},
            },
        },
    }

    path = tmp_path / "weather.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path
