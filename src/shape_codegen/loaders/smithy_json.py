"""Load shapes from a Smithy JSON AST model.

Both the 1.0 and the 2.0 format are understood. Shapes of the `apply` kind, and mixins, are
ignored; traits are kept as plain JSON values.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from shape_codegen.errors import CodegenError
from shape_codegen.model import MemberShape, Shape, ShapeID, new_member
from shape_codegen.shape_types import ShapeType

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.0", "2.0")

# Members of list, set and map shapes, by their name in the JSON AST.
AGGREGATE_MEMBERS = {
    ShapeType.LIST: ("member",),
    ShapeType.SET: ("member",),
    ShapeType.MAP: ("key", "value"),
}

# Resource properties that refer to operations.
RESOURCE_OPERATIONS = ("create", "put", "read", "update", "delete", "list")


def load_model(path: str | Path) -> list[Shape]:
    """Load the shapes of a JSON AST model file.

    Args:
        path (str | Path): The path of the model file.

    Raises:
        CodegenError: If the file is not a valid model.

    Returns:
        list[Shape]: The shapes of the model.
    """
    path = Path(path)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))

    except json.JSONDecodeError as e:
        raise CodegenError(f"'{path}' is not valid JSON: {e}") from e

    shapes = parse_model(document)
    logger.info("Loaded %d shape(s) from '%s'.", len(shapes), path)
    return shapes


def parse_model(document: Mapping[str, Any]) -> list[Shape]:
    """Parse the shapes of a JSON AST model document.

    Args:
        document (Mapping[str, Any]): The decoded model document.

    Raises:
        CodegenError: If the document is not a valid model.

    Returns:
        list[Shape]: The shapes of the model, sorted by ID.
    """
    version = str(document.get("smithy", ""))
    if version not in SUPPORTED_VERSIONS:
        raise CodegenError(f"Unsupported Smithy model version '{version}'.")

    shapes = []
    for text_id, definition in sorted(document.get("shapes", {}).items()):
        shape_id = _parse_id(text_id)
        kind = definition.get("type")

        if kind == "apply":
            continue

        if kind == "mixin" or "smithy.api#mixin" in definition.get("traits", {}):
            logger.debug("Skipped mixin %s.", shape_id)
            continue

        try:
            shape_type = ShapeType(kind)

        except ValueError as e:
            raise CodegenError(f"Shape '{shape_id}' has an unknown type '{kind}'.") from e

        shapes.append(_parse_shape(shape_id, shape_type, definition))

    return shapes


def _parse_shape(shape_id: ShapeID, shape_type: ShapeType, definition: Mapping[str, Any]) -> Shape:
    traits = dict(definition.get("traits", {}))

    if shape_type in AGGREGATE_MEMBERS:
        members = tuple(
            _parse_member(shape_id, name, definition[name])
            for name in AGGREGATE_MEMBERS[shape_type]
            if name in definition
        )
        return Shape(id=shape_id, type=shape_type, members=members, traits=traits)

    members = tuple(
        _parse_member(shape_id, name, member) for name, member in definition.get("members", {}).items()
    )

    if shape_type == ShapeType.OPERATION:
        return Shape(
            id=shape_id,
            type=shape_type,
            traits=traits,
            input=_optional_target(definition.get("input")),
            output=_optional_target(definition.get("output")),
            errors=_targets(definition.get("errors", [])),
        )

    if shape_type == ShapeType.SERVICE:
        return Shape(
            id=shape_id,
            type=shape_type,
            traits=traits,
            operations=_targets(definition.get("operations", [])),
            resources=_targets(definition.get("resources", [])),
            rename={_parse_id(text_id): name for text_id, name in definition.get("rename", {}).items()},
        )

    if shape_type == ShapeType.RESOURCE:
        operations = [definition[key] for key in RESOURCE_OPERATIONS if key in definition]
        operations.extend(definition.get("operations", []))
        operations.extend(definition.get("collectionOperations", []))

        return Shape(
            id=shape_id,
            type=shape_type,
            traits=traits,
            operations=_targets(operations),
            resources=_targets(definition.get("resources", [])),
        )

    return Shape(id=shape_id, type=shape_type, members=members, traits=traits)


def _parse_member(container: ShapeID, name: str, definition: Mapping[str, Any]) -> MemberShape:
    try:
        target = _parse_id(definition["target"])

    except KeyError as e:
        raise CodegenError(f"Member '{container.with_member(name)}' has no target.") from e

    return new_member(container, name, target, definition.get("traits"))


def _parse_id(text: str) -> ShapeID:
    try:
        return ShapeID.parse(text)

    except ValueError as e:
        raise CodegenError(str(e)) from e


def _optional_target(reference: Mapping[str, str] | None) -> ShapeID | None:
    if reference is None:
        return None
    return _parse_id(reference["target"])


def _targets(references: list[Mapping[str, str]]) -> tuple[ShapeID, ...]:
    return tuple(sorted(_parse_id(reference["target"]) for reference in references))
