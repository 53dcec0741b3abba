"""Convert Cap'n Proto schemas to shapes.

Note: This loader requires pycapnp >= 2.0.0.

Every schema file becomes a namespace that is named after the file. Structs become structures,
enums become enums and interfaces become services, with one operation per method. Nested
declarations are named after their parents, e.g. `Person_PhoneNumber`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import capnp

from shape_codegen.errors import CodegenError
from shape_codegen.model import UNIT_ID, MemberShape, Shape, ShapeID, new_member
from shape_codegen.shape_types import PRELUDE_NAMESPACE, ShapeType, Trait

if hasattr(capnp, "remove_import_hook"):
    capnp.remove_import_hook()

logger = logging.getLogger(__name__)

# Value indicating that a field is not part of a union.
DISCRIMINANT_NONE = 65535

CAPNP_TYPE_TO_PRELUDE = {
    "void": "Unit",
    "bool": "Boolean",
    "int8": "Byte",
    "int16": "Short",
    "int32": "Integer",
    "int64": "Long",
    "uint8": "Short",
    "uint16": "Integer",
    "uint32": "Long",
    "uint64": "Long",
    "float32": "Float",
    "float64": "Double",
    "text": "String",
    "data": "Blob",
    "anyPointer": "Document",
}


class CapnpElementType:
    """Types of capnproto elements."""

    ENUM = "enum"
    STRUCT = "struct"
    LIST = "list"
    INTERFACE = "interface"


class CapnpFieldType:
    """Types of capnproto fields."""

    GROUP = "group"
    SLOT = "slot"


def load_schemas(paths: Iterable[str | Path], import_paths: Iterable[str | Path] | None = None) -> list[Shape]:
    """Load schema files and convert everything they declare to shapes.

    Args:
        paths (Iterable[str | Path]): The `*.capnp` files to load.
        import_paths (Iterable[str | Path] | None, optional): Additional import paths for resolving
            absolute imports (e.g., /capnp/c++.capnp). Defaults to None.

    Raises:
        CodegenError: If a schema refers to a type that is not declared in any of the loaded files.

    Returns:
        list[Shape]: The shapes, sorted by ID.
    """
    parser = capnp.SchemaParser()
    imports = [str(path) for path in import_paths or []]
    converter = CapnpSchemaConverter()

    for path in sorted(str(path) for path in paths):
        module = parser.load(path, imports=imports)
        converter.register(module.schema, Path(path).stem)
        logger.info("Loaded schema '%s'.", path)

    return converter.convert()


class CapnpSchemaConverter:
    """Converts parsed schemas to shapes.

    Declarations are registered first, so that fields may refer to declarations of any loaded
    file, and are converted afterwards.
    """

    def __init__(self):
        self.shapes: dict[ShapeID, Shape] = {}
        self._ids_by_type_id: dict[int, ShapeID] = {}
        self._declarations: list[tuple[ShapeID, Any]] = []

    def register(self, schema: Any, namespace: str, prefix: str = "") -> None:
        """Register the declarations nested in a schema, recursively.

        Args:
            schema (Any): A parsed schema, such as the schema of a loaded module.
            namespace (str): The namespace of the declarations.
            prefix (str, optional): The name of the enclosing declaration. Defaults to "".
        """
        for nested_node in schema.node.nestedNodes:
            nested_schema = schema.get_nested(nested_node.name)
            kind = nested_schema.node.which()

            if kind not in (CapnpElementType.STRUCT, CapnpElementType.ENUM, CapnpElementType.INTERFACE):
                logger.debug("Skipped %s '%s'.", kind, nested_node.name)
                continue

            name = f"{prefix}_{nested_node.name}" if prefix else nested_node.name
            shape_id = ShapeID(namespace, name)

            self._ids_by_type_id[nested_schema.node.id] = shape_id
            self._declarations.append((shape_id, nested_schema))
            self.register(nested_schema, namespace, name)

    def convert(self) -> list[Shape]:
        """Convert all registered declarations."""
        for shape_id, schema in self._declarations:
            kind = schema.node.which()

            if kind == CapnpElementType.STRUCT:
                self._add(self._convert_struct(shape_id, schema.node.struct.fields))

            elif kind == CapnpElementType.ENUM:
                self._add(self._convert_enum(shape_id, schema.node.enum.enumerants))

            else:
                self._convert_interface(shape_id, schema)

        return [self.shapes[shape_id] for shape_id in sorted(self.shapes)]

    def _add(self, shape: Shape) -> ShapeID:
        self.shapes.setdefault(shape.id, shape)
        return shape.id

    def _convert_struct(self, shape_id: ShapeID, fields: Iterable[Any]) -> Shape:
        """Convert a struct; fields of its union are optional, all other fields are required."""
        members = []
        for field in fields:
            if field.which() == CapnpFieldType.GROUP:
                logger.debug("Field '%s' of '%s' is a group; treating it as a document.", field.name, shape_id)
                target = ShapeID(PRELUDE_NAMESPACE, "Document")
            else:
                target = self._target(field.slot.type, shape_id)

            traits = {} if field.discriminantValue != DISCRIMINANT_NONE else {Trait.REQUIRED: {}}
            members.append(new_member(shape_id, field.name, target, traits))

        return Shape(id=shape_id, type=ShapeType.STRUCTURE, members=tuple(members))

    def _convert_enum(self, shape_id: ShapeID, enumerants: Iterable[Any]) -> Shape:
        members: list[MemberShape] = [
            new_member(shape_id, enumerant.name, UNIT_ID, {Trait.ENUM_VALUE: enumerant.name})
            for enumerant in enumerants
        ]
        return Shape(id=shape_id, type=ShapeType.ENUM, members=tuple(members))

    def _convert_interface(self, shape_id: ShapeID, schema: Any) -> None:
        """Convert an interface to a service, and each of its methods to an operation.

        Parameters and results that are not declared as structs of their own become structures
        named `<Interface>_<method>Params` and `<Interface>_<method>Results`.
        """
        runtime_methods = schema.as_interface().methods
        operations = []

        for method in schema.node.interface.methods:
            runtime_method = runtime_methods[method.name]
            operation_id = ShapeID(shape_id.namespace, f"{shape_id.name}_{method.name}")

            input_id = self._method_struct(operation_id, "Params", method.paramStructType, runtime_method.param_type)
            output_id = self._method_struct(
                operation_id, "Results", method.resultStructType, runtime_method.result_type
            )

            operations.append(
                self._add(Shape(id=operation_id, type=ShapeType.OPERATION, input=input_id, output=output_id))
            )

        self._add(Shape(id=shape_id, type=ShapeType.SERVICE, operations=tuple(sorted(operations))))

    def _method_struct(self, operation_id: ShapeID, suffix: str, type_id: int, struct_schema: Any) -> ShapeID:
        if type_id in self._ids_by_type_id:
            return self._ids_by_type_id[type_id]

        shape_id = ShapeID(operation_id.namespace, f"{operation_id.name}{suffix}")
        return self._add(self._convert_struct(shape_id, struct_schema.node.struct.fields))

    def _target(self, type_reader: Any, owner: ShapeID) -> ShapeID:
        """Get the shape that a value of a type is represented by.

        Lists are represented by list shapes that are named after their element, e.g. `List_Person`.

        Raises:
            CodegenError: If the type refers to a declaration that was not loaded.
        """
        which = type_reader.which()

        if which in CAPNP_TYPE_TO_PRELUDE:
            return ShapeID(PRELUDE_NAMESPACE, CAPNP_TYPE_TO_PRELUDE[which])

        if which == CapnpElementType.LIST:
            element = self._target(type_reader.list.elementType, owner)
            list_id = ShapeID(element.namespace, f"List_{element.name}")

            if list_id not in self.shapes:
                self._add(Shape(id=list_id, type=ShapeType.LIST, members=(new_member(list_id, "member", element),)))

            return list_id

        if which in (CapnpElementType.STRUCT, CapnpElementType.ENUM, CapnpElementType.INTERFACE):
            type_id = getattr(type_reader, which).typeId

            try:
                return self._ids_by_type_id[type_id]

            except KeyError as e:
                raise CodegenError(
                    f"'{owner}' refers to the {which} with id {type_id:#x}, which is not declared in any loaded schema."
                ) from e

        raise CodegenError(f"'{owner}' has a field of the unsupported type '{which}'.")
