"""Map shapes to TypeScript symbols.

The resolver is a pure function of the shape graph and the generator settings:
every shape ID always resolves to the same symbol, no matter from where or how
often it is resolved. Resolved symbols are memoized by shape ID, and the memo
table doubles as the cycle breaker for self-referencing shapes.
"""

from __future__ import annotations

import logging
import posixpath
import threading
from collections import defaultdict

from shape_codegen import helper
from shape_codegen.errors import CodegenError, NamingCollision
from shape_codegen.model import UNIT_ID, MemberShape, Shape, ShapeGraph, ShapeID
from shape_codegen.settings import GeneratorSettings
from shape_codegen.shape_types import (
    MODEL_TYPES,
    SHAPE_TYPE_TO_TYPESCRIPT,
    ShapeType,
    Trait,
)
from shape_codegen.symbol import Symbol, SymbolProperty, SymbolReference

logger = logging.getLogger(__name__)

MODELS_FOLDER = "models"
COMMANDS_FOLDER = "commands"
COMMAND_SUFFIX = "Command"
CLIENT_SUFFIX = "Client"

SMITHY_TYPES_PACKAGE = "@smithy/types"
SMITHY_SERDE_PACKAGE = "@smithy/core/serde"


def is_model_shape(shape: Shape) -> bool:
    """Whether a shape is declared in one of the chunked model modules."""
    return shape.type in MODEL_TYPES or shape.is_enum_string


def enum_values(shape: Shape) -> list[str] | list[int]:
    """Get the values of an enum shape, in declaration order.

    Args:
        shape (Shape): An `enum` or `intEnum` shape, or a string shape with the enum trait.

    Returns:
        list[str] | list[int]: The enum values.
    """
    if shape.type == ShapeType.INT_ENUM:
        return [int(member.traits.get(Trait.ENUM_VALUE, index)) for index, member in enumerate(shape.members)]

    if shape.type == ShapeType.ENUM:
        return [str(member.traits.get(Trait.ENUM_VALUE, member.name)) for member in shape.members]

    return [str(definition["value"]) for definition in shape.traits.get(Trait.ENUM, [])]


class ModuleNameDelegator:
    """Locates the module that a declared shape is generated into.

    Model shapes are split into modules of at most `chunk_size` shapes per namespace, to prevent
    single files from getting too big. A shape's bucket only depends on its position among the
    sorted model shapes of its namespace, so the assignment does not depend on resolution order.
    """

    def __init__(self, graph: ShapeGraph, chunk_size: int):
        self._buckets: dict[ShapeID, int] = {}

        shapes_by_namespace: defaultdict[str, list[ShapeID]] = defaultdict(list)
        for shape in graph:
            if is_model_shape(shape) and shape.id != UNIT_ID:
                shapes_by_namespace[shape.id.namespace].append(shape.id)

        for shape_ids in shapes_by_namespace.values():
            for index, shape_id in enumerate(shape_ids):
                self._buckets[shape_id] = index // chunk_size if chunk_size > 0 else 0

    @staticmethod
    def namespace_path(shape_id: ShapeID) -> str:
        """The namespace of a shape as a path, e.g. `example/weather`."""
        return shape_id.namespace.replace(".", "/")

    def format_module_name(self, shape: Shape, name: str) -> str:
        """Get the module name of a declared shape, relative to the source folder.

        Args:
            shape (Shape): The declared shape.
            name (str): The display name of the shape's symbol.

        Returns:
            str: The module name, e.g. `example/weather/models/models_0`.
        """
        namespace_path = self.namespace_path(shape.id)

        if shape.type == ShapeType.SERVICE:
            return posixpath.join(namespace_path, name)

        if shape.type == ShapeType.OPERATION:
            return posixpath.join(namespace_path, COMMANDS_FOLDER, name)

        bucket = self._buckets.get(shape.id, 0)
        return posixpath.join(namespace_path, MODELS_FOLDER, f"models_{bucket}")


class SymbolResolver:
    """Resolves shapes of a graph to symbols."""

    def __init__(self, graph: ShapeGraph, settings: GeneratorSettings | None = None):
        """Create a resolver for a graph.

        Args:
            graph (ShapeGraph): The graph to resolve shapes of.
            settings (GeneratorSettings | None, optional): The generator settings. Defaults to None.
        """
        self._graph = graph
        self._settings = settings or GeneratorSettings()
        self._module_names = ModuleNameDelegator(graph, self._settings.model_chunk_size)

        self._symbols: dict[ShapeID, Symbol] = {}
        self._declarations: dict[tuple[str, str], ShapeID] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

        self._rename: dict[ShapeID, str] = {}
        if self._settings.service is not None:
            service = self._graph.get_shape(self._settings.service)
            if service.type != ShapeType.SERVICE:
                raise CodegenError(f"'{service.id}' is a {service.type} shape, not a service.")
            self._rename = dict(service.rename)

    @property
    def graph(self) -> ShapeGraph:
        return self._graph

    @property
    def settings(self) -> GeneratorSettings:
        return self._settings

    def resolve(self, shape_id: ShapeID) -> Symbol:
        """Resolve a shape ID to its symbol.

        Args:
            shape_id (ShapeID): The ID of the shape or member to resolve.

        Raises:
            ShapeNotFound: If the ID is not part of the graph.
            NamingCollision: If the symbol's name and file are already taken by another shape.
            CodegenError: If an inline type contains itself without a declared shape in between.

        Returns:
            Symbol: The resolved symbol.
        """
        symbol = self._symbols.get(shape_id)
        if symbol is not None:
            return symbol

        node = self._graph.get_node(shape_id)

        in_progress = self._in_progress()
        if shape_id in in_progress:
            raise CodegenError(f"The inline type of '{shape_id}' contains itself; it cannot be named.")

        in_progress.add(shape_id)
        try:
            symbol = self._escape(self._create_symbol(node))
        finally:
            in_progress.discard(shape_id)

        with self._lock:
            # The first resolution wins when shapes are resolved concurrently.
            existing = self._symbols.get(shape_id)
            if existing is not None:
                return existing

            if not symbol.is_inline and not shape_id.is_member:
                self._register_declaration(shape_id, symbol)

            self._symbols[shape_id] = symbol

        logger.debug("Resolved %s to %s.", shape_id, symbol)
        return symbol

    def to_member_name(self, name: str) -> str:
        """Get the property name to use for a member name."""
        return helper.escape_member_name(name, self._settings.reserved_word_prefix)

    def __contains__(self, shape_id: object) -> bool:
        return shape_id in self._symbols

    def _in_progress(self) -> set[ShapeID]:
        in_progress = getattr(self._local, "in_progress", None)
        if in_progress is None:
            in_progress = self._local.in_progress = set()
        return in_progress

    def _register_declaration(self, shape_id: ShapeID, symbol: Symbol) -> None:
        key = (symbol.name, symbol.definition_file)
        other = self._declarations.setdefault(key, shape_id)

        if other != shape_id:
            raise NamingCollision(
                f"Shapes '{other}' and '{shape_id}' both resolve to '{symbol.name}' in '{symbol.definition_file}'."
            )

    def _escape(self, symbol: Symbol) -> Symbol:
        """Escape reserved words of declared symbols.

        Inline symbols are never escaped, since they intentionally refer to built-in types.
        """
        if symbol.is_inline:
            return symbol

        escaped = helper.escape_reserved_word(symbol.name, self._settings.reserved_word_prefix)
        if escaped != symbol.name:
            logger.debug("Escaped reserved word '%s' as '%s'.", symbol.name, escaped)
            return symbol.with_name(escaped)

        return symbol

    def _create_symbol(self, node: Shape | MemberShape) -> Symbol:
        """Create the symbol of a node, dispatching on the node's kind.

        Raises:
            AssertionError: If the node belongs to an unknown kind.
        """
        if isinstance(node, MemberShape):
            return self._member_symbol(node)

        shape_type = node.type

        if node.id == UNIT_ID:
            return self._inline_symbol(node, "{}")

        elif shape_type == ShapeType.STRING and node.is_enum_string:
            return self._model_symbol(node).with_properties(**{SymbolProperty.ENUM_VALUES: enum_values(node)})

        elif shape_type in SHAPE_TYPE_TO_TYPESCRIPT:
            return self._inline_symbol(node, SHAPE_TYPE_TO_TYPESCRIPT[shape_type])

        elif shape_type == ShapeType.BIG_DECIMAL:
            symbol = self._inline_symbol(node, "NumericValue", namespace=SMITHY_SERDE_PACKAGE)
            return symbol.with_properties(**{SymbolProperty.TYPE_ONLY: True})

        elif shape_type == ShapeType.DOCUMENT:
            document_type = Symbol(
                "DocumentType", namespace=SMITHY_TYPES_PACKAGE, properties={SymbolProperty.TYPE_ONLY: True}
            )
            reference = SymbolReference(document_type, alias="__DocumentType")
            return self._inline_symbol(node, "__DocumentType", references=(reference,))

        elif shape_type in (ShapeType.LIST, ShapeType.SET):
            element = self.resolve(self._graph.element_member(node).id)
            return self._inline_symbol(node, helper.new_list_type(element.name), references=(SymbolReference(element),))

        elif shape_type == ShapeType.MAP:
            value = self.resolve(self._graph.element_member(node).id)
            name = helper.new_group("Record", ["string", value.name])
            return self._inline_symbol(node, name, references=(SymbolReference(value),))

        elif shape_type in (ShapeType.ENUM, ShapeType.INT_ENUM):
            return self._model_symbol(node).with_properties(**{SymbolProperty.ENUM_VALUES: enum_values(node)})

        elif shape_type in (ShapeType.STRUCTURE, ShapeType.UNION):
            return self._model_symbol(node)

        elif shape_type == ShapeType.RESOURCE:
            # Resources only group operations; no value has a resource type.
            return self._inline_symbol(node, "never")

        elif shape_type == ShapeType.OPERATION:
            return self._operation_symbol(node)

        elif shape_type == ShapeType.SERVICE:
            name = helper.capitalize(self._flatten_shape_name(node.id)) + CLIENT_SUFFIX
            return self._generated_symbol(node, name)

        else:
            raise AssertionError(shape_type)

    def _member_symbol(self, member: MemberShape) -> Symbol:
        """Resolve a member to the symbol of its target.

        Enums are open: a member targeting an enum also accepts values that are unknown
        to this version of the generated code.
        """
        target_symbol = self.resolve(member.target)
        target = self._graph.get_shape(member.target)
        reference = (SymbolReference(target_symbol),)
        properties = {SymbolProperty.SHAPE_ID: member.id}

        if target.type == ShapeType.INT_ENUM:
            properties[SymbolProperty.ENUM_VALUES] = enum_values(target)
            return Symbol(f"{target_symbol.name} | number", references=reference, properties=properties)

        if target.type == ShapeType.ENUM or target.is_enum_string:
            properties[SymbolProperty.ENUM_VALUES] = enum_values(target)
            return Symbol(f"{target_symbol.name} | string", references=reference, properties=properties)

        if target.type == ShapeType.UNION and target.has_trait(Trait.STREAMING):
            name = helper.new_group("AsyncIterable", [target_symbol.name])
            return Symbol(name, references=reference, properties=properties)

        return target_symbol

    def _operation_symbol(self, shape: Shape) -> Symbol:
        name = self._flatten_shape_name(shape.id) + COMMAND_SUFFIX
        symbol = self._generated_symbol(shape, name)

        return symbol.with_properties(
            **{
                SymbolProperty.INPUT_TYPE: self._command_type(symbol, f"{name}Input", shape.input),
                SymbolProperty.OUTPUT_TYPE: self._command_type(symbol, f"{name}Output", shape.output),
            }
        )

    def _command_type(self, command: Symbol, name: str, supertype: ShapeID | None) -> Symbol:
        """Create the input or output type of a command, which extends the operation's input or output shape."""
        references: tuple[SymbolReference, ...] = ()
        if supertype is not None and supertype != UNIT_ID:
            reference = SymbolReference(self.resolve(supertype), properties={SymbolProperty.SUPERTYPE: True})
            references = (reference,)

        return Symbol(
            name=name,
            namespace=command.namespace,
            definition_file=command.definition_file,
            references=references,
            properties=dict(command.properties),
        )

    def _model_symbol(self, shape: Shape) -> Symbol:
        return self._generated_symbol(shape, self._flatten_shape_name(shape.id))

    def _flatten_shape_name(self, shape_id: ShapeID) -> str:
        return helper.to_pascal_case(self._rename.get(shape_id, shape_id.name))

    def _generated_symbol(self, shape: Shape, name: str) -> Symbol:
        module_name = posixpath.join(self._settings.source_folder, self._module_names.format_module_name(shape, name))

        return Symbol(
            name=name,
            namespace=f"./{module_name}",
            definition_file=module_name + helper.TS_SUFFIX,
            properties={SymbolProperty.SHAPE_ID: shape.id},
        )

    def _inline_symbol(
        self,
        shape: Shape,
        name: str,
        namespace: str | None = None,
        references: tuple[SymbolReference, ...] = (),
    ) -> Symbol:
        return Symbol(
            name=name,
            namespace=namespace,
            references=references,
            properties={SymbolProperty.SHAPE_ID: shape.id},
        )
