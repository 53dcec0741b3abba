"""The default emission passes, which write TypeScript declarations for shapes."""

from __future__ import annotations

import logging
import posixpath
import re
from collections import Counter
from collections.abc import Callable

from shape_codegen import helper
from shape_codegen.model import Shape, ShapeGraph, ShapeID
from shape_codegen.registry import WriterRegistry
from shape_codegen.resolver import SymbolResolver, enum_values
from shape_codegen.shape_types import ShapeType, Trait
from shape_codegen.symbol import Symbol, SymbolProperty
from shape_codegen.writer import Writer

logger = logging.getLogger(__name__)

EmissionPass = Callable[[Shape, Symbol, Writer], None]

SMITHY_CLIENT_PACKAGE = "@smithy/smithy-client"
SMITHY_TYPES_PACKAGE = "@smithy/types"

UNKNOWN_MEMBER = "$unknown"
UNKNOWN_MEMBER_INTERFACE = "$UnknownMember"
MODELED_ERRORS = "ModeledErrors"
SERVICE_INPUT_TYPES = "ServiceInputTypes"
SERVICE_OUTPUT_TYPES = "ServiceOutputTypes"
INDEX_FILE = "index.ts"


def to_enum_key(value: str) -> str:
    """Convert an enum value to the key of its constant, e.g. `us-west-2` becomes `US_WEST_2`."""
    key = re.sub(r"[^0-9a-zA-Z]+", "_", value).strip("_").upper()
    if not key:
        return "EMPTY"
    if key[0].isdigit():
        return f"_{key}"
    return key


class ShapeEmitter:
    """Writes the declaration of every kind of declared shape.

    Each `gen_*` method is an emission pass: it receives the shape, its symbol, and the writer of
    the file that the symbol is declared in. Other symbols are only ever referred to by means of
    `Writer.format_symbol`, which takes care of importing them.
    """

    def __init__(self, graph: ShapeGraph, resolver: SymbolResolver):
        self._graph = graph
        self._resolver = resolver

    def dispatch_table(self) -> dict[ShapeType, EmissionPass]:
        """Map shape kinds to their emission pass.

        String shapes only have a declaration if they carry the enum trait; all other strings
        resolve to inline symbols, which are never emitted.
        """
        return {
            ShapeType.STRUCTURE: self.gen_structure,
            ShapeType.UNION: self.gen_union,
            ShapeType.ENUM: self.gen_enum,
            ShapeType.STRING: self.gen_enum,
            ShapeType.INT_ENUM: self.gen_int_enum,
            ShapeType.OPERATION: self.gen_operation,
            ShapeType.SERVICE: self.gen_service,
        }

    def gen_structure(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        """Write an interface for a structure.

        Members without the required trait are optional. Error structures additionally carry
        their name and fault as literal types.
        """
        self._write_shape_docs(shape, writer)

        with writer.block(helper.new_interface_declaration(symbol.name)):
            fault = shape.traits.get(Trait.ERROR)
            if fault is not None:
                writer.write(helper.new_property("name", helper.quote(shape.id.name), readonly=True))
                writer.write(helper.new_property("$fault", helper.quote(str(fault)), readonly=True))

            for member in shape.members:
                writer.write_docs(member.traits.get(Trait.DOCUMENTATION), member.has_trait(Trait.DEPRECATED))
                member_type = writer.format_symbol(self._resolver.resolve(member.id))
                writer.write(
                    helper.new_property(
                        self._resolver.to_member_name(member.name),
                        member_type,
                        optional=not member.has_trait(Trait.REQUIRED),
                    )
                )

    def gen_union(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        """Write a union as a tagged union of one interface per member.

        Exactly one member is set on a value. Values of members that are unknown to this
        version of the generated code are kept in `$unknown`.
        """
        variants = [f"{helper.to_pascal_case(member.name)}Member" for member in shape.members]
        variants.append(UNKNOWN_MEMBER_INTERFACE)
        member_names = [self._resolver.to_member_name(member.name) for member in shape.members]

        self._write_shape_docs(shape, writer)
        writer.write(
            helper.new_type_alias(symbol.name, helper.new_type_union([f"{symbol.name}.{v}" for v in variants]))
        )
        writer.write()

        with writer.block(f"export namespace {symbol.name} {{"):
            for member, member_name, variant in zip(shape.members, member_names, variants):
                writer.write_docs(member.traits.get(Trait.DOCUMENTATION), member.has_trait(Trait.DEPRECATED))
                member_type = writer.format_symbol(self._resolver.resolve(member.id))

                with writer.block(helper.new_interface_declaration(variant)):
                    for other in member_names:
                        if other == member_name:
                            writer.write(helper.new_property(member_name, member_type))
                        else:
                            writer.write(f"{helper.sanitize_property_name(other)}?: never;")
                    writer.write(f"{UNKNOWN_MEMBER}?: never;")

            with writer.block(helper.new_interface_declaration(UNKNOWN_MEMBER_INTERFACE)):
                for other in member_names:
                    writer.write(f"{helper.sanitize_property_name(other)}?: never;")
                writer.write(f"{UNKNOWN_MEMBER}: [string, any];")

    def gen_enum(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        """Write a string enum as a constant object and a type of its values."""
        if shape.type == ShapeType.ENUM:
            keys = [member.name for member in shape.members]
        else:
            definitions = shape.traits[Trait.ENUM]
            keys = [definition.get("name") or to_enum_key(definition["value"]) for definition in definitions]

        values = [helper.quote(value) for value in enum_values(shape)]
        self._write_enum(shape, symbol, writer, keys, values)

    def gen_int_enum(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        keys = [member.name for member in shape.members]
        values = [str(value) for value in enum_values(shape)]
        self._write_enum(shape, symbol, writer, keys, values)

    def gen_operation(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        """Write the input and output types and the class of a command.

        The input and output types extend the operation's input and output structures, if any.
        """
        input_type: Symbol = symbol.get_property(SymbolProperty.INPUT_TYPE)
        output_type: Symbol = symbol.get_property(SymbolProperty.OUTPUT_TYPE)

        command = writer.add_import("Command", SMITHY_CLIENT_PACKAGE, alias="$Command")
        metadata_bearer = writer.add_import("MetadataBearer", SMITHY_TYPES_PACKAGE, "__MetadataBearer", type_only=True)

        input_extends = [writer.format_symbol(ref) for ref in input_type.references if ref.is_supertype]
        output_extends = [writer.format_symbol(ref) for ref in output_type.references if ref.is_supertype]
        output_extends.append(metadata_bearer)

        writer.write(helper.new_interface_declaration(input_type.name, input_extends) + "}")
        writer.write()
        writer.write(helper.new_interface_declaration(output_type.name, output_extends) + "}")
        writer.write()

        documentation = shape.traits.get(Trait.DOCUMENTATION, "")
        throws = [f"@throws {{@link {self._resolver.resolve(error).name}}}" for error in shape.errors]
        docs = "\n\n".join(filter(None, [documentation, "\n".join(throws)]))
        writer.write_docs(docs, shape.has_trait(Trait.DEPRECATED))

        parent = helper.new_group(command, [input_type.name, output_type.name])
        with writer.block(helper.new_class_declaration(symbol.name, extends=parent)):
            with writer.block(f"constructor(readonly input: {input_type.name}) {{"):
                writer.write("super();")

    def gen_service(self, shape: Shape, symbol: Symbol, writer: Writer) -> None:
        """Write the union of all command inputs and outputs of a service, and its client class."""
        writer.declare(SERVICE_INPUT_TYPES)
        writer.declare(SERVICE_OUTPUT_TYPES)

        inputs = []
        outputs = []
        for operation_id in self.service_operations(shape):
            operation = self._resolver.resolve(operation_id)
            inputs.append(writer.format_symbol(operation.get_property(SymbolProperty.INPUT_TYPE)))
            outputs.append(writer.format_symbol(operation.get_property(SymbolProperty.OUTPUT_TYPE)))

        writer.write(helper.new_type_alias(SERVICE_INPUT_TYPES, helper.new_type_union(inputs)))
        writer.write()
        writer.write(helper.new_type_alias(SERVICE_OUTPUT_TYPES, helper.new_type_union(outputs)))
        writer.write()

        self._write_shape_docs(shape, writer)
        with writer.block(helper.new_class_declaration(symbol.name)):
            writer.write("constructor(readonly config: Record<string, unknown> = {}) {}")

    def service_operations(self, service: Shape) -> list[ShapeID]:
        """Get the operations of a service and of its resources, recursively, sorted."""
        operations: set[ShapeID] = set(service.operations)

        pending = list(service.resources)
        visited: set[ShapeID] = set()
        while pending:
            resource_id = pending.pop()
            if resource_id in visited:
                continue
            visited.add(resource_id)

            resource = self._graph.get_shape(resource_id)
            operations.update(resource.operations)
            pending.extend(resource.resources)

        return sorted(operations)

    def errors_post_hook(self, path: str, writer: Writer, contributors: frozenset[ShapeID]) -> None:
        """Write the union of all error structures of a file, if it declares any."""
        errors = self._modeled_errors(contributors)
        if not errors:
            return

        logger.debug("Adding %s with %d error(s) to %s.", MODELED_ERRORS, len(errors), path)
        writer.declare(MODELED_ERRORS)
        writer.write()
        writer.write(helper.new_type_alias(MODELED_ERRORS, helper.new_type_union(errors)))

    def write_index(self, registry: WriterRegistry) -> None:
        """Write an `index.ts` per namespace that exports every module of the namespace.

        Names that more than one module of a namespace declares, such as the input and output
        unions of two clients, are left out of the index. Such a module is exported name by name.
        """
        modules_by_index: dict[str, dict[str, frozenset[str]]] = {}

        for path in registry.paths():
            contributors = registry.contributors(path)
            if not contributors:
                continue

            names = registry.get_or_create_buffer(path).declared_names
            if self._modeled_errors(contributors):
                names |= {MODELED_ERRORS}

            namespace = min(contributors).namespace.replace(".", "/")
            index_path = posixpath.join(self._resolver.settings.source_folder, namespace, INDEX_FILE)
            module = posixpath.relpath(helper.strip_ts_suffix(path), posixpath.dirname(index_path))
            modules_by_index.setdefault(index_path, {})[f"./{module}"] = names

        for index_path, modules in sorted(modules_by_index.items()):
            counts = Counter(name for names in modules.values() for name in names)
            ambiguous = {name for name, count in counts.items() if count > 1}
            if ambiguous:
                logger.warning("Left %s out of %s.", ", ".join(sorted(ambiguous)), index_path)

            writer = registry.get_or_create_buffer(index_path)
            for module, names in sorted(modules.items()):
                if names.isdisjoint(ambiguous):
                    writer.write(f"export * from {helper.quote(module)};")
                elif names - ambiguous:
                    writer.write(f"export {{ {', '.join(sorted(names - ambiguous))} }} from {helper.quote(module)};")

    def _modeled_errors(self, contributors: frozenset[ShapeID]) -> list[str]:
        errors = []
        for shape_id in sorted(contributors):
            shape = self._graph.get_shape(shape_id)
            if shape.type == ShapeType.STRUCTURE and shape.has_trait(Trait.ERROR):
                errors.append(self._resolver.resolve(shape_id).name)
        return errors

    def _write_shape_docs(self, shape: Shape, writer: Writer) -> None:
        writer.write_docs(shape.traits.get(Trait.DOCUMENTATION), shape.has_trait(Trait.DEPRECATED))

    def _write_enum(self, shape: Shape, symbol: Symbol, writer: Writer, keys: list[str], values: list[str]) -> None:
        self._write_shape_docs(shape, writer)

        with writer.block(f"export const {symbol.name} = {{", closing="} as const;"):
            for key, value in zip(keys, values):
                writer.write(f"{helper.sanitize_property_name(key)}: {value},")

        writer.write()
        writer.write(helper.new_type_alias(symbol.name, f"(typeof {symbol.name})[keyof typeof {symbol.name}]"))
