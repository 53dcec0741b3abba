"""Type definitions that are common in schema graphs."""

from __future__ import annotations

from enum import StrEnum

PRELUDE_NAMESPACE = "smithy.api"


class ShapeType(StrEnum):
    """The closed set of schema node kinds that the generator understands."""

    BLOB = "blob"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTE = "byte"
    SHORT = "short"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BIG_INTEGER = "bigInteger"
    BIG_DECIMAL = "bigDecimal"
    TIMESTAMP = "timestamp"
    DOCUMENT = "document"

    LIST = "list"
    SET = "set"
    MAP = "map"

    STRUCTURE = "structure"
    UNION = "union"
    ENUM = "enum"
    INT_ENUM = "intEnum"
    OPERATION = "operation"
    SERVICE = "service"
    RESOURCE = "resource"

    MEMBER = "member"


AGGREGATE_TYPES = frozenset({ShapeType.LIST, ShapeType.SET, ShapeType.MAP})

# Declared kinds that are stored in the chunked `models_<n>` modules.
MODEL_TYPES = frozenset(
    {
        ShapeType.STRUCTURE,
        ShapeType.UNION,
        ShapeType.ENUM,
        ShapeType.INT_ENUM,
    }
)

SHAPE_TYPE_TO_TYPESCRIPT = {
    ShapeType.BLOB: "Uint8Array",
    ShapeType.BOOLEAN: "boolean",
    ShapeType.STRING: "string",
    ShapeType.BYTE: "number",
    ShapeType.SHORT: "number",
    ShapeType.INTEGER: "number",
    ShapeType.LONG: "number",
    ShapeType.FLOAT: "number",
    ShapeType.DOUBLE: "number",
    ShapeType.BIG_INTEGER: "bigint",
    ShapeType.TIMESTAMP: "Date",
}

# Prelude shapes, keyed by their local name in the `smithy.api` namespace.
PRELUDE_SHAPES = {
    "Blob": ShapeType.BLOB,
    "Boolean": ShapeType.BOOLEAN,
    "String": ShapeType.STRING,
    "Byte": ShapeType.BYTE,
    "Short": ShapeType.SHORT,
    "Integer": ShapeType.INTEGER,
    "Long": ShapeType.LONG,
    "Float": ShapeType.FLOAT,
    "Double": ShapeType.DOUBLE,
    "BigInteger": ShapeType.BIG_INTEGER,
    "BigDecimal": ShapeType.BIG_DECIMAL,
    "Timestamp": ShapeType.TIMESTAMP,
    "Document": ShapeType.DOCUMENT,
    "PrimitiveBoolean": ShapeType.BOOLEAN,
    "PrimitiveByte": ShapeType.BYTE,
    "PrimitiveShort": ShapeType.SHORT,
    "PrimitiveInteger": ShapeType.INTEGER,
    "PrimitiveLong": ShapeType.LONG,
    "PrimitiveFloat": ShapeType.FLOAT,
    "PrimitiveDouble": ShapeType.DOUBLE,
    "Unit": ShapeType.STRUCTURE,
}


class Trait:
    """Names of the traits that the generator inspects."""

    DOCUMENTATION = "smithy.api#documentation"
    DEPRECATED = "smithy.api#deprecated"
    REQUIRED = "smithy.api#required"
    ERROR = "smithy.api#error"
    ENUM = "smithy.api#enum"
    ENUM_VALUE = "smithy.api#enumValue"
    STREAMING = "smithy.api#streaming"
    UNIT_TYPE = "smithy.api#unitType"


# TypeScript keywords and global names that a generated declaration must not shadow.
RESERVED_WORDS = frozenset(
    {
        "Array",
        "Boolean",
        "Date",
        "Error",
        "Function",
        "Map",
        "Number",
        "Object",
        "Promise",
        "Record",
        "Set",
        "String",
        "Symbol",
        "any",
        "as",
        "async",
        "await",
        "boolean",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "constructor",
        "continue",
        "debugger",
        "declare",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "from",
        "function",
        "get",
        "if",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "module",
        "never",
        "new",
        "null",
        "number",
        "of",
        "package",
        "private",
        "protected",
        "public",
        "require",
        "return",
        "set",
        "static",
        "string",
        "super",
        "switch",
        "symbol",
        "this",
        "throw",
        "true",
        "try",
        "type",
        "typeof",
        "undefined",
        "unknown",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)

# Property names that clash with members every JavaScript object carries.
RESERVED_MEMBER_NAMES = frozenset({"__proto__", "constructor", "prototype"})
