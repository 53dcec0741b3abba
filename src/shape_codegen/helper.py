"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from shape_codegen.shape_types import RESERVED_MEMBER_NAMES, RESERVED_WORDS

TS_SUFFIX = ".ts"

PROPERTY_NAME_REGEX = re.compile(r"^(?![0-9])[a-zA-Z0-9$_]+$")


def escape_reserved_word(name: str, prefix: str = "_") -> str:
    """Escape a name that is a TypeScript reserved word.

    E.g. 'Date' becomes '_Date', 'class' becomes '_class'.

    Args:
        name (str): The original name.
        prefix (str, optional): The escape prefix. Defaults to "_".

    Returns:
        str: The escaped name, or the original name if it is not reserved.
    """
    if name in RESERVED_WORDS:
        return f"{prefix}{name}"
    return name


def escape_member_name(name: str, prefix: str = "_") -> str:
    """Escape a member name that clashes with a property of every JavaScript object."""
    if name in RESERVED_MEMBER_NAMES:
        return f"{prefix}{name}"
    return name


def capitalize(name: str) -> str:
    """Upper-case the first letter of a name, keeping the rest as is."""
    return name[:1].upper() + name[1:]


def to_pascal_case(text: str) -> str:
    """Convert a dotted, dashed or snake_case string into PascalCase.

    Existing inner capitals are kept, so `Outer.innerType` becomes `OuterInnerType`.

    Args:
        text (str): The text to convert.

    Returns:
        str: The converted text.
    """
    normalized = re.sub(r"[^0-9a-zA-Z_$]+", "_", text)
    parts = [part for part in normalized.split("_") if part]
    return "".join(capitalize(part) for part in parts)


def quote(value: str) -> str:
    """Quote a string as a TypeScript string literal."""
    return json.dumps(value)


def sanitize_property_name(name: str) -> str:
    """Add quotes to a member name if it is not a valid unquoted property name."""
    if PROPERTY_NAME_REGEX.match(name):
        return name
    return quote(name)


def strip_ts_suffix(filename: str) -> str:
    """Remove the `.ts` suffix of a filename, if present.

    For example, `src/models/models_0.ts` becomes `src/models/models_0`.
    """
    if filename.endswith(TS_SUFFIX):
        return filename[: -len(TS_SUFFIX)]
    return filename


def join_parameters(parameters: Sequence[str] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[str] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(p for p in parameters if p)

    else:
        return ""


def new_group(name: str, members: Sequence[str]) -> str:
    """Create a string for a generic type and its parameters.

    For example, when the group name is 'Record', and the parameters are 'string', and 'number',
    the output will be 'Record<string, number>'.

    Args:
        name (str): The name of the group.
        members (Sequence[str]): The members of the group.

    Returns:
        str: The resulting group string.
    """
    return f"{name}<{join_parameters(members)}>"


def new_list_type(element_type: str) -> str:
    """Create an array type, e.g. `(string)[]`."""
    return f"({element_type})[]"


def new_type_union(types: Sequence[str]) -> str:
    """Join types into a union. An empty union is `never`."""
    if not types:
        return "never"
    return " | ".join(types)


def new_interface_declaration(name: str, extends: Sequence[str] | None = None) -> str:
    """Creates a string that opens an exported interface.

    For example, for a name of 'GetCityCommandInput' that extends 'GetCityInput', the output
    will be 'export interface GetCityCommandInput extends GetCityInput {'.

    Args:
        name (str): The interface name.
        extends (Sequence[str] | None, optional): The interfaces to extend. Defaults to None.

    Returns:
        str: The interface declaration.
    """
    if extends:
        return f"export interface {name} extends {join_parameters(extends)} {{"
    return f"export interface {name} {{"


def new_class_declaration(name: str, extends: str | None = None, implements: Sequence[str] | None = None) -> str:
    """Creates a string that opens an exported class."""
    declaration = f"export class {name}"
    if extends:
        declaration += f" extends {extends}"
    if implements:
        declaration += f" implements {join_parameters(implements)}"
    return declaration + " {"


def new_type_alias(name: str, value: str) -> str:
    return f"export type {name} = {value};"


def new_property(name: str, type_name: str, optional: bool = False, readonly: bool = False) -> str:
    """Create a property signature of an interface or class.

    Optional properties also accept `undefined`, so that they may be set explicitly.

    Args:
        name (str): The property name.
        type_name (str): The property type.
        optional (bool, optional): Whether the property is optional. Defaults to False.
        readonly (bool, optional): Whether the property is read-only. Defaults to False.

    Returns:
        str: The property signature.
    """
    prefix = "readonly " if readonly else ""
    if optional:
        return f"{prefix}{sanitize_property_name(name)}?: {type_name} | undefined;"
    return f"{prefix}{sanitize_property_name(name)}: {type_name};"


def new_doc_comment(text: str, deprecated: bool = False) -> list[str]:
    """Create the lines of a documentation comment.

    Args:
        text (str): The documentation text; may span multiple lines.
        deprecated (bool, optional): Whether to add a `@deprecated` tag. Defaults to False.

    Returns:
        list[str]: The comment lines.
    """
    # `*/` would end the comment early.
    body = text.replace("*/", "*\\/").splitlines() if text else []
    if deprecated:
        body = ["@deprecated", ""] + body if body else ["@deprecated"]

    lines = ["/**"]
    lines.extend(f" * {line}".rstrip() for line in body)
    lines.append(" */")
    return lines
