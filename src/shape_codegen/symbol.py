"""Symbols: the resolved TypeScript identity of a shape."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, override


class SymbolProperty:
    """Keys of well-known symbol properties."""

    SHAPE_ID = "shape_id"
    INPUT_TYPE = "input_type"
    OUTPUT_TYPE = "output_type"
    ENUM_VALUES = "enum_values"
    TYPE_ONLY = "type_only"
    SUPERTYPE = "supertype"


@dataclass(frozen=True)
class Symbol:
    """A class that captures the resolved identity of a shape.

    Attributes:
        name: The display identifier, or a full type expression for inline symbols.
        namespace: The module the symbol is imported from, e.g. `./src/example/models/models_0`.
            None for built-in types that need no import.
        definition_file: The file that declares the symbol. Empty for inline type expressions.
        references: Other symbols this one depends on syntactically.
        properties: Metadata attached by the generator, opaque to the resolver.
    """

    name: str
    namespace: str | None = None
    definition_file: str = ""
    references: tuple[SymbolReference, ...] = ()
    properties: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_inline(self) -> bool:
        """Whether the symbol is a type expression rather than a named declaration."""
        return not self.definition_file

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def with_properties(self, **properties: Any) -> Symbol:
        """Create a copy of the symbol with additional properties."""
        return dataclasses.replace(self, properties={**self.properties, **properties})

    def with_name(self, name: str) -> Symbol:
        return dataclasses.replace(self, name=name)

    @override
    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}:{self.name}"
        return self.name


@dataclass(frozen=True)
class SymbolReference:
    """A reference from one symbol to another, optionally imported under an alias."""

    symbol: Symbol
    alias: str | None = None
    properties: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def local_name(self) -> str:
        return self.alias or self.symbol.name

    @property
    def is_supertype(self) -> bool:
        return bool(self.properties.get(SymbolProperty.SUPERTYPE, False))
