"""Tests for the writer of a single file."""

from __future__ import annotations

import pytest

from shape_codegen.errors import InvalidFinalizeState, NamingCollision
from shape_codegen.symbol import Symbol, SymbolProperty, SymbolReference
from shape_codegen.writer import CODEGEN_INDICATOR, Writer

ITEM_A = Symbol("Item", "./src/a/models/models_0", "src/a/models/models_0.ts")
ITEM_B = Symbol("Item", "./src/b/models/models_0", "src/b/models/models_0.ts")


@pytest.fixture
def writer() -> Writer:
    return Writer("src/c/models/models_0.ts")


class TestText:
    def test_render_body(self, writer):
        """Test that blocks are indented and the file starts with the header."""
        with writer.block("export interface City {"):
            writer.write("name: string;")

        assert writer.render() == f"{CODEGEN_INDICATOR}\n\nexport interface City {{\n  name: string;\n}}\n"

    def test_render_imports(self, writer):
        """Test that the import block sits between the header and the body."""
        writer.add_import("Command", "@smithy/smithy-client", alias="$Command")
        writer.write("export class A extends $Command {}")

        assert writer.render() == (
            f"{CODEGEN_INDICATOR}\n"
            "\n"
            'import { Command as $Command } from "@smithy/smithy-client";\n'
            "\n"
            "export class A extends $Command {}\n"
        )

    def test_write_docs(self, writer):
        writer.write_docs("A city.\nWith two lines.")
        writer.write_docs(None)

        assert writer.render().endswith("/**\n * A city.\n * With two lines.\n */\n")

    def test_write_multiple_lines(self, writer):
        """Test that every line of a fragment is indented."""
        with writer.block("{"):
            writer.write("a;\nb;")

        assert writer.render().endswith("{\n  a;\n  b;\n}\n")


class TestFormatSymbol:
    """Test that referring to a symbol imports it."""

    def test_imports_symbol(self, writer):
        assert writer.format_symbol(ITEM_A) == "Item"
        assert 'import { Item } from "../../a/models/models_0";' in writer.render()

    def test_same_file_is_not_imported(self, writer):
        symbol = Symbol("Holder", "./src/c/models/models_0", "src/c/models/models_0.ts")
        assert writer.format_symbol(symbol) == "Holder"
        assert len(writer.imports) == 0

    def test_inline_symbol(self, writer):
        assert writer.format_symbol(Symbol("string")) == "string"
        assert len(writer.imports) == 0

    def test_equal_names_are_aliased(self, writer):
        """Test that a second `Item` from another module gets a numbered alias."""
        assert writer.format_symbol(ITEM_A) == "Item"
        assert writer.format_symbol(ITEM_B) == "Item2"
        assert writer.format_symbol(ITEM_A) == "Item"
        assert writer.format_symbol(ITEM_B) == "Item2"

        rendered = writer.render()
        assert 'import { Item } from "../../a/models/models_0";' in rendered
        assert 'import { Item as Item2 } from "../../b/models/models_0";' in rendered

    def test_declared_names_are_not_imported(self, writer):
        """Test that an import never shadows a declaration of the file."""
        writer.declare("Item")
        assert writer.format_symbol(ITEM_A) == "Item2"

    def test_aliased_references_are_renamed(self, writer):
        """Test that inline type expressions refer to aliased references by their alias."""
        writer.format_symbol(ITEM_A)

        member = Symbol("Item | string", references=(SymbolReference(ITEM_B),))
        items = Symbol("(Item | string)[]", references=(SymbolReference(member),))

        assert writer.format_symbol(items) == "(Item2 | string)[]"

    def test_reference_with_alias(self, writer):
        """Test that references carrying an alias are imported under that alias."""
        document_type = Symbol("DocumentType", namespace="@smithy/types", properties={SymbolProperty.TYPE_ONLY: True})
        symbol = Symbol("__DocumentType", references=(SymbolReference(document_type, alias="__DocumentType"),))

        assert writer.format_symbol(symbol) == "__DocumentType"
        assert 'import type { DocumentType as __DocumentType } from "@smithy/types";' in writer.render()

    def test_supertypes_are_not_imported(self, writer):
        """Test that referring to a symbol does not import what it extends."""
        supertype = SymbolReference(ITEM_B, properties={SymbolProperty.SUPERTYPE: True})
        symbol = Symbol("Holder", "./src/a/models/models_0", "src/a/models/models_0.ts", references=(supertype,))

        assert writer.format_symbol(symbol) == "Holder"
        assert writer.imports.alias_for("./src/b/models/models_0", "Item") is None

    def test_format_reference(self, writer):
        assert writer.format_symbol(SymbolReference(ITEM_B, alias="OtherItem")) == "OtherItem"


class TestNamingCollisions:
    def test_declare_after_import(self, writer):
        writer.format_symbol(ITEM_A)
        with pytest.raises(NamingCollision):
            writer.declare("Item")

    def test_alias_clashes_with_declaration(self, writer):
        writer.declare("Item")
        with pytest.raises(NamingCollision):
            writer.add_import("Item", "./src/a/models/models_0", alias="Item")

    def test_alias_clashes_with_import(self, writer):
        writer.add_import("Item", "./src/a/models/models_0", alias="X")
        with pytest.raises(NamingCollision):
            writer.add_import("Item", "./src/b/models/models_0", alias="X")

    def test_declare_twice(self, writer):
        """Test that a name may only be declared again by the same owner."""
        holder = Symbol("Holder", "./src/c/models/models_0", "src/c/models/models_0.ts")
        writer.declare(holder)
        writer.declare(holder)

        with pytest.raises(NamingCollision, match="declared twice"):
            writer.declare("Holder")

        with pytest.raises(NamingCollision):
            writer.declare(Symbol("Holder", "./src/d/models/models_0", "src/d/models/models_0.ts"))


class TestFreeze:
    def test_mutation_after_freeze(self, writer):
        """Test that a frozen writer rejects every change."""
        writer.write("a;")
        writer.freeze()

        with pytest.raises(InvalidFinalizeState):
            writer.write("b;")

        with pytest.raises(InvalidFinalizeState):
            writer.format_symbol(ITEM_A)

        with pytest.raises(InvalidFinalizeState):
            writer.declare("Item")

    def test_render_after_freeze(self, writer):
        writer.write("a;")
        rendered = writer.render()
        writer.freeze()
        assert writer.render() == rendered
