"""Tests for the import ledger of a file."""

from __future__ import annotations

import pytest

from shape_codegen.errors import CodegenError, NamingCollision
from shape_codegen.imports import ImportLedger


@pytest.fixture
def ledger() -> ImportLedger:
    return ImportLedger("src/a/models/models_0.ts")


class TestModuleResolution:
    """Test that modules are made relative to the owning file."""

    def test_relative_to_sibling(self, ledger):
        assert ledger.resolve_module("./src/a/models/models_1") == "./models_1"

    def test_relative_to_other_namespace(self, ledger):
        assert ledger.resolve_module("./src/b/models/models_0") == "../../b/models/models_0"

    def test_packages_are_kept(self, ledger):
        assert ledger.resolve_module("@smithy/types") == "@smithy/types"

    def test_self_import_is_dropped(self, ledger):
        """Test that importing from the owning file is a no-op."""
        ledger.add_import("Item", "Item", "./src/a/models/models_0")
        assert len(ledger) == 0
        assert ledger.render() == ""


class TestAddImport:
    def test_alias_defaults_to_name(self, ledger):
        ledger.add_import("Item", "", "./src/b/models/models_0")
        entry = ledger.lookup("Item")
        assert entry is not None
        assert entry.module == "../../b/models/models_0"

    def test_idempotent(self, ledger):
        """Test that adding the same import twice keeps one entry."""
        ledger.add_import("Item", "Item", "./src/b/models/models_0")
        ledger.add_import("Item", "Item", "./src/b/models/models_0")
        assert len(ledger) == 1

    def test_alias_collision(self, ledger):
        """Test that one alias is never bound to two different imports."""
        ledger.add_import("Item", "Item", "./src/b/models/models_0")

        with pytest.raises(NamingCollision):
            ledger.add_import("Item", "Item", "./src/c/models/models_0")

        with pytest.raises(NamingCollision):
            ledger.add_import("Other", "Item", "./src/b/models/models_0")

    def test_wildcard_is_rejected(self, ledger):
        with pytest.raises(CodegenError):
            ledger.add_import("*", "models", "./src/b/models/models_0")

    def test_alias_for(self, ledger):
        ledger.add_import("Item", "Item2", "./src/b/models/models_0")
        assert ledger.alias_for("./src/b/models/models_0", "Item") == "Item2"
        assert ledger.alias_for("./src/c/models/models_0", "Item") is None


class TestRender:
    """Test rendering of import statements."""

    def test_render_order(self, ledger):
        """Test that packages come first, and entries are grouped by module and sorted by alias."""
        ledger.add_import("Other", "Other", "./src/a/models/models_1")
        ledger.add_import("MetadataBearer", "__MetadataBearer", "@smithy/types", type_only=True)
        ledger.add_import("Item", "Item2", "./src/b/models/models_0")
        ledger.add_import("Command", "$Command", "@smithy/smithy-client")
        ledger.add_import("Item", "Item", "./src/a/models/models_1")

        assert ledger.render() == (
            'import { Command as $Command } from "@smithy/smithy-client";\n'
            'import type { MetadataBearer as __MetadataBearer } from "@smithy/types";\n'
            "\n"
            'import { Item as Item2 } from "../../b/models/models_0";\n'
            "import {\n"
            "  Item,\n"
            "  Other,\n"
            '} from "./models_1";\n'
        )

    def test_mixed_type_only(self, ledger):
        """Test that type-only entries are marked one by one when a statement also imports values."""
        ledger.add_import("Y", "Y", "m")
        ledger.add_import("X", "X", "m", type_only=True)

        assert ledger.render() == 'import {\n  type X,\n  Y,\n} from "m";\n'

    def test_value_import_wins(self, ledger):
        """Test that a name used as a value once is imported as a value."""
        ledger.add_import("X", "X", "m", type_only=True)
        ledger.add_import("X", "X", "m")

        assert ledger.render() == 'import { X } from "m";\n'

    def test_render_is_deterministic(self):
        """Test that the order of additions does not matter."""
        imports = [("A", "A", "./src/x"), ("B", "B", "./src/y"), ("C", "C", "pkg"), ("D", "D", "./src/x")]

        first = ImportLedger("src/z.ts")
        for entry in imports:
            first.add_import(*entry)

        second = ImportLedger("src/z.ts")
        for entry in reversed(imports):
            second.add_import(*entry)

        assert first.render() == second.render()
