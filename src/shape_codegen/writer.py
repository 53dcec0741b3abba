"""Write the source code of a single generated TypeScript file."""

from __future__ import annotations

import contextlib
import logging
import re
import threading
from collections.abc import Iterator

from shape_codegen import helper
from shape_codegen.errors import InvalidFinalizeState, NamingCollision
from shape_codegen.imports import INDENT, ImportLedger
from shape_codegen.symbol import Symbol, SymbolProperty, SymbolReference

logger = logging.getLogger(__name__)

CODEGEN_INDICATOR = "// Code generated by shape-codegen. DO NOT EDIT."


class Writer:
    """A class that collects the body and the imports of one generated file.

    The body is written in chunks of lines, with the current indentation applied.
    Symbols are imported on use by means of `format_symbol`, which keeps every local
    name of the file bound to exactly one declaration or import.
    """

    def __init__(self, filename: str):
        """Create the writer of a file.

        Args:
            filename (str): The normalized path of the file, e.g. `src/example/models/models_0.ts`.
        """
        self.filename = filename
        self.lock = threading.RLock()

        self._imports = ImportLedger(filename)
        self._declared: dict[str, object] = {}
        self._chunks: list[str] = []
        self._indent = 0
        self._frozen = False

    @property
    def imports(self) -> ImportLedger:
        return self._imports

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def declared_names(self) -> frozenset[str]:
        return frozenset(self._declared)

    def is_empty(self) -> bool:
        return not self._chunks

    def write(self, text: str = "") -> Writer:
        """Write text, one line per line of the text, at the current indentation.

        Args:
            text (str, optional): The text to write. Defaults to an empty line.

        Returns:
            Writer: The writer itself.
        """
        self._check_open()

        for line in text.split("\n"):
            self._chunks.append(f"{INDENT * self._indent}{line}\n" if line else "\n")

        return self

    def write_raw(self, text: str) -> Writer:
        """Write text as is, without indentation or a trailing line break."""
        self._check_open()
        self._chunks.append(text)
        return self

    def write_docs(self, text: str | None, deprecated: bool = False) -> Writer:
        """Write a documentation comment, if there is anything to document."""
        if not text and not deprecated:
            return self

        for line in helper.new_doc_comment(text or "", deprecated):
            self.write(line)

        return self

    @contextlib.contextmanager
    def block(self, heading: str, closing: str = "}") -> Iterator[Writer]:
        """Write a heading, indent everything written in the context, and close the block.

        Args:
            heading (str): The opening line, e.g. `export interface Foo {`.
            closing (str, optional): The closing line. Defaults to "}".

        Yields:
            Writer: The writer itself.
        """
        self.write(heading)
        self._indent += 1
        try:
            yield self

        finally:
            self._indent -= 1

        self.write(closing)

    def declare(self, symbol: Symbol | str, owner: object = None) -> str:
        """Reserve a local name for a declaration of this file.

        Declaring a name again for the same owner has no effect.

        Args:
            symbol (Symbol | str): The declared symbol, or a plain name.
            owner (object, optional): What the declaration belongs to. Defaults to None,
                in which case the symbol or name itself is the owner.

        Raises:
            NamingCollision: If the name is already bound to an import, or declared for another owner.

        Returns:
            str: The declared name.
        """
        self._check_open()
        name = symbol if isinstance(symbol, str) else symbol.name
        owner = symbol if owner is None else owner

        entry = self._imports.lookup(name)
        if entry is not None:
            raise NamingCollision(
                f"'{name}' is declared in {self.filename}, but is already imported from '{entry.module}'."
            )

        if name in self._declared and self._declared[name] != owner:
            raise NamingCollision(f"'{name}' is declared twice in {self.filename}.")

        self._declared[name] = owner
        return name

    def add_import(self, name: str, module: str, alias: str | None = None, type_only: bool = False) -> str:
        """Import a name from a module and get the local name to refer to it.

        Args:
            name (str): The name exported by the module.
            module (str): The module, either a package or a path relative to the output root.
            alias (str | None, optional): A required local name. Defaults to None, in which case
                the name itself is used, or a numbered variant of it if the name is taken.
            type_only (bool, optional): Whether the name is only used as a type. Defaults to False.

        Raises:
            NamingCollision: If the requested alias is already bound to something else.

        Returns:
            str: The local name.
        """
        self._check_open()

        resolved = self._imports.resolve_module(module)
        if self._imports.is_self(resolved):
            return name

        if alias:
            if alias in self._declared:
                raise NamingCollision(f"Cannot import '{name}' as '{alias}': '{alias}' is declared in {self.filename}.")

            self._imports.add_import(name, alias, module, type_only)
            return alias

        existing = self._imports.alias_for(module, name)
        if existing is not None:
            self._imports.add_import(name, existing, module, type_only)
            return existing

        local_name = self._allocate_name(name)
        if local_name != name:
            logger.debug("Imported '%s' from '%s' as '%s' in %s.", name, resolved, local_name, self.filename)

        self._imports.add_import(name, local_name, module, type_only)
        return local_name

    def format_symbol(self, symbol: Symbol | SymbolReference) -> str:
        """Get the text that refers to a symbol in this file, importing what it needs.

        The symbol is imported if it is declared elsewhere, and so is everything it references.
        If a referenced symbol had to be imported under another name, the returned text refers
        to it by that name.

        Args:
            symbol (Symbol | SymbolReference): The symbol to refer to.

        Returns:
            str: The local text of the symbol, e.g. `Item2` or `(Item2 | string)[]`.
        """
        self._check_open()

        if isinstance(symbol, SymbolReference):
            return self._use_symbol(symbol.symbol, symbol.alias)

        return self._use_symbol(symbol, None)

    def render(self) -> str:
        """Render the file: the generated-code header, the imports and the body."""
        sections = [f"{CODEGEN_INDICATOR}\n"]

        imports = self._imports.render()
        if imports:
            sections.append(imports)

        body = "".join(self._chunks).strip("\n")
        if body:
            sections.append(f"{body}\n")

        return "\n".join(sections)

    def freeze(self) -> None:
        self._frozen = True

    def _use_symbol(self, symbol: Symbol, alias: str | None) -> str:
        renamed: dict[str, str] = {}

        for reference in symbol.references:
            # Supertypes only matter where the symbol is declared.
            if reference.is_supertype:
                continue

            local_name = self._use_symbol(reference.symbol, reference.alias)
            if not reference.alias and local_name != reference.symbol.name:
                renamed[reference.symbol.name] = local_name

        if symbol.namespace:
            if symbol.definition_file == self.filename:
                return symbol.name

            type_only = bool(symbol.get_property(SymbolProperty.TYPE_ONLY, False))
            return self.add_import(symbol.name, symbol.namespace, alias, type_only)

        return _rename(symbol.name, renamed)

    def _allocate_name(self, name: str) -> str:
        candidate = name
        suffix = 2

        while candidate in self._declared or self._imports.lookup(candidate) is not None:
            candidate = f"{name}{suffix}"
            suffix += 1

        return candidate

    def _check_open(self) -> None:
        if self._frozen:
            raise InvalidFinalizeState(f"{self.filename} was already finalized.")


def _rename(text: str, renamed: dict[str, str]) -> str:
    """Replace whole-name occurrences in a type expression."""
    # Longest names first, so that `Item` does not match inside `Item | string`.
    for original in sorted(renamed, key=lambda name: (-len(name), name)):
        pattern = rf"(?<![\w$]){re.escape(original)}(?![\w$])"
        text = re.sub(pattern, lambda _match, local_name=renamed[original]: local_name, text)
    return text
