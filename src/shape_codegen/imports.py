"""Track and render the imports of a single generated file."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, replace

from shape_codegen.errors import CodegenError, NamingCollision
from shape_codegen.helper import quote, strip_ts_suffix

logger = logging.getLogger(__name__)

INDENT = "  "


def is_relative(module: str) -> bool:
    """Whether a module name is a relative path, such as `./models_0` or `../models/models_0`."""
    return module.startswith("./") or module.startswith("../")


@dataclass(frozen=True)
class ImportEntry:
    """A name imported from a module, bound to a local alias."""

    imported_name: str
    alias: str
    module: str
    type_only: bool = False

    def render(self, with_type_prefix: bool) -> str:
        text = self.imported_name if self.alias == self.imported_name else f"{self.imported_name} as {self.alias}"
        if with_type_prefix and self.type_only:
            return f"type {text}"
        return text


class ImportLedger:
    """The imports of one generated file.

    Every local alias is bound to exactly one `(module, imported name)` pair.
    Relative modules are stored relative to the directory of the owning file.
    """

    def __init__(self, filename: str):
        """Create the ledger of a file.

        Args:
            filename (str): The normalized path of the owning file, e.g. `src/example/models/models_0.ts`.
        """
        self.filename = filename
        self._directory = posixpath.dirname(filename) or "."
        self._self_module = "./" + strip_ts_suffix(posixpath.basename(filename))

        self._by_alias: dict[str, ImportEntry] = {}
        self._by_module: dict[str, dict[str, ImportEntry]] = {}

    def resolve_module(self, module: str) -> str:
        """Make a module name relative to the owning file.

        Modules that are not relative paths, such as `@smithy/types`, are returned unchanged.
        Relative paths are interpreted relative to the output root, e.g. `./src/models/models_0`.

        Args:
            module (str): The module name.

        Returns:
            str: The module name as seen from the owning file.
        """
        if not is_relative(module):
            return module

        relative = posixpath.relpath(posixpath.normpath(module), self._directory)
        if not relative.startswith("."):
            relative = f"./{relative}"
        return relative

    def is_self(self, module: str) -> bool:
        """Whether a resolved module name refers to the owning file."""
        return module == self._self_module

    def add_import(self, imported_name: str, alias: str, module: str, type_only: bool = False) -> None:
        """Import a name from a module.

        Adding the same import twice is a no-op; importing a name as a value once makes
        the import a value import for good.

        Args:
            imported_name (str): The name exported by the module.
            alias (str): The local name. Defaults to the imported name if empty.
            module (str): The module to import from.
            type_only (bool, optional): Whether the name is only used as a type. Defaults to False.

        Raises:
            CodegenError: On a wildcard import.
            NamingCollision: If the alias is already bound to another import.
        """
        if imported_name == "*":
            raise CodegenError(f"Wildcard imports from '{module}' are not supported.")

        alias = alias or imported_name
        resolved = self.resolve_module(module)

        if self.is_self(resolved):
            logger.debug("Skipped import of '%s' from its own file %s.", imported_name, self.filename)
            return

        existing = self._by_alias.get(alias)
        if existing is not None:
            if (existing.imported_name, existing.module) != (imported_name, resolved):
                raise NamingCollision(
                    f"'{alias}' in {self.filename} is bound to '{existing.imported_name}' from "
                    f"'{existing.module}', cannot bind it to '{imported_name}' from '{resolved}'."
                )

            if existing.type_only and not type_only:
                self._store(replace(existing, type_only=False))
            return

        self._store(ImportEntry(imported_name, alias, resolved, type_only))

    def lookup(self, alias: str) -> ImportEntry | None:
        return self._by_alias.get(alias)

    def alias_for(self, module: str, imported_name: str) -> str | None:
        """Find the alias that a name of a module was already imported as, if any."""
        entries = self._by_module.get(self.resolve_module(module), {})
        for entry in entries.values():
            if entry.imported_name == imported_name:
                return entry.alias
        return None

    def entries(self) -> list[ImportEntry]:
        return list(self._by_alias.values())

    def __len__(self) -> int:
        return len(self._by_alias)

    def render(self) -> str:
        """Render the import statements.

        Package imports come first, sorted case-insensitively, followed by a blank line and the
        relative imports. The entries of a statement are sorted by their alias.

        Returns:
            str: The import statements, or an empty string if nothing is imported.
        """
        modules = sorted(self._by_module, key=lambda module: (is_relative(module), module.lower(), module))

        lines: list[str] = []
        previous_relative: bool | None = None

        for module in modules:
            relative = is_relative(module)
            if previous_relative is False and relative:
                lines.append("")
            previous_relative = relative

            lines.extend(self._render_statement(module))

        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def _render_statement(self, module: str) -> list[str]:
        entries = sorted(self._by_module[module].values(), key=lambda entry: entry.alias)
        all_type_only = all(entry.type_only for entry in entries)

        keyword = "import type" if all_type_only else "import"
        names = [entry.render(with_type_prefix=not all_type_only) for entry in entries]

        if len(names) == 1:
            return [f"{keyword} {{ {names[0]} }} from {quote(module)};"]

        lines = [f"{keyword} {{"]
        lines.extend(f"{INDENT}{name}," for name in names)
        lines.append(f"}} from {quote(module)};")
        return lines

    def _store(self, entry: ImportEntry) -> None:
        self._by_alias[entry.alias] = entry
        self._by_module.setdefault(entry.module, {})[entry.alias] = entry
