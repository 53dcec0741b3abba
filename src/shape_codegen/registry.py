"""The registry of all files that a generation run writes."""

from __future__ import annotations

import contextlib
import logging
import posixpath
import threading
from collections.abc import Callable, Iterator
from enum import Enum

from shape_codegen.errors import InvalidFinalizeState
from shape_codegen.model import ShapeID
from shape_codegen.symbol import Symbol
from shape_codegen.writer import Writer

logger = logging.getLogger(__name__)

PostHook = Callable[[str, Writer, frozenset[ShapeID]], None]


class RegistryState(Enum):
    OPEN = "open"
    FINALIZED = "finalized"


def normalize_path(path: str) -> str:
    """Normalize a file path, so that equal files always share one writer.

    For example, `./src/models/../models/models_0.ts` becomes `src/models/models_0.ts`.
    """
    normalized = posixpath.normpath(path.replace("\\", "/"))
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


class WriterRegistry:
    """Owns the writer of every file of one generation run, and the shapes that contributed to it.

    The registry lives from the start of a run until `finalize`, which renders every file exactly
    once. Afterwards, every call raises `InvalidFinalizeState`.
    """

    def __init__(self, separator: str = "\n"):
        """Create an open registry.

        Args:
            separator (str, optional): Text written between the declarations of two different
                shapes in one file. Defaults to "\\n".
        """
        self.state = RegistryState.OPEN

        self._separator = separator
        self._writers: dict[str, Writer] = {}
        self._contributors: dict[str, set[ShapeID]] = {}
        self._lock = threading.Lock()

    def get_or_create_buffer(self, path: str) -> Writer:
        """Get the writer of a file, creating it on first use.

        Args:
            path (str): The path of the file, relative to the output directory.

        Returns:
            Writer: The writer of the file.
        """
        self._check_open()
        path = normalize_path(path)

        with self._lock:
            writer = self._writers.get(path)
            if writer is None:
                writer = self._writers[path] = Writer(path)
                self._contributors[path] = set()
                logger.debug("Created writer for %s.", path)

        return writer

    def record_contributor(self, path: str, shape_id: ShapeID) -> bool:
        """Record that a shape writes into a file.

        Returns:
            bool: Whether the shape is a new contributor to the file.
        """
        self._check_open()
        path = normalize_path(path)
        self.get_or_create_buffer(path)

        with self._lock:
            contributors = self._contributors[path]
            if shape_id in contributors:
                return False

            contributors.add(shape_id)
            return True

    def contributors(self, path: str) -> frozenset[ShapeID]:
        """The shapes that contributed to a file so far."""
        self._check_open()
        with self._lock:
            return frozenset(self._contributors.get(normalize_path(path), ()))

    def paths(self) -> list[str]:
        self._check_open()
        with self._lock:
            return sorted(self._writers)

    def declare(self, symbol: Symbol) -> None:
        """Reserve the names that a symbol declares in its file, before anything is emitted.

        Besides the symbol itself, every symbol-valued property that lives in the same file is
        declared, such as the input and output types of a command.

        Args:
            symbol (Symbol): A declared symbol.
        """
        writer = self.get_or_create_buffer(symbol.definition_file)

        with writer.lock:
            writer.declare(symbol)
            for value in symbol.properties.values():
                if isinstance(value, Symbol) and normalize_path(value.definition_file) == writer.filename:
                    writer.declare(value)

    @contextlib.contextmanager
    def use_shape_writer(self, shape_id: ShapeID, symbol: Symbol) -> Iterator[Writer]:
        """Get exclusive access to the writer of the file a shape is declared in.

        The separator is written before the first output of every contributor but the first.

        Args:
            shape_id (ShapeID): The shape that is about to be emitted.
            symbol (Symbol): The symbol of the shape.

        Yields:
            Writer: The writer of the shape's file.
        """
        writer = self.get_or_create_buffer(symbol.definition_file)

        with writer.lock:
            is_new = self.record_contributor(writer.filename, shape_id)
            if is_new and not writer.is_empty():
                writer.write_raw(self._separator)

            yield writer

    def finalize(self, post_hook: PostHook | None = None) -> dict[str, str]:
        """Render every file, after giving the post-hook a final chance to write to it.

        The hook is called exactly once per file, in sorted path order, with the file's
        contributors. Afterwards, the writers are frozen and the registry is cleared.

        Args:
            post_hook (PostHook | None, optional): Called as `post_hook(path, writer, contributors)`.
                Defaults to None.

        Raises:
            InvalidFinalizeState: If the registry was already finalized.

        Returns:
            dict[str, str]: The contents of every file, by path.
        """
        self._check_open()

        with self._lock:
            self.state = RegistryState.FINALIZED
            writers = dict(sorted(self._writers.items()))
            contributors = {path: frozenset(shapes) for path, shapes in self._contributors.items()}
            self._writers.clear()
            self._contributors.clear()

        files: dict[str, str] = {}
        for path, writer in writers.items():
            with writer.lock:
                if post_hook is not None:
                    post_hook(path, writer, contributors[path])

                files[path] = writer.render()
                writer.freeze()

        logger.debug("Finalized %d file(s).", len(files))
        return files

    def _check_open(self) -> None:
        if self.state is not RegistryState.OPEN:
            raise InvalidFinalizeState("The writer registry was already finalized.")
