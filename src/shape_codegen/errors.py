"""Errors raised while generating sources from a shape graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shape_codegen.model import ShapeID


class CodegenError(Exception):
    """Base class for every error that aborts a generation run."""


class ShapeNotFound(CodegenError, KeyError):
    """Raised when a shape ID is not present in the shape graph."""

    def __init__(self, shape_id: ShapeID | str):
        self.shape_id = shape_id
        super().__init__(f"Shape not found: {shape_id}")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise.
        return str(self.args[0])


class NamingCollision(CodegenError):
    """Raised when two different things would be known by the same name in one place."""


class InvalidFinalizeState(CodegenError):
    """Raised when outputs are finalized twice or mutated after being finalized."""


class EmissionError(CodegenError):
    """Raised when an emission pass fails for a single shape."""

    def __init__(self, shape_id: ShapeID, filename: str, reason: str):
        self.shape_id = shape_id
        self.filename = filename
        super().__init__(f"Failed to emit '{shape_id}' into '{filename}': {reason}")
