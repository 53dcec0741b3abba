"""Front-ends that load a shape graph from schema files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from shape_codegen.errors import CodegenError
from shape_codegen.loaders.capnp_schema import load_schemas
from shape_codegen.loaders.smithy_json import load_model
from shape_codegen.model import Shape, ShapeGraph

logger = logging.getLogger(__name__)

SMITHY_JSON_SUFFIX = ".json"
CAPNP_SUFFIX = ".capnp"
SCHEMA_SUFFIXES = (SMITHY_JSON_SUFFIX, CAPNP_SUFFIX)


def load_graph(paths: Iterable[str | Path], import_paths: Iterable[str | Path] | None = None) -> ShapeGraph:
    """Load a shape graph from Smithy JSON models and Cap'n Proto schemas.

    The front-end is picked by the suffix of each file.

    Args:
        paths (Iterable[str | Path]): The schema files.
        import_paths (Iterable[str | Path] | None, optional): Import paths for Cap'n Proto schemas.
            Defaults to None.

    Raises:
        CodegenError: If a file has an unknown suffix, or two files declare the same shape.

    Returns:
        ShapeGraph: The graph of all loaded shapes.
    """
    shapes: list[Shape] = []
    capnp_paths: list[Path] = []

    for path in sorted(Path(p) for p in paths):
        if path.suffix == SMITHY_JSON_SUFFIX:
            shapes.extend(load_model(path))

        elif path.suffix == CAPNP_SUFFIX:
            capnp_paths.append(path)

        else:
            raise CodegenError(f"Cannot load '{path}': unknown schema suffix '{path.suffix}'.")

    if capnp_paths:
        shapes.extend(load_schemas(capnp_paths, import_paths))

    try:
        return ShapeGraph(shapes)

    except ValueError as e:
        raise CodegenError(str(e)) from e
