"""Configuration of a generation run."""

from __future__ import annotations

import argparse
from dataclasses import dataclass

from shape_codegen.model import ShapeID

DEFAULT_SOURCE_FOLDER = "src"
DEFAULT_MODEL_CHUNK_SIZE = 300


@dataclass(frozen=True)
class GeneratorSettings:
    """Settings that, together with the shape graph, fully determine the generated output.

    Attributes:
        service: The service whose `rename` map applies to shape names, if any.
        source_folder: The folder below the output directory that holds all sources.
        model_chunk_size: The maximum number of model shapes per `models_<n>` file.
            A value of 0 or less puts all models of a namespace into a single file.
        separator: Text written between the declarations of two shapes sharing a file.
        reserved_word_prefix: The prefix used to escape reserved words.
        line_width: The preferred maximum line width of generated code.
    """

    service: ShapeID | None = None
    source_folder: str = DEFAULT_SOURCE_FOLDER
    model_chunk_size: int = DEFAULT_MODEL_CHUNK_SIZE
    separator: str = "\n"
    reserved_word_prefix: str = "_"
    line_width: int = 120

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> GeneratorSettings:
        """Create settings from the parsed command-line arguments.

        Args:
            args (argparse.Namespace): The arguments that were passed to the CLI.

        Returns:
            GeneratorSettings: The settings.
        """
        service: str = getattr(args, "service", "") or ""

        return cls(
            service=ShapeID.parse(service) if service else None,
            source_folder=getattr(args, "source_folder", DEFAULT_SOURCE_FOLDER) or DEFAULT_SOURCE_FOLDER,
            model_chunk_size=getattr(args, "chunk_size", DEFAULT_MODEL_CHUNK_SIZE),
        )
