"""Command-line interface for generating TypeScript sources from schema files.

Notes:
    - Smithy models are read in the JSON AST format (`*.json`).
    - Cap'n Proto schemas (`*.capnp`) are read by means of pycapnp >= 2.0.0.
"""

from __future__ import annotations

import argparse
import logging
import os.path
from collections.abc import Sequence

from shape_codegen.errors import CodegenError
from shape_codegen.run import run
from shape_codegen.settings import DEFAULT_MODEL_CHUNK_SIZE, DEFAULT_SOURCE_FOLDER

logger = logging.getLogger(__name__)


def _add_recursive_argument(parser: argparse.ArgumentParser):
    """Add a recursive argument to a parser.

    Args:
        parser (argparse.ArgumentParser): The parser to add the argument to.
    """
    parser.add_argument(
        "-r",
        "--recursive",
        dest="recursive",
        default=False,
        action="store_true",
        help="recursively search for schema files with a given glob expression.",
    )


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(description="Generate TypeScript sources for schema files.")

    parser.add_argument(
        "-c",
        "--clean",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions that match files to clean up before generation.",
    )

    parser.add_argument(
        "-p",
        "--paths",
        type=str,
        nargs="+",
        default=["**/*.json"],
        help="path or glob expressions that match *.json models or *.capnp schemas.",
    )

    parser.add_argument(
        "-e",
        "--excludes",
        type=str,
        nargs="+",
        default=[],
        help="path or glob expressions to exclude from path matches.",
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="",
        help="directory to write all generated sources to; defaults to the working directory.",
    )

    parser.add_argument(
        "-I",
        "--import-path",
        dest="import_paths",
        type=str,
        nargs="+",
        default=[],
        help="additional import paths for resolving absolute imports of capnp schemas (e.g., /capnp/c++.capnp).",
    )

    parser.add_argument(
        "-s",
        "--service",
        type=str,
        default="",
        help="absolute shape ID of the service whose renames apply, e.g. 'example.weather#Weather'.",
    )

    parser.add_argument(
        "--source-folder",
        type=str,
        default=DEFAULT_SOURCE_FOLDER,
        help=f"folder below the output directory that holds the sources; defaults to '{DEFAULT_SOURCE_FOLDER}'.",
    )

    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_MODEL_CHUNK_SIZE,
        help=f"maximum number of model shapes per models file, 0 for no limit; defaults to {DEFAULT_MODEL_CHUNK_SIZE}.",
    )

    parser.add_argument(
        "--format",
        dest="format",
        default=False,
        action="store_true",
        help="format generated sources with prettier.",
    )

    parser.add_argument(
        "--validate",
        dest="validate",
        default=False,
        action="store_true",
        help="validate generated sources with tsc.",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="number of threads that write the generated files.",
    )

    _add_recursive_argument(parser)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    logging.basicConfig(level=logging.INFO)

    root_directory = os.getcwd()
    logging.info("Working from root directory: %s", root_directory)

    parser = setup_parser()
    args = parser.parse_args(argv)

    try:
        run(args, root_directory)

    except CodegenError as e:
        logger.error("Generation failed: %s", e)
        return 1

    return 0
