"""Top-level module for source generation."""

from __future__ import annotations

import argparse
import glob
import logging
import os.path
import subprocess
import tempfile
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from shape_codegen.emitters import EmissionPass, ShapeEmitter
from shape_codegen.errors import CodegenError, EmissionError
from shape_codegen.loaders.graph import SCHEMA_SUFFIXES, load_graph
from shape_codegen.manifest import DirectoryManifest
from shape_codegen.model import ShapeGraph
from shape_codegen.registry import PostHook, WriterRegistry
from shape_codegen.resolver import SymbolResolver
from shape_codegen.settings import GeneratorSettings
from shape_codegen.shape_types import ShapeType

logger = logging.getLogger(__name__)

FilePass = Callable[[WriterRegistry], None]


class ValidationError(CodegenError):
    """Raised when tsc finds type errors in generated sources."""


def run_generation(
    graph: ShapeGraph,
    dispatch_table: Mapping[ShapeType, EmissionPass],
    post_hook: PostHook | None = None,
    settings: GeneratorSettings | None = None,
    resolver: SymbolResolver | None = None,
    file_passes: Iterable[FilePass] = (),
) -> dict[str, str]:
    """Generate the sources of every declared shape of a graph.

    Shapes are visited in sorted ID order. A shape is emitted if its kind has an emission pass
    and its symbol is declared in a file. The names of all declarations are reserved in their
    files before the first pass runs, so that imports never take them.

    Args:
        graph (ShapeGraph): The graph to generate sources for.
        dispatch_table (Mapping[ShapeType, EmissionPass]): The emission pass per shape kind.
        post_hook (PostHook | None, optional): Called once per file before it is rendered. Defaults to None.
        settings (GeneratorSettings | None, optional): The generator settings. Defaults to None.
        resolver (SymbolResolver | None, optional): The resolver to use. Defaults to a new one.
        file_passes (Iterable[FilePass], optional): Passes that run once all shapes were emitted,
            with access to the registry. Defaults to ().

    Raises:
        EmissionError: If an emission pass fails for another reason than a `CodegenError`.
        CodegenError: If a pass runs into a naming collision or a missing shape, which is raised as is.

    Returns:
        dict[str, str]: The contents of every generated file, by path relative to the output directory.
    """
    settings = settings or GeneratorSettings()
    resolver = resolver or SymbolResolver(graph, settings)
    registry = WriterRegistry(settings.separator)

    pending = []
    for shape_id in graph.all_node_ids():
        shape = graph.get_shape(shape_id)

        emission_pass = dispatch_table.get(shape.type)
        if emission_pass is None:
            logger.debug("No emission pass for %s shape %s.", shape.type, shape_id)
            continue

        symbol = resolver.resolve(shape_id)
        if symbol.is_inline:
            logger.debug("Skipped inline shape %s.", shape_id)
            continue

        registry.declare(symbol)
        pending.append((shape, symbol, emission_pass))

    for shape, symbol, emission_pass in pending:
        with registry.use_shape_writer(shape.id, symbol) as writer:
            try:
                emission_pass(shape, symbol, writer)

            except CodegenError:
                raise

            except Exception as e:
                raise EmissionError(shape.id, writer.filename, str(e)) from e

    for file_pass in file_passes:
        file_pass(registry)

    files = registry.finalize(post_hook)
    logger.info("Generated %d file(s) from %d shape(s).", len(files), len(pending))
    return files


def generate(graph: ShapeGraph, settings: GeneratorSettings | None = None) -> dict[str, str]:
    """Entry-point for generating TypeScript sources with the default emission passes.

    Args:
        graph (ShapeGraph): The graph to generate sources for.
        settings (GeneratorSettings | None, optional): The generator settings. Defaults to None.

    Returns:
        dict[str, str]: The contents of every generated file, by path.
    """
    settings = settings or GeneratorSettings()
    resolver = SymbolResolver(graph, settings)
    emitter = ShapeEmitter(graph, resolver)

    return run_generation(
        graph,
        emitter.dispatch_table(),
        post_hook=emitter.errors_post_hook,
        settings=settings,
        resolver=resolver,
        file_passes=(emitter.write_index,),
    )


def flush(files: Mapping[str, str], output_directory: str, max_workers: int | None = None) -> list[Path]:
    """Write generated files to an output directory, all or nothing.

    Args:
        files (Mapping[str, str]): The file contents, by path relative to the output directory.
        output_directory (str): The output directory.
        max_workers (int | None, optional): The number of writer threads. Defaults to None.

    Returns:
        list[Path]: The written files.
    """
    return DirectoryManifest(output_directory).write_all(dict(files), max_workers=max_workers)


def format_outputs(raw_input: str, line_width: int = 120) -> str:
    """Formats raw TypeScript using prettier.

    Args:
        raw_input (str): The unformatted input.
        line_width (int, optional): The maximum line width. Defaults to 120.

    Returns:
        str: The formatted outputs, or the input itself if prettier is not available or fails.
    """
    try:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".ts", delete=False, encoding="utf-8") as f:
            temp_path = Path(f.name)
            f.write(raw_input)

        try:
            subprocess.run(
                ["prettier", "--write", "--print-width", str(line_width), str(temp_path)],
                capture_output=True,
                check=True,
            )
            return temp_path.read_text(encoding="utf-8")

        finally:
            temp_path.unlink(missing_ok=True)

    except FileNotFoundError:
        logger.warning("prettier not found, leaving the output unformatted.")
        return raw_input

    except subprocess.CalledProcessError as e:
        logger.error(f"Prettier formatting failed: {e}")
        logger.error(f"Stderr: {e.stderr.decode('utf-8', errors='replace')}")
        return raw_input


def validate_with_tsc(paths: Iterable[Path]) -> None:
    """Validate generated sources using the TypeScript compiler.

    Args:
        paths (Iterable[Path]): The generated files.

    Raises:
        ValidationError: If tsc cannot be run, or finds any type errors.
    """
    sources = [str(path) for path in paths if path.suffix == ".ts"]
    if not sources:
        logger.warning("No sources found to validate")
        return

    logger.info(f"Validating {len(sources)} generated file(s) with tsc...")

    try:
        result = subprocess.run(
            ["tsc", "--noEmit", "--strict", "--skipLibCheck", *sources],
            capture_output=True,
            text=True,
            check=False,
        )

    except FileNotFoundError as e:
        logger.error("tsc not found. Please install TypeScript: npm install -g typescript")
        raise ValidationError("tsc command not found. Please install TypeScript.") from e

    except subprocess.SubprocessError as e:
        raise ValidationError(f"Error running tsc: {e}") from e

    if result.returncode != 0:
        error_count = result.stdout.count("error TS")
        raise ValidationError(f"tsc validation failed with {error_count} error(s):\n\n{result.stdout}")

    logger.info("tsc validation passed - no type errors found")


def collect_paths(
    root_directory: str,
    paths: Iterable[str],
    excludes: Iterable[str] = (),
    recursive: bool = False,
) -> list[str]:
    """Find the schema files to load.

    Directories are searched for files with a known schema suffix, recursively if requested.
    Other paths are treated as glob patterns.

    Args:
        root_directory (str): The directory that relative paths are interpreted against.
        paths (Iterable[str]): Files, directories or glob patterns.
        excludes (Iterable[str], optional): Files or glob patterns to leave out. Defaults to ().
        recursive (bool, optional): Whether to search directories and `**` patterns recursively.
            Defaults to False.

    Returns:
        list[str]: The schema files, sorted.
    """
    excluded_paths: set[str] = set()
    for exclude in excludes:
        exclude_path = os.path.join(root_directory, exclude)
        if os.path.isfile(exclude_path):
            excluded_paths.add(exclude_path)
        else:
            excluded_paths.update(glob.glob(exclude_path, recursive=recursive))

    search_paths: set[str] = set()
    for path in paths:
        search_path = os.path.join(root_directory, path)

        if recursive and os.path.isdir(search_path):
            for root, _, files in os.walk(search_path):
                for file in files:
                    if file.endswith(SCHEMA_SUFFIXES):
                        search_paths.add(os.path.join(root, file))

        elif os.path.isdir(search_path):
            for file in os.listdir(search_path):
                file_path = os.path.join(search_path, file)
                if os.path.isfile(file_path) and file.endswith(SCHEMA_SUFFIXES):
                    search_paths.add(file_path)

        else:
            search_paths.update(glob.glob(search_path, recursive=recursive))

    return sorted(search_paths - excluded_paths)


def run(args: argparse.Namespace, root_directory: str) -> list[Path]:
    """Run the generator on a set of paths that point to schemas.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
        root_directory (str): The directory, from which the generator is executed.

    Returns:
        list[Path]: The written files.
    """
    paths: list[str] = args.paths
    excludes: list[str] = getattr(args, "excludes", [])
    clean: list[str] = getattr(args, "clean", [])
    recursive: bool = getattr(args, "recursive", False)
    output_dir: str = getattr(args, "output_dir", "") or root_directory
    import_paths: list[str] = getattr(args, "import_paths", [])

    schema_paths = collect_paths(root_directory, paths, excludes, recursive)
    if not schema_paths:
        logger.warning("No schema files found.")
        return []

    absolute_import_paths = [os.path.join(root_directory, p) for p in import_paths]
    graph = load_graph(schema_paths, absolute_import_paths)

    settings = GeneratorSettings.from_args(args)
    files = generate(graph, settings)

    if getattr(args, "format", False):
        files = {path: format_outputs(contents, settings.line_width) for path, contents in files.items()}

    # Nothing is removed before generation succeeded.
    cleanup_paths: set[str] = set()
    for c in clean:
        cleanup_paths.update(glob.glob(os.path.join(root_directory, c), recursive=recursive))

    for cleanup_path in sorted(cleanup_paths):
        if os.path.isfile(cleanup_path):
            os.remove(cleanup_path)

    written = flush(files, output_dir, getattr(args, "workers", None))

    if getattr(args, "validate", False):
        validate_with_tsc(written)

    return written
