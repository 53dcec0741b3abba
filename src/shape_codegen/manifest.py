"""Persist generated files to an output directory."""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from shape_codegen.errors import CodegenError

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".shape-codegen-"


class DirectoryManifest:
    """Writes a set of files below one output directory, all or nothing.

    Files are first written to a staging directory inside the output directory, in parallel.
    Only when every file was written successfully, they are moved to their final location.
    """

    def __init__(self, output_directory: str | Path):
        self.output_directory = Path(output_directory)

    def target_path(self, path: str) -> Path:
        """Get the location of a generated file.

        Args:
            path (str): The path of the file, relative to the output directory.

        Raises:
            CodegenError: If the path would leave the output directory.

        Returns:
            Path: The path of the file below the output directory.
        """
        normalized = posixpath.normpath(path)
        if posixpath.isabs(normalized) or normalized == ".." or normalized.startswith("../"):
            raise CodegenError(f"Refusing to write '{path}' outside of {self.output_directory}.")

        return self.output_directory.joinpath(*normalized.split("/"))

    def write_all(self, files: dict[str, str], max_workers: int | None = None) -> list[Path]:
        """Write all files.

        Args:
            files (dict[str, str]): The file contents, by path relative to the output directory.
            max_workers (int | None, optional): The number of writer threads. Defaults to None,
                which lets the executor decide.

        Returns:
            list[Path]: The written files, sorted.
        """
        targets = {path: self.target_path(path) for path in files}
        if not targets:
            return []

        self.output_directory.mkdir(parents=True, exist_ok=True)
        staging_directory = Path(tempfile.mkdtemp(dir=self.output_directory, prefix=STAGING_PREFIX))

        try:
            staged = self._stage(files, staging_directory, max_workers)

            for path, staged_path in sorted(staged.items()):
                targets[path].parent.mkdir(parents=True, exist_ok=True)
                os.replace(staged_path, targets[path])

        finally:
            shutil.rmtree(staging_directory, ignore_errors=True)

        logger.info("Wrote %d file(s) to '%s'.", len(targets), self.output_directory)
        return sorted(targets.values())

    def _stage(self, files: dict[str, str], staging_directory: Path, max_workers: int | None) -> dict[str, Path]:
        staged: dict[str, Path] = {}

        def write_file(path: str) -> Path:
            staged_path = staging_directory.joinpath(*posixpath.normpath(path).split("/"))
            staged_path.parent.mkdir(parents=True, exist_ok=True)
            staged_path.write_text(files[path], encoding="utf-8")
            return staged_path

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(write_file, path): path for path in files}
            for future in as_completed(futures):
                staged[futures[future]] = future.result()

        return staged
