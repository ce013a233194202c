"""
Project Store - a project's files in a directory on disk

Layout:
    <root>/src/App.tsx               generated files, by normalized path
    <root>/.aether/preview.html      latest preview document

Usage:
    store = ProjectStore("./my-app")
    state = await store.load()
    ...
    await store.save(apply_generated(state, generated), [f.name for f in generated.files])
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

import aiofiles
import aiofiles.os

from aether.core.config import settings
from aether.core.exceptions import InvalidFilePathError, StorageError
from aether.core.logging_config import logger
from aether.modules.generation.models import GeneratedFile, ProjectState, to_collection
from aether.utils.paths import normalize_path

METADATA_DIR = ".aether"

# Dependency and build output directories, never read as project files
SKIP_DIRS = {
    "node_modules", "__pycache__", "dist", "build", "venv", "target", "vendor", "coverage",
}

# Generated lockfiles are large and never useful as prompt context
SKIP_FILES = {"package-lock.json", "yarn.lock", "pnpm-lock.yaml"}


class ProjectStore:
    """Loads and saves a ProjectState under a root directory"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    @property
    def preview_path(self) -> Path:
        return self.root / METADATA_DIR / settings.PREVIEW_FILE_NAME

    def resolve(self, name: str) -> Path:
        """Absolute path for a file name, refusing paths outside the root"""
        root = self.root.resolve()
        path = (root / name).resolve()
        if path == root or root not in path.parents:
            raise InvalidFilePathError(name)
        return path

    def _list_files(self) -> List[str]:
        """
        Project file names under the root.

        Hidden files and directories (``.env``, ``.git``, ``.aether``...)
        and dependency or build directories are skipped.
        """
        names = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith('.') and d not in SKIP_DIRS
            )
            for filename in sorted(filenames):
                if filename.startswith('.') or filename in SKIP_FILES:
                    continue
                relative = Path(dirpath, filename).relative_to(self.root)
                names.append(relative.as_posix())
        return names

    async def load(self) -> ProjectState:
        """Read the project; a missing root is an empty project"""
        if not self.root.exists():
            return ProjectState()

        files = []
        for name in self._list_files():
            try:
                async with aiofiles.open(self.root / name, 'r', encoding='utf-8', newline='') as f:
                    files.append(GeneratedFile(name=name, content=await f.read()))
            except UnicodeDecodeError:
                logger.warning(f"[ProjectStore] Skipping non-text file: {name}")

        preview_document = ""
        if self.preview_path.exists():
            async with aiofiles.open(self.preview_path, 'r', encoding='utf-8', newline='') as f:
                preview_document = await f.read()

        logger.debug(f"[ProjectStore] Loaded {len(files)} files from {self.root}")
        return ProjectState(files=to_collection(files), preview_document=preview_document)

    async def save(self, state: ProjectState, names: Optional[Iterable[str]] = None) -> List[str]:
        """
        Write project files and the preview document.

        Content is written byte-for-byte (no newline translation).

        Args:
            state: The project to write from
            names: Collection keys to write; every file when omitted

        Returns:
            The written file names, in collection order
        """
        keys = list(state.files) if names is None else [normalize_path(name) for name in names]
        # Validate everything before touching the disk
        targets = [(key, self.resolve(key), state.files[key]) for key in state.files if key in keys]

        written = []
        try:
            for key, path, file in targets:
                await aiofiles.os.makedirs(path.parent, exist_ok=True)
                async with aiofiles.open(path, 'w', encoding='utf-8', newline='') as f:
                    await f.write(file.content)
                written.append(key)

            if state.preview_document:
                await aiofiles.os.makedirs(self.preview_path.parent, exist_ok=True)
                async with aiofiles.open(self.preview_path, 'w', encoding='utf-8', newline='') as f:
                    await f.write(state.preview_document)
        except OSError as e:
            raise StorageError(f"Failed to write project to {self.root}: {e}") from e

        logger.info(f"[ProjectStore] Saved {len(written)} files to {self.root}")
        return written
