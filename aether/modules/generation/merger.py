"""
File Merger
Reconciles newly generated files into a project's existing file collection.

Keys are normalized paths, so "./src/App.tsx" from the model updates the
stored "src/App.tsx" in place instead of creating a sibling.
"""

from typing import Iterable, List, Optional, Sequence

from aether.core.logging_config import logger
from aether.modules.generation.models import (
    FileAction,
    GeneratedFile,
    GeneratedProject,
    GenerationStep,
    ProjectFileCollection,
    ProjectState,
)
from aether.utils.file_utils import count_lines
from aether.utils.paths import normalize_path


def merge(existing: ProjectFileCollection, incoming: Iterable[GeneratedFile]) -> ProjectFileCollection:
    """
    Merge incoming files into a collection and return the new collection.

    - A file whose normalized path is already present replaces that entry
      in place (same position), under its normalized name.
    - Any other file is appended, in input order, under its normalized name.
    - Entries not touched by ``incoming`` are kept as-is, in order.

    ``existing`` is never mutated. Applying the same ``incoming`` twice
    gives the same result as applying it once.
    """
    merged: ProjectFileCollection = dict(existing)
    updated = 0
    added = 0

    for file in incoming:
        key = normalize_path(file.name)
        if key in merged:
            updated += 1
        else:
            added += 1
        # Assigning an existing dict key keeps its position
        merged[key] = GeneratedFile(name=key, content=file.content)

    if updated or added:
        logger.debug(f"[FileMerger] Merged files: {updated} updated, {added} added, {len(merged)} total")
    return merged


def apply_generated(state: ProjectState, project: GeneratedProject) -> ProjectState:
    """
    Fold a generation result into a project.

    The previous preview document is kept when the new result has none.
    """
    return ProjectState(
        files=merge(state.files, project.files),
        preview_document=project.preview_document or state.preview_document,
    )


def build_actions(project: GeneratedProject, steps: Optional[Sequence[GenerationStep]] = None) -> List[FileAction]:
    """Summarize the files of a result, preferring the decoder's line counts"""
    line_counts = {step.id: step.line_count for step in steps or () if step.line_count}
    return [
        FileAction(
            file_name=file.name,
            line_count=line_counts.get(file.name) or count_lines(file.content),
        )
        for file in project.files
    ]
