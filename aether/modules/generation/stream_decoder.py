"""
Stream Decoder
Turns an arbitrarily chunked response stream into per-file progress steps.

``ingest(state, chunk)`` is pure: it returns a new StreamState and never
mutates the one it was given. Feeding the same text in any chunking gives
the same final steps.

Scanning is resumable. The cursor remembers, per marker, the earliest
offset where an unseen marker could still start, so each chunk only
re-reads text that may have changed meaning:

- a file-opening marker ``<file name="NAME">`` is final once its ``">``
  arrives, and a start position is dead once a newline follows it without
  ``">`` (names never span a newline);
- literal markers (``</file>``, ``<preview_html>``...) can only be
  mid-flight in the last ``len(marker) - 1`` characters.

Steps are ordered by the offset where their opening marker ends, which is
the point at which the marker becomes recognizable. Any chunking reaches
those offsets in the same order.
"""

from dataclasses import replace
from typing import Dict, List, Tuple

from aether.core.logging_config import logger
from aether.modules.generation.extractor import FILE_OPEN_PATTERN
from aether.modules.generation.models import (
    PREVIEW_STEP_ID,
    GenerationStep,
    ScanCursor,
    StepStatus,
    StreamState,
)
from aether.utils.file_utils import count_lines, get_file_type
from aether.utils.paths import normalize_path

FILE_CLOSE = '</file>'
PREVIEW_OPEN = '<preview_html>'
PREVIEW_CLOSE = '</preview_html>'

PREVIEW_LABEL = "Generating Live Preview"


def _literal_resume(buffer: str, marker: str, offset: int) -> int:
    """Resume offset for a literal marker that was not found from ``offset``"""
    return max(offset, len(buffer) - len(marker) + 1)


def file_step_label(name: str, existing_names) -> str:
    action = "Updating" if normalize_path(name) in existing_names else "Creating"
    return f"{action} {name}"


def _scan_file_openers(buffer: str, offset: int) -> Tuple[List[Tuple[int, str]], int]:
    """
    Find complete file-opening markers from ``offset``.

    Returns:
        (sightings as (end, name), next resume offset)
    """
    sightings = []
    for match in FILE_OPEN_PATTERN.finditer(buffer, offset):
        sightings.append((match.end(), match.group(1)))
        offset = match.end()

    # Every start before the last newline has either matched or is dead
    last_newline = buffer.rfind('\n', offset)
    if last_newline >= 0:
        offset = last_newline + 1
    return sightings, offset


def ingest(state: StreamState, chunk: str) -> StreamState:
    """
    Append a chunk and advance the step list.

    New steps start in-progress; a file step completes once a ``</file>``
    follows its opening marker, the preview step once ``</preview_html>``
    follows ``<preview_html>``. Statuses never regress and steps are
    never removed.
    """
    if not chunk:
        return state

    buffer = state.buffer + chunk
    cursor = state.cursor
    open_ends: Dict[str, int] = dict(cursor.open_ends)
    steps: List[GenerationStep] = list(state.steps)

    # 1. Opening markers, committed in the order they end
    sightings, file_offset = _scan_file_openers(buffer, cursor.file_offset)

    preview_offset = cursor.preview_offset
    preview_open_end = cursor.preview_open_end
    if preview_open_end < 0:
        preview_start = buffer.find(PREVIEW_OPEN, preview_offset)
        if preview_start < 0:
            preview_offset = _literal_resume(buffer, PREVIEW_OPEN, preview_offset)
        else:
            preview_offset = preview_start
            sightings.append((preview_start + len(PREVIEW_OPEN), PREVIEW_STEP_ID))

    sightings.sort(key=lambda sighting: sighting[0])
    for end, step_id in sightings:
        if step_id in open_ends:
            continue
        open_ends[step_id] = end
        if step_id == PREVIEW_STEP_ID:
            preview_open_end = end
            steps.append(GenerationStep(id=PREVIEW_STEP_ID, label=PREVIEW_LABEL, file_type="html"))
        else:
            steps.append(GenerationStep(
                id=step_id,
                label=file_step_label(step_id, state.existing_names),
                file_type=get_file_type(step_id),
            ))
            logger.debug(f"[StreamDecoder] File started: {step_id}")

    # 2. Closing markers for files: only the latest one matters
    last_close_start = cursor.last_close_start
    close_at = buffer.find(FILE_CLOSE, cursor.close_offset)
    while close_at >= 0:
        last_close_start = close_at
        close_at = buffer.find(FILE_CLOSE, close_at + len(FILE_CLOSE))
    close_offset = _literal_resume(buffer, FILE_CLOSE, cursor.close_offset)
    if last_close_start >= 0:
        close_offset = max(close_offset, last_close_start + len(FILE_CLOSE))

    # 3. Closing marker for the preview
    preview_close_offset = cursor.preview_close_offset
    preview_close_start = -1
    preview_step = next((step for step in steps if step.id == PREVIEW_STEP_ID), None)
    if preview_step is not None and preview_step.status != StepStatus.COMPLETED:
        search_from = max(preview_close_offset, preview_open_end)
        preview_close_start = buffer.find(PREVIEW_CLOSE, search_from)
        if preview_close_start < 0:
            preview_close_offset = _literal_resume(buffer, PREVIEW_CLOSE, search_from)

    # 4. Advance statuses
    for index, step in enumerate(steps):
        if step.status == StepStatus.COMPLETED:
            continue
        open_end = open_ends[step.id]
        if step.id == PREVIEW_STEP_ID:
            if preview_close_start < 0:
                continue
            content = buffer[open_end:preview_close_start]
        else:
            if last_close_start < open_end:
                continue
            content = buffer[open_end:buffer.find(FILE_CLOSE, open_end)]
        steps[index] = replace(
            step,
            status=StepStatus.COMPLETED,
            line_count=count_lines(content.strip()),
        )
        logger.debug(f"[StreamDecoder] Step completed: {step.label}")

    return replace(
        state,
        buffer=buffer,
        steps=tuple(steps),
        cursor=ScanCursor(
            file_offset=file_offset,
            close_offset=close_offset,
            last_close_start=last_close_start,
            preview_offset=preview_offset,
            preview_open_end=preview_open_end,
            preview_close_offset=preview_close_offset,
            open_ends=open_ends,
        ),
    )


def snapshot(state: StreamState) -> List[GenerationStep]:
    """Copy of the step list for publishing to the progress UI"""
    return list(state.steps)


def decode(text: str, existing_names=()) -> StreamState:
    """Decode a complete text in one chunk"""
    return ingest(StreamState.start(existing_names), text)
