"""
Generation data model.

Every value here is immutable. A StreamState is threaded through
``ingest`` and replaced, never mutated; a GeneratedProject is returned once
at stream end and owned by the caller afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from aether.utils.file_utils import FileKind, infer_file_kind
from aether.utils.paths import normalize_path


class StepStatus(str, Enum):
    """Progress of one generation step"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# File names never contain a newline, so this id cannot collide with one.
PREVIEW_STEP_ID = "\npreview_html"


@dataclass(frozen=True)
class GenerationStep:
    """A progress-tracking unit: one file, or the preview document"""
    id: str
    label: str
    status: StepStatus = StepStatus.IN_PROGRESS
    line_count: Optional[int] = None
    file_type: Optional[str] = None  # tsx, css, json, html, other

    @property
    def is_preview(self) -> bool:
        return self.id == PREVIEW_STEP_ID

    def to_dict(self) -> Dict:
        data = {"id": self.id, "label": self.label, "status": self.status.value}
        if self.line_count is not None:
            data["lineCount"] = self.line_count
        if self.file_type is not None:
            data["fileType"] = self.file_type
        return data


@dataclass(frozen=True)
class GeneratedFile:
    """A generated source file. ``name`` is kept raw, before normalization."""
    name: str
    content: str

    @property
    def kind(self) -> FileKind:
        return infer_file_kind(self.name)

    def to_dict(self) -> Dict:
        return {"name": self.name, "content": self.content, "type": self.kind.value}


@dataclass(frozen=True)
class GeneratedProject:
    """Structured result of one completed (or aborted) stream"""
    files: Tuple[GeneratedFile, ...] = ()
    preview_document: Optional[str] = None
    build_plan: Optional[str] = None
    build_summary: Optional[str] = None
    token_count: Optional[int] = None
    # Opened with <file name="..."> but never closed before the stream ended
    incomplete_files: Tuple[str, ...] = ()

    @property
    def is_incomplete(self) -> bool:
        return bool(self.incomplete_files)


@dataclass(frozen=True)
class ScanCursor:
    """
    Resume offsets for the stream decoder.

    No offset ever moves past a position where a marker could still be
    mid-flight, so scanning from them gives the same answer as scanning
    the whole buffer.
    """
    file_offset: int = 0
    close_offset: int = 0
    last_close_start: int = -1
    preview_offset: int = 0
    preview_open_end: int = -1
    preview_close_offset: int = 0
    # step id -> end offset of its first opening marker
    open_ends: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamState:
    """Decoder state for exactly one generation request"""
    buffer: str = ""
    existing_names: FrozenSet[str] = frozenset()
    steps: Tuple[GenerationStep, ...] = ()
    cursor: ScanCursor = field(default_factory=ScanCursor)

    @classmethod
    def start(cls, existing_names: Iterable[str] = ()) -> "StreamState":
        """
        Open a new session state.

        The existing names are snapshotted (normalized) once, here; later
        changes to the project never reach this session.
        """
        return cls(existing_names=frozenset(normalize_path(name) for name in existing_names))

    def get_step(self, step_id: str) -> Optional[GenerationStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


# Ordered mapping: normalized path -> file. Keys never collide.
ProjectFileCollection = Dict[str, GeneratedFile]


def to_collection(files: Iterable[GeneratedFile]) -> ProjectFileCollection:
    """Build a collection from a file list, keyed by normalized path"""
    collection: ProjectFileCollection = {}
    for file in files:
        collection[normalize_path(file.name)] = file
    return collection


@dataclass(frozen=True)
class ProjectState:
    """What a project persists between generations"""
    files: ProjectFileCollection = field(default_factory=dict)
    preview_document: str = ""

    @property
    def file_list(self) -> List[GeneratedFile]:
        return list(self.files.values())


@dataclass(frozen=True)
class FileAction:
    """Per-file summary shown after a generation"""
    file_name: str
    line_count: int
