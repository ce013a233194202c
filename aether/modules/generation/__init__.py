"""
Generation Module - streaming project generation

Components:
- stream_decoder: chunk-by-chunk progress steps for a streaming response
- extractor: the final set of files and preview from a complete response
- merger: folds generated files into the current project
- session: one request's lifecycle (stream, cancel, failure)

Usage:
    from aether.modules.generation import GenerationSession, apply_generated

    session = GenerationSession(state.files, on_steps=renderer.update)
    generated = await session.generate(source, prompt)
    state = apply_generated(state, generated)
"""

from aether.modules.generation.models import (
    PREVIEW_STEP_ID,
    FileAction,
    GeneratedFile,
    GeneratedProject,
    GenerationStep,
    ProjectState,
    StepStatus,
    StreamState,
)
from aether.modules.generation.extractor import extract
from aether.modules.generation.merger import apply_generated, build_actions, merge
from aether.modules.generation.stream_decoder import decode, ingest, snapshot
from aether.modules.generation.session import GenerationSession, describe_failure
