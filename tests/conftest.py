"""
Aether - Test Configuration and Fixtures
"""
import os
from typing import AsyncIterator, Iterable, List, Optional

import pytest

# Set testing environment before settings are created
os.environ['ENVIRONMENT'] = 'testing'
os.environ['ANTHROPIC_API_KEY'] = 'test-api-key'
os.environ['LOG_FILE'] = ''

from aether.modules.generation.models import GeneratedFile


SAMPLE_RESPONSE = """<build_plan>A counter app with a single button.</build_plan>
<file name="src/App.tsx">
import React from 'react';

export default function App() {
  return <button>Count</button>;
}
</file>
<file name="./src/index.css">
button { color: red; }
</file>
<preview_html><!DOCTYPE html><html><body><button>Count</button></body></html></preview_html>
<build_summary>Built a counter.</build_summary>"""


def split_at(text: str, *positions: int) -> List[str]:
    """Split text at the given offsets into consecutive chunks"""
    chunks = []
    previous = 0
    for position in sorted(positions):
        chunks.append(text[previous:position])
        previous = position
    chunks.append(text[previous:])
    return [chunk for chunk in chunks if chunk]


async def iterate(chunks: Iterable[str]) -> AsyncIterator[str]:
    """Async iterator over fixed chunks"""
    for chunk in chunks:
        yield chunk


class FakeStreamSource:
    """Stream source double that replays chunks and optionally fails midway"""

    def __init__(self, chunks: Iterable[str], error: Optional[BaseException] = None,
                 token_count: Optional[int] = None):
        self.chunks = list(chunks)
        self.error = error
        self.token_count = token_count
        self.prompts: List[str] = []
        self.current_files: List[GeneratedFile] = []

    async def stream(self, prompt: str, current_files: Iterable[GeneratedFile] = ()) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        self.current_files = list(current_files)
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


@pytest.fixture
def sample_response() -> str:
    return SAMPLE_RESPONSE


@pytest.fixture
def existing_files() -> List[GeneratedFile]:
    return [
        GeneratedFile(name="src/App.tsx", content="export default () => null;"),
        GeneratedFile(name="package.json", content="{}"),
    ]
