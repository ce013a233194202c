"""
Stream Sources
Produce the raw text chunks a GenerationSession decodes.

- AnthropicStreamSource: live generation through the Anthropic API
- TranscriptStreamSource: replays a saved response in fixed-size chunks
"""

import asyncio
from typing import AsyncIterator, Iterable, Optional

import aiofiles
from anthropic import AsyncAnthropic

from aether.core.config import settings
from aether.core.exceptions import ConfigurationError
from aether.core.logging_config import logger
from aether.modules.generation.models import GeneratedFile


SYSTEM_INSTRUCTION = """
You are Aether, an expert frontend engineer and UI/UX designer. Build beautiful,
functional, production-ready web applications with React, TypeScript and Tailwind CSS.

*** OUTPUT FORMAT ***
Start with a one-paragraph plan, then every file, then a self-contained preview:

<build_plan>What you are about to build</build_plan>
<file name="src/App.tsx">...</file>
<file name="src/index.css">...</file>
<preview_html>...a single self-contained HTML document...</preview_html>
<build_summary>Features and design decisions</build_summary>

*** UPDATES & FIXES ***
When updating existing code or fixing errors:
1. ONLY return the files that changed
2. Analyze errors carefully and fix the root cause
3. Do NOT regenerate unchanged files
"""


def build_user_prompt(prompt: str, current_files: Iterable[GeneratedFile]) -> str:
    """Wrap the request with the current project files, when there are any"""
    current_files = list(current_files)
    if not current_files:
        return prompt

    file_context = "\n\n".join(f"FILE: {f.name}\n{f.content}" for f in current_files)
    return (
        f"CURRENT PROJECT FILES:\n{file_context}\n\n"
        f"USER REQUEST:\n{prompt}\n\n"
        "INSTRUCTIONS:\n"
        "1. Update the project files to meet the user's request.\n"
        "2. IF this is a fix or update, ONLY return the files that need modification.\n"
        "3. Follow the XML format."
    )


class AnthropicStreamSource:
    """Streams a generation from Claude, token by token"""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[AsyncAnthropic] = None,
    ):
        self.model = model or settings.ANTHROPIC_MODEL
        self.token_count: Optional[int] = None

        if client is not None:
            self.client = client
            return

        api_key = api_key or settings.ANTHROPIC_API_KEY
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not set", setting="ANTHROPIC_API_KEY")

        self.client = AsyncAnthropic(
            api_key=api_key,
            base_url=settings.ANTHROPIC_BASE_URL or None,
            timeout=settings.ANTHROPIC_TIMEOUT,
            max_retries=settings.ANTHROPIC_MAX_RETRIES,
        )

    async def stream(self, prompt: str, current_files: Iterable[GeneratedFile] = ()) -> AsyncIterator[str]:
        """Yield response text chunks as they arrive"""
        self.token_count = None
        logger.info(f"[AnthropicStreamSource] Streaming with model {self.model}")

        async with self.client.messages.stream(
            model=self.model,
            max_tokens=settings.ANTHROPIC_MAX_TOKENS,
            temperature=settings.ANTHROPIC_TEMPERATURE,
            system=SYSTEM_INSTRUCTION,
            messages=[{"role": "user", "content": build_user_prompt(prompt, current_files)}],
        ) as stream:
            async for text in stream.text_stream:
                yield text

            final_message = await stream.get_final_message()
            usage = final_message.usage
            self.token_count = usage.input_tokens + usage.output_tokens


class TranscriptStreamSource:
    """Replays a complete response as a chunked stream"""

    def __init__(self, text: str, chunk_size: Optional[int] = None, delay_ms: int = 0):
        self.text = text
        self.chunk_size = max(1, chunk_size or settings.REPLAY_CHUNK_SIZE)
        self.delay_ms = delay_ms
        self.token_count: Optional[int] = None

    @classmethod
    async def from_file(cls, path: str, chunk_size: Optional[int] = None, delay_ms: int = 0) -> "TranscriptStreamSource":
        async with aiofiles.open(path, 'r', encoding='utf-8') as f:
            text = await f.read()
        return cls(text, chunk_size=chunk_size, delay_ms=delay_ms)

    async def stream(self, prompt: str = "", current_files: Iterable[GeneratedFile] = ()) -> AsyncIterator[str]:
        for start in range(0, len(self.text), self.chunk_size):
            if self.delay_ms > 0:
                await asyncio.sleep(self.delay_ms / 1000)
            yield self.text[start:start + self.chunk_size]
