"""
Unit Tests for Stream Sources
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from aether.core.config import settings
from aether.core.exceptions import ConfigurationError
from aether.modules.generation.models import GeneratedFile
from aether.modules.generation.stream_source import (
    SYSTEM_INSTRUCTION,
    AnthropicStreamSource,
    TranscriptStreamSource,
    build_user_prompt,
)
from tests.conftest import iterate


def _mock_client(chunks, input_tokens=10, output_tokens=5):
    stream = MagicMock()
    stream.text_stream = iterate(chunks)
    stream.get_final_message = AsyncMock(return_value=SimpleNamespace(
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens)
    ))

    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=stream)
    manager.__aexit__ = AsyncMock(return_value=False)

    client = MagicMock()
    client.messages.stream.return_value = manager
    return client


async def _collect(iterator):
    return [chunk async for chunk in iterator]


class TestBuildUserPrompt:
    """Test prompt construction"""

    def test_plain_prompt_without_files(self):
        assert build_user_prompt("Build a timer", []) == "Build a timer"

    def test_files_included_as_context(self):
        prompt = build_user_prompt("Fix the button", [GeneratedFile(name="src/App.tsx", content="<button/>")])

        assert "CURRENT PROJECT FILES" in prompt
        assert "FILE: src/App.tsx\n<button/>" in prompt
        assert "USER REQUEST:\nFix the button" in prompt


class TestAnthropicStreamSource:
    """Test the Anthropic-backed source with a mocked client"""

    @pytest.mark.asyncio
    async def test_streams_text_and_records_tokens(self):
        client = _mock_client(["<file ", 'name="a.ts">', "x</file>"])
        source = AnthropicStreamSource(model="claude-test", client=client)

        chunks = await _collect(source.stream("Build it"))

        assert "".join(chunks) == '<file name="a.ts">x</file>'
        assert source.token_count == 15

        kwargs = client.messages.stream.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == SYSTEM_INSTRUCTION
        assert kwargs["max_tokens"] == settings.ANTHROPIC_MAX_TOKENS
        assert kwargs["messages"] == [{"role": "user", "content": "Build it"}]

    def test_default_model_from_settings(self):
        source = AnthropicStreamSource(client=MagicMock())
        assert source.model == settings.ANTHROPIC_MODEL

    def test_missing_api_key(self):
        with patch.object(settings, "ANTHROPIC_API_KEY", ""):
            with pytest.raises(ConfigurationError) as exc_info:
                AnthropicStreamSource()

        assert exc_info.value.details["setting"] == "ANTHROPIC_API_KEY"


class TestTranscriptStreamSource:
    """Test replaying a saved response"""

    @pytest.mark.asyncio
    async def test_fixed_size_chunks(self):
        source = TranscriptStreamSource("abcdefg", chunk_size=3)

        assert await _collect(source.stream()) == ["abc", "def", "g"]

    @pytest.mark.asyncio
    async def test_default_chunk_size(self):
        source = TranscriptStreamSource("x" * (settings.REPLAY_CHUNK_SIZE + 1))

        chunks = await _collect(source.stream())

        assert len(chunks) == 2

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path):
        transcript = tmp_path / "response.txt"
        transcript.write_text('<file name="a.ts">x</file>', encoding="utf-8")

        source = await TranscriptStreamSource.from_file(str(transcript), chunk_size=4)

        assert "".join(await _collect(source.stream())) == '<file name="a.ts">x</file>'
        assert source.token_count is None
