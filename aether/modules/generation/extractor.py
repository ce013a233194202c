"""
Project Extractor
Parses a completed response into files and a preview document.

Expected response format:
    <build_plan>...</build_plan>            (optional)
    <file name="src/App.tsx">...</file>     (zero or more)
    <preview_html>...</preview_html>        (optional)
    <build_summary>...</build_summary>      (optional)

Blocks may appear in any order and are not nested. Extraction is best
effort and never raises: a response with no recognizable blocks becomes a
single index.html file.
"""

import re
from typing import List, Optional

from aether.core.config import settings
from aether.core.logging_config import logger
from aether.modules.generation.models import GeneratedFile, GeneratedProject

# A name never spans a newline; content is everything up to the first
# closing marker (there is no escape for a literal "</file>" in content).
FILE_OPEN_PATTERN = re.compile(r'<file name="([^\n]*?)">')
FILE_BLOCK_PATTERN = re.compile(r'<file name="([^\n]*?)">(.*?)</file>', re.DOTALL)
PREVIEW_PATTERN = re.compile(r'<preview_html>(.*?)</preview_html>', re.DOTALL)
BUILD_PLAN_PATTERN = re.compile(r'<build_plan>(.*?)</build_plan>', re.DOTALL)
BUILD_SUMMARY_PATTERN = re.compile(r'<build_summary>(.*?)</build_summary>', re.DOTALL)

FALLBACK_FILE_NAME = "index.html"


def _capture(pattern: re.Pattern, text: str) -> Optional[str]:
    """Trimmed content of the first block, or None when absent or blank"""
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_build_plan(text: str) -> Optional[str]:
    return _capture(BUILD_PLAN_PATTERN, text)


def extract(full_text: str) -> GeneratedProject:
    """
    Extract the project artifact from a complete response.

    Steps, in order:
    1. Capture the preview document (and the optional plan/summary).
    2. Collect every well-formed file block.
    3. No preview but an index.html/index.htm file: use its content.
    4. No files and no preview but some text: treat the whole text as
       a single index.html, which is also the preview.

    Args:
        full_text: The whole buffer, after the stream ended or was aborted

    Returns:
        GeneratedProject. ``incomplete_files`` names blocks whose closing
        marker never arrived; they are not in ``files``.
    """
    preview_document = _capture(PREVIEW_PATTERN, full_text)

    files: List[GeneratedFile] = []
    last_block_end = 0
    for match in FILE_BLOCK_PATTERN.finditer(full_text):
        files.append(GeneratedFile(name=match.group(1), content=match.group(2).strip()))
        last_block_end = match.end()

    # Openers after the last complete block never found a closing marker
    incomplete_files = tuple(
        match.group(1) for match in FILE_OPEN_PATTERN.finditer(full_text, last_block_end)
    )
    if incomplete_files:
        logger.warning(
            f"[ProjectExtractor] {len(incomplete_files)} unterminated file block(s) dropped: "
            f"{', '.join(incomplete_files)}"
        )

    if not preview_document and files:
        index_file = next((f for f in files if f.name in settings.INDEX_FILE_NAMES), None)
        if index_file:
            preview_document = index_file.content or None
    elif not preview_document and not files and full_text:
        logger.info("[ProjectExtractor] No file blocks found, treating response as a single HTML document")
        files.append(GeneratedFile(name=FALLBACK_FILE_NAME, content=full_text))
        preview_document = full_text

    logger.debug(
        f"[ProjectExtractor] Extracted {len(files)} files, "
        f"preview={'yes' if preview_document else 'no'}"
    )

    return GeneratedProject(
        files=tuple(files),
        preview_document=preview_document,
        build_plan=_capture(BUILD_PLAN_PATTERN, full_text),
        build_summary=_capture(BUILD_SUMMARY_PATTERN, full_text),
        incomplete_files=incomplete_files,
    )
