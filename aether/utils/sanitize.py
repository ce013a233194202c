"""
Prompt Sanitization
Rejects empty, oversized, prompt-injection and harmful requests before a
generation is started.
"""

import re
from dataclasses import dataclass
from typing import Optional

from aether.core.config import settings
from aether.core.logging_config import logger


# Patterns that indicate prompt injection attempts
INJECTION_PATTERNS = [
    re.compile(r'ignore\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)', re.I),
    re.compile(r'forget\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)', re.I),
    re.compile(r'disregard\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)', re.I),
    re.compile(r'override\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)', re.I),
    re.compile(r'you\s+are\s+now\s+(a|an)\s+(?!app|application|website|page)', re.I),
    re.compile(r'pretend\s+(you(\'re|\s+are)|to\s+be)\s+', re.I),
    re.compile(r'act\s+as\s+(if|though)\s+you', re.I),
    re.compile(r'output\s+(your\s+)?(api|secret|key|system\s+prompt)', re.I),
    re.compile(r'reveal\s+(your\s+)?(api|secret|key|system\s+prompt)', re.I),
    re.compile(r'show\s+(me\s+)?(your\s+)?(api|secret|key|system\s+prompt)', re.I),
    re.compile(r'what\s+(is|are)\s+your\s+(api|secret|key|instructions)', re.I),
    re.compile(r'jailbreak', re.I),
    re.compile(r'DAN\s*mode', re.I),
    re.compile(r'developer\s*mode\s*enabled', re.I),
]

# Requests for malicious apps
HARMFUL_PATTERNS = [
    re.compile(r'\b(phishing|phish)\b.*\b(page|site|website|form)\b', re.I),
    re.compile(r'\b(keylogger|key\s*logger)\b', re.I),
    re.compile(r'\b(malware|ransomware|spyware|trojan|virus)\b', re.I),
    re.compile(r'\b(credit\s*card|cc)\s*(stealer|skimmer|harvester)\b', re.I),
    re.compile(r'\b(password|credential)\s*(stealer|harvester|grabber)\b', re.I),
    re.compile(r'\b(ddos|denial\s*of\s*service)\b.*\b(tool|attack)\b', re.I),
    re.compile(r'\b(exploit|hack)\s*(tool|kit)\b', re.I),
    re.compile(r'\bfake\s*(login|bank|paypal|amazon)\b', re.I),
    re.compile(r'\bscam\s*(page|site|website)\b', re.I),
]


@dataclass
class SanitizationResult:
    """Outcome of prompt sanitization"""
    is_valid: bool
    sanitized_prompt: str
    error: Optional[str] = None
    error_code: Optional[str] = None  # EMPTY, TOO_LONG, INJECTION_DETECTED, HARMFUL_CONTENT


def sanitize_prompt(prompt: str, max_length: Optional[int] = None) -> SanitizationResult:
    """
    Sanitize and validate a user prompt.

    Whitespace runs are collapsed to single spaces. The first failing
    check wins: empty, too long, injection, harmful content.
    """
    max_length = max_length or settings.MAX_PROMPT_LENGTH

    if not prompt or not prompt.strip():
        return SanitizationResult(
            is_valid=False,
            sanitized_prompt='',
            error='Please enter a prompt to generate an app.',
            error_code='EMPTY',
        )

    sanitized = re.sub(r'\s+', ' ', prompt.strip())

    if len(sanitized) > max_length:
        return SanitizationResult(
            is_valid=False,
            sanitized_prompt=sanitized[:max_length],
            error=f'Prompt is too long. Maximum {max_length} characters allowed.',
            error_code='TOO_LONG',
        )

    for pattern in INJECTION_PATTERNS:
        if pattern.search(sanitized):
            logger.warning(f"[Sanitize] Injection pattern matched: {pattern.pattern}")
            return SanitizationResult(
                is_valid=False,
                sanitized_prompt=sanitized,
                error='Your prompt contains patterns that could affect AI behavior. Please rephrase your request.',
                error_code='INJECTION_DETECTED',
            )

    for pattern in HARMFUL_PATTERNS:
        if pattern.search(sanitized):
            logger.warning(f"[Sanitize] Harmful pattern matched: {pattern.pattern}")
            return SanitizationResult(
                is_valid=False,
                sanitized_prompt=sanitized,
                error='This type of application cannot be generated. Please request something else.',
                error_code='HARMFUL_CONTENT',
            )

    return SanitizationResult(is_valid=True, sanitized_prompt=sanitized)
