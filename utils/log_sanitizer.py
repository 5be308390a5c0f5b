"""Log sanitizer - removes sensitive data from log messages.

Delivery errors carry recipient emails, push endpoints and vendor keys;
none of that should reach the log files.
"""

import re
from typing import Union

# Patterns to detect and redact sensitive data (order matters: endpoints
# and JWTs before the generic long-token rule)
SENSITIVE_PATTERNS = [
    # Web Push endpoints (FCM, Mozilla autopush, WNS, Apple)
    (r'https://[^\s"\']*(?:fcm/send|wpush|push/v\d|notify\.windows\.com|push\.apple\.com)[^\s"\']*',
     '[PUSH_ENDPOINT]'),

    # Email addresses
    (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', '[EMAIL]'),

    # JWT tokens (Supabase access tokens and keys)
    (r'eyJ[A-Za-z0-9\-_]+\.eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+', '[JWT_TOKEN]'),

    # Bearer tokens
    (r'(Bearer|Basic)\s+[A-Za-z0-9\-_\.]+', r'\1 [REDACTED]'),

    # API keys, tokens, secrets in key=value format
    (r'(password|secret|token|api_key|apikey|auth|p256dh|credential)["\s:=]+[^\s,}"\']{8,}',
     r'\1=[REDACTED]'),

    # OpenAI and Resend keys
    (r'\bsk-[A-Za-z0-9\-_]{16,}', '[OPENAI_KEY]'),
    (r'\bre_[A-Za-z0-9_]{16,}', '[RESEND_KEY]'),

    # Generic long strings that look like keys (VAPID keys are base64url)
    (r'\b[A-Za-z0-9\-_]{40,}\b', '[LONG_TOKEN]'),
]

# Compiled patterns for efficiency
_COMPILED_PATTERNS = [(re.compile(p, re.IGNORECASE), r) for p, r in SENSITIVE_PATTERNS]


def sanitize_log(text: str) -> str:
    """Remove sensitive data from text for safe logging.

    Args:
        text: The text to sanitize

    Returns:
        Sanitized text with sensitive data replaced by placeholders
    """
    if not text:
        return text

    result = text
    for pattern, replacement in _COMPILED_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def sanitize_for_log(value: Union[str, bytes, BaseException, None], max_length: int = 200) -> str:
    """Sanitize and truncate a value for logging.

    Args:
        value: The value to sanitize (string, bytes or exception)
        max_length: Maximum length of returned string

    Returns:
        Sanitized, truncated string safe for logging
    """
    if value is None:
        return "<None>"

    if isinstance(value, bytes):
        text = value.decode('utf-8', errors='replace')
    else:
        text = str(value)

    # Sanitize first
    sanitized = sanitize_log(text)

    # Truncate if needed
    if len(sanitized) > max_length:
        return sanitized[:max_length] + f"... [{len(text)} chars total]"

    return sanitized
