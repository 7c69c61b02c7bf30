"""
Input validation for public form submissions.
Trims and caps fields, checks email addresses and flags obvious spam.
"""

import re
from typing import Optional
from fastapi import HTTPException, status


# Maximum lengths for different input types
MAX_NAME_LENGTH = 200
MAX_EMAIL_LENGTH = 255
MAX_SHORT_FIELD_LENGTH = 200
MAX_MESSAGE_LENGTH = 5000

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

# Submissions matching any of these are dropped silently
SPAM_PATTERNS = [
    re.compile(r'\b(viagra|cialis|levitra)\b', re.IGNORECASE),
    re.compile(r'\b(casino|poker|betting|slot\s*machine)s?\b', re.IGNORECASE),
    re.compile(r'\b(crypto|bitcoin|forex)\s+(investment|trading|profit|signals?)\b', re.IGNORECASE),
    re.compile(r'\bpayday\s+loans?\b', re.IGNORECASE),
    re.compile(r'\b(seo|backlinks?)\s+(services?|package|ranking)\b', re.IGNORECASE),
    re.compile(r'\b(first|top)\s+page\s+(of|on)\s+google\b', re.IGNORECASE),
    re.compile(r'\bguest\s+post(ing)?\s+(service|offer)\b', re.IGNORECASE),
    re.compile(r'\bweight\s+loss\s+(pills?|supplements?)\b', re.IGNORECASE),
    re.compile(r'\[url=', re.IGNORECASE),  # BBCode link spam
]

LINK_PATTERN = re.compile(r'https?://', re.IGNORECASE)
MAX_LINKS = 3


def clean_field(value: Optional[str], max_length: int = MAX_SHORT_FIELD_LENGTH) -> str:
    """Trim a raw field and cap its length, without escaping."""
    if not value:
        return ""
    value = str(value).strip()
    return value[:max_length]


def is_valid_email(email: Optional[str]) -> bool:
    email = (email or "").strip()
    return len(email) <= MAX_EMAIL_LENGTH and bool(EMAIL_PATTERN.match(email))


def validate_required(value: Optional[str], message: str) -> str:
    """
    Ensure a field is present and non-blank.

    Raises:
        HTTPException(400) with ``message`` if the field is empty
    """
    value = clean_field(value, max_length=MAX_MESSAGE_LENGTH)
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message
        )
    return value


def validate_email(email: Optional[str]) -> str:
    """
    Validate email address format and length.

    Returns:
        Trimmed email

    Raises:
        HTTPException if validation fails
    """
    if not is_valid_email(email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Valid email is required."
        )
    return email.strip()


def looks_like_spam(*values: Optional[str]) -> bool:
    """True if any of the given fields matches a spam pattern."""
    for value in values:
        if not value:
            continue
        if len(LINK_PATTERN.findall(value)) > MAX_LINKS:
            return True
        for pattern in SPAM_PATTERNS:
            if pattern.search(value):
                return True
    return False
