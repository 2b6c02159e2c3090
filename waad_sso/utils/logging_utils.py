"""Logging utilities for PII redaction."""

import hashlib
from typing import Optional


def redact_email(email: Optional[str]) -> str:
    """
    Redact an email address for logging while keeping it distinguishable.

    Args:
        email: Email address to redact

    Returns:
        ``u***@example.com``, or ``hash:abc123@example.com`` when the local
        part is too short to hide. ``N/A`` for empty input.

    Examples:
        >>> redact_email("user@example.com")
        'u***@example.com'
        >>> redact_email(None)
        'N/A'
    """
    if not email:
        return "N/A"

    local, sep, domain = email.partition("@")
    if not sep or not local:
        email_hash = hashlib.sha256(email.encode()).hexdigest()[:6]
        return f"hash:{email_hash}"

    if len(local) < 3:
        email_hash = hashlib.sha256(email.encode()).hexdigest()[:6]
        return f"hash:{email_hash}@{domain}"

    return f"{local[0]}***@{domain}"


def redact_ip(ip_address: Optional[str]) -> str:
    """
    Redact the host part of an IP address.

    Examples:
        >>> redact_ip("192.168.1.100")
        '192.168.1.***'
        >>> redact_ip(None)
        'N/A'
    """
    if not ip_address:
        return "N/A"

    if "." in ip_address:
        parts = ip_address.split(".")
        if len(parts) == 4:
            return f"{parts[0]}.{parts[1]}.{parts[2]}.***"

    if ":" in ip_address:
        parts = ip_address.split(":")
        if len(parts) >= 4:
            return ":".join(parts[:3]) + ":***"

    ip_hash = hashlib.sha256(ip_address.encode()).hexdigest()[:6]
    return f"hash:{ip_hash}"
