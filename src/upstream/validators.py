# src/upstream/validators.py
"""Input validation utilities for upstream addresses"""
from urllib.parse import urlparse
from typing import Any

def validate_url(url: str) -> bool:
    """Validate URL (absolute http/https only)"""
    try:
        result = urlparse(url)
        return all([
            result.scheme in ['http', 'https'],
            result.netloc,
            len(url) <= 2048  # Reasonable URL length limit
        ])
    except Exception:
        return False

def validate_command(command: Any) -> bool:
    """Validate that a command is a non-blank string"""
    return isinstance(command, str) and bool(command.strip())

def validate_args(args: Any) -> bool:
    """Validate command arguments"""
    if not isinstance(args, list):
        return False
    return all(isinstance(arg, str) for arg in args)
