"""Utility helpers."""

from unibulletin.utils.client import get_client_ip
from unibulletin.utils.password import hash_password, verify_password
from unibulletin.utils.security import find_unsafe, is_safe_text

__all__ = [
    "get_client_ip",
    "hash_password",
    "verify_password",
    "find_unsafe",
    "is_safe_text",
]
