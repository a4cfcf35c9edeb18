"""
Request parameter validation.

Validation is fail-complete: every violated rule is recorded in a
ValidationResult keyed by field name, rather than stopping at the first
one. The helper functions below are pure and return an error message
or None.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional
from urllib.parse import urlparse


HASH_PATTERN = re.compile(r"^[0-9a-fA-F]{40}$")

# Characters rejected in category names and similar path-like values
FORBIDDEN_NAME_CHARS = '<>:"|?*\\/'

MAX_CREDENTIAL_LENGTH = 255
MAX_URL_LENGTH = 8192
MAX_TRACKER_URL_LENGTH = 2048
MAX_TRACKERS = 100

TRACKER_SCHEMES = frozenset({"http", "https", "udp"})
TORRENT_URL_PREFIXES = ("http://", "https://", "magnet:", "bc://bt/")


@dataclass
class ValidationResult:
    """Outcome of validating a request or configuration."""

    errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        # First message per field wins
        self.errors.setdefault(field_name, message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def check(self, field_name: str, message: Optional[str]) -> None:
        """Record ``message`` under ``field_name`` if it is not None."""
        if message is not None:
            self.add_error(field_name, message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        for name, message in other.errors.items():
            self.add_error(name, message)
        self.warnings.extend(other.warnings)
        return self

    def first_error(self) -> Optional[str]:
        return next(iter(self.errors.values()), None)

    def to_dict(self) -> dict:
        return {
            "valid": self.is_valid,
            "errors": dict(self.errors),
            "warnings": list(self.warnings),
        }


def required_text_error(
    name: str, value: Optional[str], max_length: Optional[int] = None
) -> Optional[str]:
    """Reject missing, blank or over-long text."""
    if value is None or not str(value).strip():
        return f"{name} must not be empty"
    if max_length is not None and len(value) > max_length:
        return f"{name} must not exceed {max_length} characters"
    return None


def hash_error(value: Optional[str], name: str = "hash") -> Optional[str]:
    """Torrent hashes are exactly 40 hexadecimal characters, any case."""
    if not value:
        return f"{name} must not be empty"
    if not HASH_PATTERN.match(value):
        return f"{name} must be a 40 character hexadecimal string"
    return None


def hashes_errors(hashes: Iterable[str], allow_all: bool = True) -> dict[str, str]:
    """
    Validate a list of torrent hashes.

    Args:
        hashes: Hash strings; the single value ``"all"`` is accepted when allow_all
        allow_all: Whether the ``all`` wildcard is allowed

    Returns:
        Mapping of ``hashes[i]`` to error message for every bad entry
    """
    values = list(hashes)
    if not values:
        return {"hashes": "at least one hash is required"}
    if allow_all and values == ["all"]:
        return {}
    errors = {}
    for index, value in enumerate(values):
        message = hash_error(value, name=f"hashes[{index}]")
        if message:
            errors[f"hashes[{index}]"] = message
    return errors


def non_negative_error(name: str, value: Optional[int]) -> Optional[str]:
    if value is not None and value < 0:
        return f"{name} must not be negative"
    return None


def range_error(
    name: str,
    value: Optional[float],
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> Optional[str]:
    """Inclusive range check; None values and open bounds are skipped."""
    if value is None:
        return None
    if minimum is not None and value < minimum:
        return f"{name} must be at least {minimum}"
    if maximum is not None and value > maximum:
        return f"{name} must be at most {maximum}"
    return None


def url_error(name: str, value: Optional[str]) -> Optional[str]:
    """Absolute http(s) URL with a host."""
    if not value:
        return f"{name} must not be empty"
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return f"{name} must be an absolute http or https URL"
    return None


def tracker_url_error(name: str, value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return f"{name} must not be empty"
    if len(value) > MAX_TRACKER_URL_LENGTH:
        return f"{name} must not exceed {MAX_TRACKER_URL_LENGTH} characters"
    parsed = urlparse(value.strip())
    if parsed.scheme.lower() not in TRACKER_SCHEMES or not parsed.netloc:
        return f"{name} must be an http, https or udp tracker URL"
    return None


def torrent_url_error(name: str, value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return f"{name} must not be empty"
    if len(value) > MAX_URL_LENGTH:
        return f"{name} must not exceed {MAX_URL_LENGTH} characters"
    if not value.strip().lower().startswith(TORRENT_URL_PREFIXES):
        return f"{name} must be an http(s) URL, magnet link or bc://bt/ link"
    return None


def forbidden_chars_error(name: str, value: Optional[str]) -> Optional[str]:
    """Reject path separators, shell metacharacters and parent references."""
    if not value:
        return None
    if any(ch in FORBIDDEN_NAME_CHARS for ch in value):
        return f"{name} contains forbidden characters"
    if ".." in value:
        return f"{name} must not contain '..'"
    return None
