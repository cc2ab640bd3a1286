"""Deterministic identifiers and the injectable clock.

Generators are plain callables ``(tag, key) -> str``. Engines receive one
instead of reaching for a random source, so identical input always yields
identical identifiers.
"""
import hashlib
from datetime import datetime, timezone
from typing import Callable, Union

IdGenerator = Callable[[str, Union[int, str]], str]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IndexIdGenerator:
    """``<prefix><tag>-<key>``, e.g. ``btn-test-0``."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def __call__(self, tag: str, key: Union[int, str]) -> str:
        return f"{self.prefix}{tag}-{key}"


class ContentHashIdGenerator:
    """``<prefix><tag>-<sha1 of tag and key>``, stable across runs and
    independent of input order."""

    def __init__(self, prefix: str = "", length: int = 12):
        self.prefix = prefix
        self.length = length

    def __call__(self, tag: str, key: Union[int, str]) -> str:
        digest = hashlib.sha1(f"{tag}:{key}".encode("utf-8")).hexdigest()[: self.length]
        return f"{self.prefix}{tag}-{digest}"
