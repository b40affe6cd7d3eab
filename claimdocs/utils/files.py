"""Helpers for handling uploaded file bodies."""

import re
from pathlib import PurePosixPath
from typing import Any, Optional

from claimdocs.core.exceptions import SizeLimitError

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._ -]")


def safe_object_name(file_name: str) -> str:
    """Reduce a client-supplied file name to something safe inside a storage key."""
    name = PurePosixPath(file_name.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip(" .")
    return name or "upload"


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.0f} MB"


async def read_within_limit(file: Any, max_bytes: int) -> bytes:
    """Read an upload's body, refusing anything over ``max_bytes``.

    The declared size is checked before reading when the client sent one.

    Raises:
        SizeLimitError: If the body is larger than the limit
    """
    declared: Optional[int] = getattr(file, "size", None)
    if declared is not None and declared > max_bytes:
        raise SizeLimitError(f"File size exceeds {format_size(max_bytes)} limit")

    content = await file.read()
    if len(content) > max_bytes:
        raise SizeLimitError(f"File size exceeds {format_size(max_bytes)} limit")
    return content
