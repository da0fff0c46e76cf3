"""
PhotoMemo Backend: Attachment Reconciler
========================================

What:  Everything that knows about attachment values: normalizing client
       input, translating storage keys to public URLs and back, and deciding
       which stored objects a post update or delete leaves unreferenced.

Key ↔ URL translation:
    A stored value is either an opaque storage key ("uploads/u1/a.jpg") or a
    full URL. It is a key unless it starts with http:// or https://.

        join_url(base, key)  → base (trailing '/' removed) + '/' + key (leading '/' removed)
        url_to_key(url)      → url minus "base/" when it starts with that prefix,
                               otherwise unchanged

    For any key without the base prefix: url_to_key(join_url(base, key)) == key.

Best-effort deletion:
    delete_keys() fires all deletions concurrently and waits for the batch.
    Failures are collected and logged at WARNING; they never propagate, so
    the database update that triggered them always proceeds. A crash between
    the two steps can leave orphaned objects or dangling references; there
    is no transaction spanning the database and the bucket.
"""

import asyncio
import json
import logging
import re
from typing import Any, Iterable, List, Optional, Sequence

from photomemo.config import settings

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(value: str) -> bool:
    return bool(_ABSOLUTE_URL.match(value))


def normalize_attachments(value: Any) -> List[str]:
    """
    Turn any accepted attachment input into a flat list of non-empty strings.

    Accepted shapes:
        None / ""                    → []
        ["a.jpg", "", "b.jpg"]       → ["a.jpg", "b.jpg"]
        "a.jpg"                      → ["a.jpg"]
        '["a.jpg", "b.jpg"]'         → ["a.jpg", "b.jpg"]
        anything else                → []
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str) and v]
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value]
        if isinstance(parsed, list):
            return [v for v in parsed if isinstance(v, str) and v]
        return [value]
    return []


def join_url(base: str, key: str) -> str:
    b = str(base or "").rstrip("/")
    k = str(key or "").lstrip("/")
    return f"{b}/{k}"


def url_to_key(value: Optional[str], base: Optional[str] = None) -> str:
    if not value:
        return ""
    s = str(value)
    if not is_absolute_url(s):
        return s
    prefix = str(base if base is not None else settings.storage_base_url).rstrip("/") + "/"
    return s[len(prefix):] if s.startswith(prefix) else s


def to_public_url(value: str, base: Optional[str] = None) -> str:
    if is_absolute_url(value):
        return value
    return join_url(base if base is not None else settings.storage_base_url, value)


def stored_attachments(file_url: Any, image_url: Optional[str]) -> List[str]:
    """
    Attachment values of a stored post, in display order.

    `file_url` wins when it is a non-empty list; legacy rows that only carry
    `image_url` fall back to that single value.
    """
    if isinstance(file_url, list) and file_url:
        raw: Sequence[Any] = file_url
    elif image_url:
        raw = [image_url]
    else:
        raw = []
    return [v for v in raw if isinstance(v, str) and v]


def resolve_urls(file_url: Any, image_url: Optional[str], base: Optional[str] = None) -> List[str]:
    return [to_public_url(v, base) for v in stored_attachments(file_url, image_url)]


def referenced_keys(file_url: Any, image_url: Optional[str], base: Optional[str] = None) -> List[str]:
    """Every storage key a post references through either field, deduplicated."""
    values: List[Any] = list(file_url) if isinstance(file_url, list) else []
    if image_url:
        values.append(image_url)
    keys = (url_to_key(v, base) for v in values if isinstance(v, str))
    return list(dict.fromkeys(k for k in keys if k))


def keys_to_remove(old_keys: Iterable[str], new_keys: Iterable[str]) -> List[str]:
    """Keys present before an update and absent after it, in original order."""
    remaining = set(new_keys)
    return [k for k in dict.fromkeys(old_keys) if k not in remaining]


async def delete_keys(storage: Any, keys: Sequence[str]) -> List[str]:
    """
    Delete `keys` concurrently, best effort.

    Returns the keys whose deletion failed (already logged).
    """
    if not keys:
        return []

    results = await asyncio.gather(
        *(storage.delete_object(k) for k in keys),
        return_exceptions=True,
    )

    failed = [key for key, result in zip(keys, results) if isinstance(result, Exception)]
    if failed:
        logger.warning(
            "S3 delete partially failed (%d/%d): %s",
            len(failed),
            len(keys),
            [str(r) for r in results if isinstance(r, Exception)],
        )
    else:
        logger.info("Deleted %d attachment(s) from storage", len(keys))
    return failed
