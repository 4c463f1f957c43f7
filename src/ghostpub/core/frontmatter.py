"""Header block handling: Ghost metadata extraction, id write-back, and property migration.

A note's header is the YAML block between a first line ``---`` and the next
``---`` line. Ghost properties live in that block under a configurable key
prefix (``ghost_`` by default), e.g. ``ghost_published: true``.

Reading goes through yaml.safe_load. Writing never re-dumps the YAML: header
lines are edited in place so user formatting, comments and key order survive.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, NamedTuple, Optional

import yaml

from ghostpub.core.models import GhostMetadata, PostAccess


logger = logging.getLogger(__name__)

DELIMITER = "---"

GHOST_KEYS = (
    "post_access", "published", "published_at", "featured", "tags",
    "excerpt", "feature_image", "no_sync", "id", "slug",
)

# Keys written by ensure_properties; id/slug are only written after a sync.
PROPERTY_DEFAULTS: dict[str, str] = {
    "post_access":   "paid",
    "published":     "false",
    "published_at":  '""',
    "featured":      "false",
    "tags":          "[]",
    "excerpt":       '""',
    "feature_image": '""',
    "no_sync":       "false",
}

_KEY_ALTERNATION = "|".join(sorted(GHOST_KEYS, key=len, reverse=True))
# <prefix><ghost key>: ...  with the shortest prefix that makes the line a Ghost key
_PROPERTY_LINE_RE = re.compile(rf"^([A-Za-z0-9_-]+?)({_KEY_ALTERNATION})\s*:")


class _Block(NamedTuple):
    opening: str        # first delimiter line, with its line ending
    lines:   list[str]  # header lines, each with its line ending
    closing: str        # closing delimiter line (may lack a line ending at EOF)
    body:    str        # everything after the closing line, untouched


def _find_block(text: str) -> Optional[_Block]:
    """Locate the header block; an unterminated block counts as no header."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != DELIMITER:
        return None
    for i in range(1, len(lines)):
        if lines[i].rstrip() == DELIMITER:
            return _Block(lines[0], lines[1:i], lines[i], "".join(lines[i + 1:]))
    return None


def _newline(block: _Block) -> str:
    return "\r\n" if block.opening.endswith("\r\n") else "\n"


def _key_pattern(prefix: str, key: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(prefix)}{key}\s*:")


def split_header(text: str) -> tuple[Optional[str], str]:
    """Return (header_text, body). header_text is None when the note has no header block."""
    block = _find_block(text)
    if block is None:
        return None, text
    return "".join(block.lines), block.body


def read_header(text: str) -> Optional[dict[str, Any]]:
    """Parse the header block into a mapping; malformed YAML is treated as no header."""
    header, _ = split_header(text)
    if header is None:
        return None
    try:
        data = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed header block: %s", e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring header block: expected a mapping, got %s", type(data).__name__)
        return None
    return data


def strip_header(text: str) -> str:
    """Return the body after the header block unchanged, or the trimmed text if there is no header."""
    block = _find_block(text)
    if block is None:
        return text.strip()
    return block.body


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _to_str(value: Any) -> str:
    """Scalar to trimmed string; lists, maps and None become ''."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return ""


def _to_access(value: Any) -> PostAccess:
    if isinstance(value, str) and value.strip() in PostAccess.__members__:
        return PostAccess(value.strip())
    return PostAccess.paid


def has_prefixed_keys(header: dict[str, Any], prefix: str) -> bool:
    """True if any key starts with prefix, or with prefix minus one trailing underscore."""
    legacy = prefix[:-1] if prefix.endswith("_") else prefix
    return any(str(key).startswith(prefix) or str(key).startswith(legacy) for key in header)


def parse_metadata(header: Optional[dict[str, Any]], prefix: str) -> Optional[GhostMetadata]:
    """Extract GhostMetadata from a parsed header.

    Returns None (the note opts out of sync) when no key is found under the
    prefix. Values are coerced leniently: booleans accept native bools or the
    strings "true"/"false", scalars are trimmed, and non-string tags are dropped.
    """
    if not header or not has_prefixed_keys(header, prefix):
        return None

    def get(key: str) -> Any:
        return header.get(f"{prefix}{key}")

    raw_tags = get("tags")
    tags = [t for t in raw_tags if isinstance(t, str)] if isinstance(raw_tags, list) else []

    return GhostMetadata(
        post_access=_to_access(get("post_access")),
        published=_to_bool(get("published")),
        published_at=_to_str(get("published_at")) or None,
        featured=_to_bool(get("featured")),
        tags=tags,
        excerpt=_to_str(get("excerpt")),
        feature_image=_to_str(get("feature_image")),
        no_sync=_to_bool(get("no_sync")),
        remote_id=_to_str(get("id")) or None,
        slug=_to_str(get("slug")) or None,
    )


def stamp_remote_id(text: str, remote_id: str, slug: str, prefix: str) -> str:
    """Record the Ghost id and slug in the header, replacing values under the same prefix only.

    Other header lines and the body are preserved exactly. A minimal header is
    created when the note has none. Applying the same stamp twice is a no-op.
    """
    block = _find_block(text)
    if block is None:
        return f"{DELIMITER}\n{prefix}id: {remote_id}\n{prefix}slug: {slug}\n{DELIMITER}\n\n{text}"

    nl = _newline(block)
    lines = list(block.lines)
    for key, value in (("id", remote_id), ("slug", slug)):
        entry = f"{prefix}{key}: {value}{nl}"
        pattern = _key_pattern(prefix, key)
        for i, line in enumerate(lines):
            if pattern.match(line):
                lines[i] = entry
                break
        else:
            lines.append(entry)
    return block.opening + "".join(lines) + block.closing + block.body


def _is_continuation(line: str) -> bool:
    """Indented or block-sequence line belonging to the previous key's value."""
    return line[:1] in (" ", "\t") or line.startswith("- ") or line.rstrip() == "-"


def _drop_foreign_properties(lines: list[str], foreign: set[str]) -> list[str]:
    """Remove Ghost property lines under any prefix in `foreign`, with their continuation lines."""
    kept: list[str] = []
    dropping = False
    for line in lines:
        m = _PROPERTY_LINE_RE.match(line)
        if m:
            dropping = m.group(1) in foreign
            if dropping:
                logger.debug("Removing old property %r (old prefix %r)", line.strip(), m.group(1))
                continue
        elif dropping and _is_continuation(line):
            continue
        else:
            dropping = False
        kept.append(line)
    return kept


def default_properties(prefix: str) -> str:
    """The full default property block (without delimiters), one key per line."""
    return "".join(f"{prefix}{key}: {value}\n" for key, value in PROPERTY_DEFAULTS.items())


def ensure_properties(text: str, prefix: str) -> str:
    """Make sure the note carries every Ghost property under `prefix`.

    Ghost properties written under any other prefix are removed first, each
    line with its continuation lines.
    Existing values under `prefix` are never overwritten; only missing keys
    are appended with their defaults. Returns `text` itself when nothing
    needs to change.
    """
    block = _find_block(text)
    if block is None:
        return f"{DELIMITER}\n{default_properties(prefix)}{DELIMITER}\n\n{text}"

    nl = _newline(block)
    foreign = set(find_property_prefixes(text)) - {prefix}
    lines = _drop_foreign_properties(block.lines, foreign) if foreign else list(block.lines)
    missing = [
        key for key in PROPERTY_DEFAULTS
        if not any(_key_pattern(prefix, key).match(line) for line in lines)
    ]
    if not missing and len(lines) == len(block.lines):
        return text

    additions = [f"{prefix}{key}: {PROPERTY_DEFAULTS[key]}{nl}" for key in missing]
    return block.opening + "".join(lines) + "".join(additions) + block.closing + block.body


def find_property_prefixes(text: str) -> list[str]:
    """Return every prefix under which Ghost keys appear in the header, sorted."""
    block = _find_block(text)
    if block is None:
        return []
    found = {m.group(1) for m in map(_PROPERTY_LINE_RE.match, block.lines) if m}
    return sorted(found)


def has_ghost_properties(text: str, prefix: str) -> bool:
    """True if the header has at least one Ghost key under `prefix`."""
    block = _find_block(text)
    if block is None:
        return False
    return any(_key_pattern(prefix, key).match(line) for line in block.lines for key in GHOST_KEYS)


def new_post_template(prefix: str, title: Optional[str] = None) -> str:
    """Content of a fresh note with the default Ghost properties and a title heading."""
    return (
        f"{DELIMITER}\n{default_properties(prefix)}{DELIMITER}\n\n"
        f"# {title or 'Untitled Post'}\n\n"
        "Write your post content here...\n"
    )
