"""File selection and patch helpers used when preparing a review."""

from __future__ import annotations

import fnmatch

BINARY_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".ico",
        ".webp",
        ".pdf",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".mp4",
        ".mp3",
        ".zip",
        ".tar",
        ".gz",
        ".jar",
        ".lock",
    }
)


def is_code_file(path: str) -> bool:
    lowered = path.lower()
    return not any(lowered.endswith(ext) for ext in BINARY_EXTENSIONS)


def is_excluded(path: str, patterns: list[str]) -> bool:
    """Return True if path matches any exclude pattern.

    A pattern matches on the full path ("src/generated/*.py"), on the basename
    ("*.lock") or as a directory prefix ("migrations/" or "tests").
    """
    basename = path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(basename, pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if path.startswith(prefix) or ("/" + prefix) in path:
            return True
    return False


def commentable_lines(patch: str) -> set[int]:
    """New-file line numbers a RIGHT-side review comment may anchor to.

    These are the added and context lines inside the patch hunks. Removed
    lines have no new-file line number.
    """
    lines: set[int] = set()
    file_line: int | None = None
    for line in patch.splitlines():
        if line.startswith("@@"):
            try:
                new_range = line.split("+", 1)[1].split(" ", 1)[0]
                file_line = int(new_range.split(",")[0])
            except (IndexError, ValueError):
                file_line = None
            continue
        if file_line is None or line.startswith("\\"):
            continue
        if line.startswith("-"):
            continue
        lines.add(file_line)
        file_line += 1
    return lines
