from __future__ import annotations

import os


def absolute_path(path: str) -> str:
    """Canonical absolute path of an existing entry, else ``path`` unchanged."""
    if not os.path.exists(path):
        return path
    return os.path.realpath(path)


def file_exists(path: str) -> bool:
    return os.path.exists(path)


def file_extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]
