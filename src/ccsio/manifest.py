from __future__ import annotations

import hashlib
import json
import os
import platform
from datetime import datetime, timezone
from typing import Any

from . import __version__


def now_utc_iso() -> str:
    fixed = os.environ.get("CCSIO_FIXED_TIMESTAMP_UTC")
    if fixed:
        return fixed
    return datetime.now(tz=timezone.utc).isoformat()


def canonical_json_bytes(payload: Any) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True).encode(
        "utf-8"
    )


def sha256_json(payload: Any) -> str:
    return hashlib.sha256(canonical_json_bytes(payload)).hexdigest()


def get_system_metadata() -> dict[str, object]:
    return {
        "created_at_utc": now_utc_iso(),
        "platform": platform.platform(),
        "python_version": platform.python_version(),
    }


def build_manifest(command: str, argv: list[str], **fields: Any) -> dict[str, object]:
    manifest: dict[str, object] = {
        "schema_version": 1,
        "command": command,
        "command_line": "ccsio " + " ".join(argv),
        "tool_version": __version__,
        "system": get_system_metadata(),
    }
    manifest.update(fields)
    return manifest
