#!/usr/bin/env python3
"""
Prior Config Reader — Shinobi Button Kit
=========================================
Recovers defaults from a previously generated src/config.ts.

The generated module is never executed or fully parsed. Scalar fields are
pulled out with a `name: "value"` pattern; the BUTTONS mapping is read back
from the JSON literal the generator writes after `BUTTONS: ... =`.
"""
import json
import re
from pathlib import Path

_BUTTONS_RE = re.compile(r"export const BUTTONS\b[^=]*=\s*(\{.*?\});\s*$", re.S | re.M)


def read_existing(path: "str | Path") -> str:
    """Return the text of a previous config module, or "" if there is none."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        print(f"  WARN could not read previous config {path}: {e} — using empty defaults")
        return ""


def extract_default(content: str, key: str) -> str:
    """First value assigned as `key: "value"` in content, or ""."""
    m = re.search(rf'{re.escape(key)}:\s*"([^"]*)"', content)
    return m.group(1) if m else ""


def extract_defaults(content: str, keys: "list[str] | tuple[str, ...]") -> dict[str, str]:
    return {k: extract_default(content, k) for k in keys}


def extract_buttons(content: str) -> dict[str, dict]:
    """
    Read the BUTTONS mapping back from a generated module.

    Returns {} when the module has no BUTTONS literal or it is not the JSON
    shape written by ts_config_generator (e.g. edited by hand).
    """
    m = _BUTTONS_RE.search(content)
    if not m:
        return {}
    try:
        buttons = json.loads(m.group(1))
    except ValueError:
        return {}
    if not isinstance(buttons, dict):
        return {}
    result: dict[str, dict] = {}
    for pin, entry in buttons.items():
        slugs = entry.get("monitorSlugs") if isinstance(entry, dict) else None
        if isinstance(slugs, list) and slugs:
            result[str(pin)] = {"monitorSlugs": [str(s) for s in slugs]}
    return result
