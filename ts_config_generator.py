#!/usr/bin/env python3
"""
Shinobi Button Kit — TypeScript Config Generator
=================================================
Renders the botao configuration module (src/config.ts) from a config dict.

Generated module exports:
  GPIO              — closed union of the 8 allowed BCM pin numbers
  SHINOBI_BASE_URL  — Shinobi NVR base URL
  DEBOUNCE_MS / COOLDOWN_MS / HTTP_TIMEOUT_MS
  REGION_NAME / CONFIDENCE — detection event fields sent to Shinobi
  SITE              — { apiKey, groupKey }
  BUTTONS           — pin -> { monitorSlugs } (JSON literal, 2-space indent)

Config dict shape (built by wizard.run_wizard):
  {"site": {"apiKey": str, "groupKey": str},
   "buttons": {"26": {"monitorSlugs": ["cam1", "cam2"]}, ...}}

Usage (non-interactive):
  python3 ts_config_generator.py \\
    --api-key abc123 \\
    --group-key home \\
    --button 26=cam1,cam2 \\
    --button 19=garage \\
    --output ../botao/src/config.ts
"""
import argparse
import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any

from config_loader import load_config


def _js_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _js_number(value: Any) -> str:
    # Integral floats print without a trailing ".0", like JavaScript
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def render_config(cfg: dict[str, Any], settings: dict[str, Any]) -> str:
    """Render the full config.ts text. Deterministic: same input, same bytes."""
    gpio_union = " | ".join(str(p) for p in settings["gpio_order"])
    shinobi = settings["shinobi"]
    timing = settings["timing"]
    site = cfg["site"]
    buttons = json.dumps(cfg["buttons"], indent=2, ensure_ascii=False)

    return f"""export type GPIO = {gpio_union};

export const SHINOBI_BASE_URL = {_js_string(shinobi["base_url"])};

export const DEBOUNCE_MS = {_js_number(timing["debounce_ms"])};
export const COOLDOWN_MS = {_js_number(timing["cooldown_ms"])};
export const HTTP_TIMEOUT_MS = {_js_number(timing["http_timeout_ms"])};

export const REGION_NAME = {_js_string(shinobi["region_name"])};
export const CONFIDENCE = {_js_number(shinobi["confidence"])};

export type SiteConfig = {{
  apiKey: string;
  groupKey: string;
}};

export type ButtonConfig = {{
  monitorSlugs: string[];
}};

export const SITE: SiteConfig = {{
  apiKey: {_js_string(site["apiKey"])},
  groupKey: {_js_string(site["groupKey"])},
}};

export const BUTTONS: Partial<Record<GPIO, ButtonConfig>> = {buttons};
"""


def write_config(text: str, path: "str | Path") -> Path:
    """
    Replace the file at path with text.

    The text goes to a temporary file in the same directory first and is then
    moved over the target, so readers never see a half-written module.
    Errors propagate to the caller.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o644)  # mkstemp creates 0600
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


def _parse_button_arg(value: str) -> tuple[str, list[str]]:
    pin, sep, slugs = value.partition("=")
    if not sep or not pin.strip().isdigit():
        raise argparse.ArgumentTypeError(f"expected PIN=slug1,slug2 — got '{value}'")
    return pin.strip(), [s.strip() for s in slugs.split(",") if s.strip()]


def main(argv: "list[str] | None" = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate the botao src/config.ts without the interactive wizard"
    )
    parser.add_argument("--api-key",   default="",          help="Shinobi API key")
    parser.add_argument("--group-key", default="",          help="Shinobi group key")
    parser.add_argument("--button",    action="append", default=[], type=_parse_button_arg,
                        metavar="PIN=SLUGS", help="Pin and comma-separated monitor slugs (repeatable)")
    parser.add_argument("--settings",  default="config.yaml", help="Settings file (default: config.yaml)")
    parser.add_argument("--output",    default=None,         help="Output path (default: from settings)")
    args = parser.parse_args(argv)

    try:
        settings = load_config(args.settings)
    except ValueError as e:
        print(f"❌ Configuration error: {e}")
        return 1

    allowed = {str(p) for p in settings["gpio_order"]}
    buttons: dict[str, dict] = {}
    for pin, slugs in args.button:
        if pin not in allowed:
            print(f"❌ GPIO {pin} is not one of: {', '.join(sorted(allowed, key=int))}")
            return 1
        if slugs:
            buttons[pin] = {"monitorSlugs": slugs}

    cfg = {"site": {"apiKey": args.api_key, "groupKey": args.group_key}, "buttons": buttons}
    out = Path(args.output) if args.output else settings["output_file"]
    write_config(render_config(cfg, settings), out)
    print(f"✅ Generated {out} with {len(buttons)} button(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
