#!/usr/bin/env python3
"""
Shinobi Button Kit — Interactive Configuration Wizard
======================================================
Asks for the Shinobi credentials and the monitor slugs of each GPIO button,
writes src/config.ts for the botao app, then optionally builds it and starts
it with PM2.

Usage:
  python3 wizard.py                        # Run wizard, optionally deploy
  python3 wizard.py --merge                # Keep previous buttons you don't re-enter
  python3 wizard.py --project-dir ../botao # Target another checkout
  python3 wizard.py --no-deploy            # Only write src/config.ts
  python3 deploy_pipeline.py               # Build + PM2 without the wizard
"""
import argparse
import re
import sys
from pathlib import Path
from typing import Any

from config_loader import load_config
from deploy_pipeline import deploy
from prior_config import extract_buttons, extract_defaults, read_existing
from ts_config_generator import render_config, write_config

# ── ANSI colours ──────────────────────────────────────────────
BOLD="\033[1m"; DIM="\033[2m"; CYAN="\033[36m"
GREEN="\033[32m"; YELLOW="\033[33m"; RED="\033[31m"; RESET="\033[0m"

def bold(s):   return f"{BOLD}{s}{RESET}"
def dim(s):    return f"{DIM}{s}{RESET}"
def cyan(s):   return f"{CYAN}{s}{RESET}"
def green(s):  return f"{GREEN}{s}{RESET}"
def yellow(s): return f"{YELLOW}{s}{RESET}"
def red(s):    return f"{RED}{s}{RESET}"

SITE_KEYS = ("apiKey", "groupKey")
AFFIRMATIVE = ("", "s", "sim", "y", "yes")
_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")

# ── UI helpers ────────────────────────────────────────────────
def hdr(title: str):
    print(f"\n{CYAN}{'='*62}{RESET}")
    print(f"{CYAN}  {BOLD}{title}{RESET}")
    print(f"{CYAN}{'='*62}{RESET}")

def sec(num: int, total: int, title: str):
    print(f"\n{BOLD}{CYAN}[{num}/{total}] {title}{RESET}")
    print(f"{DIM}{'-'*50}{RESET}")

def ask(q: str) -> str:
    """One line of operator input; end of input counts as an empty answer."""
    try:
        return input(q)
    except EOFError:
        return ""

def prompt(q: str, default: str = "", placeholder: str = "none") -> str:
    v = ask(f"  {q} [{dim(default or placeholder)}]: ").strip()
    return v or default

def prompt_bool(q: str) -> bool:
    raw = ask(f"  {q} [{dim('Y/n')}]: ")
    return is_affirmative(raw)

def is_affirmative(raw: str) -> bool:
    """Empty input means yes; so do s/sim/y/yes in any case."""
    return raw.strip().lower() in AFFIRMATIVE

def mask(secret: str) -> str:
    if not secret:
        return yellow("(none)")
    return f"{secret[:4]}... (redacted)" if len(secret) > 4 else "**** (redacted)"


# ── Input parsing ─────────────────────────────────────────────
def parse_button_count(raw: str, default: int, limit: int) -> int:
    """
    Resolve the button count answer.

    Empty, non-numeric or negative input falls back to default; anything
    above limit is clamped to limit. Leading digits are enough ("3 buttons" -> 3).
    """
    m = _LEADING_INT.match(raw or "")
    if not m:
        return default
    count = int(m.group(1))
    if count < 0:
        return default
    return min(count, limit)

def parse_slugs(raw: str) -> list[str]:
    """Split a comma-separated slug list, dropping blank entries."""
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


# ════════════════════════════════════════════════════════════════
#  WIZARD: site keys, button count, one prompt per pin
# ════════════════════════════════════════════════════════════════
def run_wizard(existing: str, settings: dict[str, Any], merge: bool = False) -> dict:
    """Run the interactive wizard. Returns {"site": {...}, "buttons": {...}}."""
    defaults = extract_defaults(existing, SITE_KEYS)
    gpio_order = [str(p) for p in settings["gpio_order"]]

    hdr("SHINOBI BUTTON KIT — CONFIGURATION WIZARD")
    print(f"  {dim('Press Enter to accept the default shown in [brackets].')}")
    print(f"  {dim('Ctrl+C at any time to abort without saving.')}")
    if not existing:
        print(f"  {dim('No previous configuration found — starting from empty defaults.')}")

    TOTAL = 3

    # ── [1/3] Shinobi site ────────────────────────────────────
    sec(1, TOTAL, "SHINOBI SITE")
    site = {
        "apiKey":   prompt("Shinobi API key", defaults["apiKey"]),
        "groupKey": prompt("Shinobi group key", defaults["groupKey"]),
    }

    # ── [2/3] Button count ────────────────────────────────────
    sec(2, TOTAL, "BUTTONS")
    default_count = settings["default_button_count"]
    raw = ask(f"  How many buttons do you want to configure? [{dim(str(default_count))}]: ")
    count = parse_button_count(raw, default_count, len(gpio_order))

    # ── [3/3] Monitor slugs per pin ───────────────────────────
    sec(3, TOTAL, "MONITORS PER BUTTON")
    print(f"  {dim('Pin order:')} {' | '.join(gpio_order)}")

    buttons: dict[str, dict] = {}
    if merge:
        previous = extract_buttons(existing)
        buttons = {pin: previous[pin] for pin in gpio_order if pin in previous}
        if buttons:
            print(f"  {dim('Merge mode: pins left empty keep their previous monitors.')}")

    for pin in gpio_order[:count]:
        current = buttons.get(pin, {}).get("monitorSlugs", [])
        hint = f" [{dim(','.join(current))}]" if current else ""
        slugs = parse_slugs(ask(f"  Monitor slugs for GPIO {bold(pin)} (comma-separated, empty to skip){hint}: "))
        if slugs:
            buttons[pin] = {"monitorSlugs": slugs}

    if merge:
        buttons = {pin: buttons[pin] for pin in gpio_order if pin in buttons}

    if not buttons:
        if merge:
            print(f"  {yellow('No buttons configured, and none to keep from the previous config. BUTTONS will be empty.')}")
        else:
            print(f"  {yellow('No buttons configured. BUTTONS will be written empty, replacing any previous entries.')}")

    return {"site": site, "buttons": buttons}


# ════════════════════════════════════════════════════════════════
#  SUMMARY + WRITE + MAIN
# ════════════════════════════════════════════════════════════════
def print_summary(cfg: dict, output_file: Path):
    hdr("CONFIGURATION SUMMARY")
    W = 20
    def row(k, v): print(f"  {bold(k.ljust(W))} {v}")

    print()
    row("Output:",    str(output_file))
    row("API key:",   mask(cfg["site"]["apiKey"]))
    row("Group key:", cfg["site"]["groupKey"] or yellow("(none)"))
    print()
    if cfg["buttons"]:
        for pin, entry in cfg["buttons"].items():
            row(f"GPIO {pin}:", ", ".join(entry["monitorSlugs"]))
    else:
        row("Buttons:", yellow("None"))


def main(argv: "list[str] | None" = None) -> int:
    """Entry point for the wizard. Returns the process exit code."""
    parser = argparse.ArgumentParser(description="Configure botao buttons and deploy with PM2")
    parser.add_argument("--settings",    default="config.yaml", help="Settings file (default: config.yaml)")
    parser.add_argument("--project-dir", default=None, help="botao project directory (overrides settings)")
    parser.add_argument("--output",      default=None, help="Config module path (overrides settings)")
    parser.add_argument("--merge",       action="store_true",
                        help="Keep previous button entries for pins left empty")
    parser.add_argument("--no-deploy",   action="store_true", help="Do not offer to build and start with PM2")
    args = parser.parse_args(argv)

    try:
        settings = load_config(args.settings)
    except ValueError as e:
        print(f"  {red(f'Configuration error: {e}')}")
        return 1

    if args.project_dir:
        settings["project_dir"] = Path(args.project_dir).resolve()
        settings["output_file"] = settings["project_dir"] / settings["output_path"]
    if args.output:
        settings["output_file"] = Path(args.output)
    output_file = settings["output_file"]

    try:
        existing = read_existing(output_file)
        cfg = run_wizard(existing, settings, merge=args.merge)
        print_summary(cfg, output_file)

        try:
            write_config(render_config(cfg, settings), output_file)
        except OSError as e:
            print(f"\n  {red(f'Could not write {output_file}: {e}')}")
            return 1
        print(f"\n  {green('Configuration saved to:')} {bold(str(output_file))}")

        if args.no_deploy:
            print(f"\n  {dim('When ready:')} {bold('python3 deploy_pipeline.py')}")
            return 0

        print()
        if prompt_bool("Build and start with PM2 now?"):
            result = deploy(settings)
            if not result.ok:
                print(f"\n  {yellow('Deploy failed — src/config.ts was still saved.')}")
                print(f"  {dim('Retry with:')} {bold('python3 deploy_pipeline.py')}")
        else:
            print(f"\n  {dim('When ready:')} {bold('python3 deploy_pipeline.py')}")
            print(f"  {dim('Re-run wizard:')} {bold('python3 wizard.py')}")
        return 0

    except KeyboardInterrupt:
        print(f"\n\n  {yellow('Wizard aborted.')}")
        return 0


if __name__ == "__main__":
    sys.exit(main())
