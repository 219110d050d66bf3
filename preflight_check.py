#!/usr/bin/env python3
"""Pre-flight check — verify settings and tools before running the wizard or deploy."""
import shutil
import sys
from typing import Any

from config_loader import load_config
from deploy_pipeline import detect_package_manager
from prior_config import extract_buttons, read_existing


def run_checks(settings: dict[str, Any]) -> tuple[list[str], list[str]]:
    """Return (errors, warnings) for the given settings."""
    errors: list[str] = []
    warnings: list[str] = []
    project_dir = settings["project_dir"]

    # ── Project directory ─────────────────────────────────────────────────────
    if not project_dir.is_dir():
        errors.append(
            f"project_dir '{project_dir}' does not exist.\n"
            f"     Set BOTAO_PROJECT_DIR in .env or project_dir in config.yaml"
        )
    elif not (project_dir / "package.json").exists():
        warnings.append(f"no package.json in {project_dir} — build will fail")

    # ── Tools on PATH ─────────────────────────────────────────────────────────
    pkg = detect_package_manager(project_dir)
    for tool in (pkg, "pm2"):
        if shutil.which(tool) is None:
            warnings.append(f"'{tool}' not found on PATH — deploy stage will fail")

    # ── Previous config ───────────────────────────────────────────────────────
    existing = read_existing(settings["output_file"])
    if existing:
        allowed = {str(p) for p in settings["gpio_order"]}
        stray = [pin for pin in extract_buttons(existing) if pin not in allowed]
        if stray:
            warnings.append(
                f"previous config maps pins not in gpio_order: {', '.join(stray)} "
                f"(they will be dropped on the next run)"
            )

    return errors, warnings


def main() -> int:
    try:
        settings = load_config()
    except ValueError as e:
        print(f"  ❌ ERROR:   {e}")
        return 1

    errors, warnings = run_checks(settings)

    print("=== Settings Loaded ===")
    print(f"  project_dir:  {settings['project_dir']}")
    print(f"  output_file:  {settings['output_file']}")
    print(f"  gpio_order:   {' | '.join(str(p) for p in settings['gpio_order'])}")
    print(f"  build:        {settings['build'][detect_package_manager(settings['project_dir'])]}")
    print(f"  pm2:          {settings['pm2']['name']} -> {settings['pm2']['entry']}")
    print()

    for w in warnings:
        print(f"  ⚠️  WARNING: {w}")
    for e in errors:
        print(f"  ❌ ERROR:   {e}")

    if errors:
        print("\nPREFLIGHT FAILED — fix errors above before running the wizard.")
        return 1
    elif warnings:
        print("Preflight complete with warnings — review above before deploying.")
    else:
        print("All checks passed — READY TO CONFIGURE")
    return 0


if __name__ == "__main__":
    sys.exit(main())
