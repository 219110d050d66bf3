#!/usr/bin/env python3
"""
Config Loader — Shinobi Button Kit
===================================
Loads the static settings table from config.yaml and applies .env overrides.

Security model:
  - Static settings (pin order, constants, commands): config.yaml (committed to git)
  - Machine-local paths: .env file or environment variables (NEVER committed)
  - Shinobi credentials live only in the generated src/config.ts

Usage:
  from config_loader import load_config
  settings = load_config()
  print(settings["gpio_order"])

Optional environment variables (set in .env or shell):
  BOTAO_PROJECT_DIR — root of the botao Node project (where package.json lives)
  BOTAO_CONFIG_TS   — path of the generated module, relative to the project dir
"""
import copy
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

KIT_DIR = Path(__file__).parent

DEFAULTS: dict[str, Any] = {
    "project_dir": ".",
    "output_path": "src/config.ts",
    "gpio_order": [26, 19, 13, 6, 5, 21, 20, 16],
    "default_button_count": 4,
    "shinobi": {
        "base_url": "http://127.0.0.1:8080",
        "region_name": "gpio_button",
        "confidence": 197.4755859375,
    },
    "timing": {
        "debounce_ms": 200,
        "cooldown_ms": 5000,
        "http_timeout_ms": 3000,
    },
    "build": {
        "npm": "npm run build",
        "yarn": "yarn build",
    },
    "pm2": {
        "name": "botao",
        "entry": "dist/botao.js",
    },
}

PIN_COUNT = 8


def load_config(config_path: "str | Path" = "config.yaml") -> dict[str, Any]:
    """
    Load the settings table from config.yaml and apply environment overrides.

    Args:
        config_path: Path to config.yaml (relative to this file or absolute).
                     A missing file is not an error: every key has a default.

    Returns:
        Complete settings dict with resolved ``project_dir`` and ``output_file``

    Raises:
        ValueError: If gpio_order or default_button_count are malformed
    """
    cfg_file = Path(config_path)
    if not cfg_file.is_absolute():
        cfg_file = KIT_DIR / cfg_file

    cfg: dict[str, Any] = {}
    if cfg_file.exists():
        with open(cfg_file, encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{cfg_file} must contain a mapping at the top level")

    # Fill missing keys (one level deep for the nested sections)
    for key, default in DEFAULTS.items():
        if isinstance(default, dict):
            section = cfg.setdefault(key, {})
            if not isinstance(section, dict):
                raise ValueError(f"'{key}' in {cfg_file} must be a mapping")
            for sub_key, sub_default in default.items():
                section.setdefault(sub_key, sub_default)
        else:
            cfg.setdefault(key, copy.deepcopy(default))

    # Load .env if present (never overrides real environment variables)
    env_file = KIT_DIR / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)
    if os.environ.get("BOTAO_PROJECT_DIR"):
        cfg["project_dir"] = os.environ["BOTAO_PROJECT_DIR"]
    if os.environ.get("BOTAO_CONFIG_TS"):
        cfg["output_path"] = os.environ["BOTAO_CONFIG_TS"]

    _validate(cfg)

    # Derive convenience values
    project_dir = Path(cfg["project_dir"])
    if not project_dir.is_absolute():
        project_dir = (KIT_DIR / project_dir).resolve()
    cfg["project_dir"] = project_dir
    cfg["output_file"] = project_dir / cfg["output_path"]

    return cfg


def _validate(cfg: dict[str, Any]) -> None:
    order = cfg["gpio_order"]
    if (
        not isinstance(order, list)
        or len(order) != PIN_COUNT
        or not all(isinstance(p, int) and not isinstance(p, bool) for p in order)
        or len(set(order)) != PIN_COUNT
    ):
        raise ValueError(
            f"gpio_order must list {PIN_COUNT} distinct GPIO numbers, got: {order!r}"
        )
    count = cfg["default_button_count"]
    if not isinstance(count, int) or isinstance(count, bool) or not 0 <= count <= PIN_COUNT:
        raise ValueError(
            f"default_button_count must be a whole number in 0-{PIN_COUNT}, got: {count!r}"
        )


if __name__ == "__main__":
    """Quick validation — run: python3 config_loader.py"""
    try:
        settings = load_config()
        print("✅ Settings loaded successfully")
        print(f"   Project dir: {settings['project_dir']}")
        print(f"   Output:      {settings['output_file']}")
        print(f"   GPIO order:  {' | '.join(str(p) for p in settings['gpio_order'])}")
        print(f"   Shinobi:     {settings['shinobi']['base_url']}")
        print(f"   PM2 app:     {settings['pm2']['name']} ({settings['pm2']['entry']})")
    except ValueError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)
