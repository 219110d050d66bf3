import builtins
import re

import pytest

from config_loader import load_config

ANSI = re.compile(r"\x1b\[[0-9;]*m")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("BOTAO_PROJECT_DIR", raising=False)
    monkeypatch.delenv("BOTAO_CONFIG_TS", raising=False)


@pytest.fixture
def project_dir(tmp_path):
    d = tmp_path / "botao"
    d.mkdir()
    return d


@pytest.fixture
def settings_file(tmp_path, project_dir):
    p = tmp_path / "settings.yaml"
    p.write_text(f"project_dir: {project_dir}\n", encoding="utf-8")
    return p


@pytest.fixture
def settings(settings_file):
    return load_config(settings_file)


@pytest.fixture
def answers(monkeypatch):
    """Feed scripted answers to input(); collects the prompts that were shown."""
    def feed(*lines):
        prompts = []
        queue = list(lines)

        def fake_input(q=""):
            prompts.append(ANSI.sub("", q))
            if not queue:
                raise EOFError
            return queue.pop(0)

        monkeypatch.setattr(builtins, "input", fake_input)
        return prompts

    return feed
