import builtins

import pytest

import wizard
from deploy_pipeline import DeployResult, DeployStep, StepResult
from prior_config import extract_buttons, extract_default
from ts_config_generator import render_config, write_config
from wizard import is_affirmative, main, parse_button_count, parse_slugs, run_wizard


def pin_prompts(prompts):
    return [p.split("GPIO ")[1].split(" ")[0] for p in prompts if "Monitor slugs for GPIO" in p]


# ── Parsing ───────────────────────────────────────────────────

@pytest.mark.parametrize("raw,expected", [(str(n), n) for n in range(9)])
def test_button_count_in_range(raw, expected):
    assert parse_button_count(raw, 4, 8) == expected


@pytest.mark.parametrize("raw", ["9", "99", "1000000"])
def test_button_count_clamped(raw):
    assert parse_button_count(raw, 4, 8) == 8


@pytest.mark.parametrize("raw", ["", "abc", "-1", "-20", "  ", "x3"])
def test_button_count_falls_back_to_default(raw):
    assert parse_button_count(raw, 4, 8) == 4


def test_button_count_leading_digits():
    assert parse_button_count(" 3 buttons", 4, 8) == 3
    assert parse_button_count("+2", 4, 8) == 2


@pytest.mark.parametrize("raw", ["\u0663", "\u0663\u0663", "\uff15"])
def test_button_count_ignores_non_ascii_digits(raw):
    assert parse_button_count(raw, 4, 8) == 4


def test_parse_slugs_trims_and_drops_blanks():
    assert parse_slugs(" cam1 , ,cam2,,  ") == ["cam1", "cam2"]
    assert parse_slugs("b,a,b") == ["b", "a", "b"]
    assert parse_slugs("") == []
    assert parse_slugs(" ,  , ") == []


@pytest.mark.parametrize("raw", ["", "  ", "s", "S", "sim", "SIM", "y", "Yes", " yes "])
def test_affirmative_answers(raw):
    assert is_affirmative(raw)


@pytest.mark.parametrize("raw", ["n", "no", "nao", "yep", "1"])
def test_negative_answers(raw):
    assert not is_affirmative(raw)


# ── run_wizard ────────────────────────────────────────────────

def test_scenario_no_prior_two_pins_second_empty(settings, answers):
    prompts = answers("", "", "2", "cam1,cam2", "")
    cfg = run_wizard("", settings)
    assert cfg == {"site": {"apiKey": "", "groupKey": ""},
                   "buttons": {"26": {"monitorSlugs": ["cam1", "cam2"]}}}
    assert prompts[0].strip() == "Shinobi API key [none]:"
    assert pin_prompts(prompts) == ["26", "19"]


def test_prior_api_key_kept_on_empty_answer(settings, answers):
    prompts = answers("", "", "0")
    cfg = run_wizard('apiKey: "abc123",\ngroupKey: "grp",\n', settings)
    assert cfg["site"] == {"apiKey": "abc123", "groupKey": "grp"}
    assert "[abc123]" in prompts[0]


def test_new_answer_replaces_prior_key(settings, answers):
    answers("newkey", "", "0")
    cfg = run_wizard('apiKey: "abc123"', settings)
    assert cfg["site"]["apiKey"] == "newkey"


def test_blank_credential_answer_keeps_prior_key(settings, answers):
    answers("   ", "\t", "0")
    cfg = run_wizard('apiKey: "abc123",\ngroupKey: "grp",\n', settings)
    assert cfg["site"] == {"apiKey": "abc123", "groupKey": "grp"}


def test_credential_answer_is_trimmed(settings, answers):
    answers("  newkey  ", " grp2", "0")
    cfg = run_wizard("", settings)
    assert cfg["site"] == {"apiKey": "newkey", "groupKey": "grp2"}


def test_count_above_pin_total_prompts_all_pins_in_order(settings, answers):
    prompts = answers("", "", "99")
    run_wizard("", settings)
    assert pin_prompts(prompts) == ["26", "19", "13", "6", "5", "21", "20", "16"]


def test_invalid_count_uses_default(settings, answers):
    prompts = answers("", "", "lots")
    run_wizard("", settings)
    assert pin_prompts(prompts) == ["26", "19", "13", "6"]


def test_zero_buttons_prints_notice_and_replaces_prior(settings, answers, capsys):
    answers("", "", "3", "", " , ", "")
    prior = 'export const BUTTONS = {"26": {"monitorSlugs": ["old"]}};\n'
    cfg = run_wizard(prior, settings)
    assert cfg["buttons"] == {}
    assert "No buttons configured" in capsys.readouterr().out


def test_merge_keeps_prior_pins_left_empty(settings, answers):
    prior = ('export const BUTTONS = {"13": {"monitorSlugs": ["garage"]}, '
             '"26": {"monitorSlugs": ["old"]}, "4": {"monitorSlugs": ["stray"]}};\n')
    answers("", "", "2", "", "porch")
    cfg = run_wizard(prior, settings, merge=True)
    assert list(cfg["buttons"]) == ["26", "19", "13"]
    assert cfg["buttons"]["26"] == {"monitorSlugs": ["old"]}
    assert cfg["buttons"]["19"] == {"monitorSlugs": ["porch"]}


def test_merge_new_answer_overrides_prior_pin(settings, answers):
    prior = 'export const BUTTONS = {"26": {"monitorSlugs": ["old"]}};\n'
    answers("", "", "1", "new1,new2")
    cfg = run_wizard(prior, settings, merge=True)
    assert cfg["buttons"] == {"26": {"monitorSlugs": ["new1", "new2"]}}


# ── main ──────────────────────────────────────────────────────

def test_main_writes_config_without_deploy(settings_file, project_dir, answers):
    answers("key1", "grp", "2", "cam1,cam2", "")
    assert main(["--settings", str(settings_file), "--no-deploy"]) == 0
    text = (project_dir / "src" / "config.ts").read_text(encoding="utf-8")
    assert extract_default(text, "apiKey") == "key1"
    assert extract_buttons(text) == {"26": {"monitorSlugs": ["cam1", "cam2"]}}
    assert '"19"' not in text


def test_main_is_idempotent(settings_file, project_dir, answers):
    out = project_dir / "src" / "config.ts"
    answers("key1", "grp", "3", "a,b", "", "c")
    main(["--settings", str(settings_file), "--no-deploy"])
    first = out.read_bytes()
    answers("key1", "grp", "3", "a,b", "", "c")
    main(["--settings", str(settings_file), "--no-deploy"])
    assert out.read_bytes() == first


def test_main_rerun_uses_written_file_as_defaults(settings_file, project_dir, answers):
    answers("key1", "grp", "1", "cam")
    main(["--settings", str(settings_file), "--no-deploy"])
    prompts = answers("", "", "1", "cam")
    main(["--settings", str(settings_file), "--no-deploy"])
    assert "[key1]" in prompts[0]
    assert "[grp]" in prompts[1]


def test_main_empty_deploy_answer_deploys(settings_file, answers, monkeypatch):
    calls = []
    monkeypatch.setattr(wizard, "deploy", lambda s: calls.append(s) or DeployResult())
    prompts = answers("", "", "", "", "", "", "", "")
    assert main(["--settings", str(settings_file)]) == 0
    assert len(calls) == 1
    assert "Build and start with PM2 now?" in prompts[-1]


def test_main_negative_deploy_answer_skips(settings_file, answers, monkeypatch):
    calls = []
    monkeypatch.setattr(wizard, "deploy", lambda s: calls.append(s) or DeployResult())
    answers("", "", "0", "n")
    assert main(["--settings", str(settings_file)]) == 0
    assert calls == []


def test_main_deploy_failure_still_exits_zero(settings_file, project_dir, answers, monkeypatch):
    failed = StepResult(DeployStep("Build (npm)", ["npm", "run", "build"]), 1, "error\n")
    monkeypatch.setattr(wizard, "deploy", lambda s: DeployResult(failed=failed))
    answers("", "", "0", "")
    assert main(["--settings", str(settings_file)]) == 0
    assert (project_dir / "src" / "config.ts").exists()


def test_main_real_pipeline_with_failing_build(settings_file, project_dir, answers, monkeypatch, capsys):
    import deploy_pipeline

    def runner(step, cwd):
        return StepResult(step, 2, "npm ERR! missing script: build\n")

    monkeypatch.setattr(wizard, "deploy", lambda s: deploy_pipeline.deploy(s, runner=runner))
    answers("", "", "0", "yes")
    assert main(["--settings", str(settings_file)]) == 0
    assert "missing script: build" in capsys.readouterr().out


def test_main_write_failure_exits_nonzero(tmp_path, settings_file, answers):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    answers("", "", "0")
    assert main(["--settings", str(settings_file), "--output", str(blocker / "config.ts"),
                 "--no-deploy"]) == 1


def test_main_invalid_settings_exits_nonzero(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("gpio_order: [1, 2]\n", encoding="utf-8")
    assert main(["--settings", str(bad)]) == 1


def test_main_ctrl_c_aborts_without_writing(settings_file, project_dir, monkeypatch):
    def interrupt(q=""):
        raise KeyboardInterrupt

    monkeypatch.setattr(builtins, "input", interrupt)
    assert main(["--settings", str(settings_file)]) == 0
    assert not (project_dir / "src" / "config.ts").exists()


def test_main_project_dir_option(tmp_path, settings_file, answers):
    other = tmp_path / "other"
    answers("", "", "1", "x")
    assert main(["--settings", str(settings_file), "--project-dir", str(other), "--no-deploy"]) == 0
    assert extract_buttons((other / "src" / "config.ts").read_text(encoding="utf-8")) == \
        {"26": {"monitorSlugs": ["x"]}}


def test_main_overwrites_prior_buttons_by_default(settings, settings_file, project_dir, answers):
    prior = {"site": {"apiKey": "k", "groupKey": "g"},
             "buttons": {"26": {"monitorSlugs": ["old"]}, "19": {"monitorSlugs": ["old2"]}}}
    write_config(render_config(prior, settings), project_dir / "src" / "config.ts")
    answers("", "", "1", "")
    main(["--settings", str(settings_file), "--no-deploy"])
    text = (project_dir / "src" / "config.ts").read_text(encoding="utf-8")
    assert extract_buttons(text) == {}
    assert extract_default(text, "apiKey") == "k"
