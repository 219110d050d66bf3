#!/usr/bin/env python3
"""
Shinobi Button Kit — Build & PM2 Deployment Pipeline
=====================================================
Builds the botao Node project and (re)starts it under PM2.

ARCHITECTURE:
  Stage 1: Build      (yarn build if yarn.lock exists, else npm run build)
  Stage 2: PM2 start  (pm2 start dist/botao.js --name botao --update-env)
  Stage 3: PM2 save   (persist the process list for pm2 resurrect)

Stages run one at a time and stop at the first failure. There is no retry
and no rollback: src/config.ts has already been written by the wizard and
stays in place whatever happens here.

NOTES:
  1. Commands are passed as argument lists, never through a shell.
  2. Output of each command is streamed to the terminal AND captured, so a
     failure can be reported with its last lines.
  3. A missing executable (no npm / pm2 on PATH) is a failed stage, not a crash.
  4. stderr is merged into stdout, so both are echoed on the terminal's stdout
     in the order the command wrote them.

Usage:
  python3 deploy_pipeline.py                 # build + start with settings from config.yaml
  python3 deploy_pipeline.py --settings other.yaml
"""
import argparse
import shlex
import subprocess
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from config_loader import load_config

DIAG_TAIL_LINES = 20


def log(msg):   print(f"[{datetime.now().strftime('%H:%M:%S')}] {msg}")
def ok(msg):    print(f"[{datetime.now().strftime('%H:%M:%S')}] OK {msg}")
def warn(msg):  print(f"[{datetime.now().strftime('%H:%M:%S')}] WARN {msg}")
def fail(msg):  print(f"[{datetime.now().strftime('%H:%M:%S')}] FAIL {msg}")
def section(s): print(f"\n{'='*60}\n  {s}\n{'='*60}")
def elapsed(t): return f"{time.time()-t:.0f}s"


@dataclass
class DeployStep:
    name: str
    cmd: list[str]

    @property
    def display(self) -> str:
        return shlex.join(self.cmd)


@dataclass
class StepResult:
    step: DeployStep
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, lines: int = DIAG_TAIL_LINES) -> str:
        return "\n".join(self.output.rstrip().splitlines()[-lines:])


@dataclass
class DeployResult:
    completed: list[StepResult] = field(default_factory=list)
    failed: StepResult | None = None

    @property
    def ok(self) -> bool:
        return self.failed is None


def detect_package_manager(project_dir: "str | Path") -> str:
    """'yarn' when the project has a yarn.lock, otherwise 'npm'."""
    return "yarn" if (Path(project_dir) / "yarn.lock").exists() else "npm"


def build_steps(settings: dict[str, Any], project_dir: "str | Path") -> list[DeployStep]:
    pkg = detect_package_manager(project_dir)
    pm2 = settings["pm2"]
    return [
        DeployStep(f"Build ({pkg})", shlex.split(settings["build"][pkg])),
        DeployStep("PM2 start", ["pm2", "start", pm2["entry"], "--name", pm2["name"], "--update-env"]),
        DeployStep("PM2 save", ["pm2", "save"]),
    ]


def run_command(step: DeployStep, cwd: "str | Path") -> StepResult:
    """Run one step to completion, echoing its output live while capturing it."""
    captured: list[str] = []
    try:
        proc = subprocess.Popen(
            step.cmd, cwd=str(cwd),
            stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
            text=True, bufsize=1,
        )
    except OSError as e:
        return StepResult(step, 127, str(e))

    with proc:
        for line in proc.stdout or ():
            sys.stdout.write(line)
            sys.stdout.flush()
            captured.append(line)
        returncode = proc.wait()
    return StepResult(step, returncode, "".join(captured))


def run_pipeline(steps: list[DeployStep], cwd: "str | Path", runner=run_command) -> DeployResult:
    """Run steps in order; stop at the first one that exits non-zero."""
    result = DeployResult()
    for i, step in enumerate(steps, 1):
        section(f"STAGE {i}: {step.name}")
        t0 = time.time()
        log(f"Running: {step.display}")
        r = runner(step, cwd)
        if not r.ok:
            fail(f"'{step.display}' exited with code {r.returncode} ({elapsed(t0)})")
            result.failed = r
            return result
        ok(f"{step.name} ({elapsed(t0)})")
        result.completed.append(r)
    return result


def deploy(settings: dict[str, Any], runner=run_command) -> DeployResult:
    """
    Build the botao project and start it with PM2.

    Failures are reported here and returned, never raised: the caller's run
    still counts as successful because the config file is already written.
    """
    project_dir = settings["project_dir"]
    steps = build_steps(settings, project_dir)
    log(f"Project: {project_dir}")
    result = run_pipeline(steps, project_dir, runner=runner)

    if result.ok:
        name = settings["pm2"]["name"]
        print()
        ok(f'Application started with PM2 as "{name}". Check with: pm2 status')
    else:
        failed = result.failed
        fail(f"Build/PM2 start failed at stage '{failed.step.name}'")
        if failed.output.strip():
            print(f"--- last output of '{failed.step.display}' ---")
            print(failed.tail())
            print("--- end ---")
        skipped = steps[len(result.completed) + 1:]
        if skipped:
            warn("Skipped: " + ", ".join(s.name for s in skipped))
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Build the botao project and start it with PM2")
    parser.add_argument("--settings", default="config.yaml", help="Settings file (default: config.yaml)")
    args = parser.parse_args()

    try:
        settings = load_config(args.settings)
    except ValueError as e:
        fail(f"Configuration error: {e}")
        sys.exit(1)

    sys.exit(0 if deploy(settings).ok else 1)
