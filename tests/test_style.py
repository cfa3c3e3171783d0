"""Tests for tools/check_style.py."""

import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
CHECK_STYLE = REPO_ROOT / "tools" / "check_style.py"


def run_check(directory: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, str(CHECK_STYLE), str(directory)],
        capture_output=True,
        text=True,
        timeout=30,
    )


def test_source_tree_is_clean():
    result = run_check(REPO_ROOT / "src")
    assert result.returncode == 0, result.stdout


def test_flags_shell_spawning(tmp_path):
    (tmp_path / "bad.py").write_text(
        "import os\n"
        "import subprocess\n"
        "os.system('service tor restart')\n"
        "subprocess.run('ip link', shell=True)\n"
    )
    result = run_check(tmp_path)
    assert result.returncode == 1
    assert "bad.py:3: os.system" in result.stdout
    assert "bad.py:4: shell=True" in result.stdout


def test_argv_lists_pass(tmp_path):
    (tmp_path / "good.py").write_text(
        "import subprocess\n"
        "subprocess.run(['ip', 'link'], shell=False)\n"
    )
    assert run_check(tmp_path).returncode == 0
