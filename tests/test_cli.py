"""
Tests for the command-line entry point.
"""

import os
import subprocess
import sys
import tempfile

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def run_cli(*args):
    home = tempfile.mkdtemp()
    env = dict(os.environ, MIND_HOME=home, MIND_DB_PATH=os.path.join(home, "mind.db"))
    return subprocess.run(
        [sys.executable, "-m", "mind.cli", *args],
        cwd=REPO_ROOT, env=env, capture_output=True, text=True, timeout=60,
    )


def test_version():
    result = run_cli("--version")
    assert result.returncode == 0
    assert "The Mind v" in result.stdout


def test_help_lists_commands():
    result = run_cli("help")
    assert result.returncode == 0
    for name in ("serve", "serve-http", "recall", "stats", "cluster", "forge", "doctor"):
        assert name in result.stdout


def test_unknown_command_exits_2():
    result = run_cli("frobnicate")
    assert result.returncode == 2
    assert "Unknown command" in result.stdout


def test_stats_on_fresh_store():
    result = run_cli("stats")
    assert result.returncode == 0
    assert "Thoughts: 0" in result.stdout


def test_serve_answers_over_stdio():
    home = tempfile.mkdtemp()
    env = dict(os.environ, MIND_HOME=home, MIND_DB_PATH=os.path.join(home, "mind.db"))
    requests = (
        '{"jsonrpc": "2.0", "id": 1, "method": "initialize"}\n'
        '{"jsonrpc": "2.0", "method": "notifications/initialized"}\n'
        '{"jsonrpc": "2.0", "id": 2, "method": "tools/list"}\n'
    )
    result = subprocess.run(
        [sys.executable, "-m", "mind.cli", "serve"],
        cwd=REPO_ROOT, env=env, input=requests, capture_output=True, text=True, timeout=60,
    )
    assert result.returncode == 0
    lines = [l for l in result.stdout.splitlines() if l.strip()]
    assert len(lines) == 2
    assert '"id": 1' in lines[0]
    assert "mind_log" in lines[1]


def test_serve_skips_undecodable_bytes():
    home = tempfile.mkdtemp()
    env = dict(os.environ, MIND_HOME=home, MIND_DB_PATH=os.path.join(home, "mind.db"))
    requests = (
        b'{"jsonrpc": "2.0", "id": 0, "method": "x\xff\xfe"}\n'
        b'{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}\n'
    )
    result = subprocess.run(
        [sys.executable, "-m", "mind.cli", "serve"],
        cwd=REPO_ROOT, env=env, input=requests, capture_output=True, timeout=60,
    )
    assert result.returncode == 0
    lines = [l for l in result.stdout.decode("utf-8").splitlines() if l.strip()]
    assert len(lines) == 1
    assert '"id": 1' in lines[0]
