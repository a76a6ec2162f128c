"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from typesh.cli import cli
from typesh.engine import Session
from typesh.shell import Shell
from typesh.streams import default_registry


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point TYPESH_HOME at an empty directory for every test.

    Keeps a developer's own types file (or a stray .typesh directory) from
    leaking into the registry under test.
    """
    home = tmp_path / "typesh_home"
    home.mkdir()
    monkeypatch.setenv("TYPESH_HOME", str(home))
    monkeypatch.delenv("TYPESH_TYPES", raising=False)
    monkeypatch.delenv("TYPESH_PATH", raising=False)
    return home


@pytest.fixture
def workdir(tmp_path) -> Path:
    """Scratch working directory for redirects."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def shell(workdir) -> Shell:
    """Shell with the default registry, running in ``workdir``."""
    return Shell(registry=default_registry(), session=Session(current_dir=workdir))


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner):
    """Helper to invoke the CLI with args and optional stdin.

    Usage:
        result = invoke(["check", "-c", "ps | get"])
        result = invoke(["run"], input_data="echo hi >out.txt\\n")

    Child processes write to the real stdout, not the runner's buffer, so
    tests that need program output redirect it to a file.
    """

    def _invoke(args, input_data=None):
        return cli_runner.invoke(cli, args, input=input_data)

    return _invoke
