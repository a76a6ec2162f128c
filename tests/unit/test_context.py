"""Tests for home, types file and program resolution."""

import os
import stat
from pathlib import Path

import pytest

from typesh.context import TypeshContext, resolve_home, resolve_paths
from typesh.home import resolve_types_path
from typesh.process_utils import (
    build_search_path,
    build_stage_env,
    popen_with_validation,
    resolve_program,
)
from typesh.streams import TypeSignature, TypesFileError


class TestResolveHome:
    def test_option_wins(self, tmp_path):
        assert resolve_home(str(tmp_path / "explicit")) == tmp_path / "explicit"

    def test_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TYPESH_HOME", str(tmp_path / "env"))
        assert resolve_home(None) == tmp_path / "env"

    def test_project_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TYPESH_HOME")
        project = tmp_path / "project"
        (project / ".typesh").mkdir(parents=True)
        (project / "src" / "deep").mkdir(parents=True)
        monkeypatch.chdir(project / "src" / "deep")
        assert resolve_home(None) == (project / ".typesh").resolve()

    def test_user_global_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TYPESH_HOME")
        monkeypatch.setenv("HOME", str(tmp_path / "user"))
        monkeypatch.chdir(tmp_path)
        assert resolve_home(None) == tmp_path / "user" / ".local" / "typesh"


class TestResolveTypesPath:
    def test_cli_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TYPESH_TYPES", str(tmp_path / "env.json"))
        assert resolve_types_path(tmp_path / "cli.json", tmp_path) == tmp_path / "cli.json"

    def test_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TYPESH_TYPES", str(tmp_path / "env.json"))
        assert resolve_types_path(None, tmp_path) == tmp_path / "env.json"

    def test_home_file_only_if_present(self, tmp_path):
        assert resolve_types_path(None, tmp_path) is None
        (tmp_path / "types.json").write_text("{}")
        assert resolve_types_path(None, tmp_path) == tmp_path / "types.json"


class TestTypeshContext:
    def test_registry_without_types_file(self, isolated_home):
        ctx = TypeshContext()
        paths = resolve_paths(None)
        ctx.home, ctx.types_path = paths.home_dir, paths.types_path
        assert ctx.home == isolated_home
        assert ctx.types_path is None
        assert list(ctx.registry()) == ["cd", "get"]

    def test_types_file_overlays_defaults(self, isolated_home):
        (isolated_home / "types.json").write_text(
            '{"programs": {"ps": {"input": "none", "output": "objects"}}}'
        )
        ctx = TypeshContext()
        ctx.types_path = resolve_paths(None).types_path
        registry = ctx.registry()
        assert registry.lookup("ps") == TypeSignature.of("none", "objects")
        assert "get" in registry

    def test_bad_types_file(self, tmp_path):
        ctx = TypeshContext()
        ctx.types_path = tmp_path / "missing.json"
        with pytest.raises(TypesFileError):
            ctx.registry()


class TestProcessUtils:
    def test_search_path_puts_typesh_path_first(self):
        env = {"TYPESH_PATH": "/opt/tools", "PATH": "/usr/bin:/bin"}
        assert build_search_path(env) == os.pathsep.join(["/opt/tools", "/usr/bin:/bin"])

    def test_search_path_without_typesh_path(self):
        assert build_search_path({"PATH": "/bin"}) == "/bin"

    def test_resolve_program_on_search_path(self, tmp_path):
        tool = tmp_path / "mytool"
        tool.write_text("#!/bin/sh\nexit 0\n")
        tool.chmod(tool.stat().st_mode | stat.S_IXUSR)
        assert resolve_program("mytool", Path("/"), str(tmp_path)) == str(tool)

    def test_resolve_missing_program(self, tmp_path):
        assert resolve_program("definitely-not-here", tmp_path, str(tmp_path)) is None

    def test_resolve_relative_path(self, tmp_path):
        (tmp_path / "bin").mkdir()
        (tmp_path / "bin" / "run").write_text("")
        assert resolve_program("bin/run", tmp_path, "") == str(tmp_path / "bin" / "run")
        assert resolve_program("bin/other", tmp_path, "") is None

    def test_stage_env(self, tmp_path):
        env = build_stage_env(tmp_path, tmp_path / "home")
        assert env["TYPESH_WORKING_DIR"] == str(tmp_path)
        assert env["PWD"] == str(tmp_path)
        assert env["TYPESH_HOME"] == str(tmp_path / "home")

    def test_popen_rejects_nul_bytes(self):
        with pytest.raises(ValueError):
            popen_with_validation(["echo", "a\0b"])

    def test_popen_rejects_blank_program(self):
        with pytest.raises(ValueError):
            popen_with_validation([" "])
