#!/usr/bin/env python3
"""Tests for scaffold_skill.py - creating skill packages from templates."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

import skill_templates
from scaffold_skill import ScaffoldError, fill_header, get_templates_dir, list_templates, scaffold_skill
from validate_skill import extract_header, validate_skill

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SCRIPT_PATH = PROJECT_ROOT / "scripts" / "scaffold_skill.py"

DESCRIPTION = "Formats changelog entries. Use when preparing a release."


def run_scaffold(*args: str) -> subprocess.CompletedProcess[str]:
    """Run scaffold_skill.py with given args and return result."""
    cmd = [sys.executable, str(SCRIPT_PATH)] + list(args)
    env = {**os.environ, "PYTHONIOENCODING": "utf-8"}
    return subprocess.run(cmd, capture_output=True, text=True, encoding="utf-8", timeout=30, env=env)


class TestScaffoldSkill:
    """Tests for the scaffold_skill() function."""

    @pytest.mark.parametrize("template", ["basic-skill", "multi-file-skill"])
    def test_created_package_is_clean(self, tmp_path: Path, template: str) -> None:
        """Every bundled template produces a package that validates cleanly."""
        skill_dir = scaffold_skill("changelog-writer", DESCRIPTION, template, tmp_path)
        assert skill_dir == tmp_path / "changelog-writer"

        header = extract_header((skill_dir / "SKILL.md").read_text(encoding="utf-8"))
        assert header.name == "changelog-writer"
        assert header.description == DESCRIPTION

        report = validate_skill(skill_dir)
        assert report.clean, [d.message for d in report.diagnostics]

    def test_copies_supporting_files(self, tmp_path: Path) -> None:
        skill_dir = scaffold_skill("multi", DESCRIPTION, "multi-file-skill", tmp_path)
        assert (skill_dir / "reference.md").is_file()
        assert (skill_dir / "examples.md").is_file()

    @pytest.mark.parametrize("name", ["My_Skill", "has space", ""])
    def test_invalid_name(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(ScaffoldError, match="Invalid name"):
            scaffold_skill(name, DESCRIPTION, dest=tmp_path)

    def test_empty_description(self, tmp_path: Path) -> None:
        with pytest.raises(ScaffoldError, match="Description is required"):
            scaffold_skill("ok-name", "   ", dest=tmp_path)

    def test_unknown_template(self, tmp_path: Path) -> None:
        with pytest.raises(ScaffoldError, match="Template not found: nope"):
            scaffold_skill("ok-name", DESCRIPTION, "nope", tmp_path)

    def test_existing_target_is_not_overwritten(self, tmp_path: Path) -> None:
        existing = tmp_path / "taken"
        existing.mkdir()
        (existing / "keep.txt").write_text("keep")
        with pytest.raises(ScaffoldError, match="already exists"):
            scaffold_skill("taken", DESCRIPTION, dest=tmp_path)
        assert (existing / "keep.txt").read_text() == "keep"

    def test_custom_templates_dir(self, tmp_path: Path) -> None:
        template = tmp_path / "templates" / "tiny"
        template.mkdir(parents=True)
        (template / "SKILL.md").write_text("---\nname: x\ndescription: y\n---\nBody\n")
        skill_dir = scaffold_skill("tiny-skill", DESCRIPTION, "tiny", tmp_path / "out", tmp_path / "templates")
        assert (skill_dir / "SKILL.md").read_text() == f"---\nname: tiny-skill\ndescription: {DESCRIPTION}\n---\nBody\n"


class TestHelpers:
    """Tests for template listing and header filling."""

    def test_bundled_templates(self) -> None:
        assert list_templates(get_templates_dir()) == ["basic-skill", "multi-file-skill"]

    def test_templates_dir_comes_from_package(self) -> None:
        assert get_templates_dir() == Path(skill_templates.__file__).parent

    def test_list_templates_missing_dir(self, tmp_path: Path) -> None:
        assert list_templates(tmp_path / "none") == []

    def test_fill_header_replaces_first_occurrence_only(self) -> None:
        content = "---\nname: old\ndescription: old\n---\nname: keep\n"
        assert fill_header(content, "new", "Says \\1. Use when Y.") == (
            "---\nname: new\ndescription: Says \\1. Use when Y.\n---\nname: keep\n"
        )


class TestScaffoldCLI:
    """Tests for the command-line interface."""

    def test_list_templates(self) -> None:
        result = run_scaffold("--list-templates")
        assert result.returncode == 0
        assert "1. basic-skill" in result.stdout

    def test_create_and_validate(self, tmp_path: Path) -> None:
        result = run_scaffold("release-notes", DESCRIPTION, "--dest", str(tmp_path), "--validate")
        assert result.returncode == 0
        assert "✓ Skill created successfully!" in result.stdout
        assert "✓ All validations passed!" in result.stdout
        assert (tmp_path / "release-notes" / "SKILL.md").is_file()

    def test_invalid_name_exits_one(self, tmp_path: Path) -> None:
        result = run_scaffold("Bad_Name", DESCRIPTION, "--dest", str(tmp_path))
        assert result.returncode == 1
        assert "✗ Invalid name" in result.stdout
        assert not (tmp_path / "Bad_Name").exists()

    def test_installed_layout_finds_templates(self, tmp_path: Path) -> None:
        """Modules and templates copied to a bare site dir, away from the checkout, still scaffold."""
        site_dir = tmp_path / "site-packages"
        shutil.copytree(PROJECT_ROOT / "scripts", site_dir, ignore=shutil.ignore_patterns("__pycache__"))
        work_dir = tmp_path / "work"
        work_dir.mkdir()

        cmd = [sys.executable, str(site_dir / "scaffold_skill.py"), "demo-skill", DESCRIPTION, "--validate"]
        env = {**os.environ, "PYTHONIOENCODING": "utf-8"}
        result = subprocess.run(
            cmd, capture_output=True, text=True, encoding="utf-8", timeout=30, env=env, cwd=work_dir
        )
        assert result.returncode == 0, result.stdout + result.stderr
        assert (work_dir / ".claude" / "skills" / "demo-skill" / "SKILL.md").is_file()

    def test_missing_arguments_exit_one(self) -> None:
        result = run_scaffold()
        assert result.returncode == 1
        assert "usage" in result.stderr.lower()
