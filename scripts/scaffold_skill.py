#!/usr/bin/env python3
"""
Skill Package Validation - Skill Scaffolding Tool

Creates a new skill package from one of the templates in the skill_templates
package and fills in the name and description header fields of its SKILL.md.

Usage:
    python scripts/scaffold_skill.py my-skill "Does X. Use when Y."
    python scripts/scaffold_skill.py my-skill "Does X. Use when Y." --template multi-file-skill
    python scripts/scaffold_skill.py my-skill "Does X. Use when Y." --dest ~/.claude/skills --validate
    python scripts/scaffold_skill.py --list-templates

Exit codes:
    0 - Skill created (and, with --validate, passed validation)
    1 - Invalid arguments, template missing, target exists, or validation failed
"""

from __future__ import annotations

import argparse
import re
import shutil
import sys
from importlib import resources
from pathlib import Path

from skill_validation_common import (
    EXIT_FAILED,
    EXIT_OK,
    NAME_PATTERN,
    PRIMARY_DOCUMENT,
    should_use_color,
)
from validate_skill import render_report, validate_skill

DEFAULT_TEMPLATE = "basic-skill"
DEFAULT_DEST = Path(".claude") / "skills"
TEMPLATES_PACKAGE = "skill_templates"


class ScaffoldError(Exception):
    """The skill package could not be created."""


def get_templates_dir() -> Path:
    """Get the templates directory installed with the skill_templates package."""
    return Path(str(resources.files(TEMPLATES_PACKAGE)))


def list_templates(templates_dir: Path) -> list[str]:
    """Return the names of template directories that contain a SKILL.md."""
    if not templates_dir.is_dir():
        return []
    return sorted(d.name for d in templates_dir.iterdir() if d.is_dir() and (d / PRIMARY_DOCUMENT).is_file())


def fill_header(content: str, name: str, description: str) -> str:
    """Replace the first name and description header lines."""
    content = re.sub(r"^name:.*$", lambda _: f"name: {name}", content, count=1, flags=re.MULTILINE)
    return re.sub(r"^description:.*$", lambda _: f"description: {description}", content, count=1, flags=re.MULTILINE)


def scaffold_skill(
    name: str,
    description: str,
    template: str = DEFAULT_TEMPLATE,
    dest: Path = DEFAULT_DEST,
    templates_dir: Path | None = None,
) -> Path:
    """Copy a template to ``dest/name`` and fill in its header.

    Returns:
        Path to the new skill directory.

    Raises:
        ScaffoldError: If an argument is invalid or the target already exists.
    """
    if not NAME_PATTERN.match(name):
        raise ScaffoldError("Invalid name. Must contain only lowercase letters, numbers, and hyphens.")

    if not description.strip():
        raise ScaffoldError("Description is required.")
    if "\n" in description:
        raise ScaffoldError("Description must be a single line.")

    if templates_dir is None:
        templates_dir = get_templates_dir()
    template_dir = templates_dir / template
    if not (template_dir / PRIMARY_DOCUMENT).is_file():
        raise ScaffoldError(f"Template not found: {template}")

    skill_dir = dest / name
    if skill_dir.exists():
        raise ScaffoldError(f"Skill directory already exists: {skill_dir}")

    shutil.copytree(template_dir, skill_dir)

    skill_md = skill_dir / PRIMARY_DOCUMENT
    content = skill_md.read_text(encoding="utf-8")
    skill_md.write_text(fill_header(content, name, description.strip()), encoding="utf-8")

    return skill_dir


def print_header(text: str) -> None:
    """Print a section header."""
    print(f"\n{'=' * 50}")
    print(text)
    print(f"{'=' * 50}\n")


def main(argv: list[str] | None = None) -> int:
    """Create a skill package from a template."""
    parser = argparse.ArgumentParser(description="Create a new skill package from a template")
    parser.add_argument("name", nargs="?", help="Skill name (lowercase-with-hyphens)")
    parser.add_argument("description", nargs="?", help="Brief description, ideally with 'Use when ...'")
    parser.add_argument("--template", default=DEFAULT_TEMPLATE, help=f"Template name (default: {DEFAULT_TEMPLATE})")
    parser.add_argument(
        "--dest",
        type=Path,
        default=DEFAULT_DEST,
        help=f"Directory to create the skill in (default: {DEFAULT_DEST})",
    )
    parser.add_argument("--templates-dir", type=Path, help="Directory holding the templates")
    parser.add_argument("--list-templates", action="store_true", help="List available templates and exit")
    parser.add_argument("--validate", action="store_true", help="Validate the new skill after creating it")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    args = parser.parse_args(argv)

    templates_dir = args.templates_dir or get_templates_dir()

    if args.list_templates:
        print("Available templates:")
        for i, template in enumerate(list_templates(templates_dir), 1):
            print(f"{i}. {template}")
        return EXIT_OK

    if args.name is None or args.description is None:
        parser.print_usage(sys.stderr)
        print("Error: name and description are required", file=sys.stderr)
        return EXIT_FAILED

    print_header("Skill Scaffolding Tool")

    try:
        skill_dir = scaffold_skill(args.name, args.description, args.template, args.dest, templates_dir)
    except ScaffoldError as e:
        print(f"✗ {e}")
        return EXIT_FAILED
    except OSError as e:
        print(f"✗ Could not create skill: {e}")
        return EXIT_FAILED

    print("✓ Skill created successfully!")
    print(f"\nLocation: {skill_dir}")
    print(f"Template: {args.template}")
    print("\nNext steps:")
    print(f"1. Edit {skill_dir / PRIMARY_DOCUMENT} to customize")
    print("2. Add supporting files if needed")
    print(f"3. Validate: validate-skill {skill_dir}")

    if not args.validate:
        return EXIT_OK

    report = validate_skill(skill_dir)
    print()
    print(render_report(report, should_use_color(args.no_color)), end="")
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
