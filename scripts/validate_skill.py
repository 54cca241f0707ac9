#!/usr/bin/env python3
"""
Skill Package Validation - Skill Validator

Validates a skill package directory before it is handed to the host runtime:
the SKILL.md metadata header, the document body, and the package files the
body links to. Every check runs even when an earlier one fails, so a single
run reports every problem at once.

Usage:
    uv run python scripts/validate_skill.py path/to/skill/
    uv run python scripts/validate_skill.py path/to/skill/ --json
    uv run python scripts/validate_skill.py path/to/skill/ --config rules.yaml

Exit codes:
    0 - No errors (warnings may remain)
    1 - Errors found, package unreadable, or missing skill path argument
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from skill_validation_common import (
    EXIT_FAILED,
    EXIT_USAGE,
    HEADER_DELIMITER,
    KNOWN_HEADER_FIELDS,
    NAME_PATTERN,
    PRIMARY_DOCUMENT,
    REQUIRED_HEADER_FIELDS,
    ConfigError,
    Diagnostic,
    HeaderRecord,
    RuleConfig,
    StructuralError,
    ValidationReport,
    colorize,
    error,
    format_diagnostic,
    load_rule_config,
    should_use_color,
    warning,
)

# =============================================================================
# Patterns
# =============================================================================

# "key: value" header line; indented and comment lines never match
RE_HEADER_LINE = re.compile(r"^([A-Za-z0-9_-]+):(.*)$")

# First/second person pronouns (descriptions should be third person)
RE_PERSONAL_PRONOUN = re.compile(r"\b(I|me|my|you|your)\b", re.IGNORECASE)

# Backslash used as a path separator. Escapes (\n, \r, \t, \\), backslash
# before whitespace or end of line, and `\ inside inline code are allowed.
RE_WINDOWS_PATH = re.compile(r"(?<!`)\\(?![nrt\\\s]|$)")

# Phrasing anchored to an absolute year that will go stale
TIME_SENSITIVE_PATTERNS = [
    re.compile(r"\bbefore\s+\d{4}\b", re.IGNORECASE),
    re.compile(r"\bafter\s+\d{4}\b", re.IGNORECASE),
    re.compile(r"\buntil\s+\d{4}\b", re.IGNORECASE),
    re.compile(r"\bas\s+of\s+\d{4}\b", re.IGNORECASE),
]

# Markdown link: [text](target)
RE_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# Link targets with a URI scheme (ftp:, tel:, file://, ...) or a network path
# never point into the package
RE_EXTERNAL_LINK = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*:|//)")


# =============================================================================
# Package Loading and Header Extraction
# =============================================================================


@dataclass(frozen=True)
class SkillPackage:
    """A skill directory and the text of its primary document."""

    root: Path
    document_path: Path
    text: str

    def resolve(self, target: str) -> Path:
        """Resolve a link target against the package root.

        A "#fragment" suffix is ignored and a leading "/" still means the
        package root. ".." segments are collapsed, symlinks are not followed.
        """
        path_part = target.split("#", 1)[0]
        return Path(os.path.abspath(self.root / path_part.lstrip("/")))

    def contains(self, path: Path) -> bool:
        """Whether a resolved path lies inside the package root."""
        root = Path(os.path.abspath(self.root))
        return path == root or root in path.parents


def load_package(skill_path: Path) -> SkillPackage:
    """Read the primary document of a skill package.

    Raises:
        StructuralError: If the directory or SKILL.md is missing or unreadable.
    """
    if not skill_path.is_dir():
        raise StructuralError(f"Skill directory does not exist: {skill_path}")

    document_path = skill_path / PRIMARY_DOCUMENT
    if not document_path.is_file():
        raise StructuralError(f"{PRIMARY_DOCUMENT} file is required but not found")

    try:
        text = document_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise StructuralError(f"{PRIMARY_DOCUMENT} is not valid UTF-8: {e.reason}") from e
    except OSError as e:
        raise StructuralError(f"Cannot read {PRIMARY_DOCUMENT}: {e.strerror or e}") from e

    return SkillPackage(root=skill_path, document_path=document_path, text=text)


def _unquote(value: str) -> str:
    """Strip whitespace and one pair of matching outer quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def extract_header(text: str) -> HeaderRecord:
    """Split a primary document into its metadata header and body.

    The header is the block between the first two lines consisting solely of
    the delimiter. It is line-scanned for "key: value" pairs rather than parsed
    as YAML; the first occurrence of a key wins. Missing fields are left as
    None so the field rules can report them.

    Raises:
        StructuralError: If the document has fewer than two delimiter lines.
    """
    lines = text.splitlines()
    delimiters = [i for i, line in enumerate(lines) if line.rstrip() == HEADER_DELIMITER][:2]
    if len(delimiters) < 2:
        raise StructuralError(
            f"missing header: {PRIMARY_DOCUMENT} must begin with a block delimited by two '{HEADER_DELIMITER}' lines"
        )

    start, end = delimiters
    header_lines = lines[start + 1 : end]

    keys: list[str] = []
    values: dict[str, str] = {}
    for line in header_lines:
        match = RE_HEADER_LINE.match(line)
        if not match:
            continue
        key = match.group(1)
        keys.append(key)
        values.setdefault(key, _unquote(match.group(2)))

    return HeaderRecord(
        name=values.get("name"),
        description=values.get("description"),
        allowed_tools=values.get("allowed-tools"),
        raw="\n".join(header_lines),
        body="\n".join(lines[end + 1 :]),
        body_start_line=end + 2,
        keys=tuple(keys),
    )


# =============================================================================
# Rule Pipeline
# =============================================================================


@dataclass(frozen=True)
class SkillDocument:
    """Everything a rule may inspect: the package, its header and the config."""

    package: SkillPackage
    header: HeaderRecord
    config: RuleConfig


@dataclass(frozen=True)
class RuleOutcome:
    """Diagnostics and confirmation lines produced by one rule."""

    diagnostics: tuple[Diagnostic, ...] = ()
    checks: tuple[str, ...] = ()


Rule = Callable[[SkillDocument], RuleOutcome]


def _outcome(diagnostics: list[Diagnostic], confirmation: str | None = None) -> RuleOutcome:
    """Build an outcome; the confirmation is kept only if the rule found no errors."""
    confirmed = confirmation is not None and not any(d.is_error for d in diagnostics)
    return RuleOutcome(tuple(diagnostics), (confirmation,) if confirmed else ())


def _body_line(doc: SkillDocument, offset: int) -> int:
    return doc.header.body_start_line + offset


# -----------------------------------------------------------------------------
# Header fields
# -----------------------------------------------------------------------------


def check_header_fields(doc: SkillDocument) -> RuleOutcome:
    """Required fields are present; unknown and repeated keys are flagged."""
    diagnostics: list[Diagnostic] = []
    keys = doc.header.keys

    for key in REQUIRED_HEADER_FIELDS:
        if key not in keys:
            diagnostics.append(error(f"{key} field is required in header", key))

    seen: set[str] = set()
    for key in keys:
        if key in seen:
            diagnostics.append(warning(f"Duplicate header field '{key}' (first value is used)", key))
        elif key not in KNOWN_HEADER_FIELDS:
            diagnostics.append(warning(f"Unknown header field '{key}' (may be ignored by the host)", key))
        seen.add(key)

    return _outcome(diagnostics, f"Header found ({len(seen)} field(s))")


def check_name(doc: SkillDocument) -> RuleOutcome:
    """Validate the 'name' header field."""
    name = doc.header.name
    if name is None:
        return RuleOutcome()

    config = doc.config
    diagnostics: list[Diagnostic] = []

    if not name:
        diagnostics.append(error("name cannot be empty", "name"))
        return _outcome(diagnostics)

    if len(name) > config.max_name_length:
        diagnostics.append(
            error(f"name is too long: {len(name)} chars (max {config.max_name_length})", "name")
        )

    if not NAME_PATTERN.match(name):
        diagnostics.append(
            error(f"name must contain only lowercase letters, numbers, and hyphens: {name}", "name")
        )

    reserved = [word for word in config.reserved_words if word in name.lower()]
    if reserved:
        words = ", ".join(f'"{word}"' for word in reserved)
        diagnostics.append(error(f"name cannot contain reserved words: {words}", "name"))

    if "<" in name or ">" in name:
        diagnostics.append(error("name cannot contain XML tags", "name"))

    if name in config.vague_names:
        diagnostics.append(warning(f'name "{name}" is too vague, consider a more specific name', "name"))

    return _outcome(diagnostics, f"name field valid: {name}")


def check_description(doc: SkillDocument) -> RuleOutcome:
    """Validate the 'description' header field."""
    description = doc.header.description
    if description is None:
        return RuleOutcome()

    config = doc.config
    diagnostics: list[Diagnostic] = []

    if not description.strip():
        diagnostics.append(error("description cannot be empty", "description"))

    if len(description) > config.max_description_length:
        diagnostics.append(
            error(
                f"description is too long: {len(description)} chars (max {config.max_description_length})",
                "description",
            )
        )

    if "<" in description or ">" in description:
        diagnostics.append(error("description cannot contain XML tags", "description"))

    pronoun = RE_PERSONAL_PRONOUN.search(description)
    if pronoun:
        diagnostics.append(
            warning(
                f'description should use third person, not first or second person (found "{pronoun.group(0)}")',
                "description",
            )
        )

    if config.trigger_phrase not in description.lower():
        diagnostics.append(
            warning(
                f'description should include "{config.trigger_phrase.capitalize()}..." to specify triggers',
                "description",
            )
        )

    return _outcome(diagnostics, f"description field valid ({len(description)} chars)")


def check_allowed_tools(doc: SkillDocument) -> RuleOutcome:
    """Validate the optional 'allowed-tools' header field against known tools."""
    if doc.header.allowed_tools is None:
        return RuleOutcome()

    tools = doc.header.tools
    if not tools:
        return _outcome([warning("allowed-tools is present but lists no tools", "allowed-tools")])

    # Unknown tools stay warnings: the list lags behind new host tools
    diagnostics = [
        warning(f"Unknown tool in allowed-tools: {tool}", "allowed-tools")
        for tool in tools
        if tool not in doc.config.known_tools
    ]
    return _outcome(diagnostics, f"allowed-tools field valid: {', '.join(tools)}")


# -----------------------------------------------------------------------------
# Body
# -----------------------------------------------------------------------------


def check_body_size(doc: SkillDocument) -> RuleOutcome:
    """Warn when the body exceeds the recommended line count."""
    line_count = len(doc.header.body_lines)
    limit = doc.config.max_body_lines

    if line_count > limit:
        return _outcome(
            [
                warning(
                    f"{PRIMARY_DOCUMENT} is {line_count} lines (recommended: <{limit}). "
                    "Consider splitting details into referenced files.",
                    PRIMARY_DOCUMENT,
                )
            ]
        )
    return _outcome([], f"{PRIMARY_DOCUMENT} length: {line_count} lines")


def _token_at(line: str, index: int) -> str:
    """Return the whitespace-delimited token of ``line`` covering ``index``."""
    for match in re.finditer(r"\S+", line):
        if match.start() <= index < match.end():
            return match.group(0)
    return line.strip()


def check_path_separators(doc: SkillDocument) -> RuleOutcome:
    """Report the first Windows-style backslash path in the body."""
    for offset, line in enumerate(doc.header.body_lines):
        match = RE_WINDOWS_PATH.search(line)
        if match:
            snippet = _token_at(line, match.start())
            return _outcome(
                [
                    error(
                        f"Windows-style paths found (use forward slashes): {snippet}",
                        PRIMARY_DOCUMENT,
                        _body_line(doc, offset),
                    )
                ]
            )
    return _outcome([], "No Windows-style paths found")


def check_time_anchoring(doc: SkillDocument) -> RuleOutcome:
    """Warn once per time-sensitive pattern found in the body."""
    diagnostics: list[Diagnostic] = []
    lines = doc.header.body_lines

    for pattern in TIME_SENSITIVE_PATTERNS:
        for offset, line in enumerate(lines):
            match = pattern.search(line)
            if match:
                diagnostics.append(
                    warning(
                        f"Time-sensitive information detected: '{match.group(0)}'. "
                        'Consider using an "Old Patterns" section instead.',
                        PRIMARY_DOCUMENT,
                        _body_line(doc, offset),
                    )
                )
                break

    return _outcome(diagnostics, None if diagnostics else "No time-sensitive information found")


# -----------------------------------------------------------------------------
# References
# -----------------------------------------------------------------------------


def extract_references(body: str) -> list[str]:
    """Return the distinct local link targets of a body, in order of appearance.

    External URLs and in-page anchors are skipped.
    """
    references: list[str] = []
    for match in RE_MARKDOWN_LINK.finditer(body):
        target = match.group(2).strip()
        if RE_EXTERNAL_LINK.match(target) or target.startswith("#"):
            continue
        if target not in references:
            references.append(target)
    return references


def check_references(doc: SkillDocument) -> RuleOutcome:
    """Every local link target must exist inside the package root."""
    references = extract_references(doc.header.body)
    if not references:
        return RuleOutcome()

    diagnostics: list[Diagnostic] = []
    for ref in references:
        path = doc.package.resolve(ref)
        if not doc.package.contains(path):
            diagnostics.append(error(f"Referenced file is outside the skill directory: {ref}"))
        elif not path.exists():
            diagnostics.append(error(f"Referenced file does not exist: {ref}"))
    return _outcome(diagnostics, f"{len(references)} file reference(s) found and validated")


# Rules in reporting order: header, fields, body, references
RULES: tuple[Rule, ...] = (
    check_header_fields,
    check_name,
    check_description,
    check_allowed_tools,
    check_body_size,
    check_path_separators,
    check_time_anchoring,
    check_references,
)


def run_rules(doc: SkillDocument, rules: tuple[Rule, ...] = RULES) -> list[RuleOutcome]:
    """Run every rule; no rule's result stops the others."""
    return [rule(doc) for rule in rules]


def aggregate(skill_path: Path, outcomes: list[RuleOutcome]) -> ValidationReport:
    """Merge rule outcomes, in rule order, into one report."""
    diagnostics = tuple(d for outcome in outcomes for d in outcome.diagnostics)
    checks = tuple(c for outcome in outcomes for c in outcome.checks)
    return ValidationReport(skill_path=str(skill_path), diagnostics=diagnostics, checks=checks)


def validate_skill(skill_path: Path, config: RuleConfig | None = None) -> ValidationReport:
    """Validate a complete skill package.

    Args:
        skill_path: Path to the skill directory
        config: Rule thresholds and word lists (defaults when None)

    Returns:
        ValidationReport with all diagnostics. A structural failure yields a
        report holding that single error.
    """
    if config is None:
        config = RuleConfig()

    try:
        package = load_package(skill_path)
        header = extract_header(package.text)
    except StructuralError as e:
        return ValidationReport(skill_path=str(skill_path), diagnostics=(error(str(e)),))

    return aggregate(skill_path, run_rules(SkillDocument(package, header, config)))


# =============================================================================
# Reporting
# =============================================================================


def render_report(report: ValidationReport, use_color: bool = False) -> str:
    """Render a finished report as text."""
    lines = [f"Validating skill at: {report.skill_path}", ""]
    lines.extend(colorize(f"✓ {check}", "PASSED", use_color) for check in report.checks)

    lines.append("")
    lines.append("=" * 50)
    lines.append(colorize("VALIDATION RESULTS", "BOLD", use_color))
    lines.append("=" * 50)
    lines.append("")

    if report.clean:
        lines.append(colorize("✓ All validations passed!", "PASSED", use_color))
        lines.append(colorize("✓ Skill is ready to use", "PASSED", use_color))
        return "\n".join(lines) + "\n"

    errors = report.errors
    warnings = report.warnings

    if errors:
        lines.append(colorize(f"✗ Found {len(errors)} error(s):", "ERROR", use_color))
        lines.append("")
        lines.extend(f"  {i}. {format_diagnostic(d)}" for i, d in enumerate(errors, 1))
        lines.append("")

    if warnings:
        lines.append(colorize(f"⚠ Found {len(warnings)} warning(s):", "WARNING", use_color))
        lines.append("")
        lines.extend(f"  {i}. {format_diagnostic(d)}" for i, d in enumerate(warnings, 1))
        lines.append("")

    if errors:
        lines.append(colorize("✗ Validation failed. Please fix errors before using this skill.", "ERROR", use_color))
    else:
        lines.append(
            colorize("⚠ Validation passed with warnings. Review warnings for best practices.", "WARNING", use_color)
        )
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Validate a skill package directory",
        epilog="Example: validate_skill.py .claude/skills/my-skill",
    )
    parser.add_argument("skill_path", nargs="?", help="Path to the skill directory")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file overriding rule thresholds and word lists",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    args = parser.parse_args(argv)

    if args.skill_path is None:
        parser.print_usage(sys.stderr)
        print("Error: missing required argument: skill_path", file=sys.stderr)
        return EXIT_USAGE

    try:
        config = load_rule_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    report = validate_skill(Path(args.skill_path), config)

    if args.json:
        print(report.to_json())
    else:
        print(render_report(report, should_use_color(args.no_color)), end="")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
