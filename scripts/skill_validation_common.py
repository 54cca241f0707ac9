#!/usr/bin/env python3
"""
Skill Package Validation - Common Module

Shared validation infrastructure for the skill package validator and the
scaffolding tool.
This module contains:
- Type definitions (Severity, Diagnostic, HeaderRecord, ValidationReport)
- Rule configuration (RuleConfig, load_rule_config)
- Exceptions (StructuralError, ConfigError)
- Utility functions (exit codes, color formatting)

All diagnostics are immutable values; a report is built once from the full
diagnostic set and never mutated afterwards.
"""

from __future__ import annotations

import json
import os
import re
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml

# =============================================================================
# Type Definitions
# =============================================================================

# Diagnostic severity levels
# - ERROR: fails the verdict (non-zero exit code)
# - WARNING: always reported, never blocks
Severity = Literal["ERROR", "WARNING"]

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No errors (warnings allowed)
EXIT_FAILED = 1  # One or more errors, or a structural failure
EXIT_USAGE = 1  # Malformed invocation (missing skill path)

# =============================================================================
# Common Constants
# =============================================================================

# Primary document every skill package must contain
PRIMARY_DOCUMENT = "SKILL.md"

# Line that opens and closes the metadata header
HEADER_DELIMITER = "---"

# Header keys every skill must define
REQUIRED_HEADER_FIELDS = ("name", "description")

# Header keys the host runtime understands (others may be ignored by it)
KNOWN_HEADER_FIELDS = {
    "name",
    "description",
    "argument-hint",
    "disable-model-invocation",
    "user-invocable",
    "allowed-tools",
    "model",
    "context",
    "agent",
    "hooks",
    "license",
    "metadata",
    "compatibility",
    "version",
}

# Valid tool names for the allowed-tools header field
VALID_TOOLS = {
    "Read",
    "Write",
    "Edit",
    "Bash",
    "Grep",
    "Glob",
    "WebFetch",
    "WebSearch",
    "Task",
    "NotebookEdit",
    "Skill",
    "AskUserQuestion",
    "EnterPlanMode",
    "ExitPlanMode",
    "EnterWorktree",
    "TaskCreate",
    "TaskUpdate",
    "TaskList",
    "TaskGet",
    "TaskStop",
    "ToolSearch",
    "TodoWrite",
}

# Name validation pattern (lowercase letters, digits, hyphens)
NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")

# Maximum values for names, descriptions and bodies
MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
MAX_BODY_LINES = 500

# Substrings a skill name may not contain (case-insensitive)
RESERVED_WORDS = ("anthropic", "claude")

# Names too generic to tell skills apart
VAGUE_NAMES = ("helper", "utils", "tools", "skill")

# Phrase a description uses to say when the skill applies
TRIGGER_PHRASE = "use when"

# Environment variable naming a YAML rule configuration file
CONFIG_ENV_VAR = "SKILL_VALIDATOR_CONFIG"


# =============================================================================
# Exceptions
# =============================================================================


class SkillValidationError(Exception):
    """Base class for fatal validator errors."""


class StructuralError(SkillValidationError):
    """The package cannot be inspected at all.

    Raised when the package root or primary document is missing or unreadable,
    or when the header delimiters are absent. Stops the run for that package.
    """


class ConfigError(SkillValidationError):
    """A rule configuration file is missing or invalid."""


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Diagnostic:
    """Single validation finding.

    Attributes:
        severity: ERROR (fails the verdict) or WARNING (advisory)
        message: Human-readable description of the finding
        location: Optional field name or file the finding refers to
        line: Optional 1-based line number in the primary document
    """

    severity: Severity
    message: str
    location: str | None = None
    line: int | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == "ERROR"

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert to dictionary for JSON serialization."""
        return {"severity": self.severity, "message": self.message, "location": self.location, "line": self.line}


def error(message: str, location: str | None = None, line: int | None = None) -> Diagnostic:
    """Build an ERROR diagnostic."""
    return Diagnostic("ERROR", message, location, line)


def warning(message: str, location: str | None = None, line: int | None = None) -> Diagnostic:
    """Build a WARNING diagnostic."""
    return Diagnostic("WARNING", message, location, line)


@dataclass(frozen=True)
class HeaderRecord:
    """Parsed metadata header of a primary document.

    Fields that are absent from the header are None. ``allowed_tools`` keeps
    the raw field value; ``tools`` splits it into tokens.

    Attributes:
        name: Skill identifier
        description: Skill summary
        allowed_tools: Raw allowed-tools value, if the field is present
        raw: Text between the two delimiter lines
        body: Document text after the closing delimiter
        body_start_line: 1-based line number of the first body line
        keys: Every header key in order of appearance (duplicates included)
    """

    name: str | None
    description: str | None
    allowed_tools: str | None
    raw: str
    body: str
    body_start_line: int
    keys: tuple[str, ...] = ()

    @property
    def tools(self) -> tuple[str, ...]:
        if self.allowed_tools is None:
            return ()
        return tuple(t for t in re.split(r"[,\s]+", self.allowed_tools) if t)

    @property
    def body_lines(self) -> list[str]:
        return self.body.splitlines()


@dataclass(frozen=True)
class ValidationReport:
    """Aggregated result of one validation run.

    Diagnostics keep discovery order. ``checks`` holds the confirmation lines
    of checks that found no errors, in the order the checks ran.
    """

    skill_path: str
    diagnostics: tuple[Diagnostic, ...] = ()
    checks: tuple[str, ...] = ()

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def passed(self) -> bool:
        """True iff there are no ERROR diagnostics, regardless of warnings."""
        return not self.errors

    @property
    def clean(self) -> bool:
        """True iff there are no diagnostics of either severity."""
        return not self.diagnostics

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.passed else EXIT_FAILED

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "skill_path": self.skill_path,
            "passed": self.passed,
            "clean": self.clean,
            "exit_code": self.exit_code,
            "counts": {"error": len(self.errors), "warning": len(self.warnings)},
            "checks": list(self.checks),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# =============================================================================
# Rule Configuration
# =============================================================================


@dataclass(frozen=True)
class RuleConfig:
    """Thresholds and word lists used by the validation rules."""

    max_name_length: int = MAX_NAME_LENGTH
    max_description_length: int = MAX_DESCRIPTION_LENGTH
    max_body_lines: int = MAX_BODY_LINES
    reserved_words: tuple[str, ...] = RESERVED_WORDS
    vague_names: tuple[str, ...] = VAGUE_NAMES
    known_tools: frozenset[str] = field(default_factory=lambda: frozenset(VALID_TOOLS))
    trigger_phrase: str = TRIGGER_PHRASE


_INT_KEYS = ("max_name_length", "max_description_length", "max_body_lines")
_LIST_KEYS = ("reserved_words", "vague_names", "extra_tools")
_STR_KEYS = ("trigger_phrase",)


def load_yaml_file(file_path: Path) -> Any:
    """Load a YAML file, raising ConfigError on any read or parse failure."""
    try:
        with open(file_path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {file_path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {file_path}: {e}") from e


def load_rule_config(path: Path | None = None) -> RuleConfig:
    """Build a RuleConfig from an optional YAML override file.

    Args:
        path: Config file path. When None, the SKILL_VALIDATOR_CONFIG
            environment variable is consulted; without either, defaults apply.

    Raises:
        ConfigError: If the file cannot be loaded or holds invalid settings.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        if not env_path:
            return RuleConfig()
        path = Path(env_path)

    data = load_yaml_file(path)
    if data is None:
        return RuleConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    unknown = sorted(str(k) for k in data if k not in _INT_KEYS + _LIST_KEYS + _STR_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config key(s) in {path}: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key in _INT_KEYS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
            overrides[key] = value

    for key in _LIST_KEYS:
        if key in data:
            value = data[key]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' must be a list of strings")
            if key == "extra_tools":
                overrides["known_tools"] = frozenset(VALID_TOOLS) | frozenset(value)
            else:
                overrides[key] = tuple(v.lower() for v in value)

    for key in _STR_KEYS:
        if key in data:
            value = data[key]
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"'{key}' must be a non-empty string")
            overrides[key] = value.strip().lower()

    return replace(RuleConfig(), **overrides)


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "ERROR": "\033[91m",  # Red
    "WARNING": "\033[95m",  # Magenta
    "PASSED": "\033[92m",  # Green
    "RESET": "\033[0m",  # Reset
    "BOLD": "\033[1m",  # Bold
}


def colorize(text: str, level: str, enabled: bool = True) -> str:
    """Apply color to text based on level."""
    if not enabled:
        return text
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Format a diagnostic for terminal output, with its line location if known."""
    if diagnostic.line is None:
        return diagnostic.message
    return f"{diagnostic.message} ({diagnostic.location or PRIMARY_DOCUMENT}:{diagnostic.line})"


def should_use_color(no_color_flag: bool = False) -> bool:
    """Colors only for interactive terminals, and never when NO_COLOR is set."""
    if no_color_flag or os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()
