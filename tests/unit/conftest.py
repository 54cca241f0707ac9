"""Shared fixtures for skill package validator tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest

DEFAULT_BODY = "".join(f"Step {i}: follow the instructions for this part.\n" for i in range(1, 11))

SkillWriter = Callable[..., Path]


@pytest.fixture
def write_skill(tmp_path: Path) -> SkillWriter:
    """Factory writing a skill package under tmp_path and returning its directory.

    ``name`` / ``description`` of None leave the field out of the header;
    ``raw`` replaces the whole SKILL.md text.
    """

    def _write(
        dir_name: str = "my-skill",
        *,
        name: str | None = "my-skill",
        description: str | None = "Does X. Use when Y.",
        body: str = DEFAULT_BODY,
        extra_header: Sequence[str] = (),
        raw: str | None = None,
    ) -> Path:
        skill_dir = tmp_path / dir_name
        skill_dir.mkdir(parents=True, exist_ok=True)
        if raw is None:
            header = ["---"]
            if name is not None:
                header.append(f"name: {name}")
            if description is not None:
                header.append(f"description: {description}")
            header.extend(extra_header)
            header.append("---")
            raw = "\n".join(header) + "\n" + body
        (skill_dir / "SKILL.md").write_text(raw, encoding="utf-8")
        return skill_dir

    return _write
