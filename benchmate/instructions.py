"""Prompt templates shipped in ``benchmate/prompts``.

A file of the same name in ``~/.benchmate/prompts/`` replaces the packaged
template, so the system prompt can be tuned without reinstalling.
``BENCHMATE_PROMPTS_DIR`` points the packaged lookup somewhere else.
"""

from __future__ import annotations

import os
import string
from importlib import resources
from pathlib import Path

PERSONAL_PROMPTS_DIR = Path("~/.benchmate/prompts").expanduser()


class _LenientFormatter(string.Formatter):
    """``str.format`` that leaves unknown ``{placeholders}`` in place."""

    def get_value(self, key, args, kwargs):
        if isinstance(key, str) and key not in kwargs:
            return "{" + key + "}"
        return super().get_value(key, args, kwargs)


_FORMATTER = _LenientFormatter()


class InstructionLoader:
    """Read prompt templates, preferring personal copies over packaged ones."""

    def __init__(
        self,
        base_dir: Path | str | None = None,
        personal_dir: Path | str | None = None,
    ):
        env_dir = os.getenv("BENCHMATE_PROMPTS_DIR")
        if base_dir is None and env_dir:
            base_dir = env_dir
        self.base_dir = Path(base_dir).expanduser() if base_dir is not None else None
        self.personal_dir = Path(personal_dir).expanduser() if personal_dir is not None else PERSONAL_PROMPTS_DIR
        self._cache: dict[str, str] = {}

    def _read(self, name: str) -> str:
        personal = self.personal_dir / name
        if personal.is_file():
            return personal.read_text(encoding="utf-8")

        if self.base_dir is not None:
            packaged = self.base_dir / name
            if not packaged.is_file():
                raise FileNotFoundError(f"Prompt template not found: {packaged}")
            return packaged.read_text(encoding="utf-8")

        resource = resources.files("benchmate").joinpath("prompts", name)
        if not resource.is_file():
            raise FileNotFoundError(f"Prompt template not found: prompts/{name}")
        return resource.read_text(encoding="utf-8")

    def load(self, name: str) -> str:
        """Load template content by filename (cached per loader)."""
        if name not in self._cache:
            self._cache[name] = self._read(name).strip()
        return self._cache[name]

    def render(self, template: str, /, **variables: object) -> str:
        """Fill ``{placeholders}``; values are inserted verbatim, unknown names stay as-is."""
        return _FORMATTER.vformat(self.load(template), (), {k: str(v) for k, v in variables.items()})
