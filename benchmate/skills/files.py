"""File skills for reading and writing file contents."""

from pathlib import Path
from typing import Any

from benchmate.logging import get_logger
from benchmate.skills.registry import Skill, SkillResult
from benchmate.skills.schema import Param, ParamKind

log = get_logger(__name__)

MAX_READ_BYTES = 1_000_000


class ReadFileSkill(Skill):
    """Read file contents, optionally a line range."""

    name = "read_file"
    description = "Read contents of a file. Can optionally specify line range."
    parameters = {
        "path": Param(description="Path to the file to read"),
        "start_line": Param(ParamKind.NUMBER, "Start line (1-indexed, optional)", optional=True, coerce=True),
        "end_line": Param(ParamKind.NUMBER, "End line (1-indexed, optional)", optional=True, coerce=True),
    }

    async def execute(
        self,
        path: str,
        start_line: int | None = None,
        end_line: int | None = None,
        **kwargs: Any,
    ) -> SkillResult:
        """Read a file.

        Args:
            path: Path to file
            start_line: First line to return (1-indexed)
            end_line: Last line to return (inclusive)
        """
        file_path = Path(path).expanduser()

        if not file_path.exists():
            return SkillResult.failure(f"File not found: {path}")
        if not file_path.is_file():
            return SkillResult.failure(f"Not a file: {path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_READ_BYTES:
            return SkillResult.failure(f"File too large: {file_size} bytes (max {MAX_READ_BYTES})")

        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("Read failed", path=path, error=str(e))
            return SkillResult.failure(str(e))

        if start_line or end_line:
            lines = content.split("\n")
            start = max(int(start_line or 1), 1) - 1
            end = int(end_line) if end_line else len(lines)
            return SkillResult(success=True, output="\n".join(lines[start:end]))

        return SkillResult(success=True, output=content)


class WriteFileSkill(Skill):
    """Write content to files."""

    name = "write_file"
    description = (
        "Write content to a file (creates or overwrites). "
        "Use for creating new files or replacing content."
    )
    parameters = {
        "path": Param(description="Path to the file to write"),
        "content": Param(description="Content to write to the file"),
    }

    async def execute(self, path: str, content: str, **kwargs: Any) -> SkillResult:
        """Write content to a file.

        Args:
            path: Path to file
            content: Content to write
        """
        file_path = Path(path).expanduser()
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            log.error("Write failed", path=path, error=str(e))
            return SkillResult.failure(str(e))

        return SkillResult(
            success=True,
            output=f"Successfully wrote {len(content)} characters to {path}",
        )
