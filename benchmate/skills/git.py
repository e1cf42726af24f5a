"""Read-only git skills."""

import asyncio
from typing import Any

from benchmate.config import GitSkillConfig
from benchmate.logging import get_logger
from benchmate.skills.registry import Skill, SkillResult
from benchmate.skills.schema import Param, ParamKind

log = get_logger(__name__)


class GitCommandError(Exception):
    """A git invocation failed."""


async def run_git(args: list[str], timeout: float = 10.0) -> str:
    """Run ``git <args>`` and return trimmed output.

    Raises:
        GitCommandError: on non-zero exit or timeout
    """
    log.debug("Running git", args=args)
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise GitCommandError(f"git {' '.join(args)} timed out after {timeout:g}s") from None

    stdout_text = stdout.decode("utf-8", errors="replace").strip()
    stderr_text = stderr.decode("utf-8", errors="replace").strip()

    if process.returncode == 128:
        raise GitCommandError("Not a git repository")
    if process.returncode != 0:
        raise GitCommandError(stderr_text or f"git exited with code {process.returncode}")
    return stdout_text or stderr_text or "(no output)"


class _GitSkill(Skill):
    """Shared plumbing: run git and wrap the outcome in a SkillResult."""

    def __init__(self, config: GitSkillConfig | None = None):
        self.config = config or GitSkillConfig()
        self.timeout_seconds = float(self.config.timeout) + 5.0

    async def _run(self, args: list[str]) -> SkillResult:
        try:
            output = await run_git(args, timeout=float(self.config.timeout))
        except GitCommandError as e:
            return SkillResult.failure(str(e))
        return SkillResult(success=True, output=output)


class GitStatusSkill(_GitSkill):
    name = "git_status"
    description = "Show the working tree status. Lists modified, staged, and untracked files."
    parameters = {
        "short": Param(ParamKind.BOOLEAN, "Use short format (default: false)", optional=True, coerce=True),
    }

    async def execute(self, short: bool = False, **kwargs: Any) -> SkillResult:
        return await self._run(["status", "-s"] if short else ["status"])


class GitLogSkill(_GitSkill):
    name = "git_log"
    description = "Show commit history. Use to see recent changes, commits, and authors."
    parameters = {
        "count": Param(ParamKind.NUMBER, "Number of commits to show (default: 10)", optional=True, coerce=True),
        "oneline": Param(ParamKind.BOOLEAN, "Show one line per commit (default: false)", optional=True, coerce=True),
    }

    async def execute(self, count: int | None = None, oneline: bool = False, **kwargs: Any) -> SkillResult:
        limit = max(1, int(count or 10))
        fmt = "--oneline" if oneline else "--pretty=format:%h - %an, %ar : %s"
        return await self._run(["log", f"-{limit}", fmt])


class GitDiffSkill(_GitSkill):
    name = "git_diff"
    description = "Show changes in the working directory or staged area. Use to see what has been modified."
    parameters = {
        "file": Param(description="Specific file to diff (optional)", optional=True),
        "staged": Param(
            ParamKind.BOOLEAN,
            "Show staged changes instead of unstaged (default: false)",
            optional=True,
            coerce=True,
        ),
    }

    async def execute(self, file: str | None = None, staged: bool = False, **kwargs: Any) -> SkillResult:
        args = ["diff"]
        if staged:
            args.append("--staged")
        if file:
            args.extend(["--", file])

        result = await self._run(args)
        if result.success and result.output in ("", "(no output)"):
            return SkillResult(
                success=True,
                output="No staged changes" if staged else "No unstaged changes",
            )
        return result


class GitShowSkill(_GitSkill):
    name = "git_show"
    description = "Show details of a specific commit, branch, or tag."
    parameters = {
        "ref": Param(description="Commit hash, branch name, or tag to show"),
    }

    async def execute(self, ref: str, **kwargs: Any) -> SkillResult:
        if ref.startswith("-"):
            return SkillResult.failure(f"Invalid ref: {ref}")
        return await self._run(["show", ref])


class GitBranchSkill(_GitSkill):
    name = "git_branch"
    description = "List all branches. Shows current branch with an asterisk."
    parameters = {
        "all": Param(
            ParamKind.BOOLEAN,
            "Show all branches including remote (default: false)",
            optional=True,
            coerce=True,
        ),
    }

    async def execute(self, all: bool = False, **kwargs: Any) -> SkillResult:
        return await self._run(["branch", "-a"] if all else ["branch"])


GIT_SKILLS: tuple[type[_GitSkill], ...] = (
    GitStatusSkill,
    GitLogSkill,
    GitDiffSkill,
    GitShowSkill,
    GitBranchSkill,
)
