import shutil

import pytest

import benchmate.skills.git as git_module
from benchmate.skills.git import (
    GitBranchSkill,
    GitCommandError,
    GitDiffSkill,
    GitLogSkill,
    GitShowSkill,
    GitStatusSkill,
)


class FakeGit:
    def __init__(self, output: str = "ok", error: str | None = None):
        self.output = output
        self.error = error
        self.calls: list[list[str]] = []

    async def __call__(self, args: list[str], timeout: float = 10.0) -> str:
        self.calls.append(list(args))
        if self.error:
            raise GitCommandError(self.error)
        return self.output


@pytest.fixture
def fake_git(monkeypatch):
    fake = FakeGit()
    monkeypatch.setattr(git_module, "run_git", fake)
    return fake


@pytest.mark.asyncio
async def test_status_short_flag(fake_git):
    await GitStatusSkill().execute(short=True)
    await GitStatusSkill().execute()
    assert fake_git.calls == [["status", "-s"], ["status"]]


@pytest.mark.asyncio
async def test_log_defaults_to_ten_commits(fake_git):
    await GitLogSkill().execute()
    await GitLogSkill().execute(count=3, oneline=True)
    assert fake_git.calls == [
        ["log", "-10", "--pretty=format:%h - %an, %ar : %s"],
        ["log", "-3", "--oneline"],
    ]


@pytest.mark.asyncio
async def test_diff_empty_messages(fake_git):
    fake_git.output = "(no output)"

    staged = await GitDiffSkill().execute(staged=True, file="main.py")
    unstaged = await GitDiffSkill().execute()

    assert staged.output == "No staged changes"
    assert unstaged.output == "No unstaged changes"
    assert fake_git.calls[0] == ["diff", "--staged", "--", "main.py"]


@pytest.mark.asyncio
async def test_show_rejects_option_like_ref(fake_git):
    result = await GitShowSkill().execute(ref="--output=/tmp/x")
    assert result.success is False
    assert fake_git.calls == []


@pytest.mark.asyncio
async def test_branch_all(fake_git):
    fake_git.output = "* main"
    result = await GitBranchSkill().execute(all=True)
    assert result.output == "* main"
    assert fake_git.calls == [["branch", "-a"]]


@pytest.mark.asyncio
async def test_git_error_becomes_failure(fake_git):
    fake_git.error = "Not a git repository"
    result = await GitStatusSkill().execute()
    assert result.success is False
    assert result.error == "Not a git repository"


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
@pytest.mark.asyncio
async def test_run_git_outside_repository(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
    with pytest.raises(GitCommandError, match="Not a git repository"):
        await git_module.run_git(["status"])
