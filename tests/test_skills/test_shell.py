import pytest

from benchmate.config import ShellSkillConfig
from benchmate.skills.shell import ShellSkill, extract_command_words, is_blocked_shell_command

BLOCKED = ShellSkillConfig().blocked


def test_extract_command_words_covers_every_segment():
    assert extract_command_words("ls -la | grep foo && /bin/echo done") == ["ls", "grep", "echo"]
    assert extract_command_words("sudo rm file") == ["sudo", "rm"]
    assert extract_command_words("FOO=1 make build") == ["make"]


@pytest.mark.parametrize(
    "command,matched",
    [
        ("rm -rf /tmp/x", "rm -rf"),
        ("sudo apt install foo", "sudo"),
        ("echo hi && dd if=/dev/zero of=disk.img", "dd"),
        ("mkfs.ext4 /dev/sdb1", "mkfs"),
        ("chmod  -R 777 /", "chmod -R 777 /"),
        ("CURL | SH", "curl | sh"),
        ("bash -c 'sudo reboot'", "sudo"),
        ('sh -c "dd if=/dev/zero of=disk.img"', "dd"),
        ("echo $(sudo id)", "sudo"),
        ("echo `sudo id`", "sudo"),
        ("eval sudo id", "sudo"),
        ("bash -lc 'echo $(mkfs.ext4 /dev/sdb1)'", "mkfs"),
    ],
)
def test_blocklist_matches(command, matched):
    assert is_blocked_shell_command(command, BLOCKED) == (True, matched)


@pytest.mark.parametrize(
    "command",
    [
        "git add .",
        "ls -la",
        "cat README.md | grep format_string",
        "echo sudoku",
        "bash -c 'echo hi'",
        "echo $(date)",
    ],
)
def test_blocklist_avoids_false_positives(command):
    assert is_blocked_shell_command(command, BLOCKED) == (False, "")


def test_blocklist_rejects_empty_and_unparseable():
    assert is_blocked_shell_command("   ", BLOCKED) == (True, "empty_command")
    assert is_blocked_shell_command('echo "unterminated', BLOCKED) == (True, "unparseable_command")


@pytest.mark.asyncio
async def test_shell_blocked_command_is_failure():
    result = await ShellSkill().execute(command="sudo reboot")
    assert result.success is False
    assert result.error == 'Blocked command: "sudo" is not allowed for safety'


@pytest.mark.asyncio
async def test_shell_returns_trimmed_stdout():
    result = await ShellSkill().execute(command="echo hello")
    assert result.success is True
    assert result.output == "hello"


@pytest.mark.asyncio
async def test_shell_empty_output_placeholder():
    result = await ShellSkill().execute(command="true")
    assert result.success is True
    assert result.output == "(no output)"


@pytest.mark.asyncio
async def test_shell_appends_stderr():
    result = await ShellSkill().execute(command="echo out; echo err 1>&2")
    assert result.success is True
    assert result.output == "out\n\nSTDERR:\nerr"


@pytest.mark.asyncio
async def test_shell_non_zero_exit_keeps_stdout():
    result = await ShellSkill().execute(command="echo partial; exit 3")
    assert result.success is False
    assert result.error == "Command failed with exit code 3: exit code 3"
    assert result.output == "partial"


@pytest.mark.asyncio
async def test_shell_timeout():
    skill = ShellSkill(ShellSkillConfig(timeout=1))
    result = await skill.execute(command="sleep 5")
    assert result.success is False
    assert result.error == "Command timed out after 1s"


@pytest.mark.asyncio
async def test_shell_truncates_long_output():
    skill = ShellSkill(ShellSkillConfig(max_output_chars=10))
    result = await skill.execute(command="printf '%s' abcdefghijklmnopqrstuvwxyz")
    assert result.output.startswith("abcdefghij\n... [truncated, 26 total chars]")
