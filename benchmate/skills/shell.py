"""Shell skill for executing commands."""

import asyncio
import os
import re
import shlex
from pathlib import Path
from typing import Any

from benchmate.config import ShellSkillConfig
from benchmate.logging import get_logger
from benchmate.skills.registry import Skill, SkillResult
from benchmate.skills.schema import Param

log = get_logger(__name__)

_ASSIGNMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=.*$")
_SHELL_SEPARATOR_TOKENS = {";", "&&", "||", "|", "&"}
_SHELL_WRAPPER_TOKENS = {"sudo", "command", "builtin", "nohup", "time", "env", "xargs", "exec"}
_BARE_WORD_RE = re.compile(r"^[\w.-]+$")
_SHELL_INTERPRETERS = {"sh", "bash", "zsh", "dash", "ksh"}
_INLINE_SCRIPT_FLAG_RE = re.compile(r"^-[A-Za-z]*c[A-Za-z]*$")
_SUBSTITUTION_RE = re.compile(r"\$\(([^()]*)\)|`([^`]*)`")
_MAX_NESTING = 5


def _tokenize_shell_command(command: str) -> list[str]:
    """Tokenize shell command while preserving control operators."""
    lexer = shlex.shlex(command, posix=True, punctuation_chars=";&|")
    lexer.whitespace_split = True
    lexer.commenters = ""
    return list(lexer)


def _split_shell_segments(command: str) -> list[list[str]]:
    """Split shell command into tokenized segments separated by control operators."""
    segments: list[list[str]] = []
    current: list[str] = []
    for token in _tokenize_shell_command(command):
        if token in _SHELL_SEPARATOR_TOKENS:
            if current:
                segments.append(current)
                current = []
            continue
        current.append(token)
    if current:
        segments.append(current)
    return segments


def _segment_command_words(tokens: list[str]) -> list[str]:
    """Command-position words of a segment, wrappers included (``sudo rm`` -> both)."""
    words: list[str] = []
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        if _ASSIGNMENT_RE.match(token) and "/" not in token:
            continue
        words.append(Path(token).name.lower())
        if token not in _SHELL_WRAPPER_TOKENS:
            break
    return words


def extract_command_words(command: str) -> list[str]:
    """Extract command-position words from every shell segment."""
    try:
        segments = _split_shell_segments(str(command or "").strip())
    except ValueError:
        return []
    words: list[str] = []
    for segment in segments:
        words.extend(_segment_command_words(segment))
    return words


def _nested_commands(command: str, segments: list[list[str]]) -> list[str]:
    """Command strings the shell would run in turn: ``$(...)``, backticks, ``sh -c``, ``eval``."""
    nested = [dollar or backtick for dollar, backtick in _SUBSTITUTION_RE.findall(command)]
    for segment in segments:
        words = _segment_command_words(segment)
        if not words:
            continue
        head = words[-1]
        index = _command_index(segment)
        args = segment[index + 1:]
        if head == "eval" and args:
            nested.append(" ".join(args))
        elif head in _SHELL_INTERPRETERS:
            for position, arg in enumerate(args):
                if _INLINE_SCRIPT_FLAG_RE.match(arg) and position + 1 < len(args):
                    nested.append(args[position + 1])
                    break
    return [item for item in nested if item.strip()]


def _command_index(tokens: list[str]) -> int:
    index = 0
    for index, token in enumerate(tokens):
        token = token.strip()
        if not token or (_ASSIGNMENT_RE.match(token) and "/" not in token):
            continue
        if token not in _SHELL_WRAPPER_TOKENS:
            break
    return index


def is_blocked_shell_command(
    command: str,
    blocked_patterns: list[str],
    _depth: int = 0,
) -> tuple[bool, str]:
    """Evaluate a command against the blocklist.

    Bare-word entries (``sudo``, ``dd``) match a command word of any segment.
    Other entries match as case-insensitive substrings of the command.
    Command substitutions, ``eval`` arguments and ``bash -c`` scripts are
    checked the same way as the outer command.
    """
    cleaned = str(command or "").strip()
    if not cleaned:
        return True, "empty_command"

    try:
        segments = _split_shell_segments(cleaned)
    except ValueError:
        return True, "unparseable_command"

    command_words = {word for segment in segments for word in _segment_command_words(segment)}
    lowered = " ".join(cleaned.lower().split())

    for raw_pattern in blocked_patterns or []:
        pattern = str(raw_pattern or "").strip()
        if not pattern:
            continue
        if _BARE_WORD_RE.match(pattern):
            word = pattern.lower()
            # "mkfs" also covers "mkfs.ext4"
            if any(cmd == word or cmd.startswith(word + ".") for cmd in command_words):
                return True, pattern
        elif " ".join(pattern.lower().split()) in lowered:
            return True, pattern

    for inner in _nested_commands(cleaned, segments):
        if _depth >= _MAX_NESTING:
            return True, "nested_too_deep"
        blocked, matched = is_blocked_shell_command(inner, blocked_patterns, _depth + 1)
        if blocked:
            return True, matched
    return False, ""


class ShellSkill(Skill):
    """Execute shell commands."""

    name = "shell"
    description = (
        "Execute shell commands. Use for running terminal commands, checking status, "
        "listing files, etc. Blocked: destructive operations (rm -rf, sudo, dd, mkfs)."
    )
    parameters = {
        "command": Param(description="Shell command to execute"),
    }

    def __init__(self, config: ShellSkillConfig | None = None):
        self.config = config or ShellSkillConfig()
        # Registry limit stays above the subprocess timeout so the skill reports it.
        self.timeout_seconds = float(self.config.timeout) + 5.0

    async def execute(self, command: str, **kwargs: Any) -> SkillResult:
        """Execute a shell command.

        Args:
            command: Shell command to execute

        Returns:
            SkillResult with combined output
        """
        blocked, matched = is_blocked_shell_command(command, self.config.blocked)
        if blocked:
            if matched == "empty_command":
                reason = "Command is empty"
            elif matched == "unparseable_command":
                reason = "Command is not parseable"
            else:
                reason = f'Blocked command: "{matched}" is not allowed for safety'
            log.warning("Blocked unsafe command", command=command, reason=reason)
            return SkillResult.failure(reason)

        timeout = max(1, int(self.config.timeout))
        env = os.environ.copy()

        log.info("Executing shell command", command=command, timeout=timeout)
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return SkillResult.failure(f"Command timed out after {timeout}s")
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")

        if process.returncode != 0:
            detail = stderr_text.strip() or f"exit code {process.returncode}"
            return SkillResult.failure(
                f"Command failed with exit code {process.returncode}: {detail}",
                output=self._truncate(stdout_text.strip()),
            )

        output = stdout_text
        if stderr_text:
            output += f"\nSTDERR:\n{stderr_text}"

        return SkillResult(success=True, output=self._truncate(output.strip()) or "(no output)")

    def _truncate(self, text: str) -> str:
        max_length = self.config.max_output_chars
        if len(text) > max_length:
            return text[:max_length] + f"\n... [truncated, {len(text)} total chars]"
        return text
