"""Tool-call parsing/execution helpers for Agent."""

import json
import re
import uuid
from typing import Any

from benchmate.llm import ToolCall
from benchmate.logging import get_logger
from benchmate.skills.registry import SkillResult


log = get_logger(__name__)

# Delimiters weaker models (GLM style) emit when they describe a tool call in text.
TEXT_TOOL_CALL_MARKERS = ("<tool_call>", "</tool_call>", "<arg_key>", "<arg_value>")

_SKILL_NAME_RE = re.compile(r"^[A-Za-z_][\w.-]*$")
_TAG_RE = re.compile(r"<[^>]+>")
_TAGGED_PAIR_RE = re.compile(
    r"<arg_key>\s*(.*?)\s*</arg_key>\s*<arg_value>(.*?)</arg_value>",
    re.DOTALL,
)
_LOOSE_PAIR_RE = re.compile(r"^\s*([A-Za-z_][\w-]*)\s*:\s*(.+?)\s*$")


def _decode_text_value(raw: str) -> Any:
    """JSON-looking values become structured data, anything else stays literal."""
    value = raw.strip()
    if (value.startswith("{") and value.endswith("}")) or (value.startswith("[") and value.endswith("]")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return raw
    return raw


class AgentToolLoopMixin:
    """Parse embedded tool calls and execute tool loops.

    Expects the host class to provide ``self.skills`` (a SkillRegistry).
    """

    @staticmethod
    def _has_text_tool_markers(content: str) -> bool:
        """Whether the model tried to call a tool in free text."""
        if not content:
            return False
        return any(marker in content for marker in TEXT_TOOL_CALL_MARKERS)

    @staticmethod
    def _extract_tool_call_from_text(content: str) -> ToolCall | None:
        """Recover at most one tool call from free text.

        The skill name is taken only from the first non-empty line. Arguments
        come from ``<arg_key>/<arg_value>`` pairs; when there are none, loose
        ``key: value`` lines after the name line are used instead.
        """
        if not content:
            return None

        text = content
        start = text.find("<tool_call>")
        if start >= 0:
            text = text[start:]
        end = text.find("</tool_call>")
        if end >= 0:
            text = text[:end]

        lines = text.splitlines()
        heads = [_TAG_RE.sub("", line.split("<arg_key>", 1)[0]).strip() for line in lines]
        name_index = next((i for i, head in enumerate(heads) if head), None)
        if name_index is None:
            return None

        name_line = lines[name_index]
        name = heads[name_index]
        if not _SKILL_NAME_RE.match(name):
            log.debug("Text tool call has no usable skill name", first_line=name_line[:80])
            return None

        params: dict[str, Any] = {}
        for match in _TAGGED_PAIR_RE.finditer(text):
            key = match.group(1).strip()
            if key:
                params[key] = _decode_text_value(match.group(2))

        if not params:
            for line in lines[name_index + 1:]:
                match = _LOOSE_PAIR_RE.match(_TAG_RE.sub("", line))
                if match:
                    params[match.group(1)] = _decode_text_value(match.group(2))

        return ToolCall(id=f"text_{uuid.uuid4().hex[:12]}", name=name, input=params)

    @staticmethod
    def _format_skill_result(result: SkillResult) -> str:
        if result.success:
            return result.output.strip() or "(no output)"
        return f"Error: {result.error}"

    async def _handle_tool_calls(self, tool_calls: list[ToolCall]) -> list[str]:
        """Execute tool calls one at a time, in the order given.

        Returns:
            One formatted result string per call
        """
        results: list[str] = []
        for tc in tool_calls:
            log.info("Executing tool", tool=tc.name, call_id=tc.id)
            result = await self.skills.execute(tc.name, tc.input)
            if not result.success:
                log.warning("Tool returned error", tool=tc.name, error=result.error)
            results.append(self._format_skill_result(result))
        return results
