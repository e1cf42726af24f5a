"""Skill registry and base skill class."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, field_validator, model_validator

from benchmate.exceptions import (
    DuplicateSkillError,
    SkillExecutionError,
    SkillNotFoundError,
    ValidationError,
)
from benchmate.llm import ToolDefinition
from benchmate.logging import get_logger
from benchmate.skills.schema import Param, to_json_schema, validate_params

log = get_logger(__name__)


class SkillResult(BaseModel):
    """Result from skill execution."""

    success: bool = True
    output: str = ""
    error: str | None = None

    @field_validator("output", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @model_validator(mode="after")
    def _normalize_failure_error(self) -> "SkillResult":
        """Ensure failed results always provide an error message."""
        if not self.success and not (self.error or "").strip():
            fallback = (self.output or "").strip()
            self.error = fallback or "Skill execution failed"
        return self

    @classmethod
    def failure(cls, error: str, output: str = "") -> "SkillResult":
        return cls(success=False, output=output, error=error)


class Skill(ABC):
    """Base class for all skills.

    Subclasses declare ``name``, ``description`` and ``parameters`` and
    implement ``execute``, which receives validated keyword arguments.
    """

    name: str = ""
    description: str = ""
    parameters: dict[str, Param] = {}
    timeout_seconds: float | None = None

    @abstractmethod
    async def execute(self, **params: Any) -> SkillResult:
        """Execute the skill.

        Args:
            **params: Validated skill arguments

        Returns:
            SkillResult with success status and output
        """
        pass

    async def close(self) -> None:
        """Release resources held by the skill. Called once on shutdown."""

    def input_schema(self) -> dict[str, Any]:
        return to_json_schema(self.parameters)

    def get_definition(self) -> ToolDefinition:
        """Get the tool definition offered to the model."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema(),
        )


class SkillRegistry:
    """Registry of available skills, keyed by unique name."""

    def __init__(self, default_timeout: float = 60.0):
        self._skills: dict[str, Skill] = {}
        self.default_timeout = default_timeout

    def register(self, skill: Skill) -> None:
        """Register a skill.

        Raises:
            DuplicateSkillError: if the name is already taken
        """
        if not skill.name:
            raise ValueError("Skill must have a name")
        if skill.name in self._skills:
            raise DuplicateSkillError(skill.name)

        log.debug("Registering skill", skill=skill.name)
        self._skills[skill.name] = skill

    def get(self, name: str) -> Skill | None:
        return self._skills.get(name)

    def get_all(self) -> list[Skill]:
        """Return skills in registration order."""
        return list(self._skills.values())

    def list_skills(self) -> list[str]:
        return list(self._skills.keys())

    async def close(self) -> None:
        """Close every registered skill."""
        for skill in self._skills.values():
            await skill.close()

    def to_tool_definitions(self) -> list[ToolDefinition]:
        """Get tool definitions for every registered skill, in registration order."""
        return [skill.get_definition() for skill in self._skills.values()]

    async def execute(self, name: str, raw_params: Any) -> SkillResult:
        """Validate arguments and run a skill by name.

        Never raises for skill-side problems: unknown names, invalid
        arguments, executor exceptions and timeouts all come back as a
        failed ``SkillResult``.
        """
        skill = self.get(name)
        if skill is None:
            log.warning("Unknown skill requested", skill=name)
            return SkillResult.failure(str(SkillNotFoundError(name)))

        try:
            params = validate_params(skill.parameters, raw_params)
        except ValidationError as e:
            log.warning("Skill parameter validation failed", skill=name, details=e.details)
            return SkillResult.failure(f"Parameter validation failed: {e}")

        timeout_seconds = float(skill.timeout_seconds or self.default_timeout)
        log.info("Executing skill", skill=name, params=params)
        try:
            result = await asyncio.wait_for(skill.execute(**params), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            timeout_label = int(timeout_seconds) if timeout_seconds.is_integer() else timeout_seconds
            log.error("Skill timed out", skill=name, timeout=timeout_label)
            return SkillResult.failure(f"Skill '{name}' timed out after {timeout_label}s")
        except Exception as e:
            log.error("Skill execution failed", skill=name, error=str(e))
            return SkillResult.failure(str(e) or type(e).__name__)

        if not isinstance(result, SkillResult):
            error = SkillExecutionError(name, "returned invalid result payload")
            log.error("Skill returned invalid result", skill=name, result_type=type(result).__name__)
            return SkillResult.failure(str(error))

        log.info("Skill executed", skill=name, success=result.success)
        return result
