"""Skills package for Benchmate."""

from benchmate.config import Config
from benchmate.logging import get_logger
from benchmate.skills.files import ReadFileSkill, WriteFileSkill
from benchmate.skills.git import GIT_SKILLS
from benchmate.skills.homeassistant import HOME_ASSISTANT_SKILLS, HomeAssistantClient
from benchmate.skills.registry import Skill, SkillRegistry, SkillResult
from benchmate.skills.schema import Param, ParamKind
from benchmate.skills.shell import ShellSkill

log = get_logger(__name__)


def create_default_registry(config: Config) -> SkillRegistry:
    """Build a registry holding every enabled skill group."""
    registry = SkillRegistry()
    enabled = [group.strip().lower() for group in config.skills.enabled]

    for group in enabled:
        if group == "shell":
            registry.register(ShellSkill(config.shell))
        elif group == "files":
            registry.register(ReadFileSkill())
            registry.register(WriteFileSkill())
        elif group == "git":
            for skill_cls in GIT_SKILLS:
                registry.register(skill_cls(config.git))
        elif group == "homeassistant":
            client = HomeAssistantClient(config.homeassistant)
            for skill_cls in HOME_ASSISTANT_SKILLS:
                registry.register(skill_cls(client))
        else:
            log.warning("Unknown skill group in config", group=group)

    return registry


__all__ = [
    "Param",
    "ParamKind",
    "ReadFileSkill",
    "ShellSkill",
    "Skill",
    "SkillRegistry",
    "SkillResult",
    "WriteFileSkill",
    "create_default_registry",
]
