"""Configuration management for Benchmate."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Paths
DEFAULT_CONFIG_PATH = Path("~/.benchmate/config.yaml").expanduser()
DEFAULT_DB_PATH = Path("~/.benchmate/memory.db").expanduser()
LOCAL_CONFIG_FILENAME = "config.yaml"


class ModelConfig(BaseModel):
    """Default model settings for the agent."""

    model: str = "big-pickle"
    max_tokens: int = 4096
    temperature: float = 0.7


class ProviderConfig(BaseModel):
    """OpenCode Zen gateway configuration."""

    base_url: str = "https://opencode.ai/zen"
    api_key_env: str = "OPENCODE_ZEN_API_KEY"
    api_key: str = ""
    timeout: float = 120.0


class MemoryConfig(BaseModel):
    """Conversation memory configuration."""

    path: str = str(DEFAULT_DB_PATH)
    recent_window: int = 20
    fact_limit: int = 10


class SkillsConfig(BaseModel):
    """Which skill groups get registered at startup."""

    enabled: list[str] = [
        "shell",
        "files",
        "git",
        "homeassistant",
    ]


class ShellSkillConfig(BaseModel):
    """Shell skill configuration."""

    timeout: int = 30
    max_output_chars: int = 10000
    blocked: list[str] = [
        "rm -rf",
        "sudo",
        "dd",
        "mkfs",
        "format",
        ":(){:|:&};:",
        "> /dev/sda",
        "chmod -R 777 /",
        "curl | sh",
        "wget | sh",
    ]


class GitSkillConfig(BaseModel):
    """Git skill configuration."""

    timeout: int = 10


class HomeAssistantConfig(BaseModel):
    """Home Assistant skill configuration."""

    url: str = ""
    token: str = ""
    timeout: float = 15.0

    def resolve_url(self) -> str:
        return (self.url or os.environ.get("HA_URL", "") or "http://homeassistant.local:8123").rstrip("/")

    def resolve_token(self) -> str:
        return self.token or os.environ.get("HA_TOKEN", "")


class AgentPromptConfig(BaseModel):
    """Environment description rendered into the system prompt."""

    environment: list[str] = [
        "OS: macOS",
        "Editor: Neovim",
        "Workflow: Terminal-based with tmux",
    ]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"


class Config(BaseSettings):
    """Main configuration for Benchmate."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    skills: SkillsConfig = Field(default_factory=SkillsConfig)
    shell: ShellSkillConfig = Field(default_factory=ShellSkillConfig)
    git: GitSkillConfig = Field(default_factory=GitSkillConfig)
    homeassistant: HomeAssistantConfig = Field(default_factory=HomeAssistantConfig)
    agent: AgentPromptConfig = Field(default_factory=AgentPromptConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="BENCHMATE_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment overrides them.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def resolve_default_config_path(cls) -> Path:
        """Resolve default config path with local-first precedence."""
        local_path = Path.cwd() / LOCAL_CONFIG_FILENAME
        if local_path.exists():
            return local_path
        return DEFAULT_CONFIG_PATH

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(path).expanduser() if path else cls.resolve_default_config_path()

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def load(cls) -> "Config":
        """Load configuration; environment variables win over YAML."""
        return cls.from_yaml()

    def save(self, path: Path | str | None = None) -> None:
        """Save configuration to YAML file."""
        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
