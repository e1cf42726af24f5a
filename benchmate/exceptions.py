"""Custom exceptions for Benchmate."""


class BenchmateError(Exception):
    """Base exception for Benchmate."""

    pass


class ConfigurationError(BenchmateError):
    """Configuration-related errors."""

    pass


class MissingCredentialsError(ConfigurationError):
    """Provider credentials are not available."""

    def __init__(self, env_var: str):
        super().__init__(f"Missing {env_var}")
        self.env_var = env_var


class DuplicateSkillError(ConfigurationError):
    """A skill name was registered twice."""

    def __init__(self, skill_name: str):
        super().__init__(f"Skill {skill_name} is already registered")
        self.skill_name = skill_name


class ValidationError(BenchmateError):
    """Skill parameters do not match the declared schema."""

    def __init__(self, details: list[str]):
        super().__init__("; ".join(details) or "invalid parameters")
        self.details = list(details)


class SkillError(BenchmateError):
    """Skill-related errors."""

    pass


class SkillNotFoundError(SkillError):
    """Skill not found in registry."""

    def __init__(self, skill_name: str):
        super().__init__(f"Skill not found: {skill_name}")
        self.skill_name = skill_name


class SkillExecutionError(SkillError):
    """Skill execution failed."""

    def __init__(self, skill_name: str, message: str):
        super().__init__(f"Skill '{skill_name}' failed: {message}")
        self.skill_name = skill_name


class ProviderError(BenchmateError):
    """LLM provider errors."""

    pass


class ProviderTransportError(ProviderError):
    """The provider round-trip did not produce a usable response."""

    pass


class ProviderAPIError(ProviderTransportError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProviderNetworkError(ProviderTransportError):
    """Provider could not be reached (DNS, connect, timeout)."""

    pass


class ProviderResponseError(ProviderTransportError):
    """Provider response could not be decoded."""

    pass
