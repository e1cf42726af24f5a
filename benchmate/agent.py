"""Agent orchestration for Benchmate."""

from dataclasses import dataclass

from benchmate.agent_tool_loop_mixin import AgentToolLoopMixin
from benchmate.config import AgentPromptConfig, ModelConfig
from benchmate.instructions import InstructionLoader
from benchmate.llm import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    LLMProvider,
    Message,
    ProviderResponse,
    ToolCall,
)
from benchmate.logging import get_logger
from benchmate.memory import ConversationContext, Memory
from benchmate.memory import Message as StoredMessage
from benchmate.skills import SkillRegistry

log = get_logger(__name__)

SYSTEM_PROMPT_TEMPLATE = "system_prompt.md"
NO_FACTS_PLACEHOLDER = "(No facts stored yet)"


@dataclass
class AgentConfig:
    """Model selection and sampling parameters for one agent."""

    model: str = ModelConfig().model
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE

    @classmethod
    def from_model_config(cls, config: ModelConfig) -> "AgentConfig":
        return cls(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )


class Agent(AgentToolLoopMixin):
    """Main agent orchestrator.

    One call to ``process_message`` runs a full turn: persist the user
    message, build context, call the provider once, run any requested
    skills in order, then persist and return the composed reply.
    """

    def __init__(
        self,
        provider: LLMProvider,
        skills: SkillRegistry,
        memory: Memory,
        config: AgentConfig | None = None,
        instructions: InstructionLoader | None = None,
        environment: list[str] | None = None,
    ):
        """Initialize the agent.

        Args:
            provider: LLM provider used for every turn
            skills: Registry of skills offered to the model
            memory: Conversation memory
            config: Model and sampling settings
            instructions: Prompt template loader
            environment: Environment lines for the system prompt
        """
        self.provider = provider
        self.skills = skills
        self.memory = memory
        self.config = config or AgentConfig()
        self.instructions = instructions or InstructionLoader()
        self.environment = list(environment if environment is not None else AgentPromptConfig().environment)

    @property
    def model(self) -> str:
        return self.config.model

    def set_model(self, model: str) -> None:
        """Switch the model used for subsequent turns."""
        model = (model or "").strip()
        if not model:
            raise ValueError("Model id cannot be empty")
        log.info("Model switched", previous=self.config.model, model=model)
        self.config.model = model

    def _build_system_prompt(self, context: ConversationContext) -> str:
        environment = "\n".join(f"- {line}" for line in self.environment) or "- (unspecified)"
        skills = "\n".join(
            f"- {skill.name}: {skill.description}" for skill in self.skills.get_all()
        ) or "(No tools available)"
        if context.relevant_facts:
            facts = "\n".join(f"- {fact.content}" for fact in context.relevant_facts)
        else:
            facts = NO_FACTS_PLACEHOLDER
        return self.instructions.render(
            SYSTEM_PROMPT_TEMPLATE,
            environment=environment,
            skills=skills,
            facts=facts,
        )

    @staticmethod
    def _build_messages(context: ConversationContext) -> list[Message]:
        """Provider messages from the recent window; the new user message is already in it."""
        return [Message(role=msg.role, content=msg.content) for msg in context.recent_messages]

    async def _run_tools(self, response: ProviderResponse) -> str | None:
        """Execute structured or text-recovered tool calls. None when there were none."""
        if response.tool_calls:
            log.info("Turn branch", branch="structured_tools", count=len(response.tool_calls))
            results = await self._handle_tool_calls(response.tool_calls)
            narration = response.text.strip()
            return "\n\n".join([narration, *results] if narration else results)

        if self._has_text_tool_markers(response.text):
            tool_call: ToolCall | None = self._extract_tool_call_from_text(response.text)
            if tool_call is not None:
                log.info("Turn branch", branch="text_fallback", tool=tool_call.name)
                results = await self._handle_tool_calls([tool_call])
                return "\n\n".join(results)
            log.info("Text tool markers found but no call recovered")

        return None

    async def process_message(self, text: str) -> str:
        """Run one user turn and return the final reply.

        Raises:
            ProviderError: when the provider call fails; the user message
                stays persisted and no assistant message is written
            ConfigurationError: when provider credentials are missing
        """
        await self.memory.save_message(StoredMessage(role="user", content=text))

        context = await self.memory.get_context(text)
        system_prompt = self._build_system_prompt(context)
        messages = self._build_messages(context)

        response = await self.provider.generate(
            model=self.config.model,
            messages=messages,
            system=system_prompt,
            tools=self.skills.to_tool_definitions(),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

        final_text = await self._run_tools(response)
        if final_text is None:
            log.info("Turn branch", branch="no_tools")
            final_text = response.text

        await self.memory.save_message(StoredMessage(role="assistant", content=final_text))
        return final_text

    async def close(self) -> None:
        """Release provider, skill and memory resources."""
        await self.provider.close()
        await self.skills.close()
        await self.memory.close()
