"""Home Assistant skills - read entity state and call services over the REST API."""

import json
from datetime import datetime
from typing import Any

import httpx

from benchmate.config import HomeAssistantConfig
from benchmate.logging import get_logger
from benchmate.skills.registry import Skill, SkillResult
from benchmate.skills.schema import Param, ParamKind

log = get_logger(__name__)


class HomeAssistantError(Exception):
    """Home Assistant request failed."""


class HomeAssistantClient:
    """Thin async client for the Home Assistant REST API."""

    def __init__(self, config: HomeAssistantConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or HomeAssistantConfig()
        self.base_url = self.config.resolve_url()
        self.client = client or httpx.AsyncClient(timeout=self.config.timeout)

    async def call(self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None) -> Any:
        token = self.config.resolve_token()
        if not token:
            raise HomeAssistantError("HA_TOKEN not configured in .env")

        url = f"{self.base_url}/api/{endpoint}"
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        log.debug("Calling Home Assistant", method=method, url=url)
        try:
            response = await self.client.request(method, url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise HomeAssistantError(
                f"Cannot reach Home Assistant at {url}: {e}. "
                "Check HA_URL in .env and ensure Home Assistant is running."
            ) from e

        if not response.is_success:
            raise HomeAssistantError(f"Home Assistant API error ({response.status_code}): {response.text}")

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise HomeAssistantError(f"Invalid response from Home Assistant: {e}") from e

    async def close(self) -> None:
        # Shared by every Home Assistant skill, so later calls are no-ops
        if not self.client.is_closed:
            await self.client.aclose()


def _format_timestamp(raw: str | None) -> str:
    if not raw:
        return "unknown"
    try:
        return datetime.fromisoformat(raw).astimezone().strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return raw


class _HomeAssistantSkill(Skill):
    def __init__(self, client: HomeAssistantClient):
        self.ha = client

    async def close(self) -> None:
        await self.ha.close()


class GetStateSkill(_HomeAssistantSkill):
    name = "ha_get_state"
    description = (
        "Get the current state of a Home Assistant entity. "
        "Use to check if lights are on/off, get sensor values, etc."
    )
    parameters = {
        "entity_id": Param(description="Entity ID (e.g., light.living_room, sensor.temperature)"),
    }

    async def execute(self, entity_id: str, **kwargs: Any) -> SkillResult:
        try:
            state = await self.ha.call(f"states/{entity_id}")
        except HomeAssistantError as e:
            return SkillResult.failure(str(e))

        output = (
            f"Entity: {state.get('entity_id', entity_id)}\n"
            f"State: {state.get('state')}\n"
            f"Attributes: {json.dumps(state.get('attributes', {}), indent=2)}\n"
            f"Last Updated: {_format_timestamp(state.get('last_updated'))}"
        )
        return SkillResult(success=True, output=output)


class CallServiceSkill(_HomeAssistantSkill):
    name = "ha_call_service"
    description = (
        "Call a Home Assistant service to control devices. "
        "Examples: turn on/off lights, set brightness, adjust thermostat."
    )
    parameters = {
        "domain": Param(description="Service domain (e.g., light, switch, climate)"),
        "service": Param(description="Service name (e.g., turn_on, turn_off, toggle)"),
        "entity_id": Param(description="Entity ID to control"),
        "data": Param(ParamKind.OBJECT, "Additional service data (e.g., brightness, color)", optional=True),
    }

    async def execute(
        self,
        domain: str,
        service: str,
        entity_id: str,
        data: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> SkillResult:
        service_data = {"entity_id": entity_id, **(data or {})}
        try:
            await self.ha.call(f"services/{domain}/{service}", method="POST", body=service_data)
        except HomeAssistantError as e:
            return SkillResult.failure(str(e))
        return SkillResult(success=True, output=f"Called {domain}.{service} on {entity_id}")


class ListEntitiesSkill(_HomeAssistantSkill):
    name = "ha_list_entities"
    description = (
        "List all entities in Home Assistant, optionally filtered by domain. "
        "Useful for discovering available devices."
    )
    parameters = {
        "domain": Param(
            description="Filter by domain (e.g., light, sensor, switch). Leave empty for all.",
            optional=True,
        ),
    }

    async def execute(self, domain: str | None = None, **kwargs: Any) -> SkillResult:
        try:
            states = await self.ha.call("states")
        except HomeAssistantError as e:
            return SkillResult.failure(str(e))

        entities = [s for s in states or [] if isinstance(s, dict)]
        if domain:
            entities = [s for s in entities if str(s.get("entity_id", "")).startswith(f"{domain}.")]

        if not entities:
            return SkillResult(
                success=True,
                output=f"No entities found in domain: {domain}" if domain else "No entities found",
            )

        by_domain: dict[str, list[dict[str, Any]]] = {}
        for entity in entities:
            entity_domain = str(entity.get("entity_id", "")).split(".")[0]
            by_domain.setdefault(entity_domain, []).append(entity)

        sections = []
        for entity_domain, items in by_domain.items():
            listing = "\n".join(f"  - {e.get('entity_id')} ({e.get('state')})" for e in items)
            sections.append(f"{entity_domain.upper()} ({len(items)}):\n{listing}")
        return SkillResult(success=True, output="\n\n".join(sections))


HOME_ASSISTANT_SKILLS: tuple[type[_HomeAssistantSkill], ...] = (
    GetStateSkill,
    CallServiceSkill,
    ListEntitiesSkill,
)
