from pathlib import Path

import pytest
from rich.console import Console

from benchmate.cli import TerminalUI
from benchmate.main import handle_command
from benchmate.memory import StoredFact


def _ui(tmp_path: Path) -> TerminalUI:
    return TerminalUI(console=Console(record=True, width=100), history_file=tmp_path / "history")


def test_special_command_completion(tmp_path: Path):
    ui = _ui(tmp_path)
    assert ui._complete_special_command("/m", 0) == "/model"
    assert ui._complete_special_command("/m", 1) == "/models"
    assert ui._complete_special_command("/m", 2) is None
    assert ui._complete_special_command("hello", 0) is None


def test_handle_special_command_tokens(tmp_path: Path):
    ui = _ui(tmp_path)
    assert ui.handle_special_command("plain message") == "plain message"
    assert ui.handle_special_command("/model") == "MODEL_INFO"
    assert ui.handle_special_command("/model claude-sonnet-4") == "MODEL_SET:claude-sonnet-4"
    assert ui.handle_special_command("/models") == "MODELS"
    assert ui.handle_special_command("/facts") == "FACTS"
    assert ui.handle_special_command("/remember LED on GPIO2") == "REMEMBER:LED on GPIO2"
    assert ui.handle_special_command("/quit") == "EXIT"
    assert ui.handle_special_command("/exit") == "EXIT"


def test_handle_special_command_reports_problems(tmp_path: Path):
    ui = _ui(tmp_path)
    assert ui.handle_special_command("/remember") is None
    assert ui.handle_special_command("/bogus") is None
    text = ui.console.export_text()
    assert "Usage: /remember <text>" in text
    assert "Unknown command: /bogus" in text


def test_print_facts_and_models(tmp_path: Path):
    ui = _ui(tmp_path)
    ui.print_facts([])
    ui.print_facts([StoredFact(id=1, content="[bold]literal[/bold]", timestamp=0)])
    ui.print_model_list([{"id": "big-pickle", "name": "Big Pickle", "category": "Free", "free": True}], "big-pickle")
    text = ui.console.export_text()
    assert "(No facts stored yet)" in text
    assert "- [bold]literal[/bold]" in text
    assert "big-pickle *" in text
    assert "Big Pickle (free)" in text


class FakeMemory:
    def __init__(self):
        self.facts: list[str] = []

    async def save_fact(self, content: str) -> bool:
        if content in self.facts:
            return False
        self.facts.append(content)
        return True

    async def get_all_facts(self, limit: int = 50) -> list[StoredFact]:
        return [StoredFact(id=i, content=c, timestamp=0) for i, c in enumerate(self.facts)]


class FakeAgent:
    def __init__(self):
        self.model = "big-pickle"
        self.memory = FakeMemory()

    def set_model(self, model: str) -> None:
        self.model = model


@pytest.mark.asyncio
async def test_handle_command_dispatch(tmp_path: Path):
    ui = _ui(tmp_path)
    agent = FakeAgent()

    assert await handle_command(ui, agent, "MODEL_SET:claude-haiku-4-5") is True
    assert agent.model == "claude-haiku-4-5"
    assert await handle_command(ui, agent, "REMEMBER:LED on GPIO2") is True
    assert await handle_command(ui, agent, "REMEMBER:LED on GPIO2") is True
    assert agent.memory.facts == ["LED on GPIO2"]
    assert await handle_command(ui, agent, "EXIT") is False

    text = ui.console.export_text()
    assert "Switched to claude-haiku-4-5" in text
    assert "Fact stored" in text
    assert "Fact already known" in text
