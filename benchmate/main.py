"""Main entry point for Benchmate."""

import asyncio
import sys
from pathlib import Path

import typer
from dotenv import load_dotenv

from benchmate.agent import Agent, AgentConfig
from benchmate.cli import TerminalUI
from benchmate.config import Config, get_config, set_config
from benchmate.exceptions import BenchmateError
from benchmate.llm import ZEN_MODELS, create_provider, find_model
from benchmate.logging import configure_logging, log
from benchmate.memory import Memory
from benchmate.skills import create_default_registry


def build_agent(cfg: Config) -> Agent:
    """Wire provider, skills and memory from configuration."""
    provider = create_provider(
        api_key=cfg.provider.api_key or None,
        base_url=cfg.provider.base_url,
        api_key_env=cfg.provider.api_key_env,
        timeout=cfg.provider.timeout,
    )
    memory = Memory(
        cfg.memory.path,
        recent_window=cfg.memory.recent_window,
        fact_limit=cfg.memory.fact_limit,
    )
    return Agent(
        provider=provider,
        skills=create_default_registry(cfg),
        memory=memory,
        config=AgentConfig.from_model_config(cfg.model),
        environment=cfg.agent.environment,
    )


async def handle_command(ui: TerminalUI, agent: Agent, result: str) -> bool:
    """Run a command token from the UI. Returns False when the loop should stop."""
    if result == "EXIT":
        log.info("User requested exit")
        return False
    elif result == "MODEL_INFO":
        entry = find_model(agent.model)
        label = f"{agent.model} ({entry['name']})" if entry else agent.model
        ui.print_success(f"Active model: {label}")
    elif result.startswith("MODEL_SET:"):
        model_id = result.split(":", 1)[1].strip()
        agent.set_model(model_id)
        if find_model(model_id) is None:
            ui.print_success(f"Switched to {model_id} (not in the known model list)")
        else:
            ui.print_success(f"Switched to {model_id}")
    elif result == "MODELS":
        ui.print_model_list(ZEN_MODELS, active_model=agent.model)
    elif result == "FACTS":
        ui.print_facts(await agent.memory.get_all_facts())
    elif result.startswith("REMEMBER:"):
        fact = result.split(":", 1)[1].strip()
        if await agent.memory.save_fact(fact):
            ui.print_success("Fact stored")
        else:
            ui.print_success("Fact already known")
    return True


async def run_interactive(ui: TerminalUI | None = None) -> None:
    """Run the interactive agent loop."""
    cfg = get_config()
    ui = ui or TerminalUI()
    agent = build_agent(cfg)
    ui.print_welcome(agent.model, len(agent.skills.list_skills()))

    try:
        while True:
            try:
                user_input = await asyncio.to_thread(ui.prompt)
            except (EOFError, KeyboardInterrupt):
                break

            result = ui.handle_special_command(user_input)
            if not result:
                continue
            if user_input.strip().startswith("/"):
                if not await handle_command(ui, agent, result):
                    break
                continue

            try:
                with ui.thinking():
                    reply = await agent.process_message(result)
            except BenchmateError as e:
                log.error("Turn failed", error=str(e))
                ui.print_error(str(e))
                continue
            ui.print_message(reply)
    finally:
        await agent.close()


def main(
    config: str = "",
    model: str = "",
    verbose: bool = False,
) -> None:
    """Start Benchmate interactive session."""
    load_dotenv()

    if config:
        try:
            cfg = Config.from_yaml(Path(config))
        except Exception as e:
            log.error("Failed to load config", path=config, error=str(e))
            cfg = Config.load()
    else:
        cfg = Config.load()

    # Apply CLI overrides
    if model:
        cfg.model.model = model
    if verbose:
        cfg.logging.level = "DEBUG"

    set_config(cfg)
    configure_logging(cfg)

    try:
        asyncio.run(run_interactive())
    except KeyboardInterrupt:
        log.info("Shutting down...")
        sys.exit(0)


def version() -> None:
    """Show version information."""
    from benchmate import __version__
    print(f"Benchmate v{__version__}")


app = typer.Typer(help="Benchmate - terse terminal assistant for electronics and home automation")


@app.command()
def run(
    config: str = typer.Option("", "-c", "--config", help="Path to config file"),
    model: str = typer.Option("", "-m", "--model", help="Override model"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
) -> None:
    """Start an interactive session."""
    main(config, model, verbose)


@app.command("version")
def version_command() -> None:
    """Show version information."""
    version()


if __name__ == "__main__":
    app()
