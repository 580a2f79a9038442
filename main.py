#!/usr/bin/env python3
"""Main entry point for the Agora philosopher arena."""

import asyncio
import logging
import sys
from pathlib import Path

from agora.engine.agent import AgentLoop
from agora.engine.collaborators import InMemoryChannel, InMemoryLedger
from agora.engine.config.settings import AppConfig, get_default_config
from agora.engine.judges import Chronicler
from agora.engine.models import ModelManager, ModelTextGenerator
from agora.engine.registry import AgentDirectory, AgentInfo
from agora.engine.beliefs import BeliefSystem
from agora.engine.storage import BeliefStore, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_CYCLES = 20


def setup_logging(level: str = "INFO"):
    """Configure logging for the arena."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def print_usage():
    """Print usage information."""

    print("Agora Philosopher Arena")
    print("=" * 40)
    print("Usage:")
    print("   python main.py --arena [--cycles N] [--config path.json]")
    print("   python main.py --help")
    print()
    print("Without --config, agora_config.json is used (created from a template if missing).")
    print("The arena runs every configured agent and the Chronicler against an")
    print("in-process ledger and message channel.")
    print()


def _arg_value(flag: str) -> str | None:
    if flag in sys.argv:
        index = sys.argv.index(flag)
        if index + 1 < len(sys.argv):
            return sys.argv[index + 1]
    return None


def build_arena(config: AppConfig) -> tuple[list[AgentLoop], Chronicler]:
    """Wire agent loops and the judge over shared in-memory collaborators."""
    workspace = Path(config.system.workspace_dir)
    beliefs = BeliefStore(workspace / "agents")
    sessions = SessionStore(workspace / "debates")
    ledger = InMemoryLedger(config.system.ledger_belief_ids)
    channel = InMemoryChannel()

    model_manager = ModelManager(config.system)
    for model_id, model_config in config.models.items():
        model_manager.register_model(model_id, model_config)

    directory = AgentDirectory(
        AgentInfo(
            agent_id=agent.agent_id,
            name=agent.name,
            belief=BeliefSystem(agent.belief_id).label,
            belief_id=agent.belief_id,
        )
        for agent in config.agents
    )

    loops = [
        AgentLoop(
            agent,
            config,
            ModelTextGenerator(model_manager, agent.model, system_prompt=agent.persona or None),
            beliefs,
            sessions,
            ledger,
            channel,
            directory,
        )
        for agent in config.agents
    ]
    chronicler = Chronicler(
        ModelTextGenerator(model_manager, config.system.judge_model),
        sessions,
        channel,
        ledger,
        channel_id=config.system.arena_channel,
    )
    return loops, chronicler


async def run_arena(config: AppConfig, cycles: int = DEFAULT_CYCLES) -> None:
    """Give every agent, then the judge, one cycle per round."""
    loops, chronicler = build_arena(config)
    logger.info(f"Arena started with {len(loops)} agents for {cycles} rounds")

    for round_number in range(1, cycles + 1):
        logger.info(f"=== Round {round_number} ===")
        for loop in loops:
            try:
                await loop.run_cycle()
            except Exception:
                logger.exception(f"Decision cycle failed for {loop.name}")
        await chronicler.run_cycle()
        await asyncio.sleep(config.system.loop_interval_seconds)


def main():
    """Main entry point."""
    if "--help" in sys.argv or "-h" in sys.argv or "--arena" not in sys.argv:
        print_usage()
        return

    config_path = _arg_value("--config")
    config = AppConfig.load_from_file(Path(config_path)) if config_path else get_default_config()
    setup_logging(config.system.log_level)

    cycles = int(_arg_value("--cycles") or DEFAULT_CYCLES)
    asyncio.run(run_arena(config, cycles))


if __name__ == "__main__":
    main()
