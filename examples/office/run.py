"""Small office simulation with three characters.

By default the example runs without any LLM calls: a scripted oracle answers
proposal requests and the local policy keeps idle characters busy:

    python examples/office/run.py --ticks 20

To let an LLM propose actions and consolidate memories (requires provider,
model, API key), pass `--llm`:

    python examples/office/run.py --llm --ticks 20

Environment variables expected when `--llm` is used:
- `LLM_PROVIDER` (e.g., `openai`)
- `LLM_MODEL` (e.g., `gpt-4o-mini`)
- Provider-specific API key (e.g., `OPENAI_API_KEY`)
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Dict, List

from officesim import (
    Character,
    InMemoryChatLog,
    LLMMemoryProcessor,
    LLMOracle,
    LocalPolicy,
    Position,
    ScriptedOracle,
    Simulation,
    SimulationLogger,
)
from officesim.config import Config


def build_characters() -> List[Character]:
    return [
        Character(
            id="dana",
            name="Dana Lee",
            job_role="Senior Coder",
            personality=["Analytical", "Introverted"],
            position=Position(x=0.2, y=0.3),
            needs={"energy": 4.0},
        ),
        Character(
            id="marco",
            name="Marco Rossi",
            job_role="Manager",
            personality=["Extroverted", "Organized"],
            position=Position(x=0.3, y=0.35),
            relationships={"dana": 75},
        ),
        Character(
            id="priya",
            name="Priya Shah",
            job_role="Intern",
            personality=["Curious", "Eager"],
            position=Position(x=0.8, y=0.7),
            needs={"hunger": 3.5},
        ),
    ]


def _proposal(action: str, reason: str, **params) -> str:
    return json.dumps({"action": action, "params": params, "reason": reason})


def build_scripted_oracle() -> ScriptedOracle:
    scripts: Dict[str, List[str]] = {
        "dana": [
            _proposal("work", "Sprint ends Friday", task="Refactor billing"),
            _proposal("work", "Keep the momentum", task="Refactor billing"),
            _proposal("rest", "Eyes are tired"),
        ],
        "marco": [
            _proposal("talk", "Check on the sprint", character_id="dana", message="How is billing going?"),
            _proposal("move", "Head to the meeting room", x=0.7, y=0.2),
        ],
        "priya": [
            _proposal("eat", "Skipped breakfast"),
            _proposal("talk", "Need help with onboarding", character="Marco Rossi", message="Got a minute?"),
        ],
    }
    return ScriptedOracle(scripts)


def print_tick(tick: int, sim: Simulation) -> None:
    for snapshot in sim.snapshots():
        task = f" on '{snapshot.current_task}' ({snapshot.task_progress:.0f}%)" if snapshot.current_task else ""
        print(f"    {snapshot.name:<12} {snapshot.state.value:<8} mood={snapshot.mood.value}{task}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Office simulation")
    parser.add_argument("--llm", action="store_true", help="Ask an LLM for proposals and memories")
    parser.add_argument("--ticks", type=int, default=Config.DEFAULT_TICK_COUNT, help="Number of ticks to simulate")
    parser.add_argument(
        "--tick-seconds",
        type=float,
        default=Config.TICK_DURATION_SECONDS,
        help="Simulated seconds per tick",
    )
    parser.add_argument("--quiet", action="store_true", help="Only print errors and the final summary")
    parser.add_argument("--realtime", action="store_true", help="Sleep for the tick duration between ticks")
    return parser.parse_args()


async def run_simulation(
    ticks: int,
    *,
    use_llm: bool = False,
    tick_seconds: float = 1.0,
    quiet: bool = False,
    realtime: bool = False,
) -> Dict:
    logger = SimulationLogger(quiet=True if quiet else None)
    chat = InMemoryChatLog()

    if use_llm:
        Config.validate()
        print(Config.display())
        oracle = LLMOracle()
        memory_processor = LLMMemoryProcessor()
    else:
        oracle = build_scripted_oracle()
        memory_processor = None

    sim = Simulation(
        build_characters(),
        oracle=oracle,
        memory_processor=memory_processor,
        chat=chat,
        policy=LocalPolicy(),
        logger=logger,
        tick_listeners=[] if quiet else [print_tick],
    )
    result = await sim.run(ticks, tick_seconds, realtime=realtime)
    result["chat"] = chat.messages
    result["characters"] = sim.characters
    return result


async def main(args: argparse.Namespace) -> None:
    try:
        result = await run_simulation(
            args.ticks,
            use_llm=args.llm,
            tick_seconds=args.tick_seconds,
            quiet=args.quiet,
            realtime=args.realtime,
        )
    except ValueError as exc:
        print(f"[warning] {exc}. Falling back to the scripted oracle.")
        result = await run_simulation(
            args.ticks,
            use_llm=False,
            tick_seconds=args.tick_seconds,
            quiet=args.quiet,
            realtime=args.realtime,
        )

    print(f"\nFinished after {result['ticks']} ticks.")
    print("Chat log:")
    for message in result["chat"]:
        print(f"  {message.sender_name}: {message.message}")
    for character in result["characters"].values():
        print(f"{character.name}: {character.tasks_completed} tasks completed, needs={character.needs}")


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(main(args))
