"""
AI Battle Debate - watch two AI agents fight it out with arguments
Each turn a hidden judge scores the argument; strong logic deals damage.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

# Load environment variables before the config reads them
load_dotenv()

from battle_core import TurnEngine, MatchSnapshot
from battle_core.config import AGENT_NAMES, TURN_DELAY_SECONDS

COLORS = {
    "red": "\033[91m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "blue": "\033[94m",
    "magenta": "\033[95m",
    "cyan": "\033[96m",
    "reset": "\033[0m",
}

SIDE_COLORS = {"PRO": "blue", "CON": "red"}


def print_colored(text: str, color: str, end: str = "\n"):
    """Print text in a terminal colour"""
    print(f"{COLORS.get(color, '')}{text}{COLORS['reset']}", end=end)


def print_header():
    """Print the banner"""
    print("\n" + "=" * 60)
    print_colored("   AI BATTLE DEBATE - logic-based damage arena", "cyan")
    print("=" * 60 + "\n")


def hp_bar(hp: int, width: int = 20) -> str:
    filled = round(width * max(0, hp) / 100)
    return "█" * filled + "░" * (width - filled)


class TerminalView:
    """Prints each new transcript entry as the engine reports it"""

    def __init__(self):
        self._printed = 0

    def __call__(self, snapshot: MatchSnapshot) -> None:
        names = AGENT_NAMES[snapshot.language]
        agents = {agent.id: agent for agent in snapshot.agents}

        for turn in snapshot.transcript[self._printed:]:
            agent = agents[turn.agent_id]
            print_colored(f"{names[agent.side]}: ", SIDE_COLORS[agent.side], end="")
            print(turn.message)
            line = f"   Logic {turn.logic_score:g} | {turn.judge_comment}"
            if turn.damage_dealt:
                line += f" | {turn.damage_dealt} dmg"
            if turn.item_used != "NONE":
                line += f" | {turn.item_used}"
            print_colored(line, "yellow")
            for each in snapshot.agents:
                print(f"   {names[each.side]:<14} {hp_bar(each.hp)} {each.hp:>3}")
            print()
        self._printed = len(snapshot.transcript)


async def run_battle(args: argparse.Namespace) -> None:
    """Run one match in the terminal"""
    engine = TurnEngine(
        language=args.lang,
        turn_delay=args.delay,
        max_turns=args.max_turns,
    )
    print_header()

    topic = args.topic
    if topic is None:
        print_colored("Enter a topic (empty for a random one)", "yellow")
        topic = input("> ").strip()
    if not topic:
        topic = engine.suggest_topic()

    print(f"\nTopic: \"{topic}\"\n")
    print_colored("PRO 🔵 vs CON 🔴", "magenta")
    print("-" * 60)
    print("Ctrl+C to stop\n")

    engine.subscribe(TerminalView())
    engine.start(topic)
    task = engine.launch()

    try:
        await task
    except asyncio.CancelledError:
        pass

    snapshot = engine.snapshot()
    print("\n" + "=" * 60)
    if snapshot.winner:
        name = AGENT_NAMES[snapshot.language][snapshot.winner]
        print_colored(f"🏆 {name} WINS! 🏆", "cyan")
    else:
        print_colored("Battle stopped.", "cyan")
    print(f"Turns: {len(snapshot.transcript)}")
    print("=" * 60 + "\n")

    summary = snapshot.summary or await engine.generate_summary()
    if summary:
        print(summary)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AI battle debate in the terminal")
    parser.add_argument("--lang", choices=["KO", "EN"], default="EN")
    parser.add_argument("--topic", default=None)
    parser.add_argument("--max-turns", type=int, default=None)
    parser.add_argument("--delay", type=float, default=TURN_DELAY_SECONDS)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.WARNING)
    args = parse_args(argv)
    try:
        asyncio.run(run_battle(args))
    except KeyboardInterrupt:
        print("")
        print_colored("Battle interrupted.", "yellow")
    return 0


if __name__ == "__main__":
    sys.exit(main())
