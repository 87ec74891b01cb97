from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from typing import Any, Dict, List

from loguru import logger

from boardroom.agents import LLMResponseGenerator
from boardroom.errors import GenerationFailed
from boardroom.evaluator import LLMTextEvaluator
from boardroom.gates import SpecificityGate
from boardroom.orchestrator import ConversationOrchestrator
from boardroom.personas import default_registry
from boardroom.phases import default_plan
from boardroom.session import InMemorySessionStore, SessionRunner
from boardroom.settings import Settings


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Hold a board meeting (or quick audit) with your personal board of directors")
    p.add_argument("--mode", type=str, choices=["board", "audit"], default="board", help="Board meeting or specificity-gated quick audit")
    p.add_argument("--quarter", type=str, default=None, help="Quarter under review, e.g. 'Q3 2026' (default: current quarter)")
    p.add_argument("--portfolio-json", type=str, help="Path to JSON list of problems used as meeting context")
    p.add_argument("--seed", type=int, default=None, help="Seed for the interjection random source")
    p.add_argument("--log-level", type=str, default=None, help="Log level (default: BOARD_LOG_LEVEL or INFO)")
    return p.parse_args()


def load_json_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def build_runner(settings: Settings, seed: int | None) -> SessionRunner:
    registry = default_registry()
    plan = default_plan(registry)
    orchestrator = ConversationOrchestrator(
        registry,
        plan,
        LLMResponseGenerator(max_tokens=settings.generation_max_tokens, model=settings.model),
        rng=random.Random(seed),
        interjection_probability=settings.interjection_probability,
        lead_turns_to_advance=settings.lead_turns_to_advance,
        timeout=settings.call_timeout,
    )
    gate = SpecificityGate(
        LLMTextEvaluator(max_tokens=settings.evaluation_max_tokens, model=settings.model),
        timeout=settings.call_timeout,
        default_max_attempts=settings.max_gate_attempts,
    )
    return SessionRunner(InMemorySessionStore(), orchestrator, gate)


def read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


async def run_board(runner: SessionRunner, quarter: str | None, portfolio: List[Dict[str, Any]]) -> int:
    record, opening = runner.start_board_meeting(quarter)
    print(f"\n[{record.quarter}] {opening.persona.name} ({opening.persona.title}): {opening.message}\n")
    while True:
        text = read_line("you> ")
        if text is None or text.strip().lower() in ("quit", "exit"):
            return 0
        if not text.strip():
            continue
        try:
            reply = await runner.send_message(record.session_id, text, portfolio)
        except GenerationFailed as e:
            logger.error(f"board_cli_error | {e}")
            print("\nThe board could not respond. Try again later.")
            return 1
        persona = reply.response.persona
        phase = runner.orchestrator.plan[reply.current_phase]
        print(f"\n{persona.name}: {reply.response.utterance}\n  [phase {phase.index}: {phase.name}]\n")
        if reply.is_complete:
            print("The board meeting is complete.")
            return 0


async def run_audit(runner: SessionRunner) -> int:
    record, question = runner.start_audit()
    print(f"\n{question.question}\n  {question.subtext}\n")
    while True:
        answer = read_line("you> ")
        if answer is None or answer.strip().lower() in ("quit", "exit"):
            return 0
        if not answer:
            continue
        reply = await runner.submit_answer(record.session_id, answer)
        if not reply.gate.passed:
            print(f"\n{reply.gate.challenge_message}\n")
            continue
        if reply.is_complete:
            print("\nAudit complete.")
            return 0
        nxt = reply.next_question
        print(f"\n{nxt.question}\n  {nxt.subtext}\n")


async def main() -> int:
    args = parse_args()
    settings = Settings.from_env()

    logger.remove()
    logger.add(sys.stderr, level=(args.log_level or settings.log_level).upper())

    runner = build_runner(settings, args.seed)
    if args.mode == "audit":
        return await run_audit(runner)
    portfolio = load_json_file(args.portfolio_json) if args.portfolio_json else []
    return await run_board(runner, args.quarter, portfolio)


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
