#!/usr/bin/env python
"""
QuizCup - Tournament CLI with Observability
"""
import sys
from pathlib import Path
import argparse
import json
import random
import time
import uuid

from pydantic import ValidationError

from quizbracket.config import TournamentSettings, settings
from quizbracket.exceptions import ConfigurationError, QuizCupError
from quizbracket.models import ROUND_LABELS
from quizbracket.utils.logging import setup_logging
from quizbracket.utils.observability import initialize_observability, Logger, CORRELATION_ID

# Initialize observability
ENVIRONMENT = settings.observability.environment
initialize_observability(environment=ENVIRONMENT)

logger = Logger(__name__)


def _participants(size, teams):
    from quizbracket.tournament.simulator import make_players, make_teams
    return make_teams(size) if teams else make_players(size)


def _config(question_count):
    if not question_count:
        return settings
    try:
        tournament = TournamentSettings(**{**settings.tournament.model_dump(), "question_count": question_count})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid --question-count {question_count}: {e.errors()[0]['msg']}") from e
    return settings.model_copy(update={"tournament": tournament})


def cmd_bracket(args):
    """Seed a bracket and print its first round."""
    from quizbracket.tournament import build_bracket

    participants = _participants(args.size, args.teams)
    names = {p.id: p.display_name for p in participants}
    bracket = build_bracket(args.size, participants, rng=random.Random(args.seed))

    logger.log_event('bracket_command_completed', size=args.size, seed=args.seed)
    _print_ascii_bracket(bracket, names)


def cmd_simulate(args):
    """Play a full tournament with simulated answerers."""
    from quizbracket.tournament import (
        TournamentSession,
        draw_question_pool,
        generate_practice_questions,
        load_question_bank,
        pool_size,
    )
    from quizbracket.tournament.simulator import TournamentSimulator

    config = _config(args.question_count)
    question_count = config.tournament.question_count

    logger.log_event('simulate_command_started', size=args.size, teams=args.teams, seed=args.seed)

    bank_path = args.questions or config.questions.bank_path
    if bank_path:
        bank = load_question_bank(bank_path, default_subject=config.questions.default_subject)
    else:
        bank = generate_practice_questions(
            pool_size(args.size, question_count),
            subject=args.subject,
            grade_level=args.grade,
            seed=args.seed,
        )

    pool = draw_question_pool(
        bank,
        size=args.size,
        question_count=question_count,
        subject=args.subject,
        grade_level=args.grade,
        grade_tolerance=config.questions.grade_tolerance,
        fallback_subject=config.questions.default_subject,
        seed=args.seed,
    )

    participants = _participants(args.size, args.teams)
    session = TournamentSession.create(
        participants,
        pool,
        size=args.size,
        subject=args.subject,
        grade_level=args.grade,
        config=config,
        rng=random.Random(args.seed),
    )

    simulator = TournamentSimulator(
        accuracy=args.accuracy,
        timeout_rate=args.timeout_rate,
        seed=args.seed,
    )
    stats = simulator.run(session)

    names = {p.id: p.display_name for p in participants}
    _print_ascii_bracket(session.bracket, names)
    _print_standings(session.standings().to_dicts())
    print(f" Answers: {stats.answers} ({stats.accuracy*100:.0f}% correct) | Timeouts: {stats.timeouts}\n")

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(session.summary(), f, indent=2, ensure_ascii=False)
        print(f"[OK] Saved to: {out_path}")


def cmd_standings(args):
    """Print standings from a saved tournament summary."""
    from quizbracket.tournament.standings import standings_from_summary

    in_path = Path(args.input)
    if not in_path.exists():
        print(f"ERROR: File not found: {in_path}")
        return 1

    with open(in_path, "r", encoding="utf-8") as f:
        summary = json.load(f)

    standings = standings_from_summary(summary)
    if len(standings) == 0:
        print("No standings recorded")
        return

    champion = summary.get("champion") or {}
    print(f"\n{summary.get('name', 'Tournament')} - Champion: {champion.get('name', 'TBD')}")
    _print_standings(standings.to_dicts())


def _print_ascii_bracket(bracket, names):
    """Print ASCII tournament bracket to terminal."""

    print(f"\n{'':=^70}")
    print(f"{bracket.size}-PARTICIPANT BRACKET".center(70))
    if bracket.champion:
        print(f"Champion: {names.get(bracket.champion, bracket.champion)}".center(70))
    print(f"{'':=^70}\n")

    for round_name in bracket.round_names:
        print(f"--- {ROUND_LABELS[round_name]} ---")
        for match in bracket.rounds[round_name]:
            _print_match_line(match, names)
        print()


def _print_match_line(match, names):
    """Print a single match on one line."""
    p1 = names.get(match.participant1_id, "TBD")[:18] if match.participant1_id else "TBD"
    p2 = names.get(match.participant2_id, "TBD")[:18] if match.participant2_id else "TBD"

    p1_mark = "*" if match.winner_id and match.winner_id == match.participant1_id else " "
    p2_mark = "*" if match.winner_id and match.winner_id == match.participant2_id else " "

    if match.completed:
        score = f"{match.score_of(match.participant1_id):>5} - {match.score_of(match.participant2_id):<5}"
    else:
        score = f"{'':>5}   {'':<5}"

    print(f"  [{match.id:<7}] {p1_mark}{p1:<18} {score} {p2_mark}{p2:<18}")


def _print_standings(rows):
    """Print standings as a compact ASCII table."""
    print(f"| {'#':>2} | {'Participant':<18} | {'Points':>6} | {'Correct':>7} | {'Won':>3} | {'Furthest':<13} |")
    print(f"|{'-'*4}|{'-'*20}|{'-'*8}|{'-'*9}|{'-'*5}|{'-'*15}|")
    for i, row in enumerate(rows, start=1):
        name = row['name'][:17] + ("*" if row.get('is_champion') else "")
        furthest = row.get('furthest_round') or "-"
        print(f"| {i:>2} | {name:<18} | {row['points']:>6} | {row['correct_answers']:>7} | "
              f"{row['matches_won']:>3} | {furthest:<13} |")
    print(f" * = Champion\n")


def main():
    parser = argparse.ArgumentParser(description="QuizCup Tournament Engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    bracket = subparsers.add_parser("bracket", help="Seed and print a bracket")
    bracket.add_argument("--size", type=int, choices=[4, 8, 16], default=8)
    bracket.add_argument("--teams", action="store_true", help="Use teams instead of individuals")
    bracket.add_argument("--seed", type=int, help="Seed for reproducible seeding")
    bracket.set_defaults(func=cmd_bracket)

    simulate = subparsers.add_parser("simulate", help="Simulate a whole tournament")
    simulate.add_argument("--size", type=int, choices=[4, 8, 16], default=8)
    simulate.add_argument("--teams", action="store_true", help="Use teams instead of individuals")
    simulate.add_argument("--questions", help="Question bank (.json, .csv or .parquet)")
    simulate.add_argument("--subject", default=settings.questions.default_subject)
    simulate.add_argument("--grade", type=int, default=3)
    simulate.add_argument("--question-count", type=int, help="Questions per match")
    simulate.add_argument("--accuracy", type=float, default=0.7)
    simulate.add_argument("--timeout-rate", type=float, default=0.05)
    simulate.add_argument("--seed", type=int)
    simulate.add_argument("--output", "-o", help="Write the tournament summary as JSON")
    simulate.set_defaults(func=cmd_simulate)

    standings = subparsers.add_parser("standings", help="Show standings from a saved summary")
    standings.add_argument("--input", "-i", required=True)
    standings.set_defaults(func=cmd_standings)

    args = parser.parse_args()

    obs = settings.observability
    log_format = "json" if obs.environment == "production" else obs.log_format
    setup_logging(level=obs.log_level, log_format=log_format)

    # Initialize correlation ID for this run
    correlation_id = str(uuid.uuid4())
    CORRELATION_ID.set(correlation_id)

    start_time = time.time()

    try:
        code = args.func(args)
    except QuizCupError as e:
        logger.log_error("command_failed", error=str(e), error_type=type(e).__name__)
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        duration = time.time() - start_time
        logger.log_event('command_completed', duration_seconds=duration)

    if code:
        sys.exit(code)

if __name__ == "__main__":
    main()
