#!/usr/bin/env python3
"""Terminal quiz over the events stored by fetch_events.py."""

import argparse
import sys

from histoglobe.config import load_config
from histoglobe.quiz.scoring import suggest_titles
from histoglobe.quiz.session import QuizSession
from histoglobe.storage.database import Database


def _hint_line(question, level: int) -> str:
    hints = question.hints
    if level == 1:
        return f"Category: {hints.category}"
    if level == 2:
        if hints.year is None:
            return "Year: unknown"
        return f"Year: {abs(hints.year)} av. J.-C." if hints.year < 0 else f"Year: {hints.year}"
    return "Actions: " + (", ".join(hints.actions) or "none")


def play(session: QuizSession, rounds: int):
    for _ in range(rounds):
        question = session.next_question()
        print("\n" + "-" * 60)
        print(question.masked_description)
        if question.difficulty == "easy":
            for i, option in enumerate(question.options, 1):
                print(f"  {i}. {option}")

        while True:
            raw = input("\nAnswer (h = hint, ? text = suggestions): ").strip()
            if raw == "h":
                level = session.reveal_hint()
                print("  " + _hint_line(question, level))
                continue
            if raw.startswith("?"):
                for title in suggest_titles(raw[1:].strip(), session.events):
                    print(f"  - {title}")
                continue
            break

        if question.difficulty == "easy" and raw.isdigit() and 1 <= int(raw) <= len(question.options):
            raw = question.options[int(raw) - 1]

        result = session.submit(raw)
        if result.correct:
            print(f"Correct! +{result.points}")
        else:
            print(f"Wrong. It was: {question.correct_title}")

    print(f"\nScore: {session.total_score} over {session.questions_played} questions")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Guess the historical event.")
    parser.add_argument("--rounds", type=int, default=5)
    parser.add_argument("--hard", action="store_true", help="free-text answers, no options shown")
    parser.add_argument("--category", default=None)
    args = parser.parse_args(argv)

    cfg = load_config()
    difficulty = "hard" if args.hard else cfg["quiz_difficulty"]

    with Database(cfg["db_path"]) as db:
        events = db.query_events(category=args.category, limit=30)
        if len(events) < 2:
            print("Not enough stored events. Run fetch_events.py first.")
            sys.exit(1)
        session = QuizSession(events, difficulty=difficulty, store=db, answer_threshold=cfg["answer_threshold"])
        play(session, args.rounds)


if __name__ == "__main__":
    main()
