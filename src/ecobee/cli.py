"""
Command-line interface for ecobee

Run the sustainability quiz in a terminal, inspect the question set, try the
product classifier, or score a set of answers locally.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

from .classifier import classify_product
from .config import Config
from .engine import QuizEngine
from .quiz.schema import (
    QUIZ_QUESTIONS,
    NavigationError,
    QuestionType,
    QuizQuestion,
    QuizResponse,
    UnknownQuestionError,
    ValidationError,
    get_question,
    get_quiz_dict,
    normalize_answer,
    validate_response,
)
from .scoring.fallback import FallbackScorer
from .scoring.result import BOUNDARY_NAMES, Boundary, ScoringResult


def format_question(question: QuizQuestion, number: int, total: int) -> str:
    """Format a question with its options for terminal output."""
    lines = [f"[{number}/{total}] {question.text}"]
    if question.options:
        for i, option in enumerate(question.options, 1):
            lines.append(f"  {i}. {option.label} ({option.value})")
    if question.type == QuestionType.SCALE:
        lines.append(f"  Enter a number from 1 to {question.scale_max or 5}")
    if question.type == QuestionType.MULTIPLE:
        lines.append("  Choose one or more, separated by commas")
    if question.placeholder:
        lines.append(f"  {question.placeholder}")
    return "\n".join(lines)


def _option_token(question: QuizQuestion, raw: str) -> str:
    """Accept either an option value or its 1-based number."""
    raw = raw.strip()
    if raw.isdigit() and 1 <= int(raw) <= len(question.options):
        return question.options[int(raw) - 1].value
    return raw


def parse_answer(question: QuizQuestion, raw: str) -> Any:
    """Turn typed text into a candidate answer for a question (unvalidated)."""
    if question.type == QuestionType.SINGLE:
        return _option_token(question, raw)
    if question.type == QuestionType.MULTIPLE:
        return tuple(_option_token(question, part) for part in raw.split(",") if part.strip())
    if question.type == QuestionType.SCALE:
        try:
            return int(raw.strip())
        except ValueError:
            return raw
    return raw


def format_result(result: ScoringResult) -> str:
    """Format a scoring result for terminal output."""
    lines = [
        "",
        "=" * 60,
        "YOUR ECO SCORE",
        "=" * 60,
        f"Impact score: {result.composite:.0f}/100   Grade: {result.grade}",
    ]
    if result.is_fallback:
        lines.append("(estimated locally, scoring service unavailable)")

    lines.append("\nPlanetary boundaries (lower is better):")
    for boundary in Boundary:
        value = result.per_boundary_averages[boundary.value]
        bar = "#" * int(value // 5)
        lines.append(f"  {BOUNDARY_NAMES[boundary]:<28} {value:5.1f}  {bar}")

    if result.recommendations:
        lines.append("\nRecommendations:")
        for rec in result.recommendations:
            lines.append(f"  - {rec.action}: {rec.impact}")
    lines.append("")
    return "\n".join(lines)


async def run_quiz(
    engine: QuizEngine,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> ScoringResult:
    """
    Drive an engine interactively until the quiz completes.

    Typed commands:
        back        go to the previous question
        scan PATH   send an image to the recognition service (not on text questions)
    """
    total = len(engine.questions)
    while True:
        question = engine.current_question
        write(format_question(question, engine.index + 1, total))
        if engine.pending_answer is not None:
            write(f"  (current answer: {engine.pending_answer})")

        raw = read("> ").strip()

        if raw.lower() == "back":
            try:
                engine.retreat()
            except NavigationError as e:
                write(f"  ! {e}")
            continue

        parts = raw.split(maxsplit=1)
        if parts and parts[0].lower() == "scan" and question.type != QuestionType.TEXT:
            try:
                image = Path(parts[1]).read_bytes() if len(parts) > 1 else b""
            except OSError:
                write("  ! Could not read image")
                continue
            outcome = await engine.scan(image)
            if outcome is None or outcome.item is None:
                write("  ! Nothing recognised")
            else:
                write(f"  Scanned: {outcome.item.product_name} ({outcome.item.category})")
                if outcome.applied:
                    write(f"  Suggested answer: {outcome.suggestion.answer}")
            continue

        if raw:
            engine.record_answer(parse_answer(question, raw))
        elif engine.pending_answer is None:
            engine.record_answer(raw)

        try:
            result = await engine.advance()
        except ValidationError as e:
            write(f"  ! {e.message}")
            continue

        if result is not None:
            return result


def parse_answer_args(pairs: List[str], questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS) -> List[QuizResponse]:
    """
    Parse ID=VALUE arguments into validated responses.

    Raises:
        ValueError: Malformed pair or unacceptable answer
        UnknownQuestionError: Unknown question id
    """
    responses = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected ID=VALUE, got {pair!r}")
        question_id, raw = pair.split("=", 1)
        question = get_question(question_id.strip(), questions)
        answer = parse_answer(question, raw)
        error = validate_response(question, answer)
        if error:
            raise ValueError(f"{question.id}: {error}")
        responses[question.id] = QuizResponse(question.id, normalize_answer(question, answer))

    order = [q.id for q in questions]
    return sorted(responses.values(), key=lambda r: order.index(r.question_id))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="ecobee",
        description="Daily sustainability quiz with planetary-boundary scoring",
        epilog="Example: ecobee score --answer food_today=plant-based --answer transport_today=car",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Questions command
    questions_parser = subparsers.add_parser("questions", help="List the quiz questions")
    questions_parser.add_argument(
        "--json",
        action="store_true",
        help="Output questions as JSON"
    )

    # Quiz command
    quiz_parser = subparsers.add_parser("quiz", help="Take the quiz interactively")
    quiz_parser.add_argument(
        "--offline",
        action="store_true",
        help="Use mock services (no network)"
    )
    quiz_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON"
    )

    # Classify command
    classify_parser = subparsers.add_parser("classify", help="Suggest a food answer for a product")
    classify_parser.add_argument("name", help="Product name")
    classify_parser.add_argument(
        "--category",
        default="",
        help="Detected product category"
    )

    # Score command
    score_parser = subparsers.add_parser("score", help="Score answers locally with the fallback scorer")
    score_parser.add_argument(
        "--answer", "-a",
        action="append",
        default=[],
        metavar="ID=VALUE",
        help="Answer for a question (repeatable; comma-separate multiple choices)"
    )
    score_parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "questions":
        if args.json:
            print(json.dumps(get_quiz_dict(), indent=2))
        else:
            total = len(QUIZ_QUESTIONS)
            for number, question in enumerate(QUIZ_QUESTIONS, 1):
                print(format_question(question, number, total))
                print()
        return 0

    if args.command == "classify":
        suggestion = classify_product(args.name, args.category)
        if suggestion is None:
            print("No suggestion")
        else:
            print(f"{suggestion.category.value}: {suggestion.answer}")
        return 0

    if args.command == "score":
        try:
            responses = parse_answer_args(args.answer)
        except (ValueError, UnknownQuestionError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        result = FallbackScorer().score(responses)
        print(result.to_json() if args.json else format_result(result))
        return 0

    if args.command == "quiz":
        cfg = Config.offline_mode() if args.offline else Config()
        engine = QuizEngine.from_config(cfg)

        async def run():
            try:
                return await run_quiz(engine)
            finally:
                await engine.aclose()

        try:
            result = asyncio.run(run())
        except (KeyboardInterrupt, EOFError):
            print("\nQuiz abandoned", file=sys.stderr)
            return 130
        print(result.to_json() if args.json else format_result(result))
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
