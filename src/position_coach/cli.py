"""Command-line front end for position coaching.

Usage:
    position-coach explain --fen FEN --move MOVE [--best UCI]
        --cp-loss N --eval-before N --eval-after N
    position-coach score FILE [--cp-threshold N] [--rating N]
    position-coach end-position --fen FEN [--perspective white|black] [--eval N]

Every subcommand prints JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

import chess

from position_coach.config import get_settings
from position_coach.explainer import describe_end_position, explain_moves
from position_coach.scoring import Sample, compute_report_stats


def _explain(args: argparse.Namespace) -> dict:
    explanation = explain_moves(
        args.fen, args.move, args.best, args.cp_loss, args.eval_before, args.eval_after,
    )
    return explanation.to_dict()


def _load_samples(path: str) -> list[Sample]:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of samples")
    return [
        Sample(
            cp_loss=float(item["cp_loss"]),
            reach_count=int(item["reach_count"]),
            tags=tuple(item.get("tags", ())),
        )
        for item in raw
    ]


def _score(args: argparse.Namespace) -> dict:
    samples = _load_samples(args.file)
    threshold = args.cp_threshold if args.cp_threshold is not None else get_settings().cp_threshold
    stats = compute_report_stats(samples, threshold, actual_rating=args.rating)
    return asdict(stats)


def _end_position(args: argparse.Namespace) -> dict:
    perspective = chess.WHITE if args.perspective == "white" else chess.BLACK
    return asdict(describe_end_position(args.fen, perspective, args.eval))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="position-coach",
        description="Deterministic chess position analysis and coaching explanations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    explain = sub.add_parser("explain", help="Explain a played move against the best move")
    explain.add_argument("--fen", required=True, help="Position FEN before the move (quote it)")
    explain.add_argument("--move", required=True, help="Played move in SAN or UCI notation")
    explain.add_argument("--best", default=None, help="Best move in UCI notation")
    explain.add_argument("--cp-loss", type=float, required=True, help="Centipawn loss of the played move")
    explain.add_argument("--eval-before", type=float, required=True, help="Evaluation before the move (cp)")
    explain.add_argument("--eval-after", type=float, required=True, help="Evaluation after the move (cp)")
    explain.set_defaults(func=_explain)

    score = sub.add_parser("score", help="Score a batch of evaluation-loss samples")
    score.add_argument("file", help="JSON list of {cp_loss, reach_count, tags?} objects")
    score.add_argument(
        "--cp-threshold", type=float, default=None,
        help="Severe-leak threshold in cp (default: from settings)",
    )
    score.add_argument("--rating", type=float, default=None, help="Player's known rating")
    score.set_defaults(func=_score)

    end = sub.add_parser("end-position", help="Describe the position at the end of a line")
    end.add_argument("--fen", required=True, help="Position FEN (quote it)")
    end.add_argument("--perspective", choices=["white", "black"], default="white")
    end.add_argument("--eval", type=float, default=None, help="Evaluation for the side to move (cp)")
    end.set_defaults(func=_end_position)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        result = args.func(args)
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    json.dump(result, sys.stdout, indent=settings.json_indent, ensure_ascii=False)
    print()


if __name__ == "__main__":
    main()
