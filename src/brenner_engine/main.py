"""
Command-line entry point for offline evaluation of exported session data.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from brenner_engine.config import get_settings
from brenner_engine.evaluation import validate_test
from brenner_engine.records import validate_test_record
from brenner_engine.records.validator import format_validation_errors
from brenner_engine.replay import compute_content_hash, validate_session_record
from brenner_engine.scoring import SessionData, score_session

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _emit(payload: BaseModel | dict) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", exclude_none=True)
    print(json.dumps(payload, indent=2))


def cmd_validate_test(args: argparse.Namespace) -> int:
    parsed = validate_test_record(_load_json(args.file))
    if not parsed.valid or parsed.record is None:
        _emit({"valid": False, "issues": parsed.errors})
        return 1
    report = validate_test(parsed.record)
    _emit(report)
    return 0 if report.valid else 1


def cmd_score_session(args: argparse.Namespace) -> int:
    try:
        session = SessionData.model_validate(_load_json(args.file))
    except ValidationError as exc:
        _emit({"valid": False, "errors": format_validation_errors(exc)})
        return 1
    score = score_session(session)
    logger.info(f"Session {session.session_id}: {score.total_score}/{score.max_score} ({score.grade})")
    _emit(score)
    return 0


def cmd_validate_record(args: argparse.Namespace) -> int:
    result = validate_session_record(_load_json(args.file))
    _emit({"valid": result.valid, "errors": result.errors})
    return 0 if result.valid else 1


def cmd_hash(args: argparse.Namespace) -> int:
    content = Path(args.file).read_text(encoding="utf-8")
    print(asyncio.run(compute_content_hash(content)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="brenner-engine")
    subcommands = parser.add_subparsers(dest="command", required=True)

    validate = subcommands.add_parser("validate-test", help="Validate a test record JSON file")
    validate.add_argument("file")
    validate.set_defaults(handler=cmd_validate_test)

    score = subcommands.add_parser("score-session", help="Score session data across the seven dimensions")
    score.add_argument("file")
    score.set_defaults(handler=cmd_score_session)

    record = subcommands.add_parser("validate-record", help="Validate a session record JSON file")
    record.add_argument("file")
    record.set_defaults(handler=cmd_validate_record)

    digest = subcommands.add_parser("hash", help="Print the SHA-256 content hash of a file")
    digest.add_argument("file")
    digest.set_defaults(handler=cmd_hash)

    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        sys.exit(run(sys.argv[1:]))
    except (OSError, json.JSONDecodeError) as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
