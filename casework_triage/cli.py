"""Command-line tool for trying triage against a saved context.

Reads a TriageContext (or a list of them) as JSON and prints the
resulting suggestions. Intended for test emails and debugging prompts.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from casework_triage.config import DEFAULT_MODEL, EngineConfig
from casework_triage.engine import TriageEngine
from casework_triage.schemas import TriageContext, TriageResult

MAX_PREVIEW_LEN = 200


def _truncate(text: str, max_len: int = MAX_PREVIEW_LEN) -> str:
    """Truncate text with ellipsis if too long."""
    text = text.replace("\n", " ").strip()
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def _print_diagnostics(result: TriageResult, full_prompt: bool) -> None:
    """Print the diagnostic record for one invocation."""
    diag = result.diagnostics
    print("=" * 60)
    print("DIAGNOSTICS")
    print("=" * 60)
    print(f"Path:      {diag.path.value.upper()}")
    print(f"Model:     {diag.model}")
    print(f"Attempts:  {diag.attempts}")
    print(f"Latency:   {diag.latency_ms}ms")
    for failure in diag.errors:
        print(f"  - attempt {failure.attempt} [{failure.kind.value}]: {_truncate(failure.message)}")
    print()
    print("Prompt:")
    print(diag.prompt if full_prompt else f"  {_truncate(diag.prompt)}")
    print()
    print("Raw response:")
    print(f"  {_truncate(diag.raw_response, 1000)}")
    print()


def _load_contexts(path: Path) -> list[TriageContext]:
    data = json.loads(path.read_text(encoding="utf-8"))
    items = data if isinstance(data, list) else [data]
    return [TriageContext.model_validate(item) for item in items]


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="casework-triage - suggest triage actions for constituent emails",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "context",
        type=Path,
        help="JSON file holding a triage context or a list of contexts",
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL,
        help=f"OpenRouter model ID (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=3,
        metavar="N",
        help="Generation attempts before falling back (default: 3)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        metavar="SECONDS",
        help="Per-attempt request timeout (default: 60)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print prompt, raw response and attempt history",
    )
    parser.add_argument(
        "--full-prompt",
        action="store_true",
        help="With --trace, print the prompt untruncated",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


async def _run(engine: TriageEngine, contexts: list[TriageContext]) -> list[TriageResult]:
    async with engine:
        return await engine.analyze_many(contexts)


def main(argv: Optional[list[str]] = None) -> int:
    """Run triage for every context in the input file."""
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    api_key = os.environ.get("OPENROUTER_KEY")
    if not api_key:
        print("Error: OPENROUTER_KEY environment variable not set", file=sys.stderr)
        print("Set it with: export OPENROUTER_KEY=your-api-key", file=sys.stderr)
        return 1

    try:
        contexts = _load_contexts(args.context)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Error: could not load {args.context}: {e}", file=sys.stderr)
        return 1

    try:
        config = EngineConfig(
            openrouter_api_key=api_key,
            model=args.model,
            max_retries=args.max_retries,
            request_timeout=args.timeout,
        )
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    results = asyncio.run(_run(TriageEngine(config), contexts))

    for result in results:
        if args.trace:
            _print_diagnostics(result, args.full_prompt)
        print("=" * 60)
        print("SUGGESTION")
        print("=" * 60)
        print(json.dumps(result.suggestion.to_wire(), indent=2))
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
