"""Compute survey analytics for a set of call executions.

Reads a JSON dump of executions (the /api/executions/download file, or the raw
API response), or fetches them live from the execution log API.

Usage:
    python scripts/compute_analytics.py --input all-executions.json [--output-dir data/exports]
    python scripts/compute_analytics.py --fetch [--agent-id AGENT]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from loguru import logger

from pipeline.orchestrator import analyze_completed, summarize_insights
from pipeline.output_generator import export_all
from services.bolna.client import AGENT_ID, ExecutionLogError, fetch_executions, is_configured


def load_executions(input_path: str) -> list:
    """Load executions from a JSON file (bare list, {'executions': [...]} or {'data': [...]})."""
    with open(input_path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("executions", data.get("data", [data]))
    if not isinstance(data, list):
        logger.warning(f"{input_path} holds no execution list")
        return []
    return data


def print_summary(summary) -> None:
    print(f"\n{'='*60}")
    print(f"SURVEY ANALYTICS — {summary.total_calls} completed calls")
    print(f"{'='*60}")
    print(f"Average NPS:        {summary.average_rating}/10")
    print(f"Satisfaction rate:  {summary.satisfaction_rate}%")
    print(f"Response rate:      {summary.response_rate}%")
    print(f"Language usage:     {summary.language_usage.model_dump()}")
    print(f"Call duration:      {summary.duration_buckets.model_dump()}")

    print(f"\n{'Rating':>6} {'Count':>6} {'Pct':>5}")
    print("-" * 20)
    for row in summary.rating_histogram:
        if row.count:
            print(f"{row.rating:>6} {row.count:>6} {row.percent:>4}%")

    print(f"\n{'Topic':<14} {'Pos':>4} {'Neg':>4} {'Neu':>4} {'Total':>6}")
    print("-" * 36)
    for tally in summary.topic_tallies:
        print(f"{tally.name:<14} {tally.positive:>4} {tally.negative:>4} {tally.neutral:>4} {tally.total:>6}")


def main():
    parser = argparse.ArgumentParser(description="Compute survey analytics from call executions")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="JSON file of executions")
    source.add_argument("--fetch", action="store_true", help="Fetch executions from the execution log API")
    parser.add_argument("--agent-id", default=AGENT_ID, help="Agent ID (defaults to BOLNA_AGENT_ID)")
    parser.add_argument("--output-dir", default="data/exports", help="Export directory")
    parser.add_argument("--no-export", action="store_true", help="Print the summary only")
    args = parser.parse_args()

    if args.fetch:
        if not is_configured():
            logger.error("BOLNA_API_KEY not set — cannot fetch executions")
            sys.exit(1)
        try:
            executions = asyncio.run(fetch_executions(args.agent_id))
        except ExecutionLogError as e:
            logger.error(str(e))
            sys.exit(1)
    else:
        executions = load_executions(args.input)

    logger.info(f"Loaded {len(executions)} executions")

    insights = analyze_completed(executions)
    summary = summarize_insights(insights)
    print_summary(summary)

    if not args.no_export:
        outputs = export_all(summary, executions, insights, args.agent_id or "local", args.output_dir)
        print(f"\nExports written to: {args.output_dir}")
        for name, path in outputs.items():
            print(f"  {name:<16} {path}")


if __name__ == "__main__":
    main()
