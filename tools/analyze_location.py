#!/usr/bin/env python3
"""
CLI tool for running the review sentiment pipeline outside the web server.

Usage:
    python tools/analyze_location.py --place-id ChIJN1t_tDeuEmsRUsoyG83frY4
    python tools/analyze_location.py --query "pizza in Springfield" --mock-llm
    python tools/analyze_location.py --json-file saved_details.json --mock-llm --output report.json

Options:
    --place-id, -p        Directory place id to analyze
    --query, -q           Text search; analyzes every place found
    --json-file           Saved Places API details response (offline, no directory calls)
    --output, -o          Write the report(s) as JSON to this file
    --llm-model           LLM model to use (default from settings)
    --api-key             LLM API key (default: OPENAI_API_KEY)
    --places-key          Places API key (default: GOOGLE_PLACES_API_KEY)
    --mock-llm            Use mock LLM (no API calls)
    --concurrency         Concurrent classification calls
    --verbose, -v         Verbose output
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.review_sentiment import (
    LocationReport,
    ReviewSentimentError,
    ReviewSentimentService,
    StaticReviewSource,
    get_settings,
    normalize_place,
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Analyze customer review sentiment for business locations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    target_group = parser.add_argument_group("Target options")
    target = target_group.add_mutually_exclusive_group(required=True)
    target.add_argument("--place-id", "-p", help="Directory place id to analyze")
    target.add_argument("--query", "-q", help="Text search; analyzes every place found")
    target.add_argument(
        "--json-file",
        type=Path,
        help="Saved Places API details response (offline mode)",
    )

    parser.add_argument("--output", "-o", type=Path, help="Write report JSON to this file")

    llm_group = parser.add_argument_group("LLM options")
    llm_group.add_argument("--llm-model", help="LLM model to use")
    llm_group.add_argument("--api-key", help="LLM API key")
    llm_group.add_argument("--mock-llm", action="store_true", help="Use mock LLM (no API calls)")
    llm_group.add_argument("--concurrency", type=int, help="Concurrent classification calls")

    parser.add_argument("--places-key", help="Places API key")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    return parser.parse_args(argv)


def report_to_dict(report: LocationReport) -> dict:
    """Compact JSON-ready view of a report."""
    aggregate = report.aggregate
    return {
        "id": report.place.id,
        "name": report.place.name,
        "address": report.place.address,
        "reviews": [
            {
                "author": r.author,
                "rating": r.rating,
                "sentiment": r.sentiment_label.value if r.sentiment_label else None,
                "score": r.sentiment_score,
                "text": r.text,
            }
            for r in report.reviews
        ],
        "ratingBreakdown": {str(b.stars): b.percentage for b in aggregate.rating_breakdown},
        "sentiment": aggregate.sentiment.model_dump(),
        "unscored": aggregate.unscored_count,
        "analysis": aggregate.narrative,
        "generatedAt": report.generated_at.isoformat(),
    }


def print_report(report: LocationReport) -> None:
    aggregate = report.aggregate
    print(f"\n{report.place.name or report.place.id} ({report.place.address})")
    print(f"  Reviews: {aggregate.review_count} ({aggregate.unscored_count} unscored)")
    print("  Ratings: " + "  ".join(f"{b.stars}*: {b.percentage}%" for b in aggregate.rating_breakdown))
    print(
        f"  Sentiment: positive {aggregate.sentiment.positive}%  "
        f"neutral {aggregate.sentiment.neutral}%  negative {aggregate.sentiment.negative}%"
    )
    if aggregate.narrative:
        print(f"  Analysis: {aggregate.narrative}")


async def run(args: argparse.Namespace) -> List[LocationReport]:
    overrides = {"use_mock_llm": args.mock_llm}
    if args.llm_model:
        overrides["llm_model"] = args.llm_model
    if args.api_key:
        overrides["llm_api_key"] = args.api_key
    if args.places_key:
        overrides["places_api_key"] = args.places_key
    if args.concurrency:
        overrides["classification_concurrency"] = args.concurrency
    settings = get_settings(**overrides)

    source = None
    if args.json_file:
        with open(args.json_file) as f:
            place = normalize_place(json.load(f))
        source = StaticReviewSource([place])
        place_ids = [place.id]

    service = ReviewSentimentService.from_settings(settings, source=source)
    try:
        if args.query:
            # Ids only; analyze_location classifies each place once
            page = await service.source.search_text(args.query)
            place_ids = [p.id for p in page.places]
            logger.info(f"Found {len(place_ids)} places for '{args.query}'")
        elif args.place_id:
            place_ids = [args.place_id]

        reports = []
        for place_id in place_ids:
            reports.append(await service.analyze_location(place_id))
        return reports
    finally:
        await service.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        reports = asyncio.run(run(args))
    except (ReviewSentimentError, ValueError, OSError) as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    for report in reports:
        print_report(report)

    if args.output:
        with open(args.output, "w") as f:
            json.dump([report_to_dict(r) for r in reports], f, indent=2)
        logger.info(f"Report saved to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
