"""Risk analyzer entry point: classify scraped posts and keep the serious ones.

Usage:
    python -m risk_analyzer batch          # process every file in scraped_posts/
    python -m risk_analyzer watch          # process new files as they arrive
    python -m risk_analyzer single <file>  # process one file
    python -m risk_analyzer test           # classify a built-in sample post
    python -m risk_analyzer test-filter    # check the retention filter on canned cases
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from shared.config.settings import Settings, get_settings
from shared.models.item import ItemResult, ItemStatus
from shared.notify.client import NotificationClient
from shared.store.analysis_store import AnalysisStore

from risk_analyzer.classifier import RiskClassifier, make_llm_client
from risk_analyzer.pipeline import ContentAnalyzer
from risk_analyzer.retention import should_retain
from risk_analyzer.runner import BatchProcessor
from risk_analyzer.samples import FILTER_CASES, sample_post
from risk_analyzer.sources import PollingDirectorySource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="risk_analyzer",
        description="Juvo AI content analysis tool",
        epilog="Environment: GEMINI_API_KEY (required), see shared.config.settings for the rest.",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("batch", help="Process all JSON files in the scraped posts folder")
    sub.add_parser("watch", help="Watch for new files and process automatically")
    single = sub.add_parser("single", help="Process a single JSON file")
    single.add_argument("path", help="Path to a scraped-post JSON file")
    sub.add_parser("test", help="Run a test with sample data")
    sub.add_parser("test-filter", help="Test the harmful content filtering logic")
    return parser


def build_processor(settings: Settings) -> BatchProcessor:
    classifier = RiskClassifier(make_llm_client(settings), settings.llm_model, settings.platform)
    analyzer = ContentAnalyzer(classifier, AnalysisStore(settings.analyzed_data_dir), settings)
    notifier = None
    if settings.notify_enabled:
        notifier = NotificationClient(settings.notify_api_url, settings.notify_timeout)
    return BatchProcessor(
        analyzer,
        settings.scraped_posts_dir,
        notifier=notifier,
        delay_seconds=settings.batch_delay_seconds,
    )


# ──────────────────────────────────────────────
# Commands
# ──────────────────────────────────────────────


def summarize(results: list[ItemResult]) -> dict[str, int]:
    counts = {status.value: 0 for status in (ItemStatus.RETAINED, ItemStatus.DISCARDED, ItemStatus.FAILED)}
    for result in results:
        if result.status.value in counts:
            counts[result.status.value] += 1
    return counts


async def run_batch(processor: BatchProcessor) -> None:
    results = await processor.process_all()
    counts = summarize(results)
    print(
        f"Processed {len(results)} files: "
        f"{counts['retained']} retained, {counts['discarded']} discarded, {counts['failed']} failed"
    )
    for result in results:
        if result.status == ItemStatus.FAILED:
            print(f"  FAILED {result.source}: {result.error}")


async def run_watch(processor: BatchProcessor, settings: Settings) -> None:
    source = PollingDirectorySource(
        settings.scraped_posts_dir,
        poll_seconds=settings.watch_poll_seconds,
        settle_seconds=settings.watch_settle_seconds,
    )
    await processor.watch(source)


async def run_single(processor: BatchProcessor, path: str) -> None:
    result = await processor.process_single(Path(path))
    print(f"{result.source}: {result.status.value} (risk={result.risk_level}, flagged={result.flagged})")
    if result.stored_path:
        print(f"Stored at {result.stored_path}")


async def run_sample(processor: BatchProcessor) -> None:
    post = sample_post()
    print("Test data:")
    print(post.model_dump_json(indent=2))
    print()
    print("Running analysis...")

    outcome = await processor.analyzer.analyze_post(post)
    record = outcome.record
    scores = record.risk_scores
    print()
    print("Analysis Result:")
    print("===============")
    print(f"Risk Level: {record.risk_level}")
    print(f"Flagged: {record.flagged}")
    print(f"Priority Score: {record.priority_score}")
    print(f"Recommended Action: {record.recommended_action}")
    print(f"Processing Time: {record.processing_ms}ms")
    print()
    print("Risk Scores:")
    print(f"  Grooming: {scores.grooming}")
    print(f"  Trafficking: {scores.trafficking}")
    print(f"  CSAM: {scores.csam}")
    print(f"  Harassment: {scores.harassment}")
    print()
    print(f"Flag Reasons: {record.flag_reason}")
    print(f"Explanation: {record.explanation}")
    if record.classification_error:
        print(f"Classification error: {record.classification_error}")
    print()
    if outcome.retained:
        print(f"Retained: saved to {outcome.stored_path}")
    else:
        print("Not retained: does not meet serious-harm criteria")


def run_filter_test() -> bool:
    print(f"Running {len(FILTER_CASES)} filter test cases...\n")
    passed = failed = 0
    for case in FILTER_CASES:
        record = case.record()
        retained = should_retain(record)
        ok = retained == case.expected_retain
        print(f"{'PASS' if ok else 'FAIL'}: {case.name}")
        print(f"  Expected retain: {case.expected_retain}, actual: {retained}")
        if ok:
            passed += 1
        else:
            failed += 1
            print(f"  Risk Level: {record.risk_level}")
            print(f"  Risk Scores: {record.risk_scores.model_dump()}")
            print(f"  Flag Reasons: {record.flag_reason}")
        print()

    print(f"Test Results: {passed} passed, {failed} failed")
    return failed == 0


async def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "test-filter":
        return 0 if run_filter_test() else 1

    processor = build_processor(settings)
    if args.command == "batch":
        await run_batch(processor)
    elif args.command == "watch":
        await run_watch(processor, settings)
    elif args.command == "single":
        await run_single(processor, args.path)
    elif args.command == "test":
        await run_sample(processor)
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY environment variable is required")
        parser.print_usage(sys.stderr)
        print(
            "Please set your Gemini API key:\n"
            '  export GEMINI_API_KEY="your-api-key-here"',
            file=sys.stderr,
        )
        sys.exit(1)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        code = asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Shutting down")
        code = 0
    except Exception as e:
        logger.error("Fatal error: %s", e)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
