import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from shared.models.item import ItemStatus
from shared.store.analysis_store import AnalysisStore

from risk_analyzer.classifier import RiskClassifier
from risk_analyzer.pipeline import ContentAnalyzer
from risk_analyzer.runner import BatchProcessor, SequentialQueue
from risk_analyzer.sources import PollingDirectorySource, discover_json_files


def make_processor(settings, llm, notifier=None, delay=0.0):
    classifier = RiskClassifier(llm, settings.llm_model)
    analyzer = ContentAnalyzer(classifier, AnalysisStore(settings.analyzed_data_dir), settings)
    return BatchProcessor(analyzer, settings.scraped_posts_dir, notifier=notifier, delay_seconds=delay)


# ──────────────────────────────────────────────
# SequentialQueue
# ──────────────────────────────────────────────


def test_queue_delays_between_items_only():
    handled = []

    async def handler(item):
        handled.append(item)
        return item * 2

    queue = SequentialQueue(handler, delay_seconds=1.5)
    with patch("risk_analyzer.runner.asyncio.sleep", new=AsyncMock()) as sleep:
        results = asyncio.run(queue.run([1, 2, 3, 4]))

    assert results == [2, 4, 6, 8]
    assert handled == [1, 2, 3, 4]
    assert sleep.await_count == 3
    sleep.assert_awaited_with(1.5)


def test_queue_consumes_async_feed():
    handled = []

    async def handler(item):
        handled.append(item)

    async def feed():
        for item in "abc":
            yield item

    asyncio.run(SequentialQueue(handler).consume(feed()))

    assert handled == ["a", "b", "c"]


# ──────────────────────────────────────────────
# Discovery
# ──────────────────────────────────────────────


def test_discover_json_files_is_recursive_and_sorted(tmp_path):
    root = tmp_path / "scraped"
    (root / "b").mkdir(parents=True)
    (root / "a.JSON").write_text("{}")
    (root / "b" / "c.json").write_text("{}")
    (root / "notes.txt").write_text("")

    files = discover_json_files(root)

    assert [p.relative_to(root).as_posix() for p in files] == ["a.JSON", "b/c.json"]


def test_discover_missing_root(tmp_path):
    assert discover_json_files(tmp_path / "nope") == []


def test_polling_source_yields_new_files_once(tmp_path):
    directory = tmp_path / "incoming"
    directory.mkdir()
    (directory / "old.json").write_text("{}")
    source = PollingDirectorySource(directory, poll_seconds=0.01, settle_seconds=0.0)

    async def collect():
        seen = []
        iterator = source.__aiter__()
        (directory / "new.json").write_text("{}")
        seen.append(await iterator.__anext__())
        (directory / "later.json").write_text("{}")
        seen.append(await iterator.__anext__())
        await iterator.aclose()
        return seen

    paths = asyncio.run(collect())

    assert [p.name for p in paths] == ["new.json", "later.json"]


def test_polling_source_creates_directory(tmp_path):
    source = PollingDirectorySource(tmp_path / "missing")

    source.snapshot()

    assert (tmp_path / "missing").is_dir()


# ──────────────────────────────────────────────
# BatchProcessor
# ──────────────────────────────────────────────


def test_process_file_retains_serious_post(settings, make_llm, write_post, raw_post, high_risk_answer):
    path = write_post("post.json", raw_post)
    processor = make_processor(settings, make_llm(high_risk_answer))

    result = asyncio.run(processor.process_file(path))

    assert result.status == ItemStatus.RETAINED
    assert result.post_id == "pfbid02abc"
    assert result.risk_level == "high"
    assert result.flagged is True
    stored = json.loads(Path(result.stored_path).read_text(encoding="utf-8"))
    assert stored["analysis_id"] == result.analysis_id


def test_process_file_discards_safe_post(settings, make_llm, write_post, raw_post, safe_answer):
    path = write_post("post.json", raw_post)
    processor = make_processor(settings, make_llm(safe_answer))

    result = asyncio.run(processor.process_file(path))

    assert result.status == ItemStatus.DISCARDED
    assert result.stored_path is None
    assert AnalysisStore(settings.analyzed_data_dir).list_records() == []


def test_unparseable_answer_is_discarded(settings, make_llm, write_post, raw_post):
    path = write_post("post.json", raw_post)
    processor = make_processor(settings, make_llm("Sorry, I can't do that"))

    result = asyncio.run(processor.process_file(path))

    assert result.status == ItemStatus.DISCARDED
    assert result.error is None


def test_process_file_records_failure(settings, make_llm, write_post):
    path = write_post("broken.json", {"postId": "x"})
    path.write_text("{not json", encoding="utf-8")
    processor = make_processor(settings, make_llm())

    result = asyncio.run(processor.process_file(path))

    assert result.status == ItemStatus.FAILED
    assert result.error
    assert not result.ok


def test_batch_isolates_failures(settings, make_llm, write_post, raw_post, safe_answer):
    for i in range(4):
        write_post(f"post_{i}.json", {**raw_post, "postId": f"p{i}"})
    llm = make_llm(safe_answer, TimeoutError("LLM timed out"), safe_answer, safe_answer)
    processor = make_processor(settings, llm, delay=2.0)

    with patch("risk_analyzer.runner.asyncio.sleep", new=AsyncMock()) as sleep:
        results = asyncio.run(processor.process_all())

    assert [r.status for r in results] == [
        ItemStatus.DISCARDED, ItemStatus.FAILED, ItemStatus.DISCARDED, ItemStatus.DISCARDED,
    ]
    assert results[1].error == "LLM timed out"
    assert results[1].post_id == "p1"
    assert sleep.await_count == 3


def test_process_all_with_missing_root(settings, make_llm):
    processor = make_processor(settings, make_llm())

    assert asyncio.run(processor.process_all()) == []


def test_process_single_missing_file(settings, make_llm, tmp_path):
    processor = make_processor(settings, make_llm())

    with pytest.raises(FileNotFoundError):
        asyncio.run(processor.process_single(tmp_path / "nope.json"))


def test_process_single_propagates_llm_errors(settings, make_llm, write_post, raw_post):
    path = write_post("post.json", raw_post)
    llm = make_llm()
    llm.chat.completions.create.side_effect = ConnectionError("no route")
    processor = make_processor(settings, llm)

    with pytest.raises(ConnectionError):
        asyncio.run(processor.process_single(path))


def test_processor_publishes_lifecycle_events(settings, make_llm, write_post, raw_post, high_risk_answer):
    path = write_post("post.json", raw_post)
    notifier = AsyncMock()
    processor = make_processor(settings, make_llm(high_risk_answer), notifier=notifier)

    asyncio.run(processor.process_file(path))

    notifier.notify_analysis_started.assert_awaited_once_with("post.json")
    notifier.notify_analysis_completed.assert_awaited_once_with("post.json", "high", True, True)


def test_watch_processes_arrivals(settings, make_llm, raw_post, high_risk_answer):
    processor = make_processor(settings, make_llm(high_risk_answer))
    directory = processor.scraped_dir
    source = PollingDirectorySource(directory, poll_seconds=0.01, settle_seconds=0.0)

    async def run_watch():
        task = asyncio.create_task(processor.watch(source))
        await asyncio.sleep(0.05)
        staging = directory / "arrival.partial"
        staging.write_text(json.dumps(raw_post), encoding="utf-8")
        staging.rename(directory / "arrival.json")
        store = AnalysisStore(settings.analyzed_data_dir)
        for _ in range(200):
            if store.list_records():
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return store.list_records()

    records = asyncio.run(run_watch())

    assert len(records) == 1
    assert records[0]["post"]["id"] == "pfbid02abc"
