import json
import time

import pytest

from shared.models.post import RawScrapedPost
from shared.store.analysis_store import (
    AnalysisStore,
    InvalidFilename,
    RecordNotFound,
    validate_filename,
)

from risk_analyzer.builder import build_record
from risk_analyzer.classifier import parse_verdict


@pytest.fixture
def store(tmp_path) -> AnalysisStore:
    return AnalysisStore(tmp_path / "analyzed_data")


@pytest.fixture
def record(post, high_risk_answer):
    return build_record(post, parse_verdict(high_risk_answer), time.monotonic())


def test_write_then_load_round_trips(store, record):
    path = store.write(record)

    assert path.parent == store.directory
    assert path.name.startswith("analysis_pfbid02abc_")
    assert path.suffix == ".json"
    assert store.load(path.name) == record


def test_written_document_is_pretty_json(store, record):
    path = store.write(record)
    text = path.read_text(encoding="utf-8")

    assert text.startswith("{\n  ")
    assert json.loads(text)["analysis_id"] == record.analysis_id


def test_filename_sanitizes_post_id(store):
    record = build_record(
        RawScrapedPost(postId="../../evil id"), parse_verdict("{}"), time.monotonic(),
    )

    name = store.filename_for(record)

    assert name.startswith("analysis_______evil_id_")
    validate_filename(name)


def test_write_never_overwrites(store, record, monkeypatch):
    monkeypatch.setattr(store, "filename_for", lambda rec: "analysis_fixed.json")
    store.write(record)

    with pytest.raises(FileExistsError):
        store.write(record)


def test_list_records_attaches_metadata(store, record):
    path = store.write(record)
    (store.directory / "broken.json").write_text("{not json", encoding="utf-8")
    (store.directory / "notes.txt").write_text("ignore me", encoding="utf-8")

    documents = store.list_records()

    assert len(documents) == 1
    meta = documents[0]["_metadata"]
    assert meta["filename"] == path.name
    assert meta["filesize"] == path.stat().st_size
    assert meta["modified"]


def test_missing_directory_reads_empty(store):
    assert store.list_records() == []
    assert store.list_files() == []


@pytest.mark.parametrize("name", [
    "../../etc/passwd",
    "../secret.json",
    "sub/analysis.json",
    "sub\\analysis.json",
    "/etc/analysis.json",
    "analysis.txt",
    "",
])
def test_get_record_rejects_unsafe_names(store, name):
    with pytest.raises(InvalidFilename):
        store.get_record(name)


def test_get_record_missing(store):
    with pytest.raises(RecordNotFound):
        store.get_record("analysis_nope.json")


def test_list_files(store, record):
    store.write(record)
    (store.directory / "notes.txt").write_text("x", encoding="utf-8")

    files = store.list_files()

    assert sorted(f["is_json"] for f in files) == [False, True]
    assert all({"name", "size", "modified", "is_json"} <= set(f) for f in files)


def test_written_document_is_strict_json(store, post):
    record = build_record(
        post, parse_verdict('{"risk_scores": {"csam": "NaN", "grooming": "Infinity"}}'), time.monotonic(),
    )

    text = store.write(record).read_text(encoding="utf-8")

    def reject(token):
        raise AssertionError(f"non-standard JSON token {token}")

    document = json.loads(text, parse_constant=reject)
    assert document["risk_scores"]["csam"] == 0.0
    assert document["risk_scores"]["grooming"] == 0.0
