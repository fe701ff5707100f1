import json
from unittest.mock import patch

import pytest

from risk_analyzer.__main__ import build_parser, main


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("SCRAPED_POSTS_DIR", str(tmp_path / "scraped_posts"))
    monkeypatch.setenv("ANALYZED_DATA_DIR", str(tmp_path / "analyzed_data"))
    monkeypatch.setenv("NOTIFY_ENABLED", "false")
    monkeypatch.setenv("BATCH_DELAY_SECONDS", "0")
    return tmp_path


@pytest.mark.parametrize("argv", [["batch"], ["test-filter"], ["single", "post.json"], []])
def test_missing_api_key_exits_1(argv, monkeypatch, capsys):
    monkeypatch.setenv("GEMINI_API_KEY", "")

    with pytest.raises(SystemExit) as exc:
        main(argv)

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "usage: risk_analyzer" in err
    assert "export GEMINI_API_KEY=" in err


def test_no_command_exits_1(env):
    with pytest.raises(SystemExit) as exc:
        main([])

    assert exc.value.code == 1


def test_single_requires_path():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["single"])


def test_test_filter_passes(env, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["test-filter"])

    assert exc.value.code == 0
    assert "5 passed, 0 failed" in capsys.readouterr().out


def test_single_missing_file_exits_1(env):
    with pytest.raises(SystemExit) as exc:
        main(["single", str(env / "nope.json")])

    assert exc.value.code == 1


def test_batch_prints_summary(env, make_llm, safe_answer, raw_post, capsys):
    scraped = env / "scraped_posts"
    scraped.mkdir()
    (scraped / "one.json").write_text(json.dumps(raw_post), encoding="utf-8")
    (scraped / "two.json").write_text("{broken", encoding="utf-8")

    with patch("risk_analyzer.__main__.make_llm_client", return_value=make_llm(safe_answer)):
        with pytest.raises(SystemExit) as exc:
            main(["batch"])

    out = capsys.readouterr().out
    assert exc.value.code == 0
    assert "Processed 2 files: 0 retained, 1 discarded, 1 failed" in out
    assert "FAILED" in out
