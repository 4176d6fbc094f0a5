import json
from datetime import datetime, timezone

import pytest
import requests

from exam_notice_alert import config, notifier, source
from exam_notice_alert.main import main
from exam_notice_alert.simulate import run_scenarios


NEWS_URL = "https://example.edu/api/news"
EXAM_URL = "https://example.edu/api/exam"


class DummyResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return self._payload


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for key in ("TEST_MODE", "SEED_MODE", "AGE_LIMIT_HOURS", "DOWNLOAD_ORIGIN", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("COLLEGE_NEWS_API", NEWS_URL)
    monkeypatch.setenv("COLLEGE_EXAM_API", EXAM_URL)
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    monkeypatch.setenv("EMAIL_FROM", "alerts@example.com")
    monkeypatch.setenv("EMAIL_TO", "me@example.com")
    monkeypatch.setenv("KNOWN_SENT_PATH", str(tmp_path / "known_sent.json"))
    return tmp_path / "known_sent.json"


@pytest.fixture
def upstream(monkeypatch):
    today = datetime.now(timezone.utc).isoformat()
    payloads = {
        NEWS_URL: {
            "data": [
                {"id": 11, "title": "Holiday Notice: Holi Festival", "date": "2020-03-01", "content": "h.pdf"},
            ]
        },
        EXAM_URL: {
            "data": [
                {"id": 12, "title": "Exam Form for B.Tech VI Sem", "date": today, "content": "vi.pdf"},
            ]
        },
    }

    def fake_get(url, headers, timeout):
        return DummyResponse(payloads[url])

    monkeypatch.setattr(source.requests, "get", fake_get)
    return payloads


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(notifier.resend.Emails, "send", lambda params: sent.append(params) or {"id": "e1"})
    return sent


def test_main_sends_once_and_records(env, upstream, outbox):
    assert main([]) == 0
    assert len(outbox) == 1
    assert outbox[0]["subject"] == "🚨 CRITICAL: 6th Sem Exam Notice Detected!"

    stored = json.loads(env.read_text(encoding="utf-8"))["notices"]
    assert [doc["noticeId"] for doc in stored] == ["12"]

    assert main([]) == 0
    assert len(outbox) == 1


def test_main_seed_flag_records_without_email(env, upstream, outbox, monkeypatch):
    monkeypatch.delenv("RESEND_API_KEY")

    assert main(["--seed"]) == 0

    assert outbox == []
    stored = json.loads(env.read_text(encoding="utf-8"))["notices"]
    assert sorted(doc["noticeId"] for doc in stored) == ["11", "12"]


def test_main_test_flag_does_not_record(env, upstream, outbox):
    assert main(["--test"]) == 0

    assert outbox[0]["subject"].startswith("[TEST] ")
    assert not env.exists()


def test_main_check_flag_skips_store(env, upstream, outbox):
    assert main(["--check"]) == 0

    assert len(outbox) == 1
    assert not env.exists()


def test_main_fetch_failure_exits_nonzero(env, outbox, monkeypatch):
    def fake_get(url, headers, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(source.requests, "get", fake_get)

    assert main([]) == 1
    assert outbox == []


def test_main_delivery_failure_exits_nonzero(env, upstream, monkeypatch):
    def fake_send(params):
        raise RuntimeError("provider down")

    monkeypatch.setattr(notifier.resend.Emails, "send", fake_send)

    assert main([]) == 1
    assert not env.exists()


def test_main_configuration_error(env, monkeypatch):
    monkeypatch.delenv("COLLEGE_NEWS_API")

    assert main([]) == 1


def test_simulation_scenarios():
    results = run_scenarios()

    assert list(results) == ["WORST_CASE", "BEST_CASE"]
    assert results["WORST_CASE"].notified == 2
    assert results["BEST_CASE"].notified == 1
    assert results["BEST_CASE"].persisted == 1


def test_main_simulate_flag():
    assert main(["--simulate"]) == 0
