import pytest
import requests

from comfy_runner.base import ArtifactDescriptor, PollTimeoutError, ResolutionError
from comfy_runner.poll import JobPoller

from conftest import BASE_URL, FakeResponse


DONE_BODY = {
    "abc123": {
        "outputs": {
            "9": {"images": [{"filename": "out.png", "subfolder": "", "type": "output"}]}
        }
    }
}


def _patch_get(monkeypatch, responses):
    """Serve responses in order; the last one repeats. Exceptions are raised."""
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr("comfy_runner.poll.requests.get", fake_get)
    return calls


@pytest.mark.parametrize("ticks", [1, 2, 5])
def test_poll_returns_descriptor_after_n_ticks(monkeypatch, config, clock, ticks):
    responses = [FakeResponse(202, "") for _ in range(ticks - 1)] + [FakeResponse(200, DONE_BODY)]
    calls = _patch_get(monkeypatch, responses)

    descriptor = JobPoller(config).poll("abc123", interval=3)

    assert descriptor == ArtifactDescriptor("out.png", "", "output")
    assert len(calls) == ticks
    assert clock.sleeps == [3] * (ticks - 1)
    assert all(url == f"{BASE_URL}/history/abc123" for url, _ in calls)
    assert all(kwargs["timeout"] == config.request_timeout for _, kwargs in calls)


def test_poll_uses_config_defaults(monkeypatch, config, clock):
    _patch_get(monkeypatch, [FakeResponse(404, ""), FakeResponse(200, DONE_BODY)])

    JobPoller(config).poll("abc123")

    assert clock.sleeps == [config.poll_interval]


def test_poll_times_out(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [FakeResponse(202, '{"status": "running"}')])
    start = clock.now

    with pytest.raises(PollTimeoutError) as exc_info:
        JobPoller(config).poll("abc123", timeout=10, interval=5)

    err = exc_info.value
    assert clock.now - start >= 10
    assert err.elapsed >= 10
    assert err.timeout == 10
    assert err.job_id == "abc123"
    assert err.status_code == 202
    assert err.body == '{"status": "running"}'
    # t=0, t=5, t=10
    assert len(calls) == 3
    assert clock.sleeps == [5, 5]


def test_poll_timeout_with_interval_not_dividing_timeout(monkeypatch, config, clock):
    _patch_get(monkeypatch, [FakeResponse(202, "")])
    start = clock.now

    with pytest.raises(PollTimeoutError):
        JobPoller(config).poll("abc123", timeout=7, interval=5)

    assert 7 <= clock.now - start < 7 + 5


def test_poll_zero_timeout_polls_once(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [FakeResponse(202, "")])

    with pytest.raises(PollTimeoutError):
        JobPoller(config).poll("abc123", timeout=0)

    assert len(calls) == 1
    assert clock.sleeps == []


def test_poll_200_without_images_is_definitive(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [
        FakeResponse(202, ""),
        FakeResponse(200, {"abc123": {"outputs": {"3": {"text": ["done"]}}}}),
        FakeResponse(200, DONE_BODY),
    ])

    with pytest.raises(ResolutionError) as exc_info:
        JobPoller(config).poll("abc123")

    assert len(calls) == 2
    assert exc_info.value.status_code == 200
    assert '"text"' in exc_info.value.body


def test_poll_200_with_empty_history_is_definitive(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [FakeResponse(200, {})])

    with pytest.raises(ResolutionError):
        JobPoller(config).poll("abc123")

    assert len(calls) == 1
    assert clock.sleeps == []


def test_poll_200_with_invalid_json(monkeypatch, config, clock):
    _patch_get(monkeypatch, [FakeResponse(200, "<html>oops</html>")])

    with pytest.raises(ResolutionError) as exc_info:
        JobPoller(config).poll("abc123")

    assert exc_info.value.body == "<html>oops</html>"


def test_poll_keeps_waiting_through_transport_errors(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [
        requests.ConnectionError("reset by peer"),
        requests.Timeout("read timed out"),
        FakeResponse(200, DONE_BODY),
    ])

    descriptor = JobPoller(config).poll("abc123", interval=1)

    assert descriptor.filename == "out.png"
    assert len(calls) == 3
    assert clock.sleeps == [1, 1]


def test_poll_timeout_keeps_last_real_response(monkeypatch, config, clock):
    _patch_get(monkeypatch, [
        FakeResponse(202, "queued"),
        requests.ConnectionError("reset by peer"),
    ])

    with pytest.raises(PollTimeoutError) as exc_info:
        JobPoller(config).poll("abc123", timeout=10, interval=5)

    assert exc_info.value.body == "queued"
    assert exc_info.value.status_code == 202


def test_poll_status_calls_never_outlast_remaining_budget(monkeypatch, config, clock):
    calls = _patch_get(monkeypatch, [FakeResponse(202, "")])

    with pytest.raises(PollTimeoutError):
        JobPoller(config).poll("abc123", timeout=10, interval=4)

    # t=0, t=4, t=8, t=12; request_timeout is 30
    assert [kwargs["timeout"] for _, kwargs in calls] == [10, 6, 2, 0.1]


@pytest.mark.parametrize("overrides", [
    {"timeout": float("nan")},
    {"timeout": float("inf")},
    {"interval": float("nan")},
    {"interval": 0},
])
def test_poll_rejects_unusable_overrides(monkeypatch, config, clock, overrides):
    calls = _patch_get(monkeypatch, [FakeResponse(202, "")])

    with pytest.raises(ValueError):
        JobPoller(config).poll("abc123", **overrides)

    assert calls == []
