import json

import pytest
import requests

from comfy_runner.config import RunnerConfig


BASE_URL = "http://comfy.test:8188"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, body=b"", headers=None, chunks=None):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status_code = status_code
        self.content = body
        self.headers = headers or {}
        self._chunks = chunks
        self.closed = False

    @property
    def text(self):
        return self.content.decode("utf-8")

    def json(self):
        return json.loads(self.text)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.closed = True

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size=1):
        if self._chunks is not None:
            yield from self._chunks
            return
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]


class FakeClock:
    """Replaces time.monotonic/time.sleep; sleeping advances the clock."""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def config(tmp_path):
    return RunnerConfig(
        base_url=BASE_URL + "/",
        poll_timeout=300,
        poll_interval=5,
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr("comfy_runner.poll.time.monotonic", fake.monotonic)
    monkeypatch.setattr("comfy_runner.poll.time.sleep", fake.sleep)
    return fake


HISTORY = {
    "abc123": {
        "outputs": {
            "9": {"images": [{"filename": "out.png", "subfolder": "", "type": "output"}]}
        }
    }
}


class FakeService:
    """Routes fake HTTP calls by path, like the remote service would."""

    def __init__(self, history_responses, head=None, artifact=b"\x89PNG" + b"\0" * 4092):
        self.history_responses = list(history_responses)
        self.head_response = head or FakeResponse(200, headers={"Content-Length": str(len(artifact))})
        self.artifact = artifact
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append(("POST", url))
        return FakeResponse(200, {"prompt_id": "abc123", "number": 1, "node_errors": {}})

    def get(self, url, **kwargs):
        self.calls.append(("GET", url))
        if url.startswith(f"{BASE_URL}/history/"):
            if len(self.history_responses) > 1:
                return self.history_responses.pop(0)
            return self.history_responses[0]
        return FakeResponse(200, self.artifact)

    def head(self, url, **kwargs):
        self.calls.append(("HEAD", url))
        return self.head_response


@pytest.fixture
def workflow_file(tmp_path):
    path = tmp_path / "temp" / "flux.json"
    path.parent.mkdir()
    path.write_text('{"9": {"class_type": "SaveImage", "inputs": {}}}')
    return str(path)


def install_service(monkeypatch, service):
    monkeypatch.setattr("comfy_runner.submit.requests.post", service.post)
    monkeypatch.setattr("comfy_runner.poll.requests.get", service.get)
    monkeypatch.setattr("comfy_runner.download.requests.head", service.head)
    monkeypatch.setattr("comfy_runner.download.requests.get", service.get)
