# tests/conftest.py
import sys, pathlib

import pytest
import requests

# Add <repo> to sys.path so `import ppt_generator` works without an install
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppt_generator.delivery import ArtifactDelivery, HandleRegistry


def make_response(status=200, content=b"PK\x03\x04fake-pptx", headers=None, url="http://backend/generate_ppt"):
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.headers.update(headers or {})
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    return response


class FakeSession:
    """Stands in for requests.Session; `responder` returns a Response or raises."""
    def __init__(self, responder=None):
        self.calls = []
        self.responder = responder or (lambda url, params, timeout: make_response())

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.responder(url, params, timeout)


class Recorder(list):
    def __call__(self, item):
        self.append(item)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def notifications():
    return Recorder()


@pytest.fixture
def saves():
    return Recorder()


@pytest.fixture
def navigations():
    return Recorder()


@pytest.fixture
def registry():
    return HandleRegistry(max_handles=4)


@pytest.fixture
def delivery(registry, saves, navigations):
    return ArtifactDelivery(registry, saves, navigate=navigations)
