import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from vechain_mcp.metrics import default_metrics  # noqa: E402

# Throwaway key used only by the signing tests; never funded.
TEST_SECRET_KEY = "0x" + "11" * 32


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


class MockResponse:
    def __init__(self, status_code: int, json_body=None, *, text: str = "", reason_phrase: str = ""):
        self.status_code = status_code
        self._json = json_body
        self.text = text
        self.reason_phrase = reason_phrase

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class MockAsyncClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self):
        if not self.responses:
            raise RuntimeError("No mock responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def get(self, url, params=None):
        self.calls.append({"method": "GET", "url": url, "params": params})
        return self._next()

    async def post(self, url, json=None):
        self.calls.append({"method": "POST", "url": url, "json": json})
        return self._next()

    async def aclose(self):
        return None
