import json
from typing import Any, List, Optional

import pytest
import requests

CAT_PAYLOAD = [{
    "word": "cat",
    "meanings": [{
        "partOfSpeech": "noun",
        "definitions": [{"definition": "A small domesticated feline."}]
    }]
}]

NOT_FOUND_PAYLOAD = {
    "title": "No Definitions Found",
    "message": "Sorry pal, we couldn't find definitions for the word you were looking for."
}


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None,
                 content: bytes = b"", headers: Optional[dict] = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        if payload is not None and not content:
            content = json.dumps(payload).encode()
            self.headers.setdefault("content-type", "application/json")
        self.content = content
        self.text = text if text is not None else content.decode("utf-8", errors="replace")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session; answers from a queue or a url map"""

    def __init__(self, responses: Optional[List[Any]] = None, routes: Optional[dict] = None):
        self.responses = list(responses or [])
        self.routes = routes or {}
        self.calls = []

    def _answer(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                result = response
                break
        else:
            result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._answer("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, **kwargs)


@pytest.fixture
def cat_session():
    return FakeSession(routes={
        "/cat": FakeResponse(200, CAT_PAYLOAD),
        "/zzyzx": FakeResponse(404, NOT_FOUND_PAYLOAD)
    })
