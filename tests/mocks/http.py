"""Scripted stand-in for aiohttp.ClientSession"""

import json as _json
from typing import Any, Dict, List, Optional, Union


class FakeResponse:
    """Minimal aiohttp response: status, text(), read(), json()"""

    def __init__(self, status: int = 200, body: Union[bytes, str, dict, list] = b""):
        self.status = status
        if isinstance(body, (dict, list)):
            body = _json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def json(self) -> Any:
        return _json.loads(self._body.decode("utf-8"))

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc) -> None:
        return None


class FakeSession:
    """
    Returns queued responses in order and records every request.

    Queue items may be FakeResponse instances or exceptions to raise.
    """

    def __init__(self, responses: Optional[List[Union[FakeResponse, BaseException]]] = None):
        self.responses = list(responses or [])
        self.requests: List[Dict[str, Any]] = []

    def queue(self, *responses: Union[FakeResponse, BaseException]) -> None:
        self.responses.extend(responses)

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self.request("GET", url, **kwargs)
