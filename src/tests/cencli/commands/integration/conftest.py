"""Fixtures for invoking the CLI against a fake Censys API."""

import json

import httpx
import pytest

from cencli.cli import cli
from cencli.core.context import Context

TOKEN = "test-token-0001"


class FakeApi:
    """In-memory API keyed by ``(method, path)``.

    Route values are either an :class:`httpx.Response` or a list of them;
    lists are consumed in order and the last response is repeated.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, *responses):
        self.routes[(method, path)] = list(responses)

    def json(self, method, path, result, status=200):
        self.add(method, path, httpx.Response(status, json={"result": result}))

    def handler(self, request):
        self.requests.append(request)
        responses = self.routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404, json={"error": "not found"})
        if len(responses) > 1:
            return responses.pop(0)
        return responses[0]

    def transport(self):
        return httpx.MockTransport(self.handler)

    def body(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def authenticated(monkeypatch):
    monkeypatch.setenv("CENCLI_PAT", TOKEN)


@pytest.fixture
def invoke(cli_runner, api):
    """Run ``censys <args>`` with a fresh context bound to the fake API."""

    def run(*args, input=None):
        return cli_runner.invoke(
            cli,
            list(args),
            obj=Context(transport=api.transport()),
            input=input,
        )

    return run
