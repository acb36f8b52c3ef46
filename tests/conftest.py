"""
Shared fixtures: a stub web site served through httpx.MockTransport.
"""

import httpx
import pytest

from webagent import Agent

HTML = "text/html; charset=utf-8"


class StubSite:
    """Routes requests by URL (without query string) and records every request it sees."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def route(self, url, body=b"", status=200, content_type=HTML, headers=None, handler=None):
        if handler is None:
            if isinstance(body, str):
                body = body.encode("utf-8")
            response_headers = {"content-type": content_type}
            response_headers.update(headers or {})

            def handler(request):
                return httpx.Response(status, content=body, headers=response_headers)

        self.routes[url] = handler

    def __call__(self, request):
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, content=b"<html><title>Not found</title></html>",
                                  headers={"content-type": HTML})
        return handler(request)

    @property
    def last_request(self):
        return self.requests[-1]


@pytest.fixture
def site():
    return StubSite()


@pytest.fixture
def client(site):
    client = httpx.Client(transport=httpx.MockTransport(site), follow_redirects=True)
    yield client
    client.close()


@pytest.fixture
def agent(client):
    return Agent(client, chunk_size=4096)
