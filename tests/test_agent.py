"""
Tests for the agent's request pipeline: history, interceptors, errors.
"""
from urllib.parse import parse_qsl

import httpx
import pytest

from webagent import (
    Agent,
    AgentIOError,
    AgentProtocolError,
    HeaderInterceptor,
    HtmlPage,
    Page,
    RequestInterceptor,
    ResponseInterceptor,
)


class StatusRecorder(ResponseInterceptor):
    def __init__(self):
        self.statuses = []

    def intercept_response(self, agent, response, request):
        self.statuses.append(response.status_code)


class Tracer(RequestInterceptor, ResponseInterceptor):
    """Appends (label, phase) to a shared log."""

    def __init__(self, label, log):
        self.label = label
        self.log = log

    def intercept_request(self, agent, request):
        self.log.append((self.label, "request"))

    def intercept_response(self, agent, response, request):
        self.log.append((self.label, "response"))


class Exploding(RequestInterceptor):
    def intercept_request(self, agent, request):
        raise RuntimeError("rejected by interceptor")


class TestHistory:
    """Every successful request lands in history, in call order"""

    def test_history_grows_with_each_request(self, site, agent):
        urls = [f"http://example.test/{i}" for i in range(5)]
        for url in urls:
            site.route(url, body=f"<html><title>{url}</title></html>")

        pages = [agent.get(url) for url in urls]

        assert len(agent.history) == 5
        assert [p.uri for p in agent.history] == urls
        assert list(agent.history) == pages
        assert agent.history.current is pages[-1]

    def test_status_recorder_scenario(self, site, agent):
        site.route("http://example.test/a", body="<html><title>A</title></html>")
        site.route("http://example.test/b", body="<html><title>B</title></html>", status=404)
        recorder = StatusRecorder()
        agent.add_interceptor(recorder)

        agent.get("http://example.test/a")
        agent.get("http://example.test/b")

        assert recorder.statuses == [200, 404]
        assert [p.uri for p in agent.history] == ["http://example.test/a", "http://example.test/b"]
        assert [p.status_code for p in agent.history] == [200, 404]

    def test_redirect_yields_one_entry_with_final_uri(self, site, agent):
        site.route("http://example.test/old", status=302, body=b"",
                   headers={"location": "http://example.test/new"})
        site.route("http://example.test/new", body="<html><title>New</title></html>")

        page = agent.get("http://example.test/old")

        assert page.uri == "http://example.test/new"
        assert str(page.request.url) == "http://example.test/old"
        assert len(agent.history) == 1


class TestInterceptors:
    """Registration and invocation order of interceptors"""

    def test_invocation_order_in_both_phases(self, site, agent):
        site.route("http://example.test/", body="<html></html>")
        log = []
        agent.add_interceptor(Tracer("A", log))
        agent.add_interceptor(Tracer("B", log))

        agent.get("http://example.test/")

        assert log == [("A", "request"), ("B", "request"), ("A", "response"), ("B", "response")]

    def test_duplicate_registration_is_ignored(self, agent):
        recorder = StatusRecorder()
        agent.add_interceptor(recorder)
        agent.add_interceptor(recorder)
        agent.add_interceptor(HeaderInterceptor({"X-Token": "1"}))
        agent.add_interceptor(HeaderInterceptor({"X-Token": "1"}))

        assert agent.interceptors == (recorder, HeaderInterceptor({"X-Token": "1"}))

    def test_remove_unregistered_is_noop(self, agent):
        recorder = StatusRecorder()
        agent.remove_interceptor(recorder)
        agent.add_interceptor(recorder)
        agent.remove_interceptor(recorder)
        agent.remove_interceptor(recorder)

        assert agent.interceptors == ()

    def test_request_interceptor_can_inject_headers(self, site, agent):
        site.route("http://example.test/", body="<html></html>")
        agent.add_interceptor(HeaderInterceptor({"X-Trace-Id": "abc"}))

        agent.get("http://example.test/")

        assert site.last_request.headers["x-trace-id"] == "abc"

    def test_failing_interceptor_aborts_without_history(self, site, agent):
        site.route("http://example.test/", body="<html></html>")
        agent.add_interceptor(Exploding())

        with pytest.raises(RuntimeError):
            agent.get("http://example.test/")

        assert site.requests == []
        assert len(agent.history) == 0


class TestErrors:
    """Transport failures surface as agent errors, with nothing recorded"""

    def test_protocol_error(self, site, agent):
        def broken(request):
            raise httpx.RemoteProtocolError("malformed status line", request=request)

        site.route("http://example.test/", handler=broken)

        with pytest.raises(AgentProtocolError) as excinfo:
            agent.get("http://example.test/")

        assert isinstance(excinfo.value.__cause__, httpx.RemoteProtocolError)
        assert len(agent.history) == 0

    def test_connect_error(self, site, agent):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        site.route("http://example.test/", handler=unreachable)

        with pytest.raises(AgentIOError):
            agent.get("http://example.test/")
        assert len(agent.history) == 0

    def test_too_many_redirects_is_protocol_error(self, site):
        site.route("http://example.test/loop", status=302, body=b"",
                   headers={"location": "http://example.test/loop"})
        client = httpx.Client(transport=httpx.MockTransport(site), follow_redirects=True, max_redirects=3)
        agent = Agent(client)

        with pytest.raises(AgentProtocolError):
            agent.get("http://example.test/loop")
        assert len(agent.history) == 0


class TestRequests:
    """Request building: query strings, form bodies, multipart"""

    def test_get_with_parameters(self, site, agent):
        site.route("http://example.test/search", body="<html></html>")

        agent.do_request("http://example.test/search").add("q", "rust").add("tag", "a").add("tag", "b").get()

        assert site.last_request.method == "GET"
        assert site.last_request.url.params.multi_items() == [("q", "rust"), ("tag", "a"), ("tag", "b")]

    def test_get_parameters_extend_existing_query(self, site, agent):
        site.route("http://example.test/s", body="<html></html>")

        page = agent.do_request("http://example.test/s?a=1&tag=x").add("q", "x").add("tag", "y").get()

        assert site.last_request.url.params.multi_items() == [("a", "1"), ("tag", "x"), ("q", "x"), ("tag", "y")]
        assert page.uri == "http://example.test/s?a=1&tag=x&q=x&tag=y"

    def test_get_without_parameters_keeps_query(self, site, agent):
        site.route("http://example.test/s", body="<html></html>")

        agent.get("http://example.test/s?a=1")

        assert site.last_request.url.params.multi_items() == [("a", "1")]

    def test_post_is_url_encoded(self, site, agent):
        site.route("http://example.test/login", body="<html><title>Welcome</title></html>")

        page = agent.post("http://example.test/login", {"user": "me", "password": "s3cret"})

        request = site.last_request
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert parse_qsl(request.content.decode()) == [("user", "me"), ("password", "s3cret")]
        assert page.title == "Welcome"

    def test_post_with_file_is_multipart(self, site, agent, tmp_path):
        upload = tmp_path / "notes.txt"
        upload.write_bytes(b"file body")
        site.route("http://example.test/upload", body="<html></html>")

        agent.do_request("http://example.test/upload").add("title", "notes").add_file("doc", upload).post()

        request = site.last_request
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="title"' in request.content
        assert b'filename="notes.txt"' in request.content
        assert b"file body" in request.content

    def test_builder_headers(self, site, agent):
        site.route("http://example.test/", body="<html></html>")

        agent.do_request("http://example.test/").header("Referer", "http://example.test/start").get()

        assert site.last_request.headers["referer"] == "http://example.test/start"

    def test_non_html_response_is_plain_page(self, site, agent):
        site.route("http://example.test/data.json", body=b'{"ok": true}', content_type="application/json")

        page = agent.get("http://example.test/data.json")

        assert type(page) is Page
        assert not isinstance(page, HtmlPage)
        assert page.content == b'{"ok": true}'
        assert page.content_type == "application/json"
        assert len(agent.history) == 1

    def test_context_manager_closes_client(self, client):
        with Agent(client) as agent:
            assert not agent.client.is_closed
        assert client.is_closed
