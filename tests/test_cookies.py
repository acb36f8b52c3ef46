"""
Tests for the session cookie store
"""
import httpx


def echo_cookie(request):
    return httpx.Response(200, content=b"<html></html>",
                          headers={"content-type": "text/html"})


class TestCookies:
    def test_cookie_returns_only_to_its_host(self, site, agent):
        site.route("http://a.test/login", body="<html></html>",
                   headers={"set-cookie": "session=xyz; Path=/"})
        site.route("http://a.test/home", handler=echo_cookie)
        site.route("http://b.test/home", handler=echo_cookie)

        agent.get("http://a.test/login")
        agent.get("http://a.test/home")
        a_request = site.last_request
        agent.get("http://b.test/home")
        b_request = site.last_request

        assert a_request.headers.get("cookie") == "session=xyz"
        assert "cookie" not in b_request.headers
        assert len(agent.cookies) == 1
        assert agent.cookies.value("session") == "xyz"
        assert agent.cookies.get("session", domain="a.test").path == "/"
        assert agent.cookies.get("session", domain="b.test") is None

    def test_path_scoped_cookie(self, site, agent):
        site.route("http://a.test/app/login", body="<html></html>",
                   headers={"set-cookie": "token=t1; Path=/app"})
        site.route("http://a.test/app/data", handler=echo_cookie)
        site.route("http://a.test/other", handler=echo_cookie)

        agent.get("http://a.test/app/login")
        agent.get("http://a.test/app/data")
        assert site.last_request.headers.get("cookie") == "token=t1"
        agent.get("http://a.test/other")
        assert "cookie" not in site.last_request.headers

    def test_manual_add_and_remove(self, site, agent):
        site.route("http://a.test/", handler=echo_cookie)

        agent.cookies.add("lang", "en", domain="a.test")
        assert "lang" in agent.cookies
        agent.get("http://a.test/")
        assert site.last_request.headers.get("cookie") == "lang=en"

        agent.cookies.remove(agent.cookies.get("lang"))
        agent.get("http://a.test/")
        assert "cookie" not in site.last_request.headers
        assert len(agent.cookies) == 0

    def test_remove_unknown_cookie_is_noop(self, agent):
        agent.cookies.add("lang", "en", domain="a.test")
        cookie = agent.cookies.get("lang")
        agent.cookies.remove(cookie)

        agent.cookies.remove(cookie)

        assert agent.cookies.all() == []

    def test_clear(self, agent):
        agent.cookies.add("a", "1", domain="a.test")
        agent.cookies.add("b", "2", domain="b.test")

        agent.cookies.clear()

        assert len(agent.cookies) == 0
        assert list(agent.cookies) == []

    def test_secure_cookie_stays_on_https(self, site, agent):
        site.route("https://a.test/login", body="<html></html>",
                   headers={"set-cookie": "sid=s1; Path=/; Secure"})
        site.route("https://a.test/home", handler=echo_cookie)
        site.route("http://a.test/home", handler=echo_cookie)

        agent.get("https://a.test/login")
        agent.get("http://a.test/home")
        assert "cookie" not in site.last_request.headers
        agent.get("https://a.test/home")
        assert site.last_request.headers.get("cookie") == "sid=s1"

    def test_zero_max_age_removes_cookie(self, site, agent):
        site.route("http://a.test/login", body="<html></html>",
                   headers={"set-cookie": "sid=s1; Path=/"})
        site.route("http://a.test/logout", body="<html></html>",
                   headers={"set-cookie": "sid=gone; Path=/; Max-Age=0"})
        site.route("http://a.test/home", handler=echo_cookie)

        agent.get("http://a.test/login")
        assert agent.cookies.value("sid") == "s1"
        agent.get("http://a.test/logout")
        agent.get("http://a.test/home")

        assert "sid" not in agent.cookies
        assert "cookie" not in site.last_request.headers

    def test_expired_cookie_is_never_attached(self, site, agent):
        site.route("http://a.test/old", body="<html></html>",
                   headers={"set-cookie": "sid=s1; Path=/; Expires=Thu, 01 Jan 1970 00:00:00 GMT"})
        site.route("http://a.test/home", handler=echo_cookie)

        agent.get("http://a.test/old")
        agent.get("http://a.test/home")

        assert len(agent.cookies) == 0
        assert "cookie" not in site.last_request.headers

    def test_cookie_without_domain_reaches_every_host(self, site, agent):
        site.route("http://a.test/", handler=echo_cookie)
        site.route("http://b.test/", handler=echo_cookie)

        agent.cookies.add("lang", "en")

        agent.get("http://a.test/")
        assert site.last_request.headers.get("cookie") == "lang=en"
        agent.get("http://b.test/")
        assert site.last_request.headers.get("cookie") == "lang=en"
