"""
Session cookie store, a view over the httpx client's cookie jar.

Set-Cookie headers are absorbed by the client when a response arrives and the
jar attaches matching cookies (domain/path/secure/expiry) to every request the
client builds, so this class only exposes inspection and manual edits.
"""

from http.cookiejar import Cookie
from typing import Iterator, List, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


class Cookies:
    def __init__(self, client: httpx.Client):
        self._client = client

    @property
    def _jar(self):
        return self._client.cookies.jar

    def __len__(self) -> int:
        return len(self._jar)

    def __iter__(self) -> Iterator[Cookie]:
        return iter(list(self._jar))

    def __contains__(self, name) -> bool:
        return self.get(name) is not None

    def all(self) -> List[Cookie]:
        return list(self._jar)

    def get(self, name: str, domain: str = None, path: str = None) -> Optional[Cookie]:
        """Return the first cookie called `name`, optionally narrowed to a domain and path."""
        for cookie in self._jar:
            if cookie.name != name:
                continue
            if domain is not None and cookie.domain.lstrip('.') != domain.lstrip('.'):
                continue
            if path is not None and cookie.path != path:
                continue
            return cookie
        return None

    def value(self, name: str, domain: str = None) -> Optional[str]:
        cookie = self.get(name, domain=domain)
        return cookie.value if cookie is not None else None

    def add(self, name: str, value: str, domain: str = "", path: str = "/"):
        """Store a cookie by hand; an empty domain matches every host."""
        self._client.cookies.set(name, value, domain=domain, path=path)
        logger.debug("cookie_added", name=name, domain=domain, path=path)

    def remove(self, cookie: Cookie):
        """Remove one cookie. Removing a cookie the store does not hold is a no-op."""
        try:
            self._jar.clear(cookie.domain, cookie.path, cookie.name)
        except KeyError:
            return
        logger.debug("cookie_removed", name=cookie.name, domain=cookie.domain)

    def clear(self):
        self._jar.clear()

    def __repr__(self):
        return f"<Cookies {[(c.domain, c.path, c.name) for c in self._jar]}>"
