"""
Builds the httpx client the agent talks through and holds the small helpers
for reading response metadata (charset, content type).
Keeps network setup separate from orchestration.
"""

import codecs
from typing import Optional, Dict, Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = 'webagent/0.1'

DEFAULT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
}

HTML_TYPES = (
    'text/html',
    'application/xhtml+xml',
)


def create_client(settings: Dict[str, Any] = None, transport: httpx.BaseTransport = None) -> httpx.Client:
    """Create the session's httpx client from the `client` config section.

    Args:
        settings: Mapping with user_agent, timeout, follow_redirects, max_redirects,
                  verify_tls, max_connections, max_keepalive_connections and headers.
        transport: Optional transport override (e.g. httpx.MockTransport).
    """
    settings = settings or {}

    headers = dict(DEFAULT_HEADERS)
    headers.update(settings.get('headers') or {})
    headers['User-Agent'] = settings.get('user_agent') or DEFAULT_USER_AGENT

    kwargs = dict(
        timeout=httpx.Timeout(float(settings.get('timeout', 30.0))),
        follow_redirects=bool(settings.get('follow_redirects', True)),
        max_redirects=int(settings.get('max_redirects', 10)),
        headers=headers,
    )
    if transport is not None:
        kwargs['transport'] = transport
    else:
        kwargs['verify'] = bool(settings.get('verify_tls', True))
        kwargs['limits'] = httpx.Limits(
            max_connections=int(settings.get('max_connections', 10)),
            max_keepalive_connections=int(settings.get('max_keepalive_connections', 5)),
        )

    logger.debug("client_created",
                 user_agent=headers['User-Agent'],
                 follow_redirects=kwargs['follow_redirects'])
    return httpx.Client(**kwargs)


def media_type(content_type: Optional[str]) -> str:
    """Strip parameters from a Content-Type value: 'text/html; charset=x' -> 'text/html'."""
    if not content_type:
        return ''
    return content_type.split(';', 1)[0].strip().lower()


def is_html(content_type: Optional[str]) -> bool:
    """Responses without a content type are treated as HTML."""
    if not content_type:
        return True
    return media_type(content_type) in HTML_TYPES


def _known_codec(name: str) -> Optional[str]:
    """Return `name` unchanged if it names a text encoding, else None.

    Codecs such as base64 or rot13 are known to Python but do not decode bytes to text.
    """
    if not name:
        return None
    try:
        info = codecs.lookup(name)
    except LookupError:
        return None
    if not getattr(info, '_is_text_encoding', True):
        return None
    return name


def detect_encoding(headers, content: bytes) -> str:
    """Extract character encoding from HTTP headers or HTML content."""
    content_type = headers.get('content-type', '')
    if 'charset=' in content_type.lower():
        charset_part = content_type.lower().split('charset=')[1].split(';')[0].strip(' \'"')
        charset = _known_codec(charset_part)
        if charset:
            return charset

    if content and len(content) > 100:
        content_str = content[:1024].decode('utf-8', errors='ignore').lower()

        if 'charset=' in content_str:
            start = content_str.find('charset=') + 8
            # <meta charset="x"> quotes the value, http-equiv content does not
            while start < len(content_str) and content_str[start] in '"\' ':
                start += 1
            end = content_str.find('"', start)
            if end == -1:
                end = content_str.find("'", start)
            if end == -1:
                end = content_str.find('>', start)
            if end == -1:
                end = start + 20

            charset = _known_codec(content_str[start:end].strip(' \'">/'))
            if charset:
                return charset

    return 'utf-8'
