"""
Pages materialized from HTTP responses.
"""

import codecs
from typing import List, Optional
from urllib.parse import urljoin

import httpx
import lxml.html
import structlog
from lxml import etree

from .elements import Element, FIELD_TAGS, Form, Link, PageElement
from .errors import ElementNotFoundError
from .transport import detect_encoding, is_html, media_type

logger = structlog.get_logger(__name__)

EMPTY_DOCUMENT = b"<html><head></head><body></body></html>"


class Page:
    """One fetched resource: the request that produced it, the response and its body.

    A page is never modified after creation.
    """

    def __init__(self, agent, request: httpx.Request, response: httpx.Response):
        self._agent = agent
        self._request = request
        self._response = response
        self._content = response.content
        self._charset = detect_encoding(response.headers, self._content)

    @property
    def agent(self):
        return self._agent

    @property
    def request(self) -> httpx.Request:
        return self._request

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def uri(self) -> str:
        """Final URL of the exchange, after redirects."""
        return str(self._response.url)

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def content_type(self) -> str:
        return media_type(self._response.headers.get('content-type'))

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def text(self) -> str:
        return self._content.decode(self._charset, errors='replace')

    def resolve(self, href: str) -> str:
        return urljoin(self.uri, href)

    def do_request(self, uri: str):
        """Start a request against `uri`, resolved relative to this page."""
        return self._agent.do_request(self.resolve(uri))

    def __repr__(self):
        return f"<{type(self).__name__} {self.status_code} {self.uri}>"


def html_parser(charset: str) -> lxml.html.HTMLParser:
    """An HTML parser for `charset`, falling back to utf-8 when libxml2 does not know it."""
    candidates = [charset]
    try:
        candidates.append(codecs.lookup(charset).name)
    except LookupError:
        pass
    for name in candidates:
        try:
            return lxml.html.HTMLParser(encoding=name)
        except LookupError:
            continue
    logger.debug("charset_unsupported", charset=charset)
    return lxml.html.HTMLParser(encoding='utf-8')


def parse_document(content: bytes, charset: str, url: str):
    """Parse `content` into an lxml tree; an empty body yields an empty document."""
    parser = html_parser(charset)
    try:
        return lxml.html.document_fromstring(content, parser=parser, base_url=url)
    except (etree.ParserError, etree.XMLSyntaxError):
        logger.debug("empty_document", url=url)
        return lxml.html.document_fromstring(EMPTY_DOCUMENT, base_url=url)


class HtmlPage(Page):
    """A page whose body is an HTML document.

    Links and forms are wrapped once and cached, so values typed into a form's
    fields stay in place across lookups until the form is submitted.
    """

    def __init__(self, agent, request, response):
        super().__init__(agent, request, response)
        self._document = parse_document(self._content, self._charset, self.uri)
        self._links: Optional[List[Link]] = None
        self._forms: Optional[List[Form]] = None

    @property
    def document(self):
        return self._document

    @property
    def title(self) -> str:
        return ' '.join((self._document.findtext('.//title') or '').split())

    @property
    def base_uri(self) -> str:
        base = self._document.find('.//base[@href]')
        if base is None:
            return self.uri
        return urljoin(self.uri, base.get('href').strip())

    def resolve(self, href: str) -> str:
        return urljoin(self.base_uri, (href or '').strip())

    def links(self) -> List[Link]:
        if self._links is None:
            self._links = [Link(self, node) for node in self._document.iter('a', 'area')
                           if node.get('href') is not None]
        return list(self._links)

    def find_link(self, text: str = None, id: str = None) -> Optional[Link]:
        """First link whose visible text (whitespace-normalized) or id matches."""
        wanted = ' '.join(text.split()) if text is not None else None
        for link in self.links():
            if wanted is not None and link.text != wanted:
                continue
            if id is not None and link.attribute('id') != id:
                continue
            return link
        return None

    def forms(self) -> List[Form]:
        if self._forms is None:
            self._forms = [Form(self, node) for node in self._document.iter('form')]
        return list(self._forms)

    def form(self, name_or_id: str) -> Form:
        for form in self.forms():
            if name_or_id in (form.name, form.id):
                return form
        raise ElementNotFoundError(f"no form named {name_or_id!r} on {self.uri}")

    def _wrap(self, node) -> PageElement:
        tag = node.tag
        if tag == 'form':
            for form in self.forms():
                if form.element is node:
                    return form
        elif tag in ('a', 'area') and node.get('href') is not None:
            for link in self.links():
                if link.element is node:
                    return link
        elif tag in FIELD_TAGS:
            for form in self.forms():
                for field in form.fields():
                    if field.element is node:
                        return field
        return Element(self, node)

    def find_all(self, selector: str) -> List[PageElement]:
        """All elements matching a CSS selector, in document order."""
        return [self._wrap(node) for node in self._document.cssselect(selector)]

    def find(self, selector: str) -> Optional[PageElement]:
        matches = self._document.cssselect(selector)
        return self._wrap(matches[0]) if matches else None

    def xpath(self, expression: str) -> List[PageElement]:
        """Elements selected by an XPath expression; text and attribute results are skipped."""
        return [self._wrap(node) for node in self._document.xpath(expression)
                if isinstance(node, etree.ElementBase) and isinstance(node.tag, str)]


def create_page(agent, request: httpx.Request, response: httpx.Response) -> Page:
    if is_html(response.headers.get('content-type')):
        return HtmlPage(agent, request, response)
    return Page(agent, request, response)
