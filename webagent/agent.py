"""
The agent: single entry point for HTTP exchanges and the session state that
carries across them (cookies, history, interceptors).

NOTE: an Agent is not synchronized. Use one per thread, or guard it externally.
"""

import io
import time
from pathlib import Path
from typing import Any, Mapping, Tuple, Union

import httpx
import structlog
from PIL import Image, UnidentifiedImageError

from .config import config
from .cookies import Cookies
from .errors import AgentIOError, AgentProtocolError, PreconditionError
from .history import History
from .interceptors import Interceptor, InterceptorChain
from .page import Page, create_page
from .parameters import Parameters
from .request import RequestBuilder
from .transport import create_client

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 4096

PROTOCOL_ERRORS = (
    httpx.ProtocolError,
    httpx.UnsupportedProtocol,
    httpx.TooManyRedirects,
    httpx.DecodingError,
)

IO_ERRORS = (
    httpx.TransportError,
    httpx.StreamError,
    OSError,
)


def _release(*resources):
    """Close each resource in order; a failing close never stops the next one."""
    for resource in resources:
        if resource is None:
            continue
        try:
            resource.close()
        except Exception as e:
            logger.debug("resource_close_failed", resource=type(resource).__name__, error=str(e))


class Agent:
    def __init__(self, client: httpx.Client = None, chunk_size: int = None):
        """Create a session.

        Args:
            client: httpx client to send requests through. Built from the
                    `client` config section when omitted.
            chunk_size: Bytes per read when streaming downloads.
        """
        self._client = client if client is not None else create_client(config.client)
        self._cookies = Cookies(self._client)
        self._interceptors = InterceptorChain()
        self._history = History()
        self.chunk_size = int(chunk_size or config.agent.get('chunk_size') or DEFAULT_CHUNK_SIZE)

    @property
    def client(self) -> httpx.Client:
        return self._client

    @property
    def history(self) -> History:
        return self._history

    @property
    def cookies(self) -> Cookies:
        return self._cookies

    @property
    def interceptors(self) -> Tuple[Interceptor, ...]:
        return tuple(self._interceptors)

    def add_interceptor(self, interceptor: Interceptor):
        if self._interceptors.add(interceptor):
            logger.debug("interceptor_added", interceptor=repr(interceptor))

    def remove_interceptor(self, interceptor: Interceptor):
        if self._interceptors.remove(interceptor):
            logger.debug("interceptor_removed", interceptor=repr(interceptor))

    def do_request(self, uri: str) -> RequestBuilder:
        return RequestBuilder(self, uri)

    def request(self, request: httpx.Request) -> Page:
        """Execute `request`, turn the response into a page and record it in history."""
        try:
            response = self._execute(request)
            try:
                response.read()
            finally:
                _release(response)
        except PROTOCOL_ERRORS as e:
            logger.warning("request_failed", kind="protocol", method=request.method,
                           url=str(request.url), error=str(e))
            raise AgentProtocolError(str(e)) from e
        except IO_ERRORS as e:
            logger.warning("request_failed", kind="io", method=request.method,
                           url=str(request.url), error=str(e))
            raise AgentIOError(str(e)) from e

        page = create_page(self, request, response)
        self._history.add(page)
        logger.info("request_completed",
                    method=request.method,
                    url=page.uri,
                    status=page.status_code,
                    content_type=page.content_type,
                    size=len(page.content))
        return page

    def get(self, uri: str) -> Page:
        return self.do_request(uri).get()

    def post(self, uri: str, params: Union[Parameters, Mapping[str, Any]]) -> Page:
        """POST URL-encoded, or multipart when any parameter is a file."""
        return self.do_request(uri).set(params).post()

    def idle(self, milliseconds: int):
        """Block the calling thread for at least `milliseconds`.

        Useful to throttle request rate. An interrupted sleep resumes until
        the deadline, the wait cannot be cut short.
        """
        deadline = time.monotonic() + milliseconds / 1000.0
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            try:
                time.sleep(max(0.001, remaining))
            except InterruptedError:
                logger.debug("idle_interrupted", remaining_ms=int(remaining * 1000))

    def fetch_bytes(self, uri: str) -> bytes:
        """Return the body of a GET on `uri`, read in chunk_size pieces."""
        request = self._client.build_request("GET", uri)
        response = None
        out = None
        try:
            response = self._execute(request)
            out = io.BytesIO()
            for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                out.write(chunk)
            data = out.getvalue()
        except PROTOCOL_ERRORS as e:
            raise AgentProtocolError(str(e)) from e
        except IO_ERRORS as e:
            raise AgentIOError(str(e)) from e
        finally:
            _release(out, response)

        logger.info("bytes_fetched", url=uri, size=len(data))
        return data

    def fetch_image(self, uri: str) -> Image.Image:
        """Download `uri` and decode it with Pillow."""
        data = self.fetch_bytes(uri)
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise AgentIOError(f"cannot decode image from {uri}: {e}") from e
        return image

    def fetch_to_file(self, uri: str, path: Union[str, Path]):
        """Stream the body of a GET on `uri` into a new file.

        Only one chunk is held in memory at a time.

        Raises:
            PreconditionError: If the file already exists. It is never overwritten.
        """
        path = Path(path)
        if path.exists():
            raise PreconditionError(f"File '{path}' already exists")

        request = self._client.build_request("GET", uri)
        response = None
        out = None
        written = 0
        try:
            response = self._execute(request)
            try:
                out = open(path, 'xb')
            except FileExistsError as e:
                raise PreconditionError(f"File '{path}' already exists") from e
            for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                out.write(chunk)
                written += len(chunk)
        except PROTOCOL_ERRORS as e:
            raise AgentProtocolError(str(e)) from e
        except IO_ERRORS as e:
            raise AgentIOError(str(e)) from e
        finally:
            _release(out, response)

        logger.info("file_fetched", url=uri, path=str(path), size=written)

    def _execute(self, request: httpx.Request) -> httpx.Response:
        """Run the exchange through the interceptors.

        Request-phase interceptors see the request before it is sent,
        response-phase interceptors see the response before it is handed back.
        The response is streamed; the caller reads and closes it.
        """
        self._interceptors.before_send(self, request)
        response = self._client.send(request, stream=True)
        try:
            self._interceptors.after_receive(self, response, request)
        except BaseException:
            _release(response)
            raise
        return response

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"<Agent pages={len(self._history)} cookies={len(self._cookies)} interceptors={len(self._interceptors)}>"
