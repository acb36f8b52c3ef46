"""
Interceptor pipeline: observers invoked around every HTTP exchange.

An interceptor declares the phase(s) it takes part in through its class.
RequestInterceptor subclasses see outgoing requests, ResponseInterceptor
subclasses see incoming responses, and a class deriving from both is called
once in each phase. The chain calls observers in registration order in both
phases and ignores their return values.
"""

import enum
from typing import FrozenSet, Iterable, Iterator, List, Mapping

import httpx
import structlog

logger = structlog.get_logger(__name__)


class Phase(enum.Enum):
    REQUEST = "request"
    RESPONSE = "response"


class Interceptor:
    phases: FrozenSet[Phase] = frozenset()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        declared = set(cls.__dict__.get('phases', ()))
        for base in cls.__mro__[1:]:
            declared.update(getattr(base, 'phases', ()))
        cls.phases = frozenset(declared)

    def participates_in(self, phase: Phase) -> bool:
        return phase in self.phases


class RequestInterceptor(Interceptor):
    phases = frozenset({Phase.REQUEST})

    def intercept_request(self, agent, request: httpx.Request):
        raise NotImplementedError


class ResponseInterceptor(Interceptor):
    phases = frozenset({Phase.RESPONSE})

    def intercept_response(self, agent, response: httpx.Response, request: httpx.Request):
        raise NotImplementedError


class InterceptorChain:
    """Ordered, duplicate-free list of interceptors owned by one agent."""

    def __init__(self, interceptors: Iterable[Interceptor] = ()):
        self._interceptors: List[Interceptor] = []
        for interceptor in interceptors:
            self.add(interceptor)

    def add(self, interceptor: Interceptor) -> bool:
        """Register an interceptor; returns False when an equal one is already present."""
        if interceptor in self._interceptors:
            return False
        self._interceptors.append(interceptor)
        return True

    def remove(self, interceptor: Interceptor) -> bool:
        if interceptor not in self._interceptors:
            return False
        self._interceptors.remove(interceptor)
        return True

    def __iter__(self) -> Iterator[Interceptor]:
        return iter(tuple(self._interceptors))

    def __len__(self) -> int:
        return len(self._interceptors)

    def __contains__(self, interceptor) -> bool:
        return interceptor in self._interceptors

    def for_phase(self, phase: Phase) -> List[Interceptor]:
        return [i for i in self._interceptors if i.participates_in(phase)]

    def before_send(self, agent, request: httpx.Request):
        for interceptor in self.for_phase(Phase.REQUEST):
            interceptor.intercept_request(agent, request)

    def after_receive(self, agent, response: httpx.Response, request: httpx.Request):
        for interceptor in self.for_phase(Phase.RESPONSE):
            interceptor.intercept_response(agent, response, request)


class HeaderInterceptor(RequestInterceptor):
    """Sets a fixed group of headers on every outgoing request."""

    def __init__(self, headers: Mapping[str, str]):
        self.headers = dict(headers)

    def intercept_request(self, agent, request):
        for name, value in self.headers.items():
            request.headers[name] = value

    def __eq__(self, other):
        if not isinstance(other, HeaderInterceptor):
            return NotImplemented
        return self.headers == other.headers

    def __hash__(self):
        return hash(frozenset(self.headers.items()))

    def __repr__(self):
        return f"HeaderInterceptor({self.headers!r})"


class LoggingInterceptor(RequestInterceptor, ResponseInterceptor):
    """Logs each exchange: the outgoing request, then the response status."""

    def intercept_request(self, agent, request):
        logger.info("request_sent", method=request.method, url=str(request.url))

    def intercept_response(self, agent, response, request):
        logger.info("response_received",
                    method=request.method,
                    url=str(request.url),
                    status=response.status_code,
                    content_type=response.headers.get('content-type'))
