"""
webagent - a scripted, browser-like HTTP client

Issues requests through an httpx session, parses HTML responses with lxml and
exposes links and forms that navigate back through the same session.

Usage:
    from webagent import Agent

    with Agent() as agent:
        page = agent.get("https://example.com/login")
        page.form("login").submit({"user": "me", "password": "secret"})
"""

from .agent import Agent
from .cookies import Cookies
from .elements import (
    Button,
    Checkbox,
    Element,
    Field,
    Form,
    Link,
    PageElement,
    RadioButton,
    Select,
    SubmitButton,
    SubmitImage,
    TextArea,
    Upload,
)
from .errors import (
    AgentError,
    AgentIOError,
    AgentProtocolError,
    ElementNotFoundError,
    PreconditionError,
    StaleElementError,
)
from .history import History
from .interceptors import (
    HeaderInterceptor,
    Interceptor,
    InterceptorChain,
    LoggingInterceptor,
    Phase,
    RequestInterceptor,
    ResponseInterceptor,
)
from .page import HtmlPage, Page
from .parameters import Parameters
from .request import RequestBuilder

__version__ = "0.1.0"
__all__ = [
    "Agent", "Cookies", "History", "Parameters", "RequestBuilder",
    "Page", "HtmlPage",
    "PageElement", "Element", "Link", "Form", "Field", "TextArea", "Checkbox",
    "RadioButton", "Select", "Upload", "Button", "SubmitButton", "SubmitImage",
    "Interceptor", "RequestInterceptor", "ResponseInterceptor", "InterceptorChain",
    "HeaderInterceptor", "LoggingInterceptor", "Phase",
    "AgentError", "AgentIOError", "AgentProtocolError", "PreconditionError",
    "StaleElementError", "ElementNotFoundError",
]
