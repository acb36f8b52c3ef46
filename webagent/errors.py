"""
Error types raised by the agent and its page elements.
"""


class AgentError(Exception):
    """Base class for every failure surfaced by webagent."""


class AgentProtocolError(AgentError):
    """The transport reported an HTTP protocol violation."""


class AgentIOError(AgentError):
    """Connectivity, stream or file failure during an exchange."""


class PreconditionError(AgentError, ValueError):
    """A call was made in a state that does not allow it (e.g. destination file exists)."""


class StaleElementError(AgentError):
    """The page owning an element is gone."""


class ElementNotFoundError(AgentError, LookupError):
    """A named form, field or option does not exist on the page."""
