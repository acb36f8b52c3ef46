"""
Fluent construction of the requests the agent executes.
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Union

import httpx

from .parameters import Parameters


class RequestBuilder:
    """Collects parameters and headers for one request against `uri`.

    GET puts the parameters in the query string. POST sends them
    URL-encoded, or as multipart/form-data when any value is a file.
    Requests are built by the agent's client, so session cookies and
    default headers are applied.
    """

    def __init__(self, agent, uri: str):
        self.agent = agent
        self.uri = str(uri)
        self.parameters = Parameters()
        self.headers: Dict[str, str] = {}

    def add(self, name: str, value: Any) -> "RequestBuilder":
        self.parameters.add(name, value)
        return self

    def set(self, params: Union[Parameters, Mapping[str, Any]]) -> "RequestBuilder":
        self.parameters.update(params)
        return self

    def add_file(self, name: str, path) -> "RequestBuilder":
        self.parameters.add(name, Path(path))
        return self

    def header(self, name: str, value: str) -> "RequestBuilder":
        self.headers[name] = value
        return self

    def _query_url(self) -> httpx.URL:
        """The target URL with the parameters appended to any query it already has."""
        url = httpx.URL(self.uri)
        pairs = self.parameters.form_pairs()
        if not pairs:
            return url
        return url.copy_with(params=list(url.params.multi_items()) + pairs)

    def build(self, method: str) -> httpx.Request:
        method = method.upper()
        client = self.agent.client
        headers = self.headers or None

        if method in ("GET", "HEAD", "DELETE", "OPTIONS"):
            return client.build_request(method, self._query_url(), headers=headers)

        if self.parameters.has_file_values():
            return client.build_request(method, self.uri,
                                        data=self.parameters.form_data(),
                                        files=self.parameters.files(),
                                        headers=headers)
        return client.build_request(method, self.uri,
                                    data=self.parameters.form_data(),
                                    headers=headers)

    def get(self):
        return self.agent.request(self.build("GET"))

    def post(self):
        return self.agent.request(self.build("POST"))

    def __repr__(self):
        return f"<RequestBuilder {self.uri} {self.parameters!r}>"
