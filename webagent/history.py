"""
Chronological record of every page the agent produced.
"""

from typing import Iterator, Optional, Tuple


class History:
    """Append-only list of pages; insertion order is request order.

    Nothing is ever evicted, so memory grows with the length of the session.
    """

    def __init__(self):
        self._pages = []

    def add(self, page):
        self._pages.append(page)

    def __len__(self) -> int:
        return len(self._pages)

    def __bool__(self) -> bool:
        return bool(self._pages)

    def __iter__(self) -> Iterator:
        return iter(tuple(self._pages))

    def __getitem__(self, index):
        return self._pages[index]

    @property
    def pages(self) -> Tuple:
        return tuple(self._pages)

    @property
    def current(self) -> Optional[object]:
        """Most recent page, or None before the first request."""
        return self._pages[-1] if self._pages else None

    def back(self, steps: int = 1):
        """Return the page `steps` entries before the current one."""
        if steps < 0 or steps >= len(self._pages):
            raise IndexError(f"cannot go back {steps} page(s), history holds {len(self._pages)}")
        return self._pages[-1 - steps]

    def index(self, page) -> int:
        for i, candidate in enumerate(self._pages):
            if candidate is page:
                return i
        raise ValueError("page is not in history")

    def __repr__(self):
        return f"<History {[p.uri for p in self._pages]}>"
