"""
Ordered, multi-valued request parameters.

A value that is os.PathLike is a file value and switches POST bodies to
multipart encoding.
"""

import os
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple, Union


def is_file_value(value) -> bool:
    return isinstance(value, os.PathLike)


class Parameters:
    def __init__(self, initial: Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None] = None):
        self._values: Dict[str, List[Any]] = {}
        if initial is not None:
            self.update(initial)

    def add(self, name: str, value) -> "Parameters":
        self._values.setdefault(name, []).append(value)
        return self

    def set(self, name: str, value) -> "Parameters":
        """Replace every value of `name`; a list or tuple sets several values."""
        if isinstance(value, (list, tuple)):
            self._values[name] = list(value)
        else:
            self._values[name] = [value]
        return self

    def update(self, other: Union["Parameters", Mapping[str, Any], Iterable[Tuple[str, Any]]]):
        """Append the values of `other`. Mappings may hold lists for repeated names."""
        if isinstance(other, Parameters):
            pairs = list(other)
        elif isinstance(other, Mapping):
            pairs = []
            for name, value in other.items():
                if isinstance(value, (list, tuple)):
                    pairs.extend((name, v) for v in value)
                else:
                    pairs.append((name, value))
        else:
            pairs = list(other)
        for name, value in pairs:
            self.add(name, value)
        return self

    def remove(self, name: str):
        self._values.pop(name, None)

    def get(self, name: str, default=None):
        values = self._values.get(name)
        return values[0] if values else default

    def get_all(self, name: str) -> List[Any]:
        return list(self._values.get(name, ()))

    def names(self) -> List[str]:
        return list(self._values)

    def __contains__(self, name) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        for name, values in self._values.items():
            for value in values:
                yield name, value

    def __len__(self) -> int:
        return sum(len(values) for values in self._values.values())

    def __eq__(self, other):
        if isinstance(other, Parameters):
            return self._values == other._values
        return NotImplemented

    def has_file_values(self) -> bool:
        return any(is_file_value(value) for _, value in self)

    def to_dict(self) -> Dict[str, Any]:
        """Single-valued names map to their value, repeated names to a list."""
        return {name: values[0] if len(values) == 1 else list(values)
                for name, values in self._values.items()}

    def form_pairs(self) -> List[Tuple[str, str]]:
        """Non-file values as (name, text) pairs, in insertion order."""
        return [(name, '' if value is None else str(value))
                for name, value in self if not is_file_value(value)]

    def form_data(self) -> Dict[str, Union[str, List[str]]]:
        data: Dict[str, Union[str, List[str]]] = {}
        for name, value in self.form_pairs():
            if name in data:
                existing = data[name]
                data[name] = (existing if isinstance(existing, list) else [existing]) + [value]
            else:
                data[name] = value
        return data

    def files(self) -> List[Tuple[str, Tuple[str, bytes]]]:
        """File values read into memory, in the shape httpx expects for `files=`."""
        result = []
        for name, value in self:
            if is_file_value(value):
                path = Path(value)
                result.append((name, (path.name, path.read_bytes())))
        return result

    def __repr__(self):
        return f"Parameters({list(self)!r})"
