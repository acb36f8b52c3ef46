"""
Page elements: typed wrappers over lxml nodes that know how to navigate.

Every element keeps only a weak reference to the page it came from, so an
element never keeps a page alive on its own. Navigation (following a link,
submitting a form) goes back through the page's agent and returns a new page;
the originating page is never modified.
"""

import weakref
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

import structlog

from .errors import ElementNotFoundError, StaleElementError
from .parameters import Parameters

logger = structlog.get_logger(__name__)

FIELD_TAGS = ('input', 'select', 'textarea', 'button')


class PageElement:
    def __init__(self, page, element):
        self._page_ref = weakref.ref(page)
        self.element = element

    @property
    def page(self):
        page = self._page_ref()
        if page is None:
            raise StaleElementError(f"page owning <{self.tag}> has been discarded")
        return page

    @property
    def tag(self) -> str:
        return self.element.tag

    @property
    def text(self) -> str:
        return ' '.join(self.element.text_content().split())

    def has_attribute(self, name: str) -> bool:
        return name in self.element.attrib

    def attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.element.get(name, default)

    def do_request(self, uri: str):
        return self.page.do_request(uri)

    def __repr__(self):
        return f"<{type(self).__name__} {self.tag} {dict(self.element.attrib)!r}>"


class Element(PageElement):
    """Any node without navigation behaviour of its own."""


class Link(PageElement):
    @property
    def href(self) -> str:
        return self.attribute('href', '')

    @property
    def uri(self) -> str:
        return self.page.resolve(self.href)

    def follow(self):
        """GET the link target and return the resulting page."""
        logger.debug("link_followed", href=self.href)
        return self.page.agent.get(self.uri)


class Field(PageElement):
    """A form control with a name and a value.

    Values live on the wrapper, not in the parsed document, so editing a field
    never changes the page it was read from.
    """

    def __init__(self, form: "Form", element):
        super().__init__(form.page, element)
        self.form = form
        self._name = element.get('name')
        self._value = self._initial_value()

    def _initial_value(self):
        return self.element.get('value', '')

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, name: str):
        self._name = name

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value

    @property
    def type(self) -> str:
        return (self.element.get('type') or 'text').lower()

    @property
    def disabled(self) -> bool:
        return self.has_attribute('disabled')

    def successful_pairs(self) -> List[Tuple[str, Any]]:
        if not self._name or self.disabled:
            return []
        return [(self._name, self._value)]


class TextArea(Field):
    def _initial_value(self):
        return self.element.text or ''

    @property
    def type(self) -> str:
        return 'textarea'


class Checkbox(Field):
    def __init__(self, form, element):
        super().__init__(form, element)
        self._checked = self.has_attribute('checked')

    def _initial_value(self):
        return self.element.get('value', 'on')

    @property
    def checked(self) -> bool:
        return self._checked

    @checked.setter
    def checked(self, checked: bool):
        if checked:
            self.check()
        else:
            self.uncheck()

    def check(self):
        self._checked = True

    def uncheck(self):
        self._checked = False

    def successful_pairs(self):
        if not self._checked:
            return []
        return super().successful_pairs()


class RadioButton(Checkbox):
    def check(self):
        """Check this button and uncheck the others of the same group."""
        for field in self.form.fields():
            if isinstance(field, RadioButton) and field is not self and field.name == self.name:
                field.uncheck()
        self._checked = True


class Select(Field):
    def __init__(self, form, element):
        super().__init__(form, element)
        self._selected = [value for value, _, selected in self.options if selected]
        if not self._selected and not self.multiple and self.options:
            self._selected = [self.options[0][0]]

    def _initial_value(self):
        return None

    @property
    def type(self) -> str:
        return 'select-multiple' if self.multiple else 'select-one'

    @property
    def multiple(self) -> bool:
        return self.has_attribute('multiple')

    @property
    def options(self) -> List[Tuple[str, str, bool]]:
        """(value, label, initially selected) for every option in document order."""
        result = []
        for option in self.element.iter('option'):
            label = ' '.join(option.text_content().split())
            value = option.get('value')
            result.append((label if value is None else value, label, 'selected' in option.attrib))
        return result

    @property
    def selected(self) -> List[str]:
        return list(self._selected)

    def select(self, *values: str):
        available = [value for value, _, _ in self.options]
        for value in values:
            if value not in available:
                raise ElementNotFoundError(f"select {self.name!r} has no option {value!r}")
        if len(values) > 1 and not self.multiple:
            raise ValueError(f"select {self.name!r} accepts a single value")
        self._selected = list(values)

    @property
    def value(self):
        return self._selected[0] if self._selected else ''

    @value.setter
    def value(self, value):
        if isinstance(value, (list, tuple)):
            self.select(*value)
        else:
            self.select(value)

    def successful_pairs(self):
        if not self._name or self.disabled:
            return []
        return [(self._name, value) for value in self._selected]


class Upload(Field):
    """File input. Its value is a Path once a file has been chosen."""

    def _initial_value(self):
        return None

    def set_file(self, path):
        self._value = Path(path)

    @property
    def value(self) -> Optional[Path]:
        return self._value

    @value.setter
    def value(self, value):
        self._value = None if value is None else Path(value)

    def successful_pairs(self):
        if self._value is None:
            return []
        return super().successful_pairs()


class Button(Field):
    """Reset and plain buttons: never part of a submission."""

    @property
    def type(self) -> str:
        return (self.element.get('type') or 'submit').lower()

    def successful_pairs(self):
        return []

    def submission_pairs(self, coordinates=(0, 0)) -> List[Tuple[str, Any]]:
        return []


class SubmitButton(Button):
    def submission_pairs(self, coordinates=(0, 0)):
        if not self._name or self.disabled:
            return []
        return [(self._name, self._value)]

    def click(self):
        return self.form.submit(button=self)


class SubmitImage(Button):
    def submission_pairs(self, coordinates=(0, 0)):
        if self.disabled:
            return []
        x, y = coordinates
        prefix = f"{self._name}." if self._name else ''
        return [(f"{prefix}x", str(int(x))), (f"{prefix}y", str(int(y)))]

    def click(self, x: int = 0, y: int = 0):
        return self.form.submit(button=self, coordinates=(x, y))


def create_field(form: "Form", element) -> Field:
    tag = element.tag
    if tag == 'select':
        return Select(form, element)
    if tag == 'textarea':
        return TextArea(form, element)
    if tag == 'button':
        kind = (element.get('type') or 'submit').lower()
        return SubmitButton(form, element) if kind == 'submit' else Button(form, element)

    kind = (element.get('type') or 'text').lower()
    if kind == 'checkbox':
        return Checkbox(form, element)
    if kind == 'radio':
        return RadioButton(form, element)
    if kind == 'file':
        return Upload(form, element)
    if kind == 'submit':
        return SubmitButton(form, element)
    if kind == 'image':
        return SubmitImage(form, element)
    if kind in ('reset', 'button'):
        return Button(form, element)
    return Field(form, element)


class Form(PageElement):
    """A <form> with its controls.

    Submission collects the successful controls in document order, applies
    overrides and sends the result with the form's method. The body is
    multipart when any value is a file, URL-encoded otherwise.
    """

    def __init__(self, page, element):
        super().__init__(page, element)
        self._fields = [create_field(self, node) for node in element.iter(*FIELD_TAGS)]

    @property
    def name(self) -> Optional[str]:
        return self.attribute('name')

    @property
    def id(self) -> Optional[str]:
        return self.attribute('id')

    @property
    def method(self) -> str:
        method = (self.attribute('method') or 'GET').upper()
        return method if method in ('GET', 'POST') else 'GET'

    @property
    def action(self) -> str:
        action = (self.attribute('action') or '').strip()
        if not action:
            return self.page.uri
        return self.page.resolve(action)

    def fields(self) -> List[Field]:
        return list(self._fields)

    def fields_named(self, name: str) -> List[Field]:
        return [field for field in self._fields if field.name == name]

    def field(self, name: str) -> Field:
        fields = self.fields_named(name)
        if not fields:
            raise ElementNotFoundError(f"form has no field named {name!r}")
        return fields[0]

    def __contains__(self, name) -> bool:
        return bool(self.fields_named(name))

    def get(self, name: str, default=None):
        fields = self.fields_named(name)
        return fields[0].value if fields else default

    def __getitem__(self, name: str):
        return self.field(name).value

    def __setitem__(self, name: str, value):
        fields = self.fields_named(name)
        if not fields:
            raise ElementNotFoundError(f"form has no field named {name!r}")

        radios = [f for f in fields if isinstance(f, RadioButton)]
        if radios:
            for radio in radios:
                if radio.value == value:
                    radio.check()
                    return
            raise ElementNotFoundError(f"radio group {name!r} has no value {value!r}")

        boxes = [f for f in fields if isinstance(f, Checkbox)]
        if boxes:
            if isinstance(value, bool):
                boxes[0].checked = value
                return
            for box in boxes:
                if box.value == value:
                    box.check()
                    return
            raise ElementNotFoundError(f"checkbox {name!r} has no value {value!r}")

        fields[0].value = value

    def parameters(self, overrides: Mapping[str, Any] = None, button: Button = None,
                   coordinates: Tuple[int, int] = (0, 0)) -> Parameters:
        if button is not None and not any(button is field for field in self._fields):
            raise ElementNotFoundError("submit button does not belong to this form")

        params = Parameters()
        for field in self._fields:
            if field is button:
                pairs = button.submission_pairs(coordinates)
            else:
                pairs = field.successful_pairs()
            for name, value in pairs:
                params.add(name, value)

        for name, value in (overrides or {}).items():
            params.set(name, value)
        return params

    def _target(self) -> str:
        scheme, netloc, path, query, _ = urlsplit(self.action)
        if self.method == 'GET':
            query = ''
        return urlunsplit((scheme, netloc, path, query, ''))

    def submit(self, overrides: Mapping[str, Any] = None, button: Button = None,
               coordinates: Tuple[int, int] = (0, 0)):
        """Submit the form and return the resulting page.

        Args:
            overrides: Values replacing (or adding) named parameters for this submission only.
            button: Submit button or image that triggered the submission, if any.
            coordinates: Click position reported for an image button.
        """
        params = self.parameters(overrides, button, coordinates)
        target = self._target()
        logger.debug("form_submitted", method=self.method, action=target, fields=params.names())

        builder = self.page.agent.do_request(target).set(params)
        if self.method == 'POST':
            return builder.post()
        return builder.get()
