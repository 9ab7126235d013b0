"""Helpers for :mod:`tracker.controllers`."""

from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import date

import dateutil.parser
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest
from wtforms import Field, Form
from wtforms.validators import ValidationError

ResponseData = Tuple[dict, int, dict]

LETTERS = r'^[A-Za-z\s]+$'
DIGITS = r'^[0-9]+$'


class ValidationFailed(BadRequest):
    """Request data did not pass validation."""

    def __init__(self, errors: Dict[str, str]) -> None:
        """Use the only message as the description, if there is only one."""
        self.errors = errors
        if len(errors) == 1:
            description = next(iter(errors.values()))
        else:
            description = 'Validation failed'
        super(ValidationFailed, self).__init__(description)


class ISODateField(Field):
    """A date given as an ISO 8601 string."""

    def _value(self) -> str:
        return self.data.isoformat() if self.data else ''

    def process_formdata(self, valuelist: List[str]) -> None:
        """Parse the submitted value; blank values leave no date."""
        self.data = None
        if not valuelist or not valuelist[0].strip():
            return
        try:
            self.data = dateutil.parser.isoparse(valuelist[0].strip()).date()
        except ValueError as e:
            raise ValueError(self.gettext('Not a valid date value.')) from e


class InPast(object):
    """The date must be before today."""

    def __init__(self, message: Optional[str] = None,
                 inclusive: bool = False) -> None:
        self.message = message
        self.inclusive = inclusive

    def __call__(self, form: Form, field: Field) -> None:
        if field.data is None:
            return
        today = date.today()
        if field.data > today or (field.data == today and not self.inclusive):
            raise ValidationError(self.message or 'Date must be in the past')


def strip(value: Any) -> Any:
    """Strip surrounding whitespace from submitted strings."""
    return value.strip() if isinstance(value, str) else value


def to_multidict(payload: Union[None, dict, MultiDict]) -> MultiDict:
    """
    Coerce request data to the :class:`MultiDict` expected by WTForms.

    ``None`` values are dropped and everything else is stringified, so JSON
    bodies and form posts validate the same way.
    """
    if isinstance(payload, MultiDict):
        return payload
    if not payload:
        return MultiDict()
    if not isinstance(payload, dict):
        raise BadRequest('Request body must be a JSON object')
    return MultiDict([(key, str(value)) for key, value in payload.items()
                      if value is not None])


def validate(form: Form) -> None:
    """Raise :class:`ValidationFailed` with one message per invalid field."""
    if not form.validate():
        raise ValidationFailed({name: messages[0] for name, messages
                                in form.errors.items() if messages})


def response(data: Any = None, message: str = 'Success') -> dict:
    """Wrap response data in the standard envelope."""
    return {'success': True, 'message': message, 'data': data}


def with_alias(form_data: MultiDict, alias: str, name: str) -> MultiDict:
    """Accept ``alias`` as another name for the field ``name``."""
    if name not in form_data and alias in form_data:
        form_data = MultiDict(form_data)
        form_data[name] = form_data[alias]
    return form_data
