"""
Form state backed by the shared validation schemas.

Values are kept as the user typed them (strings, camelCase keys) and only
coerced when the form is validated, so the schema decides what "7.4" or
"2024-05-01" means and an empty box clears an optional field.
"""
import logging

from pydantic import ValidationError

from smartwater.schemas.base import validation_details

logger = logging.getLogger(__name__)


class Form:

    def __init__(self, schema, initial=None):
        self.schema = schema
        self.initial = dict(initial or {})
        self.values = dict(self.initial)
        self.errors = {}
        self.model = None

    @classmethod
    def from_record(cls, schema, record):
        """Prefill from an API record, keeping only the keys the schema knows"""
        known = {}
        for key, value in (record or {}).items():
            name = schema.field_name(key)
            if name is not None:
                known[schema.model_fields[name].alias or name] = value
        return cls(schema, known)

    def set(self, key, value):
        self.values[key] = value
        self.errors.pop(key, None)
        self.model = None

    def update(self, values):
        for key, value in values.items():
            self.set(key, value)

    def reset(self):
        self.values = dict(self.initial)
        self.errors = {}
        self.model = None

    @property
    def is_valid(self):
        return not self.errors

    def validate(self):
        try:
            self.model = self.schema.model_validate(self.values)
        except ValidationError as e:
            self.model = None
            self.errors = {}
            for issue in validation_details(e):
                self.errors.setdefault(issue['field'], issue['message'])
            return False
        self.errors = {}
        return True

    def payload(self):
        return self.model.to_payload() if self.model is not None else None

    def changed_fields(self, original=None):
        """camelCase body holding only the fields whose value differs from ``original``"""
        if self.model is None and not self.validate():
            return None
        original = self.initial if original is None else original
        payload = self.model.to_payload()
        return {key: value for key, value in payload.items()
                if original.get(key) != value}

    def submit(self, handler, changed_only=False, original=None):
        """
        Validate, then pass the payload to ``handler``.

        An invalid form never reaches the handler. Returns the handler's
        result, or None when validation failed.
        """
        if not self.validate():
            logger.debug(f"{self.schema.__name__} rejected: {self.errors}")
            return None
        payload = self.changed_fields(original) if changed_only else self.payload()
        return handler(payload)
