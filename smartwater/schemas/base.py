"""
Base schema shared by the API and the client form layer.

Fields are declared in snake_case (matching the model columns) and accepted
or emitted in camelCase. Raw form input arrives as strings, so blank values
are normalised before validation: an empty string clears an optional field
and falls back to the default for fields that have one.
"""
from datetime import date

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticUndefined


class FormSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )

    @classmethod
    def field_name(cls, key):
        """Resolve a camelCase or snake_case key to the declared field name"""
        if key in cls.model_fields:
            return key
        for name, field in cls.model_fields.items():
            if field.alias == key:
                return name
        return None

    @model_validator(mode='before')
    @classmethod
    def normalise_blank_input(cls, data):
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str) and not value.strip():
                value = None
            if value is None:
                name = cls.field_name(key)
                if name is not None:
                    field = cls.model_fields[name]
                    if field.default_factory is not None or field.default not in (None, PydanticUndefined):
                        continue
            cleaned[key] = value
        return cleaned

    def to_payload(self, fields=None):
        """JSON-ready camelCase body; limited to ``fields`` when given"""
        data = self.model_dump(mode='json', by_alias=True)
        if fields is None:
            return data
        fields_info = type(self).model_fields
        aliases = {fields_info[name].alias or name for name in fields}
        return {key: value for key, value in data.items() if key in aliases}


def ensure_order(start, end, message):
    """Cross-field check shared by every schema with a date range"""
    if isinstance(start, date) and isinstance(end, date) and end < start:
        raise ValueError(message)


def validate_create(schema_cls, body):
    """Validate a POST body; returns column values keyed by field name"""
    return schema_cls.model_validate(body or {}).model_dump()


def validate_update(schema_cls, current, changes):
    """
    Validate a PATCH body against the record it modifies.

    ``current`` is the record's camelCase representation, ``changes`` the
    request body. Invariants are checked on the merged record so a change to
    one end of a date range is compared with the stored other end. Only the
    fields present in ``changes`` are returned.
    """
    changes = changes or {}
    names = {schema_cls.field_name(key) for key in changes} - {None}
    merged = {
        key: value for key, value in (current or {}).items()
        if schema_cls.field_name(key) not in names
    }
    merged.update(changes)
    model = schema_cls.model_validate(merged)
    return {name: getattr(model, name) for name in names}


def validation_details(exc):
    """Pydantic issues trimmed to what a form needs to show per-field errors"""
    return [
        {
            'field': '.'.join(str(part) for part in issue['loc']) or '__all__',
            'message': issue['msg'],
            'type': issue['type'],
        }
        for issue in exc.errors(include_url=False, include_context=False, include_input=False)
    ]
