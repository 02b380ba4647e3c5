import enum
import typing as t

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.type_api import TypeDecorator
from sqlalchemy.types import Enum, JSON, String

from stagegate.model.id import ShortUUIDKey

# JSONB on PostgreSQL, JSON text elsewhere (the test suite runs on SQLite)
PortableJSON = JSON().with_variant(JSONB(), "postgresql")


class ShortUUIDKeyType(TypeDecorator[ShortUUIDKey]):
    """Stores only the 22-character shortuuid; the prefix is restored on load."""

    impl = String
    cache_ok = True

    def __init__(self, key_type: type[ShortUUIDKey]):
        self.key_type = key_type
        super().__init__(22)  # length of shortuuid

    def process_bind_param(self, value: ShortUUIDKey | str | None, dialect: Dialect) -> str | None:
        if value is None:
            return value
        if not isinstance(value, self.key_type):
            value = self.key_type(value)
        return value.key

    def process_result_value(self, value: str | None, dialect: Dialect) -> ShortUUIDKey | None:
        if value is not None:
            value = self.key_type(key=value)
        return value


class ValueEnumMapper(object):
    """Map any enum.Enum annotation to a VARCHAR holding the member's value."""

    @staticmethod
    def values_callable(en: type[enum.Enum]) -> list[t.Any]:
        return [e.value for e in en]

    def _resolve_for_python_type(
        self, python_type: type[t.Any], matched_on: t.Any, matched_on_flattened: t.Any
    ) -> Enum | None:
        return Enum(
            python_type,
            values_callable=self.values_callable,
            native_enum=False,
            length=32,
            validate_strings=True,
        )
