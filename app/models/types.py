"""
models/types.py

Column types shared by the models.

List-valued fields (certificate URLs, equipment image URLs, location aliases)
are JSON columns. The dialect does the serialization; JSONList only makes sure
a missing value is stored and read back as an empty list, never as null.
"""

from sqlalchemy.types import JSON, TypeDecorator


class JSONList(TypeDecorator):
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return list(value)

    def process_result_value(self, value, dialect):
        return value if isinstance(value, list) else []


def enum_values(enum_cls):
    """Persist enum *values* ("on-hire") instead of member names ("ON_HIRE")."""
    return [member.value for member in enum_cls]
