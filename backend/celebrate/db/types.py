"""
Column types shared by the models.
"""

import json

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


class JSONList(TypeDecorator):
    """A list of strings stored as JSON text.

    Unparseable or non-list values read back as an empty list.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return json.dumps(list(value or []))

    def process_result_value(self, value, dialect):
        if not value:
            return []
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            return []
        return [str(item) for item in parsed] if isinstance(parsed, list) else []
