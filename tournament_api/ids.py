"""ObjectId-shaped identifiers and the path convertor that matches them."""

import re
import secrets
import time

from starlette.convertors import Convertor, register_url_convertor

OBJECT_ID_PATTERN = "[a-fA-F0-9]{24}"
_OBJECT_ID_RE = re.compile(f"^{OBJECT_ID_PATTERN}$")


def new_object_id() -> str:
    """24 hex chars: a 4-byte timestamp followed by 8 random bytes."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


def is_object_id(value: str) -> bool:
    return bool(_OBJECT_ID_RE.match(value or ""))


class ObjectIdConvertor(Convertor):
    regex = OBJECT_ID_PATTERN

    def convert(self, value: str) -> str:
        return value.lower()

    def to_string(self, value: str) -> str:
        return str(value)


register_url_convertor("objectid", ObjectIdConvertor())
