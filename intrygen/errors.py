from typing import Mapping, Sequence


class schema_error(ValueError):
    """Malformed intrinsic database record."""


class unmapped_type(schema_error):
    def __init__(self, *raw: str, records: Mapping[str, Sequence[str]] | None = None):
        users = records or {}
        super().__init__('unmapped type: ' + ', '.join(
            repr(t) + (f' (in {", ".join(users[t][:3])})' if users.get(t) else '') for t in raw))
        self.raw = raw
        self.records = users


class consistency_error(AssertionError):
    """The generated artifacts for an intrinsic would disagree."""
