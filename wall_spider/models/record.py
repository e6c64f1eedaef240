"""Normalized output record."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Record:
    """
    Uniform record produced from one raw item, whatever its node type.

    ``created_time`` and ``readable_time`` always come from the same parsed
    instant.
    """

    id: str
    message: str
    by: str
    created_time: int
    readable_time: str

    def to_dict(self) -> Dict[str, Any]:
        """Return the record in its wire shape."""
        return {
            "id": self.id,
            "message": self.message,
            "by": self.by,
            "createdTime": self.created_time,
            "readableTime": self.readable_time,
        }
