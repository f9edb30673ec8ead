from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping

from shoppingcart.utils.date_utils import DateUtils


@dataclass
class StoredCart:
    """
    A durable snapshot of one cart instance

    (identifier, instance) is unique: storing again replaces content and
    updated_at in place.
    """
    identifier: str
    instance: str
    content: str  # JSON array of item snapshots
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StoredCart":
        """Build from a database row mapping"""
        return cls(
            identifier=str(row["identifier"]),
            instance=row["instance"],
            content=row["content"],
            created_at=DateUtils.coerce(row["created_at"]),
            updated_at=DateUtils.coerce(row["updated_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "identifier": self.identifier,
            "instance": self.instance,
            "created_at": DateUtils.to_iso_string(self.created_at),
            "updated_at": DateUtils.to_iso_string(self.updated_at),
        }
