"""
Extension records and kinds
"""

from dataclasses import dataclass
from enum import Enum


class ExtensionKind(str, Enum):
    """Collection an extension belongs to (stored in the 'type' column)"""
    FIXED = 'fixed'
    CUSTOM = 'custom'


@dataclass
class ExtensionRecord:
    id: int
    name: str
    kind: ExtensionKind
    enabled: bool

    @classmethod
    def from_row(cls, row):
        """
        Build a record from a store row

        Args:
            row: Dictionary with 'id', 'name', 'type' and 'enabled' keys

        Returns:
            ExtensionRecord
        """
        return cls(
            id=int(row['id']),
            name=str(row['name']),
            kind=ExtensionKind(row.get('type', ExtensionKind.CUSTOM.value)),
            enabled=bool(row.get('enabled', False))
        )

    def to_dict(self):
        """Row representation used by the store and the JSON API"""
        return {
            'id': self.id,
            'name': self.name,
            'type': self.kind.value,
            'enabled': self.enabled
        }
