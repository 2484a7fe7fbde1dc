"""
Abstract base class for extension stores
"""

from abc import ABC, abstractmethod

from extension_blocklist.models import ExtensionKind
from extension_blocklist.reconciler import normalize_name

UPDATABLE_FIELDS = ('enabled', 'name', 'type')


class ExtensionStore(ABC):
    """Abstract base class for extension persistence backends"""

    def __init__(self, config, logger):
        self.config = config
        self.logger = logger

    @abstractmethod
    def list_all(self):
        """
        Get every extension record

        Returns:
            list: ExtensionRecord list sorted by name ascending
        """
        pass

    @abstractmethod
    def insert_many(self, names, kind, enabled):
        """
        Insert one or more records of the same kind

        Args:
            names: Normalized, validated names
            kind: ExtensionKind of the new records
            enabled: Initial enabled flag

        Returns:
            list: Inserted ExtensionRecord list with store-assigned ids
        """
        pass

    @abstractmethod
    def update_by_id(self, record_id, fields):
        """
        Update fields of a single record

        Args:
            record_id: Record id
            fields: Dictionary of fields to change

        Returns:
            ExtensionRecord: Updated record
        """
        pass

    @abstractmethod
    def update_bulk(self, kind, fields):
        """
        Update fields of every record of a kind

        Returns:
            list: Updated ExtensionRecord list
        """
        pass

    @abstractmethod
    def delete_by_id(self, record_id):
        """Delete a single record"""
        pass

    @abstractmethod
    def delete_where(self, kind):
        """Delete every record of a kind"""
        pass

    @staticmethod
    def require_id(record_id):
        if not record_id:
            raise ValueError("A record id is required")
        return int(record_id)

    @staticmethod
    def clean_fields(fields):
        """
        Validate requested changes and normalize them for writing

        Args:
            fields: Dictionary of requested changes; None values are omitted

        Returns:
            dict: Non-empty dictionary of fields to write
        """
        cleaned = {key: value for key, value in (fields or {}).items() if value is not None}

        unknown = set(cleaned) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        if not cleaned:
            raise ValueError("At least one field to update is required")

        if 'name' in cleaned:
            cleaned['name'] = normalize_name(str(cleaned['name']))
        if 'type' in cleaned:
            cleaned['type'] = ExtensionKind(cleaned['type']).value
        if 'enabled' in cleaned:
            cleaned['enabled'] = bool(cleaned['enabled'])

        return cleaned
