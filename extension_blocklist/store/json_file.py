"""
Local JSON file extension store
"""

import json
import os
import threading

from extension_blocklist.errors import RecordNotFound, StoreConstraintError, StoreError
from extension_blocklist.models import ExtensionKind, ExtensionRecord
from extension_blocklist.store.base_store import ExtensionStore


class JsonFileStore(ExtensionStore):
    """
    Extension store persisted to a single JSON file

    Every write builds the new row list on a copy and only replaces the
    in-memory state once the file has been written.
    """

    def __init__(self, config, logger):
        super().__init__(config, logger)
        self.lock = threading.Lock()
        self.path = config.path
        self.next_id = 1
        self.rows = []

        if os.path.exists(self.path):
            self._load()
        else:
            self._seed(config.fixed_extensions)

    def _seed(self, fixed_extensions):
        """Create the file with the fixed extensions, all disabled"""
        with self.lock:
            rows, next_id = self._new_rows(fixed_extensions, ExtensionKind.FIXED, False, self.next_id)
            self._commit(self.rows + rows, next_id)

        self.logger.info(f"Created extension store {os.path.abspath(self.path)} "
                         f"with {len(self.rows)} fixed extensions")

    def _load(self):
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error loading extensions from {self.path}: {str(e)}")
            raise StoreError(f"Could not read extension store: {str(e)}") from e

        self.rows = data.get('extensions', [])
        self.next_id = data.get('next_id', max((row['id'] for row in self.rows), default=0) + 1)

    def _save(self, rows, next_id):
        """Write the file atomically"""
        data = {
            'next_id': next_id,
            'extensions': rows
        }

        try:
            store_dir = os.path.dirname(self.path)
            if store_dir:
                os.makedirs(store_dir, exist_ok=True)

            temp_file = f"{self.path}.tmp"
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_file, self.path)
        except OSError as e:
            self.logger.error(f"Error saving extensions to {self.path}: {str(e)}")
            raise StoreError(f"Could not write extension store: {str(e)}") from e

    def _commit(self, rows, next_id=None):
        """Write rows to disk, then make them the current state"""
        if next_id is None:
            next_id = self.next_id
        self._save(rows, next_id)
        self.rows = rows
        self.next_id = next_id

    @staticmethod
    def _new_rows(names, kind, enabled, next_id):
        """
        Build rows for names with consecutive ids

        Returns:
            tuple: (new rows, next free id)
        """
        rows = []
        for name in names:
            rows.append({
                'id': next_id,
                'name': name,
                'type': ExtensionKind(kind).value,
                'enabled': bool(enabled)
            })
            next_id += 1
        return rows, next_id

    def _find(self, record_id):
        for row in self.rows:
            if row['id'] == record_id:
                return row
        raise RecordNotFound(f"Extension {record_id} not found")

    def _check_unique(self, name, kind, exclude_id=None):
        for row in self.rows:
            if (row['type'] == kind and row['name'].lower() == name.lower()
                    and row['id'] != exclude_id):
                raise StoreConstraintError(f"Duplicate {kind} extension: {name}")

    def list_all(self):
        with self.lock:
            rows = sorted(self.rows, key=lambda row: row['name'])
            return [ExtensionRecord.from_row(row) for row in rows]

    def insert_many(self, names, kind, enabled):
        kind = ExtensionKind(kind)

        with self.lock:
            seen = set()
            for name in names:
                if name.lower() in seen:
                    raise StoreConstraintError(f"Duplicate {kind.value} extension: {name}")
                seen.add(name.lower())
                self._check_unique(name, kind.value)

            inserted, next_id = self._new_rows(names, kind, enabled, self.next_id)
            self._commit(self.rows + inserted, next_id)

        self.logger.info(f"Inserted {len(inserted)} {kind.value} extensions: {', '.join(names)}")
        return [ExtensionRecord.from_row(row) for row in inserted]

    def update_by_id(self, record_id, fields):
        record_id = self.require_id(record_id)
        fields = self.clean_fields(fields)

        with self.lock:
            row = self._find(record_id)
            if 'name' in fields or 'type' in fields:
                self._check_unique(fields.get('name', row['name']),
                                   fields.get('type', row['type']),
                                   exclude_id=record_id)
            updated = dict(row, **fields)
            self._commit([updated if item['id'] == record_id else item for item in self.rows])
            record = ExtensionRecord.from_row(updated)

        self.logger.debug(f"Updated extension {record_id}: {fields}")
        return record

    def update_bulk(self, kind, fields):
        kind = ExtensionKind(kind)
        fields = self.clean_fields(fields)
        if 'name' in fields:
            raise ValueError("Names cannot be updated in bulk")

        with self.lock:
            rows = [dict(row, **fields) if row['type'] == kind.value else row for row in self.rows]
            self._commit(rows)
            updated = [ExtensionRecord.from_row(row) for row in rows if row['type'] == kind.value]

        self.logger.info(f"Updated {len(updated)} {kind.value} extensions: {fields}")
        return updated

    def delete_by_id(self, record_id):
        record_id = self.require_id(record_id)

        with self.lock:
            remaining = [row for row in self.rows if row['id'] != record_id]
            if len(remaining) == len(self.rows):
                self.logger.debug(f"Extension {record_id} already absent")
                return
            self._commit(remaining)

        self.logger.info(f"Deleted extension {record_id}")

    def delete_where(self, kind):
        kind = ExtensionKind(kind)

        with self.lock:
            before = len(self.rows)
            self._commit([row for row in self.rows if row['type'] != kind.value])

        self.logger.info(f"Deleted {before - len(self.rows)} {kind.value} extensions")
