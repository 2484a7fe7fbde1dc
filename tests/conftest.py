import logging

import pytest
import yaml

from extension_blocklist.config import Config, LimitsConfig
from extension_blocklist.errors import StoreTransportError
from extension_blocklist.models import ExtensionKind, ExtensionRecord
from extension_blocklist.store.base_store import ExtensionStore


def fixed(record_id, name, enabled=False):
    return ExtensionRecord(record_id, name, ExtensionKind.FIXED, enabled)


def custom(record_id, name, enabled=True):
    return ExtensionRecord(record_id, name, ExtensionKind.CUSTOM, enabled)


class FakeStore(ExtensionStore):
    """In-memory store that can be told to fail specific calls"""

    def __init__(self, records=(), logger=None):
        super().__init__(None, logger or logging.getLogger('test'))
        self.rows = {record.id: record for record in records}
        self.next_id = max(self.rows, default=0) + 1
        self.fail_ids = set()
        self.fail = set()
        self.calls = []

    def _check(self, operation):
        self.calls.append(operation)
        if operation in self.fail:
            raise StoreTransportError(f"{operation} failed")

    def list_all(self):
        self._check('list_all')
        return sorted(self.rows.values(), key=lambda record: record.name)

    def insert_many(self, names, kind, enabled):
        self._check('insert_many')
        inserted = []
        for name in names:
            record = ExtensionRecord(self.next_id, name, ExtensionKind(kind), enabled)
            self.rows[record.id] = record
            self.next_id += 1
            inserted.append(record)
        return inserted

    def update_by_id(self, record_id, fields):
        self._check('update_by_id')
        if record_id in self.fail_ids:
            raise StoreTransportError(f"update of {record_id} failed")
        fields = self.clean_fields(fields)
        record = self.rows[record_id]
        record = ExtensionRecord(
            record.id,
            fields.get('name', record.name),
            ExtensionKind(fields.get('type', record.kind)),
            fields.get('enabled', record.enabled)
        )
        self.rows[record_id] = record
        return record

    def update_bulk(self, kind, fields):
        self._check('update_bulk')
        fields = self.clean_fields(fields)
        updated = []
        for record in list(self.rows.values()):
            if record.kind == kind:
                record = ExtensionRecord(record.id, record.name, record.kind, fields['enabled'])
                self.rows[record.id] = record
                updated.append(record)
        return updated

    def delete_by_id(self, record_id):
        self._check('delete_by_id')
        self.rows.pop(record_id, None)

    def delete_where(self, kind):
        self._check('delete_where')
        self.rows = {key: record for key, record in self.rows.items() if record.kind != kind}


@pytest.fixture
def logger():
    return logging.getLogger('extension-blocklist-test')


@pytest.fixture
def limits():
    return LimitsConfig()


@pytest.fixture
def make_config(tmp_path, monkeypatch):
    """Write a config file under tmp_path and load it"""
    for name in ('FIXED_EXTENSIONS', 'STORAGE_BACKEND', 'STORAGE_PATH', 'WEB_UI_USERNAME', 'WEB_UI_PASSWORD'):
        monkeypatch.delenv(name, raising=False)

    def _make(**sections):
        data = {
            'storage': {'backend': 'json', 'path': str(tmp_path / 'extensions.json')},
            'logging': {'level': 'DEBUG', 'file': '', 'console': False},
            'security': {'session_secret': 'test-secret'},
        }
        for key, value in sections.items():
            data.setdefault(key, {}).update(value)

        config_file = tmp_path / 'config.yaml'
        config_file.write_text(yaml.safe_dump(data))
        return Config(config_file=str(config_file))

    return _make
