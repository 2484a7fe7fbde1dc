"""
Extension settings state and persistence orchestration
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import List

from extension_blocklist.errors import ExtensionNotFound, SettingsError, StoreError
from extension_blocklist.models import ExtensionKind, ExtensionRecord
from extension_blocklist.reconciler import Rejected, find_invalid_chars, find_too_long, reconcile

GENERIC_ERROR_MESSAGE = 'Failed to save changes.'


@dataclass
class AddOutcome:
    enabled_fixed_ids: List[int] = field(default_factory=list)
    failed_fixed_ids: List[int] = field(default_factory=list)
    created: List[ExtensionRecord] = field(default_factory=list)
    dropped_names: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'enabled_fixed_ids': self.enabled_fixed_ids,
            'failed_fixed_ids': self.failed_fixed_ids,
            'created': [record.to_dict() for record in self.created],
            'dropped_names': self.dropped_names
        }


def _sort_key(record):
    return record.name


class ExtensionSettings:
    """
    Holds the list of extensions shown on the settings page

    Local state is updated optimistically before the store call resolves.
    Failed bulk operations re-fetch the full list; failed single toggles and
    failed batched inserts leave the optimistic state in place.
    """

    def __init__(self, store, limits, logger, max_workers=8):
        self.store = store
        self.limits = limits
        self.logger = logger
        self.max_workers = max_workers
        self.lock = threading.RLock()
        self.extensions = []

    def _error(self, action, error):
        message = str(error) or GENERIC_ERROR_MESSAGE
        self.logger.error(f"Failed to {action}: {message}")
        return SettingsError(message)

    def refresh(self):
        """
        Re-fetch the full list from the store

        Returns:
            list: Current records
        """
        try:
            records = self.store.list_all()
        except StoreError as e:
            raise self._error('load extensions', e) from e

        with self.lock:
            self.extensions = sorted(records, key=_sort_key)
            self.logger.debug(f"Loaded {len(self.extensions)} extensions")
            return list(self.extensions)

    def _resync(self):
        try:
            self.refresh()
        except SettingsError:
            self.logger.warning("Resynchronization failed; local state may be stale")

    @property
    def records(self):
        with self.lock:
            return list(self.extensions)

    def fixed(self):
        return [ext for ext in self.records if ext.kind == ExtensionKind.FIXED]

    def custom(self):
        return [ext for ext in self.records if ext.kind == ExtensionKind.CUSTOM]

    def custom_count(self):
        return len(self.custom())

    def all_fixed_enabled(self):
        """True iff at least one fixed extension exists and all are enabled"""
        fixed = self.fixed()
        return len(fixed) > 0 and all(ext.enabled for ext in fixed)

    def _find(self, record_id):
        for index, ext in enumerate(self.extensions):
            if ext.id == record_id:
                return index, ext
        raise ExtensionNotFound(f"Extension {record_id} not found")

    def _set_local(self, record_ids, enabled):
        """Set enabled on local records; returns the previous values"""
        previous = {}
        with self.lock:
            for index, ext in enumerate(self.extensions):
                if ext.id in record_ids:
                    previous[ext.id] = ext.enabled
                    self.extensions[index] = replace(ext, enabled=enabled)
        return previous

    def add(self, raw_input):
        """
        Reconcile a submission and persist the result

        Args:
            raw_input: Comma-separated extension names

        Returns:
            Rejected when validation fails (nothing is written), otherwise AddOutcome
        """
        result = reconcile(
            self.records,
            raw_input,
            max_custom=self.limits.max_custom,
            max_length=self.limits.max_length
        )

        if isinstance(result, Rejected):
            self.logger.info(f"Rejected extension input ({result.reason.value}): {result.message}")
            return result

        outcome = AddOutcome(dropped_names=result.dropped_names)
        if result.dropped_names:
            self.logger.info(f"Custom limit reached, dropped: {', '.join(result.dropped_names)}")

        if result.enable_fixed_ids:
            outcome.enabled_fixed_ids, outcome.failed_fixed_ids = self._enable_fixed(result.enable_fixed_ids)

        if result.create_custom_names:
            try:
                created = self.store.insert_many(result.create_custom_names, ExtensionKind.CUSTOM, True)
            except StoreError as e:
                raise self._error('add custom extensions', e) from e

            with self.lock:
                self.extensions = sorted(self.extensions + created, key=_sort_key)
            outcome.created = created

        return outcome

    def _enable_fixed(self, record_ids):
        """
        Enable fixed extensions with one concurrent request per id

        Ids whose request fails are reported and reverted locally; the others
        stay enabled.

        Returns:
            tuple: (enabled ids, failed ids), both in request order
        """
        previous = self._set_local(set(record_ids), True)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(record_ids))) as executor:
            futures = {
                record_id: executor.submit(self.store.update_by_id, record_id, {'enabled': True})
                for record_id in record_ids
            }

        enabled, failed = [], []
        for record_id, future in futures.items():
            try:
                future.result()
                enabled.append(record_id)
            except StoreError as e:
                self.logger.error(f"Failed to enable fixed extension {record_id}: {str(e)}")
                failed.append(record_id)

        for record_id in failed:
            self._set_local({record_id}, previous.get(record_id, False))

        if enabled:
            self.logger.info(f"Enabled fixed extensions: {enabled}")
        return enabled, failed

    def set_enabled(self, record_id, enabled):
        """
        Enable or disable a single extension

        The local change is kept even if the store call fails.
        """
        with self.lock:
            index, ext = self._find(int(record_id))
            self.extensions[index] = replace(ext, enabled=bool(enabled))

        try:
            return self.store.update_by_id(ext.id, {'enabled': bool(enabled)})
        except StoreError as e:
            raise self._error(f"update extension {ext.name}", e) from e

    def update(self, record_id, fields):
        """
        Apply arbitrary field changes to a single extension

        Args:
            record_id: Extension id
            fields: Non-empty dictionary with any of 'enabled', 'name', 'type'

        Returns:
            ExtensionRecord: Record as stored
        """
        fields = self.store.clean_fields(fields)

        if 'name' in fields:
            name = fields['name']
            if not name or find_too_long([name], self.limits.max_length) or find_invalid_chars([name]):
                raise ValueError(f"Invalid extension name: {name}")

        with self.lock:
            index, ext = self._find(int(record_id))
            self.extensions[index] = replace(
                ext,
                name=fields.get('name', ext.name),
                kind=ExtensionKind(fields.get('type', ext.kind)),
                enabled=fields.get('enabled', ext.enabled)
            )

        try:
            record = self.store.update_by_id(ext.id, fields)
        except StoreError as e:
            raise self._error(f"update extension {ext.name}", e) from e

        with self.lock:
            self.extensions = sorted(
                [record if item.id == record.id else item for item in self.extensions],
                key=_sort_key
            )
        return record

    def toggle(self, record_id):
        with self.lock:
            _, ext = self._find(int(record_id))
        return self.set_enabled(ext.id, not ext.enabled)

    def set_all_fixed(self, enabled):
        """Enable or disable every fixed extension"""
        fixed_ids = {ext.id for ext in self.fixed()}
        self._set_local(fixed_ids, bool(enabled))

        try:
            updated = self.store.update_bulk(ExtensionKind.FIXED, {'enabled': bool(enabled)})
        except StoreError as e:
            self._resync()
            raise self._error('update fixed extensions', e) from e

        self.logger.info(f"{'Enabled' if enabled else 'Disabled'} all {len(updated)} fixed extensions")
        return updated

    def delete(self, record_id):
        """Delete a single extension"""
        record_id = int(record_id)

        try:
            self.store.delete_by_id(record_id)
        except StoreError as e:
            raise self._error(f"delete extension {record_id}", e) from e

        with self.lock:
            self.extensions = [ext for ext in self.extensions if ext.id != record_id]

    def clear_custom(self, confirm=False):
        """
        Delete every custom extension

        Args:
            confirm: Must be True; the operation cannot be undone
        """
        if not confirm:
            raise SettingsError('Deleting all custom extensions requires confirmation.')

        with self.lock:
            removed = [ext for ext in self.extensions if ext.kind == ExtensionKind.CUSTOM]
            self.extensions = [ext for ext in self.extensions if ext.kind != ExtensionKind.CUSTOM]

        try:
            self.store.delete_where(ExtensionKind.CUSTOM)
        except StoreError as e:
            self._resync()
            raise self._error('delete custom extensions', e) from e

        self.logger.info(f"Deleted all {len(removed)} custom extensions")
        return len(removed)
