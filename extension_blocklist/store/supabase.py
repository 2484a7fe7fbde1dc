"""
Supabase (PostgREST) extension store
"""

import requests

from extension_blocklist.errors import RecordNotFound, StoreConstraintError, StoreTransportError
from extension_blocklist.models import ExtensionKind, ExtensionRecord
from extension_blocklist.store.base_store import ExtensionStore

COLUMNS = 'id,name,type,enabled'

# Postgres error codes PostgREST passes through for rejected writes
CONSTRAINT_CODES = ('23505', '23514', '23502')


class SupabaseStore(ExtensionStore):
    """Extension store backed by a Supabase table over its REST API"""

    def __init__(self, config, logger, session=None):
        super().__init__(config, logger)
        self.base_url = f"{config.url.rstrip('/')}/rest/v1/{config.table}"
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': config.api_key,
            'Authorization': f"Bearer {config.api_key}",
            'Content-Type': 'application/json'
        })

    def _request(self, method, params=None, json=None, representation=False):
        """
        Send a request to the table endpoint and translate failures

        Args:
            method: HTTP method
            params: PostgREST query parameters (filters, select, order)
            json: Request body
            representation: Ask PostgREST to return the affected rows

        Returns:
            list: Rows returned by the server (empty when none)
        """
        headers = {'Prefer': 'return=representation'} if representation else {}

        try:
            self.logger.debug(f"{method} {self.base_url} params={params}")
            response = self.session.request(
                method,
                self.base_url,
                params=params,
                json=json,
                headers=headers,
                timeout=10
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to reach Supabase: {str(e)}")
            raise StoreTransportError(f"Failed to reach the extension store: {str(e)}") from e

        if response.status_code >= 400:
            self._raise_for_error(response)

        if not response.content:
            return []

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Supabase returned a non-JSON body ({response.status_code})")
            raise StoreTransportError(f"Unexpected response from the extension store: {str(e)}") from e

    def _raise_for_error(self, response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get('message') or response.text or f"HTTP {response.status_code}"
        self.logger.error(f"Supabase returned {response.status_code}: {message}")

        if response.status_code == 409 or body.get('code') in CONSTRAINT_CODES:
            raise StoreConstraintError(message)
        raise StoreTransportError(message)

    def list_all(self):
        rows = self._request('GET', params={'select': COLUMNS, 'order': 'name.asc'})
        self.logger.debug(f"Retrieved {len(rows)} extensions from Supabase")
        return [ExtensionRecord.from_row(row) for row in rows]

    def insert_many(self, names, kind, enabled):
        kind = ExtensionKind(kind)
        if not names:
            return []

        payload = [{'name': name, 'type': kind.value, 'enabled': bool(enabled)} for name in names]
        rows = self._request('POST', params={'select': COLUMNS}, json=payload, representation=True)

        self.logger.info(f"Inserted {len(rows)} {kind.value} extensions: {', '.join(names)}")
        return [ExtensionRecord.from_row(row) for row in rows]

    def update_by_id(self, record_id, fields):
        record_id = self.require_id(record_id)
        fields = self.clean_fields(fields)

        rows = self._request(
            'PATCH',
            params={'id': f"eq.{record_id}", 'select': COLUMNS},
            json=fields,
            representation=True
        )
        if not rows:
            raise RecordNotFound(f"Extension {record_id} not found")

        self.logger.debug(f"Updated extension {record_id}: {fields}")
        return ExtensionRecord.from_row(rows[0])

    def update_bulk(self, kind, fields):
        kind = ExtensionKind(kind)
        fields = self.clean_fields(fields)
        if 'name' in fields:
            raise ValueError("Names cannot be updated in bulk")

        rows = self._request(
            'PATCH',
            params={'type': f"eq.{kind.value}", 'select': COLUMNS},
            json=fields,
            representation=True
        )

        self.logger.info(f"Updated {len(rows)} {kind.value} extensions: {fields}")
        return [ExtensionRecord.from_row(row) for row in rows]

    def delete_by_id(self, record_id):
        record_id = self.require_id(record_id)
        self._request('DELETE', params={'id': f"eq.{record_id}"})
        self.logger.info(f"Deleted extension {record_id}")

    def delete_where(self, kind):
        kind = ExtensionKind(kind)
        self._request('DELETE', params={'type': f"eq.{kind.value}"})
        self.logger.info(f"Deleted all {kind.value} extensions")
