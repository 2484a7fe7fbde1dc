"""
Exceptions raised by stores and the settings component
"""


class StoreError(Exception):
    """Any failure reported by a persistence backend"""


class StoreTransportError(StoreError):
    """Network or HTTP failure talking to the store"""


class StoreConstraintError(StoreError):
    """The store rejected a write (e.g. duplicate name)"""


class RecordNotFound(StoreError):
    """No record with the requested id"""


class SettingsError(Exception):
    """A user action could not be persisted"""


class ExtensionNotFound(SettingsError):
    """The extension is not in the current list"""
