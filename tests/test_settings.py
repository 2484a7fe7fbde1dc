import pytest

from extension_blocklist.errors import ExtensionNotFound, SettingsError
from extension_blocklist.models import ExtensionKind
from extension_blocklist.reconciler import RejectReason, Rejected
from extension_blocklist.settings import AddOutcome, ExtensionSettings
from conftest import FakeStore, custom, fixed


@pytest.fixture
def store():
    return FakeStore([
        fixed(1, 'exe'),
        fixed(2, 'bat'),
        fixed(3, 'js', enabled=True),
        custom(10, 'zip'),
    ])


@pytest.fixture
def settings(store, limits, logger):
    settings = ExtensionSettings(store, limits, logger)
    settings.refresh()
    return settings


def enabled_by_id(settings):
    return {ext.id: ext.enabled for ext in settings.records}


def test_refresh_sorts_by_name(settings):
    assert [ext.name for ext in settings.records] == ['bat', 'exe', 'js', 'zip']
    assert [ext.name for ext in settings.fixed()] == ['bat', 'exe', 'js']
    assert settings.custom_count() == 1


def test_rejected_input_never_reaches_store(settings, store):
    store.calls.clear()

    result = settings.add('b@d, ok')

    assert isinstance(result, Rejected)
    assert result.reason == RejectReason.INVALID_CHARS
    assert store.calls == []


def test_add_enables_fixed_and_creates_custom(settings, store):
    outcome = settings.add('EXE, zip, rar')

    assert isinstance(outcome, AddOutcome)
    assert outcome.enabled_fixed_ids == [1]
    assert outcome.failed_fixed_ids == []
    assert [record.name for record in outcome.created] == ['rar']
    assert store.rows[1].enabled is True
    assert [ext.name for ext in settings.custom()] == ['rar', 'zip']
    assert store.calls.count('insert_many') == 1


def test_add_reports_each_failed_fixed_id(settings, store):
    store.fail_ids = {2}

    outcome = settings.add('exe, bat')

    assert outcome.enabled_fixed_ids == [1]
    assert outcome.failed_fixed_ids == [2]
    state = enabled_by_id(settings)
    assert state[1] is True
    assert state[2] is False


def test_add_failed_insert_raises_and_keeps_local_state(settings, store):
    store.fail = {'insert_many'}

    with pytest.raises(SettingsError, match='insert_many failed'):
        settings.add('exe, rar')

    assert enabled_by_id(settings)[1] is True
    assert 'rar' not in [ext.name for ext in settings.records]
    assert 'list_all' not in store.calls[1:]


def test_add_respects_custom_cap(limits, logger):
    store = FakeStore([custom(i, f'c{i}') for i in range(1, 200)])
    settings = ExtensionSettings(store, limits, logger)
    settings.refresh()

    outcome = settings.add('aaa, bbb, ccc')

    assert [record.name for record in outcome.created] == ['aaa']
    assert outcome.dropped_names == ['bbb', 'ccc']
    assert settings.custom_count() == 200
    assert settings.add('ddd').reason == RejectReason.CUSTOM_CAP_REACHED


def test_toggle_flips_and_persists(settings, store):
    record = settings.toggle(1)

    assert record.enabled is True
    assert store.rows[1].enabled is True
    assert enabled_by_id(settings)[1] is True


def test_failed_toggle_keeps_optimistic_state(settings, store):
    store.fail_ids = {1}

    with pytest.raises(SettingsError):
        settings.set_enabled(1, True)

    assert enabled_by_id(settings)[1] is True
    assert store.rows[1].enabled is False


def test_toggle_unknown_id(settings):
    with pytest.raises(ExtensionNotFound):
        settings.toggle(999)


def test_update_renames_and_resorts(settings, store):
    record = settings.update(10, {'name': 'Arj'})

    assert record.name == 'arj'
    assert store.rows[10].name == 'arj'
    assert [ext.name for ext in settings.records] == ['arj', 'bat', 'exe', 'js']


def test_update_requires_fields(settings, store):
    with pytest.raises(ValueError):
        settings.update(1, {})
    with pytest.raises(ValueError):
        settings.update(10, {'name': 'a.b'})

    assert 'update_by_id' not in store.calls
    assert [ext.name for ext in settings.custom()] == ['zip']


def test_summary_checkbox_state(settings, store, limits, logger):
    assert settings.all_fixed_enabled() is False

    settings.set_all_fixed(True)
    assert settings.all_fixed_enabled() is True
    assert all(record.enabled for record in store.rows.values() if record.kind == ExtensionKind.FIXED)

    settings.set_all_fixed(False)
    assert settings.all_fixed_enabled() is False

    empty = ExtensionSettings(FakeStore([custom(1, 'zip')]), limits, logger)
    empty.refresh()
    assert empty.all_fixed_enabled() is False


def test_failed_bulk_toggle_resyncs(settings, store):
    store.fail = {'update_bulk'}

    with pytest.raises(SettingsError):
        settings.set_all_fixed(True)

    assert enabled_by_id(settings) == {1: False, 2: False, 3: True, 10: True}


def test_delete_single_custom(settings, store):
    settings.delete(10)

    assert 10 not in store.rows
    assert settings.custom() == []


def test_clear_custom_requires_confirmation(settings, store):
    with pytest.raises(SettingsError):
        settings.clear_custom()

    assert 'delete_where' not in store.calls
    assert settings.custom_count() == 1


def test_clear_custom_removes_only_custom(settings, store):
    settings.add('rar, tar')

    assert settings.clear_custom(confirm=True) == 3
    assert settings.custom() == []
    assert len(settings.fixed()) == 3
    assert all(record.kind == ExtensionKind.FIXED for record in store.rows.values())


def test_failed_clear_custom_resyncs(settings, store):
    store.fail = {'delete_where'}

    with pytest.raises(SettingsError):
        settings.clear_custom(confirm=True)

    assert [ext.name for ext in settings.custom()] == ['zip']


def test_refresh_failure_is_settings_error(settings, store):
    store.fail = {'list_all'}

    with pytest.raises(SettingsError):
        settings.refresh()
