"""Unit tests for the in-memory metric store."""
import dataclasses
import pytest
import threading
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import AlertThresholds, DEFAULT_THRESHOLDS
from indicators.alerts import create_custom_alert, watch_m2_roc
from indicators.credit_impulse import CreditImpulsePoint
from indicators.derived_metrics import DerivedPoint
from storage.store import KeyedTable, MetricStore


def dp(entity, day, value, roc=None):
    return DerivedPoint(entity=entity, date=day, value=value, roc6m=roc, yoy_change=None, zscore=None)


@pytest.fixture
def store():
    return MetricStore()


class TestKeyedTable:

    def test_upsert_replaces_by_key(self):
        table = KeyedTable(lambda row: row[0])
        table.upsert(('a', 1))
        table.upsert(('a', 2))
        table.upsert(('b', 3))
        assert len(table) == 2
        assert table.get('a') == ('a', 2)

    def test_rows_sorted_by_key(self):
        table = KeyedTable(lambda row: row[0])
        table.upsert_many([('c', 1), ('a', 2), ('b', 3)])
        assert [r[0] for r in table.rows()] == ['a', 'b', 'c']

    def test_delete_where(self):
        table = KeyedTable(lambda row: row[0])
        table.upsert_many([('a', 1), ('b', 2)])
        assert table.delete_where(lambda row: row[1] > 1) == 1
        assert table.get('b') is None

    def test_concurrent_upserts(self):
        table = KeyedTable(lambda row: row)

        def worker(offset):
            for i in range(200):
                table.upsert(offset * 1000 + i)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(table) == 800


class TestDerivedStorage:

    def test_upsert_keyed_by_entity_and_date(self, store):
        store.upsert_derived([dp('US', date(2024, 1, 1), 1.0)])
        store.upsert_derived([dp('US', date(2024, 1, 1), 2.0)])
        rows = store.get_derived('US')
        assert len(rows) == 1
        assert rows[0].value == 2.0

    def test_replace_derived_drops_stale_points(self, store):
        store.upsert_derived([dp('US', date(2024, 1, 1), 1.0), dp('US', date(2024, 2, 1), 2.0)])
        store.upsert_derived([dp('CN', date(2024, 1, 1), 9.0)])
        store.replace_derived('US', [dp('US', date(2024, 3, 1), 3.0)])
        assert [p.date for p in store.get_derived('US')] == [date(2024, 3, 1)]
        assert len(store.get_derived('CN')) == 1

    def test_latest_derived(self, store):
        store.upsert_derived([
            dp('US', date(2024, 2, 1), 2.0),
            dp('US', date(2024, 1, 1), 1.0),
            dp('CN', date(2023, 12, 1), 5.0),
        ])
        latest = store.latest_derived()
        assert latest['US'].date == date(2024, 2, 1)
        assert latest['CN'].value == 5.0

    def test_get_derived_start_date(self, store):
        store.upsert_derived([dp('US', date(2024, 1, 1), 1.0), dp('US', date(2024, 2, 1), 2.0)])
        assert len(store.get_derived(start_date=date(2024, 2, 1))) == 1


def test_credit_impulse_storage(store):
    points = [
        CreditImpulsePoint('US', date(2024, 1, 1), 5.0, 105.0, 1000.0, 0.005),
        CreditImpulsePoint('US', date(2024, 4, 1), -2.0, 103.0, 1000.0, -0.002),
    ]
    assert store.upsert_credit_impulse(points) == 2
    assert store.latest_credit_impulse()['US'].impulse == pytest.approx(-0.002)
    assert len(store.get_credit_impulse('US', start_date=date(2024, 4, 1))) == 1


def test_snapshots(store):
    assert store.get_snapshot('m2') is None
    store.set_snapshot('m2', 4.2)
    assert store.get_snapshot('m2') == 4.2
    store.set_snapshot('m2', None)
    assert store.get_snapshot('m2') is None


class TestAlertLog:

    def test_ids_and_newest_first(self, store):
        first = store.add_alert(create_custom_alert('one', 'a'))
        second = store.add_alert(create_custom_alert('two', 'b'))
        assert (first.id, second.id) == (1, 2)
        assert [a.title for a in store.get_alerts()] == ['two', 'one']
        assert len(store.get_alerts(limit=1)) == 1

    def test_read_state(self, store):
        alert = store.add_alert(watch_m2_roc(4.0, 5.5))
        store.add_alert(create_custom_alert('two', 'b'))
        assert store.unread_count() == 2

        store.mark_alert_read(alert.id)
        assert store.unread_count() == 1
        assert [a.title for a in store.get_alerts(unread_only=True)] == ['two']

        store.mark_alert_unread(alert.id)
        assert store.unread_count() == 2

        assert store.mark_all_read() == 2
        assert store.unread_count() == 0

    def test_unknown_alert(self, store):
        with pytest.raises(KeyError):
            store.mark_alert_read(99)

    def test_filter_by_entity(self, store):
        store.add_alert(watch_m2_roc(4.0, 5.5))
        store.add_alert(create_custom_alert('other', 'x'))
        assert len(store.get_alerts(related_entity='liquidity')) == 1


def test_thresholds(store):
    assert store.get_thresholds() == DEFAULT_THRESHOLDS
    custom = AlertThresholds(roc_upper=7.0)
    store.update_thresholds(custom, user_id='alice')
    assert store.get_thresholds('alice') == custom
    assert store.get_thresholds() == DEFAULT_THRESHOLDS


def test_thresholds_are_immutable(store):
    shared = store.get_thresholds()
    with pytest.raises(dataclasses.FrozenInstanceError):
        shared.roc_upper = 1.0
    assert DEFAULT_THRESHOLDS.roc_upper == 5.0
    assert store.get_thresholds('nobody').roc_upper == 5.0

    # Derive a variant instead of mutating
    store.update_thresholds(dataclasses.replace(shared, roc_upper=6.0), user_id='bob')
    assert store.get_thresholds('bob').roc_upper == 6.0
    assert DEFAULT_THRESHOLDS.roc_upper == 5.0


def test_fetch_log(store):
    store.log_fetch('SampleDataLoader', 'M2SL', 'success', records_fetched=10)
    store.log_fetch('SampleDataLoader', 'BAD', 'error', error_message='boom')
    store.log_fetch('SampleDataLoader', 'M2SL', 'success', records_fetched=10)
    assert store.fetch_summary() == {'success': 2, 'error': 1}
    assert store.fetch_log[1].error_message == 'boom'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
