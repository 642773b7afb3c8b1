"""Tests for the merge engine."""

import itertools
from datetime import UTC, datetime, timedelta

import pytest

from common.errors import AllFailedError, NoDataError
from models.provider import ProviderError, ProviderErrorKind, RawResult
from models.tracking import TrackingType
from tracking.merge import MergeEngine, merge_timelines

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)
FETCHED = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def success(provider_id: str, reliability: float, fields) -> RawResult:
    return RawResult.success(provider_id, "MAEU1234567", fields, reliability, fetched_at=FETCHED)


def error(provider_id: str, kind: ProviderErrorKind) -> RawResult:
    return RawResult.failure("MAEU1234567", ProviderError(kind=kind, provider_id=provider_id))


class TestMerge:
    def test_primary_is_most_reliable(self, make_fields):
        """Both succeed: maersk (0.95) wins over generic (0.5)."""
        engine = MergeEngine(["maersk", "generic"])
        shipment = engine.merge(
            [
                success("generic", 0.5, make_fields(carrier="Unknown", status="Departed")),
                success("maersk", 0.95, make_fields(carrier="Maersk", status="In Transit")),
            ]
        )

        assert shipment.data_source == "maersk"
        assert shipment.carrier == "Maersk"
        assert shipment.status == "In Transit"
        assert shipment.reliability == 0.95
        assert shipment.last_updated == FETCHED

    def test_reliability_tie_uses_declaration_order(self, make_fields):
        engine = MergeEngine(["zim", "cosco"])
        shipment = engine.merge([success("cosco", 0.8, make_fields("COSCO")), success("zim", 0.8, make_fields("ZIM"))])
        assert shipment.data_source == "zim"

    def test_errors_are_ignored_when_something_succeeded(self, make_fields):
        engine = MergeEngine()
        shipment = engine.merge([error("a", ProviderErrorKind.TIMEOUT), success("b", 0.7, make_fields())])
        assert shipment.data_source == "b"

    def test_tracking_type_carried(self, make_fields):
        shipment = MergeEngine().merge([success("a", 0.7, make_fields())], TrackingType.BOOKING)
        assert shipment.tracking_type is TrackingType.BOOKING

    def test_deterministic_across_input_order(self, make_fields):
        results = [
            success("a", 0.9, make_fields("A", events=[("Loaded", "Rotterdam", T0)])),
            success("b", 0.7, make_fields("B", events=[("Departed", "Rotterdam", T0 + timedelta(hours=2))])),
            success("c", 0.9, make_fields("C", events=[("Loaded", "Rotterdam", T0 + timedelta(seconds=20))])),
            error("d", ProviderErrorKind.NOT_FOUND),
        ]
        engine = MergeEngine(["a", "b", "c", "d"])
        expected = engine.merge(results)

        for permutation in itertools.permutations(results):
            assert engine.merge(list(permutation)) == expected

    def test_empty_results(self):
        with pytest.raises(NoDataError):
            MergeEngine().merge([])

    def test_all_failed_carries_errors(self):
        with pytest.raises(AllFailedError) as exc_info:
            MergeEngine().merge([error("a", ProviderErrorKind.TIMEOUT), error("b", ProviderErrorKind.NOT_FOUND)])
        assert [e.provider_id for e in exc_info.value.errors] == ["a", "b"]


class TestMergeTimelines:
    def test_union_sorted_and_deduplicated(self, make_fields):
        primary = make_fields(
            events=[("Departed", "Rotterdam", T0 + timedelta(hours=5)), ("Loaded", "Rotterdam", T0)]
        ).timeline
        secondary = make_fields(
            carrier="Other",
            events=[
                ("Loaded", "Rotterdam", T0 + timedelta(seconds=10)),
                ("Arrived", "Singapore", T0 + timedelta(days=20)),
            ],
        ).timeline

        merged = merge_timelines([primary, secondary])

        assert [e.status for e in merged] == ["Loaded", "Departed", "Arrived"]
        # First occurrence wins
        assert merged[0].id == "Maersk-1"

    def test_idempotent(self, make_fields):
        timeline = make_fields(
            events=[("Loaded", "Rotterdam", T0), ("Departed", "Rotterdam", T0 + timedelta(hours=1))]
        ).timeline
        once = merge_timelines([timeline])
        assert merge_timelines([once, once]) == once

    def test_naive_timestamps_treated_as_utc(self, make_fields):
        aware = make_fields(events=[("Loaded", "Rotterdam", T0)]).timeline
        naive = make_fields(carrier="Other", events=[("Loaded", "Rotterdam", T0.replace(tzinfo=None))]).timeline

        assert len(merge_timelines([aware, naive])) == 1
