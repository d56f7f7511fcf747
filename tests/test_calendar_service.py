"""
Tests for services/calendar_service.py availability resolution.
"""

from datetime import timedelta

import pytest

from calendar_client import CalendarRequestError
from models.slots import TimeRange
from services.calendar_service import chunk_window
from tests.fakes import FIXED_NOW, local, local_slot


class TestChunkWindow:
    def test_long_window_split_into_contiguous_chunks(self):
        window = TimeRange(FIXED_NOW, FIXED_NOW + timedelta(days=120))
        chunks = chunk_window(window)
        assert [c.duration for c in chunks] == [timedelta(days=50), timedelta(days=50), timedelta(days=20)]
        assert chunks[0].start == window.start
        assert chunks[-1].end == window.end
        for a, b in zip(chunks, chunks[1:]):
            assert a.end == b.start

    def test_short_window_is_one_chunk(self):
        window = TimeRange(FIXED_NOW, FIXED_NOW + timedelta(hours=3))
        assert chunk_window(window) == [window]


class TestLookupWindow:
    def test_no_candidates_looks_thirty_days_ahead(self, resolver):
        window = resolver.lookup_window([], FIXED_NOW)
        assert window == TimeRange(FIXED_NOW, FIXED_NOW + timedelta(days=30))

    def test_spans_now_to_latest_candidate(self, resolver):
        late = local_slot(2026, 3, 10, 15)
        window = resolver.lookup_window([local_slot(2026, 3, 2, 9), late], FIXED_NOW)
        assert window.start == FIXED_NOW
        assert window.end == late.end

    def test_includes_candidates_before_now(self, resolver):
        earlier = local_slot(2026, 2, 25, 8)
        window = resolver.lookup_window([earlier], FIXED_NOW)
        assert window.start == earlier.start

    def test_capped_at_two_years(self, resolver):
        far = TimeRange(FIXED_NOW + timedelta(days=1000), FIXED_NOW + timedelta(days=1000, minutes=30))
        window = resolver.lookup_window([far], FIXED_NOW)
        assert window.end == FIXED_NOW + timedelta(days=730)


class TestFindAvailable:
    @pytest.mark.asyncio
    async def test_filters_busy_and_preserves_order(self, resolver, fake_calendar):
        fake_calendar.busy = [local_slot(2026, 3, 2, 10, minutes=60)]
        candidates = [
            local_slot(2026, 3, 2, 11),
            local_slot(2026, 3, 2, 10, 30),
            local_slot(2026, 3, 2, 9, 30),
            local_slot(2026, 3, 2, 11),
        ]
        available = await resolver.find_available(candidates)
        assert available == [candidates[0], candidates[2], candidates[3]]

    @pytest.mark.asyncio
    async def test_adjacent_busy_block_does_not_conflict(self, resolver, fake_calendar):
        fake_calendar.busy = [local_slot(2026, 3, 2, 9)]
        candidate = local_slot(2026, 3, 2, 9, 30)
        assert await resolver.find_available([candidate]) == [candidate]

    @pytest.mark.asyncio
    async def test_queries_the_configured_calendar(self, resolver, fake_calendar):
        await resolver.find_available([local_slot(2026, 3, 2, 9)])
        assert [cal for _, cal in fake_calendar.queries] == ["owner@example.com"]

    @pytest.mark.asyncio
    async def test_long_range_issues_one_query_per_chunk(self, resolver, fake_calendar):
        """Candidates 120 days apart need three freebusy requests."""
        fake_calendar.busy = [local_slot(2026, 5, 20, 10)]
        candidates = [local_slot(2026, 3, 2, 9), local_slot(2026, 5, 20, 10), local_slot(2026, 6, 24, 9)]
        available = await resolver.find_available(candidates)
        assert len(fake_calendar.queries) == 3
        assert available == [candidates[0], candidates[2]]

    @pytest.mark.asyncio
    async def test_slots_past_lookahead_cap_are_never_free(self, resolver, fake_calendar):
        """Busy data past two years is never fetched, so those slots are not reported free."""
        near = local_slot(2026, 3, 2, 9)
        far = local_slot(2029, 3, 2, 11)
        fake_calendar.busy = [far]

        available = await resolver.find_available([near, far])

        assert available == [near]
        assert all(window.end <= FIXED_NOW + timedelta(days=730) for window, _ in fake_calendar.queries)

    @pytest.mark.asyncio
    async def test_only_far_candidates_skips_the_calendar(self, resolver, fake_calendar):
        assert await resolver.find_available([local_slot(2029, 3, 2, 11)]) == []
        assert fake_calendar.queries == []

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self, resolver, fake_calendar):
        fake_calendar.query_error = CalendarRequestError("Backend Error", status=503)
        with pytest.raises(CalendarRequestError) as exc_info:
            await resolver.find_available([local_slot(2026, 3, 2, 9)])
        assert exc_info.value.status == 503


class TestListFreeSlots:
    @pytest.mark.asyncio
    async def test_free_slots_around_busy_blocks(self, resolver, fake_calendar):
        fake_calendar.busy = [local_slot(2026, 3, 2, 10, minutes=45)]
        window = TimeRange(local(2026, 3, 2, 9), local(2026, 3, 2, 12))
        slots = await resolver.list_free_slots(window, 30)
        assert [s.start for s in slots] == [
            local(2026, 3, 2, 9),
            local(2026, 3, 2, 9, 30),
            local(2026, 3, 2, 10, 45),
            local(2026, 3, 2, 11, 15),
        ]
