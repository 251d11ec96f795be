"""Tests for the activity listing query (filters, sort, pagination).

Run with: pytest tests/test_activity_query.py -v
"""

import threading
from datetime import datetime, timedelta

import pytest

from activityhub.crud.activity_crud import create_activity, date_window, list_activities
from activityhub.errors import StorageError, ValidationError
from activityhub.models.base import utc_now
from activityhub.models.category import Category
from activityhub.models.participation import Participation
from activityhub.schemas.activity import MAX_PAGE, ActivityCreate, ActivityQuery
from activityhub.services.participation import join_activity

NOW = datetime(2026, 10, 18, 12, 0, 0)  # naive UTC


def _query(**params) -> ActivityQuery:
    return ActivityQuery.parse(**params)


class TestPagination:
    """page/limit -> skip/take and pagination metadata."""

    def test_pages_of_25_with_limit_9(self, db, make_activity):
        """25 matches, limit 9: 3 pages, the last one holding 7 items."""
        base = utc_now() + timedelta(days=1)
        for i in range(25):
            make_activity(start=base + timedelta(hours=i))

        first = list_activities(db, _query(page=1, limit=9))
        assert len(first.items) == 9
        assert first.pagination.total == 25
        assert first.pagination.total_pages == 3
        assert first.pagination.current_page == 1
        assert first.pagination.page_size == 9
        assert first.pagination.has_more is True

        last = list_activities(db, _query(page=3, limit=9))
        assert len(last.items) == 7
        assert last.pagination.has_more is False

    def test_pages_are_consecutive_slices_of_the_sorted_set(self, db, make_activity):
        base = utc_now() + timedelta(days=1)
        for i in range(7):
            make_activity(start=base + timedelta(hours=6 - i))

        everything = list_activities(db, _query(limit=50)).items
        pages = [list_activities(db, _query(page=p, limit=3)).items for p in (1, 2, 3)]

        assert [a.id for page in pages for a in page] == [a.id for a in everything]
        assert [a.start_date for a in everything] == sorted(a.start_date for a in everything)

    def test_page_past_the_end_is_empty(self, db, make_activity):
        make_activity()
        page = list_activities(db, _query(page=5, limit=10))
        assert page.items == []
        assert page.pagination.total == 1
        assert page.pagination.has_more is False

    def test_limit_is_capped_at_50(self, db, make_activity):
        base = utc_now() + timedelta(days=1)
        for i in range(52):
            make_activity(start=base + timedelta(minutes=i))

        page = list_activities(db, _query(limit=500))
        assert len(page.items) == 50
        assert page.pagination.page_size == 50
        assert page.pagination.total_pages == 2
        assert page.pagination.has_more is True

    def test_empty_result(self, db):
        page = list_activities(db, _query())
        assert page.items == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0
        assert page.pagination.has_more is False


class TestFilters:
    """Each present filter field narrows the result."""

    def test_search_matches_title_description_or_location_case_insensitively(self, db, make_activity):
        by_title = make_activity(title="Sunset Yoga")
        by_description = make_activity(title="Stretching", description="Gentle yoga flow for beginners")
        by_location = make_activity(title="Meetup", location="The YOGA Loft")
        make_activity(title="Chess night", description="Bring your own board", location="Library")

        page = list_activities(db, _query(search="yoga"))
        assert {a.id for a in page.items} == {by_title.id, by_description.id, by_location.id}
        assert page.pagination.total == 3

    def test_search_treats_wildcards_literally(self, db, make_activity):
        match = make_activity(title="100% fun run")
        make_activity(title="1000 steps")

        page = list_activities(db, _query(search="100%"))
        assert [a.id for a in page.items] == [match.id]

    def test_category_filter(self, db, make_activity):
        other = Category(name="Technology")
        db.add(other)
        db.commit()
        tech = make_activity(category_id=other.id)
        make_activity()

        page = list_activities(db, _query(category=other.id))
        assert [a.id for a in page.items] == [tech.id]
        assert page.items[0].category.name == "Technology"

    def test_status_filter(self, db, make_activity):
        cancelled = make_activity(status="cancelled")
        make_activity(status="upcoming")

        page = list_activities(db, _query(status="cancelled"))
        assert [a.id for a in page.items] == [cancelled.id]

    def test_creator_filter(self, db, make_user, make_activity):
        alice = make_user(name="Alice")
        mine = make_activity(creator=alice)
        make_activity()

        page = list_activities(db, _query(creator_id=alice.id))
        assert [a.id for a in page.items] == [mine.id]
        assert page.items[0].creator.name == "Alice"

    def test_participant_filter_is_a_semi_join(self, db, make_user, make_activity):
        bob = make_user()
        joined = make_activity()
        make_activity()
        join_activity(db, joined.id, bob.id)
        join_activity(db, joined.id, make_user().id)

        page = list_activities(db, _query(participant_id=bob.id))
        assert [a.id for a in page.items] == [joined.id]
        assert page.pagination.total == 1

    def test_participant_filter_ignores_cancelled_participations(self, db, make_user, make_activity):
        carol = make_user()
        activity = make_activity()
        db.add(Participation(user_id=carol.id, activity_id=activity.id, status="cancelled"))
        db.commit()

        assert list_activities(db, _query(participant_id=carol.id)).items == []

    def test_filters_combine_with_and(self, db, make_user, make_activity):
        dave = make_user()
        target = make_activity(creator=dave, title="Trail run")
        make_activity(creator=dave, title="Board games")
        make_activity(title="Trail run")

        page = list_activities(db, _query(creator_id=dave.id, search="trail"))
        assert [a.id for a in page.items] == [target.id]

    def test_summary_carries_the_stored_counter(self, db, make_user, make_activity):
        activity = make_activity(max_participants=3)
        join_activity(db, activity.id, make_user().id)

        item = list_activities(db, _query()).items[0]
        assert item.current_participants == 1
        assert item.max_participants == 3


class TestDateFilter:
    """Relative date windows anchored at the start of the current day."""

    def test_today_includes_late_tonight_and_excludes_just_after_midnight(self, db, make_activity):
        tonight = make_activity(start=datetime(2026, 10, 18, 23, 59))
        after_midnight = make_activity(start=datetime(2026, 10, 19, 0, 1))

        today = list_activities(db, _query(date="today"), now=NOW)
        assert [a.id for a in today.items] == [tonight.id]

        tomorrow = list_activities(db, _query(date="tomorrow"), now=NOW)
        assert [a.id for a in tomorrow.items] == [after_midnight.id]

    def test_today_includes_earlier_today(self, db, make_activity):
        this_morning = make_activity(start=datetime(2026, 10, 18, 0, 0))
        make_activity(start=datetime(2026, 10, 17, 23, 59))

        today = list_activities(db, _query(date="today"), now=NOW)
        assert [a.id for a in today.items] == [this_morning.id]

    def test_week_and_month_windows(self, db, make_activity):
        in_six_days = make_activity(start=datetime(2026, 10, 24, 9, 0))
        in_three_weeks = make_activity(start=datetime(2026, 11, 8, 9, 0))
        make_activity(start=datetime(2026, 12, 1, 9, 0))

        week = list_activities(db, _query(date="week"), now=NOW)
        assert [a.id for a in week.items] == [in_six_days.id]

        month = list_activities(db, _query(date="month"), now=NOW)
        assert [a.id for a in month.items] == [in_six_days.id, in_three_weeks.id]

    def test_window_bounds(self):
        lower, upper, inclusive = date_window("today", NOW, "UTC")
        assert (lower, upper, inclusive) == (datetime(2026, 10, 18), datetime(2026, 10, 19), False)

        lower, upper, inclusive = date_window("week", NOW, "UTC")
        assert (lower, upper, inclusive) == (datetime(2026, 10, 18), datetime(2026, 10, 25), True)

        lower, upper, _ = date_window("month", NOW, "UTC")
        assert (lower, upper) == (datetime(2026, 10, 18), datetime(2026, 11, 18))

    def test_month_window_clamps_to_last_day(self):
        _, upper, _ = date_window("month", datetime(2026, 1, 31, 8, 0), "UTC")
        assert upper == datetime(2026, 2, 28)

    def test_window_uses_local_day_of_configured_zone(self):
        # 20:00 UTC on the 18th is already 05:00 on the 19th in Seoul (UTC+9)
        lower, upper, _ = date_window("today", datetime(2026, 10, 18, 20, 0), "Asia/Seoul")
        assert lower == datetime(2026, 10, 18, 15, 0)
        assert upper == datetime(2026, 10, 19, 15, 0)


class TestOrdering:
    def test_default_is_start_date_ascending(self, db, make_activity):
        later = make_activity(start=utc_now() + timedelta(days=5))
        sooner = make_activity(start=utc_now() + timedelta(days=1))

        assert [a.id for a in list_activities(db, _query()).items] == [sooner.id, later.id]

    def test_title_descending(self, db, make_activity):
        for title in ("Bouldering", "Archery", "Cycling"):
            make_activity(title=title)

        page = list_activities(db, _query(order_by="title", order_direction="desc"))
        assert [a.title for a in page.items] == ["Cycling", "Bouldering", "Archery"]


class TestQueryValidation:
    """Bad parameters are rejected before the store is touched."""

    @pytest.mark.parametrize(
        "params, path",
        [
            ({"page": 0}, "page"),
            ({"page": 10**19}, "page"),
            ({"page": MAX_PAGE + 1}, "page"),
            ({"limit": -5}, "limit"),
            ({"status": "postponed"}, "status"),
            ({"date": "yesterday"}, "date"),
            ({"order_by": "price"}, "order_by"),
            ({"order_direction": "up"}, "order_direction"),
        ],
    )
    def test_invalid_parameter(self, params, path):
        with pytest.raises(ValidationError) as exc_info:
            ActivityQuery.parse(**params)
        assert [d["path"] for d in exc_info.value.details] == [path]

    def test_highest_allowed_page_reaches_the_store(self, db, make_activity):
        make_activity()

        page = list_activities(db, _query(page=MAX_PAGE, limit=500))

        assert page.items == []
        assert page.pagination.total == 1
        assert page.pagination.current_page == MAX_PAGE
        assert page.pagination.has_more is False

    def test_defaults_and_blank_strings(self):
        query = ActivityQuery.parse(page=None, limit=None, search="  ", status="", order_by=None)
        assert query.page == 1
        assert query.limit == 10
        assert query.search is None
        assert query.status is None
        assert query.order_by == "start_date"
        assert query.order_direction == "asc"

    def test_store_failure_is_reported_as_storage_error(self, tmp_path):
        from sqlalchemy.orm import Session

        from activityhub.database import build_engine

        empty = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")  # no tables
        with Session(empty) as session:
            with pytest.raises(StorageError):
                list_activities(session, _query())
        empty.dispose()


class TestCreateThenList:
    def test_created_activity_is_listed_for_its_creator(self, db, make_user, category):
        creator = make_user()
        start = utc_now() + timedelta(days=2)
        payload = ActivityCreate(
            title="Pottery class",
            description="Hands-on wheel throwing for beginners",
            start_date=start,
            end_date=start + timedelta(hours=3),
            location="Clay Studio",
            max_participants=8,
            category_id=category.id,
            is_paid=True,
            price=25.0,
            coordinates={"lat": 37.56, "lng": 126.97},
        )

        created = create_activity(db, payload, creator.id)
        page = list_activities(db, _query(creator_id=creator.id))

        assert [a.id for a in page.items] == [created.id]
        item = page.items[0]
        assert item.current_participants == 0
        assert item.status == "upcoming"
        assert item.price == 25.0
        assert item.latitude == 37.56


class TestConcurrentReads:
    """Listings running alongside joins all complete with consistent counters."""

    def test_parallel_listings_and_joins(self, db, session_factory, make_user, make_activity):
        activity = make_activity(max_participants=20)
        for _ in range(4):
            make_activity()
        joiners = [make_user() for _ in range(4)]
        db.commit()

        barrier = threading.Barrier(12)
        errors, totals = [], []

        def list_worker():
            session = session_factory()
            try:
                barrier.wait()
                page = list_activities(session, _query(limit=50))
                totals.append(page.pagination.total)
                for item in page.items:
                    assert 0 <= item.current_participants <= item.max_participants
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        def join_worker(user_id):
            session = session_factory()
            try:
                barrier.wait()
                join_activity(session, activity.id, user_id)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=list_worker) for _ in range(8)]
        threads += [threading.Thread(target=join_worker, args=(u.id,)) for u in joiners]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert errors == []
        assert totals == [5] * 8
        assert list_activities(db, _query(creator_id=activity.creator_id)).items[0].current_participants == 4
