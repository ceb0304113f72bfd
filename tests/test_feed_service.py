"""
tests/test_feed_service.py — Feed Composer Tests
=================================================
Scope filtering, per-scope ordering, limit handling, and the
limit-before-order tradeoff.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from petsconnect.errors import UpstreamFailure
from petsconnect.services.feed_service import FeedScope, ScopeKind, compose_feed
from tests.factories import T0, add_post, add_profile, hours


def _ids(feed) -> list[str]:
    return [hp.post.id for hp in feed]


class TestFeedScope:
    def test_constructors(self):
        assert FeedScope.global_feed().kind == ScopeKind.GLOBAL
        assert FeedScope.group("g1").group_id == "g1"
        assert FeedScope.search("cat").text == "cat"
        assert FeedScope.top_helpful().kind == ScopeKind.TOP_HELPFUL

    def test_only_global_and_group_are_boost_ordered(self):
        assert FeedScope.global_feed().boost_ordered
        assert FeedScope.group("g").boost_ordered
        assert not FeedScope.search("x").boost_ordered
        assert not FeedScope.top_helpful().boost_ordered


class TestGroupScenario:
    def test_boosted_newer_post_leads_group_feed(self, db_engine):
        """P (A, T) and Q (B, T+1, level 2 until T+10), viewed at T+5."""
        add_profile(db_engine, "A")
        add_profile(db_engine, "B", is_business=True)
        add_post(db_engine, "P", "A", group_id="g", created_at=T0)
        add_post(db_engine, "Q", "B", group_id="g", created_at=T0 + hours(1),
                 boost_until=T0 + hours(10), boost_level=2)

        with Session(db_engine) as session:
            feed = compose_feed(session, FeedScope.group("g"), 10, now=T0 + hours(5))
        assert _ids(feed) == ["Q", "P"]
        assert feed[0].profile.user_id == "B"


class TestGlobalFeed:
    @pytest.fixture
    def posts(self, db_engine):
        add_profile(db_engine, "alice")
        add_post(db_engine, "old-boosted", "alice", created_at=T0,
                 boost_until=T0 + hours(48), boost_level=1)
        add_post(db_engine, "mid", "alice", created_at=T0 + hours(1))
        add_post(db_engine, "new", "alice", created_at=T0 + hours(2))
        add_post(db_engine, "grouped", "alice", group_id="g", created_at=T0 + hours(3))
        return db_engine

    def test_excludes_group_posts(self, posts):
        with Session(posts) as session:
            feed = compose_feed(session, FeedScope.global_feed(), 50, now=T0 + hours(5))
        assert "grouped" not in _ids(feed)

    def test_boosted_first_then_recency(self, posts):
        with Session(posts) as session:
            feed = compose_feed(session, FeedScope.global_feed(), 50, now=T0 + hours(5))
        assert _ids(feed) == ["old-boosted", "new", "mid"]

    def test_expired_boost_falls_back_to_recency(self, posts):
        with Session(posts) as session:
            feed = compose_feed(session, FeedScope.global_feed(), 50, now=T0 + hours(49))
        assert _ids(feed) == ["new", "mid", "old-boosted"]

    def test_limit_truncates(self, posts):
        with Session(posts) as session:
            feed = compose_feed(session, FeedScope.global_feed(), 2, now=T0 + hours(5))
        assert len(feed) == 2

    def test_order_before_limit_keeps_boosted_post(self, db_engine):
        add_profile(db_engine, "alice")
        for i in range(5):
            add_post(db_engine, f"p{i}", "alice", created_at=T0 + hours(i))
        add_post(db_engine, "boosted", "alice", created_at=T0 - hours(1),
                 boost_until=T0 + hours(100), boost_level=3)

        with Session(db_engine) as session:
            feed = compose_feed(
                session, FeedScope.global_feed(), 1,
                now=T0 + hours(10), order_before_limit=True,
            )
        assert _ids(feed) == ["boosted"]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_invalid_limit(self, db_session, limit):
        with pytest.raises(ValueError):
            compose_feed(db_session, FeedScope.global_feed(), limit)

    def test_empty_scope(self, db_session):
        assert compose_feed(db_session, FeedScope.group("nothing-here"), 10) == []


class TestSearch:
    @pytest.fixture
    def posts(self, db_engine):
        add_profile(db_engine, "alice")
        add_post(db_engine, "s1", "alice", content="My Cat loves naps", created_at=T0)
        add_post(db_engine, "s2", "alice", content="cat tower review",
                 created_at=T0 + hours(1), group_id="g")
        add_post(db_engine, "s3", "alice", content="Dog park meetup", created_at=T0 + hours(2))
        add_post(db_engine, "s4", "alice", content="100% organic treats",
                 created_at=T0 + hours(3))
        return db_engine

    def test_case_insensitive_substring_newest_first(self, posts):
        with Session(posts) as session:
            feed = compose_feed(session, FeedScope.search("  CAT "), 20)
        assert _ids(feed) == ["s2", "s1"]

    def test_wildcards_are_literal(self, posts):
        with Session(posts) as session:
            assert _ids(compose_feed(session, FeedScope.search("%"), 20)) == ["s4"]
            assert compose_feed(session, FeedScope.search("_og park"), 20) == []

    def test_boosts_ignored(self, db_engine):
        add_profile(db_engine, "alice")
        add_post(db_engine, "boosted", "alice", content="cat", created_at=T0,
                 boost_until=T0 + hours(10), boost_level=3)
        add_post(db_engine, "plain", "alice", content="cat", created_at=T0 + hours(1))
        with Session(db_engine) as session:
            feed = compose_feed(session, FeedScope.search("cat"), 20, now=T0 + hours(2))
        assert _ids(feed) == ["plain", "boosted"]


class TestTopHelpful:
    def test_orders_by_helpful_count(self, db_engine):
        add_profile(db_engine, "alice")
        add_post(db_engine, "h1", "alice", helpful_count=3, created_at=T0)
        add_post(db_engine, "h2", "alice", helpful_count=9, created_at=T0)
        add_post(db_engine, "h3", "alice", helpful_count=3, created_at=T0 + hours(1))
        add_post(db_engine, "h4", "alice", helpful_count=0, group_id="g", created_at=T0)

        with Session(db_engine) as session:
            feed = compose_feed(session, FeedScope.top_helpful(), 3)
        assert _ids(feed) == ["h2", "h3", "h1"]


class TestFailures:
    def test_fetch_failure_raises_upstream(self):
        session = MagicMock(spec=Session)
        session.scalars.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(UpstreamFailure):
            compose_feed(session, FeedScope.global_feed(), 10)
