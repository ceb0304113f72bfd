"""
tests/test_api_routes.py — FastAPI Route Integration Tests
============================================================
Exercises the HTTP surface with the FastAPI TestClient against the
in-memory engine:

- Health endpoint availability
- Bearer-token guard on write endpoints
- Feed endpoints and their payload shape
- Domain errors mapped to status codes and JSON bodies
"""

from __future__ import annotations

from unittest.mock import patch

import jwt
import pytest
from sqlalchemy.orm import Session

from petsconnect.api.deps import JWT_ALGORITHM
from petsconnect.database.models import Task
from tests.factories import T0, add_post, add_profile, auth, hours


@pytest.fixture
def community(db_engine):
    add_profile(db_engine, "vet", points=10)
    add_profile(db_engine, "fan", points=0)
    add_profile(db_engine, "shop", points=30, is_business=True, business_name="Paws Cafe")
    add_post(db_engine, "p1", "vet", content="Brush your dog's teeth", created_at=T0)
    add_post(db_engine, "ad", "shop", content="Grooming sale", created_at=T0 - hours(1))
    add_post(db_engine, "g1", "fan", content="Group hello", group_id="g", created_at=T0)
    return db_engine


# ===========================================================================
# Health endpoint
# ===========================================================================
class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


# ===========================================================================
# Auth guard
# ===========================================================================
class TestAuthGuard:
    def test_missing_token(self, client, community):
        assert client.post("/api/posts/p1/like").status_code == 401

    def test_wrong_secret(self, client, community):
        token = jwt.encode({"sub": "fan"}, "x" * 64, algorithm=JWT_ALGORITHM)
        resp = client.post("/api/posts/p1/like", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_token_without_sub(self, client, community):
        from petsconnect.api.deps import JWT_SECRET

        token = jwt.encode({"name": "fan"}, JWT_SECRET, algorithm=JWT_ALGORITHM)
        resp = client.post("/api/posts/p1/like", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_feed_is_public(self, client, community):
        assert client.get("/api/feed").status_code == 200


# ===========================================================================
# Feeds
# ===========================================================================
class TestFeedEndpoints:
    def test_global_feed_shape(self, client, community):
        resp = client.get("/api/feed")
        assert resp.status_code == 200
        body = resp.json()
        assert body["limit"] == 50
        assert [p["id"] for p in body["posts"]] == ["p1", "ad"]
        post = body["posts"][0]
        assert post["profile"]["username"] == "vet"
        for key in ("like_count", "helpful_count", "comment_count", "boosted", "threads"):
            assert key in post

    def test_limit_clamped_to_max(self, client, community):
        assert client.get("/api/feed?limit=100000").json()["limit"] == 200

    def test_limit_must_be_positive(self, client, community):
        assert client.get("/api/feed?limit=0").status_code == 422

    def test_group_feed(self, client, community):
        body = client.get("/api/groups/g/feed").json()
        assert [p["id"] for p in body["posts"]] == ["g1"]

    def test_search(self, client, community):
        body = client.get("/api/posts/search", params={"q": "grooming"}).json()
        assert body["limit"] == 20
        assert [p["id"] for p in body["posts"]] == ["ad"]

    def test_search_requires_query(self, client, community):
        assert client.get("/api/posts/search").status_code == 422

    def test_helpful(self, client, community):
        client.post("/api/posts/p1/helpful", headers=auth("fan"))
        body = client.get("/api/posts/helpful").json()
        assert body["limit"] == 5
        assert body["posts"][0]["id"] == "p1"
        assert body["posts"][0]["helpful_count"] == 1

    def test_viewer_flags(self, client, community):
        client.post("/api/posts/p1/like", headers=auth("fan"))
        mine = client.get("/api/feed", headers=auth("fan")).json()["posts"][0]
        anon = client.get("/api/feed").json()["posts"][0]
        assert mine["liked_by_me"] is True
        assert anon["liked_by_me"] is False
        assert mine["like_count"] == 1

    def test_boosted_post_leads(self, client, community):
        resp = client.post("/api/posts/ad/boost", json={"level": 1}, headers=auth("shop"))
        assert resp.status_code == 200
        assert resp.json()["balance"] == 20
        posts = client.get("/api/feed").json()["posts"]
        assert posts[0]["id"] == "ad"
        assert posts[0]["boosted"] is True


# ===========================================================================
# Engagement
# ===========================================================================
class TestEngagementEndpoints:
    def test_create_post_appears_in_feed(self, client, community):
        resp = client.post(
            "/api/posts",
            json={"content": " Adopted a kitten! ", "image_url": "https://img/k.jpg"},
            headers=auth("fan"),
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["content"] == "Adopted a kitten!"
        assert created["group_id"] is None
        top = client.get("/api/feed").json()["posts"][0]
        assert top["id"] == created["id"]
        assert top["image_url"] == "https://img/k.jpg"

    def test_create_group_post(self, client, community):
        resp = client.post(
            "/api/posts", json={"content": "Meetup Sunday", "group_id": "g"}, headers=auth("vet")
        )
        body = client.get("/api/groups/g/feed").json()
        assert body["posts"][0]["id"] == resp.json()["id"]

    def test_create_post_requires_token(self, client, community):
        assert client.post("/api/posts", json={"content": "hi"}).status_code == 401

    def test_blank_post_is_422(self, client, community):
        resp = client.post("/api/posts", json={"content": "   "}, headers=auth("fan"))
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Post cannot be empty."

    def test_database_outage_is_503(self, client, community):
        from sqlalchemy.exc import OperationalError

        from petsconnect.services import engagement_service

        with patch.object(
            engagement_service.ledger,
            "apply_reward_event",
            side_effect=OperationalError("UPDATE profiles", {}, Exception("gone")),
        ):
            resp = client.post("/api/posts/p1/like", headers=auth("fan"))
        assert resp.status_code == 503
        assert client.get("/api/feed").json()["posts"][0]["like_count"] == 0

    def test_like_toggle(self, client, community):
        first = client.post("/api/posts/p1/like", headers=auth("fan")).json()
        second = client.post("/api/posts/p1/like", headers=auth("fan")).json()
        assert (first["state"], first["points_awarded"]) == ("present", 1)
        assert second["state"] == "absent"

    def test_comment_and_thread(self, client, community):
        resp = client.post(
            "/api/posts/p1/comments", json={"content": "Nice!"}, headers=auth("fan")
        )
        assert resp.status_code == 201
        parent_id = resp.json()["id"]
        client.post(
            "/api/posts/p1/comments",
            json={"content": "Thanks", "parent_id": parent_id},
            headers=auth("vet"),
        )
        post = client.get("/api/feed").json()["posts"][0]
        assert post["comment_count"] == 2
        assert post["threads"][0]["replies"][0]["content"] == "Thanks"

    def test_empty_comment_is_422(self, client, community):
        resp = client.post("/api/posts/p1/comments", json={"content": "  "}, headers=auth("fan"))
        assert resp.status_code == 422

    def test_unknown_post_is_404(self, client, community):
        resp = client.post("/api/posts/missing/like", headers=auth("fan"))
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Post not found."

    def test_boost_insufficient_points_is_402(self, client, community):
        resp = client.post("/api/posts/ad/boost", json={"level": 3}, headers=auth("shop"))
        assert resp.status_code == 402
        assert resp.json()["shortfall"] == 20
        assert resp.json()["balance"] == 30

    def test_boost_by_non_business_is_403(self, client, community):
        resp = client.post("/api/posts/p1/boost", json={"level": 1}, headers=auth("vet"))
        assert resp.status_code == 403

    def test_discount(self, client, community):
        resp = client.post(
            "/api/businesses/shop/discounts", json={"tier": "Bronze"}, headers=auth("vet")
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["balance"] == 0
        assert "Business: Paws Cafe" in body["receipt"]

    def test_save_twice_is_409_notice(self, client, community):
        assert client.post("/api/posts/p1/save", headers=auth("fan")).status_code == 201
        resp = client.post("/api/posts/p1/save", headers=auth("fan"))
        assert resp.status_code == 409
        assert resp.json()["notice"] is True

    def test_save_to_board(self, client, community):
        board = client.post("/api/boards", json={"name": "Dental"}, headers=auth("fan")).json()
        resp = client.post(
            "/api/posts/p1/save", json={"board_id": board["id"]}, headers=auth("fan")
        )
        assert resp.status_code == 201
        assert resp.json()["board_id"] == board["id"]

    def test_friend_request(self, client, community):
        resp = client.post("/api/friends/requests", json={"friend_id": "vet"}, headers=auth("fan"))
        assert resp.status_code == 201
        assert resp.json()["status"] == "pending"
        again = client.post("/api/friends/requests", json={"friend_id": "fan"}, headers=auth("vet"))
        assert again.status_code == 409

    def test_complete_task(self, client, community, db_engine):
        with Session(db_engine) as session:
            session.add(Task(id="t1", user_id="fan", title="Vet visit", points=40))
            session.commit()
        resp = client.post("/api/tasks/t1/complete", headers=auth("fan"))
        assert resp.json() == {"task_id": "t1", "points_awarded": 40}
        assert client.post("/api/tasks/t1/complete", headers=auth("fan")).status_code == 409


# ===========================================================================
# Rewards
# ===========================================================================
class TestRewardEndpoints:
    def test_catalogue(self, client):
        body = client.get("/api/rewards/tiers").json()
        assert [t["name"] for t in body["tiers"]] == [
            "Starter", "Bronze", "Silver", "Gold", "Platinum",
        ]
        assert [b["cost"] for b in body["boosts"]] == [10, 25, 50]
        assert body["discounts"][0]["label"] == "Bronze Discount"

    def test_profile_progress(self, client, community):
        body = client.get("/api/profiles/shop/rewards").json()
        assert body["points"] == 30
        assert body["tier"]["name"] == "Starter"
        assert body["next_tier"]["name"] == "Bronze"
        assert body["points_to_next"] == 20

    def test_unknown_profile(self, client, community):
        assert client.get("/api/profiles/ghost/rewards").status_code == 404


# ===========================================================================
# Onboarding
# ===========================================================================
class TestSeedEndpoint:
    def test_seed_my_network(self, client, community):
        add_profile(community, "newbie", created_at=T0 + hours(2))
        first = client.post("/api/profiles/me/seed", headers=auth("newbie"))
        assert first.status_code == 200
        assert first.json() == {"friends_created": 2, "messages_created": 2}

        again = client.post("/api/profiles/me/seed", headers=auth("newbie"))
        assert again.json() == {"friends_created": 0, "messages_created": 0}

    def test_seed_requires_token(self, client, community):
        assert client.post("/api/profiles/me/seed").status_code == 401
