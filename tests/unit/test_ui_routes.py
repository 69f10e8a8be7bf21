"""HTTP routes: public bidding surface, admin API, operational endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from starlette.testclient import TestClient

from auction_house.core.config import Settings
from auction_house.ui.app import create_app

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)  # matches the sim_clock fixture


@pytest.fixture
def client(engine) -> TestClient:
    engine.ensure_admin("admin", "changeme123")
    return TestClient(create_app(engine, settings=Settings()))


@pytest.fixture
def admin_client(client) -> TestClient:
    resp = client.post("/admin/login", json={"username": "admin", "password": "changeme123"})
    assert resp.status_code == 200
    return client


def _create_body(**overrides):
    body = {
        "title": "Vintage Lamp",
        "description": "Brass",
        "starts_at": (NOW - timedelta(minutes=30)).isoformat(),
        "duration_minutes": 120,
        "starting_bid": 50,
        "min_increment": 1,
        "max_increment": 100,
    }
    body.update(overrides)
    return body


# ------------------------------------------------------------------
# Operational
# ------------------------------------------------------------------

class TestOperational:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics(self, client):
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "auction_bids_total" in resp.text

    def test_trace_id_header(self, client):
        resp = client.get("/health", headers={"X-Trace-Id": "abc123"})
        assert resp.headers["x-trace-id"] == "abc123"
        assert client.get("/health").headers["x-trace-id"]


# ------------------------------------------------------------------
# Public
# ------------------------------------------------------------------

class TestPublicRoutes:
    def test_home_lists_auctions(self, client, active_auction):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert active_auction.title in resp.text

    def test_auction_page(self, client, active_auction):
        resp = client.get(f"/{active_auction.slug}")
        assert resp.status_code == 200
        assert "50.00" in resp.text

    def test_auction_page_has_countdown(self, client, active_auction):
        resp = client.get(f"/{active_auction.slug}")
        assert 'id="countdown"' in resp.text
        assert f'data-starts-at="{active_auction.starts_at.isoformat()}"' in resp.text
        assert f'data-ends-at="{active_auction.ends_at.isoformat()}"' in resp.text

    def test_auction_page_not_found(self, client):
        resp = client.get("/no-such-auction")
        assert resp.status_code == 404
        assert "Auction not found" in resp.text

    def test_status(self, client, active_auction):
        resp = client.get(f"/{active_auction.slug}/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["current_bid"] == 50.0
        assert data["active"] is True
        assert data["has_started"] is True
        assert data["has_ended"] is False

    def test_status_not_found(self, client):
        resp = client.get("/missing/status")
        assert resp.status_code == 404
        assert resp.json() == {"ok": False, "error": "Auction not found"}

    def test_bid_sequence(self, client, active_auction):
        url = f"/{active_auction.slug}/bid"
        assert client.post(url, json={"amount": 60}).json() == {"ok": True, "current_bid": 60.0}
        assert client.post(url, json={"amount": "60.5"}).json() == {
            "ok": False, "error": "Bid increment is below the minimum increment.",
        }
        assert client.post(url, json={"amount": 200}).json() == {
            "ok": False, "error": "Bid increment is above the maximum increment.",
        }
        assert client.post(url, json={"amount": 160}).json()["current_bid"] == 160.0

    def test_bid_records_client_address(self, client, engine, active_auction):
        client.post(f"/{active_auction.slug}/bid", json={"amount": 60})
        assert engine.get_auction(active_auction.slug).bids[0].bidder_ref == "testclient"

    @pytest.mark.parametrize(
        "body",
        [{"amount": "abc"}, {}, {"amount": 10}, {"amount": [60]}, {"amount": {"value": 60}}],
    )
    def test_bid_too_low(self, client, active_auction, body):
        resp = client.post(f"/{active_auction.slug}/bid", json=body)
        assert resp.json() == {"ok": False, "error": "Bid must be greater than current bid."}

    def test_bid_not_started(self, client, engine, spec_factory):
        auction = engine.create_auction(spec_factory(starts_in=timedelta(hours=1)))
        resp = client.post(f"/{auction.slug}/bid", json={"amount": 60})
        assert resp.json() == {"ok": False, "error": "Auction has not started yet."}

    def test_bid_ended(self, client, active_auction, sim_clock):
        sim_clock.advance(hours=2)
        resp = client.post(f"/{active_auction.slug}/bid", json={"amount": 60})
        assert resp.json() == {"ok": False, "error": "Auction has ended."}

    def test_bid_not_found(self, client):
        resp = client.post("/missing/bid", json={"amount": 60})
        assert resp.status_code == 404
        assert resp.json()["ok"] is False


# ------------------------------------------------------------------
# Admin
# ------------------------------------------------------------------

class TestAdminAuth:
    def test_auction_list_requires_login(self, client):
        assert client.get("/admin/auctions").status_code == 401

    def test_mutations_require_login(self, client, active_auction):
        assert client.post("/admin/auction", json=_create_body()).status_code == 401
        assert client.post(f"/admin/auction/{active_auction.id}/delete").status_code == 401
        assert client.post("/admin/creds", json={"username": "x", "password": "y"}).status_code == 401

    def test_bad_login(self, client):
        resp = client.post("/admin/login", json={"username": "admin", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "Invalid credentials"}

    def test_login_then_logout(self, admin_client):
        assert admin_client.get("/admin/auctions").status_code == 200
        admin_client.post("/admin/logout")
        assert admin_client.get("/admin/auctions").status_code == 401

    def test_rotate_credentials(self, admin_client):
        resp = admin_client.post("/admin/creds", json={"username": "boss", "password": "s3cret"})
        assert resp.json() == {"ok": True, "admin_user": "boss"}
        # Current session survives rotation
        assert admin_client.get("/admin/auctions").status_code == 200
        admin_client.post("/admin/logout")
        ok = admin_client.post("/admin/login", json={"username": "boss", "password": "s3cret"})
        assert ok.status_code == 200

    def test_rotate_requires_both_fields(self, admin_client):
        resp = admin_client.post("/admin/creds", json={"username": "boss", "password": ""})
        assert resp.status_code == 400


class TestAdminAuctions:
    def test_create(self, admin_client):
        resp = admin_client.post("/admin/auction", json=_create_body())
        assert resp.status_code == 201
        auction = resp.json()["auction"]
        assert auction["slug"] == "vintage-lamp"
        assert auction["current_bid"] == 50.0
        assert auction["state"] == "active"

    def test_create_without_max_increment(self, admin_client):
        resp = admin_client.post("/admin/auction", json=_create_body(max_increment=None))
        assert resp.json()["auction"]["max_increment"] is None

    def test_create_invalid_bounds(self, admin_client):
        resp = admin_client.post("/admin/auction", json=_create_body(min_increment=0))
        assert resp.status_code == 400
        assert resp.json()["ok"] is False

    def test_create_zero_duration_refused(self, admin_client):
        resp = admin_client.post("/admin/auction", json=_create_body(duration_minutes=0))
        assert resp.status_code == 422

    def test_create_huge_duration_refused(self, admin_client):
        resp = admin_client.post("/admin/auction", json=_create_body(duration_minutes=10**12))
        assert resp.status_code == 422

    def test_create_window_past_calendar_end_refused(self, admin_client):
        body = _create_body(starts_at="9999-12-31T23:00:00+00:00", duration_minutes=120)
        resp = admin_client.post("/admin/auction", json=body)
        assert resp.status_code == 400
        assert resp.json()["ok"] is False

    def test_dashboard_lists_bids(self, admin_client, active_auction):
        admin_client.post(f"/{active_auction.slug}/bid", json={"amount": 60})
        data = admin_client.get("/admin/auctions").json()
        assert data["admin_user"] == "admin"
        (auction,) = data["auctions"]
        assert auction["bids"][0]["amount"] == 60.0

    def test_update(self, admin_client, active_auction):
        resp = admin_client.post(
            f"/admin/auction/{active_auction.id}/update",
            json={"title": "Brass Lamp", "max_increment": None},
        )
        assert resp.status_code == 200
        auction = resp.json()["auction"]
        assert auction["title"] == "Brass Lamp"
        assert auction["max_increment"] is None
        assert auction["slug"] == active_auction.slug

    def test_update_window(self, admin_client, active_auction):
        start = NOW + timedelta(days=1)
        resp = admin_client.post(
            f"/admin/auction/{active_auction.id}/update",
            json={"starts_at": start.isoformat(), "duration_minutes": 30},
        )
        assert resp.json()["auction"]["state"] == "pending"

    def test_update_window_past_calendar_end_refused(self, admin_client, active_auction):
        resp = admin_client.post(
            f"/admin/auction/{active_auction.id}/update",
            json={"starts_at": "9999-12-31T23:00:00+00:00", "duration_minutes": 120},
        )
        assert resp.status_code == 400
        assert admin_client.get(f"/{active_auction.slug}/status").json()["active"] is True

    def test_update_half_window_refused(self, admin_client, active_auction):
        resp = admin_client.post(
            f"/admin/auction/{active_auction.id}/update",
            json={"duration_minutes": 30},
        )
        assert resp.status_code == 400

    def test_update_unknown(self, admin_client):
        resp = admin_client.post("/admin/auction/missing/update", json={"title": "x"})
        assert resp.status_code == 404

    def test_delete(self, admin_client, active_auction):
        resp = admin_client.post(f"/admin/auction/{active_auction.id}/delete")
        assert resp.json() == {"ok": True}
        assert admin_client.get(f"/{active_auction.slug}/status").status_code == 404


class TestAdminPages:
    def test_login_page(self, client):
        resp = client.get("/admin/login")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert 'id="login-form"' in resp.text

    def test_dashboard_redirects_to_login(self, client):
        resp = client.get("/admin", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin/login"

    def test_login_page_redirects_when_logged_in(self, admin_client):
        resp = admin_client.get("/admin/login", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin"

    def test_dashboard_renders_auctions(self, admin_client, active_auction):
        admin_client.post(f"/{active_auction.slug}/bid", json={"amount": 60})
        resp = admin_client.get("/admin")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Logged in as <strong>admin</strong>" in resp.text
        assert active_auction.title in resp.text
        assert f'data-action="/admin/auction/{active_auction.id}/update"' in resp.text
        assert f'data-action="/admin/auction/{active_auction.id}/delete"' in resp.text
        # Edit form is prefilled with the current window and bounds
        assert 'value="2024-06-01T11:00"' in resp.text
        assert 'value="120"' in resp.text
        assert "60.00" in resp.text

    def test_dashboard_after_logout(self, admin_client):
        admin_client.post("/admin/logout")
        resp = admin_client.get("/admin", follow_redirects=False)
        assert resp.status_code == 303
