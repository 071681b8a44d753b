"""Tests for block editing (/api/pages) and the public doctor pages."""

from unittest.mock import patch

from medlead.extensions import db
from medlead.models.event import Event
from medlead.models.indication import Indication
from medlead.models.page import Block


class TestBlocksApi:

    def test_list_blocks_in_order(self, app, client, seed_data, login):
        login(seed_data["silva_email"])
        response = client.get(f"/api/pages/{seed_data['page_id']}/blocks")
        assert response.status_code == 200
        assert [b["type"] for b in response.get_json()] == ["FORM", "BUTTON"]

    def test_replace_blocks(self, app, client, seed_data, login):
        login(seed_data["silva_email"])
        response = client.put(f"/api/pages/{seed_data['page_id']}/blocks", json={"blocks": [
            {"type": "WHATSAPP", "content": {"whatsappNumber": "5511999990000"}},
            {"type": "REDIRECT", "content": {"redirectUrl": "https://x.example", "redirectDelay": 3}},
        ]})
        assert response.status_code == 200
        data = response.get_json()
        assert [(b["type"], b["order"]) for b in data] == [("WHATSAPP", 0), ("REDIRECT", 1)]
        assert data[1]["content"]["showCountdown"] is False
        assert Block.query.filter_by(page_id=seed_data["page_id"]).count() == 2

    def test_invalid_block_replaces_nothing(self, app, client, seed_data, login):
        login(seed_data["silva_email"])
        response = client.put(f"/api/pages/{seed_data['page_id']}/blocks", json={"blocks": [
            {"type": "BUTTON", "content": {"label": "ok", "url": "https://x"}},
            {"type": "FORM", "content": {"title": "Agende", "redirectUrl": "https://y"}},
        ]})
        assert response.status_code == 400
        assert "Bloco 2" in response.get_json()["error"]
        types = [b.type for b in Block.query.filter_by(page_id=seed_data["page_id"]).order_by(Block.order)]
        assert types == ["FORM", "BUTTON"]

    def test_blocks_must_be_list(self, app, client, seed_data, login):
        login(seed_data["silva_email"])
        response = client.put(f"/api/pages/{seed_data['page_id']}/blocks", json={"blocks": {}})
        assert response.status_code == 400

    def test_other_doctors_page(self, app, client, seed_data, login):
        login(seed_data["costa_email"])
        assert client.get(f"/api/pages/{seed_data['page_id']}/blocks").status_code == 404
        response = client.put(f"/api/pages/{seed_data['page_id']}/blocks", json={"blocks": []})
        assert response.status_code == 404
        assert Block.query.filter_by(page_id=seed_data["page_id"]).count() == 2


class TestPublicPage:

    def test_renders_blocks(self, app, client, seed_data):
        response = client.get("/dr-silva")
        assert response.status_code == 200
        html = response.get_data(as_text=True)
        assert "Dra. Ana Silva" in html
        assert "Agende sua consulta" in html
        assert 'action="/api/lead"' in html
        assert 'value="dr-silva"' in html
        assert "https://instagram.com/drasilva" in html

    def test_whatsapp_fallback_without_whatsapp_block(self, app, client, seed_data):
        html = client.get("/dr-silva").get_data(as_text=True)
        assert "https://wa.me/5511988887777" in html

    def test_no_fallback_when_page_has_whatsapp_block(self, app, client, seed_data):
        db.session.add(Block(
            page_id=seed_data["page_id"], type="WHATSAPP",
            content={"whatsappNumber": "5511900000000"}, order=2,
        ))
        db.session.commit()
        html = client.get("/dr-silva").get_data(as_text=True)
        assert "whatsapp-fallback" not in html
        assert "https://wa.me/5511900000000" in html

    def test_malformed_stored_block_is_skipped(self, app, client, seed_data):
        db.session.add(Block(
            page_id=seed_data["page_id"], type="BUTTON",
            content={"label": "Quebrado", "modalSize": "large"}, order=2,
        ))
        db.session.commit()
        response = client.get("/dr-silva")
        assert response.status_code == 200
        assert "Quebrado" not in response.get_data(as_text=True)

    def test_page_view_recorded(self, app, client, seed_data):
        client.get("/dr-silva")
        assert Event.query.filter_by(type="page_view", user_id=seed_data["silva_id"]).count() == 1

    def test_referral_click_counted(self, app, client, seed_data):
        response = client.get("/dr-silva/insta", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert response.status_code == 200
        assert 'name="indicationSlug" value="insta"' in response.get_data(as_text=True)

        event = Event.query.filter_by(type="click").one()
        assert event.indication_id == seed_data["indication_id"]
        assert event.ip == "203.0.113.7"
        indication = db.session.get(Indication, seed_data["indication_id"])
        db.session.refresh(indication)
        assert indication.visits == 1

    def test_unknown_referral_still_renders(self, app, client, seed_data):
        response = client.get("/dr-silva/nao-existe")
        assert response.status_code == 200
        assert Event.query.filter_by(type="page_view").count() == 1

    def test_tracking_failure_does_not_break_page(self, app, client, seed_data):
        with patch(
            "medlead.services.analytics_service.Event",
            side_effect=RuntimeError("events table unavailable"),
        ):
            response = client.get("/dr-silva")
        assert response.status_code == 200

    def test_unknown_doctor(self, app, client, seed_data):
        assert client.get("/dr-ninguem").status_code == 404

    def test_doctor_without_page(self, app, client, seed_data):
        assert client.get("/dr-costa").status_code == 404

    def test_reserved_prefix(self, app, client, seed_data):
        assert client.get("/api/nada").status_code == 404
