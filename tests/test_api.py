import pytest
from fastapi.testclient import TestClient

import bistro.api.app as api_mod
from bistro.dm.dialogue_engine import DialogueEngine
from bistro.dm.input_adapters import TextInputAdapter, VoiceInputAdapter
from bistro.menu.menu_catalog import MenuCatalog
from bistro.repository.cart_repository import CartRepository
from bistro.repository.order_repository import OrderRepository
from bistro.repository.transcript_repository import TranscriptRepository
from bistro.services.checkout_service import CheckoutService

HEADERS = {"X-API-Key": "bistro-secret-key"}


@pytest.fixture
def client(tmp_path, monkeypatch):
    db_path = str(tmp_path / "api_test.db")
    catalog = MenuCatalog(source_url="")
    cart = CartRepository(db_path=db_path)
    orders = OrderRepository(db_path=db_path)
    transcripts = TranscriptRepository(db_path=db_path)

    # swap every module-level service for a test instance
    monkeypatch.setattr(api_mod, "_catalog", catalog)
    monkeypatch.setattr(api_mod, "_cart_repo", cart)
    monkeypatch.setattr(api_mod, "_order_repo", orders)
    monkeypatch.setattr(api_mod, "_transcript_repo", transcripts)
    monkeypatch.setattr(api_mod, "_checkout", CheckoutService(cart, orders))
    monkeypatch.setattr(
        api_mod, "_text_engine", DialogueEngine(catalog, cart, transcripts, adapter=TextInputAdapter())
    )
    monkeypatch.setattr(
        api_mod, "_voice_engine", DialogueEngine(catalog, cart, transcripts, adapter=VoiceInputAdapter())
    )
    return TestClient(api_mod.app)


def _chat(client, sid, *texts):
    response = None
    for text in texts:
        response = client.post("/dialogue/text", json={"session_id": sid, "text": text}, headers=HEADERS)
        assert response.status_code == 200
    return response.json()


def test_healthz_needs_no_key(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_api_security_unauthorized(client):
    assert client.get("/menu").status_code == 401
    assert client.get("/menu", headers={"X-API-Key": "wrong"}).status_code == 401


def test_menu_listing_and_filters(client):
    body = client.get("/menu", headers=HEADERS).json()
    assert body["count"] == 15

    pizzas = client.get("/menu", params={"category": "pizzas"}, headers=HEADERS).json()
    assert [item["name"] for item in pizzas["items"]] == ["Margherita Pizza", "Pepperoni Pizza", "Vegetarian Pizza"]

    vegan = client.get("/menu", params={"dietary": "vegan"}, headers=HEADERS).json()
    assert [item["id"] for item in vegan["items"]] == ["14"]


def test_menu_popular_and_item(client):
    popular = client.get("/menu/popular", params={"limit": 3}, headers=HEADERS).json()
    assert [item["name"] for item in popular["items"]] == ["Tiramisu", "Margherita Pizza", "Pepperoni Pizza"]

    assert client.get("/menu/1", headers=HEADERS).json()["price"] == "12.99"
    assert client.get("/menu/404", headers=HEADERS).status_code == 404


def test_text_dialogue_turn_shape(client):
    body = _chat(client, "s1", "I want a pizza")
    assert body["phase"] == "presenting_options"
    assert body["turns"][0] == {"role": "user", "text": "I want a pizza"}
    assert body["turns"][1]["role"] == "assistant"
    assert "1. Margherita Pizza" in body["response"]


def test_empty_text_is_rejected(client):
    response = client.post("/dialogue/text", json={"session_id": "s1", "text": "   "}, headers=HEADERS)
    assert response.status_code == 400


def test_chat_order_lands_in_cart_and_checks_out(client):
    body = _chat(client, "s2", "pizza", "1", "2", "no", "yes")
    assert body["phase"] == "initial"
    assert "$25.98" in body["response"]

    cart = client.get("/cart/s2", headers=HEADERS).json()
    assert cart["total_price"] == "25.98"
    assert cart["items"][0]["quantity"] == 2

    order = client.post("/cart/s2/checkout", headers=HEADERS).json()
    assert order["total_price"] == "25.98"

    fetched = client.get(f"/orders/{order['order_id']}", headers=HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["order_id"] == order["order_id"]

    assert client.get("/cart/s2", headers=HEADERS).json()["items"] == []
    listed = client.get("/orders", params={"cart_id": "s2"}, headers=HEADERS).json()
    assert listed["count"] == 1


def test_checkout_of_empty_cart_is_bad_request(client):
    assert client.post("/cart/empty/checkout", headers=HEADERS).status_code == 400


def test_remove_cart_item(client):
    _chat(client, "s3", "dessert", "1", "1", "no", "yes")
    assert client.delete("/cart/s3/items/10", headers=HEADERS).json()["items"] == []
    assert client.delete("/cart/s3/items/10", headers=HEADERS).status_code == 404


def test_api_get_order_invalid_format(client):
    assert client.get("/orders/BAD_ID_!", headers=HEADERS).status_code == 400
    assert client.get("/orders/ORD-00000000", headers=HEADERS).status_code == 404


def test_voice_dialogue_uses_spoken_numbers(client):
    sid = "v1"
    for transcript in ("I'd like a salad.", "The first one.", "Two."):
        response = client.post(
            "/dialogue/voice", json={"session_id": sid, "transcript": transcript}, headers=HEADERS
        )
    body = response.json()
    assert body["phase"] == "awaiting_more"
    assert "Added 2 Caesar Salad" in body["response"]


def test_chat_transcript_is_stored(client):
    _chat(client, "s4", "hello", "pizza")
    body = client.get("/chats/s4", headers=HEADERS).json()
    roles = [m["role"] for m in body["messages"]]
    assert roles == ["assistant", "user", "assistant", "user", "assistant"]
    assert body["messages"][0]["text"] == TextInputAdapter.greeting
    assert client.get("/chats/unknown", headers=HEADERS).status_code == 404


def test_dialogue_state_and_reset(client):
    _chat(client, "s5", "pizza", "1")
    state = client.get("/dialogue/text/s5", headers=HEADERS).json()
    assert state["state"]["phase"] == "awaiting_quantity"
    assert state["state"]["pending_item"] == "1"

    assert client.post("/dialogue/text/s5/reset", headers=HEADERS).json()["status"] == "reset"
    state = client.get("/dialogue/text/s5", headers=HEADERS).json()
    assert state["state"]["phase"] == "initial"
    assert client.get("/dialogue/fax/s5", headers=HEADERS).status_code == 404


def test_oversize_quantity_is_reprompted(client):
    body = _chat(client, "s6", "pizza", "1", "99999999999999999999")
    assert body["phase"] == "awaiting_quantity"

    body = _chat(client, "s6", "3", "no", "yes")
    assert body["phase"] == "initial"
    assert client.get("/cart/s6", headers=HEADERS).json()["items"][0]["quantity"] == 3


def test_list_orders_rejects_unknown_status(client):
    assert client.get("/orders", params={"status": "LOST"}, headers=HEADERS).status_code == 400
    assert client.get("/orders", params={"status": "placed"}, headers=HEADERS).json()["count"] == 0


def test_pronoun_one_on_voice_channel_does_not_pick_an_item(client):
    for transcript in ("pizza please", "the pepperoni one"):
        response = client.post(
            "/dialogue/voice", json={"session_id": "v2", "transcript": transcript}, headers=HEADERS
        )
    body = response.json()
    assert body["phase"] == "presenting_options"
    assert "couldn't find that item" in body["response"]
