import os
import re
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.security.api_key import APIKeyHeader
from pydantic import BaseModel

from bistro.dm.dialogue_engine import DialogueEngine
from bistro.dm.input_adapters import TextInputAdapter, VoiceInputAdapter
from bistro.dm.llm_classifier import LLMCategoryClassifier
from bistro.menu.menu_catalog import MenuCatalog
from bistro.repository.cart_repository import CartRepository
from bistro.repository.order_repository import OrderRepository
from bistro.repository.transcript_repository import TranscriptRepository
from bistro.services.checkout_service import CheckoutService
from bistro.services.llm_service import LLMService

load_dotenv()

app = FastAPI(title="AI Bistro Order API")


def _voice_classifier() -> Optional[LLMCategoryClassifier]:
    if os.getenv("VOICE_LLM_ENABLED", "false").lower() != "true":
        return None
    return LLMCategoryClassifier(LLMService())


# Services
_catalog = MenuCatalog()
_cart_repo = CartRepository()
_order_repo = OrderRepository()
_transcript_repo = TranscriptRepository()
_checkout = CheckoutService(_cart_repo, _order_repo)
_text_engine = DialogueEngine(_catalog, _cart_repo, _transcript_repo, adapter=TextInputAdapter())
_voice_engine = DialogueEngine(
    _catalog, _cart_repo, _transcript_repo, adapter=VoiceInputAdapter(classifier=_voice_classifier())
)


class TextDialogueRequest(BaseModel):
    session_id: str
    text: str


class VoiceDialogueRequest(BaseModel):
    """Speech-to-text happens on the client; only the transcript is sent."""
    session_id: str
    transcript: str


class Turn(BaseModel):
    role: str
    text: str


class DialogueResponse(BaseModel):
    session_id: str
    response: str
    phase: str
    turns: List[Turn]
    status: str = "ok"


API_KEY = os.getenv("API_KEY", "bistro-secret-key")
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_api_key(api_key: Optional[str] = Security(api_key_header)):
    if api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API Key")
    return api_key


def validate_order_id(order_id: str):
    if not re.match(r"^[A-Z0-9-]+$", order_id) or len(order_id) > 20:
        raise HTTPException(status_code=400, detail="Invalid Order ID format")


def _engine_for(channel: str) -> DialogueEngine:
    if channel == "text":
        return _text_engine
    if channel == "voice":
        return _voice_engine
    raise HTTPException(status_code=404, detail=f"Unknown dialogue channel '{channel}'")


def _run_turn(engine: DialogueEngine, session_id: str, text: str) -> DialogueResponse:
    if not text.strip():
        raise HTTPException(status_code=400, detail="No text provided")
    reply = engine.handle(session_id, text)
    return DialogueResponse(
        session_id=session_id,
        response=reply,
        phase=engine.state(session_id).phase.value,
        turns=[Turn(role="user", text=text), Turn(role="assistant", text=reply)],
    )


def _cart_payload(cart_id: str) -> Dict[str, Any]:
    lines = _cart_repo.list_lines(cart_id)
    return {
        "cart_id": cart_id,
        "items": [
            {
                "item_id": line["item_id"],
                "name": line["name"],
                "unit_price": f"{line['unit_price']:.2f}",
                "quantity": line["quantity"],
                "line_total": f"{line['line_total']:.2f}",
            }
            for line in lines
        ],
        "total_price": f"{_cart_repo.total(cart_id):.2f}",
    }


@app.get("/healthz")
async def healthz():
    return {"ok": True}


# ============================================================================
# Menu
# ============================================================================

@app.get("/menu")
async def list_menu(
    category: Optional[str] = None,
    dietary: Optional[str] = None,
    api_key: str = Depends(get_api_key),
):
    items = _catalog.filter_items(category=category, dietary=dietary)
    return {"items": [item.to_dict() for item in items], "count": len(items)}


@app.get("/menu/popular")
async def popular_menu(limit: int = 6, api_key: str = Depends(get_api_key)):
    items = _catalog.popular_items(limit=max(1, min(limit, 50)))
    return {"items": [item.to_dict() for item in items], "count": len(items)}


@app.get("/menu/{item_id}")
async def get_menu_item(item_id: str, api_key: str = Depends(get_api_key)):
    item = _catalog.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item.to_dict()


# ============================================================================
# Ordering assistants
# ============================================================================

@app.post("/dialogue/text", response_model=DialogueResponse)
async def text_dialogue(request: TextDialogueRequest, api_key: str = Depends(get_api_key)):
    """
    Text chat turn.

        curl -X POST http://localhost:8000/dialogue/text \
          -H "X-API-Key: bistro-secret-key" \
          -H "Content-Type: application/json" \
          -d '{"session_id": "user123", "text": "I want a pizza"}'
    """
    return _run_turn(_text_engine, request.session_id, request.text)


@app.post("/dialogue/voice", response_model=DialogueResponse)
async def voice_dialogue(request: VoiceDialogueRequest, api_key: str = Depends(get_api_key)):
    """
    Voice assistant turn; the browser's speech recognizer supplies the transcript.

        curl -X POST http://localhost:8000/dialogue/voice \
          -H "X-API-Key: bistro-secret-key" \
          -H "Content-Type: application/json" \
          -d '{"session_id": "user123", "transcript": "um, the second one"}'
    """
    return _run_turn(_voice_engine, request.session_id, request.transcript)


@app.get("/dialogue/{channel}/{session_id}")
async def dialogue_state(channel: str, session_id: str, api_key: str = Depends(get_api_key)):
    engine = _engine_for(channel)
    greeting = engine.start(session_id)
    return {"greeting": greeting, "state": engine.state(session_id).to_dict()}


@app.post("/dialogue/{channel}/{session_id}/reset")
async def reset_dialogue(channel: str, session_id: str, api_key: str = Depends(get_api_key)):
    _engine_for(channel).reset(session_id)
    return {"session_id": session_id, "status": "reset"}


@app.get("/chats/{conversation_id}")
async def get_chat(conversation_id: str, api_key: str = Depends(get_api_key)):
    turns = _transcript_repo.get_transcript(conversation_id)
    if not turns:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"conversation_id": conversation_id, "messages": turns}


# ============================================================================
# Cart & orders
# ============================================================================

@app.get("/cart/{cart_id}")
async def get_cart(cart_id: str, api_key: str = Depends(get_api_key)):
    return _cart_payload(cart_id)


@app.delete("/cart/{cart_id}/items/{item_id}")
async def remove_cart_item(cart_id: str, item_id: str, api_key: str = Depends(get_api_key)):
    if not _cart_repo.remove_line(cart_id, item_id):
        raise HTTPException(status_code=404, detail="Item not in cart")
    return _cart_payload(cart_id)


@app.post("/cart/{cart_id}/checkout")
async def checkout(cart_id: str, api_key: str = Depends(get_api_key)):
    try:
        return _checkout.place_order(cart_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/orders/{order_id}")
async def get_order(order_id: str, api_key: str = Depends(get_api_key)):
    validate_order_id(order_id)
    order = _order_repo.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.get("/orders")
async def list_orders(
    date: Optional[str] = None,
    status: Optional[str] = None,
    cart_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    api_key: str = Depends(get_api_key)
):
    try:
        orders = _order_repo.list_orders(date=date, status=status, cart_id=cart_id, limit=limit, offset=offset)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"items": orders, "count": len(orders)}
