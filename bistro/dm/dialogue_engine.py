from __future__ import annotations

import logging
from typing import List, Optional

from bistro.dm import messages
from bistro.dm.conversation_state import ConversationState, DraftOrderLine
from bistro.dm.input_adapters import TextInputAdapter
from bistro.dm.intent_parser import CATEGORY, CONFIRM, MORE, QUANTITY, SELECT_ITEM, Intent
from bistro.dm.phases import DialogPhase
from bistro.dm.session_store import InMemorySessionStore
from bistro.menu.menu_catalog import MenuCatalog, MenuCatalogItem

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class DialogueEngine:
    """
    Order-taking dialogue for one input modality.

    Each conversation walks category -> item -> quantity -> "anything else?"
    -> confirmation. Confirmed lines go to the cart sink; every utterance is
    appended to the transcript store on a best-effort basis.
    """

    def __init__(
        self,
        catalog: MenuCatalog,
        cart,
        transcripts=None,
        adapter: Optional[TextInputAdapter] = None,
        store: Optional[InMemorySessionStore] = None,
    ):
        self.catalog = catalog
        self.cart = cart
        self.transcripts = transcripts
        self.adapter = adapter or TextInputAdapter()
        self.store = store or InMemorySessionStore()

    # ---- Conversation lifecycle ----

    def start(self, session_id: str) -> str:
        """Opens a conversation (if needed) and returns the greeting."""
        if session_id not in self.store:
            self.store.get_or_create(session_id)
            self._record(session_id, ROLE_ASSISTANT, self.adapter.greeting)
        return self.adapter.greeting

    def reset(self, session_id: str) -> None:
        """The UI surface was closed: drop the draft and start over next time."""
        state = self.store.get(session_id)
        if state is not None:
            state.reset()
        self.store.clear(session_id)

    def state(self, session_id: str) -> ConversationState:
        return self.store.get_or_create(session_id)

    # ---- Turn processing ----

    def handle(self, session_id: str, text: str) -> str:
        self.start(session_id)
        state = self.store.get_or_create(session_id)

        self._record(session_id, ROLE_USER, text)
        intent = self.adapter.to_intent(text, state.phase)
        reply = self._apply(state, intent)
        self.store.set(session_id, state)
        self._record(session_id, ROLE_ASSISTANT, reply)
        return reply

    def _apply(self, state: ConversationState, intent: Intent) -> str:
        if intent.kind == CATEGORY:
            return self._on_category(state, intent.category)

        if intent.kind == SELECT_ITEM and state.phase == DialogPhase.PRESENTING_OPTIONS:
            return self._on_select(state, intent.number)

        if (
            intent.kind == QUANTITY
            and state.phase == DialogPhase.AWAITING_QUANTITY
            and state.pending_item is not None
        ):
            return self._on_quantity(state, intent.number)

        if intent.kind == MORE and state.phase == DialogPhase.AWAITING_MORE:
            return self._on_more(state, intent.value)

        if intent.kind == CONFIRM and state.phase == DialogPhase.AWAITING_CONFIRMATION:
            return self._on_confirm(state, intent.value)

        # unknown or out-of-phase intent: no state change
        return messages.reprompt_for_phase(state)

    def _on_category(self, state: ConversationState, category: str) -> str:
        items = self._list_items(category)
        if not items:
            state.phase = DialogPhase.INITIAL
            state.pending_category = None
            state.listed_options = []
            return messages.category_empty_message(category)

        state.phase = DialogPhase.PRESENTING_OPTIONS
        state.pending_category = category
        state.listed_options = items
        return messages.options_message(category, items)

    def _on_select(self, state: ConversationState, ordinal: int) -> str:
        if not 1 <= ordinal <= len(state.listed_options):
            return messages.item_not_found_message()

        item = state.listed_options[ordinal - 1]
        state.pending_item = item
        state.phase = DialogPhase.AWAITING_QUANTITY
        return messages.quantity_question(item)

    def _on_quantity(self, state: ConversationState, quantity: int) -> str:
        line = DraftOrderLine(item=state.pending_item, quantity=quantity)
        state.draft_lines.append(line)
        state.pending_item = None
        state.pending_category = None
        state.listed_options = []
        state.phase = DialogPhase.AWAITING_MORE
        return messages.added_message(line)

    def _on_more(self, state: ConversationState, wants_more: bool) -> str:
        if wants_more:
            state.phase = DialogPhase.INITIAL
            return messages.next_category_prompt()

        if not state.draft_lines:
            state.phase = DialogPhase.INITIAL
            return messages.empty_order_message()

        state.phase = DialogPhase.AWAITING_CONFIRMATION
        return messages.summary_message(state)

    def _on_confirm(self, state: ConversationState, confirmed: bool) -> str:
        if not confirmed:
            # draft lines are kept; the decision is only deferred
            state.phase = DialogPhase.AWAITING_MORE
            return messages.cancelled_message()

        lines = list(state.draft_lines)
        total = state.running_total

        # cleared before the hand-off so a repeated "yes" adds nothing
        state.reset()

        handed = 0
        try:
            for line in lines:
                self.cart.add_line(
                    state.conversation_id,
                    line.item.id,
                    line.quantity,
                    name=line.item.name,
                    unit_price=line.item.price,
                )
                handed += 1
        except Exception as e:
            logger.error(
                f"Cart hand-off failed for conversation {state.conversation_id} "
                f"after {handed} of {len(lines)} line(s): {e}"
            )
            # lines already in the cart are not offered again
            state.draft_lines = lines[handed:]
            state.phase = DialogPhase.AWAITING_CONFIRMATION
            return messages.handoff_failed_message(handed, state)

        logger.info(
            f"Conversation {state.conversation_id} {DialogPhase.COMPLETED.value}: "
            f"handed {len(lines)} line(s) to the cart"
        )
        return messages.confirmed_message(total)

    # ---- Collaborators ----

    def _list_items(self, category: str) -> List[MenuCatalogItem]:
        try:
            return self.catalog.list_items(category)
        except RuntimeError as e:
            logger.error(f"Catalog lookup failed for category '{category}': {e}")
            return []

    def _record(self, session_id: str, role: str, text: str) -> None:
        if self.transcripts is None:
            return
        try:
            ok = self.transcripts.append_turn(session_id, role, text)
        except Exception as e:
            logger.warning(f"Transcript write failed for conversation {session_id}: {e}")
            return
        if ok is False:
            logger.warning(f"Transcript store rejected a {role} turn for conversation {session_id}")
