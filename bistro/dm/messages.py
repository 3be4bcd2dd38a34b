from decimal import Decimal
from typing import List

from bistro.dm.conversation_state import ConversationState, DraftOrderLine
from bistro.dm.intent_parser import MAX_QUANTITY
from bistro.dm.phases import DialogPhase
from bistro.menu.menu_catalog import MenuCatalogItem

CATEGORY_HINT = "pizza, pasta, salad, appetizer, dessert"


def money(amount: Decimal) -> str:
    return f"${amount:.2f}"


def options_message(category: str, items: List[MenuCatalogItem]) -> str:
    lines = [f"Here are our {category} options:"]
    for i, item in enumerate(items, start=1):
        lines.append(f"{i}. {item.name} - {money(item.price)} - {item.description}")
    lines.append("")
    lines.append("Please enter the number of the item you'd like to order.")
    return "\n".join(lines)


def category_empty_message(category: str) -> str:
    return f"Sorry, we don't have any {category} available right now."


def quantity_question(item: MenuCatalogItem) -> str:
    return f"How many {item.name} would you like? (Please enter a number)"


def added_message(line: DraftOrderLine) -> str:
    return f"Added {line.quantity} {line.item.name} to your order. Would you like to order anything else? (yes/no)"


def next_category_prompt() -> str:
    return f"What else would you like to order? ({CATEGORY_HINT})"


def summary_message(state: ConversationState) -> str:
    lines = ["Here's your order summary:"]
    for i, line in enumerate(state.draft_lines, start=1):
        lines.append(f"{i}. {line.quantity} x {line.item.name} - {money(line.line_total)}")
    lines.append("")
    lines.append(f"Total: {money(state.running_total)}")
    lines.append("Would you like to confirm this order? (yes/no)")
    return "\n".join(lines)


def confirmed_message(total: Decimal) -> str:
    return (
        f"Thank you! Your order has been added to your cart. Your total is {money(total)}. "
        "You can now proceed to checkout."
    )


def handoff_failed_message(handed: int, state: ConversationState) -> str:
    lead = "Sorry, we couldn't add everything to your cart."
    if handed:
        lead += f" {handed} item(s) made it in; the rest are still in your order."
    return lead + "\n" + summary_message(state)


def empty_order_message() -> str:
    return "You don't have anything in your order yet. What would you like to order?"


def cancelled_message() -> str:
    return "Order canceled. Would you like to start over? (yes/no)"


def item_not_found_message() -> str:
    return "I couldn't find that item. Please try again."


def reprompt_for_phase(state: ConversationState) -> str:
    phase = state.phase
    if phase == DialogPhase.PRESENTING_OPTIONS:
        return item_not_found_message()
    if phase == DialogPhase.AWAITING_QUANTITY and state.pending_item is not None:
        return f"Please enter how many {state.pending_item.name} you'd like as a whole number from 1 to {MAX_QUANTITY}."
    if phase == DialogPhase.AWAITING_MORE:
        return "Would you like to order anything else? Please answer yes or no."
    if phase == DialogPhase.AWAITING_CONFIRMATION:
        return "Would you like to confirm this order? Please answer yes or no."
    return "I'm not sure what you're looking for. Would you like to order a pizza, pasta, salad, appetizer, or dessert?"
