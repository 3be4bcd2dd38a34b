# bistro/main.py
"""
AI Bistro ordering assistant - terminal front end
"""

import logging
import os
import uuid

from dotenv import load_dotenv

from bistro.dm.dialogue_engine import DialogueEngine
from bistro.dm.input_adapters import TextInputAdapter, VoiceInputAdapter
from bistro.dm.llm_classifier import LLMCategoryClassifier
from bistro.dm.messages import money
from bistro.menu.menu_catalog import MenuCatalog
from bistro.repository.cart_repository import CartRepository
from bistro.repository.order_repository import OrderRepository
from bistro.repository.transcript_repository import TranscriptRepository
from bistro.services.checkout_service import CheckoutService
from bistro.services.llm_service import LLMService

# Load environment variables
load_dotenv()


class OrderingSystem:
    """Terminal ordering system"""

    def __init__(self):
        self.catalog = MenuCatalog()
        self.cart = CartRepository()
        self.orders = OrderRepository()
        self.transcripts = TranscriptRepository()
        self.checkout_service = CheckoutService(self.cart, self.orders)

        classifier = None
        if os.getenv("VOICE_LLM_ENABLED", "false").lower() == "true":
            classifier = LLMCategoryClassifier(LLMService())

        self.chat_engine = DialogueEngine(self.catalog, self.cart, self.transcripts, adapter=TextInputAdapter())
        self.voice_engine = DialogueEngine(
            self.catalog, self.cart, self.transcripts, adapter=VoiceInputAdapter(classifier=classifier)
        )
        self.session_id = f"cli-{uuid.uuid4().hex[:8]}"

    def run(self):
        """Main loop"""
        print("=" * 60)
        print("AI Bistro ordering assistant")
        print("=" * 60)
        print("\nOptions:")
        print("1. Chat ordering")
        print("2. Voice-transcript ordering")
        print("3. Show menu")
        print("4. Show cart / checkout")
        print("5. Exit")
        print()

        while True:
            choice = input("Choose an option (1-5): ").strip()

            if choice == "1":
                self.start_ordering(self.chat_engine)
            elif choice == "2":
                self.start_ordering(self.voice_engine)
            elif choice == "3":
                self.show_menu()
            elif choice == "4":
                self.show_cart()
            elif choice == "5":
                print("\nThanks for visiting, goodbye!\n")
                break
            else:
                print("Invalid choice, please try again\n")

    def start_ordering(self, engine: DialogueEngine):
        print("\n" + "=" * 60)
        print(f"Ordering ({engine.adapter.modality})")
        print("=" * 60)
        print("Type 'quit' to leave the assistant\n")
        print(f"Assistant: {engine.start(self.session_id)}\n")

        while True:
            user_input = input("You: ").strip()

            if user_input.lower() in ("quit", "exit"):
                engine.reset(self.session_id)
                print("\nAssistant closed\n")
                break

            if not user_input:
                continue

            print(f"Assistant: {engine.handle(self.session_id, user_input)}\n")

    def show_menu(self):
        print("\n" + "=" * 60)
        print("Menu")
        print("=" * 60)
        current = None
        for item in self.catalog.list_items():
            if item.category != current:
                current = item.category
                print(f"\n[{current}]")
            print(f"  {item.id:>3}. {item.name} - {money(item.price)}")
        print()

    def show_cart(self):
        lines = self.cart.list_lines(self.session_id)
        if not lines:
            print("\nYour cart is empty\n")
            return

        print()
        for line in lines:
            print(f"  {line['quantity']} x {line['name']} - {money(line['line_total'])}")
        print(f"  Total: {money(self.cart.total(self.session_id))}\n")

        if input("Place this order? (yes/no): ").strip().lower() in ("y", "yes"):
            order = self.checkout_service.place_order(self.session_id)
            print(f"\nOrder {order['order_id']} placed, total ${order['total_price']}\n")


def main():
    """Program entry point"""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING"))
    try:
        system = OrderingSystem()
        system.run()
    except KeyboardInterrupt:
        print("\n\nStopped")


if __name__ == "__main__":
    main()
