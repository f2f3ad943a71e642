import json
import logging
import queue
import uuid

from flask import Flask, Response, request, jsonify, stream_with_context

from travelchat import config, init_db
from travelchat.chat import ChatService
from travelchat.errors import (
    NotInitializedError,
    PriceChangedError,
    ProviderBadRequestError,
    ProviderError,
)
from travelchat.graph.graph import ResponseOrchestrator
from travelchat.push import PushChannel
from travelchat.store import MessageStore

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15


def _error(message: str, status: int, **extra):
    body = {"status": "error", "message": message}
    body.update(extra)
    return jsonify(body), status


def create_app(orchestrator=None, session_factory=None, push=None, workers=None) -> Flask:
    """
    Build the HTTP app. Everything is injectable so tests can run the
    whole stack against an in-memory database and fake providers.
    """
    if session_factory is None:
        from travelchat.db import SessionLocal as session_factory
    orchestrator = orchestrator or ResponseOrchestrator.from_env()
    push = push or PushChannel()
    store = MessageStore(session_factory, push)
    chat = ChatService(store, orchestrator, workers=workers or config.REPLY_WORKERS)

    app = Flask(__name__)
    app.extensions["travelchat"] = {
        "orchestrator": orchestrator,
        "store": store,
        "push": push,
        "chat": chat,
    }

    # ---------------------------
    # Chat
    # ---------------------------
    @app.post("/api/chat/message")
    def send_message():
        body = request.get_json(silent=True) or {}
        content = (body.get("content") or "").strip()
        if not content:
            return _error("content is required", 400)

        conversation_id = (body.get("conversation_id") or "").strip() or uuid.uuid4().hex
        message_type = body.get("message_type") or "text"

        message, _ = chat.send_message(conversation_id, content, message_type)
        return jsonify({"status": "success", "conversation_id": conversation_id, "data": message}), 201

    @app.get("/api/chat/history/<conversation_id>")
    def get_history(conversation_id):
        return jsonify({"status": "success", "data": store.list_messages(conversation_id)})

    @app.delete("/api/chat/message/<message_id>")
    def delete_message(message_id):
        if not store.delete_message(message_id):
            return _error("Message not found", 404)
        return jsonify({"status": "success"})

    @app.delete("/api/chat/history/<conversation_id>")
    def clear_history(conversation_id):
        deleted = store.clear_history(conversation_id)
        return jsonify({"status": "success", "deleted": deleted})

    @app.get("/api/chat/stream/<conversation_id>")
    def stream(conversation_id):
        q = push.join(conversation_id)

        def events():
            try:
                while True:
                    try:
                        item = q.get(timeout=KEEPALIVE_SECONDS)
                    except queue.Empty:
                        yield ": keep-alive\n\n"
                        continue
                    yield f"event: {item['event']}\ndata: {json.dumps(item['data'])}\n\n"
            finally:
                push.leave(conversation_id, q)

        return Response(stream_with_context(events()), mimetype="text/event-stream",
                        headers={"Cache-Control": "no-cache"})

    # ---------------------------
    # Booking
    # ---------------------------
    @app.post("/api/flights/booking/confirm-price")
    def confirm_price():
        body = request.get_json(silent=True) or {}
        offer = body.get("flightOffer")
        if not offer:
            return _error("Flight offer is required", 400)

        try:
            confirmation = orchestrator.check_price(offer, body.get("travelers"))
        except PriceChangedError as e:
            return _error(str(e), 409, error="PRICE_CHANGED")
        except NotInitializedError as e:
            return _error(str(e), 503)
        except ProviderBadRequestError as e:
            return _error(str(e), 400)
        except ProviderError as e:
            logger.error(f"Price confirmation error: {e}")
            return _error("Failed to confirm price", 502)

        return jsonify({
            "priceChanged": confirmation.price_changed,
            "originalPrice": confirmation.original_price,
            "confirmedPrice": confirmation.confirmed_price,
            "priceDifference": confirmation.difference,
            "currency": confirmation.currency,
            "confirmedOffer": confirmation.confirmed_offer,
            "fareRules": confirmation.fare_rules,
            "includedBags": confirmation.included_bags,
        })

    @app.post("/api/flights/booking/create")
    def create_booking():
        body = request.get_json(silent=True) or {}
        offer = body.get("selectedOffer")
        if not offer:
            return _error("No flight selected. Please search and select a flight first.", 400)
        travelers = body.get("travelerDetails") or []
        contacts = body.get("contactDetails") or []
        if not travelers:
            return _error("Traveler details are required", 400)

        try:
            booking = orchestrator.book_flight(offer, travelers, contacts)
        except PriceChangedError as e:
            return _error(
                str(e), 409,
                error="PRICE_CHANGED",
                originalPrice=e.original_price,
                newPrice=e.confirmed_price,
                priceDifference=e.difference,
                confirmedOffer=e.confirmed_offer,
            )
        except NotInitializedError as e:
            return _error(str(e), 503)
        except ProviderBadRequestError as e:
            return _error(str(e), 400, error="BOOKING_FAILED")
        except ProviderError as e:
            logger.error(f"Booking error: {e}")
            return _error("Failed to create booking", 502, error="BOOKING_FAILED")

        return jsonify({"status": "success", "message": "Flight booked successfully!", "booking": booking}), 201

    # ---------------------------
    # Health
    # ---------------------------
    @app.get("/health")
    def health():
        return jsonify({
            "status": "ok",
            "amadeus": orchestrator.provider.is_available(),
            "llm": orchestrator.generator.configured,
        })

    return app


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    # Create tables (simple dev mode)
    init_db()
    app = create_app()
    app.run(host="0.0.0.0", port=config.PORT, debug=True, threaded=True)
