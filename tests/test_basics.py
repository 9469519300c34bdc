"""Basic unit tests for the baza-chat package."""

import json

from baza_chat import (
    AsyncBazaChat,
    BazaChat,
    BazaChatError,
    OfflineError,
    ServerError,
    StorageError,
    TransportError,
    __version__,
)
from baza_chat.i18n import offline_notice, quick_examples, retry_prompt, translate
from baza_chat.models.chat import ChatResponse
from baza_chat.models.envelope import OutboundEnvelope
from baza_chat.models.message import PurchaseOption
from baza_chat.pipeline import CounterIds


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert BazaChat is not None
    assert AsyncBazaChat is not None


def test_error_hierarchy():
    assert issubclass(TransportError, BazaChatError)
    assert issubclass(ServerError, BazaChatError)
    assert issubclass(OfflineError, BazaChatError)
    assert issubclass(StorageError, BazaChatError)


def test_error_attributes():
    err = BazaChatError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    server = ServerError(503, "HTTP 503: down")
    assert server.code == "server_error"
    assert server.status == 503
    assert server.details == {"status": 503}


def test_envelope_stored_and_wire_shapes():
    env = OutboundEnvelope(recipient_id="+250700000000", text="Show bundles", language_hint="en")
    assert env.to_stored() == {
        "recipientId": "+250700000000", "text": "Show bundles", "languageHint": "en", "attempts": 0,
    }
    assert env.to_wire() == {"recipientId": "+250700000000", "message": "Show bundles", "languageHint": "en"}
    assert "languageHint" not in OutboundEnvelope(recipient_id="x", text="hi").to_wire()


def test_envelope_equality_ignores_attempts():
    a = OutboundEnvelope(recipient_id="x", text="hi", language_hint="en")
    b = OutboundEnvelope.model_validate({"recipientId": "x", "text": "hi", "languageHint": "en", "attempts": 3})
    assert a == b
    assert a != OutboundEnvelope(recipient_id="x", text="hello", language_hint="en")


def test_option_label_fallbacks():
    assert PurchaseOption(id="b1", display="1GB").label() == "1GB"
    assert PurchaseOption(id="b1", name="Daily 500MB").label() == "Daily 500MB"
    assert PurchaseOption(id="b1", index=7).label() == "7"
    assert PurchaseOption(id="b1").label(2) == "2"
    assert PurchaseOption(id="b1", qp_id="qp-9").purchase_id == "qp-9"
    assert PurchaseOption(id="b1").purchase_id == "b1"


def test_chat_response_tolerates_odd_payloads():
    resp = ChatResponse.model_validate(json.loads('{"reply": "hi", "options": "none", "quick_replies": null, "x": 1}'))
    assert resp.reply == "hi"
    assert resp.options is None
    assert resp.quick_replies is None
    assert ChatResponse.model_validate({}).reply is None


def test_counter_ids_are_monotonic():
    ids = CounterIds(prefix="t")
    assert [ids(), ids(), ids()] == ["t-1", "t-2", "t-3"]


def test_translations():
    assert quick_examples("en") == ["Show bundles", "My balance", "Buy 1GB", "Help"]
    assert quick_examples("kin")[0] == "Erekana bundles"
    assert quick_examples("fr") == quick_examples("en")
    assert translate("kin", "retry_text") == "Gerageza"
    assert "Offline" in offline_notice("en")
    assert retry_prompt("en").endswith("Retry")
