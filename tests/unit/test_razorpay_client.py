import hashlib
import hmac
import sys
import types
import pytest

from backend import config
from backend.payments import razorpay_client as rzp
from backend.utils.errors import GatewayError


def _fake_sdk(monkeypatch, create):
    captured = {}

    class _Order:
        def create(self, data=None, **kwargs):
            captured["data"] = data
            captured["kwargs"] = kwargs
            return create(data)

    class _Client:
        def __init__(self, auth=None):
            captured["auth"] = auth
            self.order = _Order()

    monkeypatch.setitem(sys.modules, "razorpay", types.SimpleNamespace(Client=_Client))
    return captured


@pytest.mark.parametrize("amount,expected", [
    ("1000.00", 100000), ("0.01", 1), ("99.995", 10000), (599, 59900),
])
def test_to_minor_units(amount, expected):
    assert rzp.to_minor_units(amount) == expected


def test_signature_matches_razorpay_formula():
    expected = hmac.new(b"s3cret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert rzp.compute_signature("order_1", "pay_1", "s3cret") == expected
    assert rzp.verify_signature("order_1", "pay_1", expected, secret="s3cret") is True


def test_signature_rejections():
    good = rzp.compute_signature("order_1", "pay_1", "s3cret")
    assert rzp.verify_signature("order_1", "pay_2", good, secret="s3cret") is False
    assert rzp.verify_signature("order_1", "pay_1", good.upper() + "0", secret="s3cret") is False
    assert rzp.verify_signature("order_1", "pay_1", "", secret="s3cret") is False
    assert rzp.verify_signature("", "pay_1", good, secret="s3cret") is False


def test_verify_uses_configured_secret():
    sig = rzp.compute_signature("order_1", "pay_1", config.RAZORPAY_KEY_SECRET)
    assert rzp.verify_signature("order_1", "pay_1", sig) is True


def test_verify_without_secret_is_a_gateway_error(monkeypatch):
    monkeypatch.setattr(config, "RAZORPAY_KEY_SECRET", "")
    with pytest.raises(GatewayError) as exc:
        rzp.verify_signature("order_1", "pay_1", "sig")
    assert exc.value.status_code == 500


def test_create_intent_not_configured(monkeypatch):
    monkeypatch.setattr(config, "RAZORPAY_KEY_ID", "")
    with pytest.raises(GatewayError) as exc:
        rzp.create_intent(amount_minor=100, currency="INR", receipt="r1")
    assert exc.value.status_code == 500
    assert "non configurée" in exc.value.message


def test_create_intent_success(monkeypatch):
    captured = _fake_sdk(monkeypatch, lambda data: {"id": "order_ABC", "amount": data["amount"]})

    res = rzp.create_intent(amount_minor=59900, currency="INR", receipt="aeon_x", notes={"customer": "Asha"})

    assert res == {"gateway_order_ref": "order_ABC"}
    assert captured["auth"] == (config.RAZORPAY_KEY_ID, config.RAZORPAY_KEY_SECRET)
    assert captured["data"] == {"amount": 59900, "currency": "INR", "receipt": "aeon_x", "notes": {"customer": "Asha"}}
    assert captured["kwargs"] == {"timeout": config.RAZORPAY_TIMEOUT_SECONDS}


def test_create_intent_remote_failure_is_generic(monkeypatch):
    def _boom(data):
        raise RuntimeError("BAD_REQUEST_ERROR: key_secret leaked in message")
    _fake_sdk(monkeypatch, _boom)

    with pytest.raises(GatewayError) as exc:
        rzp.create_intent(amount_minor=100, currency="INR", receipt="r1")
    assert exc.value.status_code == 502
    assert "key_secret" not in exc.value.message


def test_create_intent_response_without_id(monkeypatch):
    _fake_sdk(monkeypatch, lambda data: {"status": "created"})
    with pytest.raises(GatewayError):
        rzp.create_intent(amount_minor=100, currency="INR", receipt="r1")
