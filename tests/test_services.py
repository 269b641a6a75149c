import hashlib
import hmac
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests

from core.config import settings
from models.wallet import CashbackConfig
from security.password import check_admin_password, hash_password
from services import distance, razorpay
from services.email import render_template
from services.http import build_session
from services.messaging import MessagingError, mask_phone, send_sms
from services.order_numbers import next_order_number
from services.wallet import credit_order_cashback, get_or_create_wallet


class TestDistance:
    def test_haversine_bangalore_hops(self):
        result = distance.haversine_distance(12.9716, 77.5946, 12.9352, 77.6245)
        assert result.source == "haversine"
        assert 4.5 < result.distance_km < 5.5
        # 30 km/h city speed
        assert result.duration_minutes == pytest.approx(result.distance_km * 2, abs=1)

    def test_without_key_uses_haversine(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")
        assert distance.calculate_distance(12.97, 77.59, 12.93, 77.62).source == "haversine"

    def test_google_result(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")
        payload = {
            "status": "OK",
            "rows": [{"elements": [{"status": "OK", "distance": {"value": 6400}, "duration": {"value": 1500}}]}],
        }
        with patch("services.distance.http_session.get", return_value=Mock(json=Mock(return_value=payload))):
            result = distance.calculate_distance(12.97, 77.59, 12.93, 77.62)
        assert (result.distance_km, result.duration_minutes, result.source) == (6.4, 25, "google")

    def test_google_error_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")
        with patch("services.distance.http_session.get", side_effect=requests.Timeout("slow")):
            assert distance.calculate_distance(12.97, 77.59, 12.93, 77.62).source == "haversine"

    def test_google_denied_falls_back(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "maps-key")
        denied = Mock(json=Mock(return_value={"status": "REQUEST_DENIED", "rows": []}))
        with patch("services.distance.http_session.get", return_value=denied):
            assert distance.calculate_distance(12.97, 77.59, 12.93, 77.62).source == "haversine"

    @pytest.mark.parametrize(
        "km,radius,intercity,same_city,expected",
        [
            (5, 10, False, True, True),
            (15, 10, False, True, False),
            (300, 10, True, False, True),
            (300, 10, False, False, False),
            (600, 10, True, False, False),
        ],
    )
    def test_serviceable(self, km, radius, intercity, same_city, expected):
        assert distance.is_serviceable(km, radius, intercity, same_city) is expected


class TestRazorpaySignatures:
    def test_webhook_signature(self, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_WEBHOOK_SECRET", "whsec")
        body = b'{"event":"payment.captured"}'
        good = hmac.new(b"whsec", body, hashlib.sha256).hexdigest()
        assert razorpay.verify_webhook_signature(body, good)
        assert not razorpay.verify_webhook_signature(body + b" ", good)
        assert not razorpay.verify_webhook_signature(body, "")

    def test_webhook_signature_without_secret(self, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_WEBHOOK_SECRET", "")
        assert not razorpay.verify_webhook_signature(b"{}", "abc")

    def test_payment_signature(self, monkeypatch):
        monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", "secret")
        good = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert razorpay.verify_payment_signature("order_1", "pay_1", good)
        assert not razorpay.verify_payment_signature("order_1", "pay_2", good)

    def test_amount_in_paise(self):
        assert razorpay.to_paise(Decimal("1043.50")) == 104350


class TestHttpSession:
    def test_retries_reads_only(self):
        retry = build_session().get_adapter("https://api.razorpay.com").max_retries
        assert retry.total == settings.HTTP_READ_RETRIES
        assert "GET" in retry.allowed_methods
        assert "POST" not in retry.allowed_methods


class TestMessaging:
    def test_mask_phone(self):
        assert mask_phone("+919812345678") == "+********5678"

    def test_sms_requires_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "")
        monkeypatch.setattr(settings, "TWILIO_FROM_NUMBER", "+15550000000")
        with pytest.raises(MessagingError):
            send_sms("+919812345678", "hi")

    def test_sms_posts_to_twilio(self, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "token")
        monkeypatch.setattr(settings, "TWILIO_FROM_NUMBER", "+15550000000")
        response = Mock(ok=True, json=Mock(return_value={"sid": "SM1"}))
        with patch("services.messaging.http_session.post", return_value=response) as post:
            assert send_sms("+919812345678", "Your code") == "SM1"
        assert post.call_args.kwargs["data"]["To"] == "+919812345678"


class TestWallet:
    def test_cashback_credited_once(self, db, make_order, customer):
        order = make_order(status="delivered")

        first = credit_order_cashback(db, order)
        second = credit_order_cashback(db, order)
        db.commit()

        assert first == Decimal("49.90")
        assert second == Decimal("0")
        assert Decimal(str(get_or_create_wallet(db, customer.id).balance)) == Decimal("49.90")

    def test_inactive_cashback(self, db, make_order, customer):
        db.add(CashbackConfig(type="global", percentage=Decimal("10"), is_active=False))
        db.commit()
        order = make_order(status="delivered")

        assert credit_order_cashback(db, order) == Decimal("0")
        assert order.cashback_credited == Decimal("0")


class TestOrderNumbers:
    def test_increasing(self, db):
        numbers = [next_order_number(db) for _ in range(3)]
        assert numbers == ["WK12345", "WK12346", "WK12347"]


class TestTemplates:
    def test_status_update_email(self, make_order, customer):
        order = make_order()
        body = render_template(
            "emails/order_status_update.txt",
            {"name": customer.name, "order": order, "status_label": "Delivered", "message": "Enjoy!"},
        )
        assert order.order_number in body
        assert "Enjoy!" in body


class TestAdminPassword:
    def test_round_trip(self):
        stored = hash_password("admin-pass-123")
        ok, replacement = check_admin_password("admin-pass-123", stored)
        assert ok
        assert replacement is None

    def test_wrong_or_missing_hash(self):
        stored = hash_password("admin-pass-123")
        assert check_admin_password("nope", stored)[0] is False
        assert check_admin_password("admin-pass-123", None) == (False, None)
