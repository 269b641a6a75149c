from decimal import Decimal

import pytest

from models.notification import Notification
from models.order import Order
from models.wallet import Wallet
from schemas.order import OrderOut


def _checkout_body(vendor, product, quantity=2, **overrides):
    body = {
        "vendorId": vendor.id,
        "items": [{"productId": product.id, "quantity": quantity, "price": 499}],
        "deliveryAddress": {
            "name": "Asha",
            "phone": "9876543210",
            "address": "12 MG Road",
            "city": "Bangalore",
            "pincode": "560001",
        },
        "deliveryFee": 40,
    }
    body.update(overrides)
    return body


def _wallet_balance(db, user_id):
    db.expire_all()
    wallet = db.query(Wallet).filter(Wallet.user_id == user_id).one_or_none()
    return Decimal(str(wallet.balance)) if wallet else Decimal("0")


class TestCheckout:
    def test_creates_pending_order_with_totals(self, client, headers, customer, vendor, product):
        response = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer))

        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert order["paymentStatus"] == "pending"
        assert order["itemTotal"] == 998
        assert order["platformFee"] == 5
        assert order["total"] == order["itemTotal"] + order["deliveryFee"] + order["platformFee"] - order["cashbackUsed"]
        assert order["acceptDeadline"] is not None

    def test_order_numbers_are_sequential_and_unique(self, client, headers, customer, vendor, product):
        first = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer)).json()
        second = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer)).json()

        assert first["orderNumber"] == "WK12345"
        assert second["orderNumber"] == "WK12346"

    def test_vendor_is_notified(self, client, db, headers, customer, vendor, vendor_user, product):
        order = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer)).json()

        notes = db.query(Notification).filter(Notification.user_id == vendor_user.id).all()
        assert len(notes) == 1
        assert notes[0].title == "New Order"
        assert notes[0].data["orderId"] == order["id"]

    def test_vendor_sees_same_order(self, client, headers, customer, vendor_user, vendor, product):
        created = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer)).json()

        detail = client.get(f"/vendor/orders/{created['id']}", headers=headers(vendor_user)).json()

        for field in ("orderNumber", "items", "itemTotal", "deliveryFee", "platformFee", "total", "deliveryAddress"):
            assert detail[field] == created[field]
        assert detail["commissionAmount"] == pytest.approx(179.64)
        assert detail["vendorAmount"] == pytest.approx(818.36)

    def test_cashback_is_debited_from_wallet(self, client, db, headers, customer, vendor, product):
        db.add(Wallet(user_id=customer.id, balance=Decimal("100")))
        db.commit()

        response = client.post(
            "/orders", json=_checkout_body(vendor, product, cashbackUsed=60), headers=headers(customer)
        )

        assert response.status_code == 201
        assert response.json()["total"] == 983
        assert _wallet_balance(db, customer.id) == Decimal("40")

    def test_cashback_above_balance_is_rejected(self, client, db, headers, customer, vendor, product):
        response = client.post(
            "/orders", json=_checkout_body(vendor, product, cashbackUsed=60), headers=headers(customer)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Cashback used exceeds wallet balance"
        assert db.query(Order).count() == 0

    def test_unapproved_vendor(self, client, db, headers, customer, vendor, product):
        vendor.status = "pending"
        db.commit()
        response = client.post("/orders", json=_checkout_body(vendor, product), headers=headers(customer))
        assert response.status_code == 400
        assert response.json()["code"] == "VENDOR_NOT_APPROVED"

    def test_product_from_another_vendor(self, client, db, headers, customer, vendor, other_vendor, product):
        response = client.post("/orders", json=_checkout_body(other_vendor, product), headers=headers(customer))
        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "items"

    def test_invalid_delivery_phone(self, client, headers, customer, vendor, product):
        body = _checkout_body(vendor, product)
        body["deliveryAddress"]["phone"] = "12345"
        response = client.post("/orders", json=body, headers=headers(customer))
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_empty_items(self, client, headers, customer, vendor, product):
        response = client.post("/orders", json=_checkout_body(vendor, product, items=[]), headers=headers(customer))
        assert response.status_code == 400

    def test_requires_authentication(self, client, vendor, product):
        response = client.post("/orders", json=_checkout_body(vendor, product))
        assert response.status_code == 401


class TestOrderReads:
    def test_customer_lists_own_orders(self, client, headers, customer, other_customer, make_order):
        mine = make_order()
        make_order(customer_id=other_customer.id)

        response = client.get("/orders", headers=headers(customer))

        assert [o["id"] for o in response.json()["orders"]] == [mine.id]

    def test_order_visible_to_parties_only(self, client, headers, customer, other_customer, vendor_user, make_order):
        order = make_order()
        assert client.get(f"/orders/{order.id}", headers=headers(customer)).status_code == 200
        assert client.get(f"/orders/{order.id}", headers=headers(vendor_user)).status_code == 200
        assert client.get(f"/orders/{order.id}", headers=headers(other_customer)).status_code == 404

    def test_amounts_stay_decimal_until_serialized(self, client, headers, customer, make_order):
        order = make_order(cashback_used=Decimal("0.10"))

        out = OrderOut.model_validate(order)
        assert out.total == Decimal("543.90")
        assert isinstance(out.cashback_used, Decimal)

        body = client.get(f"/orders/{order.id}", headers=headers(customer)).json()
        assert body["total"] == 543.9
        assert body["cashbackUsed"] == 0.1


class TestCustomerTransitions:
    def test_customize_merges_details(self, client, db, headers, customer, vendor_user, product, make_order):
        order = make_order(status="awaiting_details")

        response = client.post(
            f"/orders/{order.id}/customize",
            json={"customizations": [{"productId": product.id, "text": "Happy Birthday Ma"}]},
            headers=headers(customer),
        )

        assert response.status_code == 200
        body = response.json()["order"]
        assert body["status"] == "personalizing"
        assert body["items"][0]["customization"] == {"text": "Happy Birthday Ma"}
        notes = db.query(Notification).filter(Notification.user_id == vendor_user.id).all()
        assert [n.title for n in notes] == ["Customization Details Received"]

    def test_customize_after_approval_is_rejected(self, client, headers, customer, product, make_order):
        order = make_order(status="approved")
        response = client.post(
            f"/orders/{order.id}/customize",
            json={"customizations": [{"productId": product.id, "text": "Too late"}]},
            headers=headers(customer),
        )
        assert response.status_code == 400

    def test_get_mockup(self, client, headers, customer, product, make_order):
        order = make_order(status="mockup_ready", mockup_images={product.id: ["https://cdn.example.com/m.jpg"]})
        response = client.get(f"/orders/{order.id}/mockup", headers=headers(customer))
        assert response.status_code == 200
        assert response.json()["mockupImages"] == {product.id: ["https://cdn.example.com/m.jpg"]}

    def test_approve_mockup(self, client, headers, customer, make_order):
        order = make_order(status="mockup_ready")
        response = client.post(f"/orders/{order.id}/mockup/approve", headers=headers(customer))
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "approved"
        assert response.json()["order"]["mockupApprovedAt"] is not None

    def test_request_revision(self, client, headers, customer, product, make_order):
        order = make_order(status="mockup_ready")
        response = client.post(
            f"/orders/{order.id}/mockup/approve",
            json={"action": "revision", "productId": product.id, "feedback": "Make the font bigger"},
            headers=headers(customer),
        )
        assert response.status_code == 200
        body = response.json()["order"]
        assert body["status"] == "personalizing"
        assert body["revisionRequest"]["feedback"] == "Make the font bigger"

    def test_revision_needs_feedback(self, client, headers, customer, make_order):
        order = make_order(status="mockup_ready")
        response = client.post(
            f"/orders/{order.id}/mockup/approve", json={"action": "revision"}, headers=headers(customer)
        )
        assert response.status_code == 400

    def test_other_customer_cannot_approve(self, client, headers, other_customer, make_order):
        order = make_order(status="mockup_ready")
        response = client.post(f"/orders/{order.id}/mockup/approve", headers=headers(other_customer))
        assert response.status_code == 403


class TestCancel:
    def test_customer_cancels_and_vendor_is_told(self, client, db, headers, customer, vendor_user, make_order):
        order = make_order()
        response = client.post(f"/orders/{order.id}/cancel", json={"reason": "Ordered twice"}, headers=headers(customer))

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "cancelled"
        note = db.query(Notification).filter(Notification.user_id == vendor_user.id).one()
        assert "Ordered twice" in note.message

    def test_cancel_refunds_used_cashback(self, client, db, headers, customer, make_order):
        order = make_order(cashback_used=Decimal("25"))
        client.post(f"/orders/{order.id}/cancel", headers=headers(customer))
        assert _wallet_balance(db, customer.id) == Decimal("25")

    def test_delivered_order_cannot_be_cancelled(self, client, headers, customer, make_order):
        order = make_order(status="delivered")
        response = client.post(f"/orders/{order.id}/cancel", headers=headers(customer))
        assert response.status_code == 400
        assert response.json()["error"] == "Order can no longer be cancelled"


class TestDelivery:
    def test_dispatch_and_deliver_credit_cashback_once(self, client, db, headers, delivery_user, customer, make_order):
        order = make_order(status="ready_for_pickup")

        dispatched = client.post(f"/delivery/orders/{order.id}/dispatch", headers=headers(delivery_user))
        delivered = client.post(f"/delivery/orders/{order.id}/delivered", headers=headers(delivery_user))
        again = client.post(f"/delivery/orders/{order.id}/delivered", headers=headers(delivery_user))

        assert dispatched.json()["order"]["status"] == "out_for_delivery"
        assert delivered.json()["order"]["status"] == "delivered"
        assert delivered.json()["order"]["deliveredAt"] is not None
        assert again.status_code == 400
        # 10% of the 499 item total
        assert _wallet_balance(db, customer.id) == Decimal("49.90")

    def test_customer_cannot_dispatch(self, client, headers, customer, make_order):
        order = make_order(status="ready_for_pickup")
        response = client.post(f"/delivery/orders/{order.id}/dispatch", headers=headers(customer))
        assert response.status_code == 403
