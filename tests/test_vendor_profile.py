from decimal import Decimal

from models.user import User
from models.wallet import Wallet, WalletTransaction

ONBOARDING = {
    "name": "Paper Petals",
    "description": "Handmade paper flowers",
    "city": "Pune",
    "storeLat": 18.5204,
    "storeLng": 73.8567,
}


class TestOnboarding:
    def test_customer_becomes_pending_vendor(self, client, db, headers, customer):
        response = client.post("/vendor/onboarding", json=ONBOARDING, headers=headers(customer))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["userId"] == customer.id
        db.expire_all()
        assert db.get(User, customer.id).role == "vendor"

    def test_only_once(self, client, headers, vendor, vendor_user):
        response = client.post("/vendor/onboarding", json=ONBOARDING, headers=headers(vendor_user))
        assert response.status_code == 409
        assert response.json()["code"] == "VENDOR_EXISTS"

    def test_profile_and_online_toggle(self, client, headers, vendor, vendor_user):
        assert client.get("/vendor/profile", headers=headers(vendor_user)).json()["id"] == vendor.id
        response = client.patch("/vendor/status", json={"isOnline": False}, headers=headers(vendor_user))
        assert response.json()["isOnline"] is False


class TestVendorProducts:
    def test_create_and_update(self, client, headers, vendor, vendor_user):
        created = client.post(
            "/vendor/products",
            json={
                "name": "Name Keychain",
                "price": 299,
                "category": "keychains",
                "isPersonalizable": True,
                "customizationSchema": {"requiresText": True, "maxTextLength": 12},
            },
            headers=headers(vendor_user),
        )
        assert created.status_code == 201
        product = created.json()
        assert product["vendorId"] == vendor.id
        assert product["customizationSchema"]["requiresText"] is True

        updated = client.patch(f"/vendor/products/{product['id']}", json={"price": 349}, headers=headers(vendor_user))
        assert updated.json()["price"] == 349
        assert updated.json()["name"] == "Name Keychain"

    def test_deactivate(self, client, headers, vendor_user, product):
        response = client.patch(
            f"/vendor/products/{product.id}/status", json={"isActive": False}, headers=headers(vendor_user)
        )
        assert response.json()["isActive"] is False
        assert client.get(f"/products/{product.id}").status_code == 404

    def test_cannot_edit_other_vendors_product(self, client, headers, other_vendor, other_vendor_user, product):
        response = client.patch(f"/vendor/products/{product.id}", json={"price": 1}, headers=headers(other_vendor_user))
        assert response.status_code == 404

    def test_invalid_price(self, client, headers, vendor, vendor_user):
        response = client.post(
            "/vendor/products", json={"name": "Free", "price": 0, "category": "misc"}, headers=headers(vendor_user)
        )
        assert response.status_code == 400


class TestWallet:
    def test_empty_wallet(self, client, headers, customer):
        response = client.get("/users/wallet", headers=headers(customer))
        assert response.json() == {"balance": 0.0, "transactions": []}

    def test_balance_and_transactions(self, client, db, headers, customer):
        wallet = Wallet(user_id=customer.id, balance=Decimal("75"))
        db.add(wallet)
        db.flush()
        db.add(WalletTransaction(wallet_id=wallet.id, type="credit", amount=Decimal("75"), description="Cashback"))
        db.commit()

        body = client.get("/users/wallet", headers=headers(customer)).json()

        assert body["balance"] == 75
        assert [t["description"] for t in body["transactions"]] == ["Cashback"]
