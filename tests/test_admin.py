from models.notification import Notification
from models.vendor import Vendor


class TestAdminAccess:
    def test_non_admin_is_forbidden(self, client, headers, customer, vendor_user):
        for user in (customer, vendor_user):
            response = client.get("/admin/dashboard", headers=headers(user))
            assert response.status_code == 403

    def test_anonymous_is_unauthenticated(self, client, db):
        assert client.get("/admin/vendors").status_code == 401


class TestVendorApproval:
    def test_list_pending(self, client, db, headers, admin_user, vendor, other_vendor):
        other_vendor.status = "pending"
        db.commit()

        response = client.get("/admin/vendors", params={"status": "pending"}, headers=headers(admin_user))

        assert [v["id"] for v in response.json()] == [other_vendor.id]
        assert response.json()[0]["ownerPhone"] == "+919800000004"

    def test_approve_notifies_owner(self, client, db, headers, admin_user, other_vendor, other_vendor_user):
        other_vendor.status = "pending"
        db.commit()

        response = client.patch(f"/admin/vendors/{other_vendor.id}/approve", headers=headers(admin_user))

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        note = db.query(Notification).filter(Notification.user_id == other_vendor_user.id).one()
        assert note.type == "account"
        assert note.title == "Vendor Application Approved"

    def test_approve_twice(self, client, headers, admin_user, vendor):
        response = client.patch(f"/admin/vendors/{vendor.id}/approve", headers=headers(admin_user))
        assert response.status_code == 400

    def test_reject_with_reason(self, client, db, headers, admin_user, vendor, vendor_user):
        response = client.patch(
            f"/admin/vendors/{vendor.id}/reject", json={"reason": "Incomplete documents"}, headers=headers(admin_user)
        )

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Vendor, vendor.id).status == "rejected"
        note = db.query(Notification).filter(Notification.user_id == vendor_user.id).one()
        assert "Incomplete documents" in note.message

    def test_unknown_vendor(self, client, headers, admin_user):
        response = client.patch("/admin/vendors/missing/approve", headers=headers(admin_user))
        assert response.status_code == 404


class TestDashboard:
    def test_totals(self, client, db, headers, admin_user, vendor, other_vendor, make_order):
        other_vendor.status = "pending"
        db.commit()
        make_order(payment_status="completed")
        make_order(payment_status="completed", quantity=2)
        make_order()

        body = client.get("/admin/dashboard", headers=headers(admin_user)).json()

        assert body["totalOrders"] == 3
        assert body["todayOrders"] == 3
        assert body["totalVendors"] == 2
        assert body["pendingApprovals"] == 1
        # (499 + 45) + (998 + 45)
        assert body["totalRevenue"] == 1587
        assert len(body["ordersLast7Days"]) == 7
        assert body["ordersLast7Days"][-1]["count"] == 3
        assert body["topVendors"] == [
            {"vendorId": vendor.id, "name": "Crafted Gifts", "revenue": 1587, "orderCount": 2}
        ]

    def test_admin_sees_all_orders(self, client, headers, admin_user, make_order):
        make_order()
        make_order(status="delivered")
        response = client.get("/admin/orders", params={"status": "delivered"}, headers=headers(admin_user))
        assert [o["status"] for o in response.json()["orders"]] == ["delivered"]


class TestCashbackConfig:
    def test_defaults_to_ten_percent(self, client, headers, admin_user):
        response = client.get("/admin/cashback", headers=headers(admin_user))
        assert response.json() == {"percentage": 10.0, "isActive": True}

    def test_update(self, client, headers, admin_user):
        response = client.put(
            "/admin/cashback", json={"percentage": 5, "isActive": False}, headers=headers(admin_user)
        )
        assert response.json() == {"percentage": 5.0, "isActive": False}
        assert client.get("/admin/cashback", headers=headers(admin_user)).json()["percentage"] == 5.0

    def test_rejects_out_of_range(self, client, headers, admin_user):
        response = client.put("/admin/cashback", json={"percentage": 150}, headers=headers(admin_user))
        assert response.status_code == 400
