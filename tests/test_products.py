class TestCatalog:
    def test_list_only_active_products_of_approved_vendors(self, client, db, product, second_product, other_vendor):
        second_product.is_active = False
        other_vendor.status = "pending"
        db.commit()

        response = client.get("/products")

        body = response.json()
        assert response.status_code == 200
        assert [p["id"] for p in body["products"]] == [product.id]
        assert body["total"] == 1

    def test_sort_by_price(self, client, product, second_product):
        response = client.get("/products", params={"sortBy": "price", "sortOrder": "asc"})
        assert [p["name"] for p in response.json()["products"]] == ["Engraved Mug", "Photo Frame"]

    def test_search(self, client, product, second_product):
        response = client.get("/products", params={"search": "frame"})
        assert [p["name"] for p in response.json()["products"]] == ["Photo Frame"]

    def test_limit_is_capped(self, client, product):
        assert client.get("/products", params={"limit": 500}).status_code == 400

    def test_get_missing_product(self, client, db):
        assert client.get("/products/nope").status_code == 404


class TestReviews:
    def test_review_requires_delivered_order(self, client, headers, customer, product, make_order):
        make_order(status="crafting")
        response = client.post(f"/products/{product.id}/reviews", json={"rating": 5}, headers=headers(customer))
        assert response.status_code == 403
        assert response.json()["code"] == "REVIEW_NOT_ALLOWED"

    def test_review_after_delivery_and_update(self, client, headers, customer, product, make_order):
        order = make_order(status="delivered")

        created = client.post(
            f"/products/{product.id}/reviews", json={"rating": 4, "comment": "Lovely"}, headers=headers(customer)
        )
        updated = client.post(f"/products/{product.id}/reviews", json={"rating": 5}, headers=headers(customer))

        assert created.status_code == 201
        assert created.json()["orderId"] == order.id
        assert updated.json()["id"] == created.json()["id"]
        reviews = client.get(f"/products/{product.id}/reviews").json()
        assert reviews["totalReviews"] == 1
        assert reviews["averageRating"] == 5.0
        assert reviews["reviews"][0]["userName"] == "Asha"

    def test_average_is_rounded(self, client, headers, customer, other_customer, product, make_order):
        make_order(status="delivered")
        make_order(status="delivered", customer_id=other_customer.id)
        client.post(f"/products/{product.id}/reviews", json={"rating": 5}, headers=headers(customer))
        client.post(f"/products/{product.id}/reviews", json={"rating": 4}, headers=headers(other_customer))

        assert client.get(f"/products/{product.id}/reviews").json()["averageRating"] == 4.5

    def test_rating_out_of_range(self, client, headers, customer, product, make_order):
        make_order(status="delivered")
        response = client.post(f"/products/{product.id}/reviews", json={"rating": 6}, headers=headers(customer))
        assert response.status_code == 400

    def test_can_review(self, client, headers, customer, product, make_order):
        before = client.get(f"/products/{product.id}/can-review", headers=headers(customer)).json()
        order = make_order(status="delivered")
        after = client.get(f"/products/{product.id}/can-review", headers=headers(customer)).json()

        assert before == {"canReview": False, "hasReviewed": False, "orderId": None}
        assert after["canReview"] is True
        assert after["orderId"] == order.id


class TestVendorsDirectory:
    def test_lists_approved_vendors(self, client, vendor, other_vendor, db):
        other_vendor.status = "rejected"
        db.commit()
        response = client.get("/vendors")
        assert [v["id"] for v in response.json()] == [vendor.id]

    def test_detail_includes_active_products(self, client, vendor, product):
        response = client.get(f"/vendors/{vendor.id}")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["products"]] == [product.id]

    def test_delivery_estimate_falls_back_to_haversine(self, client, vendor):
        response = client.get(
            f"/vendors/{vendor.id}/delivery-estimate", params={"lat": 12.9352, "lng": 77.6245, "city": "Bangalore"}
        )
        body = response.json()
        assert response.status_code == 200
        assert body["source"] == "haversine"
        assert body["deliveryType"] == "local"
        assert body["serviceable"] is True
