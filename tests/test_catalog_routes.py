import base64

PIXEL = base64.b64encode(b"\x89PNG\r\n\x1a\nfake").decode()


def test_seller_product_with_inline_image(client, seller, category, auth_headers):
    resp = client.post("/api/seller/products", json={
        "name": "Block Print Dupatta",
        "price": "1800",
        "stock": 4,
        "category": "clothing",
        "image": f"data:image/png;base64,{PIXEL}",
    }, headers=auth_headers(seller))
    assert resp.status_code == 201
    product = resp.get_json()["product"]
    assert product["category"] == category.id
    assert product["local_image_id"]

    image = client.get(f"/images/{product['local_image_id']}")
    assert image.status_code == 200
    assert image.mimetype == "image/png"
    assert image.data == b"\x89PNG\r\n\x1a\nfake"

    listed = client.get("/api/products").get_json()["products"]
    assert listed[0]["display_image"] == f"/images/{product['local_image_id']}"


def test_seller_cannot_edit_foreign_product(client, seller, other_seller, make_product, auth_headers):
    product = make_product(seller)
    resp = client.put(f"/api/seller/products/{product.id}", json={"price": 1}, headers=auth_headers(other_seller))
    assert resp.status_code == 403


def test_rejects_bad_images_and_prices(client, seller, category, auth_headers):
    headers = auth_headers(seller)
    base = {"name": "Lamp", "price": 10, "category": category.id}

    assert client.post("/api/seller/products", json={**base, "image": "javascript:alert(1)"},
                       headers=headers).status_code == 400
    assert client.post("/api/seller/products", json={**base, "price": 0}, headers=headers).status_code == 400
    assert client.post("/api/seller/products", json={**base, "category": "Nope"}, headers=headers).status_code == 400
    assert client.post("/api/seller/products", json={**base, "name": 42}, headers=headers).status_code == 400


def test_cart_roundtrip(client, buyer, seller, make_product, auth_headers):
    product = make_product(seller, price=40, image_url="https://cdn.example.com/p.jpg")
    headers = auth_headers(buyer)

    client.post("/api/cart/add", json={"product_id": product.id, "quantity": 2}, headers=headers)
    client.post("/api/cart/add", json={"product_id": product.id}, headers=headers)
    cart = client.get("/api/cart", headers=headers).get_json()

    assert cart["total"] == 120.0
    assert cart["cart_items"][0]["quantity"] == 3
    assert cart["cart_items"][0]["seller_id"] == seller.id
    assert cart["cart_items"][0]["display_image"] == "https://cdn.example.com/p.jpg"

    assert client.post("/api/cart/add", json={"product_id": product.id, "quantity": 0},
                       headers=headers).status_code == 400


def test_wishlist_http(client, buyer, seller, make_product, auth_headers):
    product = make_product(seller)
    headers = auth_headers(buyer)

    assert client.post(f"/api/wishlist/{product.id}", headers=headers).status_code == 201
    assert client.post(f"/api/wishlist/{product.id}", headers=headers).status_code == 200
    assert client.get("/api/wishlist", headers=headers).get_json()["count"] == 1
    assert client.delete(f"/api/wishlist/{product.id}", headers=headers).status_code == 200
    assert client.post(f"/api/wishlist/{product.id}", headers=auth_headers(seller)).status_code == 403


def test_address_book(client, buyer, auth_headers, shipping):
    headers = auth_headers(buyer)
    resp = client.post("/api/addresses", json={"label": "Home", "shipping_info": shipping}, headers=headers)
    assert resp.status_code == 201
    address_id = resp.get_json()["address"]["id"]

    assert client.post("/api/addresses", json={"name": "Only a name"}, headers=headers).status_code == 400
    assert [a["label"] for a in client.get("/api/addresses", headers=headers).get_json()["addresses"]] == ["Home"]
    assert client.delete(f"/api/addresses/{address_id}", headers=headers).status_code == 200
