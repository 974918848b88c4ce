"""API tests for logging, listing and deleting food entries."""


def log(client, user_id, food_text, meal=None):
    payload = {"foodText": food_text}
    if meal is not None:
        payload["meal"] = meal
    return client.post("/food-entries", json=payload, headers={"X-User-Id": user_id})


def as_caller(user_id):
    return {"X-User-Id": user_id}


def test_log_entry_returns_estimate(client, api_user):
    """Test that logging returns the stored entry with its nutrient estimate."""
    resp = log(client, api_user, "Pizza Margherita", "dinner")
    assert resp.status_code == 201
    body = resp.json()
    assert len(body["id"]) == 32
    assert body["userId"] == api_user
    assert body["foodText"] == "Pizza Margherita"
    assert body["meal"] == "dinner"
    assert body["nutrientProfile"] == {
        "calories": 650, "protein": 25, "carbs": 80, "fat": 25, "sugar": 5,
        "confidence": 0.85, "ingredients": ["dough", "cheese", "sauce"],
    }
    assert body["macroPercentages"] == {"protein": 19, "carbs": 62, "fat": 19}
    assert "createdAt" in body


def test_meal_defaults_to_snack(client, api_user):
    """Test that an entry without a meal is logged as a snack."""
    assert log(client, api_user, "Grüner Apfel").json()["meal"] == "snack"


def test_log_requires_caller_identity(client):
    """Test that logging without X-User-Id is rejected with 401."""
    resp = client.post("/food-entries", json={"foodText": "Pizza"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Caller identity required", "details": {"header": "X-User-Id"}}


def test_log_with_malformed_or_unknown_caller(client):
    """Test 400 for a malformed caller id and 404 for an unknown user."""
    assert log(client, "not-a-user", "Pizza").status_code == 400
    resp = log(client, "0" * 32, "Pizza")
    assert resp.status_code == 404
    assert resp.json()["details"]["resource"] == "User"


def test_log_rejects_bad_text(client, api_user):
    """Test that blank and overlong food text is rejected."""
    resp = log(client, api_user, "   ")
    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "foodText"}
    assert log(client, api_user, "x" * 501).status_code == 400
    assert log(client, api_user, "x" * 500).status_code == 201


def test_log_rejects_unknown_meal(client, api_user):
    """Test that an unknown meal fails request validation with 400."""
    resp = log(client, api_user, "Pizza", "brunch")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"
    assert resp.json()["details"]["validation_errors"][0]["field"] == "meal"


def test_list_today_with_totals(client, api_user):
    """Test today's entries with calorie total and per-meal counts."""
    log(client, api_user, "Müsli mit Milch", "breakfast")
    log(client, api_user, "Pasta", "lunch")
    log(client, api_user, "Apfel", "snack")

    resp = client.get("/food-entries", params={"date": "today"}, headers=as_caller(api_user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["entryCount"] == 3
    assert body["totalCalories"] == 340 + 520 + 80
    assert body["byMeal"] == {"breakfast": 1, "lunch": 1, "snack": 1}
    assert body["date"] == "today"
    assert {e["foodText"] for e in body["entries"]} == {"Müsli mit Milch", "Pasta", "Apfel"}


def test_list_by_user_id_meal_and_page(client, api_user):
    """Test listing by userId with meal filter and limit."""
    for text in ("Pizza", "Pasta", "Salat"):
        log(client, api_user, text, "dinner")
    log(client, api_user, "Apfel", "snack")

    resp = client.get("/food-entries", params={"userId": api_user, "meal": "dinner", "limit": 2})
    body = resp.json()
    assert resp.status_code == 200
    assert body["entryCount"] == 2
    assert body["byMeal"] == {"dinner": 2}

    everything = client.get("/food-entries", params={"userId": api_user, "date": "all"}).json()
    assert everything["entryCount"] == 4


def test_list_for_other_days(client, api_user):
    """Test that an ISO date outside the log returns an empty page."""
    log(client, api_user, "Pizza")
    resp = client.get("/food-entries", params={"userId": api_user, "date": "2001-01-01"})
    assert resp.status_code == 200
    assert resp.json()["entries"] == []
    assert resp.json()["totalCalories"] == 0


def test_list_validation(client, api_user):
    """Test identity, date, id, meal and limit validation on listing."""
    assert client.get("/food-entries").status_code == 401
    resp = client.get("/food-entries", params={"userId": api_user, "date": "yesterday"})
    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "date"}
    assert client.get("/food-entries", params={"userId": "xyz"}).status_code == 400
    assert client.get("/food-entries", params={"userId": api_user, "meal": "brunch"}).status_code == 400
    assert client.get("/food-entries", params={"userId": api_user, "limit": 0}).status_code == 400


def test_delete_entry(client, api_user):
    """Test that the owner can delete an entry once."""
    entry_id = log(client, api_user, "Pizza").json()["id"]

    resp = client.delete(f"/food-entries/{entry_id}", headers=as_caller(api_user))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Food entry deleted successfully", "deletedId": entry_id}

    again = client.delete(f"/food-entries/{entry_id}", headers=as_caller(api_user))
    assert again.status_code == 404
    listed = client.get("/food-entries", params={"userId": api_user}).json()
    assert listed["entries"] == []


def test_delete_requires_owner(client, api_user):
    """Test that deleting needs the caller header and only reaches the caller's entries."""
    entry_id = log(client, api_user, "Pizza").json()["id"]
    other = client.post("/users", json={
        "username": "tom_admin", "email": "tom@calora-admin.com", "age": 30,
        "gender": "male", "weight": 75, "height": 180, "activityLevel": 1.2,
    }).json()["id"]

    assert client.delete(f"/food-entries/{entry_id}").status_code == 401
    assert client.delete(f"/food-entries/{entry_id}", headers=as_caller(other)).status_code == 404
    listed = client.get("/food-entries", params={"userId": api_user}).json()
    assert [e["id"] for e in listed["entries"]] == [entry_id]


def test_delete_malformed_id(client, api_user):
    """Test that a malformed entry id is a 400."""
    resp = client.delete("/food-entries/123", headers=as_caller(api_user))
    assert resp.status_code == 400
    assert resp.json()["details"] == {"field": "id"}


def test_unsupported_methods_list_allowed(client):
    """Test that 405 responses list every method registered on the path."""
    resp = client.put("/food-entries", json={})
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed", "allowed": ["GET", "POST"]}
    assert resp.headers["allow"] == "GET, POST"

    resp = client.patch("/food-entries/" + "a" * 32, json={})
    assert resp.status_code == 405
    assert resp.json()["allowed"] == ["DELETE"]
