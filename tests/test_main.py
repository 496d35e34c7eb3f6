API = "/api/v1"


def create_user(client, name="Test User", email="test@example.com", address=None):
    r = client.post(f"{API}/users/", json={"name": name, "email": email, "address": address})
    assert r.status_code == 201
    return r.json()["id"]


def create_book(client, title="Test Book", isbn="12345", author="Author"):
    r = client.post(f"{API}/books/", json={"title": title, "author": author, "isbn": isbn,
                                           "publish_date": "2001-05-01"})
    assert r.status_code == 201
    return r.json()["id"]


def create_loan(client, user_id, book_id, loan_date, return_date=None):
    r = client.post(f"{API}/loans/", json={"user_id": user_id, "book_id": book_id,
                                           "loan_date": loan_date, "return_date": return_date})
    assert r.status_code == 201
    return r.json()["id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_user_and_book_and_borrow_return(client):
    user_id = create_user(client)
    book_id = create_book(client)

    # Borrow book
    r = client.post(f"{API}/users/{user_id}/books/{book_id}")
    assert r.status_code == 201
    assert r.json()["book"]["id"] == book_id
    assert r.json()["return_date"] is None

    r = client.get(f"{API}/users/{user_id}/books")
    assert r.status_code == 200
    assert r.json()["paging"]["total_number_of_items"] == 1

    # Same book twice
    r = client.post(f"{API}/users/{user_id}/books/{book_id}")
    assert r.status_code == 409

    # Return book
    r = client.delete(f"{API}/users/{user_id}/books/{book_id}")
    assert r.status_code == 204

    r = client.get(f"{API}/users/{user_id}/books")
    assert r.json()["items"] == []
    assert r.json()["paging"]["page_count"] == 0

    r = client.delete(f"{API}/users/{user_id}/books/{book_id}")
    assert r.status_code == 404

    r = client.get(f"{API}/users/{user_id}")
    assert r.status_code == 200
    history = r.json()["loan_history"]
    assert history["paging"]["total_number_of_items"] == 1
    assert history["items"][0]["return_date"] is not None


def test_list_books_paging(client):
    for i in range(5):
        create_book(client, title=f"Book {i}", isbn=f"isbn-{i}")

    r = client.get(f"{API}/books/", params={"pageNumber": 2, "pageMaxSize": 2})
    assert r.status_code == 200
    body = r.json()
    assert [b["title"] for b in body["items"]] == ["Book 2", "Book 3"]
    assert body["paging"] == {"page_number": 2, "page_size": 2, "page_max_size": 2,
                              "page_count": 3, "total_number_of_items": 5}

    r = client.get(f"{API}/books/", params={"pageNumber": 9, "pageMaxSize": 2})
    assert r.status_code == 200
    assert r.json()["items"] == []

    r = client.get(f"{API}/books/", params={"pageNumber": 2 ** 62, "pageMaxSize": 2 ** 62})
    assert r.status_code == 200
    assert r.json()["items"] == []
    assert r.json()["paging"]["page_count"] == 1

    r = client.get(f"{API}/books/", params={"pageNumber": 0})
    assert r.status_code == 412
    assert r.json()["code"] == 412


def test_patch_book_keeps_unset_fields(client):
    book_id = create_book(client)

    r = client.patch(f"{API}/books/{book_id}", json={"title": "", "author": "New Author"})
    assert r.status_code == 204

    book = client.get(f"{API}/books/{book_id}").json()
    assert book["title"] == "Test Book"
    assert book["author"] == "New Author"
    assert book["isbn"] == "12345"
    assert book["publish_date"] == "2001-05-01"


def test_book_errors(client):
    r = client.get(f"{API}/books/999")
    assert r.status_code == 404
    assert r.json() == {"code": 404, "message": "Book not found"}

    create_book(client, isbn="dup")
    r = client.post(f"{API}/books/", json={"title": "Other", "author": "A", "isbn": "dup",
                                           "publish_date": "2010-01-01"})
    assert r.status_code == 409

    other_id = create_book(client, isbn="other")
    r = client.patch(f"{API}/books/{other_id}", json={"isbn": "dup"})
    assert r.status_code == 409


def test_replace_and_patch_user(client):
    user_id = create_user(client, address="Main St 1")
    create_user(client, name="Other", email="other@example.com")

    r = client.patch(f"{API}/users/{user_id}", json={"name": "Renamed", "email": None})
    assert r.status_code == 204
    user = client.get(f"{API}/users/{user_id}").json()
    assert (user["name"], user["email"], user["address"]) == ("Renamed", "test@example.com", "Main St 1")

    r = client.patch(f"{API}/users/{user_id}", json={"email": "other@example.com"})
    assert r.status_code == 409

    r = client.put(f"{API}/users/{user_id}", json={"name": "Replaced", "email": "r@example.com"})
    assert r.status_code == 204
    user = client.get(f"{API}/users/{user_id}").json()
    assert user["address"] is None


def test_loan_filters(client):
    user_id = create_user(client)
    book_id = create_book(client)
    create_loan(client, user_id, book_id, "2023-01-10", "2023-03-15")

    def count(**params):
        r = client.get(f"{API}/loans/", params=params)
        assert r.status_code == 200
        return r.json()["paging"]["total_number_of_items"]

    assert count() == 1
    assert count(date="2023-02-01") == 1
    assert count(date="2023-04-01") == 0
    assert count(date="2023-02-15", monthSpan="true") == 1
    assert count(userID=user_id) == 1
    assert count(userID=user_id + 1) == 0
    assert count(bookID=book_id, date="2023-01-09") == 0


def test_loan_dates_must_be_ordered(client):
    user_id = create_user(client)
    book_id = create_book(client)
    r = client.post(f"{API}/loans/", json={"user_id": user_id, "book_id": book_id,
                                           "loan_date": "2023-02-01", "return_date": "2023-01-01"})
    assert r.status_code == 412
    assert r.json()["message"] == "Loan date must be before the return date"


def test_loan_patch_forwards_every_field(client):
    user_id = create_user(client)
    book_id = create_book(client)
    loan_id = create_loan(client, user_id, book_id, "2023-01-10", "2023-03-15")

    # Without a loan date the forwarded update is incomplete
    r = client.patch(f"{API}/loans/{loan_id}", json={"return_date": "2023-03-20"})
    assert r.status_code == 412

    # An absent return date clears it
    r = client.patch(f"{API}/loans/{loan_id}", json={"loan_date": "2023-01-11"})
    assert r.status_code == 204
    loan = client.get(f"{API}/loans/{loan_id}").json()
    assert loan["loan_date"] == "2023-01-11"
    assert loan["return_date"] is None

    r = client.post(f"{API}/loans/{loan_id}/return")
    assert r.status_code == 200
    assert r.json()["return_date"] is not None

    r = client.post(f"{API}/loans/{loan_id}/return")
    assert r.status_code == 412


def test_reopening_a_loan_keeps_one_open_loan_per_book(client):
    user_id = create_user(client)
    book_id = create_book(client)
    closed_id = create_loan(client, user_id, book_id, "2023-01-10", "2023-03-15")
    assert client.post(f"{API}/users/{user_id}/books/{book_id}").status_code == 201

    r = client.patch(f"{API}/loans/{closed_id}", json={"loan_date": "2023-01-01"})
    assert r.status_code == 409
    r = client.put(f"{API}/loans/{closed_id}", json={"loan_date": "2023-01-01", "return_date": None})
    assert r.status_code == 409

    r = client.get(f"{API}/users/{user_id}/books")
    assert r.json()["paging"]["total_number_of_items"] == 1
    assert client.get(f"{API}/loans/{closed_id}").json()["return_date"] == "2023-03-15"

    # Once the other loan is returned the old one may be reopened
    assert client.delete(f"{API}/users/{user_id}/books/{book_id}").status_code == 204
    r = client.patch(f"{API}/loans/{closed_id}", json={"loan_date": "2023-01-01"})
    assert r.status_code == 204


def test_user_loan_patch_merges(client):
    user_id = create_user(client)
    book_id = create_book(client)
    loan_id = create_loan(client, user_id, book_id, "2023-01-10")

    r = client.patch(f"{API}/users/{user_id}/books/{book_id}", json={"return_date": "2023-02-01"})
    assert r.status_code == 204
    loan = client.get(f"{API}/loans/{loan_id}").json()
    assert loan["loan_date"] == "2023-01-10"
    assert loan["return_date"] == "2023-02-01"

    r = client.patch(f"{API}/users/{user_id}/books/{book_id}", json={"return_date": "2023-02-02"})
    assert r.status_code == 404


def test_reports(client):
    first = create_user(client, name="First", email="first@example.com")
    second = create_user(client, name="Second", email="second@example.com")
    book_a = create_book(client, title="A", isbn="a")
    book_b = create_book(client, title="B", isbn="b")
    create_loan(client, first, book_a, "2023-01-01", "2023-01-11")
    create_loan(client, second, book_b, "2023-01-01", "2023-02-10")

    r = client.get(f"{API}/users/", params={"loanDate": "2023-01-05"})
    assert r.status_code == 200
    rows = r.json()["items"]
    assert [row["user"]["id"] for row in rows] == [first, second]

    r = client.get(f"{API}/users/", params={"loanDate": "2023-01-05", "duration": 30})
    rows = r.json()["items"]
    assert len(rows) == 1
    assert rows[0]["user"]["id"] == second
    assert rows[0]["loan_count"] == 1
    assert rows[0]["total_duration_days"] == 40
    assert len(rows[0]["user_loans"]) == 1

    r = client.get(f"{API}/books/", params={"loanDate": "2023-01-05", "duration": 30})
    rows = r.json()["items"]
    assert [row["book"]["id"] for row in rows] == [book_b]
    assert rows[0]["book_loans"][0]["user"]["id"] == second

    # Without report parameters the plain listing is returned
    r = client.get(f"{API}/users/")
    assert [u["name"] for u in r.json()["items"]] == ["First", "Second"]


def test_reviews(client):
    user_id = create_user(client)
    book_id = create_book(client)

    r = client.post(f"{API}/books/{book_id}/reviews/{user_id}", json={"rating": 4})
    assert r.status_code == 201
    assert r.json()["rating"] == 4

    r = client.post(f"{API}/users/{user_id}/reviews/{book_id}", json={"rating": 3})
    assert r.status_code == 409

    r = client.post(f"{API}/books/{book_id}/reviews/{user_id}", json={"rating": 7})
    assert r.status_code == 422

    r = client.patch(f"{API}/books/{book_id}/reviews/{user_id}", json={})
    assert r.status_code == 204
    assert client.get(f"{API}/books/{book_id}/reviews/{user_id}").json()["rating"] == 4

    r = client.patch(f"{API}/users/{user_id}/reviews/{book_id}", json={"rating": 2})
    assert r.status_code == 204
    assert client.get(f"{API}/users/{user_id}/reviews/{book_id}").json()["rating"] == 2

    r = client.get(f"{API}/books/reviews")
    assert r.status_code == 200
    grouped = r.json()["items"]
    assert grouped[0]["book"]["id"] == book_id
    assert grouped[0]["reviews"][0]["user"]["id"] == user_id

    assert client.get(f"{API}/users/{user_id}/reviews").json()["items"][0]["book"]["id"] == book_id
    assert client.get(f"{API}/books/{book_id}/reviews").json()["items"][0]["rating"] == 2

    r = client.delete(f"{API}/books/{book_id}/reviews/{user_id}")
    assert r.status_code == 204
    r = client.get(f"{API}/books/{book_id}/reviews/{user_id}")
    assert r.status_code == 404
    assert r.json()["message"] == "Review not found"


def test_recommendations(client):
    reader = create_user(client, email="reader@example.com")
    critic = create_user(client, email="critic@example.com")
    newcomer = create_user(client, email="new@example.com")
    book_a = create_book(client, title="A", isbn="a")
    book_b = create_book(client, title="B", isbn="b")
    create_book(client, title="Unrated", isbn="c")

    client.post(f"{API}/books/{book_a}/reviews/{reader}", json={"rating": 5})
    client.post(f"{API}/books/{book_a}/reviews/{critic}", json={"rating": 4})
    client.post(f"{API}/books/{book_b}/reviews/{critic}", json={"rating": 3})

    r = client.get(f"{API}/users/{newcomer}/recommendations")
    assert r.status_code == 200
    items = r.json()["items"]
    assert [i["book"]["id"] for i in items] == [book_a, book_b]
    assert items[0]["average_rating"] == 4.5

    items = client.get(f"{API}/users/{reader}/recommendations").json()["items"]
    assert [i["book"]["id"] for i in items] == [book_b]

    r = client.get(f"{API}/users/999/recommendations")
    assert r.status_code == 404


def test_deleting_user_removes_loans(client):
    user_id = create_user(client)
    book_id = create_book(client)
    loan_id = create_loan(client, user_id, book_id, "2023-01-10")

    r = client.delete(f"{API}/users/{user_id}")
    assert r.status_code == 204
    assert client.get(f"{API}/loans/{loan_id}").status_code == 404
    assert client.get(f"{API}/books/{book_id}").json()["loan_history"]["items"] == []
