def test_completion_is_recorded_once(client):
    first = client.post("/api/secret-challenge", json={"playerEmail": "konami@example.com", "score": 1500})
    assert first.status_code == 201
    assert first.json()["entry"]["playerEmail"] == "konami@example.com"

    again = client.post("/api/secret-challenge", json={"playerEmail": "konami@example.com", "score": 2000})
    assert again.status_code == 409
    assert again.json() == {"message": "You have already completed the secret challenge!"}

    assert client.get("/api/secret-challenge/check/konami@example.com").json() == {"hasCompleted": True}
    assert client.get("/api/secret-challenge/check/other@example.com").json() == {"hasCompleted": False}


def test_leaderboard_is_highest_score_first_and_capped(client):
    for n in range(12):
        client.post("/api/secret-challenge", json={"playerEmail": f"p{n}@example.com", "score": n * 100})

    board = client.get("/api/secret-challenge/leaderboard").json()

    assert len(board) == 10
    assert board[0]["score"] == 1100
    assert [entry["score"] for entry in board] == sorted((entry["score"] for entry in board), reverse=True)


def test_score_out_of_range(client):
    response = client.post("/api/secret-challenge", json={"playerEmail": "konami@example.com", "score": 5000})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "score"


def test_invalid_email(client):
    response = client.post("/api/secret-challenge", json={"playerEmail": "nope", "score": 10})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "playerEmail"


def test_email_case_does_not_matter(client):
    created = client.post("/api/secret-challenge", json={"playerEmail": "Bob@Example.COM", "score": 700})
    assert created.status_code == 201
    assert created.json()["entry"]["playerEmail"] == "bob@example.com"

    assert client.get("/api/secret-challenge/check/Bob@Example.COM").json() == {"hasCompleted": True}
    assert client.get("/api/secret-challenge/check/bob@example.com").json() == {"hasCompleted": True}

    again = client.post("/api/secret-challenge", json={"playerEmail": "bob@example.com", "score": 900})
    assert again.status_code == 409
