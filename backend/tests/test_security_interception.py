"""
Ownership isolation tests.

These tests ensure that:
1. Users cannot read other users' notes
2. Users cannot modify other users' notes
3. Users cannot delete other users' notes
4. Lists and searches never leak other users' notes
"""


def test_unauthorized_note_access(client):
    r = client.post(
        "/notes",
        headers={"X-User-Id": "userB"},
        json={"title": "Private Note", "content": "Secret content"},
    )
    assert r.status_code == 201
    note_id = r.json()["id"]

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userA"})
    assert response.status_code == 404


def test_unauthorized_note_modification(client):
    r = client.post(
        "/notes",
        headers={"X-User-Id": "userB"},
        json={"title": "Original Title", "content": "Original content"},
    )
    note_id = r.json()["id"]

    response = client.patch(
        f"/notes/{note_id}",
        headers={"X-User-Id": "userA"},
        json={"title": "Hacked Title", "content": "Hacked content"},
    )
    assert response.status_code == 404

    # Verify the note was not modified
    r = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"})
    assert r.status_code == 200
    assert r.json()["title"] == "Original Title"
    assert r.json()["content"] == "Original content"


def test_unauthorized_note_deletion(client):
    r = client.post("/notes", headers={"X-User-Id": "userB"}, json={"title": "Keep me"})
    note_id = r.json()["id"]

    response = client.delete(f"/notes/{note_id}", headers={"X-User-Id": "userA"})
    assert response.status_code == 404

    r = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"})
    assert r.status_code == 200


def test_missing_user_id_header(client):
    r = client.post(
        "/notes",
        headers={"X-User-Id": "userB"},
        json={"title": "Secure Note", "content": "Protected"},
    )
    note_id = r.json()["id"]

    response = client.get(f"/notes/{note_id}")
    assert response.status_code == 401


def test_tampering_with_user_id_header(client):
    r = client.post(
        "/notes",
        headers={"X-User-Id": "userB"},
        json={"title": "Secret", "content": "Only for B"},
    )
    note_id = r.json()["id"]

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userA; userB"})
    assert response.status_code == 404

    response = client.get(f"/notes/{note_id}", headers={"X-User-Id": "userB"})
    assert response.status_code == 200


def test_path_traversal_in_user_id_is_rejected(client):
    r = client.get("/notes", headers={"X-User-Id": "../userB"})
    assert r.status_code == 502


def test_note_list_and_search_isolation(client):
    note_ids = []
    for i in range(3):
        r = client.post(
            "/notes",
            headers={"X-User-Id": "userB"},
            json={"title": f"Note {i}", "content": f"shared word {i}"},
        )
        note_ids.append(r.json()["id"])

    r = client.post(
        "/notes",
        headers={"X-User-Id": "userA"},
        json={"title": "User A Note", "content": "shared word too"},
    )
    a_note_id = r.json()["id"]

    r = client.get("/notes", headers={"X-User-Id": "userA"}, params={"search": "shared"})
    assert r.status_code == 200
    body = r.json()
    a_note_ids = [n["id"] for n in body["items"]]
    assert a_note_ids == [a_note_id]
    assert body["total"] == 1
    for note_id in note_ids:
        assert note_id not in a_note_ids
