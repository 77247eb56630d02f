ANNOUNCEMENT = {"title": "Water cut", "message": "No supply in Ward 12 on Sunday", "priority": "high"}


def test_create_update_and_list(people, client_as):
    resp = client_as(people["subadmin"]).post("/announcements", json=ANNOUNCEMENT)
    assert resp.status_code == 200
    announcement = resp.json()["announcement"]
    assert announcement["isActive"] is True
    assert announcement["createdBy"] == "S1"

    public = client_as(None).get("/announcements").json()["announcements"]
    assert [a["id"] for a in public] == [announcement["id"]]

    resp = client_as(people["admin"]).post("/announcements", json={"id": announcement["id"], "isActive": False})
    assert resp.status_code == 200
    updated = resp.json()["announcement"]
    assert updated["isActive"] is False
    assert updated["title"] == "Water cut"
    assert updated["priority"] == "high"

    assert client_as(None).get("/announcements").json()["announcements"] == []
    assert len(client_as(people["admin"]).get("/announcements/all").json()["announcements"]) == 1


def test_validation(people, client_as):
    client = client_as(people["admin"])
    assert client.post("/announcements", json={"title": "No body"}).status_code == 400
    assert client.post("/announcements", json={**ANNOUNCEMENT, "priority": "critical"}).status_code == 400

    resp = client.post("/announcements", json={"id": "missing", "title": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Announcement not found"}


def test_only_authorities_manage_announcements(people, client_as):
    assert client_as(people["citizen"]).post("/announcements", json=ANNOUNCEMENT).status_code == 403
    assert client_as(people["contractor"]).get("/announcements/all").status_code == 403
    assert client_as(None).delete("/announcements/anything").status_code == 401


def test_delete(people, client_as, memory_db):
    announcement_id = client_as(people["admin"]).post("/announcements", json=ANNOUNCEMENT).json()["announcement"]["id"]

    resp = client_as(people["admin"]).delete(f"/announcements/{announcement_id}")
    assert resp.json() == {"success": True, "id": announcement_id}
    assert memory_db.peek("announcements", announcement_id) is None

    assert client_as(people["admin"]).delete(f"/announcements/{announcement_id}").status_code == 404
