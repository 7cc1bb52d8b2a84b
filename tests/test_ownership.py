from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


def test_cannot_modify_other_users_video(client: TestClient, signup, make_video):
    _, owner_id = signup("owner3")
    intruder, _ = signup("intruder3")
    video = make_video(owner_id, title="Original title")

    r = client.patch(f"/api/videos/{video.id}", headers=intruder, data={"title": "Hijacked"})
    assert r.status_code == 403
    r = client.delete(f"/api/videos/{video.id}", headers=intruder)
    assert r.status_code == 403
    r = client.patch(f"/api/videos/{video.id}/publish", headers=intruder)
    assert r.status_code == 403

    data = client.get(f"/api/videos/{video.id}").json()["data"]
    assert data["title"] == "Original title"
    assert data["is_published"] is True


def test_owner_updates_video_and_thumbnail(client: TestClient, signup, make_video, gateway):
    headers, owner_id = signup("owner4")
    video = make_video(owner_id, thumbnail_public_id="old-thumb")

    r = client.patch(
        f"/api/videos/{video.id}",
        headers=headers,
        data={"title": "  Better title  ", "description": ""},
        files={"thumbnail": ("new.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Better title"
    assert data["description"] == "A sample video description"
    assert data["thumbnail_public_id"] in gateway.stored
    assert ("old-thumb", "image") in gateway.removed


def test_owner_toggles_publish_status(client: TestClient, signup, make_video):
    headers, owner_id = signup("owner5")
    video = make_video(owner_id)

    r = client.patch(f"/api/videos/{video.id}/publish", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["is_published"] is False
    assert r.json()["message"] == "Video has been unpublished successfully"

    r = client.patch(f"/api/videos/{video.id}/publish", headers=headers)
    assert r.json()["data"]["is_published"] is True


def test_delete_video_removes_media_and_row(client: TestClient, signup, make_video, gateway):
    headers, owner_id = signup("owner6")
    video = make_video(owner_id, video_public_id="vid-1", thumbnail_public_id="thumb-1")
    video_id = video.id

    r = client.delete(f"/api/videos/{video_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"] == {}
    assert ("vid-1", "video") in gateway.removed
    assert ("thumb-1", "image") in gateway.removed
    assert client.get(f"/api/videos/{video_id}").status_code == 404


def test_failed_media_delete_keeps_video(client: TestClient, signup, make_video, gateway):
    headers, owner_id = signup("owner7")
    video = make_video(owner_id, video_public_id="abc")
    video_id = video.id
    gateway.fail_remove.add("abc")

    r = client.delete(f"/api/videos/{video_id}", headers=headers)
    assert r.status_code == 500
    assert r.json()["success"] is False

    r = client.get(f"/api/videos/{video_id}")
    assert r.status_code == 200
    assert r.json()["data"]["video_public_id"] == "abc"


def test_cannot_modify_other_users_comment(client: TestClient, signup, make_video):
    author, owner_id = signup("author8")
    intruder, _ = signup("intruder8")
    video = make_video(owner_id)
    comment = client.post(f"/api/comments/video/{video.id}", headers=author, json={"content": "First!"}).json()["data"]

    r = client.patch(f"/api/comments/{comment['id']}", headers=intruder, json={"content": "Edited"})
    assert r.status_code == 403
    r = client.delete(f"/api/comments/{comment['id']}", headers=intruder)
    assert r.status_code == 403

    comments = client.get(f"/api/comments/video/{video.id}").json()["data"]["comments"]
    assert [c["content"] for c in comments] == ["First!"]


def test_cannot_modify_other_users_tweet(client: TestClient, signup):
    author, author_id = signup("author9")
    intruder, _ = signup("intruder9")
    tweet = client.post("/api/tweets/", headers=author, json={"content": "hello world"}).json()["data"]

    r = client.patch(f"/api/tweets/{tweet['id']}", headers=intruder, json={"content": "pwned"})
    assert r.status_code == 403
    r = client.delete(f"/api/tweets/{tweet['id']}", headers=intruder)
    assert r.status_code == 403

    tweets = client.get(f"/api/tweets/user/{author_id}").json()["data"]
    assert [t["content"] for t in tweets] == ["hello world"]


def test_cannot_modify_other_users_playlist(client: TestClient, signup, make_video):
    owner, owner_id = signup("owner10")
    intruder, _ = signup("intruder10")
    video = make_video(owner_id)
    playlist = client.post(
        "/api/playlists/", headers=owner, json={"name": "Mine", "description": "My favourites"}
    ).json()["data"]

    assert client.patch(f"/api/playlists/{playlist['id']}", headers=intruder, json={"name": "Ours"}).status_code == 403
    assert client.post(f"/api/playlists/{playlist['id']}/videos/{video.id}", headers=intruder).status_code == 403
    assert client.delete(f"/api/playlists/{playlist['id']}", headers=intruder).status_code == 403

    data = client.get(f"/api/playlists/{playlist['id']}").json()["data"]
    assert data["name"] == "Mine"
    assert data["videos"] == []


def test_failed_thumbnail_delete_keeps_video(client: TestClient, signup, make_video, gateway):
    headers, owner_id = signup("owner11")
    video = make_video(owner_id, video_public_id="vid-11", thumbnail_public_id="thumb-11")
    video_id = video.id
    gateway.fail_remove.add("thumb-11")

    r = client.delete(f"/api/videos/{video_id}", headers=headers)
    assert r.status_code == 500
    assert r.json()["message"] == "Failed to delete thumbnail from media storage"
    assert client.get(f"/api/videos/{video_id}").status_code == 200


def test_old_thumbnail_delete_failure_does_not_fail_update(client: TestClient, signup, make_video, gateway):
    headers, owner_id = signup("owner12")
    video = make_video(owner_id, thumbnail_public_id="stuck-thumb")
    gateway.fail_remove.add("stuck-thumb")

    r = client.patch(
        f"/api/videos/{video.id}",
        headers=headers,
        files={"thumbnail": ("new.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert r.status_code == 200
    assert r.json()["data"]["thumbnail_public_id"] in gateway.stored


def test_old_thumbnail_kept_when_update_not_saved(client: TestClient, db_session, signup, make_video, gateway, monkeypatch):
    headers, owner_id = signup("owner13")
    video = make_video(owner_id, thumbnail_public_id="keep-thumb")

    def failing_commit():
        raise OperationalError("UPDATE video", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    r = client.patch(
        f"/api/videos/{video.id}",
        headers=headers,
        files={"thumbnail": ("new.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )
    assert r.status_code == 500
    assert ("keep-thumb", "image") not in gateway.removed
