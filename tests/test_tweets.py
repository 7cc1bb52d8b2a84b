from fastapi.testclient import TestClient
from sqlmodel import Session

from api.db.models import Tweet


def test_create_and_list_tweets(client: TestClient, signup):
    headers, user_id = signup("tweeter")
    r = client.post("/api/tweets/", headers=headers, json={"content": "  first post  "})
    assert r.status_code == 201
    tweet = r.json()["data"]
    assert tweet["content"] == "first post"
    assert tweet["reply_to"] is None
    assert tweet["owner"]["id"] == user_id

    client.post("/api/tweets/", headers=headers, json={"content": "second post"})
    tweets = client.get(f"/api/tweets/user/{user_id}").json()["data"]
    assert {t["content"] for t in tweets} == {"first post", "second post"}


def test_user_without_tweets_gets_empty_list(client: TestClient, signup):
    _, user_id = signup("silent")
    r = client.get(f"/api/tweets/user/{user_id}")
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_tweets_of_unknown_user(client: TestClient):
    r = client.get("/api/tweets/user/00000000-0000-0000-0000-000000000000")
    assert r.status_code == 404


def test_reply_to_tweet(client: TestClient, signup):
    author, _ = signup("original")
    replier, _ = signup("replier")
    parent = client.post("/api/tweets/", headers=author, json={"content": "question?"}).json()["data"]

    r = client.post("/api/tweets/", headers=replier, json={"content": "answer", "reply_to": parent["id"]})
    assert r.status_code == 201
    assert r.json()["data"]["reply_to"] == parent["id"]

    r = client.post(
        "/api/tweets/",
        headers=replier,
        json={"content": "into the void", "reply_to": "00000000-0000-0000-0000-000000000000"},
    )
    assert r.status_code == 404
    assert r.json()["message"] == "Tweet being replied to not found"


def test_tweet_too_long(client: TestClient, signup):
    headers, _ = signup("rambler")
    r = client.post("/api/tweets/", headers=headers, json={"content": "y" * 281})
    assert r.status_code == 400


def test_update_tweet(client: TestClient, signup):
    headers, _ = signup("fixer")
    tweet = client.post("/api/tweets/", headers=headers, json={"content": "typo tweet"}).json()["data"]

    r = client.patch(f"/api/tweets/{tweet['id']}", headers=headers, json={"content": "fixed tweet"})
    assert r.status_code == 200
    assert r.json()["data"]["content"] == "fixed tweet"


def test_delete_tweet_detaches_replies(client: TestClient, db_session: Session, signup):
    author, _ = signup("parent")
    replier, _ = signup("child")
    parent = client.post("/api/tweets/", headers=author, json={"content": "parent tweet"}).json()["data"]
    reply = client.post(
        "/api/tweets/", headers=replier, json={"content": "reply tweet", "reply_to": parent["id"]}
    ).json()["data"]
    client.post(f"/api/likes/toggle/t/{parent['id']}", headers=replier)

    r = client.delete(f"/api/tweets/{parent['id']}", headers=author)
    assert r.status_code == 200
    assert db_session.get(Tweet, parent["id"]) is None

    remaining = db_session.get(Tweet, reply["id"])
    db_session.refresh(remaining)
    assert remaining.reply_to_id is None
