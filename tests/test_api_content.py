from datetime import datetime, timedelta, timezone

import pytest

from models import storage
from models.comment import Comment
from models.video import Video

from conftest import PASSWORD, bearer

T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)

NEW_VIDEO = {
    "title": "First steps",
    "description": "a short clip",
    "videoFile": "https://cdn.example.com/first.mp4",
    "thumbnail": "https://cdn.example.com/first.png",
    "duration": 12.5,
}


@pytest.fixture
def alice(make_user, login):
    user = make_user("alice")
    return user, bearer(login("alice@example.com")["accessToken"])


@pytest.fixture
def bob(make_user, login):
    user = make_user("bob")
    return user, bearer(login("bob@example.com")["accessToken"])


def post_video(client, headers, **overrides):
    resp = client.post("/api/v1/videos", json={**NEW_VIDEO, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


def test_register_and_duplicate(client):
    payload = {
        "fullname": "Carol Doe",
        "email": "Carol@Example.com",
        "username": "carol",
        "password": PASSWORD,
    }
    created = client.post("/api/v1/users", json=payload)
    duplicate = client.post("/api/v1/users", json={**payload, "username": "carol2"})
    short = client.post("/api/v1/users", json={**payload, "username": "dave", "email": "d@x.com", "password": "short"})

    assert created.status_code == 201
    assert created.get_json()["data"]["email"] == "carol@example.com"
    assert "password_hash" not in created.get_json()["data"]
    assert duplicate.status_code == 409
    assert short.status_code == 400
    assert "password" in short.get_json()["data"]["errors"]


def test_update_profile_and_password(client, alice, bob):
    _, headers = alice

    empty = client.patch("/api/v1/users/me", json={}, headers=headers)
    taken = client.patch("/api/v1/users/me", json={"email": "bob@example.com"}, headers=headers)
    renamed = client.patch("/api/v1/users/me", json={"fullname": "Alice Liddell"}, headers=headers)

    assert empty.status_code == 400
    assert taken.status_code == 409
    assert renamed.get_json()["data"]["fullname"] == "Alice Liddell"

    same = client.patch(
        "/api/v1/users/me/password", json={"oldPassword": PASSWORD, "newPassword": PASSWORD}, headers=headers
    )
    wrong = client.patch(
        "/api/v1/users/me/password", json={"oldPassword": "bad-password", "newPassword": "brand-new-pass"}, headers=headers
    )
    changed = client.patch(
        "/api/v1/users/me/password", json={"oldPassword": PASSWORD, "newPassword": "brand-new-pass"}, headers=headers
    )
    assert same.status_code == 400
    assert wrong.status_code == 401
    assert changed.status_code == 200

    login = client.post("/api/v1/session/login", json={"username": "alice", "password": "brand-new-pass"})
    assert login.status_code == 200


def test_video_crud_and_ownership(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)

    forbidden = client.patch(f"/api/v1/videos/{video['id']}", json={"title": "mine now"}, headers=bob_headers)
    updated = client.patch(f"/api/v1/videos/{video['id']}", json={"title": "Renamed"}, headers=alice_headers)
    missing = client.patch("/api/v1/videos/does-not-exist", json={"title": "x"}, headers=alice_headers)

    assert forbidden.status_code == 403
    assert updated.get_json()["data"]["title"] == "Renamed"
    assert missing.status_code == 404

    assert client.delete(f"/api/v1/videos/{video['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/videos/{video['id']}", headers=alice_headers).status_code == 200
    assert client.get(f"/api/v1/videos/{video['id']}", headers=alice_headers).status_code == 404


def test_get_video_counts_views(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)

    client.get(f"/api/v1/videos/{video['id']}", headers=bob_headers)
    resp = client.get(f"/api/v1/videos/{video['id']}", headers=bob_headers)

    data = resp.get_json()["data"]
    assert data["views"] == 2
    assert data["owner"]["username"] == "alice"
    assert data["likes_count"] == 0
    assert data["is_liked"] is False


def test_unpublished_videos_are_owner_only(client, alice, bob):
    alice_user, alice_headers = alice
    _, bob_headers = bob
    post_video(client, alice_headers, title="public")
    hidden = post_video(client, alice_headers, title="draft", isPublished=False)

    as_owner = client.get(f"/api/v1/videos?userId={alice_user.id}", headers=alice_headers).get_json()["data"]
    as_other = client.get(f"/api/v1/videos?userId={alice_user.id}", headers=bob_headers).get_json()["data"]

    assert as_owner["total"] == 2
    assert [v["title"] for v in as_other["videos"]] == ["public"]
    assert client.get(f"/api/v1/videos/{hidden['id']}", headers=bob_headers).status_code == 404

    toggled = client.patch(f"/api/v1/videos/{hidden['id']}/publish", json={}, headers=alice_headers)
    assert toggled.get_json()["data"]["is_published"] is True


def test_video_listing_validation(client, alice):
    alice_user, headers = alice
    assert client.get("/api/v1/videos", headers=headers).status_code == 400
    bad_sort = client.get(f"/api/v1/videos?userId={alice_user.id}&sortBy=owner_id&sortType=asc", headers=headers)
    assert bad_sort.status_code == 400


def test_comments_second_page(client, alice):
    alice_user, headers = alice
    video = post_video(client, headers)
    for minutes, text in enumerate(["oldest", "middle", "newest"]):
        storage.new(
            Comment(
                content=text,
                video_id=video["id"],
                owner_id=alice_user.id,
                created_at=T0 + timedelta(minutes=minutes),
            )
        )
    storage.save()

    resp = client.get(f"/api/v1/comments?videoId={video['id']}&page=2&limit=1", headers=headers)

    data = resp.get_json()["data"]
    assert data["total"] == 3
    assert (data["page"], data["limit"]) == (2, 1)
    assert [c["content"] for c in data["comments"]] == ["middle"]
    assert data["comments"][0]["owner"]["username"] == "alice"


def test_comment_lifecycle(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)

    missing_video = client.post("/api/v1/comments", json={"videoId": "nope", "content": "hi"}, headers=bob_headers)
    blank = client.post("/api/v1/comments", json={"videoId": video["id"], "content": "   "}, headers=bob_headers)
    created = client.post("/api/v1/comments", json={"videoId": video["id"], "content": "hi"}, headers=bob_headers)
    assert missing_video.status_code == 404
    assert blank.status_code == 400
    assert created.status_code == 201

    comment_id = created.get_json()["data"]["id"]
    assert client.patch(f"/api/v1/comments/{comment_id}", json={"content": "x"}, headers=alice_headers).status_code == 403
    edited = client.patch(f"/api/v1/comments/{comment_id}", json={"content": "hello"}, headers=bob_headers)
    assert edited.get_json()["data"]["content"] == "hello"
    assert client.delete(f"/api/v1/comments/{comment_id}", headers=bob_headers).status_code == 200


def test_like_toggle_and_liked_videos(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)

    first = client.post("/api/v1/like/video", json={"videoId": video["id"]}, headers=bob_headers)
    assert first.get_json()["data"] == {"liked": True}

    detail = client.get(f"/api/v1/videos/{video['id']}", headers=bob_headers).get_json()["data"]
    assert (detail["likes_count"], detail["is_liked"]) == (1, True)

    liked = client.get("/api/v1/like/videos", headers=bob_headers).get_json()["data"]
    assert liked["total"] == 1
    assert liked["likedVideos"][0]["video"]["title"] == "First steps"
    assert liked["likedVideos"][0]["video"]["owner"]["username"] == "alice"

    second = client.post("/api/v1/like/video", json={"videoId": video["id"]}, headers=bob_headers)
    assert second.get_json()["data"] == {"liked": False}
    assert client.get("/api/v1/like/videos", headers=bob_headers).get_json()["data"]["total"] == 0


def test_like_unknown_target(client, alice):
    _, headers = alice
    assert client.post("/api/v1/like/video", json={"videoId": "nope"}, headers=headers).status_code == 404
    assert client.post("/api/v1/like/tweet", json={}, headers=headers).status_code == 400


def test_tweets_with_likes(client, alice, bob):
    alice_user, alice_headers = alice
    _, bob_headers = bob
    tweet = client.post("/api/v1/tweets", json={"content": "hello world"}, headers=alice_headers).get_json()["data"]

    liked = client.post("/api/v1/like/tweet", json={"tweetId": tweet["id"]}, headers=bob_headers)
    assert liked.get_json()["data"]["liked"] is True

    listing = client.get(f"/api/v1/tweets?userId={alice_user.id}", headers=bob_headers).get_json()["data"]
    assert listing["total"] == 1
    assert listing["tweets"][0]["likes_count"] == 1
    assert listing["tweets"][0]["is_liked"] is True

    assert client.patch(f"/api/v1/tweets/{tweet['id']}", json={"content": "x"}, headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/tweets/{tweet['id']}", headers=alice_headers).status_code == 200


def test_subscriptions_and_channel_profile(client, alice, bob):
    alice_user, alice_headers = alice
    bob_user, bob_headers = bob

    self_sub = client.post("/api/v1/subscriptions/toggle", json={"channelId": alice_user.id}, headers=alice_headers)
    assert self_sub.status_code == 400

    sub = client.post("/api/v1/subscriptions/toggle", json={"channelId": alice_user.id}, headers=bob_headers)
    assert sub.get_json()["data"] == {"subscribed": True}

    profile = client.get("/api/v1/users/channel/alice", headers=bob_headers).get_json()["data"]
    assert profile["subscribers_count"] == 1
    assert profile["subscribed_to_count"] == 0
    assert profile["is_subscribed"] is True
    assert "password_hash" not in profile

    subscribers = client.get(
        f"/api/v1/subscriptions/subscribers?channelId={alice_user.id}", headers=alice_headers
    ).get_json()["data"]
    channels = client.get(
        f"/api/v1/subscriptions/channels?subscriberId={bob_user.id}", headers=bob_headers
    ).get_json()["data"]
    assert [s["subscriber"]["username"] for s in subscribers["subscribers"]] == ["bob"]
    assert [c["channel"]["username"] for c in channels["channels"]] == ["alice"]

    unsub = client.post("/api/v1/subscriptions/toggle", json={"channelId": alice_user.id}, headers=bob_headers)
    assert unsub.get_json()["data"] == {"subscribed": False}
    assert client.get("/api/v1/users/channel/ALICE", headers=bob_headers).get_json()["data"]["subscribers_count"] == 0
    assert client.get("/api/v1/users/channel/nobody", headers=bob_headers).status_code == 404


def test_playlists(client, alice, bob):
    alice_user, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)
    playlist = client.post(
        "/api/v1/playlists", json={"name": "Favourites", "description": "best of"}, headers=alice_headers
    ).get_json()["data"]
    url = f"/api/v1/playlists/{playlist['id']}/videos/{video['id']}"

    assert client.put(url, headers=bob_headers).status_code == 403
    client.put(url, headers=alice_headers)
    again = client.put(url, headers=alice_headers).get_json()["data"]
    assert again["video_count"] == 1
    assert again["videos"][0]["owner"]["username"] == "alice"

    listing = client.get(f"/api/v1/playlists?userId={alice_user.id}", headers=bob_headers).get_json()["data"]
    assert listing["playlists"][0]["video_count"] == 1

    removed = client.delete(url, headers=alice_headers).get_json()["data"]
    assert removed["videos"] == []

    renamed = client.patch(f"/api/v1/playlists/{playlist['id']}", json={"name": "Top"}, headers=alice_headers)
    assert renamed.get_json()["data"]["name"] == "Top"
    assert client.delete(f"/api/v1/playlists/{playlist['id']}", headers=alice_headers).status_code == 200
    assert client.get(f"/api/v1/playlists/{playlist['id']}", headers=alice_headers).status_code == 404


def test_dashboard_stats(client, alice, bob):
    alice_user, alice_headers = alice
    _, bob_headers = bob
    first = post_video(client, alice_headers)
    post_video(client, alice_headers, title="Second")
    client.post("/api/v1/like/video", json={"videoId": first["id"]}, headers=bob_headers)
    client.post("/api/v1/subscriptions/toggle", json={"channelId": alice_user.id}, headers=bob_headers)
    client.get(f"/api/v1/videos/{first['id']}", headers=bob_headers)

    stats = client.get("/api/v1/dashboard/stats", headers=alice_headers).get_json()["data"]
    assert stats == {"videos": 2, "likes": 1, "subscribers": 1, "views": 1}

    empty = client.get("/api/v1/dashboard/stats", headers=bob_headers).get_json()["data"]
    assert empty == {"videos": 0, "likes": 0, "subscribers": 0, "views": 0}


def test_deleting_video_cascades(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)
    client.post("/api/v1/comments", json={"videoId": video["id"], "content": "hi"}, headers=bob_headers)

    client.delete(f"/api/v1/videos/{video['id']}", headers=alice_headers)

    assert storage.get_session().query(Comment).count() == 0
    assert storage.get_session().query(Video).count() == 0


def test_huge_page_number_degrades_gracefully(client, alice):
    _, headers = alice
    video = post_video(client, headers)
    client.post("/api/v1/comments", json={"videoId": video["id"], "content": "hi"}, headers=headers)

    resp = client.get(f"/api/v1/comments?videoId={video['id']}&page=99999999999999999999", headers=headers)

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["comments"] == []
    assert data["total"] == 1


def test_drafts_are_hidden_from_other_users(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    draft = post_video(client, alice_headers, title="draft", isPublished=False)
    playlist = client.post(
        "/api/v1/playlists", json={"name": "Later", "description": "to watch"}, headers=bob_headers
    ).get_json()["data"]

    like = client.post("/api/v1/like/video", json={"videoId": draft["id"]}, headers=bob_headers)
    comment = client.post("/api/v1/comments", json={"videoId": draft["id"], "content": "hi"}, headers=bob_headers)
    comments = client.get(f"/api/v1/comments?videoId={draft['id']}", headers=bob_headers)
    add = client.put(f"/api/v1/playlists/{playlist['id']}/videos/{draft['id']}", headers=bob_headers)

    assert like.status_code == 404
    assert comment.status_code == 404
    assert comments.status_code == 404
    assert add.status_code == 404
    assert client.get("/api/v1/like/videos", headers=bob_headers).get_json()["data"]["total"] == 0

    # the owner can still interact with their own draft
    own = client.post("/api/v1/comments", json={"videoId": draft["id"], "content": "note"}, headers=alice_headers)
    assert own.status_code == 201


def test_unpublishing_hides_video_from_likes_and_playlists(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    video = post_video(client, alice_headers)
    playlist = client.post(
        "/api/v1/playlists", json={"name": "Later", "description": "to watch"}, headers=bob_headers
    ).get_json()["data"]
    client.post("/api/v1/like/video", json={"videoId": video["id"]}, headers=bob_headers)
    client.put(f"/api/v1/playlists/{playlist['id']}/videos/{video['id']}", headers=bob_headers)

    client.patch(f"/api/v1/videos/{video['id']}/publish", json={"isPublished": False}, headers=alice_headers)

    liked = client.get("/api/v1/like/videos", headers=bob_headers).get_json()["data"]
    detail = client.get(f"/api/v1/playlists/{playlist['id']}", headers=bob_headers).get_json()["data"]
    assert liked["total"] == 0
    assert liked["likedVideos"] == []
    assert detail["videos"] == []
    assert detail["video_count"] == 0

    # still visible to the owner through the same playlist
    as_owner = client.get(f"/api/v1/playlists/{playlist['id']}", headers=alice_headers).get_json()["data"]
    assert [v["id"] for v in as_owner["videos"]] == [video["id"]]


def test_watch_history(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    first = post_video(client, alice_headers, title="First")
    second = post_video(client, alice_headers, title="Second")

    assert client.get("/api/v1/users/me/history", headers=bob_headers).get_json()["data"] == []

    client.get(f"/api/v1/videos/{first['id']}", headers=bob_headers)
    client.get(f"/api/v1/videos/{second['id']}", headers=bob_headers)
    client.get(f"/api/v1/videos/{first['id']}", headers=bob_headers)

    history = client.get("/api/v1/users/me/history", headers=bob_headers).get_json()["data"]
    assert [v["title"] for v in history] == ["First", "Second"]
    assert history[0]["owner"]["username"] == "alice"
    assert history[0]["views"] == 2

    client.patch(f"/api/v1/videos/{second['id']}/publish", json={"isPublished": False}, headers=alice_headers)
    history = client.get("/api/v1/users/me/history", headers=bob_headers).get_json()["data"]
    assert [v["title"] for v in history] == ["First"]
    assert client.get("/api/v1/users/me/history", headers=alice_headers).get_json()["data"] == []
