from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from cerisonet.db import get_database
from cerisonet.errors import StorageUnavailable
from cerisonet.main import app
from conftest import login, run


def _post(n, created_by=1, **extra):
    doc = {
        "body": f"post {n}",
        "createdBy": created_by,
        "date": f"2025-03-{n:02d}",
        "hour": "10:00:00",
        "likes": 0,
        "likedBy": [],
        "comments": [],
        "hashtags": [],
        "images": [],
    }
    doc.update(extra)
    return doc


def _insert(collection, docs):
    return run(collection.insert_many(docs)).inserted_ids


def test_pagination_of_25_posts(client, posts_collection):
    _insert(posts_collection, [_post(n) for n in range(1, 26)])
    login(client)

    first = client.get("/posts", params={"pageSize": 10}).json()
    assert first["success"] is True
    assert first["total"] == 25
    assert first["totalPages"] == 3
    assert first["page"] == 1
    assert len(first["posts"]) == 10
    # newest first by default
    assert first["posts"][0]["content"] == "post 25"

    last = client.get("/posts", params={"page": 3, "pageSize": 10}).json()
    assert len(last["posts"]) == 5
    assert last["posts"][-1]["content"] == "post 1"


def test_defaults_and_lenient_parameters(client, posts_collection):
    _insert(posts_collection, [_post(n) for n in range(1, 13)])
    login(client)

    resp = client.get("/posts", params={"page": "abc", "pageSize": "-4"}).json()
    assert resp["page"] == 1
    assert resp["pageSize"] == 10
    assert len(resp["posts"]) == 10
    assert resp["totalPages"] == 2


def test_owner_filters(client, posts_collection):
    _insert(posts_collection, [_post(1, 1), _post(2, 2), _post(3, 1), _post(4, 3)])
    login(client)

    mine = client.get("/posts", params={"filterByOwner": "me", "userId": 1}).json()
    assert {p["authorId"] for p in mine["posts"]} == {1}
    assert mine["total"] == 2

    others = client.get("/posts", params={"filterByOwner": "others", "userId": 1}).json()
    assert 1 not in {p["authorId"] for p in others["posts"]}
    assert others["total"] == 2

    everyone = client.get("/posts", params={"filterByOwner": "all", "userId": 1}).json()
    assert everyone["total"] == 4


def test_owner_filter_defaults_to_session_account(client, posts_collection):
    _insert(posts_collection, [_post(1, 1), _post(2, 2)])
    login(client, email="marie.curie@example.com")

    mine = client.get("/posts", params={"filterByOwner": "me"}).json()
    assert [p["authorId"] for p in mine["posts"]] == [2]


def test_hashtag_filter(client, posts_collection):
    _insert(posts_collection, [
        _post(1, hashtags=["#ceri", "#reseaux"]),
        _post(2, hashtags=["#sport"]),
        _post(3, hashtags=["#ceri"]),
    ])
    login(client)

    resp = client.get("/posts", params={"hashtag": "#ceri"}).json()
    assert resp["total"] == 2
    assert {p["content"] for p in resp["posts"]} == {"post 1", "post 3"}


def test_sort_by_popularity_and_date(client, posts_collection):
    _insert(posts_collection, [_post(1, likes=5), _post(2, likes=1), _post(3, likes=9)])
    login(client)

    asc = client.get("/posts", params={"sortBy": "popularity", "sortDirection": "asc"}).json()
    assert [p["likes"] for p in asc["posts"]] == [1, 5, 9]

    desc = client.get("/posts", params={"sortBy": "popularity"}).json()
    assert [p["likes"] for p in desc["posts"]] == [9, 5, 1]

    oldest = client.get("/posts", params={"sortBy": "date", "sortDirection": "asc"}).json()
    assert [p["content"] for p in oldest["posts"]] == ["post 1", "post 2", "post 3"]


def test_sort_by_owner(client, posts_collection):
    _insert(posts_collection, [_post(1, 2), _post(2, 1), _post(3, 2)])
    login(client)

    resp = client.get("/posts", params={"sortBy": "owner", "sortDirection": "asc"}).json()
    # owner ascending, then newest first within an owner
    assert [p["content"] for p in resp["posts"]] == ["post 2", "post 3", "post 1"]


def test_posts_are_enriched_with_account_data(client, posts_collection):
    comment_id = ObjectId()
    _insert(posts_collection, [
        _post(1, 2, comments=[
            {"id": comment_id, "commentedBy": 1, "text": "Bravo", "date": "2025-03-01", "hour": "11:00:00"},
            {"id": ObjectId(), "commentedBy": 99, "text": "???", "date": "2025-03-01", "hour": "11:05:00"},
        ]),
        _post(2, 42),
    ])
    login(client)

    posts = {p["content"]: p for p in client.get("/posts").json()["posts"]}

    marie = posts["post 1"]
    assert marie["author"] == "Marie Curie"
    assert marie["authorAvatar"] == "avatars/marie.png"
    assert marie["date"] == "2025-03-01T10:00:00"
    assert marie["comments"][0]["id"] == str(comment_id)
    assert marie["comments"][0]["commentedByName"] == "Jean Dupont"
    assert marie["comments"][0]["commentedByAvatar"] == "avatars/jean.png"
    assert marie["comments"][1]["commentedByName"] == "Utilisateur inconnu"

    assert posts["post 2"]["author"] == "Utilisateur inconnu"
    assert posts["post 2"]["authorAvatar"] == ""


def test_shared_post_carries_original_author_name(client, posts_collection):
    (original_id,) = _insert(posts_collection, [_post(1, 2)])
    _insert(posts_collection, [
        _post(2, 1, isShared=True, originalPost=str(original_id), sharedFrom=2),
    ])
    login(client)

    posts = {p["content"]: p for p in client.get("/posts").json()["posts"]}
    shared = posts["post 2"]
    assert shared["isShared"] is True
    assert shared["originalPost"] == str(original_id)
    assert shared["sharedFromName"] == "Marie Curie"
    assert posts["post 1"]["sharedFromName"] is None


class UnreachableDatabase:
    """Database whose every collection times out on server selection"""

    def __getitem__(self, name):
        return self

    async def count_documents(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")


def test_feed_when_mongo_cannot_be_reached(client):
    login(client)

    async def unreachable():
        raise StorageUnavailable("Erreur de connexion à la base de données MongoDB")

    app.dependency_overrides[get_database] = unreachable
    resp = client.get("/posts")
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Erreur de connexion à la base de données MongoDB",
    }


def test_feed_when_mongo_drops_mid_request(client):
    login(client)

    async def dropped():
        return UnreachableDatabase()

    app.dependency_overrides[get_database] = dropped
    resp = client.get("/posts")
    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert resp.json()["message"] == "Erreur de connexion à la base de données MongoDB"
