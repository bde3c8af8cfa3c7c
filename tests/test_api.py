from datetime import date

from models import db, Movie

DUNE = {
    "title": "Dune",
    "description": "Desert planet saga",
    "genre": "Sci-Fi",
    "releaseYear": 2021,
    "rating": 8.5,
}


def test_movies_require_auth(client):
    assert client.get("/api/movies").status_code == 401
    assert client.get("/api/movies/user/my-movies").status_code == 401
    assert client.get("/api/movies/abc").status_code == 401
    assert client.post("/api/movies", json=DUNE).status_code == 401
    assert client.put("/api/movies/abc", json={"rating": 1}).status_code == 401
    assert client.delete("/api/movies/abc").status_code == 401


def test_create_and_fetch_roundtrip(client, signup):
    headers = signup("alice")
    r = client.post("/api/movies", headers=headers, json=DUNE)
    assert r.status_code == 201
    assert r.json["message"] == "Movie added successfully"
    created = r.json["movie"]
    assert created["uploadedBy"]["username"] == "alice"

    r = client.get(f"/api/movies/{created['_id']}", headers=headers)
    assert r.status_code == 200
    movie = r.json
    for key, value in DUNE.items():
        assert movie[key] == value
    assert movie["_id"] == created["_id"]
    assert movie["uploadedBy"]["email"] == "alice@example.com"
    assert movie["uploadedAt"].endswith("Z")
    assert movie["createdAt"] and movie["updatedAt"]


def test_create_trims_and_defaults(client, signup):
    headers = signup()
    r = client.post("/api/movies", headers=headers, json={
        "title": "  Arrival  ", "description": " Linguist meets visitors ", "genre": "", "posterUrl": None,
    })
    assert r.status_code == 201
    movie = r.json["movie"]
    assert movie["title"] == "Arrival"
    assert movie["description"] == "Linguist meets visitors"
    assert movie["genre"] is None
    assert movie["posterUrl"] is None
    assert movie["releaseYear"] is None
    assert movie["rating"] == 0


def test_create_reports_every_violated_field(client, signup):
    headers = signup()
    r = client.post("/api/movies", headers=headers, json={
        "title": "x" * 201,
        "genre": "g" * 51,
        "releaseYear": 1800,
        "rating": 11,
    })
    assert r.status_code == 400
    assert r.json["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in r.json["errors"]}
    assert fields == {"title", "description", "genre", "releaseYear", "rating"}


def test_create_release_year_upper_bound(client, signup):
    headers = signup()
    top = date.today().year + 5
    r = client.post("/api/movies", headers=headers, json={"title": "Soon", "description": "d", "releaseYear": top})
    assert r.status_code == 201
    r = client.post("/api/movies", headers=headers, json={"title": "Later", "description": "d", "releaseYear": top + 1})
    assert r.status_code == 400


def test_create_rejects_unknown_and_owner_fields(client, signup):
    headers = signup()
    r = client.post("/api/movies", headers=headers, json={**DUNE, "uploadedBy": "someone-else"})
    assert r.status_code == 400
    assert r.json["errors"][0]["field"] == "uploadedBy"


def test_create_rejects_wrong_types(client, signup):
    headers = signup()
    r = client.post("/api/movies", headers=headers, json={"title": 5, "description": "d", "rating": True})
    assert r.status_code == 400
    assert {e["field"] for e in r.json["errors"]} == {"title", "rating"}


def test_create_requires_json_object(client, signup):
    headers = signup()
    r = client.post("/api/movies", headers=headers, data="not json")
    assert r.status_code == 400
    assert r.json["message"] == "Invalid or missing JSON body"


def test_duplicate_title_is_per_owner(client, signup):
    alice, bob = signup("alice"), signup("bob")
    assert client.post("/api/movies", headers=alice, json=DUNE).status_code == 201

    r = client.post("/api/movies", headers=alice, json={**DUNE, "title": " Dune "})
    assert r.status_code == 400
    assert r.json["code"] == "DUPLICATE"
    assert r.json["message"] == "You have already added a movie with this title"

    r = client.post("/api/movies", headers=bob, json=DUNE)
    assert r.status_code == 201


def test_get_missing_or_malformed_id_is_404(client, signup):
    headers = signup()
    assert client.get("/api/movies/0123456789abcdef0123456789abcdef", headers=headers).status_code == 404
    r = client.get("/api/movies/not-an-id!", headers=headers)
    assert r.status_code == 404
    assert r.json["message"] == "Movie not found"


def test_any_user_can_read_any_movie(client, signup, add_movie):
    movie = add_movie(signup("alice"), "Dune")
    r = client.get(f"/api/movies/{movie['_id']}", headers=signup("bob"))
    assert r.status_code == 200
    assert r.json["title"] == "Dune"


def test_partial_update_leaves_other_fields(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json=DUNE).json["movie"]

    r = client.put(f"/api/movies/{movie['_id']}", headers=headers, json={"rating": 9.0})
    assert r.status_code == 200
    assert r.json["message"] == "Movie updated successfully"
    updated = r.json["movie"]
    assert updated["rating"] == 9.0
    assert updated["title"] == "Dune"
    assert updated["description"] == "Desert planet saga"
    assert updated["genre"] == "Sci-Fi"
    assert updated["releaseYear"] == 2021
    assert updated["uploadedAt"] == movie["uploadedAt"]


def test_update_explicit_empty_and_null_overwrite(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json={**DUNE, "posterUrl": "http://img/x.jpg"}).json["movie"]

    r = client.put(f"/api/movies/{movie['_id']}", headers=headers, json={"genre": "", "posterUrl": None, "releaseYear": None})
    assert r.status_code == 200
    updated = r.json["movie"]
    assert updated["genre"] == ""
    assert updated["posterUrl"] is None
    assert updated["releaseYear"] is None
    assert updated["rating"] == 8.5


def test_update_revalidates_supplied_fields(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json=DUNE).json["movie"]
    r = client.put(f"/api/movies/{movie['_id']}", headers=headers, json={"title": "   ", "rating": -1})
    assert r.status_code == 400
    assert {e["field"] for e in r.json["errors"]} == {"title", "rating"}

    r = client.get(f"/api/movies/{movie['_id']}", headers=headers)
    assert r.json["title"] == "Dune"


def test_update_cannot_change_owner(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json=DUNE).json["movie"]
    r = client.put(f"/api/movies/{movie['_id']}", headers=headers, json={"uploadedBy": "x", "uploadedAt": "2000-01-01"})
    assert r.status_code == 400
    assert {e["field"] for e in r.json["errors"]} == {"uploadedBy", "uploadedAt"}


def test_patch_is_an_alias_for_partial_put(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json=DUNE).json["movie"]
    r = client.patch(f"/api/movies/{movie['_id']}", headers=headers, json={"genre": "Epic"})
    assert r.status_code == 200
    assert r.json["movie"]["genre"] == "Epic"


def test_update_does_not_recheck_duplicate_titles(client, signup, add_movie):
    headers = signup()
    add_movie(headers, "Dune")
    other = add_movie(headers, "Arrival")
    r = client.put(f"/api/movies/{other['_id']}", headers=headers, json={"title": "Dune"})
    assert r.status_code == 200


def test_update_missing_movie_is_404(client, signup):
    r = client.put("/api/movies/missing", headers=signup(), json={"rating": 1})
    assert r.status_code == 404


def test_non_owner_cannot_update_or_delete(client, signup, app):
    alice, bob = signup("alice"), signup("bob")
    movie = client.post("/api/movies", headers=alice, json=DUNE).json["movie"]

    r = client.put(f"/api/movies/{movie['_id']}", headers=bob, json={"rating": 1})
    assert r.status_code == 403
    assert r.json["message"] == "Not authorized to update this movie"

    r = client.delete(f"/api/movies/{movie['_id']}", headers=bob)
    assert r.status_code == 403
    assert r.json["message"] == "Not authorized to delete this movie"

    # record unchanged
    after = client.get(f"/api/movies/{movie['_id']}", headers=alice).json
    assert after["rating"] == 8.5
    assert after["updatedAt"] == movie["updatedAt"]
    with app.app_context():
        assert db.session.get(Movie, movie["_id"]) is not None


def test_owner_deletes_permanently(client, signup):
    headers = signup()
    movie = client.post("/api/movies", headers=headers, json=DUNE).json["movie"]

    r = client.delete(f"/api/movies/{movie['_id']}", headers=headers)
    assert r.status_code == 200
    assert r.json == {"message": "Movie deleted successfully"}

    assert client.get(f"/api/movies/{movie['_id']}", headers=headers).status_code == 404
    assert client.delete(f"/api/movies/{movie['_id']}", headers=headers).status_code == 404


def test_store_failure_is_a_generic_500(client, signup, monkeypatch):
    from sqlalchemy.exc import OperationalError

    headers = signup()

    def broken_commit():
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db.session, "commit", broken_commit)
    r = client.post("/api/movies", headers=headers, json=DUNE)
    assert r.status_code == 500
    assert r.json["code"] == "INTERNAL_SERVER_ERROR"
    assert "disk" not in r.get_data(as_text=True)


def test_poster_url_is_not_length_capped(client, signup):
    headers = signup()
    poster = "https://img.example.com/" + "p" * 5000
    r = client.post("/api/movies", headers=headers, json={**DUNE, "posterUrl": poster})
    assert r.status_code == 201
    movie = r.json["movie"]
    assert movie["posterUrl"] == poster

    longer = poster + "q" * 3000
    r = client.put(f"/api/movies/{movie['_id']}", headers=headers, json={"posterUrl": longer})
    assert r.status_code == 200
    assert r.json["movie"]["posterUrl"] == longer
