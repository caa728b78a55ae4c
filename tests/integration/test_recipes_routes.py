"""Integration tests for /api/recipes."""

import pytest

RECIPE = {
    "title": "Tomato soup",
    "summary": "A quick weeknight soup",
    "content": "Simmer the tomatoes for twenty minutes.",
    "ingredients": [{"name": "tomato", "quantity": 4}],
    "steps": ["Chop", "Simmer"],
    "time": 25,
    "tags": "soup,vegan",
}


@pytest.fixture
def author(register):
    return register("alice")


@pytest.fixture
def soup(client, author):
    _, headers = author
    resp = client.post("/api/recipes", json=RECIPE, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCrud:
    def test_create(self, soup, author):
        assert soup["created_by"] == author[0]["id"]
        assert soup["time"] == {"prep": 0.0, "cook": 25.0, "total": 25.0}
        assert soup["tags"] == ["soup", "vegan"]
        assert soup["rating"] == {"count": 0, "avg": 0.0}
        assert "likes" not in soup

    def test_create_requires_auth(self, client):
        assert client.post("/api/recipes", json=RECIPE).status_code == 401

    def test_create_invalid(self, client, author):
        _, headers = author
        resp = client.post("/api/recipes", json={**RECIPE, "steps": []}, headers=headers)
        assert resp.status_code == 400

    def test_get_public(self, client, soup):
        resp = client.get(f"/api/recipes/{soup['id']}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Tomato soup"

    def test_update_by_owner_only(self, client, soup, author, register):
        _, stranger = register("bob")
        forbidden = client.put(
            f"/api/recipes/{soup['id']}", json={"title": "Stolen soup"}, headers=stranger
        )
        assert forbidden.status_code == 403

        resp = client.put(
            f"/api/recipes/{soup['id']}", json={"difficulty": "medium"}, headers=author[1]
        )
        assert resp.json()["difficulty"] == "medium"
        assert resp.json()["title"] == "Tomato soup"

    def test_delete(self, client, soup, author):
        resp = client.delete(f"/api/recipes/{soup['id']}", headers=author[1])
        assert resp.json()["message"] == "Recipe deleted"
        assert client.get(f"/api/recipes/{soup['id']}").status_code == 404

    def test_bad_id(self, client):
        resp = client.get("/api/recipes/xyz")
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_id"


class TestListing:
    def test_search_and_filters(self, client, soup, author):
        client.post(
            "/api/recipes",
            json={**RECIPE, "title": "Slow beef stew", "time": 180, "tags": ["stew"]},
            headers=author[1],
        )

        body = client.get("/api/recipes", params={"q": "stew"}).json()
        assert [r["title"] for r in body["items"]] == ["Slow beef stew"]

        body = client.get("/api/recipes", params=[("tags", "vegan,stew")]).json()
        assert body["pagination"]["total"] == 2

        body = client.get("/api/recipes", params={"max_total_time": 60}).json()
        assert [r["id"] for r in body["items"]] == [soup["id"]]

    def test_bad_sort(self, client):
        resp = client.get("/api/recipes", params={"sort": "random"})
        assert resp.status_code == 400
        assert resp.json()["field"] == "sort"

    def test_by_user(self, client, soup, author):
        body = client.get(f"/api/recipes/by-user/{author[0]['id']}").json()
        assert body["pagination"]["total"] == 1


class TestInteractions:
    def test_like_toggle(self, client, soup, register):
        _, headers = register("bob")
        url = f"/api/recipes/{soup['id']}/like"
        assert client.post(url, headers=headers).json() == {"liked": True, "likes": 1}
        assert client.post(url, headers=headers).json() == {"liked": False, "likes": 0}

    def test_rate_and_unrate(self, client, soup, register):
        _, headers = register("bob")
        url = f"/api/recipes/{soup['id']}/rate"

        client.post(url, json={"stars": 2}, headers=headers)
        body = client.post(url, json={"value": 4, "content": "Better"}, headers=headers).json()

        assert body["stats"] == {"count": 1, "avg": 4.0}
        assert body["mine"] == {"stars": 4, "comment": "Better"}

        body = client.delete(f"/api/recipes/{soup['id']}/rating", headers=headers).json()
        assert body["ratings"] == []
        assert body["mine"] is None

    def test_rate_out_of_range(self, client, soup, register):
        _, headers = register("bob")
        resp = client.post(f"/api/recipes/{soup['id']}/rate", json={"stars": 9}, headers=headers)
        assert resp.status_code == 400

    def test_comments(self, client, soup, author, register, admin):
        bob, headers = register("bob")
        resp = client.post(
            f"/api/recipes/{soup['id']}/comments", json={"content": "Yum"}, headers=headers
        )
        assert resp.status_code == 201
        comment = resp.json()["comments"][0]
        assert comment["user"] == bob["id"]

        url = f"/api/recipes/{soup['id']}/comments/{comment['id']}"
        _, carol = register("carol")
        assert client.delete(url, headers=carol).status_code == 403

        # Moderation is admin-only, even for the recipe author
        assert client.delete(f"{url}/admin", headers=author[1]).status_code == 403
        resp = client.delete(f"{url}/admin", headers=admin[1])
        assert resp.status_code == 200
        assert resp.json()["comments"] == []


class TestModeration:
    def test_hide_requires_admin(self, client, soup, author):
        resp = client.patch(f"/api/recipes/{soup['id']}/hide", headers=author[1])
        assert resp.status_code == 403

    def test_hide_and_unhide(self, client, soup, admin):
        _, headers = admin

        hidden = client.patch(f"/api/recipes/{soup['id']}/hide", headers=headers)
        assert hidden.json()["is_hidden"] is True
        assert client.get(f"/api/recipes/{soup['id']}").status_code == 404
        assert client.get("/api/recipes").json()["pagination"]["total"] == 0

        client.patch(f"/api/recipes/{soup['id']}/unhide", headers=headers)
        assert client.get(f"/api/recipes/{soup['id']}").status_code == 200

    def test_admin_removes_rating(self, client, soup, register, admin):
        bob, headers = register("bob")
        client.post(f"/api/recipes/{soup['id']}/rate", json={"stars": 1}, headers=headers)

        resp = client.delete(f"/api/recipes/{soup['id']}/rating/{bob['id']}", headers=admin[1])

        assert resp.status_code == 200
        assert resp.json()["stats"]["count"] == 0
