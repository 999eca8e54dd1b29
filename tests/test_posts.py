# tests/test_posts.py
"""Pruebas del flujo de posts y comentarios."""

import pytest

import blog_service.errors as errors


@pytest.fixture
def created_post(client, auth_headers) -> dict:
    """Crea un post con el usuario de prueba y devuelve su JSON."""
    r = client.post("/posts", json={"title": "Primer post", "content": "Hola mundo"}, headers=auth_headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_post_requires_token(client):
    r = client.post("/posts", json={"title": "t", "content": "c"})
    assert r.status_code == 401


def test_create_post_rejects_bad_token(client):
    r = client.post("/posts", json={"title": "t", "content": "c"}, headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_create_post(created_post, test_user_token):
    assert created_post["title"] == "Primer post"
    assert created_post["content"] == "Hola mundo"
    assert created_post["author_id"] == test_user_token["user_id"]
    assert created_post["comment_ids"] == []
    assert created_post["created_at"]


def test_create_post_validation(client, auth_headers):
    assert client.post("/posts", json={"title": "", "content": "c"}, headers=auth_headers).status_code == 400
    assert client.post("/posts", json={"title": "  ", "content": "c"}, headers=auth_headers).status_code == 400
    assert client.post("/posts", json={"title": "t"}, headers=auth_headers).status_code == 400


def test_get_and_list_posts(client, created_post):
    r = client.get(f"/posts/{created_post['id']}")
    assert r.status_code == 200
    assert r.json() == created_post

    listed = client.get("/posts").json()
    assert [p["id"] for p in listed] == [created_post["id"]]

    assert client.get("/posts/9999").status_code == 404


def test_comment_is_appended_to_post(client, auth_headers, created_post, test_user_token):
    post_id = created_post["id"]
    r = client.post(f"/posts/{post_id}/comments", json={"content": "Buen post"}, headers=auth_headers)
    assert r.status_code == 201
    comment = r.json()
    assert comment["post_id"] == post_id
    assert comment["author_id"] == test_user_token["user_id"]

    post = client.get(f"/posts/{post_id}").json()
    assert post["comment_ids"] == [comment["id"]]


def test_comments_keep_creation_order(client, auth_headers, created_post):
    post_id = created_post["id"]
    ids = [
        client.post(f"/posts/{post_id}/comments", json={"content": f"comentario {i}"}, headers=auth_headers).json()["id"]
        for i in range(3)
    ]
    assert client.get(f"/posts/{post_id}").json()["comment_ids"] == ids

    listed = client.get(f"/posts/{post_id}/comments").json()
    assert [c["id"] for c in listed] == ids
    assert [c["content"] for c in listed] == ["comentario 0", "comentario 1", "comentario 2"]


def test_comment_requires_token(client, created_post):
    r = client.post(f"/posts/{created_post['id']}/comments", json={"content": "x"})
    assert r.status_code == 401


def test_comment_on_missing_post(client, auth_headers):
    r = client.post("/posts/9999/comments", json={"content": "x"}, headers=auth_headers)
    assert r.status_code == 404
    assert r.text == "Post not found"
    assert client.get("/posts/9999/comments").status_code == 404


def test_comment_rejects_empty_content(client, auth_headers, created_post):
    r = client.post(f"/posts/{created_post['id']}/comments", json={"content": "   "}, headers=auth_headers)
    assert r.status_code == 400
    assert client.get(f"/posts/{created_post['id']}").json()["comment_ids"] == []


# --- ContentStore directamente ---

def test_store_rejects_missing_author(content_store):
    with pytest.raises(errors.NotFound):
        content_store.create_post(author_id=42, title="t", content="c")


def test_store_failed_comment_leaves_post_untouched(auth_service, content_store):
    author_id = auth_service.register("alice", "pw1")
    post_id = content_store.create_post(author_id, "t", "c")

    with pytest.raises(errors.NotFound):
        content_store.create_comment(author_id=999, post_id=post_id, content="x")

    assert content_store.get_post(post_id).comment_ids == []
    assert content_store.list_comments(post_id) == []


def test_store_comment_references_post(auth_service, content_store):
    author_id = auth_service.register("alice", "pw1")
    post_id = content_store.create_post(author_id, "t", "c")
    comment_id = content_store.create_comment(author_id, post_id, "hola")

    post = content_store.get_post(post_id)
    assert post.comment_ids == [comment_id]
    assert content_store.get_comment(comment_id).post_id == post_id
    assert content_store.get_post(12345) is None
    assert content_store.get_comment(12345) is None
