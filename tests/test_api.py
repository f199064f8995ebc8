from datetime import timedelta

import pytest

from classvoice.core.config import settings

from conftest import NOW


def _create_course(client, admin_headers, code="cs101"):
    response = client.post(
        "/admin/courses",
        json={"code": code, "title": "Introduction to Programming"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_lecture(client, admin_headers, course_id, number=1, end=None):
    payload = {"course_id": course_id, "session_number": number}
    if end is not None:
        payload["scheduled_start_time"] = (end - timedelta(minutes=90)).isoformat()
        payload["scheduled_end_time"] = end.isoformat()
    response = client.post("/admin/lectures", json=payload, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "healthy"

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "healthy"


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/admin/courses"),
        ("post", "/admin/lectures"),
        ("post", "/lectures/1/end"),
        ("post", "/lectures/1/summarize"),
        ("post", "/lectures/1/delete-data"),
    ],
)
def test_admin_endpoints_require_a_token(client, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 401


def test_admin_endpoints_reject_a_bad_token(client):
    response = client.get(
        "/admin/courses", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


def test_course_code_is_upper_cased_and_unique(client, admin_headers):
    course = _create_course(client, admin_headers, code=" cs201 ")
    assert course["code"] == "CS201"
    assert course["total_sessions"] == 15

    duplicate = client.post(
        "/admin/courses",
        json={"code": "CS201", "title": "Again"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "already_exists"


def test_duplicate_session_number_maps_to_conflict(client, admin_headers):
    course = _create_course(client, admin_headers)
    _create_lecture(client, admin_headers, course["id"], number=4)

    response = client.post(
        "/admin/lectures",
        json={"course_id": course["id"], "session_number": 4},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_session_number"


def test_full_lecture_flow(client, admin_headers, clock, summarizer):
    course = _create_course(client, admin_headers)
    lecture = _create_lecture(client, admin_headers, course["id"], end=NOW + timedelta(hours=1))
    lecture_id = lecture["id"]
    assert lecture["status"] == "scheduled"
    assert lecture["course"]["code"] == "CS101"

    closed = client.post("/posts", json={"lecture_id": lecture_id, "content": "early"})
    assert closed.status_code == 403
    assert closed.json()["error"] == "window_closed"

    activated = client.post(f"/admin/lectures/{lecture_id}/activate", headers=admin_headers)
    assert activated.json()["status"] == "active"

    found = client.get("/lectures/search", params={"code": "cs101"})
    assert found.json()["id"] == lecture_id

    post = client.post(
        "/posts", json={"lecture_id": lecture_id, "content": "What is a monad?"}
    ).json()
    liked = client.post("/likes", json={"post_id": post["id"], "user_identifier": "b1"})
    assert liked.json() == {"post_id": post["id"], "liked": True}

    like_status = client.get(
        "/likes", params={"post_id": post["id"], "user_identifier": "b1"}
    )
    assert like_status.json()["liked"] is True

    clock.advance(hours=1, minutes=10)
    state = client.get(f"/lectures/{lecture_id}/status").json()
    assert state["is_open"] is True
    assert state["remaining_minutes"] == 5

    ended = client.post(f"/lectures/{lecture_id}/end", headers=admin_headers)
    assert ended.json()["status"] == "ended"

    after_end = client.post("/posts", json={"lecture_id": lecture_id, "content": "late"})
    assert after_end.status_code == 403

    summary = client.post(f"/lectures/{lecture_id}/summarize", headers=admin_headers)
    assert summary.status_code == 201, summary.text
    body = summary.json()
    assert body["summary_text"] == summarizer.text
    assert body["total_posts_count"] == 1
    assert body["total_likes_count"] == 1
    assert body["lecture"]["status"] == "summarized"
    assert body["lecture"]["course"]["code"] == "CS101"

    fetched = client.get(f"/lectures/{lecture_id}/summary")
    assert fetched.json()["id"] == body["id"]

    again = client.post(f"/lectures/{lecture_id}/summarize", headers=admin_headers)
    assert again.status_code == 409


def test_post_validation_errors(client, make_lecture):
    lecture = make_lecture(status="active")

    too_long = client.post("/posts", json={"lecture_id": lecture.id, "content": "x" * 201})
    assert too_long.status_code == 400
    assert too_long.json()["error"] == "content_too_long"

    empty = client.post("/posts", json={"lecture_id": lecture.id, "content": "   "})
    assert empty.status_code == 400
    assert empty.json()["error"] == "content_empty"

    missing = client.post("/posts", json={"lecture_id": 999, "content": "hello"})
    assert missing.status_code == 404


def test_posts_listing_sorts(client, make_lecture, make_post):
    lecture = make_lecture()
    quiet = make_post(lecture, "quiet", created_at=NOW + timedelta(minutes=1))
    popular = make_post(lecture, "popular", like_count=5)

    newest = client.get(f"/posts/{lecture.id}").json()
    assert [p["id"] for p in newest["posts"]] == [quiet.id, popular.id]

    ranked = client.get(f"/posts/{lecture.id}", params={"sort": "popular"}).json()
    assert [p["id"] for p in ranked["posts"]] == [popular.id, quiet.id]


def test_summarize_without_posts(client, admin_headers, make_lecture):
    lecture = make_lecture(status="ended")

    response = client.post(f"/lectures/{lecture.id}/summarize", headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["error"] == "no_content"


def test_summarizer_failure_maps_to_bad_gateway(
    client, admin_headers, summarizer, make_lecture, make_post
):
    lecture = make_lecture(status="ended")
    make_post(lecture)
    summarizer.error = RuntimeError("connection reset")

    response = client.post(f"/lectures/{lecture.id}/summarize", headers=admin_headers)

    assert response.status_code == 502
    assert response.json()["error"] == "upstream_error"


def test_purge_preview_and_delete(client, admin_headers, make_lecture, make_post):
    lecture = make_lecture(status="ended")
    make_post(lecture)

    preview = client.get(f"/lectures/{lecture.id}/delete-data", headers=admin_headers)
    assert preview.json()["posts_count"] == 1

    purged = client.post(f"/lectures/{lecture.id}/delete-data", headers=admin_headers)
    assert purged.json()["deleted_posts_count"] == 1
    assert purged.json()["status"] == "summarized"

    missing_summary = client.get(f"/lectures/{lecture.id}/summary")
    assert missing_summary.status_code == 404


def test_admin_soft_delete(client, admin_headers, make_lecture, make_post):
    lecture = make_lecture()
    post = make_post(lecture)

    response = client.post(f"/admin/posts/{post.id}/delete", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/posts/{lecture.id}").json()["total"] == 0


def test_cron_endpoints_accept_get_and_post(client, make_lecture):
    lecture = make_lecture(status="active", end=NOW - timedelta(minutes=5))

    first = client.get("/cron/check-lecture-end")
    second = client.post("/cron/check-lecture-end")

    assert first.status_code == 200
    assert first.json()["ended_lectures"][0]["lecture_id"] == lecture.id
    assert second.json()["processed_count"] == 0

    summarize = client.post("/cron/summarize-lectures")
    assert summarize.status_code == 200
    assert summarize.json()["processed_count"] == 0


def test_cron_secret_is_enforced_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")

    assert client.get("/cron/check-lecture-end").status_code == 401
    assert (
        client.get(
            "/cron/check-lecture-end", headers={"Authorization": "Bearer wrong"}
        ).status_code
        == 401
    )
    assert (
        client.get(
            "/cron/check-lecture-end", headers={"Authorization": "Bearer s3cret"}
        ).status_code
        == 200
    )


def test_mixed_offset_schedule_is_validated_not_crashed(client, admin_headers):
    course = _create_course(client, admin_headers)

    accepted = client.post(
        "/admin/lectures",
        json={
            "course_id": course["id"],
            "session_number": 1,
            "scheduled_start_time": "2026-04-14T10:00:00Z",
            "scheduled_end_time": "2026-04-14T11:30:00",
        },
        headers=admin_headers,
    )
    assert accepted.status_code == 201, accepted.text

    rejected = client.post(
        "/admin/lectures",
        json={
            "course_id": course["id"],
            "session_number": 2,
            "scheduled_start_time": "2026-04-14T10:00:00Z",
            "scheduled_end_time": "2026-04-14T09:30:00",
        },
        headers=admin_headers,
    )
    assert rejected.status_code == 422
    assert rejected.json()["error"] == "validation_error"
