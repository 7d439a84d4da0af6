from caprep.domain.entities import Question
from caprep.presentation.routers.v1 import questions as questions_router

QUESTION = {
    "subject": "Law",
    "paperType": "MTP",
    "year": "2024",
    "month": "May",
    "examStage": "Foundation",
    "questionNumber": "1",
    "questionText": "What is a contract?",
}


def _seed_question(uow, **kw):
    fields = dict(
        id="q1",
        subject="Law",
        paper_type="MTP",
        year="2024",
        month="May",
        exam_stage="Foundation",
        question_number="1",
    )
    fields.update(kw)
    question = Question(**fields)
    uow.questions.by_id[question.id] = question
    return question


def test_second_get_is_served_from_cache(client, uow, seeded_user, auth_headers):
    _seed_question(uow)
    headers = auth_headers(seeded_user)

    first = client.get("/v1/questions", headers=headers)
    assert first.status_code == 200
    assert first.headers["x-cache"] == "MISS"
    assert first.json()["count"] == 1

    # a change behind the cache's back is not visible until invalidation
    _seed_question(uow, id="q2")
    second = client.get("/v1/questions", headers=headers)
    assert second.headers["x-cache"] == "HIT"
    assert second.json() == first.json()


def test_write_invalidates_listing(
    client, uow, seeded_user, seeded_admin, auth_headers
):
    user_headers = auth_headers(seeded_user)
    admin_headers = auth_headers(seeded_admin)

    assert client.get("/v1/questions", headers=user_headers).json()["count"] == 0
    assert client.get("/v1/questions/count").json()["count"] == 0

    created = client.post("/v1/questions", json=QUESTION, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["paperType"] == "MTP"

    after = client.get("/v1/questions", headers=user_headers)
    assert after.headers["x-cache"] == "MISS"
    assert after.json()["count"] == 1
    assert client.get("/v1/questions/count").json()["count"] == 1


def test_skip_cache_header_runs_the_handler(
    client, uow, seeded_user, auth_headers, monkeypatch
):
    calls = []
    original = questions_router.list_questions

    async def counting(*args, **kwargs):
        calls.append(1)
        return await original(*args, **kwargs)

    monkeypatch.setattr(questions_router, "list_questions", counting)
    headers = auth_headers(seeded_user)

    client.get("/v1/questions", headers=headers)
    client.get("/v1/questions", headers=headers)
    assert len(calls) == 1

    r = client.get("/v1/questions", headers={**headers, "x-skip-cache": "true"})
    assert "x-cache" not in r.headers
    assert len(calls) == 2


def test_cache_is_partitioned_by_user(
    client, uow, seeded_user, seeded_admin, auth_headers
):
    q = _seed_question(uow)
    seeded_user.bookmarked_question_ids.append(q.id)

    mine = client.get("/v1/questions?bookmarked=true", headers=auth_headers(seeded_user))
    theirs = client.get("/v1/questions?bookmarked=true", headers=auth_headers(seeded_admin))

    assert mine.json()["count"] == 1
    assert theirs.headers["x-cache"] == "MISS"
    assert theirs.json()["count"] == 0


def test_bookmark_invalidates_listing(client, uow, seeded_user, auth_headers):
    q = _seed_question(uow)
    headers = auth_headers(seeded_user)

    assert client.get("/v1/questions?bookmarked=true", headers=headers).json()["count"] == 0
    assert client.post(f"/v1/questions/{q.id}/bookmark", headers=headers).status_code == 200
    assert client.get("/v1/questions?bookmarked=true", headers=headers).json()["count"] == 1


def test_errors_are_not_cached(client, state):
    r = client.get("/v1/questions")
    assert r.status_code == 401
    assert len(state.response_cache) == 0


def test_guest_entries_for_public_routes(client, state):
    client.get("/v1/questions/count")
    assert state.response_cache.lookup("guest", "/v1/questions/count") is not None
    assert client.get("/v1/questions/count").headers["x-cache"] == "HIT"


def test_broken_cache_store_does_not_fail_the_request(client, state, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("cache down")

    monkeypatch.setattr(state.response_cache, "store", boom)

    r = client.get("/v1/questions/count")
    assert r.status_code == 200
    assert r.json()["count"] == 0
