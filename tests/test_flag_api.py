"""Tests for question flag API endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from examiner.model import Assessment, ExamSession, Question, QuestionID, User

Headers = t.Callable[[User], dict[str, str]]


class TestFlags(object):
    """Tests for /api/sessions/{session_id}/flags."""

    def test_flag_lifecycle(
        self,
        client: TestClient,
        participant: User,
        auth_headers: Headers,
        questions_of: t.Callable[[Assessment], tuple[Question, ...]],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, assessment = session_factory()
        select, _, coding = questions_of(assessment)
        headers = auth_headers(participant)
        base = f"/api/sessions/{es.session_id}/flags"

        for question in (select, coding):
            response = client.put(f"{base}/{question.question_id}", json={"flagged": True}, headers=headers)
            assert response.status_code == 200
            assert response.json()["flagged"] is True

        status = client.get(f"{base}/{select.question_id}", headers=headers)
        assert status.json() == {"question_id": str(select.question_id), "flagged": True, "update_time": None}

        listing = client.get(base, headers=headers)
        assert {f["question_id"] for f in listing.json()["flags"]} == {str(select.question_id), str(coding.question_id)}

        summary = client.get(f"{base}/summary", headers=headers)
        assert summary.json() == {"total": 2, "by_kind": {"single_select": 1, "coding": 1}}

        cleared = client.delete(base, headers=headers)
        assert cleared.json() == {"cleared": 2}
        assert client.get(base, headers=headers).json() == {"flags": []}

    def test_unknown_question(
        self,
        client: TestClient,
        participant: User,
        auth_headers: Headers,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()

        response = client.put(
            f"/api/sessions/{es.session_id}/flags/{QuestionID()}",
            json={"flagged": True},
            headers=auth_headers(participant),
        )

        assert response.status_code == 404
        assert response.json()["code"] == "QUESTION_NOT_FOUND"

    def test_other_participant(
        self,
        client: TestClient,
        auth_headers: Headers,
        user_factory: t.Callable[..., User],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()

        response = client.get(f"/api/sessions/{es.session_id}/flags", headers=auth_headers(user_factory()))

        assert response.status_code == 404
