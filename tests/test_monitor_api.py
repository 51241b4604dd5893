"""Tests for instructor monitoring API endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from examiner.model import Assessment, AssessmentID, ExamSession, User, UserRole

if t.TYPE_CHECKING:
    from conftest import Clock

Headers = t.Callable[[User], dict[str, str]]


class TestSweep(object):
    """Tests for POST /api/assessments/{assessment_id}/sweep."""

    def test_sweep(
        self,
        client: TestClient,
        clock: Clock,
        instructor: User,
        auth_headers: Headers,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        _, assessment = session_factory(owner=instructor)
        clock.advance(minutes=90)

        response = client.post(f"/api/assessments/{assessment.assessment_id}/sweep", headers=auth_headers(instructor))

        assert response.status_code == 200
        assert response.json() == {"assessment_id": str(assessment.assessment_id), "completed": 1}

    def test_not_owner(
        self,
        client: TestClient,
        auth_headers: Headers,
        user_factory: t.Callable[..., User],
        assessment_factory: t.Callable[..., Assessment],
    ) -> None:
        assessment = assessment_factory()
        stranger = user_factory(role=UserRole.Instructor)

        response = client.post(f"/api/assessments/{assessment.assessment_id}/sweep", headers=auth_headers(stranger))

        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_unknown_assessment(self, client: TestClient, instructor: User, auth_headers: Headers) -> None:
        response = client.post(f"/api/assessments/{AssessmentID()}/sweep", headers=auth_headers(instructor))

        assert response.status_code == 404


class TestExpiring(object):
    """Tests for GET /api/assessments/{assessment_id}/expiring."""

    def test_expiring(
        self,
        client: TestClient,
        clock: Clock,
        instructor: User,
        auth_headers: Headers,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, assessment = session_factory(owner=instructor)
        clock.advance(minutes=52)

        response = client.get(
            f"/api/assessments/{assessment.assessment_id}/expiring",
            params={"within_minutes": 10},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 200
        assert response.json() == [
            {"session_id": str(es.session_id), "participant_id": str(es.participant_id), "remaining_seconds": 480}
        ]

    def test_window_must_be_positive(
        self,
        client: TestClient,
        instructor: User,
        auth_headers: Headers,
        assessment_factory: t.Callable[..., Assessment],
    ) -> None:
        assessment = assessment_factory(owner=instructor)

        response = client.get(
            f"/api/assessments/{assessment.assessment_id}/expiring",
            params={"within_minutes": 0},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 422


class TestTerminate(object):
    """Tests for POST /api/sessions/{session_id}/terminate."""

    def test_terminate(
        self,
        client: TestClient,
        instructor: User,
        auth_headers: Headers,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)

        response = client.post(
            f"/api/sessions/{es.session_id}/terminate",
            json={"reason": "suspected collusion"},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "terminated"

    def test_completed_session(
        self,
        client: TestClient,
        instructor: User,
        participant: User,
        auth_headers: Headers,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)
        client.post(f"/api/sessions/{es.session_id}/complete", headers=auth_headers(participant))

        response = client.post(f"/api/sessions/{es.session_id}/terminate", json={}, headers=auth_headers(instructor))

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_FINISHED"
