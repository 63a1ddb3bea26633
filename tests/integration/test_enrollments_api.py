# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for enrollment endpoints."""

from fastapi.testclient import TestClient


def _payload(world, student: str = "student", roll_number: str | None = "1") -> dict:
    return {
        "studentId": world.user_id(student),
        "sessionId": world.session_id,
        "classId": world.class_id,
        "sectionId": world.section_id,
        "rollNumber": roll_number,
    }


class TestEnrollmentsAPI:
    """Tests for enrollment endpoints."""

    def test_enroll_student(self, client: TestClient, auth, world) -> None:
        """Test a student is enrolled."""
        response = client.post(
            "/api/v1/DPS001/enrollments",
            json=_payload(world),
            headers=auth("admin"),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["rollNumber"] == "1"
        assert data["status"] == "active"
        assert data["student"]["fullName"] == "Chetan Kumar"
        assert data["class"]["name"] == "Class 1"
        assert data["section"]["name"] == "A"

    def test_duplicate_enrollment(self, client: TestClient, auth, world) -> None:
        """Test a student is enrolled once per session."""
        client.post("/api/v1/DPS001/enrollments", json=_payload(world), headers=auth("admin"))

        response = client.post(
            "/api/v1/DPS001/enrollments",
            json=_payload(world, roll_number="2"),
            headers=auth("admin"),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_enrollment"

    def test_missing_fields(self, client: TestClient, auth) -> None:
        """Test schema violations are reported field by field."""
        response = client.post(
            "/api/v1/DPS001/enrollments",
            json={"studentId": 1},
            headers=auth("admin"),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        fields = {error["field"] for error in body["data"]["errors"]}
        assert {"sessionId", "classId", "sectionId"} <= fields

    def test_missing_entities(self, client: TestClient, auth, world) -> None:
        """Test unknown references are listed."""
        payload = _payload(world)
        payload["sectionId"] = 9999

        response = client.post("/api/v1/DPS001/enrollments", json=payload, headers=auth("admin"))

        assert response.status_code == 404
        assert response.json()["data"]["missing"] == ["section"]

    def test_bulk_enroll_with_duplicate_roll(self, client: TestClient, auth, world) -> None:
        """Test the whole batch is rejected."""
        response = client.post(
            "/api/v1/DPS001/enrollments/bulk",
            json={
                "enrollments": [
                    _payload(world, "student", "1"),
                    _payload(world, "teacher", "1"),
                ]
            },
            headers=auth("admin"),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "roll_number_taken"
        assert body["data"]["item"] == 2

        roster = client.get(
            f"/api/v1/sections/{world.section_id}/students",
            headers=auth("admin"),
        ).json()["data"]
        assert roster == []

    def test_update_and_roster(self, client: TestClient, auth, world) -> None:
        """Test roll number change shows on the roster."""
        enrollment = client.post(
            "/api/v1/DPS001/enrollments",
            json=_payload(world),
            headers=auth("admin"),
        ).json()["data"]

        updated = client.put(
            f"/api/v1/enrollments/{enrollment['id']}",
            json={"rollNumber": "12", "status": "transferred"},
            headers=auth("admin"),
        )
        roster = client.get(
            f"/api/v1/sections/{world.section_id}/students?sessionId={world.session_id}",
            headers=auth("teacher"),
        )

        assert updated.status_code == 200
        assert updated.json()["data"]["status"] == "transferred"
        assert roster.status_code == 200
        assert [e["rollNumber"] for e in roster.json()["data"]] == ["12"]

    def test_student_cannot_read_roster(self, client: TestClient, auth, world) -> None:
        """Test rosters are for teachers and admins."""
        response = client.get(
            f"/api/v1/sections/{world.section_id}/students",
            headers=auth("student"),
        )

        assert response.status_code == 403

    def test_roster_of_other_school(self, client: TestClient, auth, world) -> None:
        """Test rosters of another school are forbidden."""
        response = client.get(
            f"/api/v1/sections/{world.other_section_id}/students",
            headers=auth("teacher"),
        )

        assert response.status_code == 403

    def test_enroll_in_other_school(self, client: TestClient, auth, world) -> None:
        """Test admins cannot enroll into another school."""
        response = client.post(
            "/api/v1/KVS002/enrollments",
            json=_payload(world),
            headers=auth("admin"),
        )

        assert response.status_code == 403
