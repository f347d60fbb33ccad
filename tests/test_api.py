"""
Tests for the HTTP layer.
"""

import json

import pytest
from fastapi.testclient import TestClient

from transfer_eval.advisor.request_writer import AdvisorRequestWriter
from transfer_eval.equivalency.table import get_equivalency_table
from transfer_eval.extraction.transcript_parser import TranscriptParser
from transfer_eval.ingestion.loader import DocumentLoader
from transfer_eval.main import app, get_advisor_writer, get_transcript_parser
from transfer_eval.matching.service import CourseMatcher, get_course_matcher


@pytest.fixture
def client(table):
    app.dependency_overrides[get_equivalency_table] = lambda: table
    app.dependency_overrides[get_course_matcher] = lambda: CourseMatcher(table)
    app.dependency_overrides[get_transcript_parser] = lambda: TranscriptParser(None)
    app.dependency_overrides[get_advisor_writer] = lambda: AdvisorRequestWriter(None)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMatchCourses:
    def test_local_match(self, client):
        response = client.post("/match-courses", json={
            "courses": [
                {"courseCode": "MATH& 151", "courseTitle": "Calculus I", "credits": 5, "grade": "3.7"},
                {"courseCode": "HIST& 101", "courseTitle": "Western Civ", "credits": 5, "grade": "3.0"},
                {"courseCode": "GAME 110", "courseTitle": "Game Design", "credits": 5, "grade": "A"},
            ],
            "major": "Computer Science",
        })

        assert response.status_code == 200
        body = response.json()
        assert [m["matchType"] for m in body["matches"]] == ["exact", "elective", "review"]
        assert body["matches"][0]["studentCourse"]["courseCode"] == "MATH& 151"
        assert body["summary"]["totalCreditsAttempted"] == 15
        assert body["summary"]["totalCreditsTransferred"] == 10
        assert body["summary"]["degreeApplicable"] == 10
        assert body["summary"]["unappliedCredits"] == 0
        assert body["summary"]["needsReview"] == 1

    def test_empty_courses(self, client):
        response = client.post("/match-courses", json={"courses": []})
        assert response.status_code == 200
        assert response.json()["matches"] == []
        assert response.json()["summary"]["totalCreditsAttempted"] == 0

    @pytest.mark.parametrize("payload", [{}, {"courses": "MATH& 151"}, {"courses": {"a": 1}}])
    def test_courses_must_be_a_list(self, client, payload):
        response = client.post("/match-courses", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid courses payload"}

    def test_unusable_item_is_matched_for_review(self, client):
        response = client.post("/match-courses", json={
            "courses": [{"courseTitle": "No code", "credits": 4}, {"courseCode": 101}],
        })
        assert response.status_code == 200
        assert [m["matchType"] for m in response.json()["matches"]] == ["review", "review"]

    def test_malformed_json_body(self, client):
        response = client.post(
            "/match-courses", content="{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request payload"

    def test_inference_failure_still_returns_result(self, client, table, fake_client):
        app.dependency_overrides[get_course_matcher] = lambda: CourseMatcher(
            table, fake_client("```json\nnot really json\n```")
        )
        response = client.post("/match-courses", json={
            "courses": [{"courseCode": "MATH& 151", "credits": 5}],
        })
        assert response.status_code == 200
        assert response.json()["matches"][0]["matchType"] == "exact"

    def test_inference_result(self, client, table, fake_client):
        reply = {
            "matches": [{
                "studentCourse": {"courseCode": "GAME 110", "credits": 5},
                "uwEquivalent": "ART 1XX",
                "uwTitle": "Art Elective",
                "transferCredits": 5,
                "category": "Arts",
                "matchType": "semantic",
                "reasoning": "Similar title.",
            }],
            "summary": {"totalCreditsTransferred": 5},
        }
        app.dependency_overrides[get_course_matcher] = lambda: CourseMatcher(
            table, fake_client(json.dumps(reply))
        )
        response = client.post("/match-courses", json={
            "courses": [{"courseCode": "GAME 110", "credits": 5}],
        })
        match = response.json()["matches"][0]
        assert match["matchType"] == "semantic"
        assert match["uwEquivalent"] == "ART 1XX"


class TestParseTranscript:
    def test_demo_courses_without_reasoning_service(self, client):
        response = client.post("/parse-transcript", json={"transcriptText": "MATH& 151 ..."})
        assert response.status_code == 200
        assert len(response.json()["courses"]) == 10

    @pytest.mark.parametrize("payload", [{}, {"transcriptText": ""}, {"transcriptText": 42}])
    def test_missing_text(self, client, payload):
        response = client.post("/parse-transcript", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "No transcript text provided"}

    def test_file_upload(self, client):
        response = client.post(
            "/parse-transcript-file",
            files={"file": ("transcript.pdf", b"%PDF-1.7 fake", "application/pdf")},
        )
        assert response.status_code == 200
        assert response.json()["courses"][0]["courseCode"] == "ENGL& 101"

    def test_missing_file(self, client):
        response = client.post("/parse-transcript-file")
        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_oversized_file_read_is_bounded(self, client, monkeypatch):
        loader = DocumentLoader(max_file_size_bytes=16)
        app.dependency_overrides[get_transcript_parser] = lambda: TranscriptParser(None, loader=loader)
        seen = []
        load = loader.load_from_bytes

        def recording(content, *args, **kwargs):
            seen.append(len(content))
            return load(content, *args, **kwargs)

        monkeypatch.setattr(loader, "load_from_bytes", recording)
        response = client.post(
            "/parse-transcript-file",
            files={"file": ("transcript.pdf", b"%PDF-1.7" + b"0" * 4096, "application/pdf")},
        )

        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["error"]
        assert seen == [17]

    def test_unsupported_file(self, client):
        response = client.post(
            "/parse-transcript-file",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["error"]


class TestAdvisorRequest:
    def test_unconfigured_service(self, client):
        response = client.post("/generate-advisor-request", json={"matches": []})
        assert response.status_code == 503
        assert response.json()["error"] == "Failed to generate advisor request"

    def test_generates_email(self, client, fake_client):
        app.dependency_overrides[get_advisor_writer] = lambda: AdvisorRequestWriter(
            fake_client("Dear Advisor, ...")
        )
        response = client.post("/generate-advisor-request", json={
            "matches": [], "studentName": "Sam Lee", "major": "Biology",
        })
        assert response.status_code == 200
        assert response.json() == {"emailBody": "Dear Advisor, ..."}

    def test_inference_failure(self, client, fake_client):
        app.dependency_overrides[get_advisor_writer] = lambda: AdvisorRequestWriter(fake_client())
        response = client.post("/generate-advisor-request", json={"matches": []})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate advisor request"}


class TestMisc:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["equivalency_entries"] == 6

    def test_equivalency_lookup(self, client):
        response = client.get("/equivalencies", params={"codes": ["MATH& 151", "NOPE 1"]})
        assert [c["bellevueCourse"] for c in response.json()["courses"]] == ["MATH& 151"]

    def test_equivalency_lookup_without_codes(self, client):
        assert client.get("/equivalencies").json() == {"courses": []}
