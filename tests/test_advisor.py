"""
Tests for advisor email drafting.
"""

import pytest

from transfer_eval.advisor.request_writer import AdvisorRequestWriter, courses_needing_review
from transfer_eval.errors import MalformedResponseError, ServiceUnavailableError, TransportError
from transfer_eval.matching.local_matcher import match_locally


class TestCoursesNeedingReview:
    def test_selects_review_and_elective(self, table, courses):
        matches = match_locally(courses, table)
        selected = courses_needing_review(matches)
        assert [m["studentCourse"]["courseCode"] for m in selected] == ["HIST& 101", "GAME 110"]

    def test_accepts_wire_dicts(self, table, courses):
        wire = [m.model_dump(by_alias=True) for m in match_locally(courses, table)]
        assert len(courses_needing_review(wire)) == 2

    def test_non_list_payload(self):
        assert courses_needing_review(None) == []
        assert courses_needing_review({"matchType": "review"}) == []

    def test_invalid_entries_skipped(self):
        assert courses_needing_review([{"matchType": "review"}]) == []


class TestAdvisorRequestWriter:
    def test_generates_email(self, fake_client, table, courses):
        client = fake_client("  Dear Advisor,\n\nPlease review...  ")
        body = AdvisorRequestWriter(client).generate(match_locally(courses, table), "Sam Lee", "Informatics")

        assert body == "Dear Advisor,\n\nPlease review..."
        assert "Student Name: Sam Lee" in client.prompts[0]
        assert "Intended Major: Informatics" in client.prompts[0]
        assert "GAME 110" in client.prompts[0]
        assert "MATH& 151" not in client.prompts[0]

    def test_defaults(self, fake_client):
        client = fake_client("Hello")
        AdvisorRequestWriter(client).generate([])
        assert "Student Name: Student" in client.prompts[0]
        assert "Intended Major: Undeclared" in client.prompts[0]

    def test_requires_client(self):
        with pytest.raises(ServiceUnavailableError):
            AdvisorRequestWriter(None).generate([])

    def test_empty_reply(self, fake_client):
        with pytest.raises(MalformedResponseError):
            AdvisorRequestWriter(fake_client("   ")).generate([])

    def test_transport_error_propagates(self, fake_client):
        with pytest.raises(TransportError):
            AdvisorRequestWriter(fake_client(error=TransportError("down"))).generate([])
