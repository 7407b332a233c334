import pytest
from pydantic import ValidationError

from scan_worker.models.job import JobState, can_transition
from scan_worker.models.summary import FailureSummary, Scores, SecurityHeaders, SECURITY_HEADERS


class TestJobState:
    @pytest.mark.parametrize("current,target,allowed", [
        (JobState.PENDING, JobState.RUNNING, True),
        (JobState.RUNNING, JobState.DONE, True),
        (JobState.RUNNING, JobState.FAILED, True),
        (JobState.PENDING, JobState.DONE, False),
        (JobState.DONE, JobState.RUNNING, False),
        (JobState.FAILED, JobState.PENDING, False),
        (JobState.DONE, JobState.FAILED, False),
    ])
    def test_transitions(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_terminal_states(self):
        assert {s for s in JobState if s.is_terminal} == {JobState.DONE, JobState.FAILED}

    def test_artifact_path(self, make_job):
        assert make_job("job-9", workspace_id="ws-3").artifact_path == "ws-3/job-9.pdf"


class TestSummaryModels:
    @pytest.mark.parametrize("value", [-1, 101])
    def test_scores_are_bounded(self, value):
        with pytest.raises(ValidationError):
            Scores(performance=value, seo=50, best_practices=50, accessibility=50)

    def test_scores_accept_field_names_and_dump_aliases(self):
        scores = Scores(performance=1, seo=2, best_practices=3, accessibility=4)
        assert scores.to_json() == {"performance": 1, "seo": 2, "bestPractices": 3, "accessibility": 4}

    def test_security_header_items_keep_order(self):
        headers = SecurityHeaders.from_response({"X-Content-Type-Options": "nosniff"})
        assert headers.items() == [
            ("content-security-policy", None),
            ("strict-transport-security", None),
            ("x-frame-options", None),
            ("x-content-type-options", "nosniff"),
        ]
        assert tuple(name for name, _ in headers.items()) == SECURITY_HEADERS

    def test_failure_summary_has_only_error(self):
        assert FailureSummary(error="boom").to_json() == {"error": "boom"}
