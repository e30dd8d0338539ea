from __future__ import annotations

from job_copilot.extractors.status import infer_status


def test_rejection_phrase_in_body() -> None:
    assert infer_status("Re: Application for Backend Engineer", "Sadly we will not be moving forward.") == "Rejected"


def test_interview_invitation() -> None:
    assert infer_status("Next steps", "We would like to invite you for an interview next week.") == "Interviewing"


def test_offer_is_matched_case_insensitively() -> None:
    assert infer_status("Good news", "We Are Pleased To Offer you the role.") == "Offer"


def test_unknown_wording_defaults_to_applied() -> None:
    assert infer_status("Your application", "Thanks, we'll be in touch.") == "Applied"
    assert infer_status(None, None) == "Applied"
