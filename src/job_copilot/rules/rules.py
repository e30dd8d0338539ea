from __future__ import annotations

from job_copilot.models import RawMessage
from job_copilot.rules.BaseRule import BaseRule, RuleMatch


class StrictJobRule(BaseRule):
    name = "strict"

    # Application lifecycle wording
    LIFECYCLE_PHRASES = (
        "application",
        "applied",
        "your application",
        "we received your application",
        "thank you for your application",
        "application confirmation",
        "application status",
        "job application successfully submitted",
        "update on your application",
        "application update",
        "thank you for applying",
        "thank you for your interest",
        "we'll review your application",
        "interview",
        "schedule an interview",
        "next steps",
        "next step",
        "moving forward",
        "moved forward",
        "not moving forward",
        "offer",
        "congratulations",
        "unfortunately",
        "other candidates",
        "outcome",
        "job application",
        "re: application",
        "re: your application",
        "re: ",
        "application for",
        "job posting",
        "we received your resume",
        "your resume",
        "schedule a call",
        "phone screen",
        "technical interview",
    )

    # Recruiting roles and job titles
    RECRUITING_WORDS = (
        "position",
        "role",
        "candidate",
        "applicant",
        "recruiting",
        "hiring",
        "staffing",
        "people team",
        "hiring team",
        "software engineer",
        "developer",
        "engineer",
        "careers@",
        "recruiting@",
        "talent@",
    )

    # ATS vendors and recruiting platforms (show up in From / links / footers)
    ATS_MARKERS = (
        "greenhouse",
        "lever.co",
        "workday",
        "myworkdayjobs",
        "icims",
        "jobvite",
        "smartrecruiters",
        "ashbyhq",
        "linkedin.com/jobs",
        "indeed.com",
    )

    SUBJECT_PATTERN = r"\b(application|interview|offer|position|role|candidate|recruiting|re:)(?=\W|$)"
    SENDER_PATTERN = r"(careers|recruit|talent|jobs|hiring|noreply|no-reply)@"

    def match_info(self, mail: RawMessage) -> RuleMatch:
        hay = self.haystack(mail)

        for group in (self.LIFECYCLE_PHRASES, self.RECRUITING_WORDS, self.ATS_MARKERS):
            needle = self.first_needle(hay, group)
            if needle:
                return RuleMatch(True, f"keyword:{needle.strip()}")

        if self.regex(mail.subject, self.SUBJECT_PATTERN):
            return RuleMatch(True, "subject_pattern")

        if self.regex(mail.sender, self.SENDER_PATTERN):
            return RuleMatch(True, "sender_pattern")

        return RuleMatch(False)


class LenientJobRule(StrictJobRule):
    name = "lenient"

    def match_info(self, mail: RawMessage) -> RuleMatch:
        if "re:" in self.subject(mail):
            return RuleMatch(True, "reply_marker")
        return super().match_info(mail)


class AcceptAnyRule(BaseRule):
    name = "accept_any"

    def match_info(self, mail: RawMessage) -> RuleMatch:
        return RuleMatch(True, "accept_any")
