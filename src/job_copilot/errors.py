from __future__ import annotations


class JobCopilotError(Exception):
    """Base class for all job-copilot errors."""


class MailboxUnavailable(JobCopilotError):
    """No stored Gmail credential, or the mailbox reports disconnected."""


class MessageFetchFailed(JobCopilotError):
    def __init__(self, message_id: str, cause: Exception):
        super().__init__(f"{message_id}: {type(cause).__name__}: {cause}")
        self.message_id = message_id
        self.cause = cause


class ModelProviderFailure(JobCopilotError):
    """The language model call failed or was unreachable."""


class ClassificationProviderFailure(ModelProviderFailure):
    pass


class SummarizationProviderFailure(ModelProviderFailure):
    pass


class MalformedModelOutput(JobCopilotError):
    """The model answered, but not with anything we can parse."""


class ApplicationNotFound(JobCopilotError):
    pass


class InvalidApplication(JobCopilotError):
    pass
