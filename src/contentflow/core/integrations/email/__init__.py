from .client import EmailConnector, SMTPClient, SMTPSettings
from .queue import EmailJob, EmailPriority, EmailQueue, JobState

__all__ = [
    "EmailConnector",
    "EmailJob",
    "EmailPriority",
    "EmailQueue",
    "JobState",
    "SMTPClient",
    "SMTPSettings",
]
