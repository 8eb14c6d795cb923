from src.orchestrators.search.backends.issues import IssueSearchBackend
from src.orchestrators.search.backends.news import NewsSearchBackend
from src.orchestrators.search.backends.polls import PollSearchBackend
from src.orchestrators.search.backends.users import UserDirectorySearchBackend

__all__ = [
    "IssueSearchBackend",
    "NewsSearchBackend",
    "PollSearchBackend",
    "UserDirectorySearchBackend",
    "default_backends",
]


def default_backends() -> list:
    """One backend per searchable domain, in merge order."""
    return [
        IssueSearchBackend(),
        NewsSearchBackend(),
        PollSearchBackend(),
        UserDirectorySearchBackend(),
    ]
