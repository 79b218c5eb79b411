"""Builder for the tracker's issue search query language.

Terms are joined with single spaces. Each method returns a new builder, so a
partially built query can be shared and extended independently.

Example:
    >>> SearchQueryBuilder().issue().milestone("Sprint 2").not_label("spam").build()
    'type:issue milestone:"Sprint 2" -label:spam'
"""

from dataclasses import dataclass, replace
from datetime import datetime

from decadog.models.domain import IssueState


@dataclass(frozen=True)
class SearchQueryBuilder:
    """Immutable search query under construction."""

    query: str = ""

    def build(self) -> str:
        return self.query

    def term(self, term: str) -> "SearchQueryBuilder":
        """Append a raw term."""
        if not self.query:
            return replace(self, query=term)
        return replace(self, query=f"{self.query} {term}")

    def key_value(self, key: str, value: str) -> "SearchQueryBuilder":
        return self.term(f"{key}:{value}")

    def label(self, label_name: str) -> "SearchQueryBuilder":
        return self.key_value("label", label_name)

    def not_label(self, label_name: str) -> "SearchQueryBuilder":
        return self.key_value("-label", label_name)

    def issue(self) -> "SearchQueryBuilder":
        return self.key_value("type", "issue")

    def state(self, state: IssueState) -> "SearchQueryBuilder":
        return self.key_value("state", state.value)

    def milestone(self, milestone_title: str) -> "SearchQueryBuilder":
        return self.term(f'milestone:"{milestone_title}"')

    def no_milestone(self) -> "SearchQueryBuilder":
        return self.key_value("no", "milestone")

    def closed_on_or_after(self, when: datetime) -> "SearchQueryBuilder":
        """Closed issues whose close date is ``when``'s date or later."""
        return self.state(IssueState.CLOSED).term(f"closed:>={when:%Y-%m-%d}")

    def owner_repo(self, owner: str, repo: str) -> "SearchQueryBuilder":
        return self.term(f"repo:{owner}/{repo}")
