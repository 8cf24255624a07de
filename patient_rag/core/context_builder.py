"""
Prompt context assembly from ranked matches.

Concatenates match contents best-first into a block that never exceeds the
character budget. When the budget runs out the lowest-ranked content that
still partly fits is cut at a word boundary and everything after it dropped.
Sources list every document that appeared in the matches, so citations stay
complete even when some content was dropped.

Dependencies: patient_rag.models
System role: Context formatting business logic
"""

from collections.abc import Sequence

from patient_rag.core.exceptions import InvalidParameterError
from patient_rag.models.retrieval import RAGContext, RetrievalMatch

SEPARATOR = "\n\n"


def _cut(text: str, limit: int) -> str:
    """Longest prefix of text within limit, preferring a word boundary."""
    if len(text) <= limit:
        return text
    head = text[:limit]
    boundary = head.rfind(" ")
    return head[:boundary].rstrip() if boundary > 0 else head


class ContextBuilder:
    """Context building business logic."""

    def __init__(self, char_budget: int = 4000) -> None:
        if char_budget <= 0:
            raise InvalidParameterError("char_budget must be positive", field="char_budget")
        self.char_budget = char_budget

    def build(self, matches: Sequence[RetrievalMatch]) -> RAGContext:
        """
        Build a bounded context block and its source list.

        Args:
            matches: Matches in ranking order (best first)

        Returns:
            RAGContext: context with len(context) <= char_budget, and the
            de-duplicated document names of all matches in first-seen order
        """
        sources = list(dict.fromkeys(match.document_name for match in matches))

        parts: list[str] = []
        used = 0
        for match in matches:
            content = match.content.strip()
            if not content:
                continue
            cost = len(content) + (len(SEPARATOR) if parts else 0)
            if used + cost <= self.char_budget:
                parts.append(content)
                used += cost
                continue

            remaining = self.char_budget - used - (len(SEPARATOR) if parts else 0)
            if remaining > 0:
                partial = _cut(content, remaining)
                if partial:
                    parts.append(partial)
            break

        return RAGContext(context=SEPARATOR.join(parts), sources=sources)
