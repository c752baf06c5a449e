"""
Review and Document: the records flowing through the pipeline.

A Review is what the feed delivers. A Document is the text being cleaned;
each transformation produces a new Document so the state before and after
any step can be inspected.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Review:
    """A single app-store review as delivered by the feed."""
    author: str
    version: str
    id: str
    title: str
    body: str
    rating: Optional[int] = None

    def to_document(self) -> 'Document':
        """Start a Document from this review's body."""
        return Document(doc_id=self.id, text=self.body, source_id=self.id)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert review to a dictionary for tabular output.

        Returns:
            Dictionary representation of the review
        """
        return {
            'id': self.id,
            'author': self.author,
            'version': self.version,
            'title': self.title,
            'body': self.body,
            'rating': self.rating,
            'body_length': len(self.body),
        }


@dataclass(frozen=True)
class Document:
    """
    Text derived from a review body, at one stage of normalization.

    `history` holds the names of the steps already applied, in order.
    """
    doc_id: str
    text: str
    source_id: Optional[str] = None
    history: Tuple[str, ...] = field(default=())

    def apply(self, step) -> 'Document':
        """
        Return a new Document with `step` applied to the text.

        Args:
            step: Any object with `name` and `process(text) -> str`

        Returns:
            New Document; this one is left untouched
        """
        return replace(
            self,
            text=step.process(self.text),
            history=self.history + (step.name,),
        )

    @property
    def tokens(self) -> Tuple[str, ...]:
        """Whitespace-delimited tokens of the current text."""
        return tuple(self.text.split())

    def __len__(self) -> int:
        """Return the number of tokens."""
        return len(self.tokens)

    def __repr__(self) -> str:
        return f"Document(id={self.doc_id}, steps={len(self.history)})"
