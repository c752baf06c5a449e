"""
Lexicon-based emotion scoring.

Each token of an already-normalized document is looked up in a word ->
emotion-category lexicon (NRC style) and the category counts are summed.
Tokens missing from the lexicon contribute nothing; that is not an error.

Counts are not divided by document length, so longer reviews weigh more
than short ones when vectors are aggregated.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import polars as pl

from .document import Document

logger = logging.getLogger(__name__)

# Category order used by the NRC Word-Emotion Association Lexicon tools
NRC_CATEGORIES: Tuple[str, ...] = (
    'anger', 'anticipation', 'disgust', 'fear', 'joy',
    'sadness', 'surprise', 'trust', 'negative', 'positive',
)


@dataclass(frozen=True)
class SentimentVector:
    """Counts per emotion category, in a fixed category order."""
    categories: Tuple[str, ...]
    counts: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'categories', tuple(self.categories))
        object.__setattr__(self, 'counts', tuple(self.counts))
        if len(self.categories) != len(self.counts):
            raise ValueError(
                f"{len(self.categories)} categories but {len(self.counts)} counts")
        if len(set(self.categories)) != len(self.categories):
            raise ValueError(f"Duplicate categories in {self.categories}")

    @classmethod
    def zeros(cls, categories: Sequence[str]) -> 'SentimentVector':
        return cls(tuple(categories), (0,) * len(categories))

    @classmethod
    def from_mapping(cls, values: Mapping[str, float], categories: Sequence[str]) -> 'SentimentVector':
        """Build a vector from {category: count}; absent categories are 0."""
        unknown = set(values) - set(categories)
        if unknown:
            raise ValueError(f"Unknown categories: {sorted(unknown)}")
        return cls(tuple(categories), tuple(values.get(cat, 0) for cat in categories))

    def __getitem__(self, category: str) -> float:
        try:
            return self.counts[self.categories.index(category)]
        except ValueError:
            raise KeyError(category) from None

    def __add__(self, other: 'SentimentVector') -> 'SentimentVector':
        if not isinstance(other, SentimentVector):
            return NotImplemented
        if other.categories != self.categories:
            raise ValueError(
                f"Cannot combine vectors with categories {self.categories} "
                f"and {other.categories}")
        return SentimentVector(
            self.categories,
            tuple(a + b for a, b in zip(self.counts, other.counts)),
        )

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.categories, self.counts))

    def total(self) -> float:
        return sum(self.counts)


class Lexicon(ABC):
    """Word -> SentimentVector lookup."""

    @property
    @abstractmethod
    def categories(self) -> Tuple[str, ...]:
        """Category order shared by every vector this lexicon returns."""

    @abstractmethod
    def lookup(self, token: str) -> Optional[SentimentVector]:
        """Vector for `token`, or None when the word is not in the lexicon."""


class EmotionLexicon(Lexicon):
    """
    In-memory lexicon mapping words to emotion-category counts.

    Words are matched exactly; feed it normalized (lowercase) tokens.
    """

    def __init__(
        self,
        entries: Mapping[str, Union[Mapping[str, float], SentimentVector]],
        categories: Optional[Sequence[str]] = None
    ):
        """
        Initialize the lexicon.

        Args:
            entries: word -> {category: count} (or a ready SentimentVector)
            categories: Category order; when None, the NRC order restricted
                        to the categories used, followed by any others
        """
        if categories is None:
            seen: List[str] = []
            for values in entries.values():
                names = values.categories if isinstance(values, SentimentVector) else values
                for name in names:
                    if name not in seen:
                        seen.append(name)
            categories = [cat for cat in NRC_CATEGORIES if cat in seen]
            categories += [cat for cat in seen if cat not in NRC_CATEGORIES]

        self._categories = tuple(categories)
        self._vectors: Dict[str, SentimentVector] = {}
        for word, values in entries.items():
            if isinstance(values, SentimentVector):
                values = values.as_dict()
            self._vectors[word] = SentimentVector.from_mapping(values, self._categories)

    @classmethod
    def from_nrc_file(cls, path: Union[str, Path],
                      categories: Optional[Sequence[str]] = None) -> 'EmotionLexicon':
        """
        Load the NRC Word-Emotion Association Lexicon (word-level file).

        Each line reads `word<TAB>category<TAB>0|1`. Lines that do not have
        three tab-separated fields are ignored.

        Args:
            path: Path to the lexicon file
            categories: Category order override

        Returns:
            EmotionLexicon
        """
        entries: Dict[str, Dict[str, int]] = {}
        seen: List[str] = []

        with open(path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                fields = line.strip().split('\t')
                if len(fields) != 3:
                    continue
                word, category, value = fields
                try:
                    value = int(value)
                except ValueError:
                    raise ValueError(
                        f"{path}:{line_number}: association value must be an integer, "
                        f"got {value!r}") from None
                if category not in seen:
                    seen.append(category)
                if value:
                    entries.setdefault(word, {})[category] = value

        if categories is None:
            categories = [cat for cat in NRC_CATEGORIES if cat in seen]
            categories += [cat for cat in seen if cat not in NRC_CATEGORIES]

        logger.info(f"Loaded {len(entries)} lexicon words from {path}")
        return cls(entries, categories=categories)

    @property
    def categories(self) -> Tuple[str, ...]:
        return self._categories

    def lookup(self, token: str) -> Optional[SentimentVector]:
        return self._vectors.get(token)

    def __contains__(self, token: str) -> bool:
        return token in self._vectors

    def __len__(self) -> int:
        return len(self._vectors)

    def __repr__(self) -> str:
        return f"EmotionLexicon(words={len(self)}, categories={list(self._categories)})"


def score(document: Union[Document, str], lexicon: Lexicon) -> SentimentVector:
    """
    Sum the lexicon vectors of every token in a normalized document.

    The text is split on whitespace as is; no further cleaning happens here.

    Args:
        document: Normalized text or Document
        lexicon: Word -> SentimentVector lookup

    Returns:
        SentimentVector in the lexicon's category order

    Raises:
        ValueError: If the lexicon returns a vector whose categories differ
                    from `lexicon.categories`
    """
    text = document.text if isinstance(document, Document) else document
    total = SentimentVector.zeros(lexicon.categories)
    for token in text.split():
        vector = lexicon.lookup(token)
        if vector is None:
            continue
        total = total + vector
    return total


def aggregate(vectors: Iterable[SentimentVector],
              categories: Optional[Sequence[str]] = None) -> SentimentVector:
    """
    Element-wise sum of sentiment vectors.

    Args:
        vectors: Vectors sharing one category order
        categories: Required when `vectors` may be empty

    Returns:
        The summed SentimentVector
    """
    total = SentimentVector.zeros(categories) if categories is not None else None
    for vector in vectors:
        total = vector if total is None else total + vector
    if total is None:
        raise ValueError("Cannot aggregate an empty sequence without categories")
    return total


class SentimentScorer:
    """Scores documents and groups of documents against one lexicon."""

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon

    @property
    def categories(self) -> Tuple[str, ...]:
        return self.lexicon.categories

    def score(self, document: Union[Document, str]) -> SentimentVector:
        return score(document, self.lexicon)

    def score_batch(
        self,
        documents: Iterable[Union[Document, str]],
        show_progress: bool = False
    ) -> List[SentimentVector]:
        """
        Score many documents.

        Args:
            documents: Normalized texts or Documents
            show_progress: Whether to show progress bar

        Returns:
            One vector per document, in input order
        """
        if show_progress:
            from tqdm import autonotebook
            documents = autonotebook.tqdm(documents, desc="Scoring sentiment")
        return [self.score(doc) for doc in documents]

    def score_groups(
        self,
        groups: Mapping[str, Iterable[Union[Document, str]]]
    ) -> Dict[str, SentimentVector]:
        """
        Aggregate vector per named group (e.g. one group per app).

        Args:
            groups: group name -> documents

        Returns:
            group name -> summed SentimentVector
        """
        return {
            name: aggregate(self.score_batch(docs), categories=self.categories)
            for name, docs in groups.items()
        }


def sentiment_frame(group_vectors: Mapping[str, SentimentVector]) -> pl.DataFrame:
    """
    Tabulate per-group sentiment totals for plotting.

    Returns:
        DataFrame with a `category` column and one count column per group
    """
    vectors = list(group_vectors.values())
    if not vectors:
        return pl.DataFrame({'category': []}, schema={'category': pl.Utf8})

    categories = vectors[0].categories
    data = {'category': list(categories)}
    for name, vector in group_vectors.items():
        if vector.categories != categories:
            raise ValueError(f"Group '{name}' uses a different category order")
        data[name] = list(vector.counts)
    return pl.DataFrame(data)
