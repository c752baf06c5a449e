"""
ReviewCorpus: Main entry point for managing one app's reviews.

Handles loading, explicit deduplication, normalization, indexing and
sentiment scoring of the collection.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Union

import numpy as np

from .document import Document, Review
from .frequency import TermDocumentMatrix, build_index
from .preprocessing import PreprocessingPipeline
from .reader import FeedReader
from .sentiment import SentimentScorer, SentimentVector, aggregate

logger = logging.getLogger(__name__)


class ReviewCorpus:
    """
    Manages the reviews of one app.

    Reviews are kept in load order. Duplicates are kept unless
    `deduplicate()` is called.
    """

    def __init__(
        self,
        name: str,
        preprocessing_pipeline: Optional[PreprocessingPipeline] = None
    ):
        """
        Initialize the corpus.

        Args:
            name: Label for this collection (e.g. the app name)
            preprocessing_pipeline: Pipeline for text normalization
        """
        self.name = name
        self.reviews: List[Review] = []
        self._preprocessing_pipeline = preprocessing_pipeline or PreprocessingPipeline()

    @property
    def pipeline(self) -> PreprocessingPipeline:
        return self._preprocessing_pipeline

    def load(
        self,
        reader: FeedReader,
        app_id: Union[str, int],
        pages: int = 1
    ) -> int:
        """
        Fetch an app's reviews and add them to the corpus.

        Args:
            reader: FeedReader instance
            app_id: Numeric App Store id
            pages: Number of feed pages to fetch

        Returns:
            Number of reviews added
        """
        reviews = reader.fetch_app(app_id, pages=pages)
        return self.add_reviews(reviews)

    def add_reviews(self, reviews: Iterable[Review]) -> int:
        """Append reviews; returns how many were added."""
        added = 0
        for review in reviews:
            if not isinstance(review, Review):
                raise TypeError(f"Expected Review, got {type(review).__name__}")
            self.reviews.append(review)
            added += 1
        logger.info(f"{self.name}: added {added} reviews ({len(self.reviews)} total)")
        return added

    def deduplicate(self, by: str = 'id') -> int:
        """
        Drop repeated reviews, keeping the first occurrence.

        Args:
            by: Either 'id' or 'body'

        Returns:
            Number of reviews removed
        """
        if by not in ('id', 'body'):
            raise ValueError(f"Unknown deduplication key: {by}")

        seen = set()
        unique = []
        for review in self.reviews:
            key = getattr(review, by)
            if key in seen:
                continue
            seen.add(key)
            unique.append(review)

        removed = len(self.reviews) - len(unique)
        self.reviews = unique
        logger.info(f"{self.name}: removed {removed} duplicate reviews by {by}")
        return removed

    def documents(self, show_progress: bool = False) -> List[Document]:
        """
        Normalized Documents, one per review, in review order.

        Args:
            show_progress: Whether to show progress bar
        """
        reviews = self.reviews
        if show_progress:
            from tqdm import autonotebook
            reviews = autonotebook.tqdm(reviews, desc=f"Normalizing {self.name}")
        return [self._preprocessing_pipeline.process_document(review.to_document())
                for review in reviews]

    def build_index(self) -> TermDocumentMatrix:
        """Document-term matrix of the normalized reviews."""
        return build_index(self.documents())

    def sentiment(self, scorer: SentimentScorer) -> SentimentVector:
        """Summed sentiment vector over all normalized reviews."""
        return aggregate(scorer.score_batch(self.documents()), categories=scorer.categories)

    def get_statistics(self) -> Dict:
        """
        Compute summary statistics about the corpus.

        Returns:
            Dictionary with various corpus statistics
        """
        stats = {
            'name': self.name,
            'total_reviews': len(self.reviews),
            'unique_ids': len({review.id for review in self.reviews}),
            'unique_bodies': len({review.body for review in self.reviews}),
        }

        # Body length statistics
        body_lengths = [len(review.body) for review in self.reviews]
        if body_lengths:
            stats['body_length'] = {
                'mean': float(np.mean(body_lengths)),
                'median': float(np.median(body_lengths)),
                'min': int(np.min(body_lengths)),
                'max': int(np.max(body_lengths)),
                'std': float(np.std(body_lengths)),
            }

        # Rating distribution
        rating_counts = Counter(
            review.rating for review in self.reviews if review.rating is not None)
        stats['rating_distribution'] = dict(sorted(rating_counts.items()))

        # Version distribution
        stats['version_distribution'] = dict(
            Counter(review.version for review in self.reviews).most_common())

        return stats

    def __len__(self) -> int:
        """Return the number of reviews in the corpus."""
        return len(self.reviews)

    def __repr__(self) -> str:
        return f"ReviewCorpus(name={self.name}, reviews={len(self.reviews)})"


def compare_sentiment(
    corpora: Iterable[ReviewCorpus],
    scorer: SentimentScorer
) -> Dict[str, SentimentVector]:
    """
    Aggregate sentiment per corpus, e.g. app A vs app B.

    Returns:
        corpus name -> summed SentimentVector
    """
    results: Dict[str, SentimentVector] = {}
    for corpus in corpora:
        if corpus.name in results:
            raise ValueError(f"Duplicate corpus name: {corpus.name}")
        results[corpus.name] = corpus.sentiment(scorer)
    return results
