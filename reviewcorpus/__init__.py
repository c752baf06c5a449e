"""
Text mining toolkit for App Store reviews

Fetches customer reviews from the iTunes review feed, normalizes the text,
builds term frequency tables and scores emotions against a lexicon so that
apps can be compared.
"""

from .config import settings
from .document import Review, Document
from .exceptions import (
    ReviewCorpusError,
    FetchError,
    SchemaError,
    ConfigError,
    NoVarianceError,
)
from .reader import FeedReader, build_feed_url, fetch, parse_feed
from .preprocessing import PreprocessingPipeline, default_stopwords, normalize
from .frequency import (
    TermDocumentMatrix,
    TermFrequencyTable,
    build_index,
    correlations,
    document_frequency,
    remove_sparse_terms,
    terms_at_least,
    top_n,
    total_frequency,
    word_cloud_frequencies,
)
from .sentiment import (
    EmotionLexicon,
    Lexicon,
    SentimentScorer,
    SentimentVector,
    aggregate,
    score,
    sentiment_frame,
)
from .corpus import ReviewCorpus, compare_sentiment

__version__ = "0.1.0"
__all__ = [
    "settings",
    "Review",
    "Document",
    "ReviewCorpusError",
    "FetchError",
    "SchemaError",
    "ConfigError",
    "NoVarianceError",
    "FeedReader",
    "build_feed_url",
    "fetch",
    "parse_feed",
    "PreprocessingPipeline",
    "default_stopwords",
    "normalize",
    "TermDocumentMatrix",
    "TermFrequencyTable",
    "build_index",
    "correlations",
    "document_frequency",
    "remove_sparse_terms",
    "terms_at_least",
    "top_n",
    "total_frequency",
    "word_cloud_frequencies",
    "EmotionLexicon",
    "Lexicon",
    "SentimentScorer",
    "SentimentVector",
    "aggregate",
    "score",
    "sentiment_frame",
    "ReviewCorpus",
    "compare_sentiment",
]
