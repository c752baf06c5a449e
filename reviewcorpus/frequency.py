"""
Term frequency indexing over normalized documents.

Builds a sparse document-term count matrix and derives aggregate term
frequencies, frequent terms and term-to-term correlations from it.
"""

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

import numpy as np
import polars as pl
from scipy.sparse import csr_matrix
from sklearn.feature_extraction.text import CountVectorizer

from .document import Document
from .exceptions import NoVarianceError

logger = logging.getLogger(__name__)


class TermFrequencyTable(Mapping):
    """
    Term -> count mapping ordered by descending count.

    Ties keep the order in which terms were first given. Tables built from
    different document collections can be summed with `+`.
    """

    def __init__(self, counts: Union[Mapping, Iterable[Tuple[str, int]]] = ()):
        if isinstance(counts, Mapping):
            counts = counts.items()

        merged: Dict[str, int] = {}
        for term, count in counts:
            if isinstance(count, bool) or int(count) != count:
                raise ValueError(f"Count for term '{term}' is not an integer: {count!r}")
            count = int(count)
            if count < 0:
                raise ValueError(f"Negative count for term '{term}': {count}")
            merged[term] = merged.get(term, 0) + count

        # sorted() is stable, so ties stay in first-appearance order
        self._counts = dict(sorted(merged.items(), key=lambda item: -item[1]))

    def __getitem__(self, term: str) -> int:
        return self._counts[term]

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __add__(self, other: 'TermFrequencyTable') -> 'TermFrequencyTable':
        if not isinstance(other, TermFrequencyTable):
            return NotImplemented
        return TermFrequencyTable(list(self.items()) + list(other.items()))

    def total(self) -> int:
        """Sum of all counts."""
        return sum(self._counts.values())

    def top_n(self, n: int) -> List[Tuple[str, int]]:
        """The `n` most frequent (term, count) pairs."""
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")
        return list(self._counts.items())[:n]

    def terms_at_least(self, min_count: int) -> Set[str]:
        """Terms whose count is at least `min_count`."""
        return {term for term, count in self._counts.items() if count >= min_count}

    def to_frame(self) -> pl.DataFrame:
        """Table as a polars DataFrame with `term` and `count` columns."""
        return pl.DataFrame(
            {'term': list(self._counts.keys()), 'count': list(self._counts.values())},
            schema={'term': pl.Utf8, 'count': pl.Int64},
        )

    def __repr__(self) -> str:
        preview = ', '.join(f"{term}: {count}" for term, count in self.top_n(5))
        suffix = ', ...' if len(self) > 5 else ''
        return f"TermFrequencyTable({{{preview}{suffix}}})"


class TermDocumentMatrix:
    """
    Occurrence counts of every term in every document.

    Stored as a documents x terms sparse matrix; terms are kept in the order
    they first appear across the collection.
    """

    def __init__(self, counts: csr_matrix, terms: Sequence[str], doc_ids: Sequence[str]):
        if counts.shape != (len(doc_ids), len(terms)):
            raise ValueError(
                f"Matrix shape {counts.shape} does not match "
                f"{len(doc_ids)} documents x {len(terms)} terms")
        self.counts = csr_matrix(counts, dtype=np.int64)
        self.terms = list(terms)
        self.doc_ids = list(doc_ids)
        self._term_index = {term: idx for idx, term in enumerate(self.terms)}

    @property
    def shape(self) -> Tuple[int, int]:
        """(number of documents, number of terms)"""
        return self.counts.shape

    @property
    def n_documents(self) -> int:
        return self.counts.shape[0]

    @property
    def n_terms(self) -> int:
        return self.counts.shape[1]

    def __contains__(self, term: str) -> bool:
        return term in self._term_index

    def term_index(self, term: str) -> int:
        """Column of `term`; raises KeyError for unknown terms."""
        try:
            return self._term_index[term]
        except KeyError:
            raise KeyError(f"Term '{term}' not in index") from None

    def count(self, term: str, doc_index: int) -> int:
        """Occurrences of `term` in document number `doc_index`."""
        if term not in self._term_index:
            return 0
        return int(self.counts[doc_index, self._term_index[term]])

    def term_vector(self, term: str) -> np.ndarray:
        """Per-document counts of `term`."""
        column = self.counts[:, self.term_index(term)]
        return np.asarray(column.todense()).ravel()

    def __repr__(self) -> str:
        return f"TermDocumentMatrix(documents={self.n_documents}, terms={self.n_terms})"


def build_index(documents: Iterable[Union[Document, str]]) -> TermDocumentMatrix:
    """
    Build the document-term matrix for a collection of normalized documents.

    Args:
        documents: Documents or already-normalized strings; tokens are
                   whitespace separated

    Returns:
        TermDocumentMatrix with one row per document, in input order
    """
    texts: List[str] = []
    doc_ids: List[str] = []
    for position, doc in enumerate(documents):
        if isinstance(doc, Document):
            texts.append(doc.text)
            doc_ids.append(doc.doc_id)
        elif isinstance(doc, str):
            texts.append(doc)
            doc_ids.append(str(position))
        else:
            raise TypeError(f"Expected Document or str, got {type(doc).__name__}")

    # Vocabulary in first-appearance order keeps ties deterministic
    vocabulary: Dict[str, int] = {}
    for text in texts:
        for token in text.split():
            if token not in vocabulary:
                vocabulary[token] = len(vocabulary)

    if vocabulary:
        vectorizer = CountVectorizer(
            vocabulary=vocabulary,
            tokenizer=str.split,
            token_pattern=None,
            lowercase=False,
            dtype=np.int64
        )
        counts = vectorizer.fit_transform(texts)
    else:
        counts = csr_matrix((len(texts), 0), dtype=np.int64)

    logger.debug("Indexed %d documents, %d terms", len(texts), len(vocabulary))
    return TermDocumentMatrix(counts, list(vocabulary), doc_ids)


def total_frequency(matrix: TermDocumentMatrix) -> TermFrequencyTable:
    """Sum of each term's counts over all documents, most frequent first."""
    totals = np.asarray(matrix.counts.sum(axis=0)).ravel()
    return TermFrequencyTable(zip(matrix.terms, totals.tolist()))


def document_frequency(matrix: TermDocumentMatrix, doc_index: int) -> TermFrequencyTable:
    """Term counts of a single document."""
    row = matrix.counts[doc_index]
    pairs = sorted(zip(row.indices.tolist(), row.data.tolist()))
    return TermFrequencyTable((matrix.terms[idx], count) for idx, count in pairs)


def top_n(table: TermFrequencyTable, n: int) -> List[Tuple[str, int]]:
    """The `n` most frequent (term, count) pairs of a table."""
    return table.top_n(n)


def terms_at_least(table: TermFrequencyTable, min_count: int) -> Set[str]:
    """Terms with an aggregate count of at least `min_count`."""
    return table.terms_at_least(min_count)


def correlations(matrix: TermDocumentMatrix, term: str, min_corr: float) -> Dict[str, float]:
    """
    Terms whose per-document counts correlate with those of `term`.

    Uses the Pearson correlation over all documents. Other terms that have
    the same count in every document have no defined correlation and are
    left out.

    Args:
        matrix: Document-term matrix
        term: Target term
        min_corr: Minimum correlation to report

    Returns:
        Mapping term -> correlation, highest first
    """
    target = matrix.term_index(term)

    dense = matrix.counts.toarray().astype(np.float64)
    centered = dense - dense.mean(axis=0)
    norms = np.sqrt((centered ** 2).sum(axis=0))

    if norms[target] == 0:
        raise NoVarianceError(term)

    x = centered[:, target]
    results = []
    for idx, other in enumerate(matrix.terms):
        if idx == target or norms[idx] == 0:
            continue
        r = float(np.dot(x, centered[:, idx]) / (norms[target] * norms[idx]))
        r = min(1.0, max(-1.0, r))
        if r >= min_corr:
            results.append((other, r))

    results.sort(key=lambda item: -item[1])
    return dict(results)


def remove_sparse_terms(matrix: TermDocumentMatrix, max_sparsity: float) -> TermDocumentMatrix:
    """
    Drop terms missing from too many documents.

    A term is kept when it appears in more than (1 - max_sparsity) of the
    documents.

    Args:
        matrix: Document-term matrix
        max_sparsity: Value strictly between 0 and 1

    Returns:
        New matrix holding only the kept terms, in their original order
    """
    if not 0 < max_sparsity < 1:
        raise ValueError(f"max_sparsity must be between 0 and 1, got {max_sparsity}")

    doc_freq = np.asarray((matrix.counts > 0).sum(axis=0)).ravel()
    keep = np.flatnonzero(doc_freq > matrix.n_documents * (1 - max_sparsity))
    logger.debug("Keeping %d of %d terms", len(keep), matrix.n_terms)
    return TermDocumentMatrix(
        matrix.counts[:, keep],
        [matrix.terms[idx] for idx in keep],
        matrix.doc_ids,
    )


def word_cloud_frequencies(
    table: TermFrequencyTable,
    max_words: Optional[int] = None,
    min_count: int = 1
) -> List[Tuple[str, int]]:
    """
    (term, count) pairs ready for a word-cloud renderer.

    Args:
        table: Aggregate term frequencies
        max_words: Keep at most this many terms
        min_count: Drop terms rarer than this

    Returns:
        Pairs in descending count order
    """
    pairs = [(term, count) for term, count in table.items() if count >= min_count]
    if max_words is not None:
        pairs = pairs[:max_words]
    return pairs
