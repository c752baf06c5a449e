"""Tests for lexicon-based emotion scoring."""

import itertools

import pytest

from reviewcorpus.document import Document
from reviewcorpus.sentiment import (
    NRC_CATEGORIES,
    EmotionLexicon,
    Lexicon,
    SentimentScorer,
    SentimentVector,
    aggregate,
    score,
    sentiment_frame,
)


@pytest.fixture
def lexicon():
    return EmotionLexicon(
        {
            "hate": {"anger": 1, "disgust": 1},
            "love": {"joy": 1, "trust": 1},
        },
        categories=NRC_CATEGORIES,
    )


def only(**counts):
    return SentimentVector.from_mapping(counts, NRC_CATEGORIES)


def test_score_examples(lexicon):
    loved = score("love game", lexicon)
    hated = score("hate game", lexicon)

    assert loved == only(joy=1, trust=1)
    assert hated == only(anger=1, disgust=1)
    assert aggregate([loved, hated]) == only(anger=1, disgust=1, joy=1, trust=1)


def test_score_counts_repeated_tokens(lexicon):
    assert score("love love hate", lexicon) == only(joy=2, trust=2, anger=1, disgust=1)


def test_score_unknown_tokens_are_zero(lexicon):
    assert score("nothing matches here", lexicon) == SentimentVector.zeros(NRC_CATEGORIES)
    assert score("", lexicon).total() == 0


def test_score_expects_normalized_text(lexicon):
    # No case folding or punctuation stripping happens while scoring
    assert score("LOVE love!", lexicon).total() == 0


def test_score_accepts_documents(lexicon):
    assert score(Document(doc_id="1", text="love"), lexicon)["joy"] == 1


class ReorderedLexicon(Lexicon):
    """Lexicon whose vectors use a different category order than it declares."""

    @property
    def categories(self):
        return ("anger", "joy")

    def lookup(self, token):
        if token == "love":
            return SentimentVector(("joy", "anger"), (1, 0))
        return None


def test_score_rejects_vectors_in_another_category_order():
    with pytest.raises(ValueError):
        score("love", ReorderedLexicon())
    assert score("meh", ReorderedLexicon()) == SentimentVector(("anger", "joy"), (0, 0))


def test_score_batch_with_progress_bar(lexicon):
    scorer = SentimentScorer(lexicon)
    vectors = scorer.score_batch(["love", "hate"], show_progress=True)
    assert vectors == [only(joy=1, trust=1), only(anger=1, disgust=1)]


def test_aggregate_is_order_independent(lexicon):
    vectors = [score(text, lexicon) for text in ["love", "hate hate", "love hate", "meh"]]
    expected = aggregate(vectors)
    for permutation in itertools.permutations(vectors):
        assert aggregate(permutation) == expected


def test_aggregate_is_associative(lexicon):
    a, b, c = (score(text, lexicon) for text in ["love", "hate", "love hate love"])
    assert aggregate([aggregate([a, b]), c]) == aggregate([a, aggregate([b, c])])


def test_aggregate_empty():
    assert aggregate([], categories=("joy", "anger")) == SentimentVector(("joy", "anger"), (0, 0))
    with pytest.raises(ValueError):
        aggregate([])


def test_vectors_with_different_categories_do_not_mix():
    with pytest.raises(ValueError):
        SentimentVector(("joy",), (1,)) + SentimentVector(("anger",), (1,))


def test_vector_validation():
    with pytest.raises(ValueError):
        SentimentVector(("joy", "anger"), (1,))
    with pytest.raises(ValueError):
        SentimentVector(("joy", "joy"), (1, 1))
    with pytest.raises(ValueError):
        SentimentVector.from_mapping({"envy": 1}, ("joy",))


def test_vector_lookup_by_category():
    vector = SentimentVector(("joy", "anger"), (3, 1))
    assert vector["joy"] == 3
    assert vector.as_dict() == {"joy": 3, "anger": 1}
    with pytest.raises(KeyError):
        vector["fear"]


def test_lexicon_infers_nrc_category_order():
    lexicon = EmotionLexicon({"win": {"positive": 1, "joy": 1}, "lag": {"anger": 1}})
    assert lexicon.categories == ("anger", "joy", "positive")


def test_lexicon_from_nrc_file(tmp_path):
    path = tmp_path / "nrc.txt"
    path.write_text(
        "love\tanger\t0\n"
        "love\tjoy\t1\n"
        "love\tpositive\t1\n"
        "crash\tfear\t1\n"
        "crash\tjoy\t0\n"
        "\n",
        encoding="utf-8",
    )

    lexicon = EmotionLexicon.from_nrc_file(path)

    assert lexicon.categories == ("anger", "fear", "joy", "positive")
    assert len(lexicon) == 2
    assert score("love crash", lexicon).as_dict() == {"anger": 0, "fear": 1, "joy": 1, "positive": 1}


def test_lexicon_from_nrc_file_bad_value(tmp_path):
    path = tmp_path / "nrc.txt"
    path.write_text("love\tjoy\tyes\n", encoding="utf-8")
    with pytest.raises(ValueError):
        EmotionLexicon.from_nrc_file(path)


def test_scorer_groups_compare_apps(lexicon):
    scorer = SentimentScorer(lexicon)

    totals = scorer.score_groups({
        "app_a": ["love game", "love it"],
        "app_b": ["hate game"],
        "app_c": [],
    })

    assert totals["app_a"] == only(joy=2, trust=2)
    assert totals["app_b"] == only(anger=1, disgust=1)
    assert totals["app_c"] == SentimentVector.zeros(NRC_CATEGORIES)


def test_sentiment_frame(lexicon):
    scorer = SentimentScorer(lexicon)
    frame = sentiment_frame(scorer.score_groups({"a": ["love"], "b": ["hate"]}))

    assert frame.columns == ["category", "a", "b"]
    assert frame["category"].to_list() == list(NRC_CATEGORIES)
    rows = {row["category"]: (row["a"], row["b"]) for row in frame.iter_rows(named=True)}
    assert rows["joy"] == (1, 0)
    assert rows["anger"] == (0, 1)
