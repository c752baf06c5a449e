"""Tests for the normalization pipeline."""

import logging

import pytest

from reviewcorpus import preprocessing
from reviewcorpus.document import Document
from reviewcorpus.exceptions import ConfigError
from reviewcorpus.preprocessing import (
    PatternReplacer,
    PreprocessingPipeline,
    Stemmer,
    StopwordRemover,
    normalize,
)


def test_example_pipeline(example_texts, example_steps):
    pipeline = PreprocessingPipeline(example_steps)
    assert [pipeline.process(t) for t in example_texts] == ["love game", "hate game"]


def test_normalize_accepts_step_list(example_steps):
    assert normalize("i love the GAME!! 123", example_steps) == "love game"


def test_normalize_is_deterministic(example_steps):
    pipeline = PreprocessingPipeline(example_steps)
    text = "Great   app, 5 stars!! I'd buy it again / 10"
    results = {normalize(text, pipeline) for _ in range(5)}
    assert len(results) == 1


def test_normalize_leaves_input_alone(example_steps):
    body = "I LOVE it"
    normalize(body, example_steps)
    assert body == "I LOVE it"


def test_replace_pattern_then_lowercase():
    pipeline = PreprocessingPipeline([
        ("replace_pattern", {"pattern": r"[/@|]"}),
        "lowercase",
        "strip_whitespace",
    ])
    assert pipeline.process("Fun/Great@Levels|OK") == "fun great levels ok"


def test_replace_pattern_literal_replacement():
    step = PatternReplacer(r"\s+", r"\1")
    assert step.process("a b") == r"a\1b"


def test_lowercase_is_full_case_fold():
    assert normalize("STRASSE Straße", ["lowercase"]) == "strasse strasse"


def test_remove_numbers():
    assert normalize("level 42 is v2", ["remove_numbers"]) == "level  is v"


def test_remove_punctuation_keeps_letters_digits_spaces():
    assert normalize("wow!!! it's 5/5 :) ~ café_au", ["remove_punctuation"]) == "wow its 55   caféau"


def test_remove_stopwords_matches_exact_tokens():
    step = StopwordRemover(stopwords={"the", "game"})
    assert step.process("The game is the best gamer") == "The is best gamer"


def test_stopwords_can_be_extended():
    step = StopwordRemover(stopwords={"the"}, extra=["will", "get"])
    assert step.process("you will get the coins") == "you coins"


def test_strip_whitespace():
    assert normalize("  too \t many\n\nspaces ", ["strip_whitespace"]) == "too many spaces"


def test_stem_with_porter():
    assert normalize("playing games crashed", ["stem"]) == "play game crash"


def test_stem_with_injected_stemmer():
    class Truncate:
        def stem(self, token):
            return token[:3]

    pipeline = PreprocessingPipeline([Stemmer(stemmer=Truncate())])
    assert pipeline.process("amazing levels") == "ama lev"


def test_steps_run_in_given_order():
    upper_first = PreprocessingPipeline([
        ("remove_stopwords", {"stopwords": {"the"}}),
        "lowercase",
    ])
    lower_first = PreprocessingPipeline([
        "lowercase",
        ("remove_stopwords", {"stopwords": {"the"}}),
    ])
    assert upper_first.process("The game") == "the game"
    assert lower_first.process("The game") == "game"


def test_stopwords_before_lowercase_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="reviewcorpus.preprocessing"):
        PreprocessingPipeline([("remove_stopwords", {"stopwords": {"the"}}), "lowercase"])
    assert "before lowercase" in caplog.text


def test_process_document_keeps_each_stage(example_steps):
    pipeline = PreprocessingPipeline(example_steps)
    original = Document(doc_id="101", text="i love the GAME!! 123")

    final = pipeline.process_document(original)

    assert original.text == "i love the GAME!! 123"
    assert original.history == ()
    assert final.text == "love game"
    assert final.history == tuple(pipeline.step_names)


def test_trace_lists_every_stage(example_steps):
    stages = PreprocessingPipeline(example_steps).trace("i love the GAME!! 123")
    assert stages[0] == ("input", "i love the GAME!! 123")
    assert stages[1] == ("lowercase", "i love the game!! 123")
    assert stages[-1] == ("strip_whitespace", "love game")


def test_process_batch_preserves_order(example_texts, example_steps):
    pipeline = PreprocessingPipeline(example_steps)
    assert pipeline.process_batch(example_texts) == ["love game", "hate game"]


def test_add_and_remove_step():
    pipeline = PreprocessingPipeline(["lowercase"])
    pipeline.add_step("strip_whitespace")
    pipeline.add_step("remove_numbers", position=0)
    assert pipeline.step_names == ["remove_numbers", "lowercase", "strip_whitespace"]

    pipeline.remove_step("lowercase")
    assert pipeline.step_names == ["remove_numbers", "strip_whitespace"]


@pytest.mark.parametrize("steps", [
    ["lowercase", "lemmatize"],
    [("replace_pattern", {"pattern": "("})],
    [("replace_pattern", {})],
    [("lowercase", {"unexpected": True})],
    [("stem", {"algorithm": "lancaster"})],
    [("remove_stopwords", {"stopwords": "the"})],
    [("remove_stopwords", {"stopwords": {"the", 3}})],
    [42],
    "lowercase",
])
def test_invalid_configuration_fails_at_construction(steps):
    with pytest.raises(ConfigError):
        PreprocessingPipeline(steps)


def test_add_unknown_step_fails():
    pipeline = PreprocessingPipeline(["lowercase"])
    with pytest.raises(ConfigError):
        pipeline.add_step("translate")


def test_non_string_input_rejected(example_steps):
    with pytest.raises(TypeError):
        normalize(None, example_steps)


def test_process_batch_with_progress_bar(example_texts, example_steps):
    pipeline = PreprocessingPipeline(example_steps)
    assert pipeline.process_batch(example_texts, show_progress=True) == ["love game", "hate game"]


class MissingLanguageCorpus:
    def words(self, language):
        raise OSError(f"No such file: {language}")


def test_default_stopwords_unknown_language(monkeypatch):
    monkeypatch.setattr(preprocessing, "_ensure_stopwords", lambda: None)
    monkeypatch.setattr(preprocessing, "stopwords", MissingLanguageCorpus())
    with pytest.raises(ConfigError):
        preprocessing.default_stopwords(language="klingon")
