from reviewcorpus import (
    FeedReader,
    ReviewCorpus,
    PreprocessingPipeline,
    EmotionLexicon,
    SentimentScorer,
    compare_sentiment,
    correlations,
    default_stopwords,
    sentiment_frame,
    terms_at_least,
    top_n,
    total_frequency,
    word_cloud_frequencies,
    NoVarianceError,
)
from reviewcorpus.config import configure_logging, settings
import sys

APPS = {
    'candy_crush': 553834731,
    'clash_of_clans': 529479190,
}

# Used when no NRC lexicon file is given on the command line
DEMO_LEXICON = {
    'love': {'joy': 1, 'positive': 1, 'trust': 1},
    'fun': {'anticipation': 1, 'joy': 1, 'positive': 1},
    'addict': {'fear': 1, 'negative': 1},
    'hate': {'anger': 1, 'disgust': 1, 'negative': 1},
    'money': {'anger': 1, 'anticipation': 1, 'joy': 1, 'positive': 1, 'surprise': 1, 'trust': 1},
    'crash': {'fear': 1, 'negative': 1, 'sadness': 1},
    'bore': {'negative': 1, 'sadness': 1},
}


def main():
    configure_logging(settings.log_level)

    print("=" * 80)
    print("App Store reviews: term frequencies and emotions for two apps")
    print("=" * 80)

    # =========================================================================
    # 1. FETCH REVIEWS
    # =========================================================================
    print("\n[1] Fetching reviews...")
    print("-" * 80)

    reader = FeedReader()

    # Domain words every review mentions carry no information
    stopwords = default_stopwords(extra=['game', 'will', 'get', 'play', 'can', 'just'])
    pipeline = PreprocessingPipeline([
        ('replace_pattern', {'pattern': r'[/@|]'}),
        'lowercase',
        'remove_numbers',
        'remove_punctuation',
        ('remove_stopwords', {'stopwords': stopwords}),
        'strip_whitespace',
        'stem',
    ])

    corpora = []
    for name, app_id in APPS.items():
        corpus = ReviewCorpus(name, preprocessing_pipeline=pipeline)
        corpus.load(reader, app_id, pages=2)
        corpus.deduplicate(by='id')
        corpora.append(corpus)
        print(f"  • {name:15s}: {len(corpus):4d} reviews")

    # =========================================================================
    # 2. TERM FREQUENCIES
    # =========================================================================
    for corpus in corpora:
        print(f"\n[2] Term frequencies: {corpus.name}")
        print("-" * 80)

        matrix = corpus.build_index()
        table = total_frequency(matrix)

        print(f"Documents: {matrix.n_documents}, terms: {matrix.n_terms}")
        print("\nTop 10 terms:")
        for term, count in top_n(table, 10):
            print(f"  {term:15s} {count:4d}")

        frequent = sorted(terms_at_least(table, 10))
        print(f"\nTerms used at least 10 times: {', '.join(frequent)}")

        cloud = word_cloud_frequencies(table, max_words=50)
        print(f"Word cloud input: {len(cloud)} terms")

        if frequent:
            target = top_n(table, 1)[0][0]
            try:
                associated = correlations(matrix, target, 0.2)
            except NoVarianceError as e:
                print(f"\nNo associations: {e}")
            else:
                print(f"\nTerms associated with '{target}' (r >= 0.2):")
                for term, r in list(associated.items())[:10]:
                    print(f"  {term:15s} {r:.2f}")

    # =========================================================================
    # 3. SENTIMENT
    # =========================================================================
    print("\n[3] Emotion totals")
    print("-" * 80)

    if len(sys.argv) > 1:
        lexicon = EmotionLexicon.from_nrc_file(sys.argv[1])
    else:
        lexicon = EmotionLexicon(DEMO_LEXICON)

    scorer = SentimentScorer(lexicon)
    totals = compare_sentiment(corpora, scorer)
    print(sentiment_frame(totals))


if __name__ == "__main__":
    main()
