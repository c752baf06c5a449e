"""Shared fixtures for reviewcorpus tests."""

import json

import pytest

from reviewcorpus.reader import FeedReader


def make_entry(review_id, body, author="someone", version="1.0", title="Title", rating="5"):
    """Build one review entry in the feed's layout."""
    entry = {
        "author": {"name": {"label": author}, "uri": {"label": "https://example.invalid"}},
        "im:version": {"label": version},
        "id": {"label": review_id},
        "title": {"label": title},
        "content": {"label": body, "attributes": {"type": "text"}},
    }
    if rating is not None:
        entry["im:rating"] = {"label": rating}
    return entry


APP_ENTRY = {
    "im:name": {"label": "Some Game"},
    "im:artist": {"label": "Some Studio"},
    "id": {"label": "https://apps.apple.com/us/app/id123", "attributes": {"im:id": "123"}},
    "title": {"label": "Some Game - Some Studio"},
}


@pytest.fixture
def feed_payload():
    return {
        "feed": {
            "author": {"name": {"label": "iTunes Store"}},
            "entry": [
                APP_ENTRY,
                make_entry("101", "i love the GAME!! 123", author="ann", version="2.1", rating="5"),
                make_entry("102", "i HATE the game.", author="bob", version="2.0", rating="1"),
            ],
        }
    }


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Returns (or raises) the queued outcomes one call at a time."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, timeout=None, headers=None):
        self.calls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def make_reader():
    """Reader over a fake session that never sleeps between retries."""
    def factory(outcomes, max_retries=3):
        session = FakeSession(outcomes)
        reader = FeedReader(session=session, max_retries=max_retries,
                            retry_delay=0, country="us")
        return reader, session
    return factory


@pytest.fixture
def example_texts():
    return ["i love the GAME!! 123", "i HATE the game."]


@pytest.fixture
def example_steps():
    return [
        "lowercase",
        "remove_numbers",
        "remove_punctuation",
        ("remove_stopwords", {"stopwords": {"the", "i"}}),
        "strip_whitespace",
    ]
