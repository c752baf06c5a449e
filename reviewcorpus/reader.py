"""
FeedReader: Retrieves app-store reviews from the iTunes customer-review feed.

This module abstracts away the feed's nested JSON layout and provides a clean
interface returning uniform Review records.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import settings
from .document import Review
from .exceptions import FetchError, SchemaError

logger = logging.getLogger(__name__)

# Marker present only on the app-metadata entry the feed puts first
_APP_ENTRY_KEY = 'im:name'

# Review field -> path to its 'label' inside a feed entry
_REQUIRED_FIELDS = {
    'author': ('author', 'name'),
    'version': ('im:version',),
    'id': ('id',),
    'title': ('title',),
    'body': ('content',),
}


class _TransientHTTPError(Exception):
    """Server-side HTTP status worth retrying."""

    def __init__(self, response):
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


def _snippet(payload: Any, length: Optional[int] = None) -> str:
    """Short printable excerpt of a payload for error messages."""
    length = length or settings.snippet_length
    if not isinstance(payload, str):
        try:
            payload = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError):
            payload = repr(payload)
    return payload[:length]


def _label(entry: Dict[str, Any], path: tuple) -> Any:
    """Follow `path` into a feed entry and return the final 'label' value."""
    node = entry
    for key in path + ('label',):
        if not isinstance(node, dict) or key not in node:
            raise KeyError('.'.join(path + ('label',)))
        node = node[key]
    return node


def build_feed_url(
    app_id: Union[str, int],
    page: int = 1,
    country: Optional[str] = None,
    sort_by: Optional[str] = None,
    template: Optional[str] = None
) -> str:
    """
    Build the customer-review feed URL for one page of an app's reviews.

    Args:
        app_id: Numeric App Store id of the app
        page: 1-based page number
        country: Store country code (defaults to settings)
        sort_by: Feed sort order (defaults to settings)
        template: URL template override

    Returns:
        The feed URL
    """
    if page < 1:
        raise ValueError(f"Page numbers start at 1, got {page}")
    template = template or settings.feed_url_template
    return template.format(
        app_id=app_id,
        page=page,
        country=country or settings.country,
        sort_by=sort_by or settings.sort_by,
    )


def parse_feed(payload: Any, endpoint: Optional[str] = None) -> List[Review]:
    """
    Parse a decoded feed payload into Review records.

    Args:
        payload: Decoded JSON of one feed page
        endpoint: Where the payload came from (for error context)

    Returns:
        Reviews in feed order; the app-metadata entry is skipped
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('feed'), dict):
        raise SchemaError("Payload has no 'feed' object", endpoint, _snippet(payload))

    entries = payload['feed'].get('entry')
    if entries is None:
        # Past the last page the feed simply has no entries
        return []
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        raise SchemaError("'feed.entry' is not a list", endpoint, _snippet(entries))

    reviews = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise SchemaError(f"Entry {position} is not an object", endpoint, _snippet(entry))
        if _APP_ENTRY_KEY in entry:
            logger.debug("Skipping app metadata entry at position %d", position)
            continue

        fields = {}
        for field_name, path in _REQUIRED_FIELDS.items():
            try:
                value = _label(entry, path)
            except KeyError as e:
                raise SchemaError(
                    f"Entry {position} is missing field '{e.args[0]}'",
                    endpoint, _snippet(entry)) from e
            if not isinstance(value, str):
                raise SchemaError(
                    f"Entry {position} field '{'.'.join(path + ('label',))}' is not a string",
                    endpoint, _snippet(entry))
            fields[field_name] = value

        rating = None
        if 'im:rating' in entry:
            try:
                rating = int(_label(entry, ('im:rating',)))
            except (KeyError, TypeError, ValueError) as e:
                raise SchemaError(
                    f"Entry {position} has an invalid rating",
                    endpoint, _snippet(entry)) from e

        reviews.append(Review(rating=rating, **fields))

    return reviews


class FeedReader:
    """
    Fetches review feeds over HTTP.

    Transient failures (connection errors, timeouts, HTTP 5xx) are retried
    with exponential backoff; anything else fails immediately.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        retry_backoff: Optional[float] = None,
        country: Optional[str] = None
    ):
        """
        Initialize the feed reader.

        Args:
            session: HTTP session to use (a new requests.Session if None)
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            retry_delay: Base delay between attempts
            retry_backoff: Exponential base for the delay
            country: Store country code for app feeds
        """
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.max_retries = max(1, max_retries if max_retries is not None else settings.max_retries)
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.retry_backoff
        self.country = country or settings.country

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_delay, exp_base=self.retry_backoff,
                                  max=self.retry_delay * 10),
            retry=retry_if_exception_type(
                (requests.ConnectionError, requests.Timeout, _TransientHTTPError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _request(self, endpoint: str):
        response = self.session.get(
            endpoint,
            timeout=self.timeout,
            headers={'User-Agent': settings.user_agent},
        )
        if response.status_code >= 500:
            raise _TransientHTTPError(response)
        return response

    def _get_json(self, endpoint: str) -> Any:
        """GET an endpoint and decode its JSON body."""
        try:
            response = self._retrying()(self._request, endpoint)
        except _TransientHTTPError as e:
            raise FetchError(
                f"Server error {e.response.status_code} after {self.max_retries} attempts",
                endpoint, _snippet(e.response.text)) from e
        except requests.RequestException as e:
            raise FetchError(f"Request failed: {e}", endpoint) from e

        if response.status_code >= 400:
            raise FetchError(f"HTTP {response.status_code}", endpoint, _snippet(response.text))

        try:
            return response.json()
        except ValueError as e:
            raise FetchError("Malformed JSON", endpoint, _snippet(response.text)) from e

    def fetch(self, endpoint: str) -> List[Review]:
        """
        Fetch and parse a single feed page.

        Args:
            endpoint: Feed URL

        Returns:
            List of Review records
        """
        payload = self._get_json(endpoint)
        reviews = parse_feed(payload, endpoint=endpoint)
        logger.info(f"Fetched {len(reviews)} reviews from {endpoint}")
        return reviews

    def fetch_app(self, app_id: Union[str, int], pages: int = 1,
                  sort_by: Optional[str] = None) -> List[Review]:
        """
        Fetch consecutive feed pages for an app.

        Stops early at the first page with no reviews.

        Args:
            app_id: Numeric App Store id of the app
            pages: Number of pages to request
            sort_by: Feed sort order

        Returns:
            Reviews from all pages, in page order
        """
        if pages < 1:
            raise ValueError(f"pages must be at least 1, got {pages}")

        reviews: List[Review] = []
        for page in range(1, pages + 1):
            endpoint = build_feed_url(app_id, page=page, country=self.country, sort_by=sort_by)
            page_reviews = self.fetch(endpoint)
            if not page_reviews:
                logger.debug("Page %d of app %s is empty, stopping", page, app_id)
                break
            reviews.extend(page_reviews)

        logger.info(f"Collected {len(reviews)} reviews for app {app_id}")
        return reviews

    @staticmethod
    def load_json(path: Union[str, Path]) -> List[Review]:
        """
        Parse a feed payload previously saved to disk.

        Args:
            path: Path to the JSON file

        Returns:
            List of Review records
        """
        path = Path(path)
        text = path.read_text(encoding='utf-8')
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise FetchError("Malformed JSON", str(path), _snippet(text)) from e
        return parse_feed(payload, endpoint=str(path))


def fetch(endpoint: str) -> List[Review]:
    """Fetch one feed page with a default FeedReader."""
    return FeedReader().fetch(endpoint)
