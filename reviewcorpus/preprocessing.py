"""
PreprocessingPipeline: Manages text cleaning and normalization operations.

Provides an ordered, validated pipeline of named transformation steps.
Steps run exactly in the order given; the pipeline never reorders them.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import nltk
from nltk.corpus import stopwords
from nltk.stem import PorterStemmer, SnowballStemmer

from .config import settings
from .document import Document
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


def _ensure_stopwords():
    """Make sure the nltk stopword corpus is available."""
    try:
        nltk.data.find('corpora/stopwords')
    except LookupError:
        logger.info("Downloading nltk stopwords corpus")
        nltk.download('stopwords', quiet=True)


def default_stopwords(extra: Iterable[str] = (), language: Optional[str] = None) -> frozenset:
    """
    Standard stopword list, optionally extended with domain words.

    Args:
        extra: Additional stopwords (e.g. "game", "will", "get")
        language: nltk stopword language (defaults to settings)

    Returns:
        Frozen set of stopwords
    """
    language = language or settings.stopword_language
    _ensure_stopwords()
    try:
        words = set(stopwords.words(language))
    except OSError as e:
        raise ConfigError(f"Unknown stopword language: {language}") from e
    words.update(extra)
    return frozenset(words)


class PreprocessingStep(ABC):
    """Abstract base class for preprocessing steps."""

    name: str = ''

    @abstractmethod
    def process(self, text: str) -> str:
        """Process the text and return the result."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PatternReplacer(PreprocessingStep):
    """Replaces every match of a regular expression (e.g. "/", "@", "|")."""

    name = 'replace_pattern'

    def __init__(self, pattern: str, replacement: str = ' '):
        if not isinstance(pattern, str) or not pattern:
            raise ConfigError("replace_pattern needs a non-empty string pattern")
        if not isinstance(replacement, str):
            raise ConfigError("replace_pattern replacement must be a string")
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid pattern {pattern!r}: {e}") from e
        self.replacement = replacement

    def process(self, text: str) -> str:
        """Replace pattern matches."""
        return self.pattern.sub(lambda _: self.replacement, text)

    def __repr__(self) -> str:
        return f"PatternReplacer({self.pattern.pattern!r}, {self.replacement!r})"


class LowercaseConverter(PreprocessingStep):
    """Case folds text."""

    name = 'lowercase'

    def process(self, text: str) -> str:
        """Convert to lowercase."""
        return text.casefold()


class NumberRemover(PreprocessingStep):
    """Removes digit characters from text."""

    name = 'remove_numbers'

    def __init__(self):
        self.number_pattern = re.compile(r'\d+')

    def process(self, text: str) -> str:
        """Remove numbers."""
        return self.number_pattern.sub('', text)


class PunctuationRemover(PreprocessingStep):
    """Removes every character that is neither alphanumeric nor whitespace."""

    name = 'remove_punctuation'

    def __init__(self):
        self.punctuation_pattern = re.compile(r'[^\w\s]|_')

    def process(self, text: str) -> str:
        """Remove punctuation."""
        return self.punctuation_pattern.sub('', text)


class StopwordRemover(PreprocessingStep):
    """
    Drops whole tokens found in the stopword set.

    Matching is exact, so text should be lowercased first.
    """

    name = 'remove_stopwords'

    def __init__(self, stopwords: Optional[Iterable[str]] = None,
                 extra: Iterable[str] = (), language: Optional[str] = None):
        """
        Initialize stopword remover.

        Args:
            stopwords: Complete stopword set; nltk's list when None
            extra: Additional stopwords to remove
            language: Language for nltk stopwords
        """
        if isinstance(stopwords, str) or isinstance(extra, str):
            raise ConfigError("Stopwords must be a collection of strings, not a string")
        if stopwords is None:
            words = set(default_stopwords(language=language))
        else:
            words = set(stopwords)
        words.update(extra)
        if not all(isinstance(word, str) for word in words):
            raise ConfigError("Stopwords must all be strings")
        self.stopwords = frozenset(words)

    def process(self, text: str) -> str:
        """Remove stopwords."""
        return ' '.join(word for word in text.split() if word not in self.stopwords)

    def __repr__(self) -> str:
        return f"StopwordRemover({len(self.stopwords)} words)"


class ExtraWhitespaceRemover(PreprocessingStep):
    """Removes extra whitespace from text."""

    name = 'strip_whitespace'

    def process(self, text: str) -> str:
        """Remove extra whitespace."""
        # Replace multiple spaces with single space
        text = re.sub(r'\s+', ' ', text)
        # Strip leading/trailing whitespace
        return text.strip()


class Stemmer(PreprocessingStep):
    """Applies stemming to reduce words to their root form."""

    name = 'stem'

    def __init__(self, algorithm: Optional[str] = None, stemmer=None):
        """
        Initialize stemmer.

        Args:
            algorithm: Either 'porter' or 'snowball'
            stemmer: Any object with a `stem(token) -> str` method; takes
                     precedence over `algorithm`
        """
        if stemmer is not None:
            if not callable(getattr(stemmer, 'stem', None)):
                raise ConfigError("Stemmer must provide a stem(token) method")
            self.stemmer = stemmer
            return

        algorithm = algorithm or settings.stemmer
        if algorithm == 'porter':
            self.stemmer = PorterStemmer()
        elif algorithm == 'snowball':
            self.stemmer = SnowballStemmer('english')
        else:
            raise ConfigError(f"Unknown stemming algorithm: {algorithm}")

    def process(self, text: str) -> str:
        """Apply stemming."""
        return ' '.join(self.stemmer.stem(word) for word in text.split())

    def __repr__(self) -> str:
        return f"Stemmer({type(self.stemmer).__name__})"


StepSpec = Union[str, Tuple[str, Dict], PreprocessingStep]


class PreprocessingPipeline:
    """
    Applies an ordered series of text preprocessing operations.

    Steps are given by name, as (name, params) pairs, or as ready-made
    step instances. Configuration problems surface here, at construction.
    """

    # Registry of available preprocessing steps
    STEP_REGISTRY: Dict[str, Callable[..., PreprocessingStep]] = {
        'replace_pattern': PatternReplacer,
        'lowercase': LowercaseConverter,
        'remove_numbers': NumberRemover,
        'remove_stopwords': StopwordRemover,
        'remove_punctuation': PunctuationRemover,
        'strip_whitespace': ExtraWhitespaceRemover,
        'stem': Stemmer,
    }

    DEFAULT_STEPS: List[StepSpec] = [
        ('replace_pattern', {'pattern': r'[/@|]'}),
        'lowercase',
        'remove_numbers',
        'remove_stopwords',
        'remove_punctuation',
        'strip_whitespace',
    ]

    def __init__(self, steps: Optional[Sequence[StepSpec]] = None):
        """
        Initialize preprocessing pipeline.

        Args:
            steps: Steps to execute in order. If None, uses a default pipeline.
        """
        if steps is None:
            steps = self.DEFAULT_STEPS
        if isinstance(steps, (str, PreprocessingStep)):
            raise ConfigError("Pipeline steps must be given as a sequence")

        self.steps: List[PreprocessingStep] = [self._build_step(spec) for spec in steps]
        self._check_order()

    @property
    def step_names(self) -> List[str]:
        """Names of the configured steps, in execution order."""
        return [step.name for step in self.steps]

    @classmethod
    def _build_step(cls, spec: StepSpec) -> PreprocessingStep:
        """Turn a step specification into a step instance."""
        if isinstance(spec, PreprocessingStep):
            return spec

        if isinstance(spec, str):
            step_name, params = spec, {}
        elif isinstance(spec, (tuple, list)) and len(spec) == 2 and isinstance(spec[1], dict):
            step_name, params = spec
        else:
            raise ConfigError(f"Invalid preprocessing step specification: {spec!r}")

        if step_name not in cls.STEP_REGISTRY:
            raise ConfigError(f"Unknown preprocessing step: {step_name}")

        try:
            return cls.STEP_REGISTRY[step_name](**params)
        except TypeError as e:
            raise ConfigError(f"Invalid parameters for step '{step_name}': {e}") from e

    def _check_order(self):
        """Warn about orderings that are almost certainly mistakes."""
        names = self.step_names
        if 'remove_stopwords' in names and 'lowercase' in names:
            if names.index('remove_stopwords') < names.index('lowercase'):
                logger.warning(
                    "remove_stopwords runs before lowercase; capitalized "
                    "stopwords will be kept")

    def process(self, text: str) -> str:
        """
        Execute the configured pipeline on the given text.

        Args:
            text: Raw input text

        Returns:
            Processed text after applying all steps
        """
        if not isinstance(text, str):
            raise TypeError(f"Expected text as str, got {type(text).__name__}")
        for step in self.steps:
            text = step.process(text)
        return text

    def process_document(self, doc: Document) -> Document:
        """Run every step on a Document, returning the final Document."""
        for step in self.steps:
            doc = doc.apply(step)
        return doc

    def trace(self, text: str) -> List[Tuple[str, str]]:
        """
        Show the text after every step.

        Returns:
            List of (step_name, text) pairs, starting with ('input', text)
        """
        doc = Document(doc_id='trace', text=text)
        stages = [('input', doc.text)]
        for step in self.steps:
            doc = doc.apply(step)
            stages.append((step.name, doc.text))
        return stages

    def process_batch(self, texts: Iterable[str], show_progress: bool = False) -> List[str]:
        """
        Normalize many texts in order.

        Args:
            texts: Raw input texts
            show_progress: Whether to show progress bar

        Returns:
            Normalized texts, same order as the input
        """
        if show_progress:
            from tqdm import autonotebook
            texts = autonotebook.tqdm(texts, desc="Normalizing documents")
        return [self.process(text) for text in texts]

    def add_step(self, step: StepSpec, position: Optional[int] = None):
        """
        Add a preprocessing step to the pipeline.

        Args:
            step: Step specification (name, (name, params) or instance)
            position: Position to insert (None = append to end)
        """
        built = self._build_step(step)

        if position is None:
            self.steps.append(built)
        else:
            self.steps.insert(position, built)
        self._check_order()

    def remove_step(self, step_name: str):
        """Remove the first step with the given name."""
        names = self.step_names
        if step_name in names:
            del self.steps[names.index(step_name)]

    def __repr__(self) -> str:
        return f"PreprocessingPipeline(steps={self.step_names})"


def normalize(body: str, pipeline: Union[PreprocessingPipeline, Sequence[StepSpec]]) -> str:
    """
    Normalize one review body.

    Args:
        body: Raw text; never modified
        pipeline: A PreprocessingPipeline or a sequence of step specifications

    Returns:
        The normalized text
    """
    if not isinstance(pipeline, PreprocessingPipeline):
        pipeline = PreprocessingPipeline(pipeline)
    return pipeline.process(body)
