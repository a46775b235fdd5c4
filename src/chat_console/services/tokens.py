"""Token count estimation backed by tiktoken.

Estimators never raise: an estimator whose encoding cannot be loaded
(missing tokenizer file, no network for a named encoding) is reported as
unavailable and estimates 0. Which estimator serves which model is an
explicit list of model-name glob patterns.
"""

import logging
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Protocol

import tiktoken
from tiktoken.load import load_tiktoken_bpe

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"

# Pre-tokenization pattern and special tokens of the Llama 3 tokenizer
LLAMA3_PATTERN = (
    r"(?i:'s|'t|'re|'ve|'m|'ll|'d)|[^\r\n\p{L}\p{N}]?\p{L}+|\p{N}{1,3}"
    r"| ?[^\s\p{L}\p{N}]+[\r\n]*|\s*[\r\n]+|\s+(?!\S)|\s+"
)
LLAMA3_NUM_RESERVED_SPECIAL_TOKENS = 256
LLAMA3_SPECIAL_TOKENS = [
    "<|begin_of_text|>",
    "<|end_of_text|>",
    "<|reserved_special_token_0|>",
    "<|reserved_special_token_1|>",
    "<|finetune_right_pad_id|>",
    "<|step_id|>",
    "<|start_header_id|>",
    "<|end_header_id|>",
    "<|eom_id|>",
    "<|eot_id|>",
    "<|python_tag|>",
]


class TokenEstimator(Protocol):
    """Estimates the number of tokens in a text."""

    @property
    def available(self) -> bool: ...

    def estimate(self, text: str) -> int: ...


def load_llama3_encoding(path: Path) -> tiktoken.Encoding:
    """Build the Llama 3 encoding from a tiktoken-format BPE file.

    Args:
        path: Path to the model's tokenizer.model file

    Returns:
        tiktoken.Encoding for Llama 3 models

    Raises:
        FileNotFoundError: If the tokenizer file doesn't exist
    """
    if not path.is_file():
        raise FileNotFoundError(f"Tokenizer file not found: {path}")

    mergeable_ranks = load_tiktoken_bpe(str(path))
    num_base_tokens = len(mergeable_ranks)
    special_tokens = LLAMA3_SPECIAL_TOKENS + [
        f"<|reserved_special_token_{i}|>"
        for i in range(2, LLAMA3_NUM_RESERVED_SPECIAL_TOKENS - len(LLAMA3_SPECIAL_TOKENS) + 2)
    ]

    return tiktoken.Encoding(
        name=path.name,
        pat_str=LLAMA3_PATTERN,
        mergeable_ranks=mergeable_ranks,
        special_tokens={token: num_base_tokens + i for i, token in enumerate(special_tokens)},
    )


def load_named_encoding(name: str) -> tiktoken.Encoding:
    """Load one of tiktoken's registered encodings (e.g. cl100k_base)."""
    return tiktoken.get_encoding(name)


class TiktokenEstimator:
    """Token estimator over a lazily loaded tiktoken encoding.

    The encoding is loaded on first use. If loading fails the estimator
    stays unavailable for the rest of the run and estimates 0.

    Attributes:
        name: Label used in log messages
    """

    def __init__(self, name: str, loader: Callable[[], tiktoken.Encoding]) -> None:
        self.name = name
        self._loader = loader
        self._encoding: tiktoken.Encoding | None = None
        self._load_failed = False

    def _get_encoding(self) -> tiktoken.Encoding | None:
        if self._encoding is None and not self._load_failed:
            try:
                self._encoding = self._loader()
                logger.info(f"Loaded tokenizer {self.name}")
            except Exception as e:
                self._load_failed = True
                logger.warning(
                    f"Tokenizer {self.name} could not be loaded, "
                    f"token estimates will be unavailable: {e}"
                )
        return self._encoding

    @property
    def available(self) -> bool:
        return self._get_encoding() is not None

    def estimate(self, text: str) -> int:
        """Count the tokens of a text.

        Returns:
            The token count, or 0 for blank text or an unavailable encoding
        """
        encoding = self._get_encoding()
        if encoding is None or not text.strip():
            return 0
        # Special-token markup inside a conversation is counted as plain text
        return len(encoding.encode(text, disallowed_special=()))


class TokenEstimatorRegistry:
    """Maps model-name patterns to token estimators.

    Patterns are shell-style globs checked in registration order; the
    first match wins and the default estimator serves everything else.
    """

    def __init__(
        self,
        default: TokenEstimator,
        patterns: list[tuple[str, TokenEstimator]] | None = None,
    ) -> None:
        self.default = default
        self._patterns: list[tuple[str, TokenEstimator]] = list(patterns or [])

    def register(self, pattern: str, estimator: TokenEstimator) -> None:
        self._patterns.append((pattern, estimator))

    def resolve(self, model_name: str) -> TokenEstimator:
        for pattern, estimator in self._patterns:
            if fnmatchcase(model_name, pattern):
                return estimator
        return self.default


def build_estimator_registry(tokenizer_path: Path) -> TokenEstimatorRegistry:
    """Create the default registry: Llama 3 models use the local tokenizer file.

    Args:
        tokenizer_path: Path to the Llama 3 tokenizer.model file

    Returns:
        TokenEstimatorRegistry with a cl100k_base default
    """
    llama3 = TiktokenEstimator(
        name=tokenizer_path.name,
        loader=lambda: load_llama3_encoding(tokenizer_path),
    )
    registry = TokenEstimatorRegistry(
        default=TiktokenEstimator(
            name=DEFAULT_ENCODING,
            loader=lambda: load_named_encoding(DEFAULT_ENCODING),
        )
    )
    registry.register("llama3*", llama3)
    return registry
