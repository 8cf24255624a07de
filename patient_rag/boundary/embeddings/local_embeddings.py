"""
Deterministic hash-based embeddings for offline operation.

Last link of the provider chain. Needs no network and no model weights.
Three feature families are hashed into signed positions of the output vector:

- character trigrams of the normalized text
- words, weighted towards the start of the text
- adjacent word pairs

Hashes use blake2b with a per-family personalization string, so the output is
identical across processes and interpreter runs (Python's ``hash`` is salted
per process and must not be used here). The vector is L2-normalized, so cosine
similarity reflects shared features: near-duplicate texts score higher than
unrelated texts. It is not a substitute for a trained model.

Dependencies: numpy, hashlib, langchain_core
System role: Offline embedding fallback
"""

import hashlib
import math
import re

import numpy as np
from langchain_core.embeddings import Embeddings

_TOKEN = re.compile(r"\w+")

CHAR_WEIGHT = 0.5
WORD_WEIGHT = 1.0
BIGRAM_WEIGHT = 0.75


def _stable_hash(feature: str, family: bytes) -> int:
    digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8, person=family).digest()
    return int.from_bytes(digest, "little")


def _scatter(vector: np.ndarray, feature: str, family: bytes, weight: float) -> None:
    value = _stable_hash(feature, family)
    index = value % vector.shape[0]
    sign = -1.0 if value >> 63 else 1.0
    vector[index] += sign * weight


def hash_embedding(text: str, dimension: int) -> list[float]:
    """
    Embed text into a unit vector of the given dimension.

    Args:
        text: Input text (any length; callers truncate upstream)
        dimension: Output length

    Returns:
        list[float]: L2-normalized vector; empty or symbol-only text maps to
        the first basis vector
    """
    if dimension <= 0:
        raise ValueError(f"dimension must be positive, got {dimension}")

    vector = np.zeros(dimension, dtype=np.float64)
    words = _TOKEN.findall(text.lower())
    normalized = " ".join(words)

    padded = f" {normalized} "
    for start in range(len(padded) - 2):
        _scatter(vector, padded[start:start + 3], b"char3", CHAR_WEIGHT)

    for position, word in enumerate(words):
        weight = WORD_WEIGHT * (1.0 + 0.5 / math.sqrt(position + 1))
        _scatter(vector, word, b"word", weight)

    for first, second in zip(words, words[1:]):
        _scatter(vector, f"{first} {second}", b"bigram", BIGRAM_WEIGHT)

    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        vector[0] = 1.0
        return vector.tolist()
    return (vector / norm).tolist()


class LocalHashEmbeddings(Embeddings):
    """LangChain Embeddings interface over hash_embedding."""

    def __init__(self, dimension: int = 1024) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self.dimension = dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [hash_embedding(text, self.dimension) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return hash_embedding(text, self.dimension)
