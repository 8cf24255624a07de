"""
Test suite for deterministic local hash embeddings.

Covers dimension, normalization, determinism within and across processes and
similarity behaviour on near-duplicate versus unrelated text.
"""

import json
import os
import subprocess
import sys

import numpy as np
import pytest

from patient_rag.boundary.embeddings.local_embeddings import LocalHashEmbeddings, hash_embedding


def _cosine(a: list[float], b: list[float]) -> float:
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


class TestHashEmbedding:
    """Test suite for hash_embedding."""

    @pytest.mark.parametrize("dimension", [8, 384, 1024])
    def test_should_return_unit_vector_of_requested_dimension(self, dimension: int) -> None:
        # Act
        vector = hash_embedding("Troponin I elevated at 2.4 ng/mL", dimension)

        # Assert
        assert len(vector) == dimension
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    def test_same_input_should_give_identical_vectors(self) -> None:
        assert hash_embedding("Lactate 3.1 mmol/L", 256) == hash_embedding("Lactate 3.1 mmol/L", 256)

    def test_should_be_identical_across_processes(self) -> None:
        # Arrange
        script = (
            "import json; from patient_rag.boundary.embeddings.local_embeddings import hash_embedding; "
            "print(json.dumps(hash_embedding('Creatinine rising, hold nephrotoxins', 32)))"
        )
        expected = hash_embedding("Creatinine rising, hold nephrotoxins", 32)

        # Act
        outputs = []
        for seed in ("1", "2"):
            env = {**os.environ, "PYTHONHASHSEED": seed}
            completed = subprocess.run(
                [sys.executable, "-c", script], capture_output=True, text=True, env=env, check=True
            )
            outputs.append(json.loads(completed.stdout))

        # Assert
        assert outputs[0] == expected
        assert outputs[1] == expected

    def test_near_duplicates_should_score_higher_than_unrelated_text(self) -> None:
        # Arrange
        base = hash_embedding("Troponin I elevated at 2.4 ng/mL on admission", 256)
        near = hash_embedding("Troponin I elevated at 2.5 ng/mL on admission", 256)
        unrelated = hash_embedding("Patient ambulating independently, diet tolerated well", 256)

        # Act / Assert
        assert _cosine(base, near) > _cosine(base, unrelated)

    def test_should_be_case_insensitive(self) -> None:
        assert hash_embedding("SEPSIS BUNDLE", 64) == hash_embedding("sepsis bundle", 64)

    @pytest.mark.parametrize("text", ["", "   ", "!!! ???"])
    def test_featureless_text_should_map_to_first_basis_vector(self, text: str) -> None:
        # Act
        vector = hash_embedding(text, 16)

        # Assert
        assert vector[0] == 1.0
        assert sum(abs(v) for v in vector[1:]) == 0.0

    def test_non_positive_dimension_should_raise(self) -> None:
        with pytest.raises(ValueError):
            hash_embedding("text", 0)


class TestLocalHashEmbeddings:
    """Test suite for the LangChain Embeddings adapter."""

    def test_embed_documents_should_match_embed_query(self) -> None:
        # Arrange
        embeddings = LocalHashEmbeddings(dimension=32)

        # Act
        documents = embeddings.embed_documents(["alpha", "beta"])

        # Assert
        assert documents == [embeddings.embed_query("alpha"), embeddings.embed_query("beta")]

    @pytest.mark.asyncio
    async def test_async_embed_query_should_match_sync(self) -> None:
        embeddings = LocalHashEmbeddings(dimension=32)

        assert await embeddings.aembed_query("gamma") == embeddings.embed_query("gamma")
