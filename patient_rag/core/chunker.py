"""
Sentence-first text chunker built on RecursiveCharacterTextSplitter.

Whitespace is normalized to single spaces, then the splitter breaks the text
on sentence terminators first (". ", "! ", "? "), falling back to words and
finally characters for a single word longer than a chunk. Consecutive chunks
share whole trailing splits of at most ``overlap`` characters.

On top of the splitter:
- chunks shorter than ``min_chunk_length`` are merged into or topped up from
  the following chunk, so only the last chunk may be short
- a document shorter than ``min_chunk_length`` yields no chunk
- at most ``max_chunks`` chunks and ``max_text_chars`` input characters

Dependencies: langchain_text_splitters, patient_rag.models.chunk
System role: First stage of the ingestion pipeline
"""

import logging

from langchain_text_splitters import RecursiveCharacterTextSplitter

from patient_rag.configs.retrieval import RetrievalSettings
from patient_rag.core.exceptions import InvalidParameterError
from patient_rag.models.chunk import DocumentChunk

logger = logging.getLogger(__name__)

# Terminators must be followed by a space, so decimals like "2.4" stay in one sentence.
SENTENCE_SEPARATORS = [". ", "! ", "? ", " ", ""]

DEFAULT_MAX_CHUNKS = 10_000
DEFAULT_MAX_TEXT_CHARS = 50 * 1024 * 1024


def _validate_policy(chunk_size: int, overlap: int, min_chunk_length: int) -> None:
    if chunk_size <= 0:
        raise InvalidParameterError(
            "chunk_size must be positive", field="chunk_size", details={"chunk_size": chunk_size}
        )
    if overlap < 0 or overlap >= chunk_size:
        raise InvalidParameterError(
            "overlap must satisfy 0 <= overlap < chunk_size",
            field="overlap",
            details={"overlap": overlap, "chunk_size": chunk_size},
        )
    if min_chunk_length < 0:
        raise InvalidParameterError("min_chunk_length must be non-negative", field="min_chunk_length")


def _build_splitter(chunk_size: int, overlap: int) -> RecursiveCharacterTextSplitter:
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=overlap,
        separators=SENTENCE_SEPARATORS,
        keep_separator="end",
        add_start_index=True,
        length_function=len,
    )


def _word_boundary(text: str, start: int, limit: int) -> int:
    """End of the longest word-aligned prefix of text[start:] not exceeding limit."""
    if limit >= len(text):
        return len(text)
    boundary = text.rfind(" ", start, limit + 1)
    return boundary if boundary > start else start


def _absorb_short_chunks(
    text: str,
    spans: list[tuple[int, int]],
    chunk_size: int,
    min_chunk_length: int,
) -> list[tuple[int, int]]:
    """
    Merge chunks below min_chunk_length forward.

    Spans are (start, end) offsets into text. A short chunk swallows the next
    one when both fit in chunk_size; otherwise it takes the leading words of
    the next chunk, which keeps the rest.
    """
    result: list[tuple[int, int]] = []
    index = 0
    while index < len(spans):
        start, end = spans[index]
        if end - start >= min_chunk_length or index == len(spans) - 1:
            result.append((start, end))
            index += 1
            continue

        next_start, next_end = spans[index + 1]
        if next_end - start <= chunk_size:
            spans[index + 1] = (start, next_end)
            index += 1
            continue

        cut = _word_boundary(text, start, start + chunk_size)
        if cut <= end:
            # The next chunk's first word does not fit.
            result.append((start, end))
        else:
            result.append((start, cut))
            spans[index + 1] = (max(next_start, cut + 1), next_end)
        index += 1
    return result


def chunk_text(
    text: str,
    chunk_size: int = 500,
    overlap: int = 50,
    min_chunk_length: int = 50,
    max_chunks: int = DEFAULT_MAX_CHUNKS,
    max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
) -> list[str]:
    """
    Split text into overlapping, sentence-bounded chunks.

    Args:
        text: Document text
        chunk_size: Maximum characters per chunk
        overlap: Maximum characters of trailing text carried into the next chunk
        min_chunk_length: Minimum viable chunk length
        max_chunks: Hard cap on produced chunks
        max_text_chars: Input beyond this length is dropped before chunking

    Returns:
        list[str]: Chunks in document order

    Raises:
        InvalidParameterError: Empty text or invalid size/overlap
    """
    chunker = SentenceChunker(
        chunk_size=chunk_size,
        overlap=overlap,
        min_chunk_length=min_chunk_length,
        max_chunks=max_chunks,
        max_text_chars=max_text_chars,
    )
    return chunker.chunk(text)


class SentenceChunker:
    """
    Chunker bound to a fixed size/overlap policy.

    Example:
        >>> chunker = SentenceChunker(chunk_size=500, overlap=50)
        >>> chunks = chunker.build_chunks("p1", "labs.txt", "Troponin I elevated at 2.4 ng/mL. ...")
    """

    def __init__(
        self,
        chunk_size: int = 500,
        overlap: int = 50,
        min_chunk_length: int = 50,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
    ) -> None:
        """
        Initialize chunker with a validated policy.

        Raises:
            InvalidParameterError: When chunk_size/overlap are inconsistent
        """
        _validate_policy(chunk_size, overlap, min_chunk_length)
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.min_chunk_length = min_chunk_length
        self.max_chunks = max_chunks
        self.max_text_chars = max_text_chars
        self._splitter = _build_splitter(chunk_size, overlap)

    @classmethod
    def from_settings(cls, settings: RetrievalSettings) -> "SentenceChunker":
        return cls(
            chunk_size=settings.chunk_size,
            overlap=settings.chunk_overlap,
            min_chunk_length=settings.min_chunk_length,
            max_chunks=settings.max_chunks,
            max_text_chars=settings.max_text_chars,
        )

    def chunk(self, text: str) -> list[str]:
        """
        Split text with this chunker's policy.

        Raises:
            InvalidParameterError: When text is empty or whitespace
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidParameterError("Text to chunk must be a non-empty string", field="text")

        if len(text) > self.max_text_chars:
            logger.warning(
                f"{__name__}:chunk - Text too large ({len(text)} chars), "
                f"truncating to {self.max_text_chars} chars"
            )
            text = text[:self.max_text_chars]

        normalized = " ".join(text.split())
        if len(normalized) < self.min_chunk_length:
            logger.info(
                f"{__name__}:chunk - Document shorter than minimum chunk length "
                f"({self.min_chunk_length}), nothing to index"
            )
            return []

        documents = self._splitter.create_documents([normalized])
        spans = [
            (doc.metadata["start_index"], doc.metadata["start_index"] + len(doc.page_content))
            for doc in documents
        ]
        spans = _absorb_short_chunks(normalized, spans, self.chunk_size, self.min_chunk_length)

        if len(spans) > self.max_chunks:
            logger.warning(
                f"{__name__}:chunk - Reached maximum chunk limit ({self.max_chunks}), "
                f"dropping {len(spans) - self.max_chunks} chunks"
            )
            spans = spans[:self.max_chunks]

        chunks = [normalized[start:end] for start, end in spans]
        logger.debug(f"{__name__}:chunk - Created {len(chunks)} chunks from {len(normalized)} characters")
        return chunks

    def build_chunks(self, patient_id: str, document_name: str, text: str) -> list[DocumentChunk]:
        """
        Split text and wrap each piece as a DocumentChunk with a deterministic ID.

        Args:
            patient_id: Owning patient
            document_name: Source document name
            text: Extracted document text

        Returns:
            list[DocumentChunk]: Chunks in document order
        """
        pieces = self.chunk(text)
        total = len(pieces)
        return [
            DocumentChunk.create(
                text=piece,
                patient_id=patient_id,
                document_name=document_name,
                chunk_index=index,
                total_chunks=total,
            )
            for index, piece in enumerate(pieces)
        ]
