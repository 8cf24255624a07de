"""
S3 Vectors store for production retrieval.

Talks to Amazon S3 Vectors through the boto3 ``s3vectors`` client. Every query
carries a ``patient_id`` metadata filter; listing and deletes are scoped the
same way on the client side because ListVectors has no filter.

Metadata Keys (matching the index definition created here):
- Filterable: patient_id, document_name, chunk_index, total_chunks,
  created_at, embedding_provider
- Non-filterable: content

Throttled calls are retried with exponential backoff. Any other AWS failure
degrades the operation (0 / [] / False) with a logged warning.

Dependencies: boto3, botocore, tenacity
System role: Production vector store (S3 Vectors)
"""

import asyncio
import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from patient_rag.boundary.vdb.base import VectorStoreAdapter
from patient_rag.boundary.vdb.vector_schemas import PatientFilter, VectorMetadata, VectorRecord
from patient_rag.core.exceptions import BackendUnavailableError
from patient_rag.models.retrieval import RetrievalMatch

load_dotenv()
logger = logging.getLogger(__name__)

# Service limits per PutVectors / DeleteVectors / ListVectors call.
WRITE_BATCH_SIZE = 500
LIST_PAGE_SIZE = 1000

_THROTTLING_CODES = frozenset(
    {"ThrottlingException", "TooManyRequestsException", "ServiceUnavailableException", "SlowDown"}
)
_NOT_FOUND_CODES = frozenset({"NotFoundException", "ResourceNotFoundException"})
_BACKEND_ERRORS = (ClientError, BotoCoreError, BackendUnavailableError)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _is_throttling(error: BaseException) -> bool:
    return isinstance(error, ClientError) and _error_code(error) in _THROTTLING_CODES


def _batched(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class S3VectorsStore(VectorStoreAdapter):
    """
    S3 Vectors store with patient filtering for multi-tenant isolation.

    The boto3 client can be injected (tests pass a MagicMock); otherwise it is
    created on first use so that constructing the store never touches AWS.
    """

    def __init__(
        self,
        vectors_bucket: str = "healthcare-rag-vectors",
        index_name: str = "healthcare-rag",
        region: str = "us-east-1",
        dimension: int = 1024,
        strict_dimensions: bool = True,
        max_top_k: int = 30,
        create_index_if_missing: bool = True,
        client: Any | None = None,
    ) -> None:
        """
        Initialize S3 Vectors store.

        Args:
            vectors_bucket: S3 Vectors bucket name
            index_name: Index name within the bucket
            region: AWS region for S3 Vectors
            dimension: Index dimension
            strict_dimensions: Raise on wrong vector length instead of coercing
            max_top_k: Upper bound for query top_k
            create_index_if_missing: Create the index when GetIndex reports it missing
            client: Pre-built boto3 s3vectors client
        """
        super().__init__(dimension=dimension, strict_dimensions=strict_dimensions, max_top_k=max_top_k)
        self._vectors_bucket = vectors_bucket
        self._index_name = index_name
        self._region = region
        self._create_index_if_missing = create_index_if_missing
        self._client = client
        self._initialized = False

    def _get_client(self) -> Any:
        if self._client is None:
            logger.info(f"{__name__}:_get_client - Creating s3vectors client in {self._region}")
            self._client = boto3.client("s3vectors", region_name=self._region)
        return self._client

    @retry(
        retry=retry_if_exception(_is_throttling),
        stop=stop_after_attempt(5),
        wait=wait_exponential_jitter(initial=1, max=30, jitter=5),
        before_sleep=lambda retry_state: logger.warning(
            f"{__name__}:_call - Retry {retry_state.attempt_number}/5 after throttling"
        ),
        reraise=True,
    )
    def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Invoke a client operation on this bucket/index with retry on throttling."""
        method = getattr(self._get_client(), operation)
        return method(vectorBucketName=self._vectors_bucket, indexName=self._index_name, **kwargs)

    def _ensure_index(self) -> None:
        try:
            self._call("get_index")
            return
        except ClientError as e:
            if _error_code(e) not in _NOT_FOUND_CODES:
                raise

        if not self._create_index_if_missing:
            raise BackendUnavailableError(
                "Vector index does not exist",
                operation="initialize",
                details={"bucket": self._vectors_bucket, "index": self._index_name},
            )

        try:
            self._call(
                "create_index",
                dataType="float32",
                dimension=self.dimension,
                distanceMetric="cosine",
                metadataConfiguration={"nonFilterableMetadataKeys": ["content"]},
            )
            logger.info(
                f"{__name__}:_ensure_index - Created index {self._index_name}",
                extra={"dimension": self.dimension},
            )
        except ClientError as e:
            # A concurrent initializer won the race.
            if _error_code(e) != "ConflictException":
                raise
            logger.info(f"{__name__}:_ensure_index - Index {self._index_name} already exists")

    async def ensure_initialized(self) -> bool:
        if self._initialized:
            return True
        try:
            await asyncio.to_thread(self._ensure_index)
        except _BACKEND_ERRORS as e:
            logger.warning(f"{__name__}:ensure_initialized - Backend unavailable: {type(e).__name__}: {e}")
            return False
        self._initialized = True
        return True

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        vectors = [self._check_dimension(record.vector, "upsert") for record in records]
        if not records:
            return 0
        if not await self.ensure_initialized():
            logger.warning(f"{__name__}:upsert - Skipping {len(records)} vectors, backend unavailable")
            return 0

        payload = [
            {
                "key": record.id,
                "data": {"float32": vector},
                "metadata": record.metadata.model_dump(mode="json", exclude={"chunk_id"}),
            }
            for record, vector in zip(records, vectors)
        ]

        written = 0
        for batch in _batched(payload, WRITE_BATCH_SIZE):
            try:
                await asyncio.to_thread(self._call, "put_vectors", vectors=list(batch))
            except _BACKEND_ERRORS as e:
                logger.warning(
                    f"{__name__}:upsert - put_vectors failed after {written} vectors: "
                    f"{type(e).__name__}: {e}"
                )
                break
            written += len(batch)

        logger.info(f"{__name__}:upsert - Stored {written}/{len(records)} vectors")
        return written

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        patient_filter: PatientFilter,
    ) -> list[RetrievalMatch]:
        query_vector = self._check_dimension(vector, "query")
        top_k = self._clamp_top_k(top_k)
        if not await self.ensure_initialized():
            return []

        try:
            response = await asyncio.to_thread(
                self._call,
                "query_vectors",
                queryVector={"float32": query_vector},
                topK=top_k,
                filter={"patient_id": {"$eq": patient_filter.patient_id}},
                returnMetadata=True,
                returnDistance=True,
            )
        except _BACKEND_ERRORS as e:
            logger.warning(f"{__name__}:query - query_vectors failed: {type(e).__name__}: {e}")
            return []

        matches = []
        for item in response.get("vectors", []):
            metadata = item.get("metadata") or {}
            matches.append(
                RetrievalMatch(
                    chunk_id=item["key"],
                    # Cosine distance is 1 - similarity.
                    score=1.0 - float(item.get("distance", 1.0)),
                    content=metadata.get("content", ""),
                    document_name=metadata.get("document_name", ""),
                    patient_id=metadata.get("patient_id", ""),
                )
            )

        results = self._rank(self._drop_foreign(matches, patient_filter), top_k)
        logger.info(
            f"{__name__}:query - Found {len(results)} results",
            extra={"patient_id": patient_filter.patient_id, "k": top_k},
        )
        return results

    def _list_patient_vectors(self, patient_id: str) -> list[VectorMetadata]:
        found: list[VectorMetadata] = []
        next_token = None
        while True:
            kwargs: dict[str, Any] = {"maxResults": LIST_PAGE_SIZE, "returnMetadata": True}
            if next_token:
                kwargs["nextToken"] = next_token
            page = self._call("list_vectors", **kwargs)

            for item in page.get("vectors", []):
                metadata = item.get("metadata") or {}
                if metadata.get("patient_id") != patient_id:
                    continue
                try:
                    found.append(VectorMetadata.model_validate({**metadata, "chunk_id": item["key"]}))
                except ValidationError as e:
                    logger.warning(f"{__name__}:scan - Skipping vector {item.get('key')} with bad metadata: {e}")

            next_token = page.get("nextToken")
            if not next_token:
                return found

    def _delete_keys(self, keys: list[str]) -> int:
        for batch in _batched(keys, WRITE_BATCH_SIZE):
            self._call("delete_vectors", keys=list(batch))
        return len(keys)

    async def scan(self, patient_filter: PatientFilter) -> list[VectorMetadata]:
        if not await self.ensure_initialized():
            return []
        try:
            found = await asyncio.to_thread(self._list_patient_vectors, patient_filter.patient_id)
        except _BACKEND_ERRORS as e:
            logger.warning(f"{__name__}:scan - list_vectors failed: {type(e).__name__}: {e}")
            return []
        return sorted(found, key=lambda m: (m.document_name, m.chunk_index))

    async def delete_by_filter(self, patient_filter: PatientFilter) -> bool:
        if not await self.ensure_initialized():
            return False
        try:
            found = await asyncio.to_thread(self._list_patient_vectors, patient_filter.patient_id)
            deleted = await asyncio.to_thread(self._delete_keys, [m.chunk_id for m in found])
        except _BACKEND_ERRORS as e:
            logger.warning(f"{__name__}:delete_by_filter - Delete failed: {type(e).__name__}: {e}")
            return False

        logger.info(
            f"{__name__}:delete_by_filter - Deleted {deleted} vectors",
            extra={"patient_id": patient_filter.patient_id},
        )
        return True

    async def delete_chunks(
        self,
        patient_filter: PatientFilter,
        document_name: str,
        keep_ids: Iterable[str] | None = None,
    ) -> int:
        keep = set(keep_ids or ())
        if not await self.ensure_initialized():
            return 0
        try:
            found = await asyncio.to_thread(self._list_patient_vectors, patient_filter.patient_id)
            doomed = [
                m.chunk_id for m in found if m.document_name == document_name and m.chunk_id not in keep
            ]
            return await asyncio.to_thread(self._delete_keys, doomed)
        except _BACKEND_ERRORS as e:
            logger.warning(f"{__name__}:delete_chunks - Delete failed: {type(e).__name__}: {e}")
            return 0
