"""
Query-with-fallback helpers.

Listing queries run against a composite index (filter fields + a
timestamp sort). When that index is missing the server refuses the
hinted/sorted query; we then re-run the same filter without hint or
sort and order the documents in process.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from pymongo.collection import Collection
from pymongo.errors import OperationFailure, PyMongoError

from careerconnect.core.config import get_settings
from careerconnect.core.errors import QueryError
from careerconnect.core.logging import get_logger
from careerconnect.db.documents import EPOCH, to_datetime

logger = get_logger(__name__)

# BadValue (bad hint), NoQueryExecutionPlans, OperationFailed (sort),
# QueryExceededMemoryLimitNoDiskUseAllowed, legacy planner error
INDEX_ERROR_CODES = {2, 96, 291, 292, 17007}


@dataclass
class QueryResult:
    docs: List[dict] = field(default_factory=list)
    used_fallback: bool = False


def _describe_index(filter_: dict, sort: Sequence[Tuple[str, int]]) -> str:
    keys = [f"{name}:1" for name in filter_ if not name.startswith("$")]
    keys += [f"{name}:{direction}" for name, direction in sort]
    return "{" + ", ".join(keys) + "}"


def find_with_fallback(
    collection: Collection,
    filter_: dict,
    sort: Sequence[Tuple[str, int]],
    hint: Optional[list] = None,
    limit: int = 0,
    context: str = "query",
) -> QueryResult:
    """
    Run `find(filter).sort(sort)`; on OperationFailure retry unsorted.

    Returns the documents plus whether the fallback path produced them.
    Raises QueryError when the fallback fails too.

    The fallback applies `limit` before any ordering, so a limited
    fallback returns some N matching documents, not the newest N.
    """
    settings = get_settings()
    try:
        cursor = collection.find(filter_).sort(list(sort))
        if hint and settings.use_index_hints:
            cursor = cursor.hint(hint)
        if limit:
            cursor = cursor.limit(limit)
        return QueryResult(docs=list(cursor), used_fallback=False)
    except OperationFailure as exc:
        logger.warning(
            "primary_query_failed",
            context=context,
            collection=collection.name,
            code=exc.code,
            error=str(exc),
        )
        if exc.code in INDEX_ERROR_CODES:
            logger.warning(
                "index_required",
                context=context,
                collection=collection.name,
                index=_describe_index(filter_, sort),
            )

    try:
        cursor = collection.find(filter_)
        if limit:
            cursor = cursor.limit(limit)
        docs = list(cursor)
    except PyMongoError as exc:
        logger.error("fallback_query_failed", context=context, collection=collection.name, error=str(exc))
        raise QueryError(f"{context} failed: {exc}") from exc

    logger.info("fallback_query_used", context=context, collection=collection.name, count=len(docs))
    return QueryResult(docs=docs, used_fallback=True)


def sort_documents(docs: List[dict], field_name: str, descending: bool = True) -> List[dict]:
    """Order documents by a timestamp field; missing/unparseable values count as the epoch."""
    return sorted(
        docs,
        key=lambda doc: to_datetime(doc.get(field_name)) or EPOCH,
        reverse=descending,
    )


def fetch_sorted(
    collection: Collection,
    filter_: dict,
    sort_field: str,
    hint: Optional[list] = None,
    limit: int = 0,
    descending: bool = True,
    context: str = "query",
) -> QueryResult:
    """find_with_fallback on a single timestamp sort, re-sorting fallback results."""
    direction = -1 if descending else 1
    result = find_with_fallback(
        collection, filter_, [(sort_field, direction)], hint=hint, limit=limit, context=context
    )
    if result.used_fallback:
        result.docs = sort_documents(result.docs, sort_field, descending=descending)
    return result
