"""Generic document operations dispatched by collection and operation name."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any, TypeVar

from mongoengine import Document
from mongoengine.queryset import QuerySet

from authservice.core.errors import AppError, ErrorKind
from authservice.models import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Collection(str, Enum):
    USERS = "users"


class Operation(str, Enum):
    COUNT = "count"
    CREATE = "create"
    FIND_ONE = "findOne"
    FIND = "find"
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"
    DELETE_ONE = "deleteOne"
    DELETE_MANY = "deleteMany"
    FIND_WITH = "findWith"
    FIND_MANY = "findMany"
    SEARCH = "search"
    AGGREGATE = "aggregate"


_MODELS: dict[Collection, type[Document]] = {
    Collection.USERS: User,
}

if set(_MODELS) != set(Collection):
    raise RuntimeError("Every collection must be bound to a document class")

_QUERY_REQUIRED = {
    Operation.DELETE_ONE,
    Operation.DELETE_MANY,
    Operation.FIND_ONE,
    Operation.FIND,
    Operation.FIND_WITH,
    Operation.SEARCH,
}

_DESCENDING = {-1, "-1", "desc", "descending"}


def get_model(collection: Collection | str) -> type[Document]:
    """Resolve the document class bound to ``collection``."""

    try:
        return _MODELS[Collection(collection)]
    except ValueError as exc:
        logger.warning("Model for collection '%s' not found", collection)
        raise AppError(
            ErrorKind.COLLECTION_NOT_FOUND,
            detail=f"Model for collection '{collection}' not found",
        ) from exc


def _resolve_operation(operation: Operation | str) -> Operation:
    try:
        return Operation(operation)
    except ValueError as exc:
        raise AppError(ErrorKind.UNSUPPORTED_OPERATION, detail=f"Unsupported operation: {operation}") from exc


def _invalid(detail: str) -> AppError:
    return AppError(ErrorKind.INVALID_OPERATION_INPUT, detail=detail)


def validate_operation_input(operation: Operation, data: Mapping[str, Any]) -> None:
    """Check the data bag carries what ``operation`` needs."""

    if operation is Operation.CREATE:
        if not isinstance(data.get("object"), Mapping):
            raise _invalid("Invalid object for create operation")
    elif operation in (Operation.UPDATE_ONE, Operation.UPDATE_MANY):
        if data.get("query") is None or not data.get("update_data"):
            raise _invalid(f"Invalid query or update_data for {operation.value} operation")
    elif operation in _QUERY_REQUIRED:
        if data.get("query") is None:
            raise _invalid(f"Invalid query for {operation.value} operation")
    elif operation is Operation.FIND_MANY:
        ids = data.get("ids")
        if not isinstance(ids, (list, tuple)) or not ids:
            raise _invalid("Invalid ids for findMany operation")
    elif operation is Operation.AGGREGATE:
        if not isinstance(data.get("pipeline"), list):
            raise _invalid("Invalid pipeline for aggregate operation")


def _order_keys(sort: Mapping[str, Any] | Sequence[str] | str) -> list[str]:
    if isinstance(sort, Mapping):
        return [("-" if direction in _DESCENDING else "+") + field for field, direction in sort.items()]
    if isinstance(sort, str):
        sort = sort.split()
    return [key if key[:1] in ("+", "-") else f"+{key}" for key in sort]


def _project(queryset: QuerySet, select: Mapping[str, Any] | Sequence[str] | str) -> QuerySet:
    if isinstance(select, Mapping):
        include = [field for field, flag in select.items() if flag]
        exclude = [field for field, flag in select.items() if not flag]
    else:
        tokens = select.split() if isinstance(select, str) else list(select)
        include = [token for token in tokens if not token.startswith("-")]
        exclude = [token[1:] for token in tokens if token.startswith("-")]
    if include:
        queryset = queryset.only(*include)
    if exclude:
        queryset = queryset.exclude(*exclude)
    return queryset


def build_query(queryset: QuerySet, data: Mapping[str, Any]) -> QuerySet:
    """Apply sort, limit, skip and select, in that order, when present."""

    if data.get("sort"):
        queryset = queryset.order_by(*_order_keys(data["sort"]))
    if data.get("limit"):
        queryset = queryset.limit(int(data["limit"]))
    if data.get("skip"):
        queryset = queryset.skip(int(data["skip"]))
    if data.get("select"):
        queryset = _project(queryset, data["select"])
    return queryset


def _as_update(update_data: Mapping[str, Any]) -> dict[str, Any]:
    # plain documents become $set, like the ODM does for partial updates
    if any(key.startswith("$") for key in update_data):
        return dict(update_data)
    return {"$set": dict(update_data)}


def execute_query(label: str, query_function: Callable[[], T]) -> T:
    """Run ``query_function`` and log how long it took."""

    start = time.perf_counter()
    try:
        result = query_function()
    except Exception as exc:
        logger.error("Error executing %s: %s", label, exc)
        raise
    logger.debug("%s executed in %.1fms", label, (time.perf_counter() - start) * 1000)
    return result


def _delete_one(model: type[Document], query: Mapping[str, Any]) -> int:
    # one round trip; the store decides which document goes
    return model._get_collection().delete_one(dict(query)).deleted_count


def build_search(model: type[Document], text: str) -> QuerySet:
    """Text search over the collection's text index."""

    return model.objects.search_text(text)


def mongo_operation(
    collection: Collection | str,
    operation: Operation | str,
    data: Mapping[str, Any] | None = None,
) -> Any:
    """Execute ``operation`` against ``collection`` using the ``data`` bag.

    Supported keys of ``data``: ``object`` (create), ``query``,
    ``update_data``, ``ids`` (findMany), ``pipeline`` (aggregate) and the
    ``sort``/``limit``/``skip``/``select`` modifiers of find/findWith.
    """

    model = get_model(collection)
    op = _resolve_operation(operation)
    data = data or {}
    validate_operation_input(op, data)

    label = f"{op.value} on {model._meta['collection']}"
    query = data.get("query")

    if op is Operation.COUNT:
        return execute_query(label, lambda: model.objects(__raw__=query or {}).count())
    if op is Operation.CREATE:
        return execute_query(label, lambda: model(**data["object"]).save())
    if op is Operation.FIND_ONE:
        return execute_query(label, lambda: model.objects(__raw__=query).first())
    if op in (Operation.FIND, Operation.FIND_WITH):
        return execute_query(label, lambda: list(build_query(model.objects(__raw__=query), data)))
    if op is Operation.UPDATE_ONE:
        update = _as_update(data["update_data"])
        return execute_query(
            label, lambda: model.objects(__raw__=query).update_one(full_result=True, __raw__=update)
        )
    if op is Operation.UPDATE_MANY:
        update = _as_update(data["update_data"])
        return execute_query(
            label, lambda: model.objects(__raw__=query).update(multi=True, full_result=True, __raw__=update)
        )
    if op is Operation.DELETE_ONE:
        return execute_query(label, lambda: _delete_one(model, query))
    if op is Operation.DELETE_MANY:
        return execute_query(label, lambda: model.objects(__raw__=query).delete())
    if op is Operation.FIND_MANY:
        return execute_query(label, lambda: list(model.objects(id__in=list(data["ids"]))))
    if op is Operation.SEARCH:
        return execute_query(label, lambda: list(build_search(model, query)))
    if op is Operation.AGGREGATE:
        return execute_query(label, lambda: list(model.objects.aggregate(data["pipeline"])))
    raise AppError(ErrorKind.UNSUPPORTED_OPERATION, detail=f"Unsupported operation: {operation}")
