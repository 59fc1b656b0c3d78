"""Unified API error response helpers."""
from __future__ import annotations

from typing import Any, NoReturn

from fastapi import HTTPException, Request


def build_error_payload(
    *,
    code: str,
    message: str,
    detail: Any = None,
    context: dict[str, Any] | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    payload_context = context.copy() if context else {}
    if request is not None:
        payload_context.setdefault("request_id", getattr(request.state, "request_id", None))
        payload_context.setdefault("correlation_id", getattr(request.state, "correlation_id", None))
        payload_context.setdefault("path", request.url.path)
        payload_context.setdefault("method", request.method)

    return {
        "code": code,
        "message": message,
        "detail": detail,
        "context": payload_context,
    }


def raise_api_error(
    *,
    status_code: int,
    code: str,
    message: str,
    detail: Any = None,
    context: dict[str, Any] | None = None,
) -> NoReturn:
    raise HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "detail": detail,
            "context": context or {},
        },
    )


def not_found(entity: str, entity_id: Any) -> NoReturn:
    raise_api_error(
        status_code=404,
        code=f"{entity}_not_found",
        message=f"{entity.replace('_', ' ').capitalize()} not found",
        detail=f"{entity.replace('_', ' ').capitalize()} {entity_id} not found",
        context={f"{entity}_id": entity_id},
    )


def bad_request(msg: str, context: dict[str, Any] | None = None) -> NoReturn:
    raise_api_error(
        status_code=400,
        code="bad_request",
        message="Bad request",
        detail=msg,
        context=context,
    )


def conflict(code: str, msg: str, context: dict[str, Any] | None = None) -> NoReturn:
    """409 for state clashes: duplicate SKUs, re-converting a prospect."""
    raise_api_error(
        status_code=409,
        code=code,
        message=code.replace("_", " ").capitalize(),
        detail=msg,
        context=context,
    )


def upstream_failed(service: str, msg: str, upstream_status: int | None = None) -> NoReturn:
    raise_api_error(
        status_code=502,
        code=f"{service}_error",
        message=f"{service.capitalize()} request failed",
        detail=msg,
        context={"upstream_status": upstream_status},
    )
