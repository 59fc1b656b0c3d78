"""
Core plumbing: log redaction, idempotency keys and error payload helpers.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis_asyncio
from fastapi import HTTPException
from redis.exceptions import RedisError

from partner_portal.api.errors import conflict, upstream_failed
from partner_portal.core.idempotency import IdempotencyStore
from partner_portal.core.logging import REDACTED, redact_sensitive


def test_redact_sensitive_masks_credentials_only():
    event = {
        "event": "docuseal_request",
        "api_key": "abc",
        "X-Auth-Token": "tok",
        "webhook_secret": "s3cr3t",
        "signature": "deadbeef",
        "partner_id": "p-1",
    }

    out = redact_sensitive(None, "info", event)

    assert out["api_key"] == REDACTED
    assert out["X-Auth-Token"] == REDACTED
    assert out["webhook_secret"] == REDACTED
    assert out["signature"] == REDACTED
    assert out["partner_id"] == "p-1"
    assert out["event"] == "docuseal_request"


def test_idempotency_key_layout():
    assert IdempotencyStore.key("create_partner", "intake-1") == "idem:create_partner:intake-1"
    assert IdempotencyStore.key("convert_prospect", 42, "k") == "idem:convert_prospect:42:k"


async def test_idempotency_falls_back_to_memory(monkeypatch):
    broken = AsyncMock()
    broken.ping.side_effect = RedisError("connection refused")
    monkeypatch.setattr(redis_asyncio, "from_url", MagicMock(return_value=broken))

    store = IdempotencyStore("redis://nowhere:6379/0")
    await store.set("idem:import_products:k1", {"created": 3})

    assert await store.get("idem:import_products:k1") == {"created": 3}
    assert await store.get("idem:import_products:other") is None
    broken.setex.assert_not_called()


async def test_idempotency_memory_entries_expire(monkeypatch):
    broken = AsyncMock()
    broken.ping.side_effect = RedisError("down")
    monkeypatch.setattr(redis_asyncio, "from_url", MagicMock(return_value=broken))

    store = IdempotencyStore("redis://nowhere:6379/0")
    await store.set("idem:create_partner:k", {"id": "x"}, ttl_seconds=0)

    assert await store.get("idem:create_partner:k") is None


def test_conflict_payload():
    with pytest.raises(HTTPException) as exc:
        conflict("duplicate_sku", "SKU AP-1 already exists", context={"sku": "AP-1"})

    assert exc.value.status_code == 409
    assert exc.value.detail["code"] == "duplicate_sku"
    assert exc.value.detail["context"] == {"sku": "AP-1"}


def test_upstream_failed_payload():
    with pytest.raises(HTTPException) as exc:
        upstream_failed("docuseal", "boom", 500)

    assert exc.value.status_code == 502
    assert exc.value.detail["code"] == "docuseal_error"
    assert exc.value.detail["context"] == {"upstream_status": 500}
