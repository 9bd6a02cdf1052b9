"""Idempotency service for replaying repeated requests."""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ConflictError
from ..models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)


class IdempotencyMismatchError(ConflictError):
    """Raised when a key is reused with a different request body or by another caller."""

    def __init__(self, idempotency_key: str, method: str):
        super().__init__(
            detail="La llave de idempotencia ya fue usada con una solicitud diferente"
        )
        self.problem_details.update({
            "code": "IDEMPOTENCY_KEY_MISMATCH",
            "idempotency_key": idempotency_key,
            "method": method,
        })


class IdempotencyService:
    """Stores the first response of a keyed request and returns it for repeats."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _compute_request_hash(self, request_body: dict[str, Any]) -> str:
        normalized = json.dumps(request_body, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()

    async def check_idempotency(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
        owner: Optional[str] = None,
    ) -> tuple[int, dict[str, Any]] | None:
        """
        Return the stored ``(status_code, body)`` for a repeated request.

        Args:
            idempotency_key: Value of the ``Idempotency-Key`` header
            method: Operation name
            request_body: Request body to hash and compare
            owner: Caller the key belongs to

        Returns:
            The stored response, or None when the key has not been seen

        Raises:
            IdempotencyMismatchError: If the key was used with another body or by another caller
        """
        request_hash = self._compute_request_hash(request_body)

        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.idempotency_key == idempotency_key,
            IdempotencyRecord.method == method,
            IdempotencyRecord.expires_at > datetime.utcnow(),
        )
        result = await self.db.execute(stmt)
        record = result.scalar_one_or_none()

        if record is None:
            return None

        if record.request_body_hash != request_hash or record.owner != owner:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "method": method,
                    "existing_hash": record.request_body_hash[:8],
                    "new_hash": request_hash[:8],
                },
            )
            raise IdempotencyMismatchError(idempotency_key, method)

        logger.info(
            "Replaying stored response",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": record.response_status_code,
            },
        )
        return record.response_status_code, json.loads(record.response_body)

    async def store_response(
        self,
        idempotency_key: str,
        method: str,
        request_body: dict[str, Any],
        status_code: int,
        response_body: dict[str, Any],
        owner: Optional[str] = None,
        ttl_hours: Optional[int] = None,
    ) -> None:
        expires_at = datetime.utcnow() + timedelta(hours=ttl_hours or settings.idempotency_ttl_hours)
        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            method=method,
            owner=owner,
            request_body_hash=self._compute_request_hash(request_body),
            response_status_code=status_code,
            response_body=json.dumps(response_body, sort_keys=True, separators=(",", ":")),
            expires_at=expires_at,
        )

        try:
            self.db.add(record)
            await self.db.commit()
        except IntegrityError as e:
            # a concurrent request stored the same key first
            await self.db.rollback()
            logger.info(
                "Idempotency record already exists",
                extra={"idempotency_key": idempotency_key, "method": method, "error": str(e)},
            )
            return

        logger.info(
            "Stored idempotency record",
            extra={
                "idempotency_key": idempotency_key,
                "method": method,
                "status_code": status_code,
                "expires_at": expires_at.isoformat(),
            },
        )

    async def cleanup_expired_records(self) -> int:
        result = await self.db.execute(
            delete(IdempotencyRecord).where(IdempotencyRecord.expires_at <= datetime.utcnow())
        )
        await self.db.commit()
        if result.rowcount:
            logger.info("Cleaned up expired idempotency records", extra={"deleted_count": result.rowcount})
        return result.rowcount
