"""Redis-backed verification records"""
import json
import math
import re
from datetime import datetime
from typing import Iterator, Optional

import redis
from otp_recovery.core.redis import get_redis
from otp_recovery.schemas.verification import (VerificationRecord,
                                               VerificationType)
from otp_recovery.services.verification_store import VerificationStore, utcnow
from otp_recovery.utils.logger import verification_logger

KEY_PREFIX = "verification"
_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class RedisVerificationStore(VerificationStore):
    """One key per issued code; Redis TTL enforces ``expires_at``"""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis = client if client is not None else get_redis()

    def _get_key(self, kind: VerificationType, target: str, code: str) -> str:
        return f"{KEY_PREFIX}:{kind.value}:{target}:{code}"

    def _get_pattern(self, kind: VerificationType, target: str) -> str:
        escaped = _GLOB_SPECIAL.sub(r"\\\1", target)
        return f"{KEY_PREFIX}:{kind.value}:{escaped}:*"

    def _iter_keys(self, pattern: str) -> Iterator[str]:
        return iter(self.redis.scan_iter(match=pattern))

    def _load(self, key: str) -> Optional[VerificationRecord]:
        data_str = self.redis.get(key)
        if not data_str:
            return None
        try:
            return VerificationRecord.model_validate(json.loads(str(data_str)))
        except (json.JSONDecodeError, ValueError):
            verification_logger.warning(f"Discarding malformed record {key}")
            return None

    def find_active(self, kind: VerificationType, target: str, code: str) -> Optional[VerificationRecord]:
        record = self._load(self._get_key(kind, target, code))
        if record is None:
            return None
        if record.expires_at is not None and record.expires_at <= utcnow():
            return None
        return record

    def consume(self, kind: VerificationType, target: str, code: str) -> int:
        # DEL is atomic; its reply is the number of keys removed
        return int(self.redis.delete(self._get_key(kind, target, code)))

    def create(self, record: VerificationRecord) -> VerificationRecord:
        if record.created_at is None:
            record = record.model_copy(update={"created_at": utcnow()})
        key = self._get_key(record.kind, record.target, record.otp)
        payload = record.model_dump_json()
        if record.expires_at is not None:
            ttl = math.ceil((record.expires_at - utcnow()).total_seconds())
            if ttl <= 0:
                return record
            self.redis.setex(key, ttl, payload)
        else:
            self.redis.set(key, payload)
        return record

    def revoke(self, kind: VerificationType, target: str) -> int:
        keys = list(self._iter_keys(self._get_pattern(kind, target)))
        if not keys:
            return 0
        return int(self.redis.delete(*keys))

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Keys with a TTL expire on their own; this sweeps the rest"""
        cutoff = now or utcnow()
        removed = 0
        for key in self._iter_keys(f"{KEY_PREFIX}:*"):
            record = self._load(key)
            if record is not None and record.expires_at is not None and record.expires_at <= cutoff:
                removed += int(self.redis.delete(key))
        return removed

    def count(self, kind: VerificationType, target: str) -> int:
        return sum(1 for _ in self._iter_keys(self._get_pattern(kind, target)))
