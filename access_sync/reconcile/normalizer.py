"""Raw oracle record normalization.

Turns untyped oracle output into AccessRecords. Bad entries are dropped
with a logged diagnostic; they never fail the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from ..types.records import AccessRecord, AccessStatus, utc_now

logger = logging.getLogger(__name__)

SUBJECT_FIELD = "substance"
SCOPE_FIELD = "country_code"
STATUS_FIELD = "access_status"


@dataclass
class NormalizationResult:
    """Outcome of normalizing one batch of raw records."""

    records: list[AccessRecord] = field(default_factory=list)
    dropped: list[dict[str, Any]] = field(default_factory=list)  # {"record": ..., "reason": ...}
    flagged: list[AccessRecord] = field(default_factory=list)  # unknown status

    def drop(self, raw: Any, reason: str) -> None:
        self.dropped.append({"record": raw, "reason": reason})


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RecordNormalizer:
    """Validates and coerces raw records into the canonical schema."""

    def __init__(
        self,
        strict_status: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the normalizer.

        Args:
            strict_status: Drop records whose status is not an AccessStatus
                value. When False they pass through and are only flagged.
            clock: Source of observed_at timestamps.
        """
        self._strict_status = strict_status
        self._clock = clock

    def normalize(
        self,
        raw_records: Iterable[Any],
        subjects: Optional[Iterable[str]] = None,
        scopes: Optional[Iterable[str]] = None,
    ) -> NormalizationResult:
        """Normalize raw oracle records.

        Args:
            raw_records: Items from the oracle reply's record list.
            subjects: Subjects that were asked about. Records for any other
                subject are dropped. None accepts every subject.
            scopes: Scopes that were asked about, same rule as subjects.

        Returns:
            NormalizationResult with accepted, dropped and flagged records.
        """
        result = NormalizationResult()
        seen: set[tuple[str, str]] = set()
        observed_at = self._clock()
        allowed_subjects = set(subjects) if subjects is not None else None
        allowed_scopes = set(scopes) if scopes is not None else None

        for raw in raw_records:
            if not isinstance(raw, dict):
                logger.warning(f"Dropping non-object record: {raw!r}")
                result.drop(raw, "not an object")
                continue

            subject = _clean(raw.get(SUBJECT_FIELD))
            scope = _clean(raw.get(SCOPE_FIELD))
            status = _clean(raw.get(STATUS_FIELD))

            if subject is None or scope is None:
                logger.warning(f"Dropping record missing substance or country_code: {raw}")
                result.drop(raw, "missing substance or country_code")
                continue

            if status is None:
                logger.warning(f"Dropping {subject}-{scope}: missing access_status")
                result.drop(raw, "missing access_status")
                continue

            if allowed_subjects is not None and subject not in allowed_subjects:
                logger.warning(f"Dropping {subject}-{scope}: substance was not requested")
                result.drop(raw, "unrequested substance")
                continue

            if allowed_scopes is not None and scope not in allowed_scopes:
                logger.warning(f"Dropping {subject}-{scope}: country not in this batch")
                result.drop(raw, "unrequested country_code")
                continue

            key = (subject, scope)
            if key in seen:
                logger.warning(f"Dropping duplicate record for {subject}-{scope}")
                result.drop(raw, "duplicate key")
                continue

            record = AccessRecord(
                subject=subject,
                scope=scope,
                status=status,
                observed_at=observed_at,
            )

            if not AccessStatus.is_known(status):
                result.flagged.append(record)
                if self._strict_status:
                    logger.warning(
                        f"Dropping {subject}-{scope}: unrecognized status {status!r}"
                    )
                    result.drop(raw, "unrecognized access_status")
                    continue
                logger.warning(
                    f"Unrecognized status {status!r} for {subject}-{scope}, keeping as-is"
                )

            seen.add(key)
            result.records.append(record)

        return result


def normalize_records(raw_records: Iterable[Any], strict_status: bool = False) -> list[AccessRecord]:
    """Convenience function returning only the accepted records."""
    return RecordNormalizer(strict_status=strict_status).normalize(raw_records).records
