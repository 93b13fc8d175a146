"""Ad-hoc single-substance query.

One oracle request for one substance across every country the oracle
knows, written with a single merge-duplicates upsert.
"""

import logging
from dataclasses import dataclass

from ..clients.oracle_client import OracleClient
from ..clients.store_client import BaseStore
from ..reconcile.normalizer import RecordNormalizer

logger = logging.getLogger(__name__)


@dataclass
class SingleQueryResult:
    substance: str
    upserted: int = 0
    dropped: int = 0


async def run_single_query(
    oracle: OracleClient,
    store: BaseStore,
    substance: str,
    strict_status: bool = False,
) -> SingleQueryResult:
    """Query one substance and upsert whatever comes back.

    Raises:
        ValueError: Empty substance name.
        OracleError: The oracle query failed.
        StoreAccessError: The upsert failed.
    """
    substance = substance.strip()
    if not substance:
        raise ValueError("Missing substance")

    raw = await oracle.query_substance(substance)
    normalized = RecordNormalizer(strict_status=strict_status).normalize(raw)
    logger.info(
        f"Oracle result for {substance}: {len(normalized.records)} countries "
        f"({len(normalized.dropped)} dropped)"
    )

    upserted = await store.upsert(normalized.records)
    return SingleQueryResult(
        substance=substance,
        upserted=upserted,
        dropped=len(normalized.dropped),
    )
