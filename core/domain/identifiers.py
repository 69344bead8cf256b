from __future__ import annotations

import uuid


def generate_id() -> str:
    """Opaque 32-char hex id for packages, source documents and ledger facts.

    Ids are only compared for ordering (keyset paging during backfill),
    never parsed.
    """
    return uuid.uuid4().hex


__all__ = ["generate_id"]
