"""Writers for reconciliation artifacts."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from streetmatch.domain.matching.reconcile import ReviewItem

log = getLogger(__name__)


def write_review_artifact(path: Path, items: Sequence[ReviewItem]) -> Path:
    """Write the manual-review list as a JSON array, keeping the given order."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [item.as_payload() for item in items]
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.write("\n")
    log.info("Wrote %s review items to %s", len(payload), path)
    return path
