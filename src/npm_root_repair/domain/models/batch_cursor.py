from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from npm_root_repair.domain.models.asset import Asset


@dataclass(frozen=True, slots=True, order=True)
class BatchCursor:
    BEGINNING: ClassVar["BatchCursor"]

    value: int


BatchCursor.BEGINNING = BatchCursor(-1)


def next_cursor(assets: Sequence[Asset], limit: int | None = None) -> BatchCursor | None:
    """Fold a page of assets into the cursor of its last entry.

    An empty page, or one shorter than ``limit``, means the traversal is done.
    """
    if limit is not None and len(assets) < limit:
        return None
    return reduce(
        lambda _cursor, asset: BatchCursor(asset.id),
        assets,
        None,
    )
