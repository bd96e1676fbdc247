"""
Toreca Tracker — POS Inventory Adjustment

Manual stock corrections (breakage, recounts, disposals). The quantity
update and its pos_history row are written in a single UnitOfWork so a
failure between them cannot leave the two out of step.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import HistoryAction
from src.errors import NotFoundError, ValidationError
from src.models.inventory import TRACKING_MODE_LOT, PosHistory, PosInventory
from src.services.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


async def adjust_inventory(
    session: AsyncSession,
    inventory_id: str,
    quantity_change: int,
    reason: str,
    notes: str | None = None,
) -> dict[str, Any]:
    """
    Apply quantity_change to an inventory row and record it.

    Raises:
        NotFoundError: inventory_id does not exist.
        ValidationError: the item is lot-tracked, or the result would be negative.
    """
    async with UnitOfWork(session) as uow:
        inventory = await uow.session.get(PosInventory, inventory_id, with_for_update=True)
        if inventory is None:
            raise NotFoundError(f"Inventory not found: {inventory_id}")

        if inventory.tracking_mode == TRACKING_MODE_LOT:
            raise ValidationError("Lot-tracked inventory cannot be adjusted directly; adjust its lots")

        before = inventory.quantity
        after = before + quantity_change
        if after < 0:
            raise ValidationError(f"Adjustment would make quantity negative ({before} {quantity_change:+d})")

        inventory.quantity = after
        uow.session.add(PosHistory(
            inventory_id=inventory_id,
            action_type=(HistoryAction.DISPOSE if quantity_change < 0 else HistoryAction.ADJUSTMENT).value,
            quantity_change=quantity_change,
            quantity_before=before,
            quantity_after=after,
            reason=reason,
            notes=notes or None,
        ))

    logger.info(
        "inventory_adjusted",
        inventory_id=inventory_id,
        quantity_before=before,
        quantity_after=after,
        reason=reason,
    )
    return {"id": inventory_id, "quantity": after}
