"""Periodic task that keeps product prices in line with discount windows."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Protocol

import anyio
from anyio import to_thread

from urbansprout.domain.entities import Discount, NotificationKind
from urbansprout.infrastructure.database import SessionFactory, session_scope
from urbansprout.infrastructure.notifications import NotificationDispatcher
from urbansprout.infrastructure.repositories import DiscountRepository
from urbansprout.utils import isoformat_or_none, now_utc

logger = logging.getLogger(__name__)


class Applicator(Protocol):
    def apply(self, discount_id: int, *, now: datetime | None = None) -> int:
        ...

    def revoke(self, discount_id: int) -> int:
        ...


@dataclass
class TickResult:
    applied_products: int = 0
    removed_products: int = 0
    applied_discounts: list[int] = field(default_factory=list)
    removed_discounts: list[int] = field(default_factory=list)
    failures: list[int] = field(default_factory=list)
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.applied_discounts or self.removed_discounts)


class DiscountLifecycleScheduler:
    """Apply discounts that started and withdraw the ones that ended.

    Only one scan runs at a time: a tick that finds the previous one still in
    progress is skipped. Each discount is handled in a worker thread bounded
    by ``item_timeout``; a discount that fails or times out is picked up
    again by the next scan.
    """

    def __init__(
        self,
        applicator: Applicator,
        dispatcher: NotificationDispatcher | None,
        session_factory: SessionFactory,
        *,
        interval: float = 60,
        item_timeout: float = 30,
    ) -> None:
        self._applicator = applicator
        self._dispatcher = dispatcher
        self._session_factory = session_factory
        self._interval = interval
        self._item_timeout = item_timeout
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._last_run_at: datetime | None = None
        self._last_result: TickResult | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_forever())
        logger.info("Discount lifecycle scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Discount lifecycle scheduler stopped")

    def status(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self._interval,
            "last_run_at": isoformat_or_none(self._last_run_at),
            "last_result": asdict(self._last_result) if self._last_result else None,
        }

    async def run_once(self, now: datetime | None = None) -> TickResult:
        """Run one scan unless another one is in progress."""

        if self._lock.locked():
            logger.info("Discount scan already in progress, skipping")
            return TickResult(skipped=True)

        async with self._lock:
            moment = now or now_utc()
            result = TickResult()

            to_revoke = await to_thread.run_sync(self._list_due_for_revoke, moment)
            for discount in to_revoke:
                changed = await self._run_item(
                    "revoke", discount, partial(self._applicator.revoke, discount.id)
                )
                if changed is None:
                    result.failures.append(discount.id)
                    continue
                result.removed_discounts.append(discount.id)
                result.removed_products += changed

            to_apply = await to_thread.run_sync(self._list_due_for_apply, moment)
            for discount in to_apply:
                changed = await self._run_item(
                    "apply",
                    discount,
                    partial(self._applicator.apply, discount.id, now=moment),
                )
                if changed is None:
                    result.failures.append(discount.id)
                    continue
                result.applied_discounts.append(discount.id)
                result.applied_products += changed
                await self._notify_creator(discount, changed)

            self._last_run_at = moment
            self._last_result = result

        if result.changed or result.failures:
            logger.info(
                "Discount scan: applied %s (%s products), removed %s (%s products), %s failed",
                len(result.applied_discounts),
                result.applied_products,
                len(result.removed_discounts),
                result.removed_products,
                len(result.failures),
            )
        else:
            logger.debug("Discount scan: nothing to do")
        return result

    async def _run_forever(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Discount lifecycle scan failed")
            await asyncio.sleep(self._interval)

    async def _run_item(self, action: str, discount: Discount, func) -> int | None:
        try:
            with anyio.fail_after(self._item_timeout):
                return await to_thread.run_sync(func, abandon_on_cancel=True)
        except TimeoutError:
            logger.warning(
                "Timed out trying to %s discount %s after %ss",
                action,
                discount.id,
                self._item_timeout,
            )
        except Exception:
            logger.exception("Failed to %s discount %s", action, discount.id)
        return None

    async def _notify_creator(self, discount: Discount, changed: int) -> None:
        if self._dispatcher is None or not discount.created_by:
            return
        try:
            await self._dispatcher.send(
                discount.created_by,
                NotificationKind.DISCOUNT_APPLIED,
                "Discount Applied",
                f"Discount '{discount.name}' is now active on {changed} products",
                related_id=discount.id,
                related_model="discount",
            )
        except Exception:
            logger.warning(
                "Could not notify user %s about discount %s",
                discount.created_by,
                discount.id,
                exc_info=True,
            )

    def _list_due_for_apply(self, now: datetime) -> list[Discount]:
        with session_scope(self._session_factory) as session:
            return DiscountRepository(session).list_due_for_apply(now)

    def _list_due_for_revoke(self, now: datetime) -> list[Discount]:
        with session_scope(self._session_factory) as session:
            return DiscountRepository(session).list_due_for_revoke(now)


__all__ = ["DiscountLifecycleScheduler", "TickResult"]
