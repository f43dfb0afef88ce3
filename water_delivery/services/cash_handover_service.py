"""
Cash handover service: the driver's end-of-day reconciliation.

State machine per (driver, date):
    submit   -> PENDING (created, or overwritten while PENDING)
    verify   -> VERIFIED | REJECTED | ADJUSTED, exactly once

The expected figure is always recomputed from live orders and
expenses at submission time. Both writes read the handover row
under a lock so the PENDING guard is atomic with the update; the
(driver_id, date) unique constraint settles concurrent creates.
"""

import logging
import math
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from water_delivery.authorization import (
    Actor,
    require_admin,
    require_admin_or_driver,
    require_driver,
)
from water_delivery.config import get_settings
from water_delivery.errors import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    handover_not_found,
)
from water_delivery.models import (
    CashHandover,
    CashHandoverStatus,
    Order,
    OrderStatus,
    PaymentMethod,
)
from water_delivery.schemas.cash_handover import (
    CashStats,
    HandoverDetail,
    HandoverFilter,
    HandoverPage,
    HandoverResponse,
    HandoverSubmit,
    HandoverVerify,
    Pagination,
    StatusBreakdown,
    TrendPoint,
)
from water_delivery.services.cash_summary_service import (
    CashSummaryService,
    day_window,
    to_money,
)

logger = logging.getLogger(__name__)


class CashHandoverService:

    def __init__(self, db: Session):
        self.db = db
        self.summary_service = CashSummaryService(db)
        self.settings = get_settings()

    def _find_for_update(self, driver_id: int, day: date) -> CashHandover | None:
        return self.db.execute(
            select(CashHandover)
            .where(CashHandover.driver_id == driver_id, CashHandover.date == day)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _get_for_update(self, handover_id: int) -> CashHandover:
        handover = self.db.execute(
            select(CashHandover)
            .where(CashHandover.id == handover_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not handover:
            raise NotFoundError(handover_not_found(handover_id))
        return handover

    # --- Driver actions ---

    def submit(self, request: HandoverSubmit, actor: Actor) -> CashHandover:
        """
        Create or fully overwrite the driver's handover for a day.

        Raises InvalidStateTransitionError once the handover has
        left PENDING; nothing is written in that case.
        """
        require_driver(actor, request.driver_id)

        summary = self.summary_service.summarize_day(request.driver_id, request.date)
        discrepancy = summary.expected_cash - request.actual_cash

        fields = dict(
            expected_cash=summary.expected_cash,
            actual_cash=request.actual_cash,
            discrepancy=discrepancy,
            driver_notes=request.driver_notes,
            shift_start=request.shift_start,
            shift_end=request.shift_end,
            total_orders=summary.total_orders,
            completed_orders=summary.completed_orders,
            cash_orders=summary.cash_orders,
            bottles_given=summary.bottles_given,
            bottles_taken=summary.bottles_taken,
        )

        existing = self._find_for_update(request.driver_id, request.date)
        if existing:
            if not existing.is_pending:
                logger.warning(
                    "Resubmission of verified handover refused",
                    extra={
                        "handover_id": existing.id,
                        "driver_id": existing.driver_id,
                        "status": existing.status.value,
                    },
                )
                raise InvalidStateTransitionError(
                    "Cannot update verified handover"
                )

            for name, value in fields.items():
                setattr(existing, name, value)
            existing.updated_at = datetime.utcnow()
            self.db.flush()

            logger.info(
                "Cash handover resubmitted",
                extra={
                    "handover_id": existing.id,
                    "driver_id": existing.driver_id,
                    "expected_cash": str(existing.expected_cash),
                    "actual_cash": str(existing.actual_cash),
                    "discrepancy": str(existing.discrepancy),
                },
            )
            return existing

        handover = CashHandover(
            driver_id=request.driver_id,
            date=request.date,
            status=CashHandoverStatus.PENDING,
            **fields,
        )
        try:
            with self.db.begin_nested():
                self.db.add(handover)
                self.db.flush()
        except IntegrityError as e:
            logger.warning(
                "Concurrent handover submission",
                extra={"driver_id": request.driver_id, "date": request.date.isoformat()},
            )
            raise ConflictError(
                f"A handover for driver {request.driver_id} on "
                f"{request.date.isoformat()} was submitted concurrently; "
                f"retry to update it"
            ) from e

        logger.info(
            "Cash handover submitted",
            extra={
                "handover_id": handover.id,
                "driver_id": handover.driver_id,
                "expected_cash": str(handover.expected_cash),
                "actual_cash": str(handover.actual_cash),
                "discrepancy": str(handover.discrepancy),
            },
        )
        return handover

    def get_driver_history(
        self, actor: Actor, driver_id: int, limit: int | None = None
    ) -> list[CashHandover]:
        """A driver's most recent handovers, newest first."""
        require_admin_or_driver(actor, driver_id)
        limit = limit or self.settings.HANDOVER_HISTORY_LIMIT

        handovers = self.db.execute(
            select(CashHandover)
            .where(CashHandover.driver_id == driver_id)
            .order_by(CashHandover.date.desc())
            .limit(limit)
        ).scalars().all()
        return list(handovers)

    # --- Admin actions ---

    def verify(
        self, handover_id: int, request: HandoverVerify, actor: Actor
    ) -> CashHandover:
        """
        Move a PENDING handover to its final status.

        One-way: any later verify or resubmit is refused and leaves
        the record untouched.
        """
        require_admin(actor)
        handover = self._get_for_update(handover_id)

        if not handover.can_transition_to(request.status):
            logger.warning(
                "Verification of non-pending handover refused",
                extra={"handover_id": handover.id, "status": handover.status.value},
            )
            raise InvalidStateTransitionError(
                "Only pending handovers can be verified"
            )

        handover.status = request.status
        handover.verified_by = actor.user_id
        handover.verified_at = datetime.utcnow()
        handover.admin_notes = request.admin_notes
        if request.status == CashHandoverStatus.ADJUSTED:
            handover.adjustment_amount = request.adjustment_amount
        self.db.flush()

        logger.info(
            "Cash handover verified",
            extra={
                "handover_id": handover.id,
                "driver_id": handover.driver_id,
                "status": handover.status.value,
                "verified_by": actor.user_id,
                "adjustment_amount": (
                    str(handover.adjustment_amount)
                    if handover.adjustment_amount is not None else None
                ),
            },
        )
        return handover

    # --- Read models ---

    def get_handover(self, handover_id: int, actor: Actor) -> HandoverDetail:
        """
        Handover plus the figures an admin needs to judge it.

        gross_cash adds back the expenses that were deducted from
        expected_cash; pending_expense_amount is the part of those
        still awaiting review.
        """
        handover = self.db.get(CashHandover, handover_id)
        if not handover:
            raise NotFoundError(handover_not_found(handover_id))
        require_admin_or_driver(actor, handover.driver_id)

        deducted = self.summary_service.sum_cash_expenses(
            handover.driver_id, handover.date
        )
        pending = self.summary_service.sum_cash_expenses(
            handover.driver_id, handover.date, pending_only=True
        )

        return HandoverDetail(
            **HandoverResponse.model_validate(handover).model_dump(),
            gross_cash=to_money(handover.expected_cash + deducted),
            pending_expense_amount=pending,
        )

    def list_handovers(self, filters: HandoverFilter, actor: Actor) -> HandoverPage:
        require_admin(actor)

        conditions = []
        if filters.status:
            conditions.append(CashHandover.status == filters.status)
        if filters.driver_id:
            conditions.append(CashHandover.driver_id == filters.driver_id)
        if filters.start_date:
            conditions.append(CashHandover.date >= filters.start_date)
        if filters.end_date:
            conditions.append(CashHandover.date <= filters.end_date)

        total = self.db.execute(
            select(func.count(CashHandover.id)).where(*conditions)
        ).scalar()

        handovers = self.db.execute(
            select(CashHandover)
            .where(*conditions)
            .order_by(CashHandover.date.desc(), CashHandover.submitted_at.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        ).scalars().all()

        return HandoverPage(
            handovers=[HandoverResponse.model_validate(h) for h in handovers],
            pagination=Pagination(
                total=total,
                page=filters.page,
                limit=filters.limit,
                total_pages=math.ceil(total / filters.limit),
            ),
        )

    def get_stats(self, actor: Actor, day: date | None = None) -> CashStats:
        """Dashboard figures for one day (today by default)."""
        require_admin(actor)
        day = day or date.today()
        start, end = day_window(day)

        cash_count, cash_total = self.db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.cash_collected), 0),
            ).where(
                Order.scheduled_date >= start,
                Order.scheduled_date < end,
                Order.status == OrderStatus.COMPLETED,
                Order.payment_method == PaymentMethod.CASH,
            )
        ).one()

        rows = self.db.execute(
            select(
                CashHandover.status,
                func.count(CashHandover.id),
                func.coalesce(func.sum(CashHandover.actual_cash), 0),
                func.coalesce(func.sum(CashHandover.discrepancy), 0),
            )
            .where(CashHandover.date == day)
            .group_by(CashHandover.status)
        ).all()

        by_status = {
            status: StatusBreakdown(count=0, actual_cash=to_money(0))
            for status in CashHandoverStatus
        }
        total_discrepancy = Decimal("0")
        for status, count, actual, discrepancy in rows:
            by_status[status] = StatusBreakdown(count=count, actual_cash=to_money(actual))
            total_discrepancy += to_money(discrepancy)

        pending_handovers = self.db.execute(
            select(func.count(CashHandover.id)).where(
                CashHandover.status == CashHandoverStatus.PENDING
            )
        ).scalar()

        large_discrepancies = self.db.execute(
            select(func.count(CashHandover.id)).where(
                CashHandover.date == day,
                CashHandover.discrepancy > self.settings.LARGE_DISCREPANCY_THRESHOLD,
            )
        ).scalar()

        return CashStats(
            date=day,
            total_cash_orders=cash_count,
            total_cash_collected=to_money(cash_total),
            by_status=by_status,
            total_discrepancy=to_money(total_discrepancy),
            pending_handovers=pending_handovers,
            large_discrepancies=large_discrepancies,
        )

    def get_trends(
        self, actor: Actor, days: int | None = None, today: date | None = None
    ) -> list[TrendPoint]:
        """Daily sums over VERIFIED handovers for the last N days."""
        require_admin(actor)
        days = days or self.settings.HANDOVER_TREND_DAYS
        since = (today or date.today()) - timedelta(days=days)

        rows = self.db.execute(
            select(
                CashHandover.date,
                func.sum(CashHandover.actual_cash),
                func.sum(CashHandover.expected_cash),
                func.sum(CashHandover.discrepancy),
            )
            .where(
                CashHandover.date >= since,
                CashHandover.status == CashHandoverStatus.VERIFIED,
            )
            .group_by(CashHandover.date)
            .order_by(CashHandover.date)
        ).all()

        return [
            TrendPoint(
                date=day,
                actual_cash=to_money(actual),
                expected_cash=to_money(expected),
                discrepancy=to_money(discrepancy),
            )
            for day, actual, expected, discrepancy in rows
        ]
