"""
Goal Service - live progress for an agency's active sales goals.

Reads goals and sales through the backend client and hands the numbers to
calculator.goal_pacing. Standard goals pace over their time period; promo
goals are tracked against their own start and end dates.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from calculator.business_days import TimePeriod, get_period_bounds
from calculator.goal_pacing import (
    GoalMeasurement,
    PromoStatus,
    calculate_goal_progress,
    is_promo_achieved,
    promo_goal_status,
)
from analytics.cancel_audit import parse_timestamp
from .backend_client import BackendClient
from .logging_config import get_logger, log_performance

logger = get_logger(__name__)

STAFF_PROMO_FUNCTION = "get_staff_promo_goals"
STAFF_SESSION_HEADER = "x-staff-session"

GOAL_COLUMNS ="id,goal_name,goal_type,measurement,target_value,time_period,start_date,end_date,rank,team_member_id"
SALES_COLUMNS = "id,sale_date,total_premium,total_items,sale_policies(id)"


def sales_totals(sales: List[Dict[str, Any]]) -> Dict[str, float]:
    """Totals per goal measurement; every sale counts as one household."""
    totals = {m.value: 0.0 for m in GoalMeasurement}
    for sale in sales:
        totals[GoalMeasurement.PREMIUM.value] += float(sale.get("total_premium") or 0)
        totals[GoalMeasurement.ITEMS.value] += float(sale.get("total_items") or 0)
        totals[GoalMeasurement.POLICIES.value] += len(sale.get("sale_policies") or [])
        totals[GoalMeasurement.HOUSEHOLDS.value] += 1
    return totals


class GoalService:
    """Computes goal progress for one agency."""

    def __init__(self, client: Optional[BackendClient] = None):
        self._client = client or BackendClient()

    async def _sales_between(
        self, agency_id: str, start: date, end: date, team_member_id: Optional[str]
    ) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {
            "agency_id": agency_id,
            "sale_date": [("gte", start.isoformat()), ("lte", end.isoformat())],
        }
        if team_member_id:
            filters["team_member_id"] = team_member_id
        return await self._client.select("sales", SALES_COLUMNS, filters)

    @log_performance("goal_progress")
    async def goal_progress(
        self,
        agency_id: str,
        today: date,
        team_member_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        goals = await self._client.select(
            "sales_goals",
            GOAL_COLUMNS,
            {"agency_id": agency_id, "is_active": True},
            order="rank.asc.nullsfirst",
        )

        # one sales query per distinct window
        totals_by_window: Dict[Tuple[date, date], Dict[str, float]] = {}

        async def totals_for(start: date, end: date) -> Dict[str, float]:
            if (start, end) not in totals_by_window:
                sales = await self._sales_between(agency_id, start, end, team_member_id)
                totals_by_window[(start, end)] = sales_totals(sales)
            return totals_by_window[(start, end)]

        results = []
        for goal in goals:
            try:
                measurement = GoalMeasurement(goal.get("measurement") or GoalMeasurement.PREMIUM)
            except ValueError:
                logger.warning(f"Skipping goal {goal.get('id')} with unknown measurement {goal.get('measurement')!r}")
                continue
            target = float(goal.get("target_value") or 0)
            entry: Dict[str, Any] = {
                "id": goal.get("id"),
                "goal_name": goal.get("goal_name"),
                "measurement": measurement.value,
            }

            if goal.get("goal_type") == "promo" and goal.get("start_date") and goal.get("end_date"):
                start = parse_timestamp(goal["start_date"]).date()
                end = parse_timestamp(goal["end_date"]).date()
                totals = await totals_for(start, end)
                status, days_remaining = promo_goal_status(start, end, today)
                progress = totals[measurement.value]
                entry.update({
                    "goal_type": "promo",
                    "status": status.value,
                    "days_remaining": days_remaining,
                    "progress": progress,
                    "target": target,
                    "achieved": is_promo_achieved(progress, target),
                })
            else:
                period = TimePeriod.parse(goal.get("time_period"))
                start, end = get_period_bounds(period, today)
                totals = await totals_for(start, end)
                progress = calculate_goal_progress(target, totals[measurement.value], period, today)
                entry.update({"goal_type": "standard", "time_period": period.value, **progress.to_dict()})
            results.append(entry)

        logger.info(f"Computed progress for {len(results)} goals", extra={"extra_data": {"agency_id": agency_id}})
        return results

    @log_performance("staff_promo_goals")
    async def staff_promo_goals(self, session_token: str, today: date) -> List[Dict[str, Any]]:
        """
        Promo goals visible to a staff member, active or upcoming.

        Staff sessions are not backend users, so the goals and their progress
        come from a privileged edge function keyed by the session token.
        Status, days remaining and achievement are computed here against
        ``today``.
        """
        data = await self._client.invoke_function(
            STAFF_PROMO_FUNCTION, headers={STAFF_SESSION_HEADER: session_token}
        )
        promos = (data or {}).get("promos") or []

        results = []
        for promo in promos:
            if not promo.get("start_date") or not promo.get("end_date"):
                continue
            start = parse_timestamp(promo["start_date"]).date()
            end = parse_timestamp(promo["end_date"]).date()
            status, days_remaining = promo_goal_status(start, end, today)
            if status == PromoStatus.ENDED:
                continue
            progress = float(promo.get("progress") or 0)
            target = float(promo.get("target_value") or 0)
            results.append({
                "id": promo.get("id"),
                "goal_name": promo.get("goal_name"),
                "measurement": promo.get("measurement") or GoalMeasurement.PREMIUM.value,
                "status": status.value,
                "days_remaining": days_remaining,
                "progress": progress,
                "target": target,
                "achieved": is_promo_achieved(progress, target),
                "agency_wide": bool(promo.get("isAgencyWide")),
            })
        return results
