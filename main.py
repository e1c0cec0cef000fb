import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from auth import SESSION_COOKIE, SessionUser, resolve_session_user, token_from_headers
from config import get_settings
from database import get_db
from periods import MonthRef, resolve_month
from schemas import AnalyticsQuery
from services import (
    AccountNotFound,
    AnalyticsService,
    CategorySpend,
    LedgerReader,
    MonthlySummary,
    QuarterlyReport,
    SavingPlan,
    SavingPlanService,
    cents_to_major,
)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Household Ledger")


def current_user(request: Request) -> SessionUser:
    token = token_from_headers(
        request.cookies.get(SESSION_COOKIE),
        request.headers.get("authorization"),
    )
    user = resolve_session_user(token)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def query_from_request(request: Request) -> AnalyticsQuery:
    try:
        return AnalyticsQuery.model_validate(dict(request.query_params))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid query parameters") from exc


def month_from_query(query: AnalyticsQuery) -> MonthRef:
    try:
        return resolve_month(query.month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def primary_account_or_404(reader: LedgerReader) -> str:
    account_id = reader.primary_account_id()
    if not account_id:
        logger.warning(f"account_lookup: user={reader.user_id} result=missing")
        raise HTTPException(status_code=404, detail="No account found for user")
    return account_id


def summary_reader(
    db: Session, user: SessionUser, requested: Optional[str]
) -> tuple[LedgerReader, str]:
    reader = LedgerReader(db, user.id)
    if requested:
        if not reader.owns_account(requested):
            raise HTTPException(status_code=404, detail="Account not found")
        return reader, requested

    account_id = reader.primary_account_id()
    if account_id:
        return reader, account_id

    fallback = get_settings().fallback_account_id
    if not fallback:
        raise HTTPException(status_code=404, detail="No account found for user")
    try:
        fallback_reader = LedgerReader.for_account(db, fallback)
    except AccountNotFound as exc:
        logger.warning(f"account_lookup: user={user.id} fallback={fallback} result=missing")
        raise HTTPException(status_code=404, detail="No account found for user") from exc
    logger.info(f"account_lookup: user={user.id} fallback={fallback}")
    return fallback_reader, fallback


def category_payload(rows: list[CategorySpend]) -> list[dict[str, object]]:
    return [
        {"id": row.id, "name": row.name, "amount": cents_to_major(row.amount_cents)}
        for row in rows
    ]


def quarterly_payload(report: QuarterlyReport) -> dict[str, object]:
    return {
        "quarters": [
            {
                "month": q.month,
                "year": q.year,
                "incomeCents": q.income_cents,
                "outcomeCents": q.outcome_cents,
                "savingsCents": q.savings_cents,
                "balanceCents": q.balance_cents,
            }
            for q in report.quarters
        ],
        "totals": {
            "incomeCents": report.totals.income_cents,
            "outcomeCents": report.totals.outcome_cents,
            "savingsCents": report.totals.savings_cents,
        },
    }


def summary_payload(summary: MonthlySummary) -> dict[str, object]:
    return {
        "month": summary.month.slug,
        "totalBalance": cents_to_major(summary.total_balance_cents),
        "carryoverFromLastMonth": cents_to_major(summary.carryover_cents),
        "incomeTotal": cents_to_major(summary.income_cents),
        "outcomeTotal": cents_to_major(summary.outcome_total_cents),
        "outcomeTotalExclSavings": cents_to_major(summary.outcome_excl_savings_cents),
        "monthlySavingsActual": cents_to_major(summary.savings_actual_cents),
        "remaining": cents_to_major(summary.remaining_cents),
        "plannedSavings": cents_to_major(summary.planned_savings_cents),
        "projectedIncomeTotal": cents_to_major(summary.projected_income_cents),
        "projectedOutcomeTotal": cents_to_major(summary.projected_outcome_cents),
        "projectedRemaining": cents_to_major(summary.projected_remaining_cents),
        "outgoingByCategory": category_payload(summary.outgoing_by_category),
        "projectedOutgoingByCategory": category_payload(
            summary.projected_outgoing_by_category
        ),
        "recurringTransactions": [
            {
                "id": rec.id,
                "description": rec.description,
                "amountCents": rec.amount_cents,
                "categoryId": rec.category_id,
                "dayOfMonth": rec.day_of_month,
            }
            for rec in summary.recurring
        ],
        "recurringIncomeTotal": cents_to_major(summary.recurring_income_cents),
        "recurringOutcomeTotal": cents_to_major(summary.recurring_outcome_cents),
        "daily": {
            "labels": [str(point.day) for point in summary.daily],
            "income": [cents_to_major(p.cumulative_income) for p in summary.daily],
            "outcome": [cents_to_major(p.cumulative_outcome) for p in summary.daily],
            "savings": [
                cents_to_major(p.cumulative_savings_adjusted) for p in summary.daily
            ],
        },
    }


def saving_plan_payload(plan: SavingPlan) -> dict[str, object]:
    return {
        "goals": [
            {
                "id": goal.id,
                "accountId": goal.account_id,
                "categoryId": goal.category_id,
                "categoryName": goal.category_name,
                "title": goal.title,
                "month": goal.month,
                "year": goal.year,
                "amountCents": goal.amount_cents,
            }
            for goal in plan.goals
        ],
        "totals": {
            "availableCents": plan.available_cents,
            "totalTargetCents": plan.total_target_cents,
            "suggestedMonthlyCents": plan.suggested_monthly_cents,
        },
    }


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/analytics/quarterly")
def api_quarterly(
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
):
    ref = month_from_query(query_from_request(request))
    reader = LedgerReader(db, user.id)
    account_id = primary_account_or_404(reader)
    report = AnalyticsService(reader).quarterly(account_id, ref)
    return quarterly_payload(report)


@app.get("/api/analytics/summary")
def api_summary(
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
):
    query = query_from_request(request)
    ref = month_from_query(query)
    reader, account_id = summary_reader(db, user, query.account_id)
    summary = AnalyticsService(reader).summary(account_id, ref)
    return summary_payload(summary)


@app.get("/api/saving-plan")
def api_saving_plan(
    request: Request,
    db: Session = Depends(get_db),
    user: SessionUser = Depends(current_user),
):
    ref = month_from_query(query_from_request(request))
    reader = LedgerReader(db, user.id)
    account_id = primary_account_or_404(reader)
    plan = SavingPlanService(reader).plan(account_id, ref)
    return saving_plan_payload(plan)


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
