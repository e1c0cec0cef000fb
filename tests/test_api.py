from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from auth import issue_session_token
from config import get_settings
from database import Base, build_engine, get_db
from main import app
from models import Account, Budget, Category, Transaction, User
from seed import seed_demo


@pytest.fixture
def db_factory(monkeypatch):
    monkeypatch.delenv("HOUSEHOLD_TEST_USER_ID", raising=False)
    monkeypatch.delenv("HOUSEHOLD_FALLBACK_ACCOUNT_ID", raising=False)
    get_settings.cache_clear()

    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def client(db_factory):
    return TestClient(app)


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_session_token(user_id)}"}


def _user_with_account(factory, email="api@example.com"):
    with factory() as session:
        user = User(email=email)
        session.add(user)
        session.flush()
        account = Account(user_id=user.id, name="Main")
        session.add(account)
        session.commit()
        return user.id, account.id


def test_requires_session(client):
    assert client.get("/api/analytics/quarterly").status_code == 401
    assert client.get("/api/analytics/summary").status_code == 401
    assert client.get("/api/saving-plan").status_code == 401
    assert client.get("/healthz").json() == {"status": "ok"}


def test_quarterly_without_account_is_not_found(client):
    response = client.get("/api/analytics/quarterly", headers=_auth("nobody"))
    assert response.status_code == 404
    assert response.json() == {"detail": "No account found for user"}


def test_invalid_month_is_bad_request(client, db_factory):
    user_id, _ = _user_with_account(db_factory)
    response = client.get(
        "/api/analytics/quarterly", params={"month": "2025-13"}, headers=_auth(user_id)
    )
    assert response.status_code == 400
    response = client.get(
        "/api/analytics/summary", params={"month": "March"}, headers=_auth(user_id)
    )
    assert response.status_code == 400


def test_month_past_calendar_range_is_bad_request(client, db_factory):
    user_id, _ = _user_with_account(db_factory)
    for path in ("/api/analytics/quarterly", "/api/analytics/summary"):
        response = client.get(path, params={"month": "9999-12"}, headers=_auth(user_id))
        assert response.status_code == 400


def test_quarterly_payload(client, db_factory):
    user_id, account_id = _user_with_account(db_factory)
    with db_factory() as session:
        session.add_all(
            [
                Transaction(
                    account_id=account_id,
                    amount_cents=100_000,
                    description="Last month income",
                    occurred_at=datetime(2025, 2, 14),
                ),
                Transaction(
                    account_id=account_id,
                    amount_cents=-30_000,
                    description="Last month expense",
                    occurred_at=datetime(2025, 2, 14),
                ),
                Transaction(
                    account_id=account_id,
                    amount_cents=50_000,
                    description="This month income",
                    occurred_at=datetime(2025, 3, 2),
                ),
                Transaction(
                    account_id=account_id,
                    amount_cents=-20_000,
                    description="This month expense",
                    occurred_at=datetime(2025, 3, 3),
                ),
            ]
        )
        session.commit()

    response = client.get(
        "/api/analytics/quarterly", params={"month": "2025-03"}, headers=_auth(user_id)
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["quarters"]) == 3
    assert data["quarters"][-1] == {
        "month": 3,
        "year": 2025,
        "incomeCents": 50_000,
        "outcomeCents": 20_000,
        "savingsCents": 0,
        "balanceCents": 100_000,
    }
    assert data["totals"] == {
        "incomeCents": 150_000,
        "outcomeCents": 50_000,
        "savingsCents": 0,
    }


def test_summary_payload_and_idempotence(client, db_factory):
    user_id, account_id = _user_with_account(db_factory)
    with db_factory() as session:
        savings = Category(user_id=user_id, name="Savings")
        rent = Category(user_id=user_id, name="Rent")
        session.add_all([savings, rent])
        session.flush()
        session.add_all(
            [
                Transaction(
                    account_id=account_id,
                    amount_cents=200_000,
                    description="Salary",
                    occurred_at=datetime(2025, 3, 1, 8, 0),
                ),
                Transaction(
                    account_id=account_id,
                    category_id=savings.id,
                    amount_cents=-40_000,
                    description="To savings",
                    occurred_at=datetime(2025, 3, 2, 8, 0),
                ),
                Transaction(
                    account_id=account_id,
                    category_id=rent.id,
                    amount_cents=-95_000,
                    description="Rent",
                    occurred_at=datetime(2025, 3, 3, 8, 0),
                ),
                Budget(
                    account_id=account_id,
                    month=3,
                    year=2025,
                    amount_cents=45_000,
                ),
            ]
        )
        session.commit()
        rent_id = rent.id

    params = {"month": "2025-03"}
    first = client.get("/api/analytics/summary", params=params, headers=_auth(user_id))
    second = client.get("/api/analytics/summary", params=params, headers=_auth(user_id))
    assert first.status_code == 200
    assert first.content == second.content

    data = first.json()
    assert data["incomeTotal"] == 2000
    assert data["monthlySavingsActual"] == 400
    assert data["outcomeTotalExclSavings"] == 950
    assert data["outcomeTotal"] == data["outcomeTotalExclSavings"]
    assert data["remaining"] == 650
    assert data["plannedSavings"] == 450
    assert data["totalBalance"] == 650
    assert data["carryoverFromLastMonth"] == 0
    assert data["outgoingByCategory"] == [{"id": rent_id, "name": "Rent", "amount": 950}]
    assert data["daily"]["labels"] == [str(day) for day in range(1, 32)]
    assert len(data["daily"]["income"]) == 31
    assert data["daily"]["savings"][1] == 400
    assert data["daily"]["outcome"][-1] == 950
    assert data["recurringTransactions"] == []


def test_summary_rejects_foreign_account(client, db_factory):
    user_id, _ = _user_with_account(db_factory)
    _, other_account = _user_with_account(db_factory, email="other@example.com")
    response = client.get(
        "/api/analytics/summary",
        params={"account_id": other_account},
        headers=_auth(user_id),
    )
    assert response.status_code == 404


def test_summary_falls_back_to_demo_account(client, db_factory):
    with db_factory() as session:
        seed_demo(session, today=date(2025, 3, 10))
        session.commit()

    response = client.get(
        "/api/analytics/summary", params={"month": "2025-03"}, headers=_auth("ghost")
    )
    assert response.status_code == 200
    data = response.json()
    assert data["incomeTotal"] == 4350
    assert data["outcomeTotalExclSavings"] == 755
    assert data["monthlySavingsActual"] == 150
    assert data["remaining"] == 3445
    assert data["plannedSavings"] == 600
    assert len(data["outgoingByCategory"]) == 12
    assert data["daily"]["savings"][4] == 0
    assert data["daily"]["savings"][5] == 150


def test_summary_without_fallback_is_not_found(client, monkeypatch):
    monkeypatch.setenv("HOUSEHOLD_FALLBACK_ACCOUNT_ID", "")
    get_settings.cache_clear()
    response = client.get("/api/analytics/summary", headers=_auth("ghost"))
    assert response.status_code == 404


def test_saving_plan_payload(client, db_factory):
    user_id, account_id = _user_with_account(db_factory)
    with db_factory() as session:
        session.add(
            Budget(
                account_id=account_id,
                title="Holiday",
                month=8,
                year=2025,
                amount_cents=120_000,
            )
        )
        session.commit()

    response = client.get(
        "/api/saving-plan", params={"month": "2025-02"}, headers=_auth(user_id)
    )
    assert response.status_code == 200
    data = response.json()
    assert [goal["title"] for goal in data["goals"]] == ["Holiday"]
    assert data["totals"] == {
        "availableCents": 0,
        "totalTargetCents": 120_000,
        "suggestedMonthlyCents": 20_000,
    }
