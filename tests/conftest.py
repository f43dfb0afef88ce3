"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the
real one. Tables are created before and dropped after each test.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from water_delivery.authorization import Actor
from water_delivery.main import app
from water_delivery.models import (
    Base,
    Customer,
    Driver,
    ExpensePaymentMethod,
    ExpenseStatus,
    PaymentMethod,
    Product,
    UserRole,
)
from water_delivery.models.base import get_db
from water_delivery.schemas.expense import ExpenseCreate, ExpenseReview
from water_delivery.schemas.order import (
    CompleteOrderRequest,
    OrderCreate,
    OrderItemCreate,
    OrderItemUpdate,
)
from water_delivery.services.expense_service import ExpenseService
from water_delivery.services.order_service import OrderService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)


# pysqlite defers BEGIN until the first DML statement, which breaks
# SAVEPOINTs. Take over transaction control so begin_nested() behaves
# like it does on PostgreSQL.
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

SCHEDULED_AT = datetime(2024, 5, 10, 9, 30)
DELIVERY_DAY = SCHEDULED_AT.date()


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test database.

    get_db is overridden so the app uses the test session.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Domain fixtures ---

@pytest.fixture
def admin():
    return Actor(user_id=1, role=UserRole.ADMIN)


@pytest.fixture
def customer(db_session):
    customer = Customer(name="Ayesha Khan", phone_number="0300-1234567")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture
def driver(db_session):
    driver = Driver(name="Bilal Ahmed")
    db_session.add(driver)
    db_session.commit()
    return driver


@pytest.fixture
def driver_actor(driver):
    return Actor(user_id=20, role=UserRole.DRIVER, driver_id=driver.id)


@pytest.fixture
def product(db_session):
    product = Product(
        name="19L Bottle",
        sku="BTL-19L",
        base_price=Decimal("150.00"),
        stock_filled=100,
        stock_empty=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def place_order(db_session, admin, customer, driver, product):
    """Factory: create and commit an order assigned to the driver."""
    def _place(
        quantity=4,
        scheduled_date=SCHEDULED_AT,
        delivery_charge=Decimal("0"),
        discount=Decimal("0"),
        customer_id=None,
        driver_id=None,
        payment_method=PaymentMethod.CASH,
    ):
        order = OrderService(db_session).create_order(OrderCreate(
            customer_id=customer_id or customer.id,
            driver_id=driver_id or driver.id,
            scheduled_date=scheduled_date,
            delivery_charge=delivery_charge,
            discount=discount,
            payment_method=payment_method,
            items=[OrderItemCreate(product_id=product.id, quantity=quantity)],
        ), admin)
        db_session.commit()
        return order

    return _place


@pytest.fixture
def complete_order(db_session, driver_actor, product):
    """Factory: report an order delivered by the driver and commit."""
    def _complete(
        order,
        cash="0",
        filled=0,
        empty=0,
        payment_method=PaymentMethod.CASH,
    ):
        quantity = order.items[0].quantity
        completed = OrderService(db_session).complete_order(
            order.id,
            CompleteOrderRequest(
                items=[OrderItemUpdate(
                    product_id=product.id,
                    quantity=quantity,
                    filled_given=filled,
                    empty_taken=empty,
                )],
                cash_collected=Decimal(cash),
                payment_method=payment_method,
            ),
            driver_actor,
        )
        db_session.commit()
        return completed

    return _complete


@pytest.fixture
def log_expense(db_session, admin, driver, driver_actor):
    """Factory: log a driver expense, optionally reviewing it."""
    def _log(
        amount,
        status=None,
        payment_method=ExpensePaymentMethod.CASH_ON_HAND,
        spent_at=SCHEDULED_AT,
    ):
        service = ExpenseService(db_session)
        expense = service.log_expense(ExpenseCreate(
            driver_id=driver.id,
            amount=Decimal(amount),
            date=spent_at,
            payment_method=payment_method,
        ), driver_actor)
        if status is not None:
            service.review_expense(expense.id, ExpenseReview(status=status), admin)
        db_session.commit()
        return expense

    return _log


@pytest.fixture
def cash_day(place_order, complete_order, log_expense):
    """
    The driver's reference day: one cash order of 400, a rejected
    expense of 100 and an approved one of 50. Expected cash is 350.
    """
    order = place_order(quantity=3)
    complete_order(order, cash="400", filled=3, empty=1)
    log_expense("100", status=ExpenseStatus.REJECTED)
    log_expense("50", status=ExpenseStatus.APPROVED)
    return DELIVERY_DAY
