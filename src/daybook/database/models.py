"""SQLAlchemy models for daybook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Driver(Base):
    """Driver model, keyed by mobile number."""

    __tablename__ = "drivers"

    mobile = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    token = Column(String, nullable=True)
    is_offline_only = Column(Boolean, default=False, nullable=False)
    preferences = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)


class DailyLog(Base):
    """Daily log model."""

    __tablename__ = "daily_logs"

    pk = Column(Integer, primary_key=True)
    log_id = Column(String(10), nullable=False)
    driver_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    is_synced = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("driver_id", "log_id", name="uq_driver_log_id"),)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="log",
        cascade="all, delete-orphan",
        order_by="Transaction.position",
    )


class Transaction(Base):
    """Transaction model. Trade columns are only populated for trades."""

    __tablename__ = "transactions"

    pk = Column(Integer, primary_key=True)
    log_pk = Column(Integer, ForeignKey("daily_logs.pk"), nullable=False)
    position = Column(Integer, nullable=False)
    transaction_id = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    amount = Column(Numeric, nullable=False)
    type = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    is_synced = Column(Boolean, default=False, nullable=False)

    trade_category = Column(String, nullable=True)
    product_name = Column(String, nullable=True)
    quantity = Column(Numeric, nullable=True)
    unit = Column(String, nullable=True)
    price = Column(Numeric, nullable=True)
    customer_name = Column(String, nullable=True)
    total = Column(Numeric, nullable=True)
    paid_amount = Column(Numeric, nullable=True)
    image = Column(String, nullable=True)

    __table_args__ = (UniqueConstraint("log_pk", "transaction_id", name="uq_log_transaction_id"),)

    # Relationships
    log = relationship("DailyLog", back_populates="transactions")
    expenses = relationship(
        "TradeExpense",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TradeExpense.position",
    )


class TradeExpense(Base):
    """Expense line deducted from a trade."""

    __tablename__ = "trade_expenses"

    pk = Column(Integer, primary_key=True)
    transaction_pk = Column(Integer, ForeignKey("transactions.pk"), nullable=False)
    position = Column(Integer, nullable=False)
    expense_id = Column(String, nullable=False)
    label = Column(String, nullable=False)
    value = Column(Numeric, nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="expenses")


class SyncQueueEntry(Base):
    """Pending sync item. ``sequence`` fixes replay order."""

    __tablename__ = "sync_queue"

    sequence = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    driver_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)


class SyncReceipt(Base):
    """Id of a sync item the remote service acknowledged."""

    __tablename__ = "sync_receipts"

    id = Column(String, primary_key=True)
    acknowledged_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)


class AppState(Base):
    """Single-value slots such as the current session pointer."""

    __tablename__ = "app_state"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
