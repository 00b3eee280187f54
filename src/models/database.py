from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Index
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class Product(Base):
    """Product stocked at one branch, partitioned by branch like the source table"""
    __tablename__ = "products_by_branch"

    branch_id = Column(Integer, primary_key=True, autoincrement=False)
    product_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String)
    description = Column(String)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity_available = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_products_active_stock", "is_active", "quantity_available"),
    )


class OrderLine(Base):
    """Append-only order log; order_id is a time-based UUID"""
    __tablename__ = "orders_by_branch"

    branch_id = Column(Integer, primary_key=True, autoincrement=False)
    order_time = Column(DateTime, primary_key=True, default=datetime.utcnow)
    order_id = Column(String(36), primary_key=True)
    product_name = Column(String, nullable=False, index=True)
    category = Column(String)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    username = Column(String, nullable=False)


class User(Base):
    __tablename__ = "users"

    username = Column(String, primary_key=True)
    full_name = Column(String)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="registered")  # registered, employee, admin
    branch_id = Column(Integer, nullable=True)


class SessionToken(Base):
    """Login session; only the SHA-256 of the bearer token is kept"""
    __tablename__ = "sessions"

    token_hash = Column(String(64), primary_key=True)
    username = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
