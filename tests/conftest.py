# tests/conftest.py
import os

# read once by bogo.utils.settings, must be set before bogo is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["BOGO_AUTO_ADD_ENABLED"] = "yes"
os.environ["BOGO_AUTO_APPLY_ENABLED"] = "yes"
os.environ["BOGO_SHOW_FREE_PRICE"] = "yes"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import bogo.data.models  # noqa: F401
from bogo.data.database import Base
from tests.fakes import Shop


@pytest.fixture
def shop():
    """P1 -> P2 offer: buy 2 of product 1, get 1 of product 2 free."""
    s = Shop()
    s.products.add(1, price="10.00", name="Keyboard")
    s.products.add(2, price="5.00", name="Mouse")
    coupon = s.coupons.add("BOGO")
    s.rules.add_rule(coupon.id, buy=1, get=2, buy_qty=2, get_qty=1)
    return s


@pytest.fixture
def variable_shop():
    """Variable product 10 with variants 11 and 12; free product 2."""
    s = Shop()
    s.products.add(10, price="25.00", name="T-Shirt")
    s.products.add(11, price="25.00", name="T-Shirt - Red", parent=10)
    s.products.add(12, price="27.00", name="T-Shirt - Blue", parent=10)
    s.products.add(2, price="5.00", name="Mouse")
    return s


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
