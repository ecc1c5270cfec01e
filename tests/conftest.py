# tests/conftest.py
"""
Shared fixtures: a file-backed SQLite store with the tables the KPI
engine reads (sales facts, monthly rollups, product catalogue).
"""

from datetime import date

import pytest
from sqlalchemy import create_engine, text

from pharma_analytics.sales_kpi.models import DateRange

SCHEMA = [
    """
    CREATE TABLE data_internalproduct (
        id INTEGER PRIMARY KEY,
        pharmacy_id TEXT NOT NULL,
        code_13_ref_id TEXT,
        tva_rate REAL
    )
    """,
    """
    CREATE TABLE data_inventorysnapshot (
        id INTEGER PRIMARY KEY,
        product_id INTEGER NOT NULL,
        price_with_tax REAL NOT NULL,
        weighted_average_price REAL
    )
    """,
    """
    CREATE TABLE data_sales (
        id INTEGER PRIMARY KEY,
        product_id INTEGER NOT NULL,
        date TEXT NOT NULL,
        quantity REAL NOT NULL
    )
    """,
    """
    CREATE TABLE data_globalproduct (
        code_13_ref TEXT PRIMARY KEY,
        bcb_lab TEXT,
        bcb_segment_l0 TEXT,
        bcb_segment_l1 TEXT,
        bcb_segment_l2 TEXT,
        bcb_segment_l3 TEXT,
        bcb_segment_l4 TEXT,
        bcb_segment_l5 TEXT
    )
    """,
    """
    CREATE TABLE mv_sales_kpi_monthly (
        periode TEXT NOT NULL,
        pharmacy_id TEXT NOT NULL,
        quantite_vendue REAL,
        ca_ttc REAL,
        montant_marge REAL,
        nb_references_selection INTEGER
    )
    """,
    """
    CREATE TABLE mv_product_stats_monthly (
        month TEXT NOT NULL,
        pharmacy_id TEXT NOT NULL,
        ean13 TEXT NOT NULL,
        ttc_sold REAL,
        qty_sold REAL
    )
    """,
]


class FakeStore:
    """Seeds the SQLite store one business fact at a time."""

    def __init__(self, engine):
        self.engine = engine
        self._products = {}
        self._next_id = 1

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def execute(self, sql: str, **params):
        with self.engine.begin() as conn:
            conn.execute(text(sql), params)

    def add_sale(
        self,
        code: str,
        pharmacy_id: str,
        day: str,
        quantity: float,
        price_with_tax: float,
        cost: float,
        tva_rate: float = 0.0
    ):
        key = (code, pharmacy_id, tva_rate)
        if key not in self._products:
            product_id = self._new_id()
            self.execute(
                "INSERT INTO data_internalproduct (id, pharmacy_id, code_13_ref_id, tva_rate) "
                "VALUES (:id, :pharmacy_id, :code, :tva)",
                id=product_id, pharmacy_id=pharmacy_id, code=code, tva=tva_rate,
            )
            self._products[key] = product_id

        snapshot_id = self._new_id()
        self.execute(
            "INSERT INTO data_inventorysnapshot (id, product_id, price_with_tax, weighted_average_price) "
            "VALUES (:id, :product_id, :price, :cost)",
            id=snapshot_id, product_id=self._products[key], price=price_with_tax, cost=cost,
        )
        self.execute(
            "INSERT INTO data_sales (id, product_id, date, quantity) VALUES (:id, :snapshot_id, :day, :qty)",
            id=self._new_id(), snapshot_id=snapshot_id, day=day, qty=quantity,
        )

    def add_rollup(
        self,
        periode: str,
        pharmacy_id: str,
        quantity: float,
        revenue: float,
        margin: float,
        references: int
    ):
        self.execute(
            "INSERT INTO mv_sales_kpi_monthly "
            "(periode, pharmacy_id, quantite_vendue, ca_ttc, montant_marge, nb_references_selection) "
            "VALUES (:periode, :pharmacy_id, :qty, :ca, :marge, :refs)",
            periode=periode, pharmacy_id=pharmacy_id, qty=quantity,
            ca=revenue, marge=margin, refs=references,
        )

    def add_catalogue(self, code: str, lab: str = None, *segments: str):
        levels = list(segments) + [None] * (6 - len(segments))
        self.execute(
            "INSERT INTO data_globalproduct (code_13_ref, bcb_lab, bcb_segment_l0, bcb_segment_l1, "
            "bcb_segment_l2, bcb_segment_l3, bcb_segment_l4, bcb_segment_l5) "
            "VALUES (:code, :lab, :l0, :l1, :l2, :l3, :l4, :l5)",
            code=code, lab=lab,
            l0=levels[0], l1=levels[1], l2=levels[2], l3=levels[3], l4=levels[4], l5=levels[5],
        )

    def add_product_month(self, month: str, pharmacy_id: str, ean13: str, ttc_sold: float, qty_sold: float = 1):
        self.execute(
            "INSERT INTO mv_product_stats_monthly (month, pharmacy_id, ean13, ttc_sold, qty_sold) "
            "VALUES (:month, :pharmacy_id, :ean13, :ttc, :qty)",
            month=month, pharmacy_id=pharmacy_id, ean13=ean13, ttc=ttc_sold, qty=qty_sold,
        )


@pytest.fixture
def engine(tmp_path):
    db_engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}")
    with db_engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def store(engine):
    return FakeStore(engine)


@pytest.fixture
def empty_engine(tmp_path):
    """Engine on a database without any table (every query fails)."""
    db_engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def january_2024():
    return DateRange(date(2024, 1, 1), date(2024, 1, 31))
