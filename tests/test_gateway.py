"""Tests for the data-access gateway."""

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from itclinic.errors import BackendError, UniqueViolation


def add_products(gateway):
    gateway.insert("products", {"name": "SSD 512GB", "price": 750000, "stock": 8, "category": "Storage"})
    gateway.insert("products", {"name": "HDD 1TB", "price": 600000, "stock": 0, "category": "Storage"})
    gateway.insert("products", {"name": "Wireless Mouse", "price": 90000, "stock": 20, "category": "Accessories"})


class TestReads:
    def test_insert_returns_generated_id(self, gateway):
        row = gateway.insert("services", {"name": "Data Recovery", "price": 250000})
        assert row.id
        assert row.is_active is True
        assert gateway.select_one("services", {"id": row.id}).name == "Data Recovery"

    def test_equality_and_membership_filters(self, gateway):
        add_products(gateway)
        assert gateway.count("products", {"category": "Storage"}) == 2
        assert gateway.count("products", {"stock": [0, 20]}) == 2
        assert gateway.count("products") == 3

    def test_order_and_limit(self, gateway):
        add_products(gateway)
        rows = gateway.select("products", order=("-price",), limit=2)
        assert [r.name for r in rows] == ["SSD 512GB", "HDD 1TB"]

    def test_search_is_case_insensitive_or(self, gateway):
        add_products(gateway)
        rows = gateway.select("products", search=("storage", ("name", "category")), order=("name",))
        assert [r.name for r in rows] == ["HDD 1TB", "SSD 512GB"]
        rows = gateway.select("products", search=("MOUSE", ("name", "category")))
        assert [r.name for r in rows] == ["Wireless Mouse"]

    def test_search_treats_wildcards_literally(self, gateway):
        add_products(gateway)
        assert gateway.select("products", search=("%", ("name",))) == []

    def test_inclusive_ranges(self, gateway, service, customer):
        for day in (3, 10, 20):
            gateway.insert("reservations", {
                "user_id": customer.user_id,
                "service_id": service.id,
                "booking_date": date(2025, 2, day),
                "booking_time": "09:00",
            })
        rows = gateway.select(
            "reservations",
            ranges={"booking_date": (date(2025, 2, 3), date(2025, 2, 10))},
            order=("booking_date",),
        )
        assert [r.booking_date.day for r in rows] == [3, 10]

    def test_expand_loads_relation(self, gateway, service, customer):
        gateway.insert("reservations", {
            "user_id": customer.user_id,
            "service_id": service.id,
            "booking_date": date(2025, 2, 3),
            "booking_time": "10:00",
        })
        row = gateway.select("reservations", expand=("service", "user"))[0]
        assert row.service.name == "Laptop Repair"
        assert row.user.email == "alice@example.com"

    def test_unknown_table(self, gateway):
        with pytest.raises(ValueError):
            gateway.select("invoices")


class TestWrites:
    def test_update_returns_rows(self, gateway):
        add_products(gateway)
        rows = gateway.update("products", {"category": "Storage"}, {"stock": 3})
        assert len(rows) == 2
        assert {r.stock for r in rows} == {3}

    def test_update_nothing_matched(self, gateway):
        assert gateway.update("products", {"id": "missing"}, {"stock": 3}) == []

    def test_delete(self, gateway):
        add_products(gateway)
        assert gateway.delete("products", {"name": "HDD 1TB"}) == 1
        assert gateway.count("products") == 2
        assert gateway.delete("products", {"name": "HDD 1TB"}) == 0

    def test_duplicate_key_is_unique_violation(self, gateway):
        gateway.insert("services", {"name": "Network Setup", "price": 200000})
        with pytest.raises(UniqueViolation):
            gateway.insert("services", {"name": "Network Setup", "price": 1})
        # Session is usable again after the rollback.
        assert gateway.count("services") == 1

    def test_live_slot_is_unique_per_user(self, gateway, service, customer):
        slot = {
            "user_id": customer.user_id,
            "service_id": service.id,
            "booking_date": date(2025, 3, 1),
            "booking_time": "13:00",
        }
        gateway.insert("reservations", slot)
        with pytest.raises(UniqueViolation):
            gateway.insert("reservations", slot)

    def test_cancelled_rows_do_not_hold_the_slot(self, gateway, service, customer):
        slot = {
            "user_id": customer.user_id,
            "service_id": service.id,
            "booking_date": date(2025, 3, 1),
            "booking_time": "13:00",
        }
        gateway.insert("reservations", {**slot, "status": "cancelled", "repair_status": "cancelled"})
        assert gateway.insert("reservations", slot).status == "pending"

    def test_backend_failure_is_backend_error(self, gateway, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr(gateway.db, "execute", broken)
        with pytest.raises(BackendError):
            gateway.select("services")
