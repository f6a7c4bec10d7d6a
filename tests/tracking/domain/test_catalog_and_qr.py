"""Tests for the catalog and QR encoder adapters and their factories."""

import json
from decimal import Decimal

import pytest
from tracking.catalog import CatalogEntry, InMemoryCatalog, get_catalog, reset_catalog, set_catalog
from tracking.qr import UriQrEncoder, get_qr_encoder, set_qr_encoder


class TestInMemoryCatalog:
    def test_register_and_resolve(self):
        catalog = InMemoryCatalog()
        catalog.register("E200-MILK", "Milk 1L", "1.29")

        assert catalog.resolve("E200-MILK") == CatalogEntry(name="Milk 1L", price=Decimal("1.29"))
        assert catalog.resolve("E200-NOPE") is None
        assert len(catalog) == 1

    def test_float_prices_keep_their_decimal_text(self):
        catalog = InMemoryCatalog.from_mapping({"A": {"name": "Apple", "price": 0.1}})

        assert catalog.resolve("A").price == Decimal("0.1")

    @pytest.mark.parametrize("price", ["-0.01", "free"])
    def test_invalid_price_rejected(self, price):
        with pytest.raises(ValueError):
            InMemoryCatalog().register("A", "Apple", price)

    def test_load_from_json_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"E200-EGGS": {"name": "Eggs x12", "price": "4.10"}}))

        catalog = InMemoryCatalog.from_json_file(path)

        assert catalog.resolve("E200-EGGS").name == "Eggs x12"


class TestCatalogFactory:
    def test_default_catalog_is_empty_without_configuration(self, monkeypatch):
        monkeypatch.delenv("SMARTBASKET_CATALOG_PATH", raising=False)
        reset_catalog()

        assert len(get_catalog()) == 0

    def test_default_catalog_loads_configured_file(self, monkeypatch, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"A": {"name": "Apple", "price": "0.50"}}))
        monkeypatch.setenv("SMARTBASKET_CATALOG_PATH", str(path))
        reset_catalog()

        assert get_catalog().resolve("A").price == Decimal("0.50")

    def test_set_catalog_overrides_default(self):
        catalog = InMemoryCatalog()
        set_catalog(catalog)

        assert get_catalog() is catalog


class TestQrEncoder:
    def test_payload_is_wrapped_in_checkout_uri(self):
        assert UriQrEncoder().encode("basket-07") == "smartbasket://checkout/basket-07"

    def test_payload_is_escaped(self):
        assert UriQrEncoder(scheme="shop").encode("lane 3/basket") == "shop://checkout/lane%203%2Fbasket"

    def test_scheme_comes_from_settings(self, monkeypatch):
        monkeypatch.setenv("SMARTBASKET_QR_SCHEME", "storeqr")

        assert get_qr_encoder().encode("b1") == "storeqr://checkout/b1"

    def test_set_qr_encoder_overrides_default(self):
        encoder = UriQrEncoder(scheme="custom")
        set_qr_encoder(encoder)

        assert get_qr_encoder() is encoder
