"""BDD tests for the basket lifecycle."""

from decimal import Decimal

import pytest
from pytest_bdd import given, parsers, scenarios, then, when
from tracking.exceptions import BasketNotFound, BasketTrackingError

scenarios("features/basket_lifecycle.feature")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for the error raised by the last action."""
    return {"exc": None}


def _attempt(error, action, *args):
    try:
        action(*args)
    except BasketTrackingError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the catalog lists milk at 1.29 and bread at 3.50")
def catalog_lists_milk_and_bread(catalog):
    catalog.register("E200-MILK", "Milk 1L", "1.29")
    catalog.register("E200-BREAD", "Sourdough", "3.50")


@given(parsers.cfparse('basket "{basket_id}" reported "{identifiers}"'))
def basket_reported(lifecycle, basket_id, identifiers):
    lifecycle.sync(basket_id, identifiers=identifiers.split(","))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('basket "{basket_id}" reports "{identifiers}"'))
def basket_reports(lifecycle, error, basket_id, identifiers):
    _attempt(error, lambda: lifecycle.sync(basket_id, identifiers=identifiers.split(",")))


@given(parsers.cfparse('basket "{basket_id}" is checked out'))
@when(parsers.cfparse('basket "{basket_id}" is checked out'))
def basket_checked_out(lifecycle, error, basket_id):
    _attempt(error, lifecycle.checkout, basket_id)


@given(parsers.cfparse('the cashier marks basket "{basket_id}" as {decision}'))
@when(parsers.cfparse('the cashier marks basket "{basket_id}" as {decision}'))
def cashier_decides(lifecycle, error, basket_id, decision):
    _attempt(error, lifecycle.decide, basket_id, decision == "paid")


@when(parsers.cfparse("{minutes:d} minutes pass without activity"))
def time_passes(clock, minutes):
    clock.advance(minutes=minutes)


@when("the idle sweep runs")
def idle_sweep_runs(sweeper):
    sweeper.sweep()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('basket "{basket_id}" is "{status}"'))
def basket_status_is(lifecycle, basket_id, status):
    assert lifecycle.get(basket_id).status == status


@then(parsers.cfparse('basket "{basket_id}" totals {total}'))
def basket_totals(lifecycle, basket_id, total):
    assert lifecycle.get_total(basket_id) == Decimal(total)


@then(parsers.cfparse('basket "{basket_id}" no longer exists'))
def basket_no_longer_exists(lifecycle, basket_id):
    with pytest.raises(BasketNotFound):
        lifecycle.get(basket_id)


@then(parsers.cfparse('the audit trail for "{basket_id}" is "{actions}"'))
def audit_trail_is(lifecycle, basket_id, actions):
    assert [record.action.value for record in lifecycle.audit_trail(basket_id)] == actions.split(",")


@then(parsers.cfparse('the action is rejected as "{code}"'))
def action_rejected(error, code):
    assert error["exc"] is not None, "Expected the action to be rejected but it succeeded"
    assert error["exc"].code == code
