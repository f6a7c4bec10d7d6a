"""Basket tracking bounded context — sensor-instrumented shopping baskets.

Reconciles RFID/weight sensor reports into priced baskets, drives the basket
lifecycle through checkout to a cashier decision, retires idle baskets, and
keeps an append-only audit trail of every state change.
"""

from protean.domain import Domain

# Domain Composition Root
tracking = Domain(name="tracking")
