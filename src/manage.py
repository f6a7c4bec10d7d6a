"""SmartBasket management CLI.

Operator commands that act on the configured basket store and audit log,
sharing the same lifecycle manager the API uses.

Usage:
    python src/manage.py sweep                    # Retire idle open baskets now
    python src/manage.py show basket-07           # Print a basket as JSON
    python src/manage.py audit basket-07          # Print a basket's audit trail
    python src/manage.py archive basket-07        # Remove a paid/cancelled basket
"""

import argparse
import json
import sys


def _init():
    import tracking.catalog  # noqa: F401  # load before domain traversal to avoid a partial-module import cycle
    from tracking.domain import tracking
    from tracking.utils.logging import configure_logging

    configure_logging()
    tracking.init()


def sweep():
    from tracking.basket.service import get_sweeper

    swept = get_sweeper().sweep()
    print(f"Retired {swept} idle basket(s).")


def show(basket_id):
    from tracking.api.schemas import BasketResponse
    from tracking.basket.service import get_lifecycle

    basket = get_lifecycle().get(basket_id)
    print(BasketResponse.from_basket(basket).model_dump_json(by_alias=True, indent=2))


def audit(basket_id):
    from tracking.api.schemas import AuditEntrySchema
    from tracking.basket.service import get_lifecycle

    records = get_lifecycle().audit_trail(basket_id)
    entries = [AuditEntrySchema.from_record(record).model_dump(mode="json", by_alias=True) for record in records]
    print(json.dumps(entries, indent=2))


def archive(basket_id):
    from tracking.basket.service import get_lifecycle

    record = get_lifecycle().archive(basket_id)
    print(f"Archived {basket_id} ({record.action.value}).")


def main():
    parser = argparse.ArgumentParser(description="SmartBasket management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sweep", help="Retire baskets idle beyond the configured threshold")

    for name, help_text in (
        ("show", "Print a basket"),
        ("audit", "Print a basket's audit trail"),
        ("archive", "Remove a paid or cancelled basket"),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("basket_id")

    args = parser.parse_args()

    from tracking.exceptions import BasketTrackingError

    _init()
    try:
        if args.command == "sweep":
            sweep()
        elif args.command == "show":
            show(args.basket_id)
        elif args.command == "audit":
            audit(args.basket_id)
        elif args.command == "archive":
            archive(args.basket_id)
        else:
            parser.print_help()
            sys.exit(1)
    except BasketTrackingError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
