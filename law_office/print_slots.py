"""Print the bookable appointment slots for a date.

Usage:
    python -m law_office.print_slots 2024-06-15
"""
import sys

from law_office.scheduling.errors import InvalidDate
from law_office.scheduling.slots import format_slot, generate_slots, is_weekend, parse_slot_date


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m law_office.print_slots YYYY-MM-DD", file=sys.stderr)
        sys.exit(2)

    try:
        slot_date = parse_slot_date(args[0])
    except InvalidDate as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    label = "weekend" if is_weekend(slot_date) else "weekday"
    print(f"{slot_date.isoformat()} ({label})")
    for slot in generate_slots(slot_date):
        print(format_slot(slot))


if __name__ == "__main__":
    main()
