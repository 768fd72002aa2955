#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

"""
Interactive local booking form harness (no HTTP, mock catalog).

Usage:
  python3 scripts/booking_local.py

What it does:
- Opens one BookingForm against the in-memory MockCatalog
- Lets you select options, change quantity and search, then prints the form state
"""

import asyncio
import logging

from booking_console.application.exceptions import SelectionValidationError
from booking_console.application.use_cases.booking_form import BookingForm
from booking_console.core.config import settings
from booking_console.infrastructure.admin_api.mock_catalog import MockCatalog
from booking_console.infrastructure.notifications.collecting_notifier import CollectingNotifier

HELP = """Commands:
  /select <node> <option id>   e.g. /select category Plumbing
  /clear <node>                unset a selection
  /qty <quantity>
  /providers <text>            provider search (debounced)
  /customers <phone>           customer search (debounced, min 4 chars)
  /more                        load more providers
  /state                       print the form
  /submit                      print the order payload
  /quit"""


def _print_state(form: BookingForm) -> None:
    print("\n--- Selections ---")
    for node in form.selection.snapshot():
        value = node["value"].label if node["value"] else "-"
        flag = "" if node["enabled"] else " (disabled)"
        options = ", ".join(o.id for o in node["options"][:8])
        print(f"{node['key']:<17} {value:<20}{flag}  [{options}]")
        if node["error"]:
            print(f"{'':<17} error: {node['error']}")

    print("\n--- Quote ---")
    quote = form.quote.quote
    if quote:
        print(f"qty={quote.quantity} base={quote.base_price} gst={quote.gst} "
              f"conv={quote.convenience_charge} total={quote.display_total(settings.CURRENCY_SYMBOL)}")
    else:
        print("(select category, subcategory and provider)")

    for label, search in (("providers", form.provider_search), ("customers", form.customer_search)):
        session = search.session
        if session.query or session.results:
            names = ", ".join(f"{i.id}:{i.label}" for i in session.results)
            print(f"\n{label} '{session.query}' page={session.page} more={session.has_more}: {names or '-'}")

    if isinstance(form.notifier, CollectingNotifier):
        for n in form.notifier.drain():
            print(f"[{n.level}] {n.message}")
    print("-" * 60)


async def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    catalog = MockCatalog(latency_seconds=0.05)
    form = BookingForm(catalog, catalog, catalog, CollectingNotifier())
    await form.open()
    print("\nLocal Booking Form Harness")
    print(HELP)
    _print_state(form)

    while True:
        try:
            line = (await asyncio.to_thread(input, "\n> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break
        if not line:
            continue

        cmd, _, rest = line.partition(" ")
        rest = rest.strip()
        try:
            if cmd in ("/quit", "/exit"):
                break
            elif cmd == "/help":
                print(HELP)
                continue
            elif cmd == "/select":
                key, _, option_id = rest.partition(" ")
                await form.select(key, option_id.strip())
            elif cmd == "/clear":
                await form.select(rest, None)
            elif cmd == "/qty":
                await form.set_quantity(rest)
            elif cmd == "/providers":
                form.provider_search.on_query_change(rest)
                await form.provider_search.wait_idle()
            elif cmd == "/customers":
                form.customer_search.on_query_change(rest)
                await form.customer_search.wait_idle()
            elif cmd == "/more":
                if not await form.provider_search.load_more():
                    print("(nothing more to load)")
            elif cmd == "/submit":
                print(form.submission())
                continue
            elif cmd != "/state":
                print("Unknown command, /help for the list")
                continue
        except SelectionValidationError as e:
            print(f"Invalid: {e}")
            continue
        _print_state(form)

    form.close()


if __name__ == "__main__":
    asyncio.run(main())
