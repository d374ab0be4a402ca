"""
Panel — four independent retry chains for the admin dashboard.

Level 4: turnstile.panel
Level 3: turnstile.fetch
"""

import asyncio

from turnstile import fetch as F
from turnstile import panel as P
from examples._infra import FakeRemote, banner, client, run


async def main() -> None:
    banner("Panel: balances recover after two failures")

    remote = FakeRemote(flaky={"/transaction/ticket/balances": 2})
    api = client(remote)

    panel = P.PanelSynchronizer(
        api,
        event_id="42",
        company_id="7",
        policy=F.RetryPolicy().with_backoff(base=0.1, cap=0.5),
    )
    panel.slot(P.Resource.BALANCES).on_change(
        lambda slot: print(f"  balances: {slot.state.value} {slot.error or ''}")
    )

    await panel.settle()
    for resource, slot in panel.slots.items():
        print(f"{resource.value:>14}: {slot.state.value} {slot.data!r}")

    print("\nRefreshing tickets...")
    panel.refresh(P.Resource.TICKETS)
    await panel.settle()
    print(f"       tickets: {panel.slot(P.Resource.TICKETS).state.value}")

    panel.close()
    await asyncio.sleep(0)
    await api.aclose()


if __name__ == "__main__":
    run(main)
