"""
Checkout — cart to confirmed order against a scripted API.

Level 4: turnstile.checkout
Level 3: turnstile.cart, turnstile.orders
Level 2: kungfu.Result
"""

import asyncio

from kungfu import Ok, Error

from turnstile import cart as Ct
from turnstile import checkout as Co
from turnstile import orders as O
from turnstile import storage as St
from examples._infra import FakeRemote, banner, client, run


async def main() -> None:
    banner("Checkout: M-Pesa payment")

    remote = FakeRemote(settle_after=2)
    api = client(remote)
    storage = St.MemoryStorage()
    cart = await Ct.CartStore.load(storage)
    orders = O.OrderStore(storage)

    match await api.get_event("42"):
        case Ok(event) if event is not None:
            vip = event.ticket_type("101")
            assert vip is not None
            await cart.add_item(event.id, event.name, vip, 2)
        case other:
            print(f"✗ No event: {other}")
            return
    print(f"Cart: {cart.item_count} tickets, total {cart.cart_total}")

    async def confirmation(order_id: str) -> None:
        print(f"  → /order-confirmation/{order_id}")

    checkout = Co.CheckoutOrchestrator(
        api,
        cart,
        orders,
        policy=Co.CheckoutPolicy().with_poll_interval(0.2).with_timeout(5).with_success_delay(0.1),
        navigate=confirmation,
    )
    checkout.subscribe(lambda state: print(f"  state: {state.status.value}"))

    form = Co.CheckoutForm(
        name="Wanjiru Kamau",
        email="wanjiru@example.com",
        phone="0712 345 678",
        terms_accepted=True,
    )
    match await checkout.submit(form):
        case Ok(group):
            print(f"Awaiting verification of {group}")
        case Error(failure):
            print(f"✗ {failure.title}: {failure.message}")
            return

    match await checkout.settled():
        case Ok(order):
            print(f"\n✓ Order {order.id}: {len(order.tickets)} ticket(s), cart empty: {cart.is_empty}")
        case Error(failure):
            print(f"\n✗ {failure.title}: {failure.message}")

    await asyncio.sleep(0.2)
    checkout.close()
    await api.aclose()


if __name__ == "__main__":
    run(main)
