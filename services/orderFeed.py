"""
Push side of the order views.

Every committed change to an order is published on a blinker signal as the
serialized order. Subscribers register a predicate and read matching payloads
from their own queue until they cancel.
"""
import queue

from blinker import Namespace

_signals = Namespace()
order_changed = _signals.signal("order-changed")


class OrderSubscription:

    def __init__(self, predicate, maxsize=100):
        self._predicate = predicate
        self._queue = queue.Queue(maxsize=maxsize)
        self.cancelled = False
        order_changed.connect(self._receive, weak=False)

    def _receive(self, sender, order=None, **kwargs):
        if self.cancelled or order is None:
            return
        if not self._predicate(order):
            return
        try:
            self._queue.put_nowait(order)
        except queue.Full:
            # slow consumer, drop the oldest update
            try:
                self._queue.get_nowait()
            except queue.Empty:
                pass
            self._queue.put_nowait(order)

    def get(self, timeout=None):
        """Next matching order, or None when `timeout` passes or the subscription is cancelled."""
        if self.cancelled:
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self):
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def cancel(self):
        if not self.cancelled:
            self.cancelled = True
            order_changed.disconnect(self._receive)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.cancel()


class OrderFeed:

    def subscribe(self, predicate=None, maxsize=100):
        return OrderSubscription(predicate or (lambda order: True), maxsize=maxsize)

    def subscribe_buyer(self, user_id):
        return self.subscribe(lambda order: order.get("user_id") == user_id)

    def subscribe_order(self, order_id):
        return self.subscribe(lambda order: order.get("id") == order_id)

    def publish(self, order):
        order_changed.send(self, order=order)


order_feed = OrderFeed()
