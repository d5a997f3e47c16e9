# Overview: Post-commit notification hooks (receipt printing, UI refresh, shift reports).

"""
Engine signals

Sent only after the unit of work has committed. Receivers (receipt printer,
UI refresh, shift report) are not part of the transaction: a failing
receiver is logged and never undoes the committed sale or shift.

    from tillshift.signals import sale_committed

    @sale_committed.connect
    def print_receipt(sender, sale, **extra):
        ...
"""

from blinker import Namespace
from flask import current_app

_signals = Namespace()

#: sender=app, sale=<Sale>
sale_committed = _signals.signal("sale-committed")
#: sender=app, sale_id=<str>, shift_id=<str>, invoice_number=<str>
sale_reversed = _signals.signal("sale-reversed")
#: sender=app, shift=<Shift>
shift_opened = _signals.signal("shift-opened")
#: sender=app, shift=<Shift>, discrepancy_cents=<int>
shift_closed = _signals.signal("shift-closed")


def notify(signal, **kwargs) -> None:
    """Send `signal`, logging receiver failures instead of propagating them."""
    app = current_app._get_current_object()
    for receiver in signal.receivers_for(app):
        try:
            receiver(app, **kwargs)
        except Exception:
            app.logger.exception("Receiver %r for %s failed", receiver, signal.name)
