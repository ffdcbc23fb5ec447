"""Provider status recording — command and handler.

Applies a status reported by the provider (polled or pushed) to the
intent. The order is not touched here; the bridge decides what the report
means for the ledger.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.payment.intent import IntentStatus, PaymentIntent


@checkout.command(part_of="PaymentIntent")
class RecordIntentStatus:
    payment_intent_id = Identifier(required=True)
    status = String(required=True, choices=IntentStatus)


@checkout.command_handler(part_of=PaymentIntent)
class RecordIntentStatusHandler:
    @handle(RecordIntentStatus)
    def record_intent_status(self, command):
        repo = current_domain.repository_for(PaymentIntent)
        intent = repo.get(command.payment_intent_id)
        changed = intent.record_status(command.status)
        if changed:
            repo.add(intent)
        return changed
