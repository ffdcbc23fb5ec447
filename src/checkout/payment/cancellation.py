"""Payment intent cancellation — command and handler.

The buyer abandoned checkout. The intent is canceled at the provider and
locally; the order stays Pending so a later attempt can pay it.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.gateway import get_gateway
from checkout.payment.intent import PaymentIntent


@checkout.command(part_of="PaymentIntent")
class CancelPaymentIntent:
    payment_intent_id = Identifier(required=True)


@checkout.command_handler(part_of=PaymentIntent)
class CancelPaymentIntentHandler:
    @handle(CancelPaymentIntent)
    def cancel_payment_intent(self, command):
        repo = current_domain.repository_for(PaymentIntent)
        intent = repo.get(command.payment_intent_id)
        if intent.is_terminal:
            return intent.status

        # The provider has the final say: a payment may have gone through already
        reported = get_gateway().cancel_intent(intent.provider_ref)
        if intent.record_status(reported):
            repo.add(intent)
        return intent.status
