"""Payment gateway registry.

get_hosted_gateway() / get_two_step_gateway() return the active adapters.
PAYMENT_GATEWAY=fake (default) uses one shared in-process FakeGateway for
both shapes; PAYMENT_GATEWAY=live uses Stripe and PayPal.
set_gateway() overrides both (tests), reset_gateway() goes back to settings.
"""

from orderflow.services.payments.fake_gateway import FakeGateway
from orderflow.services.payments.port import HostedCheckoutGateway, TwoStepGateway
from orderflow.utils.settings import PAYMENT_GATEWAY

_hosted: HostedCheckoutGateway | None = None
_two_step: TwoStepGateway | None = None


def _load() -> None:
    global _hosted, _two_step
    if PAYMENT_GATEWAY == "live":
        from orderflow.services.payments.paypal_gateway import PayPalGateway
        from orderflow.services.payments.stripe_gateway import StripeGateway

        _hosted, _two_step = StripeGateway(), PayPalGateway()
    else:
        fake = FakeGateway()
        _hosted, _two_step = fake, fake


def get_hosted_gateway() -> HostedCheckoutGateway:
    if _hosted is None:
        _load()
    return _hosted


def get_two_step_gateway() -> TwoStepGateway:
    if _two_step is None:
        _load()
    return _two_step


def set_gateway(gateway) -> None:
    """Use one object for both provider shapes."""
    global _hosted, _two_step
    _hosted, _two_step = gateway, gateway


def reset_gateway() -> None:
    global _hosted, _two_step
    _hosted, _two_step = None, None
