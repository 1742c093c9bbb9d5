"""
Premium subscription payments.

StripeGateway is the only place that talks to Stripe; SubscriptionService
holds the ParkPal side of the flow (customer bookkeeping, flipping the
premium flag, sending the receipt).
"""

import logging
import smtplib

import stripe
from flask_mail import Message

from backend.errors import PaymentIncompleteError, UpstreamProviderError
from backend.extensions import mail

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "ParkPal Premium Subscription"


class StripeGateway:
    """Opaque wrapper around the Stripe payment-intent API."""

    def __init__(self, api_key, currency='usd'):
        self.api_key = api_key
        self.currency = currency

    def _require_key(self):
        if not self.api_key:
            raise UpstreamProviderError("Payment provider is not configured")

    def create_customer(self, user):
        self._require_key()
        try:
            customer = stripe.Customer.create(
                api_key=self.api_key,
                name=user.username,
                email=user.email,
                metadata={'userId': str(user.id)}
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating customer for user {user.id}: {e}")
            raise UpstreamProviderError(f"Error creating customer: {e.user_message or e}")
        return customer.id

    def create_payment_intent(self, amount, description, user_id, customer_id=None):
        self._require_key()
        params = {
            'api_key': self.api_key,
            'amount': amount,
            'currency': self.currency,
            'metadata': {
                'userId': str(user_id),
                'description': description,
            },
        }
        if customer_id:
            params['customer'] = customer_id

        try:
            return stripe.PaymentIntent.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent for user {user_id}: {e}")
            raise UpstreamProviderError(f"Error creating payment intent: {e.user_message or e}")

    def retrieve_payment_intent(self, payment_intent_id):
        self._require_key()
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving payment intent {payment_intent_id}: {e}")
            raise UpstreamProviderError(f"Error confirming subscription: {e.user_message or e}")


class SubscriptionService:

    def __init__(self, storage, gateway, premium_price_cents):
        self.storage = storage
        self.gateway = gateway
        self.premium_price_cents = premium_price_cents

    def create_payment_intent(self, user, amount, description=None):
        """Starts a payment and returns the client secret for the checkout form."""
        # The amount comes from the client and is charged as sent
        if amount != self.premium_price_cents:
            logger.warning(
                f"User {user.id} requested a payment of {amount} cents; "
                f"premium price is {self.premium_price_cents}"
            )

        if not user.stripe_customer_id:
            customer_id = self.gateway.create_customer(user)
            self.storage.update_stripe_customer_id(user.id, customer_id)
            self.storage.commit()
            logger.info(f"Stripe customer {customer_id} attached to User {user.id}")

        intent = self.gateway.create_payment_intent(
            amount=amount,
            description=description or DEFAULT_DESCRIPTION,
            user_id=user.id,
            customer_id=user.stripe_customer_id
        )
        logger.info(f"Payment intent {intent.id} created for User {user.id} ({amount} cents)")
        return intent.client_secret

    def confirm_subscription(self, payment_intent_id, user):
        """Grants premium once Stripe reports the payment as succeeded."""
        intent = self.gateway.retrieve_payment_intent(payment_intent_id)
        if intent.status != 'succeeded':
            logger.info(f"Payment intent {payment_intent_id} for User {user.id} is {intent.status}")
            raise PaymentIncompleteError()

        already_premium = bool(user.premium_user)
        updated = self.storage.update_user_premium_status(user.id, True)
        self.storage.commit()
        logger.info(f"User {user.id} upgraded to premium via {payment_intent_id}")

        if not already_premium:
            send_premium_receipt(updated, intent)
        return updated


def send_premium_receipt(user, intent):
    """Emails a receipt for the upgrade. Failures are logged only."""
    if not user.email:
        return

    amount = getattr(intent, 'amount', None)
    lines = [
        f"Hey {user.username},",
        "",
        "Thanks for upgrading! Your ParkPal Premium features are now unlocked,",
        "including your full parking history.",
    ]
    if amount:
        lines += ["", f"Amount charged: ${amount / 100:.2f}"]
    lines += ["", "- ParkPal"]

    msg = Message(
        subject="Welcome to ParkPal Premium",
        recipients=[user.email],
        body="\n".join(lines)
    )
    try:
        mail.send(msg)
        logger.debug(f"Premium receipt sent to {user.email}")
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Could not send premium receipt to {user.email}: {e}")
