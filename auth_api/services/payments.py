"""
Payment onboarding — hosted providers vs manual bank details.

  flutterwave / paystack / stripe → seller is redirected to the provider;
                                     completion arrives via webhook
  manual                          → bank details stored, set up immediately
"""

from urllib.parse import urlencode

from auth_api.config import settings

HOSTED_PROVIDERS = {"flutterwave", "paystack", "stripe"}


def is_hosted(provider: str) -> bool:
    return provider in HOSTED_PROVIDERS


def build_redirect_url(provider: str, seller_id: str, shop_id: str) -> str:
    """Checkout URL where the seller connects their provider account."""
    if not is_hosted(provider):
        raise ValueError(f"{provider} has no hosted onboarding")
    query = urlencode({"sellerId": seller_id, "shopId": shop_id})
    return f"{settings.payment_redirect_base.rstrip('/')}/{provider}/connect?{query}"
