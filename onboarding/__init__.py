"""Seller onboarding workflow: OTP-gated registration, shop and payment provisioning."""

from onboarding.flows import PasswordResetFlow, SellerRegistrationFlow
from onboarding.provisioning import ProvisioningCoordinator

__all__ = [
    "SellerRegistrationFlow", "PasswordResetFlow", "ProvisioningCoordinator",
]
