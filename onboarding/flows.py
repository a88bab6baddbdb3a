"""
Concrete onboarding flows.

Seller registration:
  collecting-account → otp-pending → verified → provisioning-shop
  → provisioning-payment → complete

Password reset:
  collecting-email → otp-pending → resetting-password → done
"""

from __future__ import annotations
import logging
from typing import Any

from onboarding.errors import InvalidTransitionError, ResourceConflictError
from onboarding.forms import (
    AccountForm,
    BankDetails,
    EmailForm,
    NewPasswordForm,
    PaymentChoice,
    ShopForm,
)
from onboarding.provisioning import PASSWORD, PAYMENT, SEND_OTP, SHOP
from onboarding.stages import PasswordResetStage, PaymentLink, PaymentProvider, RegistrationStage
from onboarding.state_machine import STALE, OnboardingSession, OnboardingStateMachine

logger = logging.getLogger(__name__)

RS = RegistrationStage
PR = PasswordResetStage


class SellerRegistrationFlow(OnboardingStateMachine[RegistrationStage]):
    """Seller signup: verify the email, then provision the shop and the payment method."""

    initial_stage = RS.COLLECTING_ACCOUNT
    otp_stage = RS.OTP_PENDING
    transitions = {
        RS.COLLECTING_ACCOUNT: (RS.OTP_PENDING,),
        RS.OTP_PENDING: (RS.VERIFIED,),
        RS.VERIFIED: (RS.PROVISIONING_SHOP,),
        RS.PROVISIONING_SHOP: (RS.PROVISIONING_PAYMENT,),
        RS.PROVISIONING_PAYMENT: (RS.COMPLETE,),
        RS.COMPLETE: (),
    }
    back_transitions = {
        RS.OTP_PENDING: RS.COLLECTING_ACCOUNT,
    }

    # ── Step 1: Account ────────────────────────────────────

    async def submit_account(self, data: AccountForm | dict[str, Any]) -> OnboardingSession:
        """Validate the account form and have a code sent to its email."""
        self._require(RS.COLLECTING_ACCOUNT, action="submit account details")
        form = self._validate(AccountForm, data, key="account")
        if self.coordinator.is_pending(SEND_OTP):
            logger.debug("Account submit ignored: code request already in flight")
            return self.session

        payload = form.registration_payload()
        result = await self._guarded(self.coordinator.send_registration_otp(payload))
        if result is STALE:
            return self.session

        self.session.contact = form.email
        self.session.account = payload
        self._advance(RS.OTP_PENDING)
        logger.info("Registration code sent: email=%s", form.email)
        return self.session

    # ── Step 2: OTP ────────────────────────────────────────

    async def _verify_code(self, code: str) -> dict[str, Any]:
        return await self.coordinator.verify_registration_otp(self.session.account or {}, code)

    async def _resend_code(self) -> None:
        await self.coordinator.send_registration_otp(self.session.account or {})

    async def _on_verified(self, result: dict[str, Any]) -> None:
        self.session.seller_id = result["seller_id"]
        self.session.token = result.get("token")
        self._advance(RS.VERIFIED)
        self._advance(RS.PROVISIONING_SHOP)

    def resume(
        self,
        seller_id: str,
        token: str | None = None,
        shop_id: str | None = None,
    ) -> OnboardingSession:
        """
        Continue provisioning for a seller that already exists.

        Jumps straight to the first stage whose resource is missing so
        nothing already created is requested again.
        """
        self._require(RS.COLLECTING_ACCOUNT, action="resume provisioning")
        self.session.seller_id = seller_id
        self.session.token = token
        self.session.shop_id = shop_id
        self._set_stage(RS.PROVISIONING_PAYMENT if shop_id else RS.PROVISIONING_SHOP)
        return self.session

    # ── Step 3: Shop ───────────────────────────────────────

    async def submit_shop(self, data: ShopForm | dict[str, Any]) -> OnboardingSession:
        """
        Create the shop for the stored seller.

        Safe to call again after a failure: only /create-shop is retried,
        reusing the seller id captured at verification.
        """
        self._require(RS.PROVISIONING_SHOP, action="create a shop")
        if not self.session.seller_id:
            raise InvalidTransitionError("Seller id is required before creating a shop")
        form = self._validate(ShopForm, data, key="shop")
        if self.coordinator.is_pending(SHOP):
            logger.debug("Shop submit ignored: request already in flight")
            return self.session

        try:
            shop_id = await self._guarded(
                self.coordinator.create_shop(form.payload(self.session.seller_id), token=self.session.token)
            )
        except ResourceConflictError as exc:
            if exc.existing_id is None:
                raise
            logger.info("Shop already existed, reusing shop_id=%s", exc.existing_id)
            self.session.error = None
            shop_id = exc.existing_id
        if shop_id is STALE:
            return self.session

        self.session.shop_id = shop_id
        self._advance(RS.PROVISIONING_PAYMENT)
        return self.session

    # ── Step 4: Payment ────────────────────────────────────

    def _require_payment_ids(self) -> tuple[str, str]:
        self._require(RS.PROVISIONING_PAYMENT, action="set up payments")
        if not self.session.seller_id or not self.session.shop_id:
            raise InvalidTransitionError("Seller and shop must exist before payment setup")
        return self.session.seller_id, self.session.shop_id

    async def link_payment(
        self,
        provider: PaymentProvider | str,
        bank_details: BankDetails | dict[str, Any] | None = None,
    ) -> OnboardingSession:
        """
        Link a payment provider.

        Hosted providers answer with a redirect URL; the stage then waits
        for refresh_payment_status() to report the account as set up.
        """
        seller_id, shop_id = self._require_payment_ids()
        choice = self._validate(
            PaymentChoice, {"provider": provider, "bank_details": bank_details}, key="payment",
        )
        if self.coordinator.is_pending(PAYMENT):
            logger.debug("Payment submit ignored: request already in flight")
            return self.session

        bank_payload = choice.bank_details.payload() if choice.bank_details else None
        redirect_url = await self._guarded(
            self.coordinator.setup_payment(
                seller_id, shop_id, choice.provider, bank_payload, token=self.session.token,
            )
        )
        if redirect_url is STALE:
            return self.session
        if redirect_url:
            self.session.payment_redirect_url = redirect_url
            return self.session

        self._complete(PaymentLink.LINKED)
        return self.session

    async def refresh_payment_status(self) -> OnboardingSession:
        seller_id, _ = self._require_payment_ids()
        if self.coordinator.is_pending(PAYMENT):
            return self.session
        is_set_up = await self._guarded(
            self.coordinator.payment_status(seller_id, token=self.session.token)
        )
        if is_set_up is STALE or not is_set_up:
            return self.session
        self._complete(PaymentLink.LINKED)
        return self.session

    async def skip_payment(self) -> OnboardingSession:
        """Record the explicit skip and finish; nothing is called after it."""
        seller_id, shop_id = self._require_payment_ids()
        if self.coordinator.is_pending(PAYMENT):
            return self.session
        result = await self._guarded(
            self.coordinator.skip_payment(seller_id, shop_id, token=self.session.token)
        )
        if result is STALE:
            return self.session
        self._complete(PaymentLink.SKIPPED)
        return self.session

    def _complete(self, link: PaymentLink) -> None:
        self.session.payment = link
        self.session.payment_redirect_url = None
        self._advance(RS.COMPLETE)
        logger.info(
            "Seller onboarding complete: seller_id=%s, shop_id=%s, payment=%s",
            self.session.seller_id, self.session.shop_id, link.value,
        )


class PasswordResetFlow(OnboardingStateMachine[PasswordResetStage]):
    """Forgot-password: verify the email, then set a new password."""

    initial_stage = PR.COLLECTING_EMAIL
    otp_stage = PR.OTP_PENDING
    transitions = {
        PR.COLLECTING_EMAIL: (PR.OTP_PENDING,),
        PR.OTP_PENDING: (PR.RESETTING_PASSWORD,),
        PR.RESETTING_PASSWORD: (PR.DONE,),
        PR.DONE: (),
    }
    back_transitions = {
        PR.OTP_PENDING: PR.COLLECTING_EMAIL,
        PR.RESETTING_PASSWORD: PR.OTP_PENDING,
    }

    async def submit_email(self, email: str) -> OnboardingSession:
        self._require(PR.COLLECTING_EMAIL, action="request a reset code")
        form = self._validate(EmailForm, {"email": email}, key="email")
        if self.coordinator.is_pending(SEND_OTP):
            return self.session

        result = await self._guarded(self.coordinator.send_reset_otp(form.email))
        if result is STALE:
            return self.session

        self.session.contact = form.email
        self._advance(PR.OTP_PENDING)
        logger.info("Password reset code sent: email=%s", form.email)
        return self.session

    async def _verify_code(self, code: str) -> dict[str, Any]:
        return await self.coordinator.verify_reset_otp(self.session.contact or "", code)

    async def _resend_code(self) -> None:
        await self.coordinator.send_reset_otp(self.session.contact or "")

    async def _on_verified(self, result: dict[str, Any]) -> None:
        self._advance(PR.RESETTING_PASSWORD)

    async def submit_new_password(self, new_password: str, confirm_password: str) -> OnboardingSession:
        self._require(PR.RESETTING_PASSWORD, action="reset the password")
        form = self._validate(
            NewPasswordForm,
            {"new_password": new_password, "confirm_password": confirm_password},
            key="password",
        )
        if self.coordinator.is_pending(PASSWORD):
            return self.session

        result = await self._guarded(
            self.coordinator.reset_password(self.session.contact or "", form.new_password)
        )
        if result is STALE:
            return self.session

        self._advance(PR.DONE)
        logger.info("Password reset: email=%s", self.session.contact)
        return self.session
