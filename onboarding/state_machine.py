"""
Generic onboarding state machine.

A flow is a forward-only chain of stages with a few explicit
back-transitions. Exactly one stage hosts the OTP challenge; the challenge
(and its resend timer) exists only while the session sits in that stage.

Every stage change bumps an epoch. A network call that completes under an
older epoch is treated as stale and its result is dropped.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Generic, TypeVar

from onboarding.config import settings
from onboarding.errors import InvalidTransitionError, OnboardingError, ValidationError
from onboarding.forms import FormT, validate_form
from onboarding.lockout import LockoutPolicy
from onboarding.otp_challenge import OtpChallenge, OtpOutcome
from onboarding.provisioning import ProvisioningCoordinator
from onboarding.resend_timer import ResendTimer
from onboarding.stages import PaymentLink

logger = logging.getLogger(__name__)

StageT = TypeVar("StageT", bound=Enum)

STALE = object()


@dataclass
class OnboardingSession:
    """Everything one onboarding attempt has accumulated so far."""
    stage: Enum
    contact: str | None = None
    account: dict[str, Any] | None = None
    seller_id: str | None = None
    shop_id: str | None = None
    token: str | None = None
    payment: PaymentLink = PaymentLink.UNSET
    payment_redirect_url: str | None = None
    form_values: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    challenge: OtpChallenge | None = None


class OnboardingStateMachine(Generic[StageT]):
    """
    Base for the registration and password-reset flows.

    Subclasses declare the stage table and implement the three OTP hooks:
    _verify_code, _resend_code and _on_verified.
    """

    initial_stage: ClassVar[Enum]
    otp_stage: ClassVar[Enum]
    transitions: ClassVar[dict[Enum, tuple[Enum, ...]]]
    back_transitions: ClassVar[dict[Enum, Enum]]

    def __init__(
        self,
        coordinator: ProvisioningCoordinator | None = None,
        *,
        policy: LockoutPolicy | None = None,
        resend_cooldown: int | None = None,
        timer_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.coordinator = coordinator or ProvisioningCoordinator()
        self.policy = policy or LockoutPolicy.from_settings()
        self.resend_cooldown = (
            resend_cooldown if resend_cooldown is not None else settings.OTP_RESEND_COOLDOWN_SEC
        )
        self.timer_interval = timer_interval
        self._clock = clock
        self._epoch = 0
        self.session = OnboardingSession(stage=self.initial_stage)
        self.history: list[Enum] = [self.initial_stage]

    # ── State ──────────────────────────────────────────────

    @property
    def stage(self) -> StageT:
        return self.session.stage

    @property
    def challenge(self) -> OtpChallenge | None:
        return self.session.challenge

    @property
    def finished(self) -> bool:
        return not self.transitions.get(self.session.stage)

    def _require(self, *stages: Enum, action: str) -> None:
        if self.session.stage not in stages:
            raise InvalidTransitionError(f"Cannot {action} during {self.session.stage.value}")

    def _advance(self, target: Enum) -> None:
        if target not in self.transitions.get(self.session.stage, ()):
            raise InvalidTransitionError(
                f"No transition from {self.session.stage.value} to {target.value}"
            )
        self._set_stage(target)

    def _set_stage(self, target: Enum, start_timer: bool = True) -> None:
        previous = self.session.stage
        self._close_challenge()
        self._epoch += 1
        self.session.stage = target
        self.session.error = None
        if target == self.otp_stage:
            self.session.challenge = self._new_challenge(start_timer)
        self.history.append(target)
        logger.info("Onboarding stage: %s → %s", previous.value, target.value)

    def _close_challenge(self) -> None:
        if self.session.challenge is not None:
            self.session.challenge.close()
            self.session.challenge = None

    def _new_challenge(self, start_timer: bool) -> OtpChallenge:
        return OtpChallenge(
            verify=self._verify_code,
            resend=self._resend_code,
            on_verified=self._on_verified,
            policy=self.policy,
            timer=ResendTimer(self.resend_cooldown, interval=self.timer_interval),
            clock=self._clock,
            start_timer=start_timer,
        )

    # ── Navigation ─────────────────────────────────────────

    def back(self) -> OnboardingSession:
        """Step back one stage where the flow allows it; later sub-state is discarded."""
        target = self.back_transitions.get(self.session.stage)
        if target is None:
            raise InvalidTransitionError(f"Cannot go back from {self.session.stage.value}")
        self._set_stage(target, start_timer=False)
        return self.session

    def restart(self) -> OnboardingSession:
        """Throw away everything, including stored identifiers."""
        self._close_challenge()
        self._epoch += 1
        self.session = OnboardingSession(stage=self.initial_stage)
        self.history = [self.initial_stage]
        logger.info("Onboarding restarted")
        return self.session

    def close(self) -> None:
        """Abandon the flow: stop timers and ignore anything still in flight."""
        self._close_challenge()
        self._epoch += 1

    # ── Helpers for subclasses ─────────────────────────────

    def _validate(self, form_cls: type[FormT], data: FormT | dict[str, Any], key: str) -> FormT:
        self.session.form_values[key] = data.model_dump() if hasattr(data, "model_dump") else dict(data)
        try:
            return validate_form(form_cls, data)
        except ValidationError as exc:
            self.session.error = exc.message
            logger.debug("Form %s invalid: %s (%s)", key, exc.message, exc.field)
            raise

    async def _guarded(self, call: Awaitable[Any]) -> Any:
        """
        Await a coordinator call under the current epoch.

        Returns STALE if the session moved on while the call was in flight;
        errors from stale calls are dropped, fresh ones are recorded and re-raised.
        """
        epoch = self._epoch
        self.session.error = None
        try:
            result = await call
        except OnboardingError as exc:
            if epoch != self._epoch:
                logger.info("Dropping failure from an abandoned stage: %s", exc)
                return STALE
            self.session.error = exc.message
            raise
        if epoch != self._epoch:
            logger.info("Dropping response from an abandoned stage")
            return STALE
        return result

    def _require_challenge(self) -> OtpChallenge:
        if self.session.challenge is None:
            raise InvalidTransitionError(f"No code is pending during {self.session.stage.value}")
        return self.session.challenge

    # ── OTP stage ──────────────────────────────────────────

    async def enter_digit(self, index: int, value: str) -> OtpOutcome | None:
        return await self._require_challenge().enter_digit(index, value)

    def delete_digit(self, index: int) -> None:
        self._require_challenge().delete_digit(index)

    async def submit_code(self) -> OtpOutcome:
        return await self._require_challenge().submit()

    async def resend_code(self) -> bool:
        return await self._require_challenge().resend()

    async def _verify_code(self, code: str) -> Any:
        raise NotImplementedError

    async def _resend_code(self) -> Any:
        raise NotImplementedError

    async def _on_verified(self, result: Any) -> None:
        raise NotImplementedError
