"""In-memory map of chat id → active onboarding flow."""

import logging

from onboarding import PasswordResetFlow, SellerRegistrationFlow
from onboarding.config import settings
from onboarding.state_machine import OnboardingStateMachine

logger = logging.getLogger(__name__)


class FlowRegistry:
    def __init__(self, timer_interval: float | None = None):
        self.timer_interval = timer_interval
        self._flows: dict[int, OnboardingStateMachine] = {}

    def start_registration(self, chat_id: int) -> SellerRegistrationFlow:
        flow = SellerRegistrationFlow(timer_interval=self.timer_interval)
        self._replace(chat_id, flow)
        return flow

    def start_password_reset(self, chat_id: int) -> PasswordResetFlow:
        flow = PasswordResetFlow(timer_interval=self.timer_interval)
        self._replace(chat_id, flow)
        return flow

    def get(self, chat_id: int, kind: type[OnboardingStateMachine]) -> OnboardingStateMachine | None:
        flow = self._flows.get(chat_id)
        return flow if isinstance(flow, kind) else None

    def discard(self, chat_id: int) -> None:
        flow = self._flows.pop(chat_id, None)
        if flow is not None:
            flow.close()
            logger.info("Flow discarded: chat_id=%s", chat_id)

    def _replace(self, chat_id: int, flow: OnboardingStateMachine) -> None:
        self.discard(chat_id)
        self._flows[chat_id] = flow
        logger.info("Flow started: chat_id=%s kind=%s", chat_id, type(flow).__name__)

    def __len__(self) -> int:
        return len(self._flows)


flows = FlowRegistry(timer_interval=settings.OTP_TICK_INTERVAL_SEC)
