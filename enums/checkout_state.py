from enum import Enum


class CheckoutState(str, Enum):
    """
    Lifecycle of one checkout session.

    Only the checkout orchestrator moves a session between states; the UI reads
    the state to disable the submit button, address and payment method pickers.
    """
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        return self == CheckoutState.SUBMITTING
