from enum import Enum


class PaymentMethod(str, Enum):
    """
    Payment methods accepted at checkout.

    COD / CASH: settled on delivery, confirmed by the customer afterwards
    BANK: online transfer through a payment link, created once the shop confirms
    WALLET: online wallet, same deferred policy as BANK
    """
    COD = "COD"
    CASH = "Cash"
    BANK = "Bank"
    WALLET = "Wallet"

    @property
    def is_cash_on_delivery(self) -> bool:
        return self in (PaymentMethod.COD, PaymentMethod.CASH)

    @property
    def is_online(self) -> bool:
        return self in (PaymentMethod.BANK, PaymentMethod.WALLET)
