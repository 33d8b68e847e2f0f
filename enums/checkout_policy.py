from enum import Enum


class PostCreationPolicy(str, Enum):
    """
    What checkout does once orders exist.

    DEFERRED: no payment call at creation time (COD/Cash settle on delivery,
              Bank/Wallet links are created after the shop confirms)
    IMMEDIATE_REDIRECT: initiate online payment for every created order and
                        redirect to the first checkout link
    """
    DEFERRED = "deferred"
    IMMEDIATE_REDIRECT = "immediate_redirect"
