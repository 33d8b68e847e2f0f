from enum import Enum


class MessageEntity(Enum):
    CUSTOMER = 1
    MANAGER = 2
    COMMON = 3
