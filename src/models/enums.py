from enum import StrEnum


class PostStatus(StrEnum):
    DRAFT = "Draft"
    SCHEDULED = "Scheduled"
    PENDING_PAYMENT = "PendingPayment"
    ACTIVE = "Active"
    EXPIRED = "Expired"
    REJECTED = "Rejected"


class PaymentMethod(StrEnum):
    CARD = "Card"
    MOBILE_MONEY = "MobileMoney"
    BANK_TRANSFER = "BankTransfer"


class PaymentStatus(StrEnum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    SYSTEM = "system"


class OAuthProvider(StrEnum):
    """
    Identity source of an account, LOCAL means email and password
    """

    LOCAL = "Local"
    GOOGLE = "Google"
    MICROSOFT = "Microsoft"
    FACEBOOK = "Facebook"
