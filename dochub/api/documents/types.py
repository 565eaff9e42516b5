"""Document enumerations."""

from enum import Enum


class DocumentType(str, Enum):
    """Category of a stored document."""

    GENERAL = "GENERAL"
    CONTRACT = "CONTRACT"
    INVOICE = "INVOICE"
    REPORT = "REPORT"
    IDENTITY = "IDENTITY"
