"""Per-broker adapters mapping raw exports to canonical transactions."""

from .base import BrokerParser, CsvBrokerParser
from .bullionvault_email import BullionVaultParser
from .fidelity_csv import FidelityParser
from .freetrade_csv import FreetradeParser
from .ii_csv import IIParser

__all__ = [
    "BrokerParser",
    "BullionVaultParser",
    "CsvBrokerParser",
    "FidelityParser",
    "FreetradeParser",
    "IIParser",
]
