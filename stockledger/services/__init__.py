"""Business services: the stock ledger and its collaborators."""
from stockledger.services.events import EventBus, EventTopic, event_stream
from stockledger.services.audit import AuditRecorder
from stockledger.services.ledger import StockLedger
from stockledger.services.alerts import evaluate_low_stock
from stockledger.services.products import ProductCatalogue

__all__ = [
    "EventBus",
    "EventTopic",
    "event_stream",
    "AuditRecorder",
    "StockLedger",
    "evaluate_low_stock",
    "ProductCatalogue",
]
