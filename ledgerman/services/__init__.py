"""
Ledger services — modular organization of inventory operations.

    from ledgerman.services import StockMovements, StockReservations, GoodsReceiving
"""

from ledgerman.services.movements import StockMovements
from ledgerman.services.queries import IntegrityReport, MovementPage, StockQueries
from ledgerman.services.receiving import GoodsReceiving, ReceiptLine
from ledgerman.services.reorder import ReorderAnalyzer, ReorderSuggestion, StockAlert
from ledgerman.services.reservations import StockReservations

__all__ = [
    'StockQueries',
    'StockMovements',
    'StockReservations',
    'GoodsReceiving',
    'ReorderAnalyzer',
    'ReceiptLine',
    'StockAlert',
    'ReorderSuggestion',
    'MovementPage',
    'IntegrityReport',
]
