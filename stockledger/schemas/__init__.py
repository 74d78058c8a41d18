"""
Pydantic schemas for request/response validation.
"""
from stockledger.schemas.user import (
    UserBase, UserCreate, UserUpdate, UserChangePassword, UserResponse,
    Token, TokenRefresh, LoginRequest, LoginResponse
)
from stockledger.schemas.product import (
    ProductBase, ProductCreate, ProductUpdate, ProductResponse,
    ProductListResponse, ProductImport, ImportRowError, ProductImportResponse
)
from stockledger.schemas.stock import (
    MovementType, MovementReason, REASONS_BY_TYPE, StockMovementCreate, SaleCreate,
    StockMovementResponse, StockMovementWithProduct, StockMovementListResponse
)
from stockledger.schemas.alert import (
    AlertType, AlertCreate, AlertResponse, AlertListResponse, StockCheckResponse
)
from stockledger.schemas.dashboard import (
    DashboardStats, CriticalStocksResponse, SalesChartPoint, HealthCheck
)
from stockledger.schemas.report import (
    DailyMovementRow, DailySummary, Pagination, DailyReport,
    StockReportRow, StockReport, SalesReportRow, SalesReport,
    PopularProductRow, PopularReport
)
from stockledger.schemas.audit import AuditAction, AuditLogResponse, AuditLogListResponse
from stockledger.schemas.backup import BackupEntity, RestoreResponse

__all__ = [
    # User schemas
    "UserBase", "UserCreate", "UserUpdate", "UserChangePassword", "UserResponse",
    "Token", "TokenRefresh", "LoginRequest", "LoginResponse",

    # Product schemas
    "ProductBase", "ProductCreate", "ProductUpdate", "ProductResponse",
    "ProductListResponse", "ProductImport", "ImportRowError", "ProductImportResponse",

    # Stock schemas
    "MovementType", "MovementReason", "REASONS_BY_TYPE", "StockMovementCreate", "SaleCreate",
    "StockMovementResponse", "StockMovementWithProduct", "StockMovementListResponse",

    # Alert schemas
    "AlertType", "AlertCreate", "AlertResponse", "AlertListResponse", "StockCheckResponse",

    # Dashboard schemas
    "DashboardStats", "CriticalStocksResponse", "SalesChartPoint", "HealthCheck",

    # Report schemas
    "DailyMovementRow", "DailySummary", "Pagination", "DailyReport",
    "StockReportRow", "StockReport", "SalesReportRow", "SalesReport",
    "PopularProductRow", "PopularReport",

    # Audit and backup schemas
    "AuditAction", "AuditLogResponse", "AuditLogListResponse",
    "BackupEntity", "RestoreResponse",
]
