from sakila_admin.reports.analytics import (
    AnalyticsReport,
    AnalyticsService,
    AvailableMetrics,
    negotiate_capabilities,
)
from sakila_admin.reports.dashboard import (
    CardResult,
    CardStatus,
    DashboardReport,
    sakila_dashboard,
    streaming_statistics,
)

__all__ = [
    "AnalyticsReport",
    "AnalyticsService",
    "AvailableMetrics",
    "CardResult",
    "CardStatus",
    "DashboardReport",
    "negotiate_capabilities",
    "sakila_dashboard",
    "streaming_statistics",
]
