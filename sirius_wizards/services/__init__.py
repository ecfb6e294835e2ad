"""Services that drive wizards. Each takes a session and injected collaborators."""

from sirius_wizards.services.feed_service import FeedService
from sirius_wizards.services.navigation_service import NavigationService
from sirius_wizards.services.report_service import ReportService
from sirius_wizards.services.retention_service import PurgeSummary, RetentionService

__all__ = [
    "FeedService",
    "NavigationService",
    "ReportService",
    "RetentionService",
    "PurgeSummary",
]
