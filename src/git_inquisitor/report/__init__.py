"""Report generation from collected datasets."""

from .adapters import (
    JsonReportAdapter,
    ReportAdapter,
    ReportFormat,
    default_output_path,
    get_report_adapter,
)
from .html import HtmlReportAdapter

__all__ = [
    "HtmlReportAdapter",
    "JsonReportAdapter",
    "ReportAdapter",
    "ReportFormat",
    "default_output_path",
    "get_report_adapter",
]
