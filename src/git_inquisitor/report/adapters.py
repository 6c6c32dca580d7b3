"""Report adapters turning a collected dataset into files."""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional

from ..exceptions import ReportError
from ..logging import get_logger
from ..models import AggregateDataset

logger = get_logger(__name__)


class ReportFormat(str, Enum):
    """Supported report formats."""
    HTML = "html"
    JSON = "json"


class ReportAdapter(ABC):
    """Base class for report formats."""

    format: ReportFormat

    def __init__(self):
        self.rendered: Optional[str] = None

    @abstractmethod
    def render(self, data: AggregateDataset) -> str:
        """Render the dataset to the report's text form."""
        pass

    def prepare_data(self, data: AggregateDataset) -> str:
        try:
            self.rendered = self.render(data)
        except (TypeError, ValueError) as e:
            raise ReportError.from_exception(f"Failed to prepare {self.format.value} report", e)
        return self.rendered

    def write(self, output_file_path: str) -> Path:
        """Write the prepared report, creating parent directories as needed."""
        if self.rendered is None:
            raise ReportError("Report data has not been prepared")

        path = Path(output_file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.rendered, encoding="utf-8")
        except OSError as e:
            raise ReportError.from_exception(f"Failed to write report to {path}", e)

        logger.info("Report written", format=self.format.value, path=str(path))
        return path


class JsonReportAdapter(ReportAdapter):
    """Direct structural serialization of the dataset."""

    format = ReportFormat.JSON

    def render(self, data: AggregateDataset) -> str:
        return data.model_dump_json(indent=2)


def get_report_adapter(report_format) -> ReportAdapter:
    """Adapter instance for a ReportFormat or its string value."""
    from .html import HtmlReportAdapter

    try:
        fmt = ReportFormat(report_format)
    except ValueError:
        raise ReportError(
            f"Invalid report format '{report_format}'",
            {"allowed": [f.value for f in ReportFormat]}
        )

    if fmt is ReportFormat.HTML:
        return HtmlReportAdapter()
    return JsonReportAdapter()


def default_output_path(report_format, basename: str = "inquisitor-report") -> Path:
    """Default report file name, e.g. ``inquisitor-report.html``."""
    return Path(f"{basename}.{ReportFormat(report_format).value}")
