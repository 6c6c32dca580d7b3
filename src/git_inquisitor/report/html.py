"""Self-contained HTML report with client-side charts."""

import json
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional

from ..models import AggregateDataset, CommitRecord
from .adapters import ReportAdapter, ReportFormat

CHART_JS_URL = "https://cdn.jsdelivr.net/npm/chart.js@4"


def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def short_sha(sha: str) -> str:
    return sha[:8]


def committer_name(contributor: str) -> str:
    """'Name (email)' -> 'Name'."""
    return contributor.split(" (")[0]


def commit_msg_short(message: str) -> str:
    return message.split("\n")[0]


def truncate(text: str, length: int, end: str = "...") -> str:
    """Cut text at the last space that fits, or hard at length."""
    if len(text) <= length:
        return text
    cut = text[:length]
    space = cut.rfind(" ")
    if space > 0:
        return cut[:space] + end
    return text[:max(0, length - len(end))] + end


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def _embed_json(data: Any) -> str:
    # keep the payload from closing the surrounding <script> element
    return json.dumps(data).replace("</", "<\\/")


def chart_data(data: AggregateDataset) -> Dict[str, List[Dict[str, Any]]]:
    """Raw arrays the page's charts are drawn from."""
    contributors = [
        {
            "name": name,
            "commit_count": profile.commit_count,
            "insertions": profile.insertions,
            "deletions": profile.deletions,
            "active_lines": profile.active_lines,
        }
        for name, profile in sorted(data.contributors.items())
    ]
    history = [
        {
            "commit": record.commit,
            "date": record.date.isoformat(),
            "contributor": committer_name(record.contributor),
            "insertions": record.insertions,
            "deletions": record.deletions,
        }
        for record in sorted(data.history, key=lambda r: r.date)
    ]
    return {"contributors": contributors, "history": history}


STYLE = """
body { font-family: -apple-system, 'Segoe UI', Helvetica, Arial, sans-serif; margin: 2em; color: #222; }
h1, h2 { font-weight: 600; }
table { border-collapse: collapse; width: 100%; margin-bottom: 2em; font-size: 0.9em; }
th, td { border: 1px solid #ddd; padding: 4px 8px; text-align: left; vertical-align: top; }
th { background: #f4f4f4; }
td.num { text-align: right; font-variant-numeric: tabular-nums; }
code { font-family: Menlo, Consolas, monospace; }
.charts { display: grid; grid-template-columns: repeat(auto-fit, minmax(420px, 1fr)); gap: 2em; margin-bottom: 2em; }
.meta th { width: 14em; }
""".strip()

SCRIPT = """
const data = JSON.parse(document.getElementById('inquisitor-data').textContent);
const names = data.contributors.map(c => c.name);
function pie(id, label, values) {
  new Chart(document.getElementById(id), {
    type: 'pie',
    data: { labels: names, datasets: [{ label: label, data: values }] },
    options: { plugins: { title: { display: true, text: label } } }
  });
}
pie('commits-by-author', 'Commits by contributor', data.contributors.map(c => c.commit_count));
pie('changes-by-author', 'Changes by contributor', data.contributors.map(c => c.insertions + c.deletions));
const days = {};
for (const h of data.history) {
  const day = h.date.slice(0, 10);
  days[day] = days[day] || { commits: 0, insertions: 0, deletions: 0 };
  days[day].commits += 1;
  days[day].insertions += h.insertions;
  days[day].deletions += h.deletions;
}
const labels = Object.keys(days).sort();
new Chart(document.getElementById('commit-history'), {
  type: 'line',
  data: { labels: labels, datasets: [{ label: 'Commits', data: labels.map(d => days[d].commits) }] },
  options: { plugins: { title: { display: true, text: 'Commit history' } } }
});
new Chart(document.getElementById('change-history'), {
  type: 'line',
  data: { labels: labels, datasets: [
    { label: 'Insertions', data: labels.map(d => days[d].insertions) },
    { label: 'Deletions', data: labels.map(d => days[d].deletions) }
  ] },
  options: { plugins: { title: { display: true, text: 'Change history' } } }
});
""".strip()


class HtmlReportAdapter(ReportAdapter):
    """HTML document embedding the dataset and Chart.js charts."""

    format = ReportFormat.HTML

    def render(self, data: AggregateDataset) -> str:
        repo = data.metadata.repo
        collector = data.metadata.collector
        parts: List[str] = [
            "<!DOCTYPE html>",
            "<html lang=\"en\">",
            "<head>",
            "<meta charset=\"utf-8\">",
            f"<title>Git Inquisitor Report: {escape(repo.url)}</title>",
            f"<style>{STYLE}</style>",
            f"<script src=\"{CHART_JS_URL}\"></script>",
            "</head>",
            "<body>",
            "<h1>Git Inquisitor Report</h1>",
        ]

        parts.append("<table class=\"meta\">")
        for label, value in (
            ("Repository", repo.url),
            ("Branch", repo.branch),
            ("Commit", f"{repo.commit.sha} ({commit_msg_short(repo.commit.message)})"),
            ("Commit date", format_datetime(repo.commit.date)),
            ("Committer", repo.commit.contributor),
            ("Collected", f"{format_datetime(collector.date_collected)} by {collector.user}@{collector.hostname}"),
            ("Collector", f"git-inquisitor {collector.inquisitor_version}, Python {collector.python_version}, {collector.git_version}"),
        ):
            parts.append(f"<tr><th>{escape(label)}</th><td>{escape(value)}</td></tr>")
        parts.append("</table>")

        parts.append("<div class=\"charts\">")
        for chart_id in ("commits-by-author", "changes-by-author", "commit-history", "change-history"):
            parts.append(f"<div><canvas id=\"{chart_id}\"></canvas></div>")
        parts.append("</div>")

        parts.extend(self._contributors_table(data))
        parts.extend(self._files_table(data))
        parts.extend(self._history_table(data))

        parts.append(
            f"<script type=\"application/json\" id=\"inquisitor-data\">{_embed_json(chart_data(data))}</script>"
        )
        parts.append(f"<script>{SCRIPT}</script>")
        parts.append("</body>")
        parts.append("</html>")
        return "\n".join(parts) + "\n"

    @staticmethod
    def _contributors_table(data: AggregateDataset) -> List[str]:
        rows = [
            "<h2>Contributors</h2>",
            "<table>",
            "<tr><th>Name</th><th>Identities</th><th>Commits</th><th>Insertions</th>"
            "<th>Deletions</th><th>Active lines</th></tr>",
        ]
        ranked = sorted(data.contributors.items(), key=lambda item: (-item[1].active_lines, item[0]))
        for name, profile in ranked:
            rows.append(
                f"<tr><td>{escape(name)}</td>"
                f"<td>{escape(', '.join(profile.identities))}</td>"
                f"<td class=\"num\">{fmt_int(profile.commit_count)}</td>"
                f"<td class=\"num\">{fmt_int(profile.insertions)}</td>"
                f"<td class=\"num\">{fmt_int(profile.deletions)}</td>"
                f"<td class=\"num\">{fmt_int(profile.active_lines)}</td></tr>"
            )
        rows.append("</table>")
        return rows

    @staticmethod
    def _files_table(data: AggregateDataset) -> List[str]:
        rows = [
            "<h2>Files</h2>",
            "<table>",
            "<tr><th>Path</th><th>Last change</th><th>Original author</th><th>Commits</th>"
            "<th>Lines</th><th>Top contributor</th></tr>",
        ]
        for path, summary in sorted(data.files.items()):
            rows.append(
                f"<tr><td><code>{escape(path)}</code></td>"
                f"<td>{escape(format_datetime(summary.date_introduced))}</td>"
                f"<td>{escape(summary.original_author)}</td>"
                f"<td class=\"num\">{fmt_int(summary.total_commits)}</td>"
                f"<td class=\"num\">{fmt_int(summary.total_lines)}</td>"
                f"<td>{escape(summary.top_contributor)}</td></tr>"
            )
        rows.append("</table>")
        return rows

    @staticmethod
    def _history_table(data: AggregateDataset) -> List[str]:
        rows = [
            "<h2>History</h2>",
            "<table>",
            "<tr><th>Commit</th><th>Date</th><th>Contributor</th><th>Message</th>"
            "<th>Files</th><th>Insertions</th><th>Deletions</th></tr>",
        ]
        newest_first: List[CommitRecord] = sorted(data.history, key=lambda r: r.date, reverse=True)
        for record in newest_first:
            rows.append(
                f"<tr><td><code>{escape(short_sha(record.commit))}</code></td>"
                f"<td>{escape(format_datetime(record.date))}</td>"
                f"<td>{escape(committer_name(record.contributor))}</td>"
                f"<td>{escape(truncate(commit_msg_short(record.message), 80))}</td>"
                f"<td class=\"num\">{fmt_int(len(record.files))}</td>"
                f"<td class=\"num\">{fmt_int(record.insertions)}</td>"
                f"<td class=\"num\">{fmt_int(record.deletions)}</td></tr>"
            )
        rows.append("</table>")
        return rows
