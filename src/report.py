import csv
import html
import json
import zipfile
from pathlib import Path

from models import ScenarioResult, SuiteResult


def write_html_report(results: SuiteResult, html_path: Path):
    page = f"""
<html><head><title>Auth Flow Test Report</title>
<style>
body {{ font-family: Arial, sans-serif; padding: 20px; }}
.summary {{ margin-bottom: 16px; }}
.pass {{ color: #0a7b44; }}
.fail {{ color: #b00020; }}
pre {{ background: #f6f8fa; padding: 12px; border-radius: 6px; overflow: auto; }}
</style>
</head><body>
  <h1>Auth Flow Test Report</h1>
  <div class="summary">
    <strong>Total:</strong> {results.total} &nbsp; <strong class="pass">Passed:</strong> {results.passed} &nbsp; <strong class="fail">Failed:</strong> {results.failed}
  </div>
  <hr />
  {''.join(render_test_result(tr) for tr in results.tests)}
</body></html>
"""
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(page)


def render_test_result(test_result: ScenarioResult) -> str:
    status_class = "pass" if test_result.status == "passed" else "fail"
    name = html.escape(test_result.name)
    steps_rendered = html.escape(json.dumps(test_result.steps, indent=2))
    img_tag = ""
    if test_result.screenshot:
        src = html.escape(f"screenshots/{Path(test_result.screenshot).name}")
        img_tag = f"<div><img src=\"{src}\" style=\"max-width: 100%; border: 1px solid #ddd;\" /></div>"
    error_block = ""
    if test_result.error:
        lines = [f"Step {test_result.failed_step_index}: {test_result.failed_step}" if test_result.failed_step else "",
                 f"{test_result.error_type}: {test_result.error}",
                 f"URL: {test_result.url}"]
        error_block = f"<pre>{html.escape(chr(10).join(line for line in lines if line))}</pre>"
    return f"""
  <section>
    <h3 class="{status_class}">{name} — {test_result.status.upper()} ({test_result.duration_s:.1f}s)</h3>
    <details>
      <summary>Steps</summary>
      <pre>{steps_rendered}</pre>
    </details>
    {img_tag}
    {error_block}
  </section>
  <hr />
"""


def archive_files(zip_path: Path, files: list[Path]):
    with zipfile.ZipFile(zip_path, "w") as zf:
        for f in files:
            if f.exists():
                zf.write(f, arcname=f.name)


def log_to_csv(log_path: Path, timestamp: str, artifacts: dict, results: SuiteResult | None = None):
    csv_exists = log_path.exists()
    with open(log_path, "a", newline="") as csvfile:
        writer = csv.writer(csvfile)
        if not csv_exists:
            writer.writerow(["Timestamp", "Passed", "Failed", "Test Cases", "Results", "Report", "Archive"])
        writer.writerow([
            timestamp,
            results.passed if results else "",
            results.failed if results else "",
            str(artifacts.get("test_cases", "")),
            str(artifacts.get("results", "")),
            str(artifacts.get("report", "")),
            str(artifacts.get("archive", "")),
        ])


def format_summary(results: SuiteResult) -> str:
    lines = [f"Total: {results.total}, Passed: {results.passed}, Failed: {results.failed}"]
    for r in results.failures():
        lines.append(f"✖ {r.name}")
        if r.failed_step:
            lines.append(f"    step {r.failed_step_index}: {r.failed_step}")
        lines.append(f"    {r.error_type}: {r.error}")
        lines.append(f"    url: {r.url}")
        if r.screenshot:
            lines.append(f"    screenshot: {r.screenshot}")
    return "\n".join(lines)
