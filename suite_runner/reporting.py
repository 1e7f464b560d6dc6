"""Render sealed suite results as JSON, XML or plain text reports."""

import json
import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from suite_runner.models.result import (
    TestClassResult,
    TestResult,
    TestStatus,
    TestSuiteResult,
)

log = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

STATUS_GLYPHS: Mapping[TestStatus, str] = {
    TestStatus.PASSED: "✅",
    TestStatus.FAILED: "❌",
    TestStatus.SKIPPED: "⏭️",
    TestStatus.TIMEOUT: "⏱️",
}
UNKNOWN_GLYPH = "❓"


class SerializationError(Exception):
    """Raised when a report cannot be produced."""


class UnsupportedFormatError(SerializationError):
    """Raised for an unknown report format."""


def _format_time(value: datetime | None) -> str:
    return value.strftime(TIME_FORMAT) if value is not None else ""


def _format_ms(value: timedelta | None) -> str:
    if value is None:
        return "-"
    return f"{value.total_seconds() * 1000:.0f}ms"


def _without_none(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _test_to_dict(test: TestResult) -> dict[str, Any]:
    return _without_none(
        {
            "name": test.name,
            "display_name": test.display_name,
            "status": test.status.value,
            "start_time": test.start_time.isoformat() if test.start_time else None,
            "end_time": test.end_time.isoformat() if test.end_time else None,
            "duration_ms": test.duration_ms,
            "error_message": test.error_message,
            "screenshot_path": test.screenshot_path,
        }
    )


def _class_to_dict(test_class: TestClassResult) -> dict[str, Any]:
    return {
        "name": test_class.class_name,
        "display_name": test_class.display_name,
        "passed": test_class.passed,
        "failed": test_class.failed,
        "skipped": test_class.skipped,
        "total": test_class.total,
        "tests": [_test_to_dict(test) for test in test_class.tests],
    }


def suite_to_dict(suite: TestSuiteResult) -> dict[str, Any]:
    """Convert a suite result to a JSON-compatible mapping."""
    return _without_none(
        {
            "start_time": suite.start_time.isoformat(),
            "end_time": suite.end_time.isoformat() if suite.end_time else None,
            "duration_ms": suite.duration.total_seconds() * 1000,
            "total": suite.total,
            "passed": suite.passed,
            "failed": suite.failed,
            "skipped": suite.skipped,
            "success_rate": round(suite.success_rate, 2),
            "all_passed": suite.all_passed,
            "classes": [_class_to_dict(test_class) for test_class in suite.classes],
        }
    )


def render_json(suite: TestSuiteResult) -> str:
    """Render an indented JSON report, omitting absent optional values."""
    return json.dumps(suite_to_dict(suite), indent=2, ensure_ascii=False)


def render_xml(suite: TestSuiteResult) -> str:
    """Render an XML report with summary elements followed by test classes."""
    root = ET.Element("TestSuiteResult")

    summary = {
        "StartTime": _format_time(suite.start_time),
        "EndTime": _format_time(suite.end_time),
        "TotalDuration": str(suite.duration),
        "TotalTestCount": str(suite.total),
        "PassedCount": str(suite.passed),
        "FailedCount": str(suite.failed),
        "SkippedCount": str(suite.skipped),
        "SuccessRate": f"{suite.success_rate:.2f}",
        "AllTestsPassed": str(suite.all_passed).lower(),
    }
    for tag, text in summary.items():
        ET.SubElement(root, tag).text = text

    for test_class in suite.classes:
        class_element = ET.SubElement(
            root,
            "TestClass",
            {
                "name": test_class.class_name,
                "displayName": test_class.display_name,
                "passedCount": str(test_class.passed),
                "failedCount": str(test_class.failed),
                "skippedCount": str(test_class.skipped),
                "totalCount": str(test_class.total),
            },
        )
        for test in test_class.tests:
            test_element = ET.SubElement(
                class_element,
                "Test",
                {
                    "name": test.name,
                    "displayName": test.display_name,
                    "status": test.status.value,
                    "startTime": _format_time(test.start_time),
                    "endTime": _format_time(test.end_time),
                    "duration": str(test.duration or timedelta()),
                },
            )
            if test.error_message:
                ET.SubElement(test_element, "ErrorMessage").text = test.error_message
            if test.screenshot_path:
                screenshot = ET.SubElement(test_element, "ScreenshotPath")
                screenshot.text = test.screenshot_path

    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'


def render_text(suite: TestSuiteResult) -> str:
    """Render a human-readable report."""
    lines = [
        "Automated Test Report",
        "=====================",
        "",
        "Summary:",
        f"  Start time:   {_format_time(suite.start_time)}",
        f"  End time:     {_format_time(suite.end_time)}",
        f"  Duration:     {_format_ms(suite.duration)}",
        f"  Total:        {suite.total}",
        f"  Passed:       {suite.passed} ✅",
        f"  Failed:       {suite.failed} ❌",
        f"  Skipped:      {suite.skipped} ⏭️",
        f"  Success rate: {suite.success_rate:.1f}%",
        f"  Result:       {'PASSED' if suite.all_passed else 'FAILED'}",
        "",
        "Details:",
        "========",
    ]

    for test_class in suite.classes:
        lines.append("")
        lines.append(f"{test_class.display_name} ({test_class.class_name}):")
        lines.append(
            f"  Passed: {test_class.passed}, Failed: {test_class.failed}, "
            f"Skipped: {test_class.skipped}, Total: {test_class.total}"
        )
        for test in test_class.tests:
            glyph = STATUS_GLYPHS.get(test.status, UNKNOWN_GLYPH)
            lines.append(
                f"  {glyph} {test.display_name} [{test.name}] {test.status.value} "
                f"({_format_ms(test.duration)}, "
                f"{_format_time(test.start_time)} - {_format_time(test.end_time)})"
            )
            if test.error_message:
                lines.append(f"      Message: {test.error_message}")
            if test.screenshot_path:
                lines.append(f"      Screenshot: {test.screenshot_path}")

    if failed := suite.failed_tests():
        lines.extend(["", "Failed tests:", "============="])
        lines.extend(f"- {test.full_name}: {test.error_message}" for test in failed)

    return "\n".join(lines) + "\n"


RENDERERS: Mapping[str, Callable[[TestSuiteResult], str]] = {
    "json": render_json,
    "xml": render_xml,
    "text": render_text,
}


def render_report(suite: TestSuiteResult, fmt: str) -> str:
    """Render ``suite`` in the given format.

    Raises:
        UnsupportedFormatError: If ``fmt`` is not json, xml or text.
        SerializationError: If the suite has not been sealed.

    """
    renderer = RENDERERS.get(fmt.strip().lower())
    if renderer is None:
        raise UnsupportedFormatError(
            f"Unsupported report format '{fmt}'. Available formats: {list(RENDERERS)}"
        )
    if not suite.is_sealed:
        raise SerializationError("Cannot render a suite result that is not sealed")
    return renderer(suite)


def save_report(suite: TestSuiteResult, path: Path, fmt: str) -> Path:
    """Render ``suite`` and write it to ``path`` as UTF-8."""
    content = render_report(suite, fmt)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    log.info("Saved %s report to %s", fmt, path)
    return path
