"""Renders permission listings and request records as text, CSV or JSON."""

import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from bitbucket_permissions_manager.configuration.models import OutputFormat
from bitbucket_permissions_manager.permissions.models import Permission

PERMISSION_COLUMNS = ("type", "id", "name", "permission")


@dataclass(frozen=True)
class RequestRecord:
    """A single HTTP exchange with the Bitbucket API."""

    datetime: datetime
    method: str
    url: str
    status_code: int
    elapsed: timedelta

    @property
    def response_time(self) -> str:
        """Elapsed time formatted as seconds with millisecond precision."""
        milliseconds = round(self.elapsed.total_seconds() * 1000)
        return f"{milliseconds // 1000}.{milliseconds % 1000:03d}"

    @property
    def timestamp(self) -> str:
        return self.datetime.strftime("%Y-%m-%d %H:%M:%S")


def format_request_record(record: RequestRecord, output_format: OutputFormat) -> str:
    """Render a request record as a single line."""
    if output_format == OutputFormat.CSV:
        return _csv_line([record.timestamp, record.method, record.url, str(record.status_code), record.response_time])
    if output_format == OutputFormat.JSON:
        return json.dumps(
            {
                "datetime": record.timestamp,
                "method": record.method,
                "url": record.url,
                "statusCode": record.status_code,
                "responseTime": record.response_time,
            }
        )
    return f"{record.timestamp} {record.method} {record.url} {record.status_code} {record.response_time}"


def permission_label(permission: Permission) -> str:
    """Human-readable one-line label of a permission, as shown in selection lists."""
    return f"{permission.principal_kind.value} - {permission.id} - {permission.display_name} - {permission.level.value}"


def permission_row(permission: Permission) -> dict[str, str]:
    return {
        "type": permission.principal_kind.value,
        "id": permission.id,
        "name": permission.display_name,
        "permission": permission.level.value,
    }


def format_permissions(permissions: Iterable[Permission], output_format: OutputFormat) -> str:
    """Render a permission listing in the requested format."""
    rows = [permission_row(permission) for permission in permissions]
    if output_format == OutputFormat.JSON:
        return json.dumps(rows, indent=2)
    if output_format == OutputFormat.CSV:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=PERMISSION_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue().rstrip("\n")
    return "\n".join(", ".join(row[column] for column in PERMISSION_COLUMNS) for row in rows)


def _csv_line(values: list[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="").writerow(values)
    return buffer.getvalue()
