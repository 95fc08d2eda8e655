"""Unit tests for rendering permissions and request records."""

import json
from datetime import datetime, timedelta

import pytest

from bitbucket_permissions_manager.configuration.models import OutputFormat
from bitbucket_permissions_manager.permissions.models import AccessLevel, Permission, PrincipalKind
from bitbucket_permissions_manager.utils.output import RequestRecord, format_permissions, format_request_record, permission_label

PERMISSIONS = (
    Permission(principal_kind=PrincipalKind.GROUP, id="devs", display_name="Developers", level=AccessLevel.WRITE),
    Permission(principal_kind=PrincipalKind.USER, id="{u-1}", display_name="octocat", level=AccessLevel.ADMIN),
)

RECORD = RequestRecord(
    datetime=datetime(2024, 5, 17, 9, 30, 5),
    method="PUT",
    url="https://api.bitbucket.org/2.0/repositories/acme/widgets/permissions-config/groups/devs",
    status_code=200,
    elapsed=timedelta(seconds=1, milliseconds=42),
)


def test_format_permissions_text() -> None:
    """Test the plain text listing."""
    assert format_permissions(PERMISSIONS, OutputFormat.TEXT) == "group, devs, Developers, write\nuser, {u-1}, octocat, admin"


def test_format_permissions_csv() -> None:
    """Test the CSV listing with a header and quoted fields."""
    assert format_permissions(PERMISSIONS, OutputFormat.CSV).splitlines() == [
        '"type","id","name","permission"',
        '"group","devs","Developers","write"',
        '"user","{u-1}","octocat","admin"',
    ]


def test_format_permissions_json() -> None:
    """Test that the JSON listing is a well-formed array of objects."""
    assert json.loads(format_permissions(PERMISSIONS, OutputFormat.JSON)) == [
        {"type": "group", "id": "devs", "name": "Developers", "permission": "write"},
        {"type": "user", "id": "{u-1}", "name": "octocat", "permission": "admin"},
    ]


@pytest.mark.parametrize("output_format", list(OutputFormat))
def test_format_permissions_empty(output_format: OutputFormat) -> None:
    """Test rendering an empty directory in every format."""
    rendered = format_permissions((), output_format)
    if output_format == OutputFormat.JSON:
        assert json.loads(rendered) == []
    elif output_format == OutputFormat.CSV:
        assert rendered == '"type","id","name","permission"'
    else:
        assert rendered == ""


def test_permission_label() -> None:
    """Test the one-line label shown when selecting permissions."""
    assert permission_label(PERMISSIONS[1]) == "user - {u-1} - octocat - admin"


def test_request_record_properties() -> None:
    """Test the timestamp and response time renderings of a request record."""
    assert RECORD.timestamp == "2024-05-17 09:30:05"
    assert RECORD.response_time == "1.042"


@pytest.mark.parametrize(
    "output_format, expected",
    [
        pytest.param(
            OutputFormat.TEXT,
            f"2024-05-17 09:30:05 PUT {RECORD.url} 200 1.042",
            id="text",
        ),
        pytest.param(
            OutputFormat.CSV,
            f'"2024-05-17 09:30:05","PUT","{RECORD.url}","200","1.042"',
            id="csv",
        ),
    ],
)
def test_format_request_record(output_format: OutputFormat, expected: str) -> None:
    """Test rendering a request record as a single line."""
    assert format_request_record(RECORD, output_format) == expected


def test_format_request_record_json() -> None:
    """Test that the JSON request record is well-formed."""
    assert json.loads(format_request_record(RECORD, OutputFormat.JSON)) == {
        "datetime": "2024-05-17 09:30:05",
        "method": "PUT",
        "url": RECORD.url,
        "statusCode": 200,
        "responseTime": "1.042",
    }
