"""Shared fixtures for exporter tests."""

import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError
from prometheus_client import CollectorRegistry

from cache.metric_cache import MetricCache
from provider.aws.trusted_advisor import TrustedAdvisorClient

EC2_CHECK_ID = "eW7HH0l7J9"
RDS_CHECK_ID = "jtlIMO3qZM"


def client_error(code="AccessDeniedException", operation="DescribeTrustedAdvisorCheckResult"):
    """Build a botocore ClientError the way boto3 raises it."""
    return ClientError(
        {"Error": {"Code": code, "Message": f"{code} raised in test"}},
        operation,
    )


def check_result_response(check_id, rows, status="warning"):
    """Build a DescribeTrustedAdvisorCheckResult response body."""
    return {
        "result": {
            "checkId": check_id,
            "timestamp": "2026-10-17T10:00:00Z",
            "status": status,
            "resourcesSummary": {
                "resourcesProcessed": len(rows) + 10,
                "resourcesFlagged": len(rows),
                "resourcesIgnored": 0,
                "resourcesSuppressed": 0,
            },
            "flaggedResources": [
                {
                    "status": "warning",
                    "region": row[0] if row and row[0] not in (None, "-") else None,
                    "resourceId": f"res-{idx}",
                    "isSuppressed": False,
                    "metadata": list(row),
                }
                for idx, row in enumerate(rows)
            ],
        }
    }


@pytest.fixture
def checks_response():
    """DescribeTrustedAdvisorChecks response with mixed categories."""
    return {
        "checks": [
            {"id": EC2_CHECK_ID, "name": "EC2 Elastic IP Addresses", "category": "service_limits", "metadata": []},
            {"id": RDS_CHECK_ID, "name": "RDS DB Instances", "category": "service_limits", "metadata": []},
            {"id": "Qch7DwouX1", "name": "Low Utilization Amazon EC2 Instances", "category": "cost_optimizing", "metadata": []},
            {"id": "", "name": "Broken entry", "category": "service_limits", "metadata": []},
        ]
    }


@pytest.fixture
def ec2_rows():
    """Flagged rows for the EC2 service limits check."""
    return [
        ["us-east-1", "EC2", "Elastic IPs", "3", "5"],
        ["eu-west-1", "EC2", "On-Demand instances", "1,200", "1,150", "Yellow"],
    ]


@pytest.fixture
def rds_rows():
    """Flagged rows for the RDS service limits check."""
    return [
        ["us-east-1", "RDS", "DB instances", "40", "32", "Yellow"],
        ["us-east-1", "RDS"],
    ]


@pytest.fixture
def boto_client(checks_response, ec2_rows, rds_rows):
    """Mocked boto3 support client."""
    responses = {
        EC2_CHECK_ID: check_result_response(EC2_CHECK_ID, ec2_rows),
        RDS_CHECK_ID: check_result_response(RDS_CHECK_ID, rds_rows),
    }
    client = MagicMock()
    client.describe_trusted_advisor_checks.return_value = checks_response
    client.describe_trusted_advisor_check_result.side_effect = (
        lambda checkId, language="en": responses[checkId]
    )
    client.refresh_trusted_advisor_check.side_effect = lambda checkId: {
        "status": {"checkId": checkId, "status": "enqueued", "millisUntilNextRefreshIsAllowed": 0}
    }
    return client


@pytest.fixture
def advisor_client(boto_client):
    """TrustedAdvisorClient backed by the mocked boto3 client."""
    return TrustedAdvisorClient(region="us-east-1", client=boto_client)


@pytest.fixture
def metric_cache():
    """Fresh descriptor cache."""
    return MetricCache()


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()
