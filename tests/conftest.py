#!/usr/bin/env python3
"""
Shared test configuration and fixtures for the grade tracker.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def _no_aws(monkeypatch):
    """Point boto3 at fake credentials and mock resources so no test reaches AWS."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")

    def mock_boto3_resource(*args, **kwargs):
        return MagicMock()

    monkeypatch.setattr("boto3.resource", mock_boto3_resource)


@pytest.fixture
def fall_grade():
    """A stored grade document as returned by GradeStore."""
    return {
        "gradeId": "g-123",
        "userId": "user-1",
        "name": "Fall 2025",
        "startDate": "2025-09-01",
        "endDate": "2025-12-20",
        "gradingMode": "discrete",
        "goals": {"gpa": 3.8, "weightedGPA": None},
        "courses": [
            {
                "name": "Math",
                "credits": 4,
                "type": "honors",
                "categories": [
                    {
                        "name": "Homework",
                        "weight": 0.4,
                        "tasks": [{"name": "HW1", "score": 9, "total": 10, "extraCredit": False}],
                        "percentage": None,
                    }
                ],
                "percentage": None,
            }
        ],
        "createdAt": "2025-09-01T00:00:00+00:00",
        "updatedAt": "2025-09-01T00:00:00+00:00",
        "version": 3,
    }
