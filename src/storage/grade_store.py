"""DynamoDB persistence for grade records."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class GradeVersionConflictError(Exception):
    """Raised when a grade was changed by another request since it was read."""

    def __init__(self, grade_id: str, expected_version: int):
        self.grade_id = grade_id
        self.expected_version = expected_version
        super().__init__(f"Grade {grade_id} was updated by another request")


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal recursively; DynamoDB rejects float."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimal back to int/float recursively."""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


class GradeStore:
    """Stores grade documents in DynamoDB, one item per grade."""

    def __init__(self, table_name: str = "grades", user_index: str = "userId-index"):
        """Initialize with DynamoDB table.

        Args:
            table_name: Name of the DynamoDB table (partition key ``gradeId``)
            user_index: Global secondary index keyed on ``userId``
        """
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name
        self.user_index = user_index

    def create_grade(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new grade, assigning its id, timestamps and version.

        Args:
            document: Validated grade document including ``userId``

        Returns:
            The stored document
        """
        now = datetime.now(timezone.utc).isoformat()
        item = dict(document)
        item["gradeId"] = uuid4().hex
        item["createdAt"] = now
        item["updatedAt"] = now
        item["version"] = 0

        try:
            self.table.put_item(
                Item=to_dynamo(item),
                ConditionExpression="attribute_not_exists(gradeId)",
            )
            logger.info(f"Created grade {item['gradeId']} for user {item.get('userId')}")
            return item

        except ClientError as e:
            logger.error(f"Error creating grade: {str(e)}")
            raise

    def list_grades(
        self, user_id: str, projection: Optional[Sequence[str]] = None
    ) -> List[Dict[str, Any]]:
        """List every grade owned by a user, newest first.

        Args:
            user_id: Owner id
            projection: Attribute names to return; full documents when None

        Returns:
            List of grade documents
        """
        query_params: Dict[str, Any] = {
            "IndexName": self.user_index,
            "KeyConditionExpression": Key("userId").eq(user_id),
        }
        if projection:
            names = {f"#f{i}": name for i, name in enumerate(projection)}
            query_params["ProjectionExpression"] = ", ".join(names)
            query_params["ExpressionAttributeNames"] = names

        grades: List[Dict[str, Any]] = []
        try:
            while True:
                response = self.table.query(**query_params)
                grades.extend(from_dynamo(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_params["ExclusiveStartKey"] = last_key

        except ClientError as e:
            logger.error(f"Error listing grades for {user_id}: {str(e)}")
            raise

        grades.sort(key=lambda g: g.get("startDate", ""), reverse=True)
        return grades

    def get_grade(self, grade_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a grade by id, or None when it does not exist."""
        try:
            response = self.table.get_item(Key={"gradeId": grade_id}, ConsistentRead=True)
        except ClientError as e:
            logger.error(f"Error getting grade {grade_id}: {str(e)}")
            raise

        if "Item" not in response:
            return None
        return from_dynamo(response["Item"])

    def save_grade(self, document: Dict[str, Any], expected_version: int) -> Dict[str, Any]:
        """Replace a grade if nobody else changed it since ``expected_version``.

        Args:
            document: Full grade document including ``gradeId``
            expected_version: Version read before the document was modified

        Returns:
            The stored document with bumped ``version`` and ``updatedAt``

        Raises:
            GradeVersionConflictError: on a concurrent modification
        """
        grade_id = document["gradeId"]
        item = dict(document)
        item["version"] = expected_version + 1
        item["updatedAt"] = datetime.now(timezone.utc).isoformat()

        try:
            self.table.put_item(
                Item=to_dynamo(item),
                ConditionExpression="#version = :expected",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues={":expected": Decimal(expected_version)},
            )
            logger.info(f"Saved grade {grade_id} (v{expected_version} -> v{item['version']})")
            return item

        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.error(f"Grade version conflict for {grade_id}")
                raise GradeVersionConflictError(grade_id, expected_version)
            logger.error(f"Error saving grade {grade_id}: {str(e)}")
            raise

    def delete_grade(self, grade_id: str) -> Optional[Dict[str, Any]]:
        """Delete a grade, returning the removed document or None if absent."""
        try:
            response = self.table.delete_item(Key={"gradeId": grade_id}, ReturnValues="ALL_OLD")
        except ClientError as e:
            logger.error(f"Error deleting grade {grade_id}: {str(e)}")
            raise

        if "Attributes" not in response:
            return None
        logger.info(f"Deleted grade {grade_id}")
        return from_dynamo(response["Attributes"])
