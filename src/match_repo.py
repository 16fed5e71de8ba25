"""
DynamoDB repository for matches.

Matches use the owning user's id as their partition key and ``MATCH#<candidate_id>`` as their
sort key, so writing the same pair twice replaces the earlier record.
"""

from __future__ import annotations

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from typing import Dict, Any, List

from models import MATCH_SK_PREFIX, match_sk


class MatchRepo:
    """Repository for storing matches in DynamoDB."""

    def __init__(self, table_name: str, table: Any = None) -> None:
        self.table_name = table_name
        self.table = table if table is not None else boto3.resource("dynamodb").Table(table_name)

    def upsert_match(self, item: Dict[str, Any]) -> None:
        """Put a match into the table."""
        self.table.put_item(Item=item)

    def list_matches_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Return a user's matches, highest score first."""
        condition = Key("user_id").eq(user_id) & Key("match_sk").begins_with(MATCH_SK_PREFIX)
        resp = self.table.query(KeyConditionExpression=condition)
        items: List[Dict[str, Any]] = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = self.table.query(
                KeyConditionExpression=condition,
                ExclusiveStartKey=resp["LastEvaluatedKey"],
            )
            items.extend(resp.get("Items", []))
        items.sort(key=lambda it: (-int(it.get("score", 0)), it.get("candidate_id", "")))
        return items

    def delete_match(self, user_id: str, candidate_id: str) -> bool:
        """Delete one match.  Returns False if it did not exist."""
        try:
            self.table.delete_item(
                Key={"user_id": user_id, "match_sk": match_sk(candidate_id)},
                ConditionExpression="attribute_exists(match_sk)",
            )
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return False
            raise

    def delete_all_matches_for_user(self, user_id: str) -> int:
        """Delete every match owned by ``user_id`` and return how many were removed."""
        items = self.list_matches_for_user(user_id)
        with self.table.batch_writer() as batch:
            for it in items:
                batch.delete_item(Key={"user_id": user_id, "match_sk": it["match_sk"]})
        return len(items)

    def update_match_review(self, user_id: str, candidate_id: str, review: Dict[str, Any]) -> bool:
        """
        Attach a post-concert review to a match and mark it reviewed.

        Returns:
            True on success, False if the match does not exist.
        """
        try:
            self.table.update_item(
                Key={"user_id": user_id, "match_sk": match_sk(candidate_id)},
                UpdateExpression="SET review = :r, reviewed = :t",
                ConditionExpression="attribute_exists(match_sk)",
                ExpressionAttributeValues={":r": review, ":t": True},
            )
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return False
            raise
