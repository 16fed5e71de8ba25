"""
DynamoDB repository for user music profiles.

This module wraps the DynamoDB operations on profile records.  It defines methods for inserting
a profile, inserting one only if it does not already exist, fetching a profile by user id,
updating the music-taste fields, and scanning every profile for candidate selection.
"""

from __future__ import annotations

import boto3
from botocore.exceptions import ClientError
from typing import Optional, Dict, Any, List

from models import PROFILE_SK, now_iso, profile_pk


class ProfileRepo:
    """Repository for working with profiles stored in DynamoDB."""

    def __init__(self, table_name: str, table: Any = None) -> None:
        self.table_name = table_name
        self.table = table if table is not None else boto3.resource("dynamodb").Table(table_name)

    def put_profile(self, item: Dict[str, Any]) -> None:
        """Put a profile into the table, replacing any existing record."""
        self.table.put_item(Item=item)

    def put_profile_if_new(self, item: Dict[str, Any]) -> bool:
        """
        Insert a profile record if it does not already exist.

        Args:
            item: A dictionary representing the DynamoDB item for the profile.
        Returns:
            True if the item was inserted, False if it already existed.
        Raises:
            ClientError: For DynamoDB errors other than conditional check failures.
        """
        try:
            self.table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(pk)",
            )
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return False
            raise

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Retrieve a profile by user id."""
        resp = self.table.get_item(Key={"pk": profile_pk(user_id), "sk": PROFILE_SK})
        return resp.get("Item")

    def update_taste(self, user_id: str, top_genres: List[str], top_artists: List[str]) -> None:
        """
        Overwrite the music-taste fields of a profile.

        DynamoDB creates the record if it is missing, so a first sync also registers the user.
        """
        self.table.update_item(
            Key={"pk": profile_pk(user_id), "sk": PROFILE_SK},
            UpdateExpression="SET user_id = :u, top_genres = :g, top_artists = :a, updated_at = :now",
            ExpressionAttributeValues={
                ":u": user_id,
                ":g": list(top_genres),
                ":a": list(top_artists),
                ":now": now_iso(),
            },
        )

    def scan_profiles(self) -> List[Dict[str, Any]]:
        """Return every profile record, following pagination."""
        resp = self.table.scan()
        items: List[Dict[str, Any]] = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = self.table.scan(ExclusiveStartKey=resp["LastEvaluatedKey"])
            items.extend(resp.get("Items", []))
        return [it for it in items if it.get("sk") == PROFILE_SK]
