import os

import boto3
from botocore.exceptions import ClientError

REGION = os.environ.get("AWS_REGION", "us-east-1")
PROFILES_TABLE = os.environ.get("PROFILES_TABLE", "harmonize_profiles")
MATCHES_TABLE = os.environ.get("MATCHES_TABLE", "harmonize_matches")

TABLES = {
    PROFILES_TABLE: [("pk", "HASH"), ("sk", "RANGE")],
    MATCHES_TABLE: [("user_id", "HASH"), ("match_sk", "RANGE")],
}


def create_table(client, name, key_schema):
    """Create a PAY_PER_REQUEST table. Returns False if it already exists."""
    try:
        client.create_table(
            TableName=name,
            KeySchema=[{"AttributeName": k, "KeyType": t} for k, t in key_schema],
            AttributeDefinitions=[{"AttributeName": k, "AttributeType": "S"} for k, _ in key_schema],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceInUseException":
            raise
        return False

    client.get_waiter("table_exists").wait(TableName=name)
    return True


if __name__ == "__main__":
    ddb = boto3.client("dynamodb", region_name=REGION)
    for name, schema in TABLES.items():
        created = create_table(ddb, name, schema)
        print(f"{name}: {'created' if created else 'already exists'}")
