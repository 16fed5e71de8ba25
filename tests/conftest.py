import importlib.util
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

LAMBDA_DIR = Path(__file__).resolve().parents[1] / "lambda"


def load_lambda(name):
    path = LAMBDA_DIR / f"{name}.py"
    spec = importlib.util.spec_from_file_location(name, path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _conditional_failure(op):
    return ClientError({"Error": {"Code": "ConditionalCheckFailedException", "Message": "failed"}}, op)


def _condition_matches(cond, item):
    expr = cond.get_expression()
    op = expr["operator"]
    values = expr["values"]
    if op == "AND":
        return all(_condition_matches(v, item) for v in values)
    key, value = values
    if op == "=":
        return item.get(key.name) == value
    if op == "begins_with":
        return str(item.get(key.name, "")).startswith(value)
    raise NotImplementedError(op)


class _BatchWriter:
    def __init__(self, table):
        self.table = table

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def put_item(self, Item):
        self.table.put_item(Item=Item)

    def delete_item(self, Key):
        self.table.delete_item(Key=Key)


class FakeTable:
    """Just enough of a DynamoDB Table resource for the repositories."""

    def __init__(self, hash_key, range_key, page_size=2):
        self.hash_key = hash_key
        self.range_key = range_key
        self.page_size = page_size
        self.items = {}

    def _key(self, d):
        return (d[self.hash_key], d[self.range_key])

    def _check(self, key, condition, op):
        if not condition:
            return
        exists = key in self.items
        if condition.startswith("attribute_not_exists") and exists:
            raise _conditional_failure(op)
        if condition.startswith("attribute_exists") and not exists:
            raise _conditional_failure(op)

    def _page(self, items, start):
        start = start or 0
        page = items[start:start + self.page_size]
        resp = {"Items": [dict(it) for it in page]}
        if start + self.page_size < len(items):
            resp["LastEvaluatedKey"] = start + self.page_size
        return resp

    def put_item(self, Item, ConditionExpression=None):
        key = self._key(Item)
        self._check(key, ConditionExpression, "PutItem")
        self.items[key] = dict(Item)

    def get_item(self, Key):
        item = self.items.get(self._key(Key))
        return {"Item": dict(item)} if item else {}

    def delete_item(self, Key, ConditionExpression=None):
        key = self._key(Key)
        self._check(key, ConditionExpression, "DeleteItem")
        self.items.pop(key, None)

    def update_item(self, Key, UpdateExpression, ExpressionAttributeValues, ConditionExpression=None):
        key = self._key(Key)
        self._check(key, ConditionExpression, "UpdateItem")
        item = self.items.setdefault(key, dict(Key))
        for part in UpdateExpression[len("SET "):].split(","):
            name, placeholder = [s.strip() for s in part.split("=")]
            item[name] = ExpressionAttributeValues[placeholder]

    def scan(self, ExclusiveStartKey=None):
        return self._page(list(self.items.values()), ExclusiveStartKey)

    def query(self, KeyConditionExpression, ExclusiveStartKey=None):
        hits = [it for it in self.items.values() if _condition_matches(KeyConditionExpression, it)]
        return self._page(hits, ExclusiveStartKey)

    def batch_writer(self):
        return _BatchWriter(self)


@pytest.fixture
def profiles_table():
    return FakeTable("pk", "sk")


@pytest.fixture
def matches_table():
    return FakeTable("user_id", "match_sk")
