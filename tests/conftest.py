"""
Shared fixtures: in-memory stand-ins for the DynamoDB tables so the db layer
and the routes run without AWS.
"""

import os

# boto3 clients/resources are created at import time; give them a region and
# dummy credentials before anything from floodwatch is imported.
os.environ.setdefault("AWS_REGION", "ap-southeast-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-southeast-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

import copy

import pytest
from botocore.exceptions import ClientError


def _matches(cond, item) -> bool:
    """Evaluate the subset of boto3 conditions the db layer builds (=, <>, AND)."""
    expr = cond.get_expression()
    op, values = expr["operator"], expr["values"]
    if op == "AND":
        return all(_matches(v, item) for v in values)
    if op == "=":
        return item.get(values[0].name) == values[1]
    if op == "<>":
        return item.get(values[0].name) != values[1]
    raise NotImplementedError(op)


class FakeTable:
    """Just enough of boto3's Table API for floodwatch.db.dynamo."""

    def __init__(self):
        self.items = {}
        self.scan_calls = []

    def put_item(self, Item):
        self.items[Item["id"]] = copy.deepcopy(Item)
        return {}

    def get_item(self, Key):
        item = self.items.get(Key["id"])
        return {"Item": copy.deepcopy(item)} if item else {}

    def scan(self, **kwargs):
        self.scan_calls.append(kwargs)
        flt = kwargs.get("FilterExpression")
        rows = [copy.deepcopy(it) for it in self.items.values() if flt is None or _matches(flt, it)]
        return {"Items": rows}

    def update_item(self, Key, ExpressionAttributeNames, ExpressionAttributeValues, **kwargs):
        item = self.items.get(Key["id"])
        if item is None:
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
                "UpdateItem",
            )
        for alias, name in ExpressionAttributeNames.items():
            item[name] = ExpressionAttributeValues[":v" + alias[2:]]
        return {"Attributes": copy.deepcopy(item)}


@pytest.fixture
def tables(monkeypatch):
    """Swap every module-level table in floodwatch.db.dynamo for a FakeTable."""
    from floodwatch.db import dynamo

    fakes = {"sos": FakeTable(), "shelters": FakeTable(), "updates": FakeTable()}
    monkeypatch.setattr(dynamo, "sos_table", fakes["sos"])
    monkeypatch.setattr(dynamo, "shelters_table", fakes["shelters"])
    monkeypatch.setattr(dynamo, "updates_table", fakes["updates"])
    return fakes


@pytest.fixture
def client(tables):
    from fastapi.testclient import TestClient
    from floodwatch.main import app

    return TestClient(app)
