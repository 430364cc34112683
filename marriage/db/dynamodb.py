"""DynamoDB repository implementations for production."""

from __future__ import annotations

import json
import os
import time
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from marriage.game.models import Game, Round


# Initialize DynamoDB resource at module level for Lambda warm starts
_dynamodb = None
_prefix = os.environ.get("DYNAMODB_TABLE_PREFIX", "Marriage")


def _get_dynamodb():
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource("dynamodb")
    return _dynamodb


def _to_item(data: dict) -> dict:
    # DynamoDB rejects float; round-trip through JSON to get Decimal
    return json.loads(json.dumps(data), parse_float=Decimal)


def _scan_all(table, **kwargs) -> list[dict]:
    items: list[dict] = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class DynamoDBGameRepository:
    def __init__(self, table_name: str | None = None) -> None:
        self._table_name = table_name or f"{_prefix}_Games"
        self._table = _get_dynamodb().Table(self._table_name)

    def get_game(self, game_id: str) -> Game | None:
        response = self._table.get_item(
            Key={"gameId": game_id},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return Game.from_dict(item)

    def save_game(self, game: Game) -> None:
        item = _to_item(game.to_dict())
        item["version"] = game.version + 1
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression=(
                    "attribute_not_exists(gameId) OR version = :v"
                ),
                ExpressionAttributeValues={":v": game.version},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ValueError("Version conflict") from e
            raise

    def delete_game(self, game_id: str) -> None:
        self._table.delete_item(Key={"gameId": game_id})

    def get_game_by_code(self, code: str) -> Game | None:
        # Scan is acceptable for small datasets in free tier
        items = _scan_all(self._table, FilterExpression=Attr("code").eq(code.upper()))
        return Game.from_dict(items[0]) if items else None

    def list_games(self) -> list[Game]:
        return [Game.from_dict(item) for item in _scan_all(self._table)]


class DynamoDBRoundRepository:
    """Rounds keyed by gameId (partition) and orderKey (sort)."""

    def __init__(self, table_name: str | None = None) -> None:
        self._table_name = table_name or f"{_prefix}_Rounds"
        self._table = _get_dynamodb().Table(self._table_name)

    def append_round(self, round_: Round) -> Round:
        # Time-based keys sort in save order; concurrent saves are last-write-wins
        data = round_.to_dict()
        data["orderKey"] = f"{time.time_ns():020d}-{round_.round_id[:8]}"
        self._table.put_item(
            Item=_to_item(data),
            ConditionExpression="attribute_not_exists(orderKey)",
        )
        return Round.from_dict(data)

    def update_round(self, round_: Round) -> None:
        existing = self.get_round(round_.game_id, round_.round_id)
        if existing is None:
            raise ValueError(f"Round not found: {round_.round_id}")
        data = round_.to_dict()
        data["orderKey"] = existing.order_key
        try:
            self._table.put_item(
                Item=_to_item(data),
                ConditionExpression="attribute_exists(orderKey)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ValueError(f"Round not found: {round_.round_id}") from e
            raise

    def get_round(self, game_id: str, round_id: str) -> Round | None:
        for round_ in self.list_rounds(game_id):
            if round_.round_id == round_id:
                return round_
        return None

    def list_rounds(self, game_id: str) -> list[Round]:
        kwargs = {
            "KeyConditionExpression": Key("gameId").eq(game_id),
            "ConsistentRead": True,
            "ScanIndexForward": True,
        }
        items: list[dict] = []
        while True:
            response = self._table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return [Round.from_dict(item) for item in items]


class DynamoDBUserRepository:
    def __init__(self, table_name: str | None = None) -> None:
        self._table_name = table_name or f"{_prefix}_Users"
        self._table = _get_dynamodb().Table(self._table_name)

    def get_user(self, user_id: str) -> dict | None:
        response = self._table.get_item(Key={"userId": user_id})
        return response.get("Item")

    def save_user(self, user: dict) -> None:
        self._table.put_item(Item=_to_item(user))
