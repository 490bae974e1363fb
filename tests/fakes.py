"""
fakes.py - 테스트용 인메모리 Supabase 클라이언트

supabase-py 의 체이닝 쿼리 빌더(table().select().eq()...execute())와
rpc(), storage.from_() 중 코어가 사용하는 부분만 흉내낸다.
"""

import copy
import re
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError

RETAILER_SUBJECT = "user_retailer_1"
OTHER_RETAILER_SUBJECT = "user_retailer_2"
WHOLESALER_SUBJECT = "user_wholesaler_1"


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


def _like(pattern: str, value: Any, ignore_case: bool = False) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    flags = re.IGNORECASE if ignore_case else 0
    return re.match(regex, str(value), flags) is not None


def _compare(a: Any, b: Any, op: Callable[[Any, Any], bool]) -> bool:
    if a is None or b is None:
        return False
    return op(a, b)


_OR_CONDITION = re.compile(r'([^.,]+)\.([^.,]+)\.("(?:[^"\\]|\\.)*"|[^,]*)(?:,|$)')


def _parse_or(expr: str) -> Callable[[Dict[str, Any]], bool]:
    """"col.op.value,col.op."quoted,value"" → OR 조건"""
    conditions = []
    for column, op, value in _OR_CONDITION.findall(expr):
        if value.startswith('"'):
            value = re.sub(r"\\(.)", r"\1", value[1:-1])
        conditions.append((column, op, value))

    def predicate(row):
        for column, op, value in conditions:
            current = row.get(column)
            if op == "eq" and current is not None and str(current) == value:
                return True
            if op == "is" and value == "null" and current is None:
                return True
            if op == "like" and _like(value, current):
                return True
            if op == "ilike" and _like(value, current, ignore_case=True):
                return True
        return False

    return predicate


class FakeQuery:
    """table() 이 반환하는 쿼리 빌더"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[tuple] = []
        self.count_mode: Optional[str] = None
        self.range_: Optional[tuple] = None
        self.limit_: Optional[int] = None

    # --- 동작 ---
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.operation = "select"
        self.count_mode = count
        return self

    def insert(self, rows):
        self.operation = "insert"
        self.payload = rows
        return self

    def update(self, values: Dict[str, Any]):
        self.operation = "update"
        self.payload = values
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # --- 필터 ---
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column, values):
        allowed = list(values)
        self.filters.append(lambda r: r.get(column) in allowed)
        return self

    def is_(self, column, value):
        if value in (None, "null"):
            self.filters.append(lambda r: r.get(column) is None)
        else:
            self.filters.append(lambda r: r.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a >= b))
        return self

    def lte(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a <= b))
        return self

    def like(self, column, pattern):
        self.filters.append(lambda r: _like(pattern, r.get(column)))
        return self

    def ilike(self, column, pattern):
        self.filters.append(lambda r: _like(pattern, r.get(column), ignore_case=True))
        return self

    def or_(self, expr: str):
        self.filters.append(_parse_or(expr))
        return self

    # --- 정렬/페이지 ---
    def order(self, column, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.range_ = (start, end)
        return self

    def limit(self, n: int):
        self.limit_ = n
        return self

    # --- 실행 ---
    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def execute(self) -> FakeResponse:
        self.db.check_failure(self.table, self.operation)
        rows = self.db.tables[self.table]

        if self.operation == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in payload:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.operation == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(removed))

        result = [r for r in rows if self._matches(r)]
        for column, desc in reversed(self.orders):
            present = [r for r in result if r.get(column) is not None]
            missing = [r for r in result if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            result = present + missing

        count = len(result) if self.count_mode == "exact" else None
        if self.range_ is not None:
            start, end = self.range_
            result = result[start:end + 1]
        if self.limit_ is not None:
            result = result[:self.limit_]
        return FakeResponse(copy.deepcopy(result), count)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.check_failure("rpc", self.name)
        self.db.rpc_calls.append((self.name, dict(self.params)))
        delta = {"increment_stock": 1, "decrement_stock": -1}.get(self.name)
        if delta is not None:
            for product in self.db.tables["products"]:
                if product["id"] == self.params["p_product_id"]:
                    current = int(product.get("stock_quantity") or 0)
                    product["stock_quantity"] = max(0, current + delta * self.params["p_quantity"])
        return FakeResponse(None)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", bucket: str):
        self.storage = storage
        self.bucket = bucket

    def upload(self, path, file, file_options=None):
        limit = self.storage.upload_limit
        if self.storage.fail_uploads or (limit is not None and len(self.storage.uploads) >= limit):
            raise RuntimeError("storage unavailable")
        self.storage.uploads.append({
            "bucket": self.bucket,
            "path": path,
            "size": len(file),
            "options": dict(file_options or {}),
        })
        return {"path": path}

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self.bucket}/{path}"

    def remove(self, paths):
        if self.storage.fail_removes:
            raise RuntimeError("storage unavailable")
        targets = set(paths)
        removed = [u for u in self.storage.uploads if u["bucket"] == self.bucket and u["path"] in targets]
        self.storage.uploads = [u for u in self.storage.uploads if u not in removed]
        self.storage.removed.extend(u["path"] for u in removed)
        return [{"name": u["path"]} for u in removed]


class FakeStorage:
    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []
        self.removed: List[str] = []
        self.fail_uploads = False
        self.fail_removes = False
        # 이 개수만큼 업로드된 뒤부터 실패
        self.upload_limit: Optional[int] = None

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    """인메모리 Supabase 클라이언트"""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.rpc_calls: List[tuple] = []
        self.storage = FakeStorage()
        self._failures: Dict[tuple, Dict[str, str]] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    # --- 테스트 헬퍼 ---
    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        seeded = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", str(uuid.uuid4()))
            self.tables[table].append(row)
            seeded.append(row)
        return seeded

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables[table]

    def fail_on(self, table: str, operation: str, code: str = "XX000", message: str = "fake failure"):
        """다음 (table, operation) 실행을 실패시킴 (rpc 는 table="rpc", operation=함수명)"""
        self._failures[(table, operation)] = {
            "code": code,
            "message": message,
            "details": None,
            "hint": None,
        }

    def check_failure(self, table: str, operation: str):
        error = self._failures.pop((table, operation), None)
        if error is not None:
            raise APIError(error)
