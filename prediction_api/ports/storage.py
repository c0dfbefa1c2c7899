from typing import Any, Dict, List, Optional, Protocol


class QueryResult(Protocol):
    data: Any
    count: Optional[int]


class QueryBuilder(Protocol):
    def select(self, columns: str = "*", count: Optional[str] = None) -> "QueryBuilder": ...

    def insert(self, rows: Dict[str, Any] | List[Dict[str, Any]]) -> "QueryBuilder": ...

    def update(self, patch: Dict[str, Any]) -> "QueryBuilder": ...

    def delete(self) -> "QueryBuilder": ...

    def eq(self, column: str, value: Any) -> "QueryBuilder": ...

    def neq(self, column: str, value: Any) -> "QueryBuilder": ...

    def in_(self, column: str, values: List[Any]) -> "QueryBuilder": ...

    def is_(self, column: str, value: Any) -> "QueryBuilder": ...

    def gte(self, column: str, value: Any) -> "QueryBuilder": ...

    def lt(self, column: str, value: Any) -> "QueryBuilder": ...

    def order(self, column: str, desc: bool = False) -> "QueryBuilder": ...

    def range(self, start: int, end: int) -> "QueryBuilder": ...

    def limit(self, size: int) -> "QueryBuilder": ...

    def single(self) -> "QueryBuilder": ...

    def execute(self) -> QueryResult: ...


class StorageClient(Protocol):
    """The slice of the supabase client the services rely on."""

    def table(self, name: str) -> QueryBuilder: ...

    def rpc(self, fn: str, params: Optional[Dict[str, Any]] = None) -> QueryBuilder: ...
