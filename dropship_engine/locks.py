"""
엔티티별 비동기 잠금
주문, 추천, 연결 트리플 단위로 상태 변경을 직렬화
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLocks:
    """키별 asyncio.Lock 모음

    사용 중인 키만 보관하며 마지막 사용자가 떠나면 잠금을 정리한다.
    서로 다른 키는 경쟁하지 않는다.
    """

    def __init__(self, name: str = "locks"):
        self.name = name
        self._entries: Dict[Hashable, _Entry] = {}

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1

        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def locked(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)
