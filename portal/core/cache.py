import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    tags: frozenset
    expires_at: float


class TaggedCache:
    """In-process cache keyed by a composite key.

    Every entry carries a set of tags and a fixed TTL. ``invalidate_tags`` drops
    all entries sharing any of the given tags so the next read goes to the store.
    A load that overlaps an invalidation of one of its tags returns its value
    without storing it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock

    @staticmethod
    def make_key(parts: Iterable[str]) -> str:
        return "|".join(parts)

    def _snapshot(self, tags: frozenset) -> dict[str, int]:
        return {tag: self._generations.get(tag, 0) for tag in tags}

    def get_or_load(self, key_parts: Iterable[str], loader: Callable[[], Any], *, tags: Iterable[str], ttl: int):
        key = self.make_key(key_parts)
        entry_tags = frozenset(tags)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry.expires_at > now:
                return entry.value
            self._entries.pop(key, None)
            seen = self._snapshot(entry_tags)

        # 로더 예외는 캐시하지 않고 그대로 전달
        value = loader()
        if value is None:
            # 조회 결과 없음은 캐시하지 않음
            return None
        with self._lock:
            if self._snapshot(entry_tags) != seen:
                # 로드 중 무효화됨, 저장하지 않음
                logger.info(f"Cache store skipped, tags invalidated during load: {key}")
                return value
            self._entries[key] = CacheEntry(value=value, tags=entry_tags, expires_at=now + ttl)
        return value

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        stale = set(tags)
        with self._lock:
            for tag in stale:
                self._generations[tag] = self._generations.get(tag, 0) + 1
            keys = [k for k, e in self._entries.items() if e.tags & stale]
            for k in keys:
                del self._entries[k]
        logger.info(f"Cache tags invalidated: {sorted(stale)} ({len(keys)} entries)")
        return len(keys)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._generations.clear()

    def __len__(self):
        return len(self._entries)


# 엔티티별 무효화 태그 표
# student-{uid}: Firebase uid 기준, student-id-{id}: students.id 기준
INVALIDATION_TAGS: dict[str, Callable[[dict], list[str]]] = {
    "student": lambda e: [
        f"student-{e['user_id']}",
        f"profile-{e['user_id']}",
        "students",
    ],
    "enrollment": lambda e: [
        f"student-id-{e['student_id']}",
        f"enrollments-{e['student_id']}",
        f"semester-{e['semester_id']}",
        "enrollments",
    ],
    "result": lambda e: [
        f"result-{e['id']}",
        f"student-id-{e['student_id']}",
        f"results-{e['student_id']}",
        f"semester-{e['semester_id']}",
        "results",
    ],
}


def tags_for(entity: str, identity: dict) -> list[str]:
    return INVALIDATION_TAGS[entity](identity)


cache = TaggedCache()
