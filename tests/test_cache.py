import pytest

from portal.core.cache import TaggedCache, tags_for


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tagged(clock):
    return TaggedCache(clock=clock)


def test_get_or_load_caches_until_expiry(tagged, clock):
    calls = []

    def loader():
        calls.append(1)
        return {"name": "Ayesha"}

    assert tagged.get_or_load(["student-1"], loader, tags=["student-1"], ttl=3600) == {"name": "Ayesha"}
    tagged.get_or_load(["student-1"], loader, tags=["student-1"], ttl=3600)
    assert len(calls) == 1

    clock.now += 3601
    tagged.get_or_load(["student-1"], loader, tags=["student-1"], ttl=3600)
    assert len(calls) == 2


def test_invalidate_tags_forces_reload(tagged):
    values = iter(["old", "new"])
    load = lambda: next(values)

    assert tagged.get_or_load(["profile", "u1"], load, tags=["profile-u1", "students"], ttl=60) == "old"
    assert tagged.invalidate_tags(["students"]) == 1
    assert tagged.get_or_load(["profile", "u1"], load, tags=["profile-u1", "students"], ttl=60) == "new"


def test_invalidate_only_drops_matching_entries(tagged):
    tagged.get_or_load(["a"], lambda: 1, tags=["student-a"], ttl=60)
    tagged.get_or_load(["b"], lambda: 2, tags=["student-b"], ttl=60)

    assert tagged.invalidate_tags(["student-a"]) == 1
    assert len(tagged) == 1


def test_missing_value_is_not_cached(tagged):
    """
    조회 결과가 없으면 캐시하지 않고 다음 조회에서 다시 읽음
    """
    results = iter([None, "created"])
    load = lambda: next(results)

    assert tagged.get_or_load(["student-x"], load, tags=["student-x"], ttl=60) is None
    assert tagged.get_or_load(["student-x"], load, tags=["student-x"], ttl=60) == "created"


def test_loader_errors_propagate_and_are_not_cached(tagged):
    def broken():
        raise RuntimeError("store down")

    with pytest.raises(RuntimeError):
        tagged.get_or_load(["k"], broken, tags=["t"], ttl=60)
    assert len(tagged) == 0


def test_load_overlapping_invalidation_is_not_stored(tagged):
    """
    로드 중 저장으로 태그가 무효화되면 읽은 값을 캐시하지 않음
    """
    row = {"batch": "B-12"}

    def load_then_save():
        read = dict(row)
        # 읽기 후 다른 요청이 저장하고 무효화
        row["batch"] = "B-13"
        tagged.invalidate_tags(["student-u1"])
        return read

    first = tagged.get_or_load(["student-u1"], load_then_save, tags=["student-u1", "profile-u1"], ttl=3600)
    assert first == {"batch": "B-12"}
    assert len(tagged) == 0

    after_save = tagged.get_or_load(["student-u1"], lambda: dict(row), tags=["student-u1", "profile-u1"], ttl=3600)
    assert after_save == {"batch": "B-13"}
    assert len(tagged) == 1


def test_unrelated_invalidation_during_load_still_stores(tagged):
    def load():
        tagged.invalidate_tags(["lectures"])
        return "value"

    tagged.get_or_load(["student-u1"], load, tags=["student-u1"], ttl=60)

    assert len(tagged) == 1


def test_invalidation_table():
    assert tags_for("student", {"user_id": "u1"}) == ["student-u1", "profile-u1", "students"]
    assert tags_for("enrollment", {"student_id": 4, "semester_id": 2}) == [
        "student-id-4", "enrollments-4", "semester-2", "enrollments"
    ]
    assert tags_for("result", {"id": 9, "student_id": 4, "semester_id": 2}) == [
        "result-9", "student-id-4", "results-4", "semester-2", "results"
    ]
