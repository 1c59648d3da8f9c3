import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from portal.core.cache import cache
from portal.db.store import StoreError

logger = logging.getLogger(__name__)


class PageState(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    POPULATED = "populated"


@dataclass
class PageView:
    """
    페이지 한 번의 조회 결과. loading에서 시작해 error / empty / populated 중 하나로 끝납니다.
    """
    state: PageState = PageState.LOADING
    data: Any = None
    message: Optional[str] = None

    def load(self, reader: Callable[[], Any], *, error_message: str, empty_message: Optional[str] = None) -> "PageView":
        self.state = PageState.LOADING
        self.data, self.message = None, None
        try:
            data = reader()
        except StoreError as e:
            logger.error(f"{error_message} - {e.message}")
            self.state = PageState.ERROR
            self.message = error_message
            return self

        if not data:
            self.state = PageState.EMPTY
            self.message = empty_message
        else:
            self.state = PageState.POPULATED
            self.data = data
        return self

    def refresh(self, reader: Callable[[], Any], tags: Iterable[str], **kwargs) -> "PageView":
        # 명시적 새로고침: 캐시를 비우고 loading부터 다시
        cache.invalidate_tags(tags)
        return self.load(reader, **kwargs)


def load_page(reader: Callable[[], Any], *, refresh: bool = False, tags: Iterable[str] = (), **kwargs) -> PageView:
    view = PageView()
    if refresh:
        return view.refresh(reader, tags, **kwargs)
    return view.load(reader, **kwargs)
