"""
并发解析限流器。

固定容量的计数器：槽位已满时立即拒绝（ServerBusy），调用方不排队，
避免突发上传导致内存耗尽。
"""

import logging

from app.core.config import settings
from app.core.errors import ServerBusy

logger = logging.getLogger(__name__)


class GovernorSlot:
    """已占用的槽位，退出上下文或调用 release() 时归还。"""

    def __init__(self, governor: "ConcurrencyGovernor"):
        self._governor = governor
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """归还槽位（幂等）。"""
        if self._released:
            return
        self._released = True
        self._governor._release()

    def __enter__(self) -> "GovernorSlot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ConcurrencyGovernor:
    """非阻塞的并发解析准入控制。"""

    def __init__(self, capacity: int = 2):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._active = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active(self) -> int:
        return self._active

    def acquire(self) -> GovernorSlot:
        """
        占用一个槽位。

        Returns:
            槽位句柄，用 with 语句保证在所有退出路径上归还

        Raises:
            ServerBusy: 所有槽位都在使用中
        """
        if self._active >= self._capacity:
            logger.warning(
                "Rejecting parse: %d/%d slots busy", self._active, self._capacity
            )
            raise ServerBusy()
        self._active += 1
        return GovernorSlot(self)

    def _release(self) -> None:
        self._active = max(0, self._active - 1)


# 全局解析限流器，所有基于上传缓冲区的解析共享
parse_governor = ConcurrencyGovernor(settings.max_concurrent_parses)


def get_governor() -> ConcurrencyGovernor:
    """获取全局解析限流器。"""
    return parse_governor
