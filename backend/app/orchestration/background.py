# fire-and-forget 投递：邮件 / 自动派车等附带动作，失败只记日志，不影响主流程

from __future__ import annotations
import logging
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)


"""
  调试/测试开关：True 时任务在当前进程内同步执行，不经过 broker
"""
def _inline_tasks_enabled() -> bool:
    return bool(getattr(settings, "TASKS_INLINE", False))


def fire_and_forget(task: Any, *args: Any, **kwargs: Any) -> bool:
    """
    投递一个 Celery 任务；返回是否成功投递/执行。
    调用方必须先 commit：inline 模式下任务会用新的 session 读数据
    """
    name = getattr(task, "name", repr(task))
    try:
        if _inline_tasks_enabled():
            task.run(*args, **kwargs)
        else:
            task.delay(*args, **kwargs)
        return True
    except Exception:
        logger.exception("fire-and-forget task failed: %s args=%s", name, args)
        return False
