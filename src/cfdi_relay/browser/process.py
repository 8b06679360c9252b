"""Process bookkeeping for launched browsers."""

from typing import List
import psutil

import logging
logger = logging.getLogger(__name__)


def snapshot_process_tree(pid: int) -> List[int]:
    """
    PIDs of ``pid`` and all of its descendants at this moment.

    Chrome forks its renderer/GPU helpers shortly after start, so callers take
    the snapshot once the driver session exists.
    """
    try:
        root = psutil.Process(pid)
        return [root.pid] + [c.pid for c in root.children(recursive=True)]
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []


def terminate_processes(pids: List[int], timeout: float = 3.0) -> int:
    """
    Terminate every still-running process in ``pids``, killing stragglers.

    Returns:
        int: how many processes were still alive and had to be stopped.
    """
    alive = []
    for pid in pids:
        try:
            p = psutil.Process(pid)
            if p.is_running() and p.status() != psutil.STATUS_ZOMBIE:
                alive.append(p)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

    for p in alive:
        try:
            p.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    _, still_alive = psutil.wait_procs(alive, timeout=timeout)
    for p in still_alive:
        try:
            p.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass
    if still_alive:
        logger.debug("Force-killed %s", [p.pid for p in still_alive])
    return len(alive)


__all__ = [
    'snapshot_process_tree',
    'terminate_processes',
]
