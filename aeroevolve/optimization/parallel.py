"""
Parallel Evaluation Support

Population evaluation is the only parallel phase of a generation: each
individual's objective call is independent. Selection, crossover and
mutation stay on the caller's thread.
"""

import logging
import multiprocessing
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def get_system_info() -> Dict:
    """CPU information used to size the evaluation pool."""
    cpu_count = multiprocessing.cpu_count()
    return {
        "cpu_count": cpu_count,
        "recommended_workers": max(1, cpu_count - 1),  # Leave 1 core free
    }


def resolve_workers(n_jobs: int) -> int:
    """
    Number of worker threads for a requested n_jobs.

    n_jobs >= 1 is taken as is; -1 means all cores but one.
    """
    if n_jobs == -1:
        return get_system_info()["recommended_workers"]
    if n_jobs < 1:
        raise ValueError(f"n_jobs must be -1 or >= 1, got {n_jobs}")
    return n_jobs


def map_evaluations(func: Callable[[T], None], items: Iterable[T], n_jobs: int = 1) -> None:
    """
    Call func on every item, in a thread pool when n_jobs != 1.

    Blocks until every call has finished; the first exception raised
    by any call propagates to the caller.
    """
    items: List[T] = list(items)
    workers = min(resolve_workers(n_jobs), max(len(items), 1))

    if workers == 1:
        for item in items:
            func(item)
        return

    logger.debug(f"Evaluating {len(items)} items on {workers} threads")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # list() forces completion and re-raises worker exceptions
        list(executor.map(func, items))
