"""
Scatter/gather helper for bulk payroll operations.

Each item runs independently in a worker thread; a failure is recorded
against its item and never aborts the rest of the batch.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class BatchItemResult:
    key: Any
    success: bool
    value: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, key_name: str = "id") -> Dict[str, Any]:
        result = {key_name: str(self.key), "success": self.success}
        if self.error is not None:
            result["error"] = self.error
        result.update(self.data)
        return result


def _run_one(func: Callable[[Any], Any], key: Any) -> BatchItemResult:
    try:
        return BatchItemResult(key=key, success=True, value=func(key))
    except HTTPException as e:
        logger.warning(f"Batch item {key} rejected: {e.detail}")
        return BatchItemResult(key=key, success=False, error=str(e.detail), status_code=e.status_code)
    except Exception as e:
        logger.error(f"Batch item {key} failed: {type(e).__name__}: {str(e)}")
        return BatchItemResult(key=key, success=False, error=str(e), status_code=500)


def gather(
    func: Callable[[Any], Any],
    keys: Iterable[Any],
    max_workers: Optional[int] = None,
) -> List[BatchItemResult]:
    """Run ``func`` for every key concurrently and return results in key order."""
    keys = list(keys)
    if not keys:
        return []

    workers = max(1, min(max_workers or settings.payroll_batch_workers, len(keys)))
    if workers == 1:
        results = [_run_one(func, key) for key in keys]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="payroll-batch") as executor:
            results = list(executor.map(lambda key: _run_one(func, key), keys))

    failed = sum(1 for result in results if not result.success)
    logger.info(f"Batch finished: {len(results) - failed} succeeded, {failed} failed")
    return results
