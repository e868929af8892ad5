"""Shared engine invocation: timing, metrics, logging and error mapping"""

import time
import logging
from typing import Any, Callable, Dict, TypeVar

from fastapi import HTTPException

from finsight.domain.exceptions import InvalidInputError
from finsight.infrastructure.observability.logging import log_engine_run
from finsight.infrastructure.observability.metrics import record_engine_run

T = TypeVar("T")


def run_engine(
    engine: str,
    request_id: str,
    compute: Callable[[], T],
    summarize: Callable[[T], Dict[str, Any]] = lambda result: {},
) -> T:
    """
    Run one engine computation for an HTTP request.

    Raises:
        HTTPException: 422 for invalid input, 500 for unexpected failures
    """
    start_time = time.time()
    try:
        result = compute()
    except InvalidInputError as e:
        record_engine_run(engine, "invalid_input")
        logging.warning(f"Invalid input: {e}", extra={"request_id": request_id, "engine": engine})
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        record_engine_run(engine, "error")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "engine": engine})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_engine_run(engine, "ok", duration)
    log_engine_run(request_id, engine, duration * 1000, **summarize(result))
    return result
