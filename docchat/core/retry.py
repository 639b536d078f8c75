"""Single retry policy wrapped around every external collaborator call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docchat.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with exponential backoff and jitter.

    The last exception is re-raised unchanged once attempts are exhausted,
    so adapters can translate it into a typed error.
    """

    attempts: int = 3
    initial_wait: float = 1.0
    max_wait: float = 30.0
    jitter: float = 1.0

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        retry_on: type[BaseException] | tuple | Callable[[BaseException], bool] = Exception,
        **kwargs: Any,
    ) -> T:
        if isinstance(retry_on, (type, tuple)):
            condition = retry_if_exception_type(retry_on)
        else:
            condition = retry_if_exception(retry_on)

        retrying = Retrying(
            retry=condition,
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential_jitter(
                initial=self.initial_wait, max=self.max_wait, jitter=self.jitter
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)


NO_RETRY = RetryPolicy(attempts=1, initial_wait=0, max_wait=0, jitter=0)
