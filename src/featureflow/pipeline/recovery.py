"""
Error recovery: consult a Feature's ``on_error`` hook and decide what happens next.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..features.models import FeatureDescriptor
from ..runtime.awaitables import maybe_await
from ..runtime.context import Context
from ..runtime.retries import is_retry_signal
from .models import RecoveryDecision

logger = logging.getLogger("featureflow.pipeline")


class ErrorRecoveryCoordinator:
    """
    Map a pipeline failure to ``RETRY``, ``RESPONDED`` or ``UNHANDLED``.

    ``attempts`` is the number of pipeline executions already made for the
    request, so ``retry(max_attempts=3)`` allows exactly three runs.
    ``max_total_retries`` is a global ceiling applied on top of per-signal caps.
    """

    def __init__(self, max_total_retries: Optional[int] = None) -> None:
        self.max_total_retries = max_total_retries

    async def handle(
        self,
        feature: FeatureDescriptor,
        error: BaseException,
        ctx: Context,
        req: Any,
        res: Any,
        attempts: int,
    ) -> RecoveryDecision:
        if feature.on_error is None:
            return RecoveryDecision.unhandled("no on_error handler")

        try:
            outcome = await maybe_await(feature.on_error(error, ctx, req, res))
        except Exception:
            logger.error("on_error handler for %s raised", feature.key, exc_info=True)
            return RecoveryDecision.unhandled("on_error handler raised")

        if is_retry_signal(outcome):
            if res.sent:
                logger.warning("Ignoring retry for %s: response already sent", feature.key)
                return RecoveryDecision.responded()
            if outcome.max_attempts is not None and attempts >= outcome.max_attempts:
                logger.warning(
                    "Retry limit reached for %s after %d attempts", feature.key, attempts
                )
                return RecoveryDecision.unhandled("max attempts reached")
            if self.max_total_retries is not None and attempts > self.max_total_retries:
                logger.warning(
                    "Global retry ceiling (%d) reached for %s", self.max_total_retries, feature.key
                )
                return RecoveryDecision.unhandled("max total retries reached")
            return RecoveryDecision.retry(outcome)

        if res.sent:
            return RecoveryDecision.responded()
        return RecoveryDecision.unhandled("on_error did not respond")


__all__ = ["ErrorRecoveryCoordinator"]
