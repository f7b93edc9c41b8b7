"""Reduces the outcomes of a batch to a single status.

Precedence is total and independent of outcome order:
failure > cancelled > success. The internal outcome kind and the process
exit code are kept apart; ``EXIT_STATUS_BY_KIND`` is the only place where
one is mapped onto the other.
"""

import logging
from typing import Dict, Iterable

from zoomnet.domain.models.jobs import ExitStatus, JobOutcome, OutcomeKind

logger = logging.getLogger(__name__)

EXIT_STATUS_BY_KIND: Dict[OutcomeKind, ExitStatus] = {
    OutcomeKind.SUCCESS: ExitStatus.SUCCESS,
    OutcomeKind.CANCELLED: ExitStatus.CANCELLED,
    OutcomeKind.FAILURE: ExitStatus.EXCEPTION,
}


class ResultAggregator:
    """Computes the worst-case classification of a set of job outcomes."""

    def overall_kind(self, outcomes: Iterable[JobOutcome]) -> OutcomeKind:
        kinds = {outcome.kind for outcome in outcomes}
        if OutcomeKind.FAILURE in kinds:
            return OutcomeKind.FAILURE
        if OutcomeKind.CANCELLED in kinds:
            return OutcomeKind.CANCELLED
        return OutcomeKind.SUCCESS

    def aggregate(self, outcomes: Iterable[JobOutcome]) -> int:
        """Maps the batch's overall kind to its process exit status."""
        kind = self.overall_kind(outcomes)
        status = EXIT_STATUS_BY_KIND[kind]
        logger.info(f"Overall result: {kind.value} (exit status {int(status)})")
        return int(status)
