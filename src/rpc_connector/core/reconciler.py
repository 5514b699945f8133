"""Reconciliation of attempted record outcomes into the batch response."""

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..schema.models import RecordResult
from ..utils.logging import get_logger


class ReconciliationReporter:
    """Builds the record-result list for a batch.

    Every input record gets exactly one result, in input order. A record with
    no attempted outcome is reported as failed without an error message. When
    several outcomes were produced for one identifier, any failure wins.
    """

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def reconcile(
        self,
        records: Sequence[Mapping[str, Any]],
        attempted: Iterable[RecordResult],
        identifier_key: str
    ) -> List[RecordResult]:
        """Reconcile attempted outcomes against the input records.

        Args:
            records: Input records, each holding its identifier under ``identifier_key``
            attempted: Outcomes produced while processing the batch
            identifier_key: Record key of the active identifier

        Returns:
            One RecordResult per input record
        """
        input_ids = [record[identifier_key] for record in records]
        known = set(input_ids)

        outcomes: Dict[Any, RecordResult] = {}
        stray = 0

        for result in attempted:
            if result.identifier not in known:
                stray += 1
                continue

            previous = outcomes.get(result.identifier)
            if previous is None or (previous.success and not result.success):
                outcomes[result.identifier] = result

        if stray:
            self.logger.warning(
                "Dropped outcomes for identifiers not in the batch",
                count=stray
            )

        results: List[RecordResult] = []
        unreported = 0

        for identifier in input_ids:
            outcome = outcomes.pop(identifier, None)
            if outcome is None:
                unreported += 1
                outcome = RecordResult(identifier=identifier, success=False)
            results.append(outcome)

        if unreported:
            self.logger.warning(
                "Records without an outcome reported as failed",
                count=unreported
            )

        return results
