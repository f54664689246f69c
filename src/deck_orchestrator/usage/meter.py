"""
Usage metering: tokens, latency and cost per provider call.

The meter keeps an in-process, append-only list of UsageRecords per logical
user action and awaits every configured audit sink for each record. It is
only touched from the event loop thread, so no locking is needed.
"""

from collections import defaultdict
from typing import Iterable, Optional

import structlog

from deck_orchestrator.models.enums import CallKind, ErrorClass
from deck_orchestrator.models.usage_models import ActionSummary, UsageRecord
from deck_orchestrator.monitoring.metrics import generation_cost_usd_total, llm_tokens_total
from deck_orchestrator.persistence.usage_sinks import UsageSink
from deck_orchestrator.usage.pricing import calculate_cost

logger = structlog.get_logger(__name__)


class UsageMeter:
    """
    Records one UsageRecord per call attempt and aggregates by action.

    Guardrail warnings are logged (never raised) when a call uses a model
    other than the cheap tier, costs more than `cost_warning_usd`, or sends
    more than `input_token_warning` input tokens.
    """

    def __init__(
        self,
        sinks: Iterable[UsageSink] = (),
        cost_warning_usd: float = 0.03,
        input_token_warning: int = 3000,
        cheap_model_marker: str = "haiku",
    ):
        self.sinks = list(sinks)
        self.cost_warning_usd = cost_warning_usd
        self.input_token_warning = input_token_warning
        self.cheap_model_marker = cheap_model_marker
        self._records: dict[str, list[UsageRecord]] = defaultdict(list)

    async def record(
        self,
        model: str,
        kind: CallKind,
        input_tokens: int = 0,
        output_tokens: int = 0,
        latency_ms: int = 0,
        cache_write_tokens: int = 0,
        cache_read_tokens: int = 0,
        user_action: Optional[str] = None,
        request_id: Optional[str] = None,
        attempt: int = 1,
        success: bool = True,
        error_class: Optional[ErrorClass] = None,
    ) -> UsageRecord:
        """
        Record one provider call attempt.

        Failed attempts are recorded with zero tokens so the audit trail
        still shows them.

        Returns:
            The stored UsageRecord
        """
        cost = calculate_cost(model, input_tokens, output_tokens, cache_write_tokens, cache_read_tokens)
        action = user_action or kind.default_action
        record = UsageRecord(
            model=model,
            kind=kind,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_write_tokens=cache_write_tokens,
            cache_read_tokens=cache_read_tokens,
            latency_ms=latency_ms,
            cost_in=cost.cost_in,
            cost_out=cost.cost_out,
            cost_cache=cost.cost_cache,
            cost_total=cost.total,
            user_action=action,
            request_id=request_id,
            attempt=attempt,
            success=success,
            error_class=error_class,
        )
        self._records[action].append(record)

        if success:
            self._check_guardrails(record)
        logger.info(
            "LLM usage recorded",
            model=model,
            kind=kind.value,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_write_tokens=cache_write_tokens,
            cache_read_tokens=cache_read_tokens,
            latency_ms=latency_ms,
            cost_in=round(record.cost_in, 6),
            cost_out=round(record.cost_out, 6),
            cost_total=round(record.cost_total, 6),
            user_action=action,
            attempt=attempt,
            success=success,
        )

        llm_tokens_total.labels(model=model, token_type="input").inc(input_tokens)
        llm_tokens_total.labels(model=model, token_type="output").inc(output_tokens)
        if cache_write_tokens:
            llm_tokens_total.labels(model=model, token_type="cache_write").inc(cache_write_tokens)
        if cache_read_tokens:
            llm_tokens_total.labels(model=model, token_type="cache_read").inc(cache_read_tokens)
        generation_cost_usd_total.labels(model=model, action=action).inc(record.cost_total)

        for sink in self.sinks:
            await sink.write(record)
        return record

    def records(self, action: Optional[str] = None) -> list[UsageRecord]:
        if action is not None:
            return list(self._records.get(action, []))
        return [record for records in self._records.values() for record in records]

    def summarize(self, action: str) -> Optional[ActionSummary]:
        """Aggregate all records for `action`, or None if there are none."""
        records = self._records.get(action)
        if not records:
            return None
        return ActionSummary(
            action=action,
            request_count=len(records),
            total_cost=sum(r.cost_total for r in records),
            total_input_tokens=sum(r.input_tokens for r in records),
            total_output_tokens=sum(r.output_tokens for r in records),
            avg_latency_ms=round(sum(r.latency_ms for r in records) / len(records)),
            failed_count=sum(1 for r in records if not r.success),
        )

    def summaries(self) -> list[ActionSummary]:
        """Summaries for every action, most expensive first."""
        summaries = [s for s in (self.summarize(action) for action in self._records) if s is not None]
        return sorted(summaries, key=lambda s: s.total_cost, reverse=True)

    def _check_guardrails(self, record: UsageRecord) -> None:
        warnings = []
        if self.cheap_model_marker not in record.model:
            warnings.append("non_cheap_model")
        if record.cost_total > self.cost_warning_usd:
            warnings.append("high_cost")
        if record.input_tokens > self.input_token_warning:
            warnings.append("high_input_tokens")
        if warnings:
            logger.warning(
                "LLM usage guardrail triggered",
                warnings=warnings,
                model=record.model,
                cost_total=round(record.cost_total, 6),
                cost_threshold=self.cost_warning_usd,
                input_tokens=record.input_tokens,
                input_token_threshold=self.input_token_warning,
            )
