# backend/holdings_engine/services/snapshots/service.py
"""
Holding Snapshot Service - Main orchestrator.

Runs the adjustment pipeline and the snapshot calculator for one
holding or a batch of holdings, and labels the result with the
primary symbol profile.

Batch behavior:
- Holdings without a symbol profile are skipped, not failed
- A holding that raises is logged with its traceback and recorded in
  failures; the rest of the batch still completes
- Every batch run gets a correlation ID for log tracing
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from holdings_engine.domain.holding import Holding
from holdings_engine.services.adjustments.pipeline import AdjustmentPipeline
from holdings_engine.services.protocols import CurrencyExchangeProtocol
from holdings_engine.services.snapshots.calculator import SnapshotCalculator
from holdings_engine.services.snapshots.types import (
    HoldingAggregated,
    HoldingsSnapshotResult,
)
from holdings_engine.utils.context import correlation_scope

logger = logging.getLogger(__name__)


class HoldingSnapshotService:
    """
    Service for building daily valuation series of holdings.

    Usage:
        exchange = CurrencyExchange()
        exchange.preload_all_exchange_rates()

        service = HoldingSnapshotService(exchange)
        result = service.calculate_all(holdings, "EUR")

        for aggregated in result.holdings:
            print(aggregated.symbol, aggregated.latest_snapshot.total_value)
    """

    def __init__(
            self,
            currency_exchange: CurrencyExchangeProtocol,
            pipeline: AdjustmentPipeline | None = None,
            calculator: SnapshotCalculator | None = None,
    ) -> None:
        self._pipeline = pipeline or AdjustmentPipeline.default()
        self._calculator = calculator or SnapshotCalculator(currency_exchange)

    def aggregate(
            self,
            holding: Holding,
            target_currency: str,
            extend_to: date | None = None,
    ) -> HoldingAggregated | None:
        """
        Adjust and value a single holding.

        Args:
            holding: Holding to process (its activities are adjusted in place)
            target_currency: Currency of the snapshots
            extend_to: Optional date to extend the series to

        Returns:
            HoldingAggregated, or None if the holding has no symbol profile

        Raises:
            AdjustmentError: If a strategy fails
            FXRateError: If currency conversion fails
        """
        profile = holding.primary_symbol_profile
        if profile is None:
            logger.debug(f"Skipping holding {holding.id}: no symbol profile")
            return None

        self._pipeline.run(holding)
        snapshots, warnings = self._calculator.calculate_with_warnings(
            holding, target_currency, extend_to
        )

        return HoldingAggregated(
            holding_id=holding.id,
            symbol=profile.symbol,
            name=profile.name,
            data_source=profile.data_source,
            asset_class=profile.asset_class,
            asset_sub_class=profile.asset_sub_class,
            currency=target_currency,
            activity_count=len(holding.activities),
            snapshots=snapshots,
            warnings=warnings,
        )

    def calculate_all(
            self,
            holdings: Iterable[Holding],
            target_currency: str,
            extend_to: date | None = None,
    ) -> HoldingsSnapshotResult:
        """
        Process a batch of holdings, isolating failures per holding.

        Reuses the caller's correlation ID when one is set; otherwise the
        run gets a fresh one that is removed from the context afterwards.

        Returns:
            HoldingsSnapshotResult with aggregated holdings, skipped ids
            and failure messages keyed by holding id
        """
        with correlation_scope() as correlation_id:
            result = HoldingsSnapshotResult(correlation_id=correlation_id, currency=target_currency)

            for holding in holdings:
                try:
                    aggregated = self.aggregate(holding, target_currency, extend_to)
                except Exception as e:
                    logger.exception(
                        f"Snapshot calculation failed for holding {holding.id}: {e}",
                        extra={"holding_id": holding.id},
                    )
                    result.failures[holding.id] = str(e)
                    continue

                if aggregated is None:
                    result.skipped.append(holding.id)
                else:
                    result.holdings.append(aggregated)

            logger.info(
                f"Snapshot run complete in {target_currency}: "
                f"calculated={len(result.holdings)}, skipped={len(result.skipped)}, "
                f"failed={len(result.failures)}",
                extra={"target_currency": target_currency},
            )
        return result
