# backend/holdings_engine/services/adjustments/pipeline.py
"""
Adjustment Pipeline.

Runs an explicit, ordered list of strategies over a holding. The order
is fixed when the pipeline is built; there is no registry and no
priority sorting at run time.

Guarantees:
- Idempotent: running twice leaves identical adjusted values and traces,
  because the first two strategies rebuild everything from raw values
- Fail-fast: a failing strategy stops the holding; the error is re-raised
  as AdjustmentError carrying the holding id and strategy name
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from holdings_engine.domain.holding import Holding
from holdings_engine.services.adjustments.strategies import default_strategies
from holdings_engine.services.exceptions import AdjustmentError, ValidationError
from holdings_engine.services.protocols import AdjustmentStrategyProtocol

logger = logging.getLogger(__name__)


class AdjustmentPipeline:
    """
    Ordered sequence of adjustment strategies.

    Example:
        pipeline = AdjustmentPipeline.default()
        pipeline.run(holding)

        # With an additional strategy after the standard ones
        pipeline = AdjustmentPipeline.default(extra_strategies=[MyStrategy()])
    """

    def __init__(self, strategies: Sequence[AdjustmentStrategyProtocol]) -> None:
        if not strategies:
            raise ValidationError("AdjustmentPipeline requires at least one strategy", field="strategies")
        self._strategies: tuple[AdjustmentStrategyProtocol, ...] = tuple(strategies)

    @classmethod
    def default(
            cls,
            extra_strategies: Iterable[AdjustmentStrategyProtocol] = (),
    ) -> AdjustmentPipeline:
        """Reset → Initial value → Stock split → Determine price → extras."""
        return cls([*default_strategies(), *extra_strategies])

    @property
    def strategies(self) -> tuple[AdjustmentStrategyProtocol, ...]:
        return self._strategies

    def run(self, holding: Holding) -> None:
        """
        Apply every strategy to the holding, in order.

        Raises:
            AdjustmentError: If any strategy raises
        """
        for strategy in self._strategies:
            try:
                strategy.apply(holding)
            except AdjustmentError:
                raise
            except Exception as e:
                raise AdjustmentError(holding.id, strategy.name, str(e)) from e

        logger.debug(
            f"Adjusted {holding} with {len(self._strategies)} strategies",
            extra={"holding_id": holding.id},
        )

    def run_many(self, holdings: Iterable[Holding]) -> None:
        """Apply the pipeline to each holding; stops at the first failure."""
        for holding in holdings:
            self.run(holding)


_default_pipeline: AdjustmentPipeline | None = None


def run_adjustment_pipeline(holding: Holding) -> None:
    """
    Entry point: adjust one holding with the standard strategies.

    The default pipeline is built on first use and reused afterwards;
    strategies are stateless, so sharing it is safe.
    """
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = AdjustmentPipeline.default()
    _default_pipeline.run(holding)
