"""
Internal rate of return solver.

Newton-Raphson on the NPV of a cash-flow series where the first flow
is the investment at t=0. Rates are decimals (0.15 means 15%).
"""

from __future__ import annotations

from collections.abc import Sequence

from bottomline.logging import get_logger

logger = get_logger(__name__)

IRR_INITIAL_GUESS = 0.15
IRR_MAX_ITERATIONS = 100
IRR_NPV_TOLERANCE = 1e-4
IRR_DERIVATIVE_TOLERANCE = 1e-4
IRR_RATE_FLOOR = -0.99
IRR_RATE_CEILING = 10.0


def npv(rate: float, cash_flows: Sequence[float]) -> float:
    """Net present value of cash flows at t=0,1,2,...

    Args:
        rate: Discount rate as decimal.
        cash_flows: Flows, the first one undiscounted.

    Returns:
        Net present value.
    """
    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def _npv_derivative(rate: float, cash_flows: Sequence[float]) -> float:
    return sum(-t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cash_flows))


def solve_irr(
    cash_flows: Sequence[float],
    guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> float:
    """Solve for the IRR of a cash-flow series.

    Stops when |NPV| falls under IRR_NPV_TOLERANCE or the derivative
    flattens under IRR_DERIVATIVE_TOLERANCE. The rate is clamped to
    [IRR_RATE_FLOOR, IRR_RATE_CEILING] after every step.

    Args:
        cash_flows: Flows at t=0,1,2,..., typically [-equity, d1, ..., dn + exit].
        guess: Starting rate.
        max_iterations: Iteration limit.

    Returns:
        IRR as decimal. 0.0 for fewer than two flows.
    """
    if len(cash_flows) < 2:
        return 0.0

    rate = guess
    for iteration in range(max_iterations):
        value = npv(rate, cash_flows)
        if abs(value) < IRR_NPV_TOLERANCE:
            return rate

        derivative = _npv_derivative(rate, cash_flows)
        if abs(derivative) < IRR_DERIVATIVE_TOLERANCE:
            logger.debug("IRR derivative flattened", iteration=iteration, rate=rate)
            return rate

        rate = min(IRR_RATE_CEILING, max(IRR_RATE_FLOOR, rate - value / derivative))

    logger.debug("IRR did not converge", rate=rate, iterations=max_iterations)
    return rate
