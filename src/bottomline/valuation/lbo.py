"""
LBO Returns Model.

Builds a leveraged buyout on top of the projected operating schedule:
sources of funds, a senior/mezzanine debt schedule with mandatory
amortization and a 50% cash sweep, exit proceeds, MOIC and IRR.

The senior tranche amortizes here even though the base projection
charges flat interest on a static balance. Mezzanine interest is
labelled PIK but is charged against cash flow; its principal never
accrues.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, YearProjection, coerce_record, read_number
from bottomline.utils.numbers import clamp, finite_or_zero, round_half_up, safe_divide
from bottomline.valuation.irr import solve_irr

logger = get_logger(__name__)

LBO_TAX_RATE = 0.25
CASH_SWEEP_PERCENT = 0.5
# Capex proxy when a projected year reports no capex
FALLBACK_CAPEX_PERCENT_OF_EBITDA = 0.08
SENSITIVITY_MULTIPLE_STEPS = (-2.0, -1.0, 0.0, 1.0, 2.0)
MIN_HOLDING_PERIOD = 1
MAX_HOLDING_PERIOD = 10


@dataclass(frozen=True)
class LboParameters:
    """Sanitized LBO deal parameters. Rates and percentages are plain numbers."""

    entry_multiple: float = 8.0
    exit_multiple: float = 12.0
    holding_period: int = 5
    debt_percent: float = 60.0
    annual_debt_paydown: float = 6.0
    senior_debt_multiple: float = 4.0
    mez_debt_multiple: float = 1.0
    senior_debt_rate: float = 6.0
    mez_debt_rate: float = 12.0
    target_irr: float = 25.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | LboParameters | None) -> LboParameters:
        """Sanitize a raw LBO record.

        Args:
            record: Raw record (camelCase or snake_case keys), existing
                parameters, or None for all defaults.

        Returns:
            Defaulted and clamped LboParameters.

        Raises:
            InputError: If record is neither a mapping nor None.
        """
        if isinstance(record, LboParameters):
            return record
        data = coerce_record(record, "lbo")
        d = cls()

        def num(name: str) -> float:
            return read_number(data, name, getattr(d, name), "lbo")

        holding = int(round_half_up(num("holding_period")))
        return cls(
            entry_multiple=num("entry_multiple"),
            exit_multiple=num("exit_multiple"),
            holding_period=int(clamp(holding, MIN_HOLDING_PERIOD, MAX_HOLDING_PERIOD)),
            debt_percent=clamp(num("debt_percent"), 0.0, 100.0),
            annual_debt_paydown=clamp(num("annual_debt_paydown"), 0.0, 100.0),
            senior_debt_multiple=num("senior_debt_multiple"),
            mez_debt_multiple=num("mez_debt_multiple"),
            senior_debt_rate=num("senior_debt_rate"),
            mez_debt_rate=num("mez_debt_rate"),
            target_irr=num("target_irr"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "entryMultiple": self.entry_multiple,
            "exitMultiple": self.exit_multiple,
            "holdingPeriod": self.holding_period,
            "debtPercent": self.debt_percent,
            "annualDebtPaydown": self.annual_debt_paydown,
            "seniorDebtMultiple": self.senior_debt_multiple,
            "mezDebtMultiple": self.mez_debt_multiple,
            "seniorDebtRate": self.senior_debt_rate,
            "mezDebtRate": self.mez_debt_rate,
            "targetIrr": self.target_irr,
        }


@dataclass(frozen=True)
class DebtScheduleYear:
    """One year of the LBO debt schedule and cash flow to equity."""

    year: int
    begin_senior: float
    senior_interest: float
    mandatory_amortization: float
    cash_sweep: float
    end_senior: float
    begin_mez: float
    mez_interest: float
    end_mez: float
    ebitda: float
    taxes: float
    capex: float
    working_capital_change: float
    fcf_before_sweep: float
    distributable_fcf: float
    total_debt_service: float

    @property
    def total_debt(self) -> float:
        """Debt outstanding at year end."""
        return self.end_senior + self.end_mez

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "year": self.year,
            "beginSenior": self.begin_senior,
            "seniorInterest": self.senior_interest,
            "mandatoryAmortization": self.mandatory_amortization,
            "cashSweep": self.cash_sweep,
            "endSenior": self.end_senior,
            "beginMez": self.begin_mez,
            "mezInterest": self.mez_interest,
            "endMez": self.end_mez,
            "ebitda": self.ebitda,
            "taxes": self.taxes,
            "capex": self.capex,
            "workingCapitalChange": self.working_capital_change,
            "fcfBeforeSweep": self.fcf_before_sweep,
            "distributableFcf": self.distributable_fcf,
            "totalDebtService": self.total_debt_service,
        }


@dataclass(frozen=True)
class LboScenario:
    """Result of an LBO build."""

    parameters: LboParameters

    # Sources of funds
    entry_ebitda: float
    entry_ev: float
    total_debt: float
    senior_debt: float
    mez_debt: float
    sponsor_equity: float

    debt_schedule: tuple[DebtScheduleYear, ...]

    # Exit and returns
    exit_ebitda: float
    exit_ev: float
    debt_at_exit: float
    exit_equity: float
    moic: float
    irr: float  # Percent
    meets_target_irr: bool

    cash_flows: tuple[float, ...] = ()
    # IRR (%) by entry multiple (rows) and exit multiple (columns)
    irr_sensitivity: tuple[tuple[float, ...], ...] = ()
    sensitivity_entry_multiples: tuple[float, ...] = ()
    sensitivity_exit_multiples: tuple[float, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "parameters": self.parameters.to_dict(),
            "entryEbitda": self.entry_ebitda,
            "entryEv": self.entry_ev,
            "totalDebt": self.total_debt,
            "seniorDebt": self.senior_debt,
            "mezDebt": self.mez_debt,
            "sponsorEquity": self.sponsor_equity,
            "debtSchedule": [y.to_dict() for y in self.debt_schedule],
            "exitEbitda": self.exit_ebitda,
            "exitEv": self.exit_ev,
            "debtAtExit": self.debt_at_exit,
            "exitEquity": self.exit_equity,
            "moic": round(self.moic, 2),
            "irr": round(self.irr, 2),
            "meetsTargetIrr": self.meets_target_irr,
            "cashFlows": list(self.cash_flows),
            "irrSensitivity": {
                "entryMultiples": list(self.sensitivity_entry_multiples),
                "exitMultiples": list(self.sensitivity_exit_multiples),
                "data": [list(row) for row in self.irr_sensitivity],
            },
        }


class LBOEngine:
    """Deterministic LBO returns engine.

    Every entry/exit sensitivity cell is an independent rebuild of the
    debt schedule, so the grid always agrees with the headline case.
    """

    def __init__(self) -> None:
        """Initialize the LBO engine."""
        pass

    def build_scenario(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
        lbo_params: LboParameters | Mapping[str, Any] | None = None,
        include_sensitivity: bool = True,
    ) -> LboScenario:
        """Build the LBO scenario.

        Args:
            assumptions: Sanitized assumptions or a raw record. Only used
                for logging context; the deal runs off the projections.
            projections: Projected years; year 1 EBITDA is the entry EBITDA.
            lbo_params: Deal parameters or a raw LBO record.
            include_sensitivity: Whether to build the entry/exit IRR grid.

        Returns:
            LboScenario with debt schedule and returns.
        """
        a = ModelAssumptions.from_record(assumptions)
        params = LboParameters.from_record(lbo_params)
        logger.debug(
            "Building LBO scenario",
            entry_multiple=params.entry_multiple,
            exit_multiple=params.exit_multiple,
            holding_period=params.holding_period,
            currency=a.currency,
        )

        entry_ebitda = projections[0].ebitda if projections else 0.0
        entry_ev = entry_ebitda * params.entry_multiple
        total_debt = entry_ev * params.debt_percent / 100
        senior_debt = max(0.0, min(entry_ebitda * params.senior_debt_multiple, total_debt))
        mez_debt = max(0.0, min(entry_ebitda * params.mez_debt_multiple, total_debt - senior_debt))
        sponsor_equity = entry_ev - senior_debt - mez_debt

        schedule = self._build_debt_schedule(params, projections, senior_debt, mez_debt)

        if schedule:
            exit_ebitda = schedule[-1].ebitda
            debt_at_exit = schedule[-1].total_debt
        else:
            exit_ebitda = entry_ebitda
            debt_at_exit = total_debt
        exit_ev = exit_ebitda * params.exit_multiple
        exit_equity = exit_ev - debt_at_exit
        moic = safe_divide(exit_equity, sponsor_equity) if sponsor_equity > 0 else 0.0

        cash_flows = [-sponsor_equity] + [y.distributable_fcf for y in schedule]
        if len(cash_flows) > 1:
            cash_flows[-1] += exit_equity
        irr = finite_or_zero(solve_irr(cash_flows) * 100)

        scenario = LboScenario(
            parameters=params,
            entry_ebitda=entry_ebitda,
            entry_ev=entry_ev,
            total_debt=total_debt,
            senior_debt=senior_debt,
            mez_debt=mez_debt,
            sponsor_equity=sponsor_equity,
            debt_schedule=tuple(schedule),
            exit_ebitda=exit_ebitda,
            exit_ev=exit_ev,
            debt_at_exit=debt_at_exit,
            exit_equity=exit_equity,
            moic=moic,
            irr=irr,
            meets_target_irr=irr >= params.target_irr,
            cash_flows=tuple(cash_flows),
        )

        if include_sensitivity:
            scenario = self._with_irr_sensitivity(scenario, a, projections)
        return scenario

    def _build_debt_schedule(
        self,
        params: LboParameters,
        projections: Sequence[YearProjection],
        senior_debt: float,
        mez_debt: float,
    ) -> list[DebtScheduleYear]:
        schedule: list[DebtScheduleYear] = []
        senior_balance = senior_debt
        mez_balance = mez_debt

        for index, projection in enumerate(projections[: params.holding_period]):
            begin_senior = senior_balance
            begin_mez = mez_balance

            senior_interest = begin_senior * params.senior_debt_rate / 100
            mez_interest = begin_mez * params.mez_debt_rate / 100
            mandatory = min(senior_debt * params.annual_debt_paydown / 100, begin_senior)

            ebitda = projection.ebitda
            capex = projection.capex or ebitda * FALLBACK_CAPEX_PERCENT_OF_EBITDA
            nwc_change = projection.change_in_nwc
            taxes = max(0.0, (ebitda - senior_interest - mez_interest) * LBO_TAX_RATE)
            fcf_before_sweep = (
                ebitda - senior_interest - mez_interest - taxes - capex - nwc_change - mandatory
            )

            cash_sweep = max(
                0.0, min(fcf_before_sweep * CASH_SWEEP_PERCENT, begin_senior - mandatory)
            )
            senior_balance = max(0.0, begin_senior - mandatory - cash_sweep)
            # Mezzanine is a bullet repaid at exit

            schedule.append(
                DebtScheduleYear(
                    year=index + 1,
                    begin_senior=begin_senior,
                    senior_interest=senior_interest,
                    mandatory_amortization=mandatory,
                    cash_sweep=cash_sweep,
                    end_senior=senior_balance,
                    begin_mez=begin_mez,
                    mez_interest=mez_interest,
                    end_mez=mez_balance,
                    ebitda=ebitda,
                    taxes=taxes,
                    capex=capex,
                    working_capital_change=nwc_change,
                    fcf_before_sweep=fcf_before_sweep,
                    distributable_fcf=fcf_before_sweep - cash_sweep,
                    total_debt_service=senior_interest + mez_interest + mandatory,
                )
            )

        return schedule

    def _with_irr_sensitivity(
        self,
        scenario: LboScenario,
        assumptions: ModelAssumptions,
        projections: Sequence[YearProjection],
    ) -> LboScenario:
        params = scenario.parameters
        entry_multiples = tuple(params.entry_multiple + step for step in SENSITIVITY_MULTIPLE_STEPS)
        exit_multiples = tuple(params.exit_multiple + step for step in SENSITIVITY_MULTIPLE_STEPS)

        grid: list[tuple[float, ...]] = []
        for entry_multiple in entry_multiples:
            row: list[float] = []
            for exit_multiple in exit_multiples:
                cell = self.build_scenario(
                    assumptions,
                    projections,
                    replace(params, entry_multiple=entry_multiple, exit_multiple=exit_multiple),
                    include_sensitivity=False,
                )
                row.append(cell.irr)
            grid.append(tuple(row))

        return replace(
            scenario,
            irr_sensitivity=tuple(grid),
            sensitivity_entry_multiples=entry_multiples,
            sensitivity_exit_multiples=exit_multiples,
        )


def build_lbo_scenario(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
    lbo_params: LboParameters | Mapping[str, Any] | None = None,
) -> LboScenario:
    """Convenience wrapper around LBOEngine.build_scenario."""
    return LBOEngine().build_scenario(assumptions, projections, lbo_params)
