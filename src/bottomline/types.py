"""
Core types for the financial model engine.

This module defines the records that flow through every calculation:
- ModelAssumptions: the sanitized, immutable input record
- TradingCompEntry: one user-entered peer company
- YearProjection: one projected year of the operating schedule
- ValuationOutput: the DCF result

ModelAssumptions.from_record() is the single place where raw input is
coerced and defaulted. Everything downstream works on finite floats.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

from bottomline.exceptions import InputError
from bottomline.logging import get_logger
from bottomline.utils.numbers import clamp, safe_number

logger = get_logger(__name__)


def _snake_to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def lookup_field(record: Mapping[str, Any], name: str) -> Any:
    """Read a field by its persisted camelCase key, falling back to snake_case."""
    camel = _snake_to_camel(name)
    if camel in record:
        return record[camel]
    return record.get(name)


def coerce_record(record: Any, source: str) -> Mapping[str, Any]:
    if record is None:
        return {}
    if isinstance(record, Mapping):
        return record
    raise InputError(
        f"{source} record must be a mapping",
        context={"record_type": type(record).__name__, "source": source},
    )


def read_number(
    record: Mapping[str, Any],
    name: str,
    default: float,
    source: str = "assumptions",
) -> float:
    """Read one numeric field, logging when a present value is unusable."""
    raw = lookup_field(record, name)
    value = safe_number(raw, default)
    if raw is not None and value == default and safe_number(raw, default + 1) != value:
        logger.warning(
            "Input degraded to default",
            source=source,
            field=name,
            raw_value=repr(raw),
            default=default,
        )
    return value


@dataclass(frozen=True)
class TradingCompEntry:
    """A peer company entered for trading comparables."""

    company_name: str
    revenue: float = 0.0
    ebitda: float = 1.0
    net_income: float = 1.0
    ev: float = 0.0
    market_cap: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> TradingCompEntry:
        """Build a peer entry, defaulting unusable numbers."""
        name = lookup_field(record, "company_name")
        return cls(
            company_name=str(name) if name else "",
            revenue=read_number(record, "revenue", 0.0, "trading_comp"),
            ebitda=read_number(record, "ebitda", 1.0, "trading_comp"),
            net_income=read_number(record, "net_income", 1.0, "trading_comp"),
            ev=read_number(record, "ev", 0.0, "trading_comp"),
            market_cap=read_number(record, "market_cap", 0.0, "trading_comp"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "companyName": self.company_name,
            "revenue": self.revenue,
            "ebitda": self.ebitda,
            "netIncome": self.net_income,
            "ev": self.ev,
            "marketCap": self.market_cap,
        }


@dataclass(frozen=True)
class ModelAssumptions:
    """Sanitized model assumptions.

    Percentages are plain numbers (15 means 15%). Build instances with
    from_record(); the constructor does not re-validate.
    """

    currency: str = "USD"

    # Revenue build
    starting_revenue: float = 1_000_000.0
    growth_rate: float = 0.0

    # Margins
    cogs_margin: float = 0.0
    opex_margin: float = 0.0
    da_margin: float = 5.0

    # Working capital (days)
    ar_days: float = 45.0
    inventory_days: float = 60.0
    ap_days: float = 30.0

    # CapEx schedule
    capex_percent: float = 5.0
    maintenance_capex_percent: float = 2.0

    # Capital structure
    interest_rate: float = 5.0
    debt_balance: float = 0.0
    cash_balance: float = 0.0
    shares_outstanding: float = 1_000_000.0

    # Valuation
    wacc: float = 10.0
    terminal_growth_rate: float = 2.0
    exit_multiple: float = 12.0
    use_mid_year_convention: bool = True

    tax_rate: float = 21.0

    trading_comps: tuple[TradingCompEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | ModelAssumptions | None) -> ModelAssumptions:
        """Sanitize a raw assumptions record.

        Accepts the persisted camelCase keys (snake_case also works).
        Missing, non-numeric and non-finite values fall back to defaults;
        margin fields are clamped to [0, 100].

        Args:
            record: Raw record, an existing ModelAssumptions, or None.

        Returns:
            Fully defaulted ModelAssumptions.

        Raises:
            InputError: If record is neither a mapping nor None.
        """
        if isinstance(record, ModelAssumptions):
            return record
        data = coerce_record(record, "assumptions")
        d = cls()

        def num(name: str) -> float:
            return read_number(data, name, getattr(d, name))

        def pct(name: str) -> float:
            return clamp(num(name), 0.0, 100.0)

        starting_revenue = num("starting_revenue")
        if starting_revenue <= 0:
            starting_revenue = 1.0

        currency = lookup_field(data, "currency")
        comps_raw = lookup_field(data, "trading_comps")
        comps: tuple[TradingCompEntry, ...] = ()
        if isinstance(comps_raw, (list, tuple)):
            comps = tuple(
                TradingCompEntry.from_record(entry)
                for entry in comps_raw
                if isinstance(entry, Mapping)
            )

        return cls(
            currency=str(currency).strip() if currency else d.currency,
            starting_revenue=starting_revenue,
            growth_rate=num("growth_rate"),
            cogs_margin=pct("cogs_margin"),
            opex_margin=pct("opex_margin"),
            da_margin=pct("da_margin"),
            ar_days=num("ar_days"),
            inventory_days=num("inventory_days"),
            ap_days=num("ap_days"),
            capex_percent=pct("capex_percent"),
            maintenance_capex_percent=pct("maintenance_capex_percent"),
            interest_rate=max(0.0, num("interest_rate")),
            debt_balance=num("debt_balance"),
            cash_balance=num("cash_balance"),
            shares_outstanding=num("shares_outstanding"),
            wacc=num("wacc"),
            terminal_growth_rate=num("terminal_growth_rate"),
            exit_multiple=num("exit_multiple"),
            use_mid_year_convention=lookup_field(data, "use_mid_year_convention") is not False,
            tax_rate=pct("tax_rate"),
            trading_comps=comps,
        )

    def with_overrides(self, **changes: Any) -> ModelAssumptions:
        """Return a re-sanitized copy with some fields replaced."""
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise TypeError(f"Unknown assumption fields: {sorted(unknown)}")
        return ModelAssumptions.from_record(replace(self, **changes).to_record())

    @property
    def ebitda_margin(self) -> float:
        """EBITDA margin implied by the cost margins, in percent."""
        return 100.0 - self.cogs_margin - self.opex_margin

    def to_record(self) -> dict[str, Any]:
        """Convert to a snake_case record accepted by from_record()."""
        record: dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        record["trading_comps"] = [c.to_dict() for c in self.trading_comps]
        return record

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase persisted shape."""
        return {
            _snake_to_camel(key): value
            for key, value in self.to_record().items()
        }


@dataclass(frozen=True)
class YearProjection:
    """One projected year of the operating and cash-flow schedule."""

    year: int

    # Income statement
    revenue: float
    cogs: float
    gross_profit: float
    opex: float
    ebitda: float
    da: float
    ebit: float
    interest: float
    ebt: float
    tax: float
    net_income: float
    revenue_growth: float
    ebitda_margin: float
    net_margin: float

    # Working capital schedule
    accounts_receivable: float
    inventory: float
    accounts_payable: float
    net_working_capital: float
    change_in_nwc: float

    # CapEx schedule
    capex: float
    maintenance_capex: float
    growth_capex: float

    # Unlevered free cash flow
    nopat: float
    ufcf: float

    # Legacy alias of ufcf, plus discounting filled in by the DCF engine
    fcf: float
    discount_factor: float = 0.0
    pv_of_fcf: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "year": self.year,
            "revenue": self.revenue,
            "cogs": self.cogs,
            "grossProfit": self.gross_profit,
            "opex": self.opex,
            "ebitda": self.ebitda,
            "da": self.da,
            "ebit": self.ebit,
            "interest": self.interest,
            "ebt": self.ebt,
            "tax": self.tax,
            "netIncome": self.net_income,
            "revenueGrowth": self.revenue_growth,
            "ebitdaMargin": self.ebitda_margin,
            "netMargin": self.net_margin,
            "accountsReceivable": self.accounts_receivable,
            "inventory": self.inventory,
            "accountsPayable": self.accounts_payable,
            "netWorkingCapital": self.net_working_capital,
            "changeInNwc": self.change_in_nwc,
            "capex": self.capex,
            "maintenanceCapex": self.maintenance_capex,
            "growthCapex": self.growth_capex,
            "nopat": self.nopat,
            "ufcf": self.ufcf,
            "fcf": self.fcf,
            "discountFactor": self.discount_factor,
            "pvOfFcf": self.pv_of_fcf,
        }


@dataclass(frozen=True)
class ValuationOutput:
    """Result of the DCF valuation."""

    enterprise_value: float = 0.0
    equity_value: float = 0.0
    terminal_value: float = 0.0
    implied_multiple: float = 0.0
    terminal_value_gordon: float = 0.0
    terminal_value_exit_multiple: float = 0.0
    sum_pv_fcf: float = 0.0
    pv_of_terminal_value: float = 0.0
    net_debt: float = 0.0
    equity_value_per_share: float = 0.0
    shares_outstanding: float = 0.0
    # WACC actually applied, in percent, after the floor
    discount_rate: float = 0.0

    # Discounted copies of the input projections and the periods used
    projections: tuple[YearProjection, ...] = ()
    discount_periods: tuple[float, ...] = ()
    terminal_discount_period: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "enterpriseValue": self.enterprise_value,
            "equityValue": self.equity_value,
            "terminalValue": self.terminal_value,
            "impliedMultiple": self.implied_multiple,
            "terminalValueGordon": self.terminal_value_gordon,
            "terminalValueExitMultiple": self.terminal_value_exit_multiple,
            "sumPvFcf": self.sum_pv_fcf,
            "pvOfTerminalValue": self.pv_of_terminal_value,
            "netDebt": self.net_debt,
            "equityValuePerShare": self.equity_value_per_share,
            "sharesOutstanding": self.shares_outstanding,
            "discountRate": self.discount_rate,
        }
