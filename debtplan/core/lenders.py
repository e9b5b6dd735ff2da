import logging
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass

from debtplan.core.errors import ConfigurationError


@dataclass(frozen=True)
class Lender:
    lender_id: str
    principal: float
    term: int           # months
    monthly_rate: float # 0.068 -> 6.8% per month


def _number(value, what):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{what} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{what} must be finite, got {value}")
    return value


def _term(value, what):
    if isinstance(value, bool):
        raise ConfigurationError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        term = int(value)
    elif isinstance(value, numbers.Real) and float(value).is_integer():
        # TOML and JSON both hand us 10.0 now and then
        term = int(value)
    else:
        raise ConfigurationError(f"{what} must be an integer, got {value!r}")
    if term <= 0:
        raise ConfigurationError(f"{what} must be positive, got {term}")
    return term


def make_lender(lender_id, params):
    """
    Builds one validated Lender.

    Args:
        lender_id: Identifier, a string or an integer index.
        params: Either a (principal, term, rate) triple or a mapping with
            'principal', 'term' and 'rate' keys.
    """
    name = str(lender_id)
    if isinstance(params, Mapping):
        try:
            principal, term, rate = params['principal'], params['term'], params['rate']
        except KeyError as e:
            raise ConfigurationError(f"Lender {name!r} is missing {e.args[0]!r}") from None
    else:
        try:
            principal, term, rate = params
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Lender {name!r} must be a (principal, term, rate) triple, got {params!r}") from None

    principal = _number(principal, f"Lender {name!r} principal")
    if principal < 0:
        raise ConfigurationError(f"Lender {name!r} principal must be >= 0, got {principal}")
    rate = _number(rate, f"Lender {name!r} rate")
    if rate < 0:
        raise ConfigurationError(f"Lender {name!r} rate must be >= 0, got {rate}")
    term = _term(term, f"Lender {name!r} term")
    return Lender(name, principal, term, rate)


def _sort_key(lender):
    # numeric ids keep their natural order, everything else sorts as text
    if lender.lender_id.isdecimal():
        return (0, int(lender.lender_id), lender.lender_id)
    return (1, 0, lender.lender_id)


def register_lenders(raw):
    """
    Normalizes raw loan parameters into an ordered tuple of Lender records.

    Accepts a mapping of id -> params, or a sequence of params where the
    position (or an explicit 'id' key) is the identifier.

    Returns:
        tuple: (lenders, horizon) where horizon is the longest term.
    """
    if isinstance(raw, Mapping):
        items = list(raw.items())
    elif isinstance(raw, (list, tuple)):
        items = []
        for idx, params in enumerate(raw):
            if isinstance(params, Lender):
                items.append((params.lender_id, params))
            elif isinstance(params, Mapping) and 'id' in params:
                items.append((params['id'], params))
            else:
                items.append((idx, params))
    else:
        raise ConfigurationError(f"Lenders must be a mapping or a list, got {type(raw).__name__}")

    if not items:
        raise ConfigurationError("At least one lender is required")

    lenders = []
    seen = set()
    for lender_id, params in items:
        if isinstance(params, Lender):
            lender = make_lender(lender_id, (params.principal, params.term, params.monthly_rate))
        else:
            lender = make_lender(lender_id, params)
        if lender.lender_id in seen:
            raise ConfigurationError(f"Duplicate lender id {lender.lender_id!r}")
        seen.add(lender.lender_id)
        lenders.append(lender)

    lenders.sort(key=_sort_key)
    horizon = max(l.term for l in lenders)
    logging.debug(f"Registered {len(lenders)} lender(s), horizon {horizon}")
    return tuple(lenders), horizon


@dataclass(frozen=True, init=False)
class PlanRequest:
    lenders: tuple
    net_income: float
    minimum_savings: float
    horizon: int

    def __init__(self, lenders, net_income, minimum_savings=0.0):
        registered, horizon = register_lenders(lenders)
        net_income = _number(net_income, "net_income")
        if net_income < 0:
            raise ConfigurationError(f"net_income must be >= 0, got {net_income}")
        minimum_savings = _number(minimum_savings, "minimum_savings")
        if minimum_savings < 0:
            raise ConfigurationError(f"minimum_savings must be >= 0, got {minimum_savings}")
        object.__setattr__(self, 'lenders', registered)
        object.__setattr__(self, 'net_income', net_income)
        object.__setattr__(self, 'minimum_savings', minimum_savings)
        object.__setattr__(self, 'horizon', horizon)

    @classmethod
    def from_dict(cls, d):
        """Builds a request from the JSON/TOML shape: lenders, net_income, minimum_savings."""
        if not isinstance(d, Mapping):
            raise ConfigurationError(f"Plan must be a mapping, got {type(d).__name__}")
        if 'lenders' not in d:
            raise ConfigurationError("Plan is missing 'lenders'")
        if 'net_income' not in d:
            raise ConfigurationError("Plan is missing 'net_income'")
        return cls(d['lenders'], d['net_income'], d.get('minimum_savings', 0.0))
