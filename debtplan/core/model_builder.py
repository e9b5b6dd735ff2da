import logging
from dataclasses import dataclass

import pulp

from debtplan.core.errors import ModelBuildError


# Maximize: sum of Saving[i] over the horizon
# Subject to: Saving[i] + sum_l Payment[i,l] <= net_income
#             Balance[i+1,l] == (1 + rate_l) * (Balance[i,l] - Payment[i,l])
#             Balance[1,l] == principal_l, Balance[term_l+1,l] == 0

@dataclass
class PlanModel:
    """A built, unsolved problem plus the handles the extractor needs."""
    prob: pulp.LpProblem
    request: object
    saving: dict
    payment: dict
    balance: dict

    @property
    def periods(self):
        return range(1, self.request.horizon + 1)

    def lender_periods(self, k):
        """Periods in which lender k (registry position) still has cash flows."""
        return range(1, self.request.lenders[k].term + 1)


def _lookup(table, key, what):
    try:
        return table[key]
    except KeyError:
        raise ModelBuildError(f"{what} has no variable for {key}") from None


def prepare_pulp(request):
    """
    Builds the repayment LP for a validated PlanRequest.

    Lenders are indexed by their position in request.lenders. A lender only
    gets payment variables for periods 1..term and balance variables for
    1..term+1, so a retired loan adds nothing to later periods.

    Returns:
        PlanModel: the problem and its variable dictionaries.
    """
    prob = pulp.LpProblem("DebtRepaymentPlan", pulp.LpMaximize)

    # --- Define Variables ---
    periods = range(1, request.horizon + 1)
    lenders = list(enumerate(request.lenders))

    saving = pulp.LpVariable.dicts("Saving", periods, lowBound=request.minimum_savings)
    payment = pulp.LpVariable.dicts(
        "Payment", [(i, k) for k, l in lenders for i in range(1, l.term + 1)], lowBound=0)
    # Balance at the start of the period, before that period's payment
    balance = pulp.LpVariable.dicts(
        "Balance", [(i, k) for k, l in lenders for i in range(1, l.term + 2)], lowBound=0)

    # --- Objective ---
    prob += pulp.lpSum(saving[i] for i in periods), "Total_Savings"

    # --- Lender Constraints ---
    for k, l in lenders:
        prob += _lookup(balance, (1, k), "Balance") == l.principal, f"InitBalance_{k}"
        prob += _lookup(balance, (l.term + 1, k), "Balance") == 0, f"Payoff_{k}"
        for i in range(1, l.term + 1):
            remaining = _lookup(balance, (i, k), "Balance") - _lookup(payment, (i, k), "Payment")
            prob += _lookup(balance, (i + 1, k), "Balance") == (1 + l.monthly_rate) * remaining, \
                f"Amortize_{i}_{k}"

    # --- Period Constraints ---
    for i in periods:
        outflow = pulp.lpSum(_lookup(payment, (i, k), "Payment") for k, l in lenders if i <= l.term)
        prob += saving[i] + outflow <= request.net_income, f"Afford_{i}"

    logging.info(f"Built model: {len(prob.variables())} variables, "
                 f"{len(prob.constraints)} constraints over {request.horizon} periods")
    return PlanModel(prob, request, saving, payment, balance)
