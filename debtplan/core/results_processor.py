import math
from dataclasses import dataclass, asdict

from debtplan.core.errors import SolverError, STATUS_ERRORS
from debtplan.core.solver import OPTIMAL

# Absolute solver noise allowance on every check and clamp.
TOLERANCE = 1e-6


@dataclass
class ScheduleRow:
    period: int
    lender_id: str
    opening_balance: float
    payment: float
    interest: float
    end_balance: float
    cumulative_savings_through_period: float


@dataclass
class SavingsRow:
    period: int
    saving: float
    total_payment: float
    cumulative_savings: float


@dataclass
class LenderSummary:
    lender_id: str
    principal: float
    total_paid: float
    total_interest: float
    payoff_period: int


@dataclass
class PlanResult:
    status: str
    horizon: int = None
    total_savings: float = None
    schedule: list = None
    savings: list = None
    lenders: list = None
    message: str = None

    @property
    def optimal(self):
        return self.status == OPTIMAL

    def raise_for_status(self):
        """Raises the error matching a non-optimal status, otherwise returns self."""
        error = STATUS_ERRORS.get(self.status)
        if error is not None:
            raise error(self.message or f"Plan status: {self.status}")
        return self

    def to_dict(self):
        d = {'status': self.status, 'horizon': self.horizon}
        if self.message:
            d['message'] = self.message
        if self.optimal:
            d['total_savings'] = self.total_savings
            d['schedule'] = [asdict(r) for r in self.schedule]
            d['savings'] = [asdict(r) for r in self.savings]
            d['lenders'] = [asdict(r) for r in self.lenders]
        return d


def clamp(value, tol=TOLERANCE):
    """Reports small negative residuals as zero."""
    if -tol <= value < 0:
        return 0.0
    return value


def _values_for(model, values):
    """Pulls every model variable out of the solver's name -> value map."""
    def get(var):
        try:
            value = values[var.name]
        except KeyError:
            raise SolverError(f"Solver returned no value for {var.name}") from None
        if value is None or isinstance(value, bool):
            raise SolverError(f"Solver returned no value for {var.name}")
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise SolverError(f"Solver returned non-numeric {value!r} for {var.name}") from None
        if not math.isfinite(value):
            raise SolverError(f"Solver returned {value} for {var.name}")
        return value

    saving = {i: get(v) for i, v in model.saving.items()}
    payment = {key: get(v) for key, v in model.payment.items()}
    balance = {key: get(v) for key, v in model.balance.items()}
    return saving, payment, balance


def verify_solution(model, saving, payment, balance):
    """
    Checks the raw assignment against the model's own constraints.

    Raises:
        SolverError: if any constraint is violated beyond tolerance.
    """
    request = model.request
    for k, l in enumerate(request.lenders):
        if abs(balance[1, k] - l.principal) > TOLERANCE:
            raise SolverError(f"Lender {l.lender_id}: opening balance {balance[1, k]} != principal {l.principal}")
        if abs(balance[l.term + 1, k]) > TOLERANCE:
            raise SolverError(f"Lender {l.lender_id}: balance {balance[l.term + 1, k]} left after term")
        for i in model.lender_periods(k):
            expected = (1 + l.monthly_rate) * (balance[i, k] - payment[i, k])
            if abs(balance[i + 1, k] - expected) > TOLERANCE:
                raise SolverError(f"Lender {l.lender_id}: amortization broken in period {i}")
            if payment[i, k] < -TOLERANCE:
                raise SolverError(f"Lender {l.lender_id}: negative payment in period {i}")
        for i in range(1, l.term + 2):
            if balance[i, k] < -TOLERANCE:
                raise SolverError(f"Lender {l.lender_id}: negative balance in period {i}")

    for i in model.periods:
        if saving[i] < request.minimum_savings - TOLERANCE:
            raise SolverError(f"Saving {saving[i]} below minimum in period {i}")
        outflow = saving[i] + sum(payment[i, k] for k in range(len(request.lenders)) if (i, k) in payment)
        if outflow > request.net_income + TOLERANCE:
            raise SolverError(f"Outflow {outflow} exceeds net income in period {i}")


def retrieve_results(model, solved):
    """
    Turns a SolveResult into a PlanResult.

    Non-optimal statuses pass straight through. For an optimal solve the
    assignment is verified, then expanded into one row per (period, lender)
    and one savings row per period.

    Raises:
        SolverError: when the assignment is missing values or breaks the model.
    """
    request = model.request
    if solved.status != OPTIMAL:
        return PlanResult(solved.status, horizon=request.horizon, message=solved.message)
    if not isinstance(solved.values, dict):
        raise SolverError("Solver reported optimal but returned no values")

    saving, payment, balance = _values_for(model, solved.values)
    verify_solution(model, saving, payment, balance)

    schedule = []
    savings = []
    end_balance = {}
    cumulative = 0.0
    for i in model.periods:
        cumulative += clamp(saving[i])
        period_paid = 0.0
        for k, l in enumerate(request.lenders):
            if i > l.term:
                continue
            opening = clamp(balance[i, k])
            paid = clamp(payment[i, k])
            end_balance[i, k] = clamp(balance[i, k] - payment[i, k])
            if i == 1:
                interest = 0.0
            else:
                interest = clamp(balance[i, k] - end_balance[i - 1, k])
            period_paid += paid
            schedule.append(ScheduleRow(i, l.lender_id, opening, paid, interest,
                                        end_balance[i, k], cumulative))
        savings.append(SavingsRow(i, clamp(saving[i]), period_paid, cumulative))

    summaries = []
    for k, l in enumerate(request.lenders):
        rows = [r for r in schedule if r.lender_id == l.lender_id]
        payoff = next((r.period for r in rows if r.end_balance <= TOLERANCE), l.term)
        summaries.append(LenderSummary(l.lender_id, l.principal,
                                       sum(r.payment for r in rows),
                                       sum(r.interest for r in rows),
                                       payoff))

    return PlanResult(OPTIMAL, horizon=request.horizon, total_savings=cumulative,
                      schedule=schedule, savings=savings, lenders=summaries)


def print_ascii(result):
    if result is None:
        print("No solution found to print.")
        return

    print(f"Solver Status: {result.status}")
    if not result.optimal:
        if result.message:
            print(result.message)
        return
    print(f"Total savings over {result.horizon} months: {result.total_savings:.2f}")
    print()

    columns = ["Opening", "Payment", "Interest", "End", "CumSave"]
    print((" mon %-12.12s" + " %10.10s" * len(columns)) % (("lender",) + tuple(columns)))
    for r in result.schedule:
        print((" %3d %-12.12s" + " %10.2f" * len(columns)) %
              ((r.period, r.lender_id, r.opening_balance, r.payment, r.interest,
                r.end_balance, r.cumulative_savings_through_period)))

    print()
    print(" mon %10.10s %10.10s %10.10s" % ("Saving", "Paid", "CumSave"))
    for s in result.savings:
        print(" %3d %10.2f %10.2f %10.2f" % (s.period, s.saving, s.total_payment, s.cumulative_savings))

    print()
    print(" %-12.12s %10.10s %10.10s %10.10s %6.6s" % ("lender", "Principal", "Paid", "Interest", "Payoff"))
    for s in result.lenders:
        print(" %-12.12s %10.2f %10.2f %10.2f %6d" %
              (s.lender_id, s.principal, s.total_paid, s.total_interest, s.payoff_period))


def print_csv(result):
    if result is None or not result.optimal:
        print("No solution found to print.")
        return

    columns = ["period", "lender_id", "opening_balance", "payment", "interest",
               "end_balance", "cumulative_savings_through_period"]
    print(",".join(columns))
    for r in result.schedule:
        print("%d,%s,%.2f,%.2f,%.2f,%.2f,%.2f" %
              (r.period, r.lender_id, r.opening_balance, r.payment, r.interest,
               r.end_balance, r.cumulative_savings_through_period))
