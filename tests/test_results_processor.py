import pytest

from debtplan.core.errors import SolverError, InfeasibleError, UnboundedError
from debtplan.core.lenders import PlanRequest
from debtplan.core.model_builder import prepare_pulp
from debtplan.core.results_processor import retrieve_results, clamp, print_ascii, print_csv
from debtplan.core.solver import SolveResult, OPTIMAL, INFEASIBLE, UNBOUNDED, ERROR


def small_model():
    # 1000 at 10%/month over two months, 800 a month to spend
    return prepare_pulp(PlanRequest({'bank': (1000, 2, 0.1)}, 800, 0))


def solution(model):
    return {
        model.saving[1].name: 0.0,
        model.saving[2].name: 580.0,
        model.payment[1, 0].name: 800.0,
        model.payment[2, 0].name: 220.0,
        model.balance[1, 0].name: 1000.0,
        model.balance[2, 0].name: 220.0,
        model.balance[3, 0].name: 0.0,
    }


def test_schedule_rows_and_derived_fields():
    model = small_model()
    result = retrieve_results(model, SolveResult(OPTIMAL, solution(model)))
    assert result.optimal
    assert result.horizon == 2
    assert result.total_savings == pytest.approx(580.0)

    first, second = result.schedule
    assert (first.period, first.lender_id) == (1, 'bank')
    assert first.opening_balance == 1000.0
    assert first.payment == 800.0
    assert first.interest == 0.0
    assert first.end_balance == 200.0
    assert first.cumulative_savings_through_period == 0.0

    assert second.opening_balance == 220.0
    assert second.interest == pytest.approx(20.0)
    assert second.end_balance == 0.0
    assert second.cumulative_savings_through_period == pytest.approx(580.0)

    assert [(s.period, s.saving, s.total_payment) for s in result.savings] == [(1, 0.0, 800.0), (2, 580.0, 220.0)]
    summary, = result.lenders
    assert summary.total_paid == pytest.approx(1020.0)
    assert summary.total_interest == pytest.approx(20.0)
    assert summary.payoff_period == 2


def test_negative_noise_is_clamped():
    model = small_model()
    values = solution(model)
    values[model.payment[2, 0].name] = 220.0000001
    values[model.balance[3, 0].name] = -1e-9
    values[model.saving[1].name] = -1e-9
    result = retrieve_results(model, SolveResult(OPTIMAL, values))
    assert result.schedule[1].end_balance == 0.0
    assert result.savings[0].saving == 0.0
    assert all(r.end_balance >= 0 and r.payment >= 0 and r.interest >= 0 for r in result.schedule)


def test_clamp():
    assert clamp(-1e-7) == 0.0
    assert clamp(-1e-3) == -1e-3
    assert clamp(-1e-5) == -1e-5
    assert clamp(-1e-5, tol=1e-4) == 0.0
    assert clamp(5.0) == 5.0


@pytest.mark.parametrize('status', [INFEASIBLE, UNBOUNDED, ERROR])
def test_non_optimal_passes_through(status):
    result = retrieve_results(small_model(), SolveResult(status, message="nope"))
    assert result.status == status
    assert result.schedule is None and result.total_savings is None
    assert result.to_dict() == {'status': status, 'horizon': 2, 'message': "nope"}


def test_raise_for_status():
    model = small_model()
    with pytest.raises(InfeasibleError):
        retrieve_results(model, SolveResult(INFEASIBLE)).raise_for_status()
    with pytest.raises(UnboundedError):
        retrieve_results(model, SolveResult(UNBOUNDED)).raise_for_status()
    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(ERROR)).raise_for_status()
    result = retrieve_results(model, SolveResult(OPTIMAL, solution(model)))
    assert result.raise_for_status() is result


def test_missing_or_bad_values_are_malformed():
    model = small_model()
    values = solution(model)
    del values[model.balance[2, 0].name]
    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(OPTIMAL, values))

    values = solution(model)
    values[model.payment[1, 0].name] = None
    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(OPTIMAL, values))

    values = solution(model)
    values[model.payment[1, 0].name] = float('nan')
    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(OPTIMAL, values))

    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(OPTIMAL, None))


@pytest.mark.parametrize('var, key, value', [
    ('balance', (2, 0), 250.0),     # breaks the amortization recurrence
    ('balance', (3, 0), 5.0),       # not paid off
    ('balance', (1, 0), 900.0),     # wrong principal
    ('saving', 2, 700.0),           # over income
    ('saving', 2, 580.00001),       # over income by 1e-5
    ('balance', (2, 0), 220.000002),  # recurrence off by 2e-6
])
def test_inconsistent_solution_is_rejected(var, key, value):
    model = small_model()
    values = solution(model)
    values[getattr(model, var)[key].name] = value
    with pytest.raises(SolverError):
        retrieve_results(model, SolveResult(OPTIMAL, values))


def test_to_dict_and_printing(capsys):
    model = small_model()
    result = retrieve_results(model, SolveResult(OPTIMAL, solution(model)))
    d = result.to_dict()
    assert d['status'] == 'optimal'
    assert d['total_savings'] == pytest.approx(580.0)
    assert d['schedule'][0] == {
        'period': 1, 'lender_id': 'bank', 'opening_balance': 1000.0, 'payment': 800.0,
        'interest': 0.0, 'end_balance': 200.0, 'cumulative_savings_through_period': 0.0,
    }
    assert len(d['savings']) == 2

    print_ascii(result)
    out = capsys.readouterr().out
    assert "Total savings over 2 months: 580.00" in out

    print_csv(result)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("period,lender_id")
    assert lines[1] == "1,bank,1000.00,800.00,0.00,200.00,0.00"
