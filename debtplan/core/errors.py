class PlanError(Exception):
    """Base class for everything the planner raises."""


class ConfigurationError(PlanError):
    """Invalid plan input, detected before any model is built."""


class ModelBuildError(PlanError):
    """The model builder referenced something it never defined."""


class InfeasibleError(PlanError):
    """The solver proved no schedule satisfies the constraints."""


class UnboundedError(PlanError):
    """The solver reported an unbounded objective.

    Savings are capped by net_income * horizon, so this points at a defect in
    the model rather than in the input.
    """


class SolverError(PlanError):
    """The solver crashed, timed out or returned something unusable."""


STATUS_ERRORS = {
    'infeasible': InfeasibleError,
    'unbounded': UnboundedError,
    'error': SolverError,
}
