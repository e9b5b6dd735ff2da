import logging

from .core.errors import SolverError
from .core.model_builder import prepare_pulp
from .core.results_processor import PlanResult, retrieve_results, print_ascii, print_csv
from .core.solver import PulpSolver, ERROR


class DebtPlan:
    """
    Encapsulates the repayment model setup, solving, and results processing.
    """
    def __init__(self, request, solver=None):
        """
        Initializes the DebtPlan object.

        Args:
            request: A validated PlanRequest.
            solver (Solver, optional): Anything with solve(prob) -> SolveResult.
                When omitted, each solve() builds a PulpSolver from its own arguments.
        """
        self.request = request
        self.solver = solver
        self.model = None
        self.results = None
        self.status = None

    def solve(self, timelimit=None, verbose=False, solver_name=None):
        """
        Builds a fresh model and solves it once.

        Args:
            timelimit (float, optional): Time limit for the solver in seconds.
            verbose (bool): Enable solver output.
            solver_name (str, optional): PuLP solver name, when no solver was given.
        """
        solver = self.solver
        if solver is None:
            kwargs = {'timelimit': timelimit, 'msg': verbose}
            if solver_name:
                kwargs['name'] = solver_name
            solver = PulpSolver(**kwargs)

        self.model = prepare_pulp(self.request)
        solved = solver.solve(self.model.prob)
        try:
            self.results = retrieve_results(self.model, solved)
        except SolverError as e:
            logging.info(f"Rejected solver output: {e}")
            self.results = PlanResult(ERROR, horizon=self.request.horizon, message=str(e))
        self.status = self.results.status
        logging.info(f"Plan status: {self.status}")
        return self.results

    def get_results(self):
        """
        Returns:
            PlanResult, or None if solve() hasn't been run.
        """
        if self.results is None:
            logging.info("Solver has not been run yet.")
        return self.results

    def print_results_ascii(self):
        """Prints the results in ASCII table format."""
        if self.results:
            print_ascii(self.results)
        else:
            print("No results available to print.")

    def print_results_csv(self):
        """Prints the results in CSV format."""
        if self.results:
            print_csv(self.results)
        else:
            print("No results available to print.")


def plan(request, solver=None, **solve_args):
    """Plans one request end to end and returns its PlanResult."""
    return DebtPlan(request, solver=solver).solve(**solve_args)
