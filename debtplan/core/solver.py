import logging
from dataclasses import dataclass, field

import pulp

OPTIMAL = 'optimal'
INFEASIBLE = 'infeasible'
UNBOUNDED = 'unbounded'
ERROR = 'error'

STATUS_MAP = {
    pulp.LpStatusOptimal: OPTIMAL,
    pulp.LpStatusInfeasible: INFEASIBLE,
    pulp.LpStatusUnbounded: UNBOUNDED,
    pulp.LpStatusNotSolved: ERROR,
    pulp.LpStatusUndefined: ERROR,
}

# PuLP's highspy back end; hands values back at full double precision
DEFAULT_SOLVER = 'HiGHS'


@dataclass
class SolveResult:
    status: str
    values: dict = field(default=None)  # variable name -> value, only when optimal
    message: str = None


class Solver:
    """
    Anything that can take a built pulp.LpProblem and report back.

    Implementations return a SolveResult and never raise for solver
    failures; those come back as status 'error'.
    """
    def solve(self, prob):
        raise NotImplementedError


class PulpSolver(Solver):
    """Runs one of PuLP's solver back ends, chosen by name."""

    def __init__(self, name=DEFAULT_SOLVER, timelimit=None, msg=False):
        self.name = name
        self.timelimit = float(timelimit) if timelimit else None
        self.msg = bool(msg)

    def _backend(self):
        options = {'msg': self.msg}
        if self.timelimit:
            options['timeLimit'] = self.timelimit
        return pulp.getSolver(self.name, **options)

    def solve(self, prob):
        logging.info(f"Starting {self.name} solver...")
        try:
            backend = self._backend()
            prob.solve(backend)
        except (pulp.PulpSolverError, OSError) as e:
            logging.info(f"Solver {self.name} failed to run: {e}")
            return SolveResult(ERROR, message=f"Solver {self.name} failed: {e}")

        status = STATUS_MAP.get(prob.status, ERROR)
        message = None
        if status == OPTIMAL and prob.sol_status == pulp.LpSolutionIntegerFeasible:
            # what a time limit leaves behind: feasible, optimality unproven
            status = ERROR
            message = "Solver stopped before proving optimality (time limit?)"
        elif status == ERROR:
            message = f"Solver returned status {pulp.LpStatus.get(prob.status, prob.status)}"

        logging.info(f"Final solver status: {pulp.LpStatus.get(prob.status, prob.status)} -> {status}")
        if status != OPTIMAL:
            return SolveResult(status, message=message)
        return SolveResult(status, values={v.name: v.varValue for v in prob.variables()})
