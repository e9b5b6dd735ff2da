#!/usr/bin/env python3

import argparse
import logging
import sys

from debtplan.core.data_loader import load_config, check_timelimit
from debtplan.core.errors import ConfigurationError
from debtplan.debtplan import DebtPlan


def timelimit_seconds(text):
    try:
        return check_timelimit(float(text))
    except (ValueError, ConfigurationError) as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def main(argv=None):
    # Instantiate the parser
    parser = argparse.ArgumentParser(description="Debt repayment planning using Linear Programming (PuLP)")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Extra output from solver")
    parser.add_argument('--csv', action='store_true', help="Generate CSV outputs")
    parser.add_argument('--timelimit', type=timelimit_seconds,
                        help="Give up after the given seconds (reported as a solver error)")
    parser.add_argument('--solver',
                        help="PuLP solver name (default HiGHS; also HiGHS_CMD, PULP_CBC_CMD)")
    parser.add_argument('conffile', help="Configuration file in TOML format")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    # -- Load Configuration File --
    try:
        request, solver_options = load_config(args.conffile)
    except (ConfigurationError, OSError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # command line wins over the [solver] table
    debtplan = DebtPlan(request)
    debtplan.solve(
        timelimit=args.timelimit or solver_options.get('timelimit'),
        verbose=args.verbose or solver_options.get('msg', False),
        solver_name=args.solver or solver_options.get('name'),
    )

    # --- Process Results ---
    if debtplan.status == "optimal":
        if args.csv:
            debtplan.print_results_csv()
        else:
            debtplan.print_results_ascii()
        return 0

    print(f"Solver did not find an optimal solution (Status: {debtplan.status}).")
    if debtplan.results.message:
        print(debtplan.results.message)
    return 1


if __name__ == "__main__":
    sys.exit(main())
