import logging
import math
try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from debtplan.core.errors import ConfigurationError
from debtplan.core.lenders import PlanRequest

SOLVER_KEYS = {'name', 'timelimit', 'msg'}


def check_timelimit(timelimit):
    """Returns timelimit as seconds, or raises if it is not a positive finite number."""
    if isinstance(timelimit, bool) or not isinstance(timelimit, (int, float)) \
            or not math.isfinite(timelimit) or timelimit <= 0:
        raise ConfigurationError(f"solver timelimit must be a positive number, got {timelimit!r}")
    return float(timelimit)


def load_config(config_source):
    """
    Loads a plan either from a TOML file path or from a dictionary.

    Args:
        config_source: Either a string representing the file path
                       or a dictionary containing the configuration.

    Returns:
        tuple: (PlanRequest, solver options dict)
    """
    if isinstance(config_source, str):
        logging.info(f"Loading configuration from file: {config_source}")
        try:
            with open(config_source, 'rb') as conffile:
                d = tomllib.load(conffile)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Bad TOML in {config_source}: {e}") from e
    elif isinstance(config_source, dict):
        logging.info("Loading configuration from dictionary.")
        d = config_source
    else:
        raise TypeError("config_source must be a file path (str) or a dictionary (dict)")

    request = PlanRequest.from_dict(d)

    solver_options = d.get('solver', {})
    if not isinstance(solver_options, dict):
        raise ConfigurationError("[solver] must be a table")
    unknown = set(solver_options) - SOLVER_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown solver option(s): {', '.join(sorted(unknown))}")
    if solver_options.get('timelimit') is not None:
        check_timelimit(solver_options['timelimit'])

    logging.debug(f"Plan: {len(request.lenders)} lender(s), net_income={request.net_income}, "
                  f"minimum_savings={request.minimum_savings}")
    return request, dict(solver_options)
