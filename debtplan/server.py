import os
from flask import Flask, request, jsonify
from flask_cors import CORS
import traceback
import logging

from debtplan.core.data_loader import load_config
from debtplan.core.errors import ConfigurationError
from debtplan.debtplan import DebtPlan

logging.basicConfig(level=logging.INFO)

app = Flask(__name__)

# --- CORS Configuration ---
FLASK_ENV = os.environ.get('FLASK_ENV', 'production')

if FLASK_ENV == 'development':
    allowed_origins_str = os.environ.get('DEV_CORS_ORIGINS', "http://localhost:*,http://127.0.0.1:*")
    logging.info(f"Development CORS origins: {allowed_origins_str}")
else:
    # Production only talks to origins it has been told about
    allowed_origins_str = os.environ.get('PROD_CORS_ORIGINS', "")
    if allowed_origins_str:
        logging.info(f"Production CORS origins: {allowed_origins_str}")
    else:
        logging.info("PROD_CORS_ORIGINS environment variable is not set! No cross-origin access.")

allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',') if origin.strip()]

CORS(app,
     origins=allowed_origins,
     methods=["POST", "OPTIONS"],
     allow_headers=["Content-Type", "Authorization"],
     expose_headers=["Content-Length"])


@app.route('/calculate', methods=['POST'])
def calculate_plan():
    """
    Calculates the repayment plan for the JSON plan in the request body.

    Every solver status comes back as 200 with the status in the body;
    bad input is a 400.
    """
    if not request.is_json:
        return jsonify({"error": "Request must be JSON"}), 400

    config_data = request.get_json(silent=True)
    if not isinstance(config_data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        plan_request, solver_options = load_config(config_data)
    except ConfigurationError as e:
        return jsonify({"error": f"Invalid plan: {e}"}), 400

    try:
        debtplan = DebtPlan(plan_request)
        results = debtplan.solve(timelimit=solver_options.get('timelimit'),
                                 solver_name=solver_options.get('name'))
        return jsonify(results.to_dict())
    except Exception as e:
        traceback.print_exc() # Print detailed error to server console
        return jsonify({"error": f"Calculation failed: {str(e)}"}), 500


def main():
    """Entry point for running the Flask server."""
    if not os.environ.get('FLASK_ENV'):
        os.environ['FLASK_ENV'] = 'development'
        logging.info("FLASK_ENV not set, defaulting to 'development' for local run.")

    app.run(debug=(os.environ.get('FLASK_ENV') == 'development'),
            host='0.0.0.0',
            port=int(os.environ.get("PORT", 5001)))


if __name__ == '__main__':
    main()
