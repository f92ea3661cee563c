# app.py
import math

from flask import Flask, jsonify, request

from prioritizer.config import PrioritizerConfig
from prioritizer.controller import Prioritizer


def create_app(config: PrioritizerConfig | None = None) -> Flask:
    """
    Builds the API around a single Prioritizer. Catalog and ledger are loaded
    here, so a broken input fails at startup rather than on first request.
    """
    app = Flask(__name__)
    prioritizer = Prioritizer(config or PrioritizerConfig.from_env())

    # --- API ENDPOINTS ---

    @app.route('/api/status', methods=['GET'])
    def get_status():
        """Returns what the loaded catalog and pool look like."""
        return jsonify({"status": "Operational", **prioritizer.status()})

    @app.route('/api/prioritize', methods=['POST'])
    def prioritize():
        """
        Runs a selection.
        Expected JSON (optional): {"budget": 200}
        """
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"status": "error", "message": "Expected a JSON object"}), 400
        budget = data.get('budget')

        if budget is not None and not _valid_budget(budget):
            return jsonify({"status": "error", "message": "budget must be a non-negative number"}), 400

        report = prioritizer.prepare_selection(budget)
        return jsonify({"status": "Success", **report.to_dict()})

    return app


def _valid_budget(budget) -> bool:
    if isinstance(budget, bool) or not isinstance(budget, (int, float)):
        return False
    return math.isfinite(budget) and budget >= 0


# --- RUN THE APP ---
if __name__ == '__main__':
    create_app().run(debug=True, port=5000)
