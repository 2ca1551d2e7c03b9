"""
Flask REST API for the stored procedure flow viewer
"""

import json
import logging
import os
import sys
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS

sys.path.insert(0, str(Path(__file__).parent))

from graph_builder import FlowGraphBuilder, summarize_graph
from mermaid_writer import MermaidWriter
from parsers.sql_flow_parser import SQLFlowParser

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

CONFIG_PATH = Path(__file__).parent.parent / "config.json"
_config: dict = {}

FLOW_ERROR_MESSAGE = "Could not generate flow for this procedure"


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

def load_config(config_path: Path = CONFIG_PATH) -> dict:
    global _config
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        _config = {k: v for k, v in data.items() if not str(k).startswith("_")}
    except (OSError, ValueError) as exc:
        logger.warning("could not load %s: %s", config_path, exc)
        _config = {}
    return _config


def get_setting(key: str, env_var: str, default=None):
    """Environment variables override config.json"""
    value = os.environ.get(env_var)
    if value is not None and value != "":
        return value
    return _config.get(key, default)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_flow_request():
    """
    Return (sql, sp_name, error_response).

    Body: {"sql": str, "spName": str}. An empty sql string is valid.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None, None, (jsonify({"error": "JSON body required"}), 400)

    sql = payload.get("sql")
    if not isinstance(sql, str):
        return None, None, (jsonify({"error": "sql parameter required"}), 400)

    sp_name = payload.get("spName")
    if sp_name is None:
        sp_name = ""
    if not isinstance(sp_name, str):
        return None, None, (jsonify({"error": "spName must be a string"}), 400)

    return sql, sp_name, None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.route("/api/health")
def api_health():
    return jsonify({"status": "ok"})


@app.route("/api/flow", methods=["POST"])
def api_flow():
    """
    Parse a procedure definition and return its steps and flow graph.

    Response: {spName, steps, nodes, edges, metadata}
    """
    sql, sp_name, error = _read_flow_request()
    if error:
        return error

    try:
        steps = SQLFlowParser().parse(sql)
        graph = FlowGraphBuilder().build_graph(steps, sp_name)
    except Exception:
        logger.exception("flow generation failed for %r", sp_name)
        return jsonify({"error": FLOW_ERROR_MESSAGE}), 500

    return jsonify({
        "spName": sp_name,
        "steps": steps,
        "nodes": graph["nodes"],
        "edges": graph["edges"],
        "metadata": summarize_graph(graph),
    })


@app.route("/api/flow/mermaid", methods=["POST"])
def api_flow_mermaid():
    """Return the flow of a procedure as Mermaid diagram text."""
    sql, sp_name, error = _read_flow_request()
    if error:
        return error

    try:
        steps = SQLFlowParser().parse(sql)
        diagram = MermaidWriter().render(steps, sp_name)
    except Exception:
        logger.exception("mermaid generation failed for %r", sp_name)
        return jsonify({"error": FLOW_ERROR_MESSAGE}), 500

    return jsonify({"spName": sp_name, "mermaid": diagram})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    load_config()
    app.run(
        debug=str(get_setting("debug", "SP_FLOW_DEBUG", False)).lower() in ("1", "true", "yes"),
        port=int(get_setting("port", "SP_FLOW_PORT", 5000)),
        host=get_setting("host", "SP_FLOW_HOST", "0.0.0.0"),
        use_reloader=False,
    )
