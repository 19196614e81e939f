"""Flask application factory for the threadsim JSON API.

The ``create_app`` function binds one simulation engine to a Flask app.
Presentation layers poll the state endpoints and drive the clock with
``POST /api/tick`` — the engine never ticks on its own.

- ``GET /api/state`` — full engine snapshot.
- ``GET /api/statistics`` — utilization and timing averages.
- ``GET /api/events`` — the most recent events (``?limit=n``).
- ``POST /api/initialize`` — reconfigure (resets the engine).
- ``POST /api/tick`` — advance ``count`` ticks (default 1).
- ``POST /api/threads`` — add a thread.
- ``POST /api/semaphores`` / ``POST /api/monitors`` — add a primitive.
- ``POST /api/scenarios/<name>`` — load a canned scenario.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, Response, jsonify, request

from threadsim.config import ConfigError, SimulationConfig
from threadsim.engine import SimulationEngine
from threadsim.logging import DEFAULT_TAIL
from threadsim.process.instructions import InstructionError, compute, parse_program
from threadsim.scenarios import SCENARIOS, load_scenario

_HTTP_CREATED = 201
_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404
_DEFAULT_PROGRAM_LENGTH = 5
_MAX_TICKS_PER_REQUEST = 1000


def _error(message: str, status: int = _HTTP_BAD_REQUEST) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_name(value: object) -> bool:
    return value is None or isinstance(value, str)


def create_app(engine: SimulationEngine | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        engine: The engine to expose.  A default-configured one is
            created when omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    sim = engine if engine is not None else SimulationEngine()
    app = Flask(__name__)

    @app.route("/api/state")
    def state() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the engine snapshot."""
        return jsonify(sim.snapshot())

    @app.route("/api/statistics")
    def statistics() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the statistics block."""
        return jsonify(sim.statistics().to_dict())

    @app.route("/api/events")
    def events() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return the tail of the event log."""
        limit = request.args.get("limit", DEFAULT_TAIL, type=int)
        if limit is None or limit < 0:
            return _error("'limit' must be a non-negative integer")
        return jsonify([e.to_dict() for e in sim.event_log.tail(limit)])

    @app.route("/api/initialize", methods=["POST"])
    def initialize() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Reconfigure the engine from a JSON config body."""
        try:
            config = SimulationConfig.from_mapping(_json_body())
        except ConfigError as exc:
            return _error(str(exc))
        sim.initialize(config=config)
        return jsonify(sim.snapshot())

    @app.route("/api/tick", methods=["POST"])
    def tick() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Advance the clock and return the new snapshot."""
        ticks = _json_body().get("count", 1)
        if not _is_int(ticks) or not 1 <= ticks <= _MAX_TICKS_PER_REQUEST:
            return _error(f"'count' must be an integer between 1 and {_MAX_TICKS_PER_REQUEST}")
        for _ in range(ticks):
            sim.tick()
        return jsonify(sim.snapshot())

    @app.route("/api/threads", methods=["POST"])
    def add_thread() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Add a thread; without a program it gets five compute steps."""
        data = _json_body()
        name = data.get("name")
        if not _is_name(name):
            return _error("'name' must be a string")
        priority = data.get("priority", 5)
        if not _is_int(priority):
            return _error("'priority' must be an integer")
        records = data.get("instructions")
        try:
            if records is None:
                program = compute(_DEFAULT_PROGRAM_LENGTH)
            else:
                program = parse_program(records)
        except (InstructionError, TypeError) as exc:
            return _error(str(exc))
        thread = sim.add_thread(name, priority, program)
        return jsonify(thread.to_dict()), _HTTP_CREATED

    @app.route("/api/semaphores", methods=["POST"])
    def add_semaphore() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Register a semaphore (default name ``Sem<n>``, value 1)."""
        data = _json_body()
        name = data.get("name")
        if not _is_name(name):
            return _error("'name' must be a string")
        value = data.get("value", 1)
        if not _is_int(value):
            return _error("'value' must be an integer")
        try:
            sem = sim.add_semaphore(name or f"Sem{len(sim.semaphores) + 1}", value)
        except ConfigError as exc:
            return _error(str(exc))
        return jsonify(sem.to_dict()), _HTTP_CREATED

    @app.route("/api/monitors", methods=["POST"])
    def add_monitor() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Register a monitor (default name ``Mon<n>``)."""
        name = _json_body().get("name")
        if not _is_name(name):
            return _error("'name' must be a string")
        try:
            monitor = sim.add_monitor(name or f"Mon{len(sim.monitors) + 1}")
        except ConfigError as exc:
            return _error(str(exc))
        return jsonify(monitor.to_dict()), _HTTP_CREATED

    @app.route("/api/scenarios/<name>", methods=["POST"])
    def scenario(  # pyright: ignore[reportUnusedFunction]
        name: str,
    ) -> tuple[Response, int] | Response:
        """Load a canned scenario."""
        if name not in SCENARIOS:
            return _error(f"Unknown scenario: {name}", _HTTP_NOT_FOUND)
        load_scenario(sim, name)
        return jsonify(sim.snapshot())

    return app


def main() -> None:
    """Run the API development server.

    This is the ``threadsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
