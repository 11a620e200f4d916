"""Flask application factory for the memsim JSON API.

The ``create_app`` function takes a configuration and returns a Flask
app with four endpoints:

- ``GET /``: render the landing page.
- ``GET /api/config``: return the active configuration.
- ``POST /api/partition``: replay a partition script.
- ``POST /api/paging``: simulate page replacement.

Every request builds its own states and traces, so requests share
nothing but the read-only configuration.
"""

from __future__ import annotations

import random
from typing import Any

from flask import Flask, Response, jsonify, render_template, request

from memsim.config import SimulatorConfig
from memsim.paging.generator import generate_addresses
from memsim.paging.simulator import fault_count, fault_rate, run
from memsim.partition.allocator import initialize
from memsim.scenario import (
    REFERENCE_SCRIPT,
    PartitionStep,
    StepKind,
    describe_partition_step,
    describe_simulation_step,
    replay,
)

_HTTP_BAD_REQUEST = 400


def _is_int(value: Any) -> bool:
    """Return True for JSON integers; booleans do not count."""
    return isinstance(value, int) and not isinstance(value, bool)


def _int_field(data: dict[str, Any], key: str, default: int) -> int:
    """Read an integer field from a JSON body.

    Raises:
        ValueError: If the field is present but not an integer.

    """
    value = data.get(key, default)
    if not _is_int(value):
        msg = f"'{key}' must be an integer, got {value!r}"
        raise ValueError(msg)  # noqa: TRY004
    return value


def _seed_field(data: dict[str, Any], default: int | None) -> int | None:
    """Read the generator seed from a JSON body.

    Raises:
        ValueError: If the seed is neither an integer nor null.

    """
    value = data.get("seed", default)
    if value is not None and not _is_int(value):
        msg = f"'seed' must be an integer or null, got {value!r}"
        raise ValueError(msg)  # noqa: TRY004
    return value


def _parse_steps(raw: Any) -> tuple[PartitionStep, ...]:
    """Build partition steps from a JSON list.

    Raises:
        ValueError: If the list or one of its entries is malformed.

    """
    if not isinstance(raw, list):
        msg = "'steps' must be a list"
        raise ValueError(msg)  # noqa: TRY004
    steps: list[PartitionStep] = []
    for entry in raw:
        if not isinstance(entry, dict) or "kind" not in entry or "job_id" not in entry:
            msg = f"Malformed step: {entry!r}"
            raise ValueError(msg)
        steps.append(
            PartitionStep(
                kind=StepKind(entry["kind"]),
                job_id=_int_field(entry, "job_id", 0),
                size=_int_field(entry, "size", 0) if entry.get("size") is not None else None,
            )
        )
    return tuple(steps)


def _parse_addresses(raw: Any) -> list[int]:
    """Build an address list from JSON.

    Raises:
        ValueError: If the value is not a list of integers.

    """
    if not isinstance(raw, list) or not all(_is_int(a) for a in raw):
        msg = "'addresses' must be a list of integers"
        raise ValueError(msg)
    return list(raw)


def _json_body() -> dict[str, Any]:
    """Return the request's JSON object (empty when no body was sent).

    Raises:
        ValueError: If the body is not a JSON object.

    """
    if not request.data:
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        msg = "Expected a JSON object body"
        raise ValueError(msg)  # noqa: TRY004
    return data


def create_app(config: SimulatorConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Scenario defaults; the reference scenario when None.

    Returns:
        A configured Flask application ready to serve.

    """
    settings = config if config is not None else SimulatorConfig()

    app = Flask(__name__)

    @app.errorhandler(ValueError)
    def bad_request(error: ValueError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Turn invalid input into a JSON 400 response."""
        return jsonify({"error": str(error)}), _HTTP_BAD_REQUEST

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the landing page."""
        return render_template("index.html", config=settings)

    @app.route("/api/config")
    def show_config() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the active configuration."""
        return jsonify(settings.as_dict())

    @app.route("/api/partition", methods=["POST"])
    def partition() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Replay a partition script and return every intermediate state.

        Accepts JSON body: ``{"algorithm": "ff", "total_size": 640,
        "steps": [{"kind": "allocate", "job_id": 1, "size": 130}]}``;
        every field is optional.

        """
        data = _json_body()
        algorithm = data.get("algorithm", settings.partition_algorithm)
        total_size = _int_field(data, "total_size", settings.total_memory)
        steps = _parse_steps(data["steps"]) if "steps" in data else REFERENCE_SCRIPT
        records = replay(steps, algorithm, total_size)
        return jsonify(
            {
                "algorithm": str(algorithm),
                "initial": initialize(total_size).as_dict(),
                "records": [
                    {
                        "step": str(record.step),
                        "outcome": str(record.outcome),
                        "narration": describe_partition_step(record),
                        "state": record.state.as_dict(),
                    }
                    for record in records
                ],
            }
        )

    @app.route("/api/paging", methods=["POST"])
    def paging() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Simulate page replacement and return the full trace.

        Accepts JSON body: ``{"algorithm": "lru", "frame_count": 4,
        "page_size": 10, "addresses": [...]}``; without ``addresses`` a
        sequence of ``length`` addresses is generated from ``seed``.

        """
        data = _json_body()
        algorithm = data.get("algorithm", settings.replacement_algorithm)
        frame_count = _int_field(data, "frame_count", settings.frame_count)
        page_size = _int_field(data, "page_size", settings.page_size)
        if "addresses" in data:
            addresses = _parse_addresses(data["addresses"])
        else:
            rng = random.Random(_seed_field(data, settings.seed))  # noqa: S311
            length = _int_field(data, "length", settings.sequence_length)
            addresses = generate_addresses(length, rng=rng)
        trace = run(addresses, frame_count, algorithm, page_size=page_size)
        return jsonify(
            {
                "algorithm": str(algorithm),
                "frame_count": frame_count,
                "page_size": page_size,
                "addresses": addresses,
                "trace": [
                    {**step.as_dict(), "narration": describe_simulation_step(step)}
                    for step in trace
                ],
                "fault_count": fault_count(trace),
                "fault_rate": fault_rate(trace),
            }
        )

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``memsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
