from flask import Flask, jsonify


def create_app(guard, metrics):
    """Flask application factory exposing health and a manual sync trigger."""
    app = Flask(__name__)

    # Store components on app for access in tests
    app.config["components"] = {
        "guard": guard,
        "metrics": metrics,
    }

    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "running": guard.running,
            "metrics": metrics.snapshot(),
        })

    @app.route("/api/sync", methods=["POST"])
    def trigger_sync():
        outcome = guard.tick()
        if outcome is None:
            return jsonify({"status": "skipped"}), 409
        return jsonify({"status": "completed", "outcome": outcome.value})

    return app
