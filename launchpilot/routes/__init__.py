"""
Routes package for the reconciler backend.
Contains Flask Blueprints for different API namespaces.
"""

__all__ = [
    "register_blueprints",
]


def _print_route_map(app):
    """Print all registered /api/* routes at startup for debugging."""
    api_routes = []
    for rule in app.url_map.iter_rules():
        if rule.rule.startswith("/api"):
            methods = ",".join(sorted(m for m in rule.methods if m not in ("HEAD", "OPTIONS")))
            api_routes.append(f"  {methods:8s} {rule.rule}")

    api_routes.sort(key=lambda x: x.split()[-1])

    print("[ROUTES] Registered API endpoints:")
    for route in api_routes:
        print(route)
    print(f"[ROUTES] Total: {len(api_routes)} endpoints")


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    from launchpilot.routes.health import bp as health_bp
    from launchpilot.routes.jobs import bp as jobs_bp
    from launchpilot.routes.reconcile import bp as reconcile_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(reconcile_bp, url_prefix="/api")
    app.register_blueprint(jobs_bp, url_prefix="/api/jobs")

    _print_route_map(app)
