"""Business-logic layer: snapshot collectors, Prometheus history, and the alert rule engine.

Alerts engine services live in:
- alert_rules.py (threshold classifiers, pod transition detector, evaluation orchestrator)
- alert_state.py (prior-poll pod state retained between evaluations)
"""

# Import side-effects are intentionally avoided here; modules are imported by routers/services as needed.
