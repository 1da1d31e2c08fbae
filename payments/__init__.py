"""Django app wiring the chart engine to the upstream payments API."""
