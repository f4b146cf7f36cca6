"""survey_flow_server — FastAPI REST API for the form-flow SDK.

Exposes form authoring (sections, questions, answers, next-section links),
the publish switch, and submission validation over HTTP, backed by the
PostgreSQL repositories of ``survey_flow_db``.
"""
