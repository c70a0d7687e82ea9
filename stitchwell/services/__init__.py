"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
Contains the workflow table, the assignment engine, roster management and
notification dispatch. Services call repositories for DB operations and are
constructed per request by the API dependencies (no module singletons).
"""
