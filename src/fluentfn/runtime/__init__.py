"""Runtime - execution of built pipelines.

Contains: middleware (context, composition, plugins), observability
(logging setup) and registry (in-memory host function table).
"""
