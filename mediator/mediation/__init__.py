"""
Mediation core: prompt assembly, per-user rate limiting, the LLM gateway,
the in-memory case mirror and the orchestrator that ties them together.
"""
