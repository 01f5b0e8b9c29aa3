"""
API Package — FastAPI Routers • Models • JWT Utils • S3
=======================================================

Mission
-------
This package defines the backend's HTTP interface and its support stack:
FastAPI routing, JWT auth, request models, the AI proxy endpoints and S3
delivery of case files.

Contents
--------
- fast_api
    Application router:
      • Auth: register, login, logout, current user
      • Cases: create, list, snapshot, invite and join, context, activation
      • Conversation: messages and the five AI-assist actions
      • Agreement: finalize and sign
      • Files: upload and presigned listing

- functions
    Stateless AI proxy endpoints under `/functions/`:
      • summarize-situation, suggest-compromises, generate-agreement,
        rephrase-message, improve-agreement
    Each authenticates, rate-limits, validates and calls the LLM gateway.

- models
    Pydantic data contracts for request validation:
      • UserData, UserCredentials (auth)
      • CaseCreationDetails, InviteDetails, ContextDetails (case setup)
      • NewMessage, ImproveDraftDetails, FinalizeDetails, SignatureDetails

- utils
    JWT helpers and dependencies:
      • create_access_token(payload) / verify_token(token)
      • get_current_user — Bearer header or `token` cookie
      • get_case_store, get_rate_limiter, get_llm_gateway, get_orchestrator,
        get_storage_client — overridable collaborators

- aws_bucket_funcs
    S3 integration helpers (module: aws_bucket_funcs/funcs.py):
      • get_client() — Signature V4 S3 client from settings
      • case_file_key(case_id, file_name) — object key for an upload
      • upload(fileobj, key, s3_client, ...) — uploads with ContentType/Disposition
      • download(key, s3_client, expires) — presigned GET URL

Operational Notes
-----------------
- Errors are rendered as `{"error": message}`; successes of the proxy
  endpoints as `{"result": text}`.
- Never log message contents, prompts or secrets.
"""
