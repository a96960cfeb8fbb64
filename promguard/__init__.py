"""
PromQL query guardrails.

Keep this file minimal. Import submodules directly:
    from promguard.guardrails import validate
And Uvicorn should use:
    uvicorn promguard.main:create_app --factory
"""
