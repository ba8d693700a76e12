"""LLM side of annotation: prompt building, the DashScope client, and
recovering code from free-form model replies."""
