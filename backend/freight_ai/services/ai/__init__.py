"""
AI orchestration core.

Turns logistics queries into model calls and model output into typed results:

- llm_client: provider REST client
- slicing: scope slices for broad queries
- prompts: per-domain prompt templates
- executor: single call with bounded retry on rate limits
- normalizer: JSON extraction and schema validation
- orchestration: scope fan-out, merge and dedupe
- verification: maps-grounded check of one item

Nothing here renders, exports or stores results.
"""
