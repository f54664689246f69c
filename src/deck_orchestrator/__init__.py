"""
Generation-request orchestrator for AI-generated presentations.

Accepts requests to call an external LLM provider, protects the provider
from overload, tolerates its transient failures, and turns its free-form
text output into a validated presentation document:
- Response cache keyed by a lossy request fingerprint
- Single-flight request queue with pacing and rate-limit backoff
- Generation client with timeout, transport retry and usage metering
- Tiered JSON repair pipeline and structural document validation

Architecture: FastAPI surface + in-process queue + Anthropic Messages API
"""

__version__ = "0.1.0"
