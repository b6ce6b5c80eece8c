"""Streaming code generation: prompts, provider adapters, fallback and SSE transcoding."""
