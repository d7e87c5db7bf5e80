"""LLM provider implementations; registered in guidance.clients.llm.registry."""
