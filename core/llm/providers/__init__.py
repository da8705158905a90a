from core.llm.providers import claude, dummy_provider, local, openai

__all__ = ["claude", "dummy_provider", "local", "openai"]
