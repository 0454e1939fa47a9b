from .llm_api import build_chat_model, invoke_structured

__all__ = ["build_chat_model", "invoke_structured"]
