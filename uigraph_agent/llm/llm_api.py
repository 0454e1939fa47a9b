import logging
from typing import Any, Dict, Type

from langchain_core.exceptions import OutputParserException
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import OpenAIError
from pydantic import BaseModel, ValidationError

from uigraph_agent.graph.errors import ExternalCallError

# Raised by the model client when the provider call itself fails.
MODEL_CALL_ERRORS = (OpenAIError,)


def build_chat_model(llm_config: Dict[str, Any]) -> ChatOpenAI:
    """Build the chat model once from a validated llm_config.

    The model is handed to the agents as a constructor dependency and
    reused for every call of a run.
    """
    if llm_config.get("api", "openai") != "openai":
        raise ValueError(f"Invalid API type '{llm_config.get('api')}'. Choose 'openai'.")
    api_key = llm_config.get("api_key")
    if not api_key:
        raise ValueError("API key is empty. Chat model not initialized.")

    llm = ChatOpenAI(
        model=llm_config.get("model", "gpt-4o-mini"),
        api_key=api_key,
        base_url=llm_config.get("base_url") or None,
        temperature=llm_config.get("temperature", 0.0),
    )
    logging.info(f"LLM configured: {llm_config.get('model')} at {llm_config.get('base_url')}")
    return llm


async def invoke_structured(chat_model, schema: Type[BaseModel], system_prompt: str, text: str) -> BaseModel:
    """Ask the model for a ``schema`` instance describing ``text``.

    Provider failures and unparsable replies are raised as ExternalCallError.
    """
    structured_llm = chat_model.with_structured_output(schema)
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=text)]
    try:
        result = await structured_llm.ainvoke(messages)
    except MODEL_CALL_ERRORS as e:
        raise ExternalCallError(f"Model call failed: {e}") from e
    except (OutputParserException, ValidationError) as e:
        raise ExternalCallError(f"Model returned an invalid {schema.__name__}: {e}") from e
    if isinstance(result, schema):
        return result
    try:
        return schema.model_validate(result)
    except ValidationError as e:
        raise ExternalCallError(f"Model returned an invalid {schema.__name__}: {e}") from e
