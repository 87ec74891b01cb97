from __future__ import annotations

from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from .evaluator import content_text
from .llm import require_chat


def build_messages(system_contract: str, prior_turns: List[Dict[str, str]], instruction: str) -> List[BaseMessage]:
    messages: List[BaseMessage] = [SystemMessage(content=system_contract)]
    for turn in prior_turns:
        content = turn.get("content", "")
        if turn.get("role") == "assistant":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    messages.append(HumanMessage(content=instruction))
    return messages


class LLMResponseGenerator:
    """Speaks for a persona: its tone contract is the system prompt, the transcript follows."""

    def __init__(self, chat: Optional[Any] = None, max_tokens: int = 1024, model: Optional[str] = None) -> None:
        self.llm = chat if chat is not None else require_chat(model=model, max_tokens=max_tokens)

    async def generate(self, system_contract: str, prior_turns: List[Dict[str, str]], instruction: str) -> str:
        result = await self.llm.ainvoke(build_messages(system_contract, prior_turns, instruction))
        return content_text(getattr(result, "content", None)).strip()
