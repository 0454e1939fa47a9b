from .codegen_agent import CodeGenerationAgent, CodeGenerationResult, extract_code
from .explore_agent import ExplorationAgent, ExplorationResult
from .tool_loop import AgentToolLoop, LoopStatus, ToolLoopResult

__all__ = [
    "AgentToolLoop",
    "LoopStatus",
    "ToolLoopResult",
    "ExplorationAgent",
    "ExplorationResult",
    "CodeGenerationAgent",
    "CodeGenerationResult",
    "extract_code",
]
