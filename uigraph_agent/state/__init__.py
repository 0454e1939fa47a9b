from .schemas import CodeGenerationState, ToolLoopState

__all__ = ["ToolLoopState", "CodeGenerationState"]
