from .graph_structures import (
    DOMSnapshot,
    Edge,
    Feature,
    Label,
    OperationSession,
    Page,
    Project,
    Scenario,
    SessionStatus,
    TriggerAction,
    UiState,
    UIStateTransition,
    UIStateTransitionDetail,
)
from .extraction import (
    ExtractedFeature,
    ExtractedLabel,
    ExtractedScenario,
    FeatureList,
    LabelList,
    ScenarioList,
)
from .requests import (
    CreateEdgeInput,
    CreateFeatureInput,
    CreateLabelInput,
    CreateOperationSessionInput,
    CreateProjectInput,
    CreateScenarioInput,
    CreateUiStateInput,
    CreateUIStateTransitionInput,
    UpdateEdgeInput,
    UpdateOperationSessionInput,
    UpdateProjectInput,
    UpdateUiStateInput,
)

__all__ = [
    "Project",
    "Page",
    "UiState",
    "Edge",
    "Label",
    "Feature",
    "Scenario",
    "OperationSession",
    "SessionStatus",
    "TriggerAction",
    "DOMSnapshot",
    "UIStateTransition",
    "UIStateTransitionDetail",
    "CreateProjectInput",
    "UpdateProjectInput",
    "CreateUiStateInput",
    "UpdateUiStateInput",
    "CreateEdgeInput",
    "UpdateEdgeInput",
    "CreateLabelInput",
    "CreateFeatureInput",
    "CreateScenarioInput",
    "CreateOperationSessionInput",
    "UpdateOperationSessionInput",
    "CreateUIStateTransitionInput",
    "ExtractedFeature",
    "FeatureList",
    "ExtractedScenario",
    "ScenarioList",
    "ExtractedLabel",
    "LabelList",
]
