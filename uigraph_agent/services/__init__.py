from .edge_service import EdgeService
from .label_service import LabelService
from .operation_session_service import OperationSessionService
from .page_service import PageService
from .project_service import ProjectService
from .scenario_service import FeatureService, ScenarioService
from .ui_state_service import UiStateService
from .ui_state_transition_service import UIStateTransitionService


class GraphServices:
    """One service per entity, all sharing a single GraphStore."""

    def __init__(self, store):
        self.store = store
        self.projects = ProjectService(store)
        self.pages = PageService(store)
        self.ui_states = UiStateService(store)
        self.edges = EdgeService(store)
        self.labels = LabelService(store)
        self.scenarios = ScenarioService(store)
        self.features = FeatureService(store, self.scenarios)
        self.sessions = OperationSessionService(store)
        self.transitions = UIStateTransitionService(store)


__all__ = [
    "GraphServices",
    "ProjectService",
    "PageService",
    "UiStateService",
    "EdgeService",
    "LabelService",
    "FeatureService",
    "ScenarioService",
    "OperationSessionService",
    "UIStateTransitionService",
]
