"""Tests for the graph services: pages, UI states, edges, labels and projects."""

import pytest

from uigraph_agent.data import (
    CreateEdgeInput,
    CreateFeatureInput,
    CreateLabelInput,
    CreateScenarioInput,
    CreateUiStateInput,
    UpdateEdgeInput,
    UpdateProjectInput,
    UpdateUiStateInput,
)
from uigraph_agent.graph import BadRequestError, NotFoundError
from uigraph_agent.graph.errors import UniqueViolation

LOGIN_URL = "https://example.com/login"
DASHBOARD_URL = "https://example.com/dashboard"


def make_state(services, project_id, page_url, title, is_default=False):
    services.pages.save_page(project_id, page_url)
    return services.ui_states.create(
        CreateUiStateInput(
            project_id=project_id, page_url=page_url, title=title, description=f"{title} state", is_default=is_default
        )
    )


class TestPages:
    def test_save_same_url_twice_keeps_one_row(self, services, project):
        first = services.pages.save_page(project.id, LOGIN_URL, "Login")
        second = services.pages.save_page(project.id, LOGIN_URL)

        assert second.id == first.id
        assert second.title == "Login"
        assert len(services.pages.find_by_project(project.id)) == 1

    def test_respecified_title_is_updated(self, services, project):
        first = services.pages.save_page(project.id, LOGIN_URL, "Login")
        second = services.pages.upsert_page(project.id, LOGIN_URL, "Sign in")

        assert second.id == first.id
        assert second.title == "Sign in"
        assert services.pages.find_one_by_url(project.id, LOGIN_URL).title == "Sign in"

    def test_default_title(self, services, project):
        assert services.pages.save_page(project.id, LOGIN_URL).title == "Home"

    def test_same_url_in_two_projects(self, services, project, other_project):
        services.pages.save_page(project.id, LOGIN_URL)
        services.pages.save_page(other_project.id, LOGIN_URL)

        assert len(services.pages.find_by_project(project.id)) == 1
        assert len(services.pages.find_by_project(other_project.id)) == 1

    def test_unknown_project(self, services):
        with pytest.raises(NotFoundError):
            services.pages.save_page("missing", LOGIN_URL)


class TestUiStates:
    def test_second_default_is_rejected(self, services, project):
        first = make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)

        with pytest.raises(BadRequestError):
            make_state(services, project.id, LOGIN_URL, "LoginFormAlt", is_default=True)

        default = services.ui_states.get_default_ui_state(project.id, LOGIN_URL)
        assert default.id == first.id
        assert default.title == "LoginForm"
        assert len(services.ui_states.find_by_page(project.id, LOGIN_URL)) == 1

    def test_non_default_states_share_a_page(self, services, project):
        default = make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)
        error = make_state(services, project.id, LOGIN_URL, "LoginError")

        assert default.page_id == error.page_id
        assert len(services.ui_states.find_by_page(project.id, LOGIN_URL)) == 2

    def test_page_must_exist(self, services, project):
        with pytest.raises(NotFoundError):
            services.ui_states.create(
                CreateUiStateInput(project_id=project.id, page_url=LOGIN_URL, title="LoginForm", description="form")
            )

    def test_project_must_exist(self, services):
        with pytest.raises(NotFoundError) as exc_info:
            services.ui_states.create(
                CreateUiStateInput(project_id="missing", page_url=LOGIN_URL, title="LoginForm", description="form")
            )
        assert "missing" in str(exc_info.value)

    def test_update_cannot_steal_default(self, services, project):
        make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)
        other = make_state(services, project.id, LOGIN_URL, "LoginError")

        with pytest.raises(BadRequestError):
            services.ui_states.update(other.id, UpdateUiStateInput(is_default=True))

    def test_update_moves_state_to_another_page(self, services, project):
        state = make_state(services, project.id, LOGIN_URL, "LoginForm")
        dashboard = services.pages.save_page(project.id, DASHBOARD_URL)

        updated = services.ui_states.update(state.id, UpdateUiStateInput(page_url=DASHBOARD_URL, title="Moved"))

        assert updated.page_id == dashboard.id
        assert updated.page_url == DASHBOARD_URL
        assert updated.title == "Moved"

    def test_moving_a_default_onto_a_page_with_a_default_is_rejected(self, services, project):
        login_default = make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)
        dashboard_default = make_state(services, project.id, DASHBOARD_URL, "Dashboard", is_default=True)

        with pytest.raises(BadRequestError):
            services.ui_states.update(dashboard_default.id, UpdateUiStateInput(page_url=LOGIN_URL))

        assert services.ui_states.find_one(dashboard_default.id).page_url == DASHBOARD_URL
        assert services.ui_states.get_default_ui_state(project.id, LOGIN_URL).id == login_default.id

    def test_default_may_be_reasserted(self, services, project):
        state = make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)

        updated = services.ui_states.update(state.id, UpdateUiStateInput(is_default=True, title="Login form"))

        assert updated.is_default
        assert updated.title == "Login form"

    def test_racing_default_is_rejected_by_the_store(self, services, project, monkeypatch):
        make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)
        # the service check misses the other writer's default row
        monkeypatch.setattr(services.ui_states, "get_default_ui_state", lambda project_id, page_url: None)

        with pytest.raises(BadRequestError):
            make_state(services, project.id, LOGIN_URL, "LoginError", is_default=True)
        assert len(services.ui_states.find_by_page(project.id, LOGIN_URL)) == 1

    def test_find_one_and_remove(self, services, project):
        state = make_state(services, project.id, LOGIN_URL, "LoginForm")
        assert services.ui_states.find_one(state.id).title == "LoginForm"

        services.ui_states.remove(state.id)

        with pytest.raises(NotFoundError):
            services.ui_states.find_one(state.id)
        with pytest.raises(NotFoundError):
            services.ui_states.remove(state.id)


class TestEdges:
    def test_cross_project_edge_is_rejected(self, services, project, other_project):
        here = make_state(services, project.id, LOGIN_URL, "LoginForm")
        there = make_state(services, other_project.id, LOGIN_URL, "Elsewhere")

        with pytest.raises(BadRequestError):
            services.edges.create(
                CreateEdgeInput(
                    project_id=project.id, from_ui_state_id=here.id, to_ui_state_id=there.id, description="jump"
                )
            )
        assert services.edges.find_by_project(project.id) == []
        assert services.edges.find_by_project(other_project.id) == []

    def test_duplicate_edge_is_rejected(self, services, project):
        login = make_state(services, project.id, LOGIN_URL, "LoginForm")
        dashboard = make_state(services, project.id, DASHBOARD_URL, "Dashboard")
        data = CreateEdgeInput(
            project_id=project.id, from_ui_state_id=login.id, to_ui_state_id=dashboard.id, description="submit"
        )
        original = services.edges.create(data)

        with pytest.raises(BadRequestError):
            services.edges.create(data.model_copy(update={"description": "other"}))

        edges = services.edges.find_by_project(project.id)
        assert len(edges) == 1
        assert edges[0].id == original.id
        assert edges[0].description == "submit"

    def test_missing_endpoint(self, services, project):
        login = make_state(services, project.id, LOGIN_URL, "LoginForm")
        with pytest.raises(NotFoundError):
            services.edges.create(
                CreateEdgeInput(
                    project_id=project.id, from_ui_state_id=login.id, to_ui_state_id="missing", description="x"
                )
            )

    def test_edges_by_ui_state_partition(self, services, project):
        a = make_state(services, project.id, LOGIN_URL, "A")
        b = make_state(services, project.id, DASHBOARD_URL, "B")
        a_to_b = services.edges.create(
            CreateEdgeInput(project_id=project.id, from_ui_state_id=a.id, to_ui_state_id=b.id, description="a-b")
        )
        b_to_a = services.edges.create(
            CreateEdgeInput(project_id=project.id, from_ui_state_id=b.id, to_ui_state_id=a.id, description="b-a")
        )
        loop = services.edges.create(
            CreateEdgeInput(project_id=project.id, from_ui_state_id=a.id, to_ui_state_id=a.id, description="reload")
        )

        edges = services.edges.find_edges_by_ui_state(a.id)
        outgoing = {e.id for e in edges["outgoing"]}
        incoming = {e.id for e in edges["incoming"]}

        assert outgoing == {a_to_b.id, loop.id}
        assert incoming == {b_to_a.id, loop.id}

    def test_update_revalidates_endpoints(self, services, project, other_project):
        a = make_state(services, project.id, LOGIN_URL, "A")
        b = make_state(services, project.id, DASHBOARD_URL, "B")
        foreign = make_state(services, other_project.id, LOGIN_URL, "Foreign")
        edge = services.edges.create(
            CreateEdgeInput(project_id=project.id, from_ui_state_id=a.id, to_ui_state_id=b.id, description="a-b")
        )

        with pytest.raises(BadRequestError):
            services.edges.update(edge.id, UpdateEdgeInput(to_ui_state_id=foreign.id))

        updated = services.edges.update(edge.id, UpdateEdgeInput(description="click next", trigger_type="click"))
        assert updated.description == "click next"
        assert updated.trigger_type == "click"
        assert updated.to_ui_state_id == b.id


class TestLoginScenario:
    def test_login_to_dashboard(self, services, project):
        services.pages.save_page(project.id, "/login")
        login_form = services.ui_states.create(
            CreateUiStateInput(
                project_id=project.id, page_url="/login", title="LoginForm", description="form", is_default=True
            )
        )
        with pytest.raises(BadRequestError):
            services.ui_states.create(
                CreateUiStateInput(
                    project_id=project.id, page_url="/login", title="LoginFormAlt", description="alt", is_default=True
                )
            )

        services.pages.save_page(project.id, "/dashboard")
        dashboard = services.ui_states.create(
            CreateUiStateInput(project_id=project.id, page_url="/dashboard", title="Dashboard", description="home")
        )
        edge_input = CreateEdgeInput(
            project_id=project.id,
            from_ui_state_id=login_form.id,
            to_ui_state_id=dashboard.id,
            description="submit credentials",
        )
        edge = services.edges.create(edge_input)
        assert edge.description == "submit credentials"

        with pytest.raises(BadRequestError):
            services.edges.create(edge_input)
        assert len(services.edges.find_by_project(project.id)) == 1


class TestLabels:
    def test_trigger_actions_round_trip(self, services, project):
        state = make_state(services, project.id, LOGIN_URL, "LoginForm")
        actions = [{"type": "click", "selector": "#submit", "timestamp": "2024-01-01T00:00:00Z"}]

        saved = services.labels.save_label(
            CreateLabelInput(
                project_id=project.id,
                name="Submit",
                selector="#submit",
                url=LOGIN_URL,
                ui_state_id=state.id,
                trigger_actions=actions,
            )
        )

        assert saved.trigger_actions == actions
        assert services.labels.get_labels_by_ui_state(state.id)[0].trigger_actions == actions

    def test_corrupt_trigger_actions_read_back_empty(self, services, store, project):
        label = services.labels.save_label(
            CreateLabelInput(project_id=project.id, name="Submit", selector="#submit", url=LOGIN_URL)
        )
        store.update("labels", label.id, {"trigger_actions": "{not json"})

        labels = services.labels.get_labels_by_project(project.id)

        assert len(labels) == 1
        assert labels[0].trigger_actions == []

    @pytest.mark.parametrize("payload", ['["click #x"]', "[null]", '{"type": "click"}', '"click"'])
    def test_trigger_actions_of_the_wrong_shape_read_back_empty(self, services, store, project, payload):
        label = services.labels.save_label(
            CreateLabelInput(project_id=project.id, name="Submit", selector="#submit", url=LOGIN_URL)
        )
        store.update("labels", label.id, {"trigger_actions": payload})

        assert services.labels.get_labels_by_project(project.id)[0].trigger_actions == []
        assert services.labels.get_labels_by_url(LOGIN_URL, project.id)[0].trigger_actions == []

    def test_labels_by_url_ignore_query(self, services, project):
        services.labels.save_label(
            CreateLabelInput(project_id=project.id, name="Email", selector="#email", url=LOGIN_URL)
        )

        labels = services.labels.get_labels_by_url(f"{LOGIN_URL}?next=/dashboard", project.id)

        assert [label.name for label in labels] == ["Email"]

    def test_unknown_ui_state(self, services, project):
        with pytest.raises(NotFoundError):
            services.labels.save_label(
                CreateLabelInput(
                    project_id=project.id, name="Email", selector="#email", url=LOGIN_URL, ui_state_id="missing"
                )
            )

    def test_labels_of_unknown_project(self, services):
        with pytest.raises(NotFoundError):
            services.labels.get_labels_by_project("missing")


class TestProjectsAndScenarios:
    def test_project_crud(self, services, project):
        assert services.projects.exists(project.id)
        updated = services.projects.update(project.id, UpdateProjectInput(name="renamed"))
        assert updated.name == "renamed"
        assert updated.url == project.url

        with pytest.raises(NotFoundError) as exc_info:
            services.projects.find_one("missing")
        assert str(exc_info.value) == "Project with ID missing not found"

    def test_removing_project_cascades(self, services, store, project):
        make_state(services, project.id, LOGIN_URL, "LoginForm")

        services.projects.remove(project.id)

        assert store.count("pages") == 0
        assert store.count("ui_states") == 0
        with pytest.raises(NotFoundError):
            services.projects.remove(project.id)

    def test_scenario_resolves_to_project(self, services, project):
        feature = services.features.create(CreateFeatureInput(project_id=project.id, name="Login"))
        saved = services.scenarios.save_scenarios(
            feature.id,
            [CreateScenarioInput(title="Valid login", given="a user", when="they sign in", then="they see the dashboard")],
        )

        scenario = services.scenarios.get_scenario(saved[0].id)
        assert scenario.feature_id == feature.id
        assert scenario.then == "they see the dashboard"
        assert services.scenarios.resolve_project_id(scenario) == project.id
        assert [s.id for s in services.scenarios.get_scenarios_by_feature(feature.id)] == [scenario.id]

    def test_scenario_without_feature(self, services):
        scenario = services.scenarios.save_scenario(CreateScenarioInput(title="Loose", given="g", when="w", then="t"))
        assert services.scenarios.resolve_project_id(scenario) is None

    def test_scenario_with_unknown_feature(self, services):
        with pytest.raises(NotFoundError):
            services.scenarios.save_scenario(
                CreateScenarioInput(title="Loose", given="g", when="w", then="t", feature_id="missing")
            )


class TestStoreIndexes:
    """Uniqueness holds at the store even for writes that skip the services."""

    def test_second_default_row(self, services, store, project):
        state = make_state(services, project.id, LOGIN_URL, "LoginForm", is_default=True)
        row = store.find_by_id("ui_states", state.id)

        with pytest.raises(UniqueViolation):
            store.insert("ui_states", dict(row, id="second-default", title="LoginError"))

        store.insert("ui_states", dict(row, id="non-default", title="LoginError", is_default=0))
        assert len(services.ui_states.find_by_page(project.id, LOGIN_URL)) == 2

    def test_duplicate_edge_row(self, services, store, project):
        login = make_state(services, project.id, LOGIN_URL, "LoginForm")
        dashboard = make_state(services, project.id, DASHBOARD_URL, "Dashboard")
        edge = services.edges.create(
            CreateEdgeInput(
                project_id=project.id, from_ui_state_id=login.id, to_ui_state_id=dashboard.id, description="submit"
            )
        )
        row = store.find_by_id("edges", edge.id)

        with pytest.raises(UniqueViolation):
            store.insert("edges", dict(row, id="duplicate", description="again"))
        assert len(services.edges.find_by_project(project.id)) == 1

    def test_duplicate_page_row(self, services, store, project):
        page = services.pages.save_page(project.id, LOGIN_URL, "Login")
        row = store.find_by_id("pages", page.id)

        with pytest.raises(UniqueViolation):
            store.insert("pages", dict(row, id="duplicate"))
