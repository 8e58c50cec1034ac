"""Tests for showing and hiding every location of an object."""

import pytest

pytestmark = pytest.mark.integration


@pytest.fixture
def placed(facade, make_folder):
    folder = make_folder("Mirror")
    return facade.create_object(
        {
            "class_identifier": "article",
            "parent_node_id": 2,
            "attributes": {"title": "Twice"},
            "additional_parent_node_ids": [folder],
        }
    )


class TestUpdateVisibility:
    def test_hide_every_location(self, facade, site, placed):
        facade.update_visibility(placed, False)

        nodes = placed.assigned_nodes()
        assert len(nodes) == 2
        assert all(node.is_hidden and node.is_invisible for node in nodes)
        assert sorted((n.node_id, n.action) for n in site.state.search_notices) == sorted(
            (node.node_id, "hide") for node in nodes
        )

    def test_repeated_toggle_is_a_no_op(self, facade, host, site, placed, monkeypatch):
        facade.update_visibility(placed, False)
        calls = []
        monkeypatch.setattr(host.nodes, "hide_subtree", lambda node: calls.append(node))
        notices = len(site.state.search_notices)

        facade.update_visibility(placed, False)

        assert calls == []
        assert len(site.state.search_notices) == notices

    def test_show_after_hide(self, facade, site, placed):
        facade.update_visibility(placed, False)
        facade.update_visibility(placed)

        assert not any(node.is_hidden or node.is_invisible for node in placed.assigned_nodes())
        assert [n.action for n in site.state.search_notices] == ["hide", "hide", "show", "show"]

    def test_shown_object_is_left_alone(self, facade, site, placed):
        facade.update_visibility(placed, True)

        assert site.state.search_notices == []

    def test_hidden_parent_makes_children_invisible(self, facade, site, make_folder):
        folder = make_folder("Drawer")
        child = facade.create_object(
            {"class_identifier": "article", "parent_node_id": folder, "attributes": {"title": "Sock"}}
        )
        folder_object = site.fetch_object(site.state.nodes[folder].object_id)

        facade.update_visibility(folder_object, False)

        assert child.main_node.is_invisible
        assert not child.main_node.is_hidden

        facade.update_visibility(folder_object, True)

        assert not child.main_node.is_invisible
