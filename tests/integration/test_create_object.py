"""Scenario tests for PowerContent.create_object against the in-memory host."""

import pytest
from pydantic import ValidationError

from powercontent.models import CreateObjectParams
from powercontent.types import RelationKind, VersionStatus

pytestmark = pytest.mark.integration


class TestCreateObject:
    """Test object creation, placement and publishing."""

    def test_create_returns_published_object(self, facade, site, sink):
        """The scenario article is created, named and placed under node 2."""
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Hello"},
                "remote_id": "art-1",
            }
        )

        assert obj is not None
        assert obj.name == "Hello"
        assert obj.remote_id == "art-1"
        assert obj.main_node.parent_node_id == 2
        assert obj.version(obj.current_version).status == VersionStatus.PUBLISHED
        assert sink.errors == []
        assert ('[Created] "Hello" (Node ID: %d)' % obj.main_node_id, ("green",)) in sink.messages

    def test_duplicate_remote_id_is_rejected(self, facade, site, sink):
        """A second create with the same remote ID fails and creates nothing."""
        params = {
            "class_identifier": "article",
            "parent_node_id": 2,
            "attributes": {"title": "Hello"},
            "remote_id": "art-1",
        }
        first = facade.create_object(params)
        objects_before = len(site.state.objects)
        nodes_before = len(site.state.nodes)

        second = facade.create_object(dict(params, attributes={"title": "Other"}))

        assert first is not None
        assert second is None
        assert len(site.state.objects) == objects_before
        assert len(site.state.nodes) == nodes_before
        assert not site.in_transaction
        assert sink.errors == [
            'Object "Hello" (class: Article) with remote ID art-1 already exists.'
        ]

    def test_unknown_class_fails(self, facade, site, sink):
        objects_before = len(site.state.objects)

        assert facade.create_object({"class_identifier": "nope", "parent_node_id": 2}) is None
        assert len(site.state.objects) == objects_before
        assert sink.errors == ["Can't fetch class by identifier: nope"]
        assert not site.in_transaction

    def test_unknown_parent_node_fails(self, facade, site, sink):
        objects_before = len(site.state.objects)

        assert facade.create_object({"class_identifier": "article", "parent_node_id": 999}) is None
        assert len(site.state.objects) == objects_before
        assert sink.errors == ["Can't fetch parent node by ID: 999"]

    def test_class_and_parent_objects_can_be_passed_directly(self, facade, host):
        article = host.classes.fetch_by_identifier("article")
        home = host.nodes.fetch(2)

        obj = facade.create_object(
            CreateObjectParams(content_class=article, parent_node=home, attributes={"title": "Direct"})
        )

        assert obj is not None
        assert obj.class_identifier == "article"
        assert obj.main_node.parent_node_id == 2

    def test_additional_parents_get_one_assignment_each(self, facade, host, sink, make_folder):
        """Each extra parent yields one non-main assignment; the main parent is skipped."""
        folder_a = make_folder("A")
        folder_b = make_folder("B")
        folder_c = make_folder("C")

        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": folder_a,
                "attributes": {"title": "Everywhere"},
                "additional_parent_node_ids": [folder_b, folder_a, folder_c, 999, folder_b],
            }
        )

        assert obj.main_node.parent_node_id == folder_a
        additional = host.assignments.fetch_for_object(obj.id, obj.current_version, is_main=False)
        assert sorted(a.parent_node_id for a in additional) == sorted([folder_b, folder_c])
        assert all(a.node is not None and not a.is_main for a in additional)
        assert "Can't fetch additional parent node by ID: 999" in sink.errors

    def test_defaults_come_from_host_and_parent(self, facade, site):
        obj = facade.create_object(
            {"class_identifier": "article", "parent_node_id": 2, "attributes": {"title": "x"}}
        )

        assert obj.owner_id == site.state.current_user_id
        assert obj.section_id == site.state.objects[2].section_id
        assert obj.published > 0
        assert obj.published == obj.modified

    def test_explicit_metadata_is_stored(self, facade):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Dated"},
                "owner_id": 42,
                "section_id": 3,
                "publish_date": 1271030400,
                "language_locale": "nor-NO",
            }
        )

        assert obj.owner_id == 42
        assert obj.section_id == 3
        assert obj.published == 1271030400
        assert obj.modified == 1271030400
        assert obj.record.versions[0].language == "nor-NO"

    def test_unknown_attribute_identifiers_are_ignored(self, facade):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Known", "rating": "5"},
            }
        )

        assert obj is not None
        assert "rating" not in obj.record.attributes

    def test_hidden_objects_are_hidden_after_publish(self, facade, site):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Secret"},
                "visibility": False,
            }
        )

        assert obj.main_node.is_hidden
        assert obj.main_node.is_invisible
        assert [(n.node_id, n.action) for n in site.state.search_notices] == [
            (obj.main_node_id, "hide")
        ]

    def test_rich_text_relations_are_committed(self, facade, host):
        target = facade.create_object(
            {"class_identifier": "article", "parent_node_id": 2, "attributes": {"title": "Target"}}
        )

        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {
                    "title": "Linking",
                    "intro": f'<p>See <a href="ezobject://{target.id}">this</a></p>'
                    f'<embed href="ezobject://{target.id}" view="embed" />',
                },
            }
        )

        relations = {(r.to_object_id, r.kind) for r in obj.relations}
        assert relations == {(target.id, RelationKind.LINK), (target.id, RelationKind.EMBED)}
        assert obj.pending_relations == []
        stored = obj.data_map()["intro"].data_text
        assert f'<link object_id="{target.id}">this</link>' in stored
        assert f'<embed object_id="{target.id}"' in stored

    def test_preformatted_and_quoted_text_is_stored_in_paragraphs(self, facade):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Blocks", "intro": "<pre>code</pre><blockquote>q</blockquote>"},
            }
        )

        stored = obj.data_map()["intro"].data_text
        assert stored.endswith(
            "<section><paragraph><literal>code</literal></paragraph>"
            '<paragraph><custom name="quote"><paragraph>q</paragraph></custom></paragraph></section>'
        )

    def test_null_optional_parameters_use_defaults(self, facade, host, site):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": None,
                "additional_parent_node_ids": None,
                "visibility": None,
                "version_status": None,
                "owner_id": None,
            }
        )

        assert obj is not None
        assert obj.owner_id == 14
        assert host.assignments.fetch_for_object(obj.id, is_main=False) == []
        assert not obj.main_node.is_hidden
        assert site.state.search_notices == []

    def test_image_attribute_is_ingested_from_local_file(self, facade, image_file, config):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "Pictured", "image": f"{image_file}|A cat"},
            }
        )

        image = obj.record.attributes["image"].image
        assert image is not None
        assert image.alternative_text == "A cat"
        assert image.filesize == image_file.stat().st_size
        assert image.original_filename.endswith(".png")
        assert list(config.cache_dir.iterdir()) == []

    def test_unreachable_image_leaves_attribute_unset(self, facade, temp_dir):
        obj = facade.create_object(
            {
                "class_identifier": "article",
                "parent_node_id": 2,
                "attributes": {"title": "No picture", "image": str(temp_dir / "missing.jpg")},
            }
        )

        assert obj is not None
        assert obj.record.attributes["image"].image is None

    def test_host_errors_roll_back_and_propagate(self, facade, host, site, monkeypatch):
        objects_before = len(site.state.objects)

        def broken_publish(object_id, version):
            raise RuntimeError("publish failed")

        monkeypatch.setattr(host.publisher, "publish", broken_publish)

        with pytest.raises(RuntimeError, match="publish failed"):
            facade.create_object(
                {"class_identifier": "article", "parent_node_id": 2, "attributes": {"title": "x"}}
            )
        assert len(site.state.objects) == objects_before
        assert not site.in_transaction

    def test_unexpected_parameters_are_rejected(self, facade):
        with pytest.raises(ValidationError):
            facade.create_object({"class_identifier": "article", "parentNodeID": 2})
