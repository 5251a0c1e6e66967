# tests/test_webfinger.py
"""Tests for WebFinger handles and documents."""

import pytest

from apfed.errors import MalformedHandle, ShapeError
from apfed.webfinger import Webfinger, build_webfinger_url, parse_handle

EXPECTED = "https://example.com/.well-known/webfinger?resource=acct:alice@example.com"


class TestHandles:
    """Test handle parsing and URL building."""

    def test_with_and_without_leading_at(self):
        assert build_webfinger_url("alice@example.com") == EXPECTED
        assert build_webfinger_url("@alice@example.com") == EXPECTED

    def test_port_goes_in_host_only(self):
        url = build_webfinger_url("bob@localhost:8080")
        assert url == "https://localhost:8080/.well-known/webfinger?resource=acct:bob@localhost"

    def test_allowed_characters(self):
        user, host, port = parse_handle("first.last-name_1@sub.example-host.org")
        assert user == "first.last-name_1"
        assert host == "sub.example-host.org"
        assert port is None

    def test_parse_port(self):
        assert parse_handle("@a@b.example:443") == ("a", "b.example", 443)

    @pytest.mark.parametrize("handle", [
        "not-a-handle",
        "alice@",
        "@example.com",
        "alice@example.com/path",
        "alice@@example.com",
        "al ice@example.com",
        "alice@example.com:port",
        "ålice@example.com",
    ])
    def test_malformed(self, handle):
        with pytest.raises(MalformedHandle):
            build_webfinger_url(handle)

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            parse_handle("nope")


class TestWebfinger:
    """Test the Webfinger value object."""

    def _document(self):
        return {
            "subject": "acct:alice@example.com",
            "aliases": ["https://example.com/@alice", "https://example.com/users/alice"],
            "links": [
                {"rel": "http://webfinger.net/rel/profile-page", "type": "text/html", "href": "https://example.com/@alice"},
                {"rel": "self", "type": "application/activity+json", "href": "https://example.com/users/alice"},
                {"rel": "http://ostatus.org/schema/1.0/subscribe", "template": "https://example.com/authorize_interaction?uri={uri}"},
            ],
        }

    def test_from_dict(self):
        webfinger = Webfinger.from_dict(self._document())
        assert webfinger.subject == "acct:alice@example.com"
        assert webfinger.handle == "alice@example.com"
        assert len(webfinger.aliases) == 2
        assert len(webfinger.links) == 3
        assert webfinger.links[2] == {
            "rel": "http://ostatus.org/schema/1.0/subscribe",
            "template": "https://example.com/authorize_interaction?uri={uri}",
        }

    def test_profile_id(self):
        webfinger = Webfinger.from_dict(self._document())
        assert webfinger.profile_id == "https://example.com/users/alice"

    def test_profile_id_first_matching_link_wins(self):
        doc = self._document()
        doc["links"].append({"rel": "self", "type": "application/activity+json", "href": "https://other.example/u"})
        assert Webfinger.from_dict(doc).profile_id == "https://example.com/users/alice"

    def test_profile_id_missing(self):
        doc = self._document()
        doc["links"] = [link for link in doc["links"] if link["rel"] != "self"]
        assert Webfinger.from_dict(doc).profile_id is None

    def test_self_link_with_wrong_type_is_not_profile(self):
        webfinger = Webfinger.from_dict({
            "links": [{"rel": "self", "type": "text/html", "href": "https://example.com/@alice"}],
        })
        assert webfinger.profile_id is None

    def test_non_string_optional_fields_dropped(self):
        webfinger = Webfinger.from_dict({
            "links": [{"rel": "self", "type": "application/activity+json", "href": 42, "template": None}],
        })
        assert webfinger.links == [{"rel": "self", "type": "application/activity+json"}]
        assert webfinger.profile_id is None

    def test_empty_document(self):
        webfinger = Webfinger.from_dict({})
        assert webfinger.subject is None
        assert webfinger.handle is None
        assert webfinger.to_dict() == {"subject": None, "aliases": [], "links": []}

    def test_subject_must_be_string(self):
        with pytest.raises(ShapeError, match="subject"):
            Webfinger.from_dict({"subject": ["acct:alice@example.com"]})

    def test_aliases_must_be_strings(self):
        with pytest.raises(ShapeError, match="aliases"):
            Webfinger.from_dict({"aliases": ["ok", 1]})

    def test_links_must_be_objects(self):
        with pytest.raises(ShapeError, match="links"):
            Webfinger.from_dict({"links": ["https://example.com"]})

    def test_link_requires_rel(self):
        with pytest.raises(ShapeError, match="rel"):
            Webfinger.from_dict({"links": [{"href": "https://example.com"}]})

    def test_document_must_be_object(self):
        with pytest.raises(ShapeError):
            Webfinger.from_dict(["not", "an", "object"])
