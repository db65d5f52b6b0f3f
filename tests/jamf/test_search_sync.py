"""Tests for advanced computer search sync."""

import logging
import plistlib
import xml.etree.ElementTree as ET

import httpx
import pytest
import yaml

from autopkg_ops.jamf import (
    JamfAuthError,
    JamfClient,
    JamfRequestError,
    build_search_xml,
    load_search_sync_config,
    scan_recipe_names,
    sync_searches,
)

EA_XML = """<computer_extension_attributes>
  <computer_extension_attribute><id>1</id><name>AutoPkg Firefox Update Status</name></computer_extension_attribute>
  <computer_extension_attribute><id>2</id><name>AutoPkg swiftDialog Update Status</name></computer_extension_attribute>
  <computer_extension_attribute><id>3</id><name>AutoPkg Zoom Update Status</name></computer_extension_attribute>
</computer_extension_attributes>"""

SEARCHES_XML = """<advanced_computer_searches>
  <advanced_computer_search><id>42</id><name>AutoPkg Firefox - Needs Update</name></advanced_computer_search>
</advanced_computer_searches>"""


def write_plist_recipe(path, name):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        plistlib.dump({"Identifier": f"local.jamf.{name}", "Input": {"NAME": name}}, f)


@pytest.fixture
def recipe_dir(tmp_path):
    root = tmp_path / "Recipes"
    write_plist_recipe(root / "Firefox" / "Firefox.jamf.recipe", "Firefox")
    write_plist_recipe(root / "Firefox" / "Firefox-ESR.jamf.recipe", "Firefox")
    write_plist_recipe(root / "Slack.jamf.recipe", "Slack")
    write_plist_recipe(root / "App_Store_App.jamf.recipe", "App Store App")
    write_plist_recipe(root / "swiftDialog.jamf.recipe", "Dialog")
    write_plist_recipe(root / "Firefox.download.recipe", "Firefox Download")
    (root / "Zoom.jamf.recipe.yaml").write_text(
        yaml.safe_dump({"Identifier": "local.jamf.Zoom", "Input": {"NAME": "Zoom"}})
    )
    (root / "Broken.jamf.recipe").write_text("not a plist")
    return root


class TestScanRecipes:
    def test_names_filtered_and_deduplicated(self, recipe_dir):
        names = scan_recipe_names(recipe_dir, load_search_sync_config())

        assert sorted(names) == ["Firefox", "Slack", "Zoom", "swiftDialog"]

    def test_missing_directory(self, tmp_path):
        assert scan_recipe_names(tmp_path / "missing", load_search_sync_config()) == []


class TestBuildSearchXml:
    def test_payload(self):
        xml = build_search_xml("Firefox")

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(xml.split("\n", 1)[1])
        assert root.findtext("name") == "AutoPkg Firefox - Needs Update"
        criterion = root.find("criteria/criterion")
        assert criterion.findtext("name") == "AutoPkg Firefox Update Status"
        assert criterion.findtext("search_type") == "is"
        assert criterion.findtext("value") == "Needs Update"
        fields = [el.findtext("name") for el in root.iter("display_field")]
        assert fields[0] == "Last Check-in"
        assert "AutoPkg Firefox Update Status" in fields
        assert fields[-1] == "Email Address"

    def test_special_characters_escaped(self):
        xml = build_search_xml("R&D <Tools>")
        root = ET.fromstring(xml.split("\n", 1)[1])
        assert root.findtext("name") == "AutoPkg R&D <Tools> - Needs Update"


class TestSyncSearches:
    def make_client(self, requests, fail_put=False):
        def handler(request):
            requests.append((request.method, request.url.path))
            path = request.url.path
            if path == "/api/oauth/token":
                return httpx.Response(200, json={"access_token": "tok"})
            if path.endswith("computerextensionattributes"):
                return httpx.Response(200, text=EA_XML)
            if path.endswith("advancedcomputersearches"):
                return httpx.Response(200, text=SEARCHES_XML)
            if request.method == "PUT" and fail_put:
                return httpx.Response(409, text="<error>Conflict</error>")
            return httpx.Response(201, text="<advanced_computer_search><id>7</id></advanced_computer_search>")

        return JamfClient(
            "https://example.jamfcloud.com", "id", "secret",
            transport=httpx.MockTransport(handler),
        )

    def test_creates_and_updates(self, recipe_dir, tmp_path):
        requests = []
        output = tmp_path / "application_names.txt"

        report = sync_searches(recipe_dir, output, self.make_client(requests))

        assert sorted(report.validated) == ["Firefox", "Zoom", "swiftDialog"]
        assert report.missing_ea == ["Slack"]
        assert report.updated == ["Firefox"]
        assert sorted(report.created) == ["Zoom", "swiftDialog"]
        assert sorted(output.read_text().splitlines()) == ["Firefox", "Zoom", "swiftDialog"]
        assert ("PUT", "/JSSResource/advancedcomputersearches/id/42") in requests
        assert requests.count(("POST", "/JSSResource/advancedcomputersearches/id/0")) == 2

    def test_failed_save_recorded(self, recipe_dir, tmp_path):
        requests = []
        report = sync_searches(
            recipe_dir, tmp_path / "names.txt", self.make_client(requests, fail_put=True)
        )
        assert report.failed == ["Firefox"]
        assert report.updated == []

    def test_auth_failure(self, recipe_dir, tmp_path, caplog):
        client = JamfClient(
            "https://example.jamfcloud.com", "id", "bad",
            transport=httpx.MockTransport(lambda r: httpx.Response(401, json={})),
        )
        output = tmp_path / "names.txt"
        output.write_text("stale\n")

        with caplog.at_level(logging.INFO, logger="autopkg_ops"):
            with pytest.raises(JamfAuthError):
                sync_searches(recipe_dir, output, client)

        assert "Failed to retrieve access token." in caplog.text
        assert output.read_text() == ""

    def test_attribute_list_server_error(self, recipe_dir, tmp_path, caplog):
        def handler(request):
            if request.url.path == "/api/oauth/token":
                return httpx.Response(200, json={"access_token": "tok"})
            return httpx.Response(500, text="Internal Server Error")

        client = JamfClient(
            "https://example.jamfcloud.com", "id", "secret",
            transport=httpx.MockTransport(handler),
        )

        with caplog.at_level(logging.INFO, logger="autopkg_ops"):
            with pytest.raises(JamfRequestError):
                sync_searches(recipe_dir, tmp_path / "names.txt", client)

        assert "Failed to fetch extension attributes" in caplog.text

    def test_search_list_server_error(self, recipe_dir, tmp_path, caplog):
        requests = []

        def handler(request):
            requests.append((request.method, request.url.path))
            if request.url.path == "/api/oauth/token":
                return httpx.Response(200, json={"access_token": "tok"})
            if request.url.path.endswith("computerextensionattributes"):
                return httpx.Response(200, text=EA_XML)
            return httpx.Response(503)

        client = JamfClient(
            "https://example.jamfcloud.com", "id", "secret",
            transport=httpx.MockTransport(handler),
        )
        output = tmp_path / "names.txt"

        with caplog.at_level(logging.INFO, logger="autopkg_ops"):
            with pytest.raises(JamfRequestError):
                sync_searches(recipe_dir, output, client)

        assert "Failed to fetch advanced searches" in caplog.text
        assert sorted(output.read_text().splitlines()) == ["Firefox", "Zoom", "swiftDialog"]
        assert not any(method in ("POST", "PUT") for method, _ in requests)
