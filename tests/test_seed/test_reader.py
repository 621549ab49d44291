"""Tests for reading seed images back."""

import pytest

from cidata.errors import ConnectionUnavailable, NotFoundError, ParseError
from cidata.models.cloudinit import CloudInitSpec
from cidata.seed.builder import build
from cidata.seed.packager import package
from cidata.seed.reader import classify_user_data, fetch_and_parse, parse_image
from cidata.seed.uploader import upload


class TestClassifyUserData:
    """Test user-data classification."""

    def test_marked_key_only(self, ssh_key):
        content = (
            "#cloud-config\n"
            "# cidata: ssh-authorized-keys\n"
            f"ssh_authorized_keys:\n- {ssh_key}\n"
        )
        assert classify_user_data(content) == ([ssh_key], "")

    def test_marked_with_other_keys_is_free_form(self, ssh_key):
        content = (
            "#cloud-config\n"
            "# cidata: ssh-authorized-keys\n"
            f"ssh_authorized_keys:\n- {ssh_key}\n"
            "packages: [htop]\n"
        )
        assert classify_user_data(content) == ([], content)

    def test_marked_without_keys(self):
        content = "#cloud-config\n# cidata: ssh-authorized-keys\nssh_authorized_keys: []\n"
        assert classify_user_data(content) == ([], "")

    def test_unmarked_key_only_cloud_config(self, ssh_key):
        content = f"#cloud-config\nssh_authorized_keys:\n  - {ssh_key}\n"
        assert classify_user_data(content) == ([ssh_key], "")

    def test_cloud_config_with_other_keys(self, ssh_key):
        content = f"#cloud-config\nssh_authorized_keys:\n  - {ssh_key}\npackages: [htop]\n"
        assert classify_user_data(content) == ([], content)

    def test_shell_script(self):
        content = "#!/bin/sh\necho hello\n"
        assert classify_user_data(content) == ([], content)

    def test_invalid_yaml_is_free_form(self):
        content = "#cloud-config\nfoo: [unclosed\n"
        assert classify_user_data(content) == ([], content)

    def test_empty(self):
        assert classify_user_data("") == ([], "")


class TestParseImage:
    """Test parse_image()."""

    def test_round_trip_key(self, ssh_key):
        definition = build(CloudInitSpec(name="ci1", local_hostname="node1", ssh_authorized_key=ssh_key))

        parsed = parse_image(package(definition))

        assert parsed.metadata.local_hostname == "node1"
        assert parsed.user_data.ssh_authorized_keys == [ssh_key]
        assert parsed.user_data_content == ""
        assert parsed.volid == "cidata"
        assert parsed.user_data_path == "user-data"

    def test_round_trip_free_form(self, ssh_key):
        content = "#cloud-config\nruncmd:\n  - touch /tmp/ok\n"
        definition = build(CloudInitSpec(name="ci1", ssh_authorized_key=ssh_key, user_data=content))

        parsed = parse_image(package(definition))

        assert parsed.user_data.ssh_authorized_keys == []
        assert parsed.user_data_content == content
        assert parsed.metadata.local_hostname == ""

    def test_custom_volid_and_path(self):
        definition = build(CloudInitSpec(name="ci1", volid="CIDATA", user_data_path="ud", user_data="#!/bin/sh\n"))

        parsed = parse_image(package(definition))

        assert parsed.volid == "CIDATA"
        assert parsed.user_data_path == "ud"
        assert parsed.user_data_content == "#!/bin/sh\n"

    def test_unmarked_key_only_keeps_content(self, iso_factory, ssh_key):
        content = f"#cloud-config\nssh_authorized_keys:\n  - {ssh_key}\n"
        image = iso_factory({"meta-data": "instance-id: abc\n", "user-data": content})

        parsed = parse_image(image)

        assert parsed.user_data.ssh_authorized_keys == [ssh_key]
        assert parsed.user_data_content == content

    def test_external_image(self, iso_factory):
        image = iso_factory({
            "meta-data": "instance-id: abc\nlocal-hostname: web\n",
            "user-data": "#!/bin/sh\n",
            "network-config": "version: 2\n",
        })

        parsed = parse_image(image)

        assert parsed.metadata.local_hostname == "web"
        assert parsed.user_data_path == "user-data"

    def test_not_an_iso(self):
        with pytest.raises(ParseError):
            parse_image(b"\x00" * 4096)

    def test_missing_meta_data(self, iso_factory):
        with pytest.raises(ParseError) as exc_info:
            parse_image(iso_factory({"user-data": "#cloud-config\n"}))

        assert "meta-data" in str(exc_info.value)

    def test_missing_user_data(self, iso_factory):
        with pytest.raises(ParseError) as exc_info:
            parse_image(iso_factory({"meta-data": "instance-id: a\n"}))

        assert "user-data" in str(exc_info.value)

    def test_meta_data_not_a_mapping(self, iso_factory):
        image = iso_factory({"meta-data": "- a\n- b\n", "user-data": "#!/bin/sh\n"})

        with pytest.raises(ParseError):
            parse_image(image)


class TestFetchAndParse:
    """Test fetch_and_parse()."""

    def test_fetch(self, backend, ssh_key):
        definition = build(CloudInitSpec(name="ci1", local_hostname="node1", ssh_authorized_key=ssh_key))
        key = upload(backend, "default", "ci1", package(definition))

        parsed, pool = fetch_and_parse(backend, key)

        assert pool == "default"
        assert parsed.name == "ci1"
        assert parsed.pool_name == "default"
        assert parsed.metadata.local_hostname == "node1"
        assert parsed.user_data.ssh_authorized_keys == [ssh_key]

    def test_unknown_key(self, backend):
        with pytest.raises(NotFoundError):
            fetch_and_parse(backend, "/var/lib/libvirt/images/default/missing")

    def test_corrupted_volume(self, backend):
        volume = backend.define_volume("default", "junk", 16)
        backend.upload_bytes(volume, b"not an iso image")

        with pytest.raises(ParseError):
            fetch_and_parse(backend, volume.key)

    def test_no_backend(self):
        with pytest.raises(ConnectionUnavailable):
            fetch_and_parse(None, "key")
