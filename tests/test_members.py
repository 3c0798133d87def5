"""Tests for member discovery and covariant override merging."""

from typing import Annotated, ClassVar, Optional

import pytest

from confbind.declarations import Default, Key
from confbind.errors import InvalidSchemaError
from confbind.model import MembersProvider


class ServerConfig:
    host: str
    port: int


class SecureServerConfig(ServerConfig):
    tls: bool


class BaseHolder:
    server: ServerConfig
    name: str


class DerivedHolder(BaseHolder):
    server: SecureServerConfig


class NarrowBase:
    server: SecureServerConfig


class WideDerived(NarrowBase):
    server: ServerConfig


class PortAsInt:
    port: int


class PortAsStr:
    port: str


class Clash(PortAsInt, PortAsStr):
    pass


class OptionalPort:
    port: Optional[int]


class RequiredPort(OptionalPort):
    port: int


class RequiredBase:
    server: SecureServerConfig


class OptionalWideDerived(RequiredBase):
    server: Optional[ServerConfig]


class Mixed:
    host: str
    kind: ClassVar[str] = "mixed"
    retries: int = 3
    address: str

    @property
    def address(self) -> str:
        return f"{self.host}"


class Unresolvable:
    value: "DoesNotExist"  # noqa: F821


@pytest.fixture
def members():
    """Provide a members provider."""
    return MembersProvider()


def by_name(found):
    return {member.name: member for member in found}


class TestMembersProvider:
    """Tests for MembersProvider.get_members."""

    def test_declaration_order(self, members):
        """Test that members come base first, in declaration order."""
        names = [member.name for member in members.get_members(SecureServerConfig)]

        assert names == ["host", "port", "tls"]

    def test_narrower_override_wins(self, members):
        """Test that a derived class narrowing a type replaces the base declaration."""
        found = by_name(members.get_members(DerivedHolder))

        assert len([m for m in members.get_members(DerivedHolder) if m.name == "server"]) == 1
        assert found["server"].type is SecureServerConfig
        assert found["server"].owner is DerivedHolder

    def test_narrower_base_declaration_survives(self, members):
        """Test that widening a type in a subclass keeps the more specific declaration."""
        found = by_name(members.get_members(WideDerived))

        assert found["server"].type is SecureServerConfig
        assert found["server"].owner is NarrowBase

    def test_optional_narrowed_to_required(self, members):
        """Test that dropping Optional in a subclass overrides the declaration."""
        ports = [member for member in members.get_members(RequiredPort) if member.name == "port"]

        assert len(ports) == 1
        assert ports[0].type is int
        assert ports[0].owner is RequiredPort

    def test_optional_widening_keeps_narrower_declaration(self, members):
        """Test that a wider Optional override keeps the base declaration."""
        servers = [member for member in members.get_members(OptionalWideDerived) if member.name == "server"]

        assert len(servers) == 1
        assert servers[0].type is SecureServerConfig
        assert servers[0].owner is RequiredBase

    def test_unrelated_types_are_all_kept(self, members):
        """Test that incompatible declarations are reported, not merged."""
        ports = [member for member in members.get_members(Clash) if member.name == "port"]

        assert {member.type for member in ports} == {int, str}

    def test_member_flags(self, members):
        """Test class variables, assigned values and implemented members."""
        found = by_name(members.get_members(Mixed))

        assert found["kind"].class_var
        assert found["retries"].assigned.get() == 3
        assert found["address"].fulfilled
        assert not found["host"].fulfilled
        assert found["host"].assigned.is_absent

    def test_markers_and_type(self, members):
        """Test that Annotated metadata is exposed separately from the type."""

        class Marked:
            url: Annotated[str, Key("url", "uri"), Default("x")]

        member = members.get_members(Marked)[0]

        assert member.type is str
        assert member.markers == (Key("url", "uri"), Default("x"))
        assert str(member).endswith("Marked.url")

    def test_unresolvable_annotation(self, members):
        """Test that broken forward references are schema errors."""
        with pytest.raises(InvalidSchemaError, match="Cannot resolve annotations of Unresolvable"):
            members.get_members(Unresolvable)
