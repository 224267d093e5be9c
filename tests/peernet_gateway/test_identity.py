"""Tests for identity decoding and request path parsing."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from peernet_gateway.backend import MemoryPeer
from peernet_gateway.errors import MalformedHashError, MalformedIdentifierError, MalformedPathError
from peernet_gateway.identity import (
    InvalidIdentifier,
    NodeIdentifier,
    PublicKeyIdentifier,
    RequestPath,
    decode_content_hash,
    parse_request_path,
    resolve_identifier,
)
from peernet_gateway.types import Bytes32

HEX_DIGITS = "0123456789abcdefABCDEF"


class TestDecodeContentHash:
    """Tests for file hash decoding."""

    @given(st.binary(min_size=32, max_size=32))
    def test_decodes_any_32_byte_hex(self, raw: bytes) -> None:
        """Every 32-byte value round-trips through its hex form."""
        assert decode_content_hash(raw.hex()) == Bytes32(raw)

    @given(st.text(alphabet=HEX_DIGITS).filter(lambda s: len(s) != 64))
    def test_rejects_wrong_length_hex(self, text: str) -> None:
        """Hex of any length other than 64 digits is rejected."""
        assert decode_content_hash(text) is None

    @given(
        st.text(min_size=64, max_size=64).filter(
            lambda s: any(c not in HEX_DIGITS for c in s)
        )
    )
    def test_rejects_non_hex_characters(self, text: str) -> None:
        """A single non-hex character anywhere is enough to reject."""
        assert decode_content_hash(text) is None


class TestResolveIdentifier:
    """Tests for peer identifier resolution."""

    def test_resolves_node_identifier(self) -> None:
        """A 32-byte hex string resolves to a node identifier."""
        result = resolve_identifier("a1b2" * 16)
        assert result == NodeIdentifier(node_id=Bytes32("a1b2" * 16))

    def test_resolves_public_key(self, peer: MemoryPeer) -> None:
        """A valid compressed public key resolves to the key form."""
        assert peer.public_key is not None
        result = resolve_identifier(peer.public_key.hex())
        assert result == PublicKeyIdentifier(public_key=peer.public_key)

    def test_rejects_33_bytes_off_the_curve(self) -> None:
        """Right length but not a curve point is invalid."""
        # Prefix 0x05 is not a compressed point encoding.
        result = resolve_identifier("05" + "11" * 32)
        assert isinstance(result, InvalidIdentifier)

    @pytest.mark.parametrize("text", ["", "zz", "ab" * 20, "0x" + "ab" * 32, "ab" * 64])
    def test_invalid_forms(self, text: str) -> None:
        """Anything else is invalid."""
        assert resolve_identifier(text) == InvalidIdentifier(text=text)

    @given(st.binary(min_size=32, max_size=32))
    def test_node_identifier_form_wins(self, raw: bytes) -> None:
        """A string decodable as a node identifier never resolves to a public key."""
        assert isinstance(resolve_identifier(raw.hex()), NodeIdentifier)


class TestParseRequestPath:
    """Tests for splitting the request path."""

    def test_single_segment_requests_blockchain(self) -> None:
        """One segment means a blockchain query."""
        parsed = parse_request_path("/" + "a1b2" * 16)
        assert parsed == RequestPath(identifier=NodeIdentifier(node_id=Bytes32("a1b2" * 16)))

    def test_trailing_slash_is_ignored(self) -> None:
        """One trailing slash does not add a segment."""
        parsed = parse_request_path("/" + "a1b2" * 16 + "/")
        assert parsed.file_hash is None

    def test_two_segments_request_file(self) -> None:
        """A second segment is the file hash."""
        parsed = parse_request_path("/" + "a1b2" * 16 + "/" + "11" * 32)
        assert parsed.file_hash == Bytes32(b"\x11" * 32)

    @pytest.mark.parametrize(
        "path",
        [
            "//",
            "/" + "a1b2" * 16 + "/" + "11" * 32 + "/extra",
            "/a/b/c/d",
            "/" + "a1b2" * 16 + "//" + "11" * 32,
        ],
    )
    def test_wrong_segment_count(self, path: str) -> None:
        """Zero, three or more segments, or empty ones, are rejected."""
        with pytest.raises(MalformedPathError):
            parse_request_path(path)

    @given(st.lists(st.text(alphabet="xyz", min_size=1), min_size=3, max_size=6))
    def test_segment_count_checked_before_decoding(self, segments: list[str]) -> None:
        """Too many segments fail on count even when the first is not an identifier."""
        with pytest.raises(MalformedPathError):
            parse_request_path("/" + "/".join(segments))

    def test_invalid_identifier(self) -> None:
        """An unresolvable first segment is rejected."""
        with pytest.raises(MalformedIdentifierError):
            parse_request_path("/not-a-peer")

    @pytest.mark.parametrize("segment", ["zz", "11" * 31, "11" * 33, "0x" + "11" * 32])
    def test_invalid_hash(self, segment: str) -> None:
        """A malformed second segment is a bad request."""
        with pytest.raises(MalformedHashError) as exc_info:
            parse_request_path("/" + "a1b2" * 16 + "/" + segment)
        assert exc_info.value.status == 400
