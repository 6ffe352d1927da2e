#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Tests for the `ecmultisig.utils` module."""

from io import BytesIO

import pytest

from ecmultisig.exceptions import DecodeError, MultiSigValueError
from ecmultisig.utils import (
    bytes_from_octets,
    bytesio_from_binarydata,
    hex_string,
    int_from_bits,
    int_from_integer,
    read_at,
    write_at,
)


def test_bytes_from_octets() -> None:
    assert bytes_from_octets("deadbeef") == b"\xde\xad\xbe\xef"
    assert bytes_from_octets(" deadbeef ") == b"\xde\xad\xbe\xef"
    assert bytes_from_octets(b"\x00\x01", 2) == b"\x00\x01"
    assert bytes_from_octets(b"\x00\x01", (2, 3)) == b"\x00\x01"

    with pytest.raises(MultiSigValueError, match="invalid size: "):
        bytes_from_octets(b"\x00\x01", 3)
    with pytest.raises(MultiSigValueError, match="invalid size: "):
        bytes_from_octets(b"\x00\x01", (1, 3))


def test_bytesio_from_binarydata() -> None:
    data = b"\x01\x02\x03"
    for binary_data in (data, data.hex(), bytearray(data), BytesIO(data)):
        stream = bytesio_from_binarydata(binary_data)
        assert stream.read() == data


def test_int_from_integer() -> None:
    i = 0xDEADBEEF
    for integer in (i, "0xdeadbeef", " 0xDEADBEEF ", "deadbeef", b"\xde\xad\xbe\xef"):
        assert int_from_integer(integer) == i
    assert int_from_integer("-0xdeadbeef") == -i
    assert int_from_integer(-i) == -i


def test_hex_string() -> None:
    assert hex_string(0) == "00"
    assert hex_string(1) == "01"
    assert hex_string(0xDEADBEEF) == "DEADBEEF"
    assert hex_string(0xDEADBEEF01) == "DE ADBEEF01"
    assert hex_string("0x1deadbeef") == "01 DEADBEEF"

    with pytest.raises(MultiSigValueError, match="negative integer: "):
        hex_string(-1)


def test_int_from_bits() -> None:
    octets = b"\xff" * 32
    assert int_from_bits(octets, 256) == 2**256 - 1
    assert int_from_bits(octets, 255) == 2**255 - 1
    assert int_from_bits(octets, 512) == 2**256 - 1
    assert int_from_bits(b"\x80", 1) == 1
    assert int_from_bits(b"\x80", 5) == 16


def test_write_at() -> None:
    dst = bytearray()
    assert write_at(dst, 0, b"ab") == 2
    assert dst == b"ab"

    # growing the buffer, gap filled with zeros
    assert write_at(dst, 4, b"cd") == 6
    assert dst == b"ab\x00\x00cd"

    # overwriting
    assert write_at(dst, 1, b"XYZ") == 4
    assert dst == b"aXYZcd"

    # empty data
    assert write_at(dst, 6, b"") == 6
    assert dst == b"aXYZcd"

    with pytest.raises(MultiSigValueError, match="negative offset: "):
        write_at(dst, -1, b"ab")


def test_read_at() -> None:
    src = b"abcdef"
    assert read_at(src, 0, 6) == src
    assert read_at(src, 2, 3) == b"cde"
    assert read_at(src, 6, 0) == b""
    assert read_at(src.hex(), 1, 1) == b"b"
    assert read_at(bytearray(src), 1, 1) == b"b"

    with pytest.raises(DecodeError, match="negative offset: "):
        read_at(src, -1, 1)
    err_msg = "not enough bytes: 1 available at offset 5, 2 required"
    with pytest.raises(DecodeError, match=err_msg):
        read_at(src, 5, 2)
    err_msg = "not enough bytes: 0 available at offset 9, 1 required"
    with pytest.raises(DecodeError, match=err_msg):
        read_at(src, 9, 1)
