#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Functions for conversions between elliptic curve points and bytes.

SEC 1 v.2 2.3.3 and 2.3.4: https://www.secg.org/sec1-v2.pdf
"""

from ecmultisig.alias import Octets, Point
from ecmultisig.ec.curve import Curve, secp256k1
from ecmultisig.exceptions import MultiSigValueError
from ecmultisig.utils import bytes_from_octets, hex_string


def point_size(ec: Curve = secp256k1, compressed: bool = True) -> int:
    "Return the byte size of the SEC encoding of a curve point."
    return ec.p_size + 1 if compressed else 2 * ec.p_size + 1


def bytes_from_point(Q: Point, ec: Curve = secp256k1, compressed: bool = True) -> bytes:
    """Return a point as compressed/uncompressed octet sequence.

    Return a point as compressed (0x02, 0x03) or uncompressed (0x04)
    octet sequence, according to SEC 1 v.2, section 2.3.3.
    """

    # check that Q is a point and that is on curve
    ec.require_on_curve(Q)

    if Q[1] == 0:  # infinity point in affine coordinates
        raise MultiSigValueError("no bytes representation for infinity point")

    bytes_ = Q[0].to_bytes(ec.p_size, byteorder="big", signed=False)
    if compressed:
        return (b"\x03" if (Q[1] & 1) else b"\x02") + bytes_

    return b"\x04" + bytes_ + Q[1].to_bytes(ec.p_size, byteorder="big", signed=False)


def point_from_octets(pub_key: Octets, ec: Curve = secp256k1) -> Point:
    """Return a tuple (x_Q, y_Q) that belongs to the curve.

    Return a tuple (x_Q, y_Q) that belongs to the curve according to
    SEC 1 v.2, section 2.3.4.
    """

    pub_key = bytes_from_octets(pub_key, (ec.p_size + 1, 2 * ec.p_size + 1))

    bsize = len(pub_key)  # bytes
    if pub_key[0] in (0x02, 0x03):  # compressed point
        if bsize != ec.p_size + 1:
            err_msg = "invalid size for compressed point: "
            err_msg += f"{bsize} instead of {ec.p_size + 1}"
            raise MultiSigValueError(err_msg)
        x_Q = int.from_bytes(pub_key[1:], byteorder="big")
        try:
            y_Q = ec.y_even(x_Q)  # also check x_Q validity
        except MultiSigValueError as e:
            msg = f"invalid x-coordinate: '{hex_string(x_Q)}'"
            raise MultiSigValueError(msg) from e
        # y_Q == 0 would be a point of order two, not in a prime order group
        if y_Q == 0:
            raise MultiSigValueError("no bytes representation for infinity point")
        return x_Q, y_Q if pub_key[0] == 0x02 else ec.p - y_Q
    if pub_key[0] == 0x04:  # uncompressed point
        if bsize != 2 * ec.p_size + 1:
            err_msg = "invalid size for uncompressed point: "
            err_msg += f"{bsize} instead of {2 * ec.p_size + 1}"
            raise MultiSigValueError(err_msg)
        x_Q = int.from_bytes(pub_key[1 : ec.p_size + 1], byteorder="big", signed=False)
        Q = x_Q, int.from_bytes(pub_key[ec.p_size + 1 :], byteorder="big", signed=False)
        if Q[1] == 0:  # infinity point in affine coordinates
            raise MultiSigValueError("no bytes representation for infinity point")
        if ec.is_on_curve(Q):
            return Q
        raise MultiSigValueError(f"point not on curve: {Q}")
    raise MultiSigValueError(f"not a point: {pub_key!r}")
