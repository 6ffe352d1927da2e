#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Functions for conversions between different public key formats."""

from typing import Union

from ecmultisig.alias import Octets, Point
from ecmultisig.ec import Curve, bytes_from_point, point_from_octets, secp256k1
from ecmultisig.exceptions import MultiSigValueError

# public key inputs:
# elliptic curve point and SEC Octets (bytes or hex-string)
PubKey = Union[Point, Octets]


def point_from_pub_key(pub_key: PubKey, ec: Curve = secp256k1) -> Point:
    "Return an elliptic curve point tuple from a public key."

    if isinstance(pub_key, tuple):
        if ec.is_on_curve(pub_key) and pub_key[1] != 0:
            return pub_key
        raise MultiSigValueError(f"not a valid public key: {pub_key}")

    # it must be octets
    try:
        return point_from_octets(pub_key, ec)
    except (TypeError, ValueError) as e:
        raise MultiSigValueError(f"not a public key: {pub_key!r}") from e


def bytes_from_pub_key(
    pub_key: PubKey, ec: Curve = secp256k1, compressed: bool = True
) -> bytes:
    "Return the SEC encoding of a public key."

    return bytes_from_point(point_from_pub_key(pub_key, ec), ec, compressed)
