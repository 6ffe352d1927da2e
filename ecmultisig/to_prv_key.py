#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Functions for conversions between different private key formats."""

import secrets
from typing import Optional, Tuple, Union

from ecmultisig.alias import Point
from ecmultisig.ec import Curve, mult, secp256k1
from ecmultisig.exceptions import MultiSigValueError
from ecmultisig.utils import bytes_from_octets

# private key inputs:
# integer as Union[int, Octets]
# (bytes and hex-string must be exactly n_size bytes, big endian)
PrvKey = Union[int, bytes, str]


def int_from_prv_key(prv_key: PrvKey, ec: Curve = secp256k1) -> int:
    """Return a verified-as-valid private key integer.

    It supports:

    - native int
    - n_size Octets (bytes or hex-string), big endian
    """

    if isinstance(prv_key, int):
        q = prv_key
    else:
        try:
            prv_key = bytes_from_octets(prv_key, ec.n_size)
            q = int.from_bytes(prv_key, "big")
        except (TypeError, ValueError) as e:
            raise MultiSigValueError(f"not a private key: {prv_key!r}") from e

    if not 0 < q < ec.n:
        raise MultiSigValueError(f"private key not in 1..n-1: {hex(q).upper()}")

    return q


def gen_keys(
    prv_key: Optional[PrvKey] = None, ec: Curve = secp256k1
) -> Tuple[int, Point]:
    """Return a private/public (int, Point) key-pair.

    If no private key is provided, a fresh one is randomly drawn.
    """

    if prv_key is None:
        q = 1 + secrets.randbelow(ec.n - 1)
    else:
        q = int_from_prv_key(prv_key, ec)

    return q, mult(q, ec.G, ec)
