#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Hash based helper functions.

The multisignature challenge is a scalar derived by hash_to_scalar
from the concatenation of aggregated commit point,
aggregated public key, and message.
"""

import hashlib

from ecmultisig.alias import HashF, Octets
from ecmultisig.ec import Curve, secp256k1
from ecmultisig.utils import bytes_from_octets, int_from_bits


def reduce_to_hlen(msg: Octets, hf: HashF = hashlib.sha256) -> bytes:
    msg = bytes_from_octets(msg)
    # Step 4 of SEC 1 v.2 section 4.1.3
    h = hf()
    h.update(msg)
    return bytes(h.digest())


def tagged_hash(tag: bytes, m: bytes, hf: HashF = hashlib.sha256) -> bytes:
    "Return hf(hf(tag)||hf(tag)||m), as in BIP340."

    h1 = hf()
    h1.update(tag)
    tag_hash = h1.digest()

    h2 = hf()
    h2.update(tag_hash + tag_hash)

    # it could be sped up by storing the above midstate

    h2.update(m)
    return bytes(h2.digest())


def hash_to_scalar(
    data: Octets, ec: Curve = secp256k1, hf: HashF = hashlib.sha256
) -> int:
    """Return the hf digest of data as a scalar in [0, n-1].

    The leftmost nlen bits of the digest are taken
    (SEC 1 v.2 section 4.1.3) and then reduced mod n.
    Note that the result can be zero: callers decide
    if a zero scalar is acceptable.
    """

    h = reduce_to_hlen(data, hf)
    return int_from_bits(h, ec.nlen) % ec.n
