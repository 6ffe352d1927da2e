#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Proof of possession of the private key.

The multisignature challenge is computed once from the aggregated
commitment and the aggregated public key:
a rogue signer announcing Q_r = Q_x - Q_1 - ... - Q_m
(Q_x being a key it controls) would make the aggregated key
equal to Q_x, and then forge multisignatures on its own.

To prevent such rogue-key attacks every signer must prove,
when its public key is enrolled, that it knows the matching
private key: the proof is an EC-Schnorr signature on the
signer's own compressed public key, domain separated with
a dedicated tag so that it cannot be mistaken for (or replayed as)
a signature on any consensus message.
"""

from __future__ import annotations

from hashlib import sha256

from ecmultisig import schnorr
from ecmultisig.alias import HashF, Octets
from ecmultisig.ec import Curve, bytes_from_point, mult, secp256k1
from ecmultisig.exceptions import MultiSigRuntimeError, MultiSigValueError
from ecmultisig.hashes import tagged_hash
from ecmultisig.to_prv_key import PrvKey, int_from_prv_key
from ecmultisig.to_pub_key import PubKey, point_from_pub_key

POP_TAG = b"ECMultiSig/PoP"


def pop_message(pub_key: PubKey, ec: Curve = secp256k1, hf: HashF = sha256) -> bytes:
    "Return the message signed by a proof of possession."
    Q = point_from_pub_key(pub_key, ec)
    return tagged_hash(POP_TAG, bytes_from_point(Q, ec), hf)


def gen_pop(
    prv_key: PrvKey, ec: Curve = secp256k1, hf: HashF = sha256
) -> schnorr.Sig:
    "Return the proof of possession of the given private key."
    q = int_from_prv_key(prv_key, ec)
    Q = mult(q, ec.G, ec)
    return schnorr.sign(pop_message(Q, ec, hf), q, None, ec, hf)


def assert_pop_as_valid(
    pub_key: PubKey,
    pop: schnorr.Sig | Octets,
    ec: Curve = secp256k1,
    hf: HashF = sha256,
) -> None:
    # It raises Errors, while verify_pop should always return True or False
    if isinstance(pop, schnorr.Sig):
        if pop.ec != ec:
            raise MultiSigValueError(f"curve mismatch: {pop.ec!r} vs {ec!r}")
    else:
        pop = schnorr.Sig.parse(pop, ec)
    msg = pop_message(pub_key, ec, hf)
    try:
        schnorr.assert_as_valid(msg, pub_key, pop, hf)
    except MultiSigRuntimeError as e:
        raise MultiSigRuntimeError("invalid proof of possession") from e


def verify_pop(
    pub_key: PubKey,
    pop: schnorr.Sig | Octets,
    ec: Curve = secp256k1,
    hf: HashF = sha256,
) -> bool:
    "Return True if pop proves possession of the private key of pub_key."
    # all kind of Exceptions are catched because
    # verify must always return a bool
    try:
        assert_pop_as_valid(pub_key, pop, ec, hf)
    except Exception:  # pylint: disable=broad-except
        return False

    return True
