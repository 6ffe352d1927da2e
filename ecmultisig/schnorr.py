#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Elliptic Curve Schnorr Signature Algorithm (single key).

This is the EC-Schnorr variant the multisignature scheme builds upon.
With private key q, public key Q = qG, and nonce k:

    K = kG
    c = H(K||Q||msg) mod n
    s = k - c*q mod n

where H is hash_to_scalar over the SEC compressed encodings
of K and Q followed by the raw message bytes.
The signature is the (c, s) pair.

Verification recomputes K' = sG + cQ and checks
that H(K'||Q||msg) is equal to c.

Since both response and challenge are linear,
a multisignature (c, s_1 + ... + s_m) produced by m signers
against the aggregated public key Q_1 + ... + Q_m
is verified by this very same verification algorithm.

The signature size is 2*n-size, where n-size is the scalar
(curve point multiplication coefficient) byte size:
for secp256k1 it is 64 bytes.
"""

from __future__ import annotations

import secrets
from dataclasses import InitVar, dataclass
from hashlib import sha256

from ecmultisig.alias import BinaryData, HashF, JacPoint, Octets, Point
from ecmultisig.ec import Curve, bytes_from_point, jac_from_aff, mult, secp256k1
from ecmultisig.ec.curve_group import _double_mult
from ecmultisig.exceptions import MultiSigRuntimeError, MultiSigValueError
from ecmultisig.hashes import hash_to_scalar
from ecmultisig.to_prv_key import PrvKey, int_from_prv_key
from ecmultisig.to_pub_key import PubKey, point_from_pub_key
from ecmultisig.utils import bytes_from_octets, bytesio_from_binarydata, hex_string


def _scalar_str(i: int) -> str:
    return f"'{hex_string(i)}'" if i > 0xFFFFFFFF else f"{i}"


@dataclass(frozen=True)
class Sig:
    """EC-Schnorr signature.

    - c is the challenge, a scalar 0 < c < ec.n
    - s is the response, a scalar 0 <= s < ec.n (it can be zero)

    (ec.n is the curve order)
    """

    c: int
    s: int
    ec: Curve = secp256k1
    check_validity: InitVar[bool] = True

    def __post_init__(self, check_validity: bool) -> None:
        if check_validity:
            self.assert_valid()

    def assert_valid(self) -> None:
        # c is a challenge: it multiplies the public key, zero is not allowed
        if not 0 < self.c < self.ec.n:
            raise MultiSigValueError(f"challenge c not in 1..n-1: {_scalar_str(self.c)}")

        if not 0 <= self.s < self.ec.n:
            raise MultiSigValueError(f"scalar s not in 0..n-1: {_scalar_str(self.s)}")

    def serialize(self, check_validity: bool = True) -> bytes:
        if check_validity:
            self.assert_valid()

        out = self.c.to_bytes(self.ec.n_size, byteorder="big", signed=False)
        out += self.s.to_bytes(self.ec.n_size, byteorder="big", signed=False)
        return out

    @classmethod
    def parse(
        cls: type[Sig],
        data: BinaryData,
        ec: Curve = secp256k1,
        check_validity: bool = True,
    ) -> Sig:
        stream = bytesio_from_binarydata(data)
        c_bytes = stream.read(ec.n_size)
        s_bytes = stream.read(ec.n_size)
        if len(s_bytes) != ec.n_size:
            err_msg = f"not enough bytes for a signature: {len(c_bytes + s_bytes)}"
            raise MultiSigValueError(f"{err_msg} instead of {2 * ec.n_size}")
        c = int.from_bytes(c_bytes, byteorder="big", signed=False)
        s = int.from_bytes(s_bytes, byteorder="big", signed=False)
        return cls(c, s, ec, check_validity)


def challenge_(
    K: Point, Q: Point, msg: Octets, ec: Curve = secp256k1, hf: HashF = sha256
) -> int:
    "Return the challenge H(K||Q||msg) as a scalar in [1, n-1]."

    t = b"".join(
        [
            bytes_from_point(K, ec),
            bytes_from_point(Q, ec),
            bytes_from_octets(msg),
        ]
    )
    c = hash_to_scalar(t, ec, hf)
    if c == 0:
        raise MultiSigRuntimeError("invalid zero challenge")  # pragma: no cover
    return c


def _sign_(c: int, q: int, nonce: int, ec: Curve) -> Sig:
    # Private function for testing purposes: it allows to explore all
    # possible value of the challenge c (for low-cardinality curves).
    # It assume that q and nonce are in [1, n-1]
    if c == 0:  # c≠0 required as it multiplies the private key
        raise MultiSigRuntimeError("invalid zero challenge")

    # s=0 is ok: in verification there is no inverse of s
    s = (nonce - c * q) % ec.n

    return Sig(c, s, ec)


def sign(
    msg: Octets,
    prv_key: PrvKey,
    nonce: int | None = None,
    ec: Curve = secp256k1,
    hf: HashF = sha256,
) -> Sig:
    """Sign a message according to the EC-Schnorr signature algorithm.

    The message is hashed only as part of the challenge:
    it can be of any length.
    If the nonce is not provided, a fresh random one is drawn.
    A nonce must never be reused for a different message.
    """

    q = int_from_prv_key(prv_key, ec)
    Q = mult(q, ec.G, ec)

    if nonce is None:
        k = 1 + secrets.randbelow(ec.n - 1)
    else:
        k = nonce
        if not 0 < k < ec.n:
            raise MultiSigValueError(f"nonce not in 1..n-1: {_scalar_str(k)}")
    K = mult(k, ec.G, ec)

    c = challenge_(K, Q, msg, ec, hf)
    return _sign_(c, q, k, ec)


def _commit_from_sig_(c: int, s: int, QJ: JacPoint, ec: Curve) -> Point:
    # K = sG + cQ, in Jacobian coordinates
    KJ = _double_mult(s, ec.GJ, c, QJ, ec)
    if KJ[2] == 0:
        raise MultiSigRuntimeError("invalid (INF) commitment")
    return ec.aff_from_jac(KJ)


def assert_as_valid(
    msg: Octets, Q: PubKey, sig: Sig | Octets, hf: HashF = sha256
) -> None:
    # It raises Errors, while verify should always return True or False
    if isinstance(sig, Sig):
        sig.assert_valid()
    else:
        sig = Sig.parse(sig)

    ec = sig.ec
    Q = point_from_pub_key(Q, ec)
    K = _commit_from_sig_(sig.c, sig.s, jac_from_aff(Q), ec)
    if challenge_(K, Q, msg, ec, hf) != sig.c:
        raise MultiSigRuntimeError("signature verification failed")


def verify(msg: Octets, Q: PubKey, sig: Sig | Octets, hf: HashF = sha256) -> bool:
    """Verify the EC-Schnorr signature of the provided message."""
    # all kind of Exceptions are catched because
    # verify must always return a bool
    try:
        assert_as_valid(msg, Q, sig, hf)
    except Exception:  # pylint: disable=broad-except
        return False

    return True
