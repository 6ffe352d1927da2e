#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""EC-Schnorr multisignature.

A fixed group of m signers, with private keys q_i and
public keys Q_i = q_i G, jointly produce a single signature
verifiable against the aggregated public key Q = Q_1 + ... + Q_m.
Two broadcast rounds are needed:

1. each signer draws a one-time secret nonce k_i (CommitSecret)
   and broadcasts its commit point K_i = k_i G (CommitPoint);
2. the aggregated commit point K = K_1 + ... + K_m
   and the aggregated public key Q are used to compute the
   challenge c = H(K||Q||msg) (Challenge), which can be computed
   by the aggregator or, deterministically, by each signer;
3. each signer broadcasts its response r_i = k_i - c q_i (Response);
4. each response is verified on its own, r_i G + c Q_i = K_i,
   so that a faulty or malicious signer can be singled out;
5. the responses are aggregated as r = r_1 + ... + r_m
   and the multisignature is the (c, r) pair, a plain schnorr.Sig
   verifiable with schnorr.verify against Q.

Value types hold an optional value: None marks an uninitialized
instance, and any operation requiring it raises UninitializedError
instead of producing a misleading result.

The aggregation of public keys is a plain sum: the scheme is safe
against rogue-key attacks only if every enrolled public key comes
with a verified proof of possession (see ecmultisig.pop).

Scalars are serialized as n-size big endian integers,
points with the SEC 1 v.2 compressed encoding.
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import InitVar, dataclass, field
from hashlib import sha256
from io import BytesIO
from typing import Optional, Sequence, Tuple

from ecmultisig import schnorr
from ecmultisig.alias import INFJ, BinaryData, HashF, JacPoint, Octets, Point
from ecmultisig.ec import (
    Curve,
    bytes_from_point,
    jac_from_aff,
    mult,
    point_from_octets,
    point_size,
    secp256k1,
)
from ecmultisig.ec.curve_group import _double_mult
from ecmultisig.exceptions import (
    DecodeError,
    MultiSigRuntimeError,
    MultiSigValueError,
    UninitializedError,
)
from ecmultisig.to_prv_key import PrvKey, int_from_prv_key
from ecmultisig.to_pub_key import PubKey, point_from_pub_key
from ecmultisig.utils import (
    bytes_from_octets,
    bytesio_from_binarydata,
    hex_string,
    read_at,
    write_at,
)


def _scalar_str(i: int) -> str:
    return f"'{hex_string(i)}'" if i > 0xFFFFFFFF else f"{i}"


def _require_initialized(value, what: str) -> None:
    if value is None or not value.initialized:
        raise UninitializedError(f"uninitialized {what}")


def _require_same_curve(ec: Curve, other: Curve) -> None:
    if ec != other:
        raise MultiSigValueError(f"curve mismatch: {ec!r} vs {other!r}")


def _require_scalar(i: int, ec: Curve, what: str, zero_ok: bool = False) -> None:
    low = 0 if zero_ok else 1
    if not low <= i < ec.n:
        raise MultiSigValueError(f"{what} not in {low}..n-1: {_scalar_str(i)}")


def _parse_scalar(
    data: BinaryData, ec: Curve, what: str, zero_ok: bool = False
) -> int:
    stream = bytesio_from_binarydata(data)
    scalar_bytes = stream.read(ec.n_size)
    if len(scalar_bytes) != ec.n_size:
        err_msg = f"not enough bytes for {what}: "
        err_msg += f"{len(scalar_bytes)} instead of {ec.n_size}"
        raise DecodeError(err_msg)
    i = int.from_bytes(scalar_bytes, byteorder="big", signed=False)
    try:
        _require_scalar(i, ec, what, zero_ok)
    except MultiSigValueError as e:
        raise DecodeError(str(e)) from e
    return i


@dataclass(eq=False)
class CommitSecret:
    """A signer's one-time secret nonce for a single signing session.

    If no scalar is provided, a fresh one is drawn uniformly
    from [1, n-1] using the secrets module.

    A commit secret must never be used for two different sessions:
    reusing it for two different challenges leaks the private key.
    Call clear() as soon as the response has been computed.
    """

    s: Optional[int] = field(default=None, repr=False)
    ec: Curve = secp256k1
    check_validity: InitVar[bool] = True

    def __post_init__(self, check_validity: bool) -> None:
        if self.s is None:
            self.s = 1 + secrets.randbelow(self.ec.n - 1)
        elif check_validity:
            self.assert_valid()

    @property
    def initialized(self) -> bool:
        return self.s is not None

    def assert_valid(self) -> None:
        _require_initialized(self, "commit secret")
        _require_scalar(self.s, self.ec, "commit secret")  # type: ignore

    def clear(self) -> None:
        "Drop the secret scalar: the instance becomes uninitialized."
        self.s = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommitSecret):
            return NotImplemented
        if not (self.initialized and other.initialized) or self.ec != other.ec:
            return False
        n = self.ec.n
        if not (0 < self.s < n and 0 < other.s < n):  # type: ignore
            # out of range scalars are not usable secrets
            return self.s == other.s
        # constant time comparison, as this is secret material
        return hmac.compare_digest(self.serialize(), other.serialize())

    def serialize(self, check_validity: bool = True) -> bytes:
        if check_validity:
            self.assert_valid()
        else:
            _require_initialized(self, "commit secret")
        return self.s.to_bytes(self.ec.n_size, byteorder="big", signed=False)  # type: ignore

    def serialize_into(self, dst: bytearray, offset: int) -> int:
        "Write the secret at offset in dst, returning the next offset."
        return write_at(dst, offset, self.serialize())

    @classmethod
    def parse(cls, data: BinaryData, ec: Curve = secp256k1) -> CommitSecret:
        s = _parse_scalar(data, ec, "commit secret")
        return cls(s, ec, check_validity=False)

    @classmethod
    def deserialize(
        cls, src: Octets, offset: int, ec: Curve = secp256k1
    ) -> Tuple[CommitSecret, int]:
        "Return the secret read from src at offset, and the next offset."
        data = read_at(src, offset, ec.n_size)
        return cls.parse(data, ec), offset + ec.n_size


@dataclass(eq=False)
class CommitPoint:
    """Public commitment K = kG to a CommitSecret k.

    The default instance is uninitialized.
    """

    Q: Optional[Point] = None
    ec: Curve = secp256k1
    check_validity: InitVar[bool] = True

    def __post_init__(self, check_validity: bool) -> None:
        if self.Q is not None and check_validity:
            self.assert_valid()

    @classmethod
    def from_secret(cls, secret: CommitSecret) -> CommitPoint:
        _require_initialized(secret, "commit secret")
        commit_point = cls(ec=secret.ec)
        commit_point.set(secret)
        return commit_point

    @property
    def initialized(self) -> bool:
        return self.Q is not None

    def set(self, secret: CommitSecret) -> None:
        "Set the commit point as the given secret times the generator."
        _require_initialized(secret, "commit secret")
        _require_same_curve(self.ec, secret.ec)
        self.Q = mult(secret.s, self.ec.G, self.ec)  # type: ignore

    def assert_valid(self) -> None:
        _require_initialized(self, "commit point")
        self.ec.require_on_curve(self.Q)  # type: ignore
        if self.Q[1] == 0:  # type: ignore
            raise MultiSigValueError("INF commit point")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommitPoint):
            return NotImplemented
        if not (self.initialized and other.initialized) or self.ec != other.ec:
            return False
        return self.Q == other.Q

    def serialize(self, compressed: bool = True) -> bytes:
        self.assert_valid()
        return bytes_from_point(self.Q, self.ec, compressed)  # type: ignore

    def serialize_into(self, dst: bytearray, offset: int) -> int:
        "Write the compressed point at offset in dst, returning the next offset."
        return write_at(dst, offset, self.serialize())

    @classmethod
    def parse(cls, data: BinaryData, ec: Curve = secp256k1) -> CommitPoint:
        stream = bytesio_from_binarydata(data)
        prefix = stream.read(1)
        if prefix in (b"\x02", b"\x03"):
            size = point_size(ec, compressed=True)
        elif prefix == b"\x04":
            size = point_size(ec, compressed=False)
        else:
            raise DecodeError(f"not a point: {prefix!r}")
        point_bytes = prefix + stream.read(size - 1)
        if len(point_bytes) != size:
            err_msg = "not enough bytes for commit point: "
            err_msg += f"{len(point_bytes)} instead of {size}"
            raise DecodeError(err_msg)
        try:
            Q = point_from_octets(point_bytes, ec)
        except MultiSigValueError as e:
            raise DecodeError(str(e)) from e
        return cls(Q, ec, check_validity=False)

    @classmethod
    def deserialize(
        cls, src: Octets, offset: int, ec: Curve = secp256k1
    ) -> Tuple[CommitPoint, int]:
        "Return the point read from src at offset, and the next offset."
        src = bytes_from_octets(src)
        if not 0 <= offset < len(src):
            raise DecodeError(f"no bytes available at offset {offset}")
        stream = BytesIO(src)
        stream.seek(offset)
        commit_point = cls.parse(stream, ec)
        return commit_point, stream.tell()


@dataclass(eq=False)
class Challenge:
    """The group-wide challenge c = H(K||Q||msg) of a signing session.

    K is the aggregated commit point, Q the aggregated public key.
    The default instance is uninitialized.
    """

    c: Optional[int] = None
    ec: Curve = secp256k1
    check_validity: InitVar[bool] = True

    def __post_init__(self, check_validity: bool) -> None:
        if self.c is not None and check_validity:
            self.assert_valid()

    @classmethod
    def from_aggregates(
        cls,
        agg_commit: CommitPoint,
        agg_pub_key: PubKey,
        msg: Octets,
        hf: HashF = sha256,
    ) -> Challenge:
        _require_initialized(agg_commit, "aggregated commit point")
        challenge = cls(ec=agg_commit.ec)
        challenge.set(agg_commit, agg_pub_key, msg, hf)
        return challenge

    @property
    def initialized(self) -> bool:
        return self.c is not None

    def set(
        self,
        agg_commit: CommitPoint,
        agg_pub_key: PubKey,
        msg: Octets,
        hf: HashF = sha256,
    ) -> None:
        "Set the challenge from aggregated commit point, public key, and message."
        _require_initialized(agg_commit, "aggregated commit point")
        if agg_pub_key is None:
            raise UninitializedError("uninitialized aggregated public key")
        _require_same_curve(self.ec, agg_commit.ec)
        Q = point_from_pub_key(agg_pub_key, self.ec)
        self.c = schnorr.challenge_(agg_commit.Q, Q, msg, self.ec, hf)  # type: ignore

    def assert_valid(self) -> None:
        _require_initialized(self, "challenge")
        _require_scalar(self.c, self.ec, "challenge")  # type: ignore

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Challenge):
            return NotImplemented
        if not (self.initialized and other.initialized) or self.ec != other.ec:
            return False
        return self.c == other.c

    def serialize(self) -> bytes:
        self.assert_valid()
        return self.c.to_bytes(self.ec.n_size, byteorder="big", signed=False)  # type: ignore

    def serialize_into(self, dst: bytearray, offset: int) -> int:
        "Write the challenge at offset in dst, returning the next offset."
        return write_at(dst, offset, self.serialize())

    @classmethod
    def parse(cls, data: BinaryData, ec: Curve = secp256k1) -> Challenge:
        c = _parse_scalar(data, ec, "challenge")
        return cls(c, ec, check_validity=False)

    @classmethod
    def deserialize(
        cls, src: Octets, offset: int, ec: Curve = secp256k1
    ) -> Tuple[Challenge, int]:
        "Return the challenge read from src at offset, and the next offset."
        data = read_at(src, offset, ec.n_size)
        return cls.parse(data, ec), offset + ec.n_size


@dataclass(eq=False)
class Response:
    """A signer's response r = k - cq (mod n).

    k is the signer's commit secret, c the challenge,
    and q the signer's private key.
    Zero is a valid response.
    The default instance is uninitialized.
    """

    r: Optional[int] = None
    ec: Curve = secp256k1
    check_validity: InitVar[bool] = True

    def __post_init__(self, check_validity: bool) -> None:
        if self.r is not None and check_validity:
            self.assert_valid()

    @classmethod
    def from_secret(
        cls, secret: CommitSecret, challenge: Challenge, prv_key: PrvKey
    ) -> Response:
        _require_initialized(secret, "commit secret")
        response = cls(ec=secret.ec)
        response.set(secret, challenge, prv_key)
        return response

    @property
    def initialized(self) -> bool:
        return self.r is not None

    def set(self, secret: CommitSecret, challenge: Challenge, prv_key: PrvKey) -> None:
        "Set the response from commit secret, challenge, and private key."
        _require_initialized(secret, "commit secret")
        _require_initialized(challenge, "challenge")
        _require_same_curve(self.ec, secret.ec)
        _require_same_curve(self.ec, challenge.ec)
        q = int_from_prv_key(prv_key, self.ec)
        self.r = (secret.s - challenge.c * q) % self.ec.n  # type: ignore

    def assert_valid(self) -> None:
        _require_initialized(self, "response")
        _require_scalar(self.r, self.ec, "response", zero_ok=True)  # type: ignore

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Response):
            return NotImplemented
        if not (self.initialized and other.initialized) or self.ec != other.ec:
            return False
        return self.r == other.r

    def serialize(self) -> bytes:
        self.assert_valid()
        return self.r.to_bytes(self.ec.n_size, byteorder="big", signed=False)  # type: ignore

    def serialize_into(self, dst: bytearray, offset: int) -> int:
        "Write the response at offset in dst, returning the next offset."
        return write_at(dst, offset, self.serialize())

    @classmethod
    def parse(cls, data: BinaryData, ec: Curve = secp256k1) -> Response:
        r = _parse_scalar(data, ec, "response", zero_ok=True)
        return cls(r, ec, check_validity=False)

    @classmethod
    def deserialize(
        cls, src: Octets, offset: int, ec: Curve = secp256k1
    ) -> Tuple[Response, int]:
        "Return the response read from src at offset, and the next offset."
        data = read_at(src, offset, ec.n_size)
        return cls.parse(data, ec), offset + ec.n_size


def _sum_points(points: Sequence[Point], ec: Curve) -> JacPoint:
    RJ = INFJ
    for Q in points:
        RJ = ec.add_jac(RJ, jac_from_aff(Q))
    return RJ


def aggregate_pub_keys(pub_keys: Sequence[PubKey], ec: Curve = secp256k1) -> Point:
    """Return the aggregated public key Q_1 + ... + Q_m.

    The result does not depend on the order of the public keys,
    but the caller must keep a stable index-to-signer mapping,
    as commit points and responses are later paired by position.
    """

    if not pub_keys:
        raise MultiSigValueError("no public keys provided")
    # all keys are validated before any summation
    points = [point_from_pub_key(pub_key, ec) for pub_key in pub_keys]
    RJ = _sum_points(points, ec)
    if RJ[2] == 0:
        raise MultiSigRuntimeError("invalid (INF) aggregated public key")
    return ec.aff_from_jac(RJ)


def aggregate_commits(commit_points: Sequence[CommitPoint]) -> CommitPoint:
    "Return the aggregated commit point K_1 + ... + K_m."

    if not commit_points:
        raise MultiSigValueError("no commit points provided")
    ec = commit_points[0].ec
    for i, commit_point in enumerate(commit_points):
        _require_initialized(commit_point, f"commit point #{i}")
        _require_same_curve(ec, commit_point.ec)
    RJ = _sum_points([commit_point.Q for commit_point in commit_points], ec)  # type: ignore
    if RJ[2] == 0:
        raise MultiSigRuntimeError("invalid (INF) aggregated commit point")
    return CommitPoint(ec.aff_from_jac(RJ), ec)


def aggregate_responses(responses: Sequence[Response]) -> Response:
    "Return the aggregated response r_1 + ... + r_m (mod n)."

    if not responses:
        raise MultiSigValueError("no responses provided")
    ec = responses[0].ec
    for i, response in enumerate(responses):
        _require_initialized(response, f"response #{i}")
        _require_same_curve(ec, response.ec)
    r = sum(response.r for response in responses) % ec.n  # type: ignore
    return Response(r, ec)


def aggregate_sign(challenge: Challenge, agg_response: Response) -> schnorr.Sig:
    """Return the multisignature as the (challenge, aggregated response) pair.

    No algebraic check is performed: the caller is responsible
    for having verified every aggregated response.
    """

    _require_initialized(challenge, "challenge")
    _require_initialized(agg_response, "aggregated response")
    _require_same_curve(challenge.ec, agg_response.ec)
    return schnorr.Sig(challenge.c, agg_response.r, challenge.ec)  # type: ignore


def assert_response_as_valid(
    response: Response,
    challenge: Challenge,
    pub_key: PubKey,
    commit_point: CommitPoint,
) -> None:
    # It raises Errors, while verify_response should always return True or False
    _require_initialized(response, "response")
    _require_initialized(challenge, "challenge")
    _require_initialized(commit_point, "commit point")
    ec = response.ec
    _require_same_curve(ec, challenge.ec)
    _require_same_curve(ec, commit_point.ec)
    response.assert_valid()
    challenge.assert_valid()
    commit_point.assert_valid()

    Q = point_from_pub_key(pub_key, ec)
    # rG + cQ must be equal to K, checked in Jacobian coordinates
    KJ = _double_mult(response.r, ec.GJ, challenge.c, jac_from_aff(Q), ec)  # type: ignore
    if not ec.jac_equality(KJ, jac_from_aff(commit_point.Q)):  # type: ignore
        raise MultiSigRuntimeError("response verification failed")


def verify_response(
    response: Response,
    challenge: Challenge,
    pub_key: PubKey,
    commit_point: CommitPoint,
) -> bool:
    """Return True if rG + cQ is equal to the commit point K.

    This is the per-signer check to be run on every response
    before aggregation: False singles out the signer to be excluded.
    """
    # all kind of Exceptions are catched because
    # verify must always return a bool
    try:
        assert_response_as_valid(response, challenge, pub_key, commit_point)
    except Exception:  # pylint: disable=broad-except
        return False

    return True


def verify(
    msg: Octets, pub_keys: Sequence[PubKey], sig: schnorr.Sig | Octets, hf: HashF = sha256
) -> bool:
    "Verify the multisignature of msg by the given signers."
    try:
        ec = sig.ec if isinstance(sig, schnorr.Sig) else secp256k1
        agg_pub_key = aggregate_pub_keys(pub_keys, ec)
    except Exception:  # pylint: disable=broad-except
        return False
    return schnorr.verify(msg, agg_pub_key, sig, hf)
