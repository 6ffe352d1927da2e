#!/usr/bin/env python3

# Copyright (C) The ecmultisig developers
#
# This file is part of ecmultisig. It is subject to the license terms in the
# LICENSE file found in the top-level directory of this distribution.
#
# No part of ecmultisig including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Tests for the `ecmultisig.multisig` module."""

import copy
import itertools
import pickle

import pytest

from ecmultisig import multisig, schnorr
from ecmultisig.alias import INF
from ecmultisig.ec import bytes_from_point, double_mult, mult, secp256k1
from ecmultisig.exceptions import (
    DecodeError,
    MultiSigRuntimeError,
    MultiSigValueError,
    UninitializedError,
)
from ecmultisig.hashes import hash_to_scalar
from ecmultisig.multisig import Challenge, CommitPoint, CommitSecret, Response
from tests.ec.test_curve import low_card_curves

ec23_31 = low_card_curves["ec23_31"]

MSG = b"Satoshi Nakamoto"

# private keys of the signers in the end-to-end scenario
PRV_KEYS = (
    0x18E14A7B6A307F426A94F8114701E7C8E774E7F9A47E2C2035DB29A206321725,
    0x3F5D1A62E8AE8FC3B68A5D2E3C0A6B7AEDB3D8C9F3A8E1FA9D1E8B7A2C4E5D61,
    0x0C28FCA386C7A227600B2FE50B7CAE11EC86D3BF1FBE471BE89827E19D72AA1D,
)


def test_commit_secret() -> None:
    secret = CommitSecret()
    assert secret.initialized
    assert 0 < secret.s < secp256k1.n  # type: ignore
    # the secret scalar is not exposed by repr
    assert "s=" not in repr(secret)

    # fresh secrets are not reused
    assert CommitSecret() != CommitSecret()

    assert CommitSecret(5) == CommitSecret(5)
    assert CommitSecret(5) != CommitSecret(6)
    assert CommitSecret(5) != CommitSecret(5, ec23_31)
    assert CommitSecret(5) != 5

    err_msg = "commit secret not in 1..n-1: "
    for invalid_s in (0, secp256k1.n, -1):
        with pytest.raises(MultiSigValueError, match=err_msg):
            CommitSecret(invalid_s)
    with pytest.raises(MultiSigValueError, match=err_msg):
        CommitSecret(31, ec23_31)

    # out of range secrets can be compared without errors
    for invalid_s in (0, secp256k1.n, -1, 2**256):
        invalid = CommitSecret(invalid_s, check_validity=False)
        assert invalid != CommitSecret(5)
        assert CommitSecret(5) != invalid
        assert invalid == CommitSecret(invalid_s, check_validity=False)
    assert CommitSecret(0, check_validity=False) != CommitSecret(
        secp256k1.n, check_validity=False
    )

    secret = CommitSecret(5)
    secret.clear()
    assert not secret.initialized
    # uninitialized values never compare equal, not even to themselves
    assert secret != secret  # pylint: disable=comparison-with-itself
    assert secret != CommitSecret(5)
    err_msg = "uninitialized commit secret"
    with pytest.raises(UninitializedError, match=err_msg):
        secret.assert_valid()
    with pytest.raises(UninitializedError, match=err_msg):
        secret.serialize()
    with pytest.raises(UninitializedError, match=err_msg):
        secret.serialize(check_validity=False)
    with pytest.raises(UninitializedError, match=err_msg):
        secret.serialize_into(bytearray(), 0)


def test_commit_point() -> None:
    secret = CommitSecret(7)
    commit_point = CommitPoint.from_secret(secret)
    assert commit_point.initialized
    assert commit_point.Q == mult(7)
    # reconstructing the point twice yields equal points
    assert CommitPoint.from_secret(secret) == commit_point

    commit_point2 = CommitPoint()
    assert not commit_point2.initialized
    assert commit_point2 != commit_point
    commit_point2.set(secret)
    assert commit_point2 == commit_point

    for ec in low_card_curves.values():
        for s in range(1, ec.n):
            commit_point = CommitPoint.from_secret(CommitSecret(s, ec))
            assert commit_point.Q == mult(s, ec.G, ec)
            assert commit_point.ec is ec

    # same coordinates, different curves
    assert CommitPoint(mult(3)) != CommitPoint(mult(3), ec23_31, check_validity=False)

    with pytest.raises(MultiSigValueError, match="INF commit point"):
        CommitPoint(INF)
    with pytest.raises(MultiSigValueError, match="point not on curve"):
        CommitPoint((1, 1))

    err_msg = "curve mismatch: "
    with pytest.raises(MultiSigValueError, match=err_msg):
        CommitPoint(ec=ec23_31).set(secret)

    cleared = CommitSecret(7)
    cleared.clear()
    err_msg = "uninitialized commit secret"
    with pytest.raises(UninitializedError, match=err_msg):
        CommitPoint.from_secret(cleared)
    with pytest.raises(UninitializedError, match=err_msg):
        CommitPoint().set(cleared)

    err_msg = "uninitialized commit point"
    with pytest.raises(UninitializedError, match=err_msg):
        CommitPoint().serialize()
    with pytest.raises(UninitializedError, match=err_msg):
        CommitPoint().assert_valid()


def test_challenge() -> None:
    q = PRV_KEYS[0]
    Q = mult(q)
    agg_commit = CommitPoint.from_secret(CommitSecret(11))

    challenge = Challenge.from_aggregates(agg_commit, Q, MSG)
    assert challenge.initialized
    K_bytes = bytes_from_point(agg_commit.Q)  # type: ignore
    exp = hash_to_scalar(K_bytes + bytes_from_point(Q) + MSG)
    assert challenge.c == exp
    assert challenge.c == schnorr.challenge_(agg_commit.Q, Q, MSG)  # type: ignore

    # determinism
    for pub_key in (Q, bytes_from_point(Q), bytes_from_point(Q).hex()):
        assert Challenge.from_aggregates(agg_commit, pub_key, MSG) == challenge
    challenge2 = Challenge()
    challenge2.set(agg_commit, Q, MSG)
    assert challenge2 == challenge

    # any change of the inputs changes the challenge
    assert Challenge.from_aggregates(agg_commit, Q, b"Craig Wright") != challenge
    assert Challenge.from_aggregates(agg_commit, mult(q + 1), MSG) != challenge
    agg_commit2 = CommitPoint.from_secret(CommitSecret(12))
    assert Challenge.from_aggregates(agg_commit2, Q, MSG) != challenge

    err_msg = "uninitialized aggregated public key"
    with pytest.raises(UninitializedError, match=err_msg):
        Challenge().set(agg_commit, None, MSG)  # type: ignore
    err_msg = "uninitialized aggregated commit point"
    with pytest.raises(UninitializedError, match=err_msg):
        Challenge.from_aggregates(CommitPoint(), Q, MSG)
    with pytest.raises(UninitializedError, match=err_msg):
        Challenge().set(CommitPoint(), Q, MSG)

    err_msg = "challenge not in 1..n-1: "
    for invalid_c in (0, secp256k1.n):
        with pytest.raises(MultiSigValueError, match=err_msg):
            Challenge(invalid_c)

    assert not Challenge().initialized
    assert Challenge() != Challenge()
    with pytest.raises(UninitializedError, match="uninitialized challenge"):
        Challenge().serialize()


def test_response() -> None:
    ec = secp256k1
    q = PRV_KEYS[0]
    secret = CommitSecret(0xC0FFEE)
    challenge = Challenge(0xDEADBEEF)

    response = Response.from_secret(secret, challenge, q)
    assert response.initialized
    assert response.r == (0xC0FFEE - 0xDEADBEEF * q) % ec.n
    # private key in any supported format
    q_bytes = q.to_bytes(32, "big")
    assert Response.from_secret(secret, challenge, q_bytes) == response
    assert Response.from_secret(secret, challenge, q_bytes.hex()) == response
    response2 = Response()
    response2.set(secret, challenge, q)
    assert response2 == response

    # zero is a valid response
    assert Response(0).r == 0
    assert Response.from_secret(CommitSecret(5), Challenge(5), 1).r == 0

    err_msg = "response not in 0..n-1: "
    for invalid_r in (-1, ec.n):
        with pytest.raises(MultiSigValueError, match=err_msg):
            Response(invalid_r)

    with pytest.raises(UninitializedError, match="uninitialized challenge"):
        Response.from_secret(secret, Challenge(), q)
    cleared = CommitSecret(5)
    cleared.clear()
    with pytest.raises(UninitializedError, match="uninitialized commit secret"):
        Response.from_secret(cleared, challenge, q)
    with pytest.raises(MultiSigValueError, match="private key not in 1..n-1: "):
        Response.from_secret(secret, challenge, 0)
    with pytest.raises(MultiSigValueError, match="curve mismatch: "):
        Response.from_secret(secret, Challenge(5, ec23_31), q)

    assert Response() != Response()
    with pytest.raises(UninitializedError, match="uninitialized response"):
        Response().serialize()


def test_serialization() -> None:
    for ec in (secp256k1, ec23_31):
        secret = CommitSecret(ec=ec)
        commit_point = CommitPoint.from_secret(secret)
        challenge = Challenge(ec.n - 1, ec)
        response = Response(0, ec)

        assert len(secret.serialize()) == ec.n_size
        assert len(commit_point.serialize()) == ec.p_size + 1
        assert len(commit_point.serialize(compressed=False)) == 2 * ec.p_size + 1
        assert len(challenge.serialize()) == ec.n_size
        assert len(response.serialize()) == ec.n_size

        assert CommitSecret.parse(secret.serialize(), ec) == secret
        assert CommitPoint.parse(commit_point.serialize(), ec) == commit_point
        assert CommitPoint.parse(commit_point.serialize(False), ec) == commit_point
        assert CommitPoint.parse(commit_point.serialize().hex(), ec) == commit_point
        assert Challenge.parse(challenge.serialize(), ec) == challenge
        assert Response.parse(response.serialize(), ec) == response

        # several values concatenated in the same buffer
        buffer = bytearray(b"\xff")
        offset = 1
        offset = commit_point.serialize_into(buffer, offset)
        offset = secret.serialize_into(buffer, offset)
        offset = challenge.serialize_into(buffer, offset)
        offset = commit_point.serialize_into(buffer, offset)
        offset = response.serialize_into(buffer, offset)
        assert offset == len(buffer)
        assert offset == 1 + 2 * (ec.p_size + 1) + 3 * ec.n_size
        assert buffer[0] == 0xFF

        offset = 1
        commit_point2, offset = CommitPoint.deserialize(buffer, offset, ec)
        assert commit_point2 == commit_point
        secret2, offset = CommitSecret.deserialize(buffer, offset, ec)
        assert secret2 == secret
        challenge2, offset = Challenge.deserialize(buffer, offset, ec)
        assert challenge2 == challenge
        commit_point3, offset = CommitPoint.deserialize(buffer, offset, ec)
        assert commit_point3 == commit_point
        response2, offset = Response.deserialize(buffer, offset, ec)
        assert response2 == response
        assert offset == len(buffer)

        # overwriting already written bytes
        buffer = bytearray(b"\x00" * (2 * ec.n_size))
        assert challenge.serialize_into(buffer, ec.n_size) == 2 * ec.n_size
        assert Challenge.deserialize(buffer, ec.n_size, ec)[0] == challenge
        assert len(buffer) == 2 * ec.n_size

        err_msg = "negative offset: "
        with pytest.raises(MultiSigValueError, match=err_msg):
            challenge.serialize_into(buffer, -1)
        with pytest.raises(DecodeError, match=err_msg):
            Challenge.deserialize(buffer, -1, ec)


def test_decode_errors() -> None:
    ec = secp256k1
    zero = b"\x00" * ec.n_size
    n_bytes = ec.n.to_bytes(ec.n_size, "big")

    # zero scalars are rejected for secrets and challenges
    with pytest.raises(DecodeError, match="commit secret not in 1..n-1: "):
        CommitSecret.parse(zero)
    with pytest.raises(DecodeError, match="challenge not in 1..n-1: "):
        Challenge.parse(zero)
    # but not for responses
    assert Response.parse(zero).r == 0

    with pytest.raises(DecodeError, match="commit secret not in 1..n-1: "):
        CommitSecret.parse(n_bytes)
    with pytest.raises(DecodeError, match="challenge not in 1..n-1: "):
        Challenge.parse(n_bytes)
    with pytest.raises(DecodeError, match="response not in 0..n-1: "):
        Response.parse(n_bytes)

    short = b"\x01" * (ec.n_size - 1)
    with pytest.raises(DecodeError, match="not enough bytes for commit secret: "):
        CommitSecret.parse(short)
    with pytest.raises(DecodeError, match="not enough bytes for challenge: "):
        Challenge.parse(short)
    with pytest.raises(DecodeError, match="not enough bytes for response: "):
        Response.parse(short)

    buffer = b"\x01" * 40
    for value_type in (CommitSecret, Challenge, Response):
        with pytest.raises(DecodeError, match="not enough bytes: "):
            value_type.deserialize(buffer, 10)  # type: ignore

    # the identity point is rejected
    err_msg = "no bytes representation for infinity point"
    with pytest.raises(DecodeError, match=err_msg):
        CommitPoint.parse(b"\x04" + b"\x00" * 2 * ec.p_size)
    with pytest.raises(DecodeError, match=err_msg):
        CommitPoint.parse(b"\x04\x05\x00", ec23_31)
    # SEC 1 identity encoding
    with pytest.raises(DecodeError, match="not a point: "):
        CommitPoint.parse(b"\x00")
    with pytest.raises(DecodeError, match="not a point: "):
        CommitPoint.parse(b"")

    x_1 = (1).to_bytes(ec.p_size, "big")
    with pytest.raises(DecodeError, match="point not on curve"):
        CommitPoint.parse(b"\x04" + x_1 + x_1)

    G_bytes = bytes_from_point(ec.G)
    with pytest.raises(DecodeError, match="not enough bytes for commit point: "):
        CommitPoint.parse(G_bytes[:-1])
    with pytest.raises(DecodeError, match="no bytes available at offset "):
        CommitPoint.deserialize(G_bytes, len(G_bytes))
    with pytest.raises(DecodeError, match="no bytes available at offset "):
        CommitPoint.deserialize(G_bytes, -1)

    # decode errors are value errors
    assert issubclass(DecodeError, ValueError)
    assert issubclass(UninitializedError, MultiSigValueError)


def test_self_verification() -> None:
    "Exhaustive response verification on a low-cardinality curve."

    ec = ec23_31
    for q in range(1, ec.n):
        Q = mult(q, ec.G, ec)
        for s in range(1, ec.n):
            secret = CommitSecret(s, ec)
            commit_point = CommitPoint.from_secret(secret)
            for c in (1, 5, ec.n - 1):
                challenge = Challenge(c, ec)
                response = Response.from_secret(secret, challenge, q)
                assert multisig.verify_response(response, challenge, Q, commit_point)
                multisig.assert_response_as_valid(response, challenge, Q, commit_point)

    q = PRV_KEYS[0]
    secret = CommitSecret()
    challenge = Challenge(0xC0FFEE)
    response = Response.from_secret(secret, challenge, q)
    commit_point = CommitPoint.from_secret(secret)
    assert multisig.verify_response(response, challenge, mult(q), commit_point)
    pub_key = bytes_from_point(mult(q))
    assert multisig.verify_response(response, challenge, pub_key, commit_point)


def test_tamper_detection() -> None:
    ec = secp256k1
    q = PRV_KEYS[0]
    Q = mult(q)
    secret = CommitSecret(0xDEADBEEF)
    commit_point = CommitPoint.from_secret(secret)
    challenge = Challenge(0xC0FFEE)
    response = Response.from_secret(secret, challenge, q)
    assert multisig.verify_response(response, challenge, Q, commit_point)

    # flipping any single bit of the response
    for i in range(8 * ec.n_size):
        r = response.r ^ (1 << i)  # type: ignore
        f_response = Response(r, ec, check_validity=False)
        assert not multisig.verify_response(f_response, challenge, Q, commit_point)

    err_msg = "response verification failed"
    f_challenge = Challenge(0xC0FFEF)
    assert not multisig.verify_response(response, f_challenge, Q, commit_point)
    with pytest.raises(MultiSigRuntimeError, match=err_msg):
        multisig.assert_response_as_valid(response, f_challenge, Q, commit_point)

    f_Q = mult(q + 1)
    assert not multisig.verify_response(response, challenge, f_Q, commit_point)
    with pytest.raises(MultiSigRuntimeError, match=err_msg):
        multisig.assert_response_as_valid(response, challenge, f_Q, commit_point)

    f_commit_point = CommitPoint.from_secret(CommitSecret(0xDEADBEF0))
    assert not multisig.verify_response(response, challenge, Q, f_commit_point)
    with pytest.raises(MultiSigRuntimeError, match=err_msg):
        multisig.assert_response_as_valid(response, challenge, Q, f_commit_point)

    # invalid or uninitialized inputs make verification fail, not crash
    assert not multisig.verify_response(Response(), challenge, Q, commit_point)
    assert not multisig.verify_response(response, Challenge(), Q, commit_point)
    assert not multisig.verify_response(response, challenge, Q, CommitPoint())
    assert not multisig.verify_response(response, challenge, INF, commit_point)
    assert not multisig.verify_response(response, Challenge(1, ec23_31), Q, commit_point)
    with pytest.raises(UninitializedError, match="uninitialized response"):
        multisig.assert_response_as_valid(Response(), challenge, Q, commit_point)
    with pytest.raises(UninitializedError, match="uninitialized challenge"):
        multisig.assert_response_as_valid(response, Challenge(), Q, commit_point)
    with pytest.raises(UninitializedError, match="uninitialized commit point"):
        multisig.assert_response_as_valid(response, challenge, Q, CommitPoint())


def test_aggregation() -> None:
    ec = secp256k1
    prv_keys = [1, 2, 3, 0xC0FFEE]
    pub_keys = [mult(q) for q in prv_keys]
    secrets = [CommitSecret(s) for s in (5, 6, 7, 0xDEADBEEF)]
    commit_points = [CommitPoint.from_secret(s) for s in secrets]
    challenge = Challenge(0xC0FFEE)
    responses = [
        Response.from_secret(s, challenge, q) for s, q in zip(secrets, prv_keys)
    ]

    agg_pub_key = multisig.aggregate_pub_keys(pub_keys)
    assert agg_pub_key == mult(sum(prv_keys))
    agg_commit = multisig.aggregate_commits(commit_points)
    assert agg_commit.Q == mult(5 + 6 + 7 + 0xDEADBEEF)
    agg_response = multisig.aggregate_responses(responses)
    assert agg_response.r == sum(r.r for r in responses) % ec.n  # type: ignore

    # the aggregated response verifies against the aggregated values
    assert multisig.verify_response(agg_response, challenge, agg_pub_key, agg_commit)

    # commutativity
    for permutation in itertools.permutations(range(len(prv_keys))):
        assert multisig.aggregate_pub_keys([pub_keys[i] for i in permutation]) == (
            agg_pub_key
        )
        assert (
            multisig.aggregate_commits([commit_points[i] for i in permutation])
            == agg_commit
        )
        assert (
            multisig.aggregate_responses([responses[i] for i in permutation])
            == agg_response
        )

    # any public key format
    pub_keys_bytes = [bytes_from_point(Q) for Q in pub_keys]
    assert multisig.aggregate_pub_keys(pub_keys_bytes) == agg_pub_key
    pub_keys_mixed = [pub_keys[0], pub_keys_bytes[1].hex()] + pub_keys_bytes[2:]
    assert multisig.aggregate_pub_keys(pub_keys_mixed) == agg_pub_key  # type: ignore

    # a single value aggregates to itself
    assert multisig.aggregate_pub_keys(pub_keys[:1]) == pub_keys[0]
    assert multisig.aggregate_commits(commit_points[:1]) == commit_points[0]
    assert multisig.aggregate_responses(responses[:1]) == responses[0]

    # aggregated responses wrap around the group order
    assert multisig.aggregate_responses([Response(ec.n - 1), Response(2)]).r == 1
    assert multisig.aggregate_responses([Response(ec.n - 1), Response(1)]).r == 0


def test_copies() -> None:
    "Deep copies and unpickled values behave as the original ones."

    q = PRV_KEYS[0]
    Q = mult(q)
    secret = CommitSecret(0xDEADBEEF)
    commit_point = CommitPoint.from_secret(secret)
    challenge = Challenge(0xC0FFEE)
    response = Response.from_secret(secret, challenge, q)

    def unpickled(value):
        return pickle.loads(pickle.dumps(value))

    for duplicate in (copy.deepcopy, unpickled):
        for value in (secret, commit_point, challenge, response):
            dup_value = duplicate(value)
            assert dup_value.ec is not value.ec
            assert dup_value.ec == value.ec
            assert dup_value == value
            assert value == dup_value

        dup_response = duplicate(response)
        dup_challenge = duplicate(challenge)
        dup_commit_point = duplicate(commit_point)
        assert multisig.verify_response(dup_response, challenge, Q, commit_point)
        assert multisig.verify_response(response, dup_challenge, Q, commit_point)
        assert multisig.verify_response(response, challenge, Q, dup_commit_point)
        multisig.assert_response_as_valid(
            dup_response, dup_challenge, Q, dup_commit_point
        )

        agg_commit = multisig.aggregate_commits([commit_point, dup_commit_point])
        assert agg_commit.Q == mult(2 * 0xDEADBEEF)
        agg_response = multisig.aggregate_responses([response, dup_response])
        assert agg_response.r == 2 * response.r % secp256k1.n  # type: ignore
        sig = multisig.aggregate_sign(dup_challenge, response)
        assert sig == multisig.aggregate_sign(challenge, response)


def test_aggregation_errors() -> None:
    with pytest.raises(MultiSigValueError, match="no public keys provided"):
        multisig.aggregate_pub_keys([])
    with pytest.raises(MultiSigValueError, match="no commit points provided"):
        multisig.aggregate_commits([])
    with pytest.raises(MultiSigValueError, match="no responses provided"):
        multisig.aggregate_responses([])

    Q = mult(3)
    with pytest.raises(MultiSigValueError, match="not a valid public key: "):
        multisig.aggregate_pub_keys([Q, INF])
    with pytest.raises(MultiSigValueError, match="not a public key: "):
        multisig.aggregate_pub_keys([Q, b"\x02" + b"\x00" * 31])

    # the sum of opposite points is the infinity point
    err_msg = r"invalid \(INF\) aggregated public key"
    with pytest.raises(MultiSigRuntimeError, match=err_msg):
        multisig.aggregate_pub_keys([Q, secp256k1.negate(Q)])
    commit_point = CommitPoint(Q)
    minus_commit_point = CommitPoint(secp256k1.negate(Q))
    err_msg = r"invalid \(INF\) aggregated commit point"
    with pytest.raises(MultiSigRuntimeError, match=err_msg):
        multisig.aggregate_commits([commit_point, minus_commit_point])

    with pytest.raises(UninitializedError, match="uninitialized commit point #1"):
        multisig.aggregate_commits([commit_point, CommitPoint()])
    with pytest.raises(UninitializedError, match="uninitialized response #0"):
        multisig.aggregate_responses([Response(), Response(1)])
    with pytest.raises(MultiSigValueError, match="curve mismatch: "):
        multisig.aggregate_responses([Response(1), Response(1, ec23_31)])
    ec23_31_commit_point = CommitPoint(ec23_31.G, ec23_31)
    with pytest.raises(MultiSigValueError, match="curve mismatch: "):
        multisig.aggregate_commits([commit_point, ec23_31_commit_point])

    with pytest.raises(UninitializedError, match="uninitialized challenge"):
        multisig.aggregate_sign(Challenge(), Response(1))
    with pytest.raises(UninitializedError, match="uninitialized aggregated response"):
        multisig.aggregate_sign(Challenge(1), Response())


def test_end_to_end() -> None:
    ec = secp256k1
    pub_keys = [mult(q) for q in PRV_KEYS]

    # 1. each signer generates its secret and commit point
    secrets = [CommitSecret() for _ in PRV_KEYS]
    commit_points = [CommitPoint.from_secret(s) for s in secrets]

    # 2. aggregated public key and aggregated commit point
    agg_pub_key = multisig.aggregate_pub_keys(pub_keys)
    agg_commit = multisig.aggregate_commits(commit_points)

    # 3. challenge
    challenge = Challenge.from_aggregates(agg_commit, agg_pub_key, MSG)

    # 4. responses
    responses = [
        Response.from_secret(s, challenge, q) for s, q in zip(secrets, PRV_KEYS)
    ]
    for secret in secrets:
        secret.clear()

    # 5. per-signer verification
    for response, Q, commit_point in zip(responses, pub_keys, commit_points):
        assert multisig.verify_response(response, challenge, Q, commit_point)

    # 6. signature
    agg_response = multisig.aggregate_responses(responses)
    sig = multisig.aggregate_sign(challenge, agg_response)
    assert sig.c == challenge.c
    assert sig.s == agg_response.r

    # 7. rG + cQ == K
    assert double_mult(sig.s, ec.G, sig.c, agg_pub_key) == agg_commit.Q

    # the multisignature is a plain signature for the aggregated public key
    assert schnorr.verify(MSG, agg_pub_key, sig)
    assert schnorr.verify(MSG, agg_pub_key, sig.serialize())
    assert multisig.verify(MSG, pub_keys, sig)
    assert multisig.verify(MSG, pub_keys[::-1], sig.serialize())
    assert not multisig.verify(b"Craig Wright", pub_keys, sig)
    assert not multisig.verify(MSG, pub_keys[:2], sig)
    assert not multisig.verify(MSG, [], sig)


def test_faulty_signer() -> None:
    pub_keys = [mult(q) for q in PRV_KEYS]
    secrets = [CommitSecret() for _ in PRV_KEYS]
    commit_points = [CommitPoint.from_secret(s) for s in secrets]
    agg_pub_key = multisig.aggregate_pub_keys(pub_keys)
    agg_commit = multisig.aggregate_commits(commit_points)
    challenge = Challenge.from_aggregates(agg_commit, agg_pub_key, MSG)

    # signer 2 uses the wrong private key
    prv_keys = list(PRV_KEYS)
    prv_keys[1] = PRV_KEYS[1] + 1
    responses = [
        Response.from_secret(s, challenge, q) for s, q in zip(secrets, prv_keys)
    ]
    results = [
        multisig.verify_response(r, challenge, Q, K)
        for r, Q, K in zip(responses, pub_keys, commit_points)
    ]
    assert results == [True, False, True]
    # if aggregated anyway, the signature would be invalid
    sig = multisig.aggregate_sign(challenge, multisig.aggregate_responses(responses))
    assert not multisig.verify(MSG, pub_keys, sig)

    # signer 2 uses a stale secret
    stale_secret = CommitSecret()
    responses[1] = Response.from_secret(stale_secret, challenge, PRV_KEYS[1])
    results = [
        multisig.verify_response(r, challenge, Q, K)
        for r, Q, K in zip(responses, pub_keys, commit_points)
    ]
    assert results == [True, False, True]

    # restart without signer 2, with fresh secrets
    signers = [0, 2]
    secrets = [CommitSecret() for _ in signers]
    commit_points = [CommitPoint.from_secret(s) for s in secrets]
    agg_pub_key = multisig.aggregate_pub_keys([pub_keys[i] for i in signers])
    agg_commit = multisig.aggregate_commits(commit_points)
    challenge = Challenge.from_aggregates(agg_commit, agg_pub_key, MSG)
    responses = [
        Response.from_secret(s, challenge, PRV_KEYS[i])
        for s, i in zip(secrets, signers)
    ]
    for response, i, commit_point in zip(responses, signers, commit_points):
        assert multisig.verify_response(response, challenge, pub_keys[i], commit_point)
    sig = multisig.aggregate_sign(challenge, multisig.aggregate_responses(responses))
    assert multisig.verify(MSG, [pub_keys[i] for i in signers], sig)
    assert not multisig.verify(MSG, pub_keys, sig)
